"""
.env file loading.

Credentials usually live in .env files rather than in JSON config. Files are
read in increasing precedence:

- ``$XDG_CONFIG_HOME/boardsync/.env``
- ``<project>/.env``
- ``<project>/.env.local``

A later file overrides values loaded from an earlier one, but nothing
overrides a variable that was already set in the process environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)


def env_file_paths(project_dir: Path | None = None) -> list[Path]:
    """Candidate .env files, lowest precedence first."""
    project_dir = project_dir or Path.cwd()
    return [
        get_xdg_config_home() / "boardsync" / ".env",
        project_dir / ".env",
        project_dir / ".env.local",
    ]


def load_layered_env(project_dir: Path | None = None) -> dict[str, Path]:
    """
    Load .env files into ``os.environ``.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)

    Returns:
        Mapping of each variable that was set to the file it came from
    """
    loaded: dict[str, Path] = {}
    for path in env_file_paths(project_dir):
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if value is None:
                continue
            if key in os.environ and key not in loaded:
                continue
            os.environ[key] = value
            loaded[key] = path

    if loaded:
        logger.debug("Loaded %s from .env files", ", ".join(sorted(loaded)))
    return loaded
