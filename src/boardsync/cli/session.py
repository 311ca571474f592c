"""
Shared helpers for CLI commands: logging setup, configuration and service
construction.
"""

import logging
import sys
from pathlib import Path

from boardsync.core.config import ServiceConfig, load_config
from boardsync.core.requests import QueueStore
from boardsync.core.service import BoardService


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def load_settings() -> ServiceConfig:
    """Load the layered configuration for the current directory."""
    return load_config(project_dir=Path.cwd())


def open_service(config: ServiceConfig) -> BoardService:
    """Start a service for one command; callers close it."""
    return BoardService(config=config)


def queue_store(config: ServiceConfig) -> QueueStore:
    """Store for requests held with ``--hold``."""
    path = Path(config.requests.queue_file)
    if not path.is_absolute():
        path = Path.cwd() / path
    return QueueStore(path)
