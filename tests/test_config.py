"""
Tests for configuration loading.

Covers the layer order (defaults < user < project < env), env var parsing,
.env loading, caching and credential masking.
"""

import json
import os

import pytest

from boardsync.core.config import (
    ServiceConfig,
    clear_cache,
    get_user_config_path,
    load_config,
    load_layered_env,
    mask_secret,
)
from boardsync.core.config.loader import apply_env_overrides, deep_merge, load_json_file
from boardsync.core.exceptions import ConfigError


def _write_json(path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_sections_are_merged(self) -> None:
        """Keys missing from the override keep their base value."""
        base = {"sync": {"item_duration": 60, "auto_refresh": True}, "serializer": "json"}
        merged = deep_merge(base, {"sync": {"item_duration": 5}})

        assert merged == {"sync": {"item_duration": 5, "auto_refresh": True}, "serializer": "json"}

    def test_inputs_are_not_modified(self) -> None:
        """Neither argument changes."""
        base = {"sync": {"item_duration": 60}}
        override = {"sync": {"item_duration": 5}}
        deep_merge(base, override)

        assert base == {"sync": {"item_duration": 60}}
        assert override == {"sync": {"item_duration": 5}}

    def test_scalar_replaces_section(self) -> None:
        """A non-dict override replaces the whole value."""
        assert deep_merge({"sync": {"a": 1}}, {"sync": None}) == {"sync": None}


class TestLoadJsonFile:
    """Tests for reading one config layer."""

    def test_missing_file(self, tmp_path) -> None:
        """A missing file is not an error."""
        assert load_json_file(tmp_path / "absent.json") is None

    def test_invalid_json_is_skipped(self, tmp_path) -> None:
        """Broken files yield None instead of raising."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        assert load_json_file(path) is None

    def test_non_object_is_skipped(self, tmp_path) -> None:
        """Only JSON objects are accepted."""
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")

        assert load_json_file(path) is None


class TestEnvOverrides:
    """Tests for BOARDSYNC_* environment variables."""

    def test_credentials(self, monkeypatch) -> None:
        """Key, token and base URL come straight from the environment."""
        monkeypatch.setenv("BOARDSYNC_APP_KEY", "env-key")
        monkeypatch.setenv("BOARDSYNC_USER_TOKEN", "env-token")
        monkeypatch.setenv("BOARDSYNC_BASE_URL", "https://example.com/api")

        result = apply_env_overrides({"app_key": "file-key"})

        assert result["app_key"] == "env-key"
        assert result["user_token"] == "env-token"
        assert result["base_url"] == "https://example.com/api"

    def test_item_duration(self, monkeypatch) -> None:
        """A positive duration is parsed as float."""
        monkeypatch.setenv("BOARDSYNC_ITEM_DURATION", "5")

        result = apply_env_overrides({"sync": {"item_duration": 60.0, "auto_refresh": True}})

        assert result["sync"] == {"item_duration": 5.0, "auto_refresh": True}

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_item_duration_is_ignored(self, monkeypatch, raw) -> None:
        """Unparseable or non-positive durations leave the config alone."""
        monkeypatch.setenv("BOARDSYNC_ITEM_DURATION", raw)

        result = apply_env_overrides({"sync": {"item_duration": 60.0}})

        assert result["sync"]["item_duration"] == 60.0

    @pytest.mark.parametrize(
        "raw,expected",
        [("true", True), ("1", True), ("yes", True), ("false", False), ("off", False), ("0", False)],
    )
    def test_boolean_flags(self, monkeypatch, raw, expected) -> None:
        """Flags accept the usual spellings."""
        monkeypatch.setenv("BOARDSYNC_AUTO_REFRESH", raw)
        monkeypatch.setenv("BOARDSYNC_AUTO_SUBMIT", raw)

        result = apply_env_overrides({})

        assert result["sync"] == {"auto_refresh": expected, "auto_submit": expected}

    def test_input_is_not_modified(self, monkeypatch) -> None:
        """The merged dict is a new object."""
        monkeypatch.setenv("BOARDSYNC_ITEM_DURATION", "5")
        original = {"sync": {"item_duration": 60.0}}

        apply_env_overrides(original)

        assert original == {"sync": {"item_duration": 60.0}}


class TestLoadConfig:
    """Tests for the layered loader."""

    def test_defaults(self, tmp_path) -> None:
        """Without files or env vars the model defaults apply."""
        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.base_url == "https://api.trello.com/1"
        assert config.app_key is None
        assert config.sync.item_duration == 60.0
        assert config.sync.auto_refresh is True
        assert config.requests.max_retries == 2

    def test_user_then_project_then_env(self, tmp_path, monkeypatch) -> None:
        """Each layer overrides the one below it key by key."""
        _write_json(
            get_user_config_path(),
            {"app_key": "user-key", "sync": {"item_duration": 30, "auto_submit": False}},
        )
        _write_json(tmp_path / ".boardsync.json", {"sync": {"item_duration": 10}})
        monkeypatch.setenv("BOARDSYNC_APP_KEY", "env-key")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.app_key == "env-key"
        assert config.sync.item_duration == 10.0
        assert config.sync.auto_submit is False
        assert config.sync.auto_refresh is True

    def test_broken_layer_is_skipped(self, tmp_path) -> None:
        """A corrupt project file does not hide the user layer."""
        _write_json(get_user_config_path(), {"serializer": "pydantic"})
        (tmp_path / ".boardsync.json").write_text("{oops")

        config = load_config(project_dir=tmp_path, use_cache=False)

        assert config.serializer == "pydantic"

    def test_invalid_values_raise_config_error(self, tmp_path) -> None:
        """Validation failures surface as ConfigError with the details."""
        _write_json(tmp_path / ".boardsync.json", {"sync": {"item_duration": -1}})

        with pytest.raises(ConfigError) as exc_info:
            load_config(project_dir=tmp_path, use_cache=False)

        assert "item_duration" in str(exc_info.value)
        assert exc_info.value.context["errors"]

    def test_cache(self, tmp_path) -> None:
        """The loaded config is reused until the cache is cleared."""
        first = load_config(project_dir=tmp_path)
        _write_json(tmp_path / ".boardsync.json", {"serializer": "pydantic"})

        assert load_config(project_dir=tmp_path) is first

        clear_cache()
        reloaded = load_config(project_dir=tmp_path)

        assert reloaded is not first
        assert reloaded.serializer == "pydantic"


class TestServiceConfig:
    """Tests for the configuration model."""

    def test_base_url_trailing_slash(self) -> None:
        """Endpoint paths are appended to a slash-free base URL."""
        assert ServiceConfig(base_url="https://example.com/1/").base_url == "https://example.com/1"

    def test_blank_credentials_are_unset(self) -> None:
        """Empty strings from env files mean "not configured"."""
        config = ServiceConfig(app_key="  ", user_token="")

        assert config.app_key is None
        assert config.user_token is None

    def test_masked(self) -> None:
        """Credentials are shortened, everything else is dumped as is."""
        data = ServiceConfig(app_key="abcdef123456", user_token="tok").masked()

        assert data["app_key"] == "abcd…"
        assert data["user_token"] == "…"
        assert data["sync"]["item_duration"] == 60.0

    def test_mask_secret_none(self) -> None:
        """Unset credentials stay unset."""
        assert mask_secret(None) is None


class TestLayeredEnv:
    """Tests for .env loading."""

    KEYS = ("BOARDSYNC_TEST_ALPHA", "BOARDSYNC_TEST_BETA")

    @pytest.fixture(autouse=True)
    def cleanup_env(self):
        yield
        for key in self.KEYS:
            os.environ.pop(key, None)

    def test_project_files(self, tmp_path) -> None:
        """.env.local overrides .env."""
        (tmp_path / ".env").write_text("BOARDSYNC_TEST_ALPHA=one\nBOARDSYNC_TEST_BETA=two\n")
        (tmp_path / ".env.local").write_text("BOARDSYNC_TEST_BETA=local\n")

        loaded = load_layered_env(tmp_path)

        assert os.environ["BOARDSYNC_TEST_ALPHA"] == "one"
        assert os.environ["BOARDSYNC_TEST_BETA"] == "local"
        assert loaded["BOARDSYNC_TEST_BETA"] == tmp_path / ".env.local"

    def test_user_file_is_lowest(self, tmp_path) -> None:
        """The project .env overrides the user .env."""
        user_env = get_user_config_path().parent / ".env"
        user_env.parent.mkdir(parents=True, exist_ok=True)
        user_env.write_text("BOARDSYNC_TEST_ALPHA=user\nBOARDSYNC_TEST_BETA=user\n")
        (tmp_path / ".env").write_text("BOARDSYNC_TEST_ALPHA=project\n")

        load_layered_env(tmp_path)

        assert os.environ["BOARDSYNC_TEST_ALPHA"] == "project"
        assert os.environ["BOARDSYNC_TEST_BETA"] == "user"

    def test_process_environment_wins(self, tmp_path, monkeypatch) -> None:
        """Variables already set in the process are never overwritten."""
        monkeypatch.setenv("BOARDSYNC_TEST_ALPHA", "from-os")
        (tmp_path / ".env").write_text("BOARDSYNC_TEST_ALPHA=from-file\n")

        loaded = load_layered_env(tmp_path)

        assert os.environ["BOARDSYNC_TEST_ALPHA"] == "from-os"
        assert "BOARDSYNC_TEST_ALPHA" not in loaded

    def test_no_files(self, tmp_path) -> None:
        """Nothing to load is not an error."""
        assert load_layered_env(tmp_path) == {}
