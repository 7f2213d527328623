"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from swp.config import (
    ConfigError,
    ConfigManager,
    SwpConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env={})


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".swp" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "swp configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, SwpConfig)
    assert config.large_files.size_threshold == "100MB"
    assert config.large_files.older_than_days is None


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save(
        {"large_files": {"size_threshold": "1GB", "max_workers": 2}, "logging": {"level": "INFO"}}
    )

    env = {
        "SWP__LARGE_FILES__SIZE_THRESHOLD": "500MB",
        "SWP__LARGE_FILES__OLDER_THAN_DAYS": "30",
        "UNRELATED": "ignored",
    }
    cli = {"large_files.size_threshold": "2GB"}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.large_files.max_workers == 2
    assert config.logging.level == "INFO"
    assert config.large_files.older_than_days == 30
    # CLI overrides take precedence over environment
    assert config.large_files.size_threshold == "2GB"


def test_numeric_size_threshold_means_bytes() -> None:
    config = resolve_with_precedence(
        defaults=SwpConfig(), env_overrides={"large_files": {"size_threshold": 2048}}
    )

    assert config.large_files.size_threshold == "2048"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_set_value_validates_before_saving(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    config = manager.set_value("large_files.include_git_tracked", True)
    assert config.large_files.include_git_tracked is True

    before = manager.read_text()
    with pytest.raises(ConfigError):
        manager.set_value("large_files.size_threshold", "lots")
    assert manager.read_text() == before


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(SwpConfig())

    assert flat["SWP__LARGE_FILES__SIZE_THRESHOLD"] == "100MB"
    assert flat["SWP__LARGE_FILES__OLDER_THAN_DAYS"] == "null"
    assert flat["SWP__LOGGING__LEVEL"] == "WARNING"


@pytest.mark.parametrize(
    "overrides",
    [
        {"large_files": {"size_threshold": "not-a-size"}},
        {"large_files": {"older_than_days": -1}},
        {"large_files": {"ignore": "("}},
        {"large_files": {"unknown_option": True}},
    ],
)
def test_resolve_with_precedence_invalid_value_raises(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=SwpConfig(), file_overrides=overrides)
