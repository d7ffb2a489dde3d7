"""
NonMessenger - Configuration tests.
"""

import os

import pytest

from nonmessenger.config import DEFAULT_CONFIG, Config
from nonmessenger.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove NONMESSENGER_* variables inherited from the environment."""
    for name in list(os.environ):
        if name.startswith("NONMESSENGER_"):
            monkeypatch.delenv(name)


def test_defaults_without_file(temp_dir):
    """Test that defaults apply when no file exists."""
    config = Config(temp_dir / "missing.toml")
    assert config.to_dict() == DEFAULT_CONFIG
    assert config.get("logging", "level") == "INFO"
    assert config.get("qr", "box_size") == 10


def test_file_overrides_defaults(temp_dir, sample_config_toml):
    """Test that file values merge over defaults."""
    path = temp_dir / "config.toml"
    path.write_text(sample_config_toml, encoding="utf-8")

    config = Config(path)
    assert config.get("logging", "level") == "DEBUG"
    assert config.get("logging", "file_logging") is True
    assert config.get("logging", "console_logging") is True
    assert config.get("qr", "error_correction") == "H"
    assert config.get("qr", "box_size") == 6
    assert config.get("qr", "border") == 4


def test_defaults_not_mutated(temp_dir, sample_config_toml):
    """Test that loading a file leaves the default table untouched."""
    path = temp_dir / "config.toml"
    path.write_text(sample_config_toml, encoding="utf-8")
    Config(path).set("logging", "level", "ERROR")
    assert DEFAULT_CONFIG["logging"]["level"] == "INFO"


def test_invalid_toml(temp_dir):
    """Test that a broken file raises a parse error."""
    path = temp_dir / "config.toml"
    path.write_text("[logging\nlevel = ", encoding="utf-8")
    with pytest.raises(ConfigError) as exc_info:
        Config(path)
    assert exc_info.value.code == ErrorCode.E704_CONFIG_PARSE_ERROR


def test_env_overrides(temp_dir, monkeypatch):
    """Test environment overrides with type conversion."""
    monkeypatch.setenv("NONMESSENGER_LOGGING_LEVEL", "WARNING")
    monkeypatch.setenv("NONMESSENGER_LOGGING_FILE_LOGGING", "yes")
    monkeypatch.setenv("NONMESSENGER_QR_BORDER", "2")

    config = Config(temp_dir / "missing.toml")
    assert config.get("logging", "level") == "WARNING"
    assert config.get("logging", "file_logging") is True
    assert config.get("qr", "border") == 2


def test_env_override_bad_int(temp_dir, monkeypatch):
    """Test that a non-numeric override for an integer setting is rejected."""
    monkeypatch.setenv("NONMESSENGER_QR_BOX_SIZE", "big")
    with pytest.raises(ConfigError) as exc_info:
        Config(temp_dir / "missing.toml")
    assert exc_info.value.code == ErrorCode.E703_INVALID_CONFIG


def test_get_default_for_unknown_key(temp_dir):
    """Test fallback values for unknown sections and keys."""
    config = Config(temp_dir / "missing.toml")
    assert config.get("nope", "nothing", "fallback") == "fallback"
    assert config.get("logging", "nothing") is None


def test_save_and_reload(temp_dir):
    """Test that saved settings load back."""
    path = temp_dir / "nested" / "config.toml"
    config = Config(path)
    config.set("logging", "level", "DEBUG")
    config.set("qr", "error_correction", 'Q"')
    config.save()

    reloaded = Config(path)
    assert reloaded.get("logging", "level") == "DEBUG"
    assert reloaded.get("qr", "error_correction") == 'Q"'
    assert reloaded.get("logging", "console_logging") is True


def test_create_example(temp_dir):
    """Test that the example file holds the defaults."""
    path = temp_dir / "example.toml"
    Config.create_example(path)
    assert path.read_text(encoding="utf-8").startswith("# NonMessenger Configuration File")
    assert Config(path).to_dict() == DEFAULT_CONFIG
