import os
from pathlib import Path

import pytest

from nanocache.domain.models.common import CacheFormat
from nanocache.infrastructure.config.settings import (
    CacheSettings,
    get_cache_settings,
    get_config,
    load_configuration,
    set_config_for_testing,
)

@pytest.fixture
def yaml_config(tmp_path: Path) -> Path:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "cache:\n"
        "  name: from-yaml\n"
        "  ttl: 300\n"
        "  format: php\n"
        "  base64: false\n"
        "logging:\n"
        "  level: DEBUG\n"
    )
    return config_file

def test_defaults_without_any_source(tmp_path: Path):
    load_configuration(config_file=tmp_path / "missing.yaml")
    assert get_cache_settings() == CacheSettings()

def test_yaml_values_are_flattened(yaml_config: Path):
    load_configuration(config_file=yaml_config)

    assert get_config('logging.level') == 'DEBUG'
    settings = get_cache_settings()
    assert settings.name == "from-yaml"
    assert settings.ttl == 300
    assert settings.extension is CacheFormat.PHP
    assert settings.base64_encode is False

def test_environment_overrides_yaml(yaml_config: Path, monkeypatch):
    monkeypatch.setenv("NANOCACHE_CACHE_TTL", "5")
    monkeypatch.setenv("NANOCACHE_CACHE_DEBUG", "true")
    load_configuration(config_file=yaml_config)

    settings = get_cache_settings()
    assert settings.ttl == 5
    assert settings.debug is True
    assert settings.name == "from-yaml"

def test_text_options_keep_their_exact_spelling(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("NANOCACHE_CACHE_NAME", "007")
    monkeypatch.setenv("NANOCACHE_CACHE_DIRECTORY", "1_000")
    load_configuration(config_file=tmp_path / "missing.yaml")

    settings = get_cache_settings()
    assert settings.name == "007"
    assert settings.directory == Path("1_000")
    assert get_config("cache.name") == 7

def test_dotenv_file_is_loaded(tmp_path: Path):
    env_file = tmp_path / ".env"
    env_file.write_text("NANOCACHE_CACHE_NAME=from-dotenv\n")

    load_configuration(config_file=tmp_path / "missing.yaml", env_file=env_file)
    try:
        assert get_cache_settings().name == "from-dotenv"
    finally:
        # load_dotenv writes straight into os.environ
        os.environ.pop("NANOCACHE_CACHE_NAME", None)

def test_test_config_wins(yaml_config: Path, monkeypatch):
    monkeypatch.setenv("NANOCACHE_CACHE_NAME", "from-env")
    load_configuration(config_file=yaml_config)
    set_config_for_testing({'cache.name': 'from-test'})

    assert get_cache_settings().name == 'from-test'

def test_unexpected_boolean_falls_back_to_default(tmp_path: Path):
    load_configuration(config_file=tmp_path / "missing.yaml")
    set_config_for_testing({'cache.secure_access': 'maybe'})

    assert get_cache_settings().secure_access is True

def test_unknown_format_is_rejected(tmp_path: Path):
    load_configuration(config_file=tmp_path / "missing.yaml")
    set_config_for_testing({'cache.format': '.xml'})

    with pytest.raises(ValueError, match="Unknown cache format"):
        get_cache_settings()

@pytest.mark.parametrize("key, value, message", [
    ('cache.serializer', 'msgpack', "Unknown payload serializer"),
    ('cache.corrupt_policy', 'ignore', "Invalid corrupt policy"),
])
def test_invalid_store_options_are_rejected(tmp_path: Path, key, value, message):
    load_configuration(config_file=tmp_path / "missing.yaml")
    set_config_for_testing({key: value})

    with pytest.raises(ValueError, match=message):
        get_cache_settings()
