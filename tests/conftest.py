import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from nanocache.core.cache_store import CacheStore
from nanocache.infrastructure.config import settings as settings_module
from nanocache.infrastructure.cli.display import ConsoleDisplay

START_TIME = 1_700_000_000.0

class FakeClock:
    """Manually advanced time source for expiry tests."""

    def __init__(self, start: float = START_TIME):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Directory for backing files; not created so first save must create it."""
    return tmp_path / "cache"

@pytest.fixture
def make_store(cache_dir: Path, clock: FakeClock):
    """Factory building stores over cache_dir that share the fake clock."""
    def _make(**kwargs) -> CacheStore:
        options = dict(name="test-cache", directory=cache_dir, clock=clock)
        options.update(kwargs)
        return CacheStore(**options)
    return _make

@pytest.fixture
def store(make_store) -> CacheStore:
    return make_store(ttl=60)

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily.

    Patches the ConsoleDisplay where main.py instantiates it.
    """
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('nanocache.main.ConsoleDisplay', return_value=mock)
    return mock

@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch, tmp_path: Path):
    """Keeps each test away from the user's config, .env files and NANOCACHE_* variables."""
    for env_key in list(os.environ):
        if env_key.startswith(settings_module.ENV_PREFIX):
            monkeypatch.delenv(env_key)
    monkeypatch.chdir(tmp_path)
    settings_module.reset_configuration()
    settings_module.clear_test_config()
    yield
    settings_module.reset_configuration()
    settings_module.clear_test_config()
