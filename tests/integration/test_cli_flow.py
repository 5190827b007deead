import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

# Import the app instance from main
from nanocache.main import app
from nanocache.infrastructure.cache.file_utils import cache_file_path

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# mock_console_display: MagicMock (patches ConsoleDisplay)

@pytest.fixture(autouse=True)
def quiet_logging(mocker):
    """Keeps setup_logging from replacing pytest's root handlers."""
    return mocker.patch('nanocache.main.setup_logging')

@pytest.fixture
def cli_args(tmp_path: Path):
    """Common options selecting a cache file inside tmp_path."""
    def _args(*command: str, name: str = "cli-cache"):
        return [
            "--config", str(tmp_path / "no-config.yaml"),
            "--dir", str(tmp_path / "cache"),
            "--name", name,
            *command,
        ]
    return _args

def _invoke(runner: CliRunner, args):
    return runner.invoke(app, args)

def test_put_then_get_flow(runner: CliRunner, cli_args, mock_console_display: MagicMock):
    result = _invoke(runner, cli_args("put", "user:1", '{"name": "Ada"}', "--ttl", "120"))
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"

    result = _invoke(runner, cli_args("get", "user:1"))
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    mock_console_display.display_output.assert_called_once_with({"name": "Ada"}, title="user:1")
    mock_console_display.display_error.assert_not_called()

def test_get_missing_key_exits_with_warning(runner: CliRunner, cli_args, mock_console_display: MagicMock):
    result = _invoke(runner, cli_args("get", "nope"))

    assert result.exit_code == 1
    mock_console_display.display_warning.assert_called_once_with("Key 'nope' is not cached.")

def test_path_prints_hashed_file(runner: CliRunner, cli_args, tmp_path: Path):
    result = _invoke(runner, cli_args("path", name="users"))

    assert result.exit_code == 0
    assert result.stdout.strip() == str(cache_file_path(tmp_path / "cache", "users"))

def test_format_option_changes_suffix(runner: CliRunner, cli_args):
    result = _invoke(runner, ["--format", "php", *cli_args("path")])

    assert result.exit_code == 0
    assert result.stdout.strip().endswith(".catch.php")

def test_invalid_format_is_reported(runner: CliRunner, cli_args, mock_console_display: MagicMock):
    result = _invoke(runner, ["--format", "xml", *cli_args("path")])

    assert result.exit_code == 1
    mock_console_display.display_error.assert_called_once()

def test_invalid_serializer_is_reported(runner: CliRunner, cli_args, mock_console_display: MagicMock, monkeypatch):
    monkeypatch.setenv("NANOCACHE_CACHE_SERIALIZER", "msgpack")

    result = _invoke(runner, cli_args("show"))

    assert result.exit_code == 1
    mock_console_display.display_error.assert_called_once()
    assert "msgpack" in mock_console_display.display_error.call_args.args[0]

def test_show_lists_records(runner: CliRunner, cli_args, mock_console_display: MagicMock):
    _invoke(runner, cli_args("put", "b", "2"))
    _invoke(runner, cli_args("put", "a", "1", "--lock"))

    result = _invoke(runner, cli_args("show"))

    assert result.exit_code == 0
    rows = mock_console_display.display_records.call_args.args[0]
    assert [key for key, _ in rows] == ["a", "b"]
    assert rows[0][1].locked is True

def test_show_empty_cache(runner: CliRunner, cli_args, mock_console_display: MagicMock):
    result = _invoke(runner, cli_args("show"))

    assert result.exit_code == 0
    mock_console_display.display_info.assert_called_once_with("Cache 'cli-cache' is empty.")

def test_remove_evict_and_clear(runner: CliRunner, cli_args, tmp_path: Path, mock_console_display: MagicMock):
    _invoke(runner, cli_args("put", "keep", "1", "--ttl", "600"))
    _invoke(runner, cli_args("put", "drop", "1", "--ttl", "600"))

    result = _invoke(runner, cli_args("remove", "drop", "never"))
    assert result.exit_code == 0
    mock_console_display.display_info.assert_any_call("Removed 'drop'.")
    mock_console_display.display_warning.assert_any_call("Key 'never' was not cached.")

    # Opening a store evicts too, so write the stale record last
    _invoke(runner, cli_args("put", "gone", "1", "--ttl", "0"))
    result = _invoke(runner, cli_args("evict"))
    assert result.exit_code == 0
    mock_console_display.display_info.assert_any_call("Evicted 1 expired record(s).")

    cache_file = cache_file_path(tmp_path / "cache", "cli-cache")
    envelope = json.loads(cache_file.read_text())
    assert set(envelope) == {"keep", "hash-sum"}

    result = _invoke(runner, cli_args("clear"))
    assert result.exit_code == 0
    assert set(json.loads(cache_file.read_text())) == {"hash-sum"}

def test_corrupt_file_is_reported_and_removed(runner: CliRunner, cli_args, tmp_path: Path, mock_console_display: MagicMock):
    _invoke(runner, cli_args("put", "k", "1"))
    cache_file = cache_file_path(tmp_path / "cache", "cli-cache")
    cache_file.write_text(cache_file.read_text().replace('"lock":false', '"lock":true'))

    result = _invoke(runner, cli_args("show"))

    assert result.exit_code == 1
    mock_console_display.display_error.assert_called_once()
    assert "miss-hashed" in mock_console_display.display_error.call_args.args[0]
    assert not cache_file.exists()

def test_delete_file_and_purge(runner: CliRunner, cli_args, tmp_path: Path, mock_console_display: MagicMock):
    for name in ("one", "two", "three"):
        _invoke(runner, cli_args("put", "k", "1", name=name))
    cache_dir = tmp_path / "cache"

    result = _invoke(runner, cli_args("delete-file", name="one"))
    assert result.exit_code == 0
    assert not cache_file_path(cache_dir, "one").exists()

    result = _invoke(runner, cli_args("purge", "two", "three", "missing"))
    assert result.exit_code == 0
    assert not cache_file_path(cache_dir, "two").exists()
    assert not cache_file_path(cache_dir, "three").exists()

    result = _invoke(runner, cli_args("delete-file", name="one"))
    assert result.exit_code == 0
    mock_console_display.display_warning.assert_called_once()
