"""Main entry point for the nanocache command line.

Sets up the Typer CLI application, builds the cache store from configuration
plus command-line overrides (Composition Root), and exposes maintenance
commands for one cache file.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from nanocache.core.cache_store import CacheStore

# --- Domain Layer ---
from nanocache.domain.exceptions import CacheError
from nanocache.domain.models.common import CacheFormat

# --- Infrastructure Layer ---
from nanocache.infrastructure.cache.file_utils import cache_file_path, remove_cache_files
from nanocache.infrastructure.cli.display import ConsoleDisplay
from nanocache.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE,
    CacheSettings,
    get_cache_settings,
    get_config,
    load_configuration,
)
from nanocache.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="nanocache",
    help="Inspect and maintain nanocache single-file cache stores.",
    add_completion=False,
)


@dataclass
class CliState:
    """Objects shared by every command of one invocation."""

    settings: CacheSettings
    ui: ConsoleDisplay

    def open_store(self, **overrides: Any) -> CacheStore:
        return CacheStore.from_settings(self.settings, **overrides)


def _fail(state: CliState, message: str, error: Exception) -> None:
    logger.error(f"{message}: {error}", exc_info=True)
    state.ui.display_error(f"{message}: {error}")
    raise typer.Exit(code=1)

def _parse_value(raw: str) -> Any:
    """Values given on the command line are JSON when they parse, plain strings otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw

# --- Shared options ---

DirOption = Annotated[
    Optional[Path],
    typer.Option("--dir", "-d", help="Cache directory. Uses configuration if not set.")
]
NameOption = Annotated[
    Optional[str],
    typer.Option("--name", "-n", help="Logical cache name (hashed into the file name).")
]
FormatOption = Annotated[
    Optional[str],
    typer.Option("--format", "-f", help="File flavor: 'json', 'php' or 'text'.")
]

@app.callback()
def main_callback(
    ctx: typer.Context,
    directory: DirOption = None,
    name: NameOption = None,
    file_format: FormatOption = None,
    config_file: Annotated[
        Path,
        typer.Option("--config", help="YAML configuration file.")
    ] = DEFAULT_CONFIG_FILE,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (debug, info, warning, error).")
    ] = None,
):
    """Select a cache file and run a maintenance command on it."""
    load_configuration(config_file=config_file)
    setup_logging(
        log_level=resolve_log_level(log_level or get_config('logging.level')),
        log_file=get_config('logging.file'),
    )
    ui = ConsoleDisplay()
    try:
        settings = get_cache_settings()
        if directory is not None:
            settings.directory = directory
        if name is not None:
            settings.name = name
        if file_format is not None:
            settings.extension = CacheFormat.from_value(file_format)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        ui.display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)
    logger.debug(f"Using cache settings: {settings}")
    ctx.obj = CliState(settings=settings, ui=ui)

# --- CLI Commands ---

@app.command()
def path(ctx: typer.Context):
    """Print the backing file path of the selected cache."""
    state: CliState = ctx.obj
    settings = state.settings
    typer.echo(str(cache_file_path(settings.directory, settings.name, settings.extension)))

@app.command()
def show(ctx: typer.Context):
    """List every record with its age, TTL and lock flag."""
    state: CliState = ctx.obj
    try:
        store = state.open_store(delete_expired=False)
    except CacheError as e:
        _fail(state, "Cannot open cache", e)
    rows = sorted(store.table.items())
    if not rows:
        state.ui.display_info(f"Cache '{store.name}' is empty.")
        return
    state.ui.display_records(rows, now=store.table.now(), title=f"{store.name} ({store.get_cache_file_path()})")

@app.command()
def get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key to read.")],
):
    """Print the value stored under KEY."""
    state: CliState = ctx.obj
    try:
        store = state.open_store()
        value = store.retrieve_data(key)
    except (CacheError, ValueError) as e:
        _fail(state, f"Cannot read '{key}'", e)
    if value is None and not store.has_cached(key):
        state.ui.display_warning(f"Key '{key}' is not cached.")
        raise typer.Exit(code=1)
    state.ui.display_output(value, title=key)

@app.command()
def put(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key to write.")],
    value: Annotated[str, typer.Argument(help="Value (JSON, or a plain string).")],
    ttl: Annotated[Optional[int], typer.Option("--ttl", help="Time-to-live in seconds.")] = None,
    lock: Annotated[bool, typer.Option("--lock", help="Exempt the record from eviction.")] = False,
):
    """Store VALUE under KEY."""
    state: CliState = ctx.obj
    try:
        store = state.open_store()
        store.put(key, _parse_value(value), ttl=ttl, locked=lock)
    except (CacheError, TypeError) as e:
        _fail(state, f"Cannot store '{key}'", e)
    state.ui.display_info(f"Stored '{key}' in {store.get_cache_file_path()}")

@app.command()
def remove(
    ctx: typer.Context,
    keys: Annotated[List[str], typer.Argument(help="Keys to delete (locks are ignored).")],
):
    """Delete one or more keys."""
    state: CliState = ctx.obj
    try:
        results = state.open_store().remove_list(keys)
    except CacheError as e:
        _fail(state, "Cannot remove keys", e)
    for key, removed in zip(keys, results):
        if removed:
            state.ui.display_info(f"Removed '{key}'.")
        else:
            state.ui.display_warning(f"Key '{key}' was not cached.")

@app.command()
def evict(ctx: typer.Context):
    """Remove expired records that are not locked."""
    state: CliState = ctx.obj
    try:
        # Construction would already evict; count the pass explicitly
        store = state.open_store(delete_expired=False)
        counter = store.remove_if_expired()
    except CacheError as e:
        _fail(state, "Cannot evict expired records", e)
    state.ui.display_info(f"Evicted {counter} expired record(s).")

@app.command()
def clear(ctx: typer.Context):
    """Empty the cache table (the file is kept)."""
    state: CliState = ctx.obj
    try:
        state.open_store().clear_cache()
    except CacheError as e:
        _fail(state, "Cannot clear cache", e)
    state.ui.display_info("Cache cleared.")

@app.command(name="delete-file")
def delete_file(ctx: typer.Context):
    """Delete the backing file of the selected cache."""
    state: CliState = ctx.obj
    settings = state.settings
    file_path = cache_file_path(settings.directory, settings.name, settings.extension)
    if not file_path.exists():
        state.ui.display_warning(f"No cache file at {file_path}.")
        return
    if not remove_cache_files(settings.directory, [settings.name], settings.extension):
        state.ui.display_error(f"Could not delete {file_path}.")
        raise typer.Exit(code=1)
    state.ui.display_info(f"Deleted {file_path}.")

@app.command()
def purge(
    ctx: typer.Context,
    names: Annotated[List[str], typer.Argument(help="Logical cache names whose files are deleted.")],
):
    """Delete the backing files of several caches in the selected directory."""
    state: CliState = ctx.obj
    settings = state.settings
    if remove_cache_files(settings.directory, names, settings.extension):
        state.ui.display_info(f"Purged {len(names)} cache name(s) from {settings.directory}.")
    else:
        state.ui.display_error("Some cache files could not be deleted; see the log for details.")
        raise typer.Exit(code=1)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
