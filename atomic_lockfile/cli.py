"""Command-line interface for atomic-lockfile."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

import click

from atomic_lockfile._logging import setup_logging
from atomic_lockfile.config import (
    LockingParameters,
    RetryStrategy,
    default_locking_parameters,
    load_config,
)
from atomic_lockfile.exceptions import (
    CaughtIOException,
    ConfigError,
    UnableToAcquireLockFile,
)

# sysexits.h
EX_CANTCREAT = 73
EX_IOERR = 74
# Shell conventions for commands that cannot be run.
EX_NOEXEC = 126
EX_NOTFOUND = 127


@click.group()
@click.version_option(package_name="atomic-lockfile")
def cli() -> None:
    """Run commands under an exclusive lock file."""


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("-c", "--config", "config_path", type=click.Path(exists=True), default=None,
              help="Path to config YAML file.")
@click.option("-r", "--retries", default=None, type=int,
              help="Retries after the first attempt (-1 = forever, 0 = none).")
@click.option("-s", "--sleep", "sleep_sec", default=None, type=click.FloatRange(min=0),
              help="Seconds to wait between attempts.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v INFO, -vv DEBUG).")
@click.option("-q", "--quiet", count=True, help="Only report errors, not contention warnings.")
@click.argument("lock_path", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def run(
    config_path: str | None,
    retries: int | None,
    sleep_sec: float | None,
    verbose: int,
    quiet: int,
    lock_path: Path,
    command: tuple[str, ...],
) -> None:
    """Hold LOCK_PATH while running COMMAND."""
    setup_logging(verbose - quiet)
    params = _load(config_path, retries, sleep_sec)

    from atomic_lockfile.services.lock import FileLock

    try:
        with FileLock(lock_path, params):
            returncode = subprocess.run(list(command)).returncode
    except UnableToAcquireLockFile as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(EX_CANTCREAT)
    except CaughtIOException as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(EX_IOERR)
    except FileNotFoundError as exc:
        click.echo(f"Command not found: {exc.filename}", err=True)
        raise SystemExit(EX_NOTFOUND)
    except OSError as exc:
        click.echo(f"Cannot execute {command[0]}: {exc.strerror}", err=True)
        raise SystemExit(EX_NOEXEC)
    raise SystemExit(returncode)


@cli.command()
@click.option("-c", "--config", "config_path", type=click.Path(exists=True), default=None,
              help="Path to config YAML file.")
@click.option("--validate", is_flag=True, help="Validate only, do not print.")
def config(config_path: str | None, validate: bool) -> None:
    """Show or validate the resolved locking parameters."""
    params = _load(config_path)
    if validate:
        click.echo("Configuration is valid.")
    else:
        click.echo(params.model_dump_json(indent=2))


def _load(
    config_path: str | None,
    retries: Optional[int] = None,
    sleep_sec: Optional[float] = None,
) -> LockingParameters:
    """Resolve parameters: options override the config file, which overrides defaults."""
    try:
        params = load_config(config_path) if config_path else default_locking_parameters()
        overrides = {}
        if retries is not None:
            overrides["retry_strategy"] = RetryStrategy.parse(retries)
        if sleep_sec is not None:
            overrides["sleep_between_retries"] = round(sleep_sec * 1_000_000)
        if overrides:
            params = LockingParameters.model_validate(
                {**params.model_dump(), **overrides}
            )
    except (ConfigError, ValueError, OverflowError) as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        raise SystemExit(1)
    return params
