"""Command line entry point: ``drone-secrets-sync``.

Reads a JSON object of secrets from a file (or stdin) and synchronises it into
a Drone repository or organisation. Prints the JSON list of updated secret
names to stdout.

Exit codes: 0 on success, 1 when a store call fails, 2 on invalid input.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import orjson
import typer
from pydantic import ValidationError

from .client import Credential, DroneClient
from .conf import (
    ARGON2_ITERATIONS,
    ARGON2_LENGTH,
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
    STDIN_SOURCE,
)
from .config import (
    Configuration,
    OrganisationConfiguration,
    RepositoryConfiguration,
)
from .exceptions import ConfigurationError, SyncError, TransportError
from .reader import read_secrets
from .sync.manager import SecretManager
from .sync.models import DesiredSecret, HashConfig
from .version import __version__

logger = logging.getLogger("drone_secrets_sync.cli")

app = typer.Typer(
    help="Sync secrets into Drone CI repositories and organisations.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"drone-secrets-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    argon2_iterations: int = typer.Option(
        ARGON2_ITERATIONS, "--argon2-iterations", "-i",
        help="number of argon2 iterations to create corresponding hash secret name",
    ),
    argon2_length: int = typer.Option(
        ARGON2_LENGTH, "--argon2-length", "-l",
        help="length of argon2 hash used in corresponding hash secret name",
    ),
    argon2_memory: int = typer.Option(
        ARGON2_MEMORY_COST, "--argon2-memory", "-m",
        help="memory (KiB) for argon2 to use when creating corresponding hash secret name",
    ),
    argon2_parallelism: int = typer.Option(
        ARGON2_PARALLELISM, "--argon2-parallelism", "-p",
        help="parallelism used when creating argon2 hash",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="report the secrets that need updating without changing them",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="enable verbose logging",
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True,
        help="show the version and exit",
    ),
) -> None:
    ctx.obj = {
        "log_level": logging.DEBUG if verbose else logging.WARNING,
        "dry_run": dry_run,
        "hash_config": {
            "iterations": argon2_iterations,
            "output_length": argon2_length,
            "memory_cost": argon2_memory,
            "parallelism": argon2_parallelism,
        },
    }


async def sync(
    configuration: Configuration,
    secrets: list[DesiredSecret],
    credential: Credential,
) -> list[str]:
    """Synchronise ``secrets`` into the store described by ``configuration``."""
    async with DroneClient(credential) as client:
        manager = SecretManager(configuration.create_store(client))
        return await manager.sync_secrets(secrets, dry_run=configuration.dry_run)


def configure_logging(level: int) -> None:
    """Send package log records to stderr at ``level``."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("drone_secrets_sync").setLevel(level)


def _fail(message: str, code: int) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=code)


def _run(ctx: typer.Context, secrets_file: str, **target) -> None:
    options = ctx.obj
    try:
        configuration = Configuration(
            secrets_file=secrets_file,
            log_level=options["log_level"],
            dry_run=options["dry_run"],
            hash_config=HashConfig(**options["hash_config"]),
            **target,
        )
    except ValidationError as err:
        raise _fail(str(err), 2) from err
    configure_logging(configuration.log_level)

    try:
        secrets = read_secrets(configuration.secrets_file, configuration.hash_config)
        credential = Credential.from_env()
    except (ConfigurationError, ValidationError) as err:
        raise _fail(str(err), 2) from err

    try:
        updated = asyncio.run(sync(configuration, secrets, credential))
    except SyncError as err:
        typer.echo(orjson.dumps(err.updated).decode())
        raise _fail(str(err), 1) from err
    except TransportError as err:
        raise _fail(str(err), 1) from err
    typer.echo(orjson.dumps(updated).decode())


@app.command("repository")
def repository(
    ctx: typer.Context,
    repository: str = typer.Argument(
        ..., help="repository to sync secrets for, e.g. octocat/hello-world",
    ),
    secrets_file: str = typer.Argument(
        STDIN_SOURCE, help="location to read secrets from (default: - (stdin))",
    ),
) -> None:
    """Sync secrets for a repository."""
    try:
        target = RepositoryConfiguration(repository=repository)
    except ValidationError as err:
        raise _fail(str(err), 2) from err
    _run(ctx, secrets_file, repository=target)


@app.command("organisation")
def organisation(
    ctx: typer.Context,
    namespace: str = typer.Argument(
        ..., help="name of organisation to sync secrets for, e.g. octocat",
    ),
    secrets_file: str = typer.Argument(
        STDIN_SOURCE, help="location to read secrets from (default: - (stdin))",
    ),
) -> None:
    """Sync secrets for an organisation."""
    try:
        target = OrganisationConfiguration(namespace=namespace)
    except ValidationError as err:
        raise _fail(str(err), 2) from err
    _run(ctx, secrets_file, organisation=target)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
