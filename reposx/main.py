"""
reposx command line entrypoint.

Usage:
    reposx update              Update package list
    reposx install <package>   Install package
    reposx paths               Get package paths for shells
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import NoReturn

import click

from reposx import __version__
from reposx.core.config import ReposxConfig, get_config
from reposx.core.logging_config import LOG_LEVEL_ENV_VAR, setup_logging
from reposx.domain.errors import ReposxError
from reposx.services.downloader import Downloader
from reposx.services.index_fetcher import IndexFetcher
from reposx.services.installer import Installer
from reposx.storage.local_store import LocalStore

STEP_MARKER = "[...]"
ERROR_MARKER = "[ ! ]"


class ReposxGroup(click.Group):
    """
    click group that exits with status 1 on every failure, usage errors
    included (click itself uses 2 for those).
    """

    def main(self, *args, **kwargs):
        kwargs["standalone_mode"] = False
        try:
            rv = super().main(*args, **kwargs)
        except click.ClickException as e:
            e.show()
            sys.exit(1)
        except click.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(1)
        sys.exit(rv if isinstance(rv, int) else 0)


def _step(message: str) -> None:
    click.echo(f"{STEP_MARKER} {message}")


def _fail(ctx: click.Context, context: str, error: Exception) -> NoReturn:
    click.echo(f"{ERROR_MARKER} {context}: {error}", err=True)
    ctx.exit(1)


def _config(ctx: click.Context) -> ReposxConfig:
    return ctx.obj["config"]


def _downloader(ctx: click.Context) -> Downloader:
    return Downloader(
        timeout=_config(ctx).timeout_seconds,
        transport=ctx.obj.get("transport"),
    )


@click.group(cls=ReposxGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="reposx")
@click.option("--verbose", "-v", is_flag=True, help="Log each step to stderr.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """reposx - fetch and install prebuilt packages into ~/.local/reposx."""
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING")
    setup_logging(level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)

    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config()
        except ValueError as e:
            _fail(ctx, "Invalid configuration", e)


@cli.command()
@click.pass_context
def update(ctx: click.Context) -> None:
    """Update package list."""
    fetcher = IndexFetcher(_config(ctx), downloader=_downloader(ctx))
    _step(f"downloading {_config(ctx).index_url}")
    try:
        asyncio.run(fetcher.load_index(force=True))
    except ReposxError as e:
        _fail(ctx, "Error updating package list", e)
    _step("Package list updated successfully")


@cli.command()
@click.argument("package")
@click.pass_context
def install(ctx: click.Context, package: str) -> None:
    """Install package."""
    config = _config(ctx)
    store = LocalStore(config)
    downloader = _downloader(ctx)

    fetcher = IndexFetcher(config, store=store, downloader=downloader)
    try:
        index = asyncio.run(fetcher.load_index(force=False))
    except ReposxError as e:
        _fail(ctx, "Error reading package list", e)

    installer = Installer(config, store=store, downloader=downloader, progress=_step)
    try:
        asyncio.run(installer.install(package, index))
    except ReposxError as e:
        _fail(ctx, f"Error installing package {package}", e)
    _step(f"Package {package} installed successfully")


@cli.command()
@click.pass_context
def paths(ctx: click.Context) -> None:
    """Get package paths for shells."""
    try:
        joined = LocalStore(_config(ctx)).package_paths()
    except ReposxError as e:
        _fail(ctx, "Error getting package paths", e)
    click.echo(joined)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
