"""Command line launcher for duochat."""

import click
import dotenv
import logging
import sys
import trio

from typing import Optional

from duochat import logger

from .logger import log
from .model.config import PORT_MAX, PORT_MIN, validate_name
from .version import __version__


@click.group()
@click.option(
    "-c",
    "--config",
    type=click.Path(resolve_path=True),
    help="Name of the configuration file to load; defaults to "
    "duochat.cfg in the current directory",
)
@click.option(
    "-d", "--debug/--no-debug", default=False, help="Show debug log messages"
)
@click.option(
    "-q", "--quiet/--no-quiet", default=False, help="Show error log messages only"
)
@click.option(
    "-v",
    "--verbose/--no-verbose",
    default=False,
    help="Show informational log messages as well",
)
@click.option(
    "--log-style",
    type=click.Choice(["fancy", "plain"]),
    default="fancy",
    help="Specify the style of the logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def start(
    ctx: click.Context,
    config: Optional[str],
    debug: bool = False,
    quiet: bool = False,
    verbose: bool = False,
    log_style: str = "fancy",
):
    """Two-party text chat over TCP."""
    # Log records would interleave with the chat, so only warnings and errors
    # are shown by default
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger.install(level=level, style=log_style)

    # Load environment variables from .env
    dotenv.load_dotenv(verbose=debug)

    ctx.obj = {"config": config}


@start.command()
@click.option("-n", "--name", help="Name to announce to the clients")
@click.option(
    "--host", help="Address to listen on; defaults to all interfaces", default=None
)
@click.option(
    "-p",
    "--port",
    type=click.IntRange(PORT_MIN, PORT_MAX),
    default=None,
    help="Port to listen on",
)
@click.pass_context
def server(
    ctx: click.Context,
    name: Optional[str],
    host: Optional[str],
    port: Optional[int],
):
    """Wait for clients and chat with them, one at a time."""
    # Note the lazy import; this is to ensure that the logging is set up by the
    # time we start configuring the app.
    from duochat.app import ServerApp

    _run_app(ctx, ServerApp(), name=name, host=host, port=port)


@start.command()
@click.option("-n", "--name", help="Name to announce to the server")
@click.option("--host", help="Address of the server", default=None)
@click.option(
    "-p",
    "--port",
    type=click.IntRange(PORT_MIN, PORT_MAX),
    default=None,
    help="Port of the server",
)
@click.option(
    "-t",
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Number of seconds to wait for the server to accept the connection",
)
@click.pass_context
def client(
    ctx: click.Context,
    name: Optional[str],
    host: Optional[str],
    port: Optional[int],
    timeout: Optional[float],
):
    """Connect to a server and chat with it."""
    from duochat.app import ClientApp

    overrides = {"CONNECT_TIMEOUT": timeout} if timeout is not None else None
    _run_app(ctx, ClientApp(), name=name, host=host, port=port, overrides=overrides)


def _run_app(ctx: click.Context, app, *, name, host, port, overrides=None) -> None:
    """Configures the given app from the configuration files and the command
    line, runs it and exits with its exit code.
    """
    retval = app.prepare(ctx.obj["config"])
    if retval is not None:
        ctx.exit(retval)

    if overrides:
        app.config.update(overrides)

    if name is None and app.default_name is None:
        name = click.prompt("Your name", value_proc=_convert_name)

    try:
        app.configure(name=name, host=host, port=port)
    except (TypeError, ValueError) as ex:
        raise click.UsageError(str(ex), ctx=ctx) from ex

    log.info(f"Starting duochat {__version__} in {app.role} mode")

    try:
        retval = trio.run(app.run)
    except BaseException as ex:
        if not _is_keyboard_interrupt(ex):
            raise
        click.echo("\nInterrupted.")
        retval = 0

    log.info("Shutdown finished")
    ctx.exit(retval)


def _convert_name(value: str) -> str:
    try:
        return validate_name(value)
    except ValueError as ex:
        raise click.BadParameter(str(ex)) from ex


def _is_keyboard_interrupt(ex: BaseException) -> bool:
    """Returns whether the given exception is a KeyboardInterrupt or an
    exception group consisting of KeyboardInterrupts only.
    """
    if isinstance(ex, KeyboardInterrupt):
        return True
    if isinstance(ex, BaseExceptionGroup):
        return all(_is_keyboard_interrupt(inner) for inner in ex.exceptions)
    return False


if __name__ == "__main__":
    sys.exit(start(prog_name="duochat"))
