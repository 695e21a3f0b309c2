"""sqsdo CLI - Main entry point.

Usage: sqsdo [options] -- <command> [args...]
"""

import asyncio
import importlib
import sys
from types import ModuleType
from typing import Optional

import typer
from pydantic import ValidationError

from sqsdo import __version__
from sqsdo.config import Settings, check_configuration
from sqsdo.constants import ExitCode
from sqsdo.exceptions import ConfigurationError, ConsumerError, QueueServiceError
from sqsdo.worker.main import run_async

app = typer.Typer(
    help="Run a command for every message on an SQS queue.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": ["-h", "--help"],
    },
)
def consume(
    ctx: typer.Context,
    queue: Optional[str] = typer.Option(None, "--queue", "-q", help="The queue URL to listen to"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region of the queue"),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", min=1, help="Maximum handlers running at once"
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-n", min=1, max=10, help="Messages requested per poll"
    ),
    wait_time: Optional[int] = typer.Option(
        None, "--wait-time", "-w", min=0, max=20, help="Long-poll wait in seconds"
    ),
    visibility_timeout: Optional[int] = typer.Option(
        None, "--visibility-timeout", "-t", min=0, help="Visibility timeout override in seconds"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit"
    ),
) -> None:
    """Listen on a queue and run COMMAND once per message."""
    command = list(ctx.args)
    overrides = {
        "queue_url": queue,
        "region": region,
        "concurrency": concurrency,
        "batch_size": batch_size,
        "wait_time_seconds": wait_time,
        "visibility_timeout": visibility_timeout,
        "verbose": verbose or None,
    }

    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(ExitCode.FLAG_PARSE_ERROR)

    try:
        check_configuration(settings, command)
    except ConfigurationError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(ExitCode.ERROR)

    if settings.verbose:
        typer.echo(f"Listening for messages on {settings.queue_url}", err=True)

    try:
        asyncio.run(run_async(settings, command))
    except QueueServiceError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(ExitCode.QUEUE_SERVICE_ERROR)
    except ConsumerError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(ExitCode.ERROR)

    raise typer.Exit(ExitCode.OK)


def click_exceptions(command: typer.core.TyperCommand) -> ModuleType:
    """
    Return the exceptions module of the click the command is built on.

    Recent typer releases ship their own copy of click, so the usage errors
    a command raises are not always ``click.UsageError``.
    """
    for cls in type(command).__mro__:
        if cls.__name__ == "Command" and cls.__module__.endswith(".core"):
            package = cls.__module__.rsplit(".", 1)[0]
            return importlib.import_module(f"{package}.exceptions")
    raise TypeError(f"{type(command).__name__} is not a click command")


def main(argv: list[str] | None = None) -> int:
    """
    Run the CLI and return the process exit code.

    Args:
        argv: Arguments without the program name. Defaults to ``sys.argv[1:]``.
    """
    command = typer.main.get_command(app)
    errors = click_exceptions(command)
    try:
        result = command.main(args=argv, prog_name="sqsdo", standalone_mode=False)
    except errors.UsageError as e:
        e.show()
        return ExitCode.FLAG_PARSE_ERROR
    except errors.ClickException as e:
        e.show()
        return ExitCode.ERROR
    except errors.Abort:
        return ExitCode.ERROR
    return int(result or ExitCode.OK)


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
