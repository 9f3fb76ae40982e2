"""Typer application and CLI entry point for discli.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``list``, ``describe``, ``exec``, ``update``,
``config``) together with their short aliases.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~discli.exceptions.DiscliError` exits cleanly with the error's
``exit_code``; any other exception is written to a crash log under the
data directory.

See Also:
    :mod:`discli.config`: Configuration resolution.
    :mod:`discli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from discli import __version__
from discli.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="discli",
    help="Explore and call Google Cloud APIs from their discovery documents.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"discli {__version__}")
        raise typer.Exit()


def _configured_format() -> str:
    """Return ``output.format`` from the user config, or ``"auto"``.

    A broken config file is reported by the command that loads it; here it
    only means falling back to the automatic format.
    """
    from discli.config import load_global_config
    from discli.exceptions import ConfigError

    try:
        return load_global_config().output.format
    except ConfigError:
        return "auto"


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        envvar="DISCLI_API_KEY",
        help="API key for services whose discovery document requires one.",
    ),
    project: Optional[str] = typer.Option(
        None, "--project", help="Project used to autofill placeholders."
    ),
    region: Optional[str] = typer.Option(
        None, "--region", help="Region used to autofill placeholders."
    ),
    zone: Optional[str] = typer.Option(
        None, "--zone", help="Zone used to autofill placeholders."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~discli.output.OutputManager` from CLI
    flags and stores shared options in ``ctx.obj`` so that sub-commands can
    read them through :mod:`discli.commands.common`.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format. Without either flag the
            configured ``output.format`` applies.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        api_key: Key substituted into discovery URLs that need one.
        project: Autofill value for project placeholders.
        region: Autofill value for region/location placeholders.
        zone: Autofill value for zone placeholders.
    """
    from discli.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value
    fmt = OutputFormat(cli_format or _configured_format())

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(threadName)s %(name)s: %(message)s",
        )

    autofill = {
        key: value
        for key, value in (("project", project), ("region", region), ("zone", zone))
        if value
    }

    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["format"] = cli_format
    ctx.obj["autofill"] = autofill
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from discli.commands.config import config_app  # noqa: E402
from discli.commands.describe import describe_command  # noqa: E402
from discli.commands.exec import exec_command  # noqa: E402
from discli.commands.list import list_command  # noqa: E402
from discli.commands.update import update_command  # noqa: E402

app.command("list")(list_command)
app.command("ls", hidden=True)(list_command)
app.command("describe")(describe_command)
app.command("desc", hidden=True)(describe_command)
app.command("show", hidden=True)(describe_command)
app.command("exec")(exec_command)
app.command("ex", hidden=True)(exec_command)
app.command("execute", hidden=True)(exec_command)
app.command("update")(update_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from discli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``discli`` console script.

    Unhandled :class:`~discli.exceptions.DiscliError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from discli.exceptions import DiscliError
        from discli.output import error

        if isinstance(exc, DiscliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
