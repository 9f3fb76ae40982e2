"""Config commands -- view and modify global configuration.

Provides the ``discli config`` sub-command group for reading and updating
the user's global configuration file (:class:`~discli.models.GlobalConfig`).
Settings are persisted in the discli config directory and control defaults
such as request timeouts, bulk-refresh parallelism, and the autofill values
used for project/region/zone placeholders.
"""

from __future__ import annotations

import typer

from discli.exit_codes import EXIT_INVALID_USAGE
from discli.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)

_AUTOFILL_PREFIX = "autofill."


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        discli config show
        discli config show --json
    """
    from discli.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g. 'autofill.project' or 'request.timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    ``autofill.<name>`` accepts any placeholder name (``project``,
    ``region``, ``zone``, or a literal parameter such as ``clustersId``).
    Other keys must already exist; the value is coerced to the existing
    field's type and the result is validated before saving.

    Example::

        discli config set autofill.project my-project
        discli config set request.timeout 60
        discli config set cache.refresh_workers 16
    """
    from discli.config import load_global_config, save_global_config
    from discli.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    if key.startswith(_AUTOFILL_PREFIX) and len(key) > len(_AUTOFILL_PREFIX):
        data["autofill"][key[len(_AUTOFILL_PREFIX):]] = value
        coerced: object = value
    else:
        keys = key.split(".")
        target = data
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                error(f"Invalid config key: {key}")
                raise typer.Exit(code=EXIT_INVALID_USAGE)
            target = target[k]

        final_key = keys[-1]
        if final_key not in target or isinstance(target[final_key], (dict, list)):
            error(f"Unknown config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)

        current = target[final_key]
        try:
            if isinstance(current, bool):
                coerced = value.lower() in ("true", "1", "yes")
            elif isinstance(current, int):
                coerced = int(value)
            elif isinstance(current, float):
                coerced = float(value)
            else:
                coerced = value
        except ValueError:
            error(f"Expected {type(current).__name__} for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
        target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(help="Autofill key to remove, e.g. 'autofill.zone'."),
) -> None:
    """Remove an autofill value.

    Example::

        discli config unset autofill.zone
    """
    from discli.config import load_global_config, save_global_config

    if not key.startswith(_AUTOFILL_PREFIX):
        error(f"Only autofill.* keys can be unset, got: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    config = load_global_config()
    name = key[len(_AUTOFILL_PREFIX):]
    if config.autofill.pop(name, None) is None:
        info(f"{key} was not set")
        return
    save_global_config(config)
    success(f"Unset {key}")
