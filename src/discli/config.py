"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for discli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.discli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~discli.models.GlobalConfig`
  JSON file storing defaults (output format, cache and request settings,
  autofill values, extra catalog services).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars or files.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from discli.exceptions import ConfigError
from discli.models import GlobalConfig

_APP_NAME = "discli"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "discli.json"

# Environment variables that feed autofill, keyed by the short autofill name.
_AUTOFILL_ENV = {
    "project": "DISCLI_PROJECT",
    "region": "DISCLI_REGION",
    "zone": "DISCLI_ZONE",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/discli/`` (default ``~/.config/discli/``).
    On macOS/Windows: ``~/.discli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the discovery document cache. Everything under it can be deleted
    at any time; documents are re-fetched on next use.

    On Linux/BSD: ``$XDG_CACHE_HOME/discli/`` (default ``~/.cache/discli/``).
    On macOS/Windows: ``~/.discli/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/discli/`` (default ``~/.local/share/discli/``).
    On macOS/Windows: ``~/.discli/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~discli.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json", exclude_defaults=True)
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./discli.json``.

    A repository can pin its project/region there so that every ``exec`` run
    from inside it autofills the same placeholders::

        {"autofill": {"project": "my-dev-project", "region": "europe-west1"}}

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_format: Optional[str] = None,
    cli_autofill: Optional[dict[str, str]] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_format``, ``cli_autofill``)
        2. Environment variables (``DISCLI_PROJECT``, ``DISCLI_REGION``,
           ``DISCLI_ZONE``)
        3. Project config (``./discli.json``)
        4. User config (``~/.config/discli/config.json``)
        5. Defaults

    Only ``autofill`` and ``output.format`` are layered; every other setting
    comes from the user config.

    Returns:
        The effective :class:`~discli.models.GlobalConfig`.
    """
    global_cfg = load_global_config()
    autofill = dict(global_cfg.autofill)

    project = load_project_config()
    if project is not None:
        project_autofill = project.get("autofill") or {}
        if not isinstance(project_autofill, dict):
            raise ConfigError("Project config 'autofill' must be an object")
        autofill.update({str(k): str(v) for k, v in project_autofill.items()})

    for key, env_var in _AUTOFILL_ENV.items():
        value = os.environ.get(env_var)
        if value:
            autofill[key] = value

    if cli_autofill:
        autofill.update(cli_autofill)

    global_cfg.autofill = autofill
    if cli_format is not None:
        global_cfg.output.format = cli_format
    return global_cfg


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
