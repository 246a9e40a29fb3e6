"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for hookchain:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.hookchain/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- A single :class:`~hookchain.models.GlobalConfig`
  JSON file storing request defaults, output format, and plugin lists.
* **Project config** -- An optional ``./hookchain.json`` holding any subset
  of the global config sections.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

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

from hookchain.exceptions import ConfigError
from hookchain.models import GlobalConfig

_APP_NAME = "hookchain"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "hookchain.json"

ENV_BASE_URL = "HOOKCHAIN_BASE_URL"
ENV_TIMEOUT = "HOOKCHAIN_TIMEOUT"
ENV_MAX_RETRIES = "HOOKCHAIN_MAX_RETRIES"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/hookchain/`` (default ``~/.config/hookchain/``).
    On macOS/Windows: ``~/.hookchain/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
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


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~hookchain.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./hookchain.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _env_number(name: str, cast: type) -> Any:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from exc


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    cli_retries: Optional[int] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``, ``cli_retries``)
        2. Environment variables (``HOOKCHAIN_BASE_URL``,
           ``HOOKCHAIN_TIMEOUT``, ``HOOKCHAIN_MAX_RETRIES``)
        3. Project config (``./hookchain.json``)
        4. User config (``~/.config/hookchain/config.json``)
        5. Defaults
    """
    # 5 + 4.
    global_cfg = load_global_config()
    data = global_cfg.model_dump()

    # 3.
    project = load_project_config()
    if project:
        for section, values in project.items():
            if isinstance(values, dict) and isinstance(data.get(section), dict):
                data[section].update(values)
            else:
                data[section] = values

    request = data["request"]

    # 2.
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        request["base_url"] = env_base_url
    env_timeout = _env_number(ENV_TIMEOUT, float)
    if env_timeout is not None:
        request["timeout"] = env_timeout
    env_retries = _env_number(ENV_MAX_RETRIES, int)
    if env_retries is not None:
        request["max_retries"] = env_retries

    # 1.
    if cli_base_url is not None:
        request["base_url"] = cli_base_url
    if cli_timeout is not None:
        request["timeout"] = cli_timeout
    if cli_retries is not None:
        request["max_retries"] = cli_retries

    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
