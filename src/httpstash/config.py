"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for httpstash:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.httpstash/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Settings** -- a single :class:`~httpstash.models.Settings` JSON file.
  See :func:`load_settings` and :func:`save_settings`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, and the settings file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars or files.

All file writes, including cache payloads, go through :func:`atomic_write`
(temp file in the same directory, then rename) so a reader never sees a
partially written file.
"""

from __future__ import annotations

import contextlib
import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional, Union

from httpstash.exceptions import ConfigError
from httpstash.models import Settings

_APP_NAME = "httpstash"
_CONFIG_FILENAME = "config.json"
_ENV_BASE_URL = "HTTPSTASH_BASE_URL"
_ENV_CACHE_TTL = "HTTPSTASH_CACHE_TTL"


# --- Directories ---


def _is_xdg_platform() -> bool:
    """True on Linux and the BSDs, where XDG base directories apply."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: Path) -> Path:
    """Return ``$xdg_var/httpstash`` (or ``~/xdg_default/httpstash``) on XDG
    platforms, *fallback* elsewhere. The directory is created if missing."""
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json``.

    ``$XDG_CONFIG_HOME/httpstash`` (default ``~/.config/httpstash``) on
    Linux/BSD, ``~/.httpstash`` on macOS and Windows.
    """
    return _app_dir("XDG_CONFIG_HOME", ".config", Path.home() / f".{_APP_NAME}")


def get_cache_dir() -> Path:
    """Default root for cached payloads and the expiry store.

    ``$XDG_CACHE_HOME/httpstash`` (default ``~/.cache/httpstash``) on
    Linux/BSD, ``~/.httpstash/cache`` on macOS and Windows. Everything in
    it can be deleted at any time.
    """
    return _app_dir("XDG_CACHE_HOME", ".cache", Path.home() / f".{_APP_NAME}" / "cache")


# --- Atomic file writes ---


def atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Replace *path* with *data* so readers see the old or the new file, never half of one.

    *data* goes to a hidden temp file next to *path*, is fsynced, then
    renamed over *path* with ``os.replace``. Text is written as UTF-8. On
    failure the temp file is removed and the exception re-raised.
    """
    payload = data if isinstance(data, bytes) else data.encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp = tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    )
    try:
        with tmp:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise


# --- Settings ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from the config directory.

    Args:
        path: Explicit settings file; defaults to ``<config_dir>/config.json``.

    Returns:
        The deserialised :class:`~httpstash.models.Settings`, or defaults
        when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = path or _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Persist settings atomically."""
    data = settings.model_dump(mode="json")
    atomic_write(path or _settings_path(), json.dumps(data, indent=2) + "\n")


def resolve_settings(
    cli_base_url: Optional[str] = None,
    path: Optional[Path] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``)
        2. Environment variables (``HTTPSTASH_BASE_URL``, ``HTTPSTASH_CACHE_TTL``)
        3. Settings file
        4. Defaults

    Raises:
        ConfigError: If the settings file is invalid or an environment
            override cannot be parsed.
    """
    settings = load_settings(path)

    env_ttl = os.environ.get(_ENV_CACHE_TTL)
    if env_ttl:
        try:
            settings.cache.ttl_seconds = float(env_ttl)
        except ValueError as exc:
            raise ConfigError(f"{_ENV_CACHE_TTL} must be a number, got {env_ttl!r}") from exc

    env_base_url = os.environ.get(_ENV_BASE_URL)
    if cli_base_url is not None:
        settings.base_url = cli_base_url
    elif env_base_url:
        settings.base_url = env_base_url

    return settings


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

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
