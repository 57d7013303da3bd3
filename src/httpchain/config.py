"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for httpchain:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.httpchain/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- A single :class:`~httpchain.models.GlobalConfig`
  JSON file storing defaults (default profile, output format).
* **Profiles** -- One file per client configuration, each deserialised into
  a :class:`~httpchain.models.ClientProfile`.  Profiles are written as JSON;
  hand-written YAML profiles (``.yaml``/``.yml``) are read as well.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the global config into the effective profile.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

import yaml

from httpchain.exceptions import ConfigError
from httpchain.models import ClientProfile, GlobalConfig

_APP_NAME = "httpchain"
_CONFIG_FILENAME = "config.json"
_PROFILE_SUFFIXES = (".json", ".yaml", ".yml")

ENV_PROFILE = "HTTPCHAIN_PROFILE"
ENV_BASE_URL = "HTTPCHAIN_BASE_URL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/httpchain/`` (default
    ``~/.config/httpchain/``).  On macOS/Windows: ``~/.httpchain/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/httpchain/`` (default
    ``~/.local/share/httpchain/``).  On macOS/Windows: ``~/.httpchain/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profiles directory (``<config_dir>/profiles/``), creating it if necessary."""
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up.
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
        fd = None  # prevent double-close below
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
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~httpchain.models.GlobalConfig`, or a
        default instance if the file does not exist.

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
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Optional[Path]:
    """Return the existing file of profile *name*, JSON first, or ``None``."""
    profiles_dir = get_profiles_dir()
    for suffix in _PROFILE_SUFFIXES:
        path = profiles_dir / f"{name}{suffix}"
        if path.is_file():
            return path
    return None


def list_profiles() -> list[str]:
    """Return all profile names in the profiles directory, sorted alphabetically."""
    profiles_dir = get_profiles_dir()
    return sorted({
        p.stem for p in profiles_dir.iterdir()
        if p.is_file() and p.suffix in _PROFILE_SUFFIXES
    })


def load_profile(name: str) -> ClientProfile:
    """Load and validate a profile from disk.

    Args:
        name: Profile name (``<name>.json``, ``<name>.yaml`` or
            ``<name>.yml`` in the profiles directory).

    Raises:
        ConfigError: If the profile does not exist, cannot be parsed, or
            fails Pydantic validation.
    """
    path = _profile_path(name)
    if path is None:
        raise ConfigError(f"Profile '{name}' not found in {get_profiles_dir()}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
        if isinstance(data, dict):
            data.setdefault("name", name)
        return ClientProfile.model_validate(data)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: ClientProfile) -> None:
    """Persist a profile atomically as ``<name>.json``."""
    data = profile.model_dump(mode="json", exclude_none=True)
    path = get_profiles_dir() / f"{profile.name}.json"
    _atomic_write(path, json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete every file of profile *name*.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if path is None:
        raise ConfigError(f"Profile '{name}' not found in {get_profiles_dir()}")
    while path is not None:
        path.unlink()
        path = _profile_path(name)


def profile_exists(name: str) -> bool:
    return _profile_path(name) is not None


# --- Precedence resolution ---


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[ClientProfile]]:
    """Resolve the global config and the active profile.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_base_url``)
        2. Environment variables (``HTTPCHAIN_PROFILE``, ``HTTPCHAIN_BASE_URL``)
        3. User config (``default_profile`` in ``config.json``)
        4. No profile

    The base URL override is applied to the active profile; without a
    profile it produces an ad-hoc one named ``"default"``.

    Returns:
        A tuple of ``(global_config, active_profile_or_None)``.
    """
    global_cfg = load_global_config()

    profile_name: Optional[str] = global_cfg.default_profile
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        profile_name = env_profile
    if cli_profile is not None:
        profile_name = cli_profile

    profile: Optional[ClientProfile] = None
    if profile_name is not None:
        profile = load_profile(profile_name)

    base_url = cli_base_url or os.environ.get(ENV_BASE_URL) or None
    if base_url is not None:
        if profile is None:
            profile = ClientProfile(name="default", base_url=base_url)
        else:
            profile = profile.model_copy(update={"base_url": base_url})

    return global_cfg, profile
