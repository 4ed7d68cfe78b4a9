"""Strict loader for the MailSync runtime configuration document.

What:
  Locate, parse, validate, and cache ``config.yaml``.

Why:
  Configuration lives outside the package and can be malformed. Centralising
  the parsing enforces consistent validation so the session and CLI can trust
  the resulting model.

How:
  Resolve candidate file locations based on an explicit parameter, the
  ``MAILSYNC_CONFIG_PATH`` environment variable, and defaults. Parse YAML with
  ``yaml.safe_load``, validate with the Pydantic models, and keep the first
  successful result in a module-level cache.

Interfaces:
  :func:`load_runtime_config`, :func:`get_runtime_config`,
  :func:`reset_runtime_config`, :func:`peek_runtime_config`.

Invariants:
  - External payloads pass strict Pydantic validation before being returned.
  - The cache respects explicit reload requests and the precedence order of
    candidate paths.
  - OS and parse errors are converted into :class:`RuntimeConfigError` with the
    offending path in the message.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from .schema import RuntimeConfig


class ConfigLoadError(Exception):
    """Base error for configuration parsing or validation failures."""


class RuntimeConfigError(ConfigLoadError):
    """Error raised when ``config.yaml`` cannot be located, read or validated.

    Subclasses :class:`ConfigLoadError` so handlers can catch the broad
    category or this variant.
    """


CONFIG_ENV = "MAILSYNC_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("config.yaml"),
    Path("/etc/mailsync/config.yaml"),
)
_RUNTIME_CACHE: Optional[Tuple[Path, RuntimeConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration file locations in priority order.

    An explicit argument is the only candidate when given. Otherwise
    ``MAILSYNC_CONFIG_PATH`` comes first, then the defaults. Paths are
    ``~``-expanded and deduplicated.
    """

    if path is not None:
        yield path.expanduser()
        return
    seen: set[Path] = set()
    candidates = []
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        candidates.append(Path(env_path))
    candidates.extend(_DEFAULT_LOCATIONS)
    for raw in candidates:
        candidate = raw.expanduser()
        # Deduplicate while preserving the precedence order.
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def _parse_config_payload(text: str, source: Path) -> dict[str, Any]:
    """Parse ``config.yaml`` text into a mapping.

    Raises:
      RuntimeConfigError: If the text is not valid YAML or is not a mapping.
    """

    try:
        payload = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise RuntimeConfigError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RuntimeConfigError(f"{source} must contain a mapping at the top-level")
    return payload


def _load_runtime_from_path(path: Path) -> RuntimeConfig:
    """Read and validate the configuration stored at ``path``."""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeConfigError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise RuntimeConfigError(f"Unable to read configuration file {path}: {exc}") from exc
    payload = _parse_config_payload(text, path)
    try:
        return RuntimeConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise RuntimeConfigError(f"Invalid configuration in {path}: {exc}") from exc


def load_runtime_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> RuntimeConfig:
    """Resolve, parse, and cache the runtime configuration.

    What:
      Locate ``config.yaml`` using the precedence chain, parse it, and return a
      validated :class:`RuntimeConfig`.

    How:
      Consult the cache unless ``reload`` is requested or a different explicit
      path is asked for, then try candidate paths until one exists.

    Args:
      path: Optional explicit location of ``config.yaml``.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Raises:
      RuntimeConfigError: If no configuration file can be located or validated.
    """

    global _RUNTIME_CACHE

    requested_path = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _RUNTIME_CACHE is not None:
        cached_path, cached_config = _RUNTIME_CACHE
        if requested_path is None or cached_path == requested_path:
            return cached_config

    searched: list[str] = []
    for candidate in _candidate_paths(requested_path):
        if not candidate.exists():
            searched.append(str(candidate))
            continue
        config = _load_runtime_from_path(candidate)
        _RUNTIME_CACHE = (candidate, config)
        return config

    listing = ", ".join(searched) if searched else "<none>"
    raise RuntimeConfigError(f"Unable to locate config.yaml (searched: {listing})")


def get_runtime_config() -> RuntimeConfig:
    """Return the cached runtime configuration, loading it on demand."""

    return load_runtime_config()


def peek_runtime_config() -> Optional[RuntimeConfig]:
    """Return the cached configuration without touching the filesystem."""

    if _RUNTIME_CACHE is None:
        return None
    return _RUNTIME_CACHE[1]


def reset_runtime_config() -> None:
    """Clear the runtime configuration cache so the next load rereads disk."""

    global _RUNTIME_CACHE
    _RUNTIME_CACHE = None
