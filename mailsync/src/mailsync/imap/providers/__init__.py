"""Provider registry selecting the IMAP behaviour for an account.

What:
  Map provider names from ``config.yaml`` (``imap.provider``) to provider
  classes and build a ready-to-connect provider from the runtime
  configuration.

Why:
  Service-specific variants override tag/flag mapping and archiving. Picking
  the class from configuration at construction time keeps call sites free of
  type checks.

How:
  A module-level dictionary seeded with :class:`GenericProvider`. Variants
  call :func:`register_provider` when imported.

Interfaces:
  :func:`register_provider`, :func:`get_provider_class`, :func:`build_provider`.
"""
from __future__ import annotations

from typing import Dict, Optional, Type

from ...config.loader import get_runtime_config
from ...config.schema import RuntimeConfig
from ...utils.logging import JsonLogger
from ...utils.tags import clean_tag
from ..errors import UnknownProviderError
from ..session import ImapConfig
from .generic import AttributeBag, GenericProvider, Normalizer

_REGISTRY: Dict[str, Type[GenericProvider]] = {GenericProvider.name: GenericProvider}


def register_provider(name: str, cls: Type[GenericProvider]) -> None:
    """Register ``cls`` under ``name`` (case-insensitive), replacing any entry."""

    if not issubclass(cls, GenericProvider):
        raise TypeError(f"{cls!r} must subclass GenericProvider")
    _REGISTRY[name.lower()] = cls


def get_provider_class(name: str) -> Type[GenericProvider]:
    try:
        return _REGISTRY[name.lower()]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY))
        raise UnknownProviderError(f"Unknown IMAP provider {name!r} (known: {known})") from None


def build_provider(
    runtime: Optional[RuntimeConfig] = None,
    *,
    normalize: Normalizer = clean_tag,
    logger: Optional[JsonLogger] = None,
) -> GenericProvider:
    """Build the configured provider without connecting it.

    The write gate reads ``sync.enable_write`` from ``runtime`` each time a
    mailbox is opened for writing.
    """

    if runtime is None:
        runtime = get_runtime_config()
    cls = get_provider_class(runtime.imap.provider)
    sync = runtime.sync
    return cls(
        ImapConfig.from_settings(runtime.imap),
        normalize=normalize,
        write_enabled=lambda: sync.enable_write,
        logger=logger,
    )


__all__ = [
    "AttributeBag",
    "GenericProvider",
    "build_provider",
    "get_provider_class",
    "register_provider",
]
