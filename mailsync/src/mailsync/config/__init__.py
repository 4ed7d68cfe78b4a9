"""MailSync configuration package.

What:
  Provide a single import surface for configuration loading and the Pydantic
  schema classes used by the IMAP layer and the CLI.

Interfaces:
  - get_runtime_config / load_runtime_config / reset_runtime_config /
    peek_runtime_config: Resolve ``config.yaml`` and expose a cached model.
  - ConfigLoadError / RuntimeConfigError: Loader failures.
  - RuntimeConfig / ImapSettings / SyncSettings / ValidationError: Schema.
"""

from .loader import (
    ConfigLoadError,
    RuntimeConfigError,
    get_runtime_config,
    load_runtime_config,
    peek_runtime_config,
    reset_runtime_config,
)
from .schema import ImapSettings, RuntimeConfig, SyncSettings, ValidationError

__all__ = [
    "ConfigLoadError",
    "RuntimeConfigError",
    "get_runtime_config",
    "load_runtime_config",
    "peek_runtime_config",
    "reset_runtime_config",
    "ImapSettings",
    "RuntimeConfig",
    "SyncSettings",
    "ValidationError",
]
