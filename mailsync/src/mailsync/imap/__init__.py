"""Facade for the IMAP integration layer.

What:
  Surface the session, the generic provider with its registry, and the error
  types callers handle.

How:
  Re-exports only; the protocol handling lives in ``imap.session`` and
  ``imap.providers``, pure helpers in ``imap.search`` and ``imap.flags``.

Invariants & Safety:
  - All message operations run in UID mode.
  - Writes are only possible through a mailbox opened with ``write=True``.
"""

from .errors import (
    AuthenticationError,
    ImapConnectionError,
    MailSyncError,
    NoMailboxOpenError,
    UnknownProviderError,
    UnsupportedAttributeError,
    WriteDisabledError,
)
from .flags import FlagDelta, compute_delta
from .providers import (
    AttributeBag,
    GenericProvider,
    build_provider,
    get_provider_class,
    register_provider,
)
from .session import ImapConfig, ImapSession, OpenMailbox

__all__ = [
    "AttributeBag",
    "AuthenticationError",
    "FlagDelta",
    "GenericProvider",
    "ImapConfig",
    "ImapConnectionError",
    "ImapSession",
    "MailSyncError",
    "NoMailboxOpenError",
    "OpenMailbox",
    "UnknownProviderError",
    "UnsupportedAttributeError",
    "WriteDisabledError",
    "build_provider",
    "compute_delta",
    "get_provider_class",
    "register_provider",
]
