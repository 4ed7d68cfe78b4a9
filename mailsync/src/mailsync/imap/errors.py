"""Exception hierarchy raised by the MailSync IMAP layer.

What:
  Name every failure the session and provider surface to callers so the
  synchronisation layer above can tell transport trouble from rejected
  credentials, disabled writes, and caller mistakes.

How:
  A single :class:`MailSyncError` root with narrow subclasses. Where a builtin
  category already exists (``ConnectionError``, ``ValueError``, ``KeyError``)
  the subclass also derives from it so generic handlers keep working.

Invariants & Safety:
  - :class:`WriteDisabledError` and :class:`UnsupportedAttributeError` are
    raised before any protocol command is issued.
  - Errors raised by ``imapclient`` for other protocol failures are never
    wrapped; they propagate unchanged.
"""
from __future__ import annotations


class MailSyncError(Exception):
    """Base error for MailSync session and provider failures."""


class ImapConnectionError(MailSyncError, ConnectionError):
    """The transport could not be established within the connect timeout."""


class AuthenticationError(MailSyncError):
    """The server rejected the configured credentials."""


class WriteDisabledError(MailSyncError):
    """A read-write mailbox open was requested while writes are disabled."""


class NoMailboxOpenError(MailSyncError):
    """A mailbox-scoped operation ran before :meth:`open_mailbox`."""


class UnsupportedAttributeError(MailSyncError, ValueError):
    """``store`` was asked to update an attribute it has no command for."""


class UnknownProviderError(MailSyncError, KeyError):
    """No provider is registered under the requested name."""


__all__ = [
    "MailSyncError",
    "ImapConnectionError",
    "AuthenticationError",
    "WriteDisabledError",
    "NoMailboxOpenError",
    "UnsupportedAttributeError",
    "UnknownProviderError",
]
