"""
Module: mailsync.__init__

What:
  Package root for the MailSync IMAP flag synchronisation client, exposing
  the configuration, IMAP, and utility subpackages.

Interfaces:
  - config: Runtime configuration schema and loader.
  - imap: Session lifecycle, mailbox resolution, UID lookup, flag stores.
  - utils: Structured logging and the default tag normaliser.
"""

__all__ = [
    "config",
    "imap",
    "utils",
]

__version__ = "0.1.0"
