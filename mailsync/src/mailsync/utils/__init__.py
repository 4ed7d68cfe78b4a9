"""Expose the public utility surface for MailSync.

What:
  Re-export the logging facade, the default tag normaliser and the text decoder so callers can
  ``from mailsync.utils import get_logger`` without knowing module filenames.

Interfaces:
  ``get_logger``, ``JsonLogger``, ``clean_tag``, ``to_text``.
"""

from .logging import JsonLogger, get_logger
from .tags import clean_tag
from .text import to_text

__all__ = [
    "JsonLogger",
    "get_logger",
    "clean_tag",
    "to_text",
]
