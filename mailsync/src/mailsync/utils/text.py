"""Decode protocol values that may arrive as ``bytes`` or ``str``."""
from __future__ import annotations


def to_text(value: object, encoding: str = "utf-8") -> str:
    """Return ``value`` as ``str``, decoding bytes with replacement."""

    if isinstance(value, bytes):
        return value.decode(encoding, errors="replace")
    return str(value)
