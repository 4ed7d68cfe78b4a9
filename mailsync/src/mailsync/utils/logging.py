"""MailSync logging helpers with JSON line emission and credential redaction.

What:
  Offer a small facade over Python streams so every MailSync component emits
  JSON log lines with the same fields, while credentials and message content
  never reach the log.

Why:
  Sync runs are usually unattended; a structured layout keeps grepping and
  ingestion trivial. IMAP sessions handle passwords, so redaction has to be the
  default rather than something each call site remembers.

How:
  :class:`JsonLogger` accepts a target stream and a component label. ``extra``
  dictionaries are scrubbed by a recursive redaction helper before being
  serialised with ``json.dump``.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Every payload carries ``ts``, ``lvl``, ``msg`` and ``component``.
  - Values under sensitive keys are replaced with ``[redacted]`` at any depth.
  - Streams are flushed after every line.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"password", "credentials", "subject", "body"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON entries that include a timestamp, severity, the
      component tag, and optional supplemental fields.

    How:
      Stores the destination stream and component label, then exposes
      :meth:`log` plus one helper per severity. Extras pass through
      :meth:`_redact` before serialisation; values that ``json`` cannot encode
      (bytes, tuples of bytes) are rendered with ``str``.
    """

    stream: Any = field(default_factory=lambda: sys.stdout)
    component: str = "mailsync"

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        Args:
          level: Human-readable severity (e.g., ``"info"`` or ``"error"``).
          message: Core log message.
          extra: Optional context dictionary that will be redacted recursively.
        """

        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a condition the session recovered from (e.g. a failed logout)."""

        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive values masked.

        Walks the dictionary, replacing values under :data:`SENSITIVE_KEYS`
        with the sentinel and recursing into nested dictionaries so the
        structure survives for downstream parsing.
        """

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


def get_logger(component: str, stream: Any = None) -> JsonLogger:
    """Construct a :class:`JsonLogger` for the requested component.

    Args:
      component: Logical subsystem name to include in log payloads.
      stream: Optional destination; defaults to ``stdout``.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    if stream is None:
        return JsonLogger(component=component)
    return JsonLogger(stream=stream, component=component)
