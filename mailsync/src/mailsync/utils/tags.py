"""Default mailbox-name normaliser used to derive synchronisation labels.

What:
  Turn a raw remote mailbox name into a lower-case, dash-separated tag, or
  ``None`` when nothing usable remains.

Why:
  Providers accept any ``normalize`` callable; deployments that do not supply
  their own still need a deterministic policy so labels are stable across
  runs.

Interfaces:
  :func:`clean_tag`, :data:`MAX_TAG_LENGTH`.
"""
from __future__ import annotations

import re
from typing import Optional

from .text import to_text

MAX_TAG_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w.\-]", re.UNICODE)
_DASHES = re.compile(r"-{2,}")


def clean_tag(raw: object) -> Optional[str]:
    """Normalise ``raw`` into a tag, returning ``None`` if it is empty.

    Whitespace runs become a single ``-``. Word characters, ``.`` and ``-``
    survive; everything else (hierarchy delimiters such as ``/``, brackets)
    is dropped.
    """

    if raw is None:
        return None
    text = _WHITESPACE.sub("-", to_text(raw).strip().lower())
    text = _DISALLOWED.sub("", text)
    text = _DASHES.sub("-", text).strip("-")
    text = text[:MAX_TAG_LENGTH].rstrip("-")
    return text or None
