"""Translate UID range requests into IMAP search criteria.

What:
  Provide a deterministic mapping from optional lower/upper UID bounds to the
  criteria lists consumed by ``imapclient`` search operations.

Why:
  The precedence between the bound shapes matters: a request carrying both
  bounds must always produce the closed range, and only then are the
  open-ended forms considered. Keeping the translation pure makes that order
  easy to pin down in tests.

How:
  Check the bounds in priority order (both, lower only, upper only, neither)
  and emit ``["UID", "<from>:<to>"]`` style criteria, or ``["ALL"]``.

Interfaces:
  :func:`build_uid_search`.
"""
from __future__ import annotations

from typing import List, Optional


def build_uid_search(from_uid: Optional[int] = None, to_uid: Optional[int] = None) -> List[str]:
    """Convert optional UID bounds into IMAP search criteria.

    Args:
      from_uid: Inclusive lower bound, or ``None``.
      to_uid: Inclusive upper bound, or ``None``.

    Returns:
      Criteria list suitable for ``IMAPClient.search``.
    """

    if from_uid is not None and to_uid is not None:
        return ["UID", f"{int(from_uid)}:{int(to_uid)}"]
    if from_uid is not None:
        return ["UID", f"{int(from_uid)}:*"]
    if to_uid is not None:
        return ["UID", f"1:{int(to_uid)}"]
    return ["ALL"]
