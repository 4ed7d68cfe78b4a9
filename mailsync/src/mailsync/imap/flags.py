"""Flag set reconciliation helpers.

What:
  Compute the minimal additive and subtractive changes that turn one set of
  flag values into another for a single message attribute.

Why:
  Synchronisation runs repeatedly against the same messages. Issuing only the
  difference keeps every store idempotent: when the remote side already
  matches, nothing is sent at all.

How:
  :func:`compute_delta` walks both sequences once, keeping the caller's order
  and dropping duplicates, and returns a frozen :class:`FlagDelta`.

Interfaces:
  :class:`FlagDelta`, :func:`compute_delta`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable, Tuple


@dataclass(frozen=True)
class FlagDelta:
    """Values to add and remove for one message attribute."""

    additions: Tuple[Hashable, ...] = ()
    removals: Tuple[Hashable, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.additions and not self.removals


def _ordered_difference(left: Iterable[Hashable], right: Iterable[Hashable]) -> Tuple[Hashable, ...]:
    exclude = set(right)
    seen = set()
    result = []
    for value in left:
        if value in exclude or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return tuple(result)


def compute_delta(old_set: Iterable[Hashable], new_set: Iterable[Hashable]) -> FlagDelta:
    """Return the additions (``new - old``) and removals (``old - new``).

    Comparison is by value equality, so ``b"\\Seen"`` and ``"\\Seen"`` are
    distinct values; callers normalise types before comparing.
    """

    old_values = tuple(old_set)
    new_values = tuple(new_set)
    return FlagDelta(
        additions=_ordered_difference(new_values, old_values),
        removals=_ordered_difference(old_values, new_values),
    )
