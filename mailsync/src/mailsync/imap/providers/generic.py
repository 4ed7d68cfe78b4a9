"""Generic IMAP provider: mailbox labels, UID lookup and flag reconciliation.

What:
  Extend :class:`~mailsync.imap.session.ImapSession` with the operations a
  flag synchroniser needs against any standards-compliant server: listing
  selectable mailboxes, deriving labels from their names, opening a mailbox
  read-only or read-write, resolving UID ranges, fetching attributes, and
  storing minimal flag deltas.

Why:
  Mail services differ in how tags map to flags or labels and in what
  "archive" means. Keeping the standard behaviour in one class gives variants
  a small set of hooks to override (``to_tag``, ``tag_to_flag``,
  ``tag_to_label``, ``archive``) while the protocol handling stays shared.

How:
  All message operations run in UID mode through ``imapclient``. The label
  map is built once per connection lifetime. Writes are gated when the
  mailbox is opened, using the injected ``write_enabled`` callable; ``store``
  trusts that gate and only sends the computed delta.

Interfaces:
  :class:`AttributeBag`, :class:`GenericProvider`.

Invariants & Safety:
  - ``labels()`` never contains ``inbox`` or ``sent``.
  - ``open_mailbox(..., write=True)`` with writes disabled raises before any
    protocol command.
  - ``store`` issues at most one additive and one subtractive command, and
    none when the old and new sets match.
"""
from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from imapclient import SEEN

from ...utils.logging import JsonLogger, get_logger
from ...utils.tags import clean_tag
from ...utils.text import to_text
from ..errors import NoMailboxOpenError, UnsupportedAttributeError, WriteDisabledError
from ..flags import FlagDelta, compute_delta
from ..search import build_uid_search
from ..session import ImapConfig, ImapSession, OpenMailbox

Normalizer = Callable[[str], Optional[str]]

RESERVED_LABELS = frozenset({"inbox", "sent"})
NOSELECT = "\\noselect"
SILENT_SUFFIX = ".SILENT"


@dataclass
class AttributeBag:
    """Fetched attributes for one message, keyed by the requested field name.

    Fields the server did not return are absent, never defaulted.
    """

    uid: int
    attributes: Dict[str, Any] = field(default_factory=dict)


def _response_key(requested: str) -> bytes:
    # Servers answer BODY.PEEK[...] requests under the BODY[...] key.
    return requested.upper().replace("BODY.PEEK[", "BODY[").encode("ascii")


class GenericProvider(ImapSession):
    """Provider for servers without service-specific tag semantics.

    Args:
      config: Connection parameters.
      normalize: Maps a raw mailbox name to a tag, or ``None`` when the name
        cannot be normalised.
      write_enabled: Consulted each time a mailbox is opened for writing.
        Defaults to always disabled.
      logger: Optional structured logger.
    """

    name = "generic"

    #: Attribute name -> (add command, remove command) on ``IMAPClient``.
    STORE_COMMANDS: Mapping[str, tuple] = types.MappingProxyType(
        {
            "FLAGS": ("add_flags", "remove_flags"),
            "X-GM-LABELS": ("add_gmail_labels", "remove_gmail_labels"),
        }
    )

    def __init__(
        self,
        config: ImapConfig,
        *,
        normalize: Normalizer = clean_tag,
        write_enabled: Optional[Callable[[], bool]] = None,
        logger: Optional[JsonLogger] = None,
    ):
        super().__init__(config, logger=logger or get_logger(f"mailsync.imap.{self.name}"))
        self._normalize = normalize
        self._write_enabled = write_enabled or (lambda: False)
        self._labels: Optional[Mapping[str, str]] = None

    def _forget_session_caches(self) -> None:
        self._labels = None

    # Mailbox resolution -------------------------------------------------
    def list_mailboxes(self) -> List[str]:
        """Return every selectable mailbox name under the root."""

        names: List[str] = []
        for flags, _delimiter, name in self.client.list_folders("", "*"):
            if any(to_text(flag).lower() == NOSELECT for flag in flags):
                continue
            names.append(to_text(name))
        return names

    def labels(self) -> Mapping[str, str]:
        """Return the read-only ``label -> mailbox name`` map.

        Built from :meth:`list_mailboxes` on first use and kept until the
        connection is closed.
        """

        if self._labels is None:
            labels: Dict[str, str] = {}
            for name in self.list_mailboxes():
                tag = self.to_tag(name)
                if tag is not None:
                    labels[tag] = name
            self._labels = types.MappingProxyType(labels)
        return self._labels

    def to_tag(self, mailbox_name: str) -> Optional[str]:
        """Normalise ``mailbox_name`` into a label, skipping reserved ones."""

        tag = self._normalize(mailbox_name)
        if not tag or tag in RESERVED_LABELS:
            return None
        return tag

    def tag_to_label(self, tag: str) -> str:
        return tag

    def open_mailbox(self, mailbox_name: str, write: bool = False) -> Dict[str, Optional[int]]:
        """Select (``write``) or examine ``mailbox_name``.

        Returns:
          ``{"uid_validity": <int or None>}`` so callers can detect UID
          renumbering.

        Raises:
          WriteDisabledError: When ``write`` is requested while writes are
            disabled. No command is sent in that case.
        """

        if write and not self._write_enabled():
            raise WriteDisabledError(
                f"Two-way IMAP sync is disabled; cannot open {mailbox_name!r} for writing"
            )
        response = self.client.select_folder(mailbox_name, readonly=not write)
        uid_validity = response.get(b"UIDVALIDITY")
        opened = OpenMailbox(
            name=mailbox_name,
            write=write,
            uid_validity=int(uid_validity) if uid_validity is not None else None,
        )
        self._remember_open_mailbox(opened)
        self._logger.info(
            "mailbox_opened",
            mailbox=mailbox_name,
            mode="select" if write else "examine",
            uid_validity=opened.uid_validity,
        )
        return {"uid_validity": opened.uid_validity}

    def _require_open_mailbox(self) -> OpenMailbox:
        if self.current_mailbox is None:
            raise NoMailboxOpenError("open_mailbox() must be called before searching")
        return self.current_mailbox

    # Message location ---------------------------------------------------
    def uids(self, from_uid: Optional[int] = None, to_uid: Optional[int] = None) -> List[int]:
        """Return the UIDs of the open mailbox inside the requested range."""

        self._require_open_mailbox()
        criteria = build_uid_search(from_uid, to_uid)
        return list(self.client.search(criteria))

    # Flag synchronisation -----------------------------------------------
    def fetch(self, uids: Iterable[int], fields: Iterable[str]) -> List[AttributeBag]:
        """Fetch ``fields`` for each UID the server still knows.

        UIDs missing from the response (moved or expunged) are omitted; an
        empty response yields an empty list.
        """

        uid_list = list(dict.fromkeys(int(uid) for uid in uids))
        requested = [to_text(name) for name in fields]
        if not uid_list:
            return []
        response = self.client.fetch(uid_list, requested)
        if not response:
            return []
        bags: List[AttributeBag] = []
        for uid in uid_list:
            data = response.get(uid)
            if data is None:
                continue
            attributes = {}
            for name in requested:
                key = _response_key(name)
                if key in data:
                    attributes[name] = data[key]
            bags.append(AttributeBag(uid=uid, attributes=attributes))
        return bags

    def store(
        self,
        uid: int,
        attribute: str,
        old_set: Iterable[Any],
        new_set: Iterable[Any],
    ) -> FlagDelta:
        """Apply the difference between ``old_set`` and ``new_set`` to ``uid``.

        A ``.SILENT`` suffix is accepted; stores are always sent silently.

        Raises:
          UnsupportedAttributeError: If ``attribute`` has no add/remove
            command. Raised before anything is sent.
        """

        name = attribute.upper()
        if name.endswith(SILENT_SUFFIX):
            name = name[: -len(SILENT_SUFFIX)]
        commands = self.STORE_COMMANDS.get(name)
        if commands is None:
            raise UnsupportedAttributeError(f"Cannot store attribute {attribute!r}")
        add_command, remove_command = commands
        delta = compute_delta(old_set, new_set)
        if delta.additions:
            getattr(self.client, add_command)([uid], list(delta.additions), silent=True)
        if delta.removals:
            getattr(self.client, remove_command)([uid], list(delta.removals), silent=True)
        if not delta.is_empty:
            self._logger.info(
                "flags_stored",
                uid=uid,
                attribute=name,
                added=len(delta.additions),
                removed=len(delta.removals),
            )
        return delta

    def tag_to_flag(self, tag: str) -> Optional[bytes]:
        """Map a sync tag to an IMAP system flag; only ``seen`` is known here."""

        if tag == "seen":
            return SEEN
        return None

    def archive(self, uid: int) -> None:
        # Removing the sync label is enough to archive on generic servers.
        return None
