"""MailSync command-line interface.

What:
  Provide a Typer-based entry point for inspecting an IMAP account and
  adjusting message flags through the same provider the synchroniser uses:
  ``capabilities``, ``mailboxes``, ``labels``, ``uids``, ``flags`` and
  ``set-flags``.

Why:
  Operators need a quick way to check what the sync layer will see (labels,
  UID ranges, current flags) and to exercise the write path under the same
  ``sync.enable_write`` gate.

How:
  Each command loads the runtime configuration, builds the configured
  provider, connects, runs one operation, and always disconnects. Structured
  session logs go to ``stderr`` so ``stdout`` carries only command output.

Interfaces:
  ``app`` (Typer application), ``main``.

Invariants & Safety:
  - Exit codes follow shell expectations (``0`` success, ``1`` failure).
  - ``set-flags`` opens the mailbox in write mode and therefore fails when
    writes are disabled in the configuration.
"""
from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from imapclient.exceptions import IMAPClientError

from .config.loader import ConfigLoadError, load_runtime_config
from .imap.errors import MailSyncError
from .imap.providers import GenericProvider, build_provider
from .utils.logging import get_logger
from .utils.text import to_text


app = typer.Typer(help="MailSync IMAP flag synchronisation tools")

LOGGER = logging.getLogger("mailsync.cli")

_CONFIG_HELP = "Path to config.yaml (defaults to MAILSYNC_CONFIG_PATH or ./config.yaml)"


@contextlib.contextmanager
def _connected_provider(config: Optional[Path]) -> Iterator[GenericProvider]:
    """Yield a connected provider and map failures to exit code 1."""

    try:
        runtime = load_runtime_config(config)
        provider = build_provider(
            runtime,
            logger=get_logger("mailsync.cli", stream=sys.stderr),
        )
    except (ConfigLoadError, MailSyncError, OSError) as exc:
        LOGGER.error("runtime_load_failed: %s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        provider.connect()
        yield provider
    except (MailSyncError, IMAPClientError, OSError) as exc:
        LOGGER.error("command_failed: %s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        provider.disconnect()


@app.command()
def capabilities(
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Print the server capabilities, one per line."""

    with _connected_provider(config) as provider:
        for name in sorted(provider.capabilities()):
            typer.echo(name)


@app.command()
def mailboxes(
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Print every selectable mailbox."""

    with _connected_provider(config) as provider:
        for name in provider.list_mailboxes():
            typer.echo(name)


@app.command()
def labels(
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Print the label to mailbox mapping used for synchronisation."""

    with _connected_provider(config) as provider:
        for label, mailbox in sorted(provider.labels().items()):
            typer.echo(f"{label}\t{mailbox}")


@app.command()
def uids(
    mailbox: str = typer.Argument(..., help="Mailbox to examine"),
    from_uid: Optional[int] = typer.Option(None, "--from", help="Lowest UID (inclusive)"),
    to_uid: Optional[int] = typer.Option(None, "--to", help="Highest UID (inclusive)"),
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Print the UID validity and the UIDs inside the requested range."""

    with _connected_provider(config) as provider:
        opened = provider.open_mailbox(mailbox)
        typer.echo(f"uid_validity={opened['uid_validity']}")
        for uid in provider.uids(from_uid=from_uid, to_uid=to_uid):
            typer.echo(str(uid))


@app.command()
def flags(
    mailbox: str = typer.Argument(..., help="Mailbox holding the messages"),
    uid: List[int] = typer.Argument(..., help="Message UIDs"),
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Print the flags of each UID that still exists in ``mailbox``."""

    with _connected_provider(config) as provider:
        provider.open_mailbox(mailbox)
        for bag in provider.fetch(uid, ["FLAGS"]):
            values = " ".join(to_text(flag) for flag in bag.attributes.get("FLAGS", ()))
            typer.echo(f"{bag.uid}\t{values}")


@app.command("set-flags")
def set_flags(
    mailbox: str = typer.Argument(..., help="Mailbox holding the message"),
    uid: int = typer.Argument(..., help="Message UID"),
    add: Optional[List[str]] = typer.Option(None, "--add", help="Flag or tag to add"),
    remove: Optional[List[str]] = typer.Option(None, "--remove", help="Flag or tag to remove"),
    config: Optional[Path] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Add and remove flags on one message, sending only what changed."""

    with _connected_provider(config) as provider:
        provider.open_mailbox(mailbox, write=True)
        bags = provider.fetch([uid], ["FLAGS"])
        if not bags:
            LOGGER.error("message_not_found mailbox=%s uid=%s", mailbox, uid)
            typer.echo(f"error: UID {uid} not found in {mailbox}", err=True)
            raise typer.Exit(code=1)
        old = [to_text(flag) for flag in bags[0].attributes.get("FLAGS", ())]
        to_add = [_resolve_flag(provider, value) for value in add or []]
        to_remove = {_resolve_flag(provider, value) for value in remove or []}
        new = [flag for flag in old if flag not in to_remove]
        new.extend(flag for flag in to_add if flag not in new)
        delta = provider.store(uid, "FLAGS", old, new)
        typer.echo(f"added={' '.join(delta.additions)} removed={' '.join(delta.removals)}")


def _resolve_flag(provider: GenericProvider, value: str) -> str:
    flag = provider.tag_to_flag(value)
    return to_text(flag) if flag is not None else value


def main() -> None:
    """Execute the Typer application entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
