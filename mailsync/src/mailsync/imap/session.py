"""Stateful IMAP session owning one ``imapclient`` connection.

What:
  Wrap the third-party ``imapclient`` library with lazy connection
  establishment, idempotent authentication, capability caching, and a teardown
  path that never raises.

Why:
  Synchronisation callers retry freely and rarely track connection state.
  Centralising the lifecycle keeps a second ``connect()`` from logging in
  twice, lets capability checks avoid redundant round-trips, and guarantees
  that ``disconnect()`` always releases the socket even when the server has
  already dropped the session.

How:
  The transport is created on the first protocol operation. Login happens once
  per connection lifetime. After login, capabilities come from the latest
  passive announcement (or one CAPABILITY query) and are cached until
  :meth:`ImapSession.disconnect` ends the lifetime. The connect timeout only
  bounds establishing the transport.

Interfaces:
  :class:`ImapConfig`, :class:`OpenMailbox`, :class:`ImapSession`.

Invariants & Safety:
  - Capabilities cached after login are never re-fetched within a
    connection lifetime; a stale set is accepted.
  - ``disconnect`` attempts LOGOUT, logs and discards any failure, then always
    shuts the transport down.
  - The session is not thread-safe; use one session per concurrent unit of
    work.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from imapclient import IMAPClient, SocketTimeout
from imapclient.exceptions import IMAPClientError, LoginError

from ..config.schema import ImapSettings
from ..utils.logging import JsonLogger, get_logger
from ..utils.text import to_text
from .errors import AuthenticationError, ImapConnectionError

_GREETING_CAPABILITY = re.compile(rb"\[CAPABILITY ([^\]]*)\]", re.IGNORECASE)


def _normalise_capabilities(announced: Iterable[object]) -> FrozenSet[str]:
    return frozenset(to_text(item, "ascii").upper() for item in announced)


@dataclass
class ImapConfig:
    """Connection parameters for an IMAP server.

    Attributes:
      host: IMAP hostname.
      username: Login credential.
      password: Password or app-specific token.
      port: IMAP port (defaults to 993).
      ssl: Whether to connect over implicit TLS.
      timeout: Seconds allowed for establishing the connection. Reads after
        that are not bounded.
    """

    host: str
    username: str
    password: str
    port: int = 993
    ssl: bool = True
    timeout: float = 10

    @classmethod
    def from_settings(cls, settings: ImapSettings) -> "ImapConfig":
        """Build a config from the validated ``imap`` section of ``config.yaml``."""

        return cls(
            host=settings.host,
            username=settings.username,
            password=settings.resolve_password(),
            port=settings.port,
            ssl=settings.ssl,
            timeout=settings.timeout,
        )


@dataclass(frozen=True)
class OpenMailbox:
    """The mailbox currently selected or examined on a session."""

    name: str
    write: bool
    uid_validity: Optional[int]


class ImapSession:
    """Lazily connected IMAP session with cached capabilities.

    What:
      Owns at most one ``IMAPClient`` at a time together with the state
      scoped to it: authentication status, the capability set, and the open
      mailbox.

    How:
      :attr:`client` creates the transport on demand; :meth:`connect` adds the
      login. :meth:`disconnect` drops the transport and every cache, so a later
      :meth:`connect` starts a fresh lifetime.
    """

    def __init__(self, config: ImapConfig, *, logger: Optional[JsonLogger] = None):
        self._config = config
        self._logger = logger or get_logger("mailsync.imap.session")
        self._client: Optional[IMAPClient] = None
        self._closed = False
        self._authenticated = False
        self._capabilities: Optional[FrozenSet[str]] = None
        self._open_mailbox: Optional[OpenMailbox] = None

    def __enter__(self) -> "ImapSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    @property
    def config(self) -> ImapConfig:
        return self._config

    @property
    def client(self) -> IMAPClient:
        """Return the transport, establishing it on first use.

        Raises:
          ImapConnectionError: If the server cannot be reached within the
            configured timeout.
        """

        if self._client is None:
            self._client = self._open_transport()
            self._closed = False
        return self._client

    @property
    def current_mailbox(self) -> Optional[OpenMailbox]:
        return self._open_mailbox

    def _open_transport(self) -> IMAPClient:
        config = self._config
        try:
            client = IMAPClient(
                config.host,
                port=config.port,
                ssl=config.ssl,
                timeout=SocketTimeout(connect=config.timeout, read=None),
            )
        except (OSError, IMAPClientError) as exc:
            self._logger.error(
                "connect_failed",
                host=config.host,
                port=config.port,
                ssl=config.ssl,
                error=str(exc),
            )
            raise ImapConnectionError(
                f"Unable to connect to {config.host}:{config.port}: {exc}"
            ) from exc
        self._logger.debug("transport_established", host=config.host, port=config.port)
        return client

    def connect(self) -> None:
        """Establish the transport if needed and authenticate once.

        A repeated call after a successful login is a no-op. A rejected login
        keeps the transport, so a retry only repeats the LOGIN command.

        Raises:
          ImapConnectionError: If the transport cannot be established or
            drops while logging in.
          AuthenticationError: If the server rejects the credentials.
        """

        client = self.client
        if self._authenticated:
            return
        try:
            client.login(self._config.username, self._config.password)
        except OSError as exc:
            self._logger.error("login_transport_failed", host=self._config.host, error=str(exc))
            raise ImapConnectionError(
                f"Connection to {self._config.host} failed during login: {exc}"
            ) from exc
        except LoginError as exc:
            self._logger.error(
                "login_rejected",
                host=self._config.host,
                username=self._config.username,
            )
            raise AuthenticationError(
                f"Credentials rejected by {self._config.host} for {self._config.username}"
            ) from exc
        self._authenticated = True
        self._logger.info(
            "connected",
            host=self._config.host,
            port=self._config.port,
            ssl=self._config.ssl,
            username=self._config.username,
        )

    def is_disconnected(self) -> bool:
        """Return whether an established connection has since been torn down.

        ``False`` when no connection was ever made: that means "not known to
        be disconnected", not "connected".
        """

        if self._client is None:
            return self._closed
        sock = self._client.socket()
        return sock is None or sock.fileno() == -1

    def disconnect(self) -> None:
        """Log out if possible, then always tear the transport down."""

        client = self._client
        if client is None:
            return
        self._attempt_logout(client)
        self._teardown(client)
        self._client = None
        self._closed = True
        self._authenticated = False
        self._capabilities = None
        self._open_mailbox = None
        self._forget_session_caches()
        self._logger.info("disconnected", host=self._config.host)

    def _attempt_logout(self, client: IMAPClient) -> None:
        # Best effort: the server may already have closed the connection.
        try:
            client.logout()
        except Exception as exc:
            self._logger.warning("logout_failed", host=self._config.host, error=str(exc))

    def _teardown(self, client: IMAPClient) -> None:
        # A successful LOGOUT already closes the socket; closing again may fail.
        try:
            client.shutdown()
        except (OSError, IMAPClientError) as exc:
            self._logger.debug("shutdown_after_close", error=str(exc))

    def _forget_session_caches(self) -> None:
        """Hook for subclasses holding additional per-connection caches."""

    def capabilities(self) -> FrozenSet[str]:
        """Return the server capability set, upper-cased.

        Once logged in, ``IMAPClient.capabilities`` supplies the most recent
        passive announcement (usually the ``OK [CAPABILITY ...]`` reply to
        LOGIN) and only sends a CAPABILITY command when there was none. That
        set is cached for the rest of the connection lifetime.

        Before login the greeting announcement is returned when present, but
        not cached: servers commonly advertise more after authentication.
        """

        if self._capabilities is not None:
            return self._capabilities
        if not self._authenticated:
            announced = self._announced_capabilities()
            if announced is None:
                announced = self.client.capabilities()
            return _normalise_capabilities(announced)
        self._capabilities = _normalise_capabilities(self.client.capabilities())
        self._logger.debug("capabilities_cached", count=len(self._capabilities))
        return self._capabilities

    def supports(self, capability: str) -> bool:
        return capability.upper() in self.capabilities()

    def _announced_capabilities(self) -> Optional[Iterable[bytes]]:
        welcome = self.client.welcome
        if not welcome:
            return None
        if isinstance(welcome, str):
            welcome = welcome.encode("ascii", errors="replace")
        match = _GREETING_CAPABILITY.search(welcome)
        if match is None:
            return None
        return match.group(1).split()

    def _remember_open_mailbox(self, mailbox: OpenMailbox) -> None:
        self._open_mailbox = mailbox
