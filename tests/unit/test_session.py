"""Unit tests for :mod:`mailsync.imap.session`.

What:
  Cover the connection lifecycle: lazy transport creation, single login,
  connect/auth failures, disconnect semantics, and capability caching.

How:
  Drive providers built by the ``make_provider`` fixture and assert on the
  command log recorded by the fake backend.
"""

import json
import socket

import pytest

from mailsync.imap.errors import AuthenticationError, ImapConnectionError
from imapclient import SocketTimeout

from mailsync.imap.session import ImapConfig, ImapSession
from mailsync.utils.logging import get_logger


def test_connect_passes_configuration_to_transport(make_provider, imap_backend):
    config = ImapConfig(
        host="mail.example.org",
        username="user@test.local",
        password="pass",
        port=1993,
        ssl=False,
        timeout=3,
    )
    session = make_provider(config=config)
    session.connect()
    assert imap_backend.connect_args == [
        {
            "host": "mail.example.org",
            "port": 1993,
            "ssl": False,
            "timeout": SocketTimeout(connect=3, read=None),
        }
    ]


def test_config_defaults():
    config = ImapConfig(host="h", username="u", password="p")
    assert (config.port, config.ssl, config.timeout) == (993, True, 10)


def test_repeated_connect_logs_in_once(make_provider, imap_backend):
    session = make_provider()
    session.connect()
    session.connect()
    assert imap_backend.command_names().count("login") == 1
    assert len(imap_backend.connect_args) == 1


def test_rejected_credentials_raise_authentication_error(make_provider, imap_backend):
    session = make_provider(config=ImapConfig(host="h", username="user@test.local", password="bad"))
    with pytest.raises(AuthenticationError):
        session.connect()
    # The transport survives, so a retry repeats only the LOGIN.
    with pytest.raises(AuthenticationError):
        session.connect()
    assert len(imap_backend.connect_args) == 1
    assert imap_backend.command_names().count("login") == 2


def test_unreachable_server_raises_connection_error(monkeypatch, make_provider):
    def _refuse(host, port=None, ssl=True, timeout=None):
        raise socket.timeout("timed out")

    monkeypatch.setattr("mailsync.imap.session.IMAPClient", _refuse)
    session = make_provider()
    with pytest.raises(ImapConnectionError) as excinfo:
        session.connect()
    assert isinstance(excinfo.value, ConnectionError)
    assert session.is_disconnected() is False


def test_is_disconnected_before_any_connection(make_provider, imap_backend):
    session = make_provider()
    assert session.is_disconnected() is False
    assert imap_backend.calls == []


def test_is_disconnected_tracks_peer_and_local_teardown(make_provider, imap_backend):
    session = make_provider()
    session.connect()
    assert session.is_disconnected() is False
    imap_backend.sock.closed = True
    assert session.is_disconnected() is True
    session.disconnect()
    assert session.is_disconnected() is True


def test_disconnect_logs_out_and_tears_down(make_provider, imap_backend):
    session = make_provider()
    session.connect()
    session.disconnect()
    assert imap_backend.command_names()[-2:] == ["logout", "shutdown"]


def test_disconnect_swallows_logout_failure(make_provider, imap_backend, log_stream):
    session = make_provider()
    session.connect()
    imap_backend.logout_error = OSError("connection reset by peer")
    session.disconnect()
    assert imap_backend.command_names()[-2:] == ["logout", "shutdown"]
    assert imap_backend.sock.closed
    entries = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    assert any(entry["msg"] == "logout_failed" and entry["lvl"] == "WARN" for entry in entries)


def test_disconnect_without_connection_is_a_no_op(make_provider, imap_backend):
    session = make_provider()
    session.disconnect()
    assert imap_backend.calls == []


def test_connect_after_disconnect_starts_new_lifetime(make_provider, imap_backend):
    session = make_provider()
    session.connect()
    session.disconnect()
    imap_backend.sock.closed = False
    session.connect()
    assert imap_backend.command_names().count("login") == 2
    assert session.is_disconnected() is False


def test_capabilities_follow_login_announcement_over_greeting(make_provider, imap_backend):
    imap_backend.welcome = b"* OK [CAPABILITY IMAP4rev1 STARTTLS AUTH=PLAIN] ready"
    imap_backend.login_capabilities = (b"IMAP4rev1", b"IDLE", b"MOVE", b"SPECIAL-USE")
    session = make_provider()
    session.connect()
    assert session.capabilities() == frozenset({"IMAP4REV1", "IDLE", "MOVE", "SPECIAL-USE"})
    assert session.supports("move")
    assert not session.supports("STARTTLS")
    assert "capabilities" not in imap_backend.command_names()


def test_greeting_capabilities_are_not_cached_before_login(make_provider, imap_backend):
    imap_backend.login_capabilities = (b"IMAP4rev1", b"MOVE")
    session = make_provider()
    assert session.capabilities() == frozenset({"IMAP4REV1", "IDLE", "UIDPLUS"})
    session.connect()
    assert session.capabilities() == frozenset({"IMAP4REV1", "MOVE"})
    assert "capabilities" not in imap_backend.command_names()


def test_capabilities_queried_once_without_login_announcement(make_provider, imap_backend):
    imap_backend.welcome = b"* OK Fake IMAP ready"
    session = make_provider()
    session.connect()
    assert session.supports("move")
    assert session.supports("IDLE")
    assert not session.supports("CONDSTORE")
    assert imap_backend.command_names().count("capabilities") == 1


def test_capabilities_are_not_refetched_within_lifetime(make_provider, imap_backend):
    imap_backend.welcome = b"* OK Fake IMAP ready"
    session = make_provider()
    session.connect()
    first = session.capabilities()
    imap_backend._capabilities = (b"IMAP4REV1",)
    assert session.capabilities() is first


def test_context_manager_connects_and_disconnects(imap_backend, imap_config, log_stream):
    with ImapSession(imap_config, logger=get_logger("test", stream=log_stream)) as session:
        assert imap_backend.command_names() == ["login"]
        assert session.is_disconnected() is False
    assert session.is_disconnected() is True
    assert '"pass"' not in log_stream.getvalue()


def test_transport_failure_during_login_raises_connection_error(make_provider, imap_backend):
    imap_backend.login_error = socket.timeout("timed out")
    session = make_provider()
    with pytest.raises(ImapConnectionError):
        session.connect()
    assert session.is_disconnected() is False


def test_timeout_only_bounds_connection_setup(make_provider, imap_backend):
    session = make_provider(config=ImapConfig(host="h", username="user@test.local", password="pass", timeout=1))
    session.connect()
    (args,) = imap_backend.connect_args
    assert args["timeout"].connect == 1
    assert args["timeout"].read is None
