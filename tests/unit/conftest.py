"""Fixtures for unit tests that drive a provider against the fake backend.

What:
  Build :class:`~mailsync.imap.providers.GenericProvider` instances wired to
  the ``imap_backend`` fixture, with writes enabled or disabled.

How:
  Logs go to an in-memory stream so assertions can inspect them and test
  output stays clean.
"""

import io

import pytest

from mailsync.imap.providers import GenericProvider
from mailsync.imap.session import ImapConfig
from mailsync.utils.logging import get_logger


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def imap_config():
    return ImapConfig(host="imap.test.local", username="user@test.local", password="pass")


@pytest.fixture
def make_provider(imap_backend, imap_config, log_stream):
    """Return a factory building providers bound to the fake backend."""

    def _make(*, write_enabled=True, **kwargs):
        gate = write_enabled if callable(write_enabled) else (lambda: write_enabled)
        return GenericProvider(
            kwargs.pop("config", imap_config),
            write_enabled=gate,
            logger=get_logger("test", stream=log_stream),
            **kwargs,
        )

    return _make


@pytest.fixture
def provider(make_provider):
    """Yield a connected provider with writes enabled."""

    with make_provider() as connected:
        yield connected
