"""Pytest configuration shared by the unit and end-to-end suites.

What:
  Put the in-repo source tree and the fake IMAP backend on ``sys.path``, pin
  the runtime configuration to ``tests/data/config.yaml``, and expose an
  ``imap_backend`` fixture that replaces ``IMAPClient`` with the fake.

Why:
  MailSync caches configuration globally and the session constructs its
  transport itself; without explicit resets and patching, tests could leak
  state into each other or try to reach a network.

How:
  Path injection happens once at import time. The autouse fixture sets
  ``MAILSYNC_CONFIG_PATH`` and clears the cache before and after each test.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mailsync" / "src"
UNIT_DIR = Path(__file__).resolve().parent / "unit"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

import pytest

from mailsync.config.loader import CONFIG_ENV, reset_runtime_config

from fakes import FakeImapBackend

CONFIG_PATH = Path(__file__).resolve().parent / "data" / "config.yaml"


@pytest.fixture(autouse=True)
def runtime_config(monkeypatch: pytest.MonkeyPatch):
    """Apply the canned configuration file for every test."""

    monkeypatch.setenv(CONFIG_ENV, str(CONFIG_PATH))
    reset_runtime_config()
    try:
        yield
    finally:
        reset_runtime_config()


@pytest.fixture
def imap_backend(monkeypatch: pytest.MonkeyPatch):
    """Route every ``IMAPClient`` construction to one in-memory backend.

    The constructor arguments are recorded on ``backend.connect_args`` so tests
    can assert on host, port, TLS and timeout.
    """

    backend = FakeImapBackend()
    backend.connect_args = []

    def _factory(host, port=None, ssl=True, timeout=None):
        backend.connect_args.append({"host": host, "port": port, "ssl": ssl, "timeout": timeout})
        return backend

    monkeypatch.setattr("mailsync.imap.session.IMAPClient", _factory)
    return backend
