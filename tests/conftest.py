"""Pytest configuration for the SphinxQL connection tests

The unit tests replace ``pymysql.connect`` with a scripted fake client so that
the connection state machine and result decoding can be tested without a
server. The ``live_connection`` fixture connects to a real server configured
through ``config_manager`` and skips when none is reachable.
"""

import logging

import pymysql
import pytest

from config_manager import get_server_params
from fakes import FakeNative
from rhosocial.sphinxql import Connection, ConnectionError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def native(monkeypatch):
    """Fake native client; configure it before creating a Connection"""
    fake = FakeNative()
    monkeypatch.setattr(pymysql, "connect", fake.connect)
    return fake


@pytest.fixture
def connection(native):
    """Open connection backed by the fake native client"""
    conn = Connection("127.0.0.1", 9306)
    yield conn
    conn.close()


@pytest.fixture
def live_connection():
    """Connection to a real server, skipped when none is reachable"""
    params = get_server_params()
    try:
        conn = Connection(params['host'], params['port'])
    except ConnectionError as e:
        pytest.skip(f"No SphinxQL server at {params['host']}:{params['port']}: {e}")
    logger.info(f"Connected to live server {params['host']}:{params['port']}")
    yield conn
    conn.close()
