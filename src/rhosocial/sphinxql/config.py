# src/rhosocial/sphinxql/config.py
"""SphinxQL connection configuration

The connection always talks to the server with empty credentials, no default
schema and multi-statement execution enabled, and asks the driver for
undecoded rows so that column values can be decoded by their wire type.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict

from pymysql.constants import CLIENT

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9306


def parse_log_level(value: Any) -> int:
    """Turn ``"DEBUG"``, ``"10"`` or ``10`` into a numeric logging level."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    numeric_level = getattr(logging, text.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {value}')
    return numeric_level


@dataclass
class SphinxQLConnectionConfig:
    """Connection parameters for a SphinxQL (MySQL wire protocol) server.

    ``log_queries`` turns on logging of every submitted SQL text, at
    ``log_level``.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    log_queries: bool = False
    log_level: int = logging.INFO

    def to_dict(self) -> Dict[str, Any]:
        """Keyword arguments for ``pymysql.connect``.

        The handle is created with ``defer_connect`` so that creating the client
        and connecting it are separate steps. ``conv={}`` and
        ``use_unicode=False`` make the driver hand back every column as raw bytes.
        """
        return {
            'host': self.host,
            'port': self.port,
            'user': '',
            'password': '',
            'database': None,
            'client_flag': CLIENT.MULTI_STATEMENTS,
            'conv': {},
            'use_unicode': False,
            'autocommit': None,
            'defer_connect': True,
        }

    @classmethod
    def from_env(cls, prefix: str = "SPHINXQL_") -> 'SphinxQLConnectionConfig':
        """Build a config from ``<prefix>HOST``, ``<prefix>PORT``,
        ``<prefix>LOG_QUERIES`` and ``<prefix>LOG_LEVEL``, using defaults for unset
        variables."""
        log_queries = os.getenv(f"{prefix}LOG_QUERIES", "")
        return cls(
            host=os.getenv(f"{prefix}HOST", DEFAULT_HOST),
            port=int(os.getenv(f"{prefix}PORT", DEFAULT_PORT)),
            log_queries=log_queries.strip().lower() in ('1', 'true', 'yes', 'on'),
            log_level=parse_log_level(os.getenv(f"{prefix}LOG_LEVEL", logging.INFO)),
        )
