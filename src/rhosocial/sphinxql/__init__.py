# src/rhosocial/sphinxql/__init__.py
"""
SphinxQL connection layer.

A thin, synchronous client for servers speaking the MySQL wire protocol,
aimed at search daemons such as Sphinx that expose SphinxQL:
- Connection: lifecycle of one client handle, execute and query
- Result decoding by declared column wire type (integers, floats, exact
  decimals, raw bytes for everything else)
- Connection configuration
- SphinxQL statement building with comparison filters

Architecture:
- Connection drives a PyMySQL handle with conversion disabled and decodes rows itself
- converters.DECODERS maps wire types to decoding functions
- QueryBuilder produces SQL with ? placeholders; interpolate() fills them in
"""

__version__ = "1.0.0"

from .comparison import (
    Comparison,
    Equal,
    NotEqual,
    GreaterThan,
    GreaterThanOrEqual,
    LessThan,
    LessThanOrEqual,
    Between,
    Outside,
    In,
    NotIn,
    eq,
    neq,
    gt,
    gte,
    lt,
    lte,
    between,
    outside,
    in_,
    not_in,
)
from .config import SphinxQLConnectionConfig
from .connection import Connection
from .converters import DECODERS, decode_table, decode_value
from .errors import ConnectionError, DatabaseError
from .query_builder import QueryBuilder, interpolate
from .types import ResultSet, ResultTable, Row, Value


__all__ = [
    # Connection
    'Connection',

    # Configuration
    'SphinxQLConnectionConfig',

    # Errors
    'DatabaseError',
    'ConnectionError',

    # Decoding
    'DECODERS',
    'decode_value',
    'decode_table',

    # Types
    'Value',
    'Row',
    'ResultTable',
    'ResultSet',

    # Builder
    'QueryBuilder',
    'interpolate',

    # Comparisons
    'Comparison',
    'Equal',
    'NotEqual',
    'GreaterThan',
    'GreaterThanOrEqual',
    'LessThan',
    'LessThanOrEqual',
    'Between',
    'Outside',
    'In',
    'NotIn',
    'eq',
    'neq',
    'gt',
    'gte',
    'lt',
    'lte',
    'between',
    'outside',
    'in_',
    'not_in',
]
