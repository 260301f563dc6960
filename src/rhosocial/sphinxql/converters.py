# src/rhosocial/sphinxql/converters.py
"""Decoding of raw column values by declared wire type.

The connection asks the driver for undecoded rows, so every non-NULL column
value arrives as the exact bytes the server sent. Each value is decoded by the
function registered for its column's wire type in ``DECODERS``. Types with no
entry (strings, blobs, SET/ENUM, temporal types, anything new) are returned as
the raw bytes, never truncated at an embedded zero byte.
"""

from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Sequence

from pymysql.constants import FIELD_TYPE

from .types import ResultTable, Value

Decoder = Callable[[bytes], Value]


# Text is first read as a 64-bit long, then narrowed to the column width
def _signed(value: int, bits: int) -> int:
    """Wrap an integer into the two's-complement range of a signed ``bits`` wide integer."""
    mask = (1 << bits) - 1
    value &= mask
    if value > mask >> 1:
        value -= mask + 1
    return value


def _clamp(value: int, bits: int) -> int:
    """Saturate an integer at the bounds of a signed ``bits`` wide integer."""
    limit = 1 << (bits - 1)
    return max(-limit, min(value, limit - 1))


def decode_short(raw: bytes) -> int:
    """TINY and SHORT columns, parsed as a signed 16-bit integer."""
    return _signed(_clamp(int(raw), 64), 16)


def decode_long(raw: bytes) -> int:
    """LONG columns, parsed as a signed 32-bit integer."""
    return _signed(_clamp(int(raw), 64), 32)


def decode_longlong(raw: bytes) -> int:
    """INT24 and LONGLONG columns, parsed as a signed 64-bit integer.

    Out of range text saturates at the signed 64-bit bounds, so an unsigned id
    above 2**63 - 1 reads as 2**63 - 1.
    """
    return _clamp(int(raw), 64)


def decode_decimal(raw: bytes) -> Decimal:
    # Exact text, no rounding through float
    return Decimal(raw.decode('ascii'))


def decode_double(raw: bytes) -> float:
    return float(raw)


def decode_bytes(raw: bytes) -> bytes:
    return bytes(raw)


def decode_null(raw: bytes) -> None:
    return None


DECODERS: Dict[int, Decoder] = {
    FIELD_TYPE.NULL: decode_null,
    FIELD_TYPE.TINY: decode_short,
    FIELD_TYPE.SHORT: decode_short,
    FIELD_TYPE.LONG: decode_long,
    FIELD_TYPE.INT24: decode_longlong,
    FIELD_TYPE.LONGLONG: decode_longlong,
    FIELD_TYPE.DECIMAL: decode_decimal,
    FIELD_TYPE.NEWDECIMAL: decode_decimal,
    FIELD_TYPE.FLOAT: decode_double,
    FIELD_TYPE.DOUBLE: decode_double,
}


def get_decoder(type_code: int) -> Decoder:
    """Decoder for a wire type, falling back to a verbatim byte copy."""
    return DECODERS.get(type_code, decode_bytes)


def decode_value(type_code: int, raw: Optional[bytes]) -> Value:
    """Decode one raw column value.

    Args:
        type_code: Declared wire type of the column
        raw: Bytes sent by the server, or None for SQL NULL

    Returns:
        Value: The decoded Python value
    """
    if raw is None:
        return None
    return get_decoder(type_code)(raw)


def decode_table(description: Sequence[Sequence], rows: Iterable[Sequence[Optional[bytes]]]) -> ResultTable:
    """Decode a fully buffered result set into a list of row dicts.

    Column names and decoders are resolved once from the result's column
    metadata, so every row has the same keys in the same order.

    Args:
        description: DB-API cursor description, ``(name, type_code, ...)`` per column
        rows: Raw row tuples aligned with ``description``

    Returns:
        ResultTable: One dict per row, keyed by column name
    """
    names = [column[0] for column in description]
    decoders = [get_decoder(column[1]) for column in description]
    columns = list(zip(names, decoders))

    table: ResultTable = []
    for row in rows:
        table.append({
            name: None if raw is None else decoder(raw)
            for (name, decoder), raw in zip(columns, row)
        })
    return table
