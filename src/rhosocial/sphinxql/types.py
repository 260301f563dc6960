# src/rhosocial/sphinxql/types.py
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pymysql.constants import FIELD_TYPE

# Decoded column value: NULL, integer, floating point, exact decimal or raw bytes
Value = Optional[Union[int, float, Decimal, bytes]]

# One row, keyed by column name in column order
Row = Dict[str, Value]

# Rows decoded from one statement's result set
ResultTable = List[Row]

# One ResultTable per result-producing statement, in statement order
ResultSet = List[ResultTable]


# Wire type code -> name, e.g. 3 -> "LONG". CHAR and INTERVAL are aliases of TINY and ENUM.
WIRE_TYPE_NAMES: Dict[int, str] = {
    code: name
    for name, code in vars(FIELD_TYPE).items()
    if name.isupper() and isinstance(code, int) and name not in ('CHAR', 'INTERVAL')
}


def wire_type_name(type_code: int) -> str:
    """Name of a wire type code, for logging and error messages."""
    return WIRE_TYPE_NAMES.get(type_code, f"UNKNOWN({type_code})")
