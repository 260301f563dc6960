# src/rhosocial/sphinxql/query_builder.py
"""SphinxQL statement construction.

``QueryBuilder`` produces ``(sql, params)`` pairs using ``?`` placeholders.
``interpolate`` substitutes escaped literals for the placeholders so that the
statement can be passed to ``Connection.execute`` or ``Connection.query``::

    builder = QueryBuilder("articles")
    sql, params = builder.select("cats", {"views": gte(100), "limit": 20})
    conn.query(interpolate(sql, params))
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pymysql.converters import escape_item, escape_string

from .comparison import Comparison

Id = Union[int, Sequence[int]]
Attributes = Dict[str, Any]

# Matches quoted string literals (skipped) and ? placeholders
_PLACEHOLDER_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|\?", re.DOTALL)


def interpolate(sql: str, params: Optional[Sequence[Any]] = None, charset: str = "utf8") -> str:
    """Replace each ``?`` placeholder in ``sql`` with an escaped literal.

    Placeholders inside quoted string literals are left alone. Values are
    escaped with PyMySQL's converters, so str becomes a quoted string, None
    becomes NULL, and so on. bytes are quoted the same way as str.

    Args:
        sql: SQL with ? placeholders
        params: One value per placeholder
        charset: Charset used when escaping str values

    Returns:
        str: SQL with the values inlined

    Raises:
        ValueError: If the number of values doesn't match the number of placeholders
    """
    params = tuple(params or ())
    result = []
    current_pos = 0
    param_position = 0

    for match in _PLACEHOLDER_PATTERN.finditer(sql):
        if match.group() != '?':
            continue
        if param_position >= len(params):
            raise ValueError(f"Not enough parameters for SQL: {sql}")
        result.append(sql[current_pos:match.start()])
        result.append(_literal(params[param_position], charset))
        param_position += 1
        current_pos = match.end()

    if param_position != len(params):
        raise ValueError(f"Parameter count mismatch: expected {param_position}, got {len(params)}")

    result.append(sql[current_pos:])
    return "".join(result)


def _literal(value: Any, charset: str) -> str:
    # bytes are sent as a plain quoted string; SphinxQL has no _binary introducer or hex literals
    if isinstance(value, (bytes, bytearray)):
        return "'" + escape_string(bytes(value).decode(charset, "surrogateescape")) + "'"
    return escape_item(value, charset)


class QueryBuilder:
    """Constructs SphinxQL statements against one index."""

    # Filter keys that are not attribute conditions
    RESERVED = ('attrs', 'limit', 'offset', 'order', 'options', 'group', 'conditions')

    def __init__(self, index_name: str):
        """Initialize a builder

        Args:
            index_name: Name of the index being queried
        """
        self.index_name = index_name

    def select(self, query: str, filters: Optional[Dict[str, Any]] = None) -> Tuple[str, Tuple]:
        """Build a full-text search with attribute filters.

        Args:
            query: Full-text query, may be empty
            filters: Attribute conditions plus the reserved keys ``attrs``,
                ``conditions``, ``group``, ``order``, ``limit``, ``offset`` and
                ``options``

        Returns:
            Tuple[str, Tuple]: SphinxQL and its bind values
        """
        filters = dict(filters or {})
        where, params = self._conditions(query, filters)
        clauses = [
            self._from(filters),
            where,
            self._group_by(filters),
            self._order_by(filters),
            self._limits(filters),
            self._options(filters),
        ]
        return " ".join(clause for clause in clauses if clause), params

    def insert(self, id: Id, attributes: Union[Attributes, List[Attributes]]) -> Tuple[str, Tuple]:
        """Build an INSERT of one document, or several when ``id`` is a list."""
        return self._into("INSERT", id, attributes)

    def replace(self, id: Id, attributes: Union[Attributes, List[Attributes]]) -> Tuple[str, Tuple]:
        """Build a REPLACE of one document, or several when ``id`` is a list."""
        return self._into("REPLACE", id, attributes)

    def update(self, id: Id, attributes: Attributes) -> Tuple[str, Tuple]:
        """Build an UPDATE of the given attributes for one or several documents."""
        set_items = []
        params: List[Any] = []
        for name, value in attributes.items():
            set_items.append(f"{name} = {self._placeholder(value)}")
            self._extend(params, value)

        where, ids = self._id_condition(id)
        sql = f"UPDATE {self.index_name} SET {', '.join(set_items)} WHERE {where}"
        return sql, tuple(params) + ids

    def delete(self, id: Id) -> Tuple[str, Tuple]:
        """Build a DELETE of one or several documents."""
        where, ids = self._id_condition(id)
        return f"DELETE FROM {self.index_name} WHERE {where}", ids

    def _fields(self, filters: Dict[str, Any]) -> List[str]:
        fields = [str(field) for field in filters.get('attrs', ['*'])]
        if 'relevance' in self._normalize_order(filters):
            if not any(re.search(r'\brelevance\b', field) for field in fields):
                fields.append("WEIGHT() AS relevance")
        return fields

    def _from(self, filters: Dict[str, Any]) -> str:
        return f"SELECT {', '.join(self._fields(filters))} FROM {self.index_name}"

    def _conditions(self, query: str, filters: Dict[str, Any]) -> Tuple[Optional[str], Tuple]:
        expressions = []
        params: List[Any] = []

        if query:
            expressions.append("MATCH(?)")
            params.append(query)

        if 'conditions' in filters:
            conditions = filters['conditions']
            if isinstance(conditions, str):
                expressions.append(conditions)
            else:
                expressions.append(conditions[0])
                params.extend(conditions[1:])

        for name, value in filters.items():
            if name in self.RESERVED:
                continue
            fragment, values = Comparison.of(value).to_sql()
            expressions.append(f"{name} {fragment}")
            params.extend(values)

        if not expressions:
            return None, ()
        return "WHERE " + " AND ".join(expressions), tuple(params)

    @staticmethod
    def _normalize_order(filters: Dict[str, Any]) -> Dict[str, str]:
        order = filters.get('order')
        if not order:
            return {}
        if isinstance(order, dict):
            items = order.items()
        elif isinstance(order, str):
            items = [(order, None)]
        else:
            items = [(item, None) if isinstance(item, str) else tuple(item) for item in order]
        return {str(name): str(direction or 'asc') for name, direction in items}

    def _order_by(self, filters: Dict[str, Any]) -> Optional[str]:
        order = self._normalize_order(filters)
        if not order:
            return None
        return "ORDER BY " + ", ".join(f"{name} {direction.upper()}" for name, direction in order.items())

    @staticmethod
    def _limits(filters: Dict[str, Any]) -> Optional[str]:
        if 'limit' not in filters:
            return None
        return f"LIMIT {int(filters.get('offset') or 0)}, {int(filters['limit'])}"

    @staticmethod
    def _options(filters: Dict[str, Any]) -> Optional[str]:
        if 'options' not in filters:
            return None
        return "OPTION " + ", ".join(f"{name} = {value}" for name, value in filters['options'].items())

    @staticmethod
    def _group_by(filters: Dict[str, Any]) -> Optional[str]:
        if 'group' not in filters:
            return None
        return f"GROUP BY {filters['group']}"

    def _into(self, statement: str, id: Id, attributes: Union[Attributes, List[Attributes]]) -> Tuple[str, Tuple]:
        ids = list(id) if isinstance(id, (list, tuple)) else [id]
        if isinstance(attributes, dict):
            attributes = [attributes] * len(ids)
        if len(attributes) != len(ids):
            raise ValueError(f"Got {len(ids)} ids but {len(attributes)} attribute sets")

        columns = list(attributes[0].keys()) + ['id']
        for position, values in enumerate(attributes[1:], 1):
            if set(values) != set(attributes[0]):
                raise ValueError(
                    f"Attribute set {position} has columns {sorted(values)}, expected {sorted(attributes[0])}"
                )

        rows = []
        params: List[Any] = []
        for document_id, values in zip(ids, attributes):
            row = dict(values)
            row['id'] = document_id
            placeholders = []
            for column in columns:
                placeholders.append(self._placeholder(row[column]))
                self._extend(params, row[column])
            rows.append(f"({', '.join(placeholders)})")

        sql = f"{statement} INTO {self.index_name} ({', '.join(columns)}) VALUES {', '.join(rows)}"
        return sql, tuple(params)

    @staticmethod
    def _id_condition(id: Id) -> Tuple[str, Tuple]:
        if isinstance(id, (list, tuple)):
            return f"id IN({', '.join('?' for _ in id)})", tuple(id)
        return "id = ?", (id,)

    @staticmethod
    def _placeholder(value: Any) -> str:
        # Multi-value attributes take one placeholder per element
        if isinstance(value, (list, tuple)):
            return f"({', '.join('?' for _ in value)})"
        return "?"

    @staticmethod
    def _extend(params: List[Any], value: Any) -> None:
        if isinstance(value, (list, tuple)):
            params.extend(value)
        else:
            params.append(value)
