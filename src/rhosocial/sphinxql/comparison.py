# src/rhosocial/sphinxql/comparison.py
"""Attribute comparisons used in SphinxQL WHERE clauses.

A filter value given to ``QueryBuilder.select`` is turned into a Comparison
with ``Comparison.of``: scalars compare for equality, lists and tuples become
``IN``, and a step-1 ``range`` becomes ``BETWEEN``. Any comparison can be
negated with ``~``::

    {"views": gte(100), "author_id": ~in_([4, 7])}
"""

from typing import Any, Iterable, List, Tuple


class Comparison:
    """Base class for a comparison against one attribute."""

    def __init__(self, value: Any):
        self.value = value

    @classmethod
    def of(cls, value: Any) -> 'Comparison':
        """Comparison for a plain filter value."""
        if isinstance(value, Comparison):
            return value
        if isinstance(value, range):
            if value.step == 1 and len(value) > 0:
                return Between(value.start, value.stop - 1)
            return In(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return In(value)
        return Equal(value)

    def to_sql(self) -> Tuple[str, Tuple]:
        """SQL fragment following the attribute name, and its bind values.

        Returns:
            Tuple[str, Tuple]: e.g. ``("> ?", (10,))``
        """
        raise NotImplementedError

    def inverse(self) -> 'Comparison':
        raise NotImplementedError

    def __invert__(self) -> 'Comparison':
        return self.inverse()

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and self.value == other.value

    def __hash__(self):
        return hash((type(self), repr(self.value)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class _Operator(Comparison):
    operator = ""

    def to_sql(self) -> Tuple[str, Tuple]:
        return f"{self.operator} ?", (self.value,)


class Equal(_Operator):
    operator = "="

    def inverse(self) -> Comparison:
        return NotEqual(self.value)


class NotEqual(_Operator):
    operator = "!="

    def inverse(self) -> Comparison:
        return Equal(self.value)


class GreaterThan(_Operator):
    operator = ">"

    def inverse(self) -> Comparison:
        return LessThanOrEqual(self.value)


class GreaterThanOrEqual(_Operator):
    operator = ">="

    def inverse(self) -> Comparison:
        return LessThan(self.value)


class LessThan(_Operator):
    operator = "<"

    def inverse(self) -> Comparison:
        return GreaterThanOrEqual(self.value)


class LessThanOrEqual(_Operator):
    operator = "<="

    def inverse(self) -> Comparison:
        return GreaterThan(self.value)


class Between(Comparison):
    """Inclusive range ``BETWEEN min AND max``."""

    keyword = "BETWEEN"

    def __init__(self, minimum: Any, maximum: Any):
        super().__init__((minimum, maximum))

    def to_sql(self) -> Tuple[str, Tuple]:
        return f"{self.keyword} ? AND ?", tuple(self.value)

    def inverse(self) -> Comparison:
        return Outside(*self.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value[0]!r}, {self.value[1]!r})"


class Outside(Between):
    keyword = "NOT BETWEEN"

    def inverse(self) -> Comparison:
        return Between(*self.value)


class In(Comparison):
    """Membership in a non-empty list of values."""

    keyword = "IN"

    def __init__(self, values: Iterable[Any]):
        values = list(values)
        if not values:
            raise ValueError(f"{type(self).__name__} needs at least one value")
        super().__init__(values)

    def to_sql(self) -> Tuple[str, Tuple]:
        placeholders = ", ".join("?" for _ in self.value)
        return f"{self.keyword} ({placeholders})", tuple(self.value)

    def inverse(self) -> Comparison:
        return NotIn(self.value)


class NotIn(In):
    keyword = "NOT IN"

    def inverse(self) -> Comparison:
        return In(self.value)


def eq(value: Any) -> Comparison:
    return Equal(value)


def neq(value: Any) -> Comparison:
    return NotEqual(value)


def gt(value: Any) -> Comparison:
    return GreaterThan(value)


def gte(value: Any) -> Comparison:
    return GreaterThanOrEqual(value)


def lt(value: Any) -> Comparison:
    return LessThan(value)


def lte(value: Any) -> Comparison:
    return LessThanOrEqual(value)


def between(minimum: Any, maximum: Any) -> Comparison:
    return Between(minimum, maximum)


def outside(minimum: Any, maximum: Any) -> Comparison:
    return Outside(minimum, maximum)


def in_(values: List[Any]) -> Comparison:
    return In(values)


def not_in(values: List[Any]) -> Comparison:
    return NotIn(values)
