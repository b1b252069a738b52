"""
Predicate building: filter maps to parameterized WHERE fragments.

A filter map is an ordered mapping of column to predicate. Callers either
build predicates directly:

    {"state": In((0, 1)), "create_date": [Compare(Comparator.GTE, a), Compare(Comparator.LT, b)]}

or use the declarative shorthand, which is normalized into the same form:

    {"state": [0, 1], "create_date": {Comparator.GTE: a, Comparator.LT: b}}

Fragments use psycopg's ``%s`` placeholder. Fragment order and parameter order
always agree; params are bound positionally.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Collection,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from recordkit.errors import UnknownFieldError

PLACEHOLDER = "%s"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """Double-quote a column or table name after checking it is a plain identifier."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


class Comparator(str, enum.Enum):
    """Range comparators usable in a filter map."""

    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="

    @classmethod
    def parse(cls, key: Any) -> "Comparator":
        """Accept a member, its symbol (``">="``) or its name (``"GTE"``)."""
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            pass
        try:
            return cls[str(key).upper()]
        except KeyError:
            raise ValueError(f"Unknown comparator: {key!r}") from None


# Lower bounds before upper bounds, so {GTE: a, LT: b} binds [a, b].
_COMPARATOR_ORDER = {Comparator.GT: 0, Comparator.GTE: 1, Comparator.LT: 2, Comparator.LTE: 3}


@dataclass(frozen=True)
class Equals:
    value: Any


@dataclass(frozen=True)
class In:
    values: Tuple[Any, ...]

    def __init__(self, values: Sequence[Any]) -> None:
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class Compare:
    op: Comparator
    value: Any

    def __init__(self, op: Union[Comparator, str], value: Any) -> None:
        object.__setattr__(self, "op", Comparator.parse(op))
        object.__setattr__(self, "value", value)


Predicate = Union[Equals, In, Compare]
FilterMap = Mapping[str, Any]
Fragments = Tuple[List[str], List[Any]]

_PREDICATE_TYPES = (Equals, In, Compare)


def _sorted_compares(predicates: Sequence[Predicate]) -> Tuple[Predicate, ...]:
    if all(isinstance(p, Compare) for p in predicates):
        return tuple(sorted(predicates, key=lambda p: _COMPARATOR_ORDER[p.op]))
    return tuple(predicates)


def normalize(value: Any) -> Tuple[Predicate, ...]:
    """
    Turn one filter-map value into its predicates.

    - a predicate, or a sequence of predicates, is kept as is;
    - a mapping of comparator -> value becomes one Compare per key;
    - any other list/tuple/set becomes an In;
    - anything else (strings included) becomes an Equals.
    """
    if isinstance(value, _PREDICATE_TYPES):
        return (value,)
    if isinstance(value, Mapping):
        return _sorted_compares([Compare(op, operand) for op, operand in value.items()])
    if isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
        if items and all(isinstance(item, _PREDICATE_TYPES) for item in items):
            return _sorted_compares(items)
        return (In(items),)
    return (Equals(value),)


def bind_param(value: Any) -> Any:
    """Unwrap values psycopg would not bind the way the columns store them."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def render(column: str, predicate: Predicate) -> Fragments:
    """Render a single predicate on ``column``."""
    quoted = quote_identifier(column)
    if isinstance(predicate, Equals):
        if predicate.value is None:
            return [f"{quoted} IS NULL"], []
        return [f"{quoted} = {PLACEHOLDER}"], [bind_param(predicate.value)]
    if isinstance(predicate, In):
        if not predicate.values:
            return ["FALSE"], []
        placeholders = ", ".join(PLACEHOLDER for _ in predicate.values)
        return [f"{quoted} IN ({placeholders})"], [bind_param(v) for v in predicate.values]
    return [f"{quoted} {predicate.op.value} {PLACEHOLDER}"], [bind_param(predicate.value)]


def build_where(
    filters: Optional[FilterMap],
    columns: Optional[Collection[str]] = None,
    base_where: Sequence[str] = (),
    base_params: Sequence[Any] = (),
    extra: Optional[Callable[[], Fragments]] = None,
) -> Fragments:
    """
    Translate a filter map into WHERE fragments and positional params.

    Parameters
    ----------
    filters : mapping | None
        Column -> value / sequence / comparator mapping / predicate(s), walked
        in insertion order.
    columns : collection[str] | None
        Known columns; filter keys outside it raise UnknownFieldError.
    base_where, base_params : sequence
        Fragments and params placed first, for callers composing base filters.
    extra : callable | None
        Returns additional (fragments, params) appended after the filter map.

    Returns
    -------
    tuple[list[str], list]
        Fragments and params in matching order.
    """
    where: List[str] = list(base_where)
    params: List[Any] = list(base_params)

    for column, value in (filters or {}).items():
        if columns is not None and column not in columns:
            raise UnknownFieldError(column)
        for predicate in normalize(value):
            fragment, fragment_params = render(column, predicate)
            where.extend(fragment)
            params.extend(fragment_params)

    if extra is not None:
        extra_where, extra_params = extra()
        where.extend(extra_where)
        params.extend(extra_params)

    return where, params


@dataclass(frozen=True)
class WhereExtension:
    """
    Extra filter options a finder accepts beyond its columns.

    Keys listed in ``keys`` are pulled out of the filter map and handed to
    ``build``, whose fragments are appended after the generic ones.
    """

    keys: FrozenSet[str]
    build: Callable[[Mapping[str, Any]], Fragments]

    def split(self, query: Mapping[str, Any]) -> Tuple[dict, dict]:
        """Separate ``query`` into (column filters, extension options)."""
        filters = {k: v for k, v in query.items() if k not in self.keys}
        options = {k: v for k, v in query.items() if k in self.keys}
        return filters, options


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def date_window(
    column: str,
    lower_key: str = "from",
    upper_key: str = "to",
    inclusive_lower: bool = False,
    inclusive_upper: bool = False,
) -> WhereExtension:
    """
    Extension restricting ``column`` to a timestamp window given by two options.

    Bounds are exclusive unless requested otherwise; a one-element sequence is
    unwrapped and values are coerced to int.
    """
    lower_op = Comparator.GTE if inclusive_lower else Comparator.GT
    upper_op = Comparator.LTE if inclusive_upper else Comparator.LT

    def build(options: Mapping[str, Any]) -> Fragments:
        where: List[str] = []
        params: List[Any] = []
        for key, op in ((lower_key, lower_op), (upper_key, upper_op)):
            bound = _first(options.get(key))
            if bound is None:
                continue
            fragment, fragment_params = render(column, Compare(op, int(bound)))
            where.extend(fragment)
            params.extend(fragment_params)
        return where, params

    return WhereExtension(keys=frozenset({lower_key, upper_key}), build=build)


__all__ = [
    "Compare",
    "Comparator",
    "Equals",
    "FilterMap",
    "Fragments",
    "In",
    "PLACEHOLDER",
    "Predicate",
    "WhereExtension",
    "bind_param",
    "build_where",
    "date_window",
    "normalize",
    "quote_identifier",
    "render",
]
