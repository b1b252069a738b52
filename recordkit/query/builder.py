"""
Single-table statement assembly.

``generate_query`` turns a QueryRequest into SQL clauses plus positional
params; ``generate_insert`` and ``generate_update`` build the one-row
statements used when storing records. Clauses are returned as a list and
joined with spaces by the executor.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, List, Mapping, Optional, Sequence, Tuple, Union

from recordkit.query.predicates import (
    PLACEHOLDER,
    FilterMap,
    Fragments,
    bind_param,
    build_where,
    quote_identifier,
)


class Direction(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"

    def flipped(self) -> "Direction":
        return Direction.DESC if self is Direction.ASC else Direction.ASC


SortKey = Union[str, Tuple[str, Union[Direction, str]]]


def _sort_pair(key: SortKey) -> Tuple[str, Direction]:
    if isinstance(key, str):
        return key, Direction.ASC
    column, direction = key
    if isinstance(direction, Direction):
        return column, direction
    return column, Direction(str(direction).upper())


@dataclass
class QueryRequest:
    """
    Everything needed to render one SELECT.

    ``projection`` entries are trusted SQL expressions (``"COUNT(*) AS count"``);
    sort and group columns are identifiers and get quoted.
    """

    table: str
    projection: Sequence[str] = ("*",)
    filters: FilterMap = field(default_factory=dict)
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Sequence[SortKey] = ()
    group_by: Sequence[str] = ()
    reverse: bool = False
    base_where: Sequence[str] = ()
    base_params: Sequence[Any] = ()

    def sort_pairs(self) -> List[Tuple[str, Direction]]:
        pairs = [_sort_pair(key) for key in self.sort]
        if self.reverse:
            pairs = [(column, direction.flipped()) for column, direction in pairs]
        return pairs


def generate_query(
    request: QueryRequest,
    columns: Optional[Collection[str]] = None,
    extra: Optional[Callable[[], Fragments]] = None,
) -> Tuple[List[str], List[Any]]:
    """
    Render ``request`` as SQL clauses and params.

    WHERE params come first, then LIMIT and OFFSET params, matching placeholder
    order in the joined statement.
    """
    where, params = build_where(
        request.filters,
        columns=columns,
        base_where=request.base_where,
        base_params=request.base_params,
        extra=extra,
    )

    sql = [f"SELECT {', '.join(request.projection)}", f"FROM {quote_identifier(request.table)}"]
    if where:
        sql.append("WHERE " + " AND ".join(where))
    if request.group_by:
        sql.append("GROUP BY " + ", ".join(quote_identifier(c) for c in request.group_by))
    sort_pairs = request.sort_pairs()
    if sort_pairs:
        sql.append(
            "ORDER BY " + ", ".join(f"{quote_identifier(c)} {d.value}" for c, d in sort_pairs)
        )
    if request.limit is not None:
        sql.append(f"LIMIT {PLACEHOLDER}")
        params.append(int(request.limit))
    if request.offset is not None:
        sql.append(f"OFFSET {PLACEHOLDER}")
        params.append(int(request.offset))
    return sql, params


def generate_insert(table: str, pkey: str, values: Mapping[str, Any]) -> Tuple[List[str], List[Any]]:
    """INSERT one row and return its generated primary key."""
    columns = list(values)
    sql = [
        f"INSERT INTO {quote_identifier(table)}",
        "(" + ", ".join(quote_identifier(c) for c in columns) + ")",
        "VALUES (" + ", ".join(PLACEHOLDER for _ in columns) + ")",
        f"RETURNING {quote_identifier(pkey)}",
    ]
    return sql, [bind_param(values[c]) for c in columns]


def generate_update(
    table: str, pkey: str, pkey_value: Any, values: Mapping[str, Any]
) -> Tuple[List[str], List[Any]]:
    """UPDATE one row by primary key."""
    columns = list(values)
    sql = [
        f"UPDATE {quote_identifier(table)}",
        "SET " + ", ".join(f"{quote_identifier(c)} = {PLACEHOLDER}" for c in columns),
        f"WHERE {quote_identifier(pkey)} = {PLACEHOLDER}",
    ]
    return sql, [bind_param(values[c]) for c in columns] + [pkey_value]


__all__ = [
    "Direction",
    "QueryRequest",
    "SortKey",
    "generate_insert",
    "generate_query",
    "generate_update",
]
