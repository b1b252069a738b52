"""
Finders: query execution and hydration for one record variant.

A finder composes the predicate builder, statement assembly and the storage
backend. Each call is a single blocking round trip returning fully hydrated
records; finders keep no per-call state.

Archived rows are handled according to ``archive_mode``:

- ``soft``: only ``get_by_id`` hides archived rows (unless asked not to);
- ``hard``: ``get_by_id``, ``get_by_query``, ``count_by_query`` and grouped
  aggregates all hide them, unless the query filters on ``archived`` itself.

``get_all`` never filters archived rows.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, ClassVar, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from recordkit.config import ArchiveMode, get_settings
from recordkit.domain.model import Model
from recordkit.errors import NotFoundError
from recordkit.infrastructure.backend import Row, StorageBackend, default_backend
from recordkit.query.builder import Direction, QueryRequest, SortKey, generate_query
from recordkit.query.predicates import PLACEHOLDER, Fragments, WhereExtension, build_where, quote_identifier
from recordkit.utils.logging import get_logger

log = get_logger(__name__)

M = TypeVar("M", bound=Model)

COUNT_PROJECTION = "COUNT(*) AS count"


class ModelFinder(Generic[M]):
    """
    Query helper bound to a record class.

    Parameters
    ----------
    backend : StorageBackend, optional
        Statement executor. Defaults to the pooled psycopg backend.
    archive_mode : {"soft", "hard"}, optional
        Archived-row policy. Defaults to ``settings.archive_mode``.
    where_extension : WhereExtension, optional
        Extra filter options (e.g. a date window) appended after the generic
        predicates.
    """

    model: ClassVar[Type[Model]]

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        *,
        archive_mode: Optional[ArchiveMode] = None,
        where_extension: Optional[WhereExtension] = None,
    ) -> None:
        self.backend = backend or default_backend()
        self.archive_mode: ArchiveMode = archive_mode or get_settings().archive_mode
        if self.archive_mode not in ("soft", "hard"):
            raise ValueError(f"Unknown archive mode '{self.archive_mode}'")
        self.where_extension = where_extension

    # Query assembly

    def columns(self) -> set:
        return set(self.model.schema) | {self.model.pkey}

    def _base_filters(self, query: Mapping[str, Any]) -> Tuple[List[str], List[Any]]:
        if self.archive_mode == "hard" and "archived" not in query:
            return [f"{quote_identifier('archived')} = {PLACEHOLDER}"], [0]
        return [], []

    def request(
        self,
        projection: Sequence[str],
        query: Optional[Mapping[str, Any]] = None,
        count: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Sequence[SortKey] = (),
        group_by: Sequence[str] = (),
        reverse: bool = False,
        include_archived: bool = False,
    ) -> Tuple[QueryRequest, Optional[Callable[[], Fragments]]]:
        """Build the QueryRequest and the extension callback for ``query``."""
        query = dict(query or {})
        extra: Optional[Callable[[], Fragments]] = None
        if self.where_extension is not None:
            query, options = self.where_extension.split(query)
            extra = partial(self.where_extension.build, options)

        base_where, base_params = ([], []) if include_archived else self._base_filters(query)
        request = QueryRequest(
            table=self.model.table,
            projection=tuple(projection),
            filters=query,
            limit=count,
            offset=offset,
            sort=tuple(sort),
            group_by=tuple(group_by),
            reverse=reverse,
            base_where=base_where,
            base_params=base_params,
        )
        return request, extra

    def generate_query(
        self,
        projection: Sequence[str],
        query: Optional[Mapping[str, Any]] = None,
        count: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Sequence[SortKey] = (),
        group_by: Sequence[str] = (),
        reverse: bool = False,
        include_archived: bool = False,
    ) -> Tuple[List[str], List[Any]]:
        """Render a SELECT over this finder's table as (clauses, params)."""
        request, extra = self.request(
            projection, query, count, offset, sort, group_by, reverse, include_archived
        )
        return generate_query(request, columns=self.columns(), extra=extra)

    def generate_where(self, query: Optional[Mapping[str, Any]] = None) -> Tuple[List[str], List[Any]]:
        """WHERE fragments and params a query over ``query`` would use."""
        request, extra = self.request(["*"], query)
        return build_where(
            request.filters,
            columns=self.columns(),
            base_where=request.base_where,
            base_params=request.base_params,
            extra=extra,
        )

    # Execution

    def execute(self, sql: Sequence[str], params: Sequence[Any]) -> List[Row]:
        return self.backend.execute(" ".join(sql), list(params))

    def hydrate_models(self, rows: Iterable[Mapping[str, Any]]) -> List[M]:
        return [self.model.deserialize(row) for row in rows]  # type: ignore[misc]

    def get_by_id(self, pkey_value: int, include_archived: bool = False) -> M:
        """
        Fetch one record by primary key.

        Raises
        ------
        NotFoundError
            If no row matches, or the row is archived and ``include_archived`` is False.
        """
        query: dict = {self.model.pkey: pkey_value}
        if not include_archived:
            query["archived"] = 0
        sql, params = self.generate_query(["*"], query, count=1, include_archived=include_archived)
        rows = self.execute(sql, params)
        if not rows:
            raise NotFoundError(self.model.__name__, pkey_value)
        return self.hydrate_models(rows)[0]

    def get_all(self) -> List[M]:
        sql, params = self.generate_query(
            ["*"], sort=[(self.model.pkey, Direction.ASC)], include_archived=True
        )
        return self.hydrate_models(self.execute(sql, params))

    def get_by_query(
        self,
        query: Optional[Mapping[str, Any]] = None,
        count: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Sequence[SortKey] = (),
        reverse: bool = False,
    ) -> List[M]:
        """
        Records matching ``query``, ordered by ``sort`` (primary key when empty).
        """
        sort = list(sort) or [(self.model.pkey, Direction.ASC)]
        sql, params = self.generate_query(["*"], query, count, offset, sort, reverse=reverse)
        rows = self.execute(sql, params)
        log.debug(
            "Hydrating rows",
            extra={"model": self.model.__name__, "rows": len(rows)},
        )
        return self.hydrate_models(rows)

    def count_by_query(self, query: Optional[Mapping[str, Any]] = None) -> int:
        sql, params = self.generate_query([COUNT_PROJECTION], query)
        rows = self.execute(sql, params)
        return int(rows[0]["count"]) if rows else 0

    def count_by_group(
        self,
        column: str,
        query: Optional[Mapping[str, Any]] = None,
        sort: Sequence[SortKey] = (),
    ) -> List[Row]:
        """Rows of ``{column: value, "count": n}``; groups with no rows are absent."""
        sql, params = self.generate_query(
            [quote_identifier(column), COUNT_PROJECTION], query, sort=sort, group_by=[column]
        )
        return self.execute(sql, params)


__all__ = ["COUNT_PROJECTION", "ModelFinder"]
