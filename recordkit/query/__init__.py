"""
Query package for recordkit.

Re-exports predicate building and statement assembly. Finders live in
``recordkit.query.finder`` and depend on the domain package, so they are not
imported here.
"""

from recordkit.query.builder import (
    Direction,
    QueryRequest,
    generate_insert,
    generate_query,
    generate_update,
)
from recordkit.query.predicates import (
    Compare,
    Comparator,
    Equals,
    In,
    WhereExtension,
    build_where,
    date_window,
    normalize,
)

__all__ = [
    "Compare",
    "Comparator",
    "Direction",
    "Equals",
    "In",
    "QueryRequest",
    "WhereExtension",
    "build_where",
    "date_window",
    "generate_insert",
    "generate_query",
    "generate_update",
    "normalize",
]
