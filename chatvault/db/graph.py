"""Schema graph helpers used to bind live queries to the tables they read."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

from sqlalchemy import MetaData, Table, inspect
from sqlalchemy.orm import Mapper, RelationshipProperty
from sqlalchemy.sql.selectable import Alias, TableClause

from chatvault.errors import SubscriptionError

_PROPAGATING_DELETE_ACTIONS = {"CASCADE", "SET NULL", "SET DEFAULT"}


def resolve_table(source: Any, metadata: MetaData) -> Table:
    """Resolve a query source to a concrete table registered in ``metadata``.

    Accepts a table name, a ``Table``, a mapped class, an ``aliased()`` entity, or a
    plain alias of a table. Derived sources (subqueries, CTEs, text and function
    expressions) cannot be attributed to a table and raise ``SubscriptionError``.
    """

    table: Any = None
    if isinstance(source, str):
        table = metadata.tables.get(source)
        if table is None:
            raise SubscriptionError(f"Unknown table '{source}'.")
    elif isinstance(source, Table):
        table = source
    elif isinstance(source, Alias) and isinstance(source.element, Table):
        table = source.element
    elif isinstance(source, TableClause) and not isinstance(source, Alias):
        table = metadata.tables.get(source.name)
    else:
        mapper = _mapper_for(source)
        if mapper is not None:
            table = mapper.local_table

    if not isinstance(table, Table):
        raise SubscriptionError(
            f"Cannot resolve query source {source!r} to a concrete table; "
            "live updates cannot be guaranteed for derived sources."
        )
    if metadata.tables.get(table.name) is not table:
        raise SubscriptionError(f"Table '{table.name}' is not part of the store schema.")
    return table


def mapper_for(source: Any) -> Mapper | None:
    """Return the ORM mapper behind a mapped class or aliased entity, if any."""

    return _mapper_for(source)


def resolve_relation_path(mapper: Mapper, path: str) -> list[RelationshipProperty]:
    """Walk a dotted relationship path (``"people.messages"``) from ``mapper``."""

    hops: list[RelationshipProperty] = []
    current = mapper
    for name in path.split("."):
        name = name.strip()
        relationship = current.relationships.get(name) if name else None
        if relationship is None:
            raise SubscriptionError(
                f"'{current.class_.__name__}' has no relationship '{name}' (path '{path}')."
            )
        hops.append(relationship)
        current = relationship.mapper
    return hops


def relation_path_tables(hops: Iterable[RelationshipProperty]) -> set[str]:
    """Return the names of every table reached by a relationship path."""

    names: set[str] = set()
    for relationship in hops:
        names.add(relationship.mapper.local_table.name)
        if relationship.secondary is not None:
            names.add(relationship.secondary.name)
    return names


def cascade_closure(metadata: MetaData, table_names: Iterable[str]) -> set[str]:
    """Expand deleted tables with every table the database rewrites via ON DELETE."""

    dependents: dict[str, set[str]] = {}
    for table in metadata.tables.values():
        for fk in table.foreign_keys:
            action = (fk.ondelete or "").upper()
            if action in _PROPAGATING_DELETE_ACTIONS:
                dependents.setdefault(fk.column.table.name, set()).add(table.name)

    seen = set(table_names)
    queue = deque(seen)
    while queue:
        name = queue.popleft()
        for child in dependents.get(name, ()):
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return seen


def _mapper_for(source: Any) -> Mapper | None:
    info = inspect(source, raiseerr=False)
    if info is None:
        return None
    mapper = getattr(info, "mapper", None)
    return mapper if isinstance(mapper, Mapper) else None
