"""Declarative live-query definitions with statically bound dependency sets.

A ``LiveQueryBuilder`` composes a SQLAlchemy ``select`` from a primary source,
explicit joins and nested relationship loads. Every source it is given is
resolved against the store metadata at build time, so the resulting
``LiveQueryDefinition`` carries the exact set of tables whose changes must
re-execute it::

    chats = (
        LiveQueryBuilder(CanonicalConversation, name="chats")
        .outerjoin(Conversation, Conversation.canonical_conversation_id == CanonicalConversation.id)
        .columns(CanonicalConversation.id, func.count(Conversation.id).label("size"))
        .group_by(CanonicalConversation.id)
        .build()
    )
    chats.tables  # frozenset({"canonical_conversation", "conversation"})
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import MetaData, Select, select
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Session, selectinload

from chatvault.db.graph import mapper_for, relation_path_tables, resolve_relation_path, resolve_table
from chatvault.errors import SubscriptionError
from chatvault.db.base import Base

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class LiveQueryDefinition(Generic[T]):
    """Executable query plus the tables it depends on.

    ``key`` identifies the query shape; two definitions with the same key are
    interchangeable for caching and subscription purposes.
    """

    name: str
    key: str
    tables: frozenset[str]
    run: Callable[[Session], T] = field(compare=False, repr=False)
    statement: Select | None = field(default=None, compare=False, repr=False)

    def execute(self, db: Session) -> T:
        return self.run(db)

    @classmethod
    def custom(
        cls,
        name: str,
        run: Callable[[Session], T],
        *,
        depends_on: Sequence[Any],
        key: str | None = None,
        metadata: MetaData | None = None,
    ) -> LiveQueryDefinition[T]:
        """Wrap a hand-written reader with an explicitly declared dependency set."""

        registry = metadata if metadata is not None else Base.metadata
        if not depends_on:
            raise SubscriptionError(f"Live query '{name}' declares no dependencies.")
        tables = frozenset(resolve_table(source, registry).name for source in depends_on)
        shape = key or f"{name}:{_callable_name(run)}:{','.join(sorted(tables))}"
        return cls(name=name, key=shape, tables=tables, run=run)


class LiveQueryBuilder:
    """Builder for ``LiveQueryDefinition`` objects."""

    def __init__(self, source: Any, *, name: str | None = None, metadata: MetaData | None = None):
        self._metadata = metadata if metadata is not None else Base.metadata
        self._primary = resolve_table(source, self._metadata)
        self._source = self._primary if isinstance(source, str) else source
        self._mapper = mapper_for(source)
        self._name = name or self._primary.name
        self._tables: set[str] = {self._primary.name}
        self._joins: list[tuple[Any, Any, bool]] = []
        self._load_paths: list[str] = []
        self._columns: tuple[Any, ...] = ()
        self._criteria: list[Any] = []
        self._group_by: list[Any] = []
        self._order_by: list[Any] = []
        self._limit: int | None = None
        self._transform: Callable[[list[Any]], Any] | None = None
        self._key: str | None = None

    def join(self, target: Any, onclause: Any = None, *, isouter: bool = False) -> LiveQueryBuilder:
        table = resolve_table(target, self._metadata)
        self._tables.add(table.name)
        self._joins.append((table if isinstance(target, str) else target, onclause, isouter))
        return self

    def outerjoin(self, target: Any, onclause: Any = None) -> LiveQueryBuilder:
        return self.join(target, onclause, isouter=True)

    def load(self, *paths: str) -> LiveQueryBuilder:
        """Eager-load nested relationships; every table along each path becomes a dependency."""

        if self._mapper is None:
            raise SubscriptionError(f"Relationship loads require a mapped source, got {self._source!r}.")
        for path in paths:
            self._tables.update(relation_path_tables(resolve_relation_path(self._mapper, path)))
            self._load_paths.append(path)
        return self

    def columns(self, *columns: Any) -> LiveQueryBuilder:
        self._columns = columns
        return self

    def where(self, *criteria: Any) -> LiveQueryBuilder:
        self._criteria.extend(criteria)
        return self

    def group_by(self, *clauses: Any) -> LiveQueryBuilder:
        self._group_by.extend(clauses)
        return self

    def order_by(self, *clauses: Any) -> LiveQueryBuilder:
        self._order_by.extend(clauses)
        return self

    def limit(self, limit: int) -> LiveQueryBuilder:
        self._limit = limit
        return self

    def depends_on(self, *sources: Any) -> LiveQueryBuilder:
        """Declare extra tables read by correlated subqueries or row transforms."""

        for source in sources:
            self._tables.add(resolve_table(source, self._metadata).name)
        return self

    def transform(self, fn: Callable[[list[Any]], T]) -> LiveQueryBuilder:
        self._transform = fn
        return self

    def key(self, key: str) -> LiveQueryBuilder:
        self._key = key
        return self

    def build(self) -> LiveQueryDefinition[Any]:
        statement = self._statement()
        returns_entities = not self._columns and self._mapper is not None
        transform = self._transform
        tables = frozenset(self._tables)

        def run(db: Session) -> Any:
            if returns_entities:
                rows: list[Any] = list(db.scalars(statement).unique().all())
            else:
                rows = [dict(row) for row in db.execute(statement).mappings().all()]
            return transform(rows) if transform is not None else rows

        key = self._key or _shape_key(self._name, statement, tables, transform)
        return LiveQueryDefinition(name=self._name, key=key, tables=tables, run=run, statement=statement)

    def _statement(self) -> Select:
        if self._columns:
            stmt = select(*self._columns).select_from(self._source)
        elif self._mapper is not None:
            stmt = select(self._source)
        else:
            stmt = select(self._primary)
        for target, onclause, isouter in self._joins:
            if onclause is not None:
                stmt = stmt.join(target, onclause, isouter=isouter)
            else:
                stmt = stmt.join(target, isouter=isouter)
        if self._load_paths:
            stmt = stmt.options(*(self._loader(path) for path in self._load_paths))
        if self._criteria:
            stmt = stmt.where(*self._criteria)
        if self._group_by:
            stmt = stmt.group_by(*self._group_by)
        if self._order_by:
            stmt = stmt.order_by(*self._order_by)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def _loader(self, path: str) -> Any:
        hops = resolve_relation_path(self._mapper, path)
        option = selectinload(hops[0].class_attribute)
        for hop in hops[1:]:
            option = option.selectinload(hop.class_attribute)
        return option


def _shape_key(name: str, statement: Select, tables: frozenset[str], transform: Any) -> str:
    compiled = statement.compile(dialect=sqlite.dialect())
    params = sorted((k, repr(v)) for k, v in compiled.params.items())
    return "|".join(
        [
            name,
            str(compiled),
            repr(params),
            ",".join(sorted(tables)),
            _callable_name(transform) if transform is not None else "",
        ]
    )


def _callable_name(fn: Any) -> str:
    return f"{getattr(fn, '__module__', '')}.{getattr(fn, '__qualname__', repr(fn))}"
