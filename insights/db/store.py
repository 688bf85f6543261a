"""Query client for the relational store behind the ERP modules.

The client reflects tables on first use, so it works against whatever schema
the store exposes. Queries are built fluently and run with ``execute()``::

    store.table("inventory") \\
        .select("id, items(name), available_quantity", count="exact") \\
        .eq("warehouse_id", 3) \\
        .order("id", ascending=False) \\
        .limit(10) \\
        .execute()

A select entry of the form ``related(col1, col2)`` expands a many-to-one join
into a nested dict stored under ``related`` in each row.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy import MetaData, Table, func
from sqlalchemy import delete as sa_delete
from sqlalchemy import insert as sa_insert
from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from .realtime import DELETE, INSERT, UPDATE, ChangeChannel, ChangeEvent

logger = logging.getLogger(__name__)

_EMBED_RE = re.compile(r"^(\w+)\s*\((.*)\)$", re.DOTALL)
_NAME_RE = re.compile(r"^\w+$")

COUNT_EXACT = "exact"


class ExternalStoreError(Exception):
    """The store rejected or failed a query."""


@dataclass
class StoreResponse:
    """Rows returned by a query plus the optional exact count."""
    data: List[Dict[str, Any]] = field(default_factory=list)
    count: Optional[int] = None


def split_columns(columns: str) -> List[str]:
    """Split a select list on top-level commas, keeping embedded groups intact."""
    parts = []
    current = []
    depth = 0
    for ch in columns:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ExternalStoreError(f"Unbalanced parentheses in select list: {columns!r}")
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    if depth != 0:
        raise ExternalStoreError(f"Unbalanced parentheses in select list: {columns!r}")

    parts.append("".join(current).strip())
    return [p for p in parts if p]


class DataStore:
    """Entry point to the store: hands out table-scoped queries."""

    def __init__(self, engine, channel: ChangeChannel = None):
        self.engine = engine
        self.channel = channel or ChangeChannel()
        self._metadata = MetaData()
        self._lock = threading.Lock()

    def table(self, name: str) -> "Query":
        """Start a query against a table."""
        return Query(self, name)

    def reflect(self, name: str) -> Table:
        """Return the reflected table, loading it on first use."""
        with self._lock:
            if name in self._metadata.tables:
                return self._metadata.tables[name]
            try:
                return Table(name, self._metadata, autoload_with=self.engine)
            except NoSuchTableError:
                raise ExternalStoreError(f'relation "{name}" does not exist') from None
            except SQLAlchemyError as e:
                raise ExternalStoreError(_describe(e)) from e

    def forget(self, name: str = None):
        """Drop cached table metadata (all tables when name is None)."""
        with self._lock:
            if name is None:
                self._metadata.clear()
            elif name in self._metadata.tables:
                self._metadata.remove(self._metadata.tables[name])

    def notify(self, table: str, event_type: str, count: int):
        self.channel.publish(ChangeEvent(table=table, event_type=event_type, count=count))

    def __repr__(self):
        return f"<DataStore: {self.engine.url!r}>"


class Query:
    """A single table-scoped select, insert, update or delete."""

    def __init__(self, store: DataStore, table_name: str):
        self._store = store
        self._table_name = table_name
        self._action = "select"
        self._columns = "*"
        self._count = None
        self._head = False
        self._joins: Dict[str, Tuple[str, str]] = {}
        self._filters: List[Tuple[str, str, Any]] = []
        self._order: List[Tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._values: Union[Dict[str, Any], List[Dict[str, Any]], None] = None

    # Actions

    def select(self, columns: str = "*", count: str = None, head: bool = False,
               joins: Dict[str, Tuple[str, str]] = None) -> "Query":
        """
        Select columns.

        Args:
            columns: Comma-separated column list, "*" and "related(col, ...)" allowed
            count: "exact" to also return the number of matching rows
            head: Return only the count, no rows
            joins: Optional {related_table: (local_column, related_column)} hints
                used instead of foreign-key discovery
        """
        if count not in (None, COUNT_EXACT):
            raise ValueError(f"Unsupported count mode: {count}")
        self._action = "select"
        self._columns = columns
        self._count = count
        self._head = head
        self._joins = dict(joins or {})
        return self

    def insert(self, rows: Union[Dict[str, Any], Iterable[Dict[str, Any]]]) -> "Query":
        self._action = "insert"
        self._values = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def update(self, values: Dict[str, Any]) -> "Query":
        self._action = "update"
        self._values = dict(values)
        return self

    def delete(self) -> "Query":
        self._action = "delete"
        return self

    # Modifiers

    def eq(self, column: str, value: Any) -> "Query":
        self._filters.append((column, "eq", value))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        self._filters.append((column, "in", list(values)))
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        self._order.append((column, ascending))
        return self

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise ValueError(f"limit must not be negative, got {count}")
        self._limit = count
        return self

    # Execution

    def execute(self) -> StoreResponse:
        """
        Run the query.

        Raises:
            ExternalStoreError: On unknown tables/columns or database failures
        """
        table = self._store.reflect(self._table_name)
        try:
            if self._action == "select":
                return self._execute_select(table)
            if self._action == "insert":
                return self._execute_insert(table)
            if self._action == "update":
                return self._execute_update(table)
            return self._execute_delete(table)
        except SQLAlchemyError as e:
            logger.error(f"Query on {self._table_name} failed: {e}")
            raise ExternalStoreError(_describe(e)) from e
        except (ValueError, TypeError) as e:
            # Result processors reject values the column type cannot decode
            logger.error(f"Could not decode rows from {self._table_name}: {e}")
            raise ExternalStoreError(f"Could not decode rows from {self._table_name}: {e}") from e

    def _execute_select(self, table: Table) -> StoreResponse:
        layout, selected, from_clause = self._plan_select(table)
        clauses = self._where(table)

        stmt = sa_select(*selected).select_from(from_clause).where(*clauses)
        for column, ascending in self._order:
            col = _column(table, column)
            stmt = stmt.order_by(col.asc() if ascending else col.desc())
        if self._limit is not None:
            stmt = stmt.limit(self._limit)

        with self._store.engine.connect() as conn:
            data = []
            if not self._head:
                for mapping in conn.execute(stmt).mappings():
                    data.append(_shape_row(mapping, layout))

            count = None
            if self._count == COUNT_EXACT:
                count_stmt = sa_select(func.count()).select_from(table).where(*clauses)
                count = conn.execute(count_stmt).scalar_one()

        return StoreResponse(data=data, count=count)

    def _plan_select(self, table: Table):
        """Work out selected columns, the join tree and how to nest each row."""
        layout = []
        selected = []
        from_clause = table

        for index, token in enumerate(split_columns(self._columns)):
            match = _EMBED_RE.match(token)
            if match:
                name, inner = match.group(1), match.group(2)
                related = self._store.reflect(name).alias()
                onclause = self._relationship(table, related, name)
                from_clause = from_clause.outerjoin(related, onclause)

                columns = []
                for inner_name in split_columns(inner) or ["*"]:
                    if inner_name == "*":
                        columns.extend(c.name for c in related.columns)
                    else:
                        columns.append(_check_name(inner_name))
                fields = []
                for column in columns:
                    label = f"_e{index}_{column}"
                    selected.append(_column(related, column, name).label(label))
                    fields.append((column, label))
                layout.append(("embed", name, fields))
            elif token == "*":
                for col in table.columns:
                    selected.append(col)
                    layout.append(("plain", col.name, col.name))
            else:
                col = _column(table, _check_name(token))
                selected.append(col)
                layout.append(("plain", col.name, col.name))

        if not selected:
            raise ExternalStoreError(f"Empty select list for {table.name}")
        return layout, selected, from_clause

    def _relationship(self, table: Table, related, name: str):
        hint = self._joins.get(name)
        if hint:
            local, remote = hint
            return _column(table, local) == _column(related, remote, name)

        for fk in table.foreign_keys:
            if fk.column.table.name == name:
                return table.c[fk.parent.name] == related.c[fk.column.name]

        raise ExternalStoreError(
            f"Could not find a relationship between '{table.name}' and '{name}'"
        )

    def _where(self, table: Table) -> list:
        clauses = []
        for column, op, value in self._filters:
            col = _column(table, column)
            if op == "in":
                clauses.append(col.in_(value))
            elif value is None:
                clauses.append(col.is_(None))
            else:
                clauses.append(col == value)
        return clauses

    def _execute_insert(self, table: Table) -> StoreResponse:
        if not self._values:
            return StoreResponse(data=[], count=0)

        inserted = []
        with self._store.engine.begin() as conn:
            for row in self._values:
                for column in row:
                    _column(table, column)
                result = conn.execute(sa_insert(table).values(**row))
                record = dict(row)
                for col, value in zip(table.primary_key.columns, result.inserted_primary_key or ()):
                    record.setdefault(col.name, value)
                inserted.append(record)

        self._store.notify(table.name, INSERT, len(inserted))
        return StoreResponse(data=inserted, count=len(inserted))

    def _execute_update(self, table: Table) -> StoreResponse:
        clauses = self._require_filters(table, "UPDATE")
        for column in self._values:
            _column(table, column)

        with self._store.engine.begin() as conn:
            result = conn.execute(sa_update(table).where(*clauses).values(**self._values))
            count = result.rowcount

        self._store.notify(table.name, UPDATE, count)
        return StoreResponse(data=[], count=count)

    def _execute_delete(self, table: Table) -> StoreResponse:
        clauses = self._require_filters(table, "DELETE")

        with self._store.engine.begin() as conn:
            result = conn.execute(sa_delete(table).where(*clauses))
            count = result.rowcount

        self._store.notify(table.name, DELETE, count)
        return StoreResponse(data=[], count=count)

    def _require_filters(self, table: Table, action: str) -> list:
        clauses = self._where(table)
        if not clauses:
            raise ExternalStoreError(f"{action} on {table.name} requires a filter")
        return clauses


def _column(table, name: str, table_name: str = None):
    try:
        return table.c[name]
    except KeyError:
        raise ExternalStoreError(
            f"column {table_name or table.name}.{name} does not exist"
        ) from None


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name):
        raise ExternalStoreError(f"Invalid column reference: {name!r}")
    return name


def _shape_row(mapping, layout) -> Dict[str, Any]:
    row = {}
    for entry in layout:
        if entry[0] == "plain":
            row[entry[1]] = mapping[entry[2]]
        else:
            nested = {column: mapping[label] for column, label in entry[2]}
            # No match on the outer join
            row[entry[1]] = nested if any(v is not None for v in nested.values()) else None
    return row


def _describe(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)
