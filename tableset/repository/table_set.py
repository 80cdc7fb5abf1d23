import copy
import logging
import struct
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import Column, Table, delete, func, insert, inspect, literal_column, select, text, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.util import ClauseAdapter

from tableset.db.context import DbContext
from tableset.domain import PageList

logger = logging.getLogger(__name__)

T = TypeVar("T")


def page_offset(page_size: int, page_index: int) -> int:
    """Row offset of page `page_index` (1-based)."""
    return (page_index - 1) * page_size


_TRUE_STRINGS = frozenset({"1", "t", "true"})


def _to_float32(value) -> float:
    return struct.unpack("f", struct.pack("f", float(value)))[0]


class TableSet(Generic[T]):
    """Chainable query builder over one mapped record class.

    Filtering and ordering calls return a new TableSet and leave the
    receiver untouched, so a base query can be reused. Terminal calls run
    against the table named by `table_name`, which defaults to the record
    class's own table and may point at any table with the same columns.
    """

    def __init__(self, db_context: DbContext, record_class: Type[T], table_name: Optional[str] = None):
        self.db_context = db_context
        self.record_class = record_class
        mapper = inspect(record_class)
        self._local_table = mapper.local_table
        self._key_to_name: Dict[str, str] = {}
        for attr in mapper.column_attrs:
            col = attr.columns[0]
            if isinstance(col, Column) and col.table is self._local_table:
                self._key_to_name[attr.key] = col.name
        self._name_to_key = {name: key for key, name in self._key_to_name.items()}
        self._table_name = table_name or self._local_table.name
        self._engine = None
        self._target: Optional[Table] = None
        self._columns = ()
        self._criteria = ()
        self._order_by = ()

    def __repr__(self):
        return f"<TableSet {self.record_class.__name__} table={self._table_name}>"

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def set_table_name(self, table_name: str) -> "TableSet[T]":
        """Point this accessor (not earlier copies) at `table_name`."""
        self._table_name = table_name
        if self._engine is not None:
            self._target = self._bind_table(table_name)
        return self

    def _bind_table(self, table_name: str) -> Table:
        if table_name == self._local_table.name:
            return self._local_table
        return self.db_context.renamed_table(self._local_table, table_name)

    def _open(self) -> Table:
        """Open the handle on first use and return the bound table.

        The engine is looked up on the context each time so an accessor keeps
        working after `DbContext.dispose()`.
        """
        engine = self.db_context.engine
        if engine is not self._engine:
            self._engine = engine
            self._target = self._bind_table(self._table_name)
        return self._target

    def get_session(self) -> Session:
        self._open()
        return Session(self._engine)

    def _clone(self, **state) -> "TableSet[T]":
        other = copy.copy(self)
        for key, value in state.items():
            setattr(other, key, value)
        return other

    # Query shaping

    def select(self, *columns) -> "TableSet[T]":
        """Restrict fetched columns; accepts names, "a, b" strings or column expressions."""
        fields = []
        for c in columns:
            if isinstance(c, str):
                fields.extend(part.strip() for part in c.split(",") if part.strip())
            else:
                fields.append(c)
        return self._clone(_columns=tuple(fields))

    def where(self, criterion, *more, **params) -> "TableSet[T]":
        """Add filters.

        A string is raw SQL with ``:name`` placeholders bound from `params`,
        a dict means column equality and anything else is used as a
        SQLAlchemy expression.
        """
        added = tuple((c, params) for c in (criterion,) + more)
        return self._clone(_criteria=self._criteria + added)

    def order(self, value) -> "TableSet[T]":
        return self._clone(_order_by=self._order_by + (value,))

    def asc(self, field_name: str) -> "TableSet[T]":
        return self._clone(_order_by=self._order_by + ((field_name, "asc"),))

    def desc(self, field_name: str) -> "TableSet[T]":
        return self._clone(_order_by=self._order_by + ((field_name, "desc"),))

    # Statement building

    def _column(self, target: Table, field_name: str):
        name = self._key_to_name.get(field_name, field_name)
        col = target.c.get(name)
        if col is None:
            # Let the database reject unknown names at execution time.
            return literal_column(field_name)
        return col

    def _adapt(self, expr, target: Table):
        if target is self._local_table:
            return expr
        return ClauseAdapter(target, adapt_on_names=True).traverse(expr)

    def _where_clauses(self, target: Table) -> list:
        clauses = []
        for criterion, params in self._criteria:
            if isinstance(criterion, str):
                clause = text(criterion)
                if params:
                    clause = clause.bindparams(**params)
                clauses.append(clause)
            elif isinstance(criterion, dict):
                clauses.extend(self._column(target, k) == v for k, v in criterion.items())
            else:
                clauses.append(self._adapt(criterion, target))
        return clauses

    def _order_clauses(self, target: Table) -> list:
        clauses = []
        for value in self._order_by:
            if isinstance(value, tuple):
                field_name, direction = value
                col = self._column(target, field_name)
                clauses.append(col.desc() if direction == "desc" else col.asc())
            elif isinstance(value, str):
                clauses.append(text(value))
            else:
                clauses.append(self._adapt(value, target))
        return clauses

    def _selected_columns(self, target: Table) -> list:
        if not self._columns:
            return list(target.c)
        return [
            self._column(target, c) if isinstance(c, str) else self._adapt(c, target)
            for c in self._columns
        ]

    def _select(self, target: Table, columns: Optional[list] = None, ordered: bool = True):
        stmt = select(*(columns or self._selected_columns(target))).select_from(target)
        clauses = self._where_clauses(target)
        if clauses:
            stmt = stmt.where(*clauses)
        if ordered and self._order_by:
            stmt = stmt.order_by(*self._order_clauses(target))
        return stmt

    def _to_record(self, row) -> T:
        values = {}
        for name, value in row._mapping.items():
            key = self._name_to_key.get(name)
            if key is not None:
                values[key] = value
        return self.record_class(**values)

    def _record_values(self, record: T) -> Dict[str, Any]:
        values = {}
        for key, name in self._key_to_name.items():
            value = getattr(record, key, None)
            if value is not None:
                values[name] = value
        return values

    # Reads

    def to_list(self) -> List[T]:
        target = self._open()
        with self.get_session() as session:
            rows = session.execute(self._select(target)).all()
        logger.debug("to_list table=%s rows=%d", target.name, len(rows))
        return [self._to_record(r) for r in rows]

    def to_page_list(self, page_size: int, page_index: int) -> PageList[T]:
        """Fetch one page and the total number of matching rows.

        The page and the count are two separate queries.
        """
        target = self._open()
        offset = page_offset(page_size, page_index)
        stmt = self._select(target).offset(offset).limit(page_size)
        with self.get_session() as session:
            rows = session.execute(stmt).all()
        items = [self._to_record(r) for r in rows]
        total = self.count()
        logger.debug(
            "to_page_list table=%s offset=%d size=%d total=%d",
            target.name, offset, page_size, total,
        )
        return PageList(items=items, total_count=total, page_size=page_size, page_index=page_index)

    def to_entity(self) -> Optional[T]:
        """First matching record, by primary key unless an order was given."""
        target = self._open()
        stmt = self._select(target)
        if not self._order_by:
            stmt = stmt.order_by(*target.primary_key.columns)
        with self.get_session() as session:
            row = session.execute(stmt.limit(1)).first()
        if row is None:
            return None
        return self._to_record(row)

    def count(self) -> int:
        target = self._open()
        stmt = self._select(target, [func.count()], ordered=False)
        with self.get_session() as session:
            return session.execute(stmt).scalar_one()

    def is_exists(self) -> bool:
        return self.count() > 0

    # Writes

    def insert(self, record: T) -> T:
        """Insert `record` and fill in a generated primary key."""
        target = self._open()
        with self.get_session() as session:
            self._insert_one(session, target, record)
            session.commit()
        return record

    def insert_batch(self, records: Iterable[T]) -> int:
        """Insert several records in one transaction. Returns the number inserted."""
        records = list(records)
        if not records:
            return 0
        target = self._open()
        with self.get_session() as session:
            for record in records:
                self._insert_one(session, target, record)
            session.commit()
        logger.info("insert_batch table=%s count=%d", target.name, len(records))
        return len(records)

    def _insert_one(self, session: Session, target: Table, record: T):
        result = session.execute(insert(target).values(self._record_values(record)))
        pk = result.inserted_primary_key
        if pk is None:
            return
        for col, value in zip(target.primary_key.columns, pk):
            key = self._name_to_key.get(col.name)
            if key is not None and value is not None and getattr(record, key, None) is None:
                setattr(record, key, value)

    def update(self, record: T) -> int:
        """Write the non-None fields of `record`. Returns affected row count.

        Rows are matched by the record's primary key, when set, and by any
        filters added with `where`. Without either nothing is written, so a
        bare update never rewrites the whole table.
        """
        target = self._open()
        pk_names = {col.name for col in target.primary_key.columns}
        values = {k: v for k, v in self._record_values(record).items() if k not in pk_names}
        if not values:
            return 0
        clauses = self._where_clauses(target)
        for col in target.primary_key.columns:
            value = getattr(record, self._name_to_key.get(col.name, col.name), None)
            if value is not None:
                clauses.append(col == value)
        if not clauses:
            logger.warning("update on %s skipped: no primary key or filter", target.name)
            return 0
        stmt = update(target).values(values).where(*clauses)
        with self.get_session() as session:
            affected = session.execute(stmt).rowcount
            session.commit()
        logger.debug("update table=%s rows=%d", target.name, affected)
        return affected

    def update_value(self, field_name: str, value) -> None:
        target = self._open()
        clauses = self._where_clauses(target)
        if not clauses:
            logger.warning("update_value on %s.%s skipped: no filter", target.name, field_name)
            return
        stmt = update(target).values({self._key_to_name.get(field_name, field_name): value}).where(*clauses)
        with self.get_session() as session:
            session.execute(stmt)
            session.commit()

    def delete(self) -> int:
        """Delete every row matching the current filters; with none, the whole table."""
        target = self._open()
        stmt = delete(target)
        clauses = self._where_clauses(target)
        if clauses:
            stmt = stmt.where(*clauses)
        with self.get_session() as session:
            affected = session.execute(stmt).rowcount
            session.commit()
        logger.debug("delete table=%s rows=%d", target.name, affected)
        return affected

    # Scalar getters

    def _get_value(self, field_name: str):
        target = self._open()
        stmt = self._select(target, [self._column(target, field_name)]).limit(1)
        with self.get_session() as session:
            return session.execute(stmt).scalar()

    def get_string(self, field_name: str) -> str:
        value = self._get_value(field_name)
        return "" if value is None else str(value)

    def get_int(self, field_name: str) -> int:
        value = self._get_value(field_name)
        return 0 if value is None else int(value)

    def get_long(self, field_name: str) -> int:
        return self.get_int(field_name)

    def get_bool(self, field_name: str) -> bool:
        value = self._get_value(field_name)
        if value is None:
            return False
        if isinstance(value, bytes):
            value = value.decode("utf-8", "replace")
        if isinstance(value, str):
            # Unparseable text scans as false.
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    def get_float32(self, field_name: str) -> float:
        value = self._get_value(field_name)
        return 0.0 if value is None else _to_float32(value)

    def get_float64(self, field_name: str) -> float:
        value = self._get_value(field_name)
        return 0.0 if value is None else float(value)
