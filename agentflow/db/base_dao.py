"""Generic filter-driven data access over SQLAlchemy entities.

Every read, update and delete accepts the same keyword parameters. Domain
filters (``graph_id=...``, ``created_by=...``) are handed to
``apply_search_params`` which subclasses override. The remaining keys are
shared by all DAOs:

    offset, limit             pagination
    order_by, sort_order      single column ordering (``DESC`` by default)
    order                     {"column": "ASC"|"DESC"} or [(column, dir), ...]
    projection                columns to load, others stay deferred
    relations                 relationships to eager load
    with_deleted              include soft-deleted rows
    lock                      row lock mode, see ``LOCK_MODES``
    custom_condition          SQL expression, callable(entity) or {column: value}
    raw_data                  return plain dicts instead of entities
    update_select             callable(select) -> select for anything else
"""

from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from sqlalchemy import Select, delete as sa_delete, func, inspect, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, load_only, selectinload
from sqlalchemy.sql.elements import ColumnElement

from agentflow.core.time import utcnow

T = TypeVar("T")

SortDir = str
OrderInput = Union[Dict[str, SortDir], Sequence[Tuple[str, SortDir]]]

ADDITIONAL_PARAMS = frozenset(
    {
        "offset",
        "limit",
        "order_by",
        "sort_order",
        "order",
        "projection",
        "relations",
        "with_deleted",
        "lock",
        "custom_condition",
        "raw_data",
        "update_select",
    }
)

LOCK_MODES: Dict[str, Dict[str, bool]] = {
    "pessimistic_read": {"read": True},
    "pessimistic_write": {},
    "pessimistic_write_or_fail": {"nowait": True},
    "pessimistic_partial_write": {"skip_locked": True},
}


class BaseDao(Generic[T]):
    """Base class for entity DAOs. Writes flush but never commit."""

    entity: Type[T]

    def __init__(self, db: Session):
        self.db = db

    def apply_search_params(self, stmt: Any, params: Dict[str, Any]) -> Any:
        """Translate domain filters into WHERE clauses.

        ``stmt`` may be a select, update or delete statement; only ``.where``
        should be used on it.
        """
        return stmt

    # -- statement building -------------------------------------------------

    @property
    def _soft_deletable(self) -> bool:
        return hasattr(self.entity, "deleted_at")

    @property
    def _pk(self):
        return inspect(self.entity).primary_key[0]

    def _column(self, name: str):
        try:
            return getattr(self.entity, name)
        except AttributeError:
            raise ValueError(f"Unknown column '{name}' on {self.entity.__name__}") from None

    @staticmethod
    def _split(params: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        filters = {k: v for k, v in params.items() if k not in ADDITIONAL_PARAMS}
        extra = {k: v for k, v in params.items() if k in ADDITIONAL_PARAMS}
        return filters, extra

    def _custom_condition(self, condition: Any) -> List[Any]:
        if isinstance(condition, (list, tuple)):
            return [clause for item in condition for clause in self._custom_condition(item)]
        if isinstance(condition, ColumnElement):
            return [condition]
        if isinstance(condition, dict):
            return [self._column(k) == v for k, v in condition.items()]
        if callable(condition):
            return [condition(self.entity)]
        raise TypeError(f"Unsupported custom_condition: {type(condition).__name__}")

    def _where(self, stmt: Any, params: Dict[str, Any]) -> Any:
        filters, extra = self._split(params)
        if self._soft_deletable and not extra.get("with_deleted"):
            stmt = stmt.where(self.entity.deleted_at.is_(None))
        if extra.get("custom_condition") is not None:
            stmt = stmt.where(*self._custom_condition(extra["custom_condition"]))
        return self.apply_search_params(stmt, filters)

    def _normalize_order(self, order: OrderInput) -> List[Tuple[str, str]]:
        items = order.items() if isinstance(order, dict) else order
        return [(column, (direction or "DESC").upper()) for column, direction in items]

    def _apply_additional(self, stmt: Select, extra: Dict[str, Any]) -> Select:
        if extra.get("order"):
            for column, direction in self._normalize_order(extra["order"]):
                col = self._column(column)
                stmt = stmt.order_by(col.asc() if direction == "ASC" else col.desc())
        elif extra.get("order_by"):
            col = self._column(extra["order_by"])
            direction = (extra.get("sort_order") or "DESC").upper()
            stmt = stmt.order_by(col.asc() if direction == "ASC" else col.desc())

        if extra.get("limit"):
            stmt = stmt.limit(extra["limit"])
        if extra.get("offset"):
            stmt = stmt.offset(extra["offset"])

        if extra.get("projection"):
            stmt = stmt.options(load_only(*[self._column(c) for c in extra["projection"]]))
        for relation in extra.get("relations") or ():
            stmt = stmt.options(selectinload(self._column(relation)))

        lock = extra.get("lock")
        if lock:
            if lock not in LOCK_MODES:
                raise ValueError(f"Unsupported lock mode: {lock}")
            stmt = stmt.with_for_update(**LOCK_MODES[lock])

        if extra.get("update_select"):
            stmt = extra["update_select"](stmt)
        return stmt

    def _select(self, params: Dict[str, Any]) -> Select:
        _, extra = self._split(params)
        stmt = self._where(select(self.entity), params)
        return self._apply_additional(stmt, extra)

    def _to_raw(self, row: T, projection: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        keys = list(projection) if projection else [attr.key for attr in inspect(self.entity).column_attrs]
        if projection and self._pk.key not in keys:
            keys.insert(0, self._pk.key)
        return {key: getattr(row, key) for key in keys}

    def _build_entity(self, data: Dict[str, Any]) -> T:
        return self.entity(**data)

    # -- create -------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> T:
        row = self._build_entity(data)
        self.db.add(row)
        self.db.flush()
        return row

    def create_many(self, data: Iterable[Dict[str, Any]]) -> List[T]:
        rows = [self._build_entity(item) for item in data]
        if not rows:
            return []
        self.db.add_all(rows)
        self.db.flush()
        return rows

    # -- read ---------------------------------------------------------------

    def get_all(self, **params: Any) -> List[Any]:
        rows = list(self.db.scalars(self._select(params)).all())
        if params.get("raw_data"):
            return [self._to_raw(row, params.get("projection")) for row in rows]
        return rows

    def get_one(self, **params: Any) -> Optional[Any]:
        params.setdefault("limit", 1)
        rows = self.get_all(**params)
        return rows[0] if rows else None

    def _by_id(self, id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        existing = params.get("custom_condition")
        condition = self._pk == id
        params["custom_condition"] = [condition, existing] if existing is not None else condition
        return params

    def get_by_id(self, id: Any, **params: Any) -> Optional[Any]:
        return self.get_one(**self._by_id(id, params))

    def count(self, **params: Any) -> int:
        stmt = self._where(select(func.count()).select_from(self.entity), params)
        return int(self.db.scalar(stmt) or 0)

    # -- update -------------------------------------------------------------

    def update_many(self, data: Dict[str, Any], **params: Any) -> List[T]:
        params.pop("raw_data", None)
        rows = self.get_all(**params)
        for row in rows:
            for key, value in data.items():
                setattr(row, key, value)
        self.db.flush()
        return rows

    def update_by_id(self, id: Any, data: Dict[str, Any], **params: Any) -> Optional[T]:
        params["limit"] = 1
        rows = self.update_many(data, **self._by_id(id, params))
        return rows[0] if rows else None

    # -- delete -------------------------------------------------------------

    def delete(self, **params: Any) -> int:
        """Soft delete matching rows. Falls back to hard delete for entities without ``deleted_at``."""
        if not self._soft_deletable:
            return self.hard_delete(**params)
        rows = self.update_many({"deleted_at": utcnow()}, **params)
        return len(rows)

    def delete_by_id(self, id: Any, **params: Any) -> None:
        self.delete(**self._by_id(id, params))

    def hard_delete(self, **params: Any) -> int:
        params.setdefault("with_deleted", True)
        stmt = self._where(sa_delete(self.entity), params)
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    def hard_delete_by_id(self, id: Any, **params: Any) -> None:
        self.hard_delete(**self._by_id(id, params))

    def restore_by_id(self, id: Any, **params: Any) -> Optional[T]:
        params["with_deleted"] = True
        return self.update_by_id(id, {"deleted_at": None}, **params)

    # -- upsert -------------------------------------------------------------

    def upsert_many(
        self,
        rows: Sequence[Dict[str, Any]],
        conflict_columns: Optional[Sequence[str]] = None,
        overwrite_columns: Optional[Sequence[str]] = None,
    ) -> int:
        """Insert rows, overwriting existing ones that collide on ``conflict_columns``.

        Conflict columns default to the primary key. Unless ``overwrite_columns``
        is given, every supplied column outside the conflict set is overwritten;
        an empty list leaves existing rows untouched. All rows must share the
        same keys (attribute names).
        """
        if not rows:
            return 0

        mapper = inspect(self.entity)
        table = self.entity.__table__

        def column_name(key: str) -> str:
            return mapper.attrs[key].columns[0].name

        values = [{column_name(k): v for k, v in row.items()} for row in rows]
        conflict = [column_name(c) for c in conflict_columns] if conflict_columns else [
            c.name for c in table.primary_key.columns
        ]
        if overwrite_columns is not None:
            overwrite = [column_name(c) for c in overwrite_columns]
        else:
            overwrite = [name for name in values[0] if name not in conflict]

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(table).values(values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(table).values(values)
        else:
            raise NotImplementedError(f"upsert_many is not supported on {dialect}")

        if overwrite:
            set_ = {name: stmt.excluded[name] for name in overwrite}
            if "updated_at" in table.c and "updated_at" not in set_:
                set_["updated_at"] = utcnow()
            stmt = stmt.on_conflict_do_update(index_elements=conflict, set_=set_)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict)

        result = self.db.execute(stmt)
        # Loaded identities may now hold stale column values
        self.db.expire_all()
        return result.rowcount or 0

