"""Persisted agent state, one row per (thread, namespace, step)."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy.orm import Session

from agentflow.core.exceptions import ValidationException
from agentflow.db.base_dao import BaseDao
from agentflow.db.database import session_scope
from agentflow.db.models import GraphCheckpoint

SessionFactory = Callable[[], ContextManager[Session]]


class CheckpointDao(BaseDao[GraphCheckpoint]):
    entity = GraphCheckpoint

    def apply_search_params(self, stmt, params):
        if params.get("thread_id") is not None:
            stmt = stmt.where(GraphCheckpoint.thread_id == params["thread_id"])
        if params.get("thread_ids") is not None:
            stmt = stmt.where(GraphCheckpoint.thread_id.in_(params["thread_ids"]))
        if params.get("checkpoint_ns") is not None:
            stmt = stmt.where(GraphCheckpoint.checkpoint_ns == params["checkpoint_ns"])
        if params.get("checkpoint_id") is not None:
            stmt = stmt.where(GraphCheckpoint.checkpoint_id == params["checkpoint_id"])
        return stmt


@dataclass
class CheckpointTuple:
    thread_id: str
    checkpoint_ns: str
    checkpoint_id: str
    parent_checkpoint_id: Optional[str]
    step: int
    state: Dict[str, Any]
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, row: GraphCheckpoint) -> "CheckpointTuple":
        return cls(
            thread_id=row.thread_id,
            checkpoint_ns=row.checkpoint_ns,
            checkpoint_id=row.checkpoint_id,
            parent_checkpoint_id=row.parent_checkpoint_id,
            step=row.step,
            state=row.checkpoint or {},
            metadata=row.metadata_ or {},
            created_at=row.created_at,
        )


class CheckpointSaver:
    """Stores agent state snapshots. Each call uses its own session."""

    def __init__(self, session_factory: SessionFactory = session_scope):
        self.session_factory = session_factory

    @staticmethod
    def _require_thread(thread_id: str) -> None:
        if not thread_id:
            raise ValidationException(
                "VALIDATION_ERROR",
                "thread_id is required to access checkpoints",
                fields=[{"name": "thread_id", "message": "Required"}],
            )

    def put(
        self,
        thread_id: str,
        checkpoint_ns: str,
        state: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
        parent_checkpoint_id: Optional[str] = None,
        step: int = 0,
    ) -> CheckpointTuple:
        self._require_thread(thread_id)
        with self.session_factory() as db:
            row = CheckpointDao(db).create(
                {
                    "thread_id": thread_id,
                    "checkpoint_ns": checkpoint_ns or "",
                    "checkpoint_id": uuid.uuid4().hex,
                    "parent_checkpoint_id": parent_checkpoint_id,
                    "step": step,
                    "checkpoint": state,
                    "metadata_": metadata or {},
                }
            )
            return CheckpointTuple.from_entity(row)

    def get_tuple(
        self,
        thread_id: str,
        checkpoint_ns: str = "",
        checkpoint_id: Optional[str] = None,
    ) -> Optional[CheckpointTuple]:
        """A specific checkpoint, or the latest one when ``checkpoint_id`` is omitted."""
        self._require_thread(thread_id)
        with self.session_factory() as db:
            row = CheckpointDao(db).get_one(
                thread_id=thread_id,
                checkpoint_ns=checkpoint_ns or "",
                checkpoint_id=checkpoint_id,
                order=[("step", "DESC"), ("created_at", "DESC")],
            )
            return CheckpointTuple.from_entity(row) if row else None

    def list(
        self,
        thread_id: str,
        checkpoint_ns: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CheckpointTuple]:
        self._require_thread(thread_id)
        with self.session_factory() as db:
            rows = CheckpointDao(db).get_all(
                thread_id=thread_id,
                checkpoint_ns=checkpoint_ns,
                order=[("step", "DESC"), ("created_at", "DESC")],
                limit=limit,
            )
            return [CheckpointTuple.from_entity(row) for row in rows]

    def delete_thread(self, thread_id: str) -> int:
        self._require_thread(thread_id)
        with self.session_factory() as db:
            return CheckpointDao(db).hard_delete(thread_id=thread_id)
