"""Persists agent conversations while they run."""

from datetime import timedelta
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy.orm import Session

from agentflow.core.logging import get_logger
from agentflow.core.time import utcnow
from agentflow.db.database import session_scope
from agentflow.db.types import GUID
from agentflow.threads.dao import MessagesDao, ThreadsDao

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


class ThreadStatus(str, Enum):
    RUNNING = "running"
    DONE = "done"
    STOPPED = "stopped"
    ERROR = "error"


class ThreadMessagesRecorder:
    """Writes threads and messages outside the request session.

    Agent runs may outlive the request that started them, so every call
    opens and commits its own session.
    """

    def __init__(self, session_factory: SessionFactory = session_scope):
        self.session_factory = session_factory

    def ensure_thread(
        self,
        graph_id: str,
        external_thread_id: str,
        created_by: str,
        status: ThreadStatus = ThreadStatus.RUNNING,
    ) -> str:
        """Create the thread row if missing, mark it with ``status``; returns its id."""
        with self.session_factory() as db:
            dao = ThreadsDao(db)
            dao.upsert_many(
                [
                    {
                        "id": GUID.new(),
                        "graph_id": graph_id,
                        "external_thread_id": external_thread_id,
                        "created_by": created_by,
                        "status": status.value,
                        "deleted_at": None,
                    }
                ],
                conflict_columns=["external_thread_id"],
                # A deleted thread comes back empty when its id is reused
                overwrite_columns=["status", "deleted_at"],
            )
            thread = dao.get_one(external_thread_id=external_thread_id, with_deleted=True)
            return thread.id

    def record(
        self,
        graph_id: str,
        node_id: str,
        external_thread_id: str,
        messages: List[Dict[str, Any]],
        created_by: str,
    ) -> None:
        if not messages:
            return
        with self.session_factory() as db:
            thread = ThreadsDao(db).get_one(external_thread_id=external_thread_id, with_deleted=True)
            if thread is None:
                logger.warning(
                    "Dropping messages for unknown thread",
                    data={"graph_id": graph_id, "thread_id": external_thread_id, "created_by": created_by},
                )
                return
            # Distinct timestamps keep a batch ordered
            now = utcnow()
            MessagesDao(db).create_many(
                {
                    "thread_id": thread.id,
                    "external_thread_id": external_thread_id,
                    "node_id": node_id,
                    "message": message,
                    "created_at": now + timedelta(microseconds=index),
                    "updated_at": now,
                }
                for index, message in enumerate(messages)
            )

    def set_status(self, external_thread_id: str, status: ThreadStatus) -> None:
        with self.session_factory() as db:
            ThreadsDao(db).update_many({"status": status.value}, external_thread_id=external_thread_id)

    def get_status(self, external_thread_id: str) -> Optional[str]:
        with self.session_factory() as db:
            thread = ThreadsDao(db).get_one(external_thread_id=external_thread_id)
            return thread.status if thread else None
