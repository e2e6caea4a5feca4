"""Read and delete access to the caller's threads."""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from agentflow.agents.checkpointer import CheckpointDao
from agentflow.agents.messages import MessageTransformer
from agentflow.core.exceptions import NotFoundException
from agentflow.core.logging import get_logger
from agentflow.core.time import to_iso
from agentflow.db.database import transaction
from agentflow.db.models import Thread
from agentflow.threads.dao import MessagesDao, ThreadsDao

logger = get_logger(__name__)


class ThreadsService:
    def __init__(self, db: Session, sub: str):
        self.db = db
        self.sub = sub
        self.dao = ThreadsDao(db)
        self.messages_dao = MessagesDao(db)
        self.transformer = MessageTransformer()

    def get_all(self, graph_id: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[Thread]:
        return self.dao.get_all(
            created_by=self.sub,
            graph_id=graph_id,
            order_by="updated_at",
            sort_order="DESC",
            limit=limit,
            offset=offset,
        )

    def get_by_id(self, thread_id: str) -> Thread:
        thread = self.dao.get_by_id(thread_id, created_by=self.sub)
        if thread is None:
            raise NotFoundException("THREAD_NOT_FOUND")
        return thread

    def get_by_external_id(self, external_thread_id: str) -> Thread:
        thread = self.dao.get_one(created_by=self.sub, external_thread_id=external_thread_id)
        if thread is None:
            raise NotFoundException("THREAD_NOT_FOUND")
        return thread

    def get_messages(
        self,
        thread_id: str,
        node_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Messages of a thread in the order they were produced."""
        thread = self.get_by_id(thread_id)
        rows = self.messages_dao.get_all(
            thread_id=thread.id,
            node_id=node_id,
            order_by="created_at",
            sort_order="ASC",
            limit=limit,
            offset=offset,
        )
        return [
            {
                "id": row.id,
                "thread_id": row.thread_id,
                "external_thread_id": row.external_thread_id,
                "node_id": row.node_id,
                "message": self.transformer.transform(row.message),
                "created_at": to_iso(row.created_at),
            }
            for row in rows
        ]

    def delete(self, thread_id: str) -> None:
        thread = self.get_by_id(thread_id)
        with transaction(self.db):
            self.messages_dao.delete(thread_id=thread.id)
            self.dao.delete_by_id(thread.id)
            # Checkpoints are keyed by the external id
            CheckpointDao(self.db).hard_delete(thread_id=thread.external_thread_id)
        logger.info("Thread deleted", data={"thread_id": thread.id})
