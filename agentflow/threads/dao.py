"""Thread and message DAOs."""

from agentflow.db.base_dao import BaseDao
from agentflow.db.models import Message, Thread


class ThreadsDao(BaseDao[Thread]):
    entity = Thread

    def apply_search_params(self, stmt, params):
        if params.get("graph_id") is not None:
            stmt = stmt.where(Thread.graph_id == params["graph_id"])
        if params.get("created_by") is not None:
            stmt = stmt.where(Thread.created_by == params["created_by"])
        if params.get("external_thread_id") is not None:
            stmt = stmt.where(Thread.external_thread_id == params["external_thread_id"])
        if params.get("external_thread_ids") is not None:
            stmt = stmt.where(Thread.external_thread_id.in_(params["external_thread_ids"]))
        if params.get("status") is not None:
            stmt = stmt.where(Thread.status == params["status"])
        return stmt


class MessagesDao(BaseDao[Message]):
    entity = Message

    def apply_search_params(self, stmt, params):
        if params.get("thread_id") is not None:
            stmt = stmt.where(Message.thread_id == params["thread_id"])
        if params.get("thread_ids") is not None:
            stmt = stmt.where(Message.thread_id.in_(params["thread_ids"]))
        if params.get("external_thread_id") is not None:
            stmt = stmt.where(Message.external_thread_id == params["external_thread_id"])
        if params.get("node_id") is not None:
            stmt = stmt.where(Message.node_id == params["node_id"])
        return stmt
