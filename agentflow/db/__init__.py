"""Database module."""

from agentflow.db.database import (
    Base,
    dispose_engine,
    get_db,
    get_engine,
    get_session_local,
    session_scope,
    transaction,
    verify_database_connection,
)
from agentflow.db.models import Graph, GraphCheckpoint, Message, Thread

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "session_scope",
    "transaction",
    "dispose_engine",
    "verify_database_connection",
    "Graph",
    "Thread",
    "Message",
    "GraphCheckpoint",
]
