"""SQLAlchemy database models."""

from typing import List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, relationship

from agentflow.core.time import utcnow
from agentflow.db.database import Base
from agentflow.db.types import GUID, JSONB


class TimestampsMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class Graph(TimestampsMixin, Base):
    """Workflow definition: typed nodes joined by edges."""

    __tablename__ = "graphs"

    id = Column(GUID(), primary_key=True, default=GUID.new)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    version = Column(String(32), nullable=False, default="1.0.0")
    schema = Column(JSONB(), nullable=False)
    status = Column(String(16), nullable=False, default="created", index=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSONB(), nullable=True)
    temporary = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(255), nullable=False, index=True)

    threads: Mapped[List["Thread"]] = relationship("Thread", back_populates="graph")

    def __repr__(self) -> str:
        return f"<Graph {self.id} {self.status}>"


class Thread(TimestampsMixin, Base):
    """A conversation driven through a graph's trigger."""

    __tablename__ = "threads"

    id = Column(GUID(), primary_key=True, default=GUID.new)
    graph_id = Column(GUID(), ForeignKey("graphs.id", ondelete="CASCADE"), nullable=False, index=True)
    external_thread_id = Column(String(512), nullable=False, unique=True)
    status = Column(String(16), nullable=False, default="running")
    metadata_ = Column("metadata", JSONB(), nullable=True)
    created_by = Column(String(255), nullable=False, index=True)

    graph: Mapped["Graph"] = relationship("Graph", back_populates="threads")
    messages: Mapped[List["Message"]] = relationship(
        "Message", back_populates="thread", order_by="Message.created_at"
    )

    def __repr__(self) -> str:
        return f"<Thread {self.external_thread_id}>"


class Message(TimestampsMixin, Base):
    """A single message produced or consumed by a graph node."""

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_thread_node", "thread_id", "node_id"),)

    id = Column(GUID(), primary_key=True, default=GUID.new)
    thread_id = Column(GUID(), ForeignKey("threads.id", ondelete="CASCADE"), nullable=False)
    external_thread_id = Column(String(512), nullable=False, index=True)
    node_id = Column(String(255), nullable=False)
    message = Column(JSONB(), nullable=False)

    thread: Mapped["Thread"] = relationship("Thread", back_populates="messages")


class GraphCheckpoint(Base):
    """Persisted agent state for one (thread, namespace) step."""

    __tablename__ = "graph_checkpoints"
    __table_args__ = (
        UniqueConstraint("thread_id", "checkpoint_ns", "checkpoint_id", name="uq_graph_checkpoints_key"),
    )

    id = Column(GUID(), primary_key=True, default=GUID.new)
    thread_id = Column(String(512), nullable=False, index=True)
    checkpoint_ns = Column(String(768), nullable=False, default="")
    checkpoint_id = Column(String(64), nullable=False)
    parent_checkpoint_id = Column(String(64), nullable=True)
    step = Column(Integer, nullable=False, default=0)
    checkpoint = Column(JSONB(), nullable=False)
    metadata_ = Column("metadata", JSONB(), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
