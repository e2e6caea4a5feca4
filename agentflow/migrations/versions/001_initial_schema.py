"""graphs, threads, messages and checkpoints

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

from agentflow.db.types import GUID, JSONB

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if "graphs" not in tables:
        op.create_table(
            "graphs",
            sa.Column("id", GUID(), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("error", sa.Text(), nullable=True),
            sa.Column("version", sa.String(length=32), nullable=False),
            sa.Column("schema", JSONB(), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False),
            sa.Column("metadata", JSONB(), nullable=True),
            sa.Column("temporary", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_by", sa.String(length=255), nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_graphs_status", "graphs", ["status"])
        op.create_index("ix_graphs_created_by", "graphs", ["created_by"])

    if "threads" not in tables:
        op.create_table(
            "threads",
            sa.Column("id", GUID(), primary_key=True),
            sa.Column("graph_id", GUID(), sa.ForeignKey("graphs.id", ondelete="CASCADE"), nullable=False),
            sa.Column("external_thread_id", sa.String(length=512), nullable=False, unique=True),
            sa.Column("status", sa.String(length=16), nullable=False),
            sa.Column("metadata", JSONB(), nullable=True),
            sa.Column("created_by", sa.String(length=255), nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_threads_graph_id", "threads", ["graph_id"])
        op.create_index("ix_threads_created_by", "threads", ["created_by"])

    if "messages" not in tables:
        op.create_table(
            "messages",
            sa.Column("id", GUID(), primary_key=True),
            sa.Column("thread_id", GUID(), sa.ForeignKey("threads.id", ondelete="CASCADE"), nullable=False),
            sa.Column("external_thread_id", sa.String(length=512), nullable=False),
            sa.Column("node_id", sa.String(length=255), nullable=False),
            sa.Column("message", JSONB(), nullable=False),
            *_timestamps(),
        )
        op.create_index("ix_messages_thread_node", "messages", ["thread_id", "node_id"])
        op.create_index("ix_messages_external_thread_id", "messages", ["external_thread_id"])

    if "graph_checkpoints" not in tables:
        op.create_table(
            "graph_checkpoints",
            sa.Column("id", GUID(), primary_key=True),
            sa.Column("thread_id", sa.String(length=512), nullable=False),
            sa.Column("checkpoint_ns", sa.String(length=768), nullable=False, server_default=""),
            sa.Column("checkpoint_id", sa.String(length=64), nullable=False),
            sa.Column("parent_checkpoint_id", sa.String(length=64), nullable=True),
            sa.Column("step", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("checkpoint", JSONB(), nullable=False),
            sa.Column("metadata", JSONB(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("thread_id", "checkpoint_ns", "checkpoint_id", name="uq_graph_checkpoints_key"),
        )
        op.create_index("ix_graph_checkpoints_thread_id", "graph_checkpoints", ["thread_id"])


def downgrade() -> None:
    op.drop_table("graph_checkpoints")
    op.drop_table("messages")
    op.drop_table("threads")
    op.drop_table("graphs")
