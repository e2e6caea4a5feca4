"""Bring graphs back to their persisted state after a restart."""

from typing import Callable, ContextManager

from sqlalchemy.orm import Session

from agentflow.core.logging import get_logger
from agentflow.db.database import session_scope
from agentflow.graphs.compiler import GraphCompiler
from agentflow.graphs.dao import GraphDao
from agentflow.graphs.registry import GraphRegistry
from agentflow.graphs.types import GraphStatus

logger = get_logger(__name__)


class GraphRestorationService:
    def __init__(
        self,
        compiler: GraphCompiler,
        registry: GraphRegistry,
        session_factory: Callable[[], ContextManager[Session]] = session_scope,
    ):
        self.compiler = compiler
        self.registry = registry
        self.session_factory = session_factory

    async def restore_graphs(self) -> int:
        """Drop temporary graphs and recompile running ones; returns how many were restored."""
        with self.session_factory() as db:
            dao = GraphDao(db)
            removed = dao.hard_delete(temporary=True)
            graphs = dao.get_all(status=GraphStatus.RUNNING.value)

        if removed:
            logger.info("Removed temporary graphs", data={"count": removed})

        restored = 0
        for graph in graphs:
            try:
                compiled = await self.compiler.compile(graph)
            except Exception as exc:
                message = getattr(exc, "message", None) or str(exc)
                logger.error("Failed to restore graph", data={"graph_id": graph.id, "error": message})
                with self.session_factory() as db:
                    GraphDao(db).update_by_id(graph.id, {"status": GraphStatus.ERROR.value, "error": message})
                continue
            self.registry.register(graph.id, compiled)
            restored += 1

        logger.info("Graph restoration finished", data={"restored": restored, "candidates": len(graphs)})
        return restored
