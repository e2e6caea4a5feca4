"""Trigger lifecycle shared by all trigger kinds."""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from agentflow.core.logging import get_logger
from agentflow.graphs.types import GraphNodeStatus, NodeMetadata

logger = get_logger(__name__)


class TriggerStatus(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    DESTROYED = "destroyed"


# (agent_node_id, messages, run_config) -> agent output
InvokeAgent = Callable[[str, List[Dict[str, Any]], Dict[str, Any]], Awaitable[Any]]


class BaseTrigger:
    def __init__(self, metadata: NodeMetadata):
        self.metadata = metadata
        self.status = TriggerStatus.IDLE
        self._invoke_agent: Optional[InvokeAgent] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def is_started(self) -> bool:
        return self.status == TriggerStatus.LISTENING

    @property
    def node_status(self) -> GraphNodeStatus:
        if self.status == TriggerStatus.LISTENING:
            return GraphNodeStatus.RUNNING
        if self.status == TriggerStatus.IDLE:
            return GraphNodeStatus.IDLE
        return GraphNodeStatus.STOPPED

    def set_invoke_agent(self, invoke_agent: InvokeAgent) -> None:
        self._invoke_agent = invoke_agent

    def start(self) -> None:
        if self.status == TriggerStatus.DESTROYED:
            raise RuntimeError("A destroyed trigger cannot be restarted")
        self.status = TriggerStatus.LISTENING

    async def stop(self) -> None:
        self.status = TriggerStatus.DESTROYED
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Run an invocation in the background, logging failures."""
        task = asyncio.ensure_future(coro)
        self._background.add(task)

        def _done(t: asyncio.Task) -> None:
            self._background.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "Background agent invocation failed",
                    data={
                        "graph_id": self.metadata.graph_id,
                        "node_id": self.metadata.node_id,
                        "error": str(t.exception()),
                    },
                )

        task.add_done_callback(_done)
        return task
