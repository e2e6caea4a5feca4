"""Graph runtime types: statuses, node kinds and compiled graphs."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from agentflow.core.logging import get_logger

logger = get_logger(__name__)


class GraphStatus(str, Enum):
    CREATED = "created"
    COMPILING = "compiling"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class NodeKind(str, Enum):
    RUNTIME = "runtime"
    TOOL = "tool"
    SIMPLE_AGENT = "simpleAgent"
    TRIGGER = "trigger"
    RESOURCE = "resource"


class GraphNodeStatus(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    IDLE = "idle"


# Nodes are built in this order so dependencies exist before their consumers
KIND_BUILD_ORDER: List[NodeKind] = [
    NodeKind.RUNTIME,
    NodeKind.RESOURCE,
    NodeKind.TOOL,
    NodeKind.SIMPLE_AGENT,
    NodeKind.TRIGGER,
]


@dataclass(frozen=True)
class NodeMetadata:
    graph_id: str
    node_id: str
    version: str


@dataclass
class CompiledGraphNode:
    id: str
    kind: NodeKind
    template: str
    config: Any
    instance: Any

    @property
    def status(self) -> GraphNodeStatus:
        return getattr(self.instance, "node_status", GraphNodeStatus.IDLE)

    async def stop(self) -> None:
        stop = getattr(self.instance, "stop", None)
        if stop is None:
            return
        result = stop()
        if asyncio.iscoroutine(result):
            await result


@dataclass
class CompiledGraph:
    graph_id: str
    version: str
    nodes: Dict[str, CompiledGraphNode]
    edges: List[Dict[str, Any]] = field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[CompiledGraphNode]:
        return self.nodes.get(node_id)

    def nodes_by_kind(self, kind: NodeKind) -> List[CompiledGraphNode]:
        return [node for node in self.nodes.values() if node.kind == kind]

    async def destroy(self) -> None:
        """Stop nodes in reverse build order; triggers go first."""
        for node in reversed(list(self.nodes.values())):
            try:
                await node.stop()
            except Exception as exc:
                logger.error(
                    "Failed to stop graph node",
                    data={"graph_id": self.graph_id, "node_id": node.id, "error": str(exc)},
                )
