"""In-memory registry of compiled, running graphs."""

from typing import Dict, List, Optional

from agentflow.core.logging import get_logger
from agentflow.graphs.types import CompiledGraph, CompiledGraphNode, GraphNodeStatus

logger = get_logger(__name__)


class GraphRegistry:
    def __init__(self):
        self._graphs: Dict[str, CompiledGraph] = {}

    def register(self, graph_id: str, graph: CompiledGraph) -> None:
        self._graphs[graph_id] = graph

    def unregister(self, graph_id: str) -> None:
        self._graphs.pop(graph_id, None)

    def get(self, graph_id: str) -> Optional[CompiledGraph]:
        return self._graphs.get(graph_id)

    def has(self, graph_id: str) -> bool:
        return graph_id in self._graphs

    def list_ids(self) -> List[str]:
        return list(self._graphs)

    def get_node(self, graph_id: str, node_id: str) -> Optional[CompiledGraphNode]:
        graph = self._graphs.get(graph_id)
        return graph.get_node(node_id) if graph else None

    def get_node_status(self, graph_id: str, node_id: str) -> GraphNodeStatus:
        node = self.get_node(graph_id, node_id)
        return node.status if node else GraphNodeStatus.STOPPED

    async def destroy(self, graph_id: str) -> None:
        """Stop a graph's nodes. The graph is unregistered even if stopping fails."""
        graph = self._graphs.get(graph_id)
        if graph is None:
            return
        try:
            await graph.destroy()
        finally:
            self.unregister(graph_id)

    async def destroy_all(self) -> None:
        for graph_id in list(self._graphs):
            try:
                await self.destroy(graph_id)
            except Exception as exc:
                logger.error("Failed to destroy graph", data={"graph_id": graph_id, "error": str(exc)})
