"""Graph lifecycle: CRUD, run/destroy, trigger execution and node messages."""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from agentflow.agents.messages import MessageTransformer
from agentflow.core.exceptions import BadRequestException, NotFoundException
from agentflow.core.logging import get_logger
from agentflow.db.database import transaction
from agentflow.db.models import Graph
from agentflow.graphs.compiler import GraphCompiler
from agentflow.graphs.dao import GraphDao
from agentflow.graphs.registry import GraphRegistry
from agentflow.graphs.schemas import CreateGraphRequest, ExecuteTriggerRequest, UpdateGraphRequest
from agentflow.graphs.types import GraphStatus, NodeKind
from agentflow.threads.dao import MessagesDao, ThreadsDao
from agentflow.triggers.manual import TriggerResult

logger = get_logger(__name__)

INITIAL_VERSION = "1.0.0"


def bump_version(version: str) -> str:
    """Increment the patch component of a ``major.minor.patch`` version."""
    parts = (version or INITIAL_VERSION).split(".")
    try:
        major, minor, patch = (int(p) for p in (parts + ["0", "0", "0"])[:3])
    except ValueError:
        return INITIAL_VERSION
    return f"{major}.{minor}.{patch + 1}"


class GraphsService:
    """Operations on the caller's graphs. Every lookup is scoped to ``sub``."""

    def __init__(self, db: Session, sub: str, compiler: GraphCompiler, registry: GraphRegistry):
        self.db = db
        self.sub = sub
        self.compiler = compiler
        self.registry = registry
        self.dao = GraphDao(db)
        self.threads_dao = ThreadsDao(db)
        self.messages_dao = MessagesDao(db)
        self.transformer = MessageTransformer()

    def _get_or_404(self, graph_id: str, **params: Any) -> Graph:
        graph = self.dao.get_by_id(graph_id, created_by=self.sub, **params)
        if graph is None:
            raise NotFoundException("GRAPH_NOT_FOUND")
        return graph

    def create(self, data: CreateGraphRequest) -> Graph:
        schema = self.compiler.validate_schema(data.schema_)
        with transaction(self.db):
            graph = self.dao.create(
                {
                    "name": data.name,
                    "description": data.description,
                    "schema": schema.to_storage(),
                    "metadata_": data.metadata,
                    "temporary": data.temporary,
                    "status": GraphStatus.CREATED.value,
                    "version": INITIAL_VERSION,
                    "created_by": self.sub,
                }
            )
        logger.info("Graph created", data={"graph_id": graph.id, "nodes": len(schema.nodes)})
        return graph

    def get_all(self, ids: Optional[List[str]] = None) -> List[Graph]:
        return self.dao.get_all(created_by=self.sub, ids=ids, order_by="updated_at", sort_order="DESC")

    def find_by_id(self, graph_id: str) -> Graph:
        return self._get_or_404(graph_id)

    async def update(self, graph_id: str, data: UpdateGraphRequest) -> Graph:
        graph = self._get_or_404(graph_id)
        if data.current_version != graph.version:
            raise BadRequestException("GRAPH_VERSION_CONFLICT")

        changes: Dict[str, Any] = {}
        provided = data.model_fields_set
        if data.name is not None:
            changes["name"] = data.name
        if "description" in provided:
            changes["description"] = data.description
        if "metadata" in provided:
            changes["metadata_"] = data.metadata

        if data.schema_ is not None:
            schema = self.compiler.validate_schema(data.schema_).to_storage()
            if schema != graph.schema:
                changes["schema"] = schema
                changes["version"] = bump_version(graph.version)

        if not changes:
            return graph

        # Build the live replacement first, nothing is stored when it fails
        compiled = None
        if "schema" in changes and self.registry.has(graph.id):
            compiled = await self.compiler.compile(
                SimpleNamespace(id=graph.id, version=changes["version"], schema=changes["schema"])
            )

        try:
            with transaction(self.db):
                graph = self.dao.update_by_id(graph_id, changes, created_by=self.sub, lock="pessimistic_write")
        except Exception:
            if compiled is not None:
                await compiled.destroy()
            raise

        if compiled is not None:
            try:
                await self.registry.destroy(graph.id)
            finally:
                self.registry.register(graph.id, compiled)
            logger.info("Running graph recompiled", data={"graph_id": graph.id, "version": graph.version})
        return graph

    async def delete(self, graph_id: str) -> None:
        graph = self._get_or_404(graph_id)
        await self.registry.destroy(graph.id)
        with transaction(self.db):
            self.dao.delete_by_id(graph.id)
        logger.info("Graph deleted", data={"graph_id": graph.id})

    async def run(self, graph_id: str) -> Graph:
        graph = self._get_or_404(graph_id)
        if self.registry.has(graph.id):
            raise BadRequestException("GRAPH_ALREADY_RUNNING")

        with transaction(self.db):
            self.dao.update_by_id(graph.id, {"status": GraphStatus.COMPILING.value, "error": None})

        try:
            compiled = await self.compiler.compile(graph)
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc)
            with transaction(self.db):
                self.dao.update_by_id(graph.id, {"status": GraphStatus.ERROR.value, "error": message})
            logger.warning("Graph failed to compile", data={"graph_id": graph.id, "error": message})
            raise

        self.registry.register(graph.id, compiled)
        with transaction(self.db):
            graph = self.dao.update_by_id(graph.id, {"status": GraphStatus.RUNNING.value})
        logger.info("Graph running", data={"graph_id": graph.id, "version": graph.version})
        return graph

    async def destroy(self, graph_id: str) -> Graph:
        graph = self._get_or_404(graph_id)
        await self.registry.destroy(graph.id)
        with transaction(self.db):
            graph = self.dao.update_by_id(graph.id, {"status": GraphStatus.STOPPED.value})
        logger.info("Graph stopped", data={"graph_id": graph.id})
        return graph

    def get_nodes(self, graph_id: str) -> List[Dict[str, Any]]:
        graph = self._get_or_404(graph_id)
        nodes = []
        for node in graph.schema.get("nodes", []):
            template = self.compiler.templates.get(node["template"])
            nodes.append(
                {
                    "id": node["id"],
                    "template": node["template"],
                    "kind": template.kind if template else None,
                    "status": self.registry.get_node_status(graph.id, node["id"]),
                }
            )
        return nodes

    async def execute_trigger(
        self, graph_id: str, trigger_id: str, data: ExecuteTriggerRequest
    ) -> TriggerResult:
        graph = self._get_or_404(graph_id)
        compiled = self.registry.get(graph.id)
        if compiled is None:
            raise BadRequestException("GRAPH_NOT_RUNNING")

        node = compiled.get_node(trigger_id)
        if node is None:
            raise NotFoundException("NODE_NOT_FOUND", f"Node '{trigger_id}' not found in graph")
        if node.kind != NodeKind.TRIGGER:
            raise BadRequestException("NODE_NOT_TRIGGER", f"Node '{trigger_id}' is not a trigger")

        return await node.instance.trigger(
            data.messages,
            {
                "thread_sub_id": data.thread_sub_id,
                "async": data.async_,
                "created_by": self.sub,
                "graph_id": graph.id,
            },
        )

    def get_node_messages(
        self,
        graph_id: str,
        node_id: str,
        thread_id: Optional[str] = None,
        limit: int = 100,
    ) -> Dict[str, Any]:
        """Latest ``limit`` messages of a node per thread, oldest first."""
        graph = self._get_or_404(graph_id)
        if node_id not in {node.get("id") for node in graph.schema.get("nodes", [])}:
            raise NotFoundException("NODE_NOT_FOUND", f"Node '{node_id}' not found in graph")

        threads = self.threads_dao.get_all(
            graph_id=graph.id,
            created_by=self.sub,
            external_thread_id=thread_id,
            order_by="created_at",
            sort_order="DESC",
        )
        result = []
        for thread in threads:
            rows = self.messages_dao.get_all(
                thread_id=thread.id,
                node_id=node_id,
                order_by="created_at",
                sort_order="DESC",
                limit=limit,
            )
            if not rows and thread_id is None:
                continue
            messages = [row.message for row in reversed(rows)]
            result.append({"id": thread.external_thread_id, "messages": self.transformer.transform_many(messages)})
        return {"node_id": node_id, "threads": result}
