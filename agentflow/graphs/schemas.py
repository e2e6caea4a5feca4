"""Request and response models for the graphs API."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from agentflow.core.schemas import ApiModel
from agentflow.core.time import to_iso
from agentflow.graphs.types import GraphNodeStatus, GraphStatus, NodeKind


class GraphNode(ApiModel):
    id: str = Field(min_length=1)
    template: str = Field(min_length=1)
    config: Dict[str, Any] = Field(default_factory=dict)


class GraphEdge(ApiModel):
    from_: str = Field(alias="from", min_length=1)
    to: str = Field(min_length=1)
    label: Optional[str] = None


class GraphSchema(ApiModel):
    nodes: List[GraphNode]
    edges: List[GraphEdge] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateGraphRequest(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    schema_: GraphSchema = Field(alias="schema")
    metadata: Optional[Dict[str, Any]] = None
    temporary: bool = False


class UpdateGraphRequest(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    schema_: Optional[GraphSchema] = Field(default=None, alias="schema")
    metadata: Optional[Dict[str, Any]] = None
    current_version: str = Field(min_length=1)


class GraphResponse(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    error: Optional[str] = None
    version: str
    schema_: GraphSchema = Field(alias="schema")
    status: GraphStatus
    metadata: Optional[Dict[str, Any]] = None
    temporary: bool = False
    created_at: str
    updated_at: str

    @classmethod
    def from_entity(cls, graph) -> "GraphResponse":
        return cls(
            id=graph.id,
            name=graph.name,
            description=graph.description,
            error=graph.error,
            version=graph.version,
            schema_=graph.schema,
            status=graph.status,
            metadata=graph.metadata_,
            temporary=bool(graph.temporary),
            created_at=to_iso(graph.created_at),
            updated_at=to_iso(graph.updated_at),
        )


class GraphNodeResponse(ApiModel):
    id: str
    template: str
    kind: Optional[NodeKind] = None
    status: GraphNodeStatus


class ExecuteTriggerRequest(ApiModel):
    messages: List[str] = Field(min_length=1)
    thread_sub_id: Optional[str] = Field(default=None, min_length=1)
    async_: bool = Field(default=False, alias="async")


class ExecuteTriggerResponse(ApiModel):
    thread_id: str
    checkpoint_ns: str


class MessageResponse(ApiModel):
    """A stored message; ``content`` is structured for tool-shell output."""

    id: Optional[str] = None
    role: str
    content: Any = None
    name: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    tool_call_id: Optional[str] = None


class NodeThreadMessages(ApiModel):
    id: str
    messages: List[MessageResponse]


class NodeMessagesResponse(ApiModel):
    node_id: str
    threads: List[NodeThreadMessages]


class TemplateResponse(ApiModel):
    id: str
    name: str
    description: str
    kind: NodeKind
    schema_: Dict[str, Any] = Field(alias="schema")
    inputs: List[Dict[str, Any]] = Field(default_factory=list)
    outputs: List[Dict[str, Any]] = Field(default_factory=list)
