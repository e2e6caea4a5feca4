"""Node templates: the building blocks a graph schema refers to."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, List, Optional, Set, Type

from pydantic import BaseModel

from agentflow.graphs.types import NodeKind, NodeMetadata


@dataclass(frozen=True)
class ConnectionRule:
    """Which nodes a template may be wired to, by kind or by template id."""

    type: str  # "kind" | "template"
    value: str
    multiple: bool = True

    def matches(self, template: "NodeBaseTemplate") -> bool:
        if self.type == "kind":
            return template.kind.value == self.value
        return template.id == self.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NodeBaseTemplate(ABC):
    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str] = ""
    kind: ClassVar[NodeKind]
    schema: ClassVar[Type[BaseModel]]
    # None accepts any connection, an empty list accepts none
    inputs: ClassVar[Optional[List[ConnectionRule]]] = None
    outputs: ClassVar[Optional[List[ConnectionRule]]] = None

    def json_schema(self) -> Dict[str, Any]:
        return self.schema.model_json_schema(by_alias=True)

    def validate_connections(
        self,
        node_id: str,
        config: BaseModel,
        input_node_ids: Set[str],
        output_node_ids: Set[str],
    ) -> None:
        """Reject wiring this template cannot run with. Raises ``BadRequestException``."""

    @abstractmethod
    async def create(
        self,
        config: BaseModel,
        input_node_ids: Set[str],
        output_node_ids: Set[str],
        metadata: NodeMetadata,
    ) -> Any:
        """Build the runtime instance for one node of a graph."""
