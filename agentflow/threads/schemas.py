"""Response models for the threads API."""

from typing import Any, Dict, Optional

from agentflow.core.schemas import ApiModel
from agentflow.core.time import to_iso
from agentflow.graphs.schemas import MessageResponse


class ThreadResponse(ApiModel):
    id: str
    graph_id: str
    external_thread_id: str
    status: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_entity(cls, thread) -> "ThreadResponse":
        return cls(
            id=thread.id,
            graph_id=thread.graph_id,
            external_thread_id=thread.external_thread_id,
            status=thread.status,
            metadata=thread.metadata_,
            created_at=to_iso(thread.created_at),
            updated_at=to_iso(thread.updated_at),
        )


class ThreadMessageResponse(ApiModel):
    id: str
    thread_id: str
    external_thread_id: str
    node_id: str
    message: MessageResponse
    created_at: str
