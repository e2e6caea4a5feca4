"""v1 graph endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from agentflow.api.v1.dependencies import get_graphs_service
from agentflow.graphs.schemas import (
    CreateGraphRequest,
    ExecuteTriggerRequest,
    ExecuteTriggerResponse,
    GraphNodeResponse,
    GraphResponse,
    NodeMessagesResponse,
    UpdateGraphRequest,
)
from agentflow.graphs.service import GraphsService

router = APIRouter(prefix="/graphs", tags=["graphs"])


@router.post("", response_model=GraphResponse, status_code=status.HTTP_201_CREATED)
async def create_graph(
    data: CreateGraphRequest,
    service: GraphsService = Depends(get_graphs_service),
) -> GraphResponse:
    return GraphResponse.from_entity(service.create(data))


@router.get("", response_model=List[GraphResponse])
async def list_graphs(
    ids: Optional[List[UUID]] = Query(default=None),
    service: GraphsService = Depends(get_graphs_service),
) -> List[GraphResponse]:
    graphs = service.get_all([str(i) for i in ids] if ids else None)
    return [GraphResponse.from_entity(graph) for graph in graphs]


@router.get("/{graph_id}", response_model=GraphResponse)
async def get_graph(
    graph_id: UUID,
    service: GraphsService = Depends(get_graphs_service),
) -> GraphResponse:
    return GraphResponse.from_entity(service.find_by_id(str(graph_id)))


@router.put("/{graph_id}", response_model=GraphResponse)
async def update_graph(
    graph_id: UUID,
    data: UpdateGraphRequest,
    service: GraphsService = Depends(get_graphs_service),
) -> GraphResponse:
    return GraphResponse.from_entity(await service.update(str(graph_id), data))


@router.delete("/{graph_id}", status_code=status.HTTP_200_OK)
async def delete_graph(
    graph_id: UUID,
    service: GraphsService = Depends(get_graphs_service),
) -> Response:
    await service.delete(str(graph_id))
    return Response(status_code=status.HTTP_200_OK)


@router.post("/{graph_id}/run", response_model=GraphResponse, status_code=status.HTTP_201_CREATED)
async def run_graph(
    graph_id: UUID,
    service: GraphsService = Depends(get_graphs_service),
) -> GraphResponse:
    return GraphResponse.from_entity(await service.run(str(graph_id)))


@router.post("/{graph_id}/destroy", response_model=GraphResponse, status_code=status.HTTP_201_CREATED)
async def destroy_graph(
    graph_id: UUID,
    service: GraphsService = Depends(get_graphs_service),
) -> GraphResponse:
    return GraphResponse.from_entity(await service.destroy(str(graph_id)))


@router.get("/{graph_id}/nodes", response_model=List[GraphNodeResponse])
async def get_graph_nodes(
    graph_id: UUID,
    service: GraphsService = Depends(get_graphs_service),
) -> List[GraphNodeResponse]:
    return [GraphNodeResponse.model_validate(node) for node in service.get_nodes(str(graph_id))]


async def _execute(
    graph_id: UUID,
    trigger_id: str,
    data: ExecuteTriggerRequest,
    service: GraphsService,
) -> ExecuteTriggerResponse:
    result = await service.execute_trigger(str(graph_id), trigger_id, data)
    return ExecuteTriggerResponse(thread_id=result.thread_id, checkpoint_ns=result.checkpoint_ns)


@router.post(
    "/{graph_id}/triggers/{trigger_id}",
    response_model=ExecuteTriggerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def execute_trigger(
    graph_id: UUID,
    trigger_id: str,
    data: ExecuteTriggerRequest,
    service: GraphsService = Depends(get_graphs_service),
) -> ExecuteTriggerResponse:
    return await _execute(graph_id, trigger_id, data, service)


@router.post(
    "/{graph_id}/triggers/{trigger_id}/execute",
    response_model=ExecuteTriggerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def execute_trigger_alias(
    graph_id: UUID,
    trigger_id: str,
    data: ExecuteTriggerRequest,
    service: GraphsService = Depends(get_graphs_service),
) -> ExecuteTriggerResponse:
    return await _execute(graph_id, trigger_id, data, service)


@router.get("/{graph_id}/nodes/{node_id}/messages", response_model=NodeMessagesResponse)
async def get_node_messages(
    graph_id: UUID,
    node_id: str,
    thread_id: Optional[str] = Query(default=None, alias="threadId", min_length=1),
    limit: int = Query(default=100, ge=1, le=1000),
    service: GraphsService = Depends(get_graphs_service),
) -> NodeMessagesResponse:
    result = service.get_node_messages(str(graph_id), node_id, thread_id=thread_id, limit=limit)
    return NodeMessagesResponse.model_validate(result)
