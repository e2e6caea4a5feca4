"""v1 thread endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from agentflow.api.v1.dependencies import get_threads_service
from agentflow.threads.schemas import ThreadMessageResponse, ThreadResponse
from agentflow.threads.service import ThreadsService

router = APIRouter(prefix="/threads", tags=["threads"])


@router.get("", response_model=List[ThreadResponse])
async def list_threads(
    graph_id: Optional[UUID] = Query(default=None, alias="graphId"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: ThreadsService = Depends(get_threads_service),
) -> List[ThreadResponse]:
    threads = service.get_all(str(graph_id) if graph_id else None, limit=limit, offset=offset)
    return [ThreadResponse.from_entity(thread) for thread in threads]


@router.get("/external/{external_thread_id}", response_model=ThreadResponse)
async def get_thread_by_external_id(
    external_thread_id: str,
    service: ThreadsService = Depends(get_threads_service),
) -> ThreadResponse:
    return ThreadResponse.from_entity(service.get_by_external_id(external_thread_id))


@router.get("/{thread_id}", response_model=ThreadResponse)
async def get_thread(
    thread_id: UUID,
    service: ThreadsService = Depends(get_threads_service),
) -> ThreadResponse:
    return ThreadResponse.from_entity(service.get_by_id(str(thread_id)))


@router.get("/{thread_id}/messages", response_model=List[ThreadMessageResponse])
async def get_thread_messages(
    thread_id: UUID,
    node_id: Optional[str] = Query(default=None, alias="nodeId", min_length=1),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: ThreadsService = Depends(get_threads_service),
) -> List[ThreadMessageResponse]:
    rows = service.get_messages(str(thread_id), node_id=node_id, limit=limit, offset=offset)
    return [ThreadMessageResponse.model_validate(row) for row in rows]


@router.delete("/{thread_id}")
async def delete_thread(
    thread_id: UUID,
    service: ThreadsService = Depends(get_threads_service),
) -> Response:
    service.delete(str(thread_id))
    return Response(status_code=status.HTTP_200_OK)
