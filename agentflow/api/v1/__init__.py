"""v1 API router.

Every route below requires an authenticated caller.
"""

from fastapi import APIRouter, Depends

from agentflow.api.v1.graphs import router as graphs_router
from agentflow.api.v1.templates import router as templates_router
from agentflow.api.v1.threads import router as threads_router
from agentflow.auth.dependencies import only_for_authorized

router = APIRouter(prefix="/v1", dependencies=[Depends(only_for_authorized)])

router.include_router(graphs_router)     # /v1/graphs
router.include_router(threads_router)    # /v1/threads
router.include_router(templates_router)  # /v1/templates
