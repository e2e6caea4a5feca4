"""Service factories shared by the v1 routers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from agentflow.auth.dependencies import only_for_authorized
from agentflow.db import get_db
from agentflow.graphs.service import GraphsService
from agentflow.threads.service import ThreadsService


def get_graphs_service(
    request: Request,
    db: Session = Depends(get_db),
    sub: str = Depends(only_for_authorized),
) -> GraphsService:
    state = request.app.state
    return GraphsService(db, sub, state.graph_compiler, state.graph_registry)


def get_threads_service(
    db: Session = Depends(get_db),
    sub: str = Depends(only_for_authorized),
) -> ThreadsService:
    return ThreadsService(db, sub)
