"""Graph DAO."""

from agentflow.db.base_dao import BaseDao
from agentflow.db.models import Graph


class GraphDao(BaseDao[Graph]):
    entity = Graph

    def apply_search_params(self, stmt, params):
        if params.get("ids") is not None:
            stmt = stmt.where(Graph.id.in_(params["ids"]))
        if params.get("created_by") is not None:
            stmt = stmt.where(Graph.created_by == params["created_by"])
        if params.get("status") is not None:
            stmt = stmt.where(Graph.status == params["status"])
        if params.get("temporary") is not None:
            stmt = stmt.where(Graph.temporary.is_(bool(params["temporary"])))
        return stmt
