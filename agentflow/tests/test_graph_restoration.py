"""Tests for restoring graphs on startup."""

from fastapi.testclient import TestClient

from agentflow.db.models import Graph
from agentflow.main import create_app

USER = {"x-dev-jwt-sub": "user-1"}

SCHEMA = {
    "nodes": [
        {"id": "trigger", "template": "manual-trigger"},
        {"id": "agent", "template": "simple-agent", "config": {"name": "A", "instructions": "Reply"}},
    ],
    "edges": [{"from": "trigger", "to": "agent"}],
}


def _add(db_session, schema=None, **fields) -> str:
    graph = Graph(schema=schema or SCHEMA, version="1.0.0", created_by="user-1", **fields)
    db_session.add(graph)
    db_session.commit()
    return graph.id


def test_running_graphs_restored_and_temporary_removed(db_session):
    running = _add(db_session, name="running", status="running")
    stopped = _add(db_session, name="stopped", status="stopped")
    temporary = _add(db_session, name="scratch", status="running", temporary=True)
    broken = _add(
        db_session,
        schema={"nodes": [{"id": "x", "template": "retired-template"}]},
        name="broken",
        status="running",
    )

    with TestClient(create_app()) as client:
        registry = client.app.state.graph_registry
        assert registry.has(running)
        assert not registry.has(stopped)
        assert not registry.has(temporary)
        assert not registry.has(broken)

        res = client.post(
            f"/v1/graphs/{running}/triggers/trigger/execute", json={"messages": ["back"]}, headers=USER
        )
        assert res.status_code == 201

        assert client.get(f"/v1/graphs/{temporary}", headers=USER).status_code == 404
        failed = client.get(f"/v1/graphs/{broken}", headers=USER).json()
        assert failed["status"] == "error"
        assert failed["error"] == "Template 'retired-template' is not registered"

    # Shutdown stops everything that was restored
    assert not registry.has(running)


def test_restoration_can_be_disabled(db_session, monkeypatch):
    from agentflow.config import get_settings

    running = _add(db_session, name="running", status="running")
    monkeypatch.setenv("GRAPH_RESTORE_ON_STARTUP", "false")
    get_settings.cache_clear()

    with TestClient(create_app()) as client:
        assert not client.app.state.graph_registry.has(running)
