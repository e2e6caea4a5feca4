"""Tests for ORM mappings and relationships."""

from sqlalchemy.orm import configure_mappers

from agentflow.db.models import Graph, Message, Thread


def test_relationships_are_mapped():
    configure_mappers()

    assert Graph.threads.property.mapper.class_ is Thread
    assert Thread.graph.property.mapper.class_ is Graph
    assert Thread.messages.property.mapper.class_ is Message
    assert Message.thread.property.mapper.class_ is Thread


def test_relationships_load_from_database(db_session):
    graph = Graph(name="g", schema={"nodes": []}, created_by="user-1")
    thread = Thread(graph=graph, external_thread_id="g:1", created_by="user-1")
    thread.messages.append(
        Message(external_thread_id="g:1", node_id="agent", message={"role": "human", "content": "hi"})
    )
    db_session.add(graph)
    db_session.commit()
    db_session.expire_all()

    stored = db_session.get(Graph, graph.id)
    assert [t.external_thread_id for t in stored.threads] == ["g:1"]
    assert stored.threads[0].messages[0].thread is stored.threads[0]
    assert stored.threads[0].messages[0].message["content"] == "hi"
