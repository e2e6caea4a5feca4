"""Tests for checkpoint storage and the simple agent run loop."""

import asyncio
import gc

import pytest

from agentflow.agents.checkpointer import CheckpointSaver
from agentflow.agents.simple_agent import SimpleAgent, SimpleAgentConfig
from agentflow.config import get_settings
from agentflow.core.exceptions import BadRequestException, ValidationException
from agentflow.db.models import Graph
from agentflow.graphs.types import GraphNodeStatus, NodeMetadata
from agentflow.providers.registry import ProviderRegistry
from agentflow.threads.dao import MessagesDao, ThreadsDao
from agentflow.threads.recorder import ThreadMessagesRecorder


@pytest.fixture
def saver(database):
    return CheckpointSaver()


class TestCheckpointSaver:
    def test_put_and_get_latest(self, saver):
        first = saver.put("t-1", "t-1:agent", {"messages": [1]}, step=1)
        second = saver.put("t-1", "t-1:agent", {"messages": [1, 2]}, parent_checkpoint_id=first.checkpoint_id, step=2)

        latest = saver.get_tuple("t-1", "t-1:agent")
        assert latest.checkpoint_id == second.checkpoint_id
        assert latest.parent_checkpoint_id == first.checkpoint_id
        assert latest.state == {"messages": [1, 2]}

    def test_get_specific_checkpoint(self, saver):
        first = saver.put("t-1", "ns", {"v": 1}, step=1)
        saver.put("t-1", "ns", {"v": 2}, step=2)

        assert saver.get_tuple("t-1", "ns", first.checkpoint_id).state == {"v": 1}

    def test_namespaces_are_isolated(self, saver):
        saver.put("t-1", "ns-a", {"v": "a"})
        assert saver.get_tuple("t-1", "ns-b") is None

    def test_list_newest_first(self, saver):
        for step in range(1, 4):
            saver.put("t-2", "ns", {"step": step}, step=step)

        steps = [c.step for c in saver.list("t-2", "ns", limit=2)]
        assert steps == [3, 2]

    def test_delete_thread(self, saver):
        saver.put("t-3", "ns", {})
        assert saver.delete_thread("t-3") == 1
        assert saver.get_tuple("t-3", "ns") is None

    def test_empty_thread_id_rejected(self, saver):
        with pytest.raises(ValidationException):
            saver.put("", "ns", {})
        with pytest.raises(ValidationException):
            saver.get_tuple("")


def _seed_graph(db_session) -> str:
    graph = Graph(name="g", schema={"nodes": []}, status="running", version="1.0.0", created_by="user-1")
    db_session.add(graph)
    db_session.commit()
    return graph.id


def _agent(graph_id: str, **config) -> SimpleAgent:
    return SimpleAgent(
        SimpleAgentConfig(name="Helper", instructions="Be brief", **config),
        ProviderRegistry(get_settings()),
        CheckpointSaver(),
        ThreadMessagesRecorder(),
        NodeMetadata(graph_id=graph_id, node_id="agent", version="1.0.0"),
    )


class TestSimpleAgent:
    @pytest.mark.asyncio
    async def test_run_persists_history(self, db_session):
        graph_id = _seed_graph(db_session)
        agent = _agent(graph_id)
        thread_id = f"{graph_id}:t"
        config = {"checkpoint_ns": f"{thread_id}:agent", "created_by": "user-1"}

        output = await agent.run(thread_id, [{"role": "human", "content": "hello"}], config)
        assert [m["role"] for m in output.messages] == ["human", "ai"]
        assert output.messages[-1]["content"] == "[mock] hello"

        await agent.run(thread_id, [{"role": "human", "content": "again"}], config)

        latest = CheckpointSaver().get_tuple(thread_id, config["checkpoint_ns"])
        assert latest.step == 2
        assert [m["content"] for m in latest.state["messages"]] == [
            "hello",
            "[mock] hello",
            "again",
            "[mock] again",
        ]

        db_session.expire_all()
        thread = ThreadsDao(db_session).get_one(external_thread_id=thread_id)
        assert thread.status == "done"
        assert thread.created_by == "user-1"
        assert MessagesDao(db_session).count(thread_id=thread.id, node_id="agent") == 4
        assert agent.node_status == GraphNodeStatus.IDLE

    @pytest.mark.asyncio
    async def test_long_history_is_summarized(self, db_session):
        graph_id = _seed_graph(db_session)
        agent = _agent(graph_id, summarize_max_tokens=5, summarize_keep_tokens=3)
        history = [{"role": "human", "content": "x" * 40}, {"role": "ai", "content": "y" * 40}]

        summarized = await agent.summarize(history + [{"role": "human", "content": "latest"}])

        assert summarized[0]["role"] == "system"
        assert summarized[0]["content"].startswith("Summary of the earlier conversation: [mock]")
        assert summarized[-1]["content"] == "latest"

    @pytest.mark.asyncio
    async def test_short_history_untouched(self, db_session):
        agent = _agent(_seed_graph(db_session))
        history = [{"role": "human", "content": "hi"}]
        assert await agent.summarize(history) == history

    @pytest.mark.asyncio
    async def test_concurrent_runs_share_history_and_release_locks(self, db_session):
        graph_id = _seed_graph(db_session)
        agent = _agent(graph_id)
        thread_id = f"{graph_id}:busy"
        config = {"checkpoint_ns": f"{thread_id}:agent", "created_by": "user-1"}

        await asyncio.gather(
            agent.run(thread_id, [{"role": "human", "content": "one"}], config),
            agent.run(thread_id, [{"role": "human", "content": "two"}], config),
        )
        for index in range(3):
            other = f"{graph_id}:other-{index}"
            await agent.run(other, [{"role": "human", "content": "hi"}], {"checkpoint_ns": f"{other}:agent"})

        latest = CheckpointSaver().get_tuple(thread_id, config["checkpoint_ns"])
        assert latest.step == 2
        assert len(latest.state["messages"]) == 4

        gc.collect()
        assert len(agent._locks) == 0

    @pytest.mark.asyncio
    async def test_stopped_agent_rejects_runs(self, db_session):
        agent = _agent(_seed_graph(db_session))
        await agent.stop()
        assert agent.node_status == GraphNodeStatus.STOPPED
        with pytest.raises(BadRequestException):
            await agent.run("t", [{"role": "human", "content": "hi"}], {})
