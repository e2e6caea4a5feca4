"""Manual trigger: starts agent runs on an explicit API call."""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from agentflow.core.exceptions import BadRequestException
from agentflow.core.logging import get_logger
from agentflow.graphs.types import NodeMetadata
from agentflow.triggers.base import BaseTrigger, TriggerStatus

logger = get_logger(__name__)


@dataclass
class TriggerResult:
    thread_id: str
    checkpoint_ns: str


class ManualTrigger(BaseTrigger):
    def __init__(self, metadata: NodeMetadata, agent_ids: Sequence[str]):
        super().__init__(metadata)
        self.agent_ids = list(agent_ids)

    def build_thread_id(self, thread_sub_id: str | None = None) -> str:
        return f"{self.metadata.graph_id}:{thread_sub_id or uuid.uuid4()}"

    async def trigger(self, messages: List[str], config: Dict[str, Any]) -> TriggerResult:
        """Send human messages to every connected agent.

        ``config`` may carry ``thread_sub_id`` to continue a thread and
        ``async`` to return before the agents finish.
        """
        if self.status != TriggerStatus.LISTENING or self._invoke_agent is None:
            raise BadRequestException("TRIGGER_NOT_LISTENING")

        thread_id = self.build_thread_id(config.get("thread_sub_id"))
        human_messages = [{"role": "human", "content": text} for text in messages]

        invocations = []
        namespaces = []
        for agent_id in self.agent_ids:
            checkpoint_ns = f"{thread_id}:{agent_id}"
            namespaces.append(checkpoint_ns)
            run_config = {**config, "thread_id": thread_id, "checkpoint_ns": checkpoint_ns}
            invocations.append(self._invoke_agent(agent_id, list(human_messages), run_config))

        logger.info(
            "Manual trigger fired",
            data={
                "graph_id": self.metadata.graph_id,
                "node_id": self.metadata.node_id,
                "thread_id": thread_id,
                "agents": self.agent_ids,
                "async": bool(config.get("async")),
            },
        )

        if config.get("async"):
            for invocation in invocations:
                self._spawn(invocation)
        else:
            await asyncio.gather(*invocations)

        return TriggerResult(thread_id=thread_id, checkpoint_ns=namespaces[0])
