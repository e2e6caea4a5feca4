"""``simple-agent`` template: a chat agent with system instructions."""

from typing import Set

from agentflow.agents.checkpointer import CheckpointSaver
from agentflow.agents.simple_agent import SimpleAgent, SimpleAgentConfig
from agentflow.graphs.templates.base import ConnectionRule, NodeBaseTemplate
from agentflow.graphs.types import NodeKind, NodeMetadata
from agentflow.providers.registry import ProviderRegistry
from agentflow.threads.recorder import ThreadMessagesRecorder


class SimpleAgentTemplate(NodeBaseTemplate):
    id = "simple-agent"
    name = "Simple agent"
    description = "Conversational agent answering with a chat model, guided by system instructions"
    kind = NodeKind.SIMPLE_AGENT
    schema = SimpleAgentConfig
    inputs = [
        ConnectionRule(type="kind", value=NodeKind.TRIGGER.value),
        ConnectionRule(type="kind", value=NodeKind.TOOL.value),
    ]

    def __init__(
        self,
        providers: ProviderRegistry,
        checkpointer: CheckpointSaver,
        recorder: ThreadMessagesRecorder,
    ):
        self.providers = providers
        self.checkpointer = checkpointer
        self.recorder = recorder

    async def create(
        self,
        config: SimpleAgentConfig,
        input_node_ids: Set[str],
        output_node_ids: Set[str],
        metadata: NodeMetadata,
    ) -> SimpleAgent:
        return SimpleAgent(config, self.providers, self.checkpointer, self.recorder, metadata)
