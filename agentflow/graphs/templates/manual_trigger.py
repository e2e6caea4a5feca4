"""``manual-trigger`` template: fire connected agents through the API."""

from typing import Any, Dict, List, Optional, Set

from pydantic import Field

from agentflow.core.exceptions import BadRequestException, NotFoundException
from agentflow.core.schemas import ApiModel
from agentflow.graphs.registry import GraphRegistry
from agentflow.graphs.templates.base import ConnectionRule, NodeBaseTemplate
from agentflow.graphs.types import NodeKind, NodeMetadata
from agentflow.triggers.manual import ManualTrigger


class ManualTriggerConfig(ApiModel):
    agent_id: Optional[str] = Field(default=None, min_length=1)


class ManualTriggerTemplate(NodeBaseTemplate):
    id = "manual-trigger"
    name = "Manual trigger"
    description = "Starts connected agents when called through the API"
    kind = NodeKind.TRIGGER
    schema = ManualTriggerConfig
    inputs = []
    outputs = [ConnectionRule(type="kind", value=NodeKind.SIMPLE_AGENT.value)]

    def __init__(self, graphs: GraphRegistry):
        self.graphs = graphs

    def validate_connections(
        self,
        node_id: str,
        config: ManualTriggerConfig,
        input_node_ids: Set[str],
        output_node_ids: Set[str],
    ) -> None:
        if config.agent_id and config.agent_id not in output_node_ids:
            raise BadRequestException(
                "BAD_REQUEST",
                f"Manual trigger '{node_id}' is not connected to agent '{config.agent_id}'",
            )
        if not output_node_ids:
            raise BadRequestException(
                "BAD_REQUEST",
                f"Manual trigger '{node_id}' is not connected to any agent",
            )

    async def create(
        self,
        config: ManualTriggerConfig,
        input_node_ids: Set[str],
        output_node_ids: Set[str],
        metadata: NodeMetadata,
    ) -> ManualTrigger:
        self.validate_connections(metadata.node_id, config, input_node_ids, output_node_ids)
        agent_ids = [config.agent_id] if config.agent_id else sorted(output_node_ids)

        graphs = self.graphs

        async def invoke_agent(agent_id: str, messages: List[Dict[str, Any]], run_config: Dict[str, Any]):
            node = graphs.get_node(metadata.graph_id, agent_id)
            if node is None:
                raise NotFoundException("NODE_NOT_FOUND", f"Agent node '{agent_id}' is not running")
            return await node.instance.run(run_config["thread_id"], messages, run_config)

        trigger = ManualTrigger(metadata, agent_ids)
        trigger.set_invoke_agent(invoke_agent)
        trigger.start()
        return trigger
