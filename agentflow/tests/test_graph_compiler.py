"""Tests for schema validation, template registry and graph compilation."""

from types import SimpleNamespace

import pytest

from agentflow.core.exceptions import BadRequestException
from agentflow.graphs.compiler import GraphCompiler
from agentflow.graphs.extension import build_template_registry
from agentflow.graphs.registry import GraphRegistry
from agentflow.graphs.templates.base import ConnectionRule, NodeBaseTemplate
from agentflow.graphs.types import GraphNodeStatus, NodeKind
from agentflow.agents.simple_agent import SimpleAgent
from agentflow.triggers.manual import ManualTrigger

AGENT_CONFIG = {"name": "Helper", "instructions": "Be brief"}


def _schema(nodes=None, edges=None):
    return {
        "nodes": nodes
        if nodes is not None
        else [
            {"id": "trigger", "template": "manual-trigger", "config": {}},
            {"id": "agent", "template": "simple-agent", "config": AGENT_CONFIG},
        ],
        "edges": edges if edges is not None else [{"from": "trigger", "to": "agent"}],
    }


def _graph(schema, graph_id="g-1"):
    return SimpleNamespace(id=graph_id, version="1.0.0", schema=schema)


@pytest.fixture
def graphs():
    return GraphRegistry()


@pytest.fixture
def templates(graphs):
    return build_template_registry(providers=None, graphs=graphs, checkpointer=object(), recorder=object())


@pytest.fixture
def compiler(templates):
    return GraphCompiler(templates)


class TestTemplateRegistry:
    def test_builtin_templates(self, templates):
        assert {t.id for t in templates.list()} == {"simple-agent", "manual-trigger"}
        assert templates.get("simple-agent").kind == NodeKind.SIMPLE_AGENT

    def test_duplicate_registration_rejected(self, templates):
        with pytest.raises(ValueError):
            templates.register(templates.get("manual-trigger"))

    def test_validate_config_applies_defaults(self, templates):
        config = templates.validate_config("simple-agent", AGENT_CONFIG)
        assert config.invoke_model_name == "gpt-5"
        assert config.summarize_max_tokens == 272000
        assert config.summarize_keep_tokens == 30000

    def test_validate_config_accepts_camel_case(self, templates):
        config = templates.validate_config("simple-agent", {**AGENT_CONFIG, "invokeModelName": "small"})
        assert config.invoke_model_name == "small"

    def test_invalid_config(self, templates):
        with pytest.raises(BadRequestException) as exc_info:
            templates.validate_config("simple-agent", {"name": "x"})
        assert exc_info.value.message.startswith("Invalid configuration for template 'simple-agent': ")

    def test_json_schema_uses_wire_names(self, templates):
        schema = templates.get("simple-agent").json_schema()
        assert "invokeModelName" in schema["properties"]


class TestValidateSchema:
    def test_valid_schema(self, compiler):
        schema = compiler.validate_schema(_schema())
        assert [n.id for n in schema.nodes] == ["trigger", "agent"]

    def test_duplicate_node_ids(self, compiler):
        nodes = [
            {"id": "a", "template": "simple-agent", "config": AGENT_CONFIG},
            {"id": "a", "template": "simple-agent", "config": AGENT_CONFIG},
        ]
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema(nodes, []))
        assert exc_info.value.message == "Duplicate node IDs found in graph schema"

    def test_unknown_template(self, compiler):
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema([{"id": "x", "template": "nope"}], []))
        assert exc_info.value.message == "Template 'nope' is not registered"

    def test_missing_edge_endpoints(self, compiler):
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema(edges=[{"from": "ghost", "to": "agent"}]))
        assert exc_info.value.message == "Edge references non-existent source node: ghost"

        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema(edges=[{"from": "trigger", "to": "ghost"}]))
        assert exc_info.value.message == "Edge references non-existent target node: ghost"

    def test_incompatible_connection(self, compiler):
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema(edges=[{"from": "agent", "to": "trigger"}]))
        assert exc_info.value.message == "Template 'simple-agent' cannot connect to template 'manual-trigger'"

    def test_trigger_must_reach_an_agent(self, compiler):
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema([{"id": "trigger", "template": "manual-trigger"}], []))
        assert exc_info.value.message == "Manual trigger 'trigger' is not connected to any agent"

        nodes = [
            {"id": "trigger", "template": "manual-trigger", "config": {"agentId": "other"}},
            {"id": "agent", "template": "simple-agent", "config": AGENT_CONFIG},
        ]
        with pytest.raises(BadRequestException) as exc_info:
            compiler.validate_schema(_schema(nodes))
        assert exc_info.value.message == "Manual trigger 'trigger' is not connected to agent 'other'"

    def test_single_connection_rule(self, graphs):
        class OneShotTrigger(NodeBaseTemplate):
            id = "one-shot"
            name = "One shot"
            kind = NodeKind.TRIGGER
            schema = build_template_registry(None, graphs, object(), object()).get("manual-trigger").schema
            outputs = [ConnectionRule(type="kind", value=NodeKind.SIMPLE_AGENT.value, multiple=False)]

            async def create(self, config, input_node_ids, output_node_ids, metadata):
                return None

        templates = build_template_registry(None, graphs, object(), object())
        templates.register(OneShotTrigger())
        nodes = [
            {"id": "t", "template": "one-shot"},
            {"id": "a1", "template": "simple-agent", "config": AGENT_CONFIG},
            {"id": "a2", "template": "simple-agent", "config": AGENT_CONFIG},
        ]
        edges = [{"from": "t", "to": "a1"}, {"from": "t", "to": "a2"}]

        with pytest.raises(BadRequestException):
            GraphCompiler(templates).validate_schema(_schema(nodes, edges))


class TestCompile:
    @pytest.mark.asyncio
    async def test_compile_builds_nodes(self, compiler):
        compiled = await compiler.compile(_graph(_schema()))

        assert list(compiled.nodes) == ["agent", "trigger"]
        assert isinstance(compiled.get_node("agent").instance, SimpleAgent)
        trigger = compiled.get_node("trigger").instance
        assert isinstance(trigger, ManualTrigger)
        assert trigger.agent_ids == ["agent"]
        assert trigger.is_started

        await compiled.destroy()
        assert compiled.get_node("trigger").status == GraphNodeStatus.STOPPED

    @pytest.mark.asyncio
    async def test_trigger_without_agents_fails(self, compiler):
        schema = _schema([{"id": "trigger", "template": "manual-trigger"}], [])
        with pytest.raises(BadRequestException):
            await compiler.compile(_graph(schema))

    @pytest.mark.asyncio
    async def test_trigger_agent_id_must_be_connected(self, compiler):
        schema = _schema(
            [
                {"id": "trigger", "template": "manual-trigger", "config": {"agentId": "other"}},
                {"id": "agent", "template": "simple-agent", "config": AGENT_CONFIG},
            ]
        )
        with pytest.raises(BadRequestException):
            await compiler.compile(_graph(schema))


class TestGraphRegistry:
    @pytest.mark.asyncio
    async def test_register_and_destroy(self, compiler, graphs):
        compiled = await compiler.compile(_graph(_schema()))
        graphs.register("g-1", compiled)

        assert graphs.has("g-1")
        assert graphs.get_node_status("g-1", "trigger") == GraphNodeStatus.RUNNING
        assert graphs.get_node_status("g-1", "agent") == GraphNodeStatus.IDLE

        await graphs.destroy("g-1")
        assert not graphs.has("g-1")
        assert graphs.get_node_status("g-1", "agent") == GraphNodeStatus.STOPPED

    @pytest.mark.asyncio
    async def test_destroy_unregisters_even_on_failure(self, graphs):
        class Broken:
            async def destroy(self):
                raise RuntimeError("stuck")

        graphs.register("g-2", Broken())
        with pytest.raises(RuntimeError):
            await graphs.destroy("g-2")
        assert not graphs.has("g-2")

    @pytest.mark.asyncio
    async def test_destroy_missing_graph_is_noop(self, graphs):
        await graphs.destroy("unknown")
