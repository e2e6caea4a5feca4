"""Validate graph schemas and build them into runnable node instances."""

from collections import Counter
from typing import Any, Dict, Union

from pydantic import ValidationError

from agentflow.core.exceptions import BadRequestException
from agentflow.core.logging import get_logger
from agentflow.graphs.schemas import GraphSchema
from agentflow.graphs.templates.registry import TemplateRegistry
from agentflow.graphs.types import KIND_BUILD_ORDER, CompiledGraph, CompiledGraphNode, NodeMetadata

logger = get_logger(__name__)


class GraphCompiler:
    def __init__(self, templates: TemplateRegistry):
        self.templates = templates

    @staticmethod
    def parse_schema(schema: Union[GraphSchema, Dict[str, Any]]) -> GraphSchema:
        if isinstance(schema, GraphSchema):
            return schema
        try:
            return GraphSchema.model_validate(schema)
        except ValidationError as exc:
            raise BadRequestException("BAD_REQUEST", f"Invalid graph schema: {exc.error_count()} errors") from exc

    def validate_schema(self, schema: Union[GraphSchema, Dict[str, Any]]) -> GraphSchema:
        """Check node ids, templates, configs, edge endpoints and connection rules."""
        schema = self.parse_schema(schema)

        ids = [node.id for node in schema.nodes]
        if len(ids) != len(set(ids)):
            raise BadRequestException("BAD_REQUEST", "Duplicate node IDs found in graph schema")

        templates = {}
        configs = {}
        for node in schema.nodes:
            templates[node.id] = self.templates.require(node.template)
            configs[node.id] = self.templates.validate_config(node.template, node.config)

        for edge in schema.edges:
            if edge.from_ not in templates:
                raise BadRequestException("BAD_REQUEST", f"Edge references non-existent source node: {edge.from_}")
            if edge.to not in templates:
                raise BadRequestException("BAD_REQUEST", f"Edge references non-existent target node: {edge.to}")

        outgoing: Counter = Counter()
        for edge in schema.edges:
            source = templates[edge.from_]
            target = templates[edge.to]
            output_rule = next((r for r in source.outputs or [] if r.matches(target)), None)
            input_rule = next((r for r in target.inputs or [] if r.matches(source)), None)
            if (source.outputs is not None and output_rule is None) or (
                target.inputs is not None and input_rule is None
            ):
                raise BadRequestException(
                    "BAD_REQUEST",
                    f"Template '{source.id}' cannot connect to template '{target.id}'",
                )
            if output_rule is not None and not output_rule.multiple:
                outgoing[(edge.from_, output_rule)] += 1
                if outgoing[(edge.from_, output_rule)] > 1:
                    raise BadRequestException(
                        "BAD_REQUEST",
                        f"Node '{edge.from_}' allows only one connection to {output_rule.value}",
                    )

        for node in schema.nodes:
            templates[node.id].validate_connections(
                node.id,
                configs[node.id],
                {e.from_ for e in schema.edges if e.to == node.id},
                {e.to for e in schema.edges if e.from_ == node.id},
            )

        return schema

    async def compile(self, graph) -> CompiledGraph:
        """Build every node of ``graph`` (an entity with id, version and schema)."""
        schema = self.validate_schema(graph.schema)
        order = {kind: index for index, kind in enumerate(KIND_BUILD_ORDER)}
        nodes = sorted(
            schema.nodes,
            key=lambda n: order.get(self.templates.require(n.template).kind, len(order)),
        )

        compiled = CompiledGraph(
            graph_id=graph.id,
            version=graph.version,
            nodes={},
            edges=[edge.model_dump(by_alias=True) for edge in schema.edges],
        )
        try:
            for node in nodes:
                template = self.templates.require(node.template)
                config = self.templates.validate_config(node.template, node.config)
                inputs = {e.from_ for e in schema.edges if e.to == node.id}
                outputs = {e.to for e in schema.edges if e.from_ == node.id}
                instance = await template.create(
                    config, inputs, outputs, NodeMetadata(graph.id, node.id, graph.version)
                )
                compiled.nodes[node.id] = CompiledGraphNode(
                    id=node.id,
                    kind=template.kind,
                    template=template.id,
                    config=config,
                    instance=instance,
                )
        except BaseException:
            await compiled.destroy()
            raise

        logger.info(
            "Graph compiled",
            data={"graph_id": graph.id, "version": graph.version, "nodes": len(compiled.nodes)},
        )
        return compiled
