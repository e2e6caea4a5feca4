"""Graph runtime wiring: providers, templates, registry and restoration."""

from typing import Optional

from fastapi import FastAPI

from agentflow.agents.checkpointer import CheckpointSaver
from agentflow.bootstrapper import AppExtension
from agentflow.config import Settings
from agentflow.core.logging import get_logger
from agentflow.graphs.compiler import GraphCompiler
from agentflow.graphs.registry import GraphRegistry
from agentflow.graphs.restoration import GraphRestorationService
from agentflow.graphs.templates.manual_trigger import ManualTriggerTemplate
from agentflow.graphs.templates.registry import TemplateRegistry
from agentflow.graphs.templates.simple_agent import SimpleAgentTemplate
from agentflow.providers.registry import ProviderRegistry
from agentflow.threads.recorder import ThreadMessagesRecorder

logger = get_logger(__name__)


def build_template_registry(
    providers: ProviderRegistry,
    graphs: GraphRegistry,
    checkpointer: Optional[CheckpointSaver] = None,
    recorder: Optional[ThreadMessagesRecorder] = None,
) -> TemplateRegistry:
    templates = TemplateRegistry()
    templates.register(
        SimpleAgentTemplate(providers, checkpointer or CheckpointSaver(), recorder or ThreadMessagesRecorder())
    )
    templates.register(ManualTriggerTemplate(graphs))
    return templates


class GraphsExtension(AppExtension):
    name = "graphs"

    def setup(self, app: FastAPI, settings: Settings) -> None:
        self.settings = settings

    async def startup(self, app: FastAPI) -> None:
        # Tests may pre-seed a provider registry
        self._owns_providers = not hasattr(app.state, "provider_registry")
        if self._owns_providers:
            app.state.provider_registry = ProviderRegistry(self.settings)

        graphs = GraphRegistry()
        templates = build_template_registry(app.state.provider_registry, graphs)
        compiler = GraphCompiler(templates)

        app.state.graph_registry = graphs
        app.state.template_registry = templates
        app.state.graph_compiler = compiler

        if self.settings.graph_restore_on_startup:
            await GraphRestorationService(compiler, graphs).restore_graphs()

    async def shutdown(self, app: FastAPI) -> None:
        await app.state.graph_registry.destroy_all()
        if self._owns_providers:
            await app.state.provider_registry.aclose()
            del app.state.provider_registry
