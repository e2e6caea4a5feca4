"""Node templates."""

from agentflow.graphs.templates.base import ConnectionRule, NodeBaseTemplate
from agentflow.graphs.templates.registry import TemplateRegistry

__all__ = ["ConnectionRule", "NodeBaseTemplate", "TemplateRegistry"]
