"""Registry of available node templates."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from agentflow.core.exceptions import BadRequestException
from agentflow.graphs.templates.base import NodeBaseTemplate


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()))
        parts.append(f"{loc}: {error.get('msg')}" if loc else error.get("msg", ""))
    return "; ".join(parts)


class TemplateRegistry:
    def __init__(self):
        self._templates: Dict[str, NodeBaseTemplate] = {}

    def register(self, template: NodeBaseTemplate) -> None:
        if template.id in self._templates:
            raise ValueError(f"Template '{template.id}' is already registered")
        self._templates[template.id] = template

    def get(self, template_id: str) -> Optional[NodeBaseTemplate]:
        return self._templates.get(template_id)

    def has(self, template_id: str) -> bool:
        return template_id in self._templates

    def list(self) -> List[NodeBaseTemplate]:
        return list(self._templates.values())

    def require(self, template_id: str) -> NodeBaseTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise BadRequestException("TEMPLATE_NOT_FOUND", f"Template '{template_id}' is not registered")
        return template

    def validate_config(self, template_id: str, config: Dict[str, Any]) -> BaseModel:
        template = self.require(template_id)
        try:
            return template.schema.model_validate(config or {})
        except ValidationError as exc:
            raise BadRequestException(
                "BAD_REQUEST",
                f"Invalid configuration for template '{template_id}': {_format_errors(exc)}",
            ) from exc
