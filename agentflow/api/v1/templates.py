"""v1 template catalogue."""

from typing import List

from fastapi import APIRouter, Request

from agentflow.graphs.schemas import TemplateResponse

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=List[TemplateResponse])
async def list_templates(request: Request) -> List[TemplateResponse]:
    return [
        TemplateResponse(
            id=template.id,
            name=template.name,
            description=template.description,
            kind=template.kind,
            schema_=template.json_schema(),
            inputs=[rule.to_dict() for rule in template.inputs or []],
            outputs=[rule.to_dict() for rule in template.outputs or []],
        )
        for template in request.app.state.template_registry.list()
    ]
