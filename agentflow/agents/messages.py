"""Message payloads exchanged between triggers, agents and storage."""

import json
import uuid
from typing import Any, Dict, List, Optional

from agentflow.providers.base import ChatMessage

HUMAN = "human"
AI = "ai"
SYSTEM = "system"
TOOL = "tool"
TOOL_SHELL = "tool-shell"

SHELL_TOOL_NAME = "shell"


def new_message(role: str, content: Any, **extra: Any) -> Dict[str, Any]:
    message = {"id": str(uuid.uuid4()), "role": role, "content": content}
    message.update({k: v for k, v in extra.items() if v is not None})
    return message


def _parse_json(content: Any) -> Any:
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except ValueError:
        return None


class MessageTransformer:
    """Converts stored message payloads to their API shape."""

    @staticmethod
    def _shell_content(content: Any) -> Dict[str, Any]:
        parsed = _parse_json(content)
        if not isinstance(parsed, dict):
            return {"exitCode": 1, "stdout": "", "stderr": str(content), "cmd": "", "fail": True}
        exit_code = parsed.get("exitCode", parsed.get("exit_code", 0))
        return {
            "exitCode": exit_code,
            "stdout": parsed.get("stdout", ""),
            "stderr": parsed.get("stderr", ""),
            "cmd": parsed.get("cmd", ""),
            "fail": bool(parsed.get("fail", exit_code != 0)),
        }

    def transform(self, message: Dict[str, Any]) -> Dict[str, Any]:
        role = message.get("role")
        result = {
            "id": message.get("id"),
            "role": role,
            "content": message.get("content"),
        }
        if role == AI:
            result["toolCalls"] = message.get("toolCalls") or []
        elif role == TOOL and message.get("name") == SHELL_TOOL_NAME:
            result["role"] = TOOL_SHELL
            result["name"] = SHELL_TOOL_NAME
            result["toolCallId"] = message.get("toolCallId")
            result["content"] = self._shell_content(message.get("content"))
        elif role == TOOL:
            parsed = _parse_json(message.get("content"))
            result["name"] = message.get("name")
            result["toolCallId"] = message.get("toolCallId")
            result["content"] = parsed if isinstance(parsed, dict) else {"message": message.get("content")}
        return result

    def transform_many(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.transform(message) for message in messages]


def to_chat_message(message: Dict[str, Any]) -> Optional[ChatMessage]:
    """Map a stored message onto the provider's role vocabulary."""
    role = message.get("role")
    content = message.get("content")
    if not isinstance(content, str):
        content = json.dumps(content)
    if role == HUMAN:
        return ChatMessage(role="user", content=content)
    if role == AI:
        return ChatMessage(role="assistant", content=content)
    if role == SYSTEM:
        return ChatMessage(role="system", content=content)
    if role in (TOOL, TOOL_SHELL):
        return ChatMessage(role="user", content=f"[{message.get('name') or 'tool'} result] {content}")
    return None
