"""Conversational agent node backed by a chat provider and checkpoints."""

import asyncio
import weakref
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from pydantic import Field

from agentflow.agents.checkpointer import CheckpointSaver
from agentflow.agents.messages import AI, SYSTEM, new_message, to_chat_message
from agentflow.core.exceptions import BadRequestException
from agentflow.core.logging import get_logger
from agentflow.core.schemas import ApiModel
from agentflow.graphs.types import GraphNodeStatus, NodeMetadata
from agentflow.providers.base import ChatMessage, ChatRequest
from agentflow.providers.registry import ProviderRegistry
from agentflow.threads.recorder import ThreadMessagesRecorder, ThreadStatus

logger = get_logger(__name__)

SUMMARY_PROMPT = (
    "Summarize the conversation above. Keep facts, decisions, open questions "
    "and anything the assistant promised to do. Reply with the summary only."
)


class SimpleAgentConfig(ApiModel):
    name: str = Field(min_length=1)
    instructions: str = Field(min_length=1)
    invoke_model_name: str = Field(default="gpt-5", min_length=1)
    invoke_model_temperature: Optional[float] = Field(default=None, ge=0, le=2)
    summarize_max_tokens: int = Field(default=272000, gt=0)
    summarize_keep_tokens: int = Field(default=30000, gt=0)


@dataclass
class AgentOutput:
    thread_id: str
    checkpoint_ns: str
    messages: List[Dict[str, Any]]


def estimate_tokens(message: Dict[str, Any]) -> int:
    content = message.get("content")
    text = content if isinstance(content, str) else str(content)
    return len(text) // 4 + 1


class SimpleAgent:
    """Runs one provider turn per invocation and keeps history in checkpoints.

    Runs on the same checkpoint namespace are serialised.
    """

    def __init__(
        self,
        config: SimpleAgentConfig,
        providers: ProviderRegistry,
        checkpointer: CheckpointSaver,
        recorder: ThreadMessagesRecorder,
        metadata: NodeMetadata,
    ):
        self.config = config
        self.providers = providers
        self.checkpointer = checkpointer
        self.recorder = recorder
        self.metadata = metadata
        # Entries vanish once no run holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._active: Set[asyncio.Task] = set()
        self._stopped = False

    @property
    def node_status(self) -> GraphNodeStatus:
        if self._stopped:
            return GraphNodeStatus.STOPPED
        return GraphNodeStatus.RUNNING if self._active else GraphNodeStatus.IDLE

    async def stop(self) -> None:
        self._stopped = True
        current = asyncio.current_task()
        tasks = [task for task in self._active if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _complete(self, messages: List[ChatMessage], max_tokens: Optional[int] = None) -> str:
        request = ChatRequest(
            messages=messages,
            model=self.config.invoke_model_name,
            temperature=self.config.invoke_model_temperature,
            max_tokens=max_tokens,
        )
        response = await self.providers.get_provider().chat_once(request)
        return response.content

    async def summarize(self, history: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Fold old messages into one system summary once history grows too large."""
        total = sum(estimate_tokens(m) for m in history)
        if total <= self.config.summarize_max_tokens:
            return history

        keep: List[Dict[str, Any]] = []
        kept_tokens = 0
        for message in reversed(history):
            kept_tokens += estimate_tokens(message)
            if kept_tokens > self.config.summarize_keep_tokens and keep:
                break
            keep.insert(0, message)
        older = history[: len(history) - len(keep)]
        if not older:
            return history

        prompt = [m for m in (to_chat_message(msg) for msg in older) if m is not None]
        prompt.append(ChatMessage(role="user", content=SUMMARY_PROMPT))
        summary = await self._complete(prompt)
        logger.info(
            "Conversation summarized",
            data={"node_id": self.metadata.node_id, "folded": len(older), "kept": len(keep)},
        )
        return [new_message(SYSTEM, f"Summary of the earlier conversation: {summary}")] + keep

    def _chat_messages(self, history: List[Dict[str, Any]]) -> List[ChatMessage]:
        messages = [ChatMessage(role="system", content=self.config.instructions)]
        messages.extend(m for m in (to_chat_message(msg) for msg in history) if m is not None)
        return messages

    async def run(
        self,
        thread_id: str,
        messages: List[Dict[str, Any]],
        config: Dict[str, Any],
    ) -> AgentOutput:
        if self._stopped:
            raise BadRequestException("GRAPH_NOT_RUNNING", "Agent has been stopped")

        checkpoint_ns = config.get("checkpoint_ns") or f"{thread_id}:{self.metadata.node_id}"
        created_by = config.get("created_by") or ""
        task = asyncio.current_task()
        if task is not None:
            self._active.add(task)

        try:
            lock = self._locks.get(checkpoint_ns)
            if lock is None:
                lock = self._locks[checkpoint_ns] = asyncio.Lock()
            async with lock:
                return await self._run_locked(thread_id, checkpoint_ns, messages, created_by)
        finally:
            if task is not None:
                self._active.discard(task)

    async def _run_locked(
        self,
        thread_id: str,
        checkpoint_ns: str,
        messages: List[Dict[str, Any]],
        created_by: str,
    ) -> AgentOutput:
        graph_id = self.metadata.graph_id
        node_id = self.metadata.node_id
        self.recorder.ensure_thread(graph_id, thread_id, created_by, ThreadStatus.RUNNING)

        try:
            latest = self.checkpointer.get_tuple(thread_id, checkpoint_ns)
            history = list(latest.state.get("messages", [])) if latest else []

            incoming = [new_message(m["role"], m["content"]) for m in messages]
            self.recorder.record(graph_id, node_id, thread_id, incoming, created_by)

            history = await self.summarize(history + incoming)
            answer = new_message(AI, await self._complete(self._chat_messages(history)), toolCalls=[])
            history.append(answer)

            self.checkpointer.put(
                thread_id,
                checkpoint_ns,
                {"messages": history},
                metadata={
                    "source": "loop",
                    "graph_id": graph_id,
                    "node_id": node_id,
                    "version": self.metadata.version,
                },
                parent_checkpoint_id=latest.checkpoint_id if latest else None,
                step=(latest.step + 1) if latest else 1,
            )
            self.recorder.record(graph_id, node_id, thread_id, [answer], created_by)
            self.recorder.set_status(thread_id, ThreadStatus.DONE)
        except asyncio.CancelledError:
            self.recorder.set_status(thread_id, ThreadStatus.STOPPED)
            raise
        except Exception as exc:
            logger.error(
                "Agent run failed",
                data={"graph_id": graph_id, "node_id": node_id, "thread_id": thread_id, "error": str(exc)},
                exc_info=True,
            )
            self.recorder.set_status(thread_id, ThreadStatus.ERROR)
            raise

        return AgentOutput(thread_id=thread_id, checkpoint_ns=checkpoint_ns, messages=[*incoming, answer])
