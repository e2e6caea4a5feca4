"""Triggers start agent runs inside a compiled graph."""

from agentflow.triggers.base import BaseTrigger, TriggerStatus
from agentflow.triggers.manual import ManualTrigger, TriggerResult

__all__ = ["BaseTrigger", "ManualTrigger", "TriggerResult", "TriggerStatus"]
