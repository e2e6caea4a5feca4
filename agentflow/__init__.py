"""Agentflow backend: graph-based agent workflows over HTTP."""

__version__ = "0.1.0"
