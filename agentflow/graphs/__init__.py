"""Graphs: definitions, compilation and execution lifecycle."""
