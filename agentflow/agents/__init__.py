"""Agent nodes, message shapes and checkpoint storage."""
