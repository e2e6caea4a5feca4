"""Conversation threads and their stored messages."""
