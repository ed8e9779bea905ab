"""Retrieval services: filtering, scoring, graph re-ranking and storage."""
