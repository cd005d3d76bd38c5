"""Retrieval core for exam reference materials: chunking, vector search and prompt context assembly."""

__version__ = "0.1.0"
