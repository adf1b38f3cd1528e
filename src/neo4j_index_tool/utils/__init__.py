"""Utility helpers."""

from neo4j_index_tool.utils.retry import connect_retry

__all__ = ["connect_retry"]
