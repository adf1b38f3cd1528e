"""Data models for the index tool."""

from neo4j_index_tool.models.descriptor import (
    DescriptorKind,
    IndexDescriptor,
    IndexState,
    IndexStatus,
)

__all__ = [
    "DescriptorKind",
    "IndexDescriptor",
    "IndexState",
    "IndexStatus",
]
