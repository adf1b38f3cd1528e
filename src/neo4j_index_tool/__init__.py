"""Neo4j index and constraint lifecycle tool.

Dumps the index catalog of a Neo4j database to a portable file, loads it
into another instance in size-tiered batches, and rebuilds an existing
catalog one entry at a time with a resumable checkpoint.

Usage:
    import asyncio
    from pathlib import Path

    from neo4j_index_tool import IndexOrchestrator, ConnectionSettings, open_driver

    async def main():
        driver = await open_driver(ConnectionSettings.from_env())
        try:
            orchestrator = IndexOrchestrator(driver)
            await orchestrator.dump(Path("dump.json"))
        finally:
            await driver.close()

    asyncio.run(main())
"""

from .buckets import Batch, Bucket, SizeTier, build_buckets, classify, partition
from .catalog import read_from_file, read_live, sort_descriptors, write_to_file
from .config import ConnectionSettings
from .connection import open_driver
from .console import Reporter
from .exceptions import (
    CatalogFileError,
    ConnectionFailedError,
    ConstraintTimeoutError,
    IndexBuildError,
    IndexToolError,
    InvalidDescriptorError,
    Neo4jConfigError,
    UnsupportedVersionError,
)
from .models import DescriptorKind, IndexDescriptor, IndexState, IndexStatus
from .orchestrator import IndexOrchestrator, LoadReport
from .progress import ProgressTracker
from .queries import build_create, build_drop
from .version import Neo4jVersion, detect_version, parse_version

__version__ = "0.1.0"

__all__ = [
    # Models
    "DescriptorKind",
    "IndexDescriptor",
    "IndexState",
    "IndexStatus",
    # Catalog
    "read_live",
    "read_from_file",
    "write_to_file",
    "sort_descriptors",
    # Version
    "Neo4jVersion",
    "detect_version",
    "parse_version",
    # Queries
    "build_create",
    "build_drop",
    # Buckets
    "SizeTier",
    "Batch",
    "Bucket",
    "classify",
    "partition",
    "build_buckets",
    # Orchestration
    "ProgressTracker",
    "IndexOrchestrator",
    "LoadReport",
    "Reporter",
    # Connection
    "ConnectionSettings",
    "open_driver",
    # Exceptions
    "IndexToolError",
    "Neo4jConfigError",
    "ConnectionFailedError",
    "UnsupportedVersionError",
    "CatalogFileError",
    "InvalidDescriptorError",
    "IndexBuildError",
    "ConstraintTimeoutError",
]
