"""Neo4j version detection.

Constraint DDL syntax changed between 4.3 and 4.4, so the server version
must be known before any create statement is built.
"""

from enum import Enum
from typing import TYPE_CHECKING

from neo4j import READ_ACCESS
import structlog

from neo4j_index_tool.config import DEFAULT_DATABASE
from neo4j_index_tool.exceptions import UnsupportedVersionError

if TYPE_CHECKING:
    from neo4j import AsyncDriver

logger = structlog.get_logger(__name__)

VERSION_QUERY = (
    "CALL dbms.components() YIELD versions UNWIND versions AS version RETURN version"
)


class Neo4jVersion(str, Enum):
    """Supported Neo4j versions, one per constraint syntax profile."""

    V4_2 = "4.2"
    V4_3 = "4.3"
    V4_4 = "4.4"


def parse_version(version: str | None) -> Neo4jVersion:
    """Map a server version string to a supported profile.

    Args:
        version: Version string such as ``4.4.12``.

    Returns:
        The matching Neo4jVersion.

    Raises:
        UnsupportedVersionError: If no supported prefix matches.
    """
    if version:
        for profile in Neo4jVersion:
            if version == profile.value or version.startswith(f"{profile.value}."):
                return profile
    raise UnsupportedVersionError(version)


async def detect_version(
    driver: "AsyncDriver",
    database: str = DEFAULT_DATABASE,
) -> Neo4jVersion:
    """Query the server for its version.

    Args:
        driver: Neo4j async driver.
        database: Database name.

    Returns:
        The server's syntax profile.

    Raises:
        UnsupportedVersionError: If the version is unknown or missing.
    """
    async with driver.session(database=database, default_access_mode=READ_ACCESS) as session:
        result = await session.run(VERSION_QUERY)
        records = [record async for record in result]

    raw = records[0][0] if records else None
    profile = parse_version(raw)
    logger.info("Detected Neo4j version", version=raw, profile=profile.value)
    return profile
