"""Reading and writing the index catalog.

The live catalog comes from ``SHOW INDEXES``; the portable form is a
JSON-lines file with one descriptor per line. Live reads are returned in a
canonical order so that dumps, comparisons and rebuild checkpoints are
reproducible across runs.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from neo4j import READ_ACCESS
from pydantic import ValidationError
import structlog

from neo4j_index_tool.config import DEFAULT_DATABASE
from neo4j_index_tool.exceptions import CatalogFileError
from neo4j_index_tool.models import IndexDescriptor
from neo4j_index_tool.queries import SHOW_INDEXES_QUERY

if TYPE_CHECKING:
    from neo4j import AsyncDriver

logger = structlog.get_logger(__name__)


def sort_key(descriptor: IndexDescriptor) -> tuple[Any, ...]:
    """Canonical ordering key.

    Uniqueness constraints come first, then entries are ordered by index
    type, by label set (fewer labels first, then by sorted label names)
    and finally by name.
    """
    labels = sorted(descriptor.labels_or_types)
    return (
        not descriptor.uniqueness,
        descriptor.type,
        len(labels),
        labels,
        descriptor.name,
    )


def sort_descriptors(descriptors: Iterable[IndexDescriptor]) -> list[IndexDescriptor]:
    """Return descriptors in canonical order."""
    return sorted(descriptors, key=sort_key)


def descriptor_from_record(record: Any) -> IndexDescriptor:
    """Build a descriptor from a positional ``SHOW INDEXES`` row.

    Column order matches SHOW_INDEXES_QUERY.
    """
    return IndexDescriptor(
        id=record[0] or 0,
        name=record[1],
        state=record[2] or "",
        population_percent=record[3] or 0.0,
        uniqueness=str(record[4] or "").upper() == "UNIQUE",
        type=record[5] or "",
        entity_type=record[6] or "NODE",
        labels_or_types=record[7],
        properties=record[8],
        index_provider=record[9],
    )


async def read_live(
    driver: "AsyncDriver",
    database: str = DEFAULT_DATABASE,
) -> list[IndexDescriptor]:
    """Read every index and constraint from the database.

    Args:
        driver: Neo4j async driver.
        database: Database name.

    Returns:
        Descriptors in canonical order.
    """
    async with driver.session(database=database, default_access_mode=READ_ACCESS) as session:
        result = await session.run(SHOW_INDEXES_QUERY)
        descriptors = [descriptor_from_record(record) async for record in result]

    logger.debug("Read live index catalog", count=len(descriptors))
    return sort_descriptors(descriptors)


async def read_live_names(
    driver: "AsyncDriver",
    database: str = DEFAULT_DATABASE,
) -> set[str]:
    """Names of every index and constraint currently in the database."""
    return {descriptor.name for descriptor in await read_live(driver, database)}


def read_from_file(path: Path) -> list[IndexDescriptor]:
    """Read descriptors from a JSON-lines dump file.

    File order is preserved. Blank lines are ignored.

    Args:
        path: Dump file.

    Returns:
        Descriptors in file order.

    Raises:
        CatalogFileError: If the file cannot be read or a line is malformed.
    """
    descriptors = []
    try:
        with Path(path).open(encoding="utf-8") as f:
            for line_number, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    descriptors.append(IndexDescriptor.from_json(line))
                except ValidationError as e:
                    raise CatalogFileError(path, f"line {line_number}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogFileError(path, str(e)) from e

    logger.debug("Read index file", path=str(path), count=len(descriptors))
    return descriptors


def write_to_file(path: Path, descriptors: Iterable[IndexDescriptor]) -> int:
    """Write descriptors to a JSON-lines dump file, replacing its contents.

    Args:
        path: Dump file.
        descriptors: Descriptors to write, in order.

    Returns:
        Number of descriptors written.

    Raises:
        CatalogFileError: If the file cannot be written.
    """
    count = 0
    try:
        with Path(path).open("w", encoding="utf-8") as f:
            for descriptor in descriptors:
                f.write(descriptor.to_json())
                f.write("\n")
                count += 1
    except OSError as e:
        raise CatalogFileError(path, str(e)) from e

    logger.debug("Wrote index file", path=str(path), count=count)
    return count
