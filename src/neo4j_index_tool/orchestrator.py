"""Dump, load, rebuild and drop of the index catalog.

Neo4j can run out of memory, or leave a corrupted index behind, when many
indexes populate at once. Every operation here therefore waits for each
submitted build to come online before submitting the next one:

- dump: write the live catalog to a JSON-lines file
- load: create the entries of a dump file that do not exist yet, in
  size-tiered batches
- rebuild: drop and recreate every live entry one at a time, keeping a
  checkpoint file so an interrupted run resumes where it stopped
- drop: drop every entry named in a dump file
"""

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from neo4j import READ_ACCESS
from neo4j.exceptions import ClientError, Neo4jError
import structlog

from neo4j_index_tool.buckets import Batch, build_buckets, is_bucketable
from neo4j_index_tool.catalog import (
    read_from_file,
    read_live,
    read_live_names,
    sort_descriptors,
    write_to_file,
)
from neo4j_index_tool.config import (
    ALTERNATE_INDEX_PROVIDER,
    DEFAULT_DATABASE,
    DEFAULT_DUMP_FILE,
)
from neo4j_index_tool.console import Reporter
from neo4j_index_tool.exceptions import IndexBuildError
from neo4j_index_tool.models import IndexDescriptor
from neo4j_index_tool.progress import ProgressTracker
from neo4j_index_tool.queries import build_count, build_create, build_drop
from neo4j_index_tool.version import Neo4jVersion, detect_version

if TYPE_CHECKING:
    from neo4j import AsyncDriver, AsyncManagedTransaction

logger = structlog.get_logger(__name__)


# =============================================================================
# CHECKPOINT
# =============================================================================


def read_checkpoint(path: Path) -> str | None:
    """Name stored in a checkpoint file, or None if absent or blank."""
    path = Path(path)
    if not path.is_file():
        return None
    name = path.read_text(encoding="utf-8").strip()
    return name or None


def write_checkpoint(path: Path, name: str) -> None:
    """Overwrite the checkpoint file with a descriptor name."""
    Path(path).write_text(name, encoding="utf-8")


def resume_from(
    descriptors: Sequence[IndexDescriptor],
    checkpoint: str | None,
) -> list[IndexDescriptor]:
    """Descriptors still to rebuild, starting at the checkpointed one.

    The checkpointed descriptor is included because its rebuild may not
    have finished. An unknown checkpoint name restarts from the beginning.

    Args:
        descriptors: Catalog in canonical order.
        checkpoint: Last name whose rebuild began, if any.

    Returns:
        Remaining descriptors, in order.
    """
    if checkpoint is None:
        return list(descriptors)
    for position, descriptor in enumerate(descriptors):
        if descriptor.name == checkpoint:
            return list(descriptors[position:])
    logger.warning("Checkpoint not found in catalog, starting over", checkpoint=checkpoint)
    return list(descriptors)


# =============================================================================
# REPORTS
# =============================================================================


@dataclass
class LoadReport:
    """Outcome of a load.

    Attributes:
        created: Names built successfully.
        skipped: Names skipped because they already exist.
        invalid: Names dropped for having no label or property.
        failed: Names whose build failed.
        statements: Create statements printed during a dry run.
    """

    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    statements: list[str] = field(default_factory=list)


# =============================================================================
# ORCHESTRATOR
# =============================================================================


class IndexOrchestrator:
    """Runs dump, load, rebuild and drop against one database.

    Example:
        >>> orchestrator = IndexOrchestrator(driver)
        >>> await orchestrator.dump(Path("dump.json"))
        >>> report = await orchestrator.load(Path("dump.json"))
        >>> await orchestrator.rebuild(Path("lastIndex"))
    """

    def __init__(
        self,
        driver: "AsyncDriver",
        database: str = DEFAULT_DATABASE,
        reporter: Reporter | None = None,
        tracker: ProgressTracker | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            driver: Neo4j async driver.
            database: Database name.
            reporter: Operator output.
            tracker: Build monitor; one sharing this driver is created if omitted.
        """
        self.driver = driver
        self.database = database
        self.reporter = reporter or Reporter()
        self.tracker = tracker or ProgressTracker(driver, database, reporter=self.reporter)

    # -------------------------------------------------------------------------
    # dump
    # -------------------------------------------------------------------------

    async def dump(
        self,
        path: Path,
        alternate_provider_properties: Collection[str] = (),
    ) -> list[IndexDescriptor]:
        """Write the live catalog to a dump file.

        Args:
            path: Output file, overwritten.
            alternate_provider_properties: Entries covering any of these
                properties are written with the Lucene-backed provider.

        Returns:
            The descriptors written, in file order.
        """
        descriptors = await read_live(self.driver, self.database)
        self.reporter.info(f"Building index file: {path}")

        if alternate_provider_properties:
            wanted = set(alternate_provider_properties)
            descriptors = [
                d.with_provider(ALTERNATE_INDEX_PROVIDER)
                if wanted.intersection(d.properties)
                else d
                for d in descriptors
            ]

        descriptors = sort_descriptors(descriptors)
        write_to_file(path, descriptors)
        logger.info("Dumped index catalog", path=str(path), count=len(descriptors))
        return descriptors

    # -------------------------------------------------------------------------
    # load
    # -------------------------------------------------------------------------

    async def load(
        self,
        path: Path,
        recreate: bool = False,
        dry_run: bool = False,
        force_individual: Collection[str] = (),
    ) -> LoadReport:
        """Create the entries of a dump file.

        Single-label entries are bucketed by label size; each batch is
        submitted in one transaction and then monitored entry by entry.
        Multi-label entries and those named in ``force_individual`` are
        built one at a time afterwards. A failed build is reported and
        loading carries on with the rest.

        Args:
            path: Dump file.
            recreate: Drop and rebuild entries that already exist.
            dry_run: Only print the create statements.
            force_individual: Names to build outside the batches.

        Returns:
            What was created, skipped and failed.
        """
        version = await detect_version(self.driver, self.database)
        descriptors = read_from_file(path)
        report = LoadReport()

        if dry_run:
            for descriptor in descriptors:
                if descriptor.is_valid:
                    query = build_create(version, descriptor)
                    self.reporter.statement(query)
                    report.statements.append(query)
            return report

        existing = set() if recreate else await read_live_names(self.driver, self.database)
        candidates = []
        for descriptor in descriptors:
            if not descriptor.is_valid:
                self.reporter.skipped(f"Filtering as there's no label: {descriptor.name}")
                report.invalid.append(descriptor.name)
            elif descriptor.name in existing:
                self.reporter.skipped(
                    f"Index with name '{descriptor.name}' already exists, skipping."
                )
                report.skipped.append(descriptor.name)
            else:
                candidates.append(descriptor)

        forced = set(force_individual)
        batched = [d for d in candidates if is_bucketable(d) and d.name not in forced]
        individual = [d for d in candidates if not is_bucketable(d) or d.name in forced]

        sized = [(d, await self._label_size(d)) for d in batched]
        for bucket in build_buckets(sized):
            logger.info(
                "Building bucket",
                tier=bucket.tier.value,
                batches=len(bucket.batches),
                indexes=bucket.descriptor_count,
            )
            for batch in bucket.batches:
                await self._build_batch(version, batch, recreate, report)

        for descriptor in individual:
            if recreate and not await self._drop_for_load(descriptor, report):
                continue
            try:
                await self._build_one(version, descriptor, recreate=False)
            except IndexBuildError as e:
                self._record_failure(e, report)
            else:
                report.created.append(descriptor.name)

        logger.info(
            "Load complete",
            created=len(report.created),
            skipped=len(report.skipped),
            invalid=len(report.invalid),
            failed=len(report.failed),
        )
        return report

    # -------------------------------------------------------------------------
    # rebuild
    # -------------------------------------------------------------------------

    async def rebuild(self, checkpoint_path: Path) -> list[str]:
        """Drop and recreate every live entry, one at a time.

        The checkpoint is written before each drop, so after an interruption
        at most one entry is rebuilt twice and none is skipped. A failed
        build aborts the run with the checkpoint left on the failed entry.

        Args:
            checkpoint_path: File holding the last name whose rebuild began.

        Returns:
            Names rebuilt by this run.

        Raises:
            IndexBuildError: If an entry fails to come back online.
        """
        version = await detect_version(self.driver, self.database)
        live = await read_live(self.driver, self.database)
        descriptors = []
        for descriptor in live:
            if descriptor.is_valid:
                descriptors.append(descriptor)
            else:
                self.reporter.skipped(f"Filtering as there's no label: {descriptor.name}")

        checkpoint = read_checkpoint(checkpoint_path)
        if checkpoint is not None and checkpoint not in {d.name for d in live}:
            self.reporter.error(
                f"Index '{checkpoint}' from {checkpoint_path} is missing from the database; "
                f"restore it from a dump with: neo4j-index load -f {DEFAULT_DUMP_FILE}"
            )
        remaining = resume_from(descriptors, checkpoint)
        if checkpoint is not None and remaining and remaining[0].name == checkpoint:
            self.reporter.info(f"Resuming from index: {checkpoint}")

        rebuilt = []
        for descriptor in remaining:
            write_checkpoint(checkpoint_path, descriptor.name)
            await self._build_one(version, descriptor, recreate=True)
            rebuilt.append(descriptor.name)

        self.reporter.info(f"Last index saved to {checkpoint_path}")
        logger.info("Rebuild complete", rebuilt=len(rebuilt), checkpoint=str(checkpoint_path))
        return rebuilt

    # -------------------------------------------------------------------------
    # drop
    # -------------------------------------------------------------------------

    async def drop(self, path: Path) -> list[str]:
        """Drop every entry named in a dump file.

        Args:
            path: Dump file.

        Returns:
            Names dropped.
        """
        descriptors = read_from_file(path)
        self.reporter.info(f"Dropping indexes from file: {Path(path).absolute()}")
        for descriptor in descriptors:
            await self._drop(descriptor)
        return [d.name for d in descriptors]

    # -------------------------------------------------------------------------
    # helpers
    # -------------------------------------------------------------------------

    async def _write(self, queries: Sequence[str]) -> None:
        """Run statements in a single write transaction."""

        async def work(tx: "AsyncManagedTransaction") -> None:
            for query in queries:
                result = await tx.run(query)
                await result.consume()

        async with self.driver.session(database=self.database) as session:
            await session.execute_write(work)

    async def _drop(self, descriptor: IndexDescriptor) -> None:
        query = build_drop(descriptor)
        self.reporter.statement(query)
        await self._write([query])

    async def _drop_for_load(self, descriptor: IndexDescriptor, report: LoadReport) -> bool:
        """Drop an entry ahead of recreating it; a rejected drop fails the entry."""
        try:
            await self._drop(descriptor)
        except ClientError as e:
            logger.error("Drop statement rejected", name=descriptor.name, error=str(e))
            self._record_failure(IndexBuildError(descriptor.name), report)
            return False
        return True

    async def _build_one(
        self,
        version: Neo4jVersion,
        descriptor: IndexDescriptor,
        recreate: bool,
    ) -> None:
        """Optionally drop, then create one entry and wait for it."""
        if recreate:
            await self._drop(descriptor)
        query = build_create(version, descriptor)
        self.reporter.statement(query)
        try:
            await self._write([query])
        except ClientError as e:
            logger.error("Create statement rejected", name=descriptor.name, error=str(e))
            raise IndexBuildError(descriptor.name) from e
        await self.tracker.await_completion(descriptor)

    async def _build_batch(
        self,
        version: Neo4jVersion,
        batch: Batch,
        recreate: bool,
        report: LoadReport,
    ) -> None:
        """Submit one batch in a transaction, then monitor each member.

        When recreating, members whose drop is rejected are left out.
        """
        members = []
        for descriptor in batch:
            if recreate and not await self._drop_for_load(descriptor, report):
                continue
            members.append(descriptor)
        if not members:
            return

        queries = [build_create(version, descriptor) for descriptor in members]
        for query in queries:
            self.reporter.statement(query)
        try:
            await self._write(queries)
        except ClientError as e:
            logger.error("Batch rejected", size=len(members), error=str(e))
            for descriptor in members:
                self._record_failure(IndexBuildError(descriptor.name), report)
            return

        for descriptor in members:
            try:
                await self.tracker.await_completion(descriptor)
            except IndexBuildError as e:
                self._record_failure(e, report)
            else:
                report.created.append(descriptor.name)

    def _record_failure(self, error: IndexBuildError, report: LoadReport) -> None:
        self.reporter.error(str(error))
        report.failed.append(error.descriptor_name)

    async def _label_size(self, descriptor: IndexDescriptor) -> int:
        """Approximate rows for the descriptor's label; 0 if the count fails."""
        try:
            async with self.driver.session(
                database=self.database, default_access_mode=READ_ACCESS
            ) as session:
                result = await session.run(build_count(descriptor))
                records = [record async for record in result]
        except Neo4jError as e:
            logger.warning("Label count failed", label=descriptor.first_label, error=str(e))
            return 0
        return int(records[0]["count"]) if records else 0
