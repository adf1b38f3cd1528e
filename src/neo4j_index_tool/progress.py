"""Index and constraint build monitoring.

Neo4j reports index population and constraint status in two separate
catalogs. A uniqueness constraint's backing index can reach 100% before the
constraint itself shows up as online, so constraints are checked in both.

Build lifecycle for one descriptor::

    SUBMITTED -> POPULATING -> ONLINE            success
                            -> FAILED            IndexBuildError
    SUBMITTED -> not seen after quick polls      IndexBuildError
    ONLINE (constraint) -> constraint visible    success
                        -> timeout               ConstraintTimeoutError

Every poll opens and closes its own session; nothing is held across a sleep.
"""

import asyncio
from typing import TYPE_CHECKING

from neo4j import READ_ACCESS
import structlog

from neo4j_index_tool.config import (
    CONSTRAINT_ONLINE_ATTEMPTS,
    DEFAULT_DATABASE,
    POLL_INTERVAL_SECONDS,
    START_CHECK_ATTEMPTS,
    START_CHECK_INTERVAL_SECONDS,
)
from neo4j_index_tool.console import Reporter
from neo4j_index_tool.exceptions import ConstraintTimeoutError, IndexBuildError
from neo4j_index_tool.models import IndexDescriptor, IndexState, IndexStatus
from neo4j_index_tool.queries import CONSTRAINT_STATUS_QUERY, INDEX_STATUS_QUERY

if TYPE_CHECKING:
    from neo4j import AsyncDriver

logger = structlog.get_logger(__name__)


class ProgressTracker:
    """Polls Neo4j for the build status of indexes and constraints.

    Example:
        >>> tracker = ProgressTracker(driver)
        >>> await tracker.await_completion(descriptor)
    """

    def __init__(
        self,
        driver: "AsyncDriver",
        database: str = DEFAULT_DATABASE,
        reporter: Reporter | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        start_check_attempts: int = START_CHECK_ATTEMPTS,
        start_check_interval: float = START_CHECK_INTERVAL_SECONDS,
        constraint_attempts: int = CONSTRAINT_ONLINE_ATTEMPTS,
    ) -> None:
        """Initialize the tracker.

        Args:
            driver: Neo4j async driver.
            database: Database name.
            reporter: Operator output.
            poll_interval: Seconds between population polls.
            start_check_attempts: Quick polls used to confirm a build started.
            start_check_interval: Seconds between quick polls.
            constraint_attempts: Constraint catalog polls before giving up.
        """
        self.driver = driver
        self.database = database
        self.reporter = reporter or Reporter()
        self.poll_interval = poll_interval
        self.start_check_attempts = start_check_attempts
        self.start_check_interval = start_check_interval
        self.constraint_attempts = constraint_attempts

    async def index_status(self, name: str) -> IndexStatus:
        """Current population state of an index.

        An index that cannot be found is reported as FAILED.

        Args:
            name: Index name.

        Returns:
            State and population percentage.
        """
        async with self.driver.session(
            database=self.database, default_access_mode=READ_ACCESS
        ) as session:
            result = await session.run(INDEX_STATUS_QUERY, name=name)
            records = [record async for record in result]

        if not records:
            return IndexStatus(state=IndexState.FAILED)

        record = records[0]
        return IndexStatus(
            state=IndexState.parse(record["state"]),
            percent=float(record["populationPercent"] or 0.0),
        )

    async def constraint_online(self, name: str) -> bool:
        """Whether a constraint is listed by ``SHOW CONSTRAINTS``."""
        async with self.driver.session(
            database=self.database, default_access_mode=READ_ACCESS
        ) as session:
            result = await session.run(CONSTRAINT_STATUS_QUERY, name=name)
            records = [record async for record in result]
        return bool(records)

    async def wait_until_started(self, name: str) -> bool:
        """Confirm that a submitted build is visible and not failed.

        Args:
            name: Index name.

        Returns:
            True once the index is populating or online, False if it never
            showed up within the quick poll budget.
        """
        for _ in range(self.start_check_attempts):
            status = await self.index_status(name)
            if status.state.is_started:
                return True
            await asyncio.sleep(self.start_check_interval)
        return False

    async def monitor(self, descriptor: IndexDescriptor) -> None:
        """Block until an index is fully populated.

        Args:
            descriptor: Index or constraint being built.

        Raises:
            IndexBuildError: If the index fails or disappears.
            ConstraintTimeoutError: If a constraint never comes online.
        """
        name = descriptor.name
        self.reporter.info(f"Monitoring: {name}")

        with self.reporter.build_progress(name) as update:
            while True:
                status = await self.index_status(name)
                if status.state.is_failed:
                    logger.error("Index build failed", name=name, state=status.state.value)
                    raise IndexBuildError(name)
                update(status.percent)
                if status.percent >= 100.0 or status.state is IndexState.ONLINE:
                    break
                await asyncio.sleep(self.poll_interval)

        if descriptor.uniqueness:
            await self._await_constraint(name)

        logger.info("Index online", name=name)

    async def _await_constraint(self, name: str) -> None:
        for _ in range(self.constraint_attempts):
            if await self.constraint_online(name):
                return
            await asyncio.sleep(self.poll_interval)
        logger.error("Constraint did not come online", name=name)
        raise ConstraintTimeoutError(name)

    async def await_completion(self, descriptor: IndexDescriptor) -> None:
        """Confirm a build started, then monitor it to completion.

        Args:
            descriptor: Index or constraint that was just submitted.

        Raises:
            IndexBuildError: If the build never started or failed.
            ConstraintTimeoutError: If a constraint never comes online.
        """
        if not await self.wait_until_started(descriptor.name):
            raise IndexBuildError(
                descriptor.name, f"Index '{descriptor.name}' never started building"
            )
        await self.monitor(descriptor)
