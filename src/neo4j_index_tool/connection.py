"""Neo4j driver construction."""

from neo4j import AsyncDriver, AsyncGraphDatabase
from neo4j.exceptions import ServiceUnavailable, SessionExpired
import structlog

from neo4j_index_tool.config import ConnectionSettings
from neo4j_index_tool.exceptions import ConnectionFailedError, Neo4jConfigError
from neo4j_index_tool.utils.retry import connect_retry

logger = structlog.get_logger(__name__)


@connect_retry
async def _verify(driver: AsyncDriver) -> None:
    await driver.verify_connectivity()


async def open_driver(settings: ConnectionSettings) -> AsyncDriver:
    """Create a driver and confirm the server is reachable.

    Args:
        settings: Connection settings.

    Returns:
        A connected async driver. The caller owns closing it.

    Raises:
        Neo4jConfigError: If auth is enabled but credentials are missing.
        ConnectionFailedError: If the server is still unreachable after retries.
    """
    if not settings.no_auth and not (settings.username and settings.password):
        raise Neo4jConfigError()

    if settings.no_auth:
        logger.info("Connecting without authentication", uri=settings.uri)
    else:
        logger.info("Connecting with basic authentication", uri=settings.uri)

    driver = AsyncGraphDatabase.driver(settings.uri, auth=settings.auth)
    try:
        await _verify(driver)
    except (ServiceUnavailable, SessionExpired) as e:
        await driver.close()
        raise ConnectionFailedError(settings.uri) from e
    return driver
