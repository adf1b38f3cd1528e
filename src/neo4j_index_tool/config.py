"""Configuration for the index tool.

Thresholds, batch sizes and polling cadence are tuned to keep the number of
concurrent index populations low enough that Neo4j does not run out of memory
or leave a corrupted index behind.
"""

from dataclasses import dataclass
import os

# Connection defaults
DEFAULT_URI = "bolt://localhost:7687"
DEFAULT_DATABASE = "neo4j"
CONNECT_ATTEMPTS = 5

# Index providers
DEFAULT_INDEX_PROVIDER = "native-btree-1.0"
ALTERNATE_INDEX_PROVIDER = "lucene+native-3.0"

# Default file names
DEFAULT_DUMP_FILE = "dump.json"
DEFAULT_CHECKPOINT_FILE = "lastIndex"

# Bucketing by label size
SMALL_LABEL_THRESHOLD = 1_000
MEDIUM_LABEL_THRESHOLD = 100_000
SMALL_BATCH_SIZE = 100
MEDIUM_BATCH_SIZE = 10
LARGE_BATCH_SIZE = 1

# Progress polling
START_CHECK_ATTEMPTS = 10
START_CHECK_INTERVAL_SECONDS = 0.01
POLL_INTERVAL_SECONDS = 0.1
CONSTRAINT_ONLINE_ATTEMPTS = 100  # ~10s at POLL_INTERVAL_SECONDS


@dataclass
class ConnectionSettings:
    """Connection settings for the target database.

    Attributes:
        uri: Bolt or neo4j URI.
        username: Basic auth username.
        password: Basic auth password.
        database: Database name.
        no_auth: Connect without authentication.
    """

    uri: str = DEFAULT_URI
    username: str = ""
    password: str = ""
    database: str = DEFAULT_DATABASE
    no_auth: bool = False

    @classmethod
    def from_env(cls) -> "ConnectionSettings":
        """Build settings from NEO4J_* environment variables."""
        return cls(
            uri=os.getenv("NEO4J_URI", DEFAULT_URI),
            username=os.getenv("NEO4J_USERNAME", ""),
            password=os.getenv("NEO4J_PASSWORD", ""),
            database=os.getenv("NEO4J_DATABASE", DEFAULT_DATABASE),
        )

    @property
    def auth(self) -> tuple[str, str] | None:
        """Auth tuple for the driver, or None when auth is disabled."""
        if self.no_auth:
            return None
        return (self.username, self.password)
