"""Custom exceptions for the index tool.

Provides a hierarchy of exceptions for different error conditions:
- IndexToolError: Base exception for all index tool errors
- Neo4jConfigError: Neo4j connection settings missing
- ConnectionFailedError: Driver could not reach the database
- UnsupportedVersionError: Neo4j version has no known DDL syntax
- CatalogFileError: Dump file missing or malformed
- InvalidDescriptorError: Descriptor has no label or property to build on
- IndexBuildError: Index failed to come online
- ConstraintTimeoutError: Constraint never became visible as online
"""


class IndexToolError(Exception):
    """Base exception for index tool errors."""


class Neo4jConfigError(IndexToolError):
    """Neo4j connection settings not provided.

    Raised when authentication is enabled but no username or password
    was given on the command line or through the environment.
    """

    def __init__(self) -> None:
        """Initialize Neo4jConfigError."""
        super().__init__(
            "Neo4j credentials missing. "
            "Set NEO4J_USERNAME and NEO4J_PASSWORD, or pass --no-auth."
        )


class ConnectionFailedError(IndexToolError):
    """Unable to connect to Neo4j after exhausting retries.

    Attributes:
        uri: The URI that could not be reached.
    """

    def __init__(self, uri: str) -> None:
        """Initialize ConnectionFailedError.

        Args:
            uri: The URI that could not be reached.
        """
        self.uri = uri
        super().__init__(f"Unable to connect to Neo4j: {uri}")


class UnsupportedVersionError(IndexToolError):
    """Neo4j version string does not map to a supported syntax profile.

    Attributes:
        version: The version string reported by the server.
    """

    def __init__(self, version: str | None) -> None:
        """Initialize UnsupportedVersionError.

        Args:
            version: The version string reported by the server.
        """
        self.version = version
        super().__init__(f"Unsupported Neo4j version: {version}")


class CatalogFileError(IndexToolError):
    """Dump file could not be read or written.

    Attributes:
        path: The offending file.
    """

    def __init__(self, path: object, message: str) -> None:
        """Initialize CatalogFileError.

        Args:
            path: The offending file.
            message: Description of what went wrong.
        """
        self.path = path
        super().__init__(f"Index file {path}: {message}")


class InvalidDescriptorError(IndexToolError):
    """Descriptor cannot be turned into a create statement."""


class IndexBuildError(IndexToolError):
    """An index or constraint failed to build.

    Attributes:
        descriptor_name: Name of the index or constraint.
    """

    def __init__(self, descriptor_name: str, message: str | None = None) -> None:
        """Initialize IndexBuildError.

        Args:
            descriptor_name: Name of the index or constraint.
            message: Optional override for the error text.
        """
        self.descriptor_name = descriptor_name
        super().__init__(message or f"Failed to create index: {descriptor_name}")


class ConstraintTimeoutError(IndexBuildError):
    """Constraint backing index finished but the constraint never came online."""

    def __init__(self, descriptor_name: str) -> None:
        """Initialize ConstraintTimeoutError.

        Args:
            descriptor_name: Name of the constraint.
        """
        super().__init__(
            descriptor_name,
            f"Constraint '{descriptor_name}' failed to come online, please create manually.",
        )
