"""Cypher statements for index and constraint management.

Create and drop statements are built from an IndexDescriptor. Constraint
syntax depends on the server version; plain index syntax does not.
Introspection queries take the index name as a parameter.
"""

from neo4j_index_tool.exceptions import InvalidDescriptorError
from neo4j_index_tool.models import IndexDescriptor
from neo4j_index_tool.version import Neo4jVersion

# =============================================================================
# DDL TEMPLATES
# =============================================================================

INDEX_TEMPLATE = (
    "CREATE INDEX {name} IF NOT EXISTS FOR {pattern} ON ({properties}) "
    "OPTIONS {{ indexProvider: '{provider}' }}"
)

_ASSERT_UNIQUE = "CREATE CONSTRAINT {name} IF NOT EXISTS ON {pattern} ASSERT {property} IS UNIQUE"
_REQUIRE_UNIQUE = "CREATE CONSTRAINT {name} IF NOT EXISTS FOR {pattern} REQUIRE {property} IS UNIQUE"

# 4.4 deprecated ON ... ASSERT in favour of FOR ... REQUIRE
CONSTRAINT_TEMPLATES: dict[Neo4jVersion, str] = {
    Neo4jVersion.V4_2: _ASSERT_UNIQUE,
    Neo4jVersion.V4_3: _ASSERT_UNIQUE,
    Neo4jVersion.V4_4: _REQUIRE_UNIQUE,
}

DROP_TEMPLATE = "DROP {kind} {name} IF EXISTS"

# =============================================================================
# INTROSPECTION QUERIES
# =============================================================================

SHOW_INDEXES_QUERY = (
    "SHOW INDEXES YIELD id, name, state, populationPercent, uniqueness, type, "
    "entityType, labelsOrTypes, properties, indexProvider"
)

INDEX_STATUS_QUERY = (
    "SHOW INDEXES YIELD name, state, populationPercent WHERE name = $name "
    "RETURN state, populationPercent"
)

CONSTRAINT_STATUS_QUERY = "SHOW CONSTRAINTS YIELD name WHERE name = $name RETURN name"


def quote(identifier: str) -> str:
    """Backtick-quote an identifier, escaping embedded backticks."""
    return "`" + identifier.replace("`", "``") + "`"


def _pattern(descriptor: IndexDescriptor) -> str:
    label = quote(descriptor.first_label)
    if descriptor.is_relationship:
        return f"()-[n:{label}]-()"
    return f"(n:{label})"


def _check_buildable(descriptor: IndexDescriptor) -> None:
    if not descriptor.is_valid:
        msg = f"Index '{descriptor.name}' has no label or property to build on"
        raise InvalidDescriptorError(msg)


def build_index(descriptor: IndexDescriptor) -> str:
    """Build the create statement for a plain index over every property."""
    _check_buildable(descriptor)
    properties = ", ".join(f"n.{quote(p)}" for p in descriptor.properties)
    return INDEX_TEMPLATE.format(
        name=quote(descriptor.name),
        pattern=_pattern(descriptor),
        properties=properties,
        provider=descriptor.index_provider.replace("'", "\\'"),
    )


def build_constraint(version: Neo4jVersion, descriptor: IndexDescriptor) -> str:
    """Build the create statement for a uniqueness constraint.

    Only the first property is used.

    Args:
        version: Server syntax profile.
        descriptor: Constraint to create.

    Returns:
        Cypher statement.
    """
    _check_buildable(descriptor)
    return CONSTRAINT_TEMPLATES[version].format(
        name=quote(descriptor.name),
        pattern=_pattern(descriptor),
        property=f"n.{quote(descriptor.properties[0])}",
    )


def build_create(version: Neo4jVersion, descriptor: IndexDescriptor) -> str:
    """Build the create statement for an index or constraint.

    Args:
        version: Server syntax profile.
        descriptor: Entry to create.

    Returns:
        Cypher statement.

    Raises:
        InvalidDescriptorError: If the descriptor has no label or property.
    """
    if descriptor.uniqueness:
        return build_constraint(version, descriptor)
    return build_index(descriptor)


def build_drop(descriptor: IndexDescriptor) -> str:
    """Build the drop statement for an index or constraint."""
    kind = "CONSTRAINT" if descriptor.uniqueness else "INDEX"
    return DROP_TEMPLATE.format(kind=kind, name=quote(descriptor.name))


def build_count(descriptor: IndexDescriptor) -> str:
    """Build the row count query for the descriptor's first label or type."""
    label = quote(descriptor.first_label or "")
    if descriptor.is_relationship:
        return f"MATCH ()-[r:{label}]->() RETURN count(r) AS count"
    return f"MATCH (n:{label}) RETURN count(n) AS count"
