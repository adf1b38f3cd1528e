"""Index and constraint descriptor models.

An IndexDescriptor is one row of the Neo4j index catalog. It is read either
from a live database (``SHOW INDEXES``) or from a dump file, and is the unit
that every dump, load and rebuild operation works on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from neo4j_index_tool.config import DEFAULT_INDEX_PROVIDER


class DescriptorKind(str, Enum):
    """Whether a descriptor is a plain index or a uniqueness constraint."""

    INDEX = "index"
    UNIQUENESS_CONSTRAINT = "uniqueness_constraint"


class IndexState(str, Enum):
    """Coarse population state reported by ``SHOW INDEXES``."""

    ONLINE = "ONLINE"
    POPULATING = "POPULATING"
    FAILED = "FAILED"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: str | None) -> "IndexState":
        """Map a raw state string onto the enum, case-insensitively."""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.OTHER

    @property
    def is_failed(self) -> bool:
        """Whether the build can no longer succeed."""
        return self in (IndexState.FAILED, IndexState.OTHER)

    @property
    def is_started(self) -> bool:
        """Whether the build is underway or finished."""
        return self in (IndexState.ONLINE, IndexState.POPULATING)


@dataclass(frozen=True)
class IndexStatus:
    """Snapshot of an index build.

    Attributes:
        state: Coarse population state.
        percent: Population progress, 0-100.
    """

    state: IndexState
    percent: float = 0.0


class IndexDescriptor(BaseModel):
    """One index or uniqueness constraint from the catalog.

    Field aliases match the ``SHOW INDEXES`` column names, which are also
    the keys used in dump files.

    Attributes:
        id: Database-assigned id, only meaningful on the source instance.
        name: Stable user-visible name, unique per database.
        state: Live population state (defaulted when read from a file).
        population_percent: Live population progress.
        uniqueness: True for uniqueness constraints.
        type: Index type, e.g. BTREE.
        entity_type: NODE or RELATIONSHIP.
        labels_or_types: Labels or relationship types the entry applies to.
        properties: Properties covered, in declared order.
        index_provider: Storage-engine index provider.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = 0
    name: str
    state: str = ""
    population_percent: float = Field(default=0.0, alias="populationPercent")
    uniqueness: bool = False
    type: str = ""
    entity_type: str = Field(default="NODE", alias="entityType")
    labels_or_types: tuple[str, ...] = Field(default=(), alias="labelsOrTypes")
    properties: tuple[str, ...] = ()
    index_provider: str = Field(default=DEFAULT_INDEX_PROVIDER, alias="indexProvider")

    @field_validator("labels_or_types", "properties", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("index_provider", mode="before")
    @classmethod
    def _default_provider(cls, value: Any) -> Any:
        return value or DEFAULT_INDEX_PROVIDER

    @property
    def kind(self) -> DescriptorKind:
        """Plain index or uniqueness constraint."""
        if self.uniqueness:
            return DescriptorKind.UNIQUENESS_CONSTRAINT
        return DescriptorKind.INDEX

    @property
    def is_valid(self) -> bool:
        """Whether there is a label and a property to build on."""
        return bool(self.labels_or_types) and bool(self.properties)

    @property
    def first_label(self) -> str | None:
        """First label or relationship type, if any."""
        return self.labels_or_types[0] if self.labels_or_types else None

    @property
    def is_relationship(self) -> bool:
        """Whether the entry applies to relationships rather than nodes."""
        return self.entity_type.upper() == "RELATIONSHIP"

    def with_provider(self, provider: str) -> "IndexDescriptor":
        """Return a copy using a different index provider."""
        return self.model_copy(update={"index_provider": provider})

    def to_json(self) -> str:
        """Serialize to a single JSON line."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, line: str) -> "IndexDescriptor":
        """Parse a single JSON line."""
        return cls.model_validate_json(line)
