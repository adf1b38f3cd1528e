"""Size-tiered batching of index builds.

Indexes over large labels use the most memory while populating, so they
are submitted in smaller batches. Each descriptor's tier comes from the
row count of its single label; the count only affects batching, never
what gets built.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum

from neo4j_index_tool.config import (
    LARGE_BATCH_SIZE,
    MEDIUM_BATCH_SIZE,
    MEDIUM_LABEL_THRESHOLD,
    SMALL_BATCH_SIZE,
    SMALL_LABEL_THRESHOLD,
)
from neo4j_index_tool.models import IndexDescriptor


class SizeTier(str, Enum):
    """Label size tier."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


BATCH_SIZES: dict[SizeTier, int] = {
    SizeTier.SMALL: SMALL_BATCH_SIZE,
    SizeTier.MEDIUM: MEDIUM_BATCH_SIZE,
    SizeTier.LARGE: LARGE_BATCH_SIZE,
}


@dataclass(frozen=True)
class Batch:
    """Descriptors submitted together in one transaction."""

    descriptors: tuple[IndexDescriptor, ...]

    def __len__(self) -> int:
        return len(self.descriptors)

    def __iter__(self) -> Iterator[IndexDescriptor]:
        return iter(self.descriptors)


@dataclass
class Bucket:
    """All batches of one size tier.

    Attributes:
        tier: Label size tier.
        batches: Batches in submission order.
    """

    tier: SizeTier
    batches: list[Batch] = field(default_factory=list)

    @property
    def descriptor_count(self) -> int:
        """Total descriptors across all batches."""
        return sum(len(batch) for batch in self.batches)


def classify(
    row_count: int,
    small_threshold: int = SMALL_LABEL_THRESHOLD,
    medium_threshold: int = MEDIUM_LABEL_THRESHOLD,
) -> SizeTier:
    """Classify a label by its approximate row count.

    Args:
        row_count: Rows carrying the label.
        small_threshold: Counts below this are SMALL.
        medium_threshold: Counts below this (and not SMALL) are MEDIUM.

    Returns:
        The label's size tier.
    """
    if row_count < small_threshold:
        return SizeTier.SMALL
    if row_count < medium_threshold:
        return SizeTier.MEDIUM
    return SizeTier.LARGE


def batch_size(tier: SizeTier) -> int:
    """Maximum descriptors per batch for a tier."""
    return BATCH_SIZES[tier]


def partition(tier: SizeTier, descriptors: Sequence[IndexDescriptor]) -> list[Batch]:
    """Split descriptors into order-preserving batches sized for the tier."""
    size = batch_size(tier)
    return [
        Batch(tuple(descriptors[start : start + size]))
        for start in range(0, len(descriptors), size)
    ]


def is_bucketable(descriptor: IndexDescriptor) -> bool:
    """Whether a descriptor's size can be estimated from a single label."""
    return len(descriptor.labels_or_types) == 1


def build_buckets(sized: Iterable[tuple[IndexDescriptor, int]]) -> list[Bucket]:
    """Group descriptors by tier and batch them.

    Args:
        sized: Pairs of single-label descriptor and its label's row count.

    Returns:
        Non-empty buckets, smallest tier first. Input order is kept within
        each tier.
    """
    by_tier: dict[SizeTier, list[IndexDescriptor]] = {tier: [] for tier in SizeTier}
    for descriptor, row_count in sized:
        by_tier[classify(row_count)].append(descriptor)

    return [
        Bucket(tier=tier, batches=partition(tier, descriptors))
        for tier, descriptors in by_tier.items()
        if descriptors
    ]
