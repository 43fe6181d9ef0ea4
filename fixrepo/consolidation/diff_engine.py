"""
Segment Diff Engine for FIX message and component layouts.

A segment is the ordered list of rows (fields and components) making up a
message or component in one FIX version. This module:
- Sorts segment rows by their structural Position
- Compares two segments for structural equality
- Looks up a message's or component's segment in a given version,
  honouring version aliases of the catalog

Description and MsgID attributes are ignored when comparing rows: they are
reworded or renumbered between versions without any change in structure.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fixrepo.consolidation.snapshot import POSITION, Record, RepoVersions, Table

logger = logging.getLogger(__name__)

IGNORED_SEGMENT_KEYS = frozenset({"Description", "MsgID"})

MESSAGE = "message"
COMPONENT = "component"
ENTITY_KINDS = (MESSAGE, COMPONENT)


@dataclass
class SegmentComparison:
    """Result of comparing a segment with its predecessor."""
    equal: bool
    reason: str = ""


def position_key(position: Optional[str]) -> Tuple:
    """
    Sort key for dotted Position values such as "3" or "3.1".

    Numeric parts compare numerically and sort before non-numeric parts.
    """
    if not position:
        return ()
    key = []
    for part in position.strip().split("."):
        if part.isdigit():
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part))
    return tuple(key)


def sort_segments(segments: Table) -> None:
    """Sort every segment's rows by Position, in place. The repository stores them unordered."""
    for rows in segments.values():
        rows.sort(key=lambda row: position_key(row.get(POSITION)))


def compare_segments(
    segment: Optional[List[Record]],
    previous: Optional[List[Record]],
) -> SegmentComparison:
    """
    Compare a segment with the same entity's segment in the previous version.

    Args:
        segment: Rows in the current version (sorted by Position)
        previous: Rows in the previous version, None if absent there

    Returns:
        SegmentComparison; equal only if both exist and every row matches
    """
    if segment is None or previous is None:
        return SegmentComparison(equal=False, reason="missing segment")

    if len(segment) != len(previous):
        return SegmentComparison(
            equal=False,
            reason=f"row count {len(previous)} -> {len(segment)}",
        )

    for i, (row, previous_row) in enumerate(zip(segment, previous)):
        if len(row) != len(previous_row):
            return SegmentComparison(
                equal=False,
                reason=f"row {i}: attribute count {len(previous_row)} -> {len(row)}",
            )

        for key, value in row.items():
            if key in IGNORED_SEGMENT_KEYS:
                continue
            previous_value = previous_row.get(key)
            if value != previous_value:
                return SegmentComparison(
                    equal=False,
                    reason=f"row {i}: {key} {previous_value!r} -> {value!r}",
                )

    return SegmentComparison(equal=True)


def segments_equal(
    segment: Optional[List[Record]],
    previous: Optional[List[Record]],
) -> bool:
    return compare_segments(segment, previous).equal


class SegmentDiffEngine:
    """
    Compares message and component segments between adjacent FIX versions.

    Index -1 stands for the (nonexistent) version before the oldest one, so
    the first appearance of an entity always counts as a change. Aliased
    versions are looked up through the version they share contents with.
    """

    def __init__(self, repo: RepoVersions):
        """
        Initialize the diff engine.

        Args:
            repo: Per-version snapshots, segments already sorted
        """
        self.repo = repo
        self.catalog = repo.catalog

    def contents_of_message(self, msg_type: str, version_index: int) -> Optional[List[Record]]:
        return self.contents(MESSAGE, msg_type, version_index)

    def contents_of_component(self, component_name: str, version_index: int) -> Optional[List[Record]]:
        return self.contents(COMPONENT, component_name, version_index)

    def contents(self, kind: str, key: str, version_index: int) -> Optional[List[Record]]:
        """
        Segment rows of a message or component in a version.

        Args:
            kind: MESSAGE or COMPONENT
            key: MsgType for messages, ComponentName for components
            version_index: Catalog index, -1 for the synthetic predecessor

        Returns:
            The rows, or None if the entity has no segment in that version
        """
        if kind not in ENTITY_KINDS:
            raise ValueError(f"Unknown entity kind: {kind}")

        if version_index < 0:
            return None

        snapshot = self.repo.snapshot(self.catalog.resolve_alias(version_index))
        if snapshot is None:
            return None

        if kind == MESSAGE:
            return snapshot.segment_for_message(key)
        return snapshot.segment_for_component(key)

    def compare(self, kind: str, key: str, version_index: int) -> SegmentComparison:
        """Compare an entity's contents in a version with the version before it."""
        return compare_segments(
            self.contents(kind, key, version_index),
            self.contents(kind, key, version_index - 1),
        )

    def changed(self, kind: str, key: str, version_index: int) -> bool:
        """
        Check whether an entity's contents differ from the previous version.

        Args:
            kind: MESSAGE or COMPONENT
            key: MsgType or ComponentName
            version_index: Version to compare against its predecessor

        Returns:
            True when the contents differ or either side is missing
        """
        result = self.compare(kind, key, version_index)
        if not result.equal and version_index > 0:
            logger.debug(
                f"{kind.capitalize()} {key} changed between {self.catalog.label(version_index - 1)} "
                f"and {self.catalog.label(version_index)}: {result.reason}"
            )
        return not result.equal
