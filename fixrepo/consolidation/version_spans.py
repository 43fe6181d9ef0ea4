"""
Version spans for FIX messages and components.

This module tracks, per message and per component:
- In which versions the entity has a segment at all
- For each version, the version whose contents are still in effect
- The first version it appeared in and, when it is gone from the newest
  versions, the version in which it was deprecated
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fixrepo.consolidation.diff_engine import COMPONENT, MESSAGE, SegmentDiffEngine
from fixrepo.consolidation.snapshot import DEPRECATED, FROM_VERSION, Record, RepoVersions
from fixrepo.consolidation.versions import VersionIndex

logger = logging.getLogger(__name__)

TABLE_FOR_KIND = {MESSAGE: "messages", COMPONENT: "components"}


@dataclass
class VersionSpan:
    """
    Contents history of one message or component.

    slots has one entry per catalog version: None where the entity is
    absent, otherwise the index of the version that last changed its
    contents. Runs of unchanged contents share one index.
    """
    key: str
    kind: str
    slots: List[Optional[int]] = field(default_factory=list)

    @property
    def from_index(self) -> Optional[int]:
        """First version in which the entity is present."""
        for i, slot in enumerate(self.slots):
            if slot is not None:
                return i
        return None

    @property
    def to_index(self) -> Optional[int]:
        """Last version in which the entity is present."""
        for i in range(len(self.slots) - 1, -1, -1):
            if self.slots[i] is not None:
                return i
        return None

    def deprecated_index(self) -> Optional[int]:
        """Version after the last one containing the entity, None if it reaches the newest."""
        to_index = self.to_index
        if to_index is None or to_index >= len(self.slots) - 1:
            return None
        return to_index + 1

    def contents_version_at(self, version_index: int) -> Optional[int]:
        """Version whose contents were in effect at the given version."""
        return self.slots[version_index]

    def change_versions(self) -> List[int]:
        """Distinct versions in which the contents changed, oldest first."""
        changes: List[int] = []
        for slot in self.slots:
            if slot is not None and slot not in changes:
                changes.append(slot)
        return changes


class VersionSpanBuilder:
    """
    Builds version spans for the messages and components of the newest version.
    """

    def __init__(self, repo: RepoVersions, diff_engine: Optional[SegmentDiffEngine] = None):
        """
        Initialize the span builder.

        Args:
            repo: Per-version snapshots with sorted segments
            diff_engine: Optional diff engine (created from repo if omitted)
        """
        self.repo = repo
        self.catalog = repo.catalog
        self.diff_engine = diff_engine or SegmentDiffEngine(repo)

    def build_span(self, kind: str, key: str) -> VersionSpan:
        """
        Walk the catalog oldest to newest and record each version's contents version.

        Args:
            kind: MESSAGE or COMPONENT
            key: MsgType or ComponentName

        Returns:
            VersionSpan with one slot per catalog version
        """
        span = VersionSpan(key=key, kind=kind)

        # Version at which the current contents first appeared.
        current_contents: Optional[int] = None

        for i in range(len(self.catalog)):
            index = VersionIndex(i)
            if self.diff_engine.contents(kind, key, index) is None:
                span.slots.append(None)
            elif self.diff_engine.changed(kind, key, index):
                current_contents = index
                span.slots.append(index)
            else:
                span.slots.append(current_contents)

        return span

    def build_spans(self, kind: str) -> Dict[str, VersionSpan]:
        """Build spans for every message or component of the newest version."""
        table = self.repo.latest.table(TABLE_FOR_KIND[kind])
        return {key: self.build_span(kind, key) for key in table}

    def apply_span(self, record: Record, span: VersionSpan) -> None:
        """
        Set FromVersion and Deprecated on the entity's record from its span.

        A Deprecated value already on the record that disagrees with the
        span is replaced, with a warning.
        """
        from_index = span.from_index
        if from_index is None:
            logger.warning(f"{span.kind.capitalize()} {span.key} has no contents in any version")
            return

        record[FROM_VERSION] = self.catalog.label(from_index)

        deprecated_index = span.deprecated_index()
        if deprecated_index is not None:
            deprecated = self.catalog.label(deprecated_index)
            existing = record.get(DEPRECATED)
            if existing != deprecated:
                logger.warning(
                    f"{span.kind.capitalize()} {span.key} deprecation {existing!r} "
                    f"does not match contents, setting {deprecated}"
                )
                record[DEPRECATED] = deprecated

    def build_and_apply(self, kind: str) -> Dict[str, VersionSpan]:
        """Build spans for one entity kind and annotate the newest version's records."""
        spans = self.build_spans(kind)
        table = self.repo.latest.table(TABLE_FOR_KIND[kind])
        for key, span in spans.items():
            self.apply_span(table[key][0], span)

        deprecated = sum(1 for span in spans.values() if span.deprecated_index() is not None)
        logger.info(f"Built {len(spans)} {kind} spans ({deprecated} deprecated)")
        return spans
