"""
Consolidation Orchestrator for the FIX repository.

This module merges the per-version repository tables into one model of the
newest version, annotated with cross-version history:
1. Apply supplied enum names
2. Synthesize missing enum names, check them, derive enum FromVersion
3. Tidy field names, derive field FromVersion and EnumName
4. Sort segments and build message/component version spans
5. Index which messages and components contain each field and component
6. Apply description overrides and glossary entries

Usage:
    python -m fixrepo.consolidation.consolidate --repo-dir repository --resource-dir resources
"""
import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from fixrepo.core.config import config
from fixrepo.core.exceptions import ConsolidationError, UnknownReferenceError
from fixrepo.core.logging import WarningTally, setup_logging
from fixrepo.consolidation.containment import ContainmentIndex, build_containment_index
from fixrepo.consolidation.diff_engine import COMPONENT, MESSAGE, SegmentDiffEngine, sort_segments
from fixrepo.consolidation.introduction import enum_value_introduced, tag_introduced
from fixrepo.consolidation.loader import load_overrides, load_repo
from fixrepo.consolidation.names import (
    EnumNameChecker,
    compute_enum_name,
    is_funny_field_name,
    tidy_field_name,
)
from fixrepo.consolidation.overrides import OverrideMerger, OverrideSet
from fixrepo.consolidation.snapshot import (
    DEPRECATED,
    DESCRIPTION,
    ENUM,
    ENUM_NAME,
    FIELD_NAME,
    FROM_VERSION,
    TAG,
    TAG_TEXT,
    USES_ENUMS_FROM_TAG,
    Record,
    RepoVersions,
    Table,
    parse_tag,
)
from fixrepo.consolidation.version_spans import VersionSpan, VersionSpanBuilder

logger = logging.getLogger(__name__)


@dataclass
class ConsolidatedRepo:
    """
    The newest version's tables with derived attributes, plus cross-version indexes.

    Attributes:
        repo: All per-version snapshots (the newest one holds the consolidated tables)
        containment: Field tag / component name -> containing messages and components
        message_spans: MsgType -> VersionSpan
        component_spans: ComponentName -> VersionSpan
        field_name_tag_map: Field name (any version) -> tag
        enum_name_warnings: Number of enum name check warnings
    """
    repo: RepoVersions
    containment: ContainmentIndex
    message_spans: Dict[str, VersionSpan] = field(default_factory=dict)
    component_spans: Dict[str, VersionSpan] = field(default_factory=dict)
    field_name_tag_map: Dict[str, int] = field(default_factory=dict)
    enum_name_warnings: int = 0

    @property
    def catalog(self):
        return self.repo.catalog

    @property
    def fields(self) -> Table:
        return self.repo.latest.fields

    @property
    def enums(self) -> Table:
        return self.repo.latest.enums

    @property
    def messages(self) -> Table:
        return self.repo.latest.messages

    @property
    def components(self) -> Table:
        return self.repo.latest.components

    @property
    def segments(self) -> Table:
        return self.repo.latest.segments

    @property
    def types(self) -> Table:
        return self.repo.latest.types

    def _snapshot(self, version_index: Optional[int]):
        if version_index is None:
            return self.repo.latest
        snapshot = self.repo.snapshot(version_index)
        if snapshot is None:
            raise UnknownReferenceError(
                "No repository data for version",
                reference=self.catalog.label(version_index),
            )
        return snapshot

    def get_field_props_from_tag(self, tag: int, version_index: Optional[int] = None) -> Record:
        """
        Field record of a tag, in the newest version unless another is given.

        Raises:
            UnknownReferenceError: If the version has no such field
        """
        rows = self._snapshot(version_index).fields.get(str(tag))
        if not rows:
            raise UnknownReferenceError("Unknown tag value", reference=str(tag), table="fields")
        return rows[0]

    def get_field_name_from_tag(self, tag: int) -> str:
        return self.get_field_props_from_tag(tag).get(FIELD_NAME, "")

    def get_component_props_from_name(self, name: str, version_index: Optional[int] = None) -> Record:
        """
        Component record by name.

        Raises:
            UnknownReferenceError: If the version has no such component
        """
        rows = self._snapshot(version_index).components.get(name)
        if not rows:
            raise UnknownReferenceError("Unknown component", reference=name, table="components")
        return rows[0]

    def get_segment_info_for_message(self, msg_type: str, version_index: Optional[int] = None) -> Optional[List[Record]]:
        snapshot = self.repo.latest if version_index is None else self.repo.snapshot(version_index)
        return snapshot.segment_for_message(msg_type) if snapshot is not None else None

    def get_segment_info_for_component(self, name: str, version_index: Optional[int] = None) -> Optional[List[Record]]:
        snapshot = self.repo.latest if version_index is None else self.repo.snapshot(version_index)
        return snapshot.segment_for_component(name) if snapshot is not None else None

    def get_containing_messages_and_components(self, tag_or_component: str) -> Optional[FrozenSet[str]]:
        """Messages and components containing a field (by tag) or a component (by name)."""
        return self.containment.containers_of(tag_or_component)

    def get_version_index(self, label: str) -> int:
        return self.catalog.index_of(label)

    def get_version_label(self, version_index: int) -> str:
        return self.catalog.label(version_index)

    def get_version_suffix(self, version_index: int) -> str:
        return self.catalog.suffix(version_index)

    def summary(self) -> Dict[str, Any]:
        """Counts describing the consolidated repository."""
        return {
            'version': self.catalog.latest.label,
            'fields': len(self.fields),
            'enum_tags': len(self.enums),
            'enum_values': sum(len(values) for values in self.enums.values()),
            'messages': len(self.messages),
            'components': len(self.components),
            'deprecated_messages': sum(1 for s in self.message_spans.values() if s.deprecated_index() is not None),
            'deprecated_components': sum(1 for s in self.component_spans.values() if s.deprecated_index() is not None),
            'contained_items': len(self.containment),
            'enum_name_warnings': self.enum_name_warnings,
        }


class RepoConsolidator:
    """
    Runs the consolidation pipeline over a set of version snapshots.

    The consolidator owns the snapshots for the duration of the run and
    modifies the newest one in place. Each stage relies on the complete
    output of the stage before it.
    """

    def __init__(
        self,
        repo: RepoVersions,
        max_common_prefix: Optional[int] = None,
        strict_glossary: Optional[bool] = None,
    ):
        """
        Initialize the consolidator.

        Args:
            repo: Per-version snapshots, newest version present
            max_common_prefix: Leading characters in which enum names must differ
                               (defaults to FIXREPO_MAX_COMMON_PREFIX)
            strict_glossary: Raise on unresolvable glossary entries
                             (defaults to FIXREPO_GLOSSARY_STRICT)
        """
        self.repo = repo
        self.catalog = repo.catalog
        self.name_checker = EnumNameChecker(
            config.max_common_prefix if max_common_prefix is None else max_common_prefix
        )
        self.strict_glossary = config.glossary_strict if strict_glossary is None else strict_glossary
        self.field_name_tag_map: Dict[str, int] = {}

    def _normalize_deprecated(self, props: Record, tag: str) -> None:
        """Rewrite markers like "FIX 4.4" to the catalog label "FIX.4.4"."""
        marker = props.get(DEPRECATED)
        if not marker or self.catalog.find_label(marker) is not None:
            return

        label = self.catalog.find_label(marker.strip().replace(" ", "."))
        if label is not None:
            logger.warning(
                f"Renaming bad deprecated version ({marker}) in enum {props.get(ENUM)} of tag {tag}"
            )
            props[DEPRECATED] = label
        else:
            logger.warning(f"Unrecognized deprecated version ({marker}) in enum {props.get(ENUM)} of tag {tag}")

    def process_enums(self) -> int:
        """
        Name, check and date the enum values of the newest version.

        Returns:
            Number of name check warnings

        Raises:
            MalformedKeyError: If a tag is not numeric
        """
        for tag, values in self.repo.latest.enums.items():
            parse_tag(tag, "enums")

            for props in values:
                enum_value = props.get(ENUM, "")
                description = props.get(DESCRIPTION, "")

                enum_name = props.get(ENUM_NAME)
                if enum_name is None:
                    enum_name = compute_enum_name(description)
                    if not enum_name:
                        logger.warning(f"Tag {tag} value {enum_value}: no name in description {description!r}")
                    props[ENUM_NAME] = enum_name

                self.name_checker.check(tag, enum_value, enum_name, description)

                props[FROM_VERSION] = enum_value_introduced(self.repo, tag, enum_value).label
                self._normalize_deprecated(props, tag)

        logger.info(f"Number of enumName check warnings: {self.name_checker.warning_count}")
        return self.name_checker.warning_count

    def process_fields(self) -> Dict[str, int]:
        """
        Tidy field names of every version and annotate the newest version's fields.

        Adds FromVersion (from tag watermarks) and EnumName (the field whose
        enum values this field uses, if any).

        Returns:
            Field name -> tag map over all versions

        Raises:
            ConsolidationError: If a field has more than one record
            MalformedKeyError: If a tag is not numeric
            UnknownVersionError: If a tag is beyond every known version
        """
        for index, snapshot in self.repo.present():
            for key, rows in snapshot.fields.items():
                props = rows[0]
                tag = parse_tag(props.get(TAG, key), "fields")
                field_name = props.get(FIELD_NAME)
                if field_name is not None:
                    field_name = tidy_field_name(field_name)
                    props[FIELD_NAME] = field_name

                if is_funny_field_name(field_name):
                    logger.warning(
                        f"Funny field name {field_name!r}. Tag {tag}. Version {self.catalog.label(index)}"
                    )
                if field_name:
                    self.field_name_tag_map[field_name] = tag

        latest = self.repo.latest
        for key, rows in latest.fields.items():
            if len(rows) != 1:
                raise ConsolidationError(
                    f"Field {key} does not have a single record",
                    version=self.catalog.latest.label,
                    table="fields",
                )
            props = rows[0]
            tag = parse_tag(props.get(TAG, key), "fields")

            props[FROM_VERSION] = tag_introduced(self.catalog, tag).label

            enum_field_name = None
            uses = props.get(USES_ENUMS_FROM_TAG)
            if uses:
                enum_tag = parse_tag(uses, "fields")
                enum_rows = latest.fields.get(str(enum_tag))
                if not enum_rows:
                    raise UnknownReferenceError(
                        f"Field {tag} uses enums of unknown tag",
                        reference=str(enum_tag),
                        table="fields",
                    )
                enum_field_name = enum_rows[0].get(FIELD_NAME)
            elif str(tag) in latest.enums:
                enum_field_name = props.get(FIELD_NAME)

            if enum_field_name is not None:
                props[ENUM_NAME] = enum_field_name

        return self.field_name_tag_map

    def process_segments(self) -> Dict[str, Dict[str, VersionSpan]]:
        """Sort all segments, then build and apply message and component spans."""
        for index, snapshot in self.repo.present():
            sort_segments(snapshot.segments)
            for msg_id, row in snapshot.unresolved_segment_rows():
                logger.warning(
                    f"Segment {msg_id} row {row.get(TAG_TEXT)!r} is not a field or component "
                    f"in {self.catalog.label(index)}"
                )

        builder = VersionSpanBuilder(self.repo, SegmentDiffEngine(self.repo))
        return {
            MESSAGE: builder.build_and_apply(MESSAGE),
            COMPONENT: builder.build_and_apply(COMPONENT),
        }

    def consolidate(self, overrides: Optional[OverrideSet] = None) -> ConsolidatedRepo:
        """
        Run the full consolidation pipeline.

        Args:
            overrides: Optional supplementary data; missing categories are skipped

        Returns:
            ConsolidatedRepo for the newest version
        """
        overrides = overrides or OverrideSet()
        latest_label = self.catalog.latest.label
        logger.info(f"Starting consolidation of {len(self.catalog)} versions into {latest_label}")

        merger = OverrideMerger(self.repo.latest, self.field_name_tag_map, self.strict_glossary)

        # Step 1: Supplied names must land before any are synthesized
        if overrides.enum_names is not None:
            logger.info("[Step 1] Applying extra enum names...")
            merger.apply_enum_names(overrides.enum_names)

        logger.info("[Step 2] Processing enums...")
        name_warnings = self.process_enums()

        logger.info("[Step 3] Processing fields...")
        self.process_fields()

        logger.info("[Step 4] Building version spans...")
        spans = self.process_segments()

        logger.info("[Step 5] Indexing containment...")
        containment = build_containment_index(self.repo)

        logger.info("[Step 6] Applying overrides...")
        if overrides.message_descriptions is not None:
            merger.apply_message_descriptions(overrides.message_descriptions)
        if overrides.component_descriptions is not None:
            merger.apply_component_descriptions(overrides.component_descriptions)
        if overrides.enum_descriptions is not None:
            merger.apply_enum_descriptions(overrides.enum_descriptions)
        if overrides.glossary is not None:
            merger.apply_glossary(overrides.glossary)

        result = ConsolidatedRepo(
            repo=self.repo,
            containment=containment,
            message_spans=spans[MESSAGE],
            component_spans=spans[COMPONENT],
            field_name_tag_map=self.field_name_tag_map,
            enum_name_warnings=name_warnings,
        )
        logger.info(f"Consolidation complete: {result.summary()}")
        return result


def consolidate_repo(
    repo: RepoVersions,
    overrides: Optional[OverrideSet] = None,
    max_common_prefix: Optional[int] = None,
) -> ConsolidatedRepo:
    """
    Convenience function to consolidate loaded snapshots.

    Example:
        >>> from fixrepo.consolidation.loader import load_repo
        >>> result = consolidate_repo(load_repo(Path("repository")))
        >>> result.messages["D"][0]["FromVersion"]
        'FIX.4.0'
    """
    consolidator = RepoConsolidator(repo, max_common_prefix=max_common_prefix)
    return consolidator.consolidate(overrides)


def main(argv: Optional[List[str]] = None):
    """Main entry point for command-line usage."""
    parser = argparse.ArgumentParser(description="Consolidate FIX repository versions")
    parser.add_argument(
        '--repo-dir',
        type=Path,
        default=config.repo_dir,
        help='Directory holding one sub-directory per FIX version',
    )
    parser.add_argument(
        '--resource-dir',
        type=Path,
        default=config.resource_dir,
        help='Directory holding override files (EnumName.xml, MessageDesc.xml, ...)',
    )
    parser.add_argument(
        '--max-common-prefix',
        type=int,
        default=config.max_common_prefix,
        help='Leading characters in which enum names of a tag must differ',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging',
    )

    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else config.log_level)

    with WarningTally() as tally:
        repo = load_repo(args.repo_dir)
        overrides = load_overrides(args.resource_dir)
        result = consolidate_repo(repo, overrides, max_common_prefix=args.max_common_prefix)
    summary = result.summary()

    print("\n" + "="*60)
    print("Consolidation Results")
    print("="*60)
    print(f"Version: {summary['version']}")
    print(f"Fields: {summary['fields']}")
    print(f"Enum values: {summary['enum_values']} ({summary['enum_tags']} tags)")
    print(f"Messages: {summary['messages']} ({summary['deprecated_messages']} deprecated)")
    print(f"Components: {summary['components']} ({summary['deprecated_components']} deprecated)")
    print(f"Enum name warnings: {summary['enum_name_warnings']}")
    print(f"Data-quality warnings: {tally.total}")
    for source, count in tally.by_source.most_common():
        print(f"  {source}: {count}")
    print("="*60)


if __name__ == "__main__":
    main()
