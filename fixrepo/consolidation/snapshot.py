"""
Per-version FIX repository tables.

Each FIX version contributes one VersionSnapshot owning its tables:
- fields:     Tag -> [field record]
- enums:      Tag -> [enum value record, ...]
- messages:   MsgType -> [message record]
- components: ComponentName -> [component record]
- segments:   MsgID -> [segment row, ...]
- types:      TypeName -> [data type record]

A record is a flat attribute bag of strings, named after the repository's
XML elements. RepoVersions holds one slot per catalog version; a slot is
None when the repository has no directory for that version.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from fixrepo.core.exceptions import ConsolidationError, MalformedKeyError
from fixrepo.consolidation.versions import Version, VersionCatalog

Record = Dict[str, str]
Table = Dict[str, List[Record]]

TABLE_NAMES = ("fields", "enums", "messages", "components", "segments", "types")

# Record attribute names
TAG = "Tag"
FIELD_NAME = "FieldName"
USES_ENUMS_FROM_TAG = "UsesEnumsFromTag"
ENUM = "Enum"
ENUM_NAME = "EnumName"
DESCRIPTION = "Description"
DESC = "Desc"
DEPRECATED = "Deprecated"
FROM_VERSION = "FromVersion"
MSG_TYPE = "MsgType"
MESSAGE_NAME = "MessageName"
MSG_ID = "MsgID"
COMPONENT_NAME = "ComponentName"
TAG_TEXT = "TagText"
POSITION = "Position"


def parse_tag(value: Optional[str], table: str = "") -> int:
    """
    Parse a field tag held as a string.

    Raises:
        MalformedKeyError: If the value is missing, not numeric or negative
    """
    try:
        tag = int(value)
    except (TypeError, ValueError):
        raise MalformedKeyError("Tag is not numeric", key=value, table=table) from None
    if tag < 0:
        raise MalformedKeyError("Tag is negative", key=value, table=table)
    return tag


@dataclass
class VersionSnapshot:
    """All tables parsed for one FIX version."""
    version: Version
    fields: Table = field(default_factory=dict)
    enums: Table = field(default_factory=dict)
    messages: Table = field(default_factory=dict)
    components: Table = field(default_factory=dict)
    segments: Table = field(default_factory=dict)
    types: Table = field(default_factory=dict)

    def table(self, name: str) -> Table:
        if name not in TABLE_NAMES:
            raise KeyError(f"Unknown table: {name}")
        return getattr(self, name)

    def first(self, table_name: str, key: str) -> Optional[Record]:
        """Return the single record stored under key, or None if absent."""
        rows = self.table(table_name).get(key)
        return rows[0] if rows else None

    def segment_for_message(self, msg_type: str) -> Optional[List[Record]]:
        """Look up a message's segment rows through its MsgID."""
        message = self.first("messages", msg_type)
        if message is None:
            return None
        return self.segments.get(message.get(MSG_ID))

    def segment_for_component(self, component_name: str) -> Optional[List[Record]]:
        """Look up a component's segment rows through its MsgID."""
        component = self.first("components", component_name)
        if component is None:
            return None
        return self.segments.get(component.get(MSG_ID))

    def has_enum_value(self, tag: str, value: str) -> bool:
        """Check whether the tag lists the literal enum value in this version."""
        return any(props.get(ENUM) == value for props in self.enums.get(tag, ()))

    def unresolved_segment_rows(self) -> List[Tuple[str, Record]]:
        """
        Segment rows whose TagText names neither a field tag nor a component of this version.

        Returns:
            (MsgID, row) pairs, in table order
        """
        unresolved = []
        for msg_id, rows in self.segments.items():
            for row in rows:
                tag_text = row.get(TAG_TEXT, "")
                if tag_text not in self.fields and tag_text not in self.components:
                    unresolved.append((msg_id, row))
        return unresolved


class RepoVersions:
    """
    Ordered per-version snapshots, one slot per catalog version.

    The newest version must be present; older slots may be None.
    """

    def __init__(self, catalog: VersionCatalog, snapshots: List[Optional[VersionSnapshot]]):
        if len(snapshots) != len(catalog):
            raise ConsolidationError(
                f"Expected {len(catalog)} version slots, got {len(snapshots)}",
            )
        for i, snapshot in enumerate(snapshots):
            if snapshot is not None and snapshot.version.index != i:
                raise ConsolidationError(
                    f"Snapshot for {snapshot.version.label} stored in slot {i}",
                    version=snapshot.version.label,
                )
        if snapshots[-1] is None:
            raise ConsolidationError(
                "Latest version has no repository data",
                version=catalog.latest.label,
            )

        self.catalog = catalog
        self._snapshots = list(snapshots)

    @classmethod
    def from_tables(cls, catalog: VersionCatalog, tables: Dict[str, Dict[str, Table]]) -> "RepoVersions":
        """
        Build from a mapping of version label -> {table name -> table}.

        Versions not named in the mapping get an empty slot.
        """
        snapshots: List[Optional[VersionSnapshot]] = [None] * len(catalog)
        for label, version_tables in tables.items():
            index = catalog.index_of(label)
            unknown = set(version_tables) - set(TABLE_NAMES)
            if unknown:
                raise ConsolidationError(
                    f"Unknown tables: {sorted(unknown)}",
                    version=label,
                )
            snapshots[index] = VersionSnapshot(version=catalog[index], **version_tables)
        return cls(catalog, snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[Optional[VersionSnapshot]]:
        return iter(self._snapshots)

    def snapshot(self, index: int) -> Optional[VersionSnapshot]:
        """Return the snapshot for a version index; None for missing or negative indexes."""
        if index < 0:
            return None
        return self._snapshots[index]

    def present(self) -> Iterator[Tuple[int, VersionSnapshot]]:
        """Iterate (index, snapshot) over versions that have data, oldest first."""
        for i, snapshot in enumerate(self._snapshots):
            if snapshot is not None:
                yield i, snapshot

    @property
    def latest(self) -> VersionSnapshot:
        return self._snapshots[-1]
