"""
Override merging for the consolidated FIX repository.

Supplementary data corrects or extends the newest version's tables:
- Enum names supplied where descriptions make poor names
- Replacement descriptions for messages, components and enum values
- Glossary entries describing enum values in prose

Every batch is resolved completely before anything is written, so an
unknown target leaves the tables untouched.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from fixrepo.core.exceptions import DuplicateNameError, UnknownReferenceError
from fixrepo.consolidation.snapshot import (
    COMPONENT_NAME,
    DESC,
    DESCRIPTION,
    ENUM,
    ENUM_NAME,
    MSG_TYPE,
    TAG,
    Record,
    Table,
    VersionSnapshot,
)

logger = logging.getLogger(__name__)

# Glossary value names starting with this are unresolved placeholders.
GLOSSARY_PLACEHOLDER = "?"


@dataclass
class GlossaryEntry:
    """One tokenized glossary entry."""
    label: str
    value_name: str = ""
    description: str = ""


@dataclass
class OverrideSet:
    """Supplementary data for one run. A category left as None is skipped."""
    enum_names: Optional[Table] = None
    message_descriptions: Optional[Table] = None
    component_descriptions: Optional[Table] = None
    enum_descriptions: Optional[Table] = None
    glossary: Optional[List[GlossaryEntry]] = None


def extract_glossary_field_name(label: str) -> Optional[str]:
    """Return the field name between square brackets in a glossary label, if any."""
    start = label.find("[")
    end = label.find("]")
    if start < 0 or end < 0:
        return None
    return label[start + 1:end]


def _override_rows(extra: Table) -> Iterable[Tuple[str, Record]]:
    for key, rows in extra.items():
        for row in rows:
            yield key, row


class OverrideMerger:
    """
    Applies override data to the newest version's tables.
    """

    def __init__(
        self,
        latest: VersionSnapshot,
        field_name_tag_map: Optional[Dict[str, int]] = None,
        strict_glossary: bool = True,
    ):
        """
        Initialize the merger.

        Args:
            latest: Snapshot of the newest version, modified in place
            field_name_tag_map: Field name -> tag, used to resolve glossary entries
            strict_glossary: Raise on unresolvable glossary entries instead of warning
        """
        self.latest = latest
        self.field_name_tag_map = field_name_tag_map if field_name_tag_map is not None else {}
        self.strict_glossary = strict_glossary

    def _find_enum(self, tag: str, enum_value: str, source: str) -> Record:
        values = self.latest.enums.get(tag)
        if values is None:
            raise UnknownReferenceError(f"Unknown tag in {source}", reference=tag, table="enums")
        for props in values:
            if props.get(ENUM) == enum_value:
                return props
        raise UnknownReferenceError(
            f"Unknown enum of tag {tag} in {source}",
            reference=enum_value,
            table="enums",
        )

    def _find_single(self, table_name: str, key: str, source: str) -> Record:
        rows = self.latest.table(table_name).get(key)
        if not rows:
            raise UnknownReferenceError(f"Unknown key in {source}", reference=key, table=table_name)
        return rows[0]

    @staticmethod
    def _write(updates: List[Tuple[Record, str, str]]) -> int:
        for record, attribute, value in updates:
            record[attribute] = value
        return len(updates)

    def apply_enum_names(self, extra: Table) -> int:
        """
        Set supplied names on enum values that have none.

        Args:
            extra: Tag -> [{Tag, Enum, EnumName}, ...]

        Returns:
            Number of names set

        Raises:
            UnknownReferenceError: If a tag or value does not exist
            DuplicateNameError: If the value already has a name
        """
        updates = []
        named = set()
        for key, props in _override_rows(extra):
            tag = props.get(TAG, key)
            enum_value = props.get(ENUM)
            target = self._find_enum(tag, enum_value, "extra enum names")
            if target.get(ENUM_NAME) is not None or (tag, enum_value) in named:
                raise DuplicateNameError(
                    "Duplicate name for enum in extra enum names",
                    tag=tag,
                    enum_value=enum_value,
                )
            named.add((tag, enum_value))
            updates.append((target, ENUM_NAME, props.get(ENUM_NAME, "")))

        count = self._write(updates)
        logger.info(f"Applied {count} extra enum names")
        return count

    def apply_message_descriptions(self, extra: Table) -> int:
        """Replace message descriptions. extra: MsgType -> [{MsgType, Desc}]."""
        updates = [
            (self._find_single("messages", props.get(MSG_TYPE, key), "extra message descriptions"),
             DESC, props.get(DESC, ""))
            for key, props in _override_rows(extra)
        ]
        count = self._write(updates)
        logger.info(f"Applied {count} extra message descriptions")
        return count

    def apply_component_descriptions(self, extra: Table) -> int:
        """Replace component descriptions. extra: ComponentName -> [{ComponentName, Desc}]."""
        updates = [
            (self._find_single("components", props.get(COMPONENT_NAME, key), "extra component descriptions"),
             DESC, props.get(DESC, ""))
            for key, props in _override_rows(extra)
        ]
        count = self._write(updates)
        logger.info(f"Applied {count} extra component descriptions")
        return count

    def apply_enum_descriptions(self, extra: Table) -> int:
        """
        Replace enum value descriptions.

        The repository keeps enum text under Description while the override
        files use Desc.

        Args:
            extra: Tag -> [{Tag, Enum, Desc}, ...]
        """
        updates = [
            (self._find_enum(props.get(TAG, key), props.get(ENUM), "extra enum descriptions"),
             DESCRIPTION, props.get(DESC, ""))
            for key, props in _override_rows(extra)
        ]
        count = self._write(updates)
        logger.info(f"Applied {count} extra enum descriptions")
        return count

    def find_enum_by_name(self, tag: int, value_name: str) -> Optional[Record]:
        """Find an enum value of a tag by EnumName or literal value, ignoring case."""
        wanted = value_name.lower()
        for props in self.latest.enums.get(str(tag), ()):
            if wanted in (props.get(ENUM_NAME, "").lower(), props.get(ENUM, "").lower()):
                return props
        return None

    def _unresolved(self, message: str, reference: str) -> None:
        if self.strict_glossary:
            raise UnknownReferenceError(message, reference=reference, table="glossary")
        logger.warning(f"{message}: {reference}")

    def apply_glossary(self, entries: Iterable[GlossaryEntry]) -> int:
        """
        Replace enum value descriptions with glossary text.

        Entries whose label names no bracketed field, or whose value name is
        empty or a "?" placeholder, are skipped.

        Args:
            entries: Tokenized glossary entries

        Returns:
            Number of descriptions replaced
        """
        updates = []
        for entry in entries:
            field_name = extract_glossary_field_name(entry.label)
            if field_name is None:
                if entry.label.strip():
                    logger.info(f"Glossary entry not associated with field: {entry.label}")
                continue

            if not entry.value_name or entry.value_name.startswith(GLOSSARY_PLACEHOLDER):
                logger.info(f"Ignoring glossary entry {entry.label!r} / {entry.value_name!r}")
                continue

            tag = self.field_name_tag_map.get(field_name)
            if tag is None:
                self._unresolved("Unknown field in glossary", field_name)
                continue

            target = self.find_enum_by_name(tag, entry.value_name)
            if target is None:
                self._unresolved(f"Unknown glossary value for field {field_name}", entry.value_name)
                continue

            updates.append((target, field_name, entry))

        for target, field_name, entry in updates:
            existing = target.get(DESCRIPTION, "")
            if len(existing) > len(entry.description):
                logger.warning(
                    f"Replacing longer description of {field_name}:{entry.value_name} "
                    f"with shorter glossary text: {existing!r} -> {entry.description!r}"
                )
            target[DESCRIPTION] = entry.description

        logger.info(f"Applied {len(updates)} glossary descriptions")
        return len(updates)
