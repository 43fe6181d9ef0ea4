"""
Loader for the FIX repository XML files.

The repository holds one directory per FIX version, named after the
version label, each containing:
- Components.xml, Enums.xml, Fields.xml, MsgType.xml, MsgContents.xml, DataTypes.xml

Every file is a flat list of record elements whose child elements become
the record's attributes. Override resources (EnumName.xml, MessageDesc.xml,
ComponentDesc.xml, EnumDesc.xml) use the same layout.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup

from fixrepo.core.config import get_repo_dir, get_resource_path
from fixrepo.consolidation.overrides import OverrideSet
from fixrepo.consolidation.snapshot import Record, RepoVersions, Table, VersionSnapshot
from fixrepo.consolidation.versions import FIX_CATALOG, VersionCatalog

logger = logging.getLogger(__name__)

# table name -> (file name, record element, index element, multi-valued)
REPO_FILES = {
    "components": ("Components.xml", "Components", "ComponentName", False),
    "enums": ("Enums.xml", "Enums", "Tag", True),
    "fields": ("Fields.xml", "Fields", "Tag", False),
    "messages": ("MsgType.xml", "MsgType", "MsgType", False),
    "segments": ("MsgContents.xml", "MsgContents", "MsgID", True),
    "types": ("DataTypes.xml", "Datatype", "TypeName", False),
}

# OverrideSet attribute -> (file name, record element, index element, multi-valued)
OVERRIDE_FILES = {
    "enum_names": ("EnumName.xml", "Enums", "Tag", True),
    "message_descriptions": ("MessageDesc.xml", "MessageDesc", "MsgType", False),
    "component_descriptions": ("ComponentDesc.xml", "ComponentDesc", "ComponentName", False),
    "enum_descriptions": ("EnumDesc.xml", "Enums", "Tag", True),
}


def parse_records(
    content: Union[str, bytes],
    element: str,
    index_element: str,
    multi_valued: bool,
    source: str = "",
) -> Table:
    """
    Parse repository XML into a table.

    Args:
        content: XML document
        element: Name of the record elements
        index_element: Child element whose text is the table key
        multi_valued: Whether several records may share a key
        source: Name used in log messages

    Returns:
        Table of key -> list of records
    """
    soup = BeautifulSoup(content, "xml")
    table: Table = {}

    for node in soup.find_all(element):
        # MsgType records contain a MsgType child of the same name.
        if node.parent is not None and node.parent.name == element:
            continue
        record: Record = {
            child.name: child.get_text().strip()
            for child in node.find_all(recursive=False)
        }
        key = record.get(index_element)
        if key is None:
            logger.warning(f"{source}: {element} record without {index_element}, skipping")
            continue

        rows = table.setdefault(key, [])
        if rows and not multi_valued:
            logger.warning(f"{source}: duplicate {index_element} {key}, keeping first")
            continue
        rows.append(record)

    return table


def load_table(path: Path, element: str, index_element: str, multi_valued: bool) -> Optional[Table]:
    """Parse one XML file, None if the file does not exist."""
    if not path.exists():
        return None
    with open(path, "rb") as f:
        return parse_records(f.read(), element, index_element, multi_valued, source=path.name)


def load_snapshot(version_dir: Path, catalog: VersionCatalog, index: int) -> Optional[VersionSnapshot]:
    """
    Load all tables of one version directory.

    Returns:
        VersionSnapshot, or None if the directory does not exist
    """
    version = catalog[index]
    if not version_dir.is_dir():
        logger.warning(f"No repository directory found for version {version.label}")
        return None

    logger.info(f"Processing FIX version {version.label}")
    tables: Dict[str, Table] = {}
    for table_name, (filename, element, index_element, multi_valued) in REPO_FILES.items():
        table = load_table(version_dir / filename, element, index_element, multi_valued)
        if table is None:
            logger.info(f"    {version.label} has no {filename}")
            table = {}
        logger.info(f"    Processed {len(table)} {table_name}")
        tables[table_name] = table

    return VersionSnapshot(version=version, **tables)


def load_repo(repo_dir: Optional[Path] = None, catalog: VersionCatalog = FIX_CATALOG) -> RepoVersions:
    """
    Load every catalog version found under the repository directory
    (FIXREPO_DIR when not given).

    Raises:
        ConsolidationError: If the newest version is missing
    """
    repo_dir = Path(repo_dir) if repo_dir is not None else get_repo_dir()
    snapshots: List[Optional[VersionSnapshot]] = [
        load_snapshot(repo_dir / version.label, catalog, version.index)
        for version in catalog
    ]
    return RepoVersions(catalog, snapshots)


def load_overrides(resource_dir: Optional[Path] = None) -> OverrideSet:
    """
    Load the override resources that exist; missing files are skipped.
    Files are looked up in FIXREPO_RESOURCE_DIR when no directory is given.

    The glossary is not read here: it is free text that must be tokenized
    into GlossaryEntry objects by the caller.
    """
    overrides = OverrideSet()
    for attribute, (filename, element, index_element, multi_valued) in OVERRIDE_FILES.items():
        path = Path(resource_dir) / filename if resource_dir is not None else get_resource_path(filename)
        table = load_table(path, element, index_element, multi_valued)
        if table is None:
            logger.warning(f"Missing resource file {filename}")
            continue
        setattr(overrides, attribute, table)
    return overrides
