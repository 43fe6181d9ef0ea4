"""
Resolve the FIX version in which fields and enum values were introduced.
"""
import logging

from fixrepo.core.exceptions import UnknownVersionError
from fixrepo.consolidation.snapshot import RepoVersions
from fixrepo.consolidation.versions import Version, VersionCatalog

logger = logging.getLogger(__name__)


def tag_introduced(catalog: VersionCatalog, tag: int) -> Version:
    """
    Version that introduced a field tag, judged by max-tag watermarks.

    Tags are allocated in increasing order, so the first version whose
    watermark covers the tag is the one that added it.

    Raises:
        UnknownVersionError: If the tag is beyond every known version
    """
    for version in catalog:
        if tag <= version.max_tag:
            return version
    raise UnknownVersionError("Unrecognized FIX tag", tag=tag)


def enum_value_introduced(repo: RepoVersions, tag: str, enum_value: str) -> Version:
    """
    Oldest version whose enum table lists the (tag, value) pair.

    Falls back to the latest version, which lists every value being
    consolidated.
    """
    for index, snapshot in repo.present():
        if snapshot.has_enum_value(tag, enum_value):
            return repo.catalog[index]

    logger.debug(f"Enum {enum_value} of tag {tag} not found in any version, using latest")
    return repo.catalog.latest
