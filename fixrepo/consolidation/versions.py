"""
FIX Version Catalog.

Ordered, immutable list of the FIX protocol revisions known to the
consolidator. Each version carries:
- label: directory name and display label (e.g. "FIX.4.2")
- suffix: short form used in titles (e.g. "4.2")
- max_tag: highest field tag defined by that version

The catalog also owns an alias table redirecting a version to the one
whose segment contents it shares, used by the segment diff engine.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, NewType, Optional, Sequence, Tuple

from fixrepo.core.exceptions import UnknownVersionError

VersionIndex = NewType("VersionIndex", int)


@dataclass(frozen=True)
class Version:
    """A single FIX protocol revision."""
    index: VersionIndex
    label: str
    suffix: str
    max_tag: int


class VersionCatalog:
    """
    Ordered catalog of FIX versions, oldest first.

    Versions are addressed by VersionIndex (0..N-1). Aliases map a version
    index to the index whose contents it shares by convention.
    """

    def __init__(
        self,
        entries: Sequence[Tuple[str, str, int]],
        aliases: Optional[Dict[int, int]] = None,
    ):
        """
        Initialize the catalog.

        Args:
            entries: (label, suffix, max_tag) tuples, oldest first
            aliases: Optional map of version index -> index it shares contents with
        """
        if not entries:
            raise ValueError("Version catalog needs at least one version")

        self._versions: List[Version] = [
            Version(index=VersionIndex(i), label=label, suffix=suffix, max_tag=max_tag)
            for i, (label, suffix, max_tag) in enumerate(entries)
        ]

        self._aliases: Dict[int, int] = dict(aliases or {})
        for source, target in self._aliases.items():
            if not 0 <= source < len(self._versions) or not 0 <= target < len(self._versions):
                raise ValueError(f"Alias {source} -> {target} outside catalog range")
            if target >= source:
                raise ValueError(f"Alias {source} -> {target} must point to an older version")

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[Version]:
        return iter(self._versions)

    def __getitem__(self, index: int) -> Version:
        return self._versions[index]

    @property
    def latest(self) -> Version:
        """Newest version in the catalog."""
        return self._versions[-1]

    @property
    def latest_index(self) -> VersionIndex:
        return self._versions[-1].index

    @property
    def aliases(self) -> Dict[int, int]:
        return dict(self._aliases)

    def label(self, index: int) -> str:
        return self._versions[index].label

    def suffix(self, index: int) -> str:
        return self._versions[index].suffix

    def index_of(self, label: str) -> VersionIndex:
        """
        Find the index of a version by label (case-insensitive).

        Raises:
            UnknownVersionError: If no version has this label
        """
        for version in self._versions:
            if version.label.lower() == label.lower():
                return version.index
        raise UnknownVersionError("Unrecognized FIX version", version=label)

    def find_label(self, label: str) -> Optional[str]:
        """Return the catalog spelling of a label, or None if unknown."""
        for version in self._versions:
            if version.label.lower() == label.lower():
                return version.label
        return None

    def resolve_alias(self, index: int) -> int:
        """Return the index whose contents stand in for the given index."""
        return self._aliases.get(index, index)


FIX_VERSIONS = [
    ("FIX.4.0", "4.0", 140),
    ("FIX.4.1", "4.1", 211),
    ("FIX.4.2", "4.2", 446),
    ("FIX.4.3", "4.3", 659),
    ("FIX.4.4", "4.4", 956),
    ("FIX.5.0", "5.0", 1139),
    ("FIXT.1.1", "T1.1", 1409),
    ("FIX.5.0SP1", "5.0SP1", 1426),
    ("FIX.5.0SP2", "5.0SP2", 1621),
]

# FIXT.1.1 only split out the session layer; its application messages are
# those of FIX.5.0.
FIXT_VERSION_INDEX = 6

FIX_CATALOG = VersionCatalog(FIX_VERSIONS, aliases={FIXT_VERSION_INDEX: FIXT_VERSION_INDEX - 1})
