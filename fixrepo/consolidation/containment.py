"""
Reverse index from fields and components to the messages and components
that contain them.

The index is flat: an entry lists every container that referenced the
field or component in any version.
"""
import logging
from typing import Dict, FrozenSet, Iterable, Optional, Set

from fixrepo.consolidation.diff_engine import COMPONENT, ENTITY_KINDS, MESSAGE
from fixrepo.consolidation.snapshot import MESSAGE_NAME, TAG_TEXT, RepoVersions

logger = logging.getLogger(__name__)


class ContainmentIndex:
    """Maps a field tag or component name to the names of its containers."""

    def __init__(self):
        self._containers: Dict[str, Set[str]] = {}

    def add(self, tag_or_component: str, container_name: str) -> None:
        # TODO: key by version as well once a renderer needs per-version containment
        self._containers.setdefault(tag_or_component, set()).add(container_name)

    def containers_of(self, tag_or_component: str) -> Optional[FrozenSet[str]]:
        """Names of the messages and components containing the item, None if nothing does."""
        containers = self._containers.get(tag_or_component)
        return frozenset(containers) if containers is not None else None

    def as_dict(self) -> Dict[str, FrozenSet[str]]:
        return {key: frozenset(names) for key, names in self._containers.items()}

    def __contains__(self, tag_or_component: str) -> bool:
        return tag_or_component in self._containers

    def __len__(self) -> int:
        return len(self._containers)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContainmentIndex):
            return NotImplemented
        return self._containers == other._containers


def _add_row(index: ContainmentIndex, row: Dict[str, str], container_name: str) -> None:
    tag_text = row.get(TAG_TEXT)
    if tag_text is None:
        logger.debug(f"Skipping segment row of {container_name} without {TAG_TEXT}")
        return
    index.add(tag_text, container_name)


def build_containment_index(
    repo: RepoVersions,
    kinds: Iterable[str] = ENTITY_KINDS,
) -> ContainmentIndex:
    """
    Index which messages and components contain each field and component.

    Every message and component of the newest version is looked up in every
    version where its segment exists; each row's TagText gains the
    container's name (MessageName for messages, ComponentName for
    components). Segments are read directly, without version aliases.

    Args:
        repo: Per-version snapshots
        kinds: Entity kinds to index, in processing order

    Returns:
        Populated ContainmentIndex
    """
    index = ContainmentIndex()
    latest = repo.latest

    for kind in kinds:
        if kind == MESSAGE:
            for msg_type, rows in latest.messages.items():
                message_name = rows[0].get(MESSAGE_NAME, msg_type)
                for _, snapshot in repo.present():
                    for row in snapshot.segment_for_message(msg_type) or ():
                        _add_row(index, row, message_name)
        elif kind == COMPONENT:
            for component_name in latest.components:
                for _, snapshot in repo.present():
                    for row in snapshot.segment_for_component(component_name) or ():
                        _add_row(index, row, component_name)
        else:
            raise ValueError(f"Unknown entity kind: {kind}")

    logger.info(f"Indexed containers of {len(index)} fields and components")
    return index
