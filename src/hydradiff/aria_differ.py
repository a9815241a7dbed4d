"""
Accessibility tree differ.

Compares two accessibility snapshots level by level. Children are matched
greedily on (role, name): each child of the later tree takes the first
unmatched child of the earlier tree with the same identity. This is cheaper
than an optimal tree alignment, and a large reordering may show up as
removals plus additions rather than moves.
"""

import logging
from typing import Sequence

from .aria_snapshot import iter_nodes
from .errors import InvalidInputError
from .models import AriaNode, AriaSnapshot, Change, SnapshotDiff

logger = logging.getLogger(__name__)


def _as_forest(value, argument: str) -> Sequence[AriaNode]:
    if isinstance(value, AriaSnapshot):
        return value.nodes
    if isinstance(value, AriaNode):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(node, AriaNode) for node in value):
        return value
    raise InvalidInputError(
        argument,
        f"Expected an AriaSnapshot or a sequence of AriaNode, got {type(value).__name__}",
    )


def _align(
    before: Sequence[AriaNode], after: Sequence[AriaNode]
) -> tuple[dict[int, int], set[int]]:
    """
    Match sibling lists by identity.

    Returns:
        Tuple of (after index -> before index, matched before indices)
    """
    matches: dict[int, int] = {}
    used: set[int] = set()
    for after_index, node in enumerate(after):
        for before_index, candidate in enumerate(before):
            if before_index not in used and candidate.key == node.key:
                matches[after_index] = before_index
                used.add(before_index)
                break
    return matches, used


def _states_differ(before: AriaNode, after: AriaNode) -> bool:
    return before.attributes != after.attributes or before.text != after.text


def _subtree(node: AriaNode) -> list[AriaNode]:
    return [descendant for _, descendant in iter_nodes([node])]


class SnapshotDiffer:
    """Compares two accessibility forests."""

    def compare(self, before: Sequence[AriaNode], after: Sequence[AriaNode]) -> SnapshotDiff:
        """
        Compare two forests.

        Args:
            before: Nodes from the earlier rendering (usually static)
            after: Nodes from the later rendering (usually hydrated)

        Returns:
            SnapshotDiff with added and changed nodes in after order and
            removed nodes in before order
        """
        added: list[AriaNode] = []
        removed: list[AriaNode] = []
        changed: list[Change] = []

        self._collect_additions(before, after, added, changed)
        self._collect_removals(before, after, removed)

        return SnapshotDiff(added=tuple(added), removed=tuple(removed), changed=tuple(changed))

    def _collect_additions(
        self,
        before: Sequence[AriaNode],
        after: Sequence[AriaNode],
        added: list[AriaNode],
        changed: list[Change],
    ) -> None:
        matches, _ = _align(before, after)
        for after_index, node in enumerate(after):
            if after_index not in matches:
                added.extend(_subtree(node))
                continue
            counterpart = before[matches[after_index]]
            if _states_differ(counterpart, node):
                changed.append(Change(before=counterpart, after=node))
            self._collect_additions(counterpart.children, node.children, added, changed)

    def _collect_removals(
        self,
        before: Sequence[AriaNode],
        after: Sequence[AriaNode],
        removed: list[AriaNode],
    ) -> None:
        matches, used = _align(before, after)
        counterparts = {before_index: after_index for after_index, before_index in matches.items()}
        for before_index, node in enumerate(before):
            if before_index not in used:
                removed.extend(_subtree(node))
                continue
            counterpart = after[counterparts[before_index]]
            self._collect_removals(node.children, counterpart.children, removed)


def diff_accessibility_snapshots(before, after) -> SnapshotDiff:
    """
    Diff two accessibility snapshots.

    Args:
        before: AriaSnapshot or sequence of AriaNode (usually static)
        after: AriaSnapshot or sequence of AriaNode (usually hydrated)

    Returns:
        SnapshotDiff

    Raises:
        InvalidInputError: If either argument is not a snapshot or forest
    """
    before_nodes = _as_forest(before, "before")
    after_nodes = _as_forest(after, "after")
    diff = SnapshotDiffer().compare(before_nodes, after_nodes)
    logger.debug(
        "Accessibility diff: %d added, %d removed, %d changed",
        len(diff.added),
        len(diff.removed),
        len(diff.changed),
    )
    return diff
