"""
Structure differ for comparing static and hydrated page structure.

Compares two StructureModels to identify landmarks, headings, links and
metadata that only exist in one rendering, plus skip link changes.
"""

import logging
from collections import defaultdict
from typing import Callable, Hashable, Sequence, TypeVar

from .errors import InvalidInputError
from .models import (
    Change,
    FieldChange,
    HeadingDiff,
    HeadingInfo,
    LandmarkDiff,
    LinkChange,
    LinkDetail,
    LinkDiff,
    LinkGroupDiff,
    MetadataDiff,
    SkipLinkDiff,
    SnapshotDiff,
    StructureComparison,
    StructureComparisonSummary,
    StructureModel,
)
from .structure import LINK_GROUP_ORDER

logger = logging.getLogger(__name__)

T = TypeVar("T")

METADATA_FIELDS = ("title", "language", "canonical_url")


def normalize_heading_text(text: str) -> str:
    """Lowercase and collapse internal whitespace."""
    return " ".join(text.lower().split())


def heading_key(heading: HeadingInfo) -> tuple[int, str]:
    return (heading.level, normalize_heading_text(heading.text))


def _match_in_order(
    before: Sequence[T], after: Sequence[T], key: Callable[[T], Hashable]
) -> dict[int, int]:
    """
    Match entries with equal keys, the n-th occurrence on each side together.

    Returns:
        Mapping of after index -> before index
    """
    pending: dict[Hashable, list[int]] = defaultdict(list)
    for index, item in enumerate(before):
        pending[key(item)].append(index)

    matches: dict[int, int] = {}
    for index, item in enumerate(after):
        candidates = pending.get(key(item))
        if candidates:
            matches[index] = candidates.pop(0)
    return matches


def _match_headings(
    before: Sequence[HeadingInfo], after: Sequence[HeadingInfo]
) -> dict[int, int]:
    """
    Match headings positionally, then by nearest position.

    A heading at the same index with the same key is matched first. Each
    remaining heading then takes the unmatched heading with the same key
    closest in position, preferring the earlier one on a tie.
    """
    before_keys = [heading_key(heading) for heading in before]
    after_keys = [heading_key(heading) for heading in after]

    matches: dict[int, int] = {}
    used: set[int] = set()
    for index in range(min(len(before), len(after))):
        if before_keys[index] == after_keys[index]:
            matches[index] = index
            used.add(index)

    for after_index, key in enumerate(after_keys):
        if after_index in matches:
            continue
        candidates = [
            before_index
            for before_index, candidate in enumerate(before_keys)
            if candidate == key and before_index not in used
        ]
        if not candidates:
            continue
        nearest = min(candidates, key=lambda before_index: (abs(before_index - after_index), before_index))
        matches[after_index] = nearest
        used.add(nearest)

    return matches


def _classify(
    before: Sequence[T],
    after: Sequence[T],
    matches: dict[int, int],
    differs: Callable[[T, T], bool],
) -> tuple[list[T], list[T], list[tuple[T, T]]]:
    """
    Split entries into added, removed and changed given a matching.

    Added and changed keep after order; removed keeps before order.
    """
    matched_before = set(matches.values())
    added = [item for index, item in enumerate(after) if index not in matches]
    removed = [item for index, item in enumerate(before) if index not in matched_before]
    changed = [
        (before[matches[index]], item)
        for index, item in enumerate(after)
        if index in matches and differs(before[matches[index]], item)
    ]
    return added, removed, changed


class StructureDiffer:
    """
    Compares structure between two renderings of a page.

    Entities are matched by identity rather than position, so content that
    moves is not reported as removed and re-added.
    """

    def compare(self, before: StructureModel, after: StructureModel) -> StructureComparison:
        """
        Compare two structure models.

        Args:
            before: Model from the static rendering
            after: Model from the hydrated rendering

        Returns:
            StructureComparison with categorized differences
        """
        comparison = StructureComparison(
            landmarks=self._compare_landmarks(before, after),
            headings=self._compare_headings(before.headings, after.headings),
            links=self._compare_links(before, after),
            metadata=self._compare_metadata(before, after),
            skip_links=self._compare_skip_links(before, after),
            summary=StructureComparisonSummary(
                static_landmarks=before.landmark_count,
                hydrated_landmarks=after.landmark_count,
                static_headings=before.heading_count,
                hydrated_headings=after.heading_count,
                static_links=before.link_count,
                hydrated_links=after.link_count,
                static_skip_links=len(before.skip_links),
                hydrated_skip_links=len(after.skip_links),
            ),
        )

        logger.debug(
            "Structure diff: landmarks +%d/-%d, headings +%d/-%d, links +%d/-%d",
            len(comparison.landmarks.added),
            len(comparison.landmarks.removed),
            len(comparison.headings.added),
            len(comparison.headings.removed),
            len(comparison.links.added),
            len(comparison.links.removed),
        )
        return comparison

    def _compare_landmarks(self, before: StructureModel, after: StructureModel) -> LandmarkDiff:
        """
        Compare landmarks at any depth by (role, accessible name).

        Matched landmarks whose nesting depth or number of child landmarks
        differ are reported as changed.
        """
        before_nodes = list(before.iter_landmarks())
        after_nodes = list(after.iter_landmarks())
        matches = _match_in_order(before_nodes, after_nodes, key=lambda node: node.key)

        added, removed, changed = _classify(
            before_nodes,
            after_nodes,
            matches,
            differs=lambda old, new: old.child_count != new.child_count or old.depth != new.depth,
        )
        return LandmarkDiff(
            added=tuple(added),
            removed=tuple(removed),
            changed=tuple(Change(before=old, after=new) for old, new in changed),
        )

    def _compare_headings(
        self, before: Sequence[HeadingInfo], after: Sequence[HeadingInfo]
    ) -> HeadingDiff:
        """
        Compare headings by (level, normalized text).

        Matched headings whose raw text or content flag differ are changed.
        """
        matches = _match_headings(before, after)
        added, removed, changed = _classify(before, after, matches, differs=lambda old, new: old != new)
        return HeadingDiff(
            added=tuple(added),
            removed=tuple(removed),
            changed=tuple(Change(before=old, after=new) for old, new in changed),
        )

    def _compare_links(self, before: StructureModel, after: StructureModel) -> LinkDiff:
        """
        Compare links group by group, matching on resolved href.

        A link kept with different text is a change, not an add and remove.
        """
        names = [
            name
            for name in LINK_GROUP_ORDER
            if before.get_link_group(name) or after.get_link_group(name)
        ]
        # Groups outside the standard classification, in order of appearance
        for model in (after, before):
            for group in model.links:
                if group.group_name not in names:
                    names.append(group.group_name)

        groups = []
        for name in names:
            before_group = before.get_link_group(name)
            after_group = after.get_link_group(name)
            before_links: Sequence[LinkDetail] = before_group.links if before_group else ()
            after_links: Sequence[LinkDetail] = after_group.links if after_group else ()

            matches = _match_in_order(before_links, after_links, key=lambda link: link.href)
            added, removed, changed = _classify(
                before_links,
                after_links,
                matches,
                differs=lambda old, new: old.text != new.text,
            )
            groups.append(
                LinkGroupDiff(
                    group_name=name,
                    added=tuple(added),
                    removed=tuple(removed),
                    changed=tuple(
                        LinkChange(before=old, after=new, group_name=name) for old, new in changed
                    ),
                )
            )

        return LinkDiff(groups=tuple(groups))

    def _compare_metadata(self, before: StructureModel, after: StructureModel) -> MetadataDiff:
        added: list[FieldChange] = []
        removed: list[FieldChange] = []
        changed: list[FieldChange] = []

        for field_name in METADATA_FIELDS:
            old = getattr(before.metadata, field_name)
            new = getattr(after.metadata, field_name)
            if old == new:
                continue
            change = FieldChange(before=old, after=new, field_name=field_name)
            if old is None:
                added.append(change)
            elif new is None:
                removed.append(change)
            else:
                changed.append(change)

        return MetadataDiff(added=tuple(added), removed=tuple(removed), changed=tuple(changed))

    def _compare_skip_links(self, before: StructureModel, after: StructureModel) -> SkipLinkDiff:
        matches = _match_in_order(before.skip_links, after.skip_links, key=lambda link: link.target)
        added, removed, changed = _classify(
            before.skip_links,
            after.skip_links,
            matches,
            differs=lambda old, new: old.text != new.text,
        )
        return SkipLinkDiff(
            added=tuple(added),
            removed=tuple(removed),
            changed=tuple(Change(before=old, after=new) for old, new in changed),
        )


def diff_structure(before: StructureModel, after: StructureModel) -> StructureComparison:
    """
    Diff two structure models.

    Args:
        before: Model from the static rendering
        after: Model from the hydrated rendering

    Returns:
        StructureComparison

    Raises:
        InvalidInputError: If either argument is not a StructureModel
    """
    for argument, value in (("before", before), ("after", after)):
        if not isinstance(value, StructureModel):
            raise InvalidInputError(
                argument, f"Expected a StructureModel, got {type(value).__name__}"
            )
    return StructureDiffer().compare(before, after)


_DIFF_TYPES = (
    StructureComparison,
    SnapshotDiff,
    LandmarkDiff,
    HeadingDiff,
    LinkDiff,
    LinkGroupDiff,
    MetadataDiff,
    SkipLinkDiff,
)


def has_differences(diff) -> bool:
    """
    Check whether a diff result has any added, removed or changed entries.

    Raises:
        InvalidInputError: If diff is not a diff result
    """
    if not isinstance(diff, _DIFF_TYPES):
        raise InvalidInputError("diff", f"Expected a diff result, got {type(diff).__name__}")
    return diff.has_differences
