"""
Core data models for the hydration diff engine.

All models are pure data structures that can be serialized and reused
by both the CLI and library consumers. Structure models and diff results
are frozen: they are built once and only ever compared, never merged.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional


@dataclass(frozen=True)
class URLInput:
    """
    Wrapper for a URL input with validation.

    Frozen to ensure immutability once created.
    """

    url: str

    def __post_init__(self):
        """Validate URL format."""
        if not self.url or not isinstance(self.url, str):
            raise ValueError(f"URL must be a non-empty string: {self.url}")

        url_lower = self.url.lower().strip()
        if not url_lower.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {self.url}")


@dataclass
class RawFetchResult:
    """
    Results from fetching a URL without JavaScript execution.

    Represents what non-JS crawlers and AI tools see.
    """

    url: str  # Final URL after redirects
    original_url: str  # URL as requested
    status_code: int
    headers: dict[str, str]
    html: str
    fetch_time_ms: int

    @property
    def success(self) -> bool:
        """Check if the fetch was successful (2xx status)."""
        return 200 <= self.status_code < 300


@dataclass
class RenderedFetchResult:
    """
    Results from loading a URL in a headless browser.

    With JavaScript enabled this is the hydrated page users see; with it
    disabled, the browser still exposes an accessibility tree for the
    static markup.
    """

    url: str  # Final URL after redirects
    original_url: str  # URL as requested
    html: str
    success: bool
    fetch_time_ms: int
    javascript_enabled: bool = True
    aria_snapshot: str | None = None
    error_message: str | None = None


# ============================================================================
# Structure model
# ============================================================================


@dataclass(frozen=True)
class LandmarkNode:
    """A landmark region and the landmarks nested inside it."""

    role: str
    accessible_name: str | None
    depth: int
    child_count: int
    tag: str = ""
    children: tuple["LandmarkNode", ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        """Identity used when matching landmarks across renderings."""
        return (self.role, self.accessible_name or "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "accessible_name": self.accessible_name,
            "depth": self.depth,
            "child_count": self.child_count,
            "tag": self.tag,
        }


@dataclass(frozen=True)
class HeadingContentStats:
    """Content between a heading and the next heading, in document order."""

    word_count: int = 0
    paragraphs: int = 0
    lists: int = 0


@dataclass(frozen=True)
class HeadingInfo:
    """
    A heading in document order. Level is the raw rank, never normalized.

    Section content stats are informational and do not take part in
    equality, so they never make a heading count as changed.
    """

    level: int
    text: str
    has_content: bool = True
    content: HeadingContentStats = field(default_factory=HeadingContentStats, compare=False)


@dataclass(frozen=True)
class LinkDetail:
    """A single hyperlink."""

    href: str  # Absolute when a base URL was available
    text: str
    is_external: bool = False
    target_blank: bool = False
    noopener: bool = False
    noreferrer: bool = False


@dataclass(frozen=True)
class SkipLinkInfo:
    """An in-page link that lets keyboard users bypass repeated content."""

    text: str
    target: str  # Raw fragment, e.g. "#main-content"


@dataclass(frozen=True)
class LinkGroup:
    """Links sharing a target classification (internal, external, anchor, other)."""

    group_name: str
    links: tuple[LinkDetail, ...] = ()

    @property
    def count(self) -> int:
        return len(self.links)


@dataclass(frozen=True)
class PageMetadata:
    """Page-level metadata that affects how the document is announced and indexed."""

    title: str | None = None
    language: str | None = None
    canonical_url: str | None = None


@dataclass(frozen=True)
class StructureWarning:
    """A structural issue reported by a rule evaluator."""

    code: str
    message: str
    severity: str  # "error" or "warning"


@dataclass(frozen=True)
class StructureModel:
    """
    Normalized structure of one rendering of a page.

    Built fresh per fetch and never mutated; use with_warnings() to attach
    the output of an external rule evaluator.
    """

    landmarks: tuple[LandmarkNode, ...] = ()
    headings: tuple[HeadingInfo, ...] = ()
    links: tuple[LinkGroup, ...] = ()
    metadata: PageMetadata = field(default_factory=PageMetadata)
    warnings: tuple[StructureWarning, ...] = ()
    skip_links: tuple[SkipLinkInfo, ...] = ()

    def with_warnings(self, warnings) -> "StructureModel":
        """Return a copy of this model carrying the given warnings."""
        return replace(self, warnings=tuple(warnings))

    def iter_landmarks(self) -> Iterator[LandmarkNode]:
        """Yield every landmark in document (pre-order) order."""
        stack = list(reversed(self.landmarks))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def get_link_group(self, group_name: str) -> LinkGroup | None:
        for group in self.links:
            if group.group_name == group_name:
                return group
        return None

    @property
    def landmark_count(self) -> int:
        return sum(1 for _ in self.iter_landmarks())

    @property
    def heading_count(self) -> int:
        return len(self.headings)

    @property
    def link_count(self) -> int:
        return sum(group.count for group in self.links)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": asdict(self.metadata),
            "landmarks": [node.to_dict() for node in self.iter_landmarks()],
            "headings": [asdict(heading) for heading in self.headings],
            "links": {
                group.group_name: [asdict(link) for link in group.links] for group in self.links
            },
            "warnings": [asdict(warning) for warning in self.warnings],
            "skip_links": [asdict(link) for link in self.skip_links],
        }


# ============================================================================
# Accessibility tree
# ============================================================================


@dataclass(frozen=True)
class AriaNode:
    """
    One element of an accessibility tree snapshot.

    Attributes hold declared states verbatim: "level": "1", "checked": True.
    Text holds inline content written after the role ("- paragraph: Hello").
    Nodes are immutable: children become a tuple and attributes a read-only
    mapping.
    """

    role: str
    name: str = ""
    children: tuple["AriaNode", ...] = field(default=(), hash=False)
    attributes: Mapping[str, str | bool] = field(default_factory=dict, hash=False)
    text: str = ""

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def key(self) -> tuple[str, str]:
        return (self.role, self.name)

    @property
    def value(self) -> str | None:
        value = self.attributes.get("value")
        if value is not None:
            return str(value)
        return self.text or None

    @property
    def checked(self) -> str | bool | None:
        return self.attributes.get("checked")

    @property
    def expanded(self) -> str | bool | None:
        return self.attributes.get("expanded")

    def to_dict(self, include_children: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role, "name": self.name}
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.text:
            data["text"] = self.text
        if include_children and self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass
class AriaSnapshot:
    """Parsed accessibility snapshot: the root forest plus role counts."""

    nodes: list[AriaNode]
    counts: dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


# ============================================================================
# Diff results
# ============================================================================


@dataclass(frozen=True)
class Change:
    """An entity present in both renderings with differing details."""

    before: Any
    after: Any


@dataclass(frozen=True)
class LinkChange(Change):
    group_name: str = ""


@dataclass(frozen=True)
class FieldChange(Change):
    field_name: str = ""


@dataclass(frozen=True)
class LandmarkDiff:
    added: tuple[LandmarkNode, ...] = ()
    removed: tuple[LandmarkNode, ...] = ()
    changed: tuple[Change, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class HeadingDiff:
    added: tuple[HeadingInfo, ...] = ()
    removed: tuple[HeadingInfo, ...] = ()
    changed: tuple[Change, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class LinkGroupDiff:
    group_name: str
    added: tuple[LinkDetail, ...] = ()
    removed: tuple[LinkDetail, ...] = ()
    changed: tuple[LinkChange, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class LinkDiff:
    """Link differences, grouped by target classification."""

    groups: tuple[LinkGroupDiff, ...] = ()

    @property
    def added(self) -> tuple[LinkDetail, ...]:
        return tuple(link for group in self.groups for link in group.added)

    @property
    def removed(self) -> tuple[LinkDetail, ...]:
        return tuple(link for group in self.groups for link in group.removed)

    @property
    def changed(self) -> tuple[LinkChange, ...]:
        return tuple(change for group in self.groups for change in group.changed)

    def get_group(self, group_name: str) -> LinkGroupDiff | None:
        for group in self.groups:
            if group.group_name == group_name:
                return group
        return None

    @property
    def has_differences(self) -> bool:
        return any(group.has_differences for group in self.groups)


@dataclass(frozen=True)
class MetadataDiff:
    """
    Metadata differences. Each differing field appears exactly once:
    added (absent before), removed (absent after) or changed.
    """

    added: tuple[FieldChange, ...] = ()
    removed: tuple[FieldChange, ...] = ()
    changed: tuple[FieldChange, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class SkipLinkDiff:
    """Skip links matched by target; a kept target with new text is changed."""

    added: tuple[SkipLinkInfo, ...] = ()
    removed: tuple[SkipLinkInfo, ...] = ()
    changed: tuple[Change, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class StructureComparisonSummary:
    """Entity totals of each rendering, for an at-a-glance comparison."""

    static_landmarks: int = 0
    hydrated_landmarks: int = 0
    static_headings: int = 0
    hydrated_headings: int = 0
    static_links: int = 0
    hydrated_links: int = 0
    static_skip_links: int = 0
    hydrated_skip_links: int = 0


@dataclass(frozen=True)
class StructureComparison:
    """
    Classified structural differences between two renderings.

    The summary only carries totals; it never counts as a difference.
    """

    landmarks: LandmarkDiff = field(default_factory=LandmarkDiff)
    headings: HeadingDiff = field(default_factory=HeadingDiff)
    links: LinkDiff = field(default_factory=LinkDiff)
    metadata: MetadataDiff = field(default_factory=MetadataDiff)
    skip_links: SkipLinkDiff = field(default_factory=SkipLinkDiff)
    summary: StructureComparisonSummary = field(default_factory=StructureComparisonSummary)

    @property
    def has_differences(self) -> bool:
        return (
            self.landmarks.has_differences
            or self.headings.has_differences
            or self.links.has_differences
            or self.metadata.has_differences
            or self.skip_links.has_differences
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_differences": self.has_differences,
            "summary": asdict(self.summary),
            "landmarks": {
                "added": [node.to_dict() for node in self.landmarks.added],
                "removed": [node.to_dict() for node in self.landmarks.removed],
                "changed": [
                    {"before": c.before.to_dict(), "after": c.after.to_dict()}
                    for c in self.landmarks.changed
                ],
            },
            "headings": {
                "added": [asdict(h) for h in self.headings.added],
                "removed": [asdict(h) for h in self.headings.removed],
                "changed": [
                    {"before": asdict(c.before), "after": asdict(c.after)}
                    for c in self.headings.changed
                ],
            },
            "links": {
                group.group_name: {
                    "added": [asdict(link) for link in group.added],
                    "removed": [asdict(link) for link in group.removed],
                    "changed": [
                        {"before": asdict(c.before), "after": asdict(c.after)}
                        for c in group.changed
                    ],
                }
                for group in self.links.groups
                if group.has_differences
            },
            "metadata": {
                change.field_name: {"before": change.before, "after": change.after}
                for change in (
                    self.metadata.added + self.metadata.removed + self.metadata.changed
                )
            },
            "skip_links": {
                "added": [asdict(link) for link in self.skip_links.added],
                "removed": [asdict(link) for link in self.skip_links.removed],
                "changed": [
                    {"before": asdict(c.before), "after": asdict(c.after)}
                    for c in self.skip_links.changed
                ],
            },
        }


@dataclass(frozen=True)
class SnapshotDiff:
    """Accessibility tree differences. Subtrees are flattened in pre-order."""

    added: tuple[AriaNode, ...] = ()
    removed: tuple[AriaNode, ...] = ()
    changed: tuple[Change, ...] = ()

    @property
    def has_differences(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_differences": self.has_differences,
            "added": [node.to_dict(include_children=False) for node in self.added],
            "removed": [node.to_dict(include_children=False) for node in self.removed],
            "changed": [
                {
                    "before": c.before.to_dict(include_children=False),
                    "after": c.after.to_dict(include_children=False),
                }
                for c in self.changed
            ],
        }


@dataclass(frozen=True)
class RoleCountChange:
    role: str
    before: int
    after: int

    @property
    def delta(self) -> int:
        return self.after - self.before


@dataclass(frozen=True)
class HiddenContentAnalysis:
    """How much rendered content a non-script consumer cannot see."""

    framework_detected: str | None
    hidden_word_count: int
    visible_word_count: int
    hidden_percentage: float
    severity: str  # "none", "low" or "high"

    @property
    def has_hidden_content(self) -> bool:
        return self.hidden_word_count > 0


# ============================================================================
# Job results
# ============================================================================


@dataclass
class PageAnalysis:
    """
    Complete analysis for a single URL.

    Combines fetch results, both structure models, both accessibility
    snapshots, their diffs and the hidden-content score.
    """

    url: str  # Original URL as requested
    final_url: str  # Final URL after redirects (from raw fetch)
    http_status: int

    static_structure: StructureModel | None = None
    hydrated_structure: StructureModel | None = None
    structure_diff: StructureComparison | None = None

    static_snapshot: AriaSnapshot | None = None
    hydrated_snapshot: AriaSnapshot | None = None
    snapshot_diff: SnapshotDiff | None = None

    hidden_content: HiddenContentAnalysis | None = None

    fetch_errors: list[str] = field(default_factory=list)
    render_errors: list[str] = field(default_factory=list)
    analysis_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if analysis completed without collaborator or analysis errors."""
        return (
            len(self.fetch_errors) == 0
            and len(self.render_errors) == 0
            and len(self.analysis_errors) == 0
        )

    @property
    def has_differences(self) -> bool:
        """Check if any structural or accessibility differences were detected."""
        return bool(
            (self.structure_diff and self.structure_diff.has_differences)
            or (self.snapshot_diff and self.snapshot_diff.has_differences)
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert analysis to dictionary for serialization.

        Used for JSON output.
        """
        return {
            "url": self.url,
            "final_url": self.final_url,
            "http_status": self.http_status,
            "structure": self.structure_diff.to_dict() if self.structure_diff else None,
            "accessibility": self.snapshot_diff.to_dict() if self.snapshot_diff else None,
            "hidden_content": asdict(self.hidden_content) if self.hidden_content else None,
            "fetch_errors": self.fetch_errors,
            "render_errors": self.render_errors,
            "analysis_errors": self.analysis_errors,
            "success": self.success,
        }


@dataclass
class JobResult:
    """
    Complete results for a batch of URLs.

    Represents the full output of a job run.
    """

    started_at: datetime
    finished_at: Optional[datetime]
    urls_processed: int
    urls_succeeded: int
    urls_failed: int
    results: list[PageAnalysis]

    @property
    def success_rate(self) -> float:
        """Percentage of URLs processed successfully."""
        if self.urls_processed == 0:
            return 0.0
        return round((self.urls_succeeded / self.urls_processed) * 100, 2)

    def get_failed_analyses(self) -> list[PageAnalysis]:
        """Get all analyses that failed."""
        return [result for result in self.results if not result.success]

    def get_analyses_with_differences(self) -> list[PageAnalysis]:
        """Get all analyses that have detected differences."""
        return [result for result in self.results if result.has_differences]
