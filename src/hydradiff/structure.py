"""
Structure model builder for parsed documents.

Extracts landmarks, headings, links, skip links and page metadata in a
single pre-order walk, producing the StructureModel compared across
renderings.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from urllib.parse import urljoin, urlparse

from .document import DocumentNode, as_document_node, collapse_whitespace
from .errors import InvalidInputError
from .models import (
    HeadingContentStats,
    HeadingInfo,
    LandmarkNode,
    LinkDetail,
    LinkGroup,
    PageMetadata,
    SkipLinkInfo,
    StructureModel,
    StructureWarning,
)

logger = logging.getLogger(__name__)

LANDMARK_ROLES = (
    "banner",
    "navigation",
    "main",
    "complementary",
    "contentinfo",
    "search",
    "form",
    "region",
)

# Header/footer inside these lose their banner/contentinfo role
SECTIONING_TAGS = frozenset({"article", "aside", "main", "nav", "section"})

# Subtrees that never render as structure
SKIPPED_TAGS = frozenset({"script", "style", "template"})

HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

LIST_TAGS = frozenset({"ul", "ol"})

INTERNAL = "internal"
EXTERNAL = "external"
ANCHOR = "anchor"
OTHER = "other"
LINK_GROUP_ORDER = (INTERNAL, EXTERNAL, ANCHOR, OTHER)

NON_NAVIGATIONAL_SCHEMES = ("mailto:", "tel:", "sms:", "javascript:", "data:")

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}

# Fragment targets conventionally used by skip links
SKIP_LINK_PATTERNS = (
    re.compile(r"^#(main|content|main-content|maincontent|skip|skip-content)$", re.IGNORECASE),
    re.compile(r"^#(navigation|nav|menu)$", re.IGNORECASE),
)
SKIP_TEXT_RE = re.compile(r"skip", re.IGNORECASE)


@dataclass
class _SectionStats:
    """Running content totals for the most recent heading."""

    word_count: int = 0
    paragraphs: int = 0
    lists: int = 0

    def freeze(self) -> HeadingContentStats:
        return HeadingContentStats(
            word_count=self.word_count, paragraphs=self.paragraphs, lists=self.lists
        )


@dataclass
class _LandmarkBuilder:
    """Mutable landmark while the walk is in progress."""

    role: str
    accessible_name: str | None
    tag: str
    depth: int
    children: list["_LandmarkBuilder"] = field(default_factory=list)

    def freeze(self) -> LandmarkNode:
        children = tuple(child.freeze() for child in self.children)
        return LandmarkNode(
            role=self.role,
            accessible_name=self.accessible_name,
            depth=self.depth,
            child_count=len(children),
            tag=self.tag,
            children=children,
        )


class StructureBuilder:
    """
    Builds a StructureModel from a parsed document.

    Accepts any DocumentNode implementation or a BeautifulSoup tree.
    """

    def __init__(self, base_url: str | None = None):
        """
        Initialize the structure builder.

        Args:
            base_url: URL the document was loaded from, used to resolve and
                classify links (optional)
        """
        self.base_url = base_url

    def build(self, document) -> StructureModel:
        """
        Walk the document and build its structure model.

        Args:
            document: Parsed document (DocumentNode or BeautifulSoup object)

        Returns:
            StructureModel with empty collections when nothing is found

        Raises:
            InvalidInputError: If document is not a supported document object
        """
        root = as_document_node(document)
        if root is None:
            raise InvalidInputError(
                "document",
                f"Expected a parsed document, got {type(document).__name__}",
            )

        ids = self._index_ids(root)

        roots: list[_LandmarkBuilder] = []
        headings: list[tuple[HeadingInfo, _SectionStats]] = []
        section: _SectionStats | None = None
        groups: dict[str, list[LinkDetail]] = {name: [] for name in LINK_GROUP_ORDER}
        skip_links: list[SkipLinkInfo] = []
        title: str | None = None
        language: str | None = None
        canonical_url: str | None = None
        seen_html = False

        # (node, enclosing landmark, inside sectioning content, inside svg,
        #  text already credited to a heading section)
        stack: list[tuple[DocumentNode, _LandmarkBuilder | None, bool, bool, bool]] = [
            (root, None, False, False, False)
        ]
        while stack:
            node, parent, in_sectioning, in_svg, counted = stack.pop()
            tag = node.tag_name

            if tag in SKIPPED_TAGS:
                continue

            if tag == "html" and not seen_html:
                seen_html = True
                language = (node.get_attribute("lang") or "").strip() or None
            elif tag == "title" and title is None and not in_svg:
                title = collapse_whitespace(node.text_content()) or None
            elif tag == "link" and canonical_url is None and self._is_canonical(node):
                canonical_url = self._resolve(node.get_attribute("href") or "")

            current = parent
            role = self._landmark_role(node, tag, in_sectioning, ids)
            if role:
                landmark = _LandmarkBuilder(
                    role=role,
                    accessible_name=self._accessible_name(node, ids),
                    tag=tag,
                    depth=parent.depth + 1 if parent else 0,
                )
                (parent.children if parent else roots).append(landmark)
                current = landmark

            heading = self._heading(node, tag)
            if heading is not None:
                section = _SectionStats()
                headings.append((heading, section))
                # Heading text is not content of its own section
                counted = True
            elif not counted and not self._contains_heading(node):
                if section is not None:
                    section.word_count += len(node.text_content().split())
                counted = True

            if section is not None and heading is None:
                if tag == "p":
                    section.paragraphs += 1
                elif tag in LIST_TAGS:
                    section.lists += 1

            if tag in ("a", "area"):
                href = node.get_attribute("href")
                if href is not None:
                    group_name, link = self._link(node, href)
                    groups[group_name].append(link)
                    skip_link = self._skip_link(node, tag, href)
                    if skip_link is not None:
                        skip_links.append(skip_link)

            child_sectioning = in_sectioning or tag in SECTIONING_TAGS
            child_svg = in_svg or tag == "svg"
            for child in reversed(list(node.children())):
                stack.append((child, current, child_sectioning, child_svg, counted))

        model = StructureModel(
            landmarks=tuple(landmark.freeze() for landmark in roots),
            headings=tuple(replace(heading, content=stats.freeze()) for heading, stats in headings),
            links=tuple(
                LinkGroup(group_name=name, links=tuple(groups[name]))
                for name in LINK_GROUP_ORDER
                if groups[name]
            ),
            metadata=PageMetadata(title=title, language=language, canonical_url=canonical_url),
            skip_links=tuple(skip_links),
        )

        logger.debug(
            "Built structure model: %d landmarks, %d headings, %d links, %d skip links",
            model.landmark_count,
            model.heading_count,
            model.link_count,
            len(model.skip_links),
        )
        return model

    def _index_ids(self, root: DocumentNode) -> dict[str, DocumentNode]:
        """Map element ids to elements, first occurrence wins."""
        ids: dict[str, DocumentNode] = {}
        stack = [root]
        while stack:
            node = stack.pop()
            element_id = node.get_attribute("id")
            if element_id and element_id not in ids:
                ids[element_id] = node
            stack.extend(reversed(list(node.children())))
        return ids

    def _explicit_role(self, node: DocumentNode) -> str | None:
        role = (node.get_attribute("role") or "").strip().lower()
        return role.split()[0] if role else None

    def _landmark_role(
        self,
        node: DocumentNode,
        tag: str,
        in_sectioning: bool,
        ids: dict[str, DocumentNode],
    ) -> str | None:
        """
        Determine the landmark role of an element, if any.

        An explicit role attribute always takes precedence over the tag's
        implicit role, including roles that are not landmarks.
        """
        explicit = self._explicit_role(node)
        if explicit is not None:
            return explicit if explicit in LANDMARK_ROLES else None

        if tag == "nav":
            return "navigation"
        if tag == "main":
            return "main"
        if tag == "aside":
            return "complementary"
        if tag == "search":
            return "search"
        if tag == "header" and not in_sectioning:
            return "banner"
        if tag == "footer" and not in_sectioning:
            return "contentinfo"
        # Sections and forms are only landmarks when named
        if tag == "section" and self._accessible_name(node, ids):
            return "region"
        if tag == "form" and self._accessible_name(node, ids):
            return "form"
        return None

    def _accessible_name(self, node: DocumentNode, ids: dict[str, DocumentNode]) -> str | None:
        label = collapse_whitespace(node.get_attribute("aria-label") or "")
        if label:
            return label

        labelledby = (node.get_attribute("aria-labelledby") or "").split()
        parts = [
            collapse_whitespace(ids[ref].text_content()) for ref in labelledby if ref in ids
        ]
        name = " ".join(part for part in parts if part)
        return name or None

    def _heading_level(self, node: DocumentNode, tag: str) -> int | None:
        """Heading level of an element, or None if it is not a heading."""
        explicit = self._explicit_role(node)
        # An explicit role replaces the tag's implicit heading role
        if explicit is not None and explicit != "heading":
            return None
        level = HEADING_TAGS.get(tag)
        if level is None and explicit == "heading":
            level = self._aria_level(node.get_attribute("aria-level"))
        return level

    def _heading(self, node: DocumentNode, tag: str) -> HeadingInfo | None:
        level = self._heading_level(node, tag)
        if level is None:
            return None
        text = collapse_whitespace(node.text_content())
        return HeadingInfo(level=level, text=text, has_content=bool(text))

    def _contains_heading(self, node: DocumentNode) -> bool:
        stack = list(node.children())
        while stack:
            child = stack.pop()
            tag = child.tag_name
            if tag in SKIPPED_TAGS:
                continue
            if self._heading_level(child, tag) is not None:
                return True
            stack.extend(child.children())
        return False

    def _aria_level(self, value: str | None) -> int:
        try:
            level = int((value or "").strip())
        except ValueError:
            return 2
        return min(max(level, 1), 6)

    def _is_canonical(self, node: DocumentNode) -> bool:
        rel = (node.get_attribute("rel") or "").lower().split()
        return "canonical" in rel and node.get_attribute("href") is not None

    def _resolve(self, href: str) -> str:
        href = href.strip()
        if not self.base_url:
            return href
        try:
            return urljoin(_normalize_base_url(self.base_url), href)
        except ValueError:
            return href

    def _link(self, node: DocumentNode, href: str) -> tuple[str, LinkDetail]:
        group_name, resolved, is_external = classify_link(href, self.base_url)
        text = collapse_whitespace(node.text_content())
        if not text:
            text = collapse_whitespace(node.get_attribute("aria-label") or "")
        if not text:
            text = self._image_alt_text(node)
        rel = (node.get_attribute("rel") or "").lower().split()
        return group_name, LinkDetail(
            href=resolved,
            text=text,
            is_external=is_external,
            target_blank=(node.get_attribute("target") or "").strip().lower() == "_blank",
            noopener="noopener" in rel,
            noreferrer="noreferrer" in rel,
        )

    def _skip_link(self, node: DocumentNode, tag: str, href: str) -> SkipLinkInfo | None:
        """A fragment link to main content or navigation, or one saying "skip"."""
        target = href.strip()
        if tag != "a" or not target.startswith("#"):
            return None
        text = collapse_whitespace(node.text_content())
        if any(pattern.match(target) for pattern in SKIP_LINK_PATTERNS) or SKIP_TEXT_RE.search(text):
            return SkipLinkInfo(text=text, target=target)
        return None

    def _image_alt_text(self, node: DocumentNode) -> str:
        alts = []
        stack = list(node.children())
        while stack:
            child = stack.pop(0)
            if child.tag_name == "img":
                alt = collapse_whitespace(child.get_attribute("alt") or "")
                if alt:
                    alts.append(alt)
            stack[:0] = list(child.children())
        return " ".join(alts)


def _normalize_base_url(base_url: str) -> str:
    """Give a scheme to base URLs written without one."""
    base_url = base_url.strip()
    if base_url.startswith("//"):
        return "https:" + base_url
    if "://" not in base_url:
        return "https://" + base_url
    return base_url


def _origin(url: str) -> tuple[str, str, int | None]:
    """
    Return the (scheme, host, port) origin of an absolute URL.

    Raises:
        ValueError: If the URL has an invalid port or host
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    port = parsed.port or DEFAULT_PORTS.get(scheme)
    return scheme, host, port


def classify_link(href: str, base_url: str | None = None) -> tuple[str, str, bool]:
    """
    Classify a link target relative to the page it appears on.

    Args:
        href: Raw href attribute value
        base_url: URL of the page (optional)

    Returns:
        Tuple of (group name, resolved href, is_external)
    """
    href = href.strip()

    if href.startswith("#"):
        if base_url:
            try:
                return ANCHOR, urljoin(_normalize_base_url(base_url), href), False
            except ValueError:
                pass
        return ANCHOR, href, False

    if href.lower().startswith(NON_NAVIGATIONAL_SCHEMES):
        return OTHER, href, False

    # Without a page URL nothing can be called external
    if not base_url:
        return INTERNAL, href, False

    base = _normalize_base_url(base_url)
    try:
        resolved = urljoin(base, href)
        is_external = _origin(resolved) != _origin(base)
    except ValueError:
        return INTERNAL, href, False

    return (EXTERNAL if is_external else INTERNAL), resolved, is_external


def build_structure_model(document, base_url: str | None = None) -> StructureModel:
    """
    Build the structure model of a parsed document.

    Args:
        document: Parsed document (DocumentNode or BeautifulSoup object)
        base_url: URL the document was loaded from (optional)

    Returns:
        StructureModel for the document
    """
    return StructureBuilder(base_url=base_url).build(document)


# ============================================================================
# Derived views
# ============================================================================


@dataclass
class HeadingOutlineNode:
    heading: HeadingInfo
    children: list["HeadingOutlineNode"] = field(default_factory=list)


def heading_outline(headings) -> list[HeadingOutlineNode]:
    """
    Nest a flat heading list into a hierarchy.

    Each heading becomes a child of the closest preceding heading with a
    lower level; skipped levels do not create placeholder nodes.
    """
    roots: list[HeadingOutlineNode] = []
    stack: list[HeadingOutlineNode] = []

    for heading in headings:
        node = HeadingOutlineNode(heading=heading)
        while stack and stack[-1].heading.level >= heading.level:
            stack.pop()
        (stack[-1].children if stack else roots).append(node)
        stack.append(node)

    return roots


def heading_hierarchy_warnings(headings) -> list[StructureWarning]:
    """
    Derive heading hierarchy warnings from a heading list.

    These are never attached to a model automatically; callers may pass
    them to StructureModel.with_warnings().
    """
    warnings: list[StructureWarning] = []
    h1_count = sum(1 for heading in headings if heading.level == 1)

    if headings and h1_count == 0:
        warnings.append(
            StructureWarning(
                code="heading-missing-h1",
                message="Page has headings but no level-one heading",
                severity="warning",
            )
        )
    elif h1_count > 1:
        warnings.append(
            StructureWarning(
                code="heading-multiple-h1",
                message=f"Page has {h1_count} level-one headings",
                severity="warning",
            )
        )

    previous_level = 0
    for heading in headings:
        if not heading.has_content:
            warnings.append(
                StructureWarning(
                    code="heading-empty",
                    message=f"Level {heading.level} heading has no text",
                    severity="error",
                )
            )
        if previous_level and heading.level > previous_level + 1:
            warnings.append(
                StructureWarning(
                    code="heading-skipped-level",
                    message=(
                        f'Heading "{heading.text}" jumps from level {previous_level} '
                        f"to level {heading.level}"
                    ),
                    severity="warning",
                )
            )
        previous_level = heading.level

    return warnings


def landmark_counts(model: StructureModel) -> dict[str, int]:
    """Count landmarks per role, listing every known role."""
    counts = {role: 0 for role in LANDMARK_ROLES}
    for landmark in model.iter_landmarks():
        counts[landmark.role] = counts.get(landmark.role, 0) + 1
    return counts
