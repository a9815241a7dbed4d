"""
Parsing and formatting of textual accessibility tree snapshots.

Snapshots use one node per line, with indentation encoding depth:

    - banner:
      - heading "Welcome" [level=1]
      - link "About":
        - /url: /about
    - checkbox "Subscribe" [checked]
    - paragraph: Some inline text

This is the format produced by browser automation engines when asked for
an ARIA snapshot of a page.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from .errors import InvalidInputError
from .models import AriaNode, AriaSnapshot, RoleCountChange

logger = logging.getLogger(__name__)

DEFAULT_INDENT_UNIT = 2

# Keys written as "- /key: value" property lines under their node
PROPERTY_KEYS = ("url",)

# Role categories for summaries
LANDMARK_ROLES = ("banner", "navigation", "main", "contentinfo", "complementary", "region")
INTERACTIVE_ROLES = (
    "link",
    "button",
    "textbox",
    "checkbox",
    "radio",
    "combobox",
    "listbox",
    "slider",
)
STRUCTURAL_ROLES = ("heading", "list", "listitem", "table", "row", "cell", "img")

_NODE_RE = re.compile(
    r'^(?P<role>[^\s"\[:]+)'
    r'(?:\s+"(?P<name>(?:[^"\\]|\\.)*)")?'
    r"(?P<attrs>(?:\s*\[[^\]]*\])*)"
    r"\s*(?::(?:\s+(?P<text>.*))?)?\s*$"
)
# Keys containing YAML indicators (": ", " #", braces, backticks) are written
# single-quoted, with embedded quotes doubled: - 'link "Docs: intro"':
_QUOTED_KEY_RE = re.compile(r"^'(?P<key>(?:[^']|'')*)'(?P<rest>.*)$")
_BRACKET_RE = re.compile(r"\[([^\]]*)\]")
_PROPERTY_RE = re.compile(r"^/(?P<key>[\w-]+)\s*:\s*(?P<value>.*)$")


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _unescape(value[1:-1])
    return value


def _unquote_key(content: str) -> str:
    match = _QUOTED_KEY_RE.match(content)
    if not match:
        return content
    return match.group("key").replace("''", "'") + match.group("rest")


def _parse_attributes(attrs: str) -> dict[str, str | bool]:
    """
    Parse bracketed state declarations.

    Supports [key=value], [key: value] and bare [flag] forms, and several
    space-separated key=value pairs inside one bracket.
    """
    attributes: dict[str, str | bool] = {}
    for content in _BRACKET_RE.findall(attrs):
        content = content.strip()
        if not content:
            continue
        if ":" in content and "=" not in content:
            key, _, value = content.partition(":")
            attributes[key.strip()] = value.strip()
            continue
        for token in content.split():
            if "=" in token:
                key, _, value = token.partition("=")
                attributes[key] = value
            else:
                attributes[token] = True
    return attributes


def parse_node_line(content: str) -> AriaNode:
    """
    Parse the content of one snapshot line (without indentation or marker).

    Lines that do not follow the role "name" [state] format become nodes
    with role "unknown" and the raw content as their name.
    """
    match = _NODE_RE.match(_unquote_key(content.strip()))
    if not match:
        return AriaNode(role="unknown", name=content.strip())

    name = match.group("name")
    text = match.group("text")
    return AriaNode(
        role=match.group("role"),
        name=_unescape(name) if name is not None else "",
        attributes=_parse_attributes(match.group("attrs") or ""),
        text=_unquote(text) if text else "",
    )


@dataclass
class _NodeBuilder:
    """Mutable node while its children and property lines are collected."""

    node: AriaNode
    attributes: dict[str, str | bool] = field(default_factory=dict)
    children: list["_NodeBuilder"] = field(default_factory=list)

    def freeze(self) -> AriaNode:
        return replace(
            self.node,
            attributes=self.attributes,
            children=tuple(child.freeze() for child in self.children),
        )


def parse_aria_snapshot(text: str, indent_unit: int = DEFAULT_INDENT_UNIT) -> list[AriaNode]:
    """
    Parse an indented snapshot into a forest of AriaNodes.

    Malformed indentation never raises: a node indented more than one level
    past its predecessor attaches to the deepest open ancestor above it.

    Args:
        text: Snapshot text
        indent_unit: Number of spaces per depth level

    Returns:
        Root nodes in document order

    Raises:
        InvalidInputError: If text is not a string or indent_unit is not a
            positive integer
    """
    if not isinstance(text, str):
        raise InvalidInputError("text", f"Snapshot must be a string, got {type(text).__name__}")
    if not isinstance(indent_unit, int) or isinstance(indent_unit, bool) or indent_unit < 1:
        raise InvalidInputError("indent_unit", "indent_unit must be a positive integer")

    roots: list[_NodeBuilder] = []
    stack: list[tuple[int, _NodeBuilder]] = []

    for raw_line in text.splitlines():
        line = raw_line.expandtabs(indent_unit).rstrip()
        stripped = line.lstrip(" ")
        if not stripped:
            continue

        depth = (len(line) - len(stripped)) // indent_unit

        if stripped.startswith("- "):
            content = stripped[2:].strip()
        elif stripped == "-":
            continue
        else:
            content = stripped

        while stack and stack[-1][0] >= depth:
            stack.pop()

        prop = _PROPERTY_RE.match(content)
        if prop:
            if stack:
                stack[-1][1].attributes[prop.group("key")] = _unquote(prop.group("value"))
            continue

        node = parse_node_line(content)
        builder = _NodeBuilder(node=node, attributes=dict(node.attributes))
        (stack[-1][1].children if stack else roots).append(builder)
        stack.append((depth, builder))

    return [builder.freeze() for builder in roots]


def iter_nodes(nodes: Iterable[AriaNode]) -> Iterator[tuple[int, AriaNode]]:
    """Yield (depth, node) for every node in pre-order."""
    stack = [(0, node) for node in reversed(list(nodes))]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(node.children))


def count_by_role(nodes: Iterable[AriaNode]) -> dict[str, int]:
    """Count nodes by role over the whole forest."""
    counts: dict[str, int] = {}
    for _, node in iter_nodes(nodes):
        counts[node.role] = counts.get(node.role, 0) + 1
    return counts


def parse_accessibility_snapshot(
    text: str, indent_unit: int = DEFAULT_INDENT_UNIT
) -> AriaSnapshot:
    """
    Parse a snapshot into its node forest and role counts.

    Args:
        text: Snapshot text
        indent_unit: Number of spaces per depth level

    Returns:
        AriaSnapshot with root nodes and counts by role
    """
    nodes = parse_aria_snapshot(text, indent_unit=indent_unit)
    counts = count_by_role(nodes)
    logger.debug("Parsed accessibility snapshot: %d nodes", sum(counts.values()))
    return AriaSnapshot(nodes=nodes, counts=counts)


def _format_attribute(key: str, value: str | bool) -> str:
    if value is True:
        return f"[{key}]"
    if isinstance(value, bool):
        return f"[{key}={str(value).lower()}]"
    value = str(value)
    if any(char.isspace() for char in value):
        return f"[{key}: {value}]"
    return f"[{key}={value}]"


def format_node_line(node: AriaNode) -> str:
    """Format a node as a single snapshot line, without marker or indentation."""
    parts = [node.role]
    if node.name:
        parts.append(f'"{_escape(node.name)}"')
    parts.extend(
        _format_attribute(key, value)
        for key, value in node.attributes.items()
        if key not in PROPERTY_KEYS
    )
    line = " ".join(parts)

    has_properties = any(key in node.attributes for key in PROPERTY_KEYS)
    if node.text:
        line += f": {node.text}"
    elif node.children or has_properties:
        line += ":"
    return line


def format_accessibility_snapshot(
    nodes: Iterable[AriaNode], indent_unit: int = DEFAULT_INDENT_UNIT
) -> str:
    """
    Serialize a node forest back into snapshot text.

    Parsing the output yields the same (role, name, depth) sequence.
    """
    lines = []
    for depth, node in iter_nodes(nodes):
        indent = " " * (depth * indent_unit)
        lines.append(f"{indent}- {format_node_line(node)}")
        for key in PROPERTY_KEYS:
            if key in node.attributes:
                lines.append(f"{indent}{' ' * indent_unit}- /{key}: {node.attributes[key]}")
    return "\n".join(lines)


def summarize_role_counts(counts: dict[str, int]) -> dict[str, str]:
    """
    Summarize role counts by category for display.

    Returns:
        Mapping of category label to "role: n, ..." text, omitting
        categories with no nodes present
    """
    summary = {}
    for label, roles in (
        ("Landmarks", LANDMARK_ROLES),
        ("Structure", STRUCTURAL_ROLES),
        ("Interactive", INTERACTIVE_ROLES),
    ):
        text = ", ".join(f"{role}: {counts[role]}" for role in roles if counts.get(role))
        if text:
            summary[label] = text
    return summary


def role_count_changes(
    before_counts: dict[str, int], after_counts: dict[str, int]
) -> list[RoleCountChange]:
    """
    Compare role counts between two snapshots.

    Returns:
        Changed roles, largest change first, ties broken by role name
    """
    roles = set(before_counts) | set(after_counts)
    changes = [
        RoleCountChange(role=role, before=before_counts.get(role, 0), after=after_counts.get(role, 0))
        for role in roles
        if before_counts.get(role, 0) != after_counts.get(role, 0)
    ]
    changes.sort(key=lambda change: (-abs(change.delta), change.role))
    return changes
