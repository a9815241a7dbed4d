"""
Unit tests for the accessibility tree differ.
"""

import pytest

from hydradiff.aria_differ import diff_accessibility_snapshots
from hydradiff.aria_snapshot import parse_accessibility_snapshot, parse_aria_snapshot
from hydradiff.errors import InvalidInputError
from hydradiff.models import AriaNode

STATIC = """
- banner:
  - link "Home":
    - /url: /
- main:
  - heading "Products" [level=1]
  - checkbox "In stock"
"""

HYDRATED = """
- banner:
  - link "Home":
    - /url: /
  - navigation "Catalog":
    - list:
      - listitem:
        - link "Shoes":
          - /url: /shoes
- main:
  - heading "Products" [level=1]
  - checkbox "In stock" [checked]
"""


def keys(nodes):
    return [(node.role, node.name) for node in nodes]


class TestSnapshotDiff:
    """Tests for comparing accessibility forests."""

    def test_identical_snapshots(self):
        """Test that identical snapshots have no differences."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot(HYDRATED), parse_aria_snapshot(HYDRATED)
        )

        assert diff.added == ()
        assert diff.removed == ()
        assert diff.changed == ()
        assert diff.has_differences is False

    def test_added_subtree_is_flattened_in_pre_order(self):
        """Test that a new subtree contributes every node, parent first."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot(STATIC), parse_aria_snapshot(HYDRATED)
        )

        assert keys(diff.added) == [
            ("navigation", "Catalog"),
            ("list", ""),
            ("listitem", ""),
            ("link", "Shoes"),
        ]
        assert diff.removed == ()

    def test_state_change(self):
        """Test that a matched node with different states is changed."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot(STATIC), parse_aria_snapshot(HYDRATED)
        )

        assert len(diff.changed) == 1
        change = diff.changed[0]
        assert change.before.key == ("checkbox", "In stock")
        assert change.before.checked is None
        assert change.after.checked is True

    def test_removal_is_symmetric(self):
        """Test that swapping arguments turns additions into removals."""
        forward = diff_accessibility_snapshots(
            parse_aria_snapshot(STATIC), parse_aria_snapshot(HYDRATED)
        )
        backward = diff_accessibility_snapshots(
            parse_aria_snapshot(HYDRATED), parse_aria_snapshot(STATIC)
        )

        assert keys(backward.removed) == keys(forward.added)
        assert backward.added == ()

    def test_text_change(self):
        """Test that differing inline text is a change."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot("- paragraph: Loading"),
            parse_aria_snapshot("- paragraph: Ready"),
        )

        assert [(c.before.text, c.after.text) for c in diff.changed] == [("Loading", "Ready")]

    def test_renamed_node_is_removed_and_added(self):
        """Test that a changed name is a different node."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot('- button "Open"'),
            parse_aria_snapshot('- button "Close"'),
        )

        assert keys(diff.removed) == [("button", "Open")]
        assert keys(diff.added) == [("button", "Close")]
        assert diff.changed == ()

    def test_reordered_siblings(self):
        """Test that reordering siblings alone is not a difference."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot('- link "A"\n- link "B"'),
            parse_aria_snapshot('- link "B"\n- link "A"'),
        )

        assert diff.has_differences is False

    def test_duplicates_matched_greedily(self):
        """Test that duplicate siblings pair with the first unmatched counterpart."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot('- listitem "Row"\n- listitem "Row"\n- listitem "Row"'),
            parse_aria_snapshot('- listitem "Row"'),
        )

        assert keys(diff.removed) == [("listitem", "Row"), ("listitem", "Row")]
        assert diff.added == ()

    def test_children_of_unmatched_nodes_are_not_compared(self):
        """Test that only matched parents have their children compared."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot('- region "Old":\n  - link "Keep"'),
            parse_aria_snapshot('- region "New":\n  - link "Keep"'),
        )

        assert keys(diff.added) == [("region", "New"), ("link", "Keep")]
        assert keys(diff.removed) == [("region", "Old"), ("link", "Keep")]

    def test_empty_forests(self):
        """Test that comparing against an empty forest adds everything."""
        nodes = parse_aria_snapshot(STATIC)

        diff = diff_accessibility_snapshots([], nodes)

        assert len(diff.added) == 5
        assert diff_accessibility_snapshots([], []).has_differences is False

    def test_diff_is_an_immutable_value(self):
        """Test that a diff is hashable and its nodes cannot be changed afterwards."""
        diff = diff_accessibility_snapshots(
            parse_aria_snapshot(STATIC), parse_aria_snapshot(HYDRATED)
        )

        assert hash(diff) == hash(
            diff_accessibility_snapshots(parse_aria_snapshot(STATIC), parse_aria_snapshot(HYDRATED))
        )
        with pytest.raises(TypeError):
            diff.changed[0].after.attributes["checked"] = False


class TestInputs:
    """Tests for accepted and rejected inputs."""

    def test_accepts_snapshot_objects(self):
        """Test that AriaSnapshot objects can be compared directly."""
        diff = diff_accessibility_snapshots(
            parse_accessibility_snapshot(STATIC), parse_accessibility_snapshot(STATIC)
        )

        assert diff.has_differences is False

    def test_accepts_single_node(self):
        """Test that a single root node is treated as a one-node forest."""
        diff = diff_accessibility_snapshots(AriaNode("main"), [AriaNode("main"), AriaNode("banner")])

        assert keys(diff.added) == [("banner", "")]

    def test_rejects_text(self):
        """Test that raw snapshot text is rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            diff_accessibility_snapshots("- button", [])

        assert exc_info.value.argument == "before"

    def test_rejects_none(self):
        """Test that None is rejected for either side."""
        with pytest.raises(InvalidInputError) as exc_info:
            diff_accessibility_snapshots([], None)

        assert exc_info.value.argument == "after"
