"""
Terminal output formatter for CLI.

Handles all display logic - no business logic, just presentation.
"""

from hydradiff.aria_snapshot import role_count_changes, summarize_role_counts
from hydradiff.models import JobResult, PageAnalysis, SnapshotDiff, StructureComparison

MAX_ITEMS = 10


def _print_items(title: str, items: list[str]) -> None:
    if not items:
        return
    print(f"\n    {title} ({len(items)}):")
    for item in items[:MAX_ITEMS]:
        print(f"      • {item}")
    if len(items) > MAX_ITEMS:
        print(f"      ... and {len(items) - MAX_ITEMS} more")


def _landmark_label(node) -> str:
    label = node.role
    if node.accessible_name:
        label += f' "{node.accessible_name}"'
    return label


def _aria_label(node) -> str:
    return f'{node.role} "{node.name}"' if node.name else node.role


def print_structure_diff(diff: StructureComparison) -> None:
    """Print structural differences between static and hydrated renderings."""
    summary = diff.summary
    print(f"    {'':<12}{'static':>8}{'hydrated':>10}")
    for label, before, after in (
        ("Landmarks", summary.static_landmarks, summary.hydrated_landmarks),
        ("Headings", summary.static_headings, summary.hydrated_headings),
        ("Links", summary.static_links, summary.hydrated_links),
        ("Skip links", summary.static_skip_links, summary.hydrated_skip_links),
    ):
        print(f"    {label:<12}{before:>8}{after:>10}")

    for change in diff.metadata.added + diff.metadata.removed + diff.metadata.changed:
        print(f"    {change.field_name}: {change.before!r} -> {change.after!r}")

    _print_items(
        "Landmarks ONLY after JavaScript",
        [_landmark_label(node) for node in diff.landmarks.added],
    )
    _print_items(
        "Landmarks ONLY without JavaScript",
        [_landmark_label(node) for node in diff.landmarks.removed],
    )
    _print_items(
        "Landmarks restructured by JavaScript",
        [
            f"{_landmark_label(c.after)}: depth {c.before.depth}->{c.after.depth}, "
            f"children {c.before.child_count}->{c.after.child_count}"
            for c in diff.landmarks.changed
        ],
    )
    _print_items(
        "Headings ONLY after JavaScript",
        [f"h{h.level} {h.text}" for h in diff.headings.added],
    )
    _print_items(
        "Headings ONLY without JavaScript",
        [f"h{h.level} {h.text}" for h in diff.headings.removed],
    )
    _print_items(
        "Skip links ONLY after JavaScript",
        [f"{link.text or '(no text)'} -> {link.target}" for link in diff.skip_links.added],
    )
    _print_items(
        "Skip links ONLY without JavaScript",
        [f"{link.text or '(no text)'} -> {link.target}" for link in diff.skip_links.removed],
    )
    for group in diff.links.groups:
        _print_items(
            f"{group.group_name.capitalize()} links ONLY after JavaScript",
            [f"{link.text or '(no text)'} -> {link.href}" for link in group.added],
        )
        _print_items(
            f"{group.group_name.capitalize()} links ONLY without JavaScript",
            [f"{link.text or '(no text)'} -> {link.href}" for link in group.removed],
        )
        _print_items(
            f"{group.group_name.capitalize()} links with changed text",
            [f"{c.after.href}: {c.before.text!r} -> {c.after.text!r}" for c in group.changed],
        )


def print_snapshot_diff(analysis: PageAnalysis, diff: SnapshotDiff) -> None:
    """Print accessibility tree differences."""
    if analysis.hydrated_snapshot:
        for label, text in summarize_role_counts(analysis.hydrated_snapshot.counts).items():
            print(f"    {label + ':':<13}{text}")

    if analysis.static_snapshot and analysis.hydrated_snapshot:
        changes = role_count_changes(
            analysis.static_snapshot.counts, analysis.hydrated_snapshot.counts
        )
        _print_items(
            "Role counts",
            [f"{c.role}: {c.before} -> {c.after} ({c.delta:+d})" for c in changes],
        )

    _print_items(
        "Exposed to assistive technology ONLY after JavaScript",
        [_aria_label(node) for node in diff.added],
    )
    _print_items(
        "Exposed ONLY without JavaScript",
        [_aria_label(node) for node in diff.removed],
    )
    _print_items(
        "State changed by JavaScript",
        [
            f"{_aria_label(c.after)}: {c.before.attributes or c.before.text!r} -> "
            f"{c.after.attributes or c.after.text!r}"
            for c in diff.changed
        ],
    )


def print_results_summary(result: JobResult) -> None:
    """
    Print a human-readable summary of results to terminal.

    Args:
        result: JobResult containing all analyses
    """
    print("\n" + "=" * 80)
    print("HYDRATION DIFFERENCE REPORT")
    print("=" * 80)
    print(f"\nURLs Processed: {result.urls_processed}")
    print(f"URLs Succeeded: {result.urls_succeeded}")
    print(f"URLs Failed:    {result.urls_failed}")
    print(f"Success Rate:   {result.success_rate}%")

    if result.finished_at:
        duration = (result.finished_at - result.started_at).total_seconds()
        print(f"Duration:       {duration:.1f} seconds")

    print(f"\n{'=' * 80}\n")

    for i, analysis in enumerate(result.results, 1):
        if not analysis.success and analysis.http_status == 0:
            continue

        print(f"[{i}] {analysis.url}")
        print(f"    Final URL: {analysis.final_url}")
        print(f"    HTTP Status: {analysis.http_status}")

        if analysis.structure_diff is not None:
            print("\n  Structure:")
            if analysis.structure_diff.has_differences:
                print_structure_diff(analysis.structure_diff)
            else:
                print("    ✓ No structural differences")

        if analysis.snapshot_diff is not None:
            print("\n  Accessibility tree:")
            if analysis.snapshot_diff.has_differences:
                print_snapshot_diff(analysis, analysis.snapshot_diff)
            else:
                print("    ✓ Accessibility tree unchanged by JavaScript")

        hidden = analysis.hidden_content
        if hidden is not None:
            print("\n  Hidden content:")
            print(f"    Framework:  {hidden.framework_detected or 'none detected'}")
            print(f"    Hidden:     {hidden.hidden_word_count} words ({hidden.hidden_percentage:.1f}%)")
            print(f"    Visible:    {hidden.visible_word_count} words")
            print(f"    Severity:   {hidden.severity}")

        print("\n" + "-" * 80 + "\n")

    failed_analyses = result.get_failed_analyses()
    if failed_analyses:
        print(f"\n{'=' * 80}")
        print(f"FAILED URLS ({len(failed_analyses)})")
        print(f"{'=' * 80}\n")

        for i, analysis in enumerate(failed_analyses, 1):
            print(f"[{i}] {analysis.url}")
            _print_errors(analysis)
            print("-" * 80 + "\n")


def _print_errors(analysis: PageAnalysis) -> None:
    """
    Print errors from an analysis in a readable format.

    Args:
        analysis: PageAnalysis containing errors
    """
    if analysis.fetch_errors:
        print("  Fetch Errors:")
        for error in analysis.fetch_errors:
            print(f"    • {error}")

    if analysis.render_errors:
        print("  Render Errors:")
        for error in analysis.render_errors:
            print(f"    • {error}")

    if analysis.analysis_errors:
        print("  Analysis Errors:")
        for error in analysis.analysis_errors:
            print(f"    • {error}")
