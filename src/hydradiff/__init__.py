"""
Hydration diff engine.

Compares the structure and accessibility semantics of a page as served
(static markup) and after client-side scripts have run (hydrated), and
scores how much content is hidden from consumers that do not run scripts.
"""

from .aria_differ import diff_accessibility_snapshots
from .aria_snapshot import format_accessibility_snapshot, parse_accessibility_snapshot
from .differ import diff_structure, has_differences
from .document import DocumentNode, parse_document
from .errors import HydradiffError, InvalidInputError
from .hidden_content import DEFAULT_DETECTORS, FrameworkDetector, analyze_hidden_content
from .job_runner import ComparisonRunner
from .models import (
    AriaNode,
    AriaSnapshot,
    HeadingInfo,
    HiddenContentAnalysis,
    JobResult,
    LandmarkNode,
    LinkDetail,
    LinkGroup,
    PageAnalysis,
    PageMetadata,
    SnapshotDiff,
    StructureComparison,
    StructureModel,
    StructureWarning,
)
from .structure import build_structure_model

__all__ = [
    # Analysis
    "build_structure_model",
    "parse_accessibility_snapshot",
    "format_accessibility_snapshot",
    "diff_structure",
    "diff_accessibility_snapshots",
    "has_differences",
    "analyze_hidden_content",
    "parse_document",
    "DocumentNode",
    "FrameworkDetector",
    "DEFAULT_DETECTORS",
    # Models
    "StructureModel",
    "LandmarkNode",
    "HeadingInfo",
    "LinkDetail",
    "LinkGroup",
    "PageMetadata",
    "StructureWarning",
    "AriaNode",
    "AriaSnapshot",
    "StructureComparison",
    "SnapshotDiff",
    "HiddenContentAnalysis",
    "PageAnalysis",
    "JobResult",
    # Errors
    "HydradiffError",
    "InvalidInputError",
    # Main entry point
    "ComparisonRunner",
]
