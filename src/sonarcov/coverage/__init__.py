"""Coverage model, Istanbul loader, summaries and branch aggregation."""

from sonarcov.coverage.branches import LineBranchStats, branch_coverage_by_line
from sonarcov.coverage.istanbul import (
    Collector,
    CoverageLoadError,
    find_coverage_file,
    load_coverage_file,
)
from sonarcov.coverage.model import (
    BranchInfo,
    FileCoverageRecord,
    FunctionInfo,
    StatementInfo,
)
from sonarcov.coverage.summary import (
    CoverageMetric,
    FileCoverageSummary,
    NodeKind,
    SummaryTreeNode,
    TreeSummarizer,
    summarize_file_coverage,
)

__all__ = [
    "BranchInfo",
    "Collector",
    "CoverageLoadError",
    "CoverageMetric",
    "FileCoverageRecord",
    "FileCoverageSummary",
    "FunctionInfo",
    "LineBranchStats",
    "NodeKind",
    "StatementInfo",
    "SummaryTreeNode",
    "TreeSummarizer",
    "branch_coverage_by_line",
    "find_coverage_file",
    "load_coverage_file",
    "summarize_file_coverage",
]
