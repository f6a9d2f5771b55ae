"""Coverage summaries and the directory/package summary tree.

Per-file summaries are registered with a ``TreeSummarizer`` under their file
key; the summarizer arranges them into a tree of directory nodes rooted at
the deepest directory shared by every file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sonarcov.coverage.model import FileCoverageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageMetric:
    """Totals for one coverage dimension (lines, statements, ...)."""

    total: int = 0
    covered: int = 0
    skipped: int = 0

    @property
    def pct(self) -> float:
        """Return the covered percentage rounded to two decimals (100.0 when empty)."""
        if self.total == 0:
            return 100.0
        return round(self.covered / self.total * 100.0, 2)

    def __add__(self, other: CoverageMetric) -> CoverageMetric:
        return CoverageMetric(
            total=self.total + other.total,
            covered=self.covered + other.covered,
            skipped=self.skipped + other.skipped,
        )


@dataclass(frozen=True)
class FileCoverageSummary:
    """Line, statement, function and branch totals for one or more files."""

    lines: CoverageMetric = field(default_factory=CoverageMetric)
    statements: CoverageMetric = field(default_factory=CoverageMetric)
    functions: CoverageMetric = field(default_factory=CoverageMetric)
    branches: CoverageMetric = field(default_factory=CoverageMetric)

    def __add__(self, other: FileCoverageSummary) -> FileCoverageSummary:
        return FileCoverageSummary(
            lines=self.lines + other.lines,
            statements=self.statements + other.statements,
            functions=self.functions + other.functions,
            branches=self.branches + other.branches,
        )


def summarize_file_coverage(record: FileCoverageRecord) -> FileCoverageSummary:
    """Compute the coverage totals of a single file."""
    lines = CoverageMetric(
        total=len(record.lines),
        covered=sum(1 for count in record.lines.values() if count > 0),
    )
    statements = CoverageMetric(
        total=len(record.statements),
        covered=sum(1 for count in record.statements.values() if count > 0),
        skipped=sum(1 for info in record.statement_map.values() if info.skip),
    )
    functions = CoverageMetric(
        total=len(record.functions),
        covered=sum(1 for count in record.functions.values() if count > 0),
        skipped=sum(1 for info in record.fn_map.values() if info.skip),
    )

    branch_total = 0
    branch_covered = 0
    branch_skipped = 0
    for branch_id, hits in record.branch_hits.items():
        branch_total += len(hits)
        branch_covered += sum(1 for count in hits if count > 0)
        info = record.branch_map.get(branch_id)
        if info is not None:
            branch_skipped += sum(1 for skipped in info.location_skips if skipped)

    return FileCoverageSummary(
        lines=lines,
        statements=statements,
        functions=functions,
        branches=CoverageMetric(total=branch_total, covered=branch_covered, skipped=branch_skipped),
    )


# ── Summary tree ─────────────────────────────────────────────────


class NodeKind(StrEnum):
    """Summary tree node kinds."""

    FILE = "file"
    DIRECTORY = "dir"


@dataclass
class SummaryTreeNode:
    """A file or directory in the summary tree."""

    name: str
    """Full path of the file or directory."""

    kind: NodeKind

    relative_name: str = ""
    """Path relative to the parent node."""

    children: list[SummaryTreeNode] = field(default_factory=list)

    metrics: FileCoverageSummary = field(default_factory=FileCoverageSummary)
    """Aggregate of every file at or below this node."""

    package_metrics: FileCoverageSummary | None = None
    """Aggregate of direct file children; only set on directories that have some."""

    def full_path(self) -> str:
        """Return the full path of this node."""
        return self.name

    @property
    def is_file(self) -> bool:
        """Return True for file nodes."""
        return self.kind == NodeKind.FILE


@dataclass
class TreeSummary:
    """Rooted summary tree built by ``TreeSummarizer``."""

    root: SummaryTreeNode


class TreeSummarizer:
    """Arrange per-file summaries into a directory tree."""

    def __init__(self) -> None:
        self._summaries: dict[str, FileCoverageSummary] = {}

    def add_file_coverage_summary(self, key: str, summary: FileCoverageSummary) -> None:
        """Register the summary of the file at *key*.

        Raises:
            ValueError: If *key* was already registered.
        """
        if key in self._summaries:
            msg = f"Coverage summary for {key} was already added"
            raise ValueError(msg)
        self._summaries[key] = summary

    def get_tree_summary(self) -> TreeSummary:
        """Build the summary tree from all registered files."""
        parents = {key: PurePath(key).parent.parts for key in self._summaries}
        root_parts = _common_prefix(list(parents.values()))

        root = SummaryTreeNode(name=_join(root_parts), kind=NodeKind.DIRECTORY)
        directories: dict[tuple[str, ...], SummaryTreeNode] = {root_parts: root}

        for key, summary in self._summaries.items():
            parent = _ensure_directory(directories, parents[key])
            parent.children.append(
                SummaryTreeNode(
                    name=key,
                    kind=NodeKind.FILE,
                    relative_name=PurePath(key).name,
                    metrics=summary,
                )
            )

        _finalize(root)
        logger.debug(
            "Built summary tree rooted at %r with %d file(s)", root.name, len(self._summaries)
        )
        return TreeSummary(root=root)


def iter_packages(node: SummaryTreeNode) -> Iterator[SummaryTreeNode]:
    """Yield directory nodes carrying package metrics, in walk order."""
    if node.package_metrics is not None:
        yield node
    for child in node.children:
        if not child.is_file:
            yield from iter_packages(child)


def _common_prefix(paths: list[tuple[str, ...]]) -> tuple[str, ...]:
    if not paths:
        return ()
    prefix = paths[0]
    for parts in paths[1:]:
        length = 0
        for a, b in zip(prefix, parts, strict=False):
            if a != b:
                break
            length += 1
        prefix = prefix[:length]
    return prefix


def _join(parts: tuple[str, ...]) -> str:
    return os.path.join(*parts) if parts else ""


def _ensure_directory(
    directories: dict[tuple[str, ...], SummaryTreeNode], parts: tuple[str, ...]
) -> SummaryTreeNode:
    """Return the node for directory *parts*, creating it and its missing ancestors.

    The root directory is always present, so recursion stops there.
    """
    node = directories.get(parts)
    if node is not None:
        return node

    parent = _ensure_directory(directories, parts[:-1])
    node = SummaryTreeNode(name=_join(parts), kind=NodeKind.DIRECTORY, relative_name=parts[-1])
    parent.children.append(node)
    directories[parts] = node
    return node


def _finalize(node: SummaryTreeNode) -> FileCoverageSummary:
    """Sort children and compute aggregate metrics bottom-up."""
    node.children.sort(key=lambda child: child.relative_name)

    total = FileCoverageSummary()
    package: FileCoverageSummary | None = None
    for child in node.children:
        if child.is_file:
            package = child.metrics if package is None else package + child.metrics
            total = total + child.metrics
        else:
            total = total + _finalize(child)

    node.metrics = total
    node.package_metrics = package
    return total
