"""Per-line branch coverage aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sonarcov.coverage.model import FileCoverageRecord


@dataclass(frozen=True)
class LineBranchStats:
    """Branch outcomes pooled across every branch starting on one line."""

    covered: int
    total: int

    @property
    def coverage_percent(self) -> float:
        """Return branch coverage for the line as a percentage (0.0-100.0)."""
        return self.covered / self.total * 100.0


def branch_coverage_by_line(record: FileCoverageRecord) -> dict[int, LineBranchStats]:
    """Group branch outcomes by source line.

    Lines without branches are absent from the result, which means "not a
    branch line" rather than "no branch covered". Branch ids with no hit
    array are skipped.
    """
    pooled: dict[int, list[int]] = {}
    for branch_id, info in record.branch_map.items():
        hits = record.branch_hits.get(branch_id)
        if hits is None:
            continue
        pooled.setdefault(info.line, []).extend(hits)

    return {
        line: LineBranchStats(covered=sum(1 for c in counts if c > 0), total=len(counts))
        for line, counts in sorted(pooled.items())
        if counts
    }
