"""Data models for per-file Istanbul coverage records."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field


@dataclass
class StatementInfo:
    """Location metadata for a single statement."""

    line: int
    skip: bool = False


@dataclass
class FunctionInfo:
    """Location metadata for a single function."""

    name: str
    line: int
    skip: bool = False


@dataclass
class BranchInfo:
    """Metadata for a branch construct (if/else, switch, ternary, etc.)."""

    line: int
    type: str = ""
    location_skips: list[bool] = field(default_factory=list)
    """Per-outcome ``skip`` flags, aligned with the branch's hit array."""


@dataclass
class FileCoverageRecord:
    """Raw coverage data for a single instrumented source file.

    ``lines`` maps 1-based line numbers to hit counts. ``branch_map`` and
    ``branch_hits`` share the same opaque branch ids; each hit array holds
    one count per branch outcome.
    """

    path: str
    lines: dict[int, int] = field(default_factory=dict)
    statement_map: dict[str, StatementInfo] = field(default_factory=dict)
    statements: dict[str, int] = field(default_factory=dict)
    fn_map: dict[str, FunctionInfo] = field(default_factory=dict)
    functions: dict[str, int] = field(default_factory=dict)
    branch_map: dict[str, BranchInfo] = field(default_factory=dict)
    branch_hits: dict[str, list[int]] = field(default_factory=dict)


def derive_line_hits(
    statement_map: dict[str, StatementInfo], statements: dict[str, int]
) -> dict[int, int]:
    """Derive per-line hit counts from statement hits.

    A line takes the highest count of the statements starting on it. A
    skipped statement that was never hit counts as hit once.
    """
    lines: dict[int, int] = {}
    for stmt_id, count in statements.items():
        info = statement_map.get(stmt_id)
        if info is None:
            continue
        if count == 0 and info.skip:
            count = 1
        previous = lines.get(info.line)
        if previous is None or previous < count:
            lines[info.line] = count
    return dict(sorted(lines.items()))


def increment_ignored_totals(record: FileCoverageRecord) -> FileCoverageRecord:
    """Return a copy of *record* where ignored items with zero hits count as hit once."""
    result = copy.deepcopy(record)

    for stmt_id, info in result.statement_map.items():
        if info.skip and result.statements.get(stmt_id) == 0:
            result.statements[stmt_id] = 1

    for fn_id, fn_info in result.fn_map.items():
        if fn_info.skip and result.functions.get(fn_id) == 0:
            result.functions[fn_id] = 1

    for branch_id, branch_info in result.branch_map.items():
        hits = result.branch_hits.get(branch_id)
        if hits is None:
            continue
        for index, skipped in enumerate(branch_info.location_skips):
            if skipped and index < len(hits) and hits[index] == 0:
                hits[index] = 1

    return result
