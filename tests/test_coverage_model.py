"""Tests for coverage/model.py — derived line hits and ignored totals."""

from __future__ import annotations

from sonarcov.coverage.model import (
    BranchInfo,
    FileCoverageRecord,
    FunctionInfo,
    StatementInfo,
    derive_line_hits,
    increment_ignored_totals,
)


class TestDeriveLineHits:
    def test_takes_highest_count_per_line(self) -> None:
        statement_map = {
            "0": StatementInfo(line=1),
            "1": StatementInfo(line=1),
            "2": StatementInfo(line=3),
        }
        lines = derive_line_hits(statement_map, {"0": 2, "1": 5, "2": 0})
        assert lines == {1: 5, 3: 0}

    def test_skipped_uncovered_statement_counts_once(self) -> None:
        statement_map = {"0": StatementInfo(line=4, skip=True)}
        assert derive_line_hits(statement_map, {"0": 0}) == {4: 1}

    def test_unknown_statement_ignored(self) -> None:
        assert derive_line_hits({}, {"7": 3}) == {}

    def test_lines_sorted(self) -> None:
        statement_map = {"0": StatementInfo(line=9), "1": StatementInfo(line=2)}
        assert list(derive_line_hits(statement_map, {"0": 1, "1": 1})) == [2, 9]


class TestIncrementIgnoredTotals:
    def _record(self) -> FileCoverageRecord:
        return FileCoverageRecord(
            path="/p/a.js",
            lines={1: 0},
            statement_map={"0": StatementInfo(line=1, skip=True), "1": StatementInfo(line=2)},
            statements={"0": 0, "1": 0},
            fn_map={"0": FunctionInfo(name="f", line=1, skip=True)},
            functions={"0": 0},
            branch_map={"0": BranchInfo(line=1, location_skips=[False, True])},
            branch_hits={"0": [0, 0]},
        )

    def test_skipped_items_count_as_hit(self) -> None:
        result = increment_ignored_totals(self._record())
        assert result.statements == {"0": 1, "1": 0}
        assert result.functions == {"0": 1}
        assert result.branch_hits == {"0": [0, 1]}

    def test_input_not_mutated(self) -> None:
        record = self._record()
        increment_ignored_totals(record)
        assert record.statements == {"0": 0, "1": 0}
        assert record.branch_hits == {"0": [0, 0]}

    def test_hit_skipped_items_unchanged(self) -> None:
        record = self._record()
        record.branch_hits["0"] = [3, 4]
        assert increment_ignored_totals(record).branch_hits == {"0": [3, 4]}

    def test_branch_without_hits_tolerated(self) -> None:
        record = self._record()
        record.branch_hits = {}
        assert increment_ignored_totals(record).branch_hits == {}
