"""Istanbul JSON coverage loader.

Reads the ``coverage.json`` / ``coverage-final.json`` files written by
Istanbul, nyc, Jest and Vitest, and exposes them through a ``Collector``
keyed by source file path.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sonarcov.coverage.model import (
    BranchInfo,
    FileCoverageRecord,
    FunctionInfo,
    StatementInfo,
    derive_line_hits,
)

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

DEFAULT_COVERAGE_FILE = "coverage/coverage.json"

# Coverage file locations (Istanbul standard paths)
_COVERAGE_PATHS = [
    DEFAULT_COVERAGE_FILE,
    "coverage/coverage-final.json",
    ".nyc_output/coverage-final.json",
]


class CoverageLoadError(Exception):
    """Raised when a coverage file cannot be read or parsed."""


# ── Collector ────────────────────────────────────────────────────


class Collector:
    """Read-only access to the coverage records of one coverage run."""

    def __init__(self, records: dict[str, FileCoverageRecord] | None = None) -> None:
        self._records: dict[str, FileCoverageRecord] = dict(records or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collector:
        """Build a collector from decoded Istanbul JSON."""
        records: dict[str, FileCoverageRecord] = {}
        for key, file_data in data.items():
            if not isinstance(file_data, dict):
                logger.warning("Skipping coverage entry %s: expected an object", key)
                continue
            records[key] = parse_file_coverage(key, file_data)
        return cls(records)

    @classmethod
    def from_file(cls, coverage_file: Path) -> Collector:
        """Build a collector from an Istanbul JSON file."""
        return load_coverage_file(coverage_file)

    def files(self) -> list[str]:
        """Return all file keys in sorted order."""
        return sorted(self._records)

    def file_coverage_for(self, key: str) -> FileCoverageRecord:
        """Return the coverage record for *key*."""
        return self._records[key]

    def __len__(self) -> int:
        return len(self._records)


# ── Loading ──────────────────────────────────────────────────────


def find_coverage_file(project_path: Path) -> Path | None:
    """Return the first Istanbul coverage file found under *project_path*."""
    for coverage_path in _COVERAGE_PATHS:
        full_path = project_path / coverage_path
        if full_path.is_file():
            return full_path
    return None


def load_coverage_file(coverage_file: Path) -> Collector:
    """Parse an Istanbul JSON coverage file into a ``Collector``.

    Istanbul format:
    {
      "/path/to/file.js": {
        "path": "/path/to/file.js",
        "statementMap": { "0": {...}, "1": {...} },
        "fnMap": { "0": {...} },
        "branchMap": { "0": {...} },
        "s": { "0": 1, "1": 0 },   // statement hit counts
        "f": { "0": 1 },           // function hit counts
        "b": { "0": [1, 0] },      // branch hit counts, one per outcome
        "l": { "1": 1 }            // optional derived line counts
      }
    }

    Raises:
        CoverageLoadError: If the file is missing, unreadable or not an
            Istanbul JSON object.
    """
    try:
        with coverage_file.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        msg = f"Failed to read coverage file {coverage_file}: {e}"
        raise CoverageLoadError(msg) from e

    if not isinstance(data, dict):
        msg = f"Coverage file {coverage_file} does not contain a JSON object"
        raise CoverageLoadError(msg)

    collector = Collector.from_dict(data)
    logger.debug("Loaded coverage for %d file(s) from %s", len(collector), coverage_file)
    return collector


def parse_file_coverage(key: str, data: dict[str, Any]) -> FileCoverageRecord:
    """Parse coverage data for a single file."""
    statement_map = _parse_statement_map(data.get("statementMap", {}))
    statements = {str(k): int(v) for k, v in data.get("s", {}).items()}

    raw_lines = data.get("l")
    if isinstance(raw_lines, dict):
        lines = {int(k): int(v) for k, v in sorted(raw_lines.items(), key=lambda kv: int(kv[0]))}
    else:
        lines = derive_line_hits(statement_map, statements)

    return FileCoverageRecord(
        path=str(data.get("path", key)),
        lines=lines,
        statement_map=statement_map,
        statements=statements,
        fn_map=_parse_fn_map(data.get("fnMap", {})),
        functions={str(k): int(v) for k, v in data.get("f", {}).items()},
        branch_map=_parse_branch_map(data.get("branchMap", {})),
        branch_hits={
            str(k): [int(c) for c in v] for k, v in data.get("b", {}).items() if isinstance(v, list)
        },
    )


def _start_line(info: dict[str, Any]) -> int:
    """Return the start line of a statement/function/branch entry.

    Istanbul 0.x stores ``line`` directly on functions and branches; newer
    releases only keep ``loc.start.line``. Statements carry ``start.line``.
    """
    if "line" in info:
        return int(info["line"])
    start = info.get("start") or info.get("loc", {}).get("start", {})
    return int(start.get("line", 0))


def _parse_statement_map(raw: dict[str, Any]) -> dict[str, StatementInfo]:
    return {
        str(stmt_id): StatementInfo(line=_start_line(info), skip=bool(info.get("skip", False)))
        for stmt_id, info in raw.items()
    }


def _parse_fn_map(raw: dict[str, Any]) -> dict[str, FunctionInfo]:
    return {
        str(fn_id): FunctionInfo(
            name=str(info.get("name", f"anonymous_{fn_id}")),
            line=_start_line(info),
            skip=bool(info.get("skip", False)),
        )
        for fn_id, info in raw.items()
    }


def _parse_branch_map(raw: dict[str, Any]) -> dict[str, BranchInfo]:
    branches: dict[str, BranchInfo] = {}
    for branch_id, info in raw.items():
        locations = info.get("locations", [])
        branches[str(branch_id)] = BranchInfo(
            line=_start_line(info),
            type=str(info.get("type", "")),
            location_skips=[bool(loc.get("skip", False)) for loc in locations],
        )
    return branches
