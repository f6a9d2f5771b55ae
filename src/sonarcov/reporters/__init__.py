"""Coverage report writers and console output."""

from __future__ import annotations

from sonarcov.reporters.base import (
    CoverageReport,
    create_report,
    list_report_types,
    register_report,
)
from sonarcov.reporters.sonar import SonarReport
from sonarcov.reporters.terminal import reporter

__all__ = [
    "CoverageReport",
    "SonarReport",
    "create_report",
    "list_report_types",
    "register_report",
    "reporter",
]
