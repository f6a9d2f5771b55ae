"""Report capability interface and the report type registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, TypeVar

if TYPE_CHECKING:
    from pathlib import Path

    from sonarcov.coverage.istanbul import Collector

logger = logging.getLogger(__name__)


class CoverageReport(Protocol):
    """A report that turns a coverage collector into an output file."""

    TYPE: ClassVar[str]

    def synopsis(self) -> str:
        """One-line description of the report."""
        ...

    def get_default_config(self) -> dict[str, Any]:
        """Default options for the report."""
        ...

    def write_report(self, collector: Collector) -> Path:
        """Write the report and return the path written."""
        ...


_R = TypeVar("_R", bound=CoverageReport)

_REPORTS: dict[str, type[CoverageReport]] = {}


def register_report(cls: type[_R]) -> type[_R]:
    """Class decorator registering a report under its ``TYPE``."""
    _REPORTS[cls.TYPE] = cls
    logger.debug("Registered report type %s", cls.TYPE)
    return cls


def create_report(report_type: str, **opts: Any) -> CoverageReport:
    """Instantiate the report registered as *report_type*.

    Raises:
        ValueError: If no report is registered under that name.
    """
    cls = _REPORTS.get(report_type)
    if cls is None:
        known = ", ".join(sorted(_REPORTS)) or "none"
        msg = f"Unknown report type {report_type!r} (known: {known})"
        raise ValueError(msg)
    return cls(**opts)


def list_report_types() -> list[str]:
    """Return the names of all registered report types."""
    return sorted(_REPORTS)
