"""SonarQube generic coverage reporter.

Produces the ``<coverage version="1">`` XML document that SonarQube and
compatible code-quality platforms import as generic test coverage::

    <coverage version="1">
        <file path="src/app.js">
            <lineToCover lineNumber="3" covered="true" branch="false" />
            <lineToCover lineNumber="5" covered="false" branch="true" branchesToCover="2" coveredBranches="1" />
        </file>
    </coverage>
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar
from xml.sax.saxutils import escape

from sonarcov.coverage.branches import branch_coverage_by_line
from sonarcov.coverage.model import increment_ignored_totals
from sonarcov.coverage.summary import TreeSummarizer, summarize_file_coverage
from sonarcov.reporters.base import register_report
from sonarcov.utils.file_writer import FileWriter, StringContentWriter

if TYPE_CHECKING:
    from collections.abc import Callable

    from sonarcov.coverage.istanbul import Collector
    from sonarcov.coverage.model import FileCoverageRecord
    from sonarcov.coverage.summary import SummaryTreeNode
    from sonarcov.utils.file_writer import ContentWriter, Writer

logger = logging.getLogger(__name__)

DEFAULT_REPORT_FILE = "sonar-coverage.xml"

_ATTR_ENTITIES = {'"': "&quot;", "'": "&apos;"}


@register_report
class SonarReport:
    """Write Istanbul coverage as a SonarQube generic coverage XML file.

    Paths in the report are relative to ``project_root``, which defaults to
    the working directory at construction time. The report is written to
    ``output_dir / output_file``; ``output_dir`` defaults to the project root.

    An injected ``writer`` is used for exactly one generation call.
    """

    TYPE: ClassVar[str] = "sonarreport"

    def __init__(
        self,
        *,
        output_dir: str | Path | None = None,
        output_file: str | None = None,
        writer: Writer | None = None,
        project_root: str | Path | None = None,
    ) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.output_dir = Path(output_dir) if output_dir else self.project_root
        self.output_file = output_file or self.get_default_config()["file"]
        self.writer = writer
        self._listeners: list[Callable[[], None]] = []

    def synopsis(self) -> str:
        return "XML coverage report that can be consumed by SonarQube"

    def get_default_config(self) -> dict[str, Any]:
        return {"file": DEFAULT_REPORT_FILE}

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_file

    def on_done(self, callback: Callable[[], None]) -> None:
        """Register a listener called once the report file is written and closed."""
        self._listeners.append(callback)

    def write_report(self, collector: Collector) -> Path:
        """Write the report, blocking until it is on disk.

        Raises:
            ReportWriteError: If the destination cannot be written.
        """
        self._generate(collector, self.writer or FileWriter(sync=True)).result()
        return self.output_path

    def write_report_async(self, collector: Collector) -> Future[Path]:
        """Write the report on a background writer.

        Returns a future resolved with the output path once the file is
        closed, or failed with the write error.
        """
        result: Future[Path] = Future()
        output_path = self.output_path

        def _relay(done: Future[None]) -> None:
            error = done.exception()
            if error is not None:
                result.set_exception(error)
            else:
                result.set_result(output_path)

        self._generate(collector, self.writer or FileWriter(sync=False)).add_done_callback(_relay)
        return result

    def render(self, collector: Collector) -> str:
        """Return the report document as a string."""
        out = StringContentWriter()
        walk(self.build_tree(collector), collector, out, self.project_root)
        return out.getvalue()

    def build_tree(self, collector: Collector) -> SummaryTreeNode:
        """Summarize every file of *collector* into a directory tree."""
        summarizer = TreeSummarizer()
        for key in collector.files():
            summarizer.add_file_coverage_summary(
                key, summarize_file_coverage(collector.file_coverage_for(key))
            )
        return summarizer.get_tree_summary().root

    def _generate(self, collector: Collector, writer: Writer) -> Future[None]:
        root = self.build_tree(collector)
        output_path = self.output_path
        project_root = self.project_root

        writer.on_done(self._emit_done)
        logger.info("Writing Sonar coverage report to %s", output_path)
        writer.write_file(output_path, lambda out: walk(root, collector, out, project_root))
        return writer.done()

    def _emit_done(self) -> None:
        logger.debug("Sonar coverage report complete: %s", self.output_path)
        for listener in self._listeners:
            listener()


# ── Tree walk ────────────────────────────────────────────────────


def walk(
    node: SummaryTreeNode,
    collector: Collector,
    writer: ContentWriter,
    project_root: Path,
    level: int = 0,
) -> None:
    """Write the report for the subtree at *node*.

    Files directly under a package are written before descending into its
    subdirectories. The root element brackets the whole walk.
    """
    if level == 0:
        writer.println('<coverage version="1">')

    if node.package_metrics is not None:
        for child in node.children:
            if child.is_file:
                write_file_stats(
                    child, collector.file_coverage_for(child.full_path()), writer, project_root
                )

    for child in node.children:
        if not child.is_file:
            walk(child, collector, writer, project_root, level + 1)

    if level == 0:
        writer.println("</coverage>")


def write_file_stats(
    node: SummaryTreeNode,
    record: FileCoverageRecord,
    writer: ContentWriter,
    project_root: Path,
) -> None:
    """Write the ``<file>`` block for one source file."""
    writer.println(f"\t<file{_attr('path', _relative_path(node.full_path(), project_root))}>")

    branches = branch_coverage_by_line(increment_ignored_totals(record))
    for line_number, hits in sorted(record.lines.items()):
        element = f"\t\t<lineToCover{_attr('lineNumber', line_number)}{_attr('covered', hits != 0)}"
        stats = branches.get(line_number)
        if stats is None:
            element += _attr("branch", False)
        else:
            element += (
                _attr("branch", True)
                + _attr("branchesToCover", stats.total)
                + _attr("coveredBranches", stats.covered)
            )
        writer.println(f"{element} />")

    writer.println("\t</file>")


def _attr(name: str, value: object) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = escape(str(value), _ATTR_ENTITIES)
    return f' {name}="{text}"'


def _relative_path(path: str, project_root: Path) -> str:
    # Relative keys are relative to the project root, not the process cwd
    try:
        return os.path.relpath(os.path.join(project_root, path), project_root)
    except ValueError:
        # Different drive on Windows
        return path
