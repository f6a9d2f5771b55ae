"""Line-oriented file writing with a single completion signal.

A ``FileWriter`` opens a destination, hands a ``ContentWriter`` to the
caller's callback, then closes the file. ``done()`` resolves once all files
are written and fires the registered listeners exactly once.

In sync mode (the default) every write happens inside ``write_file`` and
errors are raised there. In async mode writes run in submission order on a
single background worker and errors surface through the future returned by
``done()``.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)


class ReportWriteError(Exception):
    """Raised when a report destination cannot be opened or written."""


class ContentWriter(Protocol):
    """Sink for report text."""

    def write(self, text: str) -> None: ...

    def println(self, line: str) -> None: ...


class Writer(Protocol):
    """A destination for whole files with a completion signal."""

    def write_file(self, path: Path, callback: Callable[[ContentWriter], None]) -> None: ...

    def on_done(self, callback: Callable[[], None]) -> None: ...

    def done(self) -> Future[None]: ...


class StreamContentWriter:
    """Write report text to an open text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def write(self, text: str) -> None:
        self._stream.write(text)

    def println(self, line: str) -> None:
        self._stream.write(f"{line}\n")


class StringContentWriter(StreamContentWriter):
    """Collect report text in memory."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()
        super().__init__(self._buffer)

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class FileWriter:
    """Write files to disk and signal completion once."""

    def __init__(self, *, sync: bool = True) -> None:
        self.sync = sync
        self._listeners: list[Callable[[], None]] = []
        self._pending: list[Future[None]] = []
        self._executor: ThreadPoolExecutor | None = None
        self._done: Future[None] | None = None

    def on_done(self, callback: Callable[[], None]) -> None:
        """Register a listener called once every file has been written."""
        self._listeners.append(callback)

    def write_file(self, path: Path, callback: Callable[[ContentWriter], None]) -> None:
        """Open *path* for writing and pass a ``ContentWriter`` to *callback*.

        Raises:
            ReportWriteError: In sync mode, if the file cannot be written.
            RuntimeError: If ``done()`` was already called.
        """
        if self._done is not None:
            msg = "FileWriter.done() was already called"
            raise RuntimeError(msg)

        if self.sync:
            _write(path, callback)
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sonarcov-writer")
        self._pending.append(self._executor.submit(_write, path, callback))

    def done(self) -> Future[None]:
        """Signal that no more files follow.

        Returns a future resolved after every file is flushed and closed and
        the listeners have run. A failed write is set on the future instead,
        and the listeners do not run. Repeated calls return the same future.
        In sync mode a listener error is raised here and also set on the future.
        """
        if self._done is not None:
            return self._done

        if self._executor is None:
            finished: Future[None] = Future()
            self._done = finished
            try:
                self._finish()
            except Exception as e:
                finished.set_exception(e)
                raise
            finished.set_result(None)
            return finished

        self._done = self._executor.submit(self._finish)
        self._executor.shutdown(wait=False)
        return self._done

    def _finish(self) -> None:
        for future in self._pending:
            future.result()
        for listener in self._listeners:
            listener()


def _write(path: Path, callback: Callable[[ContentWriter], None]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="\n") as stream:
            callback(StreamContentWriter(stream))
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise ReportWriteError(msg) from e
    logger.debug("Wrote %s", path)
