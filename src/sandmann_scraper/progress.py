from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol


class ProgressReporter(Protocol):
    """Minimal interface for progress callbacks."""

    def update(self, advance: int) -> None: ...


ProgressFactory = Callable[[Optional[int], str], ContextManager[ProgressReporter]]


class _NoopProgress:
    def update(self, advance: int) -> None:  # pragma: no cover - trivial
        return None


@contextmanager
def _noop_progress(total: Optional[int], description: str) -> Iterator[ProgressReporter]:
    yield _NoopProgress()


_progress_factory: Optional[ProgressFactory] = None


def set_progress_factory(factory: Optional[ProgressFactory]) -> None:
    """Register a global factory for transfer progress reporters."""

    global _progress_factory
    _progress_factory = factory or _noop_progress


@contextmanager
def progress_context(total: Optional[int], description: str) -> Iterator[ProgressReporter]:
    """Return a context manager yielding the active progress reporter."""

    factory = _progress_factory or _noop_progress
    with factory(total, description) as reporter:
        yield reporter


class ProgressReader:
    """File-like wrapper reporting bytes read to a progress reporter.

    Used for uploads, where the storage client pulls from the stream instead
    of the pipeline pushing chunks.
    """

    def __init__(self, raw, reporter: ProgressReporter) -> None:
        self._raw = raw
        self._reporter = reporter
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            self._reporter.update(len(chunk))
        return chunk


__all__ = [
    "ProgressReporter",
    "ProgressFactory",
    "ProgressReader",
    "progress_context",
    "set_progress_factory",
]
