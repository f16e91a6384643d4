"""Progress sinks for indexing runs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn


@runtime_checkable
class ProgressReporter(Protocol):
    """Fire-and-forget progress notifications."""

    def open(self, total: int) -> None: ...

    def increment(self, count: int = 1) -> None: ...

    def close(self) -> None: ...


class NullProgress:
    """Discard all progress notifications."""

    def open(self, total: int) -> None:
        pass

    def increment(self, count: int = 1) -> None:
        pass

    def close(self) -> None:
        pass


class RichProgress:
    """Render indexing progress as a rich progress bar on stderr."""

    def __init__(self, description: str = "Indexing", console: Console | None = None) -> None:
        self._description = description
        self._console = console or Console(stderr=True)
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    def open(self, total: int) -> None:
        self.close()
        self._progress = Progress(
            TextColumn("{task.description}:"),
            BarColumn(bar_width=30, style="cyan", complete_style="cyan"),
            TaskProgressColumn(),
            TextColumn("{task.completed}/{task.total} classes"),
            console=self._console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=total)

    def increment(self, count: int = 1) -> None:
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task, count)

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None
