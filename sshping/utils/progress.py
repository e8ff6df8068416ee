"""Live progress line on stderr.

Rendering is decoupled from the measurement: callers record a position after
each timed operation, and the bar is redrawn at most ``max_fps`` times per
second.
"""

import time
from collections.abc import Callable
from types import TracebackType

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn


class ProgressReporter:
    """Throttled wrapper around a single-task rich Progress."""

    def __init__(
        self,
        description: str,
        total: int,
        enabled: bool = True,
        max_fps: float = 60.0,
        console: Console | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize reporter.

        Args:
            description: Label shown before the bar
            total: Value that means "done"
            enabled: When False nothing is drawn
            max_fps: Upper bound on redraws per second
            console: Console to draw on (stderr by default)
            clock: Monotonic time source
        """
        self.total = total
        self.enabled = enabled
        self._interval = 1.0 / max_fps
        self._clock = clock
        self._last_refresh = float("-inf")
        self.refreshes = 0
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TextColumn("{task.fields[status]}"),
            console=console or Console(stderr=True),
            auto_refresh=False,
            transient=True,
            disable=not enabled,
        )
        self._task: TaskID = self._progress.add_task(description, total=total, status="")

    def __enter__(self) -> "ProgressReporter":
        if self.enabled:
            self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.enabled:
            self._progress.stop()

    def update(self, completed: int, status: str = "") -> None:
        """Record the current position; redraw only if the frame interval has passed."""
        if not self.enabled:
            return
        self._progress.update(self._task, completed=completed, status=status)
        now = self._clock()
        if now - self._last_refresh >= self._interval:
            self._last_refresh = now
            self.refreshes += 1
            self._progress.refresh()
