"""Rate-limited progress messages.

Export and import report progress once per record; ``ThrottledReporter``
forwards at most one of those messages per interval and drops the rest.

Usage:
    from table_backup.backup.progress import ThrottledReporter

    progress = ThrottledReporter(interval=1.0)
    for i, row in enumerate(rows):
        progress.report(f"orders: {i} rows")
"""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ThrottledReporter:
    """Forward progress messages to ``sink`` at most once per ``interval`` seconds.

    Args:
        interval: Minimum seconds between two forwarded messages.
        sink: Receives forwarded messages.  Defaults to ``logger.info``.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        interval: float = 1.0,
        sink: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self.sink = sink or logger.info
        self.clock = clock
        self._last: float | None = None

    def report(self, message: str) -> bool:
        """Forward ``message`` unless one was forwarded within the interval.

        Returns:
            True when the message was forwarded.
        """
        now = self.clock()
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        self.sink(message)
        return True

    def flush(self, message: str) -> None:
        """Forward ``message`` unconditionally (final totals)."""
        self._last = self.clock()
        self.sink(message)
