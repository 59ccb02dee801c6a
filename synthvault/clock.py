"""Wall-clock time source."""
import time


class SystemClock:
    """Clock backed by the host's wall clock."""

    def now(self) -> int:
        return int(time.time())
