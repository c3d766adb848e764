"""Wall-clock timestamps in epoch milliseconds."""
from __future__ import annotations

import time


def epoch_millis() -> int:
    """Return the current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


__all__ = ["epoch_millis"]
