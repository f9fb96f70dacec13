"""
Result values and session statistics for a range transfer.
"""

import asyncio
import time
from dataclasses import dataclass, field

from .index import ByteRange


@dataclass(frozen=True)
class RangeResult:
    """Outcome of fetching one range. ``error`` is None on success."""

    byte_range: ByteRange
    bytes_written: int = 0
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def describe_error(self) -> str:
        if self.error is None:
            return ""
        message = str(self.error)
        name = type(self.error).__name__
        return f"{name}: {message}" if message else name


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a completed transfer."""

    destination: str
    file_size: int
    results: tuple[RangeResult, ...]

    @property
    def bytes_written(self) -> int:
        return sum(r.bytes_written for r in self.results)


@dataclass
class TransferStats:
    """Tracks statistics for a transfer session, including real-time speed."""

    ranges_total: int = 0
    ranges_completed: int = 0
    ranges_failed: int = 0
    bytes_planned: int = 0
    bytes_received: int = 0
    bytes_written: int = 0

    current_speed_bps: float = 0.0
    peak_speed_bps: float = 0.0
    _speed_samples: list[float] = field(default_factory=list, repr=False)
    _last_progress_time: float = field(default=0.0, repr=False)
    _last_progress_bytes: int = field(default=0, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        self._last_progress_time = time.monotonic()

    async def add_received(self, count: int) -> None:
        """Adds freshly received bytes and refreshes the speed estimate."""
        async with self._lock:
            self.bytes_received += count
            now = time.monotonic()
            elapsed = now - self._last_progress_time

            # Update speed roughly twice per second
            if elapsed > 0.5:
                bytes_diff = self.bytes_received - self._last_progress_bytes
                if bytes_diff > 0:
                    self._speed_samples.append(bytes_diff / elapsed)
                    # Keep a sliding window of the last 10 speed samples
                    if len(self._speed_samples) > 10:
                        self._speed_samples.pop(0)
                    self.current_speed_bps = sum(self._speed_samples) / len(
                        self._speed_samples
                    )
                    self.peak_speed_bps = max(
                        self.peak_speed_bps, self.current_speed_bps
                    )
                self._last_progress_time = now
                self._last_progress_bytes = self.bytes_received

    def record(self, result: RangeResult) -> None:
        if result.ok:
            self.ranges_completed += 1
            self.bytes_written += result.bytes_written
        else:
            self.ranges_failed += 1
