import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TransferProgress:
    """一次传输的计数器，只由传输引擎修改"""
    total_rows: int
    rows_copied: int = 0
    batches_attempted: int = 0
    batches_failed: int = 0
    pages_fetched: int = 0
    cancelled: bool = False
    start_time: float = field(default_factory=time.monotonic)
    last_progress_emit_time: float = 0.0

    def __post_init__(self):
        if not self.last_progress_emit_time:
            self.last_progress_emit_time = self.start_time

    def elapsed(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.monotonic()) - self.start_time

    def percent(self) -> float:
        if self.total_rows <= 0:
            return 100.0
        return self.rows_copied / self.total_rows * 100

    def throughput(self, now: Optional[float] = None) -> float:
        """行/秒"""
        elapsed = self.elapsed(now)
        if elapsed <= 0:
            return 0.0
        return self.rows_copied / elapsed

    def eta_seconds(self, now: Optional[float] = None) -> float:
        speed = self.throughput(now)
        if speed <= 0:
            return 0.0
        return max(self.total_rows - self.rows_copied, 0) / speed

    @property
    def batches_succeeded(self) -> int:
        return self.batches_attempted - self.batches_failed
