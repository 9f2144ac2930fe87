from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from tablecopy.errors import VerificationMismatch


class CopyOutcome(Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"


@dataclass
class VerificationResult:
    table_name: str
    source_count: int
    target_count: int
    sample_rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.source_count == self.target_count

    @property
    def mismatch(self) -> Optional[VerificationMismatch]:
        if self.matched:
            return None
        return VerificationMismatch(self.table_name, self.source_count, self.target_count)


@dataclass
class CopyReport:
    """单表复制的最终报告"""
    table_name: str
    outcome: CopyOutcome = CopyOutcome.FAILURE
    total_rows: int = 0
    rows_copied: int = 0
    batches_attempted: int = 0
    batches_failed: int = 0
    cancelled: bool = False
    phase_durations: Dict[str, float] = field(default_factory=dict)
    total_duration: float = 0.0
    verification: Optional[VerificationResult] = None
    failed_phase: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is CopyOutcome.SUCCESS

    @property
    def rows_missing(self) -> int:
        return max(self.total_rows - self.rows_copied, 0)

    @property
    def average_speed(self) -> float:
        """整体平均速率(行/秒)"""
        if self.total_duration <= 0:
            return 0.0
        return self.rows_copied / self.total_duration

    def classify(self) -> CopyOutcome:
        """
        致命错误且目标表中没有任何已提交的行为 FAILURE；
        致命错误发生在部分批次提交之后为 PARTIAL_SUCCESS，failed_phase 仍保留
        """
        if self.failed_phase is not None:
            return CopyOutcome.PARTIAL_SUCCESS if self.rows_copied > 0 else CopyOutcome.FAILURE
        matched = self.verification is not None and self.verification.matched
        if self.rows_copied == self.total_rows and matched and not self.cancelled:
            return CopyOutcome.SUCCESS
        return CopyOutcome.PARTIAL_SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        verification = None
        if self.verification is not None:
            verification = {
                "source_count": self.verification.source_count,
                "target_count": self.verification.target_count,
                "matched": self.verification.matched,
            }
        return {
            "table": self.table_name,
            "outcome": self.outcome.value,
            "success": self.success,
            "total_rows": self.total_rows,
            "rows_copied": self.rows_copied,
            "rows_missing": self.rows_missing,
            "batches_attempted": self.batches_attempted,
            "batches_failed": self.batches_failed,
            "cancelled": self.cancelled,
            "phase_durations": {name: round(seconds, 3) for name, seconds in self.phase_durations.items()},
            "total_duration": round(self.total_duration, 3),
            "average_speed": round(self.average_speed, 2),
            "verification": verification,
            "failed_phase": self.failed_phase,
            "error": self.error,
        }
