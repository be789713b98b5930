"""Push attempt models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class PushClassification(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    PERMISSION_DENIED = "permission-denied"  # never retried
    TERMINAL = "terminal"


@dataclass
class PushAttempt:
    attempt_number: int  # 1-based
    delay_before_ms: int
    classification: PushClassification
    error: Optional[str] = None


@dataclass
class PushResult:
    branch: str
    success: bool
    classification: PushClassification
    attempts: List[PushAttempt] = field(default_factory=list)
    guidance: List[str] = field(default_factory=list)
    dry_run: bool = False
    message: str = ""

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def total_backoff_ms(self) -> int:
        return sum(attempt.delay_before_ms for attempt in self.attempts)
