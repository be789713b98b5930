"""Workflow control and reporting models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.models.merge import ConflictReport, MergePlan, MergeResult
from git_branch_shepherd.models.push import PushResult


class WorkflowSignal(Enum):
    """What the caller of a loop-driving operation should do next."""
    CONTINUE = "continue"
    CANCEL = "cancel"
    ERROR = "error"


@dataclass
class IterationReport:
    """Everything one session-cleanup iteration did."""
    signal: WorkflowSignal
    branch: Optional[str] = None
    plan: Optional[MergePlan] = None
    conflicts: Optional[ConflictReport] = None
    merge: Optional[MergeResult] = None
    push: Optional[PushResult] = None
    deletions: List[DeletionVerdict] = field(default_factory=list)
    pruned: bool = False
    note: str = ""


@dataclass
class MergedPullRequest:
    head_ref: str
    number: int
    merged_at: str
    title: str


@dataclass
class BulkCleanupReport:
    """Outcome of deleting head branches of already merged pull requests."""
    pattern: str
    merged_pr_count: int = 0
    already_deleted: int = 0
    candidates: List[MergedPullRequest] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False

    @property
    def is_clean(self) -> bool:
        """No merged PR still has a head branch on the host."""
        return not self.candidates
