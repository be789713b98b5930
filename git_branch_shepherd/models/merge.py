"""Merge planning, probing and execution models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple


class ChangeKind(Enum):
    """Kind of change for a file in a merge preview."""
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status: str) -> "ChangeKind":
        """Map a ``git diff --name-status`` letter (R100, M, ...) to a kind."""
        if not status:
            return cls.UNKNOWN
        letter = status[0].upper()
        return {
            "A": cls.ADDED,
            "D": cls.DELETED,
            "M": cls.MODIFIED,
            "R": cls.RENAMED,
        }.get(letter, cls.UNKNOWN)


@dataclass
class FileChange:
    """One path touched by the prospective merge."""
    path: str
    kind: ChangeKind
    previous_path: Optional[str] = None  # set for renames


@dataclass
class MergePlan:
    """Preview of merging ``source`` into ``target``."""
    source: str
    target: str
    source_ref: str
    ahead_count: int = 0
    behind_count: int = 0
    changed_files: List[FileChange] = field(default_factory=list)
    commits: List[str] = field(default_factory=list)  # oneline subjects, newest first

    @property
    def is_noop(self) -> bool:
        """Nothing to merge: no commit on source is missing from target."""
        return self.ahead_count == 0

    def preview(self, limit: int) -> Tuple[List[FileChange], int]:
        """First ``limit`` files and how many were left out.

        Display only; ``changed_files`` always holds the complete list.
        """
        shown = self.changed_files[:limit]
        return shown, len(self.changed_files) - len(shown)


@dataclass
class ConflictReport:
    """Outcome of a speculative merge that was rolled back."""
    source: str
    target: str
    has_conflicts: bool = False
    conflicting_paths: Set[str] = field(default_factory=set)


class MergeStrategy(Enum):
    MERGE = "merge"    # --no-ff, preserves branch history
    REBASE = "rebase"  # linear history


class MergeOutcome(Enum):
    SUCCESS = "success"
    CONFLICT_LEFT = "conflict-left"  # repository intentionally left mid-operation
    ABORTED = "aborted"
    DRY_RUN = "dry-run"


class MergeState(Enum):
    """Progress of a single MergeExecutor.execute call."""
    IDLE = "idle"
    CHECKED_OUT = "checked-out"
    PULLED = "pulled"
    MERGING = "merging"
    SUCCEEDED = "succeeded"
    CONFLICT_LEFT = "conflict-left"


@dataclass
class MergeResult:
    source: str
    target: str
    strategy: MergeStrategy
    outcome: MergeOutcome
    conflicting_paths: List[str] = field(default_factory=list)
    recovery_steps: List[str] = field(default_factory=list)
    planned_commands: List[str] = field(default_factory=list)
    stash_label: Optional[str] = None
    head: Optional[str] = None  # short sha of target after a successful merge
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome == MergeOutcome.SUCCESS
