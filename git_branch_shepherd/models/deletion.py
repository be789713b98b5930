"""Deletion verdict model."""

from dataclasses import dataclass, field
from typing import List

from git_branch_shepherd.models.branch import BranchLocation


@dataclass
class DeletionVerdict:
    """Result of DeletionGuard.verify_and_delete.

    A deletion happened only if ``verified_merged`` or ``forced`` is True.
    """
    branch: str
    target_ref: str
    location: BranchLocation
    verified_merged: bool = False
    forced: bool = False
    deleted: bool = False
    present: bool = True
    dry_run: bool = False
    message: str = ""
    recovery_steps: List[str] = field(default_factory=list)
    parts: List["DeletionVerdict"] = field(default_factory=list)  # per-location, for BOTH

    @property
    def refused(self) -> bool:
        """Branch exists, could not be verified and was not forced."""
        return self.present and not self.verified_merged and not self.forced and not self.deleted
