"""Branch model and related enums"""
from enum import Enum
from dataclasses import dataclass, field
from typing import List

class BranchLocation(Enum):
    """Where a branch exists."""
    LOCAL = "local"
    REMOTE = "remote"
    BOTH = "both"

    @property
    def has_local(self) -> bool:
        return self in (BranchLocation.LOCAL, BranchLocation.BOTH)

    @property
    def has_remote(self) -> bool:
        return self in (BranchLocation.REMOTE, BranchLocation.BOTH)

@dataclass
class Branch:
    """A branch as seen by a single catalog query. Never cached."""
    name: str  # no remote prefix
    location: BranchLocation
    is_ephemeral: bool  # display priority only, never used for safety decisions
    last_commit_summary: str = "N/A"

    def __str__(self) -> str:
        return f"{self.name} [{self.location.value}]"

@dataclass
class BranchListing:
    """Result of a catalog query, session branches grouped first."""
    target: str
    ephemeral: List[Branch] = field(default_factory=list)
    others: List[Branch] = field(default_factory=list)

    @property
    def all(self) -> List[Branch]:
        return self.ephemeral + self.others

    def names(self) -> List[str]:
        return [branch.name for branch in self.all]

    def find(self, name: str):
        """Return the branch called ``name`` or None."""
        return next((branch for branch in self.all if branch.name == name), None)

    def __len__(self) -> int:
        return len(self.ephemeral) + len(self.others)
