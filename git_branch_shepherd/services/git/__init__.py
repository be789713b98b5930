"""Git-related services for git-branch-shepherd."""

from .repository import RepoService
from .branch_catalog import BranchCatalog
from .merge_planner import MergePlanner
from .conflict_probe import ConflictProbe
from .merge_executor import MergeExecutor
from .push_retrier import PushRetrier
from .deletion_guard import DeletionGuard

__all__ = [
    "RepoService",
    "BranchCatalog",
    "MergePlanner",
    "ConflictProbe",
    "MergeExecutor",
    "PushRetrier",
    "DeletionGuard",
]
