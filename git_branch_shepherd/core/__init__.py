"""Engine and workflows that compose the git services."""

from .engine import BranchEngine
from .prompts import AutoConfirmPrompter, WorkflowPrompter

__all__ = ["BranchEngine", "WorkflowPrompter", "AutoConfirmPrompter"]
