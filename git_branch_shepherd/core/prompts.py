"""Decision points the workflows delegate to a front end."""

from abc import ABC, abstractmethod
from typing import List, Optional

from git_branch_shepherd.models.branch import Branch


class WorkflowPrompter(ABC):
    """Answers the questions a workflow asks. Implementations must not touch git."""

    @abstractmethod
    def select_branch(self, branches: List[Branch], prompt: str) -> Optional[str]:
        """Return the chosen branch name, or None to cancel."""

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Yes/no question."""

    def confirm_risky(self, message: str) -> bool:
        """Yes/no question whose "yes" overrides a safety check (conflicts, force delete)."""
        return self.confirm(message, default=False)


class AutoConfirmPrompter(WorkflowPrompter):
    """Non-interactive prompter for scripted runs.

    Routine confirmations get ``answer``; risky ones are declined. Selection
    is ``selection`` once, or the first offered branch when ``pick_first``.
    """

    def __init__(self, selection: Optional[str] = None, answer: bool = True,
                 pick_first: bool = False):
        self.selection = selection
        self.answer = answer
        self.pick_first = pick_first

    def select_branch(self, branches: List[Branch], prompt: str) -> Optional[str]:
        if self.selection is not None:
            selection, self.selection = self.selection, None
            return selection
        if self.pick_first and branches:
            return branches[0].name
        return None

    def confirm(self, message: str, default: bool = False) -> bool:
        return self.answer

    def confirm_risky(self, message: str) -> bool:
        return False
