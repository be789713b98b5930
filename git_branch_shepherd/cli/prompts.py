"""Interactive prompts backed by rich.prompt."""

from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from git_branch_shepherd.core.prompts import WorkflowPrompter
from git_branch_shepherd.models.branch import Branch


class RichPrompter(WorkflowPrompter):
    """Asks on the terminal. Branches are picked by table number or by name."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def select_branch(self, branches: List[Branch], prompt: str) -> Optional[str]:
        if not branches:
            return None
        names = [branch.name for branch in branches]
        while True:
            answer = Prompt.ask(
                f"{prompt} (number or name, empty to cancel)",
                console=self.console,
                default="",
                show_default=False,
            ).strip()
            if not answer:
                return None
            if answer.isdigit():
                index = int(answer)
                if 1 <= index <= len(names):
                    return names[index - 1]
            elif answer in names:
                return answer
            self.console.print(f"[red]Invalid selection: {answer}[/red]")

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, console=self.console, default=default)

    def confirm_risky(self, message: str) -> bool:
        return Confirm.ask(f"[yellow]{message}[/yellow]", console=self.console, default=False)
