"""Display and formatting service for branch lifecycle results"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_branch_shepherd.constants import (
    CHANGE_COLORS,
    CHANGE_SYMBOLS,
    SYMBOL_BRANCH,
    SYMBOL_EPHEMERAL,
)
from git_branch_shepherd.models.branch import Branch, BranchListing
from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.models.merge import (
    ChangeKind,
    ConflictReport,
    FileChange,
    MergeOutcome,
    MergePlan,
    MergeResult,
)
from git_branch_shepherd.models.push import PushClassification, PushResult
from git_branch_shepherd.models.workflow import BulkCleanupReport


def format_file_change(change: FileChange) -> str:
    """One rich-markup line for a changed file."""
    kind = change.kind.value
    symbol = CHANGE_SYMBOLS[kind]
    color = CHANGE_COLORS[kind]
    if change.kind == ChangeKind.RENAMED and change.previous_path:
        return f"[{color}]{symbol}[/{color}] {escape(change.previous_path)} → {escape(change.path)}"
    return f"[{color}]{symbol}[/{color}] {escape(change.path)}"


class DisplayService:
    """Renders engine results for the console front end."""

    def __init__(self, console: Optional[Console] = None, files_page_size: int = 20):
        self.console = console or Console()
        self.files_page_size = files_page_size

    def header(self, title: str) -> None:
        self.console.rule(f"[bold]{title}[/bold]")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗ {escape(message)}[/red]")

    def steps(self, title: str, steps: List[str]) -> None:
        if not steps:
            return
        self.console.print(f"[bold]{title}[/bold]")
        for step in steps:
            self.console.print(f"  {escape(step)}")

    def branch_table(self, title: str, branches: List[Branch], start: int = 1) -> int:
        """Numbered table of branches. Returns the next free index."""
        table = Table(title=title, title_justify="left")
        table.add_column("#", justify="right", no_wrap=True)
        table.add_column("Branch", no_wrap=True)
        table.add_column("Where", no_wrap=True)
        table.add_column("Last Commit")
        for offset, branch in enumerate(branches):
            symbol = SYMBOL_EPHEMERAL if branch.is_ephemeral else SYMBOL_BRANCH
            color = "cyan" if branch.is_ephemeral else "blue"
            table.add_row(
                str(start + offset),
                f"[{color}]{symbol} {escape(branch.name)}[/{color}]",
                branch.location.value,
                escape(branch.last_commit_summary),
            )
        self.console.print(table)
        return start + len(branches)

    def branch_listing(self, listing: BranchListing) -> None:
        """Session branches first, then everything else, numbered continuously."""
        if not len(listing):
            self.warn(f"No branches besides {listing.target}")
            return
        next_index = 1
        if listing.ephemeral:
            next_index = self.branch_table("Session Branches", listing.ephemeral, next_index)
        if listing.others:
            self.branch_table("Other Branches", listing.others, next_index)

    def plan(self, plan: MergePlan) -> None:
        self.header(f"Branch Comparison: {plan.source} → {plan.target}")
        self.console.print(
            f"  Ahead:  [green]{plan.ahead_count} commit(s)[/green] (will be merged)\n"
            f"  Behind: [yellow]{plan.behind_count} commit(s)[/yellow] (target has new commits)"
        )
        if plan.commits:
            self.console.print(f"\n[bold]Commits to be merged (top {len(plan.commits)}):[/bold]")
            for line in plan.commits:
                self.console.print(f"  {escape(line)}")

        if plan.ahead_count:
            shown, remaining = plan.preview(self.files_page_size)
            self.console.print(
                f"\n[bold]Files changed ({len(plan.changed_files)} total):[/bold]"
            )
            if not shown:
                self.console.print("  (no files changed)")
            for change in shown:
                self.console.print(f"  {format_file_change(change)}")
            if remaining:
                self.console.print(f"  [dim]... and {remaining} more file(s)[/dim]")

        if plan.behind_count:
            self.warn(
                f"Target branch has {plan.behind_count} new commit(s) - "
                "will need to rebase or merge"
            )
        if plan.is_noop:
            self.info(f"{plan.source} has no commits missing from {plan.target}")

    def conflicts(self, report: ConflictReport) -> None:
        if not report.has_conflicts:
            self.success("No merge conflicts detected")
            return
        self.warn("Potential merge conflicts detected!")
        self.console.print("Conflicting files:")
        for path in sorted(report.conflicting_paths):
            self.console.print(f"  - {escape(path)}")

    def merge_result(self, result: MergeResult) -> None:
        if result.outcome == MergeOutcome.DRY_RUN:
            self.warn("DRY RUN MODE - No actual changes will be made")
            self.steps("Would execute:", [f"  {cmd}" for cmd in result.planned_commands])
        elif result.outcome == MergeOutcome.SUCCESS:
            head = f" ({result.target} at {result.head})" if result.head else ""
            self.success(f"{result.message}{head}")
        elif result.outcome == MergeOutcome.CONFLICT_LEFT:
            self.error(result.message)
            if result.conflicting_paths:
                self.console.print("Conflicting files:")
                for path in result.conflicting_paths:
                    self.console.print(f"  - {escape(path)}")
            self.steps("To resolve conflicts:", result.recovery_steps)
        else:
            self.warn(result.message or "Merge aborted")
        if result.stash_label and result.outcome != MergeOutcome.CONFLICT_LEFT:
            self.info(f"Your changes are stashed as '{result.stash_label}' (git stash pop)")

    def push_result(self, result: PushResult) -> None:
        if result.dry_run:
            self.warn(result.message)
        elif result.success:
            self.success(f"{result.message} (attempt {result.attempt_count})")
        elif result.classification == PushClassification.PERMISSION_DENIED:
            self.error(result.message)
            self.steps("Next steps:", result.guidance)
        else:
            self.error(result.message)
            self.steps("Next steps:", result.guidance)

    def deletion(self, verdict: DeletionVerdict) -> None:
        for part in verdict.parts or [verdict]:
            if not part.present:
                self.console.print(f"[dim]{escape(part.message)}[/dim]")
            elif part.deleted and part.forced:
                self.warn(part.message)
            elif part.deleted:
                self.success(part.message)
            elif part.dry_run:
                self.warn(part.message)
            elif part.verified_merged:
                self.info(part.message)
            else:
                self.warn(f"Not deleted: {part.message}")
                self.steps("To proceed:", part.recovery_steps)

    def bulk_candidates(self, report: BulkCleanupReport) -> None:
        """Merged PR branches that still exist, or the all-clean message."""
        pattern = report.pattern or "all branches"
        if report.is_clean:
            self.success(f"No merged branches ({pattern}) left to clean up")
            if report.already_deleted:
                self.info(
                    f"Found {report.already_deleted} merged PR(s); "
                    "all branches are already deleted"
                )
            return

        table = Table(title=f"Merged branches ({pattern}) still on GitHub", title_justify="left")
        table.add_column("Branch")
        table.add_column("PR#", justify="right")
        table.add_column("Merged")
        table.add_column("Title")
        for pr in report.candidates:
            table.add_row(escape(pr.head_ref), f"#{pr.number}", pr.merged_at or "", escape(pr.title[:40]))
        self.console.print(table)
        self.console.print(f"[yellow]Total: {len(report.candidates)} branch(es) to delete[/yellow]")
        if report.already_deleted:
            self.console.print(f"[dim]({report.already_deleted} already deleted)[/dim]")

    def bulk_outcome(self, report: BulkCleanupReport) -> None:
        if report.is_clean:
            return
        if report.cancelled:
            self.warn("Cleanup cancelled")
        elif report.dry_run:
            self.warn(f"Dry run: would delete {len(report.candidates)} branch(es)")
        elif report.failed:
            self.warn(f"Deleted: {len(report.deleted)}, Failed: {len(report.failed)}")
        else:
            self.success(f"All {len(report.deleted)} branch(es) deleted successfully!")
