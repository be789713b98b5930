"""Session merge & cleanup loop for ephemeral branches."""

from typing import List, Optional

from git_branch_shepherd.core.engine import BranchEngine
from git_branch_shepherd.core.prompts import WorkflowPrompter
from git_branch_shepherd.models.branch import BranchLocation
from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.models.merge import MergeOutcome, MergeStrategy
from git_branch_shepherd.models.workflow import IterationReport, WorkflowSignal
from git_branch_shepherd.services.display_service import DisplayService
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class SessionCleanupOrchestrator:
    """Select → plan → probe → merge → push → delete → prune, then offer to repeat.

    Deletion is only ever attempted for the branch merged in the same
    iteration. Steps run strictly one after another.
    """

    def __init__(self, engine: BranchEngine, prompter: WorkflowPrompter,
                 display: Optional[DisplayService] = None):
        self.engine = engine
        self.prompter = prompter
        self.display = display or DisplayService(
            files_page_size=engine.config.files_page_size
        )
        self.config = engine.config
        self._handled: List[str] = []

    @property
    def target(self) -> str:
        return self.engine.target

    def run_cleanup_loop(self) -> WorkflowSignal:
        """Run iterations until the user stops, nothing is left, or an iteration fails.

        Returns:
            CANCEL when the loop ended normally, ERROR when it stopped on a failure
        """
        self._handled = []
        while True:
            report = self.run_iteration()
            if report.signal != WorkflowSignal.CONTINUE:
                return report.signal

    def run_iteration(self) -> IterationReport:
        """One pass of the workflow. CONTINUE means the caller may loop again."""
        self.display.header("Session Merge & Cleanup Workflow")

        branches = [
            branch for branch in self.engine.catalog.list_ephemeral(self.target, fetch=True)
            if branch.name not in self._handled
        ]
        if not branches:
            if self._handled:
                self.display.success("All session branches have been merged and cleaned up!")
            else:
                self.display.info("No session branches found to merge and cleanup")
            return IterationReport(signal=WorkflowSignal.CANCEL, note="no session branches")

        self.display.branch_table("Available Session Branches", branches)
        selected = self.prompter.select_branch(
            branches, "Select branch to merge and cleanup"
        )
        if not selected:
            logger.info("Session cleanup cancelled by user")
            return IterationReport(signal=WorkflowSignal.CANCEL, note="cancelled")
        selected = self.engine.repo_service.strip_remote_prefix(selected)
        self._handled.append(selected)

        report = IterationReport(signal=WorkflowSignal.CONTINUE, branch=selected)

        report.plan = self.engine.plan(selected)
        self.display.plan(report.plan)
        if report.plan.is_noop:
            # Nothing to merge: pushing or deleting now would look like a sync that never happened
            self.display.warn(
                f"{selected} has no commits ahead of {self.target}; skipping merge, push and delete"
            )
            report.note = "nothing to merge"
            return self._offer_repeat(report)

        if not self.prompter.confirm(f"Proceed with merge and cleanup for '{selected}'?"):
            self.display.warn("Merge cancelled")
            report.note = "merge declined"
            return self._offer_repeat(report)

        report.conflicts = self.engine.probe(selected)
        self.display.conflicts(report.conflicts)
        if report.conflicts.has_conflicts and not self.prompter.confirm_risky(
            "Continue with merge anyway?"
        ):
            self.display.error("Merge aborted by user")
            report.note = "conflicts declined"
            return self._offer_repeat(report)

        report.merge = self.engine.execute(selected, MergeStrategy.MERGE)
        self.display.merge_result(report.merge)
        if report.merge.outcome == MergeOutcome.CONFLICT_LEFT:
            report.signal = WorkflowSignal.ERROR
            report.note = "conflicts left for manual resolution"
            return report
        if report.merge.outcome not in (MergeOutcome.SUCCESS, MergeOutcome.DRY_RUN):
            report.signal = WorkflowSignal.ERROR
            report.note = "merge did not complete"
            return report

        if self.config.auto_push:
            report.push = self.engine.push(self.target)
            self.display.push_result(report.push)
            if not report.push.success:
                self.display.warn("Merge completed locally but not pushed to remote")
        else:
            self.display.warn(
                f"AUTO_PUSH disabled - changes not pushed. "
                f"To push manually: git push {self.config.remote_name} {self.target}"
            )

        # The merge succeeded locally, so cleanup runs whatever the push outcome
        report.deletions = self._delete_merged(selected)

        report.pruned = self.engine.prune()
        if report.pruned:
            self.display.success("Local tracking refs cleaned up")

        self.display.success(f"Merge and cleanup complete for: {selected}")
        return self._offer_repeat(report)

    def _delete_merged(self, branch: str) -> List[DeletionVerdict]:
        verdicts = []
        for location in (BranchLocation.REMOTE, BranchLocation.LOCAL):
            verdict = self.engine.delete(branch, location)
            if verdict.refused and self.prompter.confirm_risky(
                f"Force delete {location.value} branch '{branch}' even though "
                "it is not verified as merged?"
            ):
                verdict = self.engine.delete(branch, location, forced=True)
            self.display.deletion(verdict)
            verdicts.append(verdict)
        return verdicts

    def _offer_repeat(self, report: IterationReport) -> IterationReport:
        if not self.prompter.confirm("Merge another branch?"):
            report.signal = WorkflowSignal.CANCEL
        return report
