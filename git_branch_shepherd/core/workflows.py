"""Single-branch merge and update-from-target workflows."""

from typing import List, Optional

from git_branch_shepherd.core.engine import BranchEngine
from git_branch_shepherd.core.prompts import WorkflowPrompter
from git_branch_shepherd.models.merge import MergeOutcome, MergeStrategy
from git_branch_shepherd.models.workflow import WorkflowSignal
from git_branch_shepherd.services.display_service import DisplayService
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class MergeWorkflow:
    """Plan, confirm, probe, merge (or rebase) and push one branch. Never deletes."""

    def __init__(self, engine: BranchEngine, prompter: WorkflowPrompter,
                 display: Optional[DisplayService] = None):
        self.engine = engine
        self.prompter = prompter
        self.display = display or DisplayService(
            files_page_size=engine.config.files_page_size
        )

    def run(self, source: str, strategy: MergeStrategy = MergeStrategy.MERGE) -> WorkflowSignal:
        config = self.engine.config
        target = self.engine.target
        source = self.engine.repo_service.strip_remote_prefix(source)

        plan = self.engine.plan(source, refresh=True)
        self.display.plan(plan)
        if plan.is_noop:
            self.display.info("Nothing to merge")
            return WorkflowSignal.CANCEL

        verb = "Rebase" if strategy == MergeStrategy.REBASE else "Merge"
        if not self.prompter.confirm(f"{verb} '{source}' into '{target}'?"):
            self.display.warn("Merge cancelled")
            return WorkflowSignal.CANCEL

        conflicts = self.engine.probe(source)
        self.display.conflicts(conflicts)
        if conflicts.has_conflicts and not self.prompter.confirm_risky("Continue with merge anyway?"):
            self.display.error("Merge aborted by user")
            return WorkflowSignal.CANCEL

        result = self.engine.execute(source, strategy)
        self.display.merge_result(result)
        if result.outcome == MergeOutcome.DRY_RUN:
            return WorkflowSignal.CONTINUE
        if not result.succeeded:
            return WorkflowSignal.ERROR

        if not config.auto_push:
            self.display.warn(
                f"AUTO_PUSH disabled - to push manually: git push {config.remote_name} {target}"
            )
            return WorkflowSignal.CONTINUE

        push = self.engine.push(target)
        self.display.push_result(push)
        if not push.success:
            logger.warning(f"Merged {source} into {target} locally but the push failed")
            return WorkflowSignal.ERROR
        return WorkflowSignal.CONTINUE


class UpdateWorkflow:
    """Bring feature branches up to date with the target. The target is never changed.

    After each successful update the user is offered a push of the updated
    branch, then the originally checked-out branch is restored. A conflict
    leaves the repository on the conflicted branch and stops.
    """

    def __init__(self, engine: BranchEngine, prompter: WorkflowPrompter,
                 display: Optional[DisplayService] = None):
        self.engine = engine
        self.prompter = prompter
        self.display = display or DisplayService(
            files_page_size=engine.config.files_page_size
        )
        self.failed_pushes: List[str] = []

    def _update(self, branch: str, strategy: MergeStrategy) -> WorkflowSignal:
        remote = self.engine.config.remote_name
        starting_branch = self.engine.current_branch()

        result = self.engine.update(branch, strategy)
        self.display.merge_result(result)
        if result.outcome == MergeOutcome.DRY_RUN:
            return WorkflowSignal.CONTINUE
        if not result.succeeded:
            return WorkflowSignal.ERROR

        if self.prompter.confirm(f"Push updated {branch} to {remote}?", default=True):
            push = self.engine.push(branch)
            self.display.push_result(push)
            if not push.success:
                logger.warning(f"Updated {branch} locally but the push failed")
                self.failed_pushes.append(branch)
        else:
            self.display.warn(f"Skipped push. Run: git push {remote} {branch}")

        self.engine.return_to(starting_branch)
        return WorkflowSignal.CONTINUE

    def run(self, branch: str, strategy: MergeStrategy = MergeStrategy.MERGE) -> WorkflowSignal:
        """Update one branch from the target."""
        branch = self.engine.repo_service.strip_remote_prefix(branch)
        self.failed_pushes = []
        self.engine.fetch()
        signal = self._update(branch, strategy)
        if signal == WorkflowSignal.CONTINUE and self.failed_pushes:
            return WorkflowSignal.ERROR
        return signal

    def run_all(self, strategy: MergeStrategy = MergeStrategy.MERGE) -> WorkflowSignal:
        """Update every local branch except the target, stopping at the first conflict.

        A failed push is reported but does not stop the remaining updates.
        """
        target = self.engine.target
        self.failed_pushes = []
        self.engine.ensure_clean("bulk update")
        self.engine.fetch()

        branches = self.engine.list_local_branches()
        if not branches:
            self.display.warn("No local branches to update")
            return WorkflowSignal.CANCEL

        self.display.steps(f"Bulk updating local branches from {target}:",
                           [f"- {branch}" for branch in branches])
        if not self.prompter.confirm(
            f"Proceed to update ALL listed branches from {target}?", default=True
        ):
            self.display.warn("Bulk update cancelled")
            return WorkflowSignal.CANCEL

        for branch in branches:
            self.display.info(f"Updating {branch} from {target}...")
            if self._update(branch, strategy) == WorkflowSignal.ERROR:
                self.display.error(f"Stopped on {branch} due to errors")
                return WorkflowSignal.ERROR

        if self.failed_pushes:
            self.display.warn(f"Push failed for: {', '.join(self.failed_pushes)}")
            return WorkflowSignal.ERROR
        self.display.success("Bulk update complete")
        return WorkflowSignal.CONTINUE
