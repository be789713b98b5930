"""Merge executor: checkout, pull, then merge or rebase."""

from datetime import datetime
from typing import List, Optional

import git

from git_branch_shepherd.constants import merge_recovery_steps, rebase_recovery_steps
from git_branch_shepherd.exceptions import (
    DirtyWorkingTreeError,
    GitOperationError,
    RefNotFoundError,
)
from git_branch_shepherd.models.merge import MergeOutcome, MergeResult, MergeState, MergeStrategy
from git_branch_shepherd.services.git.repository import RepoService, git_error_text
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class MergeExecutor(RepoService):
    """Performs the real merge or rebase of a source branch into the target.

    Conflicts are never resolved automatically: the repository is left in
    git's native conflict state and the result says how to continue.
    """

    def __init__(self, repo_path, config):
        super().__init__(repo_path, config)
        self.stash_before_merge = config.get("stash_before_merge", False)
        self.state = MergeState.IDLE

    def merge_message(self, source: str, target: str) -> str:
        return f"Merge branch '{source}' into {target}"

    def planned_commands(self, source_ref: str, source: str, target: str,
                         strategy: MergeStrategy) -> List[str]:
        commands = [
            f"git checkout {target}",
            f"git pull --no-rebase {self.remote_name} {target}",
        ]
        if strategy == MergeStrategy.REBASE:
            commands.append(f"git rebase {source_ref}")
        else:
            commands.append(
                f"git merge --no-ff {source_ref} -m \"{self.merge_message(source, target)}\""
            )
        return commands

    def _prepare_working_tree(self, repo: git.Repo, target: str) -> Optional[str]:
        """Stash uncommitted changes if allowed, otherwise refuse."""
        try:
            self.ensure_clean(repo, "merge")
            return None
        except DirtyWorkingTreeError:
            if not self.stash_before_merge:
                raise
        label = f"merge-{target}-{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}"
        repo.git.stash("push", "-m", label)
        logger.warning(f"Stashed uncommitted changes as '{label}' (restore with: git stash pop)")
        return label

    def _checkout_target(self, repo: git.Repo, target: str) -> None:
        if self.current_branch(repo) == target:
            return
        try:
            if self.has_local_branch(target):
                repo.git.checkout(target)
            else:
                logger.warning(
                    f"Local {target} not found; creating it from {self.remote_ref(target)}"
                )
                repo.git.checkout("-B", target, self.remote_ref(target))
        except git.exc.GitCommandError as e:
            raise GitOperationError(
                "checkout", target, git_error_text(e), [f"git checkout {target}"]
            )

    def _pull_target(self, repo: git.Repo, target: str) -> bool:
        """Pull the remote target. Failure is only a warning (local may be current)."""
        if not self.has_remote_branch(target):
            logger.debug(f"No {self.remote_ref(target)}; skipping pull")
            return False
        try:
            repo.git.pull("--no-rebase", self.remote_name, target, **self._network_kwargs())
            return True
        except git.exc.GitCommandError as e:
            logger.warning(
                f"Failed to pull latest {target} (may already be up-to-date): {git_error_text(e)}"
            )
            return False

    def _conflict_result(self, repo: git.Repo, source: str, target: str,
                         strategy: MergeStrategy, stash_label: Optional[str],
                         message: str, against: Optional[str] = None) -> MergeResult:
        self.state = MergeState.CONFLICT_LEFT
        if strategy == MergeStrategy.REBASE and self.rebase_in_progress(repo):
            steps = rebase_recovery_steps(against or target)
        else:
            steps = merge_recovery_steps(against or target)
        if stash_label:
            steps.append(f"Afterwards restore your stashed changes: git stash pop  ({stash_label})")
        conflicts = self.unmerged_paths(repo)
        logger.error(f"{message}; {len(conflicts)} conflicting file(s) left for manual resolution")
        return MergeResult(
            source=source,
            target=target,
            strategy=strategy,
            outcome=MergeOutcome.CONFLICT_LEFT,
            conflicting_paths=conflicts,
            recovery_steps=steps,
            stash_label=stash_label,
            message=message,
        )

    def execute(self, source: str, target: Optional[str] = None,
                strategy: MergeStrategy = MergeStrategy.MERGE) -> MergeResult:
        """Merge (or rebase) ``source`` into ``target``.

        Returns:
            MergeResult with SUCCESS, CONFLICT_LEFT or DRY_RUN

        Raises:
            DirtyWorkingTreeError: uncommitted changes and stashing is disabled
            RefNotFoundError: source vanished
            GitOperationError: checkout or merge failed without conflicts
        """
        target = target or self.target_branch
        source = self.strip_remote_prefix(source)
        self.state = MergeState.IDLE

        source_ref = self.resolve_branch_ref(source)

        if self.dry_run:
            commands = self.planned_commands(source_ref, source, target, strategy)
            logger.info(f"[dry-run] Would merge {source_ref} into {target}")
            return MergeResult(
                source=source,
                target=target,
                strategy=strategy,
                outcome=MergeOutcome.DRY_RUN,
                planned_commands=commands,
                message="Dry run: no changes made",
            )

        repo = self._get_repo()
        stash_label = self._prepare_working_tree(repo, target)

        logger.info(f"Switching to {target}...")
        self._checkout_target(repo, target)
        self.state = MergeState.CHECKED_OUT

        logger.info(f"Pulling latest changes from {self.remote_ref(target)}...")
        self._pull_target(repo, target)
        if self.merge_in_progress(repo):
            # The pull itself produced conflicts on the target
            return self._conflict_result(
                repo, source, target, MergeStrategy.MERGE, stash_label,
                f"Pulling {self.remote_ref(target)} into {target} produced conflicts",
            )
        self.state = MergeState.PULLED

        self.state = MergeState.MERGING
        try:
            if strategy == MergeStrategy.REBASE:
                logger.info(f"Rebasing {target} onto {source_ref}...")
                repo.git.rebase(source_ref)
            else:
                logger.info(f"Merging {source_ref} into {target}...")
                repo.git.merge("--no-ff", source_ref, "-m", self.merge_message(source, target))
        except git.exc.GitCommandError as e:
            if (self.unmerged_paths(repo) or self.merge_in_progress(repo)
                    or self.rebase_in_progress(repo)):
                return self._conflict_result(
                    repo, source, target, strategy, stash_label,
                    f"{strategy.value.capitalize()} of {source} into {target} failed",
                )
            raise GitOperationError(strategy.value, source, git_error_text(e))

        self.state = MergeState.SUCCEEDED
        head = repo.head.commit.hexsha[:7]
        logger.info(f"{strategy.value.capitalize()} successful ({target} at {head})")
        return MergeResult(
            source=source,
            target=target,
            strategy=strategy,
            outcome=MergeOutcome.SUCCESS,
            stash_label=stash_label,
            head=head,
            message=f"{strategy.value.capitalize()} successful",
        )

    def update_message(self, target: str, branch: str) -> str:
        return f"Merge {target} into {branch}"

    def update_from_target(self, branch: str, target: Optional[str] = None,
                           strategy: MergeStrategy = MergeStrategy.MERGE) -> MergeResult:
        """Bring ``branch`` up to date with the target (remote copy preferred).

        The opposite direction of ``execute``: the target is merged into, or
        the branch is rebased onto, the target. The target itself is never
        modified. ``branch`` is left checked out, mid-operation on conflicts.

        Returns:
            MergeResult (source is the target, target is ``branch``)

        Raises:
            DirtyWorkingTreeError: uncommitted tracked changes
            RefNotFoundError: branch or target does not exist
            GitOperationError: branch is the target, or git failed without conflicts
        """
        target = target or self.target_branch
        branch = self.strip_remote_prefix(branch)
        self.state = MergeState.IDLE

        if branch == target:
            raise GitOperationError(
                "update", branch, "the target branch cannot be updated from itself"
            )
        if not (self.has_local_branch(branch) or self.has_remote_branch(branch)):
            raise RefNotFoundError(branch, self.remote_name)
        if self.has_remote_branch(target):
            target_ref = self.remote_ref(target)
        else:
            target_ref = self.resolve_target_ref(target)

        if strategy == MergeStrategy.REBASE:
            command = f"git rebase {target_ref}"
        else:
            command = f"git merge --no-ff {target_ref} -m \"{self.update_message(target, branch)}\""

        if self.dry_run:
            logger.info(f"[dry-run] Would update {branch} from {target_ref}")
            return MergeResult(
                source=target,
                target=branch,
                strategy=strategy,
                outcome=MergeOutcome.DRY_RUN,
                planned_commands=[f"git checkout {branch}", command],
                message="Dry run: no changes made",
            )

        repo = self._get_repo()
        self.ensure_clean(repo, "update")
        self._checkout_target(repo, branch)
        self.state = MergeState.CHECKED_OUT

        self.state = MergeState.MERGING
        try:
            if strategy == MergeStrategy.REBASE:
                logger.info(f"Rebasing {branch} onto {target_ref}...")
                repo.git.rebase(target_ref)
            else:
                logger.info(f"Merging {target_ref} into {branch}...")
                repo.git.merge("--no-ff", target_ref, "-m", self.update_message(target, branch))
        except git.exc.GitCommandError as e:
            if (self.unmerged_paths(repo) or self.merge_in_progress(repo)
                    or self.rebase_in_progress(repo)):
                return self._conflict_result(
                    repo, target, branch, strategy, None,
                    f"Updating {branch} from {target_ref} produced conflicts",
                    against=target,
                )
            raise GitOperationError("update", branch, git_error_text(e))

        self.state = MergeState.SUCCEEDED
        head = repo.head.commit.hexsha[:7]
        logger.info(f"Updated {branch} from {target_ref} ({branch} at {head})")
        return MergeResult(
            source=target,
            target=branch,
            strategy=strategy,
            outcome=MergeOutcome.SUCCESS,
            head=head,
            message=f"Branch {branch} updated with {target} changes",
        )
