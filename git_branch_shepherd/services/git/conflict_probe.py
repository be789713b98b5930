"""Conflict probe: speculative merge that is always rolled back."""

from contextlib import contextmanager
from typing import Optional

import git

from git_branch_shepherd.exceptions import GitOperationError
from git_branch_shepherd.models.merge import ConflictReport
from git_branch_shepherd.services.git.repository import RepoService, git_error_text
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class ConflictProbe(RepoService):
    """Detects whether merging source into target would conflict.

    Needs exclusive access to the working tree while it runs. HEAD, the index
    and every ref are restored before ``probe`` returns.
    """

    @contextmanager
    def _on_target(self, repo: git.Repo, target: str):
        """Check out ``target`` for the duration of the block, then restore HEAD."""
        original_branch = self.current_branch(repo)
        original_commit = repo.head.commit.hexsha

        if original_branch == target:
            yield
            return

        try:
            if self.has_local_branch(target):
                repo.git.checkout(target)
            else:
                # Detach instead of creating a local branch so no ref is added
                repo.git.checkout("--detach", self.resolve_target_ref(target))
        except git.exc.GitCommandError as e:
            raise GitOperationError(
                "probe", target, f"could not check out {target}: {git_error_text(e)}",
                ["git status", "Move or remove the files git reported, then re-run the probe"],
            )
        try:
            yield
        finally:
            repo.git.checkout(original_branch or original_commit)

    def _abort(self, repo: git.Repo) -> None:
        if self.merge_in_progress(repo):
            repo.git.merge("--abort")
            logger.debug("Probe merge aborted")

    def probe(self, source: str, target: Optional[str] = None) -> ConflictReport:
        """Try a no-commit, no-fast-forward merge of source into target.

        Raises:
            DirtyWorkingTreeError: uncommitted tracked changes would be lost by the abort
            RefNotFoundError: source or target does not exist
            GitOperationError: the merge failed for a reason other than conflicts
        """
        target = target or self.target_branch
        source = self.strip_remote_prefix(source)
        report = ConflictReport(source=source, target=target)
        if source == target:
            return report

        repo = self._get_repo()
        self.ensure_clean(repo, "probe")
        source_ref = self.resolve_branch_ref(source)

        logger.info(f"Checking {source_ref} -> {target} for merge conflicts...")
        with self._on_target(repo, target):
            try:
                repo.git.merge("--no-commit", "--no-ff", source_ref)
            except git.exc.GitCommandError as e:
                conflicts = self.unmerged_paths(repo)
                if not conflicts:
                    raise GitOperationError("probe", source, git_error_text(e))
                report.has_conflicts = True
                report.conflicting_paths = set(conflicts)
            finally:
                self._abort(repo)

        if report.has_conflicts:
            logger.warning(
                f"Merging {source} into {target} would conflict in "
                f"{len(report.conflicting_paths)} file(s)"
            )
        else:
            logger.info("No merge conflicts detected")
        return report
