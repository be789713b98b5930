"""Deletion guard: ancestry-verified branch deletion."""

from typing import Optional

import git

from git_branch_shepherd.constants import (
    NETWORK_ERROR_PATTERNS,
    PERMISSION_DENIED_PATTERNS,
    REMOTE_REF_MISSING_PATTERNS,
)
from git_branch_shepherd.exceptions import (
    BranchProtectedError,
    GitOperationError,
    NetworkUnreachableError,
)
from git_branch_shepherd.models.branch import BranchLocation
from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.services.git.repository import RepoService, git_error_text, matches_any
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class DeletionGuard(RepoService):
    """Deletes a branch only after proving it is merged, or when explicitly forced."""

    def _is_ancestor(self, repo: git.Repo, ref: str, target_ref: str) -> bool:
        try:
            return repo.is_ancestor(ref, target_ref)
        except git.exc.GitCommandError as e:
            logger.debug(f"Ancestry check {ref} -> {target_ref} failed: {e}")
            return False

    def _verify(self, branch: str, target: str, location: BranchLocation) -> DeletionVerdict:
        """Ancestry check for one location, without deleting anything."""
        repo = self._get_repo()

        if location == BranchLocation.REMOTE:
            ref = self.remote_ref(branch)
            target_ref = self.remote_ref(target)
            present = self.has_remote_branch(branch)
            target_present = self.has_remote_branch(target)
        else:
            ref = branch
            present = self.has_local_branch(branch)
            target_ref = target if self.has_local_branch(target) else self.remote_ref(target)
            target_present = self.has_local_branch(target) or self.has_remote_branch(target)

        verdict = DeletionVerdict(branch=branch, target_ref=target_ref, location=location,
                                  present=present)
        if not present:
            verdict.message = f"No {location.value} branch '{ref}' to delete"
            return verdict

        if not target_present:
            verdict.message = f"Unable to verify merge status: '{target_ref}' not found"
        elif self._is_ancestor(repo, ref, target_ref):
            verdict.verified_merged = True
            verdict.message = f"Verified: '{ref}' is already merged into {target_ref}"
        else:
            verdict.message = f"'{ref}' still has commits not in {target_ref}"
        return verdict

    def _delete_local(self, repo: git.Repo, branch: str) -> None:
        repo.delete_head(branch, force=True)

    def _delete_remote(self, repo: git.Repo, branch: str) -> bool:
        """Delete the remote branch. Returns False if it was already gone."""
        try:
            repo.git.push(self.remote_name, "--delete", branch, **self._network_kwargs())
            return True
        except git.exc.GitCommandError as e:
            text = git_error_text(e)
            if matches_any(text, REMOTE_REF_MISSING_PATTERNS):
                logger.info(f"{self.remote_ref(branch)} was already deleted on the remote")
                return False
            if matches_any(text, PERMISSION_DENIED_PATTERNS):
                raise GitOperationError(
                    "delete_remote_branch", branch,
                    "Remote branch is protected or you lack permission",
                    ["delete the branch from the hosting UI, or ask a maintainer"],
                )
            if matches_any(text, NETWORK_ERROR_PATTERNS):
                raise NetworkUnreachableError("delete_remote_branch", self.remote_name, text)
            raise GitOperationError("delete_remote_branch", branch, text)

    def _verify_and_delete_one(self, branch: str, target: str, location: BranchLocation,
                               forced: bool) -> DeletionVerdict:
        verdict = self._verify(branch, target, location)
        if not verdict.present:
            return verdict

        if not verdict.verified_merged and not forced:
            ref = self.remote_ref(branch) if location == BranchLocation.REMOTE else branch
            verdict.recovery_steps = [
                f"git log {verdict.target_ref}..{ref}  (inspect the unmerged commits)",
                f"merge the branch into {target} first, or re-run with --force to force delete",
            ]
            logger.warning(f"Refusing to delete {location.value} branch {branch}: {verdict.message}")
            return verdict

        repo = self._get_repo()
        if location == BranchLocation.LOCAL and self.current_branch(repo) == branch:
            raise GitOperationError(
                "delete_branch", branch, "Cannot delete the checked-out branch",
                [f"git checkout {target}", "then re-run the deletion"],
            )

        verdict.forced = forced and not verdict.verified_merged

        if self.dry_run:
            verdict.dry_run = True
            action = "force delete" if verdict.forced else "delete"
            verdict.message = f"Dry run: would {action} {location.value} branch {branch}"
            logger.info(f"[dry-run] {verdict.message}")
            return verdict

        if verdict.forced:
            logger.warning(
                f"FORCE deleting {location.value} branch '{branch}' "
                f"(not verified as merged into {verdict.target_ref})"
            )

        if location == BranchLocation.REMOTE:
            verdict.deleted = self._delete_remote(repo, branch)
            if not verdict.deleted:
                verdict.message = f"Remote branch {self.remote_ref(branch)} was already deleted"
                return verdict
        else:
            self._delete_local(repo, branch)
            verdict.deleted = True

        kind = "FORCE deleted" if verdict.forced else "deleted"
        verdict.message = f"{location.value.capitalize()} branch '{branch}' {kind}"
        logger.info(verdict.message)
        return verdict

    def verify_and_delete(self, branch: str, target: Optional[str] = None,
                          location: BranchLocation = BranchLocation.LOCAL,
                          forced: bool = False) -> DeletionVerdict:
        """Delete ``branch`` if its tip is reachable from ``target``.

        Args:
            branch: Branch to delete (no remote prefix)
            target: Branch it must be merged into (defaults to the configured target)
            location: LOCAL, REMOTE, or BOTH (remote first, then local)
            forced: Delete even if ancestry cannot be verified

        Raises:
            BranchProtectedError: for the target and protected branches, even when forced
        """
        target = target or self.target_branch
        branch = self.strip_remote_prefix(branch)
        if branch == target or self.is_protected(branch):
            raise BranchProtectedError(branch)

        if location != BranchLocation.BOTH:
            return self._verify_and_delete_one(branch, target, location, forced)

        parts = [
            self._verify_and_delete_one(branch, target, BranchLocation.REMOTE, forced),
            self._verify_and_delete_one(branch, target, BranchLocation.LOCAL, forced),
        ]
        present = [part for part in parts if part.present]
        combined = DeletionVerdict(
            branch=branch,
            target_ref=target,
            location=BranchLocation.BOTH,
            verified_merged=bool(present) and all(part.verified_merged for part in present),
            forced=any(part.forced for part in present),
            deleted=bool(present) and all(part.deleted for part in present),
            present=bool(present),
            dry_run=any(part.dry_run for part in present),
            message="; ".join(part.message for part in parts),
            recovery_steps=[step for part in parts for step in part.recovery_steps],
            parts=parts,
        )
        return combined
