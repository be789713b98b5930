"""Shared repository access for the branch lifecycle services."""

import os
from typing import List, Optional, Union, TYPE_CHECKING

import git

from git_branch_shepherd.constants import NETWORK_ERROR_PATTERNS
from git_branch_shepherd.exceptions import (
    DirtyWorkingTreeError,
    GitOperationError,
    NetworkUnreachableError,
    NotARepositoryError,
    RefNotFoundError,
)
from git_branch_shepherd.logging_config import get_logger

if TYPE_CHECKING:
    from git_branch_shepherd.config import Config

logger = get_logger(__name__)


def git_error_text(error: Exception) -> str:
    """Best-effort stderr/stdout text of a failed git command."""
    stderr = getattr(error, "stderr", "") or ""
    stdout = getattr(error, "stdout", "") or ""
    text = " ".join(part.strip() for part in (stderr, stdout) if part and part.strip())
    return text or str(error)


def matches_any(text: str, patterns: List[str]) -> bool:
    lowered = text.lower()
    return any(pattern in lowered for pattern in patterns)


class RepoService:
    """Base class for services that operate on one local clone.

    Each call opens a fresh ``git.Repo``; nothing about branches or refs is
    cached between calls because the remote can change at any time.
    """

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        """Initialize the service.

        Args:
            repo_path: Path to the git repository (string path, not repo object)
            config: Configuration dictionary or Config object
        """
        self.repo_path = repo_path
        self.config = config
        self.verbose = config.get("verbose", False)
        self.debug_mode = config.get("debug", False)
        self.remote_name = config.get("remote_name", "origin")
        self.target_branch = config.get("target_branch", "main")
        self.dry_run = config.get("dry_run", False)
        self.network_timeout = config.get("network_timeout", 120.0)
        self.session_prefixes = config.get("session_prefixes", ["claude/"])
        self.protected_branches = config.get("protected_branches", ["main", "master"])

    def _get_repo(self) -> git.Repo:
        """Open the repository, translating "not a repo" into NotARepositoryError."""
        try:
            return git.Repo(self.repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotARepositoryError(str(self.repo_path))

    def _network_kwargs(self) -> dict:
        """Per-call deadline for commands that talk to the remote."""
        if self.network_timeout is None:
            return {}
        return {"kill_after_timeout": self.network_timeout}

    # -- refs ---------------------------------------------------------------

    def remote_ref(self, branch: str) -> str:
        return f"{self.remote_name}/{branch}"

    def _ref_exists(self, repo: git.Repo, full_ref: str) -> bool:
        try:
            repo.git.show_ref("--verify", "--quiet", full_ref)
            return True
        except git.exc.GitCommandError:
            return False

    def has_local_branch(self, branch: str) -> bool:
        """Check if refs/heads/<branch> exists."""
        return self._ref_exists(self._get_repo(), f"refs/heads/{branch}")

    def has_remote_branch(self, branch: str) -> bool:
        """Check if the remote-tracking ref for the branch exists (as of the last fetch)."""
        return self._ref_exists(self._get_repo(), f"refs/remotes/{self.remote_name}/{branch}")

    def resolve_branch_ref(self, branch: str) -> str:
        """Ref to read ``branch`` from: the remote-tracking ref if present, else local.

        Raises:
            RefNotFoundError: if the branch exists nowhere
        """
        branch = self.strip_remote_prefix(branch)
        if self.has_remote_branch(branch):
            return self.remote_ref(branch)
        if self.has_local_branch(branch):
            logger.warning(
                f"Branch {branch} not found on {self.remote_name}; using the local branch instead"
            )
            return branch
        raise RefNotFoundError(branch, self.remote_name)

    def resolve_target_ref(self, target: str) -> str:
        """Local target if it exists, otherwise its remote-tracking ref."""
        if self.has_local_branch(target):
            return target
        if self.has_remote_branch(target):
            return self.remote_ref(target)
        raise RefNotFoundError(target, self.remote_name)

    def is_ephemeral(self, branch: str) -> bool:
        return any(branch.startswith(prefix) for prefix in self.session_prefixes)

    def is_protected(self, branch: str) -> bool:
        return branch == self.target_branch or branch in self.protected_branches

    def strip_remote_prefix(self, branch: str) -> str:
        prefix = f"{self.remote_name}/"
        return branch[len(prefix):] if branch.startswith(prefix) else branch

    # -- working tree ---------------------------------------------------------

    def current_branch(self, repo: Optional[git.Repo] = None) -> Optional[str]:
        """Name of the checked-out branch, or None when HEAD is detached."""
        repo = repo or self._get_repo()
        try:
            return repo.active_branch.name
        except TypeError:
            return None

    def changed_paths(self, repo: git.Repo) -> List[str]:
        """Tracked paths with staged or unstaged changes (untracked files ignored)."""
        status = repo.git.status("--porcelain", "-z", "--untracked-files=no")
        entries = [entry for entry in status.split("\0") if entry]
        paths = []
        i = 0
        while i < len(entries):
            entry = entries[i]
            paths.append(entry[3:])
            # Renames and copies are followed by their original path
            i += 2 if set(entry[:2]) & {"R", "C"} else 1
        return paths

    def ensure_clean(self, repo: git.Repo, operation: str) -> None:
        if repo.is_dirty(index=True, working_tree=True, untracked_files=False):
            raise DirtyWorkingTreeError(operation, self.changed_paths(repo))

    def unmerged_paths(self, repo: git.Repo) -> List[str]:
        """Paths git currently reports as conflicted."""
        try:
            output = repo.git.diff("--name-only", "-z", "--diff-filter=U")
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not list unmerged paths: {e}")
            return []
        return sorted({path for path in output.split("\0") if path})

    def return_to(self, branch: Optional[str]) -> bool:
        """Check ``branch`` out again if it still exists. Failure is only a warning."""
        if not branch or not self.has_local_branch(branch):
            return False
        repo = self._get_repo()
        if self.current_branch(repo) == branch:
            return True
        try:
            repo.git.checkout(branch)
            return True
        except git.exc.GitCommandError as e:
            logger.warning(f"Could not switch back to {branch}: {git_error_text(e)}")
            return False

    def merge_in_progress(self, repo: git.Repo) -> bool:
        return os.path.exists(os.path.join(repo.git_dir, "MERGE_HEAD"))

    def rebase_in_progress(self, repo: git.Repo) -> bool:
        return any(
            os.path.isdir(os.path.join(repo.git_dir, name))
            for name in ("rebase-merge", "rebase-apply")
        )

    # -- remote ---------------------------------------------------------------

    def fetch(self, prune: bool = False) -> None:
        """Fetch from the remote.

        Raises:
            NetworkUnreachableError: if the remote cannot be queried
        """
        repo = self._get_repo()
        args = [self.remote_name]
        if prune:
            args.insert(0, "--prune")
        logger.debug(f"Fetching from {self.remote_name}...")
        try:
            repo.git.fetch(*args, **self._network_kwargs())
        except git.exc.GitCommandError as e:
            raise NetworkUnreachableError("fetch", self.remote_name, git_error_text(e))

    def prune_remote(self) -> bool:
        """Drop remote-tracking refs whose branch no longer exists on the remote."""
        if self.dry_run:
            logger.info(f"[dry-run] Would prune stale tracking refs for {self.remote_name}")
            return False
        repo = self._get_repo()
        try:
            repo.git.remote("prune", self.remote_name, **self._network_kwargs())
            logger.info(f"Pruned stale tracking refs for {self.remote_name}")
            return True
        except git.exc.GitCommandError as e:
            text = git_error_text(e)
            if matches_any(text, NETWORK_ERROR_PATTERNS):
                raise NetworkUnreachableError("remote prune", self.remote_name, text)
            raise GitOperationError("remote prune", message=text)

    def remote_url(self) -> Optional[str]:
        repo = self._get_repo()
        try:
            return repo.remote(self.remote_name).url
        except ValueError:
            return None
