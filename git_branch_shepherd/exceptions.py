"""Custom exceptions for git-branch-shepherd"""

from typing import List, Optional


class BranchShepherdError(Exception):
    """Base exception for all git-branch-shepherd errors.

    Every error carries ``recovery``: the exact steps or commands the user
    should run next.
    """

    def __init__(self, message: str, recovery: Optional[List[str]] = None):
        self.recovery = list(recovery or [])
        super().__init__(message)


class NotARepositoryError(BranchShepherdError):
    """Raised when the working directory is not a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Not a git repository: {path}",
            ["cd into a git working copy", "or run: git init"],
        )


class GitOperationError(BranchShepherdError):
    """Exception raised for errors in Git operations."""

    def __init__(
        self,
        operation: str,
        branch: Optional[str] = None,
        message: Optional[str] = None,
        recovery: Optional[List[str]] = None,
    ):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, recovery)


class RefNotFoundError(GitOperationError):
    """Raised when a selected branch no longer exists locally or on the remote."""

    def __init__(self, branch: str, remote: str = "origin"):
        super().__init__(
            "find_branch",
            branch,
            "Branch not found locally or on the remote",
            [f"git fetch {remote} --prune", "then pick the branch again from a fresh list"],
        )


class NetworkUnreachableError(GitOperationError):
    """Raised when the remote cannot be reached.

    Lower layers do not retry this (PushRetrier has its own bounded policy).
    """

    def __init__(self, operation: str, remote: str = "origin", message: Optional[str] = None):
        self.remote = remote
        super().__init__(
            operation,
            message=message or f"Remote '{remote}' is unreachable",
            recovery=[
                "check your network connection and credentials",
                f"git fetch {remote}",
                "then re-run the whole workflow",
            ],
        )


class BranchProtectedError(GitOperationError):
    """Raised when attempting to delete the target or a protected branch."""

    def __init__(self, branch: str):
        super().__init__(
            "delete_branch",
            branch,
            "Branch is protected and is never deleted",
            ["choose a different branch"],
        )


class DirtyWorkingTreeError(GitOperationError):
    """Raised when an operation needs a clean index and working tree."""

    def __init__(self, operation: str, changed: Optional[List[str]] = None):
        self.changed = list(changed or [])
        super().__init__(
            operation,
            message="Working tree has uncommitted changes",
            recovery=[
                "git status",
                'git stash push -m "<label>"  (or commit your changes)',
                "then re-run the command",
            ],
        )


class GitHubAPIError(BranchShepherdError):
    """Exception raised for errors in GitHub API operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"GitHub API operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(
            error_msg,
            ["check GITHUB_TOKEN has 'repo' scope", "verify the origin remote points at GitHub"],
        )
