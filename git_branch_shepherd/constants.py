"""Shared constants for git-branch-shepherd."""

from typing import List


# Change indicators for file previews (git diff --name-status letters)
CHANGE_SYMBOLS = {
    "added": "+",
    "deleted": "-",
    "modified": "~",
    "renamed": "→",
    "unknown": "?",
}

# Rich color names per change kind
CHANGE_COLORS = {
    "added": "green",
    "deleted": "red",
    "modified": "yellow",
    "renamed": "blue",
    "unknown": "cyan",
}

SYMBOL_EPHEMERAL = "◆"
SYMBOL_BRANCH = "•"
NOT_AVAILABLE = "N/A"

# Format for one-line commit summaries: short hash, subject, relative age
LAST_COMMIT_FORMAT = "%h - %s (%cr)"


# Push failure classification. Matched case-insensitively against git's stderr.
PERMISSION_DENIED_PATTERNS = [
    "403",
    "permission denied",
    "permission to",
    "protected branch",
    "gh006",
    "gh013",
    "pre-receive hook declined",
    "not allowed to push",
    "access denied",
    "authentication failed",
]

TRANSIENT_FAILURE_PATTERNS = [
    "could not resolve host",
    "connection timed out",
    "connection reset",
    "connection refused",
    "operation timed out",
    "timeout",
    "timed out",
    "the remote end hung up unexpectedly",
    "early eof",
    "rpc failed",
    "502",
    "503",
    "504",
    "temporary failure",
    "unable to access",
    "network is unreachable",
    "ssl_read",
    "gnutls",
]

# Fetch/pull/ls-remote failures that mean the remote is unreachable
NETWORK_ERROR_PATTERNS = TRANSIENT_FAILURE_PATTERNS + [
    "could not read from remote repository",
    "does not appear to be a git repository",
    "no such remote",
]

REMOTE_REF_MISSING_PATTERNS = [
    "remote ref does not exist",
    "unable to delete",
]


def merge_recovery_steps(target: str) -> List[str]:
    """Recovery steps after a conflicted ``git merge``."""
    return [
        "Fix conflicts in the listed files",
        "git add <resolved-files>",
        "git commit",
        "Or to abort: git merge --abort",
        f"Then re-run the workflow for the branch against {target}",
    ]


def rebase_recovery_steps(target: str) -> List[str]:
    """Recovery steps after a conflicted ``git rebase``."""
    return [
        "Fix conflicts in the listed files",
        "git add <resolved-files>",
        "git rebase --continue",
        "Or to abort: git rebase --abort",
        f"Then re-run the workflow for the branch against {target}",
    ]


def push_permission_guidance(branch: str, remote: str = "origin") -> List[str]:
    """Guidance when the host rejects a push (protection rules or missing rights)."""
    return [
        f"Pushing to {branch} is not permitted from this environment",
        f"Push a feature branch and open a pull request into {branch} instead:",
        "  git checkout -b <review-branch>",
        f"  git push -u {remote} <review-branch>",
        f"  gh pr create --base {branch}",
        "Or push manually from a machine with access:",
        f"  git checkout {branch}",
        f"  git pull {remote} {branch}",
        f"  git push {remote} {branch}",
    ]


def push_exhausted_guidance(branch: str, remote: str = "origin") -> List[str]:
    """Guidance after all push attempts failed."""
    return [
        "Check connectivity to the remote",
        f"Then push manually: git push {remote} {branch}",
    ]
