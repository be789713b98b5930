"""Merge planning: ahead/behind counts and file-level preview."""

from typing import List, Optional

import git

from git_branch_shepherd.exceptions import GitOperationError
from git_branch_shepherd.models.merge import ChangeKind, FileChange, MergePlan
from git_branch_shepherd.services.git.repository import RepoService, git_error_text
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


def parse_name_status(output: str) -> List[FileChange]:
    """Parse ``git diff --name-status -z`` output, preserving order.

    Fields are NUL-separated so paths come back unquoted. Renames and copies
    carry two paths (old, new); the new path is reported.
    """
    fields = [field for field in output.split("\0") if field]
    changes = []
    i = 0
    while i < len(fields):
        status = fields[i].strip()
        kind = ChangeKind.from_status(status)
        if status[:1] in ("R", "C") and i + 2 < len(fields):
            changes.append(FileChange(path=fields[i + 2], kind=kind, previous_path=fields[i + 1]))
            i += 3
        elif i + 1 < len(fields):
            changes.append(FileChange(path=fields[i + 1], kind=kind))
            i += 2
        else:
            break
    return changes


class MergePlanner(RepoService):
    """Computes the preview of merging one branch into another. Read-only."""

    def _count(self, repo: git.Repo, revision_range: str) -> int:
        return int(repo.git.rev_list("--count", revision_range).strip() or 0)

    def plan(self, source: str, target: Optional[str] = None, refresh: bool = False) -> MergePlan:
        """Preview merging ``source`` into ``target``.

        Args:
            source: Branch to merge, with or without the remote prefix
            target: Branch to merge into (defaults to the configured target)
            refresh: Fetch before planning

        Raises:
            RefNotFoundError: source does not exist locally or on the remote
            NetworkUnreachableError: refresh was requested and the fetch failed
        """
        target = target or self.target_branch
        source = self.strip_remote_prefix(source)

        if source == target:
            return MergePlan(source=source, target=target, source_ref=target)

        if refresh:
            self.fetch()

        source_ref = self.resolve_branch_ref(source)
        target_ref = self.resolve_target_ref(target)
        repo = self._get_repo()

        try:
            ahead = self._count(repo, f"{target_ref}..{source_ref}")
            behind = self._count(repo, f"{source_ref}..{target_ref}")
            # Three-dot: diff against the merge base, not the target tip
            name_status = repo.git.diff(
                "--name-status", "-z", "--no-color", f"{target_ref}...{source_ref}", "--"
            )
            commits_preview = self.config.get("commits_preview", 10)
            commits = []
            if ahead and commits_preview:
                log = repo.git.log(
                    "--oneline", "--no-decorate", f"-{commits_preview}",
                    f"{target_ref}..{source_ref}", "--",
                )
                commits = [line for line in log.splitlines() if line.strip()]
        except git.exc.GitCommandError as e:
            raise GitOperationError(
                "plan", source, git_error_text(e),
                [f"git merge-base {target_ref} {source_ref}",
                 "branches without a common ancestor cannot be previewed"],
            )

        plan = MergePlan(
            source=source,
            target=target,
            source_ref=source_ref,
            ahead_count=ahead,
            behind_count=behind,
            changed_files=parse_name_status(name_status),
            commits=commits,
        )
        logger.debug(
            f"Plan {source} -> {target}: ahead {ahead}, behind {behind}, "
            f"{len(plan.changed_files)} file(s)"
        )
        return plan
