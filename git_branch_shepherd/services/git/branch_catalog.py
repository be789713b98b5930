"""Branch catalog: read-only branch discovery."""

from typing import List, Optional

import git

from git_branch_shepherd.constants import LAST_COMMIT_FORMAT, NOT_AVAILABLE
from git_branch_shepherd.models.branch import Branch, BranchListing, BranchLocation
from git_branch_shepherd.services.git.repository import RepoService
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class BranchCatalog(RepoService):
    """Enumerates and classifies local and remote branches.

    Every query re-reads the repository; results are never cached.
    """

    def _local_branch_names(self, repo: git.Repo) -> List[str]:
        output = repo.git.for_each_ref("--format=%(refname)", "refs/heads")
        return [line[len("refs/heads/"):] for line in output.splitlines() if line]

    def _remote_branch_names(self, repo: git.Repo) -> List[str]:
        prefix = f"refs/remotes/{self.remote_name}/"
        output = repo.git.for_each_ref("--format=%(refname)", prefix.rstrip("/"))
        names = []
        for line in output.splitlines():
            if not line.startswith(prefix):
                continue
            name = line[len(prefix):]
            # Skip the remote's symbolic HEAD
            if name == "HEAD":
                continue
            names.append(name)
        return names

    def last_commit_summary(self, ref: str, repo: Optional[git.Repo] = None) -> str:
        """"<short sha> - <subject> (<relative age>)" for a ref, N/A if unreadable."""
        repo = repo or self._get_repo()
        try:
            return repo.git.log("-1", f"--format={LAST_COMMIT_FORMAT}", ref, "--")
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not read last commit of {ref}: {e}")
            return NOT_AVAILABLE

    def list_branches(self, target: Optional[str] = None, fetch: bool = False) -> BranchListing:
        """List local and remote branches other than ``target``.

        Args:
            target: Branch merges go into; excluded from the listing
            fetch: Fetch from the remote first

        Returns:
            BranchListing with session branches in ``ephemeral``
        """
        target = target or self.target_branch
        if fetch:
            self.fetch()

        repo = self._get_repo()
        local = set(self._local_branch_names(repo))
        remote = set(self._remote_branch_names(repo))

        listing = BranchListing(target=target)
        for name in sorted(local | remote):
            if name == target:
                continue

            if name in local and name in remote:
                location = BranchLocation.BOTH
            elif name in remote:
                location = BranchLocation.REMOTE
            else:
                location = BranchLocation.LOCAL

            # The remote copy is what gets merged, so describe it when available
            ref = self.remote_ref(name) if location.has_remote else name
            branch = Branch(
                name=name,
                location=location,
                is_ephemeral=self.is_ephemeral(name),
                last_commit_summary=self.last_commit_summary(ref, repo),
            )
            if branch.is_ephemeral:
                listing.ephemeral.append(branch)
            else:
                listing.others.append(branch)

        logger.debug(
            f"Found {len(listing.ephemeral)} session and {len(listing.others)} other branches"
        )
        return listing

    def list_local_branches(self, target: Optional[str] = None) -> List[str]:
        """Local branches that can be updated from ``target``.

        Excludes the target, protected branches and stash recovery branches.
        """
        target = target or self.target_branch
        return [
            name for name in sorted(self._local_branch_names(self._get_repo()))
            if name != target and not self.is_protected(name) and not name.startswith("stash")
        ]

    def list_ephemeral(self, target: Optional[str] = None, fetch: bool = False) -> List[Branch]:
        """Session branches only."""
        return self.list_branches(target, fetch=fetch).ephemeral

    def list_merged(
        self, target: Optional[str] = None, location: BranchLocation = BranchLocation.LOCAL
    ) -> List[str]:
        """Branches whose tip is already contained in the target.

        Local branches are compared with the local target, remote branches with
        the remote-tracking target.
        """
        target = target or self.target_branch
        repo = self._get_repo()

        if location == BranchLocation.REMOTE:
            merged_into = self.remote_ref(target)
            prefix = f"refs/remotes/{self.remote_name}/"
            refs = prefix.rstrip("/")
        else:
            merged_into = target
            prefix = "refs/heads/"
            refs = "refs/heads"

        try:
            output = repo.git.for_each_ref(
                "--format=%(refname)", f"--merged={merged_into}", refs
            )
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not list branches merged into {merged_into}: {e}")
            return []

        names = []
        for line in output.splitlines():
            if not line.startswith(prefix):
                continue
            name = line[len(prefix):]
            if name in ("HEAD", target):
                continue
            names.append(name)
        return names
