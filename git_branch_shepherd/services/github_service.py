"""GitHub API integration service"""

import os
from itertools import islice
from typing import Optional, List, TYPE_CHECKING, Union
from urllib.parse import urlparse
from github import Github, Auth, GithubException, UnknownObjectException

from git_branch_shepherd.exceptions import GitHubAPIError
from git_branch_shepherd.models.workflow import MergedPullRequest
from git_branch_shepherd.logging_config import get_logger

if TYPE_CHECKING:
    from github.Repository import Repository
    from git_branch_shepherd.config import Config

logger = get_logger(__name__)


def parse_github_repo(remote_url: str) -> str:
    """Return "owner/repo" for an SSH or HTTPS GitHub remote URL."""
    if remote_url.startswith("git@"):
        # Handle SSH URL format (git@github.com:org/repo.git)
        if "github.com:" not in remote_url:
            raise GitHubAPIError("setup", f"Not a GitHub remote: {remote_url}")
        path = remote_url.split("github.com:", 1)[1]
    else:
        # Handle HTTPS URL format (https://github.com/org/repo.git)
        parsed_url = urlparse(remote_url)
        if not parsed_url.hostname or "github.com" not in parsed_url.hostname:
            raise GitHubAPIError("setup", f"Not a GitHub remote: {remote_url}")
        path = parsed_url.path.strip("/")

    if path.endswith(".git"):
        path = path[:-4]
    return path


class GitHubService:
    """Remote-host operations: merged pull requests and ref deletion by API."""

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        self.repo_path = repo_path
        self.config = config
        self.debug_mode = config.get("debug", False)
        self.dry_run = config.get("dry_run", False)
        self.max_prs_to_fetch = config.get("max_prs_to_fetch", 500)
        self.github_token = config.get("github_token") or os.environ.get("GITHUB_TOKEN")
        self.github_repo: Optional[str] = None
        self.github: Optional[Github] = None
        self.gh_repo: Optional["Repository"] = None

    @property
    def is_configured(self) -> bool:
        return self.gh_repo is not None

    def setup_github_api(self, remote_url: str) -> None:
        """Setup GitHub API access for the repository behind ``remote_url``.

        Raises:
            GitHubAPIError: no token, not a GitHub remote, or the repo is inaccessible
        """
        if not self.github_token:
            raise GitHubAPIError(
                "setup", "GitHub token not found (set GITHUB_TOKEN or github_token)"
            )

        self.github_repo = parse_github_repo(remote_url)
        try:
            self.github = Github(auth=Auth.Token(self.github_token))
            self.gh_repo = self.github.get_repo(self.github_repo)
        except GithubException as e:
            logger.error(f"[GitHub] Failed to setup GitHub API: {e}")
            raise GitHubAPIError("setup", str(e))

        logger.debug(f"[GitHub] GitHub integration enabled for: {self.github_repo}")

    def list_merged_pull_requests(self, prefix: str = "") -> List[MergedPullRequest]:
        """Merged pull requests whose head branch starts with ``prefix`` (empty = all)."""
        assert self.gh_repo is not None, "setup_github_api must be called first"
        try:
            pulls = self.gh_repo.get_pulls(state="closed", sort="updated", direction="desc")
            merged = []
            for pr in islice(pulls, self.max_prs_to_fetch):
                if pr.merged_at is None:
                    continue
                head_ref = pr.head.ref
                if prefix and not head_ref.startswith(prefix):
                    continue
                merged.append(MergedPullRequest(
                    head_ref=head_ref,
                    number=pr.number,
                    merged_at=pr.merged_at.isoformat(),
                    title=pr.title or "",
                ))
        except GithubException as e:
            raise GitHubAPIError("list_pulls", str(e))

        logger.debug(f"[GitHub] Found {len(merged)} merged PR(s) matching '{prefix or '*'}'")
        return merged

    def branch_exists(self, branch: str) -> bool:
        """Whether ``heads/<branch>`` still exists on GitHub."""
        assert self.gh_repo is not None, "setup_github_api must be called first"
        try:
            self.gh_repo.get_git_ref(f"heads/{branch}")
            return True
        except UnknownObjectException:
            return False
        except GithubException as e:
            raise GitHubAPIError("get_ref", f"{branch}: {e}")

    def delete_branch(self, branch: str) -> bool:
        """Delete ``heads/<branch>`` through the API. False if it was already gone."""
        assert self.gh_repo is not None, "setup_github_api must be called first"
        if self.dry_run:
            logger.info(f"[dry-run] Would delete {branch} on GitHub")
            return False
        try:
            self.gh_repo.get_git_ref(f"heads/{branch}").delete()
            logger.info(f"[GitHub] Deleted {branch}")
            return True
        except UnknownObjectException:
            logger.debug(f"[GitHub] {branch} already deleted")
            return False
        except GithubException as e:
            raise GitHubAPIError("delete_ref", f"{branch}: {e}")

    def close(self) -> None:
        """Close the GitHub API connection to clean up resources."""
        if self.github:
            try:
                self.github.close()
                logger.debug("[GitHub] Closed GitHub API connection")
            except Exception as e:
                logger.debug(f"[GitHub] Error closing GitHub API connection: {e}")
