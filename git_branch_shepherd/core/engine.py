"""Branch engine: one object wiring every lifecycle service to a repository."""

from typing import Callable, Optional, Union
import time

import git

from git_branch_shepherd.config import Config
from git_branch_shepherd.exceptions import GitHubAPIError, NotARepositoryError
from git_branch_shepherd.models.branch import BranchListing, BranchLocation
from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.models.merge import ConflictReport, MergePlan, MergeResult, MergeStrategy
from git_branch_shepherd.models.push import PushResult
from git_branch_shepherd.services.git import (
    BranchCatalog,
    ConflictProbe,
    DeletionGuard,
    MergeExecutor,
    MergePlanner,
    PushRetrier,
    RepoService,
)
from git_branch_shepherd.services.github_service import GitHubService
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class BranchEngine:
    """Direct entry points (plan, probe, execute, push, delete, ...) for any front end.

    Operations run one at a time; none of them may be called concurrently on
    the same repository.
    """

    def __init__(self, repo_path: str, config: Union[Config, dict],
                 sleep: Callable[[float], None] = time.sleep):
        """Initialize the engine.

        Args:
            repo_path: Path to git repository
            config: Configuration dict or Config object
            sleep: Backoff sleep used by the push retrier

        Raises:
            NotARepositoryError: repo_path is not inside a git working copy
        """
        self.repo_path = repo_path
        if isinstance(config, dict):
            self.config = Config.from_dict(config)
        else:
            self.config = config

        try:
            git.Repo(self.repo_path).close()
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotARepositoryError(str(repo_path))

        self.repo_service = RepoService(self.repo_path, self.config)
        self.catalog = BranchCatalog(self.repo_path, self.config)
        self.planner = MergePlanner(self.repo_path, self.config)
        self.prober = ConflictProbe(self.repo_path, self.config)
        self.executor = MergeExecutor(self.repo_path, self.config)
        self.retrier = PushRetrier(self.repo_path, self.config, sleep=sleep)
        self.guard = DeletionGuard(self.repo_path, self.config)
        self._github: Optional[GitHubService] = None
        logger.debug(f"Engine ready for {repo_path} (target {self.config.target_branch})")

    @property
    def target(self) -> str:
        return self.config.target_branch

    @property
    def github(self) -> GitHubService:
        """GitHub service, set up from the remote URL on first use."""
        if self._github is None:
            service = GitHubService(self.repo_path, self.config)
            remote_url = self.repo_service.remote_url()
            if remote_url is None:
                raise GitHubAPIError("setup", f"No '{self.config.remote_name}' remote configured")
            service.setup_github_api(remote_url)
            self._github = service
        return self._github

    def fetch(self, prune: bool = False) -> None:
        self.repo_service.fetch(prune=prune)

    def prune(self) -> bool:
        return self.repo_service.prune_remote()

    def current_branch(self) -> Optional[str]:
        return self.repo_service.current_branch()

    def return_to(self, branch: Optional[str]) -> bool:
        return self.repo_service.return_to(branch)

    def ensure_clean(self, operation: str) -> None:
        repo = self.repo_service._get_repo()
        self.repo_service.ensure_clean(repo, operation)

    def list_branches(self, fetch: bool = False) -> BranchListing:
        return self.catalog.list_branches(self.target, fetch=fetch)

    def list_local_branches(self) -> list:
        return self.catalog.list_local_branches(self.target)

    def list_merged(self, location: BranchLocation = BranchLocation.LOCAL) -> list:
        return self.catalog.list_merged(self.target, location)

    def plan(self, source: str, refresh: bool = False) -> MergePlan:
        return self.planner.plan(source, self.target, refresh=refresh)

    def probe(self, source: str) -> ConflictReport:
        return self.prober.probe(source, self.target)

    def execute(self, source: str, strategy: MergeStrategy = MergeStrategy.MERGE) -> MergeResult:
        return self.executor.execute(source, self.target, strategy)

    def update(self, branch: str, strategy: MergeStrategy = MergeStrategy.MERGE) -> MergeResult:
        return self.executor.update_from_target(branch, self.target, strategy)

    def push(self, branch: Optional[str] = None, max_retries: Optional[int] = None) -> PushResult:
        return self.retrier.push_with_retry(branch or self.target, max_retries=max_retries)

    def delete(self, branch: str, location: BranchLocation = BranchLocation.LOCAL,
               forced: bool = False) -> DeletionVerdict:
        return self.guard.verify_and_delete(branch, self.target, location, forced)

    def close(self) -> None:
        if self._github is not None:
            self._github.close()
