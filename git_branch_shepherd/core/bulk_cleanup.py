"""Delete head branches of pull requests that are already merged on GitHub."""

from typing import Optional

from git_branch_shepherd.core.engine import BranchEngine
from git_branch_shepherd.core.prompts import WorkflowPrompter
from git_branch_shepherd.exceptions import GitHubAPIError
from git_branch_shepherd.models.workflow import BulkCleanupReport
from git_branch_shepherd.services.display_service import DisplayService
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class BulkCleanup:
    """Find merged PR branches still present on the host and delete them by API."""

    def __init__(self, engine: BranchEngine, prompter: WorkflowPrompter,
                 display: Optional[DisplayService] = None):
        self.engine = engine
        self.prompter = prompter
        self.display = display or DisplayService(
            files_page_size=engine.config.files_page_size
        )

    def run(self, prefix: str = "") -> BulkCleanupReport:
        """Clean up merged branches whose name starts with ``prefix`` (empty = all).

        Raises:
            GitHubAPIError: the API could not be set up or pull requests not listed
        """
        github = self.engine.github
        config = self.engine.config
        report = BulkCleanupReport(pattern=prefix, dry_run=config.dry_run)

        self.display.info(f"Fetching merged PRs from {github.github_repo}...")
        merged = github.list_merged_pull_requests(prefix)
        report.merged_pr_count = len(merged)

        seen = set()
        for pr in merged:
            if pr.head_ref in seen:
                continue
            seen.add(pr.head_ref)
            if self.engine.repo_service.is_protected(pr.head_ref):
                logger.debug(f"Skipping protected branch {pr.head_ref}")
                continue
            if github.branch_exists(pr.head_ref):
                report.candidates.append(pr)
            else:
                report.already_deleted += 1

        self.display.bulk_candidates(report)
        if report.is_clean:
            return report

        if report.dry_run:
            self.display.bulk_outcome(report)
            return report

        if not self.prompter.confirm(
            f"Delete {len(report.candidates)} branch(es) from GitHub?"
        ):
            report.cancelled = True
            self.display.bulk_outcome(report)
            return report

        for pr in report.candidates:
            try:
                if github.delete_branch(pr.head_ref):
                    report.deleted.append(pr.head_ref)
                else:
                    report.already_deleted += 1
            except GitHubAPIError as e:
                logger.warning(f"Failed to delete {pr.head_ref}: {e}")
                report.failed.append(pr.head_ref)

        self.engine.prune()
        self.display.bulk_outcome(report)
        return report
