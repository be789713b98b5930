"""Push with bounded exponential-backoff retry."""

import time
from typing import Callable, Optional

import git

from git_branch_shepherd.constants import (
    PERMISSION_DENIED_PATTERNS,
    TRANSIENT_FAILURE_PATTERNS,
    push_exhausted_guidance,
    push_permission_guidance,
)
from git_branch_shepherd.models.push import PushAttempt, PushClassification, PushResult
from git_branch_shepherd.services.git.repository import RepoService, git_error_text, matches_any
from git_branch_shepherd.logging_config import get_logger

logger = get_logger(__name__)


class PushRetrier(RepoService):
    """Pushes a branch, retrying only failures that look transient.

    Never force-pushes. Permission and branch-protection rejections are
    returned after a single attempt.
    """

    def __init__(self, repo_path, config, sleep: Callable[[float], None] = time.sleep):
        super().__init__(repo_path, config)
        self.max_retries = config.get("max_retries", 4)
        self.base_delay_ms = config.get("base_delay_ms", 2000)
        self.retry_unknown = config.get("retry_unknown_push_failures", False)
        self._sleep = sleep

    def classify(self, error_text: str) -> PushClassification:
        """Map git's error output to a retry decision."""
        if matches_any(error_text, PERMISSION_DENIED_PATTERNS):
            return PushClassification.PERMISSION_DENIED
        if matches_any(error_text, TRANSIENT_FAILURE_PATTERNS):
            return PushClassification.RETRYABLE
        if self.retry_unknown:
            return PushClassification.RETRYABLE
        return PushClassification.TERMINAL

    @staticmethod
    def delay_before(attempt_number: int, base_delay_ms: int) -> int:
        """Backoff before an attempt: 0 for the first, then base, 2*base, 4*base..."""
        if attempt_number <= 1:
            return 0
        return base_delay_ms * 2 ** (attempt_number - 2)

    def _push(self, branch: str) -> None:
        repo = self._get_repo()
        repo.git.push("-u", self.remote_name, branch, **self._network_kwargs())

    def _remote_matches_local(self, branch: str) -> bool:
        """True if the remote branch already points at the local tip."""
        try:
            repo = self._get_repo()
            output = repo.git.ls_remote(
                self.remote_name, f"refs/heads/{branch}", **self._network_kwargs()
            )
            remote_sha = output.split("\t", 1)[0].strip() if output else ""
            return bool(remote_sha) and remote_sha == repo.commit(branch).hexsha
        except (git.exc.GitCommandError, ValueError) as e:
            logger.debug(f"Could not compare {branch} with the remote: {e}")
            return False

    def push_with_retry(self, branch: Optional[str] = None, max_retries: Optional[int] = None,
                        base_delay_ms: Optional[int] = None) -> PushResult:
        """Push ``branch`` to the remote with retry.

        Args:
            branch: Branch to push (defaults to the target branch)
            max_retries: Maximum number of attempts (default from config, 4)
            base_delay_ms: Delay before the second attempt; doubles afterwards

        Returns:
            PushResult; ``attempts`` records every attempt made
        """
        branch = branch or self.target_branch
        max_retries = max_retries if max_retries is not None else self.max_retries
        base_delay_ms = base_delay_ms if base_delay_ms is not None else self.base_delay_ms

        if self.dry_run:
            logger.info(f"[dry-run] Would push {branch} to {self.remote_name}")
            return PushResult(
                branch=branch,
                success=True,
                classification=PushClassification.SUCCESS,
                dry_run=True,
                message=f"Dry run: would push {branch} to {self.remote_name}",
            )

        result = PushResult(branch=branch, success=False, classification=PushClassification.TERMINAL)

        for attempt_number in range(1, max_retries + 1):
            delay_ms = self.delay_before(attempt_number, base_delay_ms)
            if delay_ms:
                logger.warning(f"Push failed, retrying in {delay_ms / 1000:g}s...")
                self._sleep(delay_ms / 1000)

            logger.info(f"Push attempt {attempt_number}/{max_retries}...")
            try:
                self._push(branch)
            except git.exc.GitCommandError as e:
                error = git_error_text(e)
                classification = self.classify(error)
                result.attempts.append(
                    PushAttempt(attempt_number, delay_ms, classification, error)
                )

                if classification == PushClassification.PERMISSION_DENIED:
                    logger.error(f"Push of {branch} rejected: permission denied or branch protected")
                    result.classification = classification
                    result.guidance = push_permission_guidance(branch, self.remote_name)
                    result.message = "Permission denied - use a pull request instead"
                    return result

                if classification == PushClassification.TERMINAL:
                    logger.error(f"Push of {branch} failed: {error}")
                    result.classification = classification
                    result.guidance = push_exhausted_guidance(branch, self.remote_name)
                    result.message = f"Push failed: {error}"
                    return result

                # A push can land and still report a transient error
                if self._remote_matches_local(branch):
                    logger.info(f"{self.remote_ref(branch)} already matches local {branch}")
                    result.attempts[-1].classification = PushClassification.SUCCESS
                    result.success = True
                    result.classification = PushClassification.SUCCESS
                    result.message = f"{branch} is up to date on {self.remote_name}"
                    return result
                continue

            result.attempts.append(
                PushAttempt(attempt_number, delay_ms, PushClassification.SUCCESS)
            )
            result.success = True
            result.classification = PushClassification.SUCCESS
            result.message = f"Pushed {branch} to {self.remote_name}"
            logger.info(result.message)
            return result

        logger.error(f"Push failed after {max_retries} attempts")
        result.classification = PushClassification.RETRYABLE
        result.guidance = push_exhausted_guidance(branch, self.remote_name)
        result.message = f"Push failed after {len(result.attempts)} attempt(s)"
        return result
