"""Tests for PushRetrier"""
from unittest.mock import Mock, call, patch

import git
import pytest

from git_branch_shepherd.models.push import PushClassification
from git_branch_shepherd.services.git import PushRetrier
from conftest import write_and_commit

TRANSIENT = "fatal: unable to access 'https://github.com/test/repo.git/': Could not resolve host: github.com"
PROTECTED = "remote: error: GH006: Protected branch update failed for refs/heads/main."
REJECTED = "! [rejected] main -> main (fetch first)\nerror: failed to push some refs"


def push_error(stderr: str) -> git.exc.GitCommandError:
    return git.exc.GitCommandError(["git", "push"], 128, stderr=stderr)


@pytest.fixture
def retrier(git_repo, mock_config, no_sleep):
    retrier = PushRetrier(git_repo.working_dir, mock_config, sleep=no_sleep)
    return retrier


class TestClassify:

    @pytest.mark.parametrize("text,expected", [
        (TRANSIENT, PushClassification.RETRYABLE),
        ("error: RPC failed; HTTP 503", PushClassification.RETRYABLE),
        ("fatal: the remote end hung up unexpectedly", PushClassification.RETRYABLE),
        (PROTECTED, PushClassification.PERMISSION_DENIED),
        ("The requested URL returned error: 403", PushClassification.PERMISSION_DENIED),
        ("ERROR: Permission to test/repo.git denied to bot.", PushClassification.PERMISSION_DENIED),
        (REJECTED, PushClassification.TERMINAL),
    ])
    def test_classification(self, retrier, text, expected):
        assert retrier.classify(text) == expected

    def test_permission_wins_over_transient(self, retrier):
        text = "unable to access 'https://github.com/x/y.git/': The requested URL returned error: 403"
        assert retrier.classify(text) == PushClassification.PERMISSION_DENIED

    def test_unknown_retried_when_enabled(self, git_repo, mock_config):
        retrier = PushRetrier(git_repo.working_dir,
                              {**mock_config, 'retry_unknown_push_failures': True})
        assert retrier.classify(REJECTED) == PushClassification.RETRYABLE

    def test_delay_schedule(self):
        assert [PushRetrier.delay_before(n, 2000) for n in range(1, 5)] == [0, 2000, 4000, 8000]


class TestPushWithRetry:

    def test_real_push(self, git_repo, origin_repo, mock_config, no_sleep):
        sha = write_and_commit(git_repo, {"new.txt": "new\n"}, "New work")
        result = PushRetrier(git_repo.working_dir, mock_config, sleep=no_sleep).push_with_retry('main')

        assert result.success
        assert result.attempt_count == 1
        assert result.total_backoff_ms == 0
        assert origin_repo.commit('main').hexsha == sha
        no_sleep.assert_not_called()

    def test_three_transient_failures_then_success(self, retrier, no_sleep):
        with patch.object(retrier, '_push', side_effect=[push_error(TRANSIENT)] * 3 + [None]), \
                patch.object(retrier, '_remote_matches_local', return_value=False):
            result = retrier.push_with_retry('main')

        assert result.success
        assert result.classification == PushClassification.SUCCESS
        assert result.attempt_count == 4
        assert [a.delay_before_ms for a in result.attempts] == [0, 2000, 4000, 8000]
        assert result.total_backoff_ms == 14000
        assert no_sleep.call_args_list == [call(2), call(4), call(8)]

    def test_permission_denied_is_not_retried(self, retrier, no_sleep):
        remote_check = Mock(return_value=False)
        with patch.object(retrier, '_push', side_effect=push_error(PROTECTED)) as push, \
                patch.object(retrier, '_remote_matches_local', remote_check):
            result = retrier.push_with_retry('main')

        assert not result.success
        assert result.classification == PushClassification.PERMISSION_DENIED
        assert result.attempt_count == 1
        assert push.call_count == 1
        assert any("pull request" in line for line in result.guidance)
        no_sleep.assert_not_called()
        remote_check.assert_not_called()

    def test_unknown_failure_is_terminal(self, retrier, no_sleep):
        with patch.object(retrier, '_push', side_effect=push_error(REJECTED)) as push:
            result = retrier.push_with_retry('main')

        assert not result.success
        assert result.classification == PushClassification.TERMINAL
        assert push.call_count == 1
        no_sleep.assert_not_called()

    def test_retries_exhausted(self, retrier, no_sleep):
        with patch.object(retrier, '_push', side_effect=push_error(TRANSIENT)) as push, \
                patch.object(retrier, '_remote_matches_local', return_value=False):
            result = retrier.push_with_retry('main')

        assert not result.success
        assert result.classification == PushClassification.RETRYABLE
        assert push.call_count == 4
        assert result.attempt_count == 4
        assert result.message == "Push failed after 4 attempt(s)"
        assert "git push origin main" in " ".join(result.guidance)
        # No sleep after the final attempt
        assert no_sleep.call_count == 3

    def test_max_retries_override(self, retrier, no_sleep):
        with patch.object(retrier, '_push', side_effect=push_error(TRANSIENT)) as push, \
                patch.object(retrier, '_remote_matches_local', return_value=False):
            result = retrier.push_with_retry('main', max_retries=2, base_delay_ms=100)

        assert push.call_count == 2
        assert result.total_backoff_ms == 100
        assert no_sleep.call_args_list == [call(0.1)]

    def test_push_that_landed_counts_as_success(self, retrier, no_sleep):
        with patch.object(retrier, '_push', side_effect=push_error(TRANSIENT)) as push, \
                patch.object(retrier, '_remote_matches_local', return_value=True):
            result = retrier.push_with_retry('main')

        assert result.success
        assert result.attempt_count == 1
        assert push.call_count == 1
        no_sleep.assert_not_called()

    def test_dry_run_does_not_push(self, git_repo, mock_config, no_sleep):
        retrier = PushRetrier(git_repo.working_dir, {**mock_config, 'dry_run': True}, sleep=no_sleep)
        with patch.object(retrier, '_push') as push:
            result = retrier.push_with_retry('main')
        assert result.success
        assert result.dry_run
        push.assert_not_called()

    def test_remote_matches_local(self, git_repo, mock_config):
        retrier = PushRetrier(git_repo.working_dir, mock_config)
        assert retrier._remote_matches_local('main') is True
        write_and_commit(git_repo, {"ahead.txt": "x\n"}, "Ahead")
        assert retrier._remote_matches_local('main') is False
