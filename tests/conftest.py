"""Pytest fixtures for git-branch-shepherd tests"""
import io
import tempfile
from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock

import pytest
import git
from rich.console import Console

from git_branch_shepherd.core.prompts import WorkflowPrompter
from git_branch_shepherd.models.branch import Branch
from git_branch_shepherd.services.display_service import DisplayService

SESSION_BRANCH = "claude/feature-x"
CONFLICT_BRANCH = "claude/feature-y"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_config():
    """Create a configuration dictionary for tests."""
    return {
        'verbose': False,
        'debug': False,
        'target_branch': 'main',
        'remote_name': 'origin',
        'protected_branches': ['main', 'master'],
        'session_prefixes': ['claude/'],
        'dry_run': False,
        'auto_push': True,
        'stash_before_merge': False,
        'max_retries': 4,
        'base_delay_ms': 2000,
        'network_timeout': 60,
        'github_token': 'test_token_for_testing',
        'max_prs_to_fetch': 500
    }


def _configure_identity(repo: git.Repo) -> None:
    writer = repo.config_writer()
    writer.set_value("user", "name", "Test User")
    writer.set_value("user", "email", "test@example.com")
    writer.set_value("commit", "gpgsign", "false")
    writer.release()


def write_and_commit(repo: git.Repo, files: dict, message: str) -> str:
    """Write ``files`` (path -> content) into the work tree and commit them."""
    repo_path = Path(repo.working_dir)
    for name, content in files.items():
        path = repo_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    repo.index.add(list(files))
    return repo.index.commit(message).hexsha


@pytest.fixture
def commit_file():
    """Helper that commits files into a repository."""
    return write_and_commit


@pytest.fixture
def origin_repo(temp_dir):
    """Bare repository acting as the 'origin' remote."""
    origin = git.Repo.init(temp_dir / "origin.git", bare=True)
    origin.git.symbolic_ref("HEAD", "refs/heads/main")
    yield origin
    origin.close()


@pytest.fixture
def git_repo(temp_dir, origin_repo):
    """Create a real Git repository with 'main' pushed to a bare origin."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    _configure_identity(repo)

    write_and_commit(repo, {"README.md": "# Test Repository\n"}, "Initial commit")
    repo.git.branch('-M', 'main')

    repo.create_remote('origin', str(origin_repo.git_dir))
    repo.git.push('-u', 'origin', 'main')
    repo.git.remote('set-head', 'origin', 'main')

    yield repo

    repo.close()


def push_branch(repo: git.Repo, branch: str, files: dict, message: str,
                keep_local: bool = False) -> None:
    """Create ``branch`` from main, commit, push it, and return to main."""
    repo.git.checkout('-b', branch, 'main')
    write_and_commit(repo, files, message)
    repo.git.push('origin', branch)
    repo.git.checkout('main')
    if not keep_local:
        repo.git.branch('-D', branch)


@pytest.fixture
def session_branch(git_repo):
    """Remote-only session branch two commits ahead of main."""
    repo = git_repo
    repo.git.checkout('-b', SESSION_BRANCH, 'main')
    write_and_commit(repo, {"feature.txt": "Feature content\n"}, "Add feature")
    write_and_commit(repo, {"docs/usage.md": "Usage\n"}, "Document feature")
    repo.git.push('origin', SESSION_BRANCH)
    repo.git.checkout('main')
    repo.git.branch('-D', SESSION_BRANCH)
    return SESSION_BRANCH


@pytest.fixture
def conflicting_branch(git_repo):
    """Session branch and main both change config.json differently."""
    repo = git_repo
    write_and_commit(repo, {"config.json": '{"mode": "base"}\n'}, "Add config")
    repo.git.push('origin', 'main')

    push_branch(repo, CONFLICT_BRANCH, {"config.json": '{"mode": "branch"}\n'},
                "Change config on branch")

    write_and_commit(repo, {"config.json": '{"mode": "main"}\n'}, "Change config on main")
    repo.git.push('origin', 'main')
    return CONFLICT_BRANCH


def repo_snapshot(repo: git.Repo) -> dict:
    """Everything a read-only operation must leave untouched."""
    return {
        "head": repo.git.rev_parse('HEAD'),
        "symbolic": repo.git.rev_parse('--abbrev-ref', 'HEAD'),
        "status": repo.git.status('--porcelain'),
        "refs": repo.git.for_each_ref('--format=%(refname) %(objectname)'),
    }


def remote_heads(origin: git.Repo) -> List[str]:
    output = origin.git.for_each_ref('--format=%(refname)', 'refs/heads')
    return [line[len('refs/heads/'):] for line in output.splitlines() if line]


class ScriptedPrompter(WorkflowPrompter):
    """Replays canned answers and records every question asked."""

    def __init__(self, selections: Optional[list] = None, confirms: Optional[list] = None,
                 risky: Optional[list] = None):
        self.selections = list(selections or [])
        self.confirms = list(confirms or [])
        self.risky = list(risky or [])
        self.asked: List[str] = []
        self.offered: List[List[str]] = []

    def select_branch(self, branches: List[Branch], prompt: str) -> Optional[str]:
        self.offered.append([branch.name for branch in branches])
        return self.selections.pop(0) if self.selections else None

    def confirm(self, message: str, default: bool = False) -> bool:
        self.asked.append(message)
        return self.confirms.pop(0) if self.confirms else False

    def confirm_risky(self, message: str) -> bool:
        self.asked.append(message)
        return self.risky.pop(0) if self.risky else False


@pytest.fixture
def quiet_display():
    """DisplayService writing into a buffer instead of the terminal."""
    return DisplayService(Console(file=io.StringIO(), width=120))


def display_text(display: DisplayService) -> str:
    return display.console.file.getvalue()


@pytest.fixture
def no_sleep():
    """Backoff sleep that records delays instead of waiting."""
    return Mock()


@pytest.fixture
def mock_pull():
    """Factory for PyGithub-like pull request objects."""
    def _make(number, head_ref, merged=True, title="Some change"):
        pr = Mock()
        pr.number = number
        pr.title = title
        pr.head = Mock()
        pr.head.ref = head_ref
        pr.merged_at = Mock() if merged else None
        if merged:
            pr.merged_at.isoformat.return_value = "2024-01-15T10:00:00"
        return pr
    return _make


@pytest.fixture
def mock_github_service():
    """Mock GitHubService already pointed at test/repo."""
    service = Mock()
    service.github_repo = "test/repo"
    service.is_configured = True
    service.list_merged_pull_requests = Mock(return_value=[])
    service.branch_exists = Mock(return_value=True)
    service.delete_branch = Mock(return_value=True)
    return service
