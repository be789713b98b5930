"""Tests for BranchCatalog and the shared RepoService helpers"""
import pytest

from git_branch_shepherd.exceptions import (
    NetworkUnreachableError,
    NotARepositoryError,
    RefNotFoundError,
)
from git_branch_shepherd.models.branch import BranchLocation
from git_branch_shepherd.services.git import BranchCatalog, MergePlanner, RepoService
from conftest import push_branch, write_and_commit


@pytest.fixture
def catalog_repo(git_repo, session_branch):
    """Remote-only session branch, a local-only branch and one on both sides."""
    repo = git_repo
    repo.git.checkout('-b', 'docs/readme', 'main')
    write_and_commit(repo, {"README.md": "# Better readme\n"}, "Improve readme")
    repo.git.checkout('main')
    push_branch(repo, 'release/1.0', {"VERSION": "1.0\n"}, "Release 1.0", keep_local=True)
    return repo


class TestRepoService:

    def test_not_a_repository(self, temp_dir, mock_config):
        service = RepoService(str(temp_dir), mock_config)
        with pytest.raises(NotARepositoryError):
            service._get_repo()

    def test_prefers_remote_ref(self, git_repo, session_branch, mock_config):
        service = RepoService(git_repo.working_dir, mock_config)
        assert service.resolve_branch_ref(session_branch) == f"origin/{session_branch}"
        assert service.resolve_branch_ref(f"origin/{session_branch}") == f"origin/{session_branch}"

    def test_falls_back_to_local(self, catalog_repo, mock_config):
        service = RepoService(catalog_repo.working_dir, mock_config)
        assert service.resolve_branch_ref('docs/readme') == 'docs/readme'

    def test_missing_branch(self, git_repo, mock_config):
        service = RepoService(git_repo.working_dir, mock_config)
        with pytest.raises(RefNotFoundError) as exc_info:
            service.resolve_branch_ref('claude/gone')
        assert "git fetch origin --prune" in exc_info.value.recovery

    def test_protected_and_ephemeral(self, git_repo, mock_config):
        service = RepoService(git_repo.working_dir, mock_config)
        assert service.is_protected('main')
        assert service.is_protected('master')
        assert not service.is_protected('claude/x')
        assert service.is_ephemeral('claude/x')
        assert not service.is_ephemeral('feature/x')

    def test_remote_url(self, git_repo, origin_repo, mock_config):
        service = RepoService(git_repo.working_dir, mock_config)
        assert service.remote_url() == str(origin_repo.git_dir)

    def test_remote_url_without_remote(self, git_repo, mock_config):
        service = RepoService(git_repo.working_dir, {**mock_config, 'remote_name': 'upstream'})
        assert service.remote_url() is None


class TestListBranches:

    def test_locations_and_grouping(self, catalog_repo, mock_config):
        catalog = BranchCatalog(catalog_repo.working_dir, mock_config)
        listing = catalog.list_branches()

        assert [b.name for b in listing.ephemeral] == ['claude/feature-x']
        assert [b.name for b in listing.others] == ['docs/readme', 'release/1.0']
        assert listing.find('claude/feature-x').location == BranchLocation.REMOTE
        assert listing.find('docs/readme').location == BranchLocation.LOCAL
        assert listing.find('release/1.0').location == BranchLocation.BOTH

    def test_excludes_target_and_remote_head(self, catalog_repo, mock_config):
        catalog = BranchCatalog(catalog_repo.working_dir, mock_config)
        names = catalog.list_branches().names()
        assert 'main' not in names
        assert 'HEAD' not in names
        assert 'origin' not in names

    def test_last_commit_summary(self, catalog_repo, mock_config):
        catalog = BranchCatalog(catalog_repo.working_dir, mock_config)
        branch = catalog.list_branches().find('claude/feature-x')
        assert "Document feature" in branch.last_commit_summary

    def test_last_commit_summary_unknown_ref(self, git_repo, mock_config):
        catalog = BranchCatalog(git_repo.working_dir, mock_config)
        assert catalog.last_commit_summary('no-such-ref') == "N/A"

    def test_only_target(self, git_repo, mock_config):
        catalog = BranchCatalog(git_repo.working_dir, mock_config)
        listing = catalog.list_branches()
        assert len(listing) == 0

    def test_fetch_picks_up_new_remote_branches(self, git_repo, origin_repo, temp_dir, mock_config):
        # Another clone pushes a branch this clone has never seen
        other = origin_repo.clone(str(temp_dir / "other"))
        writer = other.config_writer()
        writer.set_value("user", "name", "Other")
        writer.set_value("user", "email", "other@example.com")
        writer.release()
        push_branch(other, 'claude/from-elsewhere', {"x.txt": "x\n"}, "Elsewhere")
        other.close()

        catalog = BranchCatalog(git_repo.working_dir, mock_config)
        assert catalog.list_ephemeral() == []
        assert [b.name for b in catalog.list_ephemeral(fetch=True)] == ['claude/from-elsewhere']

    def test_unreachable_remote(self, git_repo, session_branch, temp_dir, mock_config):
        git_repo.git.remote('set-url', 'origin', str(temp_dir / "gone.git"))

        with pytest.raises(NetworkUnreachableError) as exc_info:
            BranchCatalog(git_repo.working_dir, mock_config).list_branches(fetch=True)
        assert exc_info.value.operation == "fetch"
        assert "git fetch origin" in exc_info.value.recovery

        with pytest.raises(NetworkUnreachableError):
            MergePlanner(git_repo.working_dir, mock_config).plan(session_branch, refresh=True)

        # Without a refresh the cached tracking refs still answer
        assert MergePlanner(git_repo.working_dir, mock_config).plan(session_branch).ahead_count == 2


class TestListMerged:

    def test_local_merged(self, catalog_repo, mock_config):
        catalog_repo.git.branch('claude/done', 'main')
        catalog = BranchCatalog(catalog_repo.working_dir, mock_config)
        merged = catalog.list_merged()
        assert 'claude/done' in merged
        assert 'docs/readme' not in merged
        assert 'main' not in merged

    def test_remote_merged(self, catalog_repo, mock_config):
        catalog_repo.git.push('origin', 'main:refs/heads/claude/done')
        catalog_repo.git.fetch('origin')
        catalog = BranchCatalog(catalog_repo.working_dir, mock_config)
        merged = catalog.list_merged(location=BranchLocation.REMOTE)
        assert merged == ['claude/done']
