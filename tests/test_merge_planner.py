"""Tests for MergePlanner"""
import pytest

from git_branch_shepherd.exceptions import RefNotFoundError
from git_branch_shepherd.models.merge import ChangeKind
from git_branch_shepherd.services.git import MergePlanner
from git_branch_shepherd.services.git.merge_planner import parse_name_status
from conftest import push_branch, repo_snapshot, write_and_commit


class TestParseNameStatus:

    def test_kinds(self):
        output = "A\0new.txt\0M\0changed.txt\0D\0gone.txt\0R087\0old.txt\0new/place.txt\0T\0link\0"
        changes = parse_name_status(output)
        assert [c.kind for c in changes] == [
            ChangeKind.ADDED,
            ChangeKind.MODIFIED,
            ChangeKind.DELETED,
            ChangeKind.RENAMED,
            ChangeKind.UNKNOWN,
        ]
        rename = changes[3]
        assert rename.path == "new/place.txt"
        assert rename.previous_path == "old.txt"

    def test_blank_output(self):
        assert parse_name_status("") == []

    def test_paths_with_tabs_and_newlines(self):
        changes = parse_name_status("M\0odd\tname.txt\0A\0two\nlines.txt\0")
        assert [c.path for c in changes] == ["odd\tname.txt", "two\nlines.txt"]


class TestPlan:

    def test_ahead_of_target(self, git_repo, session_branch, mock_config):
        planner = MergePlanner(git_repo.working_dir, mock_config)
        plan = planner.plan(session_branch)

        assert plan.source == session_branch
        assert plan.source_ref == f"origin/{session_branch}"
        assert plan.ahead_count == 2
        assert plan.behind_count == 0
        assert [c.path for c in plan.changed_files] == ["docs/usage.md", "feature.txt"]
        assert all(c.kind == ChangeKind.ADDED for c in plan.changed_files)
        assert len(plan.commits) == 2
        assert "Document feature" in plan.commits[0]
        assert not plan.is_noop

    def test_behind_target(self, git_repo, session_branch, mock_config):
        write_and_commit(git_repo, {"main.txt": "main\n"}, "Main moves on")
        planner = MergePlanner(git_repo.working_dir, mock_config)
        plan = planner.plan(session_branch)

        assert plan.ahead_count == 2
        assert plan.behind_count == 1
        # Diff is against the merge base, so main's own change is not listed
        assert "main.txt" not in [c.path for c in plan.changed_files]

    def test_nothing_to_merge(self, git_repo, mock_config):
        git_repo.git.push('origin', 'main:refs/heads/claude/empty')
        planner = MergePlanner(git_repo.working_dir, mock_config)
        plan = planner.plan('claude/empty')
        assert plan.is_noop
        assert plan.changed_files == []
        assert plan.commits == []

    def test_source_equals_target(self, git_repo, mock_config):
        plan = MergePlanner(git_repo.working_dir, mock_config).plan('main')
        assert plan.ahead_count == 0
        assert plan.behind_count == 0
        assert plan.changed_files == []

    def test_missing_source(self, git_repo, mock_config):
        with pytest.raises(RefNotFoundError):
            MergePlanner(git_repo.working_dir, mock_config).plan('claude/nope')

    def test_commit_preview_limit(self, git_repo, mock_config):
        git_repo.git.checkout('-b', 'claude/many', 'main')
        for i in range(5):
            write_and_commit(git_repo, {f"f{i}.txt": f"{i}\n"}, f"Commit {i}")
        git_repo.git.checkout('main')

        planner = MergePlanner(git_repo.working_dir, {**mock_config, 'commits_preview': 3})
        plan = planner.plan('claude/many')
        assert plan.ahead_count == 5
        assert len(plan.commits) == 3
        assert len(plan.changed_files) == 5

    def test_preview_pages_files(self, git_repo, mock_config):
        git_repo.git.checkout('-b', 'claude/wide', 'main')
        write_and_commit(git_repo, {f"file{i:02}.txt": "x\n" for i in range(25)}, "Many files")
        git_repo.git.checkout('main')

        plan = MergePlanner(git_repo.working_dir, mock_config).plan('claude/wide')
        shown, remaining = plan.preview(20)
        assert len(shown) == 20
        assert remaining == 5
        assert len(plan.changed_files) == 25

    def test_plan_is_read_only(self, git_repo, session_branch, mock_config):
        before = repo_snapshot(git_repo)
        MergePlanner(git_repo.working_dir, mock_config).plan(session_branch)
        assert repo_snapshot(git_repo) == before

    def test_non_ascii_paths_are_not_quoted(self, git_repo, mock_config):
        write_and_commit(git_repo, {"café.json": '{"v": 1}\n'}, "Add café config")
        git_repo.git.push('origin', 'main')
        push_branch(git_repo, 'claude/accents',
                    {"café.json": '{"v": 2}\n', "naïve.txt": "plain\n", "with space.md": "x\n"},
                    "Touch accented files")

        plan = MergePlanner(git_repo.working_dir, mock_config).plan('claude/accents')

        assert {change.path for change in plan.changed_files} == {
            "café.json", "naïve.txt", "with space.md",
        }
        kinds = {change.path: change.kind for change in plan.changed_files}
        assert kinds["café.json"] == ChangeKind.MODIFIED
        assert kinds["naïve.txt"] == ChangeKind.ADDED
