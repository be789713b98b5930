"""Tests for DisplayService"""
from git_branch_shepherd.models.branch import BranchLocation
from git_branch_shepherd.models.deletion import DeletionVerdict
from git_branch_shepherd.models.merge import ChangeKind, FileChange, MergePlan
from git_branch_shepherd.services.display_service import format_file_change
from conftest import display_text


def test_format_file_change():
    assert format_file_change(FileChange("a.txt", ChangeKind.ADDED)).endswith("a.txt")
    renamed = format_file_change(FileChange("new.txt", ChangeKind.RENAMED, "old.txt"))
    assert "old.txt → new.txt" in renamed


def test_plan_pages_files(quiet_display):
    quiet_display.files_page_size = 3
    plan = MergePlan(
        source="claude/x", target="main", source_ref="origin/claude/x",
        ahead_count=1,
        changed_files=[FileChange(f"f{i}.txt", ChangeKind.MODIFIED) for i in range(5)],
        commits=["abc1234 [WIP] Try things"],
    )
    quiet_display.plan(plan)
    text = display_text(quiet_display)
    assert "Files changed (5 total)" in text
    assert "f2.txt" in text
    assert "f3.txt" not in text
    assert "... and 2 more file(s)" in text
    assert "[WIP] Try things" in text


def test_refused_deletion_shows_steps(quiet_display):
    verdict = DeletionVerdict(
        branch="claude/x", target_ref="main", location=BranchLocation.LOCAL,
        message="'claude/x' still has commits not in main",
        recovery_steps=["git log main..claude/x"],
    )
    quiet_display.deletion(verdict)
    text = display_text(quiet_display)
    assert "Not deleted" in text
    assert "git log main..claude/x" in text
