"""Command-line argument parsing for git-branch-shepherd."""

import argparse
from typing import List, Optional

from git_branch_shepherd.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-branch-shepherd",
        description="Merge, push and clean up short-lived branches against one target branch",
        epilog="Environment: TARGET_BRANCH, DRY_RUN, AUTO_PUSH, GH_FILES_PAGE_SIZE, "
        "GITHUB_TOKEN (needed for cleanup-merged; scopes: repo or public_repo)",
    )
    parser.add_argument("--version", action="version", version=f"git-branch-shepherd {__version__}")
    parser.add_argument("-C", "--repo", default=".", help="Path to the repository (default: .)")
    parser.add_argument("--target", help="Target branch (default: $TARGET_BRANCH or main)")
    parser.add_argument("--remote", help="Remote name (default: origin)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Preview mode - report what would happen without changing anything",
    )
    parser.add_argument(
        "--no-auto-push",
        dest="auto_push",
        action="store_false",
        default=None,
        help="Do not push the target branch after a merge",
    )
    parser.add_argument(
        "--session-prefix",
        action="append",
        dest="session_prefixes",
        metavar="PREFIX",
        help="Ephemeral branch prefix (repeatable, default: claude/)",
    )
    parser.add_argument(
        "--protected", nargs="*", help="Additional protected branches (never deleted)"
    )
    parser.add_argument(
        "--stash",
        dest="stash_before_merge",
        action="store_true",
        default=None,
        help="Stash uncommitted changes before merging instead of refusing",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    list_cmd = commands.add_parser("list", help="List branches, session branches first")
    list_cmd.add_argument("--fetch", action="store_true", help="Fetch from the remote first")

    plan = commands.add_parser("plan", help="Show what merging a branch would bring in")
    plan.add_argument("branch")
    plan.add_argument("--fetch", action="store_true", help="Fetch from the remote first")

    probe = commands.add_parser("probe", help="Check a branch for merge conflicts without merging")
    probe.add_argument("branch")

    merge = commands.add_parser("merge", help="Merge (or rebase) a branch into the target")
    merge.add_argument("branch")
    merge.add_argument(
        "--rebase", action="store_true", help="Rebase the target onto the branch instead"
    )

    push = commands.add_parser("push", help="Push a branch with retry and backoff")
    push.add_argument("branch", nargs="?", help="Branch to push (default: target)")
    push.add_argument("--max-retries", type=int, help="Total push attempts (default: 4)")

    delete = commands.add_parser("delete", help="Delete a branch once verified as merged")
    delete.add_argument("branch")
    delete.add_argument(
        "--where",
        choices=["local", "remote", "both"],
        default="both",
        help="Which copy to delete (default: both)",
    )
    delete.add_argument(
        "--force",
        action="store_true",
        help="Delete even if not verified as merged (protected branches are still refused)",
    )

    update = commands.add_parser(
        "update", help="Bring a branch (or every local branch) up to date with the target"
    )
    update.add_argument("branch", nargs="?", help="Branch to update")
    update.add_argument(
        "--all", dest="all_branches", action="store_true",
        help="Update every local branch except the target and protected branches",
    )
    update.add_argument(
        "--rebase", action="store_true", help="Rebase onto the target instead of merging it in"
    )

    merged = commands.add_parser("merged", help="List branches already merged into the target")
    merged.add_argument("--remote-branches", action="store_true", help="List remote branches")

    commands.add_parser("session", help="Interactive merge & cleanup loop for session branches")

    cleanup = commands.add_parser(
        "cleanup-merged", help="Delete GitHub branches of already merged pull requests"
    )
    cleanup.add_argument(
        "prefix", nargs="?", default="", help="Only branches starting with PREFIX (default: all)"
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
