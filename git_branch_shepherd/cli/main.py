"""Command-line interface for git-branch-shepherd"""

import argparse
import sys
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from git_branch_shepherd.cli.args import parse_args
from git_branch_shepherd.cli.prompts import RichPrompter
from git_branch_shepherd.config import Config
from git_branch_shepherd.core.bulk_cleanup import BulkCleanup
from git_branch_shepherd.core.engine import BranchEngine
from git_branch_shepherd.core.prompts import AutoConfirmPrompter, WorkflowPrompter
from git_branch_shepherd.core.session_cleanup import SessionCleanupOrchestrator
from git_branch_shepherd.core.workflows import MergeWorkflow, UpdateWorkflow
from git_branch_shepherd.exceptions import BranchShepherdError
from git_branch_shepherd.models.branch import BranchLocation
from git_branch_shepherd.models.merge import MergeStrategy
from git_branch_shepherd.models.workflow import WorkflowSignal
from git_branch_shepherd.services.display_service import DisplayService
from git_branch_shepherd.logging_config import setup_logging

console = Console()

Handler = Callable[[BranchEngine, argparse.Namespace, WorkflowPrompter, DisplayService], WorkflowSignal]

LOCATIONS = {
    "local": BranchLocation.LOCAL,
    "remote": BranchLocation.REMOTE,
    "both": BranchLocation.BOTH,
}


def cmd_list(engine, args, prompter, display) -> WorkflowSignal:
    display.branch_listing(engine.list_branches(fetch=args.fetch))
    return WorkflowSignal.CONTINUE


def cmd_plan(engine, args, prompter, display) -> WorkflowSignal:
    display.plan(engine.plan(args.branch, refresh=args.fetch))
    return WorkflowSignal.CONTINUE


def cmd_probe(engine, args, prompter, display) -> WorkflowSignal:
    report = engine.probe(args.branch)
    display.conflicts(report)
    return WorkflowSignal.ERROR if report.has_conflicts else WorkflowSignal.CONTINUE


def cmd_merge(engine, args, prompter, display) -> WorkflowSignal:
    strategy = MergeStrategy.REBASE if args.rebase else MergeStrategy.MERGE
    return MergeWorkflow(engine, prompter, display).run(args.branch, strategy)


def cmd_update(engine, args, prompter, display) -> WorkflowSignal:
    strategy = MergeStrategy.REBASE if args.rebase else MergeStrategy.MERGE
    workflow = UpdateWorkflow(engine, prompter, display)
    if args.all_branches == bool(args.branch):
        display.error("Name one branch to update, or use --all")
        return WorkflowSignal.ERROR
    if args.all_branches:
        return workflow.run_all(strategy)
    return workflow.run(args.branch, strategy)


def cmd_push(engine, args, prompter, display) -> WorkflowSignal:
    result = engine.push(args.branch, max_retries=args.max_retries)
    display.push_result(result)
    return WorkflowSignal.CONTINUE if result.success else WorkflowSignal.ERROR


def cmd_delete(engine, args, prompter, display) -> WorkflowSignal:
    location = LOCATIONS[args.where]
    verdict = engine.delete(args.branch, location)
    if verdict.refused and args.force:
        if not prompter.confirm_risky(
            f"Force delete '{args.branch}' ({args.where}) even though it is not merged?"
        ):
            display.deletion(verdict)
            display.warn("Force delete cancelled")
            return WorkflowSignal.CANCEL
        verdict = engine.delete(args.branch, location, forced=True)
    display.deletion(verdict)
    return WorkflowSignal.ERROR if verdict.refused else WorkflowSignal.CONTINUE


def cmd_merged(engine, args, prompter, display) -> WorkflowSignal:
    location = BranchLocation.REMOTE if args.remote_branches else BranchLocation.LOCAL
    names = engine.list_merged(location)
    if not names:
        display.info(f"No branches merged into {engine.target}")
    for name in names:
        console.print(f"  {escape(name)}")
    return WorkflowSignal.CONTINUE


def cmd_session(engine, args, prompter, display) -> WorkflowSignal:
    return SessionCleanupOrchestrator(engine, prompter, display).run_cleanup_loop()


def cmd_cleanup_merged(engine, args, prompter, display) -> WorkflowSignal:
    report = BulkCleanup(engine, prompter, display).run(args.prefix)
    return WorkflowSignal.ERROR if report.failed else WorkflowSignal.CONTINUE


COMMANDS: Dict[str, Handler] = {
    "list": cmd_list,
    "plan": cmd_plan,
    "probe": cmd_probe,
    "merge": cmd_merge,
    "update": cmd_update,
    "push": cmd_push,
    "delete": cmd_delete,
    "merged": cmd_merged,
    "session": cmd_session,
    "cleanup-merged": cmd_cleanup_merged,
}


def build_config(args: argparse.Namespace) -> Config:
    """Environment first, command-line flags on top."""
    protected = None
    if args.protected:
        protected = ["main", "master"] + list(args.protected)
    return Config.from_env(
        target_branch=args.target,
        remote_name=args.remote,
        dry_run=args.dry_run,
        auto_push=args.auto_push,
        stash_before_merge=args.stash_before_merge,
        session_prefixes=args.session_prefixes,
        protected_branches=protected,
        assume_yes=args.yes or None,
        verbose=args.verbose or None,
        debug=args.debug or None,
    )


def exit_code(signal: WorkflowSignal) -> int:
    return 1 if signal == WorkflowSignal.ERROR else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

    engine = None
    try:
        config = build_config(parsed_args)
        if config.debug:
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                if key == "github_token" and value:
                    value = "***"
                console.print(f"  {key}: {escape(str(value))}")

        engine = BranchEngine(parsed_args.repo, config)
        prompter: WorkflowPrompter
        if config.assume_yes:
            prompter = AutoConfirmPrompter(answer=True)
        else:
            prompter = RichPrompter(console)
        display = DisplayService(console, files_page_size=config.files_page_size)

        handler = COMMANDS[parsed_args.command]
        return exit_code(handler(engine, parsed_args, prompter, display))
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except BranchShepherdError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        for step in e.recovery:
            console.print(f"  {escape(step)}")
        if parsed_args.debug:
            console.print_exception()
        return 1
    except ValueError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        return 1
    finally:
        if engine is not None:
            engine.close()


if __name__ == "__main__":
    sys.exit(main())
