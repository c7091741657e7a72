"""Command-line argument parsing for twiggit."""

import argparse
from typing import List, Optional

from twiggit.__version__ import __version__


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twiggit",
        description="Context-aware git worktree management",
        epilog="Identifiers are a branch of the current project, a project name, or 'project/branch'.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--config", metavar="PATH", help="Config file (default: search XDG and home)")
    parser.add_argument("--version", action="version", version=f"twiggit {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    create = subparsers.add_parser("create", help="Create a worktree for a branch")
    create.add_argument("branch", help="Branch to check out (created when missing)")
    create.add_argument("-p", "--project", help="Project (default: current project)")
    create.add_argument(
        "-s", "--source", help="Start point for a new branch (default: default_source_branch)"
    )

    delete = subparsers.add_parser("delete", help="Delete a worktree")
    delete.add_argument("identifier", help="Branch or 'project/branch' of the worktree")
    delete.add_argument(
        "-f", "--force", action="store_true",
        help="Delete even with uncommitted changes or from inside the worktree",
    )

    list_cmd = subparsers.add_parser("list", help="List worktrees")
    list_cmd.add_argument("-p", "--project", help="Project (default: current project)")
    list_cmd.add_argument("-a", "--all", action="store_true", help="List worktrees of all projects")
    list_cmd.add_argument(
        "--include-main", action="store_true", help="Include the main repository checkout"
    )

    status = subparsers.add_parser("status", help="Show the status of a worktree")
    status.add_argument("identifier", nargs="?", help="Worktree (default: the current one)")

    cd = subparsers.add_parser("cd", help="Print the path an identifier resolves to")
    cd.add_argument("identifier", help="Branch, project or 'project/branch'")

    prune = subparsers.add_parser("prune", help="Delete merged worktrees")
    prune.add_argument("target", nargs="?", help="Only this 'project/branch' worktree")
    prune.add_argument("-p", "--project", help="Project (default: current project)")
    prune.add_argument("-a", "--all", action="store_true", help="Prune every project")
    prune.add_argument(
        "-f", "--force", action="store_true", help="Delete worktrees with uncommitted changes"
    )
    prune.add_argument(
        "--dry-run", action="store_true",
        help="Preview mode - show what would be deleted without actually deleting",
    )
    prune.add_argument(
        "--delete-branches", action="store_true", help="Also delete the merged branches"
    )

    complete = subparsers.add_parser("complete", help="Print completion candidates")
    complete.add_argument("partial", nargs="?", default="", help="Text typed so far")
    complete.add_argument(
        "--existing-only", action="store_true", help="Only worktrees that exist on disk"
    )
    complete.add_argument(
        "--limit", type=positive_int, metavar="N", help="Maximum number of candidates"
    )

    subparsers.add_parser("config", help="Show the effective configuration")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
