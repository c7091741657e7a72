"""Command-line entry point for twiggit"""

import sys
from typing import Optional, Sequence

from rich.console import Console

from twiggit.cli.args import parse_args
from twiggit.config import load_config
from twiggit.constants import MAIN_IDENTIFIER, SkipCategory
from twiggit.core import Twiggit
from twiggit.exceptions import ErrorKind, TwiggitError, UnsafeOperationError, ValidationError
from twiggit.logging_config import get_logger, setup_logging
from twiggit.models.context import ContextType
from twiggit.models.prune import PruneRequest
from twiggit.models.resolution import PathType
from twiggit.services.display_service import DisplayService
from twiggit.utils.paths import is_path_under, normalize_path

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_CODES = {
    ErrorKind.BACKEND_FAILURE: 1,
    ErrorKind.VALIDATION: 2,
    ErrorKind.NOT_FOUND: 3,
    ErrorKind.AMBIGUOUS: 4,
    ErrorKind.CONFLICT: 5,
    ErrorKind.UNSAFE: 6,
}


def cmd_create(app: Twiggit, args, display: DisplayService) -> int:
    context = app.current_context()
    result = app.worktrees.create_worktree(
        args.project, args.branch, args.source, context=context, deadline=app.deadline()
    )
    console.print(f"[green]Created worktree for {result.worktree.branch}[/green]")
    if result.copied_files:
        console.print(f"[dim]Copied mise config: {', '.join(result.copied_files)}[/dim]")
    if result.hook_result is not None:
        for failure in result.hook_result.failures:
            err_console.print(
                f"[yellow]Hook failed ({failure.exit_code}): {failure.command}[/yellow]", highlight=False
            )
            if failure.output:
                err_console.print(failure.output, markup=False, highlight=False)
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning: {warning}[/yellow]", highlight=False)
    display.display_path(result.path)
    return 0


def cmd_delete(app: Twiggit, args, display: DisplayService) -> int:
    context = app.current_context()
    if args.identifier.strip() == MAIN_IDENTIFIER:
        raise ValidationError("identifier", args.identifier, "the main repository cannot be deleted")

    result = app.resolver.resolve_identifier(context, args.identifier, deadline=app.deadline())
    if result.target_type == PathType.PROJECT:
        console.print(f"[yellow]No worktree for '{args.identifier}'; nothing to delete[/yellow]")
        return 0

    cwd = normalize_path(app.current_directory())
    if not args.force and is_path_under(normalize_path(result.resolved_path), cwd, allow_equal=True):
        raise UnsafeOperationError(
            result.resolved_path,
            "the current directory is inside this worktree",
            SkipCategory.CURRENT,
            ["Change to another directory first, or pass --force"],
        )

    app.worktrees.delete_worktree(
        result.resolved_path, force=args.force, context=context, deadline=app.deadline()
    )
    console.print(f"[green]Deleted worktree {result.project_name}/{result.branch_name}[/green]")
    return 0


def cmd_list(app: Twiggit, args, display: DisplayService) -> int:
    context = app.current_context()
    all_projects = args.all or (not args.project and not context.in_project)
    rows = app.worktrees.list_project_worktrees(
        args.project,
        context=context,
        all_projects=all_projects,
        include_main=args.include_main,
        deadline=app.deadline(),
    )
    current = context.repo_root if context.type == ContextType.WORKTREE else None
    display.display_worktree_table(rows, current_path=current)
    return 0


def cmd_status(app: Twiggit, args, display: DisplayService) -> int:
    context = app.current_context()
    if args.identifier:
        result = app.resolver.resolve_identifier(context, args.identifier, deadline=app.deadline())
        path = result.resolved_path
    elif context.in_project:
        path = context.repo_root
    else:
        raise ValidationError(
            "identifier", "", "required outside a project", ["Use 'twiggit status project/branch'"]
        )
    display.display_status(app.worktrees.get_worktree_status(path, deadline=app.deadline()))
    return 0


def cmd_cd(app: Twiggit, args, display: DisplayService) -> int:
    result = app.resolver.resolve_identifier(
        app.current_context(), args.identifier, deadline=app.deadline()
    )
    logger.debug(result.explanation)
    display.display_path(result.resolved_path)
    return 0


def cmd_prune(app: Twiggit, args, display: DisplayService) -> int:
    request = PruneRequest(
        context=app.current_context(),
        project_name=args.project,
        target=args.target,
        all_projects=args.all,
        force=args.force,
        dry_run=args.dry_run,
        delete_branches=args.delete_branches,
        deadline=app.deadline(),
    )
    report = app.pruner.prune(request)
    display.display_prune_report(report, dry_run=args.dry_run)
    if report.navigation_path:
        console.print(f"[dim]Project directory: {report.navigation_path}[/dim]")
    return 0


def cmd_complete(app: Twiggit, args, display: DisplayService) -> int:
    suggestions = app.resolver.get_resolution_suggestions(
        app.current_context(),
        args.partial,
        existing_only=args.existing_only,
        limit=args.limit,
        deadline=app.deadline(),
    )
    display.display_suggestions(suggestions)
    return 0


def cmd_config(app: Twiggit, args, display: DisplayService) -> int:
    for key, value in app.config.to_dict().items():
        console.print(f"{key}: {value}", markup=False, highlight=False)
    return 0


COMMANDS = {
    "create": cmd_create,
    "delete": cmd_delete,
    "list": cmd_list,
    "status": cmd_status,
    "cd": cmd_cd,
    "prune": cmd_prune,
    "complete": cmd_complete,
    "config": cmd_config,
}


def print_error(error: TwiggitError) -> None:
    err_console.print(f"[red]Error: {error}[/red]", highlight=False)
    for suggestion in error.suggestions:
        err_console.print(f"  [dim]→ {suggestion}[/dim]", highlight=False)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(list(argv) if argv is not None else None)
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

    try:
        config = load_config(
            parsed_args.config,
            verbose=parsed_args.verbose or None,
            debug=parsed_args.debug or None,
        )
    except ValueError as e:
        err_console.print(f"[red]Configuration error: {e}[/red]")
        return EXIT_CODES[ErrorKind.VALIDATION]

    try:
        app = Twiggit(config)
        display = DisplayService(console, verbose=parsed_args.verbose)
        return COMMANDS[parsed_args.command](app, parsed_args, display)
    except TwiggitError as e:
        print_error(e)
        if parsed_args.debug:
            err_console.print_exception()
        return EXIT_CODES[e.kind]
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
