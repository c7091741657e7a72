"""Display service for worktree lists, status and prune reports"""
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from twiggit.constants import CLI_COLORS, WORKTREE_COLUMNS, SkipCategory
from twiggit.formatters import (
    CATEGORY_TITLES,
    format_branch,
    format_changes,
    format_clean,
    format_flags,
    format_outcome,
    format_summary,
    format_sync,
)
from twiggit.logging_config import get_logger
from twiggit.models.prune import PruneReport
from twiggit.models.resolution import ResolutionSuggestion
from twiggit.models.worktree import WorktreeRecord, WorktreeStatus
from twiggit.utils.paths import normalize_path

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, output: Optional[Console] = None, verbose: bool = False):
        self.console = output or console
        self.verbose = verbose

    def display_worktree_table(
        self,
        worktrees: Sequence[Tuple[str, WorktreeRecord]],
        current_path: Optional[str] = None,
    ) -> None:
        """Display a table of (project name, worktree) rows."""
        if not worktrees:
            self.console.print("No worktrees found")
            return

        table = Table()
        for col in WORKTREE_COLUMNS:
            table.add_column(col.label, width=col.width or None)
        if self.verbose:
            table.add_column("Flags")

        current_root = normalize_path(current_path) if current_path else None
        for project_name, record in worktrees:
            row = [
                project_name,
                format_branch(record, current_root),
                record.short_commit,
                record.path,
            ]
            if self.verbose:
                row.append(format_flags(record))
            table.add_row(*row, style="yellow" if record.is_prunable else None)

        self.console.print(table)

    def display_status(self, status: WorktreeStatus) -> None:
        repo_status = status.repository_status
        self.console.print(f"[bold]{status.project_name}/{status.worktree.branch or '(detached)'}[/bold]")
        self.console.print(f"  Path:    {status.worktree.path}")
        self.console.print(f"  Commit:  {status.worktree.short_commit or repo_status.commit[:7]}")
        self.console.print(f"  State:   {format_clean(status.is_clean)} {format_changes(status)}".rstrip())
        self.console.print(f"  Sync:    {format_sync(status)}")

        if self.verbose:
            for label, files in (
                ("Modified", repo_status.modified),
                ("Staged", repo_status.staged),
                ("Deleted", repo_status.deleted),
                ("Untracked", repo_status.untracked),
            ):
                for path in files:
                    self.console.print(f"  {label}: {path}")

    def display_prune_report(self, report: PruneReport, dry_run: bool = False) -> None:
        """Display prune results grouped by category, then a summary line."""
        if report.deleted:
            self.console.print(f"[{CLI_COLORS['deleted']}]Deleted[/{CLI_COLORS['deleted']}]")
            for outcome in report.deleted:
                self.console.print(format_outcome(outcome))

        for category, outcomes in (
            (SkipCategory.CURRENT, report.current_skipped),
            (SkipCategory.PROTECTED, report.protected_skipped),
            (SkipCategory.UNMERGED, report.unmerged_skipped),
            (SkipCategory.SKIPPED, report.skipped),
        ):
            if not outcomes:
                continue
            color = CLI_COLORS[category]
            self.console.print(f"[{color}]{CATEGORY_TITLES[category]}[/{color}]")
            for outcome in outcomes:
                self.console.print(format_outcome(outcome))

        self.console.print(format_summary(report, dry_run=dry_run))

    def display_path(self, path: str) -> None:
        """Print a bare path for shell wrappers."""
        self.console.print(path, markup=False, highlight=False, soft_wrap=True)

    def display_suggestions(self, suggestions: List[ResolutionSuggestion]) -> None:
        for suggestion in suggestions:
            self.console.print(suggestion.text, markup=False, highlight=False, soft_wrap=True)
