"""Prune report formatting utilities."""

from twiggit.constants import REASON_DRY_RUN, SkipCategory
from twiggit.models.prune import PruneReport, PruneWorktreeOutcome

CATEGORY_TITLES = {
    SkipCategory.CURRENT: "Skipped (current worktree)",
    SkipCategory.PROTECTED: "Skipped (protected branch)",
    SkipCategory.UNMERGED: "Skipped (not merged)",
    SkipCategory.SKIPPED: "Skipped",
}


def format_outcome(outcome: PruneWorktreeOutcome) -> str:
    """One bullet line for an outcome."""
    line = f"  • {outcome.project_name}/{outcome.branch_name or '(detached)'}"
    if outcome.deleted:
        if outcome.branch_deleted:
            line += " (worktree and branch)"
        elif outcome.error is not None:
            line += f" (branch not deleted: {outcome.error})"
    else:
        if outcome.skip_reason:
            line += f": {outcome.skip_reason}"
        if outcome.error is not None:
            line += f" ({outcome.error})"
    return line


def format_summary(report: PruneReport, dry_run: bool = False) -> str:
    if dry_run:
        would_delete = sum(1 for o in report.skipped if o.skip_reason == REASON_DRY_RUN)
        return f"Dry run: {would_delete} worktree(s) would be deleted, nothing was changed"
    summary = f"Deleted {report.total_deleted} worktree(s), skipped {report.total_skipped}"
    if report.total_branches_deleted:
        summary += f", deleted {report.total_branches_deleted} branch(es)"
    return summary
