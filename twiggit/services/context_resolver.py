"""Identifier resolution and completion suggestions."""

import os
from typing import Iterable, List, Optional

from twiggit.config import Config
from twiggit.constants import MAIN_IDENTIFIER
from twiggit.exceptions import AmbiguousError, NotFoundError, TwiggitError, ValidationError
from twiggit.logging_config import get_logger
from twiggit.models.context import Context
from twiggit.models.resolution import PathType, ResolutionResult, ResolutionSuggestion
from twiggit.services.git.backend import GitBackend
from twiggit.services.project_discovery import ProjectDiscovery
from twiggit.utils.deadline import Deadline
from twiggit.utils.paths import is_path_under, normalize_path
from twiggit.validation import (
    contains_path_traversal,
    is_project_branch_form,
    parse_project_branch,
    sanitize_path_component,
)

logger = get_logger(__name__)


class ContextResolver:
    """Turns user identifiers into exactly one path, or explains why it cannot."""

    def __init__(self, config: Config, discovery: ProjectDiscovery, git_backend: GitBackend):
        self.config = config
        self.discovery = discovery
        self.git = git_backend
        self.projects_dir = normalize_path(config.projects_dir)
        self.worktrees_dir = normalize_path(config.worktrees_dir)

    def resolve_identifier(
        self, context: Context, identifier: str, deadline: Optional[Deadline] = None
    ) -> ResolutionResult:
        """Resolve identifier relative to context.

        Order: explicit ``project/branch``; a branch of the context's project
        (worktree first, then the main repository when only the branch
        exists); a project name; a branch worktree of any project.

        Raises:
            ValidationError: If identifier is empty or malformed
            NotFoundError: If nothing matches
            AmbiguousError: If several projects have a worktree for the branch
        """
        name = (identifier or "").strip()
        if not name:
            raise ValidationError("identifier", identifier or "", "cannot be empty")

        if "/" in name:
            if not is_project_branch_form(name):
                raise ValidationError(
                    "identifier",
                    name,
                    "expected 'branch' or 'project/branch'",
                    ["Use 'myproject/feature-x'"],
                )
            return self._resolve_project_branch(name)

        if contains_path_traversal(name):
            raise ValidationError("identifier", name, "contains a path traversal sequence")

        if context.in_project:
            return self._resolve_in_project(context.project_name, name, deadline)
        return self._resolve_outside_git(name, deadline)

    def _project_path(self, project_name: str) -> str:
        path = os.path.join(self.projects_dir, project_name)
        if not is_path_under(self.projects_dir, path):
            raise ValidationError("project name", project_name, f"resolves outside {self.projects_dir}")
        return path

    def _worktree_path(self, project_name: str, branch_name: str) -> str:
        path = os.path.join(self.worktrees_dir, project_name, sanitize_path_component(branch_name))
        if not is_path_under(self.worktrees_dir, path):
            raise ValidationError(
                "identifier", f"{project_name}/{branch_name}", f"resolves outside {self.worktrees_dir}"
            )
        return path

    def _resolve_project_branch(self, identifier: str) -> ResolutionResult:
        project_name, branch_name = parse_project_branch(identifier)
        if contains_path_traversal(branch_name):
            raise ValidationError("branch name", branch_name, "contains a path traversal sequence")

        return ResolutionResult(
            resolved_path=self._worktree_path(project_name, branch_name),
            target_type=PathType.WORKTREE,
            project_name=project_name,
            branch_name=branch_name,
            explanation=f"Resolved '{identifier}' to worktree '{branch_name}' of project '{project_name}'",
        )

    def _resolve_in_project(
        self, project_name: str, branch_name: str, deadline: Optional[Deadline] = None
    ) -> ResolutionResult:
        project_path = self._project_path(project_name)

        if branch_name == MAIN_IDENTIFIER:
            return ResolutionResult(
                resolved_path=project_path,
                target_type=PathType.PROJECT,
                project_name=project_name,
                explanation=f"Resolved 'main' to project root '{project_name}'",
            )

        main_repo = normalize_path(project_path)
        if not os.path.isdir(project_path) or not self.git.is_repository(project_path):
            raise NotFoundError(
                branch_name,
                scopes=[self.projects_dir],
                message=f"Project '{project_name}' not found; cannot resolve '{branch_name}'",
            )

        for worktree in self.git.list_worktrees(project_path, deadline=deadline):
            if worktree.branch == branch_name and normalize_path(worktree.path) != main_repo:
                return ResolutionResult(
                    resolved_path=worktree.path,
                    target_type=PathType.WORKTREE,
                    project_name=project_name,
                    branch_name=branch_name,
                    explanation=f"Resolved '{branch_name}' to worktree of project '{project_name}'",
                )

        if self.git.branch_exists(project_path, branch_name):
            return ResolutionResult(
                resolved_path=project_path,
                target_type=PathType.PROJECT,
                project_name=project_name,
                explanation=(
                    f"Branch '{branch_name}' has no worktree; resolved to project root '{project_name}'"
                ),
            )

        raise NotFoundError(
            branch_name,
            scopes=[f"worktrees of '{project_name}'", f"branches of '{project_name}'"],
            message=f"Branch '{branch_name}' not found in project '{project_name}'",
            suggestions=[f"Create it with 'twiggit create {branch_name}'"],
        )

    def _resolve_outside_git(self, name: str, deadline: Optional[Deadline] = None) -> ResolutionResult:
        summaries = self.discovery.list_project_summaries()
        for summary in summaries:
            if summary.name == name:
                return ResolutionResult(
                    resolved_path=summary.main_repo_path,
                    target_type=PathType.PROJECT,
                    project_name=name,
                    explanation=f"Resolved '{name}' to project directory",
                )

        matches = [
            suggestion
            for suggestion in self._all_worktree_suggestions(summaries, deadline)
            if suggestion.branch_name == name
        ]
        if len(matches) == 1:
            match = matches[0]
            return ResolutionResult(
                resolved_path=match.resolved_path,
                target_type=PathType.WORKTREE,
                project_name=match.project_name,
                branch_name=name,
                explanation=f"Resolved '{name}' to the only worktree with that branch, in '{match.project_name}'",
            )
        if len(matches) > 1:
            raise AmbiguousError(name, matches)

        raise NotFoundError(
            name,
            scopes=["project names", "worktrees of all projects"],
            message=f"No project or worktree named '{name}'",
        )

    def _all_worktree_suggestions(
        self, summaries, deadline: Optional[Deadline] = None
    ) -> List[ResolutionSuggestion]:
        """One project/branch suggestion per linked worktree of every project."""
        suggestions = []
        for summary in summaries:
            try:
                worktrees = self.git.list_worktrees(summary.main_repo_path, deadline=deadline)
            except TwiggitError as e:
                logger.warning(f"Could not list worktrees of {summary.name}: {e}")
                continue
            for worktree in worktrees:
                if not worktree.branch or normalize_path(worktree.path) == summary.main_repo_path:
                    continue
                suggestions.append(
                    ResolutionSuggestion(
                        text=f"{summary.name}/{worktree.branch}",
                        description=f"Worktree '{worktree.branch}' of project '{summary.name}'",
                        target_type=PathType.WORKTREE,
                        project_name=summary.name,
                        branch_name=worktree.branch,
                        resolved_path=worktree.path,
                    )
                )
        return suggestions

    def get_resolution_suggestions(
        self,
        context: Context,
        partial: str,
        existing_only: bool = False,
        limit: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[ResolutionSuggestion]:
        """Completion candidates for a partial identifier.

        Prefix matches come before substring matches; ties are ordered by
        text. Candidates are de-duplicated by the path they lead to.

        Args:
            context: Detected context of the caller
            partial: What the user has typed so far
            existing_only: Only suggest worktrees present on disk
            limit: Cap on results (defaults to max_suggestions from config)
            deadline: Cancellation signal for the worktree listings

        Raises:
            ValidationError: If limit is zero or negative
        """
        if limit is not None and limit <= 0:
            raise ValidationError("limit", str(limit), "must be a positive number")
        partial = (partial or "").strip()

        try:
            if "/" in partial or (existing_only and not context.in_project):
                candidates = self._project_branch_candidates(partial, deadline)
            elif context.in_project:
                candidates = self._project_candidates(context.project_name, deadline)
            else:
                candidates = self._project_name_candidates()
        except TwiggitError as e:
            logger.debug(f"Suggestions unavailable: {e}")
            candidates = []

        if existing_only:
            candidates = [
                c for c in candidates
                if c.target_type == PathType.WORKTREE and c.resolved_path and os.path.isdir(c.resolved_path)
            ]

        ranked = _rank(candidates, partial)
        return ranked[: limit if limit is not None else self.config.max_suggestions]

    def _project_name_candidates(self) -> List[ResolutionSuggestion]:
        return [
            ResolutionSuggestion(
                text=summary.name,
                description="Project directory",
                target_type=PathType.PROJECT,
                project_name=summary.name,
                resolved_path=summary.main_repo_path,
            )
            for summary in self.discovery.list_project_summaries()
        ]

    def _project_branch_candidates(
        self, partial: str, deadline: Optional[Deadline] = None
    ) -> List[ResolutionSuggestion]:
        project_part = partial.partition("/")[0] if "/" in partial else ""
        summaries = [
            summary
            for summary in self.discovery.list_project_summaries()
            if not project_part or summary.name == project_part
        ]
        return self._all_worktree_suggestions(summaries, deadline)

    def _project_candidates(
        self, project_name: str, deadline: Optional[Deadline] = None
    ) -> List[ResolutionSuggestion]:
        project_path = self._project_path(project_name)
        main_repo = normalize_path(project_path)
        candidates = [
            ResolutionSuggestion(
                text=MAIN_IDENTIFIER,
                description="Project root directory",
                target_type=PathType.PROJECT,
                project_name=project_name,
                resolved_path=project_path,
            )
        ]

        worktree_branches = set()
        try:
            worktrees = self.git.list_worktrees(project_path, deadline=deadline)
        except TwiggitError as e:
            logger.debug(f"Worktree suggestions unavailable for {project_name}: {e}")
            worktrees = []
        for worktree in worktrees:
            if not worktree.branch or normalize_path(worktree.path) == main_repo:
                continue
            worktree_branches.add(worktree.branch)
            candidates.append(
                ResolutionSuggestion(
                    text=worktree.branch,
                    description=f"Worktree for branch {worktree.branch}",
                    target_type=PathType.WORKTREE,
                    project_name=project_name,
                    branch_name=worktree.branch,
                    resolved_path=worktree.path,
                )
            )

        try:
            branches = self.git.list_branches(project_path)
        except TwiggitError as e:
            logger.debug(f"Branch suggestions unavailable for {project_name}: {e}")
            branches = []
        for branch in branches:
            if branch.name in worktree_branches or branch.name == MAIN_IDENTIFIER:
                continue
            candidates.append(
                ResolutionSuggestion(
                    text=branch.name,
                    description=f"Branch {branch.name} (create worktree)",
                    target_type=PathType.PROJECT,
                    project_name=project_name,
                    branch_name=branch.name,
                    resolved_path=project_path,
                )
            )
        return candidates


def _dedup_key(suggestion: ResolutionSuggestion):
    if suggestion.target_type == PathType.PROJECT and suggestion.branch_name:
        return ("branch", suggestion.project_name, suggestion.branch_name)
    if suggestion.resolved_path:
        return ("path", normalize_path(suggestion.resolved_path))
    return ("text", suggestion.text)


def _rank(candidates: Iterable[ResolutionSuggestion], partial: str) -> List[ResolutionSuggestion]:
    """Filter by prefix/substring match, order deterministically, drop duplicates."""
    scored = []
    for candidate in candidates:
        if candidate.text.startswith(partial):
            scored.append((0, candidate.text, candidate))
        elif partial in candidate.text:
            scored.append((1, candidate.text, candidate))
    scored.sort(key=lambda item: (item[0], item[1]))

    seen = set()
    ranked = []
    for _score, _text, candidate in scored:
        key = _dedup_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        ranked.append(candidate)
    return ranked
