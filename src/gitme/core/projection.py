"""Filter projection of the store onto the visible list."""

from typing import Iterable, Optional

from gitme.core.store import RepositoryGroup
from gitme.models import PullRequest


def matches(pr: PullRequest, needle: str) -> bool:
    """Check a case-folded query against a pull request's "#id - title" form."""
    return needle in pr.searchable


def project(groups: Iterable[RepositoryGroup], query: Optional[str] = None) -> list[RepositoryGroup]:
    """Derive the visible subset of ``groups`` for ``query``.

    A group whose repository key contains the query is kept whole. Otherwise
    only its matching pull requests are kept, and the group is dropped when
    none match. Group order is preserved and the input is never modified.

    Args:
        groups: Groups in display order, usually ``PullRequestStore.groups()``
        query: Filter text; None or "" keeps everything

    Returns:
        The filtered groups
    """
    groups = list(groups)
    if not query:
        return groups

    needle = query.casefold()
    visible = []
    for group in groups:
        if needle in group.repo.casefold():
            visible.append(group)
            continue
        kept = tuple(pr for pr in group.pull_requests if matches(pr, needle))
        if kept:
            visible.append(RepositoryGroup(group.repo, kept))
    return visible
