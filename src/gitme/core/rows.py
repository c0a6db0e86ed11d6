"""Translation between a flat cursor index and header/leaf rows.

The visible list is a sequence of groups. Each group renders as one header
row followed, when it is expanded, by one leaf row per pull request:

    0  header  owner/a
    1  leaf    #1
    2  leaf    #2
    3  header  owner/b
    4  leaf    #3

Nothing is cached: every lookup walks the groups, which keeps store
mutation cheap and is linear in the number of visible rows.
"""

from dataclasses import dataclass
from typing import AbstractSet, Iterator, Optional, Sequence, Union

from gitme.core.store import RepositoryGroup
from gitme.models import PullRequest


@dataclass(frozen=True)
class HeaderRow:
    """Row labelling a repository group."""

    repo: str
    count: int  # Pull requests in the group, shown or not
    expanded: bool = True


@dataclass(frozen=True)
class LeafRow:
    """Row for one pull request of an expanded group."""

    pull_request: PullRequest


Row = Union[HeaderRow, LeafRow]

NO_COLLAPSED: frozenset[str] = frozenset()


def group_row_count(group: RepositoryGroup, collapsed: AbstractSet[str] = NO_COLLAPSED) -> int:
    """Leaf rows a group contributes (its header not included)."""
    if group.repo in collapsed:
        return 0
    return len(group.pull_requests)


def total_rows(view: Sequence[RepositoryGroup], collapsed: AbstractSet[str] = NO_COLLAPSED) -> int:
    return sum(1 + group_row_count(group, collapsed) for group in view)


def row_at(
    view: Sequence[RepositoryGroup],
    index: int,
    collapsed: AbstractSet[str] = NO_COLLAPSED,
) -> Optional[Row]:
    """Resolve a flat index to its row.

    Args:
        view: Visible groups in display order
        index: Flat row index
        collapsed: Repository keys whose leaves are hidden

    Returns:
        HeaderRow or LeafRow, or None when the index is out of bounds
    """
    if index < 0:
        return None
    offset = index
    for group in view:
        rows = group_row_count(group, collapsed)
        if offset == 0:
            return HeaderRow(group.repo, len(group), group.repo not in collapsed)
        if offset <= rows:
            return LeafRow(group.pull_requests[offset - 1])
        offset -= 1 + rows
    return None


def iter_rows(view: Sequence[RepositoryGroup], collapsed: AbstractSet[str] = NO_COLLAPSED) -> Iterator[Row]:
    """Yield every visible row in index order."""
    for group in view:
        expanded = group.repo not in collapsed
        yield HeaderRow(group.repo, len(group), expanded)
        if expanded:
            for pr in group.pull_requests:
                yield LeafRow(pr)


def header_indices(view: Sequence[RepositoryGroup], collapsed: AbstractSet[str] = NO_COLLAPSED) -> Iterator[int]:
    """Yield the flat index of every header row."""
    index = 0
    for group in view:
        yield index
        index += 1 + group_row_count(group, collapsed)


def index_of(
    view: Sequence[RepositoryGroup],
    row: Row,
    collapsed: AbstractSet[str] = NO_COLLAPSED,
) -> Optional[int]:
    """Inverse of ``row_at``: the flat index of a row, or None if not visible.

    Leaf rows are matched by pull request identity, so a newer snapshot of
    the same pull request is found too.
    """
    index = 0
    for group in view:
        rows = group_row_count(group, collapsed)
        if isinstance(row, HeaderRow):
            if group.repo == row.repo:
                return index
        elif group.repo == row.pull_request.repo and rows:
            for offset, pr in enumerate(group.pull_requests, start=1):
                if pr.key == row.pull_request.key:
                    return index + offset
        index += 1 + rows
    return None


def next_header_index(
    view: Sequence[RepositoryGroup],
    index: int,
    collapsed: AbstractSet[str] = NO_COLLAPSED,
) -> Optional[int]:
    """First header row strictly after ``index``, or None."""
    for header in header_indices(view, collapsed):
        if header > index:
            return header
    return None


def previous_header_index(
    view: Sequence[RepositoryGroup],
    index: int,
    collapsed: AbstractSet[str] = NO_COLLAPSED,
) -> Optional[int]:
    """Last header row strictly before ``index``, or None."""
    found = None
    for header in header_indices(view, collapsed):
        if header >= index:
            break
        found = header
    return found


def clamp_cursor(cursor: Optional[int], total: int) -> Optional[int]:
    """Clamp a cursor into ``[0, total)``.

    An empty view has no cursor. A view becoming non-empty starts at 0.
    """
    if total <= 0:
        return None
    if cursor is None or cursor < 0:
        return 0
    return min(cursor, total - 1)
