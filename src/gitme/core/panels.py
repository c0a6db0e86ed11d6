"""Per-panel view state and the panel toggle."""

from typing import Iterable, Optional

from gitme.core import rows as rowmap
from gitme.core.projection import project
from gitme.core.rows import HeaderRow, LeafRow, Row
from gitme.core.store import PullRequestStore, RepositoryGroup
from gitme.models import Panel, PullRequest


DEFAULT_JUMP_SIZE = 10


class PullRequestListState:
    """Store, filter, visible view and cursor of one panel.

    ``view`` is recomputed from the store whenever the store or the filter
    query changes, and the cursor is clamped after every change so it is
    always a valid row index, or None exactly when nothing is visible.
    """

    def __init__(self, jump_size: int = DEFAULT_JUMP_SIZE) -> None:
        self.store = PullRequestStore()
        self.filter_query: Optional[str] = None
        self.view: list[RepositoryGroup] = []
        self.cursor: Optional[int] = None
        self.collapsed: set[str] = set()
        self.jump_size = jump_size

    # -- derived --------------------------------------------------------

    @property
    def total_rows(self) -> int:
        return rowmap.total_rows(self.view, self.collapsed)

    def rows(self) -> list[Row]:
        return list(rowmap.iter_rows(self.view, self.collapsed))

    def selected_row(self) -> Optional[Row]:
        if self.cursor is None:
            return None
        return rowmap.row_at(self.view, self.cursor, self.collapsed)

    def selected_pull_request(self) -> Optional[PullRequest]:
        """The pull request under the cursor; None on a header or empty view."""
        row = self.selected_row()
        if isinstance(row, LeafRow):
            return row.pull_request
        return None

    # -- mutation -------------------------------------------------------

    def recompute(self) -> None:
        """Re-project the store through the filter and clamp the cursor."""
        self.view = project(self.store.groups(), self.filter_query)
        self._clamp()

    def replace(self, repo: str, prs: Iterable[PullRequest]) -> None:
        self.store.replace(repo, prs)
        self.recompute()

    def set_filter_query(self, query: Optional[str]) -> None:
        self.filter_query = query or None
        self.recompute()

    def clear_filter_query(self) -> None:
        self.set_filter_query(None)

    def _clamp(self) -> None:
        self.cursor = rowmap.clamp_cursor(self.cursor, self.total_rows)

    def _move_to(self, index: int) -> None:
        if self.cursor is None:
            return
        self.cursor = max(0, min(index, self.total_rows - 1))

    # -- navigation -----------------------------------------------------

    def scroll_down(self) -> None:
        if self.cursor is not None:
            self._move_to(self.cursor + 1)

    def scroll_up(self) -> None:
        if self.cursor is not None:
            self._move_to(self.cursor - 1)

    def jump_down(self) -> None:
        if self.cursor is not None:
            self._move_to(self.cursor + self.jump_size)

    def jump_up(self) -> None:
        if self.cursor is not None:
            self._move_to(self.cursor - self.jump_size)

    def select(self, index: int) -> None:
        """Put the cursor on row ``index``, clamped to the view."""
        self._move_to(index)

    def next_repository(self) -> None:
        """Move to the next repository header; stay put on the last group."""
        if self.cursor is None:
            return
        index = rowmap.next_header_index(self.view, self.cursor, self.collapsed)
        if index is not None:
            self.cursor = index

    def previous_repository(self) -> None:
        """Move to the previous header (the current group's, from a leaf)."""
        if self.cursor is None:
            return
        index = rowmap.previous_header_index(self.view, self.cursor, self.collapsed)
        if index is not None:
            self.cursor = index

    def toggle_expand(self) -> None:
        """Collapse or expand the group whose header is under the cursor.

        Does nothing on a leaf row. The cursor stays on the header.
        """
        row = self.selected_row()
        if not isinstance(row, HeaderRow):
            return
        if row.repo in self.collapsed:
            self.collapsed.discard(row.repo)
        else:
            self.collapsed.add(row.repo)
        self._clamp()


class PanelState:
    """The active panel plus one independent list state per panel."""

    def __init__(self, jump_size: int = DEFAULT_JUMP_SIZE) -> None:
        self.active_panel = Panel.REVIEW
        self.lists: dict[Panel, PullRequestListState] = {
            panel: PullRequestListState(jump_size) for panel in Panel
        }

    @property
    def active(self) -> PullRequestListState:
        return self.lists[self.active_panel]

    def __getitem__(self, panel: Panel) -> PullRequestListState:
        return self.lists[panel]

    def __iter__(self):
        return iter(self.lists.values())

    def toggle(self) -> Panel:
        """Cycle to the next panel and return it."""
        self.active_panel = self.active_panel.next()
        return self.active_panel
