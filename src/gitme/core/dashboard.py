"""Command and query surface of the dashboard core.

The UI calls these methods in response to keys and reads the results back
to draw. Nothing in here knows about terminals.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gitme.config import GitmeConfig
from gitme.core.reconciler import RefreshReconciler
from gitme.core.rows import Row
from gitme.core.state import DashboardState
from gitme.github import GitHubClient
from gitme.models import LoadingState, Panel, PullRequest


@dataclass(frozen=True)
class ReviewLaunch:
    """How to start the review command for a pull request."""

    args: list[str]
    cwd: Path


@dataclass(frozen=True)
class DetailsSnapshot:
    """Everything the details pane draws, copied out under the lock."""

    pull_request: Optional[PullRequest]
    author: str
    lines: list[str]
    scroll: int
    line_count: int


class Dashboard:
    """Pull request dashboard: two panels, a details pane and a refresher."""

    def __init__(self, config: GitmeConfig, client: GitHubClient, state: Optional[DashboardState] = None) -> None:
        self.config = config
        self.client = client
        self.state = state or DashboardState(jump_size=config.jump_size)
        self.reconciler = RefreshReconciler(
            self.state, client, config.repositories, config.username,
        )

    # -- navigation commands --------------------------------------------

    def _navigate(self, action: str, *args) -> None:
        with self.state.access() as state:
            getattr(state.panels.active, action)(*args)
            state.sync_details()

    def scroll_up(self) -> None:
        self._navigate("scroll_up")

    def scroll_down(self) -> None:
        self._navigate("scroll_down")

    def jump_up(self) -> None:
        self._navigate("jump_up")

    def jump_down(self) -> None:
        self._navigate("jump_down")

    def next_repository(self) -> None:
        self._navigate("next_repository")

    def previous_repository(self) -> None:
        self._navigate("previous_repository")

    def toggle_expand(self) -> None:
        self._navigate("toggle_expand")

    def select_row(self, index: int) -> None:
        self._navigate("select", index)

    def next_panel(self) -> Panel:
        with self.state.access() as state:
            panel = state.panels.toggle()
            state.sync_details()
        return panel

    # -- filtering ------------------------------------------------------

    def set_filter_query(self, query: Optional[str]) -> None:
        """Apply ``query`` to both panels."""
        with self.state.access() as state:
            for list_state in state.panels:
                list_state.set_filter_query(query)
            state.sync_details()

    def clear_filter_query(self) -> None:
        self.set_filter_query(None)

    # -- details --------------------------------------------------------

    def scroll_details_down(self) -> None:
        with self.state.access() as state:
            state.details.scroll_down()

    def scroll_details_up(self) -> None:
        with self.state.access() as state:
            state.details.scroll_up()

    def reflow_details(self, width: int, height: int) -> None:
        with self.state.access() as state:
            state.details.reflow(width, height)

    def details(self) -> DetailsSnapshot:
        with self.state.read() as state:
            details = state.details
            return DetailsSnapshot(
                pull_request=details.pull_request,
                author=details.author_display,
                lines=details.visible_lines(),
                scroll=details.scroll,
                line_count=details.line_count,
            )

    # -- refresh --------------------------------------------------------

    async def refresh(self) -> None:
        """Refresh every configured repository.

        Overlapping calls are allowed; each one applies its results when
        it finishes.
        """
        await self.reconciler.refresh_all()

    # -- queries --------------------------------------------------------

    def current_selection(self) -> Optional[PullRequest]:
        with self.state.read() as state:
            return state.panels.active.selected_pull_request()

    def current_loading_state(self) -> LoadingState:
        with self.state.read() as state:
            return state.loading

    def visible_rows(self) -> list[Row]:
        with self.state.read() as state:
            return state.panels.active.rows()

    def panel_counts(self) -> dict[Panel, int]:
        """Pull requests per panel, ignoring the filter."""
        with self.state.read() as state:
            return {panel: state.panels[panel].store.total_pull_requests for panel in Panel}

    @property
    def active_panel(self) -> Panel:
        with self.state.read() as state:
            return state.panels.active_panel

    @property
    def cursor(self) -> Optional[int]:
        with self.state.read() as state:
            return state.panels.active.cursor

    @property
    def filter_query(self) -> Optional[str]:
        with self.state.read() as state:
            return state.panels.active.filter_query

    @property
    def version(self) -> int:
        return self.state.version

    def review_launch(self) -> Optional[ReviewLaunch]:
        """Resolve the review command for the selected pull request.

        Only available in the review panel, and only when a command and a
        local checkout are configured for the pull request's repository.
        """
        if self.active_panel is not Panel.REVIEW or not self.config.command:
            return None
        pr = self.current_selection()
        if pr is None:
            return None
        repo = self.config.find_repository(pr.repo)
        if repo is None or repo.local_path is None:
            return None
        return ReviewLaunch(
            args=[self.config.command, *self.config.command_args],
            cwd=repo.local_path,
        )
