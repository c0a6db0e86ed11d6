"""Main gitme TUI application."""

import subprocess
import webbrowser
from typing import Optional

from rich.markup import escape
from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Resize
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Markdown,
    Static,
)

from gitme.config import GitmeConfig
from gitme.core import Dashboard, HeaderRow, LeafRow, Row
from gitme.github import GitHubClient
from gitme.log import configure_logger
from gitme.models import LoadingState, LoadingStatus, Panel


_log = configure_logger("gitme.tui")

REDRAW_INTERVAL = 0.1  # seconds between checks for background state changes

KEYBINDINGS = [
    ("↑↓, j/k", "Scroll list"),
    ("u/d", "Jump up/down"),
    ("n", "Next repository"),
    ("p", "Previous repository"),
    ("space", "Collapse/expand repository"),
    ("Ctrl+d/u", "Scroll details"),
    ("TAB", "Switch panel"),
    ("/", "Search"),
    ("f", "Refetch pulls"),
    ("r", "Review PR"),
    ("o", "Open in browser"),
    ("q", "Quit"),
]


def render_row(row: Row) -> Text:
    """Render one list row."""
    if isinstance(row, HeaderRow):
        marker = "▼" if row.expanded else "▶"
        return Text.assemble((f"{marker} {row.repo}", "bold"), (f" ({row.count})", "dim"))
    pr = row.pull_request
    text = Text(f"   #{pr.id} ", style="cyan")
    text.append(pr.title)
    if pr.is_draft:
        text.append(" [draft]", style="dim italic")
    return text


class HelpScreen(ModalScreen):
    """Modal listing the keybindings."""

    CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-dialog {
        width: 60;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        background: $surface;
        border: solid $accent;
    }

    #help-dialog Button {
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("q", "close", "Close"),
        Binding("question_mark", "close", "Close", show=False),
    ]

    def compose(self) -> ComposeResult:
        table = "\n".join(f"| `{key}` | {action} |" for key, action in KEYBINDINGS)
        with Vertical(id="help-dialog"):
            with VerticalScroll():
                yield Markdown(f"# Keybindings\n\n| Key | Action |\n|-----|--------|\n{table}")
            yield Button("Close", id="close-btn")

    @on(Button.Pressed, "#close-btn")
    def on_close(self) -> None:
        self.dismiss()

    def action_close(self) -> None:
        self.dismiss()


def render_loading(loading: LoadingState) -> Text:
    """Render the refresh outcome shown at the right of the status bar."""
    status = loading.status
    if status is LoadingStatus.IDLE:
        return Text("Not loaded ", style="dim")
    if status is LoadingStatus.LOADING:
        return Text("Loading... ", style="yellow")
    if status is LoadingStatus.ERROR:
        return Text(f"Error ✗ {loading.message} ", style="red")
    return Text("Loaded ✔ ", style="green")


class LoadingStatusWidget(Static):
    """Right-hand side of the status bar: refresh outcome."""

    loading: reactive[LoadingState] = reactive(LoadingState.idle)

    def render(self) -> Text:
        return render_loading(self.loading)


class DetailsBody(Static):
    """Pull request body; reports its size so the core can wrap and clamp."""

    def on_resize(self, event: Resize) -> None:
        self.app.dashboard.reflow_details(event.size.width, event.size.height)
        self.app.refresh_view(force=True)


class GitmeApp(App):
    """Terminal dashboard of pull requests awaiting review or assigned to me."""

    TITLE = "gitme"
    SUB_TITLE = "GitMe PR"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #pr-panel {
        width: 40%;
        border: round $success;
    }

    #panel-title {
        height: 1;
        padding: 0 1;
    }

    #pr-table {
        height: 1fr;
    }

    #details-panel {
        width: 60%;
    }

    #details-title {
        height: auto;
        border: round $primary;
        padding: 0 1;
        text-style: bold;
    }

    #details-body {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    #details-footer {
        height: 3;
    }

    #details-author {
        width: 1fr;
        border: round $primary;
    }

    #details-mergeable, #details-rebaseable {
        width: 16;
        border: round $primary;
    }

    #search-input {
        display: none;
    }

    #search-input.visible {
        display: block;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
    }

    #help-line {
        width: 1fr;
        color: $success;
    }

    #loading-status {
        width: auto;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("j", "scroll_down", "Down", show=False),
        Binding("down", "scroll_down", "Down", show=False),
        Binding("k", "scroll_up", "Up", show=False),
        Binding("up", "scroll_up", "Up", show=False),
        Binding("d", "jump_down", "Jump Down", show=False),
        Binding("u", "jump_up", "Jump Up", show=False),
        Binding("n", "next_repository", "Next Repo", show=True),
        Binding("p", "previous_repository", "Prev Repo", show=True),
        Binding("space", "toggle_expand", "Expand", show=False),
        Binding("ctrl+d", "scroll_details_down", "Details Down", show=False),
        Binding("ctrl+u", "scroll_details_up", "Details Up", show=False),
        Binding("tab", "next_panel", "Switch Panel", show=True, priority=True),
        Binding("/", "search", "Search", show=True),
        Binding("escape", "cancel_search", "Clear Search", show=False),
        Binding("f", "refresh", "Refresh", show=True),
        Binding("r", "review", "Review", show=True),
        Binding("o", "open_browser", "Open", show=True),
        Binding("question_mark", "help", "Help", show=True),
    ]

    def __init__(
        self,
        config: Optional[GitmeConfig] = None,
        client: Optional[GitHubClient] = None,
        refresh_on_start: bool = True,
    ):
        super().__init__()
        self.config = config or GitmeConfig.load()
        self.client = client or GitHubClient(self.config.resolve_token())
        self.dashboard = Dashboard(self.config, self.client)
        self.refresh_on_start = refresh_on_start
        self._drawn_version = -1
        self._last_error: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="main-layout"):
            with Vertical(id="pr-panel"):
                yield Static("", id="panel-title")
                yield DataTable(id="pr-table", show_header=False, cursor_type="row")
            with Vertical(id="details-panel"):
                yield Static("", id="details-title")
                yield DetailsBody("", id="details-body")
                with Horizontal(id="details-footer"):
                    yield Label("", id="details-author")
                    yield Label("", id="details-mergeable")
                    yield Label("", id="details-rebaseable")

        yield Input(placeholder="🔍 Search repositories and pull requests...", id="search-input")
        with Horizontal(id="status-bar"):
            yield Static(
                "Scroll: ↑↓,j/k • Switch: TAB • Review: r • Keybindings: ? • Quit: q",
                id="help-line",
            )
            yield LoadingStatusWidget(id="loading-status")

        yield Footer()

    def on_mount(self) -> None:
        self.theme = self.config.theme

        table = self.query_one("#pr-table", DataTable)
        table.add_column("Pull request", key="pr")
        table.can_focus = False

        self.query_one("#details-title", Static).border_title = "Title"
        self.query_one("#details-body", DetailsBody).border_title = "Details"
        self.query_one("#details-author", Label).border_title = "Author"
        self.query_one("#details-mergeable", Label).border_title = "Mergeable"
        self.query_one("#details-rebaseable", Label).border_title = "Rebaseable"

        self.set_interval(REDRAW_INTERVAL, self.refresh_view)
        self.refresh_view(force=True)

        if not self.config.repositories:
            self.notify(
                "No repositories configured. Run `gitme init` or `gitme repos add`.",
                severity="warning",
            )
            return
        if not self.config.username:
            self.notify("No GitHub username configured; nothing can be classified.", severity="warning")
        elif not self.config.is_complete:
            self.notify(
                "No GitHub token configured; private repositories will fail and rate limits are low.",
                severity="warning",
            )

        if self.refresh_on_start:
            self.action_refresh()
            self.set_interval(self.config.refresh_interval, self.action_refresh)

    async def on_unmount(self) -> None:
        await self.client.aclose()

    # -- drawing --------------------------------------------------------

    def refresh_view(self, force: bool = False) -> None:
        """Redraw from the dashboard state if it changed since last time."""
        version = self.dashboard.version
        if not force and version == self._drawn_version:
            return
        self._drawn_version = version

        self._draw_panel_title()
        self._draw_list()
        self._draw_details()
        self._draw_status()

    def _draw_panel_title(self) -> None:
        active = self.dashboard.active_panel
        counts = self.dashboard.panel_counts()
        title = Text("📋 ")
        for i, panel in enumerate(Panel):
            if i:
                title.append(" - ")
            title.append(f"{panel.label} ({counts[panel]})", style="bold" if panel is active else "dim")
        self.query_one("#panel-title", Static).update(title)

    def _draw_list(self) -> None:
        table = self.query_one("#pr-table", DataTable)
        rows = self.dashboard.visible_rows()
        cursor = self.dashboard.cursor

        table.clear()
        for row in rows:
            table.add_row(render_row(row))
        if cursor is not None and rows:
            table.move_cursor(row=cursor, animate=False)

    @on(DataTable.RowHighlighted, "#pr-table")
    def on_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Follow a row picked with the mouse.

        Redraws move the table cursor too; those land on the dashboard's own
        cursor and are ignored.
        """
        row = event.data_table.cursor_row
        cursor = self.dashboard.cursor
        if cursor is None or row == cursor or self.dashboard.version != self._drawn_version:
            return
        self._run(lambda: self.dashboard.select_row(row))

    def _draw_details(self) -> None:
        details = self.dashboard.details()
        pr = details.pull_request

        def status(value: bool) -> Text:
            return Text("Yes", style="green") if value else Text("No", style="red")

        title = Text(pr.title) if pr else Text()
        if pr and (pr.base_ref or pr.head_ref):
            title.append(f"\n{pr.base_ref} ← {pr.head_ref}", style="dim")
        self.query_one("#details-title", Static).update(title)
        self.query_one("#details-body", DetailsBody).update(Text("\n".join(details.lines)))
        self.query_one("#details-author", Label).update(Text(details.author))
        self.query_one("#details-mergeable", Label).update(status(pr.mergeable) if pr else "")
        self.query_one("#details-rebaseable", Label).update(status(pr.rebaseable) if pr else "")

    def _draw_status(self) -> None:
        loading = self.dashboard.current_loading_state()
        self.query_one("#loading-status", LoadingStatusWidget).loading = loading
        if loading.is_error and loading.message != self._last_error:
            self.notify(escape(loading.message or "Refresh failed"), title="Refresh failed", severity="error")
        self._last_error = loading.message if loading.is_error else None

    # -- actions --------------------------------------------------------

    def _run(self, command) -> None:
        command()
        self.refresh_view()

    def action_scroll_down(self) -> None:
        self._run(self.dashboard.scroll_down)

    def action_scroll_up(self) -> None:
        self._run(self.dashboard.scroll_up)

    def action_jump_down(self) -> None:
        self._run(self.dashboard.jump_down)

    def action_jump_up(self) -> None:
        self._run(self.dashboard.jump_up)

    def action_next_repository(self) -> None:
        self._run(self.dashboard.next_repository)

    def action_previous_repository(self) -> None:
        self._run(self.dashboard.previous_repository)

    def action_toggle_expand(self) -> None:
        self._run(self.dashboard.toggle_expand)

    def action_next_panel(self) -> None:
        self._run(self.dashboard.next_panel)

    def action_scroll_details_down(self) -> None:
        self._run(self.dashboard.scroll_details_down)

    def action_scroll_details_up(self) -> None:
        self._run(self.dashboard.scroll_details_up)

    def action_refresh(self) -> None:
        """Start a refresh of every repository in the background."""
        self.run_refresh()

    @work(exclusive=False, group="refresh")
    async def run_refresh(self) -> None:
        await self.dashboard.refresh()
        self.refresh_view()

    def action_search(self) -> None:
        """Show and focus the search input."""
        search_input = self.query_one("#search-input", Input)
        search_input.add_class("visible")
        search_input.focus()

    def action_cancel_search(self) -> None:
        """Clear the query and leave search mode."""
        search_input = self.query_one("#search-input", Input)
        search_input.value = ""
        search_input.remove_class("visible")
        search_input.blur()
        self._run(self.dashboard.clear_filter_query)

    @on(Input.Changed, "#search-input")
    def filter_pull_requests(self, event: Input.Changed) -> None:
        self.dashboard.set_filter_query(event.value)
        self.refresh_view()

    @on(Input.Submitted, "#search-input")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        """Keep the query and hand the keys back to the list."""
        search_input = self.query_one("#search-input", Input)
        if not event.value:
            search_input.remove_class("visible")
        search_input.blur()

    def action_open_browser(self) -> None:
        """Open the selected pull request in the system browser."""
        pr = self.dashboard.current_selection()
        if pr is None or not pr.url:
            self.notify("Select a pull request first", severity="warning")
            return
        webbrowser.open(pr.url)
        self.notify(escape(f"Opening {pr.url[:50]}..."))

    def action_review(self) -> None:
        """Launch the configured review command in the repository checkout."""
        launch = self.dashboard.review_launch()
        if launch is None:
            self.notify(
                "Review needs a selected PR in the review panel, a command and a local path",
                severity="warning",
            )
            return
        try:
            subprocess.Popen(
                launch.args,
                cwd=launch.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            _log.warning("Review command %s failed: %s", launch.args, e)
            self.notify(escape(f"Could not start review: {e}"), severity="error")
            return
        _log.info("Started review command %s in %s", launch.args, launch.cwd)

    def action_help(self) -> None:
        """Show the keybindings."""
        self.push_screen(HelpScreen())
