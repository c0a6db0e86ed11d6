"""Details pane state: selected pull request, body scroll and author cache."""

import textwrap
from typing import Iterable, Optional

from gitme.models import PullRequest, UserProfile


DETAILS_SCROLL_INCREMENT = 3


def wrapped_line_count(body: str, width: int) -> int:
    """Number of lines ``body`` occupies when wrapped to ``width`` columns."""
    if width <= 0:
        return 0
    count = 0
    for line in body.splitlines():
        count += len(textwrap.wrap(line, width)) or 1
    return count


class DetailsState:
    """Derived view of the selected pull request.

    The pull request itself is owned by the panel store; this only holds the
    latest snapshot of whatever the cursor resolves to. The scroll offset is
    reset when a different pull request is selected, and clamped to the
    wrapped body once the viewport size is known.
    """

    def __init__(self) -> None:
        self.pull_request: Optional[PullRequest] = None
        self.scroll: int = 0
        self.width: Optional[int] = None
        self.viewport_height: Optional[int] = None
        self.profiles: dict[str, UserProfile] = {}

    # -- selection ------------------------------------------------------

    def set_pull_request(self, pr: Optional[PullRequest]) -> None:
        previous = self.pull_request.key if self.pull_request else None
        current = pr.key if pr else None
        self.pull_request = pr
        if previous != current:
            self.scroll = 0
        else:
            self._clamp()

    # -- scrolling ------------------------------------------------------

    @property
    def line_count(self) -> int:
        if self.pull_request is None or not self.width:
            return 0
        return wrapped_line_count(self.pull_request.body, self.width)

    @property
    def max_scroll(self) -> Optional[int]:
        """Largest valid offset, or None while the viewport is unknown."""
        if self.viewport_height is None or not self.width:
            return None
        return max(0, self.line_count - self.viewport_height)

    def _clamp(self) -> None:
        upper = self.max_scroll
        if upper is not None:
            self.scroll = min(self.scroll, upper)
        self.scroll = max(0, self.scroll)

    def reflow(self, width: int, height: int) -> None:
        """Record the body viewport size and clamp the offset to it."""
        self.width = max(0, width)
        self.viewport_height = max(0, height)
        self._clamp()

    def scroll_down(self, lines: int = DETAILS_SCROLL_INCREMENT) -> None:
        if self.pull_request is None:
            return
        self.scroll += lines
        self._clamp()

    def scroll_up(self, lines: int = DETAILS_SCROLL_INCREMENT) -> None:
        if self.pull_request is None:
            return
        self.scroll -= lines
        self._clamp()

    def visible_lines(self) -> list[str]:
        """Wrapped body lines inside the viewport."""
        if self.pull_request is None:
            return []
        if not self.width:
            return self.pull_request.body.splitlines()
        lines: list[str] = []
        for line in self.pull_request.body.splitlines():
            lines.extend(textwrap.wrap(line, self.width) or [""])
        if self.viewport_height is None:
            return lines[self.scroll:]
        return lines[self.scroll:self.scroll + self.viewport_height]

    # -- profiles -------------------------------------------------------

    def cache_profile(self, profile: UserProfile) -> None:
        self.profiles[profile.login] = profile

    def missing_profiles(self, logins: Iterable[str]) -> set[str]:
        return {login for login in logins if login and login not in self.profiles}

    @property
    def author_display(self) -> str:
        if self.pull_request is None:
            return ""
        profile = self.profiles.get(self.pull_request.author)
        if profile:
            return profile.display_name
        return self.pull_request.author
