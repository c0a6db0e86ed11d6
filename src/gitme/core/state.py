"""Shared state container for the dashboard."""

import threading
from contextlib import contextmanager
from typing import Iterator

from gitme.core.details import DetailsState
from gitme.core.panels import DEFAULT_JUMP_SIZE, PanelState
from gitme.models import LoadingState


class DashboardState:
    """Everything the UI loop and refresh tasks share, behind one lock.

    Hold ``access()`` only around a synchronous read or mutation, never
    across an ``await``. ``version`` increases on every mutation so the UI
    can cheaply tell whether it needs to redraw.
    """

    def __init__(self, jump_size: int = DEFAULT_JUMP_SIZE) -> None:
        self._lock = threading.RLock()
        self.panels = PanelState(jump_size)
        self.details = DetailsState()
        self.loading = LoadingState.idle()
        self.repository_status: dict[str, LoadingState] = {}
        self.version = 0

    @contextmanager
    def access(self) -> Iterator["DashboardState"]:
        """Exclusive access for one mutation; bumps ``version`` on exit."""
        with self._lock:
            try:
                yield self
            finally:
                self.version += 1

    @contextmanager
    def read(self) -> Iterator["DashboardState"]:
        """Exclusive access for a read; leaves ``version`` alone."""
        with self._lock:
            yield self

    def sync_details(self) -> None:
        """Point the details pane at the active panel's selection.

        Callers must already hold the lock.
        """
        self.details.set_pull_request(self.panels.active.selected_pull_request())

    def set_loading(self, repo: str, loading: LoadingState) -> None:
        """Record a refresh transition for ``repo`` and globally.

        Callers must already hold the lock.
        """
        self.repository_status[repo] = loading
        self.loading = loading
