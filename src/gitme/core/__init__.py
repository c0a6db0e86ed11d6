"""Dashboard core: store, projection, row translation, panels and refresh."""

from .dashboard import Dashboard, DetailsSnapshot, ReviewLaunch
from .details import DetailsState
from .panels import PanelState, PullRequestListState
from .projection import project
from .reconciler import Classification, RefreshReconciler, classify_pull_requests
from .rows import HeaderRow, LeafRow, Row, row_at, total_rows
from .state import DashboardState
from .store import PullRequestStore, RepositoryGroup

__all__ = [
    "Classification",
    "Dashboard",
    "DashboardState",
    "DetailsSnapshot",
    "DetailsState",
    "HeaderRow",
    "LeafRow",
    "PanelState",
    "PullRequestListState",
    "PullRequestStore",
    "RefreshReconciler",
    "RepositoryGroup",
    "ReviewLaunch",
    "Row",
    "classify_pull_requests",
    "project",
    "row_at",
    "total_rows",
]
