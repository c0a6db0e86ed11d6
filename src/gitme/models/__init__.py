"""Data models for gitme."""

from .schemas import (
    LoadingState,
    LoadingStatus,
    Panel,
    PullRequest,
    Reviewer,
    UserProfile,
)

__all__ = [
    "LoadingState",
    "LoadingStatus",
    "Panel",
    "PullRequest",
    "Reviewer",
    "UserProfile",
]
