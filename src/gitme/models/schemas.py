"""Pydantic schemas for gitme domain models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Panel(str, Enum):
    """The two mutually exclusive pull request lists."""

    REVIEW = "review"  # Review requested from me, or already reviewed by me
    ASSIGNED = "assigned"  # Assigned to me

    @property
    def label(self) -> str:
        return PANEL_LABELS[self]

    def next(self) -> "Panel":
        """Return the panel a toggle command moves to."""
        members = list(Panel)
        return members[(members.index(self) + 1) % len(members)]


PANEL_LABELS = {
    Panel.REVIEW: "Review Requested",
    Panel.ASSIGNED: "My Pull Requests",
}


class LoadingStatus(str, Enum):
    """Phases of a refresh."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class LoadingState:
    """Loading status plus the error message when status is ERROR."""

    status: LoadingStatus = LoadingStatus.IDLE
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "LoadingState":
        return cls(LoadingStatus.IDLE)

    @classmethod
    def loading(cls) -> "LoadingState":
        return cls(LoadingStatus.LOADING)

    @classmethod
    def loaded(cls) -> "LoadingState":
        return cls(LoadingStatus.LOADED)

    @classmethod
    def error(cls, message: str) -> "LoadingState":
        return cls(LoadingStatus.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.status is LoadingStatus.ERROR

    def __str__(self) -> str:
        if self.is_error:
            return f"Error: {self.message}"
        return self.status.value.capitalize()


class UserProfile(BaseModel):
    """A GitHub user as shown next to a pull request."""

    model_config = ConfigDict(frozen=True)

    login: str
    name: str = ""

    @property
    def display_name(self) -> str:
        """Return "Name (login)", or just the login when no name is set."""
        if self.name:
            return f"{self.name} ({self.login})"
        return self.login


class Reviewer(BaseModel):
    """Author of a submitted review."""

    model_config = ConfigDict(frozen=True)

    login: str
    state: str = ""  # APPROVED, CHANGES_REQUESTED, COMMENTED, ...


class PullRequest(BaseModel):
    """Immutable snapshot of an open pull request.

    Identity is ``(repo, id)``. A refresh never mutates a snapshot, it
    replaces the whole group it belongs to.
    """

    model_config = ConfigDict(frozen=True)

    id: int  # PR number within the repository
    title: str
    url: str
    repo: str  # Store key, "owner/name"
    body: str = ""
    author: str = ""  # Author login
    is_draft: bool = False
    mergeable: bool = False
    rebaseable: bool = False
    base_ref: str = ""
    head_ref: str = ""
    requested_reviewers: tuple[str, ...] = ()
    assignees: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, int]:
        """Identity of this pull request across refreshes."""
        return (self.repo, self.id)

    @property
    def label(self) -> str:
        return f"#{self.id} - {self.title}"

    @property
    def searchable(self) -> str:
        """Case-folded form the filter query is matched against."""
        return self.label.casefold()
