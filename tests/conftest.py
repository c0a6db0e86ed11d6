"""Shared fixtures for gitme tests."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional

# Loggers are configured at import time; keep them out of the real home dir.
os.environ.setdefault("GITME_LOG_FILE", str(Path(tempfile.gettempdir()) / "gitme-tests.log"))

import pytest

from gitme.exceptions import ApiError
from gitme.models import PullRequest, Reviewer, UserProfile


def make_pr(
    pr_id: int,
    repo: str = "a",
    title: Optional[str] = None,
    **kwargs,
) -> PullRequest:
    """Build a pull request with sensible defaults."""
    return PullRequest(
        id=pr_id,
        title=title if title is not None else f"PR#{pr_id}",
        url=f"https://github.com/{repo}/pull/{pr_id}",
        repo=repo,
        **kwargs,
    )


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient.

    ``pulls`` maps "owner/name" to the list returned (or exception raised)
    by fetch_pull_requests. ``gates`` optionally maps "owner/name" to an
    asyncio.Event the fetch waits on, so tests control completion order.
    """

    def __init__(self) -> None:
        self.pulls: dict[str, object] = {}
        self.reviews: dict[tuple[str, int], object] = {}
        self.profiles: dict[str, UserProfile] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.review_calls: list[tuple[str, int]] = []
        self.profile_calls: list[str] = []
        self.closed = False

    async def fetch_pull_requests(self, owner: str, name: str) -> list[PullRequest]:
        key = f"{owner}/{name}"
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        result = self.pulls.get(key, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def fetch_reviewers(self, owner: str, name: str, number: int) -> list[Reviewer]:
        key = f"{owner}/{name}"
        self.review_calls.append((key, number))
        result = self.reviews.get((key, number), [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def fetch_user_profile(self, login: str) -> UserProfile:
        self.profile_calls.append(login)
        if login not in self.profiles:
            raise ApiError("Not Found", status_code=404)
        return self.profiles[login]

    async def aclose(self) -> None:
        self.closed = True


def pull_requests_of(store, repo: str) -> tuple:
    """The pull requests a store holds for ``repo``, or () when absent."""
    for group in store.groups():
        if group.repo == repo:
            return group.pull_requests
    return ()


@pytest.fixture
def fake_client() -> FakeGitHubClient:
    return FakeGitHubClient()


@pytest.fixture
def config_path(tmp_path, monkeypatch) -> Path:
    """Point GitmeConfig at a temporary file."""
    path = tmp_path / "config.json"
    monkeypatch.setenv("GITME_CONFIG", str(path))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return path
