"""Concurrent refresh of the configured repositories into the panel stores.

Each repository is fetched, classified and committed independently. The
only shared step is the commit itself, which runs under the state lock and
touches nothing but that repository's key, so completions may land in any
order and a failing repository never disturbs the others.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Sequence

from gitme.config import RepositoryConfig
from gitme.core.state import DashboardState
from gitme.exceptions import GitmeError
from gitme.github import GitHubClient
from gitme.log import configure_logger
from gitme.models import LoadingState, Panel, PullRequest


_log = configure_logger("gitme.reconciler")


@dataclass
class Classification:
    """Pull requests of one repository split into panel buckets."""

    review: list[PullRequest] = field(default_factory=list)
    assigned: list[PullRequest] = field(default_factory=list)

    def for_panel(self, panel: Panel) -> list[PullRequest]:
        return self.review if panel is Panel.REVIEW else self.assigned


async def classify_pull_requests(
    client: GitHubClient,
    owner: str,
    name: str,
    prs: Sequence[PullRequest],
    username: Optional[str],
) -> Classification:
    """Put each pull request in at most one bucket for ``username``.

    Assignment wins over review. A pull request needs the user's review if
    they are a requested reviewer or, since GitHub drops requested reviewers
    once they have reviewed, if they already submitted a review. The review
    lookups run concurrently and all of them finish before anything is
    returned.

    Raises:
        GitmeError: If any review lookup fails
    """
    result = Classification()
    if not username:
        return result

    candidates = [pr for pr in prs if username not in pr.assignees]
    to_check = [pr for pr in candidates if username not in pr.requested_reviewers]

    outcomes = await asyncio.gather(
        *(client.fetch_reviewers(owner, name, pr.id) for pr in to_check),
        return_exceptions=True,
    )
    reviewed = set()
    for pr, outcome in zip(to_check, outcomes):
        if isinstance(outcome, BaseException):
            raise outcome
        if any(reviewer.login == username for reviewer in outcome):
            reviewed.add(pr.key)

    for pr in prs:
        if username in pr.assignees:
            result.assigned.append(pr)
        elif username in pr.requested_reviewers or pr.key in reviewed:
            result.review.append(pr)

    _log.debug(
        "%s/%s: %d review, %d assigned of %d open",
        owner, name, len(result.review), len(result.assigned), len(prs),
    )
    return result


class RefreshReconciler:
    """Fetches every configured repository and merges results into state."""

    def __init__(
        self,
        state: DashboardState,
        client: GitHubClient,
        repositories: Sequence[RepositoryConfig],
        username: Optional[str],
    ) -> None:
        self.state = state
        self.client = client
        self.repositories = list(repositories)
        self.username = username

    async def refresh_all(self) -> None:
        """Refresh every repository concurrently and wait for all of them."""
        await asyncio.gather(
            *(self.refresh_repository(repo.owner, repo.name) for repo in self.repositories)
        )

    async def refresh_repository(self, owner: str, name: str) -> bool:
        """Fetch, classify and commit one repository.

        Returns:
            True if the repository's groups were replaced, False on failure
        """
        key = f"{owner}/{name}"
        with self.state.access() as state:
            state.set_loading(key, LoadingState.loading())
        _log.info("Refreshing %s", key)

        try:
            prs = await self.client.fetch_pull_requests(owner, name)
            buckets = await classify_pull_requests(self.client, owner, name, prs, self.username)
        except GitmeError as e:
            _log.warning("Refresh of %s failed: %s", key, e.message)
            with self.state.access() as state:
                state.set_loading(key, LoadingState.error(e.message))
            return False

        self.commit(key, buckets)
        _log.info("Refreshed %s (%d open)", key, len(prs))

        await self.fetch_missing_profiles(buckets.review + buckets.assigned)
        return True

    def commit(self, key: str, buckets: Classification) -> None:
        """Atomically replace ``key`` in both panels and resync the details."""
        with self.state.access() as state:
            for panel in Panel:
                state.panels[panel].replace(key, buckets.for_panel(panel))
            state.sync_details()
            state.set_loading(key, LoadingState.loaded())

    async def fetch_missing_profiles(self, prs: Sequence[PullRequest]) -> None:
        """Cache author profiles not seen yet; failures are only logged."""
        with self.state.read() as state:
            missing = sorted(state.details.missing_profiles(pr.author for pr in prs))
        if not missing:
            return

        outcomes = await asyncio.gather(
            *(self.client.fetch_user_profile(login) for login in missing),
            return_exceptions=True,
        )
        with self.state.access() as state:
            for login, outcome in zip(missing, outcomes):
                if isinstance(outcome, GitmeError):
                    _log.debug("Profile lookup for %s failed: %s", login, outcome.message)
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                state.details.cache_profile(outcome)
