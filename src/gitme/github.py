"""GitHub REST client for gitme.

This module provides:
- An async GitHub API client with retry and rate limit bookkeeping
- Mapping functions from raw API records to gitme models

Only three lookups feed the dashboard: open pull requests of a repository,
the reviews submitted on a pull request, and user profiles.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from gitme.exceptions import ApiError, DataShapeError, NetworkError
from gitme.log import configure_logger
from gitme.models import PullRequest, Reviewer, UserProfile


_log = configure_logger("gitme.github")


@dataclass
class RateLimitInfo:
    """GitHub API rate limit information."""

    limit: int = 60
    remaining: int = 60
    reset_at: float = 0.0

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> "RateLimitInfo":
        """Parse rate limit info from response headers."""
        return cls(
            limit=int(headers.get("x-ratelimit-limit", 60)),
            remaining=int(headers.get("x-ratelimit-remaining", 60)),
            reset_at=float(headers.get("x-ratelimit-reset", 0)),
        )

    @property
    def is_exhausted(self) -> bool:
        """Check if rate limit is exhausted."""
        return self.remaining <= 0

    @property
    def seconds_until_reset(self) -> float:
        """Seconds until rate limit resets."""
        return max(0, self.reset_at - time.time())


# =============================================================================
# Wire -> domain mapping
# =============================================================================


def _login(user: Any) -> str:
    """Return the login of a user object, or "" for ghosts and teams."""
    if isinstance(user, dict):
        login = user.get("login")
        if isinstance(login, str):
            return login
    return ""


def _text(item: dict, key: str) -> str:
    value = item.get(key)
    return value if isinstance(value, str) else ""


def _flag(item: dict, key: str) -> bool:
    return item.get(key) is True


def _logins(items: Any) -> tuple[str, ...]:
    if not isinstance(items, list):
        return ()
    return tuple(login for login in (_login(u) for u in items) if login)


def pull_request_from_api(item: Any, repo: str) -> PullRequest:
    """Map one item of ``GET /repos/{owner}/{repo}/pulls`` to a PullRequest.

    Only the PR number is required. Every other field falls back to a
    default when it is missing or has the wrong type.

    Args:
        item: Decoded JSON object for one pull request
        repo: Store key of the repository ("owner/name")

    Returns:
        PullRequest snapshot

    Raises:
        DataShapeError: If the item is not an object or has no usable number
    """
    if not isinstance(item, dict):
        raise DataShapeError(f"Expected a pull request object in {repo}", field=None)

    number = item.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        raise DataShapeError(f"Pull request in {repo} has no number", field="number")

    base = item.get("base") if isinstance(item.get("base"), dict) else {}
    head = item.get("head") if isinstance(item.get("head"), dict) else {}

    return PullRequest(
        id=number,
        title=_text(item, "title"),
        url=_text(item, "html_url"),
        repo=repo,
        body=_text(item, "body"),
        author=_login(item.get("user")),
        is_draft=_flag(item, "draft"),
        mergeable=_flag(item, "mergeable"),
        rebaseable=_flag(item, "rebaseable"),
        base_ref=_text(base, "ref"),
        head_ref=_text(head, "ref"),
        requested_reviewers=_logins(item.get("requested_reviewers")),
        assignees=_logins(item.get("assignees")),
    )


def reviewer_from_api(item: Any) -> Optional[Reviewer]:
    """Map one submitted review to its author, or None when it has none."""
    if not isinstance(item, dict):
        return None
    login = _login(item.get("user"))
    if not login:
        return None
    return Reviewer(login=login, state=_text(item, "state"))


def user_profile_from_api(item: Any, login: str) -> UserProfile:
    """Map ``GET /users/{login}`` to a UserProfile."""
    if not isinstance(item, dict):
        return UserProfile(login=login)
    return UserProfile(
        login=_login(item) or login,
        name=_text(item, "name"),
    )


def _error_message(response: httpx.Response) -> str:
    """Prefer GitHub's JSON ``message`` over the raw status line."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return f"GitHub API error {response.status_code}: {data['message']}"
    return f"GitHub API error {response.status_code}: {response.reason_phrase}"


# =============================================================================
# Client
# =============================================================================


class GitHubClient:
    """Async client for the GitHub REST API with retry handling."""

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: Optional[str] = None,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        max_pages: int = 5,
    ):
        """Initialize GitHub client.

        Args:
            token: Optional GitHub personal access token for higher rate limits
                   and access to private repositories.
            max_retries: Maximum number of retries for transport and 5xx errors.
            retry_delay: Base delay between retries (exponential backoff).
            max_pages: Maximum pages of 100 pull requests fetched per repository.
        """
        self.token = token
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_pages = max_pages
        self._client: Optional[httpx.AsyncClient] = None
        self._rate_limit = RateLimitInfo()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": "gitme",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                headers=headers,
                timeout=30.0,
                follow_redirects=True,
            )
        return self._client

    @property
    def rate_limit(self) -> RateLimitInfo:
        """Current rate limit info."""
        return self._rate_limit

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs,
    ) -> httpx.Response:
        """Make a request, retrying transport failures and server errors.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional arguments for httpx

        Returns:
            Successful HTTP response

        Raises:
            NetworkError: If no response could be obtained after retries
            ApiError: If GitHub answered with an error status
        """
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    delay = self.retry_delay * (2 ** attempt)  # Exponential backoff
                    _log.info("Retrying %s %s in %.1fs after %s", method, url, delay, e)
                    await asyncio.sleep(delay)
                    continue
                raise NetworkError(f"Could not reach GitHub: {e}") from e
            except httpx.RequestError as e:
                # Not retried: redirect loops, undecodable bodies
                raise NetworkError(f"Request to GitHub failed: {e}") from e

            self._rate_limit = RateLimitInfo.from_headers(response.headers)
            if self._rate_limit.is_exhausted:
                _log.warning(
                    "GitHub rate limit exhausted; resets in %.0fs",
                    self._rate_limit.seconds_until_reset,
                )

            if response.status_code in (403, 429) and "rate limit" in response.text.lower():
                raise ApiError(
                    f"Rate limit exceeded. Resets in {self._rate_limit.seconds_until_reset:.0f}s",
                    status_code=response.status_code,
                )

            if response.status_code >= 500 and attempt < self.max_retries:
                delay = self.retry_delay * (2 ** attempt)
                _log.info("Retrying %s %s in %.1fs after HTTP %s", method, url, delay, response.status_code)
                await asyncio.sleep(delay)
                continue

            if response.is_error:
                raise ApiError(_error_message(response), status_code=response.status_code)

            return response

        raise NetworkError(f"Request failed without response: {method} {url}")

    async def get_json(self, url: str, **kwargs) -> Any:
        """GET a URL and decode its JSON body."""
        response = await self._request_with_retry("GET", url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise DataShapeError(f"Invalid JSON from {url}") from e

    async def fetch_pull_requests(self, owner: str, name: str) -> list[PullRequest]:
        """Fetch the open pull requests of a repository.

        Records that cannot be mapped are skipped and logged; the rest are
        returned in the order GitHub listed them.

        Args:
            owner: Repository owner (user or organization)
            name: Repository name

        Returns:
            List of PullRequest snapshots keyed by "owner/name"

        Raises:
            NetworkError, ApiError: If the listing request fails
            DataShapeError: If the listing is not a JSON array
        """
        repo = f"{owner}/{name}"
        per_page = 100
        prs: list[PullRequest] = []

        for page in range(1, self.max_pages + 1):
            data = await self.get_json(
                f"/repos/{owner}/{name}/pulls",
                params={"state": "open", "per_page": per_page, "page": page},
            )
            if not isinstance(data, list):
                raise DataShapeError(f"Expected a list of pull requests for {repo}")

            for item in data:
                try:
                    prs.append(pull_request_from_api(item, repo))
                except DataShapeError as e:
                    _log.warning("Skipping pull request record: %s", e.message)

            if len(data) < per_page:
                break

        return prs

    async def fetch_reviewers(self, owner: str, name: str, number: int) -> list[Reviewer]:
        """Fetch the authors of reviews submitted on a pull request.

        Args:
            owner: Repository owner
            name: Repository name
            number: Pull request number

        Returns:
            One Reviewer per submitted review, in submission order
        """
        data = await self.get_json(
            f"/repos/{owner}/{name}/pulls/{number}/reviews",
            params={"per_page": 100},
        )
        if not isinstance(data, list):
            raise DataShapeError(f"Expected a list of reviews for {owner}/{name}#{number}")

        reviewers = []
        for item in data:
            reviewer = reviewer_from_api(item)
            if reviewer is not None:
                reviewers.append(reviewer)
        return reviewers

    async def fetch_user_profile(self, login: str) -> UserProfile:
        """Fetch a user's public profile."""
        data = await self.get_json(f"/users/{login}")
        return user_profile_from_api(data, login)

    async def get_authenticated_user(self) -> UserProfile:
        """Get the profile of the user owning the token.

        Raises:
            ApiError: If not authenticated
        """
        data = await self.get_json("/user")
        profile = user_profile_from_api(data, "")
        if not profile.login:
            raise DataShapeError("Authenticated user has no login", field="login")
        return profile
