"""Tests for refresh classification and reconciliation."""

import asyncio

import httpx
import pytest
import respx
from httpx import Response
from conftest import FakeGitHubClient, make_pr, pull_requests_of

from gitme.config import RepositoryConfig
from gitme.core.reconciler import RefreshReconciler, classify_pull_requests
from gitme.core.state import DashboardState
from gitme.exceptions import ApiError, NetworkError
from gitme.github import GitHubClient
from gitme.models import LoadingStatus, Panel, Reviewer, UserProfile


REPOS = [RepositoryConfig("o", "a"), RepositoryConfig("o", "b")]


def snapshot(state: DashboardState) -> dict:
    return {panel: state.panels[panel].store.groups() for panel in Panel}


def make_reconciler(client, username="me", repositories=REPOS):
    state = DashboardState()
    return state, RefreshReconciler(state, client, repositories, username)


class TestClassify:
    """Tests for classify_pull_requests."""

    @pytest.mark.asyncio
    async def test_requested_reviewer(self, fake_client):
        pr = make_pr(1, "o/a", requested_reviewers=("me",))
        result = await classify_pull_requests(fake_client, "o", "a", [pr], "me")
        assert result.review == [pr]
        assert result.assigned == []
        assert fake_client.review_calls == []

    @pytest.mark.asyncio
    async def test_submitted_review_counts_as_review(self, fake_client):
        """A PR the user already reviewed stays in their review list."""
        pr = make_pr(1, "o/a", requested_reviewers=())
        fake_client.reviews[("o/a", 1)] = [Reviewer(login="me", state="APPROVED")]
        result = await classify_pull_requests(fake_client, "o", "a", [pr], "me")
        assert result.review == [pr]
        assert fake_client.review_calls == [("o/a", 1)]

    @pytest.mark.asyncio
    async def test_unrelated_pull_request_omitted(self, fake_client):
        pr = make_pr(1, "o/a")
        fake_client.reviews[("o/a", 1)] = [Reviewer(login="someone")]
        result = await classify_pull_requests(fake_client, "o", "a", [pr], "me")
        assert result.review == []
        assert result.assigned == []

    @pytest.mark.asyncio
    async def test_assignee_wins_over_review(self, fake_client):
        pr = make_pr(1, "o/a", assignees=("me",), requested_reviewers=("me",))
        result = await classify_pull_requests(fake_client, "o", "a", [pr], "me")
        assert result.assigned == [pr]
        assert result.review == []
        assert fake_client.review_calls == []

    @pytest.mark.asyncio
    async def test_fetch_order_is_kept(self, fake_client):
        prs = [make_pr(n, "o/a", requested_reviewers=("me",)) for n in (9, 3, 5)]
        result = await classify_pull_requests(fake_client, "o", "a", prs, "me")
        assert [pr.id for pr in result.review] == [9, 3, 5]

    @pytest.mark.asyncio
    async def test_lookup_failure_raises(self, fake_client):
        fake_client.reviews[("o/a", 2)] = NetworkError("down")
        prs = [make_pr(1, "o/a"), make_pr(2, "o/a")]
        with pytest.raises(NetworkError):
            await classify_pull_requests(fake_client, "o", "a", prs, "me")

    @pytest.mark.asyncio
    async def test_no_username(self, fake_client):
        prs = [make_pr(1, "o/a", requested_reviewers=("me",))]
        result = await classify_pull_requests(fake_client, "o", "a", prs, None)
        assert result.review == []
        assert result.assigned == []


class TestRefreshReconciler:
    """Tests for RefreshReconciler."""

    @pytest.mark.asyncio
    async def test_refresh_populates_both_panels(self, fake_client):
        review = make_pr(1, "o/a", requested_reviewers=("me",))
        mine = make_pr(2, "o/a", assignees=("me",))
        fake_client.pulls["o/a"] = [review, mine]
        state, reconciler = make_reconciler(fake_client)

        await reconciler.refresh_all()

        assert pull_requests_of(state.panels[Panel.REVIEW].store, "o/a") == (review,)
        assert pull_requests_of(state.panels[Panel.ASSIGNED].store, "o/a") == (mine,)
        assert "o/b" not in state.panels[Panel.REVIEW].store
        assert state.panels[Panel.REVIEW].cursor == 0
        assert state.loading.status is LoadingStatus.LOADED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order", [["o/a", "o/b"], ["o/b", "o/a"]])
    async def test_completion_order_does_not_matter(self, order):
        """Concurrent refreshes finishing in either order give the same store."""
        expected = None
        for run_order in (["o/a", "o/b"], order):
            client = FakeGitHubClient()
            client.pulls["o/a"] = [make_pr(1, "o/a", requested_reviewers=("me",))]
            client.pulls["o/b"] = [make_pr(2, "o/b", assignees=("me",))]
            client.gates = {key: asyncio.Event() for key in run_order}
            state, reconciler = make_reconciler(client)

            task = asyncio.create_task(reconciler.refresh_all())
            for key in run_order:
                await asyncio.sleep(0)
                client.gates[key].set()
                for _ in range(5):
                    await asyncio.sleep(0)
            await task

            if expected is None:
                expected = snapshot(state)
            assert snapshot(state) == expected

    @pytest.mark.asyncio
    async def test_empty_result_removes_group(self, fake_client):
        fake_client.pulls["o/a"] = [make_pr(1, "o/a", requested_reviewers=("me",))]
        state, reconciler = make_reconciler(fake_client)
        await reconciler.refresh_all()

        fake_client.pulls["o/a"] = []
        await reconciler.refresh_all()

        assert "o/a" not in state.panels[Panel.REVIEW].store
        assert state.panels[Panel.REVIEW].cursor is None

    @pytest.mark.asyncio
    async def test_failure_keeps_existing_data(self, fake_client):
        pr_a = make_pr(1, "o/a", requested_reviewers=("me",))
        pr_b = make_pr(2, "o/b", requested_reviewers=("me",))
        fake_client.pulls["o/a"] = [pr_a]
        fake_client.pulls["o/b"] = [pr_b]
        state, reconciler = make_reconciler(fake_client)
        await reconciler.refresh_all()

        fake_client.pulls["o/a"] = ApiError("Server Error", status_code=500)
        fake_client.pulls["o/b"] = [pr_b, make_pr(3, "o/b", requested_reviewers=("me",))]
        await reconciler.refresh_all()

        review = state.panels[Panel.REVIEW].store
        assert pull_requests_of(review, "o/a") == (pr_a,)
        assert [pr.id for pr in pull_requests_of(review, "o/b")] == [2, 3]
        assert state.repository_status["o/a"].is_error
        assert state.repository_status["o/a"].message == "Server Error"
        assert state.repository_status["o/b"].status is LoadingStatus.LOADED

    @pytest.mark.asyncio
    async def test_nested_lookup_failure_fails_repository(self, fake_client):
        fake_client.pulls["o/a"] = [make_pr(1, "o/a")]
        fake_client.reviews[("o/a", 1)] = NetworkError("Could not reach GitHub")
        state, reconciler = make_reconciler(fake_client, repositories=REPOS[:1])

        ok = await reconciler.refresh_repository("o", "a")

        assert ok is False
        assert "o/a" not in state.panels[Panel.REVIEW].store
        assert state.loading.is_error

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, fake_client):
        fake_client.pulls["o/a"] = RuntimeError("bug")
        _, reconciler = make_reconciler(fake_client)
        with pytest.raises(RuntimeError):
            await reconciler.refresh_repository("o", "a")

    @pytest.mark.asyncio
    async def test_details_follow_new_snapshot(self, fake_client):
        fake_client.pulls["o/a"] = [make_pr(1, "o/a", "Old", requested_reviewers=("me",))]
        state, reconciler = make_reconciler(fake_client)
        await reconciler.refresh_all()
        with state.access():
            state.panels.active.scroll_down()
            state.sync_details()

        fake_client.pulls["o/a"] = [make_pr(1, "o/a", "New", requested_reviewers=("me",))]
        await reconciler.refresh_all()

        assert state.details.pull_request.title == "New"

    @pytest.mark.asyncio
    async def test_author_profiles_cached_once(self, fake_client):
        fake_client.pulls["o/a"] = [
            make_pr(1, "o/a", author="octo", requested_reviewers=("me",)),
            make_pr(2, "o/a", author="ghost", requested_reviewers=("me",)),
        ]
        fake_client.profiles["octo"] = UserProfile(login="octo", name="Octo Cat")
        state, reconciler = make_reconciler(fake_client, repositories=REPOS[:1])

        await reconciler.refresh_all()
        await reconciler.refresh_all()

        assert state.details.profiles == {"octo": UserProfile(login="octo", name="Octo Cat")}
        assert fake_client.profile_calls.count("octo") == 1
        assert state.loading.status is LoadingStatus.LOADED

    @pytest.mark.asyncio
    async def test_version_advances(self, fake_client):
        state, reconciler = make_reconciler(fake_client)
        before = state.version
        await reconciler.refresh_all()
        assert state.version > before

    @pytest.mark.asyncio
    async def test_error_is_not_terminal(self, fake_client):
        """A failed repository goes through Loading to Loaded on the next refresh."""
        fake_client.pulls["o/a"] = NetworkError("Could not reach GitHub")
        state, reconciler = make_reconciler(fake_client, repositories=REPOS[:1])
        await reconciler.refresh_all()
        assert state.loading.is_error
        assert state.repository_status["o/a"].is_error

        seen = []
        commit = reconciler.commit

        def record_then_commit(key, buckets):
            seen.append((state.loading.status, state.repository_status[key].status))
            commit(key, buckets)

        reconciler.commit = record_then_commit
        fake_client.pulls["o/a"] = [make_pr(1, "o/a", requested_reviewers=("me",))]
        assert await reconciler.refresh_repository("o", "a") is True

        assert seen == [(LoadingStatus.LOADING, LoadingStatus.LOADING)]
        assert state.loading.status is LoadingStatus.LOADED
        assert state.repository_status["o/a"].status is LoadingStatus.LOADED
        assert not state.loading.is_error

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_error_is_scoped_to_repository(self):
        """A redirect loop on one repository is recorded, the other still loads."""
        respx.get("https://api.github.com/repos/o/a/pulls").mock(
            side_effect=httpx.TooManyRedirects("loop")
        )
        respx.get("https://api.github.com/repos/o/b/pulls").mock(
            return_value=Response(200, json=[{
                "number": 2,
                "title": "Change",
                "requested_reviewers": [{"login": "me"}],
            }])
        )

        async with GitHubClient(retry_delay=0) as client:
            state, reconciler = make_reconciler(client)
            await reconciler.refresh_all()

        assert state.repository_status["o/a"].is_error
        assert "loop" in state.repository_status["o/a"].message
        assert [pr.id for pr in pull_requests_of(state.panels[Panel.REVIEW].store, "o/b")] == [2]
