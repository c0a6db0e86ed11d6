"""Tests for index-to-row translation."""

from conftest import make_pr

from gitme.core.rows import (
    HeaderRow,
    LeafRow,
    clamp_cursor,
    index_of,
    iter_rows,
    next_header_index,
    previous_header_index,
    row_at,
    total_rows,
)
from gitme.core.store import RepositoryGroup


def scenario_view() -> list[RepositoryGroup]:
    return [
        RepositoryGroup("a", (make_pr(1, "a"), make_pr(2, "a"))),
        RepositoryGroup("b", (make_pr(3, "b"),)),
    ]


class TestRowAt:
    """Tests for row_at and total_rows on the two-group view."""

    def test_total_rows(self) -> None:
        assert total_rows(scenario_view()) == 5

    def test_header_and_leaf_positions(self) -> None:
        view = scenario_view()
        assert row_at(view, 0) == HeaderRow("a", 2)
        assert row_at(view, 1) == LeafRow(make_pr(1, "a"))
        assert row_at(view, 2) == LeafRow(make_pr(2, "a"))
        assert row_at(view, 3) == HeaderRow("b", 1)
        assert row_at(view, 4) == LeafRow(make_pr(3, "b"))

    def test_out_of_bounds(self) -> None:
        view = scenario_view()
        assert row_at(view, 5) is None
        assert row_at(view, -1) is None
        assert row_at([], 0) is None

    def test_empty_view(self) -> None:
        assert total_rows([]) == 0
        assert list(iter_rows([])) == []

    def test_iter_rows_matches_row_at(self) -> None:
        view = scenario_view()
        assert list(iter_rows(view)) == [row_at(view, i) for i in range(total_rows(view))]

    def test_index_of_is_inverse(self) -> None:
        """Every valid index maps to a row and back to itself."""
        view = scenario_view()
        for index in range(total_rows(view)):
            assert index_of(view, row_at(view, index)) == index

    def test_index_of_missing_row(self) -> None:
        assert index_of(scenario_view(), LeafRow(make_pr(9, "a"))) is None
        assert index_of(scenario_view(), HeaderRow("c", 0)) is None


class TestCollapsedGroups:
    """Tests for translation with collapsed groups."""

    def test_collapsed_group_contributes_header_only(self) -> None:
        view = scenario_view()
        assert total_rows(view, {"a"}) == 3
        assert row_at(view, 0, {"a"}) == HeaderRow("a", 2, expanded=False)
        assert row_at(view, 1, {"a"}) == HeaderRow("b", 1)
        assert row_at(view, 2, {"a"}) == LeafRow(make_pr(3, "b"))

    def test_hidden_leaf_has_no_index(self) -> None:
        assert index_of(scenario_view(), LeafRow(make_pr(1, "a")), {"a"}) is None

    def test_bijection_with_collapsed(self) -> None:
        view = scenario_view()
        for index in range(total_rows(view, {"b"})):
            assert index_of(view, row_at(view, index, {"b"}), {"b"}) == index


class TestHeaderNavigation:
    """Tests for next/previous header lookups."""

    def test_next_header(self) -> None:
        view = scenario_view()
        assert next_header_index(view, 0) == 3
        assert next_header_index(view, 2) == 3
        assert next_header_index(view, 3) is None

    def test_previous_header(self) -> None:
        view = scenario_view()
        assert previous_header_index(view, 4) == 3
        assert previous_header_index(view, 3) == 0
        assert previous_header_index(view, 2) == 0
        assert previous_header_index(view, 0) is None


class TestClampCursor:
    """Tests for clamp_cursor."""

    def test_empty_view_has_no_cursor(self) -> None:
        assert clamp_cursor(3, 0) is None
        assert clamp_cursor(None, 0) is None

    def test_non_empty_view_starts_at_zero(self) -> None:
        assert clamp_cursor(None, 4) == 0

    def test_clamps_to_last_row(self) -> None:
        assert clamp_cursor(10, 4) == 3
        assert clamp_cursor(2, 4) == 2
