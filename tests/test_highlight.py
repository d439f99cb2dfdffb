"""Tests for match window highlighting."""

from __future__ import annotations

from sourcefinder.index.highlight import highlight


def _lines(count: int) -> list[str]:
    return [f"line {index}" for index in range(count)]


def _visible(plan) -> list[int]:
    return [line.line_no for line in plan.lines]


class TestSummaryMode:
    """Test bounded, context padded windows."""

    def test_single_match_shows_radius_after(self) -> None:
        plan = highlight(_lines(20), {5}, radius=2)

        assert _visible(plan) == [5, 6, 7]
        assert [line.bold for line in plan.lines] == [True, False, False]
        assert all(line.band == 0 for line in plan.lines)
        assert plan.first_match == 5

    def test_match_near_end_of_document(self) -> None:
        plan = highlight(_lines(6), {5})

        assert _visible(plan) == [5]

    def test_no_matches(self) -> None:
        plan = highlight(_lines(10), set())

        assert plan.lines == []
        assert plan.first_match is None

    def test_out_of_range_matches_ignored(self) -> None:
        plan = highlight(_lines(3), {-1, 1, 99})

        assert _visible(plan) == [1, 2]

    def test_nearby_matches_share_a_band(self) -> None:
        """Matches inside each other's context stay in one band."""
        plan = highlight(_lines(20), {2, 3, 5})

        assert _visible(plan) == [2, 3, 4, 5, 6, 7]
        assert [line.line_no for line in plan.lines if line.bold] == [2, 3, 5]
        assert {line.band for line in plan.lines} == {0}

    def test_short_gap_is_bridged(self) -> None:
        """A hidden gap no wider than the radius is filled in with the next band."""
        plan = highlight(_lines(20), {2, 7})

        assert _visible(plan) == [2, 3, 4, 5, 6, 7, 8, 9]
        bands = {line.line_no: line.band for line in plan.lines}
        assert [bands[n] for n in (2, 3, 4)] == [0, 0, 0]
        assert [bands[n] for n in (5, 6, 7, 8, 9)] == [1, 1, 1, 1, 1]

    def test_wide_gap_is_not_bridged(self) -> None:
        plan = highlight(_lines(20), {2, 8})

        assert _visible(plan) == [2, 3, 4, 8, 9, 10]
        bands = {line.line_no: line.band for line in plan.lines}
        assert bands[2] == 0
        assert bands[8] == 1

    def test_bands_alternate_between_clusters(self) -> None:
        plan = highlight(_lines(100), {10, 30, 50, 70})

        bands = [line.band for line in plan.lines if line.bold]
        assert bands == [0, 1, 0, 1]

    def test_budget_bounds_contiguous_matches(self) -> None:
        """Walk stops once more matches than the budget were seen."""
        plan = highlight(_lines(200), set(range(80)), budget=50, radius=2)

        assert len(plan.lines) <= 50 + 2 * 1
        assert _visible(plan)[-1] == 50
        assert plan.width == 2

    def test_budget_bounds_spread_matches(self) -> None:
        matched = set(range(0, 2000, 20))
        plan = highlight(_lines(2000), matched, budget=50, radius=2)

        clusters = sum(1 for line in plan.lines if line.bold)
        assert clusters == 51
        assert len(plan.lines) <= 50 + 2 * clusters
        assert _visible(plan)[-1] == 1000

    def test_budget_pays_for_bridged_lines_at_spacing_4(self) -> None:
        plan = highlight(_lines(1000), set(range(0, 1000, 4)), budget=50, radius=2)

        clusters = sum(1 for line in plan.lines if line.bold)
        assert clusters == 27
        assert len(plan.lines) == 103
        assert len(plan.lines) <= 50 + 2 * clusters
        assert _visible(plan)[-1] == 104

    def test_budget_pays_for_bridged_lines_at_spacing_5(self) -> None:
        plan = highlight(_lines(1000), set(range(0, 1000, 5)), budget=50, radius=2)

        clusters = sum(1 for line in plan.lines if line.bold)
        assert clusters == 19
        assert len(plan.lines) == 87
        assert len(plan.lines) <= 50 + 2 * clusters
        # Once the budget runs low the last gaps stay hidden
        assert 83 not in _visible(plan)
        assert _visible(plan)[-1] == 90

    def test_zero_radius(self) -> None:
        plan = highlight(_lines(20), {3, 9}, radius=0)

        assert _visible(plan) == [3, 9]
        assert {line.band for line in plan.lines} == {0}

    def test_line_number_width(self) -> None:
        plan = highlight(_lines(120), {5})

        assert plan.width == 3
        assert plan.format()[0] == "  5 | line 5"


class TestFullMode:
    """Test single document rendering."""

    def test_every_line_rendered(self) -> None:
        plan = highlight(_lines(20), {3, 10}, full=True)

        assert _visible(plan) == list(range(20))
        assert all(line.show for line in plan.lines)
        assert [line.line_no for line in plan.lines if line.bold] == [3, 10]
        assert {line.band for line in plan.lines if line.bold} == {0}
        assert all(line.band is None for line in plan.lines if not line.bold)

    def test_budget_ignored(self) -> None:
        plan = highlight(_lines(200), set(range(200)), full=True, budget=50)

        assert len(plan.lines) == 200
        assert all(line.bold for line in plan.lines)
        assert plan.width == 3
