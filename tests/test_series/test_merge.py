"""Tests for the series merge engine.

Covers incoming-wins merging, preservation of untouched history,
idempotence, descending output order, carry-forward back-fill and slicing.
"""

from kimp.series.merge import backfill_series, merge_series, slice_since, sort_descending


class TestMergeSeries:
    """Tests for merge_series."""

    def test_incoming_overwrites_and_extends(self) -> None:
        """Existing {01: 5} merged with {01: 7, 02: 8} yields {01: 7, 02: 8}."""
        result = merge_series({"2024-01-01": 5}, {"2024-01-01": 7, "2024-01-02": 8})
        assert result == {"2024-01-01": 7, "2024-01-02": 8}

    def test_untouched_history_preserved(self) -> None:
        """Dates absent from the window keep their stored value."""
        existing = {"2023-12-30": 1.0, "2023-12-31": 2.0, "2024-01-01": 3.0}
        window = {"2024-01-01": 4.0, "2024-01-02": 5.0}

        result = merge_series(existing, window)

        assert result["2023-12-30"] == 1.0
        assert result["2023-12-31"] == 2.0
        assert result["2024-01-01"] == 4.0

    def test_idempotent(self) -> None:
        """merge(merge(S, W), W) == merge(S, W)."""
        existing = {"2024-01-01": 1.0, "2024-01-03": 3.0}
        window = {"2024-01-02": 2.5, "2024-01-03": 3.5}

        once = merge_series(existing, window)
        twice = merge_series(once, window)

        assert twice == once
        assert list(twice) == list(once)

    def test_missing_existing_treated_as_empty(self) -> None:
        """None (no stored object) behaves like an empty series."""
        assert merge_series(None, {"2024-01-01": 1.0}) == {"2024-01-01": 1.0}

    def test_output_sorted_descending(self) -> None:
        """Result keys run most recent first, whatever the input order."""
        result = merge_series(
            {"2024-01-02": 2.0, "2024-01-05": 5.0},
            {"2024-01-04": 4.0, "2024-01-01": 1.0},
        )
        assert list(result) == ["2024-01-05", "2024-01-04", "2024-01-02", "2024-01-01"]

    def test_inputs_not_mutated(self) -> None:
        """merge_series returns a new dict."""
        existing = {"2024-01-01": 1.0}
        merge_series(existing, {"2024-01-01": 2.0})
        assert existing == {"2024-01-01": 1.0}


class TestBackfillSeries:
    """Tests for carry-forward back-fill."""

    def test_weekend_gap_filled_with_prior_value(self) -> None:
        """Missing dates take the last known value before them."""
        series = {"2024-01-05": 1300.0, "2024-01-08": 1310.0}

        result = backfill_series(series, "2024-01-05", "2024-01-08")

        assert result == {
            "2024-01-08": 1310.0,
            "2024-01-07": 1300.0,
            "2024-01-06": 1300.0,
            "2024-01-05": 1300.0,
        }

    def test_seeded_from_value_before_range(self) -> None:
        """A gap at the start of the range uses the latest earlier value."""
        series = {"2024-01-01": 1290.0, "2024-01-04": 1320.0}

        result = backfill_series(series, "2024-01-03", "2024-01-04")

        assert result["2024-01-03"] == 1290.0
        assert "2024-01-02" not in result  # outside the range

    def test_no_prior_value_leaves_gap(self) -> None:
        """Dates before the first known value stay absent."""
        result = backfill_series({"2024-01-03": 1.0}, "2024-01-01", "2024-01-04")

        assert "2024-01-01" not in result
        assert "2024-01-02" not in result
        assert result["2024-01-04"] == 1.0

    def test_existing_values_untouched(self) -> None:
        series = {"2024-01-01": 1.0, "2024-01-02": 2.0}
        assert backfill_series(series, "2024-01-01", "2024-01-02") == sort_descending(series)


class TestSliceSince:
    def test_keeps_dates_on_or_after(self) -> None:
        series = {"2024-01-01": 1.0, "2024-01-02": 2.0, "2024-01-03": 3.0}
        assert slice_since(series, "2024-01-02") == {"2024-01-03": 3.0, "2024-01-02": 2.0}
