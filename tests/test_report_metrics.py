"""Tests for report metrics computation."""

import pytest

from report_engine.core.report_metrics import (
    compute_report_metrics,
    normalize_factor,
    rating_for_score,
    round_half_up,
)
from report_engine.core.schemas_report import ReportRating


class TestNormalizeFactor:
    """Tests for reading a single answer field as a 0..1 factor."""

    def test_missing_key_uses_fallback(self):
        assert normalize_factor({}, "posting_consistency", 0.38) == 0.38

    def test_none_answers_use_fallback(self):
        assert normalize_factor(None, "posting_consistency", 0.38) == 0.38

    def test_fraction_passes_through(self):
        assert normalize_factor({"k": 0.62}, "k", 0.1) == 0.62

    def test_numbers_are_clamped(self):
        assert normalize_factor({"k": 4}, "k", 0.1) == 1.0
        assert normalize_factor({"k": -2}, "k", 0.1) == 0.0

    def test_percent_string(self):
        assert normalize_factor({"k": "80%"}, "k", 0.1) == pytest.approx(0.8)

    def test_fraction_string(self):
        assert normalize_factor({"k": " 0.25 "}, "k", 0.1) == pytest.approx(0.25)

    def test_unparsable_string_uses_fallback(self):
        assert normalize_factor({"k": "often"}, "k", 0.48) == 0.48

    def test_list_uses_first_element(self):
        assert normalize_factor({"k": ["60", "10"]}, "k", 0.1) == pytest.approx(0.6)

    def test_empty_list_uses_fallback(self):
        assert normalize_factor({"k": []}, "k", 0.73) == 0.73

    def test_bool_uses_fallback(self):
        assert normalize_factor({"k": True}, "k", 0.73) == 0.73

    def test_nan_uses_fallback(self):
        assert normalize_factor({"k": float("nan")}, "k", 0.73) == 0.73


class TestRating:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, ReportRating.EXCELLENT),
            (80, ReportRating.EXCELLENT),
            (79, ReportRating.GOOD),
            (60, ReportRating.GOOD),
            (59, ReportRating.FAIR),
            (40, ReportRating.FAIR),
            (39, ReportRating.POOR),
            (0, ReportRating.POOR),
        ],
    )
    def test_thresholds(self, score, expected):
        assert rating_for_score(score) == expected

    def test_round_half_up(self):
        assert round_half_up(37.5) == 38
        assert round_half_up(12.5) == 13
        assert round_half_up(12.49) == 12


class TestComputeReportMetrics:
    def test_empty_answers_use_defaults(self):
        metrics = compute_report_metrics({})

        assert metrics.content_quality == 73
        assert metrics.consistency == 38
        assert metrics.niche_clarity == 48
        assert metrics.score == 55
        assert metrics.rating == ReportRating.FAIR
        assert metrics.success_probability == 11

    def test_weighted_score(self, answers):
        metrics = compute_report_metrics(answers)

        assert metrics.content_quality == 80
        assert metrics.consistency == 50
        assert metrics.niche_clarity == 60
        # 80*0.4 + 50*0.3 + 60*0.3
        assert metrics.score == 65
        assert metrics.rating == ReportRating.GOOD
        assert metrics.success_probability == 13

    def test_malformed_answers_never_raise(self):
        metrics = compute_report_metrics(
            {
                "content_strategy_quality": {"nested": 1},
                "posting_consistency": None,
                "niche_focus_clarity": "n/a",
            }
        )
        assert 0 <= metrics.score <= 100

    def test_deterministic(self, answers):
        assert compute_report_metrics(answers) == compute_report_metrics(dict(answers))
