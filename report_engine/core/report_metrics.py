"""Report metrics computed from onboarding answers.

Pure and deterministic: every input, including empty or malformed answers,
yields a valid ReportMetrics via per-factor defaults.
"""

import math
import re
from typing import Any, Mapping

from report_engine.core.schemas_report import ReportMetrics, ReportRating

# (answer key, fallback factor in [0, 1])
CONTENT_QUALITY_FACTOR = ("content_strategy_quality", 0.73)
CONSISTENCY_FACTOR = ("posting_consistency", 0.38)
NICHE_CLARITY_FACTOR = ("niche_focus_clarity", 0.48)

CONTENT_QUALITY_WEIGHT = 0.4
CONSISTENCY_WEIGHT = 0.3
NICHE_CLARITY_WEIGHT = 0.3

SUCCESS_PROBABILITY_RATIO = 0.2

# (minimum score, rating), highest first
RATING_THRESHOLDS: tuple[tuple[int, ReportRating], ...] = (
    (80, ReportRating.EXCELLENT),
    (60, ReportRating.GOOD),
    (40, ReportRating.FAIR),
)

_NON_NUMERIC_RE = re.compile(r"[^0-9.,-]+")
_LEADING_FLOAT_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return int(math.floor(value + 0.5))


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def _parse_numeric_string(raw: str) -> float | None:
    """Parse the leading number of a string after dropping non-numeric characters."""
    stripped = _NON_NUMERIC_RE.sub("", raw.strip())
    match = _LEADING_FLOAT_RE.match(stripped)
    if not match:
        return None
    value = float(match.group(0))
    if math.isnan(value):
        return None
    # Values above 1 are percentages
    if value > 1:
        value = value / 100
    return _clamp01(value)


def normalize_factor(answers: Mapping[str, Any] | None, key: str, fallback: float) -> float:
    """
    Read one answer field as a factor in [0, 1].

    Args:
        answers: Onboarding answers (may be None or malformed)
        key: Answer field name
        fallback: Factor used when the field is missing or unparsable

    Returns:
        Factor between 0 and 1
    """
    if not isinstance(answers, Mapping):
        return fallback

    raw = answers.get(key)

    if isinstance(raw, bool):
        return fallback

    if isinstance(raw, (int, float)):
        if math.isnan(raw):
            return fallback
        return _clamp01(float(raw))

    if isinstance(raw, str):
        parsed = _parse_numeric_string(raw)
        return fallback if parsed is None else parsed

    if isinstance(raw, (list, tuple)) and raw:
        first = raw[0]
        if isinstance(first, bool) or first is None:
            return fallback
        parsed = _parse_numeric_string(str(first))
        return fallback if parsed is None else parsed

    return fallback


def rating_for_score(score: int) -> ReportRating:
    """Map a composite score to its rating bucket."""
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return ReportRating.POOR


def compute_report_metrics(answers: Mapping[str, Any] | None) -> ReportMetrics:
    """
    Compute report metrics from onboarding answers.

    Args:
        answers: Onboarding answers keyed by question id

    Returns:
        ReportMetrics with per-factor percentages, composite score and rating
    """
    content_quality = round_half_up(normalize_factor(answers, *CONTENT_QUALITY_FACTOR) * 100)
    consistency = round_half_up(normalize_factor(answers, *CONSISTENCY_FACTOR) * 100)
    niche_clarity = round_half_up(normalize_factor(answers, *NICHE_CLARITY_FACTOR) * 100)

    score = round_half_up(
        content_quality * CONTENT_QUALITY_WEIGHT
        + consistency * CONSISTENCY_WEIGHT
        + niche_clarity * NICHE_CLARITY_WEIGHT
    )

    return ReportMetrics(
        content_quality=content_quality,
        consistency=consistency,
        niche_clarity=niche_clarity,
        score=score,
        rating=rating_for_score(score),
        success_probability=round_half_up(score * SUCCESS_PROBABILITY_RATIO),
    )
