"""Report plan construction and canonical ordering."""

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from report_engine.core.logging import get_logger
from report_engine.core.schemas_report import (
    REQUIRED_SECTION_TITLES,
    ReportMetrics,
    ReportPlan,
    Section,
    placeholder_section,
)

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_section_order(sections: list[Section]) -> list[Section]:
    """
    Return exactly one section per required title, in canonical order.

    Missing sections become placeholders; unknown titles are dropped; the
    first occurrence of a duplicated title wins.
    """
    by_title: dict[str, Section] = {}
    for section in sections:
        by_title.setdefault(section.title, section)
    return [by_title.get(title) or placeholder_section(title) for title in REQUIRED_SECTION_TITLES]


def build_initial_plan(metrics: ReportMetrics) -> ReportPlan:
    """Fresh plan with frozen metrics and a placeholder for every section."""
    return ReportPlan(metrics=metrics, sections=ensure_section_order([]), updated_at=_utc_now())


def replace_section(plan: ReportPlan, section: Section) -> ReportPlan:
    """Return a copy of the plan with the section of the same title replaced."""
    sections = [section if existing.title == section.title else existing for existing in plan.sections]
    return plan.model_copy(
        update={"sections": ensure_section_order(sections), "updated_at": _utc_now()}
    )


def plan_from_stored(raw: Any, fallback_metrics: ReportMetrics) -> ReportPlan:
    """
    Rebuild a plan from stored JSON, tolerating partial or legacy shapes.

    Stored metrics are kept when they validate so a resumed run uses the
    metrics its earlier sections were generated against. Sections that no
    longer validate are replaced by placeholders.

    Args:
        raw: Stored plan JSON (dict with metrics/sections, or a bare section list)
        fallback_metrics: Metrics used when the stored ones are missing or invalid

    Returns:
        ReportPlan in canonical section order
    """
    if isinstance(raw, list):
        raw = {"sections": raw}
    if not isinstance(raw, dict):
        raw = {}

    try:
        metrics = ReportMetrics.model_validate(raw.get("metrics"))
    except ValidationError:
        metrics = fallback_metrics

    sections: list[Section] = []
    raw_sections = raw.get("sections")
    for entry in raw_sections if isinstance(raw_sections, list) else []:
        try:
            sections.append(Section.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Dropping stored section that no longer validates: {e.error_count()} errors")

    updated_at = raw.get("updated_at")
    try:
        plan = ReportPlan(metrics=metrics, sections=ensure_section_order(sections), updated_at=updated_at)
    except ValidationError:
        plan = ReportPlan(metrics=metrics, sections=ensure_section_order(sections))
    return plan
