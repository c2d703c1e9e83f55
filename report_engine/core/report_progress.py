"""Read-side progress evaluation for persisted report plans.

A section is "ready" for display only when every layer carries its full
quota of meaningful cards and tips. This is stricter than the generation
skip-check in section_completeness, so a provider outage shows up as a
report stuck "in-progress" rather than a false "complete".
"""

from typing import Any, Protocol

from pydantic import ValidationError

from report_engine.core.report_metrics import round_half_up
from report_engine.core.schemas_report import (
    ACTION_TIP_COUNT,
    CONTENT_PLACEHOLDER,
    LEARN_MORE_CARD_COUNT,
    MASTERY_CARD_COUNT,
    REPORT_CARD_COUNT,
    REQUIRED_SECTION_TITLES,
    TIP_PLACEHOLDER,
    ProgressStatus,
    ReportCard,
    ReportPlan,
    ReportProgress,
    Section,
)
from report_engine.core.section_completeness import is_section_complete

_PLACEHOLDERS = frozenset({CONTENT_PLACEHOLDER.lower(), TIP_PLACEHOLDER.lower()})


def is_meaningful_text(value: Any) -> bool:
    """Non-empty text that is not a generation placeholder."""
    if not isinstance(value, str):
        return False
    trimmed = value.strip()
    return bool(trimmed) and trimmed.lower() not in _PLACEHOLDERS


def _meaningful_cards(cards: list[ReportCard]) -> int:
    return sum(1 for card in cards if is_meaningful_text(card.content))


def section_shortfall(section: Section) -> str | None:
    """First display quota the section misses, or None when every quota is met."""
    if _meaningful_cards(section.cards) < REPORT_CARD_COUNT:
        return f"report cards < {REPORT_CARD_COUNT}"
    if section.learn_more is None or _meaningful_cards(section.learn_more.cards) < LEARN_MORE_CARD_COUNT:
        return f"learn_more cards < {LEARN_MORE_CARD_COUNT}"
    if section.mastery is None or _meaningful_cards(section.mastery.cards) < MASTERY_CARD_COUNT:
        return f"mastery cards < {MASTERY_CARD_COUNT}"
    if sum(1 for tip in section.action_tips if is_meaningful_text(tip)) < ACTION_TIP_COUNT:
        return f"action_tips < {ACTION_TIP_COUNT}"
    return None


def is_section_ready(section: Section | None) -> bool:
    """
    Stricter, display-side completeness predicate.

    Requires the generation-side completeness plus:
    - >= REPORT_CARD_COUNT meaningful top-level cards
    - learn-more layer with >= LEARN_MORE_CARD_COUNT meaningful cards
    - mastery layer with >= MASTERY_CARD_COUNT meaningful cards
    - >= ACTION_TIP_COUNT meaningful action tips
    """
    if not is_section_complete(section):
        return False
    return section_shortfall(section) is None


def _coerce_sections(plan: Any) -> dict[str, Section]:
    """Map title -> Section, skipping stored sections that no longer validate."""
    if isinstance(plan, ReportPlan):
        raw_sections: list[Any] = list(plan.sections)
    elif isinstance(plan, list):
        # Older rows stored the section list directly
        raw_sections = plan
    elif isinstance(plan, dict):
        raw_sections = plan.get("sections") if isinstance(plan.get("sections"), list) else []
    else:
        # Same tolerance as plan_from_stored: an unreadable row has no sections
        raw_sections = []

    sections: dict[str, Section] = {}
    for raw in raw_sections:
        if isinstance(raw, Section):
            section = raw
        else:
            try:
                section = Section.model_validate(raw)
            except ValidationError:
                continue
        sections.setdefault(section.title, section)
    return sections


def evaluate_progress(plan: Any) -> ReportProgress:
    """
    Derive completion percentage and status from a persisted plan.

    Args:
        plan: Parsed plan, raw stored plan JSON, or None when no plan exists

    Returns:
        ReportProgress; {0, 0, pending} when there is no plan
    """
    if plan is None:
        return ReportProgress(percent=0, sections_ready=0, status=ProgressStatus.PENDING)

    sections = _coerce_sections(plan)
    total = len(REQUIRED_SECTION_TITLES)
    ready = sum(1 for title in REQUIRED_SECTION_TITLES if is_section_ready(sections.get(title)))

    percent = min(100, round_half_up(100 * ready / total))

    if ready == total:
        status = ProgressStatus.COMPLETE
    elif ready > 0:
        status = ProgressStatus.IN_PROGRESS
    else:
        status = ProgressStatus.PENDING

    return ReportProgress(percent=percent, sections_ready=ready, status=status)


class RawPlanReader(Protocol):
    def load_raw(self, user_id: str) -> Any | None:
        ...


def get_progress(user_id: str, store: RawPlanReader) -> ReportProgress:
    """
    Progress for a user's persisted plan. Never triggers generation.

    Args:
        user_id: Report owner
        store: Plan store (only load_raw is used)

    Returns:
        ReportProgress for the latest persisted plan
    """
    raw = store.load_raw(user_id)
    return evaluate_progress(raw or None)
