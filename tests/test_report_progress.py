"""Tests for report progress evaluation and the two completeness predicates."""

import pytest

from report_engine.core.report_metrics import compute_report_metrics
from report_engine.core.report_plan import build_initial_plan, replace_section
from report_engine.core.report_progress import (
    evaluate_progress,
    get_progress,
    is_section_ready,
    section_shortfall,
)
from report_engine.core.schemas_report import (
    REQUIRED_SECTION_TITLES,
    TIP_PLACEHOLDER,
    LearnMore,
    Mastery,
    ProgressStatus,
    ReportCard,
    Section,
)
from report_engine.core.section_completeness import is_section_complete
from tests.fakes.fake_store import FakePlanStore


def _cards(count, content="Specific, useful guidance."):
    return [ReportCard(title=f"Card {i}", content=content) for i in range(count)]


def _ready_section(title):
    return Section(
        title=title,
        content="A personalized overview with a clear first step.",
        action_tips=[f"Tip {i}" for i in range(5)],
        cards=_cards(5),
        learn_more=LearnMore(summary="How", cards=_cards(6)),
        mastery=Mastery(overview="Why", cards=_cards(6)),
    )


def _plan_with_ready(count):
    plan = build_initial_plan(compute_report_metrics({}))
    for title in REQUIRED_SECTION_TITLES[:count]:
        plan = replace_section(plan, _ready_section(title))
    return plan


class TestPredicates:
    def test_ready_section_passes_both(self):
        section = _ready_section("Marketing Strategy")
        assert is_section_complete(section)
        assert is_section_ready(section)

    def test_padded_tips_complete_but_not_ready(self):
        section = _ready_section("Marketing Strategy").model_copy(
            update={"action_tips": ["Tip 1", "Tip 2"] + [TIP_PLACEHOLDER] * 3}
        )
        assert is_section_complete(section)
        assert not is_section_ready(section)

    def test_missing_cards_complete_but_not_ready(self):
        section = Section(
            title="Marketing Strategy",
            content="A personalized overview with a clear first step.",
            action_tips=[f"Tip {i}" for i in range(5)],
        )
        assert is_section_complete(section)
        assert not is_section_ready(section)

    def test_short_mastery_cards_not_ready(self):
        section = _ready_section("Marketing Strategy")
        section.mastery.cards = _cards(5)
        assert not is_section_ready(section)

    def test_short_content_not_complete(self):
        section = _ready_section("Marketing Strategy").model_copy(update={"content": "Too short"})
        assert not is_section_complete(section)

    def test_none_is_neither(self):
        assert not is_section_complete(None)
        assert not is_section_ready(None)

    def test_shortfall_names_first_missing_quota(self):
        section = _ready_section("Marketing Strategy")
        assert section_shortfall(section) is None

        section.learn_more.cards = _cards(2)
        assert section_shortfall(section) == "learn_more cards < 6"

        section.cards = _cards(5, content=TIP_PLACEHOLDER)
        assert section_shortfall(section) == "report cards < 5"


class TestEvaluateProgress:
    def test_no_plan_is_pending(self):
        progress = evaluate_progress(None)
        assert (progress.percent, progress.sections_ready, progress.status) == (0, 0, ProgressStatus.PENDING)

    def test_placeholder_plan_is_pending(self):
        progress = evaluate_progress(_plan_with_ready(0))
        assert progress.status == ProgressStatus.PENDING
        assert progress.percent == 0

    def test_partial_plan(self):
        progress = evaluate_progress(_plan_with_ready(3))
        assert progress.sections_ready == 3
        assert progress.percent == 38
        assert progress.status == ProgressStatus.IN_PROGRESS

    def test_complete_plan(self):
        progress = evaluate_progress(_plan_with_ready(8))
        assert progress.percent == 100
        assert progress.status == ProgressStatus.COMPLETE

    def test_raw_json_plan(self):
        raw = _plan_with_ready(4).model_dump(mode="json")
        assert evaluate_progress(raw).sections_ready == 4

    def test_legacy_section_list(self):
        raw = [section.model_dump(mode="json") for section in _plan_with_ready(1).sections]
        assert evaluate_progress(raw).sections_ready == 1

    def test_invalid_sections_are_ignored(self):
        raw = _plan_with_ready(2).model_dump(mode="json")
        raw["sections"].append({"content": "no title"})
        assert evaluate_progress(raw).sections_ready == 2

    def test_unknown_titles_do_not_count(self):
        raw = _plan_with_ready(0).model_dump(mode="json")
        raw["sections"].append(_ready_section("Monetization Strategies").model_dump(mode="json"))
        assert evaluate_progress(raw).sections_ready == 0

    @pytest.mark.parametrize("raw", ['{"sections": []}', 42, True])
    def test_unreadable_rows_are_pending(self, raw):
        progress = evaluate_progress(raw)
        assert progress.status == ProgressStatus.PENDING
        assert progress.sections_ready == 0


class TestGetProgress:
    def test_reads_store_without_generating(self):
        store = FakePlanStore()
        store.seed("user-1", _plan_with_ready(8))

        progress = get_progress("user-1", store)

        assert progress.status == ProgressStatus.COMPLETE
        assert store.saves == []
        assert store.events == []

    def test_unknown_user(self):
        progress = get_progress("nobody", FakePlanStore())
        assert progress.status == ProgressStatus.PENDING
        assert progress.sections_ready == 0
