"""Tests for plan construction and stored-plan normalization."""

from report_engine.core.report_metrics import compute_report_metrics
from report_engine.core.report_plan import (
    build_initial_plan,
    ensure_section_order,
    plan_from_stored,
    replace_section,
)
from report_engine.core.schemas_report import (
    CONTENT_PLACEHOLDER,
    REQUIRED_SECTION_TITLES,
    TIP_PLACEHOLDER,
    Section,
)

METRICS = compute_report_metrics({})


def test_initial_plan_has_placeholder_for_every_section():
    plan = build_initial_plan(METRICS)

    assert [section.title for section in plan.sections] == list(REQUIRED_SECTION_TITLES)
    assert all(section.content == CONTENT_PLACEHOLDER for section in plan.sections)
    assert all(section.action_tips == [TIP_PLACEHOLDER] * 5 for section in plan.sections)
    assert plan.updated_at is not None


def test_ensure_section_order_reorders_and_drops_unknown():
    sections = [
        Section(title=REQUIRED_SECTION_TITLES[3], content="Fourth section content."),
        Section(title="Monetization Strategies", content="Not required."),
        Section(title=REQUIRED_SECTION_TITLES[0], content="First section content."),
        Section(title=REQUIRED_SECTION_TITLES[0], content="Duplicate is ignored."),
    ]

    ordered = ensure_section_order(sections)

    assert [section.title for section in ordered] == list(REQUIRED_SECTION_TITLES)
    assert ordered[0].content == "First section content."
    assert ordered[3].content == "Fourth section content."
    assert ordered[1].content == CONTENT_PLACEHOLDER


def test_replace_section_only_touches_one_title():
    plan = build_initial_plan(METRICS)
    updated = replace_section(plan, Section(title=REQUIRED_SECTION_TITLES[5], content="New content here."))

    assert updated.sections[5].content == "New content here."
    assert updated.sections[:5] == plan.sections[:5]
    assert updated.sections[6:] == plan.sections[6:]
    # Original plan is not mutated
    assert plan.sections[5].content == CONTENT_PLACEHOLDER


def test_plan_from_stored_keeps_valid_metrics():
    stored = build_initial_plan(compute_report_metrics({"posting_consistency": 1})).model_dump(mode="json")

    plan = plan_from_stored(stored, METRICS)

    assert plan.metrics.consistency == 100


def test_plan_from_stored_falls_back_on_bad_metrics():
    plan = plan_from_stored({"metrics": {"score": "high"}, "sections": []}, METRICS)

    assert plan.metrics == METRICS
    assert len(plan.sections) == len(REQUIRED_SECTION_TITLES)


def test_plan_from_stored_accepts_legacy_list():
    plan = plan_from_stored([{"title": REQUIRED_SECTION_TITLES[1], "content": "Legacy row content."}], METRICS)

    assert plan.sections[1].content == "Legacy row content."


def test_plan_from_stored_drops_invalid_sections():
    plan = plan_from_stored({"sections": [{"title": REQUIRED_SECTION_TITLES[0], "cards": "oops"}]}, METRICS)

    assert plan.sections[0].content == CONTENT_PLACEHOLDER


def test_plan_from_stored_tolerates_garbage():
    plan = plan_from_stored("not a plan", METRICS)

    assert plan.metrics == METRICS
    assert len(plan.sections) == len(REQUIRED_SECTION_TITLES)
