"""Pytest configuration and fixtures."""

import os

import pytest

from report_engine.core.config import get_settings
from report_engine.core.report_metrics import compute_report_metrics
from tests.fakes.fake_store import FakeAnswersSource, FakePlanStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["REPORT_ENGINE_ENV"] = "test"
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def answers():
    """Onboarding answers for a creator with a mid-range profile."""
    return {
        "content_strategy_quality": "80%",
        "posting_consistency": 0.5,
        "niche_focus_clarity": ["60"],
        "biggest_challenge": "I overthink every post and end up not publishing",
        "platforms": ["instagram", "youtube"],
    }


@pytest.fixture
def metrics(answers):
    return compute_report_metrics(answers)


@pytest.fixture
def store():
    return FakePlanStore()


@pytest.fixture
def answers_source(answers):
    return FakeAnswersSource({"user-1": answers})
