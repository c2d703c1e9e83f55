"""Pydantic models for the personalized creator report.

A report plan holds the frozen metrics computed from onboarding answers plus
one section per required section spec, always in canonical order:
- Section: top-level content, five action tips and report cards
- LearnMore: the "how to practice" layer (optional)
- Mastery: the "strategy" layer (optional)
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

CONTENT_PLACEHOLDER = "Content is generating..."
TIP_PLACEHOLDER = "Tip will be available soon."

ACTION_TIP_COUNT = 5
REPORT_CARD_COUNT = 5
LEARN_MORE_CARD_COUNT = 6
MASTERY_CARD_COUNT = 6


# =============================================================================
# Metrics
# =============================================================================


class ReportRating(str, Enum):
    """Coarse rating bucket for the composite score."""

    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"


class ReportMetrics(BaseModel):
    """Score metrics derived once from onboarding answers."""

    model_config = ConfigDict(frozen=True)

    content_quality: int = Field(ge=0, le=100)
    consistency: int = Field(ge=0, le=100)
    niche_clarity: int = Field(ge=0, le=100)
    score: int = Field(ge=0, le=100)
    rating: ReportRating
    success_probability: int = Field(ge=0)


# =============================================================================
# Sections
# =============================================================================


class SectionSpec(BaseModel):
    """One required report section and the angle its prompt focuses on."""

    model_config = ConfigDict(frozen=True)

    title: str
    focus: str


class ReportCard(BaseModel):
    """A titled paragraph of insight."""

    title: str
    content: str


class TitledList(BaseModel):
    """A headed list of short items (mastery sub-blocks)."""

    title: str = ""
    items: list[str] = Field(default_factory=list)


class LearnMore(BaseModel):
    """How-to-practice layer of a section."""

    summary: str = ""
    action_steps: list[str] = Field(default_factory=list)
    pro_tips: list[str] = Field(default_factory=list)
    cards: list[ReportCard] = Field(default_factory=list)


class Mastery(BaseModel):
    """Advanced strategy layer of a section."""

    overview: str = ""
    advanced_techniques: TitledList | None = None
    troubleshooting: TitledList | None = None
    long_term_strategy: TitledList | None = None
    expert_resources: list[str] = Field(default_factory=list)
    cards: list[ReportCard] = Field(default_factory=list)


class Section(BaseModel):
    """One named unit of report content."""

    title: str
    content: str = CONTENT_PLACEHOLDER
    action_tips: list[str] = Field(default_factory=list)
    cards: list[ReportCard] = Field(default_factory=list)
    learn_more: LearnMore | None = None
    mastery: Mastery | None = None


def placeholder_section(title: str) -> Section:
    """Stand-in section used before generation and when every provider fails."""
    return Section(
        title=title,
        content=CONTENT_PLACEHOLDER,
        action_tips=[TIP_PLACEHOLDER] * ACTION_TIP_COUNT,
    )


# =============================================================================
# Plan
# =============================================================================


class ReportPlan(BaseModel):
    """Full persisted report state for one user."""

    metrics: ReportMetrics
    sections: list[Section] = Field(default_factory=list)
    updated_at: datetime | None = None

    def section(self, title: str) -> Section | None:
        """Return the section with the given title, if present."""
        for candidate in self.sections:
            if candidate.title == title:
                return candidate
        return None


# =============================================================================
# Progress
# =============================================================================


class ProgressStatus(str, Enum):
    """Externally visible report generation status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


class ReportProgress(BaseModel):
    """Completion summary derived from a persisted plan."""

    percent: int = Field(ge=0, le=100)
    sections_ready: int = Field(ge=0)
    status: ProgressStatus


# =============================================================================
# Required sections (canonical order)
# =============================================================================


REQUIRED_SECTIONS: tuple[SectionSpec, ...] = (
    SectionSpec(
        title="Main Problem | First Advice",
        focus=(
            "Diagnose the loudest blocker using the user's own language. Blend "
            "imperfectionism coaching, StoryBrand clarity, hook psychology, and "
            "worst-case planning to deliver an immediate mindset unlock."
        ),
    ),
    SectionSpec(
        title="Imperfectionism | Execution",
        focus=(
            "Teach mini-habit systems, binary shipped/not-shipped scoring, 70% quality "
            "thresholds, permission slips, and mistake quotas so consistency feels doable."
        ),
    ),
    SectionSpec(
        title="Niche | Focus Discovery",
        focus=(
            "Clarify what they are uniquely good at, map problems they solve, outline value "
            "ladders, and translate ideas into platform-native formats while preserving "
            "authenticity."
        ),
    ),
    SectionSpec(
        title="Personal Brand Development",
        focus=(
            "Engineer visual and verbal identity, content pillars, brand story arcs, "
            "distinctive assets, and guide positioning (empathy plus authority) for "
            "consistent experiences across touchpoints."
        ),
    ),
    SectionSpec(
        title="Marketing Strategy",
        focus=(
            "Design omnichannel narratives, hook ladders, funnel stages, value-first "
            "sequencing, and measurement cadences that prioritize leverage."
        ),
    ),
    SectionSpec(
        title="Platform Organization & Systems",
        focus=(
            "Detail batching, editing workflows, content calendars, atomization flows, "
            "engagement rituals, tooling, and analytics habits that keep publishing effortless."
        ),
    ),
    SectionSpec(
        title="Mental Health & Sustainability",
        focus=(
            "Address comparison spirals, burnout cycles, criticism hygiene, boundary drift, "
            "energy management, relapse planning, and support systems."
        ),
    ),
    SectionSpec(
        title="Advanced Marketing Types & Case Studies",
        focus=(
            "Break down celebrity consistency, corporate omnipresence, luxury scarcity, viral "
            "triggers, community plays, influencer collaborations, UGC, and cross-platform "
            "orchestration."
        ),
    ),
)

REQUIRED_SECTION_TITLES: tuple[str, ...] = tuple(spec.title for spec in REQUIRED_SECTIONS)
