"""Resumable report generation LangGraph pipeline.

Flow: load_inputs -> process_section (one per required section, canonical
order) -> [next_round -> process_section ...] -> finish

The plan is persisted right after loading and after every generated section,
so an interrupted run resumes at the first incomplete section. Complete
sections are never sent to a provider again.

Callers must ensure at most one pipeline runs per user at a time; saves are
last-write-wins upserts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from langgraph.graph import END, StateGraph

from report_engine.chains.generate_report_section import EventLog, SectionGenerator
from report_engine.core.config import Settings, get_settings
from report_engine.core.errors import AnswersNotFoundError
from report_engine.core.llm_providers import LLMProvider, build_default_providers
from report_engine.core.logging import get_logger, log_with_context
from report_engine.core.metrics import timer
from report_engine.core.report_metrics import compute_report_metrics
from report_engine.core.report_plan import build_initial_plan, replace_section
from report_engine.core.schemas_report import REQUIRED_SECTIONS, ReportMetrics, ReportPlan
from report_engine.core.section_completeness import is_section_complete

logger = get_logger(__name__)


class AnswersSource(Protocol):
    def get(self, user_id: str) -> dict[str, Any] | None:
        ...


class PlanStore(EventLog, Protocol):
    def load(self, user_id: str, fallback_metrics: ReportMetrics | None = None) -> ReportPlan | None:
        ...

    def save(self, user_id: str, plan: ReportPlan) -> None:
        ...


@dataclass
class ReportPipelineState:
    """State for the report pipeline graph."""

    # Input
    user_id: str

    # Processing state
    answers: dict[str, Any] = field(default_factory=dict)
    plan: ReportPlan | None = None
    round: int = 1
    section_index: int = 0

    # Output
    sections_generated: int = 0
    sections_skipped: int = 0
    sections_complete: int = 0


def count_complete_sections(plan: ReportPlan) -> int:
    """Number of sections passing the generation-side completeness check."""
    return sum(1 for section in plan.sections if is_section_complete(section))


class ReportPipeline:
    """
    Report generation pipeline with explicitly injected collaborators.

    Args:
        answers_source: Onboarding answers lookup
        store: Plan store and event log
        generator: Section generator (owns the provider chain)
        rounds: Passes over still-incomplete sections per run
    """

    def __init__(
        self,
        answers_source: AnswersSource,
        store: PlanStore,
        generator: SectionGenerator,
        rounds: int = 1,
    ):
        self.answers_source = answers_source
        self.store = store
        self.generator = generator
        self.rounds = max(1, rounds)
        self._graph = self._build_graph().compile()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def load_inputs(self, state: ReportPipelineState) -> dict[str, Any]:
        """Load answers, freeze metrics, load or initialize the plan and persist it."""
        user_id = state.user_id

        answers = self.answers_source.get(user_id)
        if answers is None:
            logger.error("Onboarding answers not found", extra={"user_id": user_id})
            raise AnswersNotFoundError(user_id)

        metrics = compute_report_metrics(answers)
        plan = self.store.load(user_id, fallback_metrics=metrics)
        if plan is None:
            logger.info("Initializing new report plan", extra={"user_id": user_id})
            plan = build_initial_plan(metrics)
        else:
            logger.info("Resuming existing report plan", extra={"user_id": user_id})

        # Persist before generating so pollers see "pending" instead of "not found"
        self.store.save(user_id, plan)

        completed = count_complete_sections(plan)
        self.store.append_event(user_id, "report_generation_started", {"sections_ready": completed})
        logger.info(
            f"Report generation started with {completed}/{len(REQUIRED_SECTIONS)} sections complete",
            extra={"user_id": user_id},
        )

        return {"answers": answers, "plan": plan, "section_index": 0}

    def process_section(self, state: ReportPipelineState) -> dict[str, Any]:
        """Generate the current section unless it is already complete."""
        user_id = state.user_id
        spec = REQUIRED_SECTIONS[state.section_index]
        plan = state.plan

        if is_section_complete(plan.section(spec.title)):
            logger.debug(
                f"Skipping complete section '{spec.title}'",
                extra={"user_id": user_id, "section": spec.title},
            )
            return {
                "section_index": state.section_index + 1,
                "sections_skipped": state.sections_skipped + 1,
            }

        self.store.append_event(
            user_id,
            "section_generation_started",
            {"section": spec.title, "round": state.round},
        )

        with timer("Generate section", user_id, section=spec.title):
            result = self.generator.generate(user_id, spec, state.answers, plan.metrics)

        plan = replace_section(plan, result.section)
        self.store.save(user_id, plan)

        self.store.append_event(
            user_id,
            "section_generation_completed",
            {
                "section": spec.title,
                "round": state.round,
                "outcome": result.outcome.value,
                "provider": result.provider,
                "completed_sections": count_complete_sections(plan),
            },
        )

        return {
            "plan": plan,
            "section_index": state.section_index + 1,
            "sections_generated": state.sections_generated + 1,
        }

    def next_round(self, state: ReportPipelineState) -> dict[str, Any]:
        """Start another pass over the sections that are still incomplete."""
        logger.info(f"Starting generation round {state.round + 1}", extra={"user_id": state.user_id})
        return {"round": state.round + 1, "section_index": 0}

    def finish(self, state: ReportPipelineState) -> dict[str, Any]:
        """Record the final outcome of the run."""
        user_id = state.user_id
        completed = count_complete_sections(state.plan)
        total = len(REQUIRED_SECTIONS)

        if completed == total:
            self.store.append_event(user_id, "report_generation_completed", {"sections_ready": completed})
        else:
            self.store.append_event(
                user_id,
                "report_generation_incomplete",
                {"sections_ready": completed, "missing": total - completed},
            )

        log_with_context(
            logger,
            logging.INFO,
            f"Report generation finished: {completed}/{total} sections complete",
            user_id=user_id,
            rounds=state.round,
            sections_generated=state.sections_generated,
            sections_skipped=state.sections_skipped,
        )
        return {"sections_complete": completed}

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def should_continue(self, state: ReportPipelineState) -> str:
        """Route to the next section, the next round, or the end."""
        if state.section_index < len(REQUIRED_SECTIONS):
            return "process_section"
        if state.round < self.rounds and count_complete_sections(state.plan) < len(REQUIRED_SECTIONS):
            return "next_round"
        return "finish"

    def _build_graph(self) -> StateGraph:
        graph = StateGraph(ReportPipelineState)

        graph.add_node("load_inputs", self.load_inputs)
        graph.add_node("process_section", self.process_section)
        graph.add_node("next_round", self.next_round)
        graph.add_node("finish", self.finish)

        graph.set_entry_point("load_inputs")
        graph.add_edge("load_inputs", "process_section")
        graph.add_conditional_edges(
            "process_section",
            self.should_continue,
            {
                "process_section": "process_section",
                "next_round": "next_round",
                "finish": "finish",
            },
        )
        graph.add_edge("next_round", "process_section")
        graph.add_edge("finish", END)

        return graph

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, user_id: str) -> ReportPlan:
        """
        Generate (or resume) the report for a user.

        Args:
            user_id: Report owner

        Returns:
            Final plan; every required section is present, placeholders included

        Raises:
            AnswersNotFoundError: If the user has no onboarding answers
            PlanPersistenceError: If the plan cannot be loaded or saved
        """
        if not user_id or not user_id.strip():
            raise ValueError("user_id is required to generate a report")

        # One superstep per section per round, plus load/next_round/finish
        recursion_limit = (len(REQUIRED_SECTIONS) + 2) * self.rounds + 5
        final_state = self._graph.invoke(
            ReportPipelineState(user_id=user_id.strip()),
            config={"recursion_limit": recursion_limit},
        )
        if isinstance(final_state, ReportPipelineState):
            return final_state.plan
        return final_state["plan"]


def build_report_pipeline(
    answers_source: AnswersSource | None = None,
    store: PlanStore | None = None,
    providers: Sequence[LLMProvider] | None = None,
    settings: Settings | None = None,
) -> ReportPipeline:
    """Wire a pipeline from settings, defaulting to the Supabase adapters."""
    settings = settings or get_settings()

    if answers_source is None or store is None:
        from report_engine.db.onboarding import SupabaseAnswersSource
        from report_engine.db.reports import SupabasePlanStore

        answers_source = answers_source or SupabaseAnswersSource()
        store = store or SupabasePlanStore()

    if providers is None:
        providers = build_default_providers(settings)

    generator = SectionGenerator.from_settings(providers, store, settings)
    return ReportPipeline(answers_source, store, generator, rounds=settings.REPORT_GENERATION_ROUNDS)


def generate_report(user_id: str, **kwargs: Any) -> ReportPlan:
    """Generate or resume the report for a user with default wiring."""
    return build_report_pipeline(**kwargs).run(user_id)
