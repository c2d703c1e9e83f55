"""Generate one report section through an ordered list of LLM providers.

State machine per section:
    NOT_STARTED -> ATTEMPTING(provider_i) -> SUCCESS
                                          -> ATTEMPTING(provider_i+1)
                                          -> ALL_FAILED

A failed section is not an error for the pipeline: it comes back as a
placeholder section and is retried on the next pipeline run.

With parse_attempts > 1 a provider is re-prompted before falling back, both
after unparsable output and after a section short of its card or tip quotas.
A short section from the last attempt is accepted as is.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from report_engine.chains.report_prompts import (
    SYSTEM_PROMPT,
    build_correction_prompt,
    build_incomplete_prompt,
    build_section_prompt,
)
from report_engine.core.config import Settings, get_settings
from report_engine.core.content_sanitizer import pad_action_tips, sanitize_section
from report_engine.core.errors import SectionParseError
from report_engine.core.llm import parse_llm_json_object
from report_engine.core.llm_providers import LLMProvider, ProviderRequest
from report_engine.core.logging import get_logger
from report_engine.core.report_progress import section_shortfall
from report_engine.core.schemas_report import (
    CONTENT_PLACEHOLDER,
    ReportMetrics,
    Section,
    SectionSpec,
    placeholder_section,
)

logger = get_logger(__name__)


class EventLog(Protocol):
    """Best-effort sink for report generation events."""

    def append_event(self, user_id: str, event_type: str, details: dict[str, Any] | None = None) -> None:
        ...


class SectionOutcome(str, Enum):
    """States of a single section generation."""

    NOT_STARTED = "not_started"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    ALL_FAILED = "all_failed"


@dataclass
class SectionGenerationResult:
    """Section produced by the generator plus how it got there."""

    section: Section
    outcome: SectionOutcome
    provider: str | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)


def parse_section_output(text: str, spec: SectionSpec) -> Section:
    """
    Turn raw provider text into a sanitized section.

    Args:
        text: Raw provider output
        spec: Section being generated

    Returns:
        Sanitized section with exactly five action tips

    Raises:
        SectionParseError: If no JSON object can be parsed or it has no content
    """
    try:
        raw = parse_llm_json_object(text)
    except ValueError as e:
        raise SectionParseError(f"invalid JSON: {e}") from e

    section = sanitize_section(raw, spec.title)
    if section.content == CONTENT_PLACEHOLDER:
        raise SectionParseError("section content missing")

    return section.model_copy(update={"action_tips": pad_action_tips(section.action_tips)})


class SectionGenerator:
    """Runs the provider fallback chain for one section at a time."""

    def __init__(
        self,
        providers: Sequence[LLMProvider],
        events: EventLog,
        *,
        max_tokens: int = 5800,
        temperature: float = 0.3,
        parse_attempts: int = 1,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.providers = list(providers)
        self.events = events
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.parse_attempts = max(1, parse_attempts)
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(
        cls,
        providers: Sequence[LLMProvider],
        events: EventLog,
        settings: Settings | None = None,
    ) -> "SectionGenerator":
        settings = settings or get_settings()
        return cls(
            providers,
            events,
            max_tokens=settings.REPORT_SECTION_MAX_TOKENS,
            temperature=settings.REPORT_SECTION_TEMPERATURE,
            parse_attempts=settings.REPORT_PARSE_ATTEMPTS,
        )

    def _record_error(
        self,
        user_id: str,
        spec: SectionSpec,
        provider: str,
        stage: str,
        message: str | None,
        errors: list[dict[str, Any]],
    ) -> None:
        error = {"provider": provider, "stage": stage, "message": message or "unknown error"}
        errors.append(error)
        logger.warning(
            f"Section '{spec.title}' failed at {provider} ({stage}): {error['message']}",
            extra={"user_id": user_id, "section": spec.title, "provider": provider},
        )
        self.events.append_event(
            user_id,
            "section_generation_error",
            {"section": spec.title, **error},
        )

    def generate(
        self,
        user_id: str,
        spec: SectionSpec,
        answers: Mapping[str, Any],
        metrics: ReportMetrics,
    ) -> SectionGenerationResult:
        """
        Generate one section, falling back through providers in priority order.

        Args:
            user_id: Report owner (for events and logs)
            spec: Section to generate
            answers: Onboarding answers
            metrics: Frozen report metrics

        Returns:
            SectionGenerationResult; on ALL_FAILED the section is a placeholder
        """
        available = [provider for provider in self.providers if provider.available()]
        if not available:
            logger.warning(
                f"No LLM provider available for section '{spec.title}'",
                extra={"user_id": user_id, "section": spec.title},
            )
            self.events.append_event(user_id, "llm_unavailable", {"section": spec.title})
            return SectionGenerationResult(
                section=placeholder_section(spec.title),
                outcome=SectionOutcome.ALL_FAILED,
            )

        base_prompt = build_section_prompt(spec, answers, metrics)
        errors: list[dict[str, Any]] = []

        for provider in available:
            prompt = base_prompt
            for parse_attempt in range(1, self.parse_attempts + 1):
                logger.info(
                    f"Section '{spec.title}' requesting {provider.name} (parse attempt {parse_attempt})",
                    extra={"user_id": user_id, "section": spec.title, "provider": provider.name},
                )
                result = provider.generate(
                    ProviderRequest(
                        user_prompt=prompt,
                        system_prompt=self.system_prompt,
                        max_tokens=self.max_tokens,
                        temperature=self.temperature,
                    )
                )

                if not result.ok:
                    # Provider exhausted its own retries; move on immediately
                    self._record_error(user_id, spec, provider.name, "provider", result.error, errors)
                    break

                try:
                    section = parse_section_output(result.text, spec)
                except SectionParseError as e:
                    self._record_error(user_id, spec, provider.name, "parse", str(e), errors)
                    prompt = build_correction_prompt(base_prompt, str(e), result.text)
                    continue

                shortfall = section_shortfall(section)
                if shortfall is not None:
                    if parse_attempt < self.parse_attempts:
                        self._record_error(user_id, spec, provider.name, "incomplete", shortfall, errors)
                        prompt = build_incomplete_prompt(base_prompt, shortfall, result.text)
                        continue
                    logger.warning(
                        f"Accepting incomplete section '{spec.title}' from {provider.name}: {shortfall}",
                        extra={"user_id": user_id, "section": spec.title, "provider": provider.name},
                    )

                logger.info(
                    f"Section '{spec.title}' generated via {provider.name}",
                    extra={"user_id": user_id, "section": spec.title, "provider": provider.name},
                )
                return SectionGenerationResult(
                    section=section,
                    outcome=SectionOutcome.SUCCESS,
                    provider=provider.name,
                    errors=errors,
                )

        logger.error(
            f"Section '{spec.title}' fell back to placeholder after {len(errors)} errors",
            extra={"user_id": user_id, "section": spec.title},
        )
        self.events.append_event(
            user_id,
            "section_generation_failed",
            {"section": spec.title, "errors": errors},
        )
        return SectionGenerationResult(
            section=placeholder_section(spec.title),
            outcome=SectionOutcome.ALL_FAILED,
            errors=errors,
        )
