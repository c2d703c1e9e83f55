"""Prompts for personalized report section generation."""

import json
from typing import Any, Mapping

from report_engine.core.schemas_report import (
    ACTION_TIP_COUNT,
    LEARN_MORE_CARD_COUNT,
    MASTERY_CARD_COUNT,
    REPORT_CARD_COUNT,
    ReportMetrics,
    SectionSpec,
)

SYSTEM_PROMPT = """You are a world-class marketing strategist who writes three-level learning reports for content creators.

Each section has three layers:
- Report level (WHY): a personal diagnosis, insight cards and action tips
- Learn more (HOW): practice steps, pro tips and deep-dive cards
- Mastery (STRATEGY): advanced techniques, troubleshooting, long-term strategy and mastery cards

Tone: a smart friend. Empathetic, specific, strategic. Refer to the creator's own answers.
Return ONLY valid JSON matching the requested structure. No markdown, no commentary."""

SECTION_OUTPUT_TEMPLATE = """Example JSON (structure must match exactly):
{
  "section_title": "Section Name",
  "content": "200-400 word personalized overview.",
  "action_tips": ["Tip 1", "Tip 2", "Tip 3", "Tip 4", "Tip 5"],
  "cards": [
    {"title": "Insight 1", "content": "80-120 word paragraph."}
  ],
  "learn_more": {
    "summary": "What the creator will learn.",
    "action_steps": ["Step 1", "Step 2", "Step 3", "Step 4", "Step 5"],
    "pro_tips": ["Pro tip 1", "Pro tip 2", "Pro tip 3"],
    "cards": [
      {"title": "Deep Dive 1", "content": "..."}
    ]
  },
  "mastery": {
    "overview": "Strategic overview.",
    "advanced_techniques": {"title": "Advanced Techniques", "items": ["..."]},
    "troubleshooting": {"title": "Troubleshooting", "items": ["..."]},
    "long_term_strategy": {"title": "Long-Term Strategy", "items": ["..."]},
    "expert_resources": ["..."],
    "cards": [
      {"title": "Mastery 1", "content": "..."}
    ]
  }
}"""


def build_section_prompt(
    spec: SectionSpec,
    answers: Mapping[str, Any],
    metrics: ReportMetrics,
) -> str:
    """
    Build the user prompt for one report section.

    Args:
        spec: Section being generated
        answers: Onboarding answers
        metrics: Frozen report metrics

    Returns:
        Prompt text
    """
    serialized_answers = json.dumps(dict(answers), indent=2, default=str, ensure_ascii=False)
    serialized_metrics = json.dumps(metrics.model_dump(mode="json"), indent=2)

    return f"""Generate the section titled "{spec.title}".
Section-specific focus:
{spec.focus}

User onboarding responses:
{serialized_answers}

Current metrics:
{serialized_metrics}

STRICT COMPLETENESS RULES
- "content" must be complete prose (no placeholders).
- Report level MUST include exactly {REPORT_CARD_COUNT} cards AND {ACTION_TIP_COUNT} action_tips.
- Learn more MUST include exactly {LEARN_MORE_CARD_COUNT} cards.
- Mastery MUST include exactly {MASTERY_CARD_COUNT} cards.
- Every card is a JSON object with "title" and "content" keys, never a raw string.
- Every action tip is a concrete, single-sentence directive without numbering.
- No two cards or tips may repeat the same recommendation.

{SECTION_OUTPUT_TEMPLATE}

Return JSON only."""


def build_correction_prompt(base_prompt: str, reason: str, invalid_output: str) -> str:
    """Re-prompt after unusable output, quoting a snippet of what came back."""
    snippet = invalid_output[:1500]
    return f"""{base_prompt}

IMPORTANT: Your previous response could not be used ({reason}).
- Output ONLY one valid JSON object matching the example structure.
- Use double quotes around every key and string value. No trailing commas.
- Rewrite from scratch; do not copy the malformed output below.

--- Invalid output snippet ---
{snippet}
--- End snippet ---"""


def build_incomplete_prompt(base_prompt: str, shortfall: str, previous_output: str) -> str:
    """Re-prompt after a parsable section that misses its card or tip quotas."""
    snippet = previous_output[:1500]
    return f"""{base_prompt}

IMPORTANT: Your previous response was incomplete ({shortfall}).
- Report level must include {REPORT_CARD_COUNT} cards and {ACTION_TIP_COUNT} fully written action_tips.
- Learn more must include {LEARN_MORE_CARD_COUNT} cards.
- Mastery must include {MASTERY_CARD_COUNT} cards.
- Every card needs unique, complete content (no placeholders).
- Rewrite the entire JSON object from scratch, following the example structure exactly.

--- Incomplete output snippet ---
{snippet}
--- End snippet ---"""
