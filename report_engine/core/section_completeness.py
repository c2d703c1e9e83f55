"""Generation-side completeness check.

Decides when the pipeline stops calling a model for a section. The progress
endpoint uses its own, stricter predicate (see report_progress); the two are
deliberately separate.
"""

from report_engine.core.schemas_report import ACTION_TIP_COUNT, CONTENT_PLACEHOLDER, Section

MIN_CONTENT_CHARS = 20


def is_section_complete(section: Section | None) -> bool:
    """
    True when a section no longer needs generation.

    Requires non-placeholder content of at least MIN_CONTENT_CHARS characters
    and at least ACTION_TIP_COUNT non-empty action tips. Padded placeholder
    tips count as non-empty here.
    """
    if section is None:
        return False

    content = section.content.strip()
    if not content or content.lower() == CONTENT_PLACEHOLDER.lower():
        return False
    if len(content) < MIN_CONTENT_CHARS:
        return False

    filled_tips = [tip for tip in section.action_tips if tip.strip()]
    return len(filled_tips) >= ACTION_TIP_COUNT
