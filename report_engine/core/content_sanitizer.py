"""Content sanitization for generated report sections.

Normalizes raw provider JSON into the section schema before it is persisted.
All sanitization happens in memory and never raises: the worst case is a
section made of placeholder content.
"""

import re
from typing import Any

from report_engine.core.schemas_report import (
    ACTION_TIP_COUNT,
    CONTENT_PLACEHOLDER,
    LEARN_MORE_CARD_COUNT,
    MASTERY_CARD_COUNT,
    REPORT_CARD_COUNT,
    TIP_PLACEHOLDER,
    LearnMore,
    Mastery,
    ReportCard,
    Section,
    TitledList,
)

MAX_CONTENT_WORDS = 600

MAX_ACTION_TIPS = ACTION_TIP_COUNT
MAX_ACTION_STEPS = 5
MAX_PRO_TIPS = 5
MAX_EXPERT_RESOURCES = 5
MAX_MASTERY_ITEMS = 6

# Phrases models emit instead of real content
PLACEHOLDER_PHRASES = frozenset(
    phrase.lower()
    for phrase in (
        CONTENT_PLACEHOLDER,
        TIP_PLACEHOLDER,
        "placeholder",
        "tbd",
        "n/a",
        "...",
    )
)

# Keys probed when a string is wrapped in an object
_STRING_KEYS = ("text", "content", "value", "body", "summary", "description", "tip", "message")
_CARD_TITLE_KEYS = ("title", "ai_generated_title", "aiGeneratedTitle", "heading", "name")
_CARD_CONTENT_KEYS = ("content", "body", "text", "summary", "explanation", "details")

# "1. Do X", "2) Do Y", "3- Do Z", "4: Do W"
_INDEX_PUNCT_RE = re.compile(r"^\d+[.)\-:]\s*")
# "5 Do V"
_INDEX_SPACE_RE = re.compile(r"^\d+\s+")


def is_placeholder_text(value: Any) -> bool:
    """True for non-strings, blank strings and known placeholder phrases."""
    if not isinstance(value, str):
        return True
    trimmed = value.strip()
    return not trimmed or trimmed.lower() in PLACEHOLDER_PHRASES


def extract_string(source: Any, keys: tuple[str, ...] = _STRING_KEYS) -> str:
    """Pull the first non-empty string out of a string, list or dict."""
    if isinstance(source, str):
        return source.strip()
    if isinstance(source, list):
        for entry in source:
            value = extract_string(entry, keys)
            if value:
                return value
        return ""
    if isinstance(source, dict):
        for key in keys:
            value = extract_string(source.get(key), keys)
            if value:
                return value
    return ""


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    """Return the first present value among alias keys."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def truncate_words(text: str, max_words: int = MAX_CONTENT_WORDS) -> str:
    """Cut text to at most max_words whitespace-separated words."""
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words])


def sanitize_text(value: Any, max_words: int = MAX_CONTENT_WORDS) -> str:
    """
    Sanitize a top-level text field.

    Args:
        value: Raw value from provider JSON
        max_words: Word cap

    Returns:
        Trimmed text, or the content placeholder when empty or placeholder-like
    """
    text = extract_string(value)
    if is_placeholder_text(text):
        return CONTENT_PLACEHOLDER
    return truncate_words(text, max_words)


def _sanitize_optional_text(value: Any, max_words: int = MAX_CONTENT_WORDS) -> str:
    """Like sanitize_text, but empty instead of placeholder (nested fields)."""
    text = extract_string(value)
    if is_placeholder_text(text):
        return ""
    return truncate_words(text, max_words)


def strip_leading_index(text: str) -> str:
    """Remove a leading enumeration marker such as ``1.`` or ``2)``."""
    trimmed = text.lstrip()
    match = _INDEX_PUNCT_RE.match(trimmed) or _INDEX_SPACE_RE.match(trimmed)
    if match:
        return trimmed[match.end() :]
    return trimmed


def sanitize_list(value: Any, max_items: int) -> list[str]:
    """
    Sanitize a list of short strings.

    Non-string entries are skipped unless they wrap a string, enumeration
    prefixes are removed, empty and placeholder entries are dropped and the
    result is capped at max_items.
    """
    if not isinstance(value, list):
        return []

    cleaned: list[str] = []
    for entry in value:
        if not isinstance(entry, (str, dict)):
            continue
        raw = extract_string(entry)
        if not raw:
            continue
        stripped = strip_leading_index(raw).strip()
        if is_placeholder_text(stripped):
            continue
        cleaned.append(stripped)
        if len(cleaned) >= max_items:
            break
    return cleaned


def pad_action_tips(tips: list[str], count: int = ACTION_TIP_COUNT) -> list[str]:
    """Pad (or cut) action tips to exactly count entries."""
    padded = list(tips[:count])
    while len(padded) < count:
        padded.append(TIP_PLACEHOLDER)
    return padded


def sanitize_cards(value: Any, max_cards: int) -> list[ReportCard]:
    """
    Sanitize a list of report cards.

    Accepts card objects under several key spellings or bare strings. Cards
    without usable content are dropped; missing titles become "Insight N".
    """
    if not isinstance(value, list):
        return []

    cards: list[ReportCard] = []
    for entry in value:
        if isinstance(entry, str):
            title, content = "", _sanitize_optional_text(entry)
        elif isinstance(entry, dict):
            title = strip_leading_index(extract_string(entry, _CARD_TITLE_KEYS)).strip()
            content = _sanitize_optional_text(extract_string(entry, _CARD_CONTENT_KEYS))
        else:
            continue
        if not content:
            continue
        cards.append(ReportCard(title=title or f"Insight {len(cards) + 1}", content=content))
        if len(cards) >= max_cards:
            break
    return cards


def sanitize_titled_list(value: Any) -> TitledList | None:
    """Sanitize a mastery sub-block; None when it has no items."""
    if isinstance(value, list):
        title, items = "", sanitize_list(value, MAX_MASTERY_ITEMS)
    elif isinstance(value, dict):
        title = extract_string(value.get("title"))
        items = sanitize_list(_pick(value, "items", "steps", "points"), MAX_MASTERY_ITEMS)
    else:
        return None
    if not items:
        return None
    return TitledList(title=title, items=items)


def sanitize_learn_more(value: Any) -> LearnMore | None:
    """Sanitize the learn-more layer; None when every field is empty."""
    if not isinstance(value, dict):
        return None

    learn_more = LearnMore(
        summary=_sanitize_optional_text(
            _pick(value, "summary", "what_you_will_learn", "description")
        ),
        action_steps=sanitize_list(_pick(value, "action_steps", "actionSteps"), MAX_ACTION_STEPS),
        pro_tips=sanitize_list(_pick(value, "pro_tips", "proTips", "tips"), MAX_PRO_TIPS),
        cards=sanitize_cards(value.get("cards"), LEARN_MORE_CARD_COUNT),
    )

    if not (learn_more.summary or learn_more.action_steps or learn_more.pro_tips or learn_more.cards):
        return None
    return learn_more


def sanitize_mastery(value: Any) -> Mastery | None:
    """Sanitize the mastery layer; None when every field is empty."""
    if not isinstance(value, dict):
        return None

    mastery = Mastery(
        overview=_sanitize_optional_text(value.get("overview")),
        advanced_techniques=sanitize_titled_list(
            _pick(value, "advanced_techniques", "advancedTechniques")
        ),
        troubleshooting=sanitize_titled_list(value.get("troubleshooting")),
        long_term_strategy=sanitize_titled_list(
            _pick(value, "long_term_strategy", "longTermStrategy")
        ),
        expert_resources=sanitize_list(
            _pick(value, "expert_resources", "expertResources"), MAX_EXPERT_RESOURCES
        ),
        cards=sanitize_cards(value.get("cards"), MASTERY_CARD_COUNT),
    )

    if not (
        mastery.overview
        or mastery.advanced_techniques
        or mastery.troubleshooting
        or mastery.long_term_strategy
        or mastery.expert_resources
        or mastery.cards
    ):
        return None
    return mastery


def sanitize_section(raw: Any, title: str) -> Section:
    """
    Sanitize a raw section object from provider JSON.

    The canonical title always wins over whatever title the model echoed.
    Action tips are returned as sanitized, without padding.

    Args:
        raw: Parsed provider JSON (anything; non-dicts yield a placeholder)
        title: Canonical section title

    Returns:
        Sanitized Section
    """
    if not isinstance(raw, dict):
        raw = {}

    return Section(
        title=title,
        content=sanitize_text(_pick(raw, "content", "summary", "body")),
        action_tips=sanitize_list(_pick(raw, "action_tips", "actionTips"), MAX_ACTION_TIPS),
        cards=sanitize_cards(raw.get("cards"), REPORT_CARD_COUNT),
        learn_more=sanitize_learn_more(_pick(raw, "learn_more", "learnMore", "learn_more_content")),
        mastery=sanitize_mastery(_pick(raw, "mastery", "elaborate_content", "elaborateContent")),
    )
