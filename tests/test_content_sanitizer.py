"""Tests for report content sanitization."""

from report_engine.core.content_sanitizer import (
    MAX_CONTENT_WORDS,
    is_placeholder_text,
    pad_action_tips,
    sanitize_cards,
    sanitize_learn_more,
    sanitize_list,
    sanitize_mastery,
    sanitize_section,
    sanitize_text,
    strip_leading_index,
)
from report_engine.core.schemas_report import CONTENT_PLACEHOLDER, TIP_PLACEHOLDER


class TestSanitizeText:
    """Tests for top-level text fields."""

    def test_trims_whitespace(self):
        assert sanitize_text("  Focus on one platform.  ") == "Focus on one platform."

    def test_empty_becomes_placeholder(self):
        assert sanitize_text("") == CONTENT_PLACEHOLDER
        assert sanitize_text(None) == CONTENT_PLACEHOLDER

    def test_placeholder_phrases_become_placeholder(self):
        assert sanitize_text("TBD") == CONTENT_PLACEHOLDER
        assert sanitize_text("...") == CONTENT_PLACEHOLDER

    def test_truncates_long_content(self):
        text = " ".join(f"word{i}" for i in range(700))
        result = sanitize_text(text)
        assert len(result.split()) == MAX_CONTENT_WORDS
        assert result.split()[-1] == "word599"

    def test_unwraps_object_values(self):
        assert sanitize_text({"text": "Wrapped content"}) == "Wrapped content"


class TestSanitizeList:
    """Tests for action tips and other short lists."""

    def test_strips_enumeration_prefixes(self):
        assert sanitize_list(["1. Do X", "2) Do Y", "Do Z"], 5) == ["Do X", "Do Y", "Do Z"]

    def test_strips_other_prefix_styles(self):
        assert strip_leading_index("3- Plan it") == "Plan it"
        assert strip_leading_index("4: Film it") == "Film it"
        assert strip_leading_index("5 Post it") == "Post it"
        assert strip_leading_index("Post it") == "Post it"

    def test_drops_empty_and_placeholder_entries(self):
        result = sanitize_list(["", "   ", "n/a", TIP_PLACEHOLDER, "Keep going"], 5)
        assert result == ["Keep going"]

    def test_skips_non_strings(self):
        assert sanitize_list([1, None, ["x"], "Real tip"], 5) == ["Real tip"]

    def test_caps_length(self):
        assert len(sanitize_list([f"Tip {i}" for i in range(10)], 5)) == 5

    def test_non_list_is_empty(self):
        assert sanitize_list("Do X", 5) == []

    def test_pad_action_tips(self):
        padded = pad_action_tips(["Do X", "Do Y"])
        assert padded == ["Do X", "Do Y"] + [TIP_PLACEHOLDER] * 3


class TestSanitizeCards:
    def test_titles_default_to_insight_number(self):
        cards = sanitize_cards([{"content": "First"}, {"title": "Named", "content": "Second"}], 5)
        assert [card.title for card in cards] == ["Insight 1", "Named"]

    def test_accepts_key_aliases_and_strings(self):
        cards = sanitize_cards(
            [{"ai_generated_title": "Alias", "body": "Body text"}, "Bare string card"], 5
        )
        assert cards[0].title == "Alias"
        assert cards[0].content == "Body text"
        assert cards[1].content == "Bare string card"

    def test_drops_cards_without_content(self):
        cards = sanitize_cards([{"title": "Empty"}, {"title": "Placeholder", "content": "TBD"}], 5)
        assert cards == []

    def test_caps_count(self):
        raw = [{"content": f"Card {i}"} for i in range(9)]
        assert len(sanitize_cards(raw, 6)) == 6


class TestNestedLayers:
    def test_empty_learn_more_is_none(self):
        assert sanitize_learn_more({"summary": "", "cards": []}) is None
        assert sanitize_learn_more("not a dict") is None

    def test_learn_more_aliases(self):
        learn_more = sanitize_learn_more({"actionSteps": ["1. Draft"], "proTips": ["Batch"]})
        assert learn_more.action_steps == ["Draft"]
        assert learn_more.pro_tips == ["Batch"]

    def test_mastery_titled_lists(self):
        mastery = sanitize_mastery(
            {
                "overview": "Long game",
                "advancedTechniques": {"title": "Advanced", "items": ["A", ""]},
                "troubleshooting": ["Fix B"],
            }
        )
        assert mastery.advanced_techniques.items == ["A"]
        assert mastery.troubleshooting.items == ["Fix B"]
        assert mastery.long_term_strategy is None

    def test_empty_mastery_is_none(self):
        assert sanitize_mastery({"overview": "placeholder"}) is None


class TestSanitizeSection:
    def test_canonical_title_wins(self):
        section = sanitize_section({"section_title": "Wrong", "content": "Real content"}, "Marketing Strategy")
        assert section.title == "Marketing Strategy"

    def test_non_dict_yields_placeholder_content(self):
        section = sanitize_section(["not", "an", "object"], "Marketing Strategy")
        assert section.content == CONTENT_PLACEHOLDER
        assert section.action_tips == []

    def test_does_not_pad_tips(self):
        section = sanitize_section({"content": "Real content", "action_tips": ["Do X"]}, "Marketing Strategy")
        assert section.action_tips == ["Do X"]

    def test_legacy_layer_keys(self):
        section = sanitize_section(
            {
                "content": "Real content",
                "learnMore": {"summary": "How"},
                "elaborate_content": {"overview": "Why"},
            },
            "Marketing Strategy",
        )
        assert section.learn_more.summary == "How"
        assert section.mastery.overview == "Why"

    def test_placeholder_detection(self):
        assert is_placeholder_text(None)
        assert is_placeholder_text("  ")
        assert is_placeholder_text(CONTENT_PLACEHOLDER.upper())
        assert not is_placeholder_text("Post three times a week")
