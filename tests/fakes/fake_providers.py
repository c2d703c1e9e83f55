"""Scripted LLM providers and canned section outputs."""

import json
import re
from typing import Any, Dict, List

from report_engine.core.llm_providers import LLMProvider, ProviderRequest


class ScriptedProvider(LLMProvider):
    """
    Provider whose responses come from a script instead of the network.

    Each script entry is consumed by one attempt: a string is returned as the
    model text, an exception instance is raised. When the script runs out the
    last entry is repeated.
    """

    def __init__(
        self,
        name: str,
        script: List[Any] | None = None,
        *,
        available: bool = True,
        max_retries: int = 1,
        max_tokens_ceiling: int = 6000,
    ):
        super().__init__(
            api_key="test-key" if available else "",
            model=f"{name}-test",
            max_tokens_ceiling=max_tokens_ceiling,
            timeout_seconds=5.0,
            max_retries=max_retries,
            backoff_base_seconds=0.0,
            sleep=lambda _: None,
        )
        self.name = name
        self.script = list(script or [])
        self.requests: List[ProviderRequest] = []
        self.calls = 0

    def _create_client(self) -> Any:
        return None

    def _call(self, request: ProviderRequest, max_tokens: int, timeout: float) -> str:
        self.calls += 1
        self.requests.append(request)
        if not self.script:
            raise RuntimeError(f"{self.name} has no scripted response")
        entry = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(entry, Exception):
            raise entry
        return entry


class SectionAwareProvider(ScriptedProvider):
    """Provider that answers every prompt with a complete section for the requested title."""

    def _call(self, request: ProviderRequest, max_tokens: int, timeout: float) -> str:
        self.calls += 1
        self.requests.append(request)
        title = _requested_title(request.user_prompt)
        return json.dumps(complete_section_payload(title))


_TITLE_RE = re.compile(r'Generate the section titled "([^"]+)"')


def _requested_title(prompt: str) -> str:
    match = _TITLE_RE.search(prompt)
    return match.group(1) if match else "Unknown"


def _cards(prefix: str, count: int) -> List[Dict[str, str]]:
    return [
        {
            "title": f"{prefix} {index}",
            "content": f"{prefix} insight number {index} with concrete, personal guidance.",
        }
        for index in range(1, count + 1)
    ]


def complete_section_payload(title: str) -> Dict[str, Any]:
    """Section JSON that passes both completeness predicates."""
    return {
        "section_title": title,
        "content": f"A personalized overview for {title} that names the real blocker and a first step.",
        "action_tips": [f"{index}. Ship one small thing for {title}" for index in range(1, 6)],
        "cards": _cards("Insight", 5),
        "learn_more": {
            "summary": "How to practice this every week.",
            "action_steps": ["Draft", "Record", "Edit", "Publish", "Review"],
            "pro_tips": ["Batch on Sundays", "Keep a swipe file"],
            "cards": _cards("Deep Dive", 6),
        },
        "mastery": {
            "overview": "Where this goes over the next year.",
            "advanced_techniques": {"title": "Advanced Techniques", "items": ["Hook ladders"]},
            "troubleshooting": {"title": "Troubleshooting", "items": ["Views dropped"]},
            "long_term_strategy": {"title": "Long-Term Strategy", "items": ["Build a library"]},
            "expert_resources": ["Building a StoryBrand"],
            "cards": _cards("Mastery", 6),
        },
    }


def complete_section_text(title: str, prose: bool = False) -> str:
    """Serialized complete section, optionally wrapped in chatty prose."""
    body = json.dumps(complete_section_payload(title))
    if prose:
        return f"Sure! Here is the {{section}} you asked for:\n```json\n{body}\n```\nLet me know {{anything}} else."
    return body
