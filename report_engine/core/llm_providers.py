"""LLM provider clients for report generation.

Every backend exposes the same two operations:
- available(): cheap credential check, no network
- generate(request): bounded retries with exponential backoff; failures come
  back as a ProviderResult value instead of an exception

SDK clients are created lazily per provider instance and owned by whoever
constructs the provider, so concurrent pipelines never share hidden state.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, ValidationError

from report_engine.core.config import Settings, get_settings
from report_engine.core.errors import ProviderResponseError, ProviderUnavailableError
from report_engine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderRequest:
    """A single text generation request."""

    user_prompt: str
    system_prompt: str | None = None
    max_tokens: int = 4000
    temperature: float = 0.6
    timeout_seconds: float | None = None  # None: provider default
    max_retries: int | None = None  # None: provider default


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of a generate() call after all retries."""

    provider: str
    ok: bool
    text: str = ""
    error: str | None = None
    attempts: int = 0
    attempt_errors: tuple[str, ...] = field(default_factory=tuple)


# =============================================================================
# Response shapes, validated right after the network call
# =============================================================================


class _AnthropicContentBlock(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    text: str | None = None


class _AnthropicMessage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content: list[_AnthropicContentBlock]


class _OpenAIMessage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content: str | None = None


class _OpenAIChoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message: _OpenAIMessage


class _OpenAICompletion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    choices: list[_OpenAIChoice]


def extract_anthropic_text(response: Any) -> str:
    """Return the first non-empty text block of an Anthropic message."""
    try:
        message = _AnthropicMessage.model_validate(response)
    except ValidationError as e:
        raise ProviderResponseError("anthropic", f"unexpected response shape: {e.error_count()} errors") from e

    for block in message.content:
        if block.type == "text" and block.text and block.text.strip():
            return block.text.strip()
    raise ProviderResponseError("anthropic", "response missing text content")


def extract_openai_text(response: Any) -> str:
    """Return the message text of the first OpenAI chat completion choice."""
    try:
        completion = _OpenAICompletion.model_validate(response)
    except ValidationError as e:
        raise ProviderResponseError("openai", f"unexpected response shape: {e.error_count()} errors") from e

    if not completion.choices:
        raise ProviderResponseError("openai", "response has no choices")
    content = completion.choices[0].message.content
    if not content or not content.strip():
        raise ProviderResponseError("openai", "response missing text content")
    return content.strip()


# =============================================================================
# Providers
# =============================================================================


class LLMProvider(ABC):
    """Base class implementing the retry/backoff policy shared by all backends."""

    name = "provider"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        max_tokens_ceiling: int,
        timeout_seconds: float,
        max_retries: int,
        backoff_base_seconds: float = 0.5,
        client: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model = model
        self.max_tokens_ceiling = max_tokens_ceiling
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.backoff_base_seconds = backoff_base_seconds
        self._api_key = api_key
        self._client = client
        self._sleep = sleep

    def available(self) -> bool:
        """True when the provider has credentials (or an injected client)."""
        return self._client is not None or bool(self._api_key and self._api_key.strip())

    def clamp_max_tokens(self, requested: int) -> int:
        """Clamp requested output tokens to the provider ceiling."""
        return max(1, min(requested, self.max_tokens_ceiling))

    def backoff_delays(self, attempts: int) -> list[float]:
        """Delays slept between consecutive attempts."""
        return [self.backoff_base_seconds * (2**index) for index in range(max(0, attempts - 1))]

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    @abstractmethod
    def _create_client(self) -> Any:
        """Build the vendor SDK client from the configured credentials."""

    @abstractmethod
    def _call(self, request: ProviderRequest, max_tokens: int, timeout: float) -> str:
        """Make one request and return the response text, raising on any failure."""

    def generate(self, request: ProviderRequest) -> ProviderResult:
        """
        Generate text, retrying with exponential backoff.

        Args:
            request: Prompt and sampling parameters

        Returns:
            ProviderResult with ok=True and the text, or ok=False and the
            last error after every attempt failed
        """
        if not self.available():
            error = ProviderUnavailableError(self.name, "no credentials configured")
            return ProviderResult(provider=self.name, ok=False, error=str(error))

        attempts = max(1, request.max_retries if request.max_retries is not None else self.max_retries)
        timeout = request.timeout_seconds or self.timeout_seconds
        max_tokens = self.clamp_max_tokens(request.max_tokens)
        delays = self.backoff_delays(attempts)
        errors: list[str] = []

        for attempt in range(1, attempts + 1):
            t0 = time.monotonic()
            try:
                text = self._call(request, max_tokens=max_tokens, timeout=timeout)
            except Exception as e:
                elapsed_ms = int((time.monotonic() - t0) * 1000)
                errors.append(f"{type(e).__name__}: {e}")
                logger.warning(
                    f"{self.name} attempt {attempt}/{attempts} failed after {elapsed_ms}ms: {e}",
                    extra={"provider": self.name},
                )
                if attempt < attempts:
                    self._sleep(delays[attempt - 1])
                continue

            elapsed_ms = int((time.monotonic() - t0) * 1000)
            logger.info(
                f"{self.name} returned {len(text)} chars in {elapsed_ms}ms (attempt {attempt})",
                extra={"provider": self.name},
            )
            return ProviderResult(
                provider=self.name,
                ok=True,
                text=text,
                attempts=attempt,
                attempt_errors=tuple(errors),
            )

        logger.error(f"All {attempts} {self.name} attempts failed", extra={"provider": self.name})
        return ProviderResult(
            provider=self.name,
            ok=False,
            error=errors[-1] if errors else None,
            attempts=attempts,
            attempt_errors=tuple(errors),
        )


class AnthropicProvider(LLMProvider):
    """Claude via the Anthropic Messages API."""

    name = "anthropic"

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "AnthropicProvider":
        return cls(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.REPORT_CLAUDE_MODEL,
            max_tokens_ceiling=settings.CLAUDE_MAX_TOKENS,
            timeout_seconds=settings.CLAUDE_TIMEOUT_SECONDS,
            max_retries=settings.CLAUDE_MAX_RETRIES,
            backoff_base_seconds=settings.PROVIDER_BACKOFF_BASE_SECONDS,
            **kwargs,
        )

    def _create_client(self) -> Any:
        from anthropic import Anthropic

        # Retries are handled by generate()
        return Anthropic(api_key=self._api_key, max_retries=0)

    def _call(self, request: ProviderRequest, max_tokens: int, timeout: float) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.user_prompt}],
            "timeout": timeout,
        }
        if request.system_prompt:
            kwargs["system"] = request.system_prompt

        response = self.client.messages.create(**kwargs)
        return extract_anthropic_text(response)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions."""

    name = "openai"

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "OpenAIProvider":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.REPORT_OPENAI_MODEL,
            max_tokens_ceiling=settings.OPENAI_MAX_TOKENS,
            timeout_seconds=settings.OPENAI_TIMEOUT_SECONDS,
            max_retries=settings.OPENAI_MAX_RETRIES,
            backoff_base_seconds=settings.PROVIDER_BACKOFF_BASE_SECONDS,
            **kwargs,
        )

    def _create_client(self) -> Any:
        from openai import OpenAI

        return OpenAI(api_key=self._api_key, max_retries=0)

    def _call(self, request: ProviderRequest, max_tokens: int, timeout: float) -> str:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.user_prompt})

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=request.temperature,
            response_format={"type": "json_object"},
            timeout=timeout,
        )
        return extract_openai_text(response)


def build_default_providers(settings: Settings | None = None) -> list[LLMProvider]:
    """Providers in priority order: Claude first, OpenAI as fallback."""
    settings = settings or get_settings()
    return [
        AnthropicProvider.from_settings(settings),
        OpenAIProvider.from_settings(settings),
    ]
