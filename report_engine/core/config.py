"""Configuration management for the Report Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # Environment
    REPORT_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Provider credentials (optional: an empty key marks the provider unavailable)
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key")

    # Anthropic (primary provider)
    REPORT_CLAUDE_MODEL: str = Field(
        default="claude-3-7-sonnet-20250219", description="Claude model for report sections"
    )
    CLAUDE_MAX_TOKENS: int = Field(default=6000, description="Hard ceiling for Claude output tokens")
    CLAUDE_TIMEOUT_SECONDS: float = Field(default=600.0, description="Per-call Claude timeout")
    CLAUDE_MAX_RETRIES: int = Field(default=3, description="Attempts per Claude request")

    # OpenAI (fallback provider)
    REPORT_OPENAI_MODEL: str = Field(
        default="gpt-4o-mini", description="OpenAI model for report sections"
    )
    OPENAI_MAX_TOKENS: int = Field(default=4096, description="Hard ceiling for OpenAI output tokens")
    OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0, description="Per-call OpenAI timeout")
    OPENAI_MAX_RETRIES: int = Field(default=3, description="Attempts per OpenAI request")

    # Shared provider retry policy
    PROVIDER_BACKOFF_BASE_SECONDS: float = Field(
        default=0.5, description="First retry delay; doubles on every further attempt"
    )

    # Section generation
    REPORT_SECTION_MAX_TOKENS: int = Field(
        default=5800, description="Requested output tokens per section (clamped per provider)"
    )
    REPORT_SECTION_TEMPERATURE: float = Field(default=0.3, description="Section sampling temperature")
    REPORT_PARSE_ATTEMPTS: int = Field(
        default=1, description="Prompts per provider before falling back after unparsable output"
    )
    REPORT_GENERATION_ROUNDS: int = Field(
        default=1, description="Passes over incomplete sections within a single pipeline run"
    )

    # Tables
    REPORTS_TABLE: str = Field(default="reports", description="Plan storage table")
    REPORT_EVENTS_TABLE: str = Field(
        default="report_generation_events", description="Report event log table"
    )
    ONBOARDING_TABLE: str = Field(
        default="onboarding_sessions", description="Onboarding answers table"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
