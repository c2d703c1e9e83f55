"""Exception types raised by the report pipeline."""


class ReportEngineError(Exception):
    """Base class for report engine failures."""


class AnswersNotFoundError(ReportEngineError):
    """No onboarding answers exist for the user; nothing can be generated."""

    def __init__(self, user_id: str):
        super().__init__(f"Onboarding answers not found for user {user_id}")
        self.user_id = user_id


class PlanPersistenceError(ReportEngineError):
    """The plan store could not load or save a plan."""


class ProviderError(ReportEngineError):
    """An LLM provider call failed."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderUnavailableError(ProviderError):
    """The provider has no configured credentials."""


class ProviderResponseError(ProviderError):
    """The provider answered but the response carried no usable text."""


class SectionParseError(ReportEngineError):
    """Provider output could not be turned into a section."""
