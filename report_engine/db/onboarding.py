"""Onboarding answers lookup."""

from typing import Any

from report_engine.core.config import get_settings
from report_engine.core.logging import get_logger
from report_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


class SupabaseAnswersSource:
    """Reads onboarding answers from the ``onboarding_sessions`` table."""

    def __init__(self, client: Any | None = None, table: str | None = None):
        self._client = client
        self.table = table or get_settings().ONBOARDING_TABLE

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get(self, user_id: str) -> dict[str, Any] | None:
        """
        Get the onboarding answers for a user.

        Args:
            user_id: User identity

        Returns:
            Answers dict, or None if the user has no answers row

        Raises:
            Exception: If the database query fails
        """
        response = (
            self.client.table(self.table)
            .select("answers")
            .eq("user_id", user_id)
            .maybe_single()
            .execute()
        )

        if response is None or not response.data:
            return None

        answers = response.data.get("answers")
        if not isinstance(answers, dict):
            logger.info("No onboarding answers stored", extra={"user_id": user_id})
            return None
        return answers
