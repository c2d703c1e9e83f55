"""Report plan persistence and the report generation event log."""

import json
from datetime import datetime, timezone  # noqa: UP035
from typing import Any

from report_engine.core.config import get_settings
from report_engine.core.errors import PlanPersistenceError
from report_engine.core.logging import get_logger
from report_engine.core.report_metrics import compute_report_metrics
from report_engine.core.report_plan import plan_from_stored
from report_engine.core.schemas_report import ReportMetrics, ReportPlan
from report_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _utc_now_iso() -> str:
    """Get current UTC time as ISO string."""
    return datetime.now(timezone.utc).isoformat()  # noqa: UP017


class SupabasePlanStore:
    """
    Plan store backed by the Supabase ``reports`` table.

    One row per user (unique ``user_id``); saves are last-write-wins upserts.
    Event appends go to ``report_generation_events`` and never raise.
    """

    def __init__(
        self,
        client: Any | None = None,
        reports_table: str | None = None,
        events_table: str | None = None,
    ):
        settings = get_settings()
        self._client = client
        self.reports_table = reports_table or settings.REPORTS_TABLE
        self.events_table = events_table or settings.REPORT_EVENTS_TABLE

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def load_raw(self, user_id: str) -> Any | None:
        """
        Fetch the stored plan JSON for a user.

        Args:
            user_id: Report owner

        Returns:
            Stored plan JSON, or None if no row exists

        Raises:
            PlanPersistenceError: If the query fails
        """
        try:
            response = (
                self.client.table(self.reports_table)
                .select("plan")
                .eq("user_id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to load report plan: {e}", extra={"user_id": user_id})
            raise PlanPersistenceError(f"Failed to load report plan for {user_id}: {e}") from e

        if response is None or not response.data:
            return None
        return response.data.get("plan")

    def load(self, user_id: str, fallback_metrics: ReportMetrics | None = None) -> ReportPlan | None:
        """
        Load and normalize the stored plan for a user.

        Args:
            user_id: Report owner
            fallback_metrics: Metrics used when the stored row lacks valid metrics

        Returns:
            ReportPlan in canonical section order, or None if no plan exists

        Raises:
            PlanPersistenceError: If the query fails
        """
        raw = self.load_raw(user_id)
        if not raw:
            return None
        return plan_from_stored(raw, fallback_metrics or compute_report_metrics({}))

    def save(self, user_id: str, plan: ReportPlan) -> None:
        """
        Upsert the plan for a user.

        Raises:
            PlanPersistenceError: If the upsert fails
        """
        payload = {
            "user_id": user_id,
            "plan": plan.model_dump(mode="json"),
            "score": plan.metrics.score,
            "updated_at": _utc_now_iso(),
        }
        try:
            self.client.table(self.reports_table).upsert(payload, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Failed to save report plan: {e}", extra={"user_id": user_id})
            raise PlanPersistenceError(f"Failed to save report plan for {user_id}: {e}") from e

        logger.debug("Saved report plan", extra={"user_id": user_id})

    def append_event(self, user_id: str, event_type: str, details: dict[str, Any] | None = None) -> None:
        """Record a report generation event. Fire-and-forget."""
        row: dict[str, Any] = {
            "user_id": user_id,
            "event_type": event_type,
            "created_at": _utc_now_iso(),
        }
        if details is not None:
            row["details"] = json.dumps(details, default=str)

        try:
            self.client.table(self.events_table).insert(row).execute()
        except Exception as e:
            logger.warning(
                f"Failed to log report event {event_type}: {e}",
                extra={"user_id": user_id},
            )
