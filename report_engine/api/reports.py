"""API endpoints for personalized report generation and progress polling."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from report_engine.core.errors import AnswersNotFoundError, ReportEngineError
from report_engine.core.logging import get_logger
from report_engine.core.report_progress import evaluate_progress
from report_engine.core.schemas_report import ProgressStatus
from report_engine.db.reports import SupabasePlanStore
from report_engine.graphs.report_pipeline_graph import ReportPipeline, build_report_pipeline

logger = get_logger(__name__)

router = APIRouter()


class ReportRequest(BaseModel):
    """Request body identifying the report owner."""

    user_id: str = Field(..., description="User whose report should be generated")


def get_plan_store() -> SupabasePlanStore:
    return SupabasePlanStore()


def get_report_pipeline() -> ReportPipeline:
    return build_report_pipeline()


def _require_user_id(user_id: str) -> str:
    cleaned = user_id.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="user_id is required")
    return cleaned


def _run_report_generation(pipeline: ReportPipeline, user_id: str) -> None:
    """Background job wrapper: failures are logged, the plan stays resumable."""
    try:
        pipeline.run(user_id)
    except Exception as e:
        logger.error(f"Background report generation failed: {e}", extra={"user_id": user_id})


@router.post("/start", status_code=status.HTTP_202_ACCEPTED)
def start_report(
    request: ReportRequest,
    background_tasks: BackgroundTasks,
    response: Response,
    store: SupabasePlanStore = Depends(get_plan_store),
    pipeline: ReportPipeline = Depends(get_report_pipeline),
) -> dict:
    """
    Start (or resume) report generation in the background.

    Returns the stored report directly when every section is already ready.

    Raises:
        HTTPException 400: If user_id is blank
        HTTPException 500: If the existing plan cannot be read
    """
    user_id = _require_user_id(request.user_id)

    try:
        existing = store.load_raw(user_id)
    except ReportEngineError:
        logger.exception("Failed to load existing report", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Unable to load report")

    if existing and evaluate_progress(existing).status == ProgressStatus.COMPLETE:
        logger.info("Existing complete report found", extra={"user_id": user_id})
        response.status_code = status.HTTP_200_OK
        return {"status": "complete", "report": existing}

    background_tasks.add_task(_run_report_generation, pipeline, user_id)
    logger.info("Report generation scheduled", extra={"user_id": user_id})
    return {"status": "started", "user_id": user_id}


@router.post("/generate")
def generate_report_now(
    request: ReportRequest,
    pipeline: ReportPipeline = Depends(get_report_pipeline),
) -> dict:
    """
    Generate (or resume) the report synchronously.

    Raises:
        HTTPException 400: If user_id is blank
        HTTPException 404: If the user has no onboarding answers
        HTTPException 500: If the plan cannot be persisted
    """
    user_id = _require_user_id(request.user_id)

    try:
        plan = pipeline.run(user_id)
    except AnswersNotFoundError:
        raise HTTPException(status_code=404, detail="Onboarding answers not found")
    except ReportEngineError:
        logger.exception("Report generation failed", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to generate report")

    return {
        "report": plan.model_dump(mode="json"),
        "progress": evaluate_progress(plan).model_dump(mode="json"),
    }


@router.get("/{user_id}/progress")
def get_report_progress(
    user_id: str,
    store: SupabasePlanStore = Depends(get_plan_store),
) -> dict:
    """
    Get completion progress for a user's report without generating anything.

    Raises:
        HTTPException 500: If the plan cannot be read
    """
    user_id = _require_user_id(user_id)

    try:
        raw = store.load_raw(user_id)
    except ReportEngineError:
        logger.exception("Failed to fetch report progress", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Unable to fetch progress")

    progress = evaluate_progress(raw or None)
    score = None
    if isinstance(raw, dict) and isinstance(raw.get("metrics"), dict):
        score = raw["metrics"].get("score")

    return {**progress.model_dump(mode="json"), "score": score}


@router.get("/{user_id}")
def get_report(
    user_id: str,
    store: SupabasePlanStore = Depends(get_plan_store),
) -> dict:
    """
    Get the stored report plan for a user.

    Raises:
        HTTPException 404: If no report exists
        HTTPException 500: If the plan cannot be read
    """
    user_id = _require_user_id(user_id)

    try:
        raw = store.load_raw(user_id)
    except ReportEngineError:
        logger.exception("Failed to fetch report", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Unable to fetch report")

    if not raw:
        raise HTTPException(status_code=404, detail="Report not found")

    return {"report": raw}
