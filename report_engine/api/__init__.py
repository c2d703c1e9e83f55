"""API router for v1 endpoints."""

from fastapi import APIRouter

from report_engine.api import reports

router = APIRouter()

# Report generation and progress polling routes
router.include_router(reports.router, prefix="/reports", tags=["reports"])
