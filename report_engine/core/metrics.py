"""Timing instrumentation for report generation."""

import time
from contextlib import contextmanager
from typing import Optional

from report_engine.core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def timer(
    operation_name: str,
    user_id: Optional[str] = None,
    section: Optional[str] = None,
    log_level: str = "info",
):
    """
    Log how long the wrapped block took, even when it raises.

    Args:
        operation_name: Name of the operation being timed
        user_id: Optional report owner for context
        section: Optional section title for context
        log_level: "debug", "info" or "warning"

    Usage:
        with timer("Generate section", user_id, section=spec.title):
            result = generator.generate(user_id, spec, answers, metrics)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
        extra = {"operation": operation_name, "duration_ms": elapsed_ms}
        if user_id:
            extra["user_id"] = user_id
        if section:
            extra["section"] = section

        log = getattr(logger, log_level if log_level in ("debug", "warning") else "info")
        log(f"{operation_name} took {elapsed_ms}ms", extra=extra)
