"""Health check route."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import get_services
from ...logging_config import get_logger
from . import bp

logger = get_logger(__name__)


@bp.get("/health")
def health():
    """Report liveness and whether the database answers."""

    now = datetime.now(timezone.utc).isoformat()
    try:
        with get_services().engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed", extra={"error": str(exc)})
        return jsonify({"status": "unhealthy", "time": now}), 503
    return jsonify({"status": "healthy", "time": now})
