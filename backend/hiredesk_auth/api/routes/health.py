"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hiredesk_auth.api.deps import json_response, timing
from hiredesk_auth.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application and database health; 503 when the database is unreachable."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db.session.rollback()
        db_status = "fail"
    version = current_app.config.get("APP_VERSION", "dev")
    commit = current_app.config.get("APP_COMMIT", "unknown")
    healthy = db_status == "ok"
    payload = {
        "status": "ok" if healthy else "degraded",
        "service": "HireDesk Auth API",
        "db": db_status,
        "version": version,
        "commit": commit,
    }
    return json_response(payload, status=200 if healthy else 503)
