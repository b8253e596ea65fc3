"""Counter-gated file endpoints. Requests are counted, files are never stored."""

from __future__ import annotations

from flask import Blueprint, g

from hiredesk_auth.api.deps import json_body, require_auth, services, success, timing
from hiredesk_auth.schemas import UsageCountSchema, UsageStatsSchema

bp = Blueprint("files", __name__)

count_schema = UsageCountSchema()
stats_schema = UsageStatsSchema()


@bp.post("/count")
@require_auth
@timing
def count():
    """Increment a usage counter and return every counter with the total."""

    data = count_schema.load(json_body())
    usage = services().usage
    usage.check_and_increment(g.user_id, data["counter"], data["count"])
    stats = usage.get_stats(g.user_id)
    return success("Usage recorded successfully", stats_schema.dump(stats))


@bp.get("/stats")
@require_auth
@timing
def stats():
    stats = services().usage.get_stats(g.user_id)
    return success("Usage statistics retrieved successfully", stats_schema.dump(stats))
