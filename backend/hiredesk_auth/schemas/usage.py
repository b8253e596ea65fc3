"""Usage-counter Marshmallow schemas."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates

from hiredesk_auth.services._shared.ports import UsageCounter

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def counter_name(raw: str) -> str:
    """``"selectedCandidate"`` / ``"selected_candidate"`` -> ``"selected_candidate"``."""
    return _CAMEL_BOUNDARY.sub("_", raw.strip()).lower()


class UsageCountSchema(Schema):
    """Input payload for ``POST /files/count``."""

    count = fields.Integer(load_default=1, strict=True, validate=validate.Range(min=1, max=1000))
    counter = fields.String(load_default="filesUploaded")

    @validates("counter")
    def _known_counter(self, value: str, **_: Any) -> None:
        allowed = {c.value for c in UsageCounter}
        if counter_name(value) not in allowed:
            raise ValidationError(f"Must be one of: {', '.join(sorted(allowed))}.")

    @post_load
    def normalize(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        data["counter"] = counter_name(data["counter"])
        return data


class UsageStatsSchema(Schema):
    """Response payload with every counter, the upload total and the overall total."""

    files_uploaded = fields.Integer(data_key="filesUploaded", attribute="counters.files_uploaded")
    batch_analysis = fields.Integer(data_key="batchAnalysis", attribute="counters.batch_analysis")
    compare_resumes = fields.Integer(
        data_key="compareResumes", attribute="counters.compare_resumes"
    )
    selected_candidate = fields.Integer(
        data_key="selectedCandidate", attribute="counters.selected_candidate"
    )
    total_files_uploaded = fields.Integer(data_key="totalFilesUploaded")
    total_usage = fields.Integer(data_key="totalUsage")
    limits = fields.Dict(keys=fields.String(), values=fields.Integer(allow_none=True))
