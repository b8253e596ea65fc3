"""Authentication-related Marshmallow schemas.

Request and response bodies use camelCase keys; ``data_key`` maps them onto
the snake_case attributes of the service DTOs.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

# Upper bound only; the minimum length is a service rule (WeakPasswordError).
_password = validate.Length(min=1, max=128)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=_password)
    company_name = fields.String(
        data_key="companyName",
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=150),
    )


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=_password)


class EmailSchema(Schema):
    """Input payload for flows keyed by email (forgot password, resend verification)."""

    email = fields.Email(required=True, validate=validate.Length(max=254))


class VerifyEmailSchema(Schema):
    token = fields.String(required=True, validate=validate.Length(min=1, max=256))


class ResetPasswordSchema(Schema):
    """Input payload for password reset.

    ``token`` comes from the emailed link; ``email`` is only honored when the
    email-only reset is enabled.
    """

    token = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=256))
    email = fields.Email(load_default=None, allow_none=True)
    new_password = fields.String(data_key="newPassword", required=True, validate=_password)


class ChangePasswordSchema(Schema):
    current_password = fields.String(data_key="currentPassword", required=True, validate=_password)
    new_password = fields.String(data_key="newPassword", required=True, validate=_password)
    confirm_password = fields.String(data_key="confirmPassword", required=True, validate=_password)


class UserSchema(Schema):
    """Response payload exposing the user summary, counters included."""

    id = fields.Integer(required=True)
    name = fields.String(required=True)
    email = fields.Email(required=True)
    company_name = fields.String(data_key="companyName", allow_none=True)
    email_verified = fields.Boolean(data_key="emailVerified")
    files_uploaded = fields.Integer(data_key="filesUploaded", attribute="counters.files_uploaded")
    batch_analysis = fields.Integer(data_key="batchAnalysis", attribute="counters.batch_analysis")
    compare_resumes = fields.Integer(
        data_key="compareResumes", attribute="counters.compare_resumes"
    )
    selected_candidate = fields.Integer(
        data_key="selectedCandidate", attribute="counters.selected_candidate"
    )
    created_at = fields.DateTime(data_key="createdAt", allow_none=True)


class TokenResponseSchema(Schema):
    """Response payload containing an access token."""

    access_token = fields.String(data_key="accessToken", required=True)
    token_type = fields.String(data_key="tokenType", dump_default="Bearer")
