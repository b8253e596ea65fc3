"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, Response, after_this_request, g, request

from hiredesk_auth.api.cookies import (
    clear_refresh_cookie,
    read_refresh_cookie,
    set_refresh_cookie,
)
from hiredesk_auth.api.deps import bearer_token, json_body, require_auth, services, success, timing
from hiredesk_auth.schemas import (
    ChangePasswordSchema,
    EmailSchema,
    LoginSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenResponseSchema,
    UserSchema,
    VerifyEmailSchema,
)
from hiredesk_auth.services._shared.errors import (
    InvalidCredentialsError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthorizedError,
)
from hiredesk_auth.services.auth.dto import (
    AuthResultOut,
    ChangePasswordIn,
    EmailIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    VerifyEmailIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
email_schema = EmailSchema()
verify_email_schema = VerifyEmailSchema()
reset_password_schema = ResetPasswordSchema()
change_password_schema = ChangePasswordSchema()
user_schema = UserSchema()
token_schema = TokenResponseSchema()

# Same answer whether or not the email has an account.
FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset link has been sent"
RESEND_VERIFICATION_MESSAGE = (
    "If an unverified account exists for this email, a verification link has been sent"
)


def _session_response(result: AuthResultOut, message: str, *, status: int) -> Response:
    data = token_schema.dump({"access_token": result.tokens.access_token})
    data["user"] = user_schema.dump(result.user)
    response = success(message, data, status=status)
    return set_refresh_cookie(response, result.tokens.refresh_token)


def _clear_cookie_on_exit() -> None:
    """Drop the refresh cookie on the outgoing response, error responses included."""

    @after_this_request
    def _clear(response: Response) -> Response:
        return clear_refresh_cookie(response)


@bp.post("/register")
@timing
def register():
    """Create an account, set the refresh cookie and return the access token."""

    data = register_schema.load(json_body())
    result = services().auth.register(RegisterIn(**data))
    return _session_response(result, "User registered successfully", status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials, set the refresh cookie and return the access token."""

    data = login_schema.load(json_body())
    result = services().auth.login(LoginIn(**data))
    return _session_response(result, "Login successful", status=200)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and return a new access token."""

    token = read_refresh_cookie()
    if token is None:
        raise UnauthorizedError("Refresh token is missing")
    try:
        pair = services().auth.refresh(RefreshIn(refresh_token=token))
    except (InvalidCredentialsError, TokenExpiredError):
        # A rejected refresh token is useless to the browser; drop it.
        _clear_cookie_on_exit()
        raise
    response = success(
        "Token refreshed successfully",
        token_schema.dump({"access_token": pair.access_token}),
    )
    return set_refresh_cookie(response, pair.refresh_token)


@bp.post("/logout")
@timing
def logout():
    """End the session bound to the refresh cookie. Always clears the cookie."""

    user_id = None
    access = bearer_token()
    if access is not None:
        try:
            user_id = services().tokens.verify_access(access)
        except (TokenExpiredError, TokenInvalidError):
            user_id = None
    services().auth.logout(LogoutIn(user_id=user_id, refresh_token=read_refresh_cookie()))
    return clear_refresh_cookie(success("Logged out successfully"))


@bp.post("/verify-email")
@timing
def verify_email():
    """Consume a verification token sent in the JSON body."""

    data = verify_email_schema.load(json_body())
    user = services().auth.verify_email(VerifyEmailIn(token=data["token"]))
    return success("Email verified successfully", {"user": user_schema.dump(user)})


@bp.get("/verify-email")
@timing
def verify_email_link():
    """Consume a verification token from the ``?token=`` query string."""

    data = verify_email_schema.load({"token": request.args.get("token", "")})
    user = services().auth.verify_email(VerifyEmailIn(token=data["token"]))
    return success("Email verified successfully", {"user": user_schema.dump(user)})


@bp.post("/resend-verification")
@timing
def resend_verification():
    data = email_schema.load(json_body())
    services().auth.resend_verification(EmailIn(email=data["email"]))
    return success(RESEND_VERIFICATION_MESSAGE)


@bp.post("/forgot-password")
@timing
def forgot_password():
    """Email a reset link when the account exists; the answer never says which."""

    data = email_schema.load(json_body())
    services().auth.request_password_reset(EmailIn(email=data["email"]))
    return success(FORGOT_PASSWORD_MESSAGE)


@bp.post("/reset-password")
@timing
def reset_password():
    """Set a new password from a reset token; ends the active session."""

    data = reset_password_schema.load(json_body())
    services().auth.reset_password(ResetPasswordIn(**data))
    return clear_refresh_cookie(success("Password reset successfully"))


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    data = change_password_schema.load(json_body())
    services().auth.change_password(ChangePasswordIn(user_id=g.user_id, **data))
    return success("Password changed successfully")


@bp.get("/profile")
@require_auth
@timing
def profile():
    """Return the authenticated user's summary, usage counters included."""

    user = services().auth.get_profile(g.user_id)
    return success("Profile retrieved successfully", {"user": user_schema.dump(user)})
