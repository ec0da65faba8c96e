"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app
from flask_jwt_extended import get_jwt_identity

from tokenauth.api.deps import (
    get_auth_service,
    get_identity_service,
    json_body,
    json_response,
    require_auth,
    timing,
)
from tokenauth.schemas import (
    LoginResponseSchema,
    LoginSchema,
    LogoutAllResponseSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    SubjectSchema,
    TokenPairSchema,
)
from tokenauth.services.auth.dto import LoginIn, LogoutIn, RefreshIn
from tokenauth.services.identity.dto import UserRegisterIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
subject_schema = SubjectSchema()
token_pair_schema = TokenPairSchema()
login_response_schema = LoginResponseSchema()
logout_all_schema = LogoutAllResponseSchema()


def _access_expires_in() -> int:
    return int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())


@bp.post("/register")
@timing
def register():
    """Register a new user and return the created representation."""

    payload = register_schema.load(json_body())
    subject = get_identity_service().register_user(
        UserRegisterIn(email=payload["email"], password=payload["password"])
    )
    return json_response({"data": subject_schema.dump(subject)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    data = login_schema.load(json_body())
    result = get_auth_service().login(LoginIn(email=data["email"], password=data["password"]))
    body = {
        "data": login_response_schema.dump(
            {
                "user": result.subject,
                "access_token": result.access_token,
                "refresh_token": result.refresh_token,
                "expires_in": _access_expires_in(),
            }
        )
    }
    return json_response(body)


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair; the presented token is revoked."""

    data = refresh_schema.load(json_body())
    pair = get_auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    body = {
        "data": token_pair_schema.dump(
            {
                "access_token": pair.access_token,
                "refresh_token": pair.refresh_token,
                "expires_in": _access_expires_in(),
            }
        )
    }
    return json_response(body)


@bp.post("/logout")
@timing
def logout():
    """Revoke a single refresh token (no access token required)."""

    data = logout_schema.load(json_body())
    get_auth_service().logout(LogoutIn(refresh_token=data["refresh_token"]))
    return json_response({"data": {"message": "Logged out"}})


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every active refresh token of the authenticated user."""

    revoked = get_auth_service().logout_all(get_jwt_identity())
    return json_response({"data": logout_all_schema.dump({"revoked": revoked})})


@bp.get("/profile")
@require_auth
@timing
def profile():
    """Return the authenticated user profile."""

    subject = get_auth_service().get_profile(get_jwt_identity())
    return json_response({"data": subject_schema.dump(subject)})
