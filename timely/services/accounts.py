"""Signup, login and token-to-user resolution.

Login failures keep distinct internal messages ("User not found" versus
"Wrong password"); the login page shows whichever message it receives, with
the same status and layout for both.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ..core.config import AppSettings
from ..core.errors import AuthError, BackendApiError, InvalidSessionError, ValidationError
from ..core.security import decode_token, hash_password, issue_token, verify_password
from ..db.query import UserFilter
from ..db.repository import Repository
from ..schemas.auth import SignupForm
from ..schemas.user import User, UserCreate

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
# PostgreSQL unique_violation, reported by the backend for a taken username.
UNIQUE_VIOLATION = "23505"


def _token_ttl(settings: AppSettings) -> timedelta:
    return timedelta(days=settings.TOKEN_TTL_DAYS)


def build_user_token(settings: AppSettings, user: User) -> str:
    return issue_token(settings.TIMELY_TOKEN_SECRET, user.id, _token_ttl(settings))


# ---------- Validation ----------


def validate_email_address(value: str) -> None:
    local, sep, domain = value.partition("@")
    if not sep or "@" in domain or not local.strip() or not domain.strip():
        raise ValidationError("invalid email")


def validate_username(value: str) -> None:
    if not value.isalnum():
        raise ValidationError(
            "Invalid characters in username: only numbers and alphabetic characters allowed"
        )


def validate_password(value: str) -> None:
    # Measured in UTF-8 bytes, matching how stored passwords were validated.
    if len(value.encode("utf-8")) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters long")


# ---------- Flows ----------


def login(repo: Repository, settings: AppSettings, username: str, password: str) -> tuple[User, str]:
    if not username:
        raise ValidationError("Must specify a username")
    if not password:
        raise ValidationError("Must specify a password")

    user = repo.user(UserFilter.by_name(username.strip()))
    if user is None:
        raise AuthError("User not found")
    if not verify_password(user.password_hash, password):
        raise AuthError("Wrong password")

    logger.info("user.login", extra={"extra_data": {"user_id": user.id}})
    return user, build_user_token(settings, user)


def signup(repo: Repository, form: SignupForm) -> User:
    if not form.username:
        raise ValidationError("Must specify a username")
    if not form.email:
        raise ValidationError("Must specify an email address")
    if not form.password:
        raise ValidationError("Must specify a password")

    validate_email_address(form.email)
    validate_username(form.username)
    validate_password(form.password)

    draft = UserCreate(
        username=form.username,
        email=form.email,
        password_hash=hash_password(form.password),
    )
    try:
        user = repo.user_create(draft)
    except BackendApiError as exc:
        if exc.api_error is not None and exc.api_error.code == UNIQUE_VIOLATION:
            raise ValidationError("Username is already taken") from exc
        raise
    logger.info("user.signup", extra={"extra_data": {"user_id": user.id}})
    return user


def signup_and_login(repo: Repository, settings: AppSettings, form: SignupForm) -> tuple[User, str]:
    user = signup(repo, form)
    return user, build_user_token(settings, user)


def load_user_for_token(repo: Repository, settings: AppSettings, token: str) -> User:
    claims = decode_token(settings.TIMELY_TOKEN_SECRET, token)
    user = repo.user(UserFilter.by_id(claims.user_id))
    if user is None:
        raise InvalidSessionError("User not found")
    return user
