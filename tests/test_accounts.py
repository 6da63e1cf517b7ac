"""Signup, login and token resolution against the in-memory repository."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from timely.core.config import AppSettings
from timely.core.errors import AuthError, InvalidSessionError, ValidationError
from timely.core.security import hash_password, issue_token
from timely.db.memory import InMemoryRepository
from timely.db.query import UserFilter
from timely.schemas.auth import SignupForm
from timely.services import accounts


@pytest.fixture()
def settings():
    return AppSettings(
        SUPABASE_ENDPOINT="https://db.example.com/rest/v1",
        SUPABASE_KEY="test-key",
        TIMELY_TOKEN_SECRET="test-secret",
    )


@pytest.fixture()
def repo():
    return InMemoryRepository()


def _signup(repo, settings, **overrides):
    data = {"username": "alice", "email": "alice@example.com", "password": "password123"}
    data.update(overrides)
    return accounts.signup_and_login(repo, settings, SignupForm(**data))


def test_signup_stores_hashed_password_and_issues_token(repo, settings):
    user, token = _signup(repo, settings)

    stored = repo.user(UserFilter.by_name("alice"))
    assert stored is not None
    assert stored.password_hash == hash_password("password123")
    assert stored.password_hash != "password123"
    assert accounts.load_user_for_token(repo, settings, token).id == user.id


@pytest.mark.parametrize("email", ["no-at-sign", "@example.com", "alice@", " @ ", "a@b@c"])
def test_signup_rejects_bad_email(repo, settings, email):
    with pytest.raises(ValidationError, match="invalid email"):
        _signup(repo, settings, email=email)
    assert repo.user_rows == {}


@pytest.mark.parametrize("username", ["alice!", "alice smith", "al-ice"])
def test_signup_rejects_non_alphanumeric_username(repo, settings, username):
    with pytest.raises(ValidationError, match="Invalid characters in username"):
        _signup(repo, settings, username=username)


def test_signup_rejects_short_password(repo, settings):
    with pytest.raises(ValidationError, match="at least 8 characters"):
        _signup(repo, settings, password="short")


def test_password_length_counts_utf8_bytes(repo, settings):
    # Four two-byte characters reach the eight byte minimum.
    user, _token = _signup(repo, settings, password="éééé")
    assert user.password_hash == hash_password("éééé")

    with pytest.raises(ValidationError, match="at least 8 characters"):
        _signup(repo, settings, username="bob", password="ééé")


def test_signup_requires_all_fields(repo, settings):
    with pytest.raises(ValidationError):
        _signup(repo, settings, email="")


def test_signup_with_taken_username_is_validation_error(repo, settings):
    _signup(repo, settings)
    with pytest.raises(ValidationError, match="already taken"):
        _signup(repo, settings, email="other@example.com")


def test_login_trims_username(repo, settings):
    user, _ = _signup(repo, settings)
    logged_in, token = accounts.login(repo, settings, "  alice  ", "password123")
    assert logged_in.id == user.id
    assert token


def test_login_failures_have_distinct_internal_messages(repo, settings):
    _signup(repo, settings)

    with pytest.raises(AuthError) as missing:
        accounts.login(repo, settings, "bob", "password123")
    with pytest.raises(AuthError) as wrong:
        accounts.login(repo, settings, "alice", "not-the-password")

    assert str(missing.value) == "User not found"
    assert str(wrong.value) == "Wrong password"


def test_login_requires_username_and_password(repo, settings):
    with pytest.raises(ValidationError):
        accounts.login(repo, settings, "", "password123")
    with pytest.raises(ValidationError):
        accounts.login(repo, settings, "alice", "")


def test_token_for_deleted_user_is_invalid_session(repo, settings):
    token = issue_token(settings.TIMELY_TOKEN_SECRET, 999)
    with pytest.raises(InvalidSessionError):
        accounts.load_user_for_token(repo, settings, token)
