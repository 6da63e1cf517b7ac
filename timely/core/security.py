from __future__ import annotations

import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

from blake3 import blake3
from jose import JWTError, jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidSessionError

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=30)


class TokenClaims(BaseModel):
    iat: int
    exp: int | None = None
    sub: str

    @property
    def user_id(self) -> int:
        try:
            return int(self.sub)
        except ValueError as exc:
            raise InvalidSessionError("Invalid 'sub' field in token: expected a user id") from exc


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# ---- Passwords
#
# Unsalted, keyless content hash. Stored hashes depend on this exact digest,
# so it cannot change without migrating every user row.


def hash_password(password: str) -> str:
    return blake3(password.encode("utf-8")).hexdigest()


def verify_password(password_hash: str, password: str) -> bool:
    return hmac.compare_digest(password_hash, hash_password(password))


# ---- Bearer tokens


def issue_token(secret: str, user_id: int, ttl: timedelta = TOKEN_TTL) -> str:
    now = _now()
    claims: dict[str, Any] = {
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "sub": str(user_id),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_token(secret: str, token: str) -> TokenClaims:
    """Verify ``token`` and return its claims.

    Raises :class:`InvalidSessionError` for a bad signature, an expired token
    or a malformed payload.
    """

    try:
        decoded = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidSessionError(f"Invalid token: {exc}") from exc
    try:
        return TokenClaims.model_validate(decoded)
    except PydanticValidationError as exc:
        raise InvalidSessionError("Invalid token payload") from exc
