"""Issuing and validating opaque access and refresh tokens bound to an owner."""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from shopcore.repositories import AlreadyExistsError, Token

_OWNERS = ("customer", "anonymous")
_MAX_ATTEMPTS = 5


class InvalidTokenError(Exception):
    """Raised when a token cannot be validated."""

    def __init__(self, message: str = "invalid token") -> None:
        super().__init__(message)


class TokenCollisionError(RuntimeError):
    """Raised when no unique token value could be generated."""

    def __init__(self, message: str = "token collision") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TokenMeta:
    """What a valid access token is bound to."""

    owner_id: str
    project_id: str
    expires_at: datetime


def random_token() -> str:
    """Return 32 random bytes as unpadded URL-safe base64."""
    return secrets.token_urlsafe(32)


def random_uuid() -> str:
    """Return a random (version 4) UUID in its canonical text form."""
    return str(uuid.uuid4())


class TokenManager:
    """Issues tokens for either customers or anonymous sessions and validates them."""

    def __init__(self, repo, owner: str) -> None:
        if owner not in _OWNERS:
            raise ValueError(f"unknown token owner {owner!r}; expected one of {', '.join(_OWNERS)}")
        self._repo = repo
        self._owner = owner

    def _owner_of(self, token: Token) -> str | None:
        return token.customer_id if self._owner == "customer" else token.anonymous_id

    def issue(self, project_id: str, owner_id: str, kind: str, ttl: timedelta) -> str:
        """Store a new token of ``kind`` for ``owner_id`` and return its value."""
        expires_at = datetime.now(timezone.utc) + ttl
        owner_field = "customer_id" if self._owner == "customer" else "anonymous_id"
        for _ in range(_MAX_ATTEMPTS):
            value = random_token()
            record = Token(
                token=value,
                project_id=project_id,
                kind=kind,
                expires_at=expires_at,
                **{owner_field: owner_id},
            )
            try:
                self._repo.create(record)
            except AlreadyExistsError:
                continue
            return value
        raise TokenCollisionError()

    def validate(self, token: str) -> TokenMeta:
        """Return what an unexpired access token is bound to, or raise InvalidTokenError."""
        try:
            record = self._repo.get(token)
        except Exception as exc:
            raise InvalidTokenError() from exc
        owner_id = self._owner_of(record)
        if record.kind != "access" or owner_id is None:
            raise InvalidTokenError()
        if record.is_expired():
            try:
                self._repo.delete(token)
            except Exception:
                pass
            raise InvalidTokenError()
        return TokenMeta(owner_id=owner_id, project_id=record.project_id, expires_at=record.expires_at)