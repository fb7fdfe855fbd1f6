import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from shopcore.repositories import AlreadyExistsError, NotFoundError, Token, TokenRepository
from shopcore.tokens import (
    InvalidTokenError,
    TokenCollisionError,
    TokenManager,
    random_token,
    random_uuid,
)


class _CollidingRepo:
    def __init__(self, error):
        self.error = error
        self.calls = 0

    def create(self, token):
        self.calls += 1
        raise self.error


def test_random_token_is_urlsafe_and_unpadded():
    value = random_token()
    assert len(value) == 43
    assert re.fullmatch(r"[A-Za-z0-9_-]+", value)
    assert random_token() != value or random_token() != value


def test_random_uuid_is_version_4():
    value = random_uuid()
    parsed = uuid.UUID(value)
    assert parsed.version == 4
    assert parsed.variant == uuid.RFC_4122
    assert str(parsed) == value


def test_unknown_owner_rejected():
    with pytest.raises(ValueError):
        TokenManager(TokenRepository(), "robot")


def test_issue_and_validate_customer_token():
    repo = TokenRepository()
    manager = TokenManager(repo, "customer")
    value = manager.issue("proj", "cust-1", "access", timedelta(hours=1))
    stored = repo.get(value)
    assert stored.customer_id == "cust-1"
    assert stored.anonymous_id is None
    meta = manager.validate(value)
    assert meta.owner_id == "cust-1"
    assert meta.project_id == "proj"
    assert meta.expires_at == stored.expires_at


def test_issue_anonymous_sets_anonymous_id():
    repo = TokenRepository()
    manager = TokenManager(repo, "anonymous")
    value = manager.issue("proj", "anon-1", "access", timedelta(minutes=5))
    stored = repo.get(value)
    assert stored.anonymous_id == "anon-1"
    assert stored.customer_id is None
    assert manager.validate(value).owner_id == "anon-1"


def test_refresh_token_does_not_validate():
    repo = TokenRepository()
    manager = TokenManager(repo, "customer")
    value = manager.issue("proj", "cust-1", "refresh", timedelta(hours=1))
    with pytest.raises(InvalidTokenError):
        manager.validate(value)


def test_token_of_other_owner_kind_is_invalid():
    repo = TokenRepository()
    value = TokenManager(repo, "customer").issue("proj", "cust-1", "access", timedelta(hours=1))
    with pytest.raises(InvalidTokenError, match="invalid token"):
        TokenManager(repo, "anonymous").validate(value)


def test_unknown_token_is_invalid():
    with pytest.raises(InvalidTokenError):
        TokenManager(TokenRepository(), "customer").validate("token")


def test_expired_token_is_invalid_and_deleted():
    repo = TokenRepository()
    repo.create(
        Token(
            token="token",
            project_id="proj",
            kind="access",
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
            customer_id="cust-1",
        )
    )
    with pytest.raises(InvalidTokenError):
        TokenManager(repo, "customer").validate("token")
    with pytest.raises(NotFoundError):
        repo.get("token")


def test_issue_gives_up_after_repeated_collisions():
    repo = _CollidingRepo(AlreadyExistsError("dup"))
    with pytest.raises(TokenCollisionError, match="token collision"):
        TokenManager(repo, "customer").issue("proj", "cust-1", "access", timedelta(hours=1))
    assert repo.calls == 5


def test_issue_propagates_other_errors_immediately():
    repo = _CollidingRepo(RuntimeError("db down"))
    with pytest.raises(RuntimeError, match="db down"):
        TokenManager(repo, "anonymous").issue("proj", "anon", "access", timedelta(hours=1))
    assert repo.calls == 1