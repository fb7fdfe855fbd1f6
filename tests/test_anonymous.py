from datetime import timedelta

import pytest

from shopcore.anonymous import AnonymousService
from shopcore.repositories import TokenRepository
from shopcore.tokens import InvalidTokenError


def test_issue_and_lookup_round_trip():
    repo = TokenRepository()
    service = AnonymousService(repo)
    access, refresh, anonymous_id = service.issue("proj")
    assert access != refresh
    assert service.lookup_by_token("proj", access) == anonymous_id
    assert repo.get(refresh).anonymous_id == anonymous_id
    assert repo.get(refresh).kind == "refresh"


def test_each_issue_gives_new_identity():
    service = AnonymousService(TokenRepository())
    first = service.issue("proj")
    second = service.issue("proj")
    assert first[2] != second[2]


def test_refresh_token_cannot_be_used_for_lookup():
    service = AnonymousService(TokenRepository())
    _, refresh, _ = service.issue("proj")
    with pytest.raises(InvalidTokenError):
        service.lookup_by_token("proj", refresh)


def test_lookup_in_other_project_fails():
    service = AnonymousService(TokenRepository())
    access, _, _ = service.issue("proj")
    with pytest.raises(InvalidTokenError):
        service.lookup_by_token("other", access)


def test_unknown_token_fails():
    with pytest.raises(InvalidTokenError):
        AnonymousService(TokenRepository()).lookup_by_token("proj", "token")


def test_access_ttl():
    repo = TokenRepository()
    service = AnonymousService(repo)
    assert service.access_ttl_seconds() == 10800
    access, refresh, _ = service.issue("proj")
    access_life = repo.get(access).expires_at - repo.get(access).created_at
    refresh_life = repo.get(refresh).expires_at - repo.get(refresh).created_at
    assert access_life <= timedelta(seconds=service.access_ttl_seconds())
    assert access_life > timedelta(seconds=service.access_ttl_seconds() - 60)
    assert refresh_life > access_life