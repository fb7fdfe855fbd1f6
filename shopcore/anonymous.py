"""Anonymous sessions: tokens handed to shoppers who have not signed in."""

from __future__ import annotations

from datetime import timedelta

from shopcore.tokens import InvalidTokenError, TokenManager, random_uuid


class AnonymousService:
    """Issues and resolves tokens for anonymous shoppers."""

    def __init__(self, repo) -> None:
        self._tokens = TokenManager(repo, "anonymous")
        self._access_ttl = timedelta(hours=3)
        self._refresh_ttl = timedelta(days=30)

    def issue(self, project_id: str) -> tuple[str, str, str]:
        """Create a new anonymous id; return (access token, refresh token, anonymous id)."""
        anonymous_id = random_uuid()
        access = self._tokens.issue(project_id, anonymous_id, "access", self._access_ttl)
        refresh = self._tokens.issue(project_id, anonymous_id, "refresh", self._refresh_ttl)
        return access, refresh, anonymous_id

    def lookup_by_token(self, project_id: str, token: str) -> str:
        """Return the anonymous id bound to a valid access token of this project."""
        meta = self._tokens.validate(token)
        if meta.project_id != project_id:
            raise InvalidTokenError()
        return meta.owner_id

    def access_ttl_seconds(self) -> int:
        """Lifetime of an access token in seconds."""
        return int(self._access_ttl.total_seconds())