from __future__ import annotations

import hashlib
import hmac

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthorizationError


bearer_scheme = HTTPBearer(auto_error=False)


class TokenVerifier:
    """Bearer tokens of the form ``<user_id>.<hex HMAC-SHA256(user_id)>``."""

    def __init__(self, secret: str) -> None:
        self._secret = secret.encode("utf-8")

    def _signature(self, user_id: str) -> str:
        return hmac.new(self._secret, user_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self, user_id: str) -> str:
        if not user_id or "." in user_id:
            raise ValueError("user id must be non-empty and must not contain '.'")
        return f"{user_id}.{self._signature(user_id)}"

    def verify(self, token: str) -> str:
        user_id, _, signature = token.partition(".")
        if not user_id or not signature:
            raise AuthorizationError("invalid token")
        if not hmac.compare_digest(signature, self._signature(user_id)):
            raise AuthorizationError("invalid token")
        return user_id


def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise AuthorizationError("missing bearer token")
    verifier: TokenVerifier = request.app.state.token_verifier
    return verifier.verify(credentials.credentials)
