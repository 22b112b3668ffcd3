"""
Bearer-token resolution against the hosted auth service.

Tokens are issued and verified by the external auth service; this module only
asks it who a token belongs to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds


class AuthServiceError(Exception):
    """The auth service could not be reached or answered unexpectedly."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


class AuthClient(Protocol):
    def get_user(self, token: str) -> Optional[AuthUser]:
        ...


@dataclass
class InMemoryAuthClient:
    """Test double mapping tokens to users."""

    users: dict = field(default_factory=dict)

    def add_user(self, token: str, user: AuthUser) -> None:
        self.users[token] = user

    def get_user(self, token: str) -> Optional[AuthUser]:
        return self.users.get(token)


class HostedAuthClient:
    """Resolves tokens with ``GET {auth_url}/auth/v1/user``."""

    def __init__(
        self,
        auth_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
    ):
        if not auth_url or not api_key:
            raise ValueError("AUTH_URL and AUTH_API_KEY are required")
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()

    def get_user(self, token: str) -> Optional[AuthUser]:
        try:
            response = self.session.get(
                f"{self.auth_url}/auth/v1/user",
                headers={"apikey": self.api_key, "Authorization": f"Bearer {token}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AuthServiceError(f"Auth service unreachable: {e}") from e

        if response.status_code in (401, 403):
            return None
        if not response.ok:
            raise AuthServiceError(
                f"Auth service error: {response.status_code} {response.reason}"
            )

        payload = response.json()
        user_id = payload.get("id")
        if not user_id:
            logger.warning("Auth service returned a user without an id")
            return None
        return AuthUser(id=user_id, email=payload.get("email"))


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
