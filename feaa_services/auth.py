"""
Authentication seam for the order desk.

Responsibility:
    ``AuthProvider`` is the consumed authentication service: ``login``
    returns an opaque ``AuthToken`` (or None on bad credentials) and
    ``logout`` invalidates it.  ``StaticAuthProvider`` is a credential-table
    implementation for local runs and tests.

Architecture position:
    Services -- outer layer.  The kernel only ever sees the token as an
    opaque value passed through to the backing store and transports.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field

from feaa_kernel.logging_config import get_logger

logger = get_logger("services.auth")


@dataclass(frozen=True)
class AuthToken:
    """Opaque session token."""

    user: str
    value: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __repr__(self) -> str:
        return f"AuthToken(user={self.user!r})"


class AuthProvider(ABC):
    @abstractmethod
    def login(self, user: str, password: str) -> AuthToken | None:
        ...

    @abstractmethod
    def logout(self, token: AuthToken) -> None:
        ...


class StaticAuthProvider(AuthProvider):
    """Accepts a fixed ``{user: password}`` table; tracks live tokens."""

    def __init__(self, credentials: Mapping[str, str]):
        self._credentials = dict(credentials)
        self._active: set[AuthToken] = set()
        self._lock = threading.Lock()

    def login(self, user: str, password: str) -> AuthToken | None:
        if self._credentials.get(user) != password:
            logger.warning("login_rejected", extra={"actor_id": user})
            return None
        token = AuthToken(user)
        with self._lock:
            self._active.add(token)
        logger.info("login_succeeded", extra={"actor_id": user})
        return token

    def logout(self, token: AuthToken) -> None:
        with self._lock:
            self._active.discard(token)
        logger.info("logout_completed", extra={"actor_id": token.user})

    def is_active(self, token: AuthToken) -> bool:
        with self._lock:
            return token in self._active
