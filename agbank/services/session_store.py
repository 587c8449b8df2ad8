"""
Session state: who is signed in, token persistence, and login/register/logout.

Other components observe session changes through `subscribe`; they never hold
the store itself. Listeners are called synchronously, in subscription order.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from agbank.infrastructure.api_client import ApiError, BankApiClient, normalize_user
from agbank.infrastructure.session_storage import TOKEN_KEY, USER_KEY
from agbank.utils.logger import get_logger

logger = get_logger()

LOGGED_IN = "logged_in"
REGISTERED = "registered"
LOGGED_OUT = "logged_out"


class SessionEvent:
    """A session change. `user` is the new identity for LOGGED_IN/REGISTERED, None for LOGGED_OUT."""

    __slots__ = ("kind", "user")

    def __init__(self, kind: str, user: dict[str, Any] | None = None) -> None:
        self.kind = kind
        self.user = user

    def __repr__(self) -> str:
        uid = self.user.get("id") if self.user else None
        return f"SessionEvent(kind={self.kind!r}, user_id={uid!r})"


SessionListener = Callable[[SessionEvent], None]


class SessionStore:
    def __init__(self, api: BankApiClient, storage: Any) -> None:
        self._api = api
        self._storage = storage
        self._user: dict[str, Any] | None = None
        self._listeners: list[SessionListener] = []

    # --- state ---

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    @property
    def token(self) -> str | None:
        return self._storage.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self._user) and self._user.get("role") == "admin"

    @property
    def has_valid_session(self) -> bool:
        """Identity and token are both present."""
        return self._user is not None and bool(self.token)

    # --- events ---

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        logger.debug("Session event: %r", event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed for %s", event.kind)

    # --- lifecycle ---

    def init(self) -> None:
        """Restore identity from storage. Malformed stored data means no session."""
        saved = self._storage.get(USER_KEY)
        token = self._storage.get(TOKEN_KEY)
        if not saved or not token:
            self._user = None
            return
        try:
            data = json.loads(saved)
            if not isinstance(data, dict):
                raise ValueError("stored identity is not an object")
            self._user = normalize_user(data)
            logger.info("Restored session for user %s", self._user.get("id"))
        except ValueError as e:
            logger.warning("Discarding malformed stored session: %s", e)
            self._storage.clear_session()
            self._user = None

    def _persist(self, user: dict[str, Any], token: str) -> None:
        self._storage.set(USER_KEY, json.dumps(user))
        self._storage.set(TOKEN_KEY, token)
        self._user = user

    def login(self, email: str, password: str) -> bool:
        """Sign in. Returns False on any failure and clears stale stored credentials."""
        email = (email or "").strip().lower()
        logger.info("Attempting login for %s", email)
        had_session = self._user is not None or bool(self.token)
        try:
            result = self._api.login(email, password)
            self._persist(result["user"], result["token"])
        except (ApiError, OSError) as e:
            logger.warning("Login failed for %s: %s", email, e)
            self._storage.clear_session()
            self._user = None
            if had_session:
                self._emit(SessionEvent(LOGGED_OUT))
            return False
        logger.info("Login successful for user %s", self._user.get("id"))
        self._emit(SessionEvent(LOGGED_IN, self._user))
        return True

    def register(self, profile: dict[str, Any]) -> bool:
        """Create an account and sign in. confirmPassword is never sent."""
        payload = {k: v for k, v in profile.items() if k != "confirmPassword"}
        logger.info("Attempting registration for %s", payload.get("email"))
        try:
            result = self._api.register(payload)
            self._persist(result["user"], result["token"])
        except (ApiError, OSError) as e:
            logger.warning("Registration failed for %s: %s", payload.get("email"), e)
            return False
        logger.info("Registration successful for user %s", self._user.get("id"))
        self._emit(SessionEvent(REGISTERED, self._user))
        return True

    def logout(self) -> None:
        logger.info("User logging out")
        self._user = None
        self._storage.clear_session()
        self._emit(SessionEvent(LOGGED_OUT))
