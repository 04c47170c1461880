# src/taskminder/auth/identity.py

from __future__ import annotations

import logging

from ..core.errors import ValidationError
from ..core.ports import AuthListener

logger = logging.getLogger(__name__)


class _AuthSubscription:
    def __init__(self, provider: LocalIdentityProvider, listener: AuthListener) -> None:
        self._provider = provider
        self._listener = listener

    def unsubscribe(self) -> None:
        self._provider._remove_listener(self._listener)


class LocalIdentityProvider:
    """
    In-process IdentityProvider.

    There is no credential check: the user id is whatever the operator signs in
    with (config default or /login). Listeners are told about every change of
    the current user, including sign-out (None).
    """

    def __init__(self, default_user: str | None = None) -> None:
        self._user: str | None = (default_user or "").strip() or None
        self._listeners: list[AuthListener] = []

    def current_user(self) -> str | None:
        return self._user

    def on_auth_state_change(self, listener: AuthListener) -> _AuthSubscription:
        self._listeners.append(listener)
        return _AuthSubscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_user(self, user: str | None) -> None:
        if user == self._user:
            return
        previous, self._user = self._user, user
        logger.info("Auth state changed: %s -> %s", previous, user)
        for listener in list(self._listeners):
            try:
                listener(user)
            except Exception:
                logger.exception("Auth listener failed")

    async def sign_in(self, user_id: str) -> str:
        user = (user_id or "").strip()
        if not user:
            raise ValidationError("User id is required")
        self._set_user(user)
        return user

    async def sign_out(self) -> None:
        # Local state is always cleared.
        self._set_user(None)

    async def refresh_session(self) -> str | None:
        return self._user
