"""Login/logout signals from the identity provider.

The actual sign-in flow belongs to the external identity provider. This
module only relays its outcome to the rest of the application: listeners
are told ``logged_in(user_id)`` or ``logged_out()``.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class AuthListener(Protocol):
    def logged_in(self, user_id: str) -> None: ...

    def logged_out(self) -> None: ...


class AuthGateway:
    def __init__(self) -> None:
        self._listeners: List[AuthListener] = []
        self.current_user: Optional[str] = None

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener``; it is told about an already signed-in user at once."""
        self._listeners.append(listener)
        if self.current_user is not None:
            listener.logged_in(self.current_user)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, user_id: str) -> None:
        user_id = str(user_id).strip()
        if not user_id:
            raise ValueError("A user id is required to sign in")
        if self.current_user == user_id:
            return
        if self.current_user is not None:
            self.sign_out()
        self.current_user = user_id
        logger.info("User %s signed in", user_id)
        for listener in list(self._listeners):
            listener.logged_in(user_id)

    def sign_out(self) -> None:
        if self.current_user is None:
            return
        logger.info("User %s signed out", self.current_user)
        self.current_user = None
        for listener in list(self._listeners):
            listener.logged_out()
