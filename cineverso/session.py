"""
Authenticated session state with change notification.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """The signed-in user as seen by the list and watch-history services."""

    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


SessionListener = Callable[[Optional[SessionUser]], None]


class AuthState:
    """Holds the current user and notifies subscribers when it changes."""

    def __init__(self, user: Optional[SessionUser] = None):
        self._user = user
        self._listeners: list[SessionListener] = []

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def user_id(self) -> Optional[str]:
        return self._user.uid if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a session-change listener.

        Args:
            listener: Called with the new user (or None) after each change

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_user(self, user: Optional[SessionUser]) -> None:
        """Replace the current user, notifying listeners if it changed."""
        if user == self._user:
            return
        self._user = user
        logger.debug("Session changed: %s", user.uid if user else 'signed out')
        for listener in list(self._listeners):
            listener(user)

    def clear(self) -> None:
        self.set_user(None)
