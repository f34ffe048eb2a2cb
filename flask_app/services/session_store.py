"""
Local fallback store kept in the browser's signed session cookie.
"""
from typing import Optional

from flask import session

from cineverso.local_store import LocalStore


class FlaskSessionLocalStore(LocalStore):
    """Key/value strings stored under one namespace of the Flask session."""

    NAMESPACE = 'local_store'

    def _items(self) -> dict:
        return session.get(self.NAMESPACE) or {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._items())
        items[key] = str(value)
        session[self.NAMESPACE] = items
        session.modified = True

    def remove_item(self, key: str) -> None:
        items = dict(self._items())
        if items.pop(key, None) is not None:
            session[self.NAMESPACE] = items
            session.modified = True
