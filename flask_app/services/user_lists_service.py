"""
Service for the user's favorites and watch-later lists.

Lists live in the user's profile document; the full lists are cached in
memory after loading and only changed once the remote update succeeded.
"""
import logging
from typing import Any, Optional

from cineverso.documents import ArrayRemove, ArrayUnion, DocumentStore
from cineverso.models import LOGIN_REQUIRED, ListEntry, MediaKind, MediaReference, SyncResult
from cineverso.session import AuthState, SessionUser
from cineverso.utils import utc_now_iso

logger = logging.getLogger(__name__)


class UserListsService:
    """Service for toggling items in the favorites and watch-later lists."""

    COLLECTION = 'users'
    FAVORITES_FIELD = 'favorites'
    WATCH_LATER_FIELD = 'watchlist'

    def __init__(self, document_store: DocumentStore, auth_state: AuthState):
        self.document_store = document_store
        self.auth_state = auth_state
        self.favorites: list[ListEntry] = []
        self.watch_later: list[ListEntry] = []
        # Raw list elements as stored, duplicates included
        self._stored: dict[str, list[dict[str, Any]]] = {self.FAVORITES_FIELD: [], self.WATCH_LATER_FIELD: []}
        self.loaded = False
        self._unsubscribe = auth_state.subscribe(self._handle_session_change)

    def close(self):
        """Stop following session changes."""
        self._unsubscribe()

    def _handle_session_change(self, user: Optional[SessionUser]):
        self.load_lists()

    def load_lists(self) -> dict[str, list[ListEntry]]:
        """
        Load both lists for the current user.

        Creates the user's document with empty lists and basic profile fields
        when it does not exist yet. Without a session both lists are empty and
        the remote store is not touched.

        Returns:
            Dict with 'favorites' and 'watch_later' entry lists
        """
        self.favorites = []
        self.watch_later = []
        self._stored = {self.FAVORITES_FIELD: [], self.WATCH_LATER_FIELD: []}
        user = self.auth_state.current_user

        if user is None:
            self.loaded = True
            return self.get_lists()

        try:
            document = self.document_store.get_document(self.COLLECTION, user.uid)
            if document is None:
                self.document_store.set_document(self.COLLECTION, user.uid, {
                    self.FAVORITES_FIELD: [],
                    self.WATCH_LATER_FIELD: [],
                    'email': user.email,
                    'display_name': user.display_name,
                    'photo_url': user.photo_url,
                    'created_at': utc_now_iso(),
                })
            else:
                for field_name in self._stored:
                    raw = document.get(field_name)
                    self._stored[field_name] = [item for item in raw or [] if isinstance(item, dict)]
                self.favorites = self._parse_entries(self._stored[self.FAVORITES_FIELD])
                self.watch_later = self._parse_entries(self._stored[self.WATCH_LATER_FIELD])
        except Exception:
            logger.exception("Failed to load lists for user %s", user.uid)

        self.loaded = True
        return self.get_lists()

    def get_lists(self) -> dict[str, list[ListEntry]]:
        return {'favorites': list(self.favorites), 'watch_later': list(self.watch_later)}

    def toggle_favorite(self, entry: ListEntry) -> SyncResult:
        """Add the item to favorites, or remove it when already present."""
        return self._toggle(self.FAVORITES_FIELD, 'favorites', entry)

    def toggle_watch_later(self, entry: ListEntry) -> SyncResult:
        """Add the item to watch-later, or remove it when already present."""
        return self._toggle(self.WATCH_LATER_FIELD, 'watch_later', entry)

    def is_in_favorites(self, media_id: int, media_kind: MediaKind) -> bool:
        return self._contains(self.favorites, media_id, media_kind)

    def is_in_watch_later(self, media_id: int, media_kind: MediaKind) -> bool:
        return self._contains(self.watch_later, media_id, media_kind)

    def _toggle(self, field_name: str, cache_attr: str, entry: ListEntry) -> SyncResult:
        """
        Toggle membership of an entry in one list.

        Args:
            field_name: Array field in the user document
            cache_attr: Attribute holding the cached list
            entry: Item to add or remove, matched by (media_id, media_kind)

        Returns:
            OK on success; FAILED when signed out or the remote update raised,
            in which case the cached list is left as it was
        """
        user = self.auth_state.current_user
        if user is None:
            return SyncResult.failed(LOGIN_REQUIRED)

        cached: list[ListEntry] = getattr(self, cache_attr)
        stored = self._stored[field_name]
        media = entry.media
        matching = [item for item in cached if item.media.matches(media.media_id, media.media_kind)]

        try:
            if matching:
                removed = [doc for doc in stored if self._document_matches(doc, media)]
                removed += [item.to_document() for item in matching if item.to_document() not in removed]
                self.document_store.update_fields(self.COLLECTION, user.uid, {
                    field_name: ArrayRemove(*removed)
                })
                updated = [item for item in cached if item not in matching]
                updated_stored = [doc for doc in stored if doc not in removed]
            else:
                new_entry = entry.stamped(utc_now_iso())
                new_document = new_entry.to_document()
                self.document_store.update_fields(self.COLLECTION, user.uid, {
                    field_name: ArrayUnion(new_document)
                })
                updated = cached + [new_entry]
                updated_stored = stored + [new_document]
        except Exception as e:
            logger.exception("Failed to update %s for user %s", field_name, user.uid)
            return SyncResult.failed(str(e))

        setattr(self, cache_attr, updated)
        self._stored[field_name] = updated_stored
        return SyncResult.ok()

    @staticmethod
    def _contains(entries: list[ListEntry], media_id: int, media_kind: MediaKind) -> bool:
        return any(item.media.matches(media_id, media_kind) for item in entries)

    @staticmethod
    def _document_matches(document: dict[str, Any], media: MediaReference) -> bool:
        try:
            return ListEntry.from_document(document).media == media
        except (KeyError, TypeError, ValueError):
            return False

    @staticmethod
    def _parse_entries(raw) -> list[ListEntry]:
        """Parse stored list elements, skipping malformed ones and duplicates."""
        entries: list[ListEntry] = []
        for item in raw or []:
            try:
                entry = ListEntry.from_document(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed list entry: %r", item)
                continue
            if not UserListsService._contains(entries, entry.media.media_id, entry.media.media_kind):
                entries.append(entry)
        return entries
