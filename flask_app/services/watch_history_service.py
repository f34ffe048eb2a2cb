"""
Service for syncing watched episodes between local fallback storage and the
remote watch-history document.

Local storage is always written first so the user's marks survive remote
failures; the remote document is updated on a best-effort basis.
"""
import json
import logging
from typing import Any, Iterable, Optional

from cineverso.documents import SERVER_TIMESTAMP, DocumentStore, DocumentStoreError
from cineverso.local_store import LocalStore
from cineverso.models import LOGIN_REQUIRED, REMOTE_UNAVAILABLE, SyncResult, WatchedEpisodeMark
from cineverso.session import AuthState
from cineverso.utils import (
    chunk_updates,
    episode_field_key,
    episode_field_path,
    episode_numbers,
    local_watched_key,
    now_millis,
    series_field_key,
)

logger = logging.getLogger(__name__)

LOCAL_WRITE_FAILED = 'local_write_failed'


class RemoteBatchError(DocumentStoreError):
    """Raised when one chunk of a chunked remote update fails."""

    def __init__(self, failed_chunk: int, total_chunks: int, cause: Exception):
        super().__init__(f"Remote update failed on chunk {failed_chunk}/{total_chunks}: {cause}")
        self.failed_chunk = failed_chunk
        self.total_chunks = total_chunks
        self.applied_chunks = failed_chunk - 1
        self.cause = cause


class WatchHistoryService:
    """Service for marking episodes and seasons as watched."""

    COLLECTION = 'watchHistory'
    CHUNK_SIZE = 20  # Max nested field paths per remote update call

    def __init__(self, document_store: DocumentStore, local_store: LocalStore,
                 auth_state: AuthState, chunk_size: Optional[int] = None):
        self.document_store = document_store
        self.local_store = local_store
        self.auth_state = auth_state
        self.chunk_size = chunk_size or self.CHUNK_SIZE

    def is_authenticated(self) -> bool:
        return self.auth_state.is_authenticated

    def is_remote_store_available(self) -> bool:
        """Check that the remote store answers for the current session."""
        if not self.auth_state.is_authenticated:
            return False
        try:
            return bool(self.document_store.ping())
        except Exception as e:
            logger.warning("Remote store availability check failed: %s", e)
            return False

    def mark_episode_watched(self, series_id: int, season_number: int, episode_number: int,
                             episode_name: Optional[str] = None) -> SyncResult:
        """
        Mark one episode as watched.

        Args:
            series_id: TMDB series identifier
            season_number: Season number (>= 1)
            episode_number: Episode number (>= 1)
            episode_name: Optional episode title stored with the mark

        Returns:
            OK when both stores were written, LOCAL_ONLY when only the local
            fallback was, FAILED without a session
        """
        if not self.auth_state.is_authenticated:
            return SyncResult.failed(LOGIN_REQUIRED)

        mark = WatchedEpisodeMark(
            series_id=series_id,
            season_number=season_number,
            episode_number=episode_number,
            episode_name=episode_name,
            watched_at_local=now_millis(),
        )

        if not self._update_local(series_id, watched=[episode_field_key(season_number, episode_number)]):
            return SyncResult.failed(LOCAL_WRITE_FAILED)

        return self._sync_remote(
            series_id, season_number, {episode_number: mark.to_document(SERVER_TIMESTAMP)},
            create_if_missing=True
        )

    def unmark_episode_watched(self, series_id: int, season_number: int,
                               episode_number: int) -> SyncResult:
        """Mark one episode as not watched; the remote field is set to None."""
        if not self.auth_state.is_authenticated:
            return SyncResult.failed(LOGIN_REQUIRED)

        if not self._update_local(series_id, unwatched=[episode_field_key(season_number, episode_number)]):
            return SyncResult.failed(LOCAL_WRITE_FAILED)

        return self._sync_remote(series_id, season_number, {episode_number: None}, create_if_missing=False)

    def mark_season_as_watched(self, series_id: int, season_number: int,
                               episodes: Iterable[Any]) -> SyncResult:
        """
        Mark every listed episode of a season as watched.

        Args:
            series_id: TMDB series identifier
            season_number: Season number (>= 1)
            episodes: TMDB episode mappings or plain episode numbers

        Returns:
            OK when both stores were written, LOCAL_ONLY when the remote store
            was unreachable, FAILED when a remote write (or one of its chunks)
            failed; the local marks are kept in every case but a missing session
        """
        if not self.auth_state.is_authenticated:
            return SyncResult.failed(LOGIN_REQUIRED)

        timestamp = now_millis()
        marks = [
            WatchedEpisodeMark(
                series_id=series_id,
                season_number=season_number,
                episode_number=number,
                episode_name=name,
                watched_at_local=timestamp,
            )
            for number, name in episode_numbers(episodes)
        ]
        if not marks:
            return SyncResult.ok()

        keys = [episode_field_key(mark.season_number, mark.episode_number) for mark in marks]
        if not self._update_local(series_id, watched=keys):
            return SyncResult.failed(LOCAL_WRITE_FAILED)

        values = {mark.episode_number: mark.to_document(SERVER_TIMESTAMP) for mark in marks}
        return self._sync_remote(series_id, season_number, values, create_if_missing=True,
                                 whole_season=True)

    def unmark_season_as_watched(self, series_id: int, season_number: int,
                                 episodes: Iterable[Any]) -> SyncResult:
        """Mark every listed episode of a season as not watched."""
        if not self.auth_state.is_authenticated:
            return SyncResult.failed(LOGIN_REQUIRED)

        numbers = [number for number, _ in episode_numbers(episodes)]
        if not numbers:
            return SyncResult.ok()

        keys = [episode_field_key(season_number, number) for number in numbers]
        if not self._update_local(series_id, unwatched=keys):
            return SyncResult.failed(LOCAL_WRITE_FAILED)

        return self._sync_remote(series_id, season_number, {number: None for number in numbers},
                                 create_if_missing=False, whole_season=True)

    def get_watched_episodes(self, series_id: int) -> dict[str, bool]:
        """
        Get the watched episodes of a series.

        Reads the remote document when signed in and reachable, otherwise the
        local fallback mapping. Never raises.

        Returns:
            Mapping of 's<season>e<episode>' to True for each watched episode
        """
        if not self.auth_state.is_authenticated or not self.is_remote_store_available():
            return self._read_local(series_id)

        try:
            document = self.document_store.get_document(self.COLLECTION, self.auth_state.user_id)
        except Exception:
            logger.exception("Failed to fetch watch history for series %s, using local data", series_id)
            return self._read_local(series_id)

        if document is None:
            # Nothing has reached the remote store yet
            return self._read_local(series_id)

        series_data = document.get(series_field_key(series_id)) or {}
        if not isinstance(series_data, dict):
            return {}
        return {key: True for key, value in series_data.items() if value is not None}

    def _sync_remote(self, series_id: int, season_number: int, episode_values: dict[int, Any],
                     create_if_missing: bool, whole_season: bool = False) -> SyncResult:
        """
        Push episode values to the remote document after the local write.

        Args:
            series_id: Series whose nested mapping is updated
            season_number: Season the episodes belong to
            episode_values: Mapping of episode number to mark document or None
            create_if_missing: Create the document when absent (marking);
                unmarking a missing document is a no-op
            whole_season: Report remote write errors as FAILED so the caller
                retries the season action

        Returns:
            OK, LOCAL_ONLY when the store was unreachable, or the result of a
            failed remote write (LOCAL_ONLY for episodes, FAILED for seasons)
        """
        if not self.is_remote_store_available():
            logger.info("Remote store unavailable, series %s saved locally only", series_id)
            return SyncResult.local_only(REMOTE_UNAVAILABLE)

        user_id = self.auth_state.user_id
        degrade = SyncResult.failed if whole_season else SyncResult.local_only

        try:
            document = self.document_store.get_document(self.COLLECTION, user_id)
            if document is None:
                if create_if_missing:
                    self.document_store.set_document(self.COLLECTION, user_id, {
                        series_field_key(series_id): {
                            episode_field_key(season_number, number): value
                            for number, value in episode_values.items()
                        }
                    })
                else:
                    logger.debug("No watch history document for %s, nothing to unmark", user_id)
            else:
                updates = {
                    episode_field_path(series_id, season_number, number): value
                    for number, value in episode_values.items()
                }
                self._apply_updates(user_id, updates)
        except RemoteBatchError as e:
            logger.error(
                "Watch history sync for series %s stopped after %d of %d chunks: %s",
                series_id, e.applied_chunks, e.total_chunks, e.cause
            )
            return degrade(str(e))
        except Exception as e:
            logger.exception("Remote watch history write failed for series %s", series_id)
            return degrade(f"Remote update failed: {e}")

        return SyncResult.ok()

    def _apply_updates(self, user_id: str, updates: dict[str, Any]):
        """
        Send field updates in sequential chunks of at most chunk_size paths.

        Raises:
            RemoteBatchError: On the first failing chunk; later chunks are not sent
        """
        chunks = chunk_updates(updates, self.chunk_size)
        if len(chunks) > 1:
            logger.info("Splitting %d watch history updates into %d chunks", len(updates), len(chunks))

        for index, chunk in enumerate(chunks, start=1):
            try:
                self.document_store.update_fields(self.COLLECTION, user_id, chunk)
            except Exception as e:
                raise RemoteBatchError(index, len(chunks), e) from e

    def _read_local(self, series_id: int) -> dict[str, bool]:
        """Read the local watched mapping; corrupt or missing data reads as empty."""
        try:
            raw = self.local_store.get_item(local_watched_key(series_id))
        except Exception:
            logger.exception("Failed to read local watch history for series %s", series_id)
            return {}

        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable local watch history for series %s", series_id)
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: True for key, value in data.items() if value}

    def _update_local(self, series_id: int, watched: Iterable[str] = (),
                      unwatched: Iterable[str] = ()) -> bool:
        """Apply one read-modify-write to the local watched mapping; an emptied mapping is removed."""
        mapping = self._read_local(series_id)
        for key in watched:
            mapping[key] = True
        for key in unwatched:
            mapping.pop(key, None)

        try:
            if mapping:
                self.local_store.set_item(local_watched_key(series_id), json.dumps(mapping))
            else:
                self.local_store.remove_item(local_watched_key(series_id))
        except Exception:
            logger.exception("Failed to write local watch history for series %s", series_id)
            return False
        return True
