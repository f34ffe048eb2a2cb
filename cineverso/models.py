"""
Data models and configuration classes for the CineVerso catalog.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class MediaKind(Enum):
    """Kind of catalog item, valued with TMDB's media_type names."""

    MOVIE = 'movie'
    SERIES = 'tv'

    @classmethod
    def parse(cls, value: Any) -> 'MediaKind':
        """Accept a MediaKind, a TMDB media_type or a friendly alias."""
        if isinstance(value, cls):
            return value
        normalized = str(value or '').strip().lower()
        aliases = {
            'movie': cls.MOVIE,
            'movies': cls.MOVIE,
            'tv': cls.SERIES,
            'series': cls.SERIES,
            'show': cls.SERIES,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown media kind: {value!r}")
        return aliases[normalized]


@dataclass(frozen=True)
class MediaReference:
    """Identifies a movie or series in the external catalog."""

    media_id: int
    media_kind: MediaKind

    def matches(self, media_id: int, media_kind: MediaKind) -> bool:
        return self.media_id == media_id and self.media_kind == media_kind


@dataclass(frozen=True)
class ListEntry:
    """A favorites or watch-later record for a MediaReference."""

    media: MediaReference
    title: str
    poster_path: str = ''
    average_rating: float = 0.0
    added_at: Optional[str] = None

    def __post_init__(self):
        rating = float(self.average_rating or 0.0)
        object.__setattr__(self, 'average_rating', min(max(rating, 0.0), 10.0))
        object.__setattr__(self, 'poster_path', self.poster_path or '')

    def stamped(self, added_at: str) -> 'ListEntry':
        """Return a copy carrying the given added_at timestamp."""
        return replace(self, added_at=added_at)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the shape stored in the user's list arrays."""
        return {
            'id': self.media.media_id,
            'media_type': self.media.media_kind.value,
            'title': self.title,
            'poster_path': self.poster_path,
            'vote_average': self.average_rating,
            'added_at': self.added_at,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> 'ListEntry':
        """Build an entry from a stored list element or a TMDB result item."""
        return cls(
            media=MediaReference(
                media_id=int(data['id']),
                media_kind=MediaKind.parse(data.get('media_type')),
            ),
            title=data.get('title') or data.get('name') or '',
            poster_path=data.get('poster_path') or '',
            average_rating=data.get('vote_average') or 0.0,
            added_at=data.get('added_at'),
        )


@dataclass(frozen=True)
class WatchedEpisodeMark:
    """A record saying one episode of a series has been watched."""

    series_id: int
    season_number: int
    episode_number: int
    watched_at_local: int
    episode_name: Optional[str] = None
    watched_at_server: Optional[Any] = None

    def __post_init__(self):
        if self.season_number < 1:
            raise ValueError(f"season_number must be >= 1, got {self.season_number}")
        if self.episode_number < 1:
            raise ValueError(f"episode_number must be >= 1, got {self.episode_number}")

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.series_id, self.season_number, self.episode_number)

    def to_document(self, server_timestamp: Any = None) -> dict[str, Any]:
        """
        Serialize for the remote watch-history document.

        Args:
            server_timestamp: Value stored as watched_at_server, usually the
                store's SERVER_TIMESTAMP sentinel

        Returns:
            Mapping stored under series_<id>.s<season>e<episode>
        """
        return {
            'series_id': self.series_id,
            'season_number': self.season_number,
            'episode_number': self.episode_number,
            'episode_name': self.episode_name,
            'watched_at_local': self.watched_at_local,
            'watched_at_server': server_timestamp,
        }


class SyncStatus(Enum):
    """Outcome kinds of a list or watch-history operation."""

    OK = 'ok'
    LOCAL_ONLY = 'local_only'
    FAILED = 'failed'


LOGIN_REQUIRED = 'login_required'
REMOTE_UNAVAILABLE = 'remote_unavailable'


@dataclass(frozen=True)
class SyncResult:
    """
    Result of a synchronizer or list operation.

    OK means every store was updated, LOCAL_ONLY means the local fallback was
    written but the remote store was skipped or failed, FAILED means nothing
    was persisted. Truthiness follows the local-durability baseline, so only
    FAILED is falsy.
    """

    status: SyncStatus
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> 'SyncResult':
        return cls(SyncStatus.OK)

    @classmethod
    def local_only(cls, reason: str) -> 'SyncResult':
        return cls(SyncStatus.LOCAL_ONLY, reason)

    @classmethod
    def failed(cls, reason: str) -> 'SyncResult':
        return cls(SyncStatus.FAILED, reason)

    @property
    def synced(self) -> bool:
        return self.status is SyncStatus.OK

    @property
    def needs_login(self) -> bool:
        return self.status is SyncStatus.FAILED and self.reason == LOGIN_REQUIRED

    @property
    def remote_write_failed(self) -> bool:
        """True when the remote store was reachable but the write did not land."""
        return self.status is SyncStatus.LOCAL_ONLY and self.reason != REMOTE_UNAVAILABLE

    def __bool__(self) -> bool:
        return self.status is not SyncStatus.FAILED


@dataclass
class TmdbConfig:
    """Configuration for The Movie Database API."""

    api_key: str
    base_url: str = 'https://api.themoviedb.org/3'
    language: str = 'pt-BR'
    timeout: float = 10.0
    image_base_url: str = 'https://image.tmdb.org/t/p'
    max_retries: int = 2

    def __repr__(self) -> str:
        """String representation with masked API key."""
        masked_key = f"{self.api_key[:4]}...{self.api_key[-4:]}" if len(self.api_key) > 8 else "***"
        return f"TmdbConfig(base_url='{self.base_url}', language='{self.language}', api_key='{masked_key}')"
