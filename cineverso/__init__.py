"""
CineVerso Catalog Package

Domain types, the TMDB API client and the storage contracts behind the
CineVerso streaming catalog.
"""

from cineverso.api_client import TmdbClient, get_backdrop_url, get_image_url
from cineverso.documents import (
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    MemoryDocumentStore,
)
from cineverso.local_store import LocalStore, MemoryLocalStore
from cineverso.models import (
    ListEntry,
    MediaKind,
    MediaReference,
    SyncResult,
    SyncStatus,
    TmdbConfig,
    WatchedEpisodeMark,
)
from cineverso.session import AuthState, SessionUser

__version__ = "0.1.0"
__all__ = [
    "TmdbClient",
    "TmdbConfig",
    "get_image_url",
    "get_backdrop_url",
    "DocumentStore",
    "DocumentStoreError",
    "DocumentNotFoundError",
    "MemoryDocumentStore",
    "ArrayUnion",
    "ArrayRemove",
    "SERVER_TIMESTAMP",
    "LocalStore",
    "MemoryLocalStore",
    "MediaKind",
    "MediaReference",
    "ListEntry",
    "WatchedEpisodeMark",
    "SyncResult",
    "SyncStatus",
    "AuthState",
    "SessionUser",
]
