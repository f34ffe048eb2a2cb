"""
Per-request construction of the session-scoped services.
"""
from flask import current_app, g

from cineverso.api_client import TmdbClient
from cineverso.session import AuthState
from flask_app.services.auth_service import AuthService
from flask_app.services.catalog_service import CatalogService
from flask_app.services.document_store import SqlDocumentStore
from flask_app.services.session_store import FlaskSessionLocalStore
from flask_app.services.user_lists_service import UserListsService
from flask_app.services.watch_history_service import WatchHistoryService


class CatalogNotConfiguredError(Exception):
    """Raised when no TMDB API key is configured."""


def get_auth_state() -> AuthState:
    """Get the request's AuthState, seeded from the session cookie."""
    if 'auth_state' not in g:
        g.auth_state = AuthState(AuthService.current_user())
    return g.auth_state


def get_watch_history_service() -> WatchHistoryService:
    if 'watch_history_service' not in g:
        g.watch_history_service = WatchHistoryService(
            document_store=SqlDocumentStore(),
            local_store=FlaskSessionLocalStore(),
            auth_state=get_auth_state(),
            chunk_size=current_app.config.get('WATCH_HISTORY_CHUNK_SIZE')
        )
    return g.watch_history_service


def get_user_lists_service() -> UserListsService:
    """Get the request's lists service with both lists loaded."""
    if 'user_lists_service' not in g:
        service = UserListsService(SqlDocumentStore(), get_auth_state())
        service.load_lists()
        g.user_lists_service = service
    return g.user_lists_service


def get_catalog_service() -> CatalogService:
    """
    Get a catalog service for the configured TMDB account.

    Raises:
        CatalogNotConfiguredError: If the app has no TMDB configuration
    """
    tmdb_config = current_app.config.get('TMDB_CONFIG')
    if tmdb_config is None:
        raise CatalogNotConfiguredError('TMDB API key is not configured.')
    return CatalogService(TmdbClient(tmdb_config))


def close_services(exception=None):
    """Teardown hook detaching the lists service from the session state."""
    service = g.pop('user_lists_service', None)
    if service is not None:
        service.close()
