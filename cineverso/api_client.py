"""
TMDB API client for fetching catalog metadata.
"""

import requests
from requests.adapters import HTTPAdapter
from typing import Any, Optional
from urllib3.util.retry import Retry

from cineverso.models import MediaKind, TmdbConfig

POSTER_SIZES = {
    'small': 'w185',
    'medium': 'w342',
    'large': 'w500',
    'original': 'original',
}

BACKDROP_SIZES = {
    'small': 'w300',
    'medium': 'w780',
    'large': 'w1280',
    'original': 'original',
}

PLACEHOLDER_POSTER = '/static/images/placeholder-poster.png'
PLACEHOLDER_BACKDROP = '/static/images/placeholder-backdrop.png'

DEFAULT_IMAGE_BASE_URL = 'https://image.tmdb.org/t/p'


def get_image_url(path: Optional[str], size: str = 'medium',
                  base_url: str = DEFAULT_IMAGE_BASE_URL) -> str:
    """
    Build the full URL of a poster image.

    Args:
        path: Relative image path from TMDB (may be None)
        size: One of POSTER_SIZES keys
        base_url: TMDB image CDN base

    Returns:
        Image URL, or the placeholder poster when path is empty
    """
    if not path:
        return PLACEHOLDER_POSTER
    return f"{base_url}/{POSTER_SIZES.get(size, POSTER_SIZES['medium'])}{path}"


def get_backdrop_url(path: Optional[str], size: str = 'large',
                     base_url: str = DEFAULT_IMAGE_BASE_URL) -> str:
    """Build the full URL of a backdrop image, or the placeholder backdrop."""
    if not path:
        return PLACEHOLDER_BACKDROP
    return f"{base_url}/{BACKDROP_SIZES.get(size, BACKDROP_SIZES['large'])}{path}"


class TmdbClient:
    """Client for interacting with The Movie Database API."""

    def __init__(self, tmdb_config: TmdbConfig, session: Optional[requests.Session] = None):
        """
        Initialize TMDB client.

        Args:
            tmdb_config: Configuration containing the API key and locale
            session: Optional pre-built requests session
        """
        self.config = tmdb_config
        self.base_url = tmdb_config.base_url.rstrip('/')
        self.api_key = tmdb_config.api_key
        self.language = tmdb_config.language
        self.timeout = tmdb_config.timeout
        self.session = session or self._build_session(tmdb_config.max_retries)

    @staticmethod
    def _build_session(max_retries: int) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(['GET']),
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount('https://', adapter)
        session.mount('http://', adapter)
        return session

    def _make_request(self, endpoint: str, **params: Any) -> dict[str, Any]:
        """
        Make a request to the TMDB API.

        Args:
            endpoint: API path such as '/movie/popular'
            **params: Additional query parameters for the API call

        Returns:
            JSON response from the API

        Raises:
            requests.RequestException: If the request fails
        """
        query = {'api_key': self.api_key, 'language': self.language}
        query.update({key: value for key, value in params.items() if value is not None})

        response = self.session.get(f"{self.base_url}{endpoint}", params=query, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_trending(self, media_type: str = 'all', time_window: str = 'week') -> dict[str, Any]:
        """
        Get trending content.

        Args:
            media_type: 'all', 'movie' or 'tv'
            time_window: 'day' or 'week'

        Returns:
            Paged API response with trending items
        """
        return self._make_request(f"/trending/{media_type}/{time_window}")

    def get_popular(self, media_kind: MediaKind = MediaKind.MOVIE, page: int = 1) -> dict[str, Any]:
        """Get popular movies or series."""
        return self._make_request(f"/{media_kind.value}/popular", page=page)

    def get_top_rated(self, media_kind: MediaKind = MediaKind.MOVIE, page: int = 1) -> dict[str, Any]:
        """Get top rated movies or series."""
        return self._make_request(f"/{media_kind.value}/top_rated", page=page)

    def get_upcoming(self, page: int = 1) -> dict[str, Any]:
        """Get movies about to be released."""
        return self._make_request('/movie/upcoming', page=page)

    def get_now_playing(self, page: int = 1) -> dict[str, Any]:
        """Get movies currently in theaters."""
        return self._make_request('/movie/now_playing', page=page)

    def get_airing_today(self, page: int = 1) -> dict[str, Any]:
        """Get series with an episode airing today."""
        return self._make_request('/tv/airing_today', page=page)

    def get_on_the_air(self, page: int = 1) -> dict[str, Any]:
        """Get series currently on the air."""
        return self._make_request('/tv/on_the_air', page=page)

    def get_details(self, media_kind: MediaKind, media_id: int) -> dict[str, Any]:
        """
        Get full details of a movie or series.

        Args:
            media_kind: MediaKind.MOVIE or MediaKind.SERIES
            media_id: TMDB identifier

        Returns:
            Details including videos, credits and similar titles
        """
        return self._make_request(
            f"/{media_kind.value}/{media_id}",
            append_to_response='videos,credits,similar'
        )

    def get_season_details(self, series_id: int, season_number: int) -> dict[str, Any]:
        """
        Get one season of a series.

        Args:
            series_id: TMDB series identifier
            season_number: Season number

        Returns:
            Season details including the episode list
        """
        return self._make_request(f"/tv/{series_id}/season/{season_number}")

    def search(self, query: str, page: int = 1) -> dict[str, Any]:
        """Search movies, series and people by text."""
        return self._make_request('/search/multi', query=query, page=page)

    def get_genres(self, media_kind: MediaKind = MediaKind.MOVIE) -> dict[str, Any]:
        """Get the genre list for movies or series."""
        return self._make_request(f"/genre/{media_kind.value}/list")
