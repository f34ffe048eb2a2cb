"""
Service for browsing the TMDB catalog.

Normalizes TMDB payloads into the card shape used by the catalog pages.
"""
import logging
from typing import Any, Optional

import requests

from cineverso.api_client import TmdbClient, get_backdrop_url, get_image_url
from cineverso.models import MediaKind
from flask_app.services.utils import first_text, to_int

logger = logging.getLogger(__name__)


class CatalogNotFoundError(Exception):
    """Raised when TMDB has no item for the requested id."""


class CatalogService:
    """Service for catalog rows, listings, search and details."""

    # category -> (client method name, kinds it supports)
    CATEGORIES = {
        'trending': ('get_trending', (MediaKind.MOVIE, MediaKind.SERIES)),
        'popular': ('get_popular', (MediaKind.MOVIE, MediaKind.SERIES)),
        'top_rated': ('get_top_rated', (MediaKind.MOVIE, MediaKind.SERIES)),
        'upcoming': ('get_upcoming', (MediaKind.MOVIE,)),
        'now_playing': ('get_now_playing', (MediaKind.MOVIE,)),
        'airing_today': ('get_airing_today', (MediaKind.SERIES,)),
        'on_the_air': ('get_on_the_air', (MediaKind.SERIES,)),
    }

    HOME_ROWS = [
        ('trending', MediaKind.MOVIE, 'Trending movies'),
        ('trending', MediaKind.SERIES, 'Trending series'),
        ('popular', MediaKind.MOVIE, 'Popular movies'),
        ('top_rated', MediaKind.MOVIE, 'Top rated movies'),
        ('now_playing', MediaKind.MOVIE, 'Now playing'),
        ('upcoming', MediaKind.MOVIE, 'Coming soon'),
        ('popular', MediaKind.SERIES, 'Popular series'),
        ('top_rated', MediaKind.SERIES, 'Top rated series'),
        ('airing_today', MediaKind.SERIES, 'Airing today'),
    ]

    def __init__(self, client: TmdbClient):
        self.client = client
        self.image_base_url = client.config.image_base_url

    def get_home_rows(self) -> list[dict[str, Any]]:
        """
        Build the carousels shown on the home page.

        A row whose request fails is logged and left out.

        Returns:
            List of rows with 'key', 'title' and 'items'
        """
        rows = []
        for category, kind, title in self.HOME_ROWS:
            try:
                items = self.get_category(category, kind)['items']
            except requests.RequestException as e:
                logger.warning("Error fetching home row %s/%s: %s", category, kind.value, e)
                continue
            rows.append({'key': f"{category}_{kind.value}", 'title': title, 'items': items})
        return rows

    def get_category(self, category: str, kind: MediaKind = MediaKind.MOVIE,
                     page: int = 1) -> dict[str, Any]:
        """
        Get one page of a category listing.

        Args:
            category: One of CATEGORIES
            kind: Media kind; must be supported by the category
            page: Page number

        Returns:
            Dict with 'items', 'page' and 'total_pages'

        Raises:
            ValueError: If the category or kind is not supported
        """
        if category not in self.CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        method_name, kinds = self.CATEGORIES[category]
        if kind not in kinds:
            raise ValueError(f"Category {category} is not available for {kind.value}")

        method = getattr(self.client, method_name)
        if category == 'trending':
            response = method(kind.value)
        elif len(kinds) > 1:
            response = method(kind, page=page)
        else:
            response = method(page=page)

        return self._page(response, kind)

    def search(self, query: str, page: int = 1) -> dict[str, Any]:
        """Search movies and series; people in the results are dropped."""
        query = (query or '').strip()
        if not query:
            return {'items': [], 'page': 1, 'total_pages': 0, 'total_results': 0}

        response = self.client.search(query, page=page)
        items = [
            self.normalize_item(item)
            for item in response.get('results', [])
            if item.get('media_type') in ('movie', 'tv')
        ]
        return {
            'items': items,
            'page': response.get('page', page),
            'total_pages': response.get('total_pages', 0),
            'total_results': response.get('total_results', len(items)),
        }

    def get_details(self, kind: MediaKind, media_id: int) -> dict[str, Any]:
        """
        Get the details page data of a movie or series.

        Raises:
            CatalogNotFoundError: If TMDB answers 404
        """
        try:
            raw = self.client.get_details(kind, media_id)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise CatalogNotFoundError(f"{kind.value} {media_id} not found") from e
            raise

        details = self.normalize_item(raw, kind)
        details.update({
            'genres': [genre.get('name') for genre in raw.get('genres', [])],
            'runtime': raw.get('runtime') or (raw.get('episode_run_time') or [None])[0],
            'tagline': raw.get('tagline') or '',
            'trailer_key': self._trailer_key(raw.get('videos')),
            'cast': [
                {'name': person.get('name'), 'character': person.get('character'),
                 'profile_url': get_image_url(person.get('profile_path'), 'small', self.image_base_url)}
                for person in (raw.get('credits') or {}).get('cast', [])[:12]
            ],
            'similar': [
                self.normalize_item(item, kind)
                for item in (raw.get('similar') or {}).get('results', [])
            ],
        })
        if kind is MediaKind.SERIES:
            details['seasons'] = [
                {
                    'season_number': season.get('season_number'),
                    'name': season.get('name'),
                    'episode_count': season.get('episode_count') or 0,
                    'poster_url': get_image_url(season.get('poster_path'), 'small', self.image_base_url),
                }
                for season in raw.get('seasons', [])
                if (to_int(season.get('season_number')) or 0) >= 1
            ]
        return details

    def get_season_episodes(self, series_id: int, season_number: int) -> list[dict[str, Any]]:
        """
        Get the episodes of a season.

        Raises:
            CatalogNotFoundError: If TMDB answers 404
        """
        try:
            raw = self.client.get_season_details(series_id, season_number)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise CatalogNotFoundError(f"Season {season_number} of {series_id} not found") from e
            raise

        return [
            {
                'episode_number': episode.get('episode_number'),
                'name': episode.get('name') or '',
                'overview': episode.get('overview') or '',
                'air_date': episode.get('air_date'),
                'still_url': get_backdrop_url(episode.get('still_path'), 'small', self.image_base_url),
            }
            for episode in raw.get('episodes', [])
            if to_int(episode.get('episode_number'))
        ]

    def get_genres(self, kind: MediaKind) -> list[dict[str, Any]]:
        response = self.client.get_genres(kind)
        return [{'id': genre.get('id'), 'name': genre.get('name')} for genre in response.get('genres', [])]

    def normalize_item(self, item: dict[str, Any], default_kind: Optional[MediaKind] = None) -> dict[str, Any]:
        """
        Convert a TMDB result into a catalog card.

        Args:
            item: Raw TMDB movie or series mapping
            default_kind: Kind used when the item carries no media_type

        Returns:
            Card dict with urls resolved and movie/series fields unified
        """
        media_type = item.get('media_type') or (default_kind.value if default_kind else 'movie')
        return {
            'id': item.get('id'),
            'media_type': media_type,
            'title': first_text(item.get('title'), item.get('name')),
            'overview': item.get('overview') or '',
            'poster_path': item.get('poster_path') or '',
            'poster_url': get_image_url(item.get('poster_path'), 'medium', self.image_base_url),
            'backdrop_url': get_backdrop_url(item.get('backdrop_path'), 'large', self.image_base_url),
            'vote_average': item.get('vote_average') or 0.0,
            'release_date': item.get('release_date') or item.get('first_air_date') or '',
        }

    def _page(self, response: dict[str, Any], kind: MediaKind) -> dict[str, Any]:
        return {
            'items': [self.normalize_item(item, kind) for item in response.get('results', [])],
            'page': response.get('page', 1),
            'total_pages': response.get('total_pages', 1),
        }

    @staticmethod
    def _trailer_key(videos: Optional[dict[str, Any]]) -> Optional[str]:
        for video in (videos or {}).get('results', []):
            if video.get('site') == 'YouTube' and video.get('type') == 'Trailer':
                return video.get('key')
        return None
