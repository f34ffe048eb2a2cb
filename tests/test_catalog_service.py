import unittest
from unittest.mock import MagicMock

import requests

from cineverso.models import MediaKind, TmdbConfig
from flask_app.services.catalog_service import CatalogNotFoundError, CatalogService


def _http_error(status_code):
    response = requests.Response()
    response.status_code = status_code
    return requests.HTTPError(f'{status_code} error', response=response)


class CatalogServiceTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.client.config = TmdbConfig(api_key='secret-key')
        self.service = CatalogService(self.client)

    def test_category_dispatch(self):
        self.client.get_top_rated.return_value = {
            'results': [{'id': 1, 'name': 'Breaking Bad', 'first_air_date': '2008-01-20'}],
            'page': 2,
            'total_pages': 9,
        }

        result = self.service.get_category('top_rated', MediaKind.SERIES, page=2)

        self.client.get_top_rated.assert_called_once_with(MediaKind.SERIES, page=2)
        self.assertEqual(result['page'], 2)
        item = result['items'][0]
        self.assertEqual(item['title'], 'Breaking Bad')
        self.assertEqual(item['media_type'], 'tv')
        self.assertEqual(item['release_date'], '2008-01-20')

    def test_trending_uses_media_type_name(self):
        self.client.get_trending.return_value = {'results': []}

        self.service.get_category('trending', MediaKind.MOVIE)

        self.client.get_trending.assert_called_once_with('movie')

    def test_unsupported_category_or_kind(self):
        with self.assertRaises(ValueError):
            self.service.get_category('unknown')
        with self.assertRaises(ValueError):
            self.service.get_category('upcoming', MediaKind.SERIES)

    def test_home_rows_skip_failed_requests(self):
        self.client.get_trending.return_value = {'results': [{'id': 1, 'title': 'Dune'}]}
        self.client.get_popular.side_effect = requests.ConnectionError('offline')
        self.client.get_top_rated.return_value = {'results': []}
        self.client.get_now_playing.return_value = {'results': []}
        self.client.get_upcoming.return_value = {'results': []}
        self.client.get_airing_today.return_value = {'results': []}

        rows = self.service.get_home_rows()

        keys = [row['key'] for row in rows]
        self.assertIn('trending_movie', keys)
        self.assertNotIn('popular_movie', keys)
        self.assertNotIn('popular_tv', keys)
        self.assertEqual(len(rows), len(CatalogService.HOME_ROWS) - 2)

    def test_search_drops_people_and_blank_queries(self):
        self.client.search.return_value = {
            'results': [
                {'id': 1, 'media_type': 'movie', 'title': 'Heat'},
                {'id': 2, 'media_type': 'person', 'name': 'Al Pacino'},
                {'id': 3, 'media_type': 'tv', 'name': 'Heat Wave'},
            ],
            'total_results': 3,
        }

        result = self.service.search('heat')

        self.assertEqual([item['id'] for item in result['items']], [1, 3])
        self.assertEqual(self.service.search('   ')['items'], [])
        self.client.search.assert_called_once_with('heat', page=1)

    def test_series_details(self):
        self.client.get_details.return_value = {
            'id': 1399,
            'name': 'Game of Thrones',
            'genres': [{'id': 1, 'name': 'Drama'}],
            'episode_run_time': [60],
            'videos': {'results': [
                {'site': 'Vimeo', 'type': 'Trailer', 'key': 'nope'},
                {'site': 'YouTube', 'type': 'Trailer', 'key': 'abc123'},
            ]},
            'credits': {'cast': [{'name': f'Actor {n}'} for n in range(20)]},
            'similar': {'results': [{'id': 2, 'name': 'House of the Dragon'}]},
            'seasons': [
                {'season_number': 0, 'name': 'Specials'},
                {'season_number': 1, 'name': 'Season 1', 'episode_count': 10},
            ],
        }

        details = self.service.get_details(MediaKind.SERIES, 1399)

        self.assertEqual(details['title'], 'Game of Thrones')
        self.assertEqual(details['genres'], ['Drama'])
        self.assertEqual(details['runtime'], 60)
        self.assertEqual(details['trailer_key'], 'abc123')
        self.assertEqual(len(details['cast']), 12)
        self.assertEqual(details['similar'][0]['media_type'], 'tv')
        self.assertEqual([season['season_number'] for season in details['seasons']], [1])

    def test_details_not_found(self):
        self.client.get_details.side_effect = _http_error(404)

        with self.assertRaises(CatalogNotFoundError):
            self.service.get_details(MediaKind.MOVIE, 999999)

    def test_other_http_errors_propagate(self):
        self.client.get_details.side_effect = _http_error(500)

        with self.assertRaises(requests.HTTPError):
            self.service.get_details(MediaKind.MOVIE, 603)

    def test_season_episodes(self):
        self.client.get_season_details.return_value = {'episodes': [
            {'episode_number': 1, 'name': 'Winter Is Coming', 'still_path': '/s1.jpg'},
            {'episode_number': 2, 'name': 'The Kingsroad'},
        ]}

        episodes = self.service.get_season_episodes(1399, 1)

        self.assertEqual([episode['episode_number'] for episode in episodes], [1, 2])
        self.assertTrue(episodes[0]['still_url'].endswith('/w300/s1.jpg'))

    def test_season_not_found(self):
        self.client.get_season_details.side_effect = _http_error(404)

        with self.assertRaises(CatalogNotFoundError):
            self.service.get_season_episodes(1399, 99)


if __name__ == '__main__':
    unittest.main()
