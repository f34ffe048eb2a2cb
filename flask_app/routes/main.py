"""
Catalog routes for home rows, listings, search and details.
"""
import requests
from flask import Blueprint, jsonify, request, url_for

from cineverso.models import MediaKind
from flask_app.services.catalog_service import CatalogNotFoundError
from flask_app.services.context import CatalogNotConfiguredError, get_catalog_service

main_bp = Blueprint('main', __name__)


@main_bp.errorhandler(CatalogNotConfiguredError)
def handle_not_configured(error):
    return jsonify({'error': str(error)}), 503


@main_bp.errorhandler(CatalogNotFoundError)
def handle_not_found(error):
    return jsonify({'error': 'Title not found.'}), 404


@main_bp.errorhandler(requests.RequestException)
def handle_catalog_error(error):
    return jsonify({'error': f'Catalog request failed: {error}'}), 502


def _parse_kind(value, default=MediaKind.MOVIE):
    if value is None:
        return default
    return MediaKind.parse(value)


@main_bp.route('/')
def index():
    """List the available API entry points."""
    return jsonify({
        'home': url_for('main.api_home'),
        'search': url_for('main.api_search'),
        'lists': url_for('lists.index'),
        'me': url_for('auth.me'),
    })


@main_bp.route('/api/home')
def api_home():
    """Return the home page carousels."""
    return jsonify({'rows': get_catalog_service().get_home_rows()})


@main_bp.route('/api/category/<category>')
def api_category(category):
    """Return one page of a category (trending, popular, top_rated, ...)."""
    page = request.args.get('page', 1, type=int)
    if page < 1 or page > 500:
        return jsonify({'error': 'Invalid page. Use 1-500.'}), 400

    try:
        kind = _parse_kind(request.args.get('kind'))
        result = get_catalog_service().get_category(category, kind, page)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(result)


@main_bp.route('/api/search')
def api_search():
    """Search movies and series by text."""
    query = request.args.get('q', '')
    page = request.args.get('page', 1, type=int)
    if page < 1:
        return jsonify({'error': 'Invalid page.'}), 400
    return jsonify(get_catalog_service().search(query, page))


@main_bp.route('/api/<kind>/<int:media_id>')
def api_details(kind, media_id):
    """Return details of a movie or series."""
    try:
        media_kind = MediaKind.parse(kind)
    except ValueError:
        return jsonify({'error': 'Title not found.'}), 404
    return jsonify(get_catalog_service().get_details(media_kind, media_id))


@main_bp.route('/api/tv/<int:series_id>/season/<int:season_number>')
def api_season(series_id, season_number):
    """Return the episodes of a season."""
    episodes = get_catalog_service().get_season_episodes(series_id, season_number)
    return jsonify({'series_id': series_id, 'season_number': season_number, 'episodes': episodes})


@main_bp.route('/api/genres/<kind>')
def api_genres(kind):
    """Return the genre list for movies or series."""
    try:
        media_kind = MediaKind.parse(kind)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'genres': get_catalog_service().get_genres(media_kind)})
