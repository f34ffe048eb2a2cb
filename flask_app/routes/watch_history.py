"""
Watch-history routes for marking episodes and seasons.
"""
import requests
from flask import Blueprint, jsonify, request

from flask_app.services.catalog_service import CatalogNotFoundError
from flask_app.services.context import (
    CatalogNotConfiguredError,
    get_catalog_service,
    get_watch_history_service,
)
from flask_app.utils.responses import LOGIN_MESSAGE, sync_result_response
from flask_app.utils.validators import validate_episode_position

watch_history_bp = Blueprint('watch_history', __name__)


@watch_history_bp.route('/<int:series_id>')
def get_watched(series_id):
    """Return the watched episode keys of a series."""
    service = get_watch_history_service()
    return jsonify({
        'series_id': series_id,
        'authenticated': service.is_authenticated(),
        'watched': service.get_watched_episodes(series_id),
    })


@watch_history_bp.route('/<int:series_id>/episode', methods=['POST'])
def update_episode(series_id):
    """
    Mark or unmark one episode.

    JSON body:
        season: Season number
        episode: Episode number
        episode_name: Optional episode title
        watched: True to mark, False to unmark
    """
    data = request.get_json(silent=True) or {}
    season = data.get('season')
    episode = data.get('episode')

    errors = validate_episode_position(season, episode)
    if episode is None:
        errors.append('Episode is required.')
    if errors:
        return jsonify({'error': ' '.join(errors)}), 400

    service = get_watch_history_service()
    if data.get('watched', True):
        result = service.mark_episode_watched(series_id, season, episode, data.get('episode_name'))
        message = f'Season {season}, episode {episode} marked as watched'
    else:
        result = service.unmark_episode_watched(series_id, season, episode)
        message = f'Season {season}, episode {episode} unmarked'

    return sync_result_response(result, message, watched=service.get_watched_episodes(series_id))


@watch_history_bp.route('/<int:series_id>/season', methods=['POST'])
def update_season(series_id):
    """
    Mark or unmark a whole season.

    JSON body:
        season: Season number
        watched: True to mark, False to unmark
        episodes: Optional list of episode numbers or {episode_number, name}
            objects; fetched from the catalog when omitted
    """
    data = request.get_json(silent=True) or {}
    season = data.get('season')

    errors = validate_episode_position(season)
    if errors:
        return jsonify({'error': ' '.join(errors)}), 400

    service = get_watch_history_service()
    if not service.is_authenticated():
        return jsonify({'status': 'failed', 'reason': 'login_required', 'message': LOGIN_MESSAGE}), 401

    episodes = data.get('episodes')
    if episodes is None:
        try:
            episodes = get_catalog_service().get_season_episodes(series_id, season)
        except CatalogNotFoundError:
            return jsonify({'error': 'Season not found.'}), 404
        except CatalogNotConfiguredError as e:
            return jsonify({'error': str(e)}), 503
        except requests.RequestException as e:
            return jsonify({'error': f'Could not load season episodes: {e}'}), 502

    try:
        if data.get('watched', True):
            result = service.mark_season_as_watched(series_id, season, episodes)
            message = f'Season {season} marked as watched'
        else:
            result = service.unmark_season_as_watched(series_id, season, episodes)
            message = f'Season {season} unmarked'
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid episode list: {e}'}), 400

    return sync_result_response(
        result, message,
        failure_message=f'Season {season} was saved on this device, but syncing with your account '
                        'stopped partway. Please try again.',
        watched=service.get_watched_episodes(series_id)
    )
