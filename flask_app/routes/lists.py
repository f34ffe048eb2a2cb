"""
Favorites and watch-later routes.
"""
from flask import Blueprint, jsonify, request

from cineverso.models import ListEntry, MediaKind
from flask_app.services.context import get_user_lists_service
from flask_app.utils.responses import sync_result_response
from flask_app.utils.validators import validate_list_item

lists_bp = Blueprint('lists', __name__)


def _serialize(entries):
    return [entry.to_document() for entry in entries]


@lists_bp.route('/')
def index():
    """Return both lists, optionally filtered by media_type."""
    service = get_user_lists_service()
    media_type = request.args.get('media_type')

    favorites = service.favorites
    watch_later = service.watch_later
    if media_type in ('movie', 'tv'):
        favorites = [entry for entry in favorites if entry.media.media_kind.value == media_type]
        watch_later = [entry for entry in watch_later if entry.media.media_kind.value == media_type]

    return jsonify({
        'authenticated': service.auth_state.is_authenticated,
        'favorites': _serialize(favorites),
        'watch_later': _serialize(watch_later),
        'counts': {'favorites': len(service.favorites), 'watch_later': len(service.watch_later)},
    })


@lists_bp.route('/status/<kind>/<int:media_id>')
def status(kind, media_id):
    """Return whether an item is in each list."""
    try:
        media_kind = MediaKind.parse(kind)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    service = get_user_lists_service()
    return jsonify({
        'id': media_id,
        'media_type': media_kind.value,
        'favorite': service.is_in_favorites(media_id, media_kind),
        'watch_later': service.is_in_watch_later(media_id, media_kind),
    })


@lists_bp.route('/favorites/toggle', methods=['POST'])
def toggle_favorite():
    """Add or remove an item from favorites."""
    return _toggle('favorites')


@lists_bp.route('/watch-later/toggle', methods=['POST'])
def toggle_watch_later():
    """Add or remove an item from watch-later."""
    return _toggle('watch_later')


def _toggle(list_name: str):
    data = request.get_json(silent=True) or {}
    errors = validate_list_item(data)
    if errors:
        return jsonify({'error': ' '.join(errors)}), 400

    entry = ListEntry.from_document(data)
    service = get_user_lists_service()

    if list_name == 'favorites':
        result = service.toggle_favorite(entry)
        present = service.is_in_favorites(entry.media.media_id, entry.media.media_kind)
        label = 'favorites'
    else:
        result = service.toggle_watch_later(entry)
        present = service.is_in_watch_later(entry.media.media_id, entry.media.media_kind)
        label = 'your watch list'

    message = f'Added to {label}' if present else f'Removed from {label}'
    return sync_result_response(result, message, in_list=present)
