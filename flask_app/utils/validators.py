"""
Form validation utilities.
"""
import re
from typing import List, Dict, Any

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6


def validate_credentials(data: Dict[str, Any], new_account: bool = False) -> List[str]:
    """
    Validate sign-up or sign-in credentials.

    Args:
        data: Dictionary with 'email' and 'password'
        new_account: Apply password strength rules for sign-up

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    email = (data.get('email') or '').strip()
    if not email:
        errors.append('E-mail is required.')
    elif not EMAIL_PATTERN.match(email):
        errors.append('Please enter a valid e-mail address.')

    password = data.get('password') or ''
    if not password:
        errors.append('Password is required.')
    elif new_account and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')

    return errors


def validate_list_item(data: Dict[str, Any]) -> List[str]:
    """
    Validate a favorites/watch-later toggle payload.

    Args:
        data: Dictionary with 'id', 'media_type' and 'title' (or 'name')

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    try:
        if int(data.get('id')) <= 0:
            errors.append('Item id must be positive.')
    except (TypeError, ValueError):
        errors.append('Item id is required.')

    if data.get('media_type') not in ('movie', 'tv'):
        errors.append('media_type must be "movie" or "tv".')

    if not (data.get('title') or data.get('name')):
        errors.append('Title is required.')

    return errors


def validate_episode_position(season: Any, episode: Any = None) -> List[str]:
    """
    Validate season and (optionally) episode numbers.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    if not isinstance(season, int) or isinstance(season, bool) or season < 1:
        errors.append('Season must be a number of at least 1.')
    if episode is not None and (not isinstance(episode, int) or isinstance(episode, bool) or episode < 1):
        errors.append('Episode must be a number of at least 1.')
    return errors
