"""
Authentication routes.
"""
from flask import Blueprint, jsonify, request

from flask_app.services.auth_service import AuthService
from flask_app.services.context import get_auth_state, get_user_lists_service


auth_bp = Blueprint('auth', __name__)


def _user_payload(user):
    return {
        'uid': user.uid,
        'email': user.email,
        'display_name': user.display_name,
        'photo_url': user.photo_url,
    }


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create an account and sign in."""
    data = request.get_json(silent=True) or request.form
    user, error = AuthService.sign_up(
        data.get('email', ''),
        data.get('password', ''),
        data.get('display_name')
    )
    if error:
        return jsonify({'error': error}), 400

    get_auth_state().set_user(user)
    get_user_lists_service()  # creates the profile document with empty lists
    return jsonify({'user': _user_payload(user)}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Sign in with e-mail and password."""
    data = request.get_json(silent=True) or request.form
    user, error = AuthService.sign_in(data.get('email', ''), data.get('password', ''))
    if error:
        return jsonify({'error': error}), 401

    get_auth_state().set_user(user)
    return jsonify({'user': _user_payload(user)})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Sign out of the current session."""
    AuthService.sign_out()
    get_auth_state().clear()
    return jsonify({'status': 'signed_out'})


@auth_bp.route('/me')
def me():
    """Return the signed-in user, or null."""
    user = get_auth_state().current_user
    return jsonify({'user': _user_payload(user) if user else None})
