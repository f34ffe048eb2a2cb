"""
Email/password authentication backed by the users table.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple
from uuid import uuid4

from flask import session
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from cineverso.session import SessionUser
from flask_app.models import db, User
from flask_app.utils.validators import validate_credentials

logger = logging.getLogger(__name__)

SESSION_USER_KEY = 'uid'

AuthResult = Tuple[Optional[SessionUser], Optional[str]]


class AuthService:
    """Service for signing users up, in and out of the Flask session."""

    @staticmethod
    def current_user() -> Optional[SessionUser]:
        """Get the signed-in user from the session, if any."""
        uid = session.get(SESSION_USER_KEY)
        if not uid:
            return None
        user = db.session.get(User, uid)
        if user is None:
            # Account removed while the cookie was still around
            session.pop(SESSION_USER_KEY, None)
            return None
        return user.to_session_user()

    @staticmethod
    def sign_up(email: str, password: str, display_name: Optional[str] = None) -> AuthResult:
        """
        Create an account and start a session for it.

        Args:
            email: Account e-mail (unique, case-insensitive)
            password: Plain password, stored hashed
            display_name: Optional name shown in the profile

        Returns:
            Tuple of (user, None) on success or (None, error message)
        """
        errors = validate_credentials({'email': email, 'password': password}, new_account=True)
        if errors:
            return None, ' '.join(errors)

        normalized_email = email.strip().lower()
        if User.query.filter_by(email=normalized_email).first():
            return None, 'An account with this e-mail already exists.'

        user = User(
            id=uuid4().hex,
            email=normalized_email,
            password_hash=generate_password_hash(password),
            display_name=(display_name or '').strip() or None,
            last_login_at=datetime.utcnow()
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return None, 'An account with this e-mail already exists.'

        session[SESSION_USER_KEY] = user.id
        logger.info("Created account %s", user.id)
        return user.to_session_user(), None

    @staticmethod
    def sign_in(email: str, password: str) -> AuthResult:
        """Check credentials and start a session."""
        errors = validate_credentials({'email': email, 'password': password})
        if errors:
            return None, ' '.join(errors)

        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None or not check_password_hash(user.password_hash, password):
            return None, 'Invalid e-mail or password.'

        user.last_login_at = datetime.utcnow()
        db.session.commit()

        session[SESSION_USER_KEY] = user.id
        return user.to_session_user(), None

    @staticmethod
    def sign_out() -> None:
        """End the current session."""
        session.pop(SESSION_USER_KEY, None)
