"""
Database models for Flask application.
"""
from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()


class User(db.Model):
    """Registered account used for email/password sign-in."""
    __tablename__ = 'users'

    id = db.Column(db.String(32), primary_key=True)  # uid used as document id
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(255), nullable=True)
    photo_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    def to_session_user(self):
        """Convert to cineverso.session.SessionUser"""
        from cineverso.session import SessionUser
        return SessionUser(
            uid=self.id,
            email=self.email,
            display_name=self.display_name,
            photo_url=self.photo_url
        )


class StoredDocument(db.Model):
    """JSON document addressed by collection and document id."""
    __tablename__ = 'stored_documents'

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(100), nullable=False)  # users, watchHistory
    doc_id = db.Column(db.String(255), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)  # bumped on every write

    __table_args__ = (
        db.UniqueConstraint('collection', 'doc_id', name='uq_document_collection_id'),
    )
    __mapper_args__ = {'version_id_col': version}
