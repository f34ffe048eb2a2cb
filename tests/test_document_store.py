import os
import tempfile
import unittest
from unittest.mock import patch

from flask import Flask
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from cineverso.documents import SERVER_TIMESTAMP, ArrayUnion, DocumentNotFoundError, apply_field_updates
from flask_app.models import StoredDocument, db
from flask_app.services.document_store import SqlDocumentStore


class SqlDocumentStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
        cls.app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
        db.init_app(cls.app)
        with cls.app.app_context():
            db.create_all()

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            db.drop_all()

    def setUp(self):
        self.ctx = self.app.app_context()
        self.ctx.push()
        StoredDocument.query.delete()
        db.session.commit()
        self.store = SqlDocumentStore()

    def tearDown(self):
        db.session.remove()
        self.ctx.pop()

    def test_missing_document_reads_as_none(self):
        self.assertIsNone(self.store.get_document('users', 'nobody'))

    def test_set_then_get(self):
        self.store.set_document('users', 'u1', {'favorites': [], 'created_at': SERVER_TIMESTAMP})

        document = self.store.get_document('users', 'u1')

        self.assertEqual(document['favorites'], [])
        self.assertIsInstance(document['created_at'], str)

    def test_set_replaces_existing_document(self):
        self.store.set_document('users', 'u1', {'favorites': [1]})
        self.store.set_document('users', 'u1', {'watchlist': [2]})

        self.assertEqual(self.store.get_document('users', 'u1'), {'watchlist': [2]})
        self.assertEqual(StoredDocument.query.count(), 1)

    def test_update_fields_persists_nested_changes(self):
        self.store.set_document('watchHistory', 'u1', {})

        self.store.update_fields('watchHistory', 'u1', {
            'series_42.s1e1': {'episode_number': 1, 'watched_at_server': SERVER_TIMESTAMP},
            'series_42.s1e2': None,
        })
        db.session.expire_all()

        series = self.store.get_document('watchHistory', 'u1')['series_42']
        self.assertEqual(series['s1e1']['episode_number'], 1)
        self.assertIsInstance(series['s1e1']['watched_at_server'], str)
        self.assertIsNone(series['s1e2'])

    def test_update_fields_array_union(self):
        self.store.set_document('users', 'u1', {'favorites': []})

        self.store.update_fields('users', 'u1', {'favorites': ArrayUnion({'id': 1})})
        self.store.update_fields('users', 'u1', {'favorites': ArrayUnion({'id': 1})})
        db.session.expire_all()

        self.assertEqual(self.store.get_document('users', 'u1')['favorites'], [{'id': 1}])

    def test_update_of_missing_document_raises(self):
        with self.assertRaises(DocumentNotFoundError):
            self.store.update_fields('users', 'ghost', {'favorites': ArrayUnion(1)})

    def test_collections_are_separate(self):
        self.store.set_document('users', 'u1', {'kind': 'profile'})
        self.store.set_document('watchHistory', 'u1', {'kind': 'history'})

        self.assertEqual(self.store.get_document('users', 'u1')['kind'], 'profile')
        self.assertEqual(self.store.get_document('watchHistory', 'u1')['kind'], 'history')

    def test_ping(self):
        self.assertTrue(self.store.ping())

    def test_ping_reports_database_errors(self):
        error = OperationalError('SELECT 1', {}, Exception('database is locked'))
        with patch.object(db.session, 'execute', side_effect=error):
            self.assertFalse(self.store.ping())


class SqlDocumentStoreConcurrentWriteTests(unittest.TestCase):
    """Writes from a second session land between a read and its commit."""

    def setUp(self):
        handle, self.db_path = tempfile.mkstemp(suffix='.db')
        os.close(handle)
        self.app = Flask(__name__)
        self.app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{self.db_path}'
        self.app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
        db.init_app(self.app)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.store = SqlDocumentStore()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
        self.ctx.pop()
        os.remove(self.db_path)

    def _write_from_other_session(self, collection, doc_id, updates):
        other = db.session.session_factory()
        try:
            row = other.query(StoredDocument).filter_by(collection=collection, doc_id=doc_id).one()
            row.data = apply_field_updates(row.data, updates, '2024-05-01T00:00:00+00:00')
            flag_modified(row, 'data')
            other.commit()
        finally:
            other.close()

    def _interleaving(self, updates, times=1):
        """apply_field_updates stand-in that lets another session commit first."""
        remaining = {'count': times}

        def apply_after_competing_write(data, pending, now):
            if remaining['count'] > 0:
                remaining['count'] -= 1
                self._write_from_other_session('watchHistory', 'u1', updates)
            return apply_field_updates(data, pending, now)

        return apply_after_competing_write

    def test_interleaved_field_updates_are_both_kept(self):
        self.store.set_document('watchHistory', 'u1', {'series_42': {'s1e1': {'episode_number': 1}}})
        competing = self._interleaving({'series_42.s1e3': {'episode_number': 3}})

        with patch('flask_app.services.document_store.apply_field_updates', side_effect=competing):
            self.store.update_fields('watchHistory', 'u1', {'series_42.s1e2': {'episode_number': 2}})
        db.session.expire_all()

        series = self.store.get_document('watchHistory', 'u1')['series_42']
        self.assertEqual(set(series), {'s1e1', 's1e2', 's1e3'})

    def test_interleaved_array_unions_are_both_kept(self):
        self.store.set_document('watchHistory', 'u1', {'favorites': []})
        competing = self._interleaving({'favorites': ArrayUnion({'id': 1})})

        with patch('flask_app.services.document_store.apply_field_updates', side_effect=competing):
            self.store.update_fields('watchHistory', 'u1', {'favorites': ArrayUnion({'id': 2})})
        db.session.expire_all()

        favorites = self.store.get_document('watchHistory', 'u1')['favorites']
        self.assertCountEqual(favorites, [{'id': 1}, {'id': 2}])

    def test_gives_up_when_every_attempt_is_overtaken(self):
        self.store.set_document('watchHistory', 'u1', {})
        competing = self._interleaving({'series_1.s1e1': None}, times=SqlDocumentStore.MAX_WRITE_ATTEMPTS)

        with patch('flask_app.services.document_store.apply_field_updates', side_effect=competing):
            with self.assertRaises(StaleDataError):
                self.store.update_fields('watchHistory', 'u1', {'series_1.s1e2': None})


if __name__ == '__main__':
    unittest.main()
