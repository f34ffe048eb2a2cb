"""
Document store backed by the application database.

Rows carry a version counter, so a write based on a stale read fails with
StaleDataError instead of overwriting a concurrent change; writes are then
re-applied on a fresh read.
"""
import copy
import logging
from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from cineverso.documents import (
    DocumentNotFoundError,
    DocumentStore,
    apply_field_updates,
    resolve_server_timestamps,
    utc_timestamp,
)
from flask_app.models import db, StoredDocument

logger = logging.getLogger(__name__)


class SqlDocumentStore(DocumentStore):
    """Stores each document as a JSON column row keyed by (collection, doc_id)."""

    MAX_WRITE_ATTEMPTS = 5

    def _find(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        return StoredDocument.query.filter_by(collection=collection, doc_id=doc_id).first()

    def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        row = self._find(collection, doc_id)
        if row is None:
            return None
        return copy.deepcopy(row.data or {})

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        def write():
            resolved = resolve_server_timestamps(data, utc_timestamp())
            row = self._find(collection, doc_id)
            if row is None:
                db.session.add(StoredDocument(collection=collection, doc_id=doc_id, data=resolved))
            else:
                row.data = resolved
                flag_modified(row, 'data')

        self._write(collection, doc_id, write)

    def update_fields(self, collection: str, doc_id: str, updates: dict[str, Any]) -> None:
        def write():
            row = self._find(collection, doc_id)
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)
            row.data = apply_field_updates(row.data or {}, updates, utc_timestamp())
            flag_modified(row, 'data')

        self._write(collection, doc_id, write)

    def _write(self, collection: str, doc_id: str, write: Callable[[], None]) -> None:
        """
        Run a read-modify-write and commit it, retrying when another writer got there first.

        Args:
            collection: Document collection, for logging
            doc_id: Document id, for logging
            write: Reads the current row and stages the change in db.session

        Raises:
            DocumentNotFoundError: Propagated from write
            SQLAlchemyError: On database errors, or once the attempts are used up
        """
        for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
            try:
                write()
                db.session.commit()
                return
            except (StaleDataError, IntegrityError):
                # Version moved on, or the document was created concurrently
                db.session.rollback()
                if attempt == self.MAX_WRITE_ATTEMPTS:
                    raise
                logger.info("Concurrent write on %s/%s, retrying (%d/%d)",
                            collection, doc_id, attempt, self.MAX_WRITE_ATTEMPTS)
            except SQLAlchemyError:
                db.session.rollback()
                raise
            except DocumentNotFoundError:
                db.session.rollback()
                raise

    def ping(self) -> bool:
        try:
            db.session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            logger.warning("Document store unreachable: %s", e)
            db.session.rollback()
            return False
