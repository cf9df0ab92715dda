"""
Document store gateway.

Schema-less documents are kept in a single SQL table, addressed by a logical
collection path such as ``artifacts/<app_id>/public/data/portfolio``. Each row
holds an open JSON field map plus a store-assigned id and creation time.
"""

import json
import logging
import uuid

from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from .database import db

logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    """Base class for document store failures"""


class StoreUnavailable(DocumentStoreError):
    """The store connection could not be established or was lost"""


class StoreWriteRejected(DocumentStoreError):
    """The store refused to persist a document"""


def _new_document_id():
    return uuid.uuid4().hex


class Document(db.Model):
    __tablename__ = 'documents'

    id = db.Column(db.String(32), primary_key=True, default=_new_document_id)
    collection = db.Column(db.String(255), nullable=False, index=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)
    # Field name under which created_at is exposed, if the writer asked for one
    timestamp_field = db.Column(db.String(64), nullable=True)

    def to_record(self):
        """Stored field map with the id merged in."""
        record = {'id': self.id}
        record.update(self.data or {})
        if self.timestamp_field:
            record[self.timestamp_field] = self.created_at.isoformat() if self.created_at else None
        return record

    def __repr__(self):
        return f"<Document {self.collection}/{self.id}>"


class DocumentStore:
    """Gateway over the documents table; one instance per process."""

    def __init__(self, database=db):
        self.db = database

    def list_collection(self, path):
        """
        Return every document under ``path`` as a list of records.

        An empty collection yields an empty list. Any database failure is
        reported as StoreUnavailable.
        """
        try:
            documents = (
                self.db.session.query(Document)
                .filter(Document.collection == path)
                .order_by(Document.created_at, Document.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.session.rollback()
            logger.error(f"Failed to read collection {path}: {e}")
            raise StoreUnavailable(str(e)) from e

        return [document.to_record() for document in documents]

    def append_document(self, path, fields, timestamp_field=None):
        """
        Create a document under ``path`` and return its new id.

        The store assigns both the id and the creation timestamp. When
        ``timestamp_field`` is given, the server timestamp is returned under
        that field name on reads; it must not clash with a supplied field.
        The write is committed as a single unit; on failure the session is
        rolled back.
        """
        if not path:
            raise StoreWriteRejected('Collection path is required')
        if not isinstance(fields, dict):
            raise StoreWriteRejected('Document fields must be a mapping')
        if timestamp_field and timestamp_field in fields:
            raise StoreWriteRejected(f"Field '{timestamp_field}' is assigned by the store")
        try:
            json.dumps(fields)
        except (TypeError, ValueError) as e:
            raise StoreWriteRejected(f"Document fields are not serializable: {e}") from e

        document_id = _new_document_id()
        document = Document(
            id=document_id, collection=path, data=dict(fields), timestamp_field=timestamp_field
        )
        try:
            self.db.session.add(document)
            self.db.session.commit()
        except (OperationalError, InterfaceError, DisconnectionError) as e:
            self.db.session.rollback()
            logger.error(f"Document store unavailable while writing to {path}: {e}")
            raise StoreUnavailable(str(e)) from e
        except SQLAlchemyError as e:
            self.db.session.rollback()
            logger.error(f"Document write to {path} rejected: {e}")
            raise StoreWriteRejected(str(e)) from e

        logger.info(f"Document added to {path} with ID: {document_id}")
        return document_id
