from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from models.database import db
from models.document import Document, StoreUnavailable, StoreWriteRejected

PATH = 'artifacts/test-app/public/data/portfolio'


@pytest.fixture
def store(app):
    with app.app_context():
        yield app.config['DOCUMENT_STORE']


def test_empty_collection_lists_nothing(store):
    assert store.list_collection(PATH) == []


def test_append_assigns_id_and_server_timestamp(store):
    doc_id = store.append_document(PATH, {'title': 'Site', 'tags': ['flask']}, timestamp_field='timestamp')

    assert isinstance(doc_id, str) and len(doc_id) == 32
    records = store.list_collection(PATH)
    assert len(records) == 1
    record = records[0]
    assert record['id'] == doc_id
    assert record['title'] == 'Site'
    assert record['tags'] == ['flask']
    assert record['timestamp']


def test_stored_fields_come_back_verbatim(store):
    doc_id = store.append_document(PATH, {'title': 'x', 'timestamp': '2020-01-01'})

    assert store.list_collection(PATH) == [{'id': doc_id, 'title': 'x', 'timestamp': '2020-01-01'}]


def test_no_timestamp_added_unless_requested(store):
    store.append_document(PATH, {'title': 'x'})

    assert 'timestamp' not in store.list_collection(PATH)[0]


def test_supplied_field_cannot_shadow_server_timestamp(store):
    with pytest.raises(StoreWriteRejected):
        store.append_document(PATH, {'timestamp': 'client'}, timestamp_field='timestamp')
    assert Document.query.count() == 0


def test_collections_are_isolated(store):
    store.append_document(PATH, {'title': 'a'})
    store.append_document('artifacts/test-app/public/data/contactMessages', {'name': 'b'})

    assert [r['title'] for r in store.list_collection(PATH)] == ['a']


def test_each_append_creates_a_distinct_document(store):
    first = store.append_document(PATH, {'title': 'same'})
    second = store.append_document(PATH, {'title': 'same'})

    assert first != second
    assert len(store.list_collection(PATH)) == 2


@pytest.mark.parametrize(
    'path,fields',
    [
        ('', {'title': 'x'}),
        (PATH, ['not', 'a', 'mapping']),
        (PATH, {'when': object()}),
    ],
)
def test_invalid_writes_are_rejected(store, path, fields):
    with pytest.raises(StoreWriteRejected):
        store.append_document(path, fields)
    assert Document.query.count() == 0


def test_connection_failure_on_write_leaves_nothing_behind(store, monkeypatch):
    def broken_commit():
        raise OperationalError('INSERT', {}, Exception('connection lost'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    with pytest.raises(StoreUnavailable):
        store.append_document(PATH, {'title': 'x'})
    monkeypatch.undo()

    assert store.list_collection(PATH) == []


def test_rejected_write_is_rolled_back(store, monkeypatch):
    def rejecting_commit():
        raise IntegrityError('INSERT', {}, Exception('constraint failed'))

    monkeypatch.setattr(db.session, 'commit', rejecting_commit)
    with pytest.raises(StoreWriteRejected):
        store.append_document(PATH, {'title': 'x'})
    monkeypatch.undo()

    assert store.list_collection(PATH) == []


def test_missing_table_is_store_unavailable(store):
    db.drop_all()

    with pytest.raises(StoreUnavailable):
        store.list_collection(PATH)
    with pytest.raises(StoreUnavailable):
        store.append_document(PATH, {'title': 'x'})
