"""Tests for the keyed document store."""
from decimal import Decimal

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import InMemoryStorage

from common.exceptions import MalformedDataError, PersistenceError
from common.store import KeyedDocumentStore
from core.storages import UserDataMemoryStorage


class BrokenStorage(UserDataMemoryStorage):
    def exists(self, name):
        raise OSError("bucket indisponível")

    def delete(self, name):
        raise OSError("bucket indisponível")


class TestKeyedDocumentStore:

    def test_missing_key_returns_none(self, store):
        assert store.get('42', 'jobs') is None

    def test_set_then_get(self, store):
        store.set('42', 'jobs', [{'id': 'a', 'value': Decimal('10.50'), 'name': 'Edição'}])
        assert store.get('42', 'jobs') == [{'id': 'a', 'value': '10.50', 'name': 'Edição'}]

    def test_documents_are_partitioned_by_owner(self, store):
        store.set('42', 'clients', [{'id': 'c1'}])
        assert store.get('43', 'clients') is None
        assert store.storage.exists('42/clients.json')

    def test_set_overwrites_whole_document(self, store):
        store.set('42', 'settings', {'userName': 'Ana', 'primaryColor': '#ffffff'})
        store.set('42', 'settings', {'userName': 'Bia'})
        assert store.get('42', 'settings') == {'userName': 'Bia'}

    def test_corrupt_document_raises_malformed(self, store):
        store.storage.save('42/jobs.json', ContentFile(b'{"id": '))
        with pytest.raises(MalformedDataError):
            store.get('42', 'jobs')

    def test_backend_failure_raises_persistence_error(self):
        broken = KeyedDocumentStore(BrokenStorage())
        with pytest.raises(PersistenceError) as exc:
            broken.set('42', 'jobs', [])
        assert exc.value.key == 'jobs'
        with pytest.raises(PersistenceError):
            broken.get('42', 'jobs')

    def test_delete_is_best_effort(self, store):
        store.set('42', 'draftNotes', [])
        store.delete('42', 'draftNotes')
        assert store.get('42', 'draftNotes') is None
        KeyedDocumentStore(BrokenStorage()).delete('42', 'draftNotes')


class FlakySaveStorage(UserDataMemoryStorage):
    fail = False

    def _save(self, name, content):
        if self.fail:
            raise OSError("ligação perdida a meio da gravação")
        return super()._save(name, content)


class TestFailedWrites:

    def test_failed_write_keeps_previous_document(self):
        storage = FlakySaveStorage()
        store = KeyedDocumentStore(storage)
        store.set('42', 'jobs', [{'id': 'a'}])

        storage.fail = True
        with pytest.raises(PersistenceError):
            store.set('42', 'jobs', [{'id': 'b'}])

        assert store.get('42', 'jobs') == [{'id': 'a'}]

    def test_backend_that_renames_instead_of_overwriting_is_refused(self):
        storage = InMemoryStorage()
        store = KeyedDocumentStore(storage)
        store.set('42', 'jobs', [{'id': 'a'}])

        with pytest.raises(PersistenceError):
            store.set('42', 'jobs', [{'id': 'b'}])

        assert store.get('42', 'jobs') == [{'id': 'a'}]
        assert storage.listdir('42') == ([], ['jobs.json'])

    def test_overwrite_does_not_keep_tail_of_longer_document(self, store):
        store.set('42', 'notes', {'text': 'um texto bem mais comprido'})
        store.set('42', 'notes', {'text': 'curto'})
        assert store.get('42', 'notes') == {'text': 'curto'}
