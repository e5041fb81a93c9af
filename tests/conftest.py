"""
Fixtures partilhadas pelos testes.

Os documentos dos utilizadores vivem num UserDataMemoryStorage novo por teste;
a base de dados (utilizadores e sessões) só é usada pelos testes marcados
com django_db.
"""
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from django.utils import timezone

from common.auth import Principal
from common.dates import to_iso
from common.entities import Client, new_id
from common.services import AppDataService
from common.store import KeyedDocumentStore, document_store
from core.storages import UserDataMemoryStorage
from jobs.entities import Job, JobStatus


@pytest.fixture(autouse=True)
def isolated_document_store(monkeypatch):
    """ As views usam o document_store global; cada teste recebe um backend vazio. """
    monkeypatch.setattr(document_store, '_storage', UserDataMemoryStorage())
    return document_store


@pytest.fixture
def store():
    return KeyedDocumentStore(UserDataMemoryStorage())


@pytest.fixture
def principal():
    return Principal(id='42', username='ana', email='ana@example.com')


@pytest.fixture
def app_data(store, principal):
    return AppDataService(store, principal, seed_new_users=False).load()


@pytest.fixture
def today():
    return date(2024, 6, 10)


@pytest.fixture
def local_iso():
    """ ISO UTC de um dia local (America/Sao_Paulo) à hora indicada. """
    def _iso(day, hour=12):
        return to_iso(timezone.make_aware(datetime.combine(day, time(hour))))
    return _iso


@pytest.fixture
def make_job():
    def _make(**overrides):
        data = {
            'id': new_id(),
            'name': 'Vídeo institucional',
            'client_id': 'c1',
            'status': JobStatus.BRIEFING,
            'deadline': '2024-06-01',
            'value': Decimal('1000'),
        }
        data.update(overrides)
        return Job(**data)
    return _make


@pytest.fixture
def make_client():
    def _make(**overrides):
        data = {'id': new_id(), 'name': 'Ana Silva', 'email': 'ana@techcorp.com'}
        data.update(overrides)
        return Client(**data)
    return _make
