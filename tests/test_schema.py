"""Migração versionada dos documentos gravados."""
from common.schema import SCHEMA_VERSION, migrate


def _legacy_snapshot():
    return {
        'jobs': [
            {
                'id': 'j1',
                'name': 'Social Media (Mês Seguinte)',
                'clientId': 'c1',
                'isRecurring': True,
                'value': 800,
                'cloudLink': 'https://drive.example.com/j1',
                'observationsLog': [{'text': 'Cliente pediu ajustes'}, 'Enviado'],
                'payments': [{'amount': 200, 'date': '2024-05-01T12:00:00.000Z'}],
            },
            'lixo',
        ],
        'clients': [{'name': 'Sem id'}],
        'draftNotes': [{'id': 'd1', 'title': 'Antigo', 'content': 'Texto solto'}],
        'settings': None,
        'calendarEvents': [{'title': 'sem id'}],
    }


class TestMigrate:

    def test_legacy_documents_reach_current_version(self):
        migrated, version = migrate(_legacy_snapshot())
        assert version == SCHEMA_VERSION == 2

        [job] = migrated['jobs']
        assert job['name'] == 'Social Media'
        assert job['baseName'] == 'Social Media'
        assert job['cloudLinks'] == ['https://drive.example.com/j1']
        assert 'cloudLink' not in job
        assert job['observationsLog'] == ['Cliente pediu ajustes', 'Enviado']
        assert job['payments'][0]['id']
        assert job['isDeleted'] is False
        assert job['createCalendarEvent'] is False

    def test_records_are_repaired_or_discarded(self):
        migrated, _ = migrate(_legacy_snapshot())
        assert migrated['clients'][0]['id']
        assert migrated['clients'][0]['createdAt']
        assert migrated['draftNotes'][0]['type'] == 'SCRIPT'
        assert migrated['draftNotes'][0]['scriptLines'][0]['description'] == 'Texto solto'
        assert migrated['calendarEvents'] == []

    def test_input_is_not_mutated(self):
        snapshot = _legacy_snapshot()
        migrate(snapshot)
        assert snapshot['jobs'][0]['name'] == 'Social Media (Mês Seguinte)'
        assert 'baseName' not in snapshot['jobs'][0]

    def test_current_version_is_untouched(self):
        snapshot = {'jobs': [{'id': 'j1', 'name': 'Edição (Mês Seguinte)', 'isRecurring': True}]}
        migrated, version = migrate(snapshot, SCHEMA_VERSION)
        assert version == SCHEMA_VERSION
        assert migrated == snapshot

    def test_non_recurring_names_keep_suffix(self):
        snapshot = {'jobs': [{'id': 'j1', 'name': 'Campanha (Mês Seguinte)'}]}
        migrated, _ = migrate(snapshot)
        job = migrated['jobs'][0]
        assert job['name'] == 'Campanha (Mês Seguinte)'
        assert job['baseName'] == 'Campanha'

    def test_empty_user_migrates_cleanly(self):
        migrated, version = migrate({})
        assert version == SCHEMA_VERSION
        assert migrated['jobs'] == []
        assert migrated['settings'] is None
