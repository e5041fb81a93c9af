# Em: common/schema.py
"""
Migração versionada dos documentos guardados no bucket.

Cada versão tem UMA transformação pura (snapshot -> snapshot), aplicada em
sequência a partir da versão gravada na chave 'meta'. Registos antigos são
reparados campo a campo com valores por omissão, em vez de rejeitados.
"""

import copy
import logging
import re

from .dates import now_iso
from .entities import new_id

logger = logging.getLogger(__name__)

COLLECTION_KEYS = ('jobs', 'clients', 'draftNotes', 'settings', 'calendarEvents')

LEGACY_NEXT_MONTH_SUFFIX = re.compile(r'\s*\(Mês Seguinte\)\s*$', re.IGNORECASE)


def _records(items, kind):
    """ Mantém só os registos que são objetos JSON; o resto é descartado com aviso. """
    kept = []
    for item in items or []:
        if isinstance(item, dict):
            kept.append(item)
        else:
            logger.warning("Registo de %s descartado (formato inválido): %r", kind, item)
    return kept


def _observation_text(entry):
    if isinstance(entry, dict):
        return str(entry.get('text') or entry.get('note') or '')
    return str(entry)


def _v1_field_defaults(snapshot):
    """ v0 -> v1: preenche campos que não existiam nos documentos antigos. """
    jobs = []
    for job in _records(snapshot.get('jobs'), 'jobs'):
        cloud_links = job.get('cloudLinks')
        if cloud_links is None:
            cloud_links = [job['cloudLink']] if job.get('cloudLink') else []
        job.pop('cloudLink', None)
        job.update({
            'id': job.get('id') or new_id(),
            'isDeleted': bool(job.get('isDeleted') or False),
            'observationsLog': [_observation_text(o) for o in job.get('observationsLog') or []],
            'cloudLinks': list(cloud_links),
            'createCalendarEvent': bool(job.get('createCalendarEvent') or False),
            'payments': [
                {**p, 'id': p.get('id') or new_id()}
                for p in _records(job.get('payments'), 'pagamentos')
            ],
            'isRecurring': bool(job.get('isRecurring') or False),
            'createdAt': job.get('createdAt') or now_iso(),
        })
        jobs.append(job)
    snapshot['jobs'] = jobs

    clients = []
    for client in _records(snapshot.get('clients'), 'clientes'):
        client['id'] = client.get('id') or new_id()
        client['createdAt'] = client.get('createdAt') or now_iso()
        clients.append(client)
    snapshot['clients'] = clients

    drafts = []
    for draft in _records(snapshot.get('draftNotes'), 'rascunhos'):
        content = draft.get('content') or ''
        script_lines = draft.get('scriptLines')
        if script_lines is None:
            script_lines = [{'id': new_id(), 'scene': '1', 'description': content, 'duration': 0}] if content else []
        draft.update({
            'id': draft.get('id') or new_id(),
            'type': draft.get('type') or 'SCRIPT',
            'scriptLines': script_lines,
            'content': content,
            'attachments': draft.get('attachments') or [],
        })
        drafts.append(draft)
    snapshot['draftNotes'] = drafts

    snapshot['calendarEvents'] = [
        e for e in _records(snapshot.get('calendarEvents'), 'eventos') if e.get('id')
    ]
    if not isinstance(snapshot.get('settings'), dict):
        snapshot['settings'] = None
    return snapshot


def _v2_base_name(snapshot):
    """
    v1 -> v2: os jobs recorrentes passam a ter 'baseName' explícito. Nomes antigos
    com o sufixo ' (Mês Seguinte)' perdem o sufixo aqui, uma única vez.
    """
    for job in snapshot.get('jobs') or []:
        if not job.get('baseName'):
            job['baseName'] = LEGACY_NEXT_MONTH_SUFFIX.sub('', job.get('name') or '')
        if job.get('isRecurring') and LEGACY_NEXT_MONTH_SUFFIX.search(job.get('name') or ''):
            job['name'] = job['baseName']
    return snapshot


MIGRATIONS = (
    (1, _v1_field_defaults),
    (2, _v2_base_name),
)

SCHEMA_VERSION = MIGRATIONS[-1][0]


def migrate(snapshot, from_version=0):
    """
    Aplica as migrações pendentes. Não altera o dicionário recebido.
    Retorna (snapshot_migrado, versão_final).
    """
    migrated = copy.deepcopy(snapshot)
    version = from_version or 0
    for target, transform in MIGRATIONS:
        if target > version:
            migrated = transform(migrated)
            version = target
            logger.info("Documentos migrados para o esquema v%d", target)
    return migrated, version
