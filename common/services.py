# Em: common/services.py
"""
Estado da aplicação de um utilizador (jobs, clientes, rascunhos, configurações
e eventos de calendário), carregado do KeyedDocumentStore a cada pedido.

Política de gravação: write-through explícito. Cada mutação grava a coleção
inteira que alterou (sem merge; entre sessões concorrentes o último a gravar
ganha). Dentro de 'batch()' as gravações são adiadas e cada coleção alterada
é gravada uma única vez no fim. Uma falha de gravação é registada e propagada
como PersistenceError, mas a alteração em memória NÃO é revertida.
"""

import json
import logging
from contextlib import contextmanager
from decimal import Decimal

from django.conf import settings as django_settings
from django.core.exceptions import ValidationError
from django.utils import timezone

from jobs import calendar as job_calendar
from jobs import ledger
from jobs.entities import Job, JobStatus, ServiceType

from .auth import auth_provider
from .dates import now_iso, parse_timestamp, to_iso
from .entities import (
    AppSettings, CalendarEvent, Client, DraftNote, DraftType, ScriptLine,
    new_id, to_decimal,
)
from .exceptions import MalformedDataError, NotFoundError, PersistenceError
from .schema import COLLECTION_KEYS, migrate
from .store import document_store

logger = logging.getLogger(__name__)

BACKUP_VERSION = '2.0-blob'
UNKNOWN_CLIENT_NAME = 'Cliente Desconhecido'


def _seed_clients():
    return [Client(
        id=new_id(), name='Ana Silva', company='TechCorp Solutions',
        email='ana.silva@techcorp.com', phone='11987654321', cpf='111.222.333-44',
        observations='Prefere comunicação por email.',
    )]


def _seed_drafts():
    return [DraftNote(
        id=new_id(), title='Exemplo de Roteiro', type=DraftType.SCRIPT,
        script_lines=[ScriptLine(id=new_id(), scene='1',
                                 description='CENA DE ABERTURA: Um dia ensolarado no parque.',
                                 duration=15)],
    )]


def _build(factory, records, kind):
    """ Constrói as entidades, ignorando (com aviso) registos irrecuperáveis. """
    built = []
    for record in records or []:
        try:
            built.append(factory(record))
        except (MalformedDataError, KeyError, TypeError) as exc:
            logger.warning("Registo de %s ignorado no carregamento: %s", kind, exc)
    return built


class AppDataService:

    def __init__(self, store, principal, seed_new_users=None):
        self.store = store
        self.principal = principal
        self.seed_new_users = (
            django_settings.SEED_NEW_USERS if seed_new_users is None else seed_new_users
        )
        self.jobs = []
        self.clients = []
        self.draft_notes = []
        self.settings = AppSettings()
        self.calendar_events = []
        self.loaded = False
        self._batch_depth = 0
        self._dirty = set()

    @property
    def owner_id(self):
        return self.principal.id

    # ---
    # CARREGAMENTO / GRAVAÇÃO
    # ---

    def _get_document(self, key):
        try:
            return self.store.get(self.owner_id, key)
        except MalformedDataError:
            logger.error("Documento '%s' de %s ignorado por estar corrompido", key, self.owner_id)
            return None

    def load(self):
        """ Lê todas as coleções, aplica as migrações de esquema e (se preciso) regrava. """
        stored = {key: self._get_document(key) for key in COLLECTION_KEYS}
        meta = self._get_document('meta') or {}
        stored_version = meta.get('schemaVersion', 0) if isinstance(meta, dict) else 0

        is_new_user = all(stored[k] is None for k in ('jobs', 'clients', 'draftNotes', 'settings'))
        snapshot, version = migrate(stored, stored_version)

        self.jobs = _build(Job.from_dict, snapshot['jobs'], 'jobs')
        self.clients = _build(Client.from_dict, snapshot['clients'], 'clientes')
        self.draft_notes = _build(DraftNote.from_dict, snapshot['draftNotes'], 'rascunhos')
        self.calendar_events = _build(CalendarEvent.from_dict, snapshot['calendarEvents'], 'eventos')
        self.settings = AppSettings.from_dict(snapshot['settings'])
        if not self.settings.user_name:
            self.settings.user_name = self.principal.username

        if is_new_user and self.seed_new_users:
            self.clients = _seed_clients()
            self.draft_notes = _seed_drafts()
            logger.info("Dados iniciais criados para o novo utilizador %s", self.owner_id)

        self.loaded = True

        if version != stored_version:
            try:
                with self.batch():
                    self._changed(*COLLECTION_KEYS)
                self.store.set(self.owner_id, 'meta', {'schemaVersion': version})
            except PersistenceError:
                logger.warning("Não foi possível regravar os dados migrados de %s", self.owner_id)
        return self

    def _serialize(self, key):
        if key == 'jobs':
            return [j.to_dict() for j in self.jobs]
        if key == 'clients':
            return [c.to_dict() for c in self.clients]
        if key == 'draftNotes':
            return [d.to_dict() for d in self.draft_notes]
        if key == 'settings':
            return self.settings.to_dict()
        if key == 'calendarEvents':
            return [e.to_dict() for e in self.calendar_events]
        raise KeyError(key)

    def _persist(self, key):
        try:
            self.store.set(self.owner_id, key, self._serialize(key))
        except PersistenceError:
            logger.error("Alteração em '%s' de %s ficou só em memória", key, self.owner_id)
            raise

    def _changed(self, *keys):
        if not self.loaded:
            raise PersistenceError("Dados do utilizador não carregados", owner_id=self.owner_id)
        self._dirty.update(keys)
        if self._batch_depth == 0:
            self.flush()

    def flush(self):
        pending, self._dirty = self._dirty, set()
        for key in COLLECTION_KEYS:
            if key in pending:
                self._persist(key)

    @contextmanager
    def batch(self):
        """ Adia as gravações até ao fim do bloco (uma escrita por coleção alterada). """
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self.flush()

    # ---
    # JOBS
    # ---

    def active_jobs(self):
        return [j for j in self.jobs if not j.is_deleted]

    def deleted_jobs(self):
        return [j for j in self.jobs if j.is_deleted]

    def get_job_by_id(self, job_id):
        return next((j for j in self.jobs if j.id == job_id), None)

    def get_job_or_raise(self, job_id):
        job = self.get_job_by_id(job_id)
        if job is None:
            raise NotFoundError('Job', job_id)
        return job

    def _jobs_changed(self):
        with self.batch():
            self._changed('jobs')
            if self.settings.google_calendar_connected:
                self._sync_calendar_events()

    def add_job(self, name, client_id, deadline, value, service_type=ServiceType.OTHER,
                cost=None, is_recurring=False, cloud_links=None,
                create_calendar_event=False, notes=None):
        name = (name or '').strip()
        if not name:
            raise ValidationError("O nome do job é obrigatório.", code='required')
        if not client_id:
            raise ValidationError("Selecione o cliente do job.", code='required')
        if service_type and service_type not in ServiceType.values:
            raise ValidationError("Tipo de serviço inválido.", code='invalid_service_type')
        try:
            value = to_decimal(value, Decimal('0'))
            cost = to_decimal(cost)
        except MalformedDataError as exc:
            raise ValidationError("Valor do job inválido.", code='invalid_value') from exc
        if value < 0:
            raise ValidationError("O valor do job não pode ser negativo.", code='negative_value')
        try:
            deadline_iso = to_iso(parse_timestamp(deadline))
        except MalformedDataError as exc:
            raise ValidationError("Prazo inválido.", code='invalid_deadline') from exc

        job = Job(
            id=new_id(), name=name, base_name=name, client_id=client_id,
            service_type=service_type or ServiceType.OTHER, status=JobStatus.BRIEFING,
            deadline=deadline_iso, value=value, cost=cost,
            is_recurring=bool(is_recurring), cloud_links=list(cloud_links or []),
            create_calendar_event=bool(create_calendar_event), notes=notes or None,
        )
        self.jobs = [*self.jobs, job]
        logger.info("Job %s criado para o cliente %s", job.id, client_id)
        self._jobs_changed()
        return job

    def update_job(self, updated):
        """ Grava o job alterado; a transição para PAID de um recorrente cria o sucessor. """
        previous = self.get_job_or_raise(updated.id)
        result = ledger.update_job(self.jobs, previous, updated)
        self.jobs = result.jobs
        self._jobs_changed()
        return result

    def edit_job(self, job_id, **changes):
        job = self.get_job_or_raise(job_id)
        if 'name' in changes:
            changes['name'] = (changes['name'] or '').strip()
            if not changes['name']:
                raise ValidationError("O nome do job é obrigatório.", code='required')
            changes['base_name'] = changes['name']
        if 'deadline' in changes:
            try:
                changes['deadline'] = to_iso(parse_timestamp(changes['deadline']))
            except MalformedDataError as exc:
                raise ValidationError("Prazo inválido.", code='invalid_deadline') from exc
        return self.update_job(ledger.clone_job(job, **changes))

    def set_job_status(self, job_id, status):
        if status not in JobStatus.values:
            raise ValidationError("Status inválido.", code='invalid_status')
        return self.edit_job(job_id, status=status)

    def register_payment(self, job_id, amount, date, method=None, notes=None):
        job = self.get_job_or_raise(job_id)
        updated = ledger.register_payment(job, amount, date, method=method, notes=notes)
        return self.update_job(updated)

    def archive_job(self, job_id):
        """ Move para PAID mesmo com saldo; retorna (resultado, saldo_em_aberto). """
        archived, outstanding = ledger.archive(self.get_job_or_raise(job_id))
        if outstanding > 0:
            logger.info("Job %s arquivado com saldo em aberto de %s", job_id, outstanding)
        return self.update_job(archived), outstanding

    def add_observation(self, job_id, text):
        text = (text or '').strip()
        if not text:
            raise ValidationError("A observação não pode estar vazia.", code='required')
        job = self.get_job_or_raise(job_id)
        return self.update_job(ledger.clone_job(job, observations_log=[*job.observations_log, text]))

    def add_cloud_link(self, job_id, url):
        url = (url or '').strip()
        if not url:
            raise ValidationError("Informe o link.", code='required')
        job = self.get_job_or_raise(job_id)
        if url in job.cloud_links:
            return self.update_job(job)
        return self.update_job(ledger.clone_job(job, cloud_links=[*job.cloud_links, url]))

    def remove_cloud_link(self, job_id, url):
        job = self.get_job_or_raise(job_id)
        return self.update_job(ledger.clone_job(job, cloud_links=[u for u in job.cloud_links if u != url]))

    def delete_job(self, job_id):
        """ Soft delete: o job vai para a lixeira mas fica gravado com todo o histórico. """
        return self.update_job(ledger.clone_job(self.get_job_or_raise(job_id), is_deleted=True))

    def restore_job(self, job_id):
        return self.update_job(ledger.clone_job(self.get_job_or_raise(job_id), is_deleted=False))

    def permanently_delete_job(self, job_id):
        """ Hard delete irreversível; pagamentos e observações desaparecem com o job. """
        self.get_job_or_raise(job_id)
        self.jobs = [j for j in self.jobs if j.id != job_id]
        logger.info("Job %s apagado definitivamente", job_id)
        self._jobs_changed()

    # ---
    # CLIENTES
    # ---

    def get_client_by_id(self, client_id):
        return next((c for c in self.clients if c.id == client_id), None)

    def client_name(self, client_id):
        client = self.get_client_by_id(client_id)
        return client.name if client else UNKNOWN_CLIENT_NAME

    def add_client(self, name, email, company=None, phone=None, cpf=None, observations=None):
        name = (name or '').strip()
        email = (email or '').strip()
        if not name:
            raise ValidationError("O nome do cliente é obrigatório.", code='required')
        if not email:
            raise ValidationError("O email do cliente é obrigatório.", code='required')
        client = Client(
            id=new_id(), name=name, email=email, company=company or None,
            phone=phone or None, cpf=cpf or None, observations=observations or None,
        )
        self.clients = [*self.clients, client]
        self._changed('clients')
        return client

    def update_client(self, updated):
        if self.get_client_by_id(updated.id) is None:
            raise NotFoundError('Cliente', updated.id)
        self.clients = [updated if c.id == updated.id else c for c in self.clients]
        self._changed('clients')
        return updated

    def delete_client(self, client_id):
        """ Sem cascata: os jobs do cliente mantêm o clientId (fica órfão). """
        if self.get_client_by_id(client_id) is None:
            raise NotFoundError('Cliente', client_id)
        self.clients = [c for c in self.clients if c.id != client_id]
        self._changed('clients')

    # ---
    # CONFIGURAÇÕES
    # ---

    def update_settings(self, **changes):
        unknown = set(changes) - set(AppSettings._JSON_NAMES)
        if unknown:
            raise ValidationError(f"Configurações desconhecidas: {', '.join(sorted(unknown))}")
        for attr, value in changes.items():
            setattr(self.settings, attr, value)
        self._changed('settings')
        return self.settings

    # ---
    # RASCUNHOS / ROTEIROS
    # ---

    def get_draft_note(self, draft_id):
        draft = next((d for d in self.draft_notes if d.id == draft_id), None)
        if draft is None:
            raise NotFoundError('Rascunho', draft_id)
        return draft

    def add_draft_note(self, title, type=DraftType.SCRIPT):
        title = (title or '').strip()
        if not title:
            raise ValidationError("O título do rascunho é obrigatório.", code='required')
        if type not in DraftType.values:
            raise ValidationError("Tipo de rascunho inválido.", code='invalid_type')
        lines = [ScriptLine(id=new_id(), scene='1')] if type == DraftType.SCRIPT else []
        draft = DraftNote(id=new_id(), title=title, type=type, script_lines=lines)
        self.draft_notes = [draft, *self.draft_notes]
        self._changed('draftNotes')
        return draft

    def update_draft_note(self, updated):
        self.get_draft_note(updated.id)
        updated.updated_at = now_iso()
        self.draft_notes = [updated if d.id == updated.id else d for d in self.draft_notes]
        self._changed('draftNotes')
        return updated

    def delete_draft_note(self, draft_id):
        self.get_draft_note(draft_id)
        self.draft_notes = [d for d in self.draft_notes if d.id != draft_id]
        self._changed('draftNotes')

    # ---
    # CALENDÁRIO
    # ---

    def _sync_calendar_events(self):
        self.calendar_events, self.jobs = job_calendar.sync_job_events(self.jobs, self.calendar_events)
        self.settings.google_calendar_last_sync = now_iso()
        self._changed('jobs', 'calendarEvents', 'settings')

    def sync_calendar(self):
        if not self.settings.google_calendar_connected:
            return False
        with self.batch():
            self._sync_calendar_events()
        return True

    def connect_calendar(self):
        with self.batch():
            self.settings.google_calendar_connected = True
            self._changed('settings')
            self._sync_calendar_events()
        logger.info("Calendário ligado para %s", self.owner_id)

    def disconnect_calendar(self):
        with self.batch():
            self.settings.google_calendar_connected = False
            self.settings.google_calendar_last_sync = None
            self.calendar_events = []
            self.jobs = [
                ledger.clone_job(j, calendar_event_id=None) if j.calendar_event_id else j
                for j in self.jobs
            ]
            self._changed('settings', 'calendarEvents', 'jobs')
        logger.info("Calendário desligado para %s", self.owner_id)

    def events_for_month(self, year, month):
        return job_calendar.events_for_month(self.calendar_events, year, month)

    # ---
    # BACKUP (EXPORTAR / IMPORTAR)
    # ---

    def export_data(self):
        return {
            'version': BACKUP_VERSION,
            'exportedAt': to_iso(timezone.now()),
            'data': {key: self._serialize(key) for key in COLLECTION_KEYS},
        }

    def import_data(self, payload):
        """ Substitui TODAS as coleções pelas do backup (depois de migradas). """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise ValidationError("Arquivo de importação não é um JSON válido.", code='invalid_json') from exc
        data = payload.get('data') if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not all(data.get(k) is not None for k in ('jobs', 'clients', 'settings')):
            raise ValidationError("Arquivo de backup inválido ou corrompido.", code='invalid_backup')

        snapshot, _ = migrate({key: data.get(key) for key in COLLECTION_KEYS})
        with self.batch():
            self.jobs = _build(Job.from_dict, snapshot['jobs'], 'jobs')
            self.clients = _build(Client.from_dict, snapshot['clients'], 'clientes')
            self.draft_notes = _build(DraftNote.from_dict, snapshot['draftNotes'], 'rascunhos')
            self.calendar_events = _build(CalendarEvent.from_dict, snapshot['calendarEvents'], 'eventos')
            self.settings = AppSettings.from_dict(snapshot['settings'])
            self._changed(*COLLECTION_KEYS)
        logger.info("Backup importado para %s (%d jobs, %d clientes)",
                    self.owner_id, len(self.jobs), len(self.clients))


def get_app_data(request, store=None):
    """ Cria e carrega o estado do utilizador autenticado neste pedido. """
    principal = auth_provider.current_user(request)
    if principal is None:
        raise PersistenceError("Sem utilizador autenticado")
    return AppDataService(store or document_store, principal).load()
