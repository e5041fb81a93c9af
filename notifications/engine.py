# Em: notifications/engine.py
"""
Notificações derivadas do estado dos jobs e clientes.

Nada aqui é gravado: a lista é recalculada a cada leitura a partir de
(jobs, clientes, hoje). O único estado persistido é o conjunto de ids já
lidos (ver notifications.read_state), cruzado no fim pelo id determinístico.
Se um job passa de 'atrasado' para 'prazo próximo', o id muda e a nova
notificação aparece como não lida.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, time, timedelta

from django.conf import settings
from django.db import models
from django.urls import reverse
from django.utils import timezone

from common.dates import local_day, parse_timestamp
from common.exceptions import MalformedDataError
from jobs.entities import JobStatus

logger = logging.getLogger(__name__)


class NotificationType(models.TextChoices):
    OVERDUE = 'overdue', 'Atrasado'
    DEADLINE = 'deadline', 'Prazo próximo'
    CLIENT_INACTIVE = 'client-inactive', 'Cliente inativo'


@dataclass(frozen=True)
class Notification:
    id: str
    type: str
    message: str
    link_to: str
    entity_id: str
    is_read: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'type': str(self.type),
            'message': self.message,
            'linkTo': self.link_to,
            'isRead': self.is_read,
            'entityId': self.entity_id,
        }


def _day_phrase(days):
    if days == 0:
        return 'hoje'
    if days == 1:
        return 'amanhã'
    return f'em {days} dias'


def _job_notification(job, today, window_days):
    """ No máximo uma notificação de prazo por job: atrasado OU prazo próximo. """
    days = (local_day(job.deadline) - today).days
    if days < 0:
        return Notification(
            id=f'overdue-{job.id}',
            type=NotificationType.OVERDUE,
            message=f'O job "{job.name}" está atrasado há {abs(days)} dia(s).',
            link_to=reverse('lista_jobs'),
            entity_id=job.id,
        )
    if days <= window_days:
        return Notification(
            id=f'deadline-{job.id}',
            type=NotificationType.DEADLINE,
            message=f'O prazo do job "{job.name}" é {_day_phrase(days)}.',
            link_to=reverse('lista_jobs'),
            entity_id=job.id,
        )
    return None


def _latest_job_created(client_jobs):
    latest = None
    for job in client_jobs:
        try:
            created = parse_timestamp(job.created_at)
        except MalformedDataError:
            logger.warning("Job %s com createdAt inválido %r ignorado", job.id, job.created_at)
            continue
        if latest is None or created > latest:
            latest = created
    return latest


def derive_notifications(jobs, clients, today=None, read_ids=frozenset(),
                         window_days=None, inactive_days=None):
    """
    Função pura de (jobs, clientes, hoje) mais o conjunto de ids lidos.
    Um registo com data inválida é ignorado sozinho; os restantes continuam.
    """
    today = today or timezone.localdate()
    if window_days is None:
        window_days = settings.NOTIFICATION_DEADLINE_WINDOW_DAYS
    if inactive_days is None:
        inactive_days = settings.INACTIVE_CLIENT_DAYS

    generated = []

    # 1. Prazos e atrasos
    for job in jobs:
        if job.is_deleted or job.status == JobStatus.PAID:
            continue
        try:
            notification = _job_notification(job, today, window_days)
        except MalformedDataError:
            logger.warning("Prazo inválido %r no job %s; notificação ignorada", job.deadline, job.id)
            continue
        if notification is not None:
            generated.append(notification)

    # 2. Clientes sem jobs novos
    cutoff = timezone.make_aware(datetime.combine(today - timedelta(days=inactive_days), time.min))
    active_jobs = [j for j in jobs if not j.is_deleted]
    for client in clients:
        latest = _latest_job_created([j for j in active_jobs if j.client_id == client.id])
        if latest is not None and latest < cutoff:
            generated.append(Notification(
                id=f'client-{client.id}',
                type=NotificationType.CLIENT_INACTIVE,
                message=f'O cliente "{client.name}" não tem novos jobs há mais de {inactive_days} dias.',
                link_to=reverse('detalhe_cliente', args=[client.id]),
                entity_id=client.id,
            ))

    return [replace(n, is_read=n.id in read_ids) for n in generated]
