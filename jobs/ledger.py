# Em: jobs/ledger.py
"""
Regras de pagamento e recorrência dos jobs.

- get_payment_summary: total pago, saldo (nunca negativo) e se está quitado
- register_payment: acrescenta um pagamento e fecha o job quando o saldo zera
- update_job: substitui o job e, na transição X -> PAID de um job recorrente,
  cria exatamente um sucessor para o mês seguinte
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from django.core.exceptions import ValidationError
from django.utils import timezone

from common.dates import midday_utc, parse_timestamp, to_iso
from common.entities import new_id, to_decimal
from common.exceptions import MalformedDataError

from .entities import Job, JobStatus, Payment

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


@dataclass(frozen=True)
class PaymentSummary:
    total_paid: Decimal
    remaining: Decimal
    is_fully_paid: bool
    # Valor pago além do contratado. Não é devolvido nem abatido, apenas exposto.
    excess: Decimal


@dataclass(frozen=True)
class JobUpdate:
    jobs: List[Job]
    job: Job
    successor: Optional[Job] = None


def clone_job(job, **changes):
    """ Cópia do job com listas próprias (o original nunca é alterado). """
    changes.setdefault('payments', list(job.payments))
    changes.setdefault('observations_log', list(job.observations_log))
    changes.setdefault('cloud_links', list(job.cloud_links))
    return replace(job, **changes)


def get_payment_summary(job):
    total_paid = sum((p.amount for p in job.payments), ZERO)
    remaining = max(job.value - total_paid, ZERO)
    excess = max(total_paid - job.value, ZERO)
    # Job de valor zero nunca é considerado quitado pelo saldo; só pelo status
    is_fully_paid = job.value > 0 and remaining <= 0
    return PaymentSummary(
        total_paid=total_paid,
        remaining=remaining,
        is_fully_paid=is_fully_paid,
        excess=excess,
    )


def register_payment(job, amount, date, method=None, notes=None):
    """
    Retorna uma cópia do job com o novo pagamento. Se o pagamento quitar o saldo,
    o status passa a PAID na mesma operação. Quem chama deve gravar via update_job.
    """
    try:
        amount = to_decimal(amount)
    except MalformedDataError as exc:
        raise ValidationError("Valor do pagamento inválido.", code='invalid_amount') from exc
    if amount is None or amount <= 0:
        raise ValidationError("O valor do pagamento deve ser maior que zero.", code='amount_not_positive')
    if not date:
        raise ValidationError("A data do pagamento é obrigatória.", code='date_required')
    try:
        paid_on = midday_utc(date)
    except MalformedDataError as exc:
        raise ValidationError("Data do pagamento inválida.", code='invalid_date') from exc

    payment = Payment(
        id=new_id(),
        amount=amount,
        date=to_iso(paid_on),
        method=(method or '').strip() or None,
        notes=(notes or '').strip() or None,
    )
    updated = clone_job(job, payments=[*job.payments, payment])

    summary = get_payment_summary(updated)
    if summary.is_fully_paid:
        updated.status = JobStatus.PAID
        logger.info("Pagamento final registado no job %s; job quitado", job.id)
    else:
        logger.info("Pagamento de %s registado no job %s (saldo %s)", amount, job.id, summary.remaining)
    if summary.excess > 0 and job.value > 0:
        logger.warning("Job %s recebeu %s acima do valor contratado", job.id, summary.excess)
    return updated


def next_deadline(deadline, now=None):
    """ Prazo + 1 mês de calendário (dia 31 passa para o último dia do mês seguinte). """
    try:
        return timezone.localtime(parse_timestamp(deadline)) + relativedelta(months=1)
    except (MalformedDataError, OverflowError, ValueError):
        logger.warning("Prazo inválido %r; sucessor recorrente usa a data atual como base", deadline)
    return timezone.localtime(now or timezone.now()) + relativedelta(months=1)


def spawn_recurring_successor(previous, updated, now=None):
    """
    Só dispara na transição (não no estado): previous != PAID, updated == PAID e recorrente.
    Regravar um job que já estava PAID nunca cria outro sucessor.
    """
    if previous is None or previous.status == JobStatus.PAID:
        return None
    if updated.status != JobStatus.PAID or not updated.is_recurring:
        return None

    now = now or timezone.now()
    base_name = updated.base_name or updated.name
    successor = Job(
        id=new_id(),
        name=base_name,
        base_name=base_name,
        client_id=updated.client_id,
        service_type=updated.service_type,
        status=JobStatus.BRIEFING,
        deadline=to_iso(next_deadline(updated.deadline, now)),
        value=updated.value,
        cost=updated.cost,
        created_at=to_iso(now),
        is_deleted=False,
        is_recurring=True,
        payments=[],
        observations_log=[],
        cloud_links=list(updated.cloud_links),
        calendar_event_id=None,
        create_calendar_event=updated.create_calendar_event,
        notes=updated.notes,
    )
    logger.info("Job recorrente %s gerou o sucessor %s (prazo %s)", updated.id, successor.id, successor.deadline)
    return successor


def update_job(jobs, previous, updated, now=None):
    """ Substitui 'previous' por 'updated' na coleção e acrescenta o sucessor recorrente, se houver. """
    successor = spawn_recurring_successor(previous, updated, now)
    new_jobs = [updated if j.id == updated.id else j for j in jobs]
    if successor is not None:
        new_jobs.append(successor)
    return JobUpdate(jobs=new_jobs, job=updated, successor=successor)


def archive(job):
    """
    Arquivar = mover para PAID mesmo com saldo em aberto (o utilizador confirma).
    Retorna o job arquivado e o saldo que ficou por receber, para o aviso.
    """
    summary = get_payment_summary(job)
    return clone_job(job, status=JobStatus.PAID), summary.remaining
