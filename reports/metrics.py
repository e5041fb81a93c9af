# Em: reports/metrics.py
"""
Indicadores calculados a partir dos jobs e clientes do utilizador:
dashboard, central financeira e página de desempenho.
Tudo aqui é leitura pura; nada é gravado.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.db import models
from django.utils import timezone

from common.dates import local_day, parse_timestamp
from common.exceptions import MalformedDataError
from jobs.entities import JobStatus, ServiceType
from jobs.ledger import get_payment_summary

logger = logging.getLogger(__name__)

ZERO = Decimal('0')

# Percentagem mínima de entrada esperada enquanto o job está em briefing
DEPOSIT_RATIO = Decimal('0.4')

UNKNOWN_CLIENT_NAME = 'Cliente Desconhecido'


class FinancialStatus(models.TextChoices):
    PAID = 'PAID', 'Pago'
    OVERDUE = 'OVERDUE', 'Atrasado'
    PENDING_DEPOSIT = 'PENDING_DEPOSIT', 'Aguardando Entrada'
    PARTIALLY_PAID = 'PARTIALLY_PAID', 'Parcialmente Pago'
    PENDING_FULL_PAYMENT = 'PENDING_FULL_PAYMENT', 'Aguardando Pagamento'


def _safe_day(value):
    try:
        return local_day(value)
    except MalformedDataError:
        return None


def _month_key(day):
    return f"{day.year}-{day.month:02d}"


# ---
# DASHBOARD
# ---

def dashboard_summary(jobs, today=None):
    today = today or timezone.localdate()
    active = [j for j in jobs if not j.is_deleted]

    total_to_receive = sum((get_payment_summary(j).remaining for j in active), ZERO)

    since = today - timedelta(days=30)
    received_last_30_days = ZERO
    for job in jobs:
        for payment in job.payments:
            day = _safe_day(payment.date)
            if day is not None and day >= since:
                received_last_30_days += payment.amount

    status_counts = {}
    for job in active:
        if job.status == JobStatus.PAID:
            continue
        deadline = _safe_day(job.deadline)
        if deadline is not None and deadline < today and job.status != JobStatus.FINALIZED:
            bucket = 'Atrasados'
        elif job.status == JobStatus.FINALIZED:
            bucket = 'AguardandoPagamento'
        elif job.status == JobStatus.REVIEW:
            bucket = 'AguardandoAprovação'
        elif job.status == JobStatus.OTHER:
            bucket = 'Outros'
        else:
            bucket = 'EmAndamento'
        status_counts[bucket] = status_counts.get(bucket, 0) + 1

    upcoming = []
    for job in active:
        if job.status == JobStatus.PAID:
            continue
        deadline = _safe_day(job.deadline)
        if deadline is not None and deadline >= today:
            upcoming.append((deadline, job))
    upcoming.sort(key=lambda pair: pair[0])

    return {
        'totalToReceive': total_to_receive,
        'receivedLast30Days': received_last_30_days,
        'activeJobs': sum(1 for j in active if j.status != JobStatus.PAID),
        'jobStatusCounts': status_counts,
        'upcomingDeadlines': [
            {'job': job.to_dict(), 'daysRemaining': (deadline - today).days}
            for deadline, job in upcoming[:5]
        ],
    }


# ---
# CENTRAL FINANCEIRA
# ---

def financial_status(job, summary=None, today=None):
    summary = summary or get_payment_summary(job)
    today = today or timezone.localdate()

    if job.status == JobStatus.PAID or summary.is_fully_paid:
        return FinancialStatus.PAID

    deadline = _safe_day(job.deadline)
    if summary.remaining > 0 and deadline is not None and deadline < today:
        return FinancialStatus.OVERDUE

    if job.status == JobStatus.BRIEFING and job.value > 0 and summary.total_paid < job.value * DEPOSIT_RATIO:
        return FinancialStatus.PENDING_DEPOSIT

    if summary.remaining > 0:
        return FinancialStatus.PARTIALLY_PAID if summary.total_paid > 0 else FinancialStatus.PENDING_DEPOSIT

    # Jobs de valor zero e afins
    return FinancialStatus.PENDING_FULL_PAYMENT


def financial_records(jobs, clients, today=None):
    """ Linhas da central financeira: por pagar primeiro, depois o prazo mais recente. """
    names = {c.id: c.name for c in clients}
    records = []
    for job in jobs:
        if job.is_deleted:
            continue
        summary = get_payment_summary(job)
        records.append({
            'job': job,
            'clientName': names.get(job.client_id, UNKNOWN_CLIENT_NAME),
            'financialStatus': financial_status(job, summary, today),
            'totalPaid': summary.total_paid,
            'remaining': summary.remaining,
            'isFullyPaid': summary.is_fully_paid,
        })

    def _deadline_sort_key(record):
        try:
            return parse_timestamp(record['job'].deadline).timestamp()
        except MalformedDataError:
            return float('-inf')

    records.sort(key=_deadline_sort_key, reverse=True)
    records.sort(key=lambda r: r['isFullyPaid'])
    return records


def client_financial_summary(jobs, client_id):
    billed = paid = remaining = ZERO
    for job in jobs:
        if job.is_deleted or job.client_id != client_id:
            continue
        summary = get_payment_summary(job)
        billed += job.value
        paid += summary.total_paid
        remaining += summary.remaining
    return {'totalBilled': billed, 'totalPaid': paid, 'totalRemaining': remaining}


# ---
# DESEMPENHO
# ---

def monthly_metrics(jobs, months=12):
    """
    Receita por mês de pagamento; o custo de um job entra nos meses em que
    recebeu pagamentos, se estiver quitado. Só os últimos 'months' meses.
    """
    buckets = {}
    for job in jobs:
        if job.is_deleted:
            continue
        fully_paid = get_payment_summary(job).is_fully_paid
        for payment in job.payments:
            day = _safe_day(payment.date)
            if day is None:
                logger.warning("Pagamento %s do job %s com data inválida ignorado", payment.id, job.id)
                continue
            bucket = buckets.setdefault(_month_key(day), {'revenue': ZERO, 'paid_jobs': {}})
            bucket['revenue'] += payment.amount
            if fully_paid:
                bucket['paid_jobs'][job.id] = job

    metrics = []
    for key in sorted(buckets)[-months:]:
        bucket = buckets[key]
        cost = sum((j.cost or ZERO for j in bucket['paid_jobs'].values()), ZERO)
        metrics.append({
            'month': key,
            'revenue': bucket['revenue'],
            'cost': cost,
            'profit': bucket['revenue'] - cost,
        })
    return metrics


def top_clients_by_revenue(jobs, clients, limit=5):
    active = [j for j in jobs if not j.is_deleted]
    ranking = []
    for client in clients:
        revenue = sum(
            (get_payment_summary(j).total_paid for j in active if j.client_id == client.id),
            ZERO,
        )
        if revenue > 0:
            ranking.append({'clientId': client.id, 'name': client.name, 'revenue': revenue})
    ranking.sort(key=lambda r: r['revenue'], reverse=True)
    return ranking[:limit]


def revenue_by_service(jobs):
    active = [j for j in jobs if not j.is_deleted]
    result = []
    for service in ServiceType:
        revenue = sum(
            (get_payment_summary(j).total_paid for j in active if j.service_type == service),
            ZERO,
        )
        if revenue > 0:
            result.append({'serviceType': service.value, 'label': service.label, 'revenue': revenue})
    result.sort(key=lambda r: r['revenue'], reverse=True)
    return result


def client_acquisition_by_month(clients, months=12):
    counts = {}
    for client in sorted(clients, key=lambda c: c.created_at):
        day = _safe_day(client.created_at)
        if day is None:
            continue
        key = _month_key(day)
        counts[key] = counts.get(key, 0) + 1
    return [{'month': key, 'newClients': count} for key, count in list(counts.items())[-months:]]


def performance_summary(jobs, clients):
    active = [j for j in jobs if not j.is_deleted]
    total_revenue = sum((get_payment_summary(j).total_paid for j in active), ZERO)
    average_per_client = (total_revenue / len(clients)).quantize(Decimal('0.01')) if clients else ZERO
    return {
        'monthlyMetrics': monthly_metrics(jobs),
        'topClients': top_clients_by_revenue(jobs, clients),
        'revenueByService': revenue_by_service(jobs),
        'clientAcquisition': client_acquisition_by_month(clients),
        'totalRevenue': total_revenue,
        'averageRevenuePerClient': average_per_client,
        'totalClients': len(clients),
    }
