"""Indicadores do dashboard, central financeira e desempenho."""
from datetime import timedelta
from decimal import Decimal

import pytest

from jobs.entities import JobStatus, Payment, ServiceType
from reports.metrics import (
    FinancialStatus, client_acquisition_by_month, client_financial_summary, dashboard_summary,
    financial_records, financial_status, monthly_metrics, top_clients_by_revenue,
)


def _paid(amount, day):
    return Payment(id=f'p-{amount}-{day}', amount=Decimal(amount), date=f'{day}T12:00:00.000Z')


class TestFinancialStatus:

    def test_paid_status_wins(self, make_job, today):
        job = make_job(status=JobStatus.PAID, deadline=(today - timedelta(days=10)).isoformat())
        assert financial_status(job, today=today) == FinancialStatus.PAID

    def test_overdue_with_balance(self, make_job, today):
        job = make_job(status=JobStatus.PRODUCTION, deadline=(today - timedelta(days=1)).isoformat())
        assert financial_status(job, today=today) == FinancialStatus.OVERDUE

    @pytest.mark.parametrize('paid, expected', [
        ('0', FinancialStatus.PENDING_DEPOSIT),
        ('399', FinancialStatus.PENDING_DEPOSIT),
        ('400', FinancialStatus.PARTIALLY_PAID),
    ])
    def test_briefing_deposit_rule(self, make_job, today, paid, expected):
        payments = [_paid(paid, '2024-06-01')] if paid != '0' else []
        job = make_job(deadline=(today + timedelta(days=10)).isoformat(), payments=payments)
        assert financial_status(job, today=today) == expected

    def test_zero_value_job_waits_for_payment(self, make_job, today):
        job = make_job(value=Decimal('0'), status=JobStatus.FINALIZED, deadline=(today + timedelta(days=1)).isoformat())
        assert financial_status(job, today=today) == FinancialStatus.PENDING_FULL_PAYMENT


class TestFinancialRecords:

    def test_unpaid_first_then_latest_deadline(self, make_job, make_client, today):
        client = make_client()
        paid = make_job(name='Pago', client_id=client.id, payments=[_paid('1000', '2024-06-01')], deadline='2024-08-01')
        older = make_job(name='Antigo', client_id=client.id, deadline='2024-05-01')
        newer = make_job(name='Novo', client_id='sumiu', deadline='2024-07-01')
        deleted = make_job(name='Apagado', is_deleted=True)

        records = financial_records([paid, older, newer, deleted], [client], today=today)

        assert [r['job'].name for r in records] == ['Novo', 'Antigo', 'Pago']
        assert records[0]['clientName'] == 'Cliente Desconhecido'
        assert records[1]['clientName'] == client.name

    def test_client_financial_summary(self, make_job):
        jobs = [
            make_job(client_id='c1', payments=[_paid('250', '2024-06-01')]),
            make_job(client_id='c1', value=Decimal('500')),
            make_job(client_id='c2', value=Decimal('999')),
        ]
        summary = client_financial_summary(jobs, 'c1')
        assert summary == {
            'totalBilled': Decimal('1500'),
            'totalPaid': Decimal('250'),
            'totalRemaining': Decimal('1250'),
        }


class TestDashboard:

    def test_summary(self, make_job, today):
        jobs = [
            make_job(status=JobStatus.PRODUCTION, deadline=(today - timedelta(days=2)).isoformat(),
                     payments=[_paid('100', (today - timedelta(days=5)).isoformat())]),
            make_job(status=JobStatus.FINALIZED, deadline=(today - timedelta(days=2)).isoformat()),
            make_job(status=JobStatus.REVIEW, deadline=(today + timedelta(days=3)).isoformat()),
            make_job(status=JobStatus.PAID, value=Decimal('200'),
                     payments=[_paid('200', (today - timedelta(days=40)).isoformat())]),
        ]

        summary = dashboard_summary(jobs, today=today)

        assert summary['totalToReceive'] == Decimal('2900')
        assert summary['receivedLast30Days'] == Decimal('100')
        assert summary['activeJobs'] == 3
        assert summary['jobStatusCounts'] == {'Atrasados': 1, 'AguardandoPagamento': 1, 'AguardandoAprovação': 1}
        assert [d['daysRemaining'] for d in summary['upcomingDeadlines']] == [3]


class TestPerformance:

    def test_monthly_metrics(self, make_job):
        jobs = [
            make_job(value=Decimal('1000'), cost=Decimal('300'),
                     payments=[_paid('400', '2024-04-10'), _paid('600', '2024-05-10')]),
            make_job(value=Decimal('500'), payments=[_paid('100', '2024-05-20')]),
        ]
        metrics = monthly_metrics(jobs)
        assert metrics == [
            {'month': '2024-04', 'revenue': Decimal('400'), 'cost': Decimal('300'), 'profit': Decimal('100')},
            {'month': '2024-05', 'revenue': Decimal('700'), 'cost': Decimal('300'), 'profit': Decimal('400')},
        ]

    def test_top_clients(self, make_job, make_client):
        ana = make_client(name='Ana')
        bruno = make_client(name='Bruno')
        jobs = [
            make_job(client_id=ana.id, payments=[_paid('100', '2024-06-01')]),
            make_job(client_id=bruno.id, payments=[_paid('900', '2024-06-01')]),
        ]
        assert [r['name'] for r in top_clients_by_revenue(jobs, [ana, bruno])] == ['Bruno', 'Ana']
        assert top_clients_by_revenue(jobs, [ana, bruno], limit=1)[0]['revenue'] == Decimal('900')

    def test_client_acquisition(self, make_client):
        clients = [
            make_client(created_at='2024-05-02T15:00:00.000Z'),
            make_client(created_at='2024-05-20T15:00:00.000Z'),
            make_client(created_at='2024-06-01T15:00:00.000Z'),
        ]
        assert client_acquisition_by_month(clients) == [
            {'month': '2024-05', 'newClients': 2},
            {'month': '2024-06', 'newClients': 1},
        ]

    def test_service_type_labels(self, make_job):
        job = make_job(service_type=ServiceType.PROGRAMACAO)
        assert job.get_service_type_display() == 'Programação'
