"""Regras de pagamento e recorrência (jobs.ledger)."""
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from common.dates import local_day
from jobs import ledger
from jobs.entities import JobStatus, Payment


def _payment(amount, day='2024-06-01'):
    return Payment(id=f'p-{amount}', amount=Decimal(amount), date=f'{day}T12:00:00.000Z')


class TestPaymentSummary:

    def test_remaining_is_value_minus_payments(self, make_job):
        job = make_job(payments=[_payment('300'), _payment('100')])
        summary = ledger.get_payment_summary(job)
        assert summary.total_paid == Decimal('400')
        assert summary.remaining == Decimal('600')
        assert summary.is_fully_paid is False

    def test_remaining_never_negative_and_excess_exposed(self, make_job):
        job = make_job(value=Decimal('100'), payments=[_payment('150')])
        summary = ledger.get_payment_summary(job)
        assert summary.remaining == Decimal('0')
        assert summary.excess == Decimal('50')
        assert summary.is_fully_paid is True

    def test_zero_value_job_is_never_fully_paid(self, make_job):
        summary = ledger.get_payment_summary(make_job(value=Decimal('0')))
        assert summary.remaining == Decimal('0')
        assert summary.is_fully_paid is False

    def test_summary_is_idempotent(self, make_job):
        job = make_job(payments=[_payment('250')])
        assert ledger.get_payment_summary(job) == ledger.get_payment_summary(job)


class TestRegisterPayment:

    def test_payment_that_settles_balance_marks_job_paid(self, make_job):
        job = make_job(payments=[_payment('400')])
        updated = ledger.register_payment(job, '600', '2024-06-05')
        assert updated.status == JobStatus.PAID
        assert ledger.get_payment_summary(updated).remaining == Decimal('0')

    def test_partial_payment_keeps_status(self, make_job):
        job = make_job(status=JobStatus.PRODUCTION)
        updated = ledger.register_payment(job, Decimal('100'), '2024-06-05', method='PIX')
        assert updated.status == JobStatus.PRODUCTION
        assert updated.payments[-1].method == 'PIX'

    def test_input_job_is_not_mutated(self, make_job):
        job = make_job()
        ledger.register_payment(job, '1000', '2024-06-05')
        assert job.payments == []
        assert job.status == JobStatus.BRIEFING

    def test_payment_date_is_midday_utc(self, make_job):
        updated = ledger.register_payment(make_job(), '10', '2024-06-05')
        assert updated.payments[0].date == '2024-06-05T12:00:00.000Z'

    @pytest.mark.parametrize('amount', ['0', '-5', None])
    def test_rejects_non_positive_amount(self, make_job, amount):
        with pytest.raises(ValidationError):
            ledger.register_payment(make_job(), amount, '2024-06-05')

    def test_rejects_garbage_amount(self, make_job):
        with pytest.raises(ValidationError) as exc:
            ledger.register_payment(make_job(), 'dez', '2024-06-05')
        assert exc.value.code == 'invalid_amount'

    @pytest.mark.parametrize('amount', ['NaN', 'sNaN', 'Infinity', '-Infinity'])
    def test_rejects_non_finite_amount(self, make_job, amount):
        job = make_job()
        with pytest.raises(ValidationError) as exc:
            ledger.register_payment(job, amount, '2024-06-05')
        assert exc.value.code == 'invalid_amount'
        assert job.status == JobStatus.BRIEFING

    def test_requires_date(self, make_job):
        with pytest.raises(ValidationError) as exc:
            ledger.register_payment(make_job(), '10', '')
        assert exc.value.code == 'date_required'


class TestRecurrence:

    def test_transition_to_paid_spawns_exactly_one_successor(self, make_job):
        previous = make_job(is_recurring=True, payments=[_payment('1000')])
        updated = ledger.clone_job(previous, status=JobStatus.PAID)

        result = ledger.update_job([previous], previous, updated)

        assert len(result.jobs) == 2
        successor = result.successor
        assert successor.id != previous.id
        assert successor.status == JobStatus.BRIEFING
        assert successor.payments == []
        assert successor.observations_log == []
        assert successor.calendar_event_id is None
        assert successor.is_recurring is True
        assert local_day(successor.deadline) == date(2024, 7, 1)

    def test_resaving_paid_job_does_not_spawn(self, make_job):
        paid = make_job(is_recurring=True, status=JobStatus.PAID)
        result = ledger.update_job([paid], paid, ledger.clone_job(paid))
        assert result.successor is None
        assert len(result.jobs) == 1

    def test_non_recurring_job_has_no_successor(self, make_job):
        job = make_job()
        result = ledger.update_job([job], job, ledger.clone_job(job, status=JobStatus.PAID))
        assert result.successor is None

    def test_successor_keeps_base_name(self, make_job):
        job = make_job(name='Gestão de redes', is_recurring=True)
        successor = ledger.spawn_recurring_successor(job, ledger.clone_job(job, status=JobStatus.PAID))
        second = ledger.spawn_recurring_successor(successor, ledger.clone_job(successor, status=JobStatus.PAID))
        assert successor.name == 'Gestão de redes'
        assert second.name == 'Gestão de redes'
        assert second.base_name == 'Gestão de redes'

    def test_month_end_is_clamped(self):
        assert ledger.next_deadline('2024-01-31').date() == date(2024, 2, 29)

    def test_malformed_deadline_falls_back_to_now(self, make_job):
        now = datetime(2024, 3, 10, 15, 0, tzinfo=dt_timezone.utc)
        job = make_job(deadline='sem data', is_recurring=True)
        successor = ledger.spawn_recurring_successor(job, ledger.clone_job(job, status=JobStatus.PAID), now)
        assert local_day(successor.deadline) == date(2024, 4, 10)

    def test_deadline_at_end_of_calendar_falls_back_to_now(self):
        now = datetime(2024, 3, 10, 15, 0, tzinfo=dt_timezone.utc)
        assert ledger.next_deadline('9999-12-15T12:00:00.000Z', now).date() == date(2024, 4, 10)


class TestArchive:

    def test_archive_moves_to_paid_and_reports_outstanding(self, make_job):
        job = make_job(payments=[_payment('250')])
        archived, outstanding = ledger.archive(job)
        assert archived.status == JobStatus.PAID
        assert outstanding == Decimal('750')
        assert job.status == JobStatus.BRIEFING
