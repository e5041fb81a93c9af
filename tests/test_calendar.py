"""Projeção dos prazos dos jobs no calendário."""
from common.entities import CalendarEvent, EventSource
from jobs.calendar import event_id_for, events_for_month, sync_job_events


def _google_event(**overrides):
    data = {'id': 'g1', 'title': 'Reunião', 'start': '2024-06-03T13:00:00.000Z',
            'end': '2024-06-03T14:00:00.000Z', 'all_day': False, 'source': EventSource.GOOGLE}
    data.update(overrides)
    return CalendarEvent(**data)


class TestSyncJobEvents:

    def test_creates_event_for_flagged_jobs_only(self, make_job):
        flagged = make_job(create_calendar_event=True, deadline='2024-06-20T03:00:00.000Z')
        plain = make_job()

        events, jobs = sync_job_events([flagged, plain], [])

        [event] = events
        assert event.id == event_id_for(flagged)
        assert event.title == f'Entrega: {flagged.name}'
        assert event.start == event.end == flagged.deadline
        assert jobs[0].calendar_event_id == event.id
        assert jobs[1].calendar_event_id is None

    def test_refreshes_existing_event(self, make_job):
        job = make_job(create_calendar_event=True, name='Novo nome', deadline='2024-06-21T03:00:00.000Z')
        stale = CalendarEvent(id=event_id_for(job), title='Entrega: antigo', start='2024-06-01', end='2024-06-01',
                              job_id=job.id)
        [event], _ = sync_job_events([job], [stale])
        assert event.title == 'Entrega: Novo nome'
        assert event.start == '2024-06-21T03:00:00.000Z'

    def test_removes_orphans_and_keeps_foreign_events(self, make_job):
        deleted = make_job(create_calendar_event=True, is_deleted=True, calendar_event_id='big_x')
        orphan = CalendarEvent(id='big_x', title='Entrega', start='2024-06-01', end='2024-06-01', job_id=deleted.id)
        google = _google_event()

        events, jobs = sync_job_events([deleted], [orphan, google])

        assert events == [google]
        assert jobs[0].calendar_event_id is None

    def test_input_jobs_are_not_mutated(self, make_job):
        job = make_job(create_calendar_event=True)
        sync_job_events([job], [])
        assert job.calendar_event_id is None


class TestEventsForMonth:

    def test_filters_by_local_month_and_sorts(self):
        late = _google_event(id='a', start='2024-06-28T15:00:00.000Z')
        early = _google_event(id='b', start='2024-06-02T15:00:00.000Z')
        # 01/07 00:30 UTC ainda é 30/06 em São Paulo
        border = _google_event(id='c', start='2024-07-01T00:30:00.000Z')
        july = _google_event(id='d', start='2024-07-05T15:00:00.000Z')

        assert [e.id for e in events_for_month([late, july, border, early], 2024, 6)] == ['b', 'a', 'c']

    def test_malformed_dates_are_skipped(self):
        broken = _google_event(id='x', start='ontem')
        ok = _google_event(id='y')
        assert [e.id for e in events_for_month([broken, ok], 2024, 6)] == ['y']

    def test_out_of_range_dates_are_skipped(self):
        broken = _google_event(id='x', start='0001-01-01T00:00:00+05:00')
        ok = _google_event(id='y')
        assert [e.id for e in events_for_month([broken, ok], 2024, 6)] == ['y']
