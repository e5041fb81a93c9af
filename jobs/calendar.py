# Em: jobs/calendar.py
#
# Projeção dos prazos dos jobs no calendário. Os eventos de origem 'big' são
# derivados dos jobs (nunca editados à mão); os de outras origens ficam intactos.

import logging

from common.dates import local_day
from common.entities import CalendarEvent, EventSource
from common.exceptions import MalformedDataError

from .ledger import clone_job

logger = logging.getLogger(__name__)


def event_id_for(job):
    return f"big_{job.id}"


def sync_job_events(jobs, events):
    """
    Retorna (eventos, jobs) sincronizados:
    - cria/atualiza um evento 'big_<id>' para cada job ativo com createCalendarEvent
    - remove eventos 'big' de jobs que deixaram de pedir evento (ou foram apagados)
    - mantém o calendarEventId dos jobs coerente com os eventos
    """
    requesting = {j.id: j for j in jobs if not j.is_deleted and j.create_calendar_event}
    synced = []
    seen = set()
    for event in events:
        if event.source != EventSource.BIG:
            synced.append(event)
            continue
        job = requesting.get(event.job_id)
        if job is None or event.job_id in seen:
            continue
        seen.add(job.id)
        synced.append(CalendarEvent(
            id=event.id, title=f"Entrega: {job.name}", start=job.deadline, end=job.deadline,
            all_day=True, source=EventSource.BIG, job_id=job.id,
        ))

    for job in requesting.values():
        if job.id not in seen:
            synced.append(CalendarEvent(
                id=event_id_for(job), title=f"Entrega: {job.name}", start=job.deadline,
                end=job.deadline, all_day=True, source=EventSource.BIG, job_id=job.id,
            ))

    event_by_job = {e.job_id: e.id for e in synced if e.source == EventSource.BIG}
    new_jobs = []
    for job in jobs:
        wanted = event_by_job.get(job.id)
        if job.calendar_event_id != wanted:
            job = clone_job(job, calendar_event_id=wanted)
        new_jobs.append(job)
    return synced, new_jobs


def events_for_month(events, year, month):
    """ Eventos cujo início cai no mês indicado (fuso local), ordenados por data. """
    selected = []
    for event in events:
        try:
            day = local_day(event.start)
        except MalformedDataError:
            logger.warning("Evento %s com data inválida %r ignorado", event.id, event.start)
            continue
        if day.year == year and day.month == month:
            selected.append((day, event))
    selected.sort(key=lambda pair: pair[0])
    return [event for _, event in selected]
