# Em: common/dates.py

from datetime import date, datetime, time, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import MalformedDataError


def parse_timestamp(value):
    """
    Converte uma string ISO8601 (ou date/datetime) num datetime com fuso.
    Datas sem hora são tratadas como meia-noite no fuso local.
    Levanta MalformedDataError se o valor não for interpretável.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                only_date = parse_date(text)
                parsed = datetime.combine(only_date, time.min) if only_date else None
        except ValueError as exc:
            raise MalformedDataError(f"Data inválida: {value!r}") from exc
        if parsed is None:
            raise MalformedDataError(f"Data inválida: {value!r}")
    else:
        raise MalformedDataError(f"Data inválida: {value!r}")

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def local_day(value):
    """Dia (no fuso local) em que cai o timestamp, i.e. 'setHours(0,0,0,0)'."""
    parsed = parse_timestamp(value)
    try:
        return timezone.localtime(parsed).date()
    except (OverflowError, ValueError) as exc:
        raise MalformedDataError(f"Data fora do intervalo suportado: {value!r}") from exc


def to_iso(value):
    """Serializa um datetime em ISO8601 UTC com milissegundos (ex.: 2024-06-01T12:00:00.000Z)."""
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    try:
        return value.astimezone(dt_timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
    except (OverflowError, ValueError) as exc:
        raise MalformedDataError(f"Data fora do intervalo suportado: {value!r}") from exc


def now_iso():
    return to_iso(timezone.now())


def midday_utc(value):
    """
    Normaliza a data de um pagamento para o meio-dia UTC do dia indicado,
    evitando que o fuso empurre o pagamento para o dia anterior/seguinte.
    """
    if isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    elif isinstance(value, str) and value.strip():
        try:
            day = parse_date(value.strip()[:10])
        except ValueError:
            day = None
        if day is None:
            raise MalformedDataError(f"Data inválida: {value!r}")
    else:
        raise MalformedDataError(f"Data inválida: {value!r}")
    return datetime.combine(day, time(12, 0), tzinfo=dt_timezone.utc)
