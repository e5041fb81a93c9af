# Em: common/entities.py
#
# Entidades partilhadas gravadas como documentos JSON (não são modelos do ORM).
# Os nomes dos campos em JSON seguem o formato camelCase já existente no bucket.

import uuid
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from django.db import models

from .dates import now_iso
from .exceptions import MalformedDataError


def new_id():
    return str(uuid.uuid4())


def to_decimal(value, default=None):
    """ Aceita números antigos (float/int) e strings gravadas pelo DjangoJSONEncoder. """
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise MalformedDataError(f"Valor numérico inválido: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise MalformedDataError(f"Valor numérico inválido: {value!r}") from exc
    # NaN e Infinity não são valores monetários
    if not result.is_finite():
        raise MalformedDataError(f"Valor numérico inválido: {value!r}")
    return result


def _blank_to_none(value):
    return value if value not in ('', None) else None


@dataclass
class Client:
    id: str
    name: str
    email: str = ''
    company: Optional[str] = None
    phone: Optional[str] = None
    cpf: Optional[str] = None
    observations: Optional[str] = None
    created_at: str = field(default_factory=now_iso)

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data.get('name') or '',
            email=data.get('email') or '',
            company=_blank_to_none(data.get('company')),
            phone=_blank_to_none(data.get('phone')),
            cpf=_blank_to_none(data.get('cpf')),
            observations=_blank_to_none(data.get('observations')),
            created_at=data.get('createdAt') or now_iso(),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'company': self.company,
            'email': self.email,
            'phone': self.phone,
            'cpf': self.cpf,
            'observations': self.observations,
            'createdAt': self.created_at,
        }


DEFAULT_PRIMARY_COLOR = '#f8fafc'
DEFAULT_ACCENT_COLOR = '#1e293b'
DEFAULT_SPLASH_BACKGROUND_COLOR = '#111827'


@dataclass
class AppSettings:
    """ Configurações do utilizador; os valores por omissão são aplicados no load. """
    custom_logo: Optional[str] = None
    asaas_url: str = 'https://www.asaas.com/login'
    user_name: str = ''
    primary_color: str = DEFAULT_PRIMARY_COLOR
    accent_color: str = DEFAULT_ACCENT_COLOR
    splash_screen_background_color: str = DEFAULT_SPLASH_BACKGROUND_COLOR
    privacy_mode_enabled: bool = False
    google_calendar_connected: bool = False
    google_calendar_last_sync: Optional[str] = None

    _JSON_NAMES = {
        'custom_logo': 'customLogo',
        'asaas_url': 'asaasUrl',
        'user_name': 'userName',
        'primary_color': 'primaryColor',
        'accent_color': 'accentColor',
        'splash_screen_background_color': 'splashScreenBackgroundColor',
        'privacy_mode_enabled': 'privacyModeEnabled',
        'google_calendar_connected': 'googleCalendarConnected',
        'google_calendar_last_sync': 'googleCalendarLastSync',
    }

    @classmethod
    def json_name(cls, attr):
        return cls._JSON_NAMES[attr]

    @classmethod
    def from_dict(cls, data):
        defaults = cls()
        values = {}
        for f in fields(cls):
            stored = (data or {}).get(cls._JSON_NAMES[f.name])
            values[f.name] = stored if stored is not None else getattr(defaults, f.name)
        return cls(**values)

    def to_dict(self):
        return {self._JSON_NAMES[k]: v for k, v in asdict(self).items()}


class DraftType(models.TextChoices):
    TEXT = 'TEXT', 'Texto'
    SCRIPT = 'SCRIPT', 'Roteiro'


@dataclass
class ScriptLine:
    id: str
    scene: str = ''
    description: str = ''
    duration: int = 0

    @classmethod
    def from_dict(cls, data):
        try:
            duration = int(data.get('duration') or 0)
        except (TypeError, ValueError):
            duration = 0
        return cls(
            id=data.get('id') or new_id(),
            scene=str(data.get('scene') or ''),
            description=data.get('description') or '',
            duration=duration,
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class DraftNote:
    id: str
    title: str
    type: str = DraftType.SCRIPT
    content: str = ''
    script_lines: List[ScriptLine] = field(default_factory=list)
    attachments: list = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            title=data.get('title') or '',
            type=data.get('type') or DraftType.SCRIPT,
            content=data.get('content') or '',
            script_lines=[ScriptLine.from_dict(line) for line in data.get('scriptLines') or []],
            attachments=list(data.get('attachments') or []),
            created_at=data.get('createdAt') or now_iso(),
            updated_at=data.get('updatedAt') or data.get('createdAt') or now_iso(),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'type': str(self.type),
            'content': self.content,
            'scriptLines': [line.to_dict() for line in self.script_lines],
            'attachments': self.attachments,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class EventSource(models.TextChoices):
    BIG = 'big', 'BIG (jobs)'
    GOOGLE = 'google', 'Google Calendar'


@dataclass
class CalendarEvent:
    id: str
    title: str
    start: str
    end: str
    all_day: bool = True
    source: str = EventSource.BIG
    job_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            title=data.get('title') or '',
            start=data.get('start') or '',
            end=data.get('end') or data.get('start') or '',
            all_day=bool(data.get('allDay', True)),
            source=data.get('source') or EventSource.BIG,
            job_id=data.get('jobId'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'start': self.start,
            'end': self.end,
            'allDay': self.all_day,
            'source': str(self.source),
            'jobId': self.job_id,
        }
