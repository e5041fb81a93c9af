# Em: jobs/entities.py

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.db import models

from common.dates import now_iso
from common.entities import to_decimal


class JobStatus(models.TextChoices):
    BRIEFING = 'BRIEFING', 'Briefing'
    PRODUCTION = 'PRODUCTION', 'Produção'
    REVIEW = 'REVIEW', 'Revisão'
    OTHER = 'OTHER', 'Outros'
    FINALIZED = 'FINALIZED', 'Finalizado'
    PAID = 'PAID', 'Pago'


class ServiceType(models.TextChoices):
    VIDEO = 'VIDEO', 'Vídeo'
    PHOTO = 'PHOTO', 'Fotografia'
    DESIGN = 'DESIGN', 'Design'
    SITES = 'SITES', 'Sites'
    AUXILIAR_T = 'AUXILIAR_T', 'Auxiliar T.'
    FRELLA = 'FRELLA', 'Frella'
    PROGRAMACAO = 'PROGRAMACAO', 'Programação'
    REDACAO = 'REDACAO', 'Redação'
    OTHER = 'OTHER', 'Outro'


@dataclass(frozen=True)
class Payment:
    """ Pagamento registado num job. Só é acrescentado, nunca editado. """
    id: str
    amount: Decimal
    date: str
    method: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            amount=to_decimal(data.get('amount'), Decimal('0')),
            date=data.get('date') or '',
            method=data.get('method') or None,
            notes=data.get('notes') or None,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'amount': self.amount,
            'date': self.date,
            'method': self.method,
            'notes': self.notes,
        }


@dataclass
class Job:
    id: str
    name: str
    client_id: str
    service_type: str = ServiceType.OTHER
    status: str = JobStatus.BRIEFING
    deadline: str = ''
    value: Decimal = Decimal('0')
    cost: Optional[Decimal] = None
    created_at: str = field(default_factory=now_iso)
    is_deleted: bool = False
    is_recurring: bool = False
    payments: List[Payment] = field(default_factory=list)
    observations_log: List[str] = field(default_factory=list)
    cloud_links: List[str] = field(default_factory=list)
    calendar_event_id: Optional[str] = None
    create_calendar_event: bool = False
    # Nome "base" usado pelos jobs recorrentes; o sucessor herda-o tal como está
    base_name: str = ''
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.base_name:
            self.base_name = self.name

    def get_status_display(self):
        return JobStatus(self.status).label

    def get_service_type_display(self):
        return ServiceType(self.service_type).label

    @classmethod
    def from_dict(cls, data):
        status = data.get('status')
        service_type = data.get('serviceType')
        return cls(
            id=data['id'],
            name=data.get('name') or '',
            base_name=data.get('baseName') or '',
            client_id=data.get('clientId') or '',
            service_type=service_type if service_type in ServiceType.values else ServiceType.OTHER,
            status=status if status in JobStatus.values else JobStatus.BRIEFING,
            deadline=data.get('deadline') or '',
            value=to_decimal(data.get('value'), Decimal('0')),
            cost=to_decimal(data.get('cost')),
            created_at=data.get('createdAt') or now_iso(),
            is_deleted=bool(data.get('isDeleted', False)),
            is_recurring=bool(data.get('isRecurring', False)),
            payments=[Payment.from_dict(p) for p in data.get('payments') or []],
            observations_log=list(data.get('observationsLog') or []),
            cloud_links=list(data.get('cloudLinks') or []),
            calendar_event_id=data.get('calendarEventId') or None,
            create_calendar_event=bool(data.get('createCalendarEvent', False)),
            notes=data.get('notes') or None,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'baseName': self.base_name,
            'clientId': self.client_id,
            'serviceType': str(self.service_type),
            'status': str(self.status),
            'deadline': self.deadline,
            'value': self.value,
            'cost': self.cost,
            'createdAt': self.created_at,
            'isDeleted': self.is_deleted,
            'isRecurring': self.is_recurring,
            'payments': [p.to_dict() for p in self.payments],
            'observationsLog': list(self.observations_log),
            'cloudLinks': list(self.cloud_links),
            'calendarEventId': self.calendar_event_id,
            'createCalendarEvent': self.create_calendar_event,
            'notes': self.notes,
        }
