import logging

from django.contrib import messages
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from common.views import app_data_view, form_errors
from reports.metrics import financial_status

from .entities import JobStatus
from .forms import CloudLinkForm, JobForm, ObservationForm, PaymentForm, StatusForm
from .ledger import get_payment_summary

logger = logging.getLogger(__name__)

# ---
# FUNÇÕES AUXILIARES
# ---

def _job_payload(app_data, job):
    """ Job serializado com o resumo de pagamento e o nome do cliente. """
    summary = get_payment_summary(job)
    return {
        **job.to_dict(),
        'clientName': app_data.client_name(job.client_id),
        'totalPaid': summary.total_paid,
        'remaining': summary.remaining,
        'excess': summary.excess,
        'isFullyPaid': summary.is_fully_paid,
        'financialStatus': str(financial_status(job, summary)),
    }


def _update_response(app_data, result, status=200):
    data = {'job': _job_payload(app_data, result.job), 'successor': None}
    if result.successor is not None:
        data['successor'] = _job_payload(app_data, result.successor)
    return JsonResponse(data, status=status)


def _job_form_kwargs(data):
    return {
        'name': data['name'],
        'client_id': data['client_id'],
        'service_type': data['service_type'],
        'deadline': data['deadline'],
        'value': data['value'],
        'cost': data['cost'],
        'is_recurring': data['is_recurring'],
        'create_calendar_event': data['create_calendar_event'],
        'notes': data['notes'] or None,
    }

# ---
# VIEWS DE JOBS
# ---

@require_http_methods(['GET', 'POST'])
@app_data_view
def lista_jobs(request, app_data):
    if request.method == 'POST':
        form = JobForm(request.POST, clients=app_data.clients)
        if not form.is_valid():
            return form_errors(form)
        job = app_data.add_job(**_job_form_kwargs(form.cleaned_data))
        return JsonResponse({'job': _job_payload(app_data, job)}, status=201)

    jobs = app_data.active_jobs()
    query_status = request.GET.get('status', '')
    query_cliente = request.GET.get('cliente', '')
    query_busca = request.GET.get('q', '').strip().lower()
    if query_status in JobStatus.values:
        jobs = [j for j in jobs if j.status == query_status]
    if query_cliente:
        jobs = [j for j in jobs if j.client_id == query_cliente]
    if query_busca:
        jobs = [j for j in jobs if query_busca in j.name.lower()]
    return JsonResponse({'jobs': [_job_payload(app_data, j) for j in jobs]})


@require_GET
@app_data_view
def lixeira_jobs(request, app_data):
    return JsonResponse({'jobs': [_job_payload(app_data, j) for j in app_data.deleted_jobs()]})


@require_http_methods(['GET', 'POST'])
@app_data_view
def detalhe_job(request, app_data, job_id):
    job = app_data.get_job_or_raise(job_id)
    if request.method == 'POST':
        form = JobForm(request.POST, clients=app_data.clients)
        if not form.is_valid():
            return form_errors(form)
        return _update_response(app_data, app_data.edit_job(job.id, **_job_form_kwargs(form.cleaned_data)))
    return JsonResponse({'job': _job_payload(app_data, job)})


@require_POST
@app_data_view
def status_job(request, app_data, job_id):
    form = StatusForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    result = app_data.set_job_status(job_id, form.cleaned_data['status'])
    if result.successor is not None:
        messages.success(request, f"Job recorrente \"{result.successor.name}\" criado para o próximo mês.")
    return _update_response(app_data, result)


@require_POST
@app_data_view
def pagamento_job(request, app_data, job_id):
    form = PaymentForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    data = form.cleaned_data
    result = app_data.register_payment(job_id, data['amount'], data['date'], method=data['method'], notes=data['notes'])
    return _update_response(app_data, result, status=201)


@require_POST
@app_data_view
def observacao_job(request, app_data, job_id):
    form = ObservationForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    return _update_response(app_data, app_data.add_observation(job_id, form.cleaned_data['text']))


@require_POST
@app_data_view
def adicionar_link_job(request, app_data, job_id):
    form = CloudLinkForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    return _update_response(app_data, app_data.add_cloud_link(job_id, form.cleaned_data['url']))


@require_POST
@app_data_view
def remover_link_job(request, app_data, job_id):
    return _update_response(app_data, app_data.remove_cloud_link(job_id, request.POST.get('url', '')))


@require_POST
@app_data_view
def arquivar_job(request, app_data, job_id):
    """ Arquiva (PAID) mesmo com saldo; o saldo em aberto vai na resposta como aviso. """
    result, outstanding = app_data.archive_job(job_id)
    response = _update_response(app_data, result)
    if outstanding > 0:
        messages.warning(request, f"Job arquivado com R$ {outstanding} ainda por receber.")
    return response


@require_POST
@app_data_view
def apagar_job(request, app_data, job_id):
    return _update_response(app_data, app_data.delete_job(job_id))


@require_POST
@app_data_view
def restaurar_job(request, app_data, job_id):
    return _update_response(app_data, app_data.restore_job(job_id))


@require_POST
@app_data_view
def apagar_job_definitivo(request, app_data, job_id):
    app_data.permanently_delete_job(job_id)
    return JsonResponse({'status': 'ok'})

# ---
# VIEWS DO CALENDÁRIO
# ---

@require_GET
@app_data_view
def calendario_mes(request, app_data, year, month):
    if not 1 <= month <= 12:
        return JsonResponse({'error': 'Mês inválido.'}, status=400)
    events = app_data.events_for_month(year, month)
    return JsonResponse({
        'year': year,
        'month': month,
        'connected': app_data.settings.google_calendar_connected,
        'lastSync': app_data.settings.google_calendar_last_sync,
        'events': [e.to_dict() for e in events],
    })


@require_POST
@app_data_view
def ligar_calendario(request, app_data):
    app_data.connect_calendar()
    return JsonResponse({'status': 'ok', 'events': len(app_data.calendar_events)})


@require_POST
@app_data_view
def desligar_calendario(request, app_data):
    app_data.disconnect_calendar()
    return JsonResponse({'status': 'ok'})


@require_POST
@app_data_view
def sincronizar_calendario(request, app_data):
    if not app_data.sync_calendar():
        return JsonResponse({'error': 'O calendário não está ligado.'}, status=400)
    return JsonResponse({'status': 'ok', 'lastSync': app_data.settings.google_calendar_last_sync})
