from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET
import csv, openpyxl
from openpyxl.utils import get_column_letter

from common.dates import local_day
from common.exceptions import MalformedDataError
from common.views import app_data_view
from notifications.read_state import notifications_for

from .metrics import (
    FinancialStatus, dashboard_summary, financial_records, performance_summary,
)

# ---
# FUNÇÃO HELPER DESTA APP
# ---

def _record_to_dict(record):
    return {
        **record['job'].to_dict(),
        'clientName': record['clientName'],
        'financialStatus': str(record['financialStatus']),
        'totalPaid': record['totalPaid'],
        'remaining': record['remaining'],
        'isFullyPaid': record['isFullyPaid'],
    }


def _deadline_or_blank(job):
    try:
        return local_day(job.deadline)
    except MalformedDataError:
        return ''


EXPORT_HEADERS = ['Job', 'Cliente', 'Serviço', 'Prazo', 'Valor Total', 'Valor Pago', 'Restante', 'Status Financeiro']

# ---
# VIEWS DE RELATÓRIOS
# ---

@require_GET
@app_data_view
def dashboard(request, app_data):
    summary = dashboard_summary(app_data.jobs)
    unread = [n for n in notifications_for(app_data) if not n.is_read]
    summary.update({
        'userName': app_data.settings.user_name,
        'unreadNotifications': len(unread),
    })
    return JsonResponse(summary)


@require_GET
@app_data_view
def financeiro(request, app_data):
    """ Central financeira: todos os jobs ativos com o estado financeiro calculado. """
    records = financial_records(app_data.jobs, app_data.clients)
    query_status = request.GET.get('status', '')
    if query_status in FinancialStatus.values:
        records = [r for r in records if r['financialStatus'] == query_status]
    return JsonResponse({'records': [_record_to_dict(r) for r in records]})


@require_GET
@app_data_view
def desempenho(request, app_data):
    return JsonResponse(performance_summary(app_data.jobs, app_data.clients))


# ---
# VIEWS DE EXPORTAÇÃO
# ---

@require_GET
@app_data_view
def export_financeiro_csv(request, app_data):
    records = financial_records(app_data.jobs, app_data.clients)
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = 'attachment; filename="relatorio_financeiro.csv"'
    writer = csv.writer(response, delimiter=';')
    writer.writerow(EXPORT_HEADERS)

    for record in records:
        job = record['job']
        writer.writerow([
            job.name,
            record['clientName'],
            job.get_service_type_display(),
            _deadline_or_blank(job),
            job.value,
            record['totalPaid'],
            record['remaining'],
            record['financialStatus'].label,
        ])
    return response


@require_GET
@app_data_view
def export_financeiro_xlsx(request, app_data):
    records = financial_records(app_data.jobs, app_data.clients)
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Financeiro"

    headers = EXPORT_HEADERS[:4] + ['Valor Total (R$)', 'Valor Pago (R$)', 'Restante (R$)', 'Status Financeiro']
    ws.append(headers)

    for record in records:
        job = record['job']
        ws.append([
            job.name,
            record['clientName'],
            job.get_service_type_display(),
            _deadline_or_blank(job),
            float(job.value or 0),
            float(record['totalPaid'] or 0),
            float(record['remaining'] or 0),
            record['financialStatus'].label,
        ])

    for col_num, header in enumerate(headers, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = 22

    response = HttpResponse(content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
    response['Content-Disposition'] = 'attachment; filename="relatorio_financeiro.xlsx"'
    wb.save(response)
    return response
