from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from common.views import app_data_view

from .read_state import ReadNotifications, notifications_for


@require_GET
@app_data_view
def lista_notificacoes(request, app_data):
    notifications = notifications_for(app_data)
    return JsonResponse({
        'notifications': [n.to_dict() for n in notifications],
        'unread': sum(1 for n in notifications if not n.is_read),
    })


@require_POST
@app_data_view
def marcar_notificacao_lida(request, app_data, notification_id):
    """ Marca como lida; ids desconhecidos também são aceites (o conjunto só cresce). """
    ReadNotifications(app_data.store, app_data.owner_id).mark_as_read(notification_id)
    return JsonResponse({'status': 'ok', 'id': notification_id})
