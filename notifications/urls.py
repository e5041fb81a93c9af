from django.urls import path
from . import views

urlpatterns = [
    path('notificacoes/', views.lista_notificacoes, name='lista_notificacoes'),
    path('notificacoes/<str:notification_id>/lida/', views.marcar_notificacao_lida, name='marcar_notificacao_lida'),
]
