from django.urls import path
from . import views

urlpatterns = [
    # --- Jobs ---
    path('jobs/', views.lista_jobs, name='lista_jobs'),
    path('jobs/lixeira/', views.lixeira_jobs, name='lixeira_jobs'),
    path('job/<str:job_id>/', views.detalhe_job, name='detalhe_job'),

    # --- Ações sobre um job ---
    path('job/<str:job_id>/status/', views.status_job, name='status_job'),
    path('job/<str:job_id>/pagamento/', views.pagamento_job, name='pagamento_job'),
    path('job/<str:job_id>/observacao/', views.observacao_job, name='observacao_job'),
    path('job/<str:job_id>/links/', views.adicionar_link_job, name='adicionar_link_job'),
    path('job/<str:job_id>/links/remover/', views.remover_link_job, name='remover_link_job'),
    path('job/<str:job_id>/arquivar/', views.arquivar_job, name='arquivar_job'),
    path('job/<str:job_id>/apagar/', views.apagar_job, name='apagar_job'),
    path('job/<str:job_id>/restaurar/', views.restaurar_job, name='restaurar_job'),
    path('job/<str:job_id>/apagar-definitivo/', views.apagar_job_definitivo, name='apagar_job_definitivo'),

    # --- Calendário ---
    path('calendario/<int:year>/<int:month>/', views.calendario_mes, name='calendario_mes'),
    path('calendario/ligar/', views.ligar_calendario, name='ligar_calendario'),
    path('calendario/desligar/', views.desligar_calendario, name='desligar_calendario'),
    path('calendario/sincronizar/', views.sincronizar_calendario, name='sincronizar_calendario'),
]
