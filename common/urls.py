from django.urls import path
from . import views

urlpatterns = [
    # --- Autenticação ---
    path('login/', views.login_view, name='login'),
    path('registro/', views.register_view, name='registro'),
    path('logout/', views.logout_view, name='logout'),

    # --- Clientes ---
    path('clientes/', views.lista_clientes, name='lista_clientes'),
    path('cliente/<str:client_id>/', views.detalhe_cliente, name='detalhe_cliente'),
    path('cliente/<str:client_id>/apagar/', views.apagar_cliente, name='apagar_cliente'),

    # --- Configurações ---
    path('configuracoes/', views.configuracoes, name='configuracoes'),

    # --- Rascunhos / Roteiros ---
    path('rascunhos/', views.lista_rascunhos, name='lista_rascunhos'),
    path('rascunho/<str:draft_id>/', views.detalhe_rascunho, name='detalhe_rascunho'),
    path('rascunho/<str:draft_id>/apagar/', views.apagar_rascunho, name='apagar_rascunho'),

    # --- Backup ---
    path('backup/exportar/', views.exportar_backup, name='exportar_backup'),
    path('backup/importar/', views.importar_backup, name='importar_backup'),
]
