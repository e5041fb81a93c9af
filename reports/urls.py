from django.urls import path
from . import views

urlpatterns = [
    # --- Dashboard ---
    path('', views.dashboard, name='dashboard'),

    # --- Central Financeira e Desempenho ---
    path('financeiro/', views.financeiro, name='financeiro'),
    path('desempenho/', views.desempenho, name='desempenho'),

    # --- Rotas de Exportação ---
    path('financeiro/export/csv/', views.export_financeiro_csv, name='export_financeiro_csv'),
    path('financeiro/export/xlsx/', views.export_financeiro_xlsx, name='export_financeiro_xlsx'),
]
