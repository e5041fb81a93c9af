# Em: core/urls.py

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # Autenticação, clientes, configurações, rascunhos e backup (de 'common')
    path('', include('common.urls')),

    # Jobs, pagamentos e calendário (de 'jobs')
    path('', include('jobs.urls')),

    # Notificações derivadas (de 'notifications')
    path('', include('notifications.urls')),

    # Dashboard, financeiro e desempenho (de 'reports')
    path('', include('reports.urls')),
]
