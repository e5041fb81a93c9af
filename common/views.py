# Em: common/views.py

import json
import logging
from dataclasses import asdict, replace
from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_http_methods, require_POST

from reports.metrics import client_financial_summary

from .auth import auth_provider
from .exceptions import NotFoundError, PersistenceError
from .forms import (
    ClientForm, DraftEditForm, DraftForm, ImportForm, LoginForm, RegisterForm, SettingsForm,
)
from .services import get_app_data

logger = logging.getLogger(__name__)

ERRO_GRAVACAO = "Não foi possível guardar as alterações. Tente novamente."
ERRO_AUTENTICACAO = "Faça login para continuar."

# ---
# FUNÇÕES AUXILIARES (usadas também pelas views de 'jobs', 'notifications' e 'reports')
# ---

def form_errors(form):
    """ Resposta 400 com os erros do formulário, campo a campo. """
    return JsonResponse({'errors': form.errors.get_json_data()}, status=400)


def app_data_view(view_func):
    """
    Decorator: exige login (401 em JSON, sem redirecionar para a página de login),
    carrega o estado do utilizador e passa-o à view como segundo argumento.
    Traduz os erros do domínio em respostas JSON:
    ValidationError -> 400, NotFoundError -> 404, PersistenceError -> 503.
    """
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': ERRO_AUTENTICACAO}, status=401)
        try:
            app_data = get_app_data(request)
            return view_func(request, app_data, *args, **kwargs)
        except ValidationError as exc:
            return JsonResponse({'error': " ".join(exc.messages)}, status=400)
        except NotFoundError as exc:
            return JsonResponse({'error': str(exc)}, status=404)
        except PersistenceError:
            messages.error(request, ERRO_GRAVACAO)
            return JsonResponse({'error': ERRO_GRAVACAO}, status=503)
    return _wrapped_view


# ---
# AUTENTICAÇÃO
# ---

@require_POST
def login_view(request):
    form = LoginForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    error = auth_provider.login(request, form.cleaned_data['username'], form.cleaned_data['password'])
    if error:
        return JsonResponse({'error': error}, status=401)
    return JsonResponse({'status': 'ok', 'user': asdict(auth_provider.current_user(request))})


@require_POST
def register_view(request):
    form = RegisterForm(request.POST)
    if not form.is_valid():
        return form_errors(form)
    error = auth_provider.register(request, **form.cleaned_data)
    if error:
        return JsonResponse({'error': error}, status=400)
    return JsonResponse({'status': 'ok', 'user': asdict(auth_provider.current_user(request))}, status=201)


@login_required
@require_POST
def logout_view(request):
    auth_provider.logout(request)
    return JsonResponse({'status': 'ok'})


# ---
# CLIENTES
# ---

@require_http_methods(['GET', 'POST'])
@app_data_view
def lista_clientes(request, app_data):
    if request.method == 'POST':
        form = ClientForm(request.POST)
        if not form.is_valid():
            return form_errors(form)
        client = app_data.add_client(**form.cleaned_data)
        return JsonResponse({'client': client.to_dict()}, status=201)

    clients = sorted(app_data.clients, key=lambda c: c.name.lower())
    return JsonResponse({'clients': [c.to_dict() for c in clients]})


@require_http_methods(['GET', 'POST'])
@app_data_view
def detalhe_cliente(request, app_data, client_id):
    """ GET: dados do cliente, os seus jobs e o resumo financeiro. POST: edição. """
    client = app_data.get_client_by_id(client_id)
    if client is None:
        raise NotFoundError('Cliente', client_id)

    if request.method == 'POST':
        form = ClientForm(request.POST)
        if not form.is_valid():
            return form_errors(form)
        data = form.cleaned_data
        client = app_data.update_client(replace(
            client,
            name=data['name'],
            email=data['email'],
            company=data['company'] or None,
            phone=data['phone'] or None,
            cpf=data['cpf'] or None,
            observations=data['observations'] or None,
        ))

    client_jobs = [j for j in app_data.active_jobs() if j.client_id == client.id]
    summary = client_financial_summary(app_data.jobs, client.id)
    return JsonResponse({
        'client': client.to_dict(),
        'jobs': [j.to_dict() for j in client_jobs],
        'financialSummary': summary,
    })


@require_POST
@app_data_view
def apagar_cliente(request, app_data, client_id):
    app_data.delete_client(client_id)
    return JsonResponse({'status': 'ok'})


# ---
# CONFIGURAÇÕES
# ---

@require_http_methods(['GET', 'POST'])
@app_data_view
def configuracoes(request, app_data):
    if request.method == 'POST':
        form = SettingsForm(request.POST)
        if not form.is_valid():
            return form_errors(form)
        app_data.update_settings(**form.changes())
    return JsonResponse({'settings': app_data.settings.to_dict()})


# ---
# RASCUNHOS / ROTEIROS
# ---

@require_http_methods(['GET', 'POST'])
@app_data_view
def lista_rascunhos(request, app_data):
    if request.method == 'POST':
        form = DraftForm(request.POST)
        if not form.is_valid():
            return form_errors(form)
        draft = app_data.add_draft_note(form.cleaned_data['title'], form.cleaned_data['type'])
        return JsonResponse({'draft': draft.to_dict()}, status=201)
    return JsonResponse({'drafts': [d.to_dict() for d in app_data.draft_notes]})


@require_http_methods(['GET', 'POST'])
@app_data_view
def detalhe_rascunho(request, app_data, draft_id):
    draft = app_data.get_draft_note(draft_id)
    if request.method == 'POST':
        form = DraftEditForm(request.POST)
        if not form.is_valid():
            return form_errors(form)
        data = form.cleaned_data
        changes = {'title': data['title'], 'content': data['content']}
        if data['script_lines'] is not None:
            changes['script_lines'] = data['script_lines']
        draft = app_data.update_draft_note(replace(draft, **changes))
    return JsonResponse({'draft': draft.to_dict()})


@require_POST
@app_data_view
def apagar_rascunho(request, app_data, draft_id):
    app_data.delete_draft_note(draft_id)
    return JsonResponse({'status': 'ok'})


# ---
# BACKUP
# ---

@require_http_methods(['GET'])
@app_data_view
def exportar_backup(request, app_data):
    response = JsonResponse(app_data.export_data(), json_dumps_params={'ensure_ascii': False})
    filename = f"big_backup_{timezone.localdate():%Y-%m-%d}.json"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@require_POST
@app_data_view
def importar_backup(request, app_data):
    """ Aceita o ficheiro exportado (campo 'arquivo') ou o JSON no corpo do pedido. """
    if request.content_type == 'application/json':
        payload = request.body.decode('utf-8')
    else:
        form = ImportForm(request.POST, request.FILES)
        if not form.is_valid():
            return form_errors(form)
        payload = form.cleaned_data['arquivo'].read()
    app_data.import_data(payload)
    return JsonResponse({
        'status': 'ok',
        'jobs': len(app_data.jobs),
        'clients': len(app_data.clients),
    })
