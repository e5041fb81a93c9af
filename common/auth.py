# Em: common/auth.py

import logging
from dataclasses import dataclass

from django.contrib.auth import authenticate, login as django_login, logout as django_logout
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

logger = logging.getLogger(__name__)

ERRO_INESPERADO = "Ocorreu um erro inesperado. Tente novamente."


@dataclass(frozen=True)
class Principal:
    """ Utilizador da sessão. O 'id' particiona o KeyedDocumentStore. """
    id: str
    username: str
    email: str

    @classmethod
    def from_user(cls, user):
        return cls(id=str(user.pk), username=user.username, email=user.email or '')


class AuthProvider:
    """
    Login / registo / logout sobre django.contrib.auth.
    Os métodos retornam uma mensagem de erro (str) ou None em caso de sucesso.
    """

    def current_user(self, request):
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return None
        return Principal.from_user(user)

    def login(self, request, username, password):
        username = (username or '').strip()
        if not username or not password:
            return "Informe o nome de usuário e a senha."
        try:
            found = User.objects.filter(username__iexact=username).first()
            if found is None:
                return "Usuário não encontrado."
            user = authenticate(request, username=found.username, password=password)
        except DatabaseError:
            logger.exception("Erro de base de dados no login de '%s'", username)
            return ERRO_INESPERADO

        if user is None:
            logger.info("Senha incorreta para '%s'", username)
            return "Senha incorreta."
        django_login(request, user)
        logger.info("Login de '%s'", user.username)
        return None

    def register(self, request, username, email, password):
        username = (username or '').strip()
        email = (email or '').strip()
        if not username or not email or not password:
            return "Preencha nome de usuário, email e senha."
        try:
            if User.objects.filter(username__iexact=username).exists():
                return "Este nome de usuário já está em uso."
            if User.objects.filter(email__iexact=email).exists():
                return "Este email já está cadastrado."

            candidate = User(username=username, email=email)
            try:
                validate_password(password, user=candidate)
            except ValidationError as exc:
                return " ".join(exc.messages)

            with transaction.atomic():
                user = User.objects.create_user(username=username, email=email, password=password)
        except DatabaseError:
            logger.exception("Erro de base de dados no registo de '%s'", username)
            return "Ocorreu um erro inesperado durante o registro."

        # Entra automaticamente após o registo
        django_login(request, user, backend='django.contrib.auth.backends.ModelBackend')
        logger.info("Novo utilizador registado: '%s'", user.username)
        return None

    def logout(self, request):
        django_logout(request)


auth_provider = AuthProvider()
