"""AuthProvider sobre django.contrib.auth."""
import pytest
from django.contrib.auth.models import AnonymousUser, User
from django.contrib.sessions.middleware import SessionMiddleware

from common.auth import AuthProvider

pytestmark = pytest.mark.django_db


@pytest.fixture
def provider():
    return AuthProvider()


@pytest.fixture
def make_request(rf):
    def _make():
        request = rf.post('/login/')
        SessionMiddleware(lambda r: None).process_request(request)
        request.session.save()
        request.user = AnonymousUser()
        return request
    return _make


class TestRegister:

    def test_register_creates_hashed_user_and_logs_in(self, provider, make_request):
        request = make_request()
        assert provider.register(request, 'Ana', 'ana@example.com', 's3nha-forte') is None

        user = User.objects.get(username='Ana')
        assert user.password != 's3nha-forte'
        assert user.check_password('s3nha-forte')
        principal = provider.current_user(request)
        assert principal.id == str(user.pk)
        assert principal.username == 'Ana'

    def test_username_and_email_are_unique_ignoring_case(self, provider, make_request):
        provider.register(make_request(), 'Ana', 'ana@example.com', 's3nha-forte')
        assert provider.register(make_request(), 'ANA', 'outra@example.com', 'x') == "Este nome de usuário já está em uso."
        assert provider.register(make_request(), 'Bia', 'ANA@example.com', 'x') == "Este email já está cadastrado."

    def test_missing_fields(self, provider, make_request):
        assert provider.register(make_request(), '', 'a@example.com', 'x')


class TestLogin:

    @pytest.fixture(autouse=True)
    def existing_user(self):
        return User.objects.create_user(username='Bruno', email='b@example.com', password='s3nha-forte')

    def test_login_is_case_insensitive_on_username(self, provider, make_request):
        request = make_request()
        assert provider.login(request, 'bruno', 's3nha-forte') is None
        assert provider.current_user(request).username == 'Bruno'

    def test_unknown_user(self, provider, make_request):
        assert provider.login(make_request(), 'carla', 'x') == "Usuário não encontrado."

    def test_wrong_password(self, provider, make_request):
        request = make_request()
        assert provider.login(request, 'Bruno', 'errada') == "Senha incorreta."
        assert provider.current_user(request) is None

    def test_logout(self, provider, make_request):
        request = make_request()
        provider.login(request, 'Bruno', 's3nha-forte')
        provider.logout(request)
        assert provider.current_user(request) is None
