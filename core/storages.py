from django.core.files.storage import InMemoryStorage
from storages.backends.s3boto3 import S3Boto3Storage

class StaticStorage(S3Boto3Storage):
    """Storage para arquivos estáticos (CSS, JS, imagens do site)"""
    location = "static"
    default_acl = "public-read"

class MediaStorage(S3Boto3Storage):
    """Storage para uploads de usuários (logos personalizados, anexos)"""
    location = "media"
    default_acl = "private"  # 🔒 Privado por segurança
    file_overwrite = False   # Não sobrescrever arquivos com mesmo nome

class UserDataStorage(S3Boto3Storage):
    """
    Storage dos documentos JSON de cada utilizador (jobs, clientes, etc.).
    Caminho no bucket: user-data/<id_utilizador>/<chave>.json
    """
    location = "user-data"
    default_acl = "private"
    file_overwrite = True    # Upsert: cada gravação substitui a coleção inteira

class UserDataMemoryStorage(InMemoryStorage):
    """Versão em memória do UserDataStorage (testes): grava por cima do mesmo nome."""

    def get_available_name(self, name, max_length=None):
        return name

    def _save(self, name, content):
        # O nó em memória não é truncado ao reabrir
        if self.exists(name):
            self.delete(name)
        return super()._save(name, content)
