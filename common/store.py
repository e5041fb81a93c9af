# Em: common/store.py

import json
import logging

from django.core.files.base import ContentFile
from django.core.files.storage import storages
from django.core.serializers.json import DjangoJSONEncoder

from .exceptions import MalformedDataError, PersistenceError

logger = logging.getLogger(__name__)


class KeyedDocumentStore:
    """
    Guarda documentos JSON por (utilizador, chave) num backend de Storage do Django:
    <id_utilizador>/<chave>.json

    Em produção o backend é o bucket S3 (core.storages.UserDataStorage);
    em desenvolvimento, o disco local; nos testes, core.storages.UserDataMemoryStorage.
    Cada 'set' substitui o documento inteiro (sem merge, o último a gravar ganha).
    O backend tem de gravar por cima do nome existente (file_overwrite / allow_overwrite);
    nunca se apaga o documento antes de o novo estar gravado.
    """

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        if self._storage is None:
            self._storage = storages['documents']
        return self._storage

    @staticmethod
    def path_for(owner_id, key):
        return f"{owner_id}/{key}.json"

    def get(self, owner_id, key):
        """ Retorna o documento ou None se ainda não existir. """
        name = self.path_for(owner_id, key)
        try:
            if not self.storage.exists(name):
                return None
            with self.storage.open(name, 'rb') as fh:
                raw = fh.read()
        except Exception as exc:
            logger.error("Erro ao ler '%s' do utilizador %s: %s", key, owner_id, exc)
            raise PersistenceError(f"Falha ao ler '{key}'", owner_id=owner_id, key=key) from exc

        try:
            if isinstance(raw, bytes):
                raw = raw.decode('utf-8')
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Documento '%s' do utilizador %s está corrompido", key, owner_id)
            raise MalformedDataError(f"Documento '{key}' corrompido") from exc

    def set(self, owner_id, key, data):
        """ Upsert: grava o documento inteiro, substituindo o anterior. """
        name = self.path_for(owner_id, key)
        payload = json.dumps(data, cls=DjangoJSONEncoder, ensure_ascii=False)
        try:
            saved = self.storage.save(name, ContentFile(payload.encode('utf-8')))
        except Exception as exc:
            logger.error("Erro ao gravar '%s' do utilizador %s: %s", key, owner_id, exc)
            raise PersistenceError(f"Falha ao gravar '{key}'", owner_id=owner_id, key=key) from exc
        if saved != name:
            # O backend não substitui ficheiros: o documento anterior fica intacto
            logger.error("Backend gravou '%s' em '%s' em vez de substituir", name, saved)
            try:
                self.storage.delete(saved)
            except Exception:
                logger.exception("Erro ao remover a cópia '%s'", saved)
            raise PersistenceError(f"Falha ao gravar '{key}'", owner_id=owner_id, key=key)
        logger.debug("Documento '%s' gravado para %s (%d bytes)", key, owner_id, len(payload))

    def delete(self, owner_id, key):
        """ Best-effort: erros são registados mas não propagados. """
        name = self.path_for(owner_id, key)
        try:
            self.storage.delete(name)
        except Exception:
            logger.exception("Erro ao apagar '%s' do utilizador %s", key, owner_id)


# Instância usada pelas views; o backend só é resolvido no primeiro acesso
document_store = KeyedDocumentStore()
