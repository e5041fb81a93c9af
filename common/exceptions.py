# Em: common/exceptions.py
#
# Erros de validação de entrada usam django.core.exceptions.ValidationError.
# Aqui ficam apenas os erros de persistência e de dados.


class StoreError(Exception):
    """Base dos erros levantados pela camada de documentos."""


class PersistenceError(StoreError):
    """Falha ao ler ou gravar no storage. O estado em memória NÃO é revertido."""

    def __init__(self, message, *, owner_id=None, key=None):
        super().__init__(message)
        self.owner_id = owner_id
        self.key = key


class MalformedDataError(StoreError):
    """Documento ou registo corrompido / num formato antigo irrecuperável."""


class NotFoundError(LookupError):
    """Entidade referenciada (job, cliente, rascunho) não existe."""

    def __init__(self, kind, entity_id):
        super().__init__(f"{kind} '{entity_id}' não encontrado")
        self.kind = kind
        self.entity_id = entity_id
