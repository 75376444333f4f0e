# playjazz_crm/client/errors.py
from __future__ import annotations
from typing import Any, Optional


class TransportError(RuntimeError):
    """Falha ao falar com a camada de transporte (rede, 5xx, 4xx, 404...)."""

    def __init__(self, code: str, status_code: Optional[int] = None, data: Any = None):
        super().__init__(code if status_code is None else f"{code} (HTTP {status_code})")
        self.code = code
        self.status_code = status_code
        self.data = data

    @property
    def retryable(self) -> bool:
        # rede (sem status) ou 5xx; 4xx nunca é repetido
        return self.status_code is None or self.status_code >= 500

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ClientValidationError(ValueError):
    """Campo obrigatório ausente; levantada antes de qualquer chamada remota."""

    def __init__(self, entity: str, missing: list[str]):
        super().__init__(f"{entity}: campos obrigatórios ausentes: {', '.join(missing)}")
        self.entity = entity
        self.missing = missing


class StartupLoadError(RuntimeError):
    """Carga inicial falhou; a aplicação fica bloqueada atrás do alerta."""


class EntityNotFoundError(LookupError):
    """Registro ausente do cache local (id desconhecido ou já removido)."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} não está no cache")
        self.entity = entity
        self.entity_id = entity_id
