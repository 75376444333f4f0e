# playjazz_crm/domain/tenancy.py
"""Segregação por unidade: toda visão de lead/aluno/pagamento passa por aqui."""
from __future__ import annotations

from typing import Iterable, List, Protocol, TypeVar


class UnitScoped(Protocol):
    unit_id: str


T = TypeVar("T", bound=UnitScoped)


def filter_by_unit(items: Iterable[T], unit_id: str | None) -> List[T]:
    """Itens cujo ``unit_id`` é igual ao informado, na ordem original.

    Não altera a coleção de entrada. Unidade desconhecida (ou ``None``)
    devolve lista vazia.
    """
    if unit_id is None:
        return []
    return [item for item in items if item.unit_id == unit_id]


def partition_by_unit(items: Iterable[T], unit_ids: Iterable[str]) -> dict[str, List[T]]:
    # registros com unidade fora da lista ficam de fora de todas as fatias
    buckets: dict[str, List[T]] = {uid: [] for uid in unit_ids}
    for item in items:
        if item.unit_id in buckets:
            buckets[item.unit_id].append(item)
    return buckets
