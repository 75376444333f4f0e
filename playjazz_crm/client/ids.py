# playjazz_crm/client/ids.py
"""
Ids provisórios para inserções otimistas.

O servidor usa inteiros (no cliente, texto só com dígitos). Os ids locais
começam com ``tmp-`` e carregam um contador monotônico, então nunca
colidem com ids do servidor nem entre si na mesma sessão.
"""
import itertools
import time

PLACEHOLDER_PREFIX = "tmp-"

_counter = itertools.count(1)


def new_placeholder_id(kind: str) -> str:
    return f"{PLACEHOLDER_PREFIX}{kind}-{next(_counter)}-{int(time.time() * 1000)}"


def is_placeholder(entity_id: str | None) -> bool:
    return bool(entity_id) and entity_id.startswith(PLACEHOLDER_PREFIX)
