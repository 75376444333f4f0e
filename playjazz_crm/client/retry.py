# playjazz_crm/client/retry.py
import asyncio
import logging
from functools import wraps

from .errors import TransportError

logger = logging.getLogger(__name__)


def with_retry(func):
    """Retry com intervalo fixo para leituras.

    Usa ``self.retries`` (tentativas no total) e ``self.retry_delay`` do
    provedor. Só repete falhas de rede e 5xx; esgotadas as tentativas, o
    último erro sobe para quem chamou. Escritas não usam este decorator.
    """
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        attempts = max(1, int(self.retries))
        for attempt in range(1, attempts + 1):
            try:
                return await func(self, *args, **kwargs)
            except TransportError as e:
                if not e.retryable or attempt == attempts:
                    raise
                logger.warning(
                    "%s: tentativa %d/%d falhou: %s. Aguardando %.1fs...",
                    func.__name__, attempt, attempts, e, self.retry_delay,
                )
                await asyncio.sleep(self.retry_delay)
    return wrapper
