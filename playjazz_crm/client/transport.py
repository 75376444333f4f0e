# playjazz_crm/client/transport.py
"""
Cliente HTTP da API REST do PlayJazz CRM.

Converte as linhas da API para as formas do domínio (ver ``mapping``).
Leituras passam pelo retry de intervalo fixo; escritas são feitas uma
única vez e qualquer resposta fora de 2xx vira ``TransportError``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from playjazz_crm.core.config import settings
from playjazz_crm.domain.models import Lead, Payment, Student, SystemConfig, TimelineLog, Unit, User
from . import mapping
from .errors import TransportError
from .retry import with_retry

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        root = (base_url or settings.API_BASE_URL).rstrip("/")
        self.base_url = f"{root}{settings.API_PREFIX}"
        self.retries = settings.FETCH_RETRIES if retries is None else retries
        self.retry_delay = settings.FETCH_RETRY_DELAY if retry_delay is None else retry_delay
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.HTTP_TIMEOUT if timeout is None else timeout,
            transport=transport,
            headers={"accept": "application/json", "content-type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ---------- baixo nível ----------
    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError("network_error", data=str(e)) from e

        if r.status_code >= 400:
            # tenta devolver o JSON de erro da API
            try:
                data = r.json()
            except ValueError:
                data = {"error": r.text}
            raise TransportError(f"{method} {path} falhou", r.status_code, data)
        return r.json()

    @with_retry
    async def _read(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def _write(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request(method, path, json=body)

    @staticmethod
    def _unit_params(unit_id: Optional[str]) -> Optional[Dict[str, Any]]:
        return {"unitId": unit_id} if unit_id else None

    # ---------- units / users ----------
    async def get_units(self) -> List[Unit]:
        return [mapping.unit_from_row(r) for r in await self._read("/units")]

    async def get_users(self) -> List[User]:
        return [mapping.user_from_row(r) for r in await self._read("/users")]

    async def create_user(self, user: User) -> User:
        return mapping.user_from_row(await self._write("POST", "/users", mapping.user_to_row(user)))

    async def delete_user(self, user_id: str) -> None:
        await self._write("DELETE", f"/users/{user_id}")

    # ---------- leads ----------
    async def get_leads(self, unit_id: Optional[str] = None) -> List[Lead]:
        rows = await self._read("/leads", params=self._unit_params(unit_id))
        return [mapping.lead_from_row(r) for r in rows]

    async def create_lead(self, lead: Lead) -> Lead:
        return mapping.lead_from_row(await self._write("POST", "/leads", mapping.lead_to_row(lead)))

    async def update_lead(self, lead: Lead) -> Lead:
        data = await self._write("PUT", f"/leads/{lead.id}", mapping.lead_to_row(lead))
        return mapping.lead_from_row(data)

    async def delete_lead(self, lead_id: str) -> None:
        await self._write("DELETE", f"/leads/{lead_id}")

    # ---------- students ----------
    async def get_students(self, unit_id: Optional[str] = None) -> List[Student]:
        rows = await self._read("/students", params=self._unit_params(unit_id))
        return [mapping.student_from_row(r) for r in rows]

    async def create_student(self, student: Student) -> Student:
        data = await self._write("POST", "/students", mapping.student_to_row(student))
        return mapping.student_from_row(data)

    async def update_student(self, student: Student) -> Student:
        data = await self._write("PUT", f"/students/{student.id}", mapping.student_to_row(student))
        return mapping.student_from_row(data)

    async def delete_student(self, student_id: str) -> None:
        await self._write("DELETE", f"/students/{student_id}")

    async def add_timeline_log(self, student_id: str, log: TimelineLog) -> TimelineLog:
        data = await self._write("POST", f"/students/{student_id}/timeline", mapping.timeline_to_row(log))
        return mapping.timeline_from_row(data)

    # ---------- payments ----------
    async def get_payments(self, unit_id: Optional[str] = None) -> List[Payment]:
        rows = await self._read("/payments", params=self._unit_params(unit_id))
        return [mapping.payment_from_row(r) for r in rows]

    async def create_payment(self, payment: Payment) -> Payment:
        data = await self._write("POST", "/payments", mapping.payment_to_row(payment))
        return mapping.payment_from_row(data)

    async def update_payment(self, payment: Payment) -> Payment:
        body = mapping.payment_to_row(payment)
        # studentId/unitId não mudam depois de criado
        body.pop("studentId", None)
        body.pop("unitId", None)
        data = await self._write("PUT", f"/payments/{payment.id}", body)
        return mapping.payment_from_row(data)

    # ---------- config ----------
    async def get_config(self) -> SystemConfig:
        return mapping.config_from_json(await self._read("/config"))

    async def save_config(self, config: SystemConfig) -> SystemConfig:
        data = await self._write("POST", "/config", mapping.config_to_json(config))
        return mapping.config_from_json(data)
