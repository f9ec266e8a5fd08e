import logging
from typing import Optional

import httpx

from ptoflow.core.config import settings
from ptoflow.core.errors import IntegrationError


logger = logging.getLogger("uvicorn.error")

PTO_APPROVED_EVENT = "pto_approved"


def build_pto_approved_payload(request: dict, schedules: list[dict]) -> dict:
    return {
        "userId": request.get("requester_id"),
        "startDate": request.get("start_date"),
        "endDate": request.get("end_date"),
        "dailySchedules": schedules,
        "ptoRequestId": request.get("pto_request_id"),
        "type": PTO_APPROVED_EVENT,
    }


class ResourceIntegrationClient:
    """Best-effort hook into the resource-management app."""

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.url = url if url is not None else settings.RESOURCE_INTEGRATION_URL
        self.timeout = timeout or settings.RESOURCE_INTEGRATION_TIMEOUT
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.url, json=payload, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload)

    async def notify_pto_approved(self, request: dict, schedules: list[dict]) -> bool:
        if not self.enabled:
            logger.info("Resource integration not configured; skipping PTO request %s", request.get("pto_request_id"))
            return False
        payload = build_pto_approved_payload(request, schedules)
        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            raise IntegrationError(f"Resource integration call failed: {exc}") from exc
        if response.status_code >= 400:
            raise IntegrationError(f"Resource integration returned {response.status_code}")
        logger.info("PTO request %s integrated with resource management", payload["ptoRequestId"])
        return True
