"""Mercado Pago REST client.

Only the two calls settlement needs: create a checkout preference and fetch
a payment by id. Every request is bounded by ``PAYMENT_GATEWAY_TIMEOUT``.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from storefront.core.config import settings
from storefront.errors import PaymentGatewayError

logger = logging.getLogger(__name__)


class MercadoPagoClient:
    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 5.0,
        statement_descriptor: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.statement_descriptor = statement_descriptor
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.access_token}"},
        )

    def _request(self, operation: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            with self._client() as client:
                resp = client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise PaymentGatewayError(operation, f"{type(exc).__name__}: {exc}") from exc
        if resp.status_code >= 400:
            raise PaymentGatewayError(operation, f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    def create_preference(
        self,
        lines: List[Dict[str, Any]],
        back_urls: Dict[str, str],
        external_reference: str,
        notification_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "items": lines,
            "back_urls": back_urls,
            "auto_return": "approved",
            "external_reference": external_reference,
        }
        if self.statement_descriptor:
            body["statement_descriptor"] = self.statement_descriptor
        if notification_url:
            body["notification_url"] = notification_url

        data = self._request("create_preference", "POST", "/checkout/preferences", json=body)
        logger.info("Created preference %s for external reference %s", data.get("id"), external_reference)
        return {
            "id": data.get("id"),
            "init_point": data.get("init_point"),
            "sandbox_init_point": data.get("sandbox_init_point"),
        }

    def get_payment(self, payment_id: str) -> Dict[str, Any]:
        data = self._request("get_payment", "GET", f"/v1/payments/{payment_id}")
        return {
            "id": str(data.get("id", payment_id)),
            "status": data.get("status") or "",
            "status_detail": data.get("status_detail") or "",
            "payment_method_id": data.get("payment_method_id") or "",
            "external_reference": data.get("external_reference"),
        }


def get_gateway() -> MercadoPagoClient:
    return MercadoPagoClient(
        access_token=settings.MERCADO_PAGO_ACCESS_TOKEN,
        base_url=settings.MERCADO_PAGO_BASE_URL,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
        statement_descriptor=settings.STATEMENT_DESCRIPTOR,
    )
