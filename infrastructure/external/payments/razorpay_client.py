"""
Razorpay Orders API adapter (plain httpx, no SDK).

- ``POST {api_base}/v1/orders`` with HTTP Basic ``key_id:key_secret`` creates the
  order the checkout widget pays against. Amounts are in paise.
- Checkout results are verified locally: signature = hex(HMAC-SHA256(key_secret,
  "order_id|payment_id")).
- Error bodies look like ``{"error": {"code": "BAD_REQUEST_ERROR", "description": "..."}}``.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from application.dtos.payments import ProviderOrder, ProviderOrderRequest
from domain.common.exceptions import ConfigurationException
from domain.payment.signature import signature_matches
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from core.settings import payment_settings
from core.logging_config import get_logger


logger = get_logger(__name__)


class RazorpayClient(BasePaymentClient):
    provider = "razorpay"

    def __init__(
        self,
        *,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_base: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            timeouts=payment_settings.timeouts.model_dump(),
            retry={"max": payment_settings.retry.max, "base": payment_settings.retry.base_backoff},
            transport=transport,
        )
        cfg = payment_settings.razorpay
        self._key_id = key_id if key_id is not None else cfg.key_id
        self._key_secret = key_secret if key_secret is not None else cfg.key_secret
        self._api_base = (api_base or cfg.api_base).rstrip("/")

    # Credentials are checked on use so the service can start without them
    def _require_credentials(self) -> tuple[str, str]:
        if not self._key_id or not self._key_secret:
            logger.error("razorpay_credentials_missing", has_key_id=bool(self._key_id))
            raise ConfigurationException("Razorpay credentials not configured")
        return self._key_id, self._key_secret

    @property
    def key_id(self) -> str:
        return self._require_credentials()[0]

    def _client_options(self) -> dict[str, Any]:
        return {"base_url": self._api_base}

    async def create_order(self, req: ProviderOrderRequest) -> ProviderOrder:
        key_id, key_secret = self._require_credentials()
        payload = {
            "amount": req.amount,
            "currency": req.currency,
            "receipt": req.receipt,
            "notes": req.notes,
        }
        self._log("razorpay_order_create_request", amount=req.amount, currency=req.currency, receipt=req.receipt)

        async with self.client() as http:
            async def _call() -> httpx.Response:
                return await http.post("/v1/orders", json=payload, auth=(key_id, key_secret))

            try:
                resp = await self._retry(_call)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                logger.error("razorpay_order_create_transport_error", error=str(exc))
                raise PaymentRecoverableError(f"Razorpay API unreachable: {exc}", provider=self.provider) from exc

        if resp.status_code >= 400:
            code, description = self._parse_error(resp)
            logger.error(
                "razorpay_order_create_rejected",
                status_code=resp.status_code,
                provider_code=code,
                description=description,
            )
            raise PaymentProviderError(
                description or f"Razorpay API error: {resp.status_code}",
                provider=self.provider,
                provider_code=code,
                details={"status_code": resp.status_code},
            )

        data = resp.json()
        order = ProviderOrder(
            id=str(data["id"]),
            amount=int(data.get("amount", req.amount)),
            currency=str(data.get("currency", req.currency)),
            receipt=data.get("receipt"),
            status=self._map_status(str(data.get("status", "created"))),
            notes=data.get("notes"),
        )
        self._log("razorpay_order_created", provider_order_id=order.id, amount=order.amount)
        return order

    def verify_payment_signature(self, provider_order_id: str, provider_payment_id: str, signature: str) -> bool:
        _, key_secret = self._require_credentials()
        return signature_matches(key_secret, provider_order_id, provider_payment_id, signature)

    @staticmethod
    def _parse_error(resp: httpx.Response) -> tuple[Optional[str], Optional[str]]:
        try:
            body = resp.json()
        except ValueError:
            return None, None
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return None, None
        return error.get("code"), error.get("description")
