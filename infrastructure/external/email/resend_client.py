"""
Resend email API adapter.

``POST {api_base}/emails`` with ``Authorization: Bearer <api key>`` and a JSON
body ``{from, to, subject, html}``; success returns ``{"id": "..."}``, errors
return ``{"statusCode": 4xx, "name": "...", "message": "..."}``.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from application.dtos.payments import EmailMessage
from domain.common.exceptions import ConfigurationException, EmailDeliveryException
from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)

DOMAIN_HINT = "You may need to verify a domain at resend.com/domains to send emails to customers."


class ResendEmailSender:
    provider = "resend"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        from_address: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = 2,
    ) -> None:
        cfg = settings.email
        self._api_key = api_key if api_key is not None else cfg.resend_api_key
        self._api_base = (api_base or cfg.api_base).rstrip("/")
        self._from = from_address or cfg.from_address
        self._timeout = cfg.timeout
        self._transport = transport
        self._max_retries = max_retries
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_base,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def send(self, message: EmailMessage) -> Optional[str]:
        if not self._api_key:
            logger.error("resend_api_key_missing")
            raise ConfigurationException("RESEND API key not configured")

        payload: dict[str, Any] = {
            "from": self._from,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        headers = {"Authorization": f"Bearer {self._api_key}"}

        client = self._get_client()
        resp: Optional[httpx.Response] = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_exponential(multiplier=0.2, min=0.1, max=2.0),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
            reraise=True,
        ):
            with attempt:
                resp = await client.post("/emails", json=payload, headers=headers)

        if resp.status_code >= 400:
            error_message = self._error_message(resp)
            logger.error(
                "email_send_rejected",
                provider=self.provider,
                status_code=resp.status_code,
                error=error_message,
                subject=message.subject,
            )
            raise EmailDeliveryException(error_message, hint=DOMAIN_HINT)

        email_id = resp.json().get("id")
        logger.info("email_sent", provider=self.provider, email_id=email_id, subject=message.subject)
        return email_id

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"Email provider error: {resp.status_code}"
