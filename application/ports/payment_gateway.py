"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payments import ProviderOrder, ProviderOrderRequest


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the checkout payment provider.

    ``key_id`` is the publishable key handed to the checkout widget; the
    secret never leaves the adapter.
    """

    provider: str

    @property
    def key_id(self) -> str: ...

    async def create_order(self, req: ProviderOrderRequest) -> ProviderOrder: ...

    def verify_payment_signature(self, provider_order_id: str, provider_payment_id: str, signature: str) -> bool: ...

    async def aclose(self) -> None: ...
