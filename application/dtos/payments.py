"""
Payment DTOs (Pydantic v2) used at application boundaries.

Request bodies keep the field names the storefront already sends
(snake_case for checkout fields, camelCase ids for custom orders);
intent responses are serialized in camelCase.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.settings import payment_settings
from domain.payment.entity import to_minor_units


SUPPORTED_CURRENCIES = {"INR"}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Order intents -------------------------------------------------------

class CreateOrderIntent(BaseModel):
    # Any: booleans and numeric strings must be rejected, not coerced
    amount: Any = Field(default=None, validate_default=True)
    currency: Any = "INR"
    receipt: Any = Field(default=None, validate_default=True)
    notes: Optional[dict[str, Any]] = None

    @field_validator("amount")
    @classmethod
    def _validate_amount(cls, v: Any) -> Any:
        limit = payment_settings.razorpay.max_amount
        if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)) or not (0 < v <= limit):
            raise ValueError(f"Invalid amount (must be between 1-{int(limit)})")
        # amounts below half a paisa round to zero
        if to_minor_units(v) < 1:
            raise ValueError(f"Invalid amount (must be between 1-{int(limit)})")
        return v

    @field_validator("currency")
    @classmethod
    def _validate_currency(cls, v: Any) -> str:
        if v not in SUPPORTED_CURRENCIES:
            raise ValueError("Only INR currency supported")
        return v

    @field_validator("receipt")
    @classmethod
    def _validate_receipt(cls, v: Any) -> str:
        max_len = payment_settings.razorpay.max_receipt_length
        if not isinstance(v, str) or not v or len(v) > max_len:
            raise ValueError("Invalid receipt format")
        return v


class CreateCustomOrderIntent(_CamelModel):
    # presence and format are checked by the service so the caller gets a specific message
    custom_order_id: Optional[Any] = None


class OrderIntent(_CamelModel):
    order_id: str
    amount: int
    currency: str
    key_id: str


class CustomOrderIntent(OrderIntent):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    custom_order_id: str


# --- Provider boundary ---------------------------------------------------

class ProviderOrderRequest(BaseModel):
    amount: int = Field(gt=0, description="Amount in minor units (paise)")
    currency: str = "INR"
    receipt: str
    notes: dict[str, Any] = Field(default_factory=dict)


class ProviderOrder(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: str = "created"
    notes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_list_to_dict(cls, v: Any) -> Any:
        # Razorpay returns [] instead of {} when no notes were sent
        return {} if v in (None, []) else v


# --- Verification --------------------------------------------------------

class VerifyPaymentBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str

    @property
    def record_id(self) -> str:
        raise NotImplementedError


class VerifyCheckoutPayment(VerifyPaymentBase):
    order_id: str

    @property
    def record_id(self) -> str:
        return self.order_id


class VerifyCustomOrderPayment(VerifyPaymentBase):
    custom_order_id: str = Field(alias="customOrderId")

    @property
    def record_id(self) -> str:
        return self.custom_order_id


class VerifyExperiencePayment(VerifyPaymentBase):
    booking_id: str

    @property
    def record_id(self) -> str:
        return self.booking_id


class CheckoutVerified(BaseModel):
    success: bool = True
    verified: bool = True


class CustomOrderVerified(BaseModel):
    success: bool = True
    message: str = "Payment verified and order updated successfully"


class ExperienceVerified(BaseModel):
    success: bool = True
    message: str = "Payment verified and booking confirmed"
    booking: dict[str, Any]


# --- Custom order admin emails -------------------------------------------

CustomOrderEmailType = Literal["payment_request", "payment_confirmed", "in_delivery", "delivered", "custom"]


class SendCustomOrderEmail(_CamelModel):
    email_type: CustomOrderEmailType
    custom_message: Optional[str] = Field(default=None, max_length=5000)
    payment_amount: Optional[Decimal] = Field(default=None, gt=0)


class CustomOrderEmailSent(_CamelModel):
    success: bool = True
    email_id: Optional[str] = None
    status: str


class EmailMessage(BaseModel):
    to: list[str]
    subject: str
    html: str
    reply_to: Optional[str] = None
