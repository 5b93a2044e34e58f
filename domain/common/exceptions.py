"""Domain-level business exceptions shared by the domain and infrastructure layers.

The core layer only maps these to HTTP responses; the domain never depends on core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base class for business exceptions."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class InvalidPaymentInputException(BusinessException):
    """A request field failed shape or range validation."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message or f"Invalid {field} format",
            error_type="InvalidPaymentInput",
            field=field,
        )


class PayableRecordNotFoundException(BusinessException):
    def __init__(self, label: str = "Order", record_id: Optional[str] = None):
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message=f"{label} not found",
            error_type="PayableRecordNotFound",
            details={"record_id": record_id} if record_id else None,
        )


class RecordAccessDeniedException(BusinessException):
    """The authenticated caller does not own the record. Message stays generic."""

    def __init__(self):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message="Unauthorized",
            error_type="RecordAccessDenied",
        )


class PaymentAlreadyCompletedException(BusinessException):
    def __init__(self, label: str = "Order", message: Optional[str] = None):
        super().__init__(
            code=PaymentCode.ALREADY_PAID,
            message=message or f"{label} already paid",
            error_type="PaymentAlreadyCompleted",
        )


class ProviderOrderMismatchException(BusinessException):
    def __init__(self):
        super().__init__(
            code=PaymentCode.ORDER_MISMATCH,
            message="Payment order mismatch",
            error_type="ProviderOrderMismatch",
            field="razorpay_order_id",
        )


class InvalidPaymentSignatureException(BusinessException):
    def __init__(self):
        super().__init__(
            code=PaymentCode.SIGNATURE_ERROR,
            message="Invalid payment signature",
            error_type="InvalidPaymentSignature",
            field="razorpay_signature",
        )


class EstimatedPriceMissingException(BusinessException):
    def __init__(self):
        super().__init__(
            code=PaymentCode.PAYMENT_NOT_ALLOWED,
            message="Order does not have an estimated price",
            error_type="EstimatedPriceMissing",
        )


class VerificationRateLimitedException(BusinessException):
    def __init__(self, attempts: int):
        super().__init__(
            code=BusinessCode.TOO_MANY_REQUESTS,
            message="Too many verification attempts for this order. Please contact support.",
            error_type="VerificationRateLimited",
            details={"attempts": attempts},
        )


class ConfigurationException(BusinessException):
    """Server-side misconfiguration; the caller only ever sees a generic message."""

    def __init__(self, detail: str):
        super().__init__(
            code=BusinessCode.CONFIGURATION_ERROR,
            message="Service is not configured correctly",
            error_type="ConfigurationError",
            details={"detail": detail},
        )


class EmailDeliveryException(BusinessException):
    def __init__(self, message: str, *, hint: Optional[str] = None):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message=message,
            error_type="EmailDeliveryError",
            details={"hint": hint} if hint else None,
        )
        # returned to the admin alongside the provider message
        self.hint = hint
