"""
Payment specific codes and provider status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003
    RATE_LIMITED = 60004

    # Local record state (61xxx)
    ALREADY_PAID = 61000
    ORDER_MISMATCH = 61001
    PAYMENT_NOT_ALLOWED = 61002


# Razorpay order entity statuses -> internal intent statuses
PROVIDER_STATUS_TO_INTERNAL = {
    "razorpay": {
        "created": "created",
        "attempted": "pending",
        "paid": "paid",
    },
}
