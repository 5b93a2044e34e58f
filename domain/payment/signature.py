"""
Razorpay checkout signature primitive.

The checkout widget returns ``razorpay_signature`` = hex(HMAC-SHA256(key_secret,
"{order_id}|{payment_id}")). Recomputing it server-side proves the payment result
was produced by the provider for that order.
"""
from __future__ import annotations

import hashlib
import hmac


def compute_signature(secret: str, provider_order_id: str, provider_payment_id: str) -> str:
    payload = f"{provider_order_id}|{provider_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def signature_matches(secret: str, provider_order_id: str, provider_payment_id: str, signature: str) -> bool:
    """Constant-time comparison of the expected digest with the supplied one."""
    if not secret or not signature:
        return False
    expected = compute_signature(secret, provider_order_id, provider_payment_id)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
