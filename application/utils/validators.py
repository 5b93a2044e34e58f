"""Shape checks for identifiers submitted by the checkout widget."""
from __future__ import annotations

import re
import uuid
from typing import Any

from core.settings import payment_settings


_PROVIDER_ID_RE = re.compile(r"^[A-Za-z0-9_]+$")


def is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    # uuid.UUID also accepts braces/urn prefixes and undashed hex
    return len(value) == 36


def is_provider_id(value: Any) -> bool:
    """Razorpay ids look like ``order_Abc123`` / ``pay_Xyz789``."""
    max_len = payment_settings.verification.max_provider_id_length
    return isinstance(value, str) and 0 < len(value) <= max_len and bool(_PROVIDER_ID_RE.match(value))


def is_signature(value: Any) -> bool:
    max_len = payment_settings.verification.max_signature_length
    return isinstance(value, str) and 0 < len(value) <= max_len
