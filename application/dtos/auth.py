"""Authenticated caller extracted from the bearer token."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class Principal(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
