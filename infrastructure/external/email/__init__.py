"""Transactional email adapters."""
from .resend_client import ResendEmailSender

__all__ = ["ResendEmailSender"]
