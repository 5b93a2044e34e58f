"""Transactional email templates (inline-styled HTML for mail clients)."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from html import escape
from typing import Any, Iterable, Optional

from domain.payment.entity import PayableRecord


BRAND = "Basho by Shivangi"

EXPERIENCE_NAMES = {
    "couple": "Couple Pottery Date",
    "birthday": "Birthday Session",
    "farm": "Farm & Garden Mini Party",
    "studio": "Studio-Based Experience",
}


def format_inr(amount: Any) -> str:
    """Rupee amount with Indian digit grouping: 100000 -> ₹1,00,000; 1999.5 -> ₹1,999.50"""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, fraction = f"{abs(value):.2f}".partition(".")
    if len(integer) > 3:
        head, tail = integer[:-3], integer[-3:]
        groups: list[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        integer = ",".join([*groups, tail])
    text = f"{sign}₹{integer}"
    return text if fraction == "00" else f"{text}.{fraction}"


def _format_date(value: Any, fmt: str = "%d %B %Y") -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10]).strftime(fmt)
        except ValueError:
            return value
    return ""


def _layout(body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"></head>
    <body style="margin: 0; padding: 20px; font-family: 'Georgia', serif; background-color: #faf9f7;">
      <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 12px; padding: 32px;">
        <div style="text-align: center; margin-bottom: 30px; padding-bottom: 20px; border-bottom: 2px solid #d4a574;">
          <h1 style="color: #8b7355; margin: 0;">{BRAND}</h1>
          <p style="color: #666; margin-top: 5px;">Handcrafted Pottery</p>
        </div>
        {body}
        <p style="color: #78716c; font-size: 12px; text-align: center; margin-top: 32px;">
          &copy; {datetime.now().year} Basho Pottery Studio. All rights reserved.
        </p>
      </div>
    </body>
    </html>
    """


def _signature() -> str:
    return f"<p>With warmth,<br><strong>Shivangi</strong><br>{BRAND}</p>"


class EmailTemplates:
    """Each template returns ``(subject, html)``; user-supplied text is escaped."""

    @staticmethod
    def order_confirmation(record: PayableRecord, items: Iterable[dict[str, Any]]) -> tuple[str, str]:
        details = record.details
        order_number = escape(str(details.get("order_number") or record.id))
        items = list(items)
        rows = "".join(
            f"""
            <tr>
              <td style="padding: 12px; border-bottom: 1px solid #e5e5e5;">{escape(str(item.get("item_name", "")))}</td>
              <td style="padding: 12px; border-bottom: 1px solid #e5e5e5; text-align: center;">{int(item.get("quantity") or 0)}</td>
              <td style="padding: 12px; border-bottom: 1px solid #e5e5e5; text-align: right;">{format_inr(item.get("unit_price"))}</td>
              <td style="padding: 12px; border-bottom: 1px solid #e5e5e5; text-align: right;">{format_inr(item.get("total_price"))}</td>
            </tr>"""
            for item in items
        )
        workshop_note = ""
        if any(item.get("item_type") == "workshop" for item in items):
            workshop_note = """
            <div style="background-color: #fef3c7; border: 1px solid #f59e0b; border-radius: 8px; padding: 16px; margin: 20px 0;">
              <h3 style="margin: 0 0 8px 0; color: #92400e;">Workshop Booking Confirmed!</h3>
              <p style="margin: 0; color: #78350f;">You'll receive a separate email with workshop details, including date, time, and what to bring.</p>
            </div>"""
        address = ""
        if details.get("shipping_address"):
            address = f"""
            <div style="margin-top: 24px; background-color: #f5f5f4; border-radius: 8px; padding: 16px;">
              <h4 style="margin: 0 0 8px 0;">Shipping Address</h4>
              <p style="margin: 0; white-space: pre-line;">{escape(str(details["shipping_address"]))}</p>
            </div>"""

        body = f"""
        <h2 style="color: #292524;">Thank you for your order, {escape(record.customer_name or "")}!</h2>
        <p style="color: #78716c;">Your order has been confirmed and is being processed.</p>
        <div style="background-color: #f5f5f4; border-radius: 8px; padding: 16px; margin-bottom: 24px;">
          <p style="margin: 0;"><strong>Order Number:</strong> {order_number}</p>
          <p style="margin: 8px 0 0 0;"><strong>Order Date:</strong> {_format_date(record.created_at)}</p>
        </div>
        {workshop_note}
        <table style="width: 100%; border-collapse: collapse;">
          <thead>
            <tr style="background-color: #f5f5f4;">
              <th style="padding: 12px; text-align: left;">Item</th>
              <th style="padding: 12px; text-align: center;">Qty</th>
              <th style="padding: 12px; text-align: right;">Price</th>
              <th style="padding: 12px; text-align: right;">Total</th>
            </tr>
          </thead>
          <tbody>{rows}</tbody>
        </table>
        <table style="width: 100%; margin-top: 24px; border-top: 2px solid #292524;">
          <tr><td>Subtotal:</td><td style="text-align: right;">{format_inr(details.get("subtotal"))}</td></tr>
          <tr><td>Shipping:</td><td style="text-align: right;">{format_inr(details.get("shipping_cost"))}</td></tr>
          <tr style="font-size: 18px; font-weight: bold;"><td>Total:</td><td style="text-align: right;">{format_inr(record.amount)}</td></tr>
        </table>
        {address}
        """
        return f"Order Confirmed - {order_number}", _layout(body)

    @staticmethod
    def experience_confirmation(record: PayableRecord) -> tuple[str, str]:
        details = record.details
        experience_type = str(details.get("experience_type") or "")
        name = EXPERIENCE_NAMES.get(experience_type, experience_type)
        guests = int(details.get("guests") or 1)
        notes = ""
        if details.get("notes"):
            notes = f"""
            <p style="color: #8B7355; margin: 16px 0 4px 0;">Your Notes</p>
            <p style="font-style: italic; margin: 0;">"{escape(str(details["notes"]))}"</p>"""

        body = f"""
        <h2 style="color: #3D2914; text-align: center;">You're All Set!</h2>
        <p style="text-align: center; color: #6B5B4F;">Your experience has been confirmed</p>
        <div style="border: 1px solid #E8E2D9; border-radius: 8px; padding: 24px; margin: 24px 0;">
          <h3 style="color: #B5651D; margin: 0 0 20px 0;">{escape(name)}</h3>
          <table style="width: 100%; border-collapse: collapse;">
            <tr><td>Date</td><td style="text-align: right;">{_format_date(details.get("booking_date"), "%A, %d %B %Y")}</td></tr>
            <tr><td>Time</td><td style="text-align: right;">{escape(str(details.get("time_slot") or ""))}</td></tr>
            <tr><td>Guests</td><td style="text-align: right;">{guests} {"person" if guests == 1 else "people"}</td></tr>
            <tr><td>Amount Paid</td><td style="text-align: right; color: #B5651D;">{format_inr(record.amount)}</td></tr>
          </table>
          {notes}
        </div>
        <div style="background-color: #FDF8F3; border-radius: 8px; padding: 20px;">
          <h4 style="margin: 0 0 12px 0;">What to Expect</h4>
          <ul style="margin: 0; padding-left: 20px; line-height: 1.8;">
            <li>Please arrive 10 minutes before your scheduled time</li>
            <li>Wear comfortable clothes that can get a little clay on them</li>
            <li>We'll provide all materials and aprons</li>
            <li>Your finished pieces will be ready for pickup in 2-3 weeks</li>
          </ul>
        </div>
        """
        return f"Your {name} is Confirmed!", _layout(body)

    @staticmethod
    def custom_order_status(
        email_type: str,
        customer_name: str,
        estimated_price: Optional[Any] = None,
        custom_message: Optional[str] = None,
        payment_link: Optional[str] = None,
    ) -> tuple[str, str]:
        greeting = f"<h2>Dear {escape(customer_name or '')},</h2>"

        if email_type == "payment_request":
            price = format_inr(estimated_price) if estimated_price is not None else "—"
            button = ""
            if payment_link:
                button = f"""
                <div style="text-align: center;">
                  <a href="{escape(payment_link, quote=True)}" style="display: inline-block; background-color: #d4a574; color: white; padding: 14px 28px; text-decoration: none; border-radius: 6px; font-weight: bold; margin: 20px 0;">Complete Payment</a>
                </div>"""
            body = f"""
            {greeting}
            <p>Thank you for your custom pottery order! We're excited to bring your vision to life.</p>
            <p>After reviewing your requirements, the estimated price for your custom piece is:</p>
            <div style="background: #f8f5f0; padding: 20px; text-align: center; border-radius: 8px; margin: 20px 0;">
              <p style="font-size: 28px; font-weight: bold; color: #8b7355; margin: 0;">{price}</p>
            </div>
            <p>To proceed with your order, please complete the payment using the button below:</p>
            {button}
            {_signature()}
            """
            return f"Payment Request for Your Custom Pottery Order - {BRAND}", _layout(body)

        if email_type == "payment_confirmed":
            body = f"""
            {greeting}
            <p>Great news! Your payment has been confirmed, and your custom pottery piece is now in the making.</p>
            <div style="background: #e8f5e9; padding: 20px; border-radius: 8px; margin: 20px 0; text-align: center;">
              <p style="color: #2e7d32; font-weight: bold; margin: 0;">&#10003; Payment Confirmed</p>
            </div>
            <p>Every custom piece goes through a careful process of shaping, drying, firing, and glazing. We'll keep you updated on the progress.</p>
            {_signature()}
            """
            return "Payment Confirmed - Your Custom Pottery is Now Being Crafted!", _layout(body)

        if email_type == "in_delivery":
            body = f"""
            {greeting}
            <p>Wonderful news! Your custom pottery piece has been completed and is now on its way to you.</p>
            <p>We've carefully packaged your piece to ensure it arrives safely.</p>
            {_signature()}
            """
            return "Your Custom Pottery is Ready and On Its Way!", _layout(body)

        if email_type == "delivered":
            body = f"""
            {greeting}
            <p>Your custom pottery piece has been delivered! We hope it brings joy and beauty to your home.</p>
            <p>If you'd like to share photos of it in its new home, we'd love to hear from you!</p>
            {_signature()}
            """
            return "Your Custom Pottery Has Been Delivered!", _layout(body)

        if email_type == "custom":
            body = f"""
            {greeting}
            <div style="background: #f8f5f0; padding: 20px; border-radius: 8px; margin: 20px 0;">
              <p style="margin: 0; white-space: pre-wrap;">{escape(custom_message or "")}</p>
            </div>
            {_signature()}
            """
            return f"Update on Your Custom Pottery Order - {BRAND}", _layout(body)

        raise ValueError(f"Invalid email type: {email_type}")
