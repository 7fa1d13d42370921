"""
Lucky discount email notification via the Resend API.

The email is a fixed HTML template carrying the customer's discount code,
percentage, lucky number and expiry. Delivery failures raise
NotificationDeliveryError; the claim itself is already stored by then, so
callers must tell the customer the code may not have been emailed.
"""
from __future__ import annotations

import html
import os
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lucky_discount.core.config import get_config
from lucky_discount.utils.logger import get_logger

logger = get_logger("notify.email")

RESEND_REQUEST_TIMEOUT = float(os.environ.get("RESEND_REQUEST_TIMEOUT", "30.0"))


class NotificationDeliveryError(Exception):
    """The lucky discount email could not be handed to the email provider."""

    def __init__(self, message: str, claim: Any = None):
        super().__init__(message)
        # Set when the claim was stored before delivery failed
        self.claim = claim


class LuckyDiscountEmail(BaseModel):
    """Values interpolated into the lucky discount email."""
    # Accepts the storefront's camelCase payload as well as field names
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str = Field(description="Recipient address")
    customer_name: Optional[str] = Field(default=None, description="Display name; 'Valued Customer' when missing")
    discount_code: str
    discount_percent: int = Field(ge=0, le=100)
    lucky_number: int
    expires_at: datetime = Field(description="ISO-8601 claim expiry")


def format_expiry(expires_at: datetime, tz_name: Optional[str] = None) -> str:
    """Long date/time form, e.g. ``20 October 2026 at 02:30 pm``."""
    if expires_at.tzinfo is not None and tz_name:
        expires_at = expires_at.astimezone(ZoneInfo(tz_name))
    clock = expires_at.strftime("%I:%M %p").lower()
    return f"{expires_at.day} {expires_at.strftime('%B %Y')} at {clock}"


def render_lucky_discount_email(payload: LuckyDiscountEmail, store_name: Optional[str] = None,
                                tz_name: Optional[str] = None) -> Tuple[str, str]:
    """Return (subject, html body) for payload."""
    config = get_config()
    store = html.escape(store_name or config.store_name)
    name = html.escape(payload.customer_name or "Valued Customer")
    code = html.escape(payload.discount_code)
    percent = payload.discount_percent
    number = payload.lucky_number
    valid_until = format_expiry(payload.expires_at, tz_name or config.display_timezone)

    subject = f"🍀 You Won {percent}% Off! Your Lucky Number is {number}"
    body = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: 'Segoe UI', sans-serif; background: #0a0a0a; color: #fff; margin: 0; padding: 20px; }}
    .container {{ max-width: 600px; margin: 0 auto; background: #111; border-radius: 16px; overflow: hidden; }}
    .header {{ background: linear-gradient(135deg, #D4AF37 0%, #8B7355 100%); padding: 40px; text-align: center; }}
    .header h1 {{ color: #0a0a0a; margin: 0; font-size: 28px; }}
    .content {{ padding: 40px; }}
    .lucky-number {{ font-size: 64px; color: #D4AF37; text-align: center; font-weight: bold; }}
    .discount-code {{ background: #D4AF37; color: #0a0a0a; padding: 20px; text-align: center; border-radius: 8px; margin: 20px 0; }}
    .discount-code .code {{ font-size: 32px; font-weight: bold; letter-spacing: 4px; }}
    .discount-code .percent {{ font-size: 48px; font-weight: bold; }}
    .footer {{ padding: 20px; text-align: center; color: #666; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>🍀 LUCKY DISCOUNT!</h1>
    </div>
    <div class="content">
      <p>Hi {name},</p>
      <p>Congratulations! Your login time matched our lucky number:</p>
      <div class="lucky-number">{number}</div>
      <p style="text-align: center;">You've won an exclusive discount!</p>
      <div class="discount-code">
        <div class="percent">{percent}% OFF</div>
        <div class="code">{code}</div>
      </div>
      <p><strong>How to use:</strong></p>
      <ol>
        <li>Shop your favorite silver jewellery</li>
        <li>Enter code <strong>{code}</strong> at checkout</li>
        <li>Enjoy your lucky discount!</li>
      </ol>
      <p style="color: #999; font-size: 14px;">Valid until: {valid_until}</p>
    </div>
    <div class="footer">
      <p>{store} - Crafted in Sterling Silver</p>
      <p>This is an automated email. Please do not reply.</p>
    </div>
  </div>
</body>
</html>
"""
    return subject, body


class ResendEmailClient:
    """Sends lucky discount emails through ``POST /emails`` on the Resend API."""

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None,
                 base_url: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None) -> None:
        config = get_config()
        self.api_key = api_key or os.environ.get("RESEND_API_KEY", "")
        self.sender = sender or config.email_sender
        if not self.api_key:
            logger.warning("RESEND_API_KEY not set in environment.")
        self._client = httpx.Client(
            base_url=base_url or config.resend_api_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=RESEND_REQUEST_TIMEOUT,
            transport=transport,
        )

    def send(self, payload: LuckyDiscountEmail) -> Dict[str, Any]:
        """Send the email; returns the provider's JSON response."""
        subject, body = render_lucky_discount_email(payload)
        logger.info("email: method=send to=%s code=%s", payload.email, payload.discount_code)
        try:
            resp = self._client.post(
                "/emails",
                json={"from": self.sender, "to": [payload.email], "subject": subject, "html": body},
            )
        except httpx.HTTPError as e:
            logger.error("email: method=send to=%s result=error error=%s", payload.email, e)
            raise NotificationDeliveryError(f"Failed to send email: {e}") from e

        if resp.is_error:
            logger.error("email: method=send to=%s result=error status=%s body=%s",
                         payload.email, resp.status_code, resp.text[:300])
            raise NotificationDeliveryError(f"Failed to send email: {resp.text or resp.status_code}")

        logger.info("email: method=send to=%s result=success", payload.email)
        return resp.json() if resp.content else {}
