"""Customer notifications for claimed lucky discounts."""
from lucky_discount.notify.email import (
    LuckyDiscountEmail,
    NotificationDeliveryError,
    ResendEmailClient,
    render_lucky_discount_email,
)

__all__ = [
    "LuckyDiscountEmail",
    "NotificationDeliveryError",
    "ResendEmailClient",
    "render_lucky_discount_email",
]
