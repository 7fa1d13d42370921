"""
Lucky number discounts.

- lucky_number: login instant -> lucky number (minute + second)
- eligibility: first active rule whose numbers match wins
- claims: records a 24-hour discount claim for a matched rule
"""
from lucky_discount.discount.eligibility import check_eligibility
from lucky_discount.discount.lucky_number import LoginInstant, clock_time, generate_lucky_number
from lucky_discount.discount.models import DiscountClaim, DiscountRule, EligibilityResult

__all__ = [
    "check_eligibility",
    "LoginInstant",
    "clock_time",
    "generate_lucky_number",
    "DiscountClaim",
    "DiscountRule",
    "EligibilityResult",
]
