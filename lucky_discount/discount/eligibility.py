"""
Lucky discount eligibility.

Matches a login's lucky number against the active rules. Rules are tried in
the order given and the first match wins. A configured number matches when
any of these hold:

  - it equals the lucky number
  - it equals the raw minute of the login clock
  - its decimal digits appear inside the lucky number's digits
  - it divides the lucky number (zero is never a divisor)

The last two are very permissive: a configured ``1`` divides every lucky
number, so such a rule matches every login inside its window.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from lucky_discount.discount.models import DiscountRule, EligibilityResult

WIN_MESSAGE = "🎉 Lucky you! Your login time generated lucky number {number}. You've won {percent}% off!"
TRY_AGAIN_MESSAGE = "Your lucky number is {number}. Keep trying for special discounts!"


def minute_of(current_time: str) -> int:
    """Minute component of an ``HH:MM:SS`` clock string."""
    return int(current_time[3:5])


def in_login_window(rule: DiscountRule, current_time: str) -> bool:
    """
    True when the rule has no window or current_time lies inside it.

    Bounds are inclusive and compared as ``HH:MM:SS`` strings.
    """
    if not rule.has_window:
        return True
    return rule.login_time_start <= current_time <= rule.login_time_end


def matches_lucky_number(configured: int, lucky_number: int, minute: int) -> bool:
    if configured == lucky_number:
        return True
    if configured == minute:
        return True
    if str(configured) in str(lucky_number):
        return True
    return configured != 0 and lucky_number % configured == 0


def find_matching_number(rule: DiscountRule, lucky_number: int, minute: int) -> Optional[int]:
    """First configured number of rule that matches, or None."""
    for configured in rule.lucky_numbers:
        if matches_lucky_number(configured, lucky_number, minute):
            return configured
    return None


def check_eligibility(
    user_id: Optional[str],
    lucky_number: int,
    current_time: str,
    rules: Sequence[DiscountRule],
) -> EligibilityResult:
    """
    Evaluate one login against the active rules.

    Args:
        user_id: Signed-in user, or None for anonymous visitors.
        lucky_number: Number generated from the login instant.
        current_time: ``HH:MM:SS`` clock time of that same instant.
        rules: Active rules, in the order they should be tried. Inactive
            entries are ignored.

    Returns:
        EligibilityResult. Without a user or without rules the result is not
        eligible, carries no lucky number and has an empty message.
    """
    active = [rule for rule in rules if rule.is_active]
    if not user_id or not active:
        return EligibilityResult(is_eligible=False)

    minute = minute_of(current_time)
    for rule in _windowed(active, current_time):
        if find_matching_number(rule, lucky_number, minute) is not None:
            return EligibilityResult(
                is_eligible=True,
                matched_rule=rule,
                lucky_number=lucky_number,
                message=WIN_MESSAGE.format(number=lucky_number, percent=rule.discount_percent),
            )

    return EligibilityResult(
        is_eligible=False,
        lucky_number=lucky_number,
        message=TRY_AGAIN_MESSAGE.format(number=lucky_number),
    )


def _windowed(rules: Iterable[DiscountRule], current_time: str) -> Iterable[DiscountRule]:
    return (rule for rule in rules if in_login_window(rule, current_time))
