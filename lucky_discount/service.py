"""
Lucky discount service: check a login, claim a win, email the code.

The login instant is always passed in explicitly; nothing here remembers when
a user logged in. Active rules come from the caller-owned RuleCache.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from lucky_discount.core.config import get_config
from lucky_discount.discount.cache import RuleCache
from lucky_discount.discount.claims import ClaimRecorder
from lucky_discount.discount.eligibility import check_eligibility
from lucky_discount.discount.lucky_number import LoginInstant
from lucky_discount.discount.models import DiscountClaim, EligibilityResult
from lucky_discount.discount.store import ClaimStore, ProfileStore
from lucky_discount.notify.email import LuckyDiscountEmail, NotificationDeliveryError, ResendEmailClient
from lucky_discount.utils.logger import get_logger
from lucky_discount.utils.supabase_client import SupabaseError

logger = get_logger("service")


@dataclass
class ClaimOutcome:
    claim: Optional[DiscountClaim]
    email_sent: bool = False


class LuckyDiscountService:
    def __init__(
        self,
        rules: RuleCache,
        recorder: ClaimRecorder,
        profiles: ProfileStore,
        mailer: ResendEmailClient,
        claims: ClaimStore,
        tz_name: Optional[str] = None,
    ) -> None:
        self.rules = rules
        self.recorder = recorder
        self.profiles = profiles
        self.mailer = mailer
        self.claims = claims
        self.tz_name = tz_name or get_config().display_timezone

    def check(self, user_id: Optional[str], login_at: datetime) -> EligibilityResult:
        """Evaluate the login at login_at for user_id against the active rules."""
        instant = LoginInstant.capture(login_at, self.tz_name)
        # Anonymous visitors never touch the rules table
        rules = self.rules.get_active_rules() if user_id else []
        result = check_eligibility(user_id, instant.lucky_number, instant.clock, rules)
        logger.info(
            "service: method=check user_id=%s clock=%s lucky_number=%s eligible=%s rule_id=%s",
            user_id, instant.clock, instant.lucky_number, result.is_eligible,
            result.matched_rule.id if result.matched_rule else None,
        )
        return result

    def claim(
        self,
        user_id: Optional[str],
        rule_id: str,
        lucky_number: int,
        login_at: datetime,
        now: Optional[datetime] = None,
    ) -> ClaimOutcome:
        """
        Record a claim and email its code to the customer.

        The login is evaluated again here; nothing is recorded unless it wins
        rule_id with exactly lucky_number.

        Raises:
            NotificationDeliveryError: the claim was stored (available as
                ``error.claim``) but the email could not be sent.
        """
        instant = LoginInstant.capture(login_at, self.tz_name)
        active = self.rules.get_active_rules() if user_id else []

        # Only the rule this login actually wins, with the number it generated
        result = check_eligibility(user_id, instant.lucky_number, instant.clock, active)
        if (
            not result.is_eligible
            or result.matched_rule.id != rule_id
            or lucky_number != instant.lucky_number
        ):
            logger.warning(
                "service: method=claim user_id=%s rule_id=%s lucky_number=%s clock=%s "
                "result=rejected reason=not_eligible won_rule_id=%s generated=%s",
                user_id, rule_id, lucky_number, instant.clock,
                result.matched_rule.id if result.matched_rule else None, instant.lucky_number,
            )
            return ClaimOutcome(claim=None)

        claim = self.recorder.record_claim(user_id, rule_id, lucky_number, instant.clock, active, now=now)
        if claim is None:
            return ClaimOutcome(claim=None)

        rule = result.matched_rule
        try:
            profile = self.profiles.get_profile(user_id)
        except SupabaseError as e:
            logger.warning("service: method=claim user_id=%s profile lookup failed: %s", user_id, e)
            profile = None

        if not profile or not profile.get("email"):
            logger.info("service: method=claim user_id=%s claim_id=%s email=skipped", user_id, claim.id)
            return ClaimOutcome(claim=claim)

        payload = LuckyDiscountEmail(
            email=profile["email"],
            customer_name=profile.get("full_name"),
            discount_code=claim.discount_code,
            discount_percent=rule.discount_percent,
            lucky_number=claim.lucky_number,
            expires_at=claim.expires_at,
        )
        try:
            self.mailer.send(payload)
        except NotificationDeliveryError as e:
            raise NotificationDeliveryError(str(e), claim=claim) from e
        return ClaimOutcome(claim=claim, email_sent=True)

    def list_claims(self, user_id: str) -> List[DiscountClaim]:
        return self.claims.list_claims(user_id)
