"""
Recording of lucky discount claims.

A claim is written once per user action after a successful eligibility
check. It carries the rule's fixed code (or ``LUCKY<number>`` when the rule
has none) and expires a fixed number of hours (24) after creation.

Failures never reach the caller as exceptions: an unknown rule or a failed
insert is logged and the recorder returns None. There are no retries and no
duplicate-claim guard.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from lucky_discount.core.config import get_config
from lucky_discount.discount.models import DiscountClaim, DiscountRule
from lucky_discount.discount.store import ClaimStore
from lucky_discount.utils.logger import get_logger
from lucky_discount.utils.supabase_client import SupabaseError

logger = get_logger("discount.claims")


def claim_code(rule: DiscountRule, lucky_number: int, prefix: str = "LUCKY") -> str:
    """Code shown to the customer for a claim against rule."""
    return rule.discount_code or f"{prefix}{lucky_number}"


class ClaimRecorder:
    def __init__(self, store: ClaimStore, validity_hours: Optional[int] = None,
                 code_prefix: Optional[str] = None) -> None:
        config = get_config()
        self._store = store
        self.validity = timedelta(hours=validity_hours if validity_hours is not None else config.claim_validity_hours)
        self.code_prefix = code_prefix or config.fallback_code_prefix

    def record_claim(
        self,
        user_id: Optional[str],
        rule_id: str,
        lucky_number: int,
        login_time: str,
        active_rules: Sequence[DiscountRule],
        now: Optional[datetime] = None,
    ) -> Optional[DiscountClaim]:
        """
        Persist one claim.

        Args:
            user_id: Signed-in user claiming the discount.
            rule_id: Id of the rule that matched.
            lucky_number: Number that made the user eligible.
            login_time: ``HH:MM:SS`` clock time used for the evaluation.
            active_rules: Rules loaded for the evaluation; rule_id must be one of them.
            now: Creation instant (defaults to the current UTC time).

        Returns:
            The stored claim, or None when nothing was recorded.
        """
        if not user_id:
            logger.info("claims: method=record_claim rule_id=%s result=skipped reason=no_user", rule_id)
            return None

        rule = next((r for r in active_rules if r.id == rule_id), None)
        if rule is None:
            logger.warning(
                "claims: method=record_claim user_id=%s rule_id=%s result=skipped reason=rule_not_active",
                user_id, rule_id,
            )
            return None

        created_at = now or datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "discount_id": rule.id,
            "lucky_number": lucky_number,
            "login_time": login_time,
            "discount_code": claim_code(rule, lucky_number, self.code_prefix),
            "expires_at": (created_at + self.validity).isoformat(),
        }
        try:
            claim = self._store.insert_claim(payload)
        except SupabaseError as e:
            logger.error("claims: method=record_claim user_id=%s rule_id=%s result=error error=%s", user_id, rule_id, e)
            return None

        logger.info(
            "claims: method=record_claim user_id=%s rule_id=%s claim_id=%s code=%s result=success",
            user_id, rule_id, claim.id, claim.discount_code,
        )
        return claim
