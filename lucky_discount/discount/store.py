"""
Supabase-backed stores for lucky discount data.

Tables:
  lucky_number_discounts  rules managed by administrators
    id uuid PK, name text, description text, lucky_numbers int[],
    login_time_start time, login_time_end time, discount_percent int,
    discount_code text, min_order_value numeric, max_discount_amount numeric,
    is_active bool, created_at timestamptz
  lucky_discount_claims   one row per claimed discount
    id uuid PK, user_id uuid, discount_id uuid FK, lucky_number int,
    login_time time, discount_code text, expires_at timestamptz,
    created_at timestamptz
  profiles                customer email and display name

SupabaseError propagates from every method; the cache and the claim
recorder decide how to degrade.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from lucky_discount.core.config import get_config
from lucky_discount.discount.models import DiscountClaim, DiscountRule, DiscountRuleInput
from lucky_discount.utils.logger import get_logger
from lucky_discount.utils.supabase_client import SupabaseClient

logger = get_logger("discount.store")


class RuleNotFoundError(LookupError):
    """No lucky discount rule has the requested id."""

    def __init__(self, rule_id: str):
        super().__init__(f"Lucky discount {rule_id} not found")
        self.rule_id = rule_id


class RuleStore:
    """Read and manage rows of the rules table."""

    def __init__(self, client: SupabaseClient, table: Optional[str] = None) -> None:
        self._client = client
        self._table = table or get_config().rules_table

    def fetch_active_rules(self) -> List[DiscountRule]:
        """Active rules in the order the table returns them. Unreadable rows are skipped."""
        rows = self._client.select(self._table, filters={"is_active": True})
        rules = []
        for row in rows:
            try:
                rules.append(DiscountRule.model_validate(row))
            except ValidationError as e:
                logger.error(
                    "rule_store: method=fetch_active_rules rule_id=%s result=skipped error=%s",
                    row.get("id"), e,
                )
        logger.info("rule_store: method=fetch_active_rules result=success row_count=%s", len(rules))
        return rules

    def list_rules(self) -> List[DiscountRule]:
        """Every rule, newest first."""
        rows = self._client.select(self._table, order="created_at.desc")
        return [DiscountRule.model_validate(row) for row in rows]

    def get_rule(self, rule_id: str) -> DiscountRule:
        rows = self._client.select(self._table, filters={"id": rule_id}, limit=1)
        if not rows:
            raise RuleNotFoundError(rule_id)
        return DiscountRule.model_validate(rows[0])

    def create_rule(self, data: DiscountRuleInput) -> DiscountRule:
        row = self._client.insert(self._table, data.to_row())
        rule = DiscountRule.model_validate(row)
        logger.info("rule_store: method=create_rule rule_id=%s result=success", rule.id)
        return rule

    def update_rule(self, rule_id: str, data: DiscountRuleInput) -> DiscountRule:
        return self._patch(rule_id, data.to_row(), "update_rule")

    def set_active(self, rule_id: str, is_active: bool) -> DiscountRule:
        return self._patch(rule_id, {"is_active": is_active}, "set_active")

    def delete_rule(self, rule_id: str) -> None:
        rows = self._client.delete(self._table, filters={"id": rule_id})
        if not rows:
            raise RuleNotFoundError(rule_id)
        logger.info("rule_store: method=delete_rule rule_id=%s result=success", rule_id)

    def _patch(self, rule_id: str, values: Dict[str, Any], method: str) -> DiscountRule:
        rows = self._client.update(self._table, filters={"id": rule_id}, values=values)
        if not rows:
            raise RuleNotFoundError(rule_id)
        logger.info("rule_store: method=%s rule_id=%s result=success", method, rule_id)
        return DiscountRule.model_validate(rows[0])


class ClaimStore:
    """Append-only access to the claims table."""

    def __init__(self, client: SupabaseClient, table: Optional[str] = None) -> None:
        self._client = client
        self._table = table or get_config().claims_table

    def insert_claim(self, payload: Dict[str, Any]) -> DiscountClaim:
        row = self._client.insert(self._table, payload)
        return DiscountClaim.model_validate(row)

    def list_claims(self, user_id: str) -> List[DiscountClaim]:
        rows = self._client.select(self._table, filters={"user_id": user_id}, order="created_at.desc")
        return [DiscountClaim.model_validate(row) for row in rows]


class ProfileStore:
    """Customer contact details used for claim notifications."""

    def __init__(self, client: SupabaseClient, table: Optional[str] = None) -> None:
        self._client = client
        self._table = table or get_config().profiles_table

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        rows = self._client.select(self._table, filters={"id": user_id}, select="email,full_name", limit=1)
        return rows[0] if rows else None
