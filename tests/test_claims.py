"""
Tests for ClaimRecorder: codes, expiry and the silent failure paths.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from lucky_discount.discount.claims import ClaimRecorder, claim_code
from lucky_discount.discount.models import DiscountClaim
from lucky_discount.utils.supabase_client import SupabaseError

NOW = datetime(2026, 10, 19, 14, 20, 27, tzinfo=timezone.utc)


@pytest.fixture
def store():
    s = MagicMock()
    s.insert_claim.side_effect = lambda payload: DiscountClaim(id="claim-1", **payload)
    return s


class TestClaimCode:
    def test_fixed_code(self, make_rule):
        assert claim_code(make_rule(discount_code="DIWALI10"), 47) == "DIWALI10"

    def test_fallback_code(self, make_rule):
        assert claim_code(make_rule(), 47) == "LUCKY47"


class TestRecordClaim:
    def test_records_claim(self, store, make_rule):
        rule = make_rule(lucky_numbers=[47])
        claim = ClaimRecorder(store).record_claim("user-1", rule.id, 47, "14:20:27", [rule], now=NOW)

        assert claim is not None
        assert claim.user_id == "user-1"
        assert claim.discount_id == rule.id
        assert claim.lucky_number == 47
        assert claim.login_time == "14:20:27"
        assert claim.discount_code == "LUCKY47"
        store.insert_claim.assert_called_once()

    def test_expires_after_24_hours(self, store, make_rule):
        rule = make_rule()
        claim = ClaimRecorder(store).record_claim("user-1", rule.id, 30, "14:07:23", [rule], now=NOW)
        assert claim.expires_at - NOW == timedelta(hours=24)

    def test_default_now_is_current_time(self, store, make_rule):
        rule = make_rule()
        before = datetime.now(timezone.utc)
        claim = ClaimRecorder(store).record_claim("user-1", rule.id, 30, "14:07:23", [rule])
        after = datetime.now(timezone.utc)
        assert before + timedelta(hours=24) <= claim.expires_at <= after + timedelta(hours=24)

    def test_uses_rule_code(self, store, make_rule):
        rule = make_rule(discount_code="NOIRLUCK")
        claim = ClaimRecorder(store).record_claim("user-1", rule.id, 30, "14:07:23", [rule], now=NOW)
        assert claim.discount_code == "NOIRLUCK"

    def test_rule_no_longer_active(self, store, make_rule):
        active = [make_rule()]
        claim = ClaimRecorder(store).record_claim("user-1", "deactivated-rule", 30, "14:07:23", active, now=NOW)
        assert claim is None
        store.insert_claim.assert_not_called()

    def test_no_user(self, store, make_rule):
        rule = make_rule()
        assert ClaimRecorder(store).record_claim(None, rule.id, 30, "14:07:23", [rule]) is None
        store.insert_claim.assert_not_called()

    def test_store_failure_returns_none(self, store, make_rule):
        store.insert_claim.side_effect = SupabaseError("lucky_discount_claims", "HTTP 500", 500)
        rule = make_rule()
        assert ClaimRecorder(store).record_claim("user-1", rule.id, 30, "14:07:23", [rule], now=NOW) is None
        assert store.insert_claim.call_count == 1

    def test_custom_validity(self, store, make_rule):
        rule = make_rule()
        claim = ClaimRecorder(store, validity_hours=2).record_claim("user-1", rule.id, 30, "14:07:23", [rule], now=NOW)
        assert claim.expires_at - NOW == timedelta(hours=2)
