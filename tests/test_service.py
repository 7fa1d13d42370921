"""
Tests for LuckyDiscountService: check, claim and notification.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from lucky_discount.discount.claims import ClaimRecorder
from lucky_discount.discount.models import DiscountClaim
from lucky_discount.notify.email import NotificationDeliveryError
from lucky_discount.service import LuckyDiscountService
from lucky_discount.utils.supabase_client import SupabaseError

# 14:20:27 UTC -> lucky number 47, minute 20
LOGIN_AT = datetime(2026, 10, 19, 14, 20, 27, tzinfo=timezone.utc)
NOW = LOGIN_AT + timedelta(seconds=5)


@pytest.fixture
def rules(make_rule):
    cache = MagicMock()
    cache.get_active_rules.return_value = [
        make_rule(id="evening", lucky_numbers=[1], login_time_start="18:00:00", login_time_end="22:00:00"),
        make_rule(id="forty-seven", lucky_numbers=[47], discount_percent=15),
    ]
    return cache


@pytest.fixture
def claim_store():
    store = MagicMock()
    store.insert_claim.side_effect = lambda payload: DiscountClaim(id="claim-1", **payload)
    return store


@pytest.fixture
def profiles():
    p = MagicMock()
    p.get_profile.return_value = {"email": "asha@example.com", "full_name": "Asha"}
    return p


@pytest.fixture
def mailer():
    return MagicMock()


@pytest.fixture
def service(rules, claim_store, profiles, mailer):
    return LuckyDiscountService(
        rules=rules,
        recorder=ClaimRecorder(claim_store),
        profiles=profiles,
        mailer=mailer,
        claims=claim_store,
        tz_name="UTC",
    )


class TestCheck:
    def test_eligible(self, service):
        result = service.check("user-1", LOGIN_AT)
        assert result.is_eligible
        assert result.matched_rule.id == "forty-seven"
        assert result.lucky_number == 47

    def test_anonymous_never_reads_rules(self, service, rules):
        result = service.check(None, LOGIN_AT)
        assert not result.is_eligible
        assert result.message == ""
        rules.get_active_rules.assert_not_called()

    def test_store_clock_decides_window(self, make_rule, claim_store, profiles, mailer):
        cache = MagicMock()
        cache.get_active_rules.return_value = [
            make_rule(lucky_numbers=[1], login_time_start="19:00:00", login_time_end="20:59:59"),
        ]
        kolkata = LuckyDiscountService(cache, ClaimRecorder(claim_store), profiles, mailer,
                                       claims=claim_store, tz_name="Asia/Kolkata")
        # 14:20:27 UTC is 19:50:27 in Kolkata
        assert kolkata.check("user-1", LOGIN_AT).is_eligible


class TestClaim:
    def test_claim_and_email(self, service, mailer):
        outcome = service.claim("user-1", "forty-seven", 47, LOGIN_AT, now=NOW)

        assert outcome.email_sent
        assert outcome.claim.discount_code == "LUCKY47"
        assert outcome.claim.login_time == "14:20:27"
        assert outcome.claim.expires_at == NOW + timedelta(hours=24)

        payload = mailer.send.call_args[0][0]
        assert payload.email == "asha@example.com"
        assert payload.customer_name == "Asha"
        assert payload.discount_percent == 15
        assert payload.lucky_number == 47
        assert payload.expires_at == outcome.claim.expires_at

    def test_deactivated_rule(self, service, claim_store, mailer):
        outcome = service.claim("user-1", "gone", 47, LOGIN_AT, now=NOW)
        assert outcome.claim is None
        assert not outcome.email_sent
        claim_store.insert_claim.assert_not_called()
        mailer.send.assert_not_called()

    def test_claim_outside_rule_window(self, service, claim_store, mailer):
        # "evening" holds [1] but only opens at 18:00
        outcome = service.claim("user-1", "evening", 47, LOGIN_AT, now=NOW)
        assert outcome.claim is None
        claim_store.insert_claim.assert_not_called()
        mailer.send.assert_not_called()

    def test_claim_with_number_the_login_did_not_generate(self, service, claim_store):
        outcome = service.claim("user-1", "forty-seven", 999, LOGIN_AT, now=NOW)
        assert outcome.claim is None
        claim_store.insert_claim.assert_not_called()

    def test_claim_for_rule_that_lost_to_earlier_match(self, make_rule, claim_store, profiles, mailer):
        cache = MagicMock()
        cache.get_active_rules.return_value = [
            make_rule(id="first", lucky_numbers=[47]),
            make_rule(id="second", lucky_numbers=[47]),
        ]
        svc = LuckyDiscountService(cache, ClaimRecorder(claim_store), profiles, mailer,
                                   claims=claim_store, tz_name="UTC")
        assert svc.claim("user-1", "second", 47, LOGIN_AT, now=NOW).claim is None
        assert svc.claim("user-1", "first", 47, LOGIN_AT, now=NOW).claim is not None

    def test_anonymous_claim(self, service, rules, claim_store):
        assert service.claim(None, "forty-seven", 47, LOGIN_AT, now=NOW).claim is None
        rules.get_active_rules.assert_not_called()
        claim_store.insert_claim.assert_not_called()

    def test_no_email_on_profile(self, service, profiles, mailer):
        profiles.get_profile.return_value = {"email": None, "full_name": "Asha"}
        outcome = service.claim("user-1", "forty-seven", 47, LOGIN_AT, now=NOW)
        assert outcome.claim is not None
        assert not outcome.email_sent
        mailer.send.assert_not_called()

    def test_profile_lookup_failure_keeps_claim(self, service, profiles, mailer):
        profiles.get_profile.side_effect = SupabaseError("profiles", "HTTP 500", 500)
        outcome = service.claim("user-1", "forty-seven", 47, LOGIN_AT, now=NOW)
        assert outcome.claim is not None
        assert not outcome.email_sent

    def test_delivery_failure_propagates_with_claim(self, service, mailer, claim_store):
        mailer.send.side_effect = NotificationDeliveryError("Failed to send email: 500")
        with pytest.raises(NotificationDeliveryError) as exc_info:
            service.claim("user-1", "forty-seven", 47, LOGIN_AT, now=NOW)
        assert exc_info.value.claim.id == "claim-1"
        claim_store.insert_claim.assert_called_once()

    def test_list_claims(self, service, claim_store):
        claim_store.list_claims.return_value = []
        assert service.list_claims("user-1") == []
        claim_store.list_claims.assert_called_once_with("user-1")
