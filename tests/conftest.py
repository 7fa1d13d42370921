"""Pytest configuration for Lucky Discount tests."""

import json
import os
import sys
import uuid
from collections import defaultdict

import httpx
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lucky_discount.core import config as config_module
from lucky_discount.core.config import LuckyConfig, set_config
from lucky_discount.discount.models import DiscountRule
from lucky_discount.notify.email import ResendEmailClient
from lucky_discount.utils.supabase_client import SupabaseClient


# ---------------------------------------------------------------------------
# Configuration: tests run on a UTC store clock so login instants read plainly
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def utc_config():
    previous = config_module._config
    cfg = LuckyConfig(display_timezone="UTC")
    set_config(cfg)
    yield cfg
    config_module._config = previous


@pytest.fixture
def make_rule():
    """Factory for DiscountRule with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> DiscountRule:
        counter["n"] += 1
        data = {
            "id": f"rule-{counter['n']}",
            "name": f"Rule {counter['n']}",
            "lucky_numbers": [7],
            "discount_percent": 10,
        }
        data.update(overrides)
        return DiscountRule(**data)

    return _make


# ---------------------------------------------------------------------------
# In-memory PostgREST stand-in served through httpx.MockTransport
# ---------------------------------------------------------------------------

def _as_text(value) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


class FakeSupabase:
    """Understands the subset of PostgREST the stores use: eq filters, order, limit."""

    RESERVED = {"select", "order", "limit"}

    def __init__(self):
        self.tables = defaultdict(list)
        self.requests = []
        self.fail_with = None

    def client(self) -> SupabaseClient:
        return SupabaseClient(
            url="https://fake.supabase.co",
            key="service-role-test",
            transport=httpx.MockTransport(self.handler),
        )

    def _matches(self, row, params) -> bool:
        for key, value in params.items():
            if key in self.RESERVED:
                continue
            op, _, operand = value.partition(".")
            if op != "eq" or _as_text(row.get(key)) != operand:
                return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "database unavailable"})

        table = request.url.path.rsplit("/", 1)[-1]
        params = dict(request.url.params)
        rows = self.tables[table]

        if request.method == "POST":
            row = json.loads(request.content)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", f"2026-10-19T10:00:{len(rows):02d}+00:00")
            rows.append(row)
            return httpx.Response(201, json=[row])

        matched = [r for r in rows if self._matches(r, params)]

        if request.method == "GET":
            order = params.get("order")
            if order:
                column, _, direction = order.partition(".")
                matched.sort(key=lambda r: _as_text(r.get(column)), reverse=direction == "desc")
            if "limit" in params:
                matched = matched[: int(params["limit"])]
            return httpx.Response(200, json=matched)

        if request.method == "PATCH":
            values = json.loads(request.content)
            for row in matched:
                row.update(values)
            return httpx.Response(200, json=matched)

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if r not in matched]
            return httpx.Response(200, json=matched)

        return httpx.Response(405)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


# ---------------------------------------------------------------------------
# Resend stand-in
# ---------------------------------------------------------------------------

class FakeResend:
    def __init__(self):
        self.sent = []
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="invalid from address")
        body = json.loads(request.content)
        self.sent.append({"headers": dict(request.headers), "body": body, "path": request.url.path})
        return httpx.Response(200, json={"id": f"email-{len(self.sent)}"})

    def client(self) -> ResendEmailClient:
        return ResendEmailClient(
            api_key="re_test_key",
            sender="NOIR925 <onboarding@resend.dev>",
            base_url="https://api.resend.test",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_resend():
    return FakeResend()
