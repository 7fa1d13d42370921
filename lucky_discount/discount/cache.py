"""
Redis read-through cache for the active lucky discount rules.

Redis is ONLY a cache, never the source of truth; the rules table is always
authoritative. The snapshot lives under one key (``lucky:active_rules``)
with a short TTL (60s by default), so a rule edited or deactivated by an
administrator reaches shoppers within that window. Admin mutations call
``invalidate()`` to drop it immediately.

The cache belongs to the caller. The eligibility evaluator never sees it and
works on whatever rule list it is handed.
"""
import json
import os
from typing import List, Optional

import redis
from pydantic import ValidationError

from lucky_discount.core.config import get_config
from lucky_discount.discount.models import DiscountRule
from lucky_discount.discount.store import RuleStore
from lucky_discount.utils.logger import get_logger
from lucky_discount.utils.supabase_client import SupabaseError

logger = get_logger("discount.cache")


def get_redis_client() -> redis.Redis:
    """
    Build a Redis client from the environment.

    Connection priority:
    1. REDIS_URL (redis:// or rediss:// for hosted Redis)
    2. REDIS_HOST + REDIS_PORT + REDIS_DB (local)
    """
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        return redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
    return redis.Redis(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        db=int(os.getenv("REDIS_DB", "0")),
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )


class RuleCache:
    """
    Active-rule snapshot with TTL-based expiry.

    Redis errors degrade to reading the store on every call. A store failure
    yields an empty list, which the evaluator treats as "no active rules".
    """

    def __init__(
        self,
        store: RuleStore,
        client: Optional[redis.Redis] = None,
        ttl_seconds: Optional[int] = None,
        key: Optional[str] = None,
    ) -> None:
        config = get_config()
        self._store = store
        self.client = client
        self.ttl = ttl_seconds if ttl_seconds is not None else config.rules_cache_ttl
        self.key = key or config.rules_cache_key

    def get_active_rules(self) -> List[DiscountRule]:
        redis_up = True
        try:
            cached = self._read()
        except redis.RedisError as e:
            logger.warning("rule_cache: get failed key=%s error=%s", self.key, e)
            cached = None
            redis_up = False
        if cached is not None:
            logger.debug("rule_cache: hit key=%s rules=%s", self.key, len(cached))
            return cached

        try:
            rules = self._store.fetch_active_rules()
        except SupabaseError as e:
            logger.error("rule_cache: read-through failed key=%s error=%s", self.key, e)
            return []

        # Redis just failed on get; skip the set
        if redis_up:
            self._write(rules)
        return rules

    def invalidate(self) -> None:
        if self.client is None:
            return
        try:
            self.client.delete(self.key)
        except redis.RedisError as e:
            logger.warning("rule_cache: invalidate failed key=%s error=%s", self.key, e)

    def _read(self) -> Optional[List[DiscountRule]]:
        if self.client is None:
            return None
        raw = self.client.get(self.key)
        if raw is None:
            return None
        try:
            return [DiscountRule.model_validate(row) for row in json.loads(raw)]
        except (ValueError, ValidationError) as e:
            logger.warning("rule_cache: dropping unreadable snapshot key=%s error=%s", self.key, e)
            return None

    def _write(self, rules: List[DiscountRule]) -> None:
        if self.client is None or self.ttl <= 0:
            return
        payload = json.dumps([rule.model_dump(mode="json") for rule in rules])
        try:
            self.client.setex(self.key, self.ttl, payload)
        except redis.RedisError as e:
            logger.warning("rule_cache: set failed key=%s error=%s", self.key, e)
