"""
FastAPI server for Lucky Discount.

Provides the storefront endpoints (check, claim), the admin rule management
endpoints and the lucky discount email function.

Usage:
    uvicorn lucky_discount.api.server:app --reload --port 8000
"""
import threading
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import redis
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lucky_discount import __version__
from lucky_discount.api.models import (
    CheckRequest,
    ClaimListResponse,
    ClaimRequest,
    ClaimResponse,
    HealthResponse,
    SetActiveRequest,
)
from lucky_discount.core.config import get_config
from lucky_discount.discount.cache import RuleCache, get_redis_client
from lucky_discount.discount.claims import ClaimRecorder
from lucky_discount.discount.models import DiscountRule, DiscountRuleInput, EligibilityResult
from lucky_discount.discount.store import ClaimStore, ProfileStore, RuleNotFoundError, RuleStore
from lucky_discount.notify.email import LuckyDiscountEmail, NotificationDeliveryError, ResendEmailClient
from lucky_discount.service import LuckyDiscountService
from lucky_discount.utils.logger import get_logger, set_level
from lucky_discount.utils.supabase_client import SupabaseClient, SupabaseError, get_supabase_client

logger = get_logger("api.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    set_level(config.log_level)
    logger.info(
        "Lucky Discount API starting (rules_cache_ttl=%ss, claim_validity=%sh)",
        config.rules_cache_ttl, config.claim_validity_hours,
    )
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Lucky Discount API",
    description="Login-time lucky number discounts",
    version=__version__,
    lifespan=lifespan,
)

# Enable CORS for the storefront
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SupabaseError)
async def supabase_error_handler(request: Request, exc: SupabaseError):
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": f"Store unavailable: {exc}"})


@app.exception_handler(RuleNotFoundError)
async def rule_not_found_handler(request: Request, exc: RuleNotFoundError):
    return JSONResponse(status_code=404, content={"error": str(exc)})


# Dependencies (overridden in tests)

# Sync endpoints run in the threadpool, so first use can race
_redis: Optional[redis.Redis] = None
_mailer: Optional[ResendEmailClient] = None
_clients_lock = threading.Lock()


def get_db() -> SupabaseClient:
    return get_supabase_client()


def get_redis() -> Optional[redis.Redis]:
    global _redis
    if _redis is None:
        with _clients_lock:
            if _redis is None:
                _redis = get_redis_client()
    return _redis


def get_mailer() -> ResendEmailClient:
    global _mailer
    if _mailer is None:
        with _clients_lock:
            if _mailer is None:
                _mailer = ResendEmailClient()
    return _mailer


def get_rule_store(db: SupabaseClient = Depends(get_db)) -> RuleStore:
    return RuleStore(db)


def get_rule_cache(
    store: RuleStore = Depends(get_rule_store),
    cache_client: Optional[redis.Redis] = Depends(get_redis),
) -> RuleCache:
    return RuleCache(store, cache_client)


def get_service(
    db: SupabaseClient = Depends(get_db),
    rules: RuleCache = Depends(get_rule_cache),
    mailer: ResendEmailClient = Depends(get_mailer),
) -> LuckyDiscountService:
    claims = ClaimStore(db)
    return LuckyDiscountService(
        rules=rules,
        recorder=ClaimRecorder(claims),
        profiles=ProfileStore(db),
        mailer=mailer,
        claims=claims,
    )


# API Endpoints

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="online",
        service="Lucky Discount API",
        version=__version__,
        config={
            "rules_cache_ttl": config.rules_cache_ttl,
            "claim_validity_hours": config.claim_validity_hours,
            "timezone": config.display_timezone,
        },
    )


@app.post("/lucky/check", response_model=EligibilityResult)
def lucky_check(request: CheckRequest, service: LuckyDiscountService = Depends(get_service)):
    """
    Check whether a login wins a lucky discount.

    The lucky number comes from login_at (minute + second on the store clock).
    Anonymous requests are never eligible and get an empty message.
    """
    login_at = request.login_at or datetime.now(timezone.utc)
    return service.check(request.user_id, login_at)


@app.post("/lucky/claim", response_model=ClaimResponse)
def lucky_claim(request: ClaimRequest, service: LuckyDiscountService = Depends(get_service)):
    """
    Claim a lucky discount won by an earlier check.

    404 when nothing was recorded (the login does not win that rule with that
    number, or the rule was deactivated meanwhile);
    502 when the claim was saved but its code could not be emailed.
    """
    try:
        outcome = service.claim(request.user_id, request.rule_id, request.lucky_number, request.login_at)
    except NotificationDeliveryError as e:
        content = {"error": str(e), "claim_saved": e.claim is not None}
        if e.claim is not None:
            content["claim"] = e.claim.model_dump(mode="json")
        return JSONResponse(status_code=502, content=content)

    if outcome.claim is None:
        raise HTTPException(status_code=404, detail="Failed to claim discount. Please try again.")
    return ClaimResponse(claim=outcome.claim, email_sent=outcome.email_sent)


@app.get("/lucky/claims/{user_id}", response_model=ClaimListResponse)
def lucky_claims(user_id: str, service: LuckyDiscountService = Depends(get_service)):
    return ClaimListResponse(user_id=user_id, claims=service.list_claims(user_id))


# Admin rule management

@app.get("/admin/lucky-discounts", response_model=List[DiscountRule])
def list_rules(store: RuleStore = Depends(get_rule_store)):
    return store.list_rules()


@app.post("/admin/lucky-discounts", response_model=DiscountRule, status_code=201)
def create_rule(data: DiscountRuleInput, store: RuleStore = Depends(get_rule_store),
                cache: RuleCache = Depends(get_rule_cache)):
    rule = store.create_rule(data)
    cache.invalidate()
    return rule


@app.get("/admin/lucky-discounts/{rule_id}", response_model=DiscountRule)
def get_rule(rule_id: str, store: RuleStore = Depends(get_rule_store)):
    return store.get_rule(rule_id)


@app.put("/admin/lucky-discounts/{rule_id}", response_model=DiscountRule)
def update_rule(rule_id: str, data: DiscountRuleInput, store: RuleStore = Depends(get_rule_store),
                cache: RuleCache = Depends(get_rule_cache)):
    rule = store.update_rule(rule_id, data)
    cache.invalidate()
    return rule


@app.post("/admin/lucky-discounts/{rule_id}/active", response_model=DiscountRule)
def set_rule_active(rule_id: str, request: SetActiveRequest, store: RuleStore = Depends(get_rule_store),
                    cache: RuleCache = Depends(get_rule_cache)):
    rule = store.set_active(rule_id, request.is_active)
    cache.invalidate()
    return rule


@app.delete("/admin/lucky-discounts/{rule_id}", status_code=204)
def delete_rule(rule_id: str, store: RuleStore = Depends(get_rule_store),
                cache: RuleCache = Depends(get_rule_cache)):
    store.delete_rule(rule_id)
    cache.invalidate()


# Email function

@app.post("/functions/send-lucky-discount-email")
def send_lucky_discount_email(payload: LuckyDiscountEmail, mailer: ResendEmailClient = Depends(get_mailer)):
    """Send the lucky discount email; returns the provider response."""
    logger.info(f"Sending lucky discount email to {payload.email}")
    try:
        return mailer.send(payload)
    except NotificationDeliveryError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
