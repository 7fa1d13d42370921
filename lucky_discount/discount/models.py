"""
Pydantic models for lucky discount rules, eligibility results and claims.

Field names follow the hosted table columns so rows validate directly.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def normalize_clock(value: Optional[str]) -> Optional[str]:
    """Return an ``HH:MM:SS`` string; ``HH:MM`` gains ``:00``, blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not _CLOCK_RE.match(value):
        raise ValueError(f"time must be HH:MM:SS, got {value!r}")
    return value if len(value) == 8 else f"{value}:00"


def parse_lucky_numbers(text: str) -> List[int]:
    """
    Parse the admin form's comma-separated lucky numbers.

    Entries that are not integers are dropped: ``"7, 21, x"`` -> ``[7, 21]``.
    """
    numbers = []
    for part in text.split(","):
        part = part.strip()
        try:
            numbers.append(int(part))
        except ValueError:
            continue
    return numbers


class _RuleFields(BaseModel):
    """Fields and checks shared by stored rules and admin input."""
    name: str
    description: Optional[str] = None
    lucky_numbers: List[int] = Field(default_factory=list)
    login_time_start: Optional[str] = None
    login_time_end: Optional[str] = None
    discount_percent: int = Field(default=10, ge=0, le=100)
    discount_code: Optional[str] = None
    min_order_value: float = Field(default=0, ge=0)
    max_discount_amount: Optional[float] = Field(default=None, ge=0)
    is_active: bool = True

    @field_validator("lucky_numbers")
    @classmethod
    def _non_negative(cls, numbers: List[int]) -> List[int]:
        if any(n < 0 for n in numbers):
            raise ValueError("lucky numbers must be non-negative")
        return numbers

    @field_validator("login_time_start", "login_time_end", mode="before")
    @classmethod
    def _clock(cls, value):
        return normalize_clock(value)

    @field_validator("description", "discount_code", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_window(self) -> bool:
        return self.login_time_start is not None and self.login_time_end is not None


class DiscountRule(_RuleFields):
    """
    An administrator-configured lucky number discount (one table row).

    The table allows one window bound without the other; such a row has no
    window at all.
    """
    id: str
    created_at: Optional[datetime] = None


class DiscountRuleInput(_RuleFields):
    """Admin create/update payload. Lucky numbers may arrive as form text."""

    @model_validator(mode="after")
    def _window_pair(self):
        if (self.login_time_start is None) != (self.login_time_end is None):
            raise ValueError("login_time_start and login_time_end must be set together")
        return self

    @field_validator("lucky_numbers", mode="before")
    @classmethod
    def _from_text(cls, value):
        if isinstance(value, str):
            return parse_lucky_numbers(value)
        return value

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class EligibilityResult(BaseModel):
    """Outcome of one eligibility check; never persisted."""
    is_eligible: bool
    matched_rule: Optional[DiscountRule] = None
    lucky_number: Optional[int] = None
    message: str = ""

    @model_validator(mode="after")
    def _eligible_iff_matched(self):
        if self.is_eligible != (self.matched_rule is not None):
            raise ValueError("is_eligible must be true exactly when matched_rule is set")
        return self


class DiscountClaim(BaseModel):
    """A recorded lucky discount claim (one table row)."""
    id: str
    user_id: str
    discount_id: str
    lucky_number: int
    login_time: str
    discount_code: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
