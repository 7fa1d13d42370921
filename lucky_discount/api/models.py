"""
Pydantic models for the Lucky Discount API requests and responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from lucky_discount.discount.models import DiscountClaim


class CheckRequest(BaseModel):
    """Request model for the eligibility check."""
    user_id: Optional[str] = Field(default=None, description="Signed-in user (omit for anonymous visitors)")
    login_at: Optional[datetime] = Field(default=None, description="Login instant (defaults to now)")


class ClaimRequest(BaseModel):
    """Request model for claiming a lucky discount."""
    user_id: str = Field(description="Signed-in user claiming the discount")
    rule_id: str = Field(description="Id of the rule returned by the eligibility check")
    lucky_number: int = Field(ge=0, description="Lucky number returned by the eligibility check")
    login_at: datetime = Field(description="Login instant used for the eligibility check")


class ClaimResponse(BaseModel):
    """Response model for a recorded claim."""
    claim: DiscountClaim
    email_sent: bool = Field(description="Whether the code was emailed to the customer")


class ClaimListResponse(BaseModel):
    user_id: str
    claims: List[DiscountClaim]


class SetActiveRequest(BaseModel):
    is_active: bool


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any]
