"""
projectintel/models/subscription.py

UserSubscription links a user to a plan with concrete geography and
sector grants. A user has at most one active subscription; re-assignment
supersedes the previous one instead of deleting it.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from projectintel.models.plan import PlanType


class UserSubscription(BaseModel):
    model_config = ConfigDict(frozen=True)
    
    subscription_id: Optional[int] = None
    user_id: str
    plan_id: int
    plan_name: Optional[str] = None
    plan_type: PlanType
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    payment_status: str = "pending"
    allowed_states: Tuple[str, ...] = ()
    allowed_sectors: Tuple[str, ...] = ()
    is_pan_india: bool = False


class Entitlement(BaseModel):
    """
    Entitlement input shape: the resolved grants of a subscription.
    
    Anything exposing is_pan_india/allowed_states/allowed_sectors can be
    checked; this model exists for callers that only have the grants.
    """
    model_config = ConfigDict(frozen=True)
    
    is_pan_india: bool = False
    allowed_states: Tuple[str, ...] = ()
    allowed_sectors: Tuple[str, ...] = ()


class SubscriptionAssignment(BaseModel):
    """Admin request to assign a plan to a user."""
    user_id: str
    plan_id: int
    allowed_states: List[str] = []
    # None grants every active sector; an empty list grants none
    allowed_sectors: Optional[List[str]] = None
    is_pan_india: bool = False
    payment_status: str = "pending"
    start_date: Optional[datetime] = None
