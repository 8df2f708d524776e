"""
projectintel/models/plan.py

Subscription plan model.

Plans describe a geography tier (one state, several states, pan-India)
plus a duration and a price. Price is informational only; no payment
workflow hangs off it.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PlanType(str, Enum):
    """Geography tier of a plan."""
    PLAN_1 = "PLAN_1"  # exactly one state
    PLAN_2 = "PLAN_2"  # one or more states
    PLAN_3 = "PLAN_3"  # pan-India


class SubscriptionPlan(BaseModel):
    """
    SubscriptionPlan represents a purchasable tier.
    
    `limits` are soft counters (e.g. projects, downloads; -1 = unlimited).
    They are displayed to subscribers but never enforced here.
    """
    model_config = ConfigDict(frozen=True)
    
    plan_id: int
    name: str
    description: Optional[str] = None
    plan_type: PlanType
    features: List[str] = Field(default_factory=list)
    limits: Dict[str, int] = Field(default_factory=dict)
    duration_months: int
    price: int
    is_active: bool = True
    created_at: Optional[datetime] = None
