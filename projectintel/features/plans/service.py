"""
projectintel/features/plans/service.py

Subscription plan catalog.

Handles:
- Plan seeding (one state, multi-state, pan-India)
- Plan lookup by id and by plan type
"""

from typing import List, Optional
from sqlalchemy import select, insert, update

from projectintel.core.database import get_db_session, subscription_plans
from projectintel.models.plan import PlanType, SubscriptionPlan
from projectintel.models.timestamps import as_utc


# Default plan configurations, keyed by plan name
DEFAULT_PLANS = {
    "One State Plan": {
        "description": "Access to one selected state",
        "plan_type": PlanType.PLAN_1,
        "features": ["Access to 1 state", "All sectors"],
        "limits": {"projects": 100, "downloads": 10},
        "duration_months": 12,
        "price": 5000,
    },
    "Multi-State Plan": {
        "description": "Access to multiple selected states",
        "plan_type": PlanType.PLAN_2,
        "features": ["Access to multiple states", "All sectors"],
        "limits": {"projects": -1, "downloads": -1},  # unlimited
        "duration_months": 12,
        "price": 10000,
    },
    "Pan India Plan": {
        "description": "Access to all states and sectors",
        "plan_type": PlanType.PLAN_3,
        "features": ["Pan India access", "All sectors", "Priority support"],
        "limits": {"projects": -1, "downloads": -1},
        "duration_months": 12,
        "price": 20000,
    },
}


def _plan_from_row(row) -> SubscriptionPlan:
    return SubscriptionPlan(
        plan_id=row.id,
        name=row.name,
        description=row.description,
        plan_type=PlanType(row.plan_type),
        features=list(row.features or []),
        limits=dict(row.limits or {}),
        duration_months=row.duration_months,
        price=row.price,
        is_active=bool(row.is_active),
        created_at=as_utc(row.created_at),
    )


def seed_plans() -> None:
    """
    Seed default plans into database (idempotent).
    
    Existing plans with the same name are updated in place, so plan ids
    referenced by subscriptions stay stable.
    """
    with get_db_session() as session:
        for name, config in DEFAULT_PLANS.items():
            values = dict(config, plan_type=config["plan_type"].value)
            existing = session.execute(
                select(subscription_plans).where(subscription_plans.c.name == name)
            ).first()

            if existing:
                session.execute(
                    update(subscription_plans)
                    .where(subscription_plans.c.id == existing.id)
                    .values(**values)
                )
            else:
                session.execute(insert(subscription_plans).values(name=name, **values))


def list_plans(active_only: bool = True) -> List[SubscriptionPlan]:
    query = select(subscription_plans).order_by(subscription_plans.c.price)
    if active_only:
        query = query.where(subscription_plans.c.is_active.is_(True))
    with get_db_session() as session:
        return [_plan_from_row(r) for r in session.execute(query).all()]


def get_plan(plan_id: int) -> Optional[SubscriptionPlan]:
    """Get plan by ID."""
    with get_db_session() as session:
        row = session.execute(
            select(subscription_plans).where(subscription_plans.c.id == plan_id)
        ).first()
        return _plan_from_row(row) if row else None


def get_plan_by_type(plan_type: PlanType) -> Optional[SubscriptionPlan]:
    """Get the first active plan of a given type."""
    with get_db_session() as session:
        row = session.execute(
            select(subscription_plans)
            .where(subscription_plans.c.plan_type == PlanType(plan_type).value)
            .where(subscription_plans.c.is_active.is_(True))
            .order_by(subscription_plans.c.id)
        ).first()
        return _plan_from_row(row) if row else None
