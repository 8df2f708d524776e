"""
projectintel/features/subscriptions/service.py

Subscription assignment and lookup.

Handles:
- Assignment with plan-rule and registry validation (all-or-nothing)
- Superseding the previous active subscription
- Active-subscription lookup and expiry
- Subscriber-facing summary with remaining time and warnings
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import select, insert, update, func

from projectintel.core.config import settings
from projectintel.core.database import get_db_session, user_subscriptions, subscription_plans
from projectintel.core.errors import NotFoundError, ReferentialError, SubscriptionRequiredError, ValidationError
from projectintel.core.logging import log_event
from projectintel.features.entitlements.expiry import (
    RENEWAL_WARNING,
    add_months,
    format_remaining_time,
    get_expiry_status,
)
from projectintel.features.entitlements.service import validate_subscription_rules
from projectintel.features.master_data.registry import SqlMasterDataRegistry
from projectintel.features.plans.service import get_plan
from projectintel.models.master_data import name_key
from projectintel.models.plan import PlanType
from projectintel.models.subscription import SubscriptionAssignment, UserSubscription
from projectintel.models.timestamps import as_utc, utc_now


logger = logging.getLogger(__name__)

SUBSCRIPTION_REQUIRED_MESSAGE = "Active subscription required. Please contact admin to renew."


def _clean_grants(values: Optional[Sequence[str]]) -> List[str]:
    """Trim grant names and drop duplicates that differ only in case or spacing."""
    cleaned: List[str] = []
    seen = set()
    for value in values or []:
        if value is None:
            continue
        text = " ".join(str(value).split())
        if text and name_key(text) not in seen:
            seen.add(name_key(text))
            cleaned.append(text)
    return cleaned


def _subscription_from_row(row) -> UserSubscription:
    return UserSubscription(
        subscription_id=row.id,
        user_id=row.user_id,
        plan_id=row.plan_id,
        plan_name=row.plan_name,
        plan_type=PlanType(row.plan_type),
        start_date=as_utc(row.start_date),
        end_date=as_utc(row.end_date),
        is_active=bool(row.is_active),
        payment_status=row.payment_status,
        allowed_states=tuple(row.allowed_states or ()),
        allowed_sectors=tuple(row.allowed_sectors or ()),
        is_pan_india=bool(row.is_pan_india),
    )


def _subscriptions_query():
    return (
        select(
            user_subscriptions,
            subscription_plans.c.name.label("plan_name"),
            subscription_plans.c.plan_type.label("plan_type"),
        )
        .join(subscription_plans, subscription_plans.c.id == user_subscriptions.c.plan_id)
    )


def assign_subscription(
    assignment: SubscriptionAssignment,
    *,
    registry: Optional[Any] = None,
    now: Optional[datetime] = None,
) -> UserSubscription:
    """
    Assign a plan to a user, superseding any active subscription.
    
    Validation happens before any write; a rejected assignment leaves the
    user's current subscription untouched.
    
    Raises:
        NotFoundError: if the plan does not exist
        ValidationError: if the grants break the plan type's rules
        ReferentialError: if a granted state or sector is not an active
            registry entry
    """
    reg = registry or SqlMasterDataRegistry()
    plan = get_plan(assignment.plan_id)
    if not plan:
        raise NotFoundError(f"Plan {assignment.plan_id} not found")

    states = _clean_grants(assignment.allowed_states)
    if assignment.allowed_sectors is None:
        # Omitted sector grants mean every active sector
        sectors = reg.active_sector_names()
    else:
        sectors = _clean_grants(assignment.allowed_sectors)

    try:
        validate_subscription_rules(plan.plan_type, states, assignment.is_pan_india)
    except ValidationError as exc:
        log_event(
            "warning",
            "subscription.rejected",
            user_id=assignment.user_id,
            event_type="subscription.rejected",
            error_code=exc.code,
            extra={"reason": exc.message, "plan_type": plan.plan_type.value},
        )
        raise

    if assignment.is_pan_india:
        # Geography grants are irrelevant for pan-India access
        states = []

    resolved_states, unknown_states = reg.resolve_state_names(states)
    if unknown_states:
        raise ReferentialError(
            f"Unknown or inactive state(s): {', '.join(unknown_states)}"
        )
    resolved_sectors, unknown_sectors = reg.resolve_sector_names(sectors)
    if unknown_sectors:
        raise ReferentialError(
            f"Unknown or inactive sector(s): {', '.join(unknown_sectors)}"
        )
    if not resolved_sectors:
        logger.warning(
            "subscription.no_sectors",
            extra={"user_id": assignment.user_id, "event_type": "subscription.no_sectors"},
        )

    start = as_utc(assignment.start_date) or as_utc(now) or utc_now()
    end = add_months(start, plan.duration_months)

    with get_db_session() as session:
        session.execute(
            update(user_subscriptions)
            .where(user_subscriptions.c.user_id == assignment.user_id)
            .where(user_subscriptions.c.is_active.is_(True))
            .values(is_active=False, updated_at=func.now())
        )
        result = session.execute(
            insert(user_subscriptions).values(
                user_id=assignment.user_id,
                plan_id=plan.plan_id,
                start_date=start,
                end_date=end,
                is_active=True,
                payment_status=assignment.payment_status,
                allowed_states=resolved_states,
                allowed_sectors=resolved_sectors,
                is_pan_india=assignment.is_pan_india,
            )
        )
        subscription_id = result.inserted_primary_key[0]

    log_event(
        "info",
        "subscription.assigned",
        user_id=assignment.user_id,
        event_type="subscription.assigned",
        extra={"plan_type": plan.plan_type.value, "subscription_id": subscription_id},
    )

    return UserSubscription(
        subscription_id=subscription_id,
        user_id=assignment.user_id,
        plan_id=plan.plan_id,
        plan_name=plan.name,
        plan_type=plan.plan_type,
        start_date=start,
        end_date=end,
        is_active=True,
        payment_status=assignment.payment_status,
        allowed_states=tuple(resolved_states),
        allowed_sectors=tuple(resolved_sectors),
        is_pan_india=assignment.is_pan_india,
    )


def get_active_subscription(user_id: str, now: Optional[datetime] = None) -> Optional[UserSubscription]:
    """Return the user's active, unexpired subscription (or None)."""
    current = as_utc(now) or utc_now()
    with get_db_session() as session:
        rows = session.execute(
            _subscriptions_query()
            .where(user_subscriptions.c.user_id == user_id)
            .where(user_subscriptions.c.is_active.is_(True))
            .order_by(user_subscriptions.c.end_date.desc())
        ).all()
    for row in rows:
        subscription = _subscription_from_row(row)
        if subscription.end_date >= current:
            return subscription
    return None


def require_active_subscription(user_id: str, now: Optional[datetime] = None) -> UserSubscription:
    subscription = get_active_subscription(user_id, now)
    if subscription is None:
        raise SubscriptionRequiredError(SUBSCRIPTION_REQUIRED_MESSAGE)
    return subscription


def list_subscription_history(user_id: str) -> List[UserSubscription]:
    """All subscriptions of a user, newest first (superseded ones included)."""
    with get_db_session() as session:
        rows = session.execute(
            _subscriptions_query()
            .where(user_subscriptions.c.user_id == user_id)
            .order_by(user_subscriptions.c.id.desc())
        ).all()
    return [_subscription_from_row(r) for r in rows]


def expire_subscriptions(now: Optional[datetime] = None) -> int:
    """Deactivate every active subscription whose end date has passed."""
    current = as_utc(now) or utc_now()
    expired = 0
    with get_db_session() as session:
        rows = session.execute(
            select(user_subscriptions.c.id, user_subscriptions.c.end_date)
            .where(user_subscriptions.c.is_active.is_(True))
        ).all()
        for row in rows:
            if as_utc(row.end_date) < current:
                session.execute(
                    update(user_subscriptions)
                    .where(user_subscriptions.c.id == row.id)
                    .values(is_active=False, updated_at=func.now())
                )
                expired += 1
    if expired:
        logger.info("subscription.expired", extra={"event_type": "subscription.expired", "count": expired})
    return expired


def summarize_subscription(subscription: UserSubscription, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Subscriber-facing summary of plan, grants and remaining time."""
    current = as_utc(now) or utc_now()
    window = settings.EXPIRY_WARNING_DAYS
    status = get_expiry_status(subscription.end_date, current, window)
    remaining = format_remaining_time(subscription.end_date, current, window)

    expiry_notice = None
    if not status.is_expired and subscription.end_date <= current + timedelta(days=settings.SUBSCRIPTION_WARNING_DAYS):
        expiry_notice = f"Your subscription expires on {subscription.end_date.strftime('%a %b %d %Y')}"

    return {
        "planName": subscription.plan_name,
        "planType": subscription.plan_type.value,
        "startDate": subscription.start_date.isoformat(),
        "endDate": subscription.end_date.isoformat(),
        "allowedStates": list(subscription.allowed_states),
        "allowedSectors": list(subscription.allowed_sectors),
        "isPanIndia": subscription.is_pan_india,
        "paymentStatus": subscription.payment_status,
        "expiryStatus": status.status.value,
        "isExpired": status.is_expired,
        "isExpiring": status.is_expiring,
        "daysRemaining": status.days_remaining,
        "monthsRemaining": status.months_remaining,
        "remainingTimeDisplay": remaining.text,
        "remainingTimeValue": remaining.value,
        "remainingTimeUnit": remaining.unit,
        "warningMessage": RENEWAL_WARNING if status.is_expiring else None,
        "expiryNotice": expiry_notice,
    }
