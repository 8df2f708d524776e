"""
projectintel/features/entitlements/service.py

Plan entitlement rules.

Handles:
- Assignment-time validation of geography grants per plan type
- State / sector access decisions
- Filtering record sets down to a subscription's entitlement

Everything here is pure: no I/O, no shared state, safe to call from
concurrent requests. A subscription is anything exposing `is_pan_india`,
`allowed_states` and `allowed_sectors`; a record is anything exposing
`state` and `sector` (attribute or mapping key).
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, FrozenSet

from projectintel.core.errors import ValidationError, AuthorizationDenied
from projectintel.models.master_data import name_key
from projectintel.models.plan import PlanType


logger = logging.getLogger(__name__)


def _plan_type(plan_type: Any) -> PlanType:
    try:
        return PlanType(plan_type)
    except ValueError:
        raise ValidationError("Invalid plan type")


def validate_subscription_rules(plan_type: Any, allowed_states: Sequence[str], is_pan_india: bool) -> None:
    """
    Enforce the geography rules of a plan type.
    
    - PLAN_1: exactly one state, not pan-India
    - PLAN_2: at least one state
    - PLAN_3: pan-India
    
    Raises:
        ValidationError: if the grants do not fit the plan type, or the
            plan type is unknown
    """
    ptype = _plan_type(plan_type)
    states = list(allowed_states or [])

    if ptype is PlanType.PLAN_1:
        if len(states) != 1:
            raise ValidationError("PLAN_1 requires exactly 1 state")
        if is_pan_india:
            raise ValidationError("PLAN_1 cannot be pan-India")
    elif ptype is PlanType.PLAN_2:
        if len(states) < 1:
            raise ValidationError("PLAN_2 requires at least 1 state")
    elif ptype is PlanType.PLAN_3:
        if not is_pan_india:
            raise ValidationError("PLAN_3 requires isPanIndia to be true")


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _keys(values: Optional[Iterable[Any]]) -> FrozenSet[str]:
    return frozenset(name_key(v) for v in (values or ()) if v is not None)


def get_allowed_states(subscription: Any) -> Optional[List[str]]:
    """Granted states, or None when the subscription covers every state."""
    if _get(subscription, "is_pan_india", False):
        return None
    return list(_get(subscription, "allowed_states", ()) or ())


def get_allowed_sectors(subscription: Any) -> List[str]:
    return list(_get(subscription, "allowed_sectors", ()) or ())


def can_access_state(subscription: Any, state: Optional[str]) -> bool:
    if _get(subscription, "is_pan_india", False):
        return True
    if state is None:
        return False
    return name_key(state) in _keys(_get(subscription, "allowed_states"))


def can_access_sector(subscription: Any, sector: Optional[str]) -> bool:
    # No sector wildcard: an empty grant list denies every sector, PLAN_3 included
    if sector is None:
        return False
    return name_key(sector) in _keys(_get(subscription, "allowed_sectors"))


def filter_data_by_subscription(records: Iterable[Any], subscription: Any) -> List[Any]:
    """Keep the records whose state and sector are both covered, in order."""
    pan_india = bool(_get(subscription, "is_pan_india", False))
    state_keys = _keys(_get(subscription, "allowed_states"))
    sector_keys = _keys(_get(subscription, "allowed_sectors"))
    if not sector_keys:
        return []

    allowed = []
    for record in records:
        sector = _get(record, "sector")
        if sector is None or name_key(sector) not in sector_keys:
            continue
        if not pan_india:
            state = _get(record, "state")
            if state is None or name_key(state) not in state_keys:
                continue
        allowed.append(record)
    return allowed


def require_access(
    subscription: Any,
    required_states: Sequence[str] = (),
    required_sectors: Sequence[str] = (),
) -> None:
    """
    Require every listed state and sector to be covered.
    
    No requirements means access is granted.
    
    Raises:
        AuthorizationDenied: with code insufficient_state_access or
            insufficient_sector_access
    """
    if required_states and not all(can_access_state(subscription, s) for s in required_states):
        logger.warning(
            "access.denied",
            extra={"user_id": _get(subscription, "user_id"), "error_code": "insufficient_state_access"},
        )
        raise AuthorizationDenied(
            "Access denied: Insufficient state permissions",
            code="insufficient_state_access",
        )
    if required_sectors and not all(can_access_sector(subscription, s) for s in required_sectors):
        logger.warning(
            "access.denied",
            extra={"user_id": _get(subscription, "user_id"), "error_code": "insufficient_sector_access"},
        )
        raise AuthorizationDenied(
            "Access denied: Insufficient sector permissions",
            code="insufficient_sector_access",
        )
