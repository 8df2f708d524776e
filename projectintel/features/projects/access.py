"""
projectintel/features/projects/access.py

Access filter: applies a subscription's entitlement to project records
before they reach the subscriber.
"""

import logging
from typing import Any, Iterable, List

from projectintel.core.errors import AuthorizationDenied
from projectintel.features.entitlements.service import (
    can_access_sector,
    can_access_state,
    filter_data_by_subscription,
)


logger = logging.getLogger(__name__)


def filter_records(subscription: Any, records: Iterable[Any]) -> List[Any]:
    return filter_data_by_subscription(records, subscription)


def authorize_record(subscription: Any, record: Any) -> Any:
    """Return the record if covered, otherwise raise AuthorizationDenied."""
    state_ok = can_access_state(subscription, getattr(record, "state", None))
    sector_ok = can_access_sector(subscription, getattr(record, "sector", None))
    if state_ok and sector_ok:
        return record

    logger.warning(
        "access.denied",
        extra={
            "user_id": getattr(subscription, "user_id", None),
            "project_code": getattr(record, "project_code", None),
            "error_code": "forbidden",
        },
    )
    raise AuthorizationDenied("Access denied: this project is outside your subscription")
