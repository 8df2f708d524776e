"""
Request identity for the API.

Authentication itself (JWT issuance, passwords) lives outside this
service. Here:
- administrators present the shared X-Admin-Key
- subscriber requests carry the upstream-authenticated X-User-Id
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from projectintel.core.config import settings
from projectintel.core.errors import AuthenticationError, AuthorizationDenied

logger = logging.getLogger(__name__)


@dataclass
class AdminActor:
    """Represents an authenticated admin actor."""
    actor_id: str  # "admin_key:<hash prefix>"
    auth_mechanism: str = "x_admin_key"


def require_admin(x_admin_key: Optional[str] = Header(None)) -> AdminActor:
    """FastAPI dependency: require a valid X-Admin-Key header."""
    expected = settings.ADMIN_KEY
    provided = (x_admin_key or "").strip()
    if not expected or not provided or not hmac.compare_digest(provided, expected):
        logger.warning("admin.auth_failed", extra={"error_code": "forbidden"})
        raise AuthorizationDenied("Invalid or missing X-Admin-Key header")
    key_hash = hashlib.sha256(provided.encode()).hexdigest()[:16]
    return AdminActor(actor_id=f"admin_key:{key_hash}")


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """FastAPI dependency: the subscriber making the request."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("Missing X-User-Id header")
    return user_id
