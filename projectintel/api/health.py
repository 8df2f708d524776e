"""
Liveness and readiness endpoints.

/readyz is only green once the database answers, every table exists and
the plan catalog has been seeded (assignment is impossible without it).
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, inspect, select

from projectintel.core.database import check_connection, get_db_session, get_engine, metadata, subscription_plans

logger = logging.getLogger("projectintel")

root_router = APIRouter(tags=["health"])


def _not_ready(**reason):
    logger.warning("readyz.not_ready", extra=reason)
    return JSONResponse(status_code=503, content={"ready": False, **reason})


@root_router.get("/healthz")
def healthz():
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    if not check_connection():
        return _not_ready(reason="database unavailable")

    present = set(inspect(get_engine()).get_table_names())
    missing = sorted(name for name in metadata.tables if name not in present)
    if missing:
        return _not_ready(reason="missing tables", missing_tables=missing)

    with get_db_session() as session:
        plan_count = session.execute(select(func.count()).select_from(subscription_plans)).scalar()
    if not plan_count:
        return _not_ready(reason="plans not seeded")

    return {"ready": True, "plans": plan_count}
