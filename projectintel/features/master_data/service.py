"""
projectintel/features/master_data/service.py

Administration of the master data registry (states and sectors).

Names are unique case-insensitively; records are toggled, never deleted.
"""

import logging
from typing import List, Optional
from sqlalchemy import select, insert, update, func

from projectintel.core.database import get_db_session, state_master, sector_master
from projectintel.core.errors import ConflictError, NotFoundError, ValidationError
from projectintel.features.master_data.registry import sector_from_row, state_from_row
from projectintel.models.master_data import SectorRef, StateRef, name_key


logger = logging.getLogger(__name__)


DEFAULT_STATES = [
    ("Andhra Pradesh", "AP"),
    ("Arunachal Pradesh", "AR"),
    ("Assam", "AS"),
    ("Bihar", "BR"),
    ("Chhattisgarh", "CT"),
    ("Goa", "GA"),
    ("Gujarat", "GJ"),
    ("Haryana", "HR"),
    ("Himachal Pradesh", "HP"),
    ("Jharkhand", "JH"),
    ("Karnataka", "KA"),
    ("Kerala", "KL"),
    ("Madhya Pradesh", "MP"),
    ("Maharashtra", "MH"),
    ("Manipur", "MN"),
    ("Meghalaya", "ML"),
    ("Mizoram", "MZ"),
    ("Nagaland", "NL"),
    ("Odisha", "OD"),
    ("Punjab", "PB"),
    ("Rajasthan", "RJ"),
    ("Sikkim", "SK"),
    ("Tamil Nadu", "TN"),
    ("Telangana", "TG"),
    ("Tripura", "TR"),
    ("Uttar Pradesh", "UP"),
    ("Uttarakhand", "UT"),
    ("West Bengal", "WB"),
]

# Must match the sector names produced by the import classifier
DEFAULT_SECTORS = [
    "Industrial",
    "Residential & Commercial",
    "Government",
]


def _clean_name(name: Optional[str], kind: str) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValidationError(f"{kind} name is required")
    return cleaned


def create_state(name: str, code: Optional[str] = None) -> StateRef:
    """
    Register a new state.
    
    Raises:
        ValidationError: if the name is blank
        ConflictError: if a state with the same name (any casing) exists
    """
    cleaned = _clean_name(name, "State")
    with get_db_session() as session:
        existing = session.execute(
            select(state_master).where(state_master.c.name_key == name_key(cleaned))
        ).first()
        if existing:
            raise ConflictError("State with this name already exists")
        result = session.execute(
            insert(state_master).values(
                name=cleaned,
                name_key=name_key(cleaned),
                code=code.strip().upper() if code and code.strip() else None,
                is_active=True,
            )
        )
        row = session.execute(
            select(state_master).where(state_master.c.id == result.inserted_primary_key[0])
        ).first()
        logger.info("master_data.state_created", extra={"event_type": "state_created"})
        return state_from_row(row)


def create_sector(name: str) -> SectorRef:
    cleaned = _clean_name(name, "Sector")
    with get_db_session() as session:
        existing = session.execute(
            select(sector_master).where(sector_master.c.name_key == name_key(cleaned))
        ).first()
        if existing:
            raise ConflictError("Sector with this name already exists")
        result = session.execute(
            insert(sector_master).values(name=cleaned, name_key=name_key(cleaned), is_active=True)
        )
        row = session.execute(
            select(sector_master).where(sector_master.c.id == result.inserted_primary_key[0])
        ).first()
        logger.info("master_data.sector_created", extra={"event_type": "sector_created"})
        return sector_from_row(row)


def update_state(state_id: int, name: Optional[str] = None, code: Optional[str] = None) -> StateRef:
    """
    Rename a state and/or change its code. Blank arguments are left as-is.

    Existing subscriptions and project records keep the name they were
    written with.

    Raises:
        NotFoundError: if the state does not exist
        ConflictError: if another state already uses the name (any casing)
    """
    with get_db_session() as session:
        row = session.execute(select(state_master).where(state_master.c.id == state_id)).first()
        if not row:
            raise NotFoundError("State not found")

        values = {}
        if name and name.strip():
            cleaned = _clean_name(name, "State")
            clash = session.execute(
                select(state_master.c.id)
                .where(state_master.c.name_key == name_key(cleaned))
                .where(state_master.c.id != state_id)
            ).first()
            if clash:
                raise ConflictError("State with this name already exists")
            values.update(name=cleaned, name_key=name_key(cleaned))
        if code and code.strip():
            values["code"] = code.strip().upper()

        if values:
            old_name = row.name
            session.execute(
                update(state_master)
                .where(state_master.c.id == state_id)
                .values(**values, updated_at=func.now())
            )
            row = session.execute(select(state_master).where(state_master.c.id == state_id)).first()
            logger.info(
                "master_data.state_updated",
                extra={"event_type": "state_updated", "old_name": old_name, "new_name": row.name},
            )
        return state_from_row(row)


def update_sector(sector_id: int, name: Optional[str] = None) -> SectorRef:
    with get_db_session() as session:
        row = session.execute(select(sector_master).where(sector_master.c.id == sector_id)).first()
        if not row:
            raise NotFoundError("Sector not found")
        if not (name and name.strip()):
            return sector_from_row(row)

        cleaned = _clean_name(name, "Sector")
        clash = session.execute(
            select(sector_master.c.id)
            .where(sector_master.c.name_key == name_key(cleaned))
            .where(sector_master.c.id != sector_id)
        ).first()
        if clash:
            raise ConflictError("Sector with this name already exists")
        session.execute(
            update(sector_master)
            .where(sector_master.c.id == sector_id)
            .values(name=cleaned, name_key=name_key(cleaned), updated_at=func.now())
        )
        row = session.execute(select(sector_master).where(sector_master.c.id == sector_id)).first()
        logger.info("master_data.sector_updated", extra={"event_type": "sector_updated"})
        return sector_from_row(row)


def list_states(is_active: Optional[bool] = None) -> List[StateRef]:
    query = select(state_master).order_by(state_master.c.name)
    if is_active is not None:
        query = query.where(state_master.c.is_active.is_(is_active))
    with get_db_session() as session:
        return [state_from_row(r) for r in session.execute(query).all()]


def list_sectors(is_active: Optional[bool] = None) -> List[SectorRef]:
    query = select(sector_master).order_by(sector_master.c.name)
    if is_active is not None:
        query = query.where(sector_master.c.is_active.is_(is_active))
    with get_db_session() as session:
        return [sector_from_row(r) for r in session.execute(query).all()]


def toggle_state(state_id: int) -> StateRef:
    """Flip a state's active flag."""
    with get_db_session() as session:
        row = session.execute(select(state_master).where(state_master.c.id == state_id)).first()
        if not row:
            raise NotFoundError("State not found")
        session.execute(
            update(state_master)
            .where(state_master.c.id == state_id)
            .values(is_active=not row.is_active, updated_at=func.now())
        )
        row = session.execute(select(state_master).where(state_master.c.id == state_id)).first()
        logger.info("master_data.state_toggled", extra={"event_type": "state_toggled"})
        return state_from_row(row)


def toggle_sector(sector_id: int) -> SectorRef:
    with get_db_session() as session:
        row = session.execute(select(sector_master).where(sector_master.c.id == sector_id)).first()
        if not row:
            raise NotFoundError("Sector not found")
        session.execute(
            update(sector_master)
            .where(sector_master.c.id == sector_id)
            .values(is_active=not row.is_active, updated_at=func.now())
        )
        row = session.execute(select(sector_master).where(sector_master.c.id == sector_id)).first()
        logger.info("master_data.sector_toggled", extra={"event_type": "sector_toggled"})
        return sector_from_row(row)


def seed_master_data() -> None:
    """
    Seed default states and sectors (idempotent).
    
    Skips entirely when either table already holds data, so admin edits
    are never overwritten.
    """
    with get_db_session() as session:
        state_count = session.execute(select(func.count()).select_from(state_master)).scalar()
        sector_count = session.execute(select(func.count()).select_from(sector_master)).scalar()
        if state_count or sector_count:
            logger.info("master_data.seed_skipped")
            return

        for name, code in DEFAULT_STATES:
            session.execute(
                insert(state_master).values(name=name, name_key=name_key(name), code=code, is_active=True)
            )
        for name in DEFAULT_SECTORS:
            session.execute(
                insert(sector_master).values(name=name, name_key=name_key(name), is_active=True)
            )
