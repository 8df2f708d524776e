"""
projectintel/features/master_data/registry.py

Read side of the master data registry.

The registry owns states and sectors; the entitlement and import code only
read from it: active-name snapshots and resolution of free-text names to
the registry's canonical spelling.
"""

from typing import Iterable, List, Sequence, Tuple
from sqlalchemy import select

from projectintel.core.database import get_db_session, state_master, sector_master
from projectintel.models.master_data import RegistrySnapshot, SectorRef, StateRef, name_key
from projectintel.models.timestamps import as_utc, utc_now


def state_from_row(row) -> StateRef:
    return StateRef(
        state_id=row.id,
        name=row.name,
        code=row.code,
        is_active=bool(row.is_active),
        created_at=as_utc(row.created_at),
    )


def sector_from_row(row) -> SectorRef:
    return SectorRef(
        sector_id=row.id,
        name=row.name,
        is_active=bool(row.is_active),
        created_at=as_utc(row.created_at),
    )


def _resolve(names: Sequence[str], active_names: Iterable[str]) -> Tuple[List[str], List[str]]:
    lookup = {name_key(n): n for n in active_names}
    resolved: List[str] = []
    unknown: List[str] = []
    for raw in names:
        match = lookup.get(name_key(raw))
        if match is None:
            unknown.append(raw)
        elif match not in resolved:
            resolved.append(match)
    return resolved, unknown


class SqlMasterDataRegistry:
    """Master data registry backed by the state_master / sector_master tables."""

    def active_states(self) -> List[StateRef]:
        with get_db_session() as session:
            rows = session.execute(
                select(state_master)
                .where(state_master.c.is_active.is_(True))
                .order_by(state_master.c.name)
            ).all()
            return [state_from_row(r) for r in rows]

    def active_sectors(self) -> List[SectorRef]:
        with get_db_session() as session:
            rows = session.execute(
                select(sector_master)
                .where(sector_master.c.is_active.is_(True))
                .order_by(sector_master.c.name)
            ).all()
            return [sector_from_row(r) for r in rows]

    def active_state_names(self) -> List[str]:
        return [s.name for s in self.active_states()]

    def active_sector_names(self) -> List[str]:
        return [s.name for s in self.active_sectors()]

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(
            state_names=tuple(self.active_state_names()),
            sector_names=tuple(self.active_sector_names()),
            taken_at=utc_now(),
        )

    def resolve_state_names(self, names: Sequence[str]) -> Tuple[List[str], List[str]]:
        """Return (canonical names, unknown inputs) against active states."""
        return _resolve(names, self.active_state_names())

    def resolve_sector_names(self, names: Sequence[str]) -> Tuple[List[str], List[str]]:
        return _resolve(names, self.active_sector_names())
