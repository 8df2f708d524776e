"""
projectintel/models/master_data.py

Read-only views of the master data registry (states and sectors).
"""

from datetime import datetime
from typing import FrozenSet, Optional, Tuple
from pydantic import BaseModel, ConfigDict


def name_key(value) -> str:
    """Comparison key for registry names: whitespace-collapsed and case-folded."""
    return " ".join(str(value).split()).casefold()


class StateRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    state_id: int
    name: str
    code: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class SectorRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    sector_id: int
    name: str
    is_active: bool = True
    created_at: Optional[datetime] = None


class RegistrySnapshot(BaseModel):
    """
    Point-in-time read of active reference data.
    
    Taken once per import batch. A state deactivated after the snapshot
    was taken stays valid for the rest of that batch.
    """
    model_config = ConfigDict(frozen=True)

    state_names: Tuple[str, ...] = ()
    sector_names: Tuple[str, ...] = ()
    taken_at: Optional[datetime] = None

    def _lookup(self) -> dict:
        return {name_key(name): name for name in self.state_names}

    def match_state(self, value: str) -> Optional[str]:
        """Return the registry spelling of `value` (case-insensitive), or None."""
        return self._lookup().get(name_key(value))

    @property
    def state_keys(self) -> FrozenSet[str]:
        return frozenset(self._lookup())
