"""
projectintel/models/project.py

Canonical project master record.

Identity is project_code: an upload either inserts a new record or
overwrites the existing one with the same code, never duplicates it.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class ProjectRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_code: Optional[str] = None
    project_title: Optional[str] = None
    industry_raw: Optional[str] = None
    sector: str
    project_value: Optional[str] = None
    status: Optional[str] = None
    product: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[str] = None
    place_of_work: Optional[str] = None
    project_details: Optional[str] = None
    contact_details: Optional[str] = None
    contractor: Optional[str] = None
    constructor: Optional[str] = None
    architect: Optional[str] = None
    updated_date: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    source_month: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_values(self) -> Dict[str, Any]:
        """Column values for a full-field write (timestamps excluded)."""
        return self.model_dump(exclude={"created_at", "updated_at"})
