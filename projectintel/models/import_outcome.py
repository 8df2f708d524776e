"""
projectintel/models/import_outcome.py

Per-upload import report. Counts are exact; only the error list is
capped when rendered for transport.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ImportRowError(BaseModel):
    row: int
    project_code: Optional[str] = None
    reason: str


class ImportOutcome(BaseModel):
    source_month: Optional[str] = None
    total: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.inserted + self.updated

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def record_error(self, row: int, reason: str, project_code: Optional[str] = None) -> None:
        self.errors.append(ImportRowError(row=row, project_code=project_code, reason=reason))
        self.skipped += 1

    def to_response(self, max_errors: int = 50) -> Dict[str, Any]:
        return {
            "message": "Import completed",
            "summary": {
                "totalRows": self.total,
                "processed": self.processed,
                "inserted": self.inserted,
                "updated": self.updated,
                "skipped": self.skipped,
                "errors": self.error_count,
            },
            "errors": [
                {
                    "row": err.row,
                    "projectCode": err.project_code,
                    "reason": err.reason,
                }
                for err in self.errors[:max_errors]
            ],
        }
