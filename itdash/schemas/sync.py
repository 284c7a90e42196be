"""
Sync job response schemas
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from itdash.database.upsert import UpsertResult

class SyncDetails(BaseModel):
    """Per-table outcome of a sync job"""
    total: int = Field(..., description="Items the job tried to upsert")
    successful: int = Field(..., description="Items inserted or updated")
    failed: int = Field(..., description="Items skipped because of an error")
    inserted: int = Field(0, description="New rows")
    updated: int = Field(0, description="Existing rows updated")
    errors: List[str] = Field(default_factory=list, description="One message per failed item")
    processing_errors: List[str] = Field(default_factory=list, description="Problems found before persisting")

    @classmethod
    def from_result(cls, result: UpsertResult, processing_errors: Optional[List[str]] = None) -> "SyncDetails":
        return cls(
            total=result.total,
            successful=result.successful,
            failed=result.failed,
            inserted=result.inserted,
            updated=result.updated,
            errors=result.errors,
            processing_errors=processing_errors or [],
        )

class SyncResponse(BaseModel):
    """Envelope returned by every sync endpoint"""
    success: bool
    message: str
    details: Dict[str, SyncDetails]

    @classmethod
    def build(cls, message: str, **details: SyncDetails) -> "SyncResponse":
        return cls(
            success=all(detail.failed == 0 for detail in details.values()),
            message=message,
            details=details,
        )

class SyncFailure(BaseModel):
    """Body of a sync that failed as a whole"""
    error: str
    message: str
