"""Pydantic models for establishments, inspection rows and aggregated inspections.

Field names follow the snake_case columns of the King County food
inspections dataset, so API rows validate straight into ``InspectionRow``.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EstablishmentIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    program_identifier: str = ""
    name: str = ""
    city: str = ""

    @field_validator("program_identifier", "name", "city", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return "" if value is None else value


class InspectionRow(BaseModel):
    """One violation-level row of an inspection visit."""

    model_config = ConfigDict(extra="ignore")

    program_identifier: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    inspection_business_name: Optional[str] = None
    inspection_type: Optional[str] = None
    inspection_score: Optional[str] = None
    inspection_result: Optional[str] = None
    inspection_closed_business: bool = False
    inspection_serial_num: Optional[str] = None
    inspection_date: Optional[datetime] = None
    violation_type: Optional[str] = None
    violation_description: Optional[str] = None
    violation_points: Optional[str] = None
    # Assigned by assign_violation_ids, never read from the API.
    id: int = 0


class Violation(BaseModel):
    type: Optional[str] = None
    description: Optional[str] = None
    points: Optional[str] = None


class AggregatedInspection(BaseModel):
    """An inspection visit with its violation rows collapsed into ``violations``."""

    program_identifier: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    inspection_business_name: Optional[str] = None
    inspection_type: Optional[str] = None
    inspection_score: Optional[str] = None
    inspection_result: Optional[str] = None
    inspection_closed_business: bool = False
    inspection_serial_num: Optional[str] = None
    inspection_date: Optional[datetime] = None
    violations: list[Violation] = Field(default_factory=list)


class InspectionQuery(BaseModel):
    """Request descriptor: the echoed search parameters plus the final query URL."""

    program_identifier: str = ""
    city: str = ""
    start_date: str = ""
    where: str
    url: str


class FetchFailure(BaseModel):
    program_identifier: str
    city: str
    error: str
    detail: str = ""


class BulkFetchReport(BaseModel):
    rows: list[InspectionRow] = Field(default_factory=list)
    failures: list[FetchFailure] = Field(default_factory=list)
    attempted: int = 0
