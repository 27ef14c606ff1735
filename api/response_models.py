"""
Pydantic request/response models for the occupancy API.

These give FastAPI the type information it needs for accurate OpenAPI
schemas.
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Envelope ====
# Shape: {status, data, computed_at, params}


class OccupancyEnvelope(BaseModel):
    """Standard endpoint envelope."""

    status: str = Field(description="ok or error")
    data: Any = Field(default=None, description="Response payload")
    computed_at: str = Field(description="ISO timestamp of computation")
    params: dict[str, Any] = Field(default_factory=dict, description="Echo of request params")


class ErrorResponse(BaseModel):
    """Error body for 4xx responses raised by occupancy rules."""

    status: str = "error"
    error: str
    error_code: str
    conflicting_dates: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = Field(description="healthy")
    timestamp: str


# ==== Requests ====


class AssignmentCheckRequest(BaseModel):
    """Proposed stay to validate against capacity."""

    arrival_date: str = Field(..., description="Arrival date, yyyy-MM-dd")
    number_of_days: int | None = Field(
        default=None, ge=1, description="Length of stay in days (default FACILITY_DEFAULT_STAY_DAYS)"
    )


class AssignTreatmentDateRequest(BaseModel):
    """Assign a treatment date to an onboarding patient."""

    treatment_date: str = Field(..., description="Arrival date, yyyy-MM-dd")
    assigned_by: str = Field(..., min_length=1, description="Staff user id making the assignment")
