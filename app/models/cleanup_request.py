"""
Pydantic models for cleanup requests.
These models handle validation for request submission, admin updates and responses.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import re

from pydantic import Field, field_validator, model_validator

from app.models.base import CamelModel

PHONE_PATTERN = re.compile(r"^[0-9\s\-\+\(\)]+$", re.ASCII)
EMAIL_PATTERN = re.compile(r"^[\w\-\.]+@([\w-]+\.)+[\w-]{2,4}$", re.ASCII)
MIN_PHONE_DIGITS = 10


class ProblemType(str, Enum):
    LITTER = "litter"
    DUMPING = "dumping"
    GRAFFITI = "graffiti"
    OVERGROWN = "overgrown"
    SPILL = "spill"
    OTHER = "other"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Priority shares the severity scale but is tracked separately after creation
Priority = Severity


class RequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ContactInfo(CamelModel):
    """Who to call about the request. Phone is the only required field."""
    name: Optional[str] = Field("Anonymous", max_length=100)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = Field("", description="Optional; validated only when non-empty")

    @field_validator("name")
    @classmethod
    def default_name(cls, v: Optional[str]) -> str:
        return v or "Anonymous"

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        digits = re.sub(r"[^0-9]", "", v)
        if not PHONE_PATTERN.match(v) or len(digits) < MIN_PHONE_DIGITS:
            raise ValueError("Please provide a valid phone number")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> str:
        if not v:
            return ""
        v = v.lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please provide a valid email address")
        return v


class OtherDetails(CamelModel):
    """Extra details, kept only for problem_type == other."""
    custom_problem_type: Optional[str] = Field(None, max_length=200)
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None
    specific_location: Optional[str] = Field(None, max_length=500)


class Coordinates(CamelModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


def _pick(data: Dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


class CleanupRequestCreate(CamelModel):
    """
    Model for creating a new cleanup request (incoming POST request).
    These are the fields the request wizard submits.
    problem_label is derived server-side and never taken from the caller.
    """
    problem_type: ProblemType
    location: str = Field(..., min_length=3, max_length=500)
    severity: Severity
    description: str = Field(..., min_length=10, max_length=1000)
    contact_info: ContactInfo
    photos: List[str] = Field(default_factory=list)
    other_details: Optional[OtherDetails] = None
    coordinates: Optional[Coordinates] = None
    priority: Optional[Priority] = Field(None, description="Defaults to severity when omitted")
    device_info: str = ""

    @model_validator(mode="before")
    @classmethod
    def location_from_other_details(cls, data: Any) -> Any:
        """For 'other' requests the wizard sends the place in otherDetails.specificLocation."""
        if not isinstance(data, dict):
            return data
        if _pick(data, "problemType", "problem_type") != ProblemType.OTHER.value:
            return data
        location = _pick(data, "location")
        if isinstance(location, str) and location.strip():
            return data
        details = _pick(data, "otherDetails", "other_details")
        if isinstance(details, dict):
            specific = _pick(details, "specificLocation", "specific_location")
            if specific:
                data = dict(data)
                data["location"] = specific
        return data

    class Config:
        json_schema_extra = {
            "example": {
                "problemType": "litter",
                "location": "Main St & 3rd Ave",
                "severity": "medium",
                "description": "Overflowing bins next to the bus stop.",
                "contactInfo": {"name": "Ama", "phone": "+233 24 123 4567", "email": "ama@example.com"},
                "photos": ["file:///photos/bins.jpg"],
                "coordinates": {"latitude": 5.6037, "longitude": -0.187},
            }
        }


class CleanupRequestUpdate(CamelModel):
    """Admin edit of request details. Omitted fields are left unchanged."""
    problem_type: Optional[ProblemType] = None
    other_details: Optional[OtherDetails] = None
    location: Optional[str] = Field(None, min_length=3, max_length=500)
    severity: Optional[Severity] = None
    priority: Optional[Priority] = None
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    coordinates: Optional[Coordinates] = None
    photos: Optional[List[str]] = None
    admin_notes: Optional[str] = Field(None, max_length=500)


class StatusUpdateRequest(CamelModel):
    # Plain string: the workflow reports unknown values as InvalidStatus
    status: str
    admin_notes: Optional[str] = Field(None, max_length=500)


class AssignRequest(CamelModel):
    assigned_to: str = Field(..., min_length=1, max_length=200)
    estimated_completion: Optional[str] = None


class CleanupRequestResponse(CamelModel):
    """
    Model for cleanup request responses (what API returns).
    Includes system-generated fields like ID, derived label and timestamps.
    """
    id: str
    problem_type: ProblemType
    problem_label: str
    location: str
    severity: Severity
    description: str
    contact_info: ContactInfo
    photos: List[str] = Field(default_factory=list)
    other_details: Optional[OtherDetails] = None
    status: RequestStatus = RequestStatus.PENDING
    priority: Priority
    assigned_to: str = ""
    admin_notes: str = ""
    estimated_completion: Optional[datetime] = None
    actual_completion: Optional[datetime] = None
    submitted_by: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    device_info: str = ""
    created_at: datetime
    updated_at: datetime


class CleanupRequestSummary(CamelModel):
    """Projection used by the recent-requests feed."""
    id: str
    problem_type: ProblemType
    problem_label: str
    location: str
    severity: Severity
    status: RequestStatus
    contact_info: ContactInfo
    created_at: datetime


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_requests: int


class CleanupRequestPage(CamelModel):
    requests: List[CleanupRequestResponse]
    pagination: Pagination


class SeverityStats(CamelModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class CleanupStats(CamelModel):
    """Aggregate counts. Every bucket is present, zero when empty."""
    total: int = 0
    pending: int = 0
    in_progress: int = Field(0, alias="in-progress")
    completed: int = 0
    cancelled: int = 0
    severity: SeverityStats = Field(default_factory=SeverityStats)
    recent_requests: int = 0
    today_requests: int = 0
