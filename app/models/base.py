"""
Pydantic base models shared by request/response schemas.

DESIGN PRINCIPLE:
- Models reflect data structure, not business logic
- Stored documents use snake_case; the HTTP API speaks camelCase
"""

from datetime import datetime, timezone
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base for API schemas. Accepts both camelCase and snake_case on input and
    serializes camelCase. String fields are trimmed before length checks.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True
        use_enum_values = True


class BaseResponse(BaseModel):
    """
    Base response envelope for API responses.
    """
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DataResponse(BaseResponse, Generic[T]):
    data: Optional[T] = None


def field_errors(exc) -> List[Dict[str, str]]:
    """
    Flatten a pydantic ValidationError (or FastAPI RequestValidationError) into [{"field", "message"}] entries.

    Enum violations name the rejected value next to the accepted set.
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "__root__"
        message = err.get("msg", "Invalid value")
        if err.get("type") == "enum":
            message = f"'{err.get('input')}' is not a valid value. {message}"
        errors.append({"field": field, "message": message})
    return errors
