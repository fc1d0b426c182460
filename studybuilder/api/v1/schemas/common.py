"""Common schema types for API responses."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models exchanged as camelCase JSON."""
    
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ErrorResponse(BaseModel):
    """Standard error response format."""
    
    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    
    model_config = {"json_schema_extra": {
        "example": {
            "error_code": "TEMPLATE_NOT_FOUND",
            "message": "Template 'unknown' not found",
            "details": None,
        }
    }}
