"""
API Schemas

Request and response models for the catalog query API.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class JobSearchBody(BaseModel):
    """Search filters, pagination and sorting."""
    job_name: Optional[str] = None
    folder_name: Optional[str] = None
    application: Optional[str] = None
    appl_type: Optional[str] = None
    appl_ver: Optional[str] = None
    task_type: Optional[str] = None
    critical: Optional[bool] = None
    datacenter: Optional[str] = None
    min_dependencies: Optional[int] = Field(None, ge=0)
    max_dependencies: Optional[int] = Field(None, ge=0)
    min_on_conditions: Optional[int] = Field(None, ge=0)
    max_on_conditions: Optional[int] = Field(None, ge=0)
    has_variables: Optional[bool] = None
    min_variables: Optional[int] = Field(None, ge=0)
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=50, ge=1, le=1000)
    sort_by: str = "job_name"
    sort_order: str = Field(default="asc", pattern="^(asc|desc|ASC|DESC)$")


class ApiResponse(BaseModel):
    """Envelope wrapping every JSON response."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)
