"""Pydantic schemas for project management"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

PROJECT_STATUSES = {"planning", "active", "on_hold", "completed", "cancelled"}


def _validate_status(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in PROJECT_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(sorted(PROJECT_STATUSES))}")
    return v


class ProjectCreate(BaseModel):
    """Schema for creating a new project"""
    name: str = Field(..., min_length=1, max_length=500)
    code: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = None
    location: Optional[str] = None
    status: str = "planning"
    progress: int = Field(0, ge=0, le=100)
    budget: Optional[float] = Field(None, ge=0)
    spent: Optional[float] = Field(None, ge=0)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager: Optional[str] = None
    zones: Optional[List[dict]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is not empty after stripping whitespace"""
        if not v.strip():
            raise ValueError("Project name cannot be empty")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _validate_status(v)


class ProjectUpdate(BaseModel):
    """Schema for updating a project (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    code: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    budget: Optional[float] = Field(None, ge=0)
    spent: Optional[float] = Field(None, ge=0)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager: Optional[str] = None
    zones: Optional[List[dict]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _validate_status(v)


class ProjectResponse(BaseModel):
    """Schema for project response"""
    id: str
    company_id: str
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    status: str
    progress: int
    budget: Optional[float] = None
    spent: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager: Optional[str] = None
    zones: Optional[List[dict]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
