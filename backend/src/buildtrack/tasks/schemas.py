"""Pydantic schemas for task management"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

TASK_STATUSES = {"todo", "in_progress", "blocked", "completed"}
TASK_PRIORITIES = {"low", "medium", "high", "critical"}


def _check(value: Optional[str], allowed: set, label: str) -> Optional[str]:
    if value is not None and value not in allowed:
        raise ValueError(f"Invalid {label}. Must be one of: {', '.join(sorted(allowed))}")
    return value


class TaskCreate(BaseModel):
    """Schema for creating a task inside a project"""
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: str = "todo"
    priority: str = "medium"
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    due_date: Optional[str] = None
    dependencies: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Task title cannot be empty")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _check(v, TASK_STATUSES, "status")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        return _check(v, TASK_PRIORITIES, "priority")


class TaskUpdate(BaseModel):
    """Schema for updating a task (all fields optional)"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    project_id: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    due_date: Optional[str] = None
    dependencies: Optional[List[str]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return _check(v, TASK_STATUSES, "status")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        return _check(v, TASK_PRIORITIES, "priority")


class TaskResponse(BaseModel):
    """Schema for task response"""
    id: str
    company_id: str
    project_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    due_date: Optional[str] = None
    dependencies: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
