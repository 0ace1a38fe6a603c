"""Pydantic schemas for team (membership) management"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..tenancy.roles import MemberRole, MembershipStatus


class MemberInvite(BaseModel):
    """Schema for inviting a user into the company"""
    user_id: str = Field(..., min_length=1, max_length=64)
    role: MemberRole = MemberRole.VIEWER
    permissions: Optional[List[str]] = Field(None, description="Explicit permissions on top of the role")
    activate: bool = Field(False, description="Create the membership as active instead of invited")


class MembershipUpdate(BaseModel):
    """Schema for changing a member's role, permissions or status"""
    role: Optional[MemberRole] = None
    permissions: Optional[List[str]] = None
    status: Optional[MembershipStatus] = None


class MembershipResponse(BaseModel):
    """Schema for membership response"""
    id: str
    user_id: str
    company_id: str
    role: str
    permissions: Optional[List[str]] = None
    status: str
    invited_by: Optional[str] = None
    joined_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
