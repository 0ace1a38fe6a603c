"""Pydantic schemas for project file endpoints"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class FileUploadResponse(BaseModel):
    """Response schema for a stored file"""
    filename: str = Field(..., description="Sanitized filename as stored")
    path: str = Field(..., description="Storage key inside the company namespace")
    url: str = Field(..., description="Relative URL of the file")
    size_bytes: int
    mime_type: str

    class Config:
        from_attributes = True


class FileListResponse(BaseModel):
    files: List[str]


class FileMetadataResponse(BaseModel):
    filename: str
    size_bytes: int
    mime_type: Optional[str] = None
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in: int = Field(..., description="URL lifetime in seconds")
