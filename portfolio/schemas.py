"""
Pydantic schemas for the portfolio HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class ProjectPayload(BaseModel):
    title: str
    description: Optional[str] = None
    canva_url: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    canva_url: Optional[str] = None
    user_id: str
    created_at: datetime


class ProjectFileResponse(BaseModel):
    id: str
    project_id: str
    file_name: str
    file_url: str
    created_at: datetime


class SiteConfigResponse(BaseModel):
    hero_title: str
    hero_subtitle: str
    about_text: str
    contact_email: str
    profile_image_url: Optional[str] = None
    updated_at: Optional[datetime] = None


class LandingPageResponse(BaseModel):
    config: SiteConfigResponse
    projects: list[ProjectResponse]
    project_count: int
    mailto_link: str


class ProjectDetailResponse(BaseModel):
    project: ProjectResponse
    files: list[ProjectFileResponse]


class DashboardResponse(BaseModel):
    owner_email: str
    projects: list[ProjectResponse]


class FileManagerResponse(BaseModel):
    project: ProjectResponse
    files: list[ProjectFileResponse]


class SiteSettingsResponse(BaseModel):
    hero_title: str
    hero_subtitle: str
    about_text: str
    contact_email: str
    profile_image_url: Optional[str] = None


class LoginEntryResponse(BaseModel):
    login_url: str
    fields: list[str]


class StatusResponse(BaseModel):
    status: Literal["ok"]
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
