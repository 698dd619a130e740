"""
View controllers for the public pages and the owner dashboard.

Each controller holds the state of one view for its lifetime. State read
from the store is a disposable cache: after every successful mutation the
affected list is fetched again in full.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from portfolio.db import Project, ProjectFile, SiteConfig
from portfolio.errors import NotFound, UploadInProgress
from portfolio.files import FileAttachments
from portfolio.projects import ProjectRepository
from portfolio.session_guard import OwnerContext
from portfolio.site_config import ImageUpload, SiteConfigService, with_fallbacks

logger = logging.getLogger(__name__)

HOME_PATH = "/"
DASHBOARD_PATH = "/dashboard"


@dataclass
class LandingPage:
    config: SiteConfig
    projects: list[Project]

    @property
    def project_count(self) -> int:
        return len(self.projects)

    @property
    def mailto_link(self) -> str:
        return f"mailto:{self.config.contact_email}"


@dataclass
class ProjectDetailPage:
    project: Project
    files: list[ProjectFile]


def build_landing_page(
    projects: ProjectRepository, site_config: SiteConfigService
) -> LandingPage:
    return LandingPage(
        config=with_fallbacks(site_config.fetch()),
        projects=projects.list_all(),
    )


def build_project_detail(
    projects: ProjectRepository, files: FileAttachments, project_id: str
) -> ProjectDetailPage:
    """Raises NotFound for unknown ids; the caller navigates home."""
    project = projects.get(project_id)
    return ProjectDetailPage(project=project, files=files.list_for_project(project_id))


@dataclass
class ProjectDashboard:
    """The owner's project list plus the create/edit form."""

    repository: ProjectRepository
    owner: OwnerContext
    projects: list[Project] = field(default_factory=list)
    editing_id: Optional[str] = None
    title: str = ""
    description: str = ""
    canva_url: str = ""

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def refresh(self) -> list[Project]:
        self.projects = self.repository.list_by_owner(self.owner)
        return self.projects

    def reset_form(self) -> None:
        self.editing_id = None
        self.title = ""
        self.description = ""
        self.canva_url = ""

    def start_editing(self, project: Project) -> None:
        self.editing_id = project.id
        self.title = project.title
        self.description = project.description or ""
        self.canva_url = project.canva_url or ""

    def submit(self) -> Project:
        if self.editing_id:
            project = self.repository.update(
                self.owner,
                self.editing_id,
                title=self.title,
                description=self.description,
                canva_url=self.canva_url,
            )
        else:
            project = self.repository.create(
                self.owner,
                title=self.title,
                description=self.description,
                canva_url=self.canva_url,
            )
        self.reset_form()
        self.refresh()
        return project

    def delete(self, project_id: str) -> None:
        self.repository.delete(self.owner, project_id)
        if self.editing_id == project_id:
            self.reset_form()
        self.refresh()


@dataclass
class FileManager:
    """Per-project file list with the upload control."""

    projects: ProjectRepository
    attachments: FileAttachments
    project_id: str
    project: Optional[Project] = None
    files: list[ProjectFile] = field(default_factory=list)
    uploading: bool = False

    def load(self) -> None:
        """Raises NotFound for unknown ids; the caller returns to the dashboard."""
        self.project = self.projects.get(self.project_id)
        self.refresh()

    def refresh(self) -> list[ProjectFile]:
        self.files = self.attachments.list_for_project(self.project_id)
        return self.files

    def upload(
        self, file_name: str, data: bytes, content_type: Optional[str] = None
    ) -> ProjectFile:
        if self.uploading:
            raise UploadInProgress("An upload is already in progress")
        self.uploading = True
        try:
            record = self.attachments.upload(
                self.project_id, file_name, data, content_type=content_type
            )
        finally:
            self.uploading = False
        self.refresh()
        return record

    def delete(self, file_id: str) -> None:
        if not any(f.id == file_id for f in self.refresh()):
            raise NotFound(f"File {file_id} not found in project {self.project_id}")
        self.attachments.delete(file_id)
        self.refresh()


@dataclass
class SiteSettingsEditor:
    """Dashboard form for the site configuration."""

    service: SiteConfigService
    owner: OwnerContext
    hero_title: str = ""
    hero_subtitle: str = ""
    about_text: str = ""
    contact_email: str = ""
    profile_image_url: Optional[str] = None
    pending_image: Optional[ImageUpload] = None

    def load(self) -> None:
        config = self.service.fetch()
        if config is None:
            # The editor shows empty fields rather than the public defaults.
            logger.info("No site configuration found")
            return
        self.hero_title = config.hero_title
        self.hero_subtitle = config.hero_subtitle
        self.about_text = config.about_text
        self.contact_email = config.contact_email
        self.profile_image_url = config.profile_image_url

    def select_image(self, image: ImageUpload) -> None:
        self.pending_image = image

    def save(self) -> Optional[SiteConfig]:
        updated = self.service.update(
            self.owner,
            hero_title=self.hero_title,
            hero_subtitle=self.hero_subtitle,
            about_text=self.about_text,
            contact_email=self.contact_email,
            image=self.pending_image,
        )
        if updated is not None:
            self.pending_image = None
            self.profile_image_url = updated.profile_image_url
        return updated
