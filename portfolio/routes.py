"""
HTTP routes for the public pages, the login entry point and the owner dashboard.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import RedirectResponse

from portfolio.auth import AuthClient
from portfolio.config import get_settings
from portfolio.db import Project, ProjectFile
from portfolio.dependencies import (
    get_access_token,
    get_auth_client,
    get_file_attachments,
    get_owner,
    get_project_repository,
    get_site_config_service,
)
from portfolio.errors import NotFound
from portfolio.files import FileAttachments
from portfolio.projects import ProjectRepository
from portfolio.schemas import (
    DashboardResponse,
    FileManagerResponse,
    LandingPageResponse,
    LoginEntryResponse,
    ProjectDetailResponse,
    ProjectFileResponse,
    ProjectPayload,
    ProjectResponse,
    SiteConfigResponse,
    SiteSettingsResponse,
    StatusResponse,
)
from portfolio.session_guard import LOGIN_PATH, OwnerContext
from portfolio.site_config import ImageUpload, SiteConfigService
from portfolio.views import (
    DASHBOARD_PATH,
    HOME_PATH,
    FileManager,
    ProjectDashboard,
    SiteSettingsEditor,
    build_landing_page,
    build_project_detail,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _project(project: Project) -> ProjectResponse:
    return ProjectResponse(**project.as_dict())


def _file(record: ProjectFile) -> ProjectFileResponse:
    return ProjectFileResponse(**record.as_dict())


def _dashboard_response(dashboard: ProjectDashboard) -> DashboardResponse:
    return DashboardResponse(
        owner_email=dashboard.owner.email,
        projects=[_project(p) for p in dashboard.projects],
    )


def _file_manager_response(manager: FileManager) -> FileManagerResponse:
    return FileManagerResponse(
        project=_project(manager.project),
        files=[_file(f) for f in manager.files],
    )


def _settings_response(editor: SiteSettingsEditor) -> SiteSettingsResponse:
    return SiteSettingsResponse(
        hero_title=editor.hero_title,
        hero_subtitle=editor.hero_subtitle,
        about_text=editor.about_text,
        contact_email=editor.contact_email,
        profile_image_url=editor.profile_image_url,
    )


# --- Public pages ---


@router.get("/", response_model=LandingPageResponse)
def landing_page(
    projects: ProjectRepository = Depends(get_project_repository),
    site_config: SiteConfigService = Depends(get_site_config_service),
):
    page = build_landing_page(projects, site_config)
    return LandingPageResponse(
        config=SiteConfigResponse(**page.config.as_dict()),
        projects=[_project(p) for p in page.projects],
        project_count=page.project_count,
        mailto_link=page.mailto_link,
    )


@router.get("/projects/{project_id}", response_model=ProjectDetailResponse)
def project_detail(
    project_id: str,
    projects: ProjectRepository = Depends(get_project_repository),
    files: FileAttachments = Depends(get_file_attachments),
):
    try:
        page = build_project_detail(projects, files, project_id)
    except NotFound:
        logger.info("Project %s not found, redirecting home", project_id)
        return RedirectResponse(HOME_PATH, status_code=303)
    return ProjectDetailResponse(
        project=_project(page.project),
        files=[_file(f) for f in page.files],
    )


# --- Login ---


@router.get(LOGIN_PATH, response_model=LoginEntryResponse)
def login_entry():
    return LoginEntryResponse(login_url=LOGIN_PATH, fields=["email", "password"])


@router.post(LOGIN_PATH)
def login(
    email: str = Form(...),
    password: str = Form(...),
    auth: AuthClient = Depends(get_auth_client),
):
    session = auth.sign_in_with_password(email, password)
    settings = get_settings()
    response = RedirectResponse(DASHBOARD_PATH, status_code=303)
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout", response_model=StatusResponse)
def logout(
    response: Response,
    access_token: str | None = Depends(get_access_token),
    auth: AuthClient = Depends(get_auth_client),
):
    auth.sign_out(access_token)
    response.delete_cookie(get_settings().session_cookie_name)
    return StatusResponse(status="ok")


# --- Dashboard: projects ---


@router.get(DASHBOARD_PATH, response_model=DashboardResponse)
def dashboard(
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
):
    view = ProjectDashboard(repository=projects, owner=owner)
    view.refresh()
    return _dashboard_response(view)


@router.post(
    f"{DASHBOARD_PATH}/projects", response_model=DashboardResponse, status_code=201
)
def create_project(
    payload: ProjectPayload,
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
):
    view = ProjectDashboard(repository=projects, owner=owner)
    view.title = payload.title
    view.description = payload.description or ""
    view.canva_url = payload.canva_url or ""
    view.submit()
    return _dashboard_response(view)


@router.put(f"{DASHBOARD_PATH}/projects/{{project_id}}", response_model=DashboardResponse)
def update_project(
    project_id: str,
    payload: ProjectPayload,
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
):
    view = ProjectDashboard(repository=projects, owner=owner)
    view.start_editing(projects.get(project_id))
    view.title = payload.title
    view.description = payload.description or ""
    view.canva_url = payload.canva_url or ""
    view.submit()
    return _dashboard_response(view)


@router.delete(
    f"{DASHBOARD_PATH}/projects/{{project_id}}", response_model=DashboardResponse
)
def delete_project(
    project_id: str,
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
):
    view = ProjectDashboard(repository=projects, owner=owner)
    view.delete(project_id)
    return _dashboard_response(view)


# --- Dashboard: files ---


@router.get(f"{DASHBOARD_PATH}/files/{{project_id}}", response_model=FileManagerResponse)
def file_manager(
    project_id: str,
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
    attachments: FileAttachments = Depends(get_file_attachments),
):
    manager = FileManager(projects=projects, attachments=attachments, project_id=project_id)
    try:
        manager.load()
    except NotFound:
        logger.info("Project %s not found, returning to dashboard", project_id)
        return RedirectResponse(DASHBOARD_PATH, status_code=303)
    return _file_manager_response(manager)


@router.post(
    f"{DASHBOARD_PATH}/files/{{project_id}}",
    response_model=FileManagerResponse,
    status_code=201,
)
async def upload_file(
    project_id: str,
    file: UploadFile = File(...),
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
    attachments: FileAttachments = Depends(get_file_attachments),
):
    manager = FileManager(projects=projects, attachments=attachments, project_id=project_id)
    manager.load()
    data = await file.read()
    manager.upload(file.filename or "", data, content_type=file.content_type)
    return _file_manager_response(manager)


@router.delete(
    f"{DASHBOARD_PATH}/files/{{project_id}}/{{file_id}}",
    response_model=FileManagerResponse,
)
def delete_file(
    project_id: str,
    file_id: str,
    owner: OwnerContext = Depends(get_owner),
    projects: ProjectRepository = Depends(get_project_repository),
    attachments: FileAttachments = Depends(get_file_attachments),
):
    manager = FileManager(projects=projects, attachments=attachments, project_id=project_id)
    manager.load()
    manager.delete(file_id)
    return _file_manager_response(manager)


# --- Dashboard: site settings ---


@router.get(f"{DASHBOARD_PATH}/settings", response_model=SiteSettingsResponse)
def site_settings(
    owner: OwnerContext = Depends(get_owner),
    service: SiteConfigService = Depends(get_site_config_service),
):
    editor = SiteSettingsEditor(service=service, owner=owner)
    editor.load()
    return _settings_response(editor)


@router.put(f"{DASHBOARD_PATH}/settings", response_model=SiteSettingsResponse)
async def update_site_settings(
    hero_title: str | None = Form(None),
    hero_subtitle: str | None = Form(None),
    about_text: str | None = Form(None),
    contact_email: str | None = Form(None),
    image: UploadFile | None = File(None),
    owner: OwnerContext = Depends(get_owner),
    service: SiteConfigService = Depends(get_site_config_service),
):
    editor = SiteSettingsEditor(service=service, owner=owner)
    editor.load()
    # Fields left out of the form keep their stored values.
    if hero_title is not None:
        editor.hero_title = hero_title
    if hero_subtitle is not None:
        editor.hero_subtitle = hero_subtitle
    if about_text is not None:
        editor.about_text = about_text
    if contact_email is not None:
        editor.contact_email = contact_email
    if image is not None and image.filename:
        editor.select_image(
            ImageUpload(
                file_name=image.filename,
                data=await image.read(),
                content_type=image.content_type,
            )
        )
    editor.save()
    return _settings_response(editor)
