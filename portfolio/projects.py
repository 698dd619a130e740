"""
Project repository: read/write operations over the `projects` collection.

Reads are public. Writes carry the owner context resolved by the session
guard; the store rejects mutations of projects owned by someone else.
"""

from __future__ import annotations

import logging
from typing import Optional

from portfolio.db import Project, StoreClient
from portfolio.errors import NotFound, ValidationFailure
from portfolio.session_guard import OwnerContext

logger = logging.getLogger(__name__)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationFailure("Project title is required")
    return title


class ProjectRepository:
    def __init__(self, store: StoreClient):
        self.store = store

    def list_by_owner(self, owner: OwnerContext) -> list[Project]:
        return self.store.list_projects(user_id=owner.user_id)

    def list_all(self) -> list[Project]:
        return self.store.list_projects()

    def get(self, project_id: str) -> Project:
        project = self.store.get_project(project_id)
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        return project

    def create(
        self,
        owner: OwnerContext,
        *,
        title: str,
        description: Optional[str] = None,
        canva_url: Optional[str] = None,
    ) -> Project:
        project = self.store.insert_project(
            title=_require_title(title),
            description=_clean_optional(description),
            canva_url=_clean_optional(canva_url),
            user_id=owner.user_id,
        )
        logger.info("Created project %s for %s", project.id, owner.user_id)
        return project

    def update(
        self,
        owner: OwnerContext,
        project_id: str,
        *,
        title: str,
        description: Optional[str] = None,
        canva_url: Optional[str] = None,
    ) -> Project:
        project = self.store.update_project(
            project_id,
            requester_id=owner.user_id,
            title=_require_title(title),
            description=_clean_optional(description),
            canva_url=_clean_optional(canva_url),
        )
        logger.info("Updated project %s", project_id)
        return project

    def delete(self, owner: OwnerContext, project_id: str) -> None:
        # File records cascade in the store; their blobs stay in the bucket.
        self.store.delete_project(project_id, requester_id=owner.user_id)
        logger.info("Deleted project %s", project_id)
