"""
Relational store abstraction for Postgres and an in-memory test implementation.

Both implementations enforce the same row-level rules: projects may only be
mutated by the user that owns them, deleting a project removes its file
records, and the site configuration is a single row that every update
targets.
"""

from __future__ import annotations

import itertools
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from portfolio.errors import NotFound, PermissionDenied, TransportFailure


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreClient(Protocol):
    """Interface for the `projects`, `project_files` and `site_config` collections."""

    def list_projects(self, *, user_id: str | None = None) -> list["Project"]:
        ...

    def get_project(self, project_id: str) -> Optional["Project"]:
        ...

    def insert_project(
        self,
        *,
        title: str,
        description: str | None,
        canva_url: str | None,
        user_id: str,
    ) -> "Project":
        ...

    def update_project(
        self,
        project_id: str,
        *,
        requester_id: str,
        title: str,
        description: str | None,
        canva_url: str | None,
    ) -> "Project":
        ...

    def delete_project(self, project_id: str, *, requester_id: str) -> None:
        ...

    def list_project_files(self, project_id: str) -> list["ProjectFile"]:
        ...

    def insert_project_file(
        self, *, project_id: str, file_name: str, file_url: str
    ) -> "ProjectFile":
        ...

    def delete_project_file(self, file_id: str) -> None:
        ...

    def get_site_config(self) -> Optional["SiteConfig"]:
        ...

    def insert_site_config(self, config: "SiteConfig") -> "SiteConfig":
        ...

    def update_site_config(
        self,
        *,
        requester_id: str,
        hero_title: str,
        hero_subtitle: str,
        about_text: str,
        contact_email: str,
        profile_image_url: str | None,
    ) -> Optional["SiteConfig"]:
        ...


@dataclass
class Project:
    id: str
    title: str
    user_id: str
    description: Optional[str] = None
    canva_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "canva_url": self.canva_url,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }


@dataclass
class ProjectFile:
    id: str
    project_id: str
    file_name: str
    file_url: str
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "created_at": self.created_at,
        }


@dataclass
class SiteConfig:
    hero_title: str = ""
    hero_subtitle: str = ""
    about_text: str = ""
    contact_email: str = ""
    profile_image_url: Optional[str] = None
    updated_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return {
            "hero_title": self.hero_title,
            "hero_subtitle": self.hero_subtitle,
            "about_text": self.about_text,
            "contact_email": self.contact_email,
            "profile_image_url": self.profile_image_url,
            "updated_at": self.updated_at,
        }


def _require_owner(project: Project, requester_id: str) -> None:
    if not requester_id or project.user_id != requester_id:
        raise PermissionDenied(
            f"Permission denied: project {project.id} is not owned by the current user"
        )


class InMemoryStoreClient:
    """Simple in-memory store for development and tests."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.projects: Dict[str, Project] = {}
        self.project_files: Dict[str, ProjectFile] = {}
        self.site_configs: list[SiteConfig] = []
        # Insertion order breaks ties between identical timestamps.
        self._order: Dict[str, int] = {}
        self._counter = itertools.count()

    def _newest_first(self, records: list) -> list:
        return sorted(
            records,
            key=lambda r: (r.created_at, self._order.get(r.id, 0)),
            reverse=True,
        )

    def list_projects(self, *, user_id: str | None = None) -> list[Project]:
        projects = [
            replace(p)
            for p in self.projects.values()
            if user_id is None or p.user_id == user_id
        ]
        return self._newest_first(projects)

    def get_project(self, project_id: str) -> Optional[Project]:
        project = self.projects.get(project_id)
        return replace(project) if project else None

    def insert_project(
        self,
        *,
        title: str,
        description: str | None,
        canva_url: str | None,
        user_id: str,
    ) -> Project:
        project = Project(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            canva_url=canva_url,
            user_id=user_id,
            created_at=self.clock(),
        )
        self.projects[project.id] = project
        self._order[project.id] = next(self._counter)
        return replace(project)

    def update_project(
        self,
        project_id: str,
        *,
        requester_id: str,
        title: str,
        description: str | None,
        canva_url: str | None,
    ) -> Project:
        project = self.projects.get(project_id)
        if not project:
            raise NotFound(f"Project {project_id} not found")
        _require_owner(project, requester_id)
        project.title = title
        project.description = description
        project.canva_url = canva_url
        return replace(project)

    def delete_project(self, project_id: str, *, requester_id: str) -> None:
        project = self.projects.get(project_id)
        if not project:
            raise NotFound(f"Project {project_id} not found")
        _require_owner(project, requester_id)
        del self.projects[project_id]
        for file_id in [
            f.id for f in self.project_files.values() if f.project_id == project_id
        ]:
            del self.project_files[file_id]

    def list_project_files(self, project_id: str) -> list[ProjectFile]:
        files = [
            replace(f)
            for f in self.project_files.values()
            if f.project_id == project_id
        ]
        return self._newest_first(files)

    def insert_project_file(
        self, *, project_id: str, file_name: str, file_url: str
    ) -> ProjectFile:
        if project_id not in self.projects:
            raise NotFound(f"Project {project_id} not found")
        record = ProjectFile(
            id=uuid.uuid4().hex,
            project_id=project_id,
            file_name=file_name,
            file_url=file_url,
            created_at=self.clock(),
        )
        self.project_files[record.id] = record
        self._order[record.id] = next(self._counter)
        return replace(record)

    def delete_project_file(self, file_id: str) -> None:
        self.project_files.pop(file_id, None)

    def get_site_config(self) -> Optional[SiteConfig]:
        if not self.site_configs:
            return None
        return replace(self.site_configs[0])

    def insert_site_config(self, config: SiteConfig) -> SiteConfig:
        stored = replace(config, updated_at=self.clock())
        self.site_configs.append(stored)
        return replace(stored)

    def update_site_config(
        self,
        *,
        requester_id: str,
        hero_title: str,
        hero_subtitle: str,
        about_text: str,
        contact_email: str,
        profile_image_url: str | None,
    ) -> Optional[SiteConfig]:
        if not requester_id:
            raise PermissionDenied("Permission denied: site configuration is owner-only")
        now = self.clock()
        for config in self.site_configs:
            config.hero_title = hero_title
            config.hero_subtitle = hero_subtitle
            config.about_text = about_text
            config.contact_email = contact_email
            config.profile_image_url = profile_image_url
            config.updated_at = now
        return self.get_site_config()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.projects.clear()
        self.project_files.clear()
        self.site_configs.clear()
        self._order.clear()


class PostgresStoreClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str, clock: Callable[[], datetime] = utcnow):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresStoreClient")
        self.clock = clock
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc

    def _to_project(self, row: "ProjectRow") -> Project:
        return Project(
            id=row.id,
            title=row.title,
            description=row.description,
            canva_url=row.canva_url,
            user_id=row.user_id,
            created_at=row.created_at,
        )

    def _to_project_file(self, row: "ProjectFileRow") -> ProjectFile:
        return ProjectFile(
            id=row.id,
            project_id=row.project_id,
            file_name=row.file_name,
            file_url=row.file_url,
            created_at=row.created_at,
        )

    def _to_site_config(self, row: "SiteConfigRow") -> SiteConfig:
        return SiteConfig(
            hero_title=row.hero_title or "",
            hero_subtitle=row.hero_subtitle or "",
            about_text=row.about_text or "",
            contact_email=row.contact_email or "",
            profile_image_url=row.profile_image_url,
            updated_at=row.updated_at,
        )

    def list_projects(self, *, user_id: str | None = None) -> list[Project]:
        with self._session() as session:
            stmt = select(ProjectRow)
            if user_id is not None:
                stmt = stmt.where(ProjectRow.user_id == user_id)
            stmt = stmt.order_by(ProjectRow.created_at.desc())
            rows = session.execute(stmt).scalars().all()
            return [self._to_project(row) for row in rows]

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._session() as session:
            row = session.get(ProjectRow, project_id)
            if not row:
                return None
            return self._to_project(row)

    def insert_project(
        self,
        *,
        title: str,
        description: str | None,
        canva_url: str | None,
        user_id: str,
    ) -> Project:
        with self._session() as session:
            row = ProjectRow(
                id=uuid.uuid4().hex,
                title=title,
                description=description,
                canva_url=canva_url,
                user_id=user_id,
                created_at=self.clock(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_project(row)

    def _owned_project_row(
        self, session: Session, project_id: str, requester_id: str
    ) -> "ProjectRow":
        row = session.get(ProjectRow, project_id)
        if not row:
            raise NotFound(f"Project {project_id} not found")
        _require_owner(self._to_project(row), requester_id)
        return row

    def update_project(
        self,
        project_id: str,
        *,
        requester_id: str,
        title: str,
        description: str | None,
        canva_url: str | None,
    ) -> Project:
        with self._session() as session:
            row = self._owned_project_row(session, project_id, requester_id)
            row.title = title
            row.description = description
            row.canva_url = canva_url
            session.commit()
            session.refresh(row)
            return self._to_project(row)

    def delete_project(self, project_id: str, *, requester_id: str) -> None:
        with self._session() as session:
            row = self._owned_project_row(session, project_id, requester_id)
            session.delete(row)
            session.commit()

    def list_project_files(self, project_id: str) -> list[ProjectFile]:
        with self._session() as session:
            stmt = (
                select(ProjectFileRow)
                .where(ProjectFileRow.project_id == project_id)
                .order_by(ProjectFileRow.created_at.desc())
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_project_file(row) for row in rows]

    def insert_project_file(
        self, *, project_id: str, file_name: str, file_url: str
    ) -> ProjectFile:
        with self._session() as session:
            if not session.get(ProjectRow, project_id):
                raise NotFound(f"Project {project_id} not found")
            row = ProjectFileRow(
                id=uuid.uuid4().hex,
                project_id=project_id,
                file_name=file_name,
                file_url=file_url,
                created_at=self.clock(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_project_file(row)

    def delete_project_file(self, file_id: str) -> None:
        with self._session() as session:
            row = session.get(ProjectFileRow, file_id)
            if not row:
                return
            session.delete(row)
            session.commit()

    def get_site_config(self) -> Optional[SiteConfig]:
        with self._session() as session:
            row = (
                session.query(SiteConfigRow)
                .order_by(SiteConfigRow.id.asc())
                .limit(1)
                .one_or_none()
            )
            return self._to_site_config(row) if row else None

    def insert_site_config(self, config: SiteConfig) -> SiteConfig:
        with self._session() as session:
            row = SiteConfigRow(
                hero_title=config.hero_title,
                hero_subtitle=config.hero_subtitle,
                about_text=config.about_text,
                contact_email=config.contact_email,
                profile_image_url=config.profile_image_url,
                updated_at=self.clock(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_site_config(row)

    def update_site_config(
        self,
        *,
        requester_id: str,
        hero_title: str,
        hero_subtitle: str,
        about_text: str,
        contact_email: str,
        profile_image_url: str | None,
    ) -> Optional[SiteConfig]:
        if not requester_id:
            raise PermissionDenied("Permission denied: site configuration is owner-only")
        with self._session() as session:
            (
                session.query(SiteConfigRow)
                .filter(SiteConfigRow.id != 0)
                .update(
                    {
                        SiteConfigRow.hero_title: hero_title,
                        SiteConfigRow.hero_subtitle: hero_subtitle,
                        SiteConfigRow.about_text: about_text,
                        SiteConfigRow.contact_email: contact_email,
                        SiteConfigRow.profile_image_url: profile_image_url,
                        SiteConfigRow.updated_at: self.clock(),
                    },
                    synchronize_session=False,
                )
            )
            session.commit()
        return self.get_site_config()


Base = declarative_base()


class ProjectRow(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    canva_url = Column(String, nullable=True)
    user_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    files = relationship(
        "ProjectFileRow",
        back_populates="project",
        cascade="all, delete-orphan",
    )


class ProjectFileRow(Base):
    __tablename__ = "project_files"

    id = Column(String, primary_key=True)
    project_id = Column(
        String,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = Column(String, nullable=False)
    file_url = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    project = relationship("ProjectRow", back_populates="files")


class SiteConfigRow(Base):
    __tablename__ = "site_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    hero_title = Column(Text, nullable=True)
    hero_subtitle = Column(Text, nullable=True)
    about_text = Column(Text, nullable=True)
    contact_email = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
