import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from database.models import Assets, Edge, Node, Project
from operators.timeline_operator import ProjectNotFoundError


logger = logging.getLogger(__name__)

PROJECT_STATUSES = ("draft", "in-progress", "completed")

# Fields a partial update may touch
_UPDATABLE_FIELDS = ("project_name", "description", "status")


def get_project_by_id(project_id: UUID, db: DBSession) -> Project | None:
    return db.query(Project).filter(Project.project_id == project_id).first()


def get_project(project_id: UUID, db: DBSession) -> Project:
    project = get_project_by_id(project_id, db)
    if not project:
        raise ProjectNotFoundError(project_id)
    return project


def create_project(
    name: str,
    db: DBSession,
    description: str | None = None,
    status: str | None = None,
) -> Project:
    now = datetime.now(timezone.utc)
    project = Project(
        project_name=name,
        description=description,
        status=status or "draft",
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)

    logger.info("Created project %s (%s)", project.project_id, name)
    return project


def list_projects(db: DBSession) -> list[Project]:
    return db.query(Project).order_by(Project.created_at.desc()).all()


def list_projects_by_status(status: str, db: DBSession) -> list[Project]:
    return (
        db.query(Project)
        .filter(Project.status == status)
        .order_by(Project.created_at.desc())
        .all()
    )


def update_project(project_id: UUID, db: DBSession, **updates) -> Project:
    """
    Apply a partial update. Keys set to None are left untouched.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
    """
    project = get_project(project_id, db)
    for field_name in _UPDATABLE_FIELDS:
        value = updates.get(field_name)
        if value is not None:
            setattr(project, field_name, value)
    project.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(project)
    return project


def delete_project(project_id: UUID, db: DBSession) -> None:
    """
    Delete a project and everything it owns.

    Children are removed explicitly so the cascade also holds on backends
    that do not enforce foreign keys (SQLite by default).
    """
    project = get_project(project_id, db)

    edge_count = db.query(Edge).filter(Edge.project_id == project_id).delete(
        synchronize_session=False
    )
    node_count = db.query(Node).filter(Node.project_id == project_id).delete(
        synchronize_session=False
    )
    asset_count = db.query(Assets).filter(Assets.project_id == project_id).delete(
        synchronize_session=False
    )
    db.delete(project)
    db.commit()

    logger.info(
        "Deleted project %s with %d asset(s), %d node(s), %d edge(s)",
        project_id,
        asset_count,
        node_count,
        edge_count,
    )
