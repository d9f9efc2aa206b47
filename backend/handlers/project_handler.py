import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.base import get_db
from database.models import Project
from dependencies.project import require_project
from handlers.errors import handle_operator_error
from models.api_models import (
    ProjectCreateRequest,
    ProjectDeleteResponse,
    ProjectGetResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdateRequest,
)
from operators.project_operator import (
    create_project,
    delete_project,
    list_projects,
    list_projects_by_status,
    update_project,
)


router = APIRouter(prefix="/projects", tags=["projects"])
logger = logging.getLogger(__name__)


def _project_to_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        project_id=str(project.project_id),
        project_name=project.project_name,
        description=project.description,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


@router.post("/", response_model=ProjectGetResponse)
async def project_create(
    request: ProjectCreateRequest,
    db: Session = Depends(get_db),
):
    try:
        project = create_project(
            request.name,
            db,
            description=request.description,
            status=request.status,
        )
    except Exception as e:
        handle_operator_error(e, db, "create project")

    return ProjectGetResponse(ok=True, project=_project_to_response(project))


@router.get("/", response_model=ProjectListResponse)
async def project_list(
    status: ProjectStatus | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        if status is not None:
            projects = list_projects_by_status(status, db)
        else:
            projects = list_projects(db)
    except Exception as e:
        handle_operator_error(e, db, "list projects")

    return ProjectListResponse(
        ok=True,
        projects=[_project_to_response(p) for p in projects],
    )


@router.get("/{project_id}", response_model=ProjectGetResponse)
async def project_get(
    project: Project = Depends(require_project),
):
    return ProjectGetResponse(ok=True, project=_project_to_response(project))


@router.patch("/{project_id}", response_model=ProjectGetResponse)
async def project_update(
    request: ProjectUpdateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        updated = update_project(
            project.project_id,
            db,
            project_name=request.name,
            description=request.description,
            status=request.status,
        )
    except Exception as e:
        handle_operator_error(e, db, f"update project {project.project_id}")

    return ProjectGetResponse(ok=True, project=_project_to_response(updated))


@router.delete("/{project_id}", response_model=ProjectDeleteResponse)
async def project_delete(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        delete_project(project.project_id, db)
    except Exception as e:
        handle_operator_error(e, db, f"delete project {project.project_id}")

    return ProjectDeleteResponse(ok=True)
