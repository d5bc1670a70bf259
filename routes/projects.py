# routes/projects.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select
from datetime import datetime
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
import logging

from core.database import get_session
from core.exceptions import ConflictException, ForbiddenException, NotFoundException, api_success
from core.security import get_current_user, require_abilities
from models.models import Project, ProjectPermission, User
from schemas.project_schema import (
    ProjectCreate,
    ProjectPermissionCreate,
    ProjectPermissionRead,
    ProjectPermissionUpdate,
    ProjectRead,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])


def _get_owned_project(session: Session, project_id: int, current_user: User) -> Project:
    project = session.get(Project, project_id)
    if not project:
        raise NotFoundException("Project not found")
    if project.user_id != current_user.id:
        raise ForbiddenException("Access denied")
    return project


def _get_project_permission(session: Session, project: Project, permission_id: int) -> ProjectPermission:
    permission = session.get(ProjectPermission, permission_id)
    if not permission or permission.project_id != project.id:
        raise NotFoundException("Permission not found")
    return permission


def _project_out(project: Project) -> dict:
    return ProjectRead.model_validate(project).model_dump(mode="json")


# ==================================================================
#  ✅ Projects
# ==================================================================
@router.get("/")
def list_projects(current_user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    projects = session.exec(
        select(Project).where(Project.user_id == current_user.id).order_by(desc(Project.created_at))
    ).all()
    return api_success([_project_out(p) for p in projects])


@router.get("/{project_id}")
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return api_success(_project_out(_get_owned_project(session, project_id, current_user)))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    current_user: User = Depends(require_abilities("project_create")),
    session: Session = Depends(get_session),
):
    project = Project(name=data.name, user_id=current_user.id)
    session.add(project)
    session.commit()
    session.refresh(project)
    return api_success(_project_out(project))


@router.put("/{project_id}")
def update_project(
    project_id: int,
    data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = _get_owned_project(session, project_id, current_user)
    project.name = data.name
    project.updated_at = datetime.utcnow()
    session.add(project)
    session.commit()
    session.refresh(project)
    return api_success(_project_out(project))


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = _get_owned_project(session, project_id, current_user)

    # Riders outlive their project
    for rider in project.riders:
        rider.project_id = None
        session.add(rider)

    session.delete(project)
    session.commit()
    return api_success({"message": "Project deleted successfully"})


# ==================================================================
#  ✅ Project permissions
# ==================================================================
@router.post("/{project_id}/permissions", status_code=status.HTTP_201_CREATED)
def add_project_permission(
    project_id: int,
    data: ProjectPermissionCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = _get_owned_project(session, project_id, current_user)

    permission = ProjectPermission(project_id=project.id, email=data.email, permission=data.permission.value)
    try:
        session.add(permission)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictException("Permission already exists for this email")

    session.refresh(permission)
    logger.info("Granted %s on project %s to %s", permission.permission, project.id, permission.email)
    return api_success(ProjectPermissionRead.model_validate(permission).model_dump(mode="json"))


@router.put("/{project_id}/permissions/{permission_id}")
def update_project_permission(
    project_id: int,
    permission_id: int,
    data: ProjectPermissionUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = _get_owned_project(session, project_id, current_user)
    permission = _get_project_permission(session, project, permission_id)

    permission.permission = data.permission.value
    session.add(permission)
    session.commit()
    session.refresh(permission)
    return api_success(ProjectPermissionRead.model_validate(permission).model_dump(mode="json"))


@router.delete("/{project_id}/permissions/{permission_id}")
def delete_project_permission(
    project_id: int,
    permission_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = _get_owned_project(session, project_id, current_user)
    permission = _get_project_permission(session, project, permission_id)

    session.delete(permission)
    session.commit()
    return api_success({"message": "Permission deleted successfully"})
