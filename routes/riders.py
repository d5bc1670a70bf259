# routes/riders.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session, select
from typing import Optional
from datetime import datetime
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import logging

from core.database import get_session
from core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    api_success,
)
from core.security import get_current_user
from models.models import Project, Rider, RiderPermission, User
from schemas.rider_schema import (
    RiderCreate,
    RiderPermissionCreate,
    RiderPermissionRead,
    RiderPermissionUpdate,
    RiderRead,
    RiderUpdate,
)
from services.activity_service import log_activity
from services.permission_service import EDIT_LEVELS, VIEW_LEVELS, has_rider_permission
from services.quota_service import reserve_rider_slot

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Riders"])


# ================================================================
#  ✅ Helpers
# ================================================================
def get_rider_or_404(session: Session, rider_id: int) -> Rider:
    rider = session.exec(
        select(Rider).where(Rider.id == rider_id).options(selectinload(Rider.permissions))
    ).first()
    if not rider:
        raise NotFoundException("Rider not found")
    return rider


def _get_owned_rider(session: Session, rider_id: int, current_user: User) -> Rider:
    rider = get_rider_or_404(session, rider_id)
    if rider.owner_id != current_user.id:
        raise ForbiddenException("Only owner can manage this rider")
    return rider


def _check_project_owner(session: Session, project_id: int, current_user: User) -> None:
    project = session.get(Project, project_id)
    if not project or project.user_id != current_user.id:
        raise ValidationException("Invalid project or access denied")


def _get_rider_permission(session: Session, rider: Rider, permission_id: int) -> RiderPermission:
    permission = session.get(RiderPermission, permission_id)
    if not permission or permission.rider_id != rider.id:
        raise NotFoundException("Permission not found")
    return permission


def _rider_out(rider: Rider) -> dict:
    return RiderRead.model_validate(rider).model_dump(mode="json")


# ================================================================
#  ✅ Riders
# ================================================================
@router.get("/")
def list_riders(
    project_id: Optional[int] = Query(default=None),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    statement = select(Rider).where(Rider.owner_id == current_user.id)
    if project_id is not None:
        statement = statement.where(Rider.project_id == project_id)

    riders = session.exec(statement.order_by(desc(Rider.created_at))).all()
    return api_success([_rider_out(r) for r in riders])


@router.get("/{rider_id}")
def get_rider(
    rider_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = get_rider_or_404(session, rider_id)
    if not has_rider_permission(session, rider, current_user.email, VIEW_LEVELS):
        raise ForbiddenException("Access denied")
    return api_success(_rider_out(rider))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_rider(
    data: RiderCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Create a rider for the caller. The quota check and the insert share one
    transaction with the owner row locked.
    """
    reserve_rider_slot(session, current_user)

    if data.project_id:
        _check_project_owner(session, data.project_id, current_user)

    rider = Rider(
        name=data.name,
        description=data.description,
        data=data.data,
        owner_id=current_user.id,
        project_id=data.project_id or None,
    )
    session.add(rider)
    log_activity(session, current_user.id, "Rider Created", f"Created rider: {data.name}")
    session.commit()
    session.refresh(rider)

    logger.info("✅ Rider %s created by user %s", rider.id, current_user.id)
    return api_success(_rider_out(rider))


@router.put("/{rider_id}")
def update_rider(
    rider_id: int,
    data: RiderUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = get_rider_or_404(session, rider_id)
    if not has_rider_permission(session, rider, current_user.email, EDIT_LEVELS):
        raise ForbiddenException("Access denied")

    fields = data.model_fields_set
    if "name" in fields and data.name is not None:
        rider.name = data.name
    if "description" in fields:
        rider.description = data.description
    if "data" in fields:
        rider.data = data.data
    if "project_id" in fields:
        if data.project_id:
            _check_project_owner(session, data.project_id, current_user)
        rider.project_id = data.project_id or None

    rider.updated_at = datetime.utcnow()
    session.add(rider)
    log_activity(session, current_user.id, "Rider Updated", f"Updated rider: {rider.name}")
    session.commit()
    session.refresh(rider)
    return api_success(_rider_out(rider))


@router.delete("/{rider_id}")
def delete_rider(
    rider_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = get_rider_or_404(session, rider_id)
    if rider.owner_id != current_user.id:
        raise ForbiddenException("Only owner can delete rider")

    session.delete(rider)
    log_activity(session, current_user.id, "Rider Deleted", f"Deleted rider: {rider.name}")
    session.commit()
    return api_success({"message": "Rider deleted successfully"})


# ================================================================
#  ✅ Rider permissions
# ================================================================
@router.post("/{rider_id}/permissions", status_code=status.HTTP_201_CREATED)
def add_rider_permission(
    rider_id: int,
    data: RiderPermissionCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = _get_owned_rider(session, rider_id, current_user)

    permission = RiderPermission(rider_id=rider.id, email=data.email, permission=data.permission.value)
    try:
        session.add(permission)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictException("Permission already exists for this email")

    session.refresh(permission)
    return api_success(RiderPermissionRead.model_validate(permission).model_dump(mode="json"))


@router.put("/{rider_id}/permissions/{permission_id}")
def update_rider_permission(
    rider_id: int,
    permission_id: int,
    data: RiderPermissionUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = _get_owned_rider(session, rider_id, current_user)
    permission = _get_rider_permission(session, rider, permission_id)

    permission.permission = data.permission.value
    session.add(permission)
    session.commit()
    session.refresh(permission)
    return api_success(RiderPermissionRead.model_validate(permission).model_dump(mode="json"))


@router.delete("/{rider_id}/permissions/{permission_id}")
def delete_rider_permission(
    rider_id: int,
    permission_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = _get_owned_rider(session, rider_id, current_user)
    permission = _get_rider_permission(session, rider, permission_id)

    session.delete(permission)
    session.commit()
    return api_success({"message": "Permission deleted successfully"})
