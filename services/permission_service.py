# ================================================================
# services/permission_service.py — rider access resolution
# ================================================================
from typing import Iterable, Set
import logging

from sqlalchemy import inspect
from sqlmodel import Session, select

from models.models import (
    ProjectPermission,
    ProjectPermissionLevel,
    Rider,
    RiderPermission,
    RiderPermissionLevel,
    User,
)

logger = logging.getLogger(__name__)

VIEW_LEVELS = {RiderPermissionLevel.COMMENT.value, RiderPermissionLevel.EDIT.value}
EDIT_LEVELS = {RiderPermissionLevel.EDIT.value}


def _normalize(levels: Iterable[str]) -> Set[str]:
    return {getattr(level, "value", level) for level in levels}


def has_rider_permission(
    session: Session,
    rider: Rider,
    grantee_email: str,
    required: Iterable[str],
) -> bool:
    """
    Decide whether ``grantee_email`` may act on ``rider`` at any of the
    ``required`` levels.

    Order of resolution:
      1. the rider's owner always passes;
      2. a rider-level grant whose level is required;
      3. a grant on the rider's project whose level is required, where a
         project ``edit`` grant also satisfies a ``comment`` requirement.

    Read-only: no caching, nothing is written, denial returns False.
    """
    required_levels = _normalize(required)

    owner = session.get(User, rider.owner_id)
    if owner is not None and owner.email == grantee_email:
        return True

    # Use pre-loaded grants when the caller eager-loaded them
    if "permissions" not in inspect(rider).unloaded:
        rider_perms = [p for p in rider.permissions if p.email == grantee_email]
    else:
        rider_perms = session.exec(
            select(RiderPermission).where(
                RiderPermission.rider_id == rider.id,
                RiderPermission.email == grantee_email,
            )
        ).all()

    if any(perm.permission in required_levels for perm in rider_perms):
        return True

    if rider.project_id is not None:
        project_perms = session.exec(
            select(ProjectPermission).where(
                ProjectPermission.project_id == rider.project_id,
                ProjectPermission.email == grantee_email,
            )
        ).all()

        for perm in project_perms:
            if perm.permission in required_levels:
                return True
            if (
                perm.permission == ProjectPermissionLevel.EDIT.value
                and RiderPermissionLevel.COMMENT.value in required_levels
            ):
                return True

    logger.debug("Denied %s on rider %s for %s", required_levels, rider.id, grantee_email)
    return False
