# routes/comments.py — comments live under /riders/{rider_id}/comments
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select
from sqlalchemy import desc

from core.database import get_session
from core.exceptions import ForbiddenException, NotFoundException, api_success
from core.security import get_current_user
from models.models import Rider, RiderComment, User
from routes.riders import get_rider_or_404
from schemas.comment_schema import CommentCreate, CommentRead, CommentUpdate
from services.activity_service import log_activity
from services.permission_service import VIEW_LEVELS, has_rider_permission

router = APIRouter(tags=["Comments"])


def _get_editable_comment(session: Session, rider_id: int, comment_id: int, current_user: User) -> RiderComment:
    """Only the comment's author or the rider's owner may change a comment."""
    comment = session.get(RiderComment, comment_id)
    if not comment or comment.rider_id != rider_id:
        raise NotFoundException("Comment not found")

    rider = session.get(Rider, comment.rider_id)
    if comment.user_id != current_user.id and rider.owner_id != current_user.id:
        raise ForbiddenException("Access denied")
    return comment


def _comment_out(comment: RiderComment) -> dict:
    return CommentRead.model_validate(comment).model_dump(mode="json")


@router.get("/{rider_id}/comments")
def list_comments(
    rider_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = get_rider_or_404(session, rider_id)
    if not has_rider_permission(session, rider, current_user.email, VIEW_LEVELS):
        raise ForbiddenException("Access denied")

    comments = session.exec(
        select(RiderComment).where(RiderComment.rider_id == rider_id).order_by(desc(RiderComment.date))
    ).all()
    return api_success([_comment_out(c) for c in comments])


@router.post("/{rider_id}/comments", status_code=status.HTTP_201_CREATED)
def create_comment(
    rider_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rider = get_rider_or_404(session, rider_id)
    if not has_rider_permission(session, rider, current_user.email, VIEW_LEVELS):
        raise ForbiddenException("You do not have permission to comment on this rider")

    comment = RiderComment(
        rider_id=rider.id,
        user_id=current_user.id,
        title=data.title,
        content=data.content,
        status=data.status,
        position_xy=data.position_xy,
    )
    session.add(comment)
    log_activity(session, current_user.id, "Comment Added", f"Added comment on rider: {rider.name}")
    session.commit()
    session.refresh(comment)
    return api_success(_comment_out(comment))


@router.put("/{rider_id}/comments/{comment_id}")
def update_comment(
    rider_id: int,
    comment_id: int,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    comment = _get_editable_comment(session, rider_id, comment_id, current_user)

    for field in data.model_fields_set:
        value = getattr(data, field)
        if field == "content" and value is None:
            continue
        setattr(comment, field, value)

    session.add(comment)
    session.commit()
    session.refresh(comment)
    return api_success(_comment_out(comment))


@router.delete("/{rider_id}/comments/{comment_id}")
def delete_comment(
    rider_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    comment = _get_editable_comment(session, rider_id, comment_id, current_user)
    session.delete(comment)
    session.commit()
    return api_success({"message": "Comment deleted successfully"})
