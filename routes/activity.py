# routes/activity.py — /user/activities and /user/favorites
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session, select
from sqlalchemy import desc

from core.database import get_session
from core.exceptions import ForbiddenException, NotFoundException, api_success
from core.security import get_current_user
from models.models import FavoriteItem, User, UserLog
from schemas.activity_schema import ActivityRead, FavoriteCreate, FavoriteRead

router = APIRouter(tags=["User"])

MAX_ACTIVITY_LIMIT = 100


@router.get("/activities")
def list_activities(
    limit: int = Query(default=50, ge=1),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    activities = session.exec(
        select(UserLog)
        .where(UserLog.user_id == current_user.id)
        .order_by(desc(UserLog.date), desc(UserLog.id))
        .limit(min(limit, MAX_ACTIVITY_LIMIT))
    ).all()
    return api_success([ActivityRead.model_validate(a).model_dump(mode="json") for a in activities])


@router.get("/favorites")
def list_favorites(current_user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    favorites = session.exec(
        select(FavoriteItem).where(FavoriteItem.user_id == current_user.id).order_by(desc(FavoriteItem.id))
    ).all()
    return api_success([FavoriteRead.model_validate(f).model_dump(mode="json") for f in favorites])


@router.post("/favorites", status_code=status.HTTP_201_CREATED)
def create_favorite(
    data: FavoriteCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    favorite = FavoriteItem(user_id=current_user.id, name=data.name, data=data.data)
    session.add(favorite)
    session.commit()
    session.refresh(favorite)
    return api_success(FavoriteRead.model_validate(favorite).model_dump(mode="json"))


@router.delete("/favorites/{favorite_id}")
def delete_favorite(
    favorite_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    favorite = session.get(FavoriteItem, favorite_id)
    if not favorite:
        raise NotFoundException("Favorite not found")
    if favorite.user_id != current_user.id:
        raise ForbiddenException("Access denied")

    session.delete(favorite)
    session.commit()
    return api_success({"message": "Favorite deleted successfully"})
