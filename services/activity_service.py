"""Activity log records shown under /user/activities."""

from typing import Optional

from sqlmodel import Session

from models.models import UserLog


def log_activity(session: Session, user_id: int, title: str, description: Optional[str] = None) -> UserLog:
    """Stage a UserLog row; committed with the caller's transaction."""
    entry = UserLog(user_id=user_id, title=title, description=description)
    session.add(entry)
    return entry
