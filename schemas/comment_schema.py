from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Optional
from datetime import datetime


class CommentCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    status: Optional[str] = Field(default=None, max_length=30)
    position_xy: Optional[Any] = None


class CommentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    status: Optional[str] = Field(default=None, max_length=30)
    position_xy: Optional[Any] = None


class CommentAuthor(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class CommentRead(BaseModel):
    id: int
    rider_id: int
    user_id: int
    title: Optional[str] = None
    content: str
    status: Optional[str] = None
    position_xy: Optional[Any] = None
    date: datetime
    user: Optional[CommentAuthor] = None

    model_config = ConfigDict(from_attributes=True)
