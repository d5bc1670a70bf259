from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Optional
from datetime import datetime


class ActivityRead(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    date: datetime

    model_config = ConfigDict(from_attributes=True)


class FavoriteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    data: Any = Field(...)


class FavoriteRead(BaseModel):
    id: int
    user_id: int
    name: str
    data: Any

    model_config = ConfigDict(from_attributes=True)
