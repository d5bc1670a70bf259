# project_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from models.models import ProjectPermissionLevel


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    # user_id is set server-side


class ProjectUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class ProjectPermissionCreate(BaseModel):
    email: EmailStr
    permission: ProjectPermissionLevel


class ProjectPermissionUpdate(BaseModel):
    permission: ProjectPermissionLevel


class ProjectPermissionRead(BaseModel):
    id: int
    project_id: int
    email: str
    permission: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectRiderSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProjectRead(BaseModel):
    id: int
    name: str
    user_id: int
    created_at: datetime
    updated_at: datetime
    permissions: List[ProjectPermissionRead] = []
    riders: List[ProjectRiderSummary] = []

    model_config = ConfigDict(from_attributes=True)
