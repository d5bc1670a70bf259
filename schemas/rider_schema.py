from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Any, List, Optional
from datetime import datetime

from models.models import RiderPermissionLevel
from schemas.project_schema import ProjectRiderSummary


# ============================================================
# ✅ Rider payloads
# ============================================================
class RiderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    data: Optional[Any] = None
    project_id: Optional[int] = None


class RiderUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    data: Optional[Any] = None
    # null detaches the rider from its project
    project_id: Optional[int] = None


# ============================================================
# ✅ Rider permissions
# ============================================================
class RiderPermissionCreate(BaseModel):
    email: EmailStr
    permission: RiderPermissionLevel


class RiderPermissionUpdate(BaseModel):
    permission: RiderPermissionLevel


class RiderPermissionRead(BaseModel):
    id: int
    rider_id: int
    email: str
    permission: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# ✅ Read models
# ============================================================
class RiderRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    data: Optional[Any] = None
    owner_id: int
    project_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    project: Optional[ProjectRiderSummary] = None
    permissions: List[RiderPermissionRead] = []

    model_config = ConfigDict(from_attributes=True)
