"""User domain schemas - users, permissions and hierarchy assignments"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_required_name


class UserCreate(BaseModel):
    username: str
    fullName: Optional[str] = None
    email: Optional[str] = None
    active: bool = True
    permissions: list[str] = Field(default_factory=list)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        return validate_required_name(v)

    @field_validator("email")
    @classmethod
    def validate_user_email(cls, v):
        return validate_email(v)


class UserUpdate(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_user_email(cls, v):
        return validate_email(v)


class UserResponse(BaseModel):
    id: int
    username: str
    fullName: Optional[str] = None
    email: Optional[str] = None
    active: bool
    permissions: list[str] = Field(default_factory=list)
    createdAt: Optional[datetime] = None


class PermissionsUpdate(BaseModel):
    permissions: list[str]

    @field_validator("permissions")
    @classmethod
    def validate_codes(cls, v):
        codes = []
        for code in v:
            code = code.strip()
            if not code:
                raise ValueError("Permission codes cannot be empty")
            if code not in codes:
                codes.append(code)
        return codes


class PermissionCheckResponse(BaseModel):
    userId: int
    permission: str
    granted: bool


class MyPermissionsResponse(BaseModel):
    userId: int
    username: str
    root: bool
    permissions: list[str]
    # None means every branch is visible
    accessibleBranchIds: Optional[list[int]] = None


class AssignmentTarget(BaseModel):
    """Exactly one hierarchy node a user is scoped to"""

    userId: int
    areaId: Optional[int] = None
    subareaId: Optional[int] = None
    branchId: Optional[int] = None

    @model_validator(mode="after")
    def check_single_level(self):
        given = [v for v in (self.areaId, self.subareaId, self.branchId) if v is not None]
        if len(given) != 1:
            raise ValueError("Exactly one of areaId, subareaId or branchId must be provided")
        return self


class BulkAssignmentRequest(BaseModel):
    userId: int
    areaIds: list[int] = Field(default_factory=list)
    subareaIds: list[int] = Field(default_factory=list)
    branchIds: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not (self.areaIds or self.subareaIds or self.branchIds):
            raise ValueError("At least one areaId, subareaId or branchId is required")
        return self

    def targets(self) -> list[AssignmentTarget]:
        return (
            [AssignmentTarget(userId=self.userId, areaId=i) for i in self.areaIds]
            + [AssignmentTarget(userId=self.userId, subareaId=i) for i in self.subareaIds]
            + [AssignmentTarget(userId=self.userId, branchId=i) for i in self.branchIds]
        )


class AssignmentResponse(BaseModel):
    id: int
    userId: int
    level: str  # area, subarea, branch
    areaId: Optional[int] = None
    areaName: Optional[str] = None
    subareaId: Optional[int] = None
    subareaName: Optional[str] = None
    branchId: Optional[int] = None
    branchName: Optional[str] = None
    active: bool
    createdAt: Optional[datetime] = None


class SkippedAssignment(BaseModel):
    areaId: Optional[int] = None
    subareaId: Optional[int] = None
    branchId: Optional[int] = None
    reason: str


class BulkAssignmentResponse(BaseModel):
    processed: list[AssignmentResponse]
    skipped: list[SkippedAssignment]
