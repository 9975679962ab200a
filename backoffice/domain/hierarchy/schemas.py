"""Hierarchy domain schemas - areas, sub-areas and branches"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_required_name


class AreaCreate(BaseModel):
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_name(v)


class AreaUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return validate_required_name(v)
        return v


class AreaResponse(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    active: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SubAreaCreate(AreaCreate):
    areaId: int


class SubAreaUpdate(AreaUpdate):
    areaId: Optional[int] = None


class SubAreaResponse(AreaResponse):
    areaId: int
    areaName: Optional[str] = None


class BranchCreate(BaseModel):
    """A branch sits under a sub-area, or directly under an area when no sub-area is given"""

    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: bool = True
    areaId: Optional[int] = None
    subareaId: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_name(v)

    @field_validator("email")
    @classmethod
    def validate_branch_email(cls, v):
        return validate_email(v)


class BranchUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: Optional[bool] = None
    areaId: Optional[int] = None
    subareaId: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return validate_required_name(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_branch_email(cls, v):
        return validate_email(v)


class BranchResponse(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: bool
    areaId: int
    areaName: Optional[str] = None
    subareaId: Optional[int] = None
    subareaName: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SelectionRequest(BaseModel):
    """Current multi-select state of the hierarchy filter"""

    areaIds: list[int] = Field(default_factory=list)
    subAreaIds: list[int] = Field(default_factory=list)
    branchIds: list[int] = Field(default_factory=list)
    activeOnly: bool = True


class BranchGroupResponse(BaseModel):
    id: str
    label: str
    branchIds: list[int]


class SelectionResponse(BaseModel):
    areaIds: list[int]
    subAreaIds: list[int]
    branchIds: list[int]
    availableSubAreaIds: list[int]
    availableBranchIds: list[int]
    groups: list[BranchGroupResponse]
    effectiveBranchIds: Optional[list[int]] = None
