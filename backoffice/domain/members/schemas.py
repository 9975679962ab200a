"""VIP member domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.bucketing import SeriesPoint
from ...shared.validators import normalize_phone, validate_required_name


class VipMemberRequest(BaseModel):
    name: str
    phone: str
    memberCreatedAt: date
    memberDeletedAt: Optional[date] = None
    createRemark: Optional[str] = Field(None, max_length=500)
    deleteRemark: Optional[str] = Field(None, max_length=500)
    branchId: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_name(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        normalized = normalize_phone(v)
        if not normalized:
            raise ValueError("Phone cannot be empty")
        return normalized


class VipMemberResponse(BaseModel):
    id: int
    name: str
    phone: str
    memberCreatedAt: date
    memberDeletedAt: Optional[date] = None
    createRemark: Optional[str] = None
    deleteRemark: Optional[str] = None
    branchId: Optional[int] = None
    branchName: Optional[str] = None
    subAreaId: Optional[int] = None
    subAreaName: Optional[str] = None
    areaId: Optional[int] = None
    areaName: Optional[str] = None
    createdBy: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SkippedMember(BaseModel):
    index: int
    name: str
    phone: str
    reason: str


class VipMemberBatchResponse(BaseModel):
    created: list[VipMemberResponse]
    skipped: list[SkippedMember]


class VipMemberPage(BaseModel):
    content: list[VipMemberResponse]
    page: int
    size: int
    totalElements: int
    totalPages: int


class TrendCount(BaseModel):
    key: str
    label: str
    count: int


class NamedCount(BaseModel):
    id: int
    name: str
    count: int


class VipMemberDashboardResponse(BaseModel):
    totalMembers: int
    activeMembers: int
    areaCounts: list[NamedCount]
    subAreaCounts: list[NamedCount]
    branchCounts: list[NamedCount]
    dailyCounts: list[TrendCount]
    weeklyCounts: list[TrendCount]
    monthlyCounts: list[TrendCount]
    earliestDate: Optional[date] = None
    latestDate: Optional[date] = None


class DuplicateCheckRequest(BaseModel):
    phones: list[str]


class PhoneCheckResponse(BaseModel):
    index: int
    phone: str
    normalizedPhone: str
    duplicate: bool
    reason: Optional[str] = None  # existing, repeated


class DuplicateCheckResponse(BaseModel):
    results: list[PhoneCheckResponse]
    duplicateCount: int


def trend_counts(points: list[SeriesPoint]) -> list[TrendCount]:
    return [TrendCount(key=p.key, label=p.label, count=p.total) for p in points]


def named_counts(rows) -> list[NamedCount]:
    return [NamedCount(id=i, name=name or str(i), count=count) for i, name, count in rows]
