"""Call report domain schemas - statuses, reports, summaries and chart series"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.bucketing import SeriesPoint
from ...shared.validators import validate_required_name

CALL_TYPES = ("new-call", "recall")


# ============================================================================
# STATUSES
# ============================================================================


class CallStatusCreate(BaseModel):
    label: str
    key: Optional[str] = None  # derived from the label when omitted

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return validate_required_name(v)


class CallStatusUpdate(BaseModel):
    label: str

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return validate_required_name(v)


class CallStatusResponse(BaseModel):
    key: str
    label: str
    createdBy: Optional[str] = None
    createdAt: Optional[datetime] = None


# ============================================================================
# REPORTS
# ============================================================================


class CallReportRequest(BaseModel):
    calledAt: date
    arrivedAt: Optional[date] = None
    callType: str = "new-call"
    branchId: Optional[int] = None
    entries: dict[str, int]
    remarks: dict[str, str] = Field(default_factory=dict)
    remark: Optional[str] = None

    @field_validator("callType")
    @classmethod
    def validate_call_type(cls, v):
        if v not in CALL_TYPES:
            raise ValueError(f"callType must be one of: {', '.join(CALL_TYPES)}")
        return v

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, v):
        if not v:
            raise ValueError("At least one status entry is required")
        for key, count in v.items():
            if not key.strip():
                raise ValueError("Status keys cannot be empty")
            if count < 0:
                raise ValueError(f"Count for '{key}' cannot be negative")
        return v


class CallReportResponse(BaseModel):
    id: int
    calledAt: date
    arrivedAt: Optional[date] = None
    callType: str
    branchId: Optional[int] = None
    branchName: str
    createdBy: str
    createdAt: Optional[datetime] = None
    entries: dict[str, int]
    remarks: dict[str, str] = Field(default_factory=dict)
    remark: Optional[str] = None


class CallReportSummaryResponse(BaseModel):
    calledAt: date
    arrivedAt: Optional[date] = None
    branchId: Optional[int] = None
    branchName: str
    statusTotals: dict[str, int]
    sameDayArrival: bool = False


class StatusTotal(BaseModel):
    key: str
    label: str
    total: int


class BranchTotal(BaseModel):
    branchId: Optional[int] = None
    branchName: str
    total: int


class CallReportSeriesResponse(BaseModel):
    granularity: str
    points: list[SeriesPoint]
    totalsByStatus: dict[str, int]
    grandTotal: int
    topStatus: Optional[StatusTotal] = None
    branchTotals: list[BranchTotal]


# ============================================================================
# CALL-LOG IMPORT
# ============================================================================


class ImportPreviewRequest(BaseModel):
    text: str


class ImportedRecordResponse(BaseModel):
    arrivedAt: Optional[date] = None
    calledAt: datetime
    statusKey: str
    statusLabel: str


class ImportPreviewResponse(BaseModel):
    entries: dict[str, int]
    total: int
    records: list[ImportedRecordResponse]
    unmatched: list[str]
