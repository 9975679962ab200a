"""Call report router - FastAPI endpoints for call statuses and call reports"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import (
    CALL_REPORT_CREATE,
    CALL_REPORT_DELETE,
    CALL_REPORT_EDIT,
    CALL_REPORT_VIEW,
    CALL_STATUS_CREATE,
    CALL_STATUS_DELETE,
    CALL_STATUS_EDIT,
    CALL_STATUS_VIEW,
    require_permission,
)
from ...database import get_db
from ...models import CallReport, CallStatus, User
from ...shared.bucketing import DAILY
from .schemas import (
    CallReportRequest,
    CallReportResponse,
    CallReportSeriesResponse,
    CallReportSummaryResponse,
    CallStatusCreate,
    CallStatusResponse,
    CallStatusUpdate,
    ImportedRecordResponse,
    ImportPreviewRequest,
    ImportPreviewResponse,
)
from .service import NO_BRANCH, CallReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calls", tags=["Call Reports"])


def get_call_report_service(db: Session = Depends(get_db)) -> CallReportService:
    """Dependency injection for CallReportService"""
    return CallReportService(db)


def status_response(status: CallStatus) -> CallStatusResponse:
    return CallStatusResponse(
        key=status.key,
        label=status.label,
        createdBy=status.created_by,
        createdAt=status.created_at,
    )


def report_response(report: CallReport, creator_names: dict[str, str]) -> CallReportResponse:
    return CallReportResponse(
        id=report.id,
        calledAt=report.called_at,
        arrivedAt=report.arrived_at,
        callType=report.call_type,
        branchId=report.branch_id,
        branchName=report.branch.name if report.branch else NO_BRANCH,
        createdBy=creator_names.get(report.created_by, report.created_by),
        createdAt=report.created_at,
        entries=report.entries_as_map(),
        remarks=report.remarks_as_map(),
        remark=report.remark,
    )


def report_filters(
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    branchIds: Optional[list[int]] = Query(None),
    areaIds: Optional[list[int]] = Query(None),
    subareaIds: Optional[list[int]] = Query(None),
    statusKeys: Optional[list[str]] = Query(None),
    type: Optional[str] = Query(None, description="new-call or recall"),
) -> dict:
    """Shared query filters for summary and series endpoints"""
    return {
        "start_date": startDate,
        "end_date": endDate,
        "branch_ids": branchIds,
        "area_ids": areaIds,
        "sub_area_ids": subareaIds,
        "status_keys": statusKeys,
        "call_type": type,
    }


# ============================================================================
# CALL STATUSES
# ============================================================================


@router.get(
    "/statuses",
    response_model=list[CallStatusResponse],
    dependencies=[Depends(require_permission(CALL_STATUS_VIEW))],
)
async def get_statuses(service: CallReportService = Depends(get_call_report_service)):
    return [status_response(s) for s in service.get_statuses()]


@router.post("/statuses", response_model=CallStatusResponse, status_code=201)
async def create_status(
    data: CallStatusCreate,
    current_user: User = Depends(require_permission(CALL_STATUS_CREATE)),
    service: CallReportService = Depends(get_call_report_service),
):
    return status_response(service.create_status(data, current_user))


@router.put(
    "/statuses/{key}",
    response_model=CallStatusResponse,
    dependencies=[Depends(require_permission(CALL_STATUS_EDIT))],
)
async def update_status(
    key: str,
    data: CallStatusUpdate,
    service: CallReportService = Depends(get_call_report_service),
):
    return status_response(service.update_status(key, data.label))


@router.delete("/statuses/{key}", dependencies=[Depends(require_permission(CALL_STATUS_DELETE))])
async def delete_status(key: str, service: CallReportService = Depends(get_call_report_service)):
    return service.delete_status(key)


# ============================================================================
# CALL REPORTS
# ============================================================================


@router.get("/reports", response_model=list[CallReportResponse])
async def get_reports(
    current_user: User = Depends(require_permission(CALL_REPORT_VIEW)),
    service: CallReportService = Depends(get_call_report_service),
):
    """List reports visible to the current user, newest first"""
    reports = service.get_reports(current_user)
    names = service.creator_names(reports)
    return [report_response(r, names) for r in reports]


@router.get("/reports/summary", response_model=list[CallReportSummaryResponse])
async def summarize_reports(
    filters: dict = Depends(report_filters),
    current_user: User = Depends(require_permission(CALL_REPORT_VIEW)),
    service: CallReportService = Depends(get_call_report_service),
):
    """Status totals per (called date, branch) within the caller's branch scope"""
    return service.summarize(current_user, **filters)


@router.get("/reports/series", response_model=CallReportSeriesResponse)
async def report_series(
    granularity: str = Query(DAILY),
    filters: dict = Depends(report_filters),
    current_user: User = Depends(require_permission(CALL_REPORT_VIEW)),
    service: CallReportService = Depends(get_call_report_service),
):
    """Chart series bucketed daily, weekly (ISO) or monthly"""
    return service.series(current_user, granularity, **filters)


@router.post(
    "/reports/import-preview",
    response_model=ImportPreviewResponse,
    dependencies=[Depends(require_permission(CALL_REPORT_CREATE))],
)
async def preview_call_log_import(
    data: ImportPreviewRequest,
    service: CallReportService = Depends(get_call_report_service),
):
    """Parse a pasted call log into per-status counts; nothing is saved"""
    result = service.preview_import(data.text)
    return ImportPreviewResponse(
        entries=result.entries,
        total=result.total,
        records=[
            ImportedRecordResponse(
                arrivedAt=r.arrived_at,
                calledAt=r.called_at,
                statusKey=r.status_key,
                statusLabel=r.status_label,
            )
            for r in result.records
        ],
        unmatched=result.unmatched,
    )


@router.get("/reports/{report_id}", response_model=CallReportResponse)
async def get_report(
    report_id: int,
    current_user: User = Depends(require_permission(CALL_REPORT_VIEW)),
    service: CallReportService = Depends(get_call_report_service),
):
    report = service.get_report(report_id, current_user)
    return report_response(report, service.creator_names([report]))


@router.post("/reports", response_model=CallReportResponse, status_code=201)
async def create_report(
    data: CallReportRequest,
    current_user: User = Depends(require_permission(CALL_REPORT_CREATE)),
    service: CallReportService = Depends(get_call_report_service),
):
    report = service.create_report(data, current_user)
    return report_response(report, service.creator_names([report]))


@router.put("/reports/{report_id}", response_model=CallReportResponse)
async def update_report(
    report_id: int,
    data: CallReportRequest,
    current_user: User = Depends(require_permission(CALL_REPORT_EDIT)),
    service: CallReportService = Depends(get_call_report_service),
):
    report = service.update_report(report_id, data, current_user)
    return report_response(report, service.creator_names([report]))


@router.delete("/reports/{report_id}", status_code=204)
async def delete_report(
    report_id: int,
    current_user: User = Depends(require_permission(CALL_REPORT_DELETE)),
    service: CallReportService = Depends(get_call_report_service),
):
    service.delete_report(report_id, current_user)
    return Response(status_code=204)


__all__ = ["router", "get_call_report_service", "report_response", "status_response"]
