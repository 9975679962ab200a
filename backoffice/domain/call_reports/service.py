"""Call report service - Business logic for call statuses, reports and aggregates"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import scope_branch_ids
from ...models import CallReport, CallReportEntry, CallStatus, User
from ...shared.bucketing import GRANULARITIES, bucket_series, daily_series
from ...shared.validators import slugify_status_key
from ..hierarchy.repository import HierarchyRepository
from .repository import CallReportRepository
from .schemas import (
    BranchTotal,
    CallReportRequest,
    CallReportSeriesResponse,
    CallReportSummaryResponse,
    CallStatusCreate,
    StatusTotal,
)
from .status_import import StatusImportResult, parse_call_log

logger = logging.getLogger(__name__)

NO_BRANCH = "No Branch"


class CallReportService:
    """Service layer for call statuses and call reports"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CallReportRepository()
        self.hierarchy = HierarchyRepository()

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------

    def get_statuses(self) -> list[CallStatus]:
        return self.repo.get_statuses(self.db)

    def get_status(self, key: str) -> CallStatus:
        status = self.repo.get_status_by_key(self.db, key)
        if not status:
            raise HTTPException(status_code=404, detail=f"Call status not found: {key}")
        return status

    def create_status(self, data: CallStatusCreate, current_user: User) -> CallStatus:
        key = slugify_status_key(data.key or data.label)
        if not key:
            raise HTTPException(status_code=400, detail="Status key cannot be empty")
        if self.repo.get_status_by_key(self.db, key):
            raise HTTPException(status_code=409, detail=f"Call status '{key}' already exists")

        status = self.repo.save(
            self.db, CallStatus(key=key, label=data.label, created_by=current_user.username)
        )
        logger.info(f"✅ Created call status '{key}'")
        return status

    def update_status(self, key: str, label: str) -> CallStatus:
        status = self.get_status(key)
        status.label = label
        return self.repo.save(self.db, status)

    def delete_status(self, key: str) -> dict:
        status = self.get_status(key)
        self.repo.delete(self.db, status)
        logger.info(f"🗑️ Deleted call status '{key}'")
        return {"message": "Call status deleted"}

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def get_reports(self, current_user: User) -> list[CallReport]:
        branch_ids = scope_branch_ids(self.db, current_user)
        if branch_ids == []:
            return []
        return self.repo.get_reports(self.db, branch_ids)

    def get_report(self, report_id: int, current_user: User) -> CallReport:
        report = self.repo.get_report_by_id(self.db, report_id)
        if not report:
            raise HTTPException(status_code=404, detail=f"Report not found with id: {report_id}")
        self._ensure_branch_access(report.branch_id, current_user)
        return report

    def _ensure_branch_access(self, branch_id: Optional[int], current_user: User) -> None:
        branch_ids = scope_branch_ids(self.db, current_user)
        if branch_ids is not None and branch_id not in branch_ids:
            logger.warning(f"⚠️ User {current_user.id} denied access to branch {branch_id}")
            raise HTTPException(status_code=403, detail="No access to this branch")

    def _ensure_branch(self, branch_id: Optional[int]) -> None:
        if branch_id is not None and not self.hierarchy.get_branch_by_id(self.db, branch_id):
            raise HTTPException(status_code=404, detail=f"Branch not found with id: {branch_id}")

    def create_report(self, data: CallReportRequest, current_user: User) -> CallReport:
        self._ensure_branch(data.branchId)
        self._ensure_branch_access(data.branchId, current_user)

        report = CallReport(
            called_at=data.calledAt,
            arrived_at=data.arrivedAt,
            call_type=data.callType,
            branch_id=data.branchId,
            created_by=str(current_user.id),
            remark=data.remark,
        )
        for key, count in data.entries.items():
            report.entries.append(
                CallReportEntry(status_key=key, status_value=count, remark=data.remarks.get(key))
            )
        report = self.repo.save(self.db, report)
        logger.info(f"✅ Created call report {report.id} with {len(data.entries)} status entries")
        return report

    def update_report(self, report_id: int, data: CallReportRequest, current_user: User) -> CallReport:
        report = self.get_report(report_id, current_user)
        if data.branchId is not None:
            self._ensure_branch(data.branchId)
            self._ensure_branch_access(data.branchId, current_user)
            report.branch_id = data.branchId

        report.called_at = data.calledAt
        report.arrived_at = data.arrivedAt
        report.call_type = data.callType
        report.remark = data.remark

        # Entries are updated in place; the (report, status) pair is unique
        existing = {entry.status_key: entry for entry in report.entries}
        for key, entry in existing.items():
            if key not in data.entries:
                report.entries.remove(entry)
        for key, count in data.entries.items():
            entry = existing.get(key)
            if entry is None:
                report.entries.append(
                    CallReportEntry(status_key=key, status_value=count, remark=data.remarks.get(key))
                )
            else:
                entry.status_value = count
                entry.remark = data.remarks.get(key)

        return self.repo.save(self.db, report)

    def delete_report(self, report_id: int, current_user: User) -> None:
        report = self.get_report(report_id, current_user)
        self.repo.delete(self.db, report)
        logger.info(f"🗑️ Deleted call report {report_id}")

    def creator_names(self, reports: list[CallReport]) -> dict[str, str]:
        """Map stored creator ids to usernames; unknown creators keep their raw id"""
        ids = {int(r.created_by) for r in reports if r.created_by and r.created_by.isdigit()}
        names = self.repo.get_usernames(self.db, ids)
        return {str(user_id): username for user_id, username in names.items()}

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def _summary_rows(
        self,
        current_user: User,
        start_date: Optional[date],
        end_date: Optional[date],
        branch_ids: Optional[list[int]],
        area_ids: Optional[list[int]],
        sub_area_ids: Optional[list[int]],
        status_keys: Optional[list[str]],
        call_type: Optional[str],
    ):
        effective_branch_ids = scope_branch_ids(self.db, current_user, branch_ids)
        if effective_branch_ids == []:
            return []
        return self.repo.summary_rows(
            self.db,
            start_date=start_date,
            end_date=end_date,
            branch_ids=effective_branch_ids,
            area_ids=area_ids,
            sub_area_ids=sub_area_ids,
            status_keys=status_keys or None,
            call_type=call_type,
        )

    def summarize(self, current_user: User, **filters) -> list[CallReportSummaryResponse]:
        """Status totals grouped per (called date, branch)"""
        grouped: dict[tuple, CallReportSummaryResponse] = {}
        for called_at, arrived_at, branch_id, branch_name, status_key, total in self._summary_rows(
            current_user, **filters
        ):
            summary = grouped.get((called_at, branch_id))
            if summary is None:
                summary = grouped[(called_at, branch_id)] = CallReportSummaryResponse(
                    calledAt=called_at,
                    arrivedAt=arrived_at,
                    branchId=branch_id,
                    branchName=branch_name or NO_BRANCH,
                    statusTotals={},
                    sameDayArrival=arrived_at is not None and arrived_at == called_at,
                )
            summary.statusTotals[status_key] = summary.statusTotals.get(status_key, 0) + int(total or 0)
        return list(grouped.values())

    def series(self, current_user: User, granularity: str, **filters) -> CallReportSeriesResponse:
        """Chart series bucketed by day, ISO week or month plus headline totals"""
        if granularity not in GRANULARITIES:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown granularity '{granularity}', expected one of: {', '.join(GRANULARITIES)}",
            )

        rows = self._summary_rows(current_user, **filters)
        points = daily_series((row[0], row[4], int(row[5] or 0)) for row in rows)
        status_keys = filters.get("status_keys") or sorted({row[4] for row in rows})
        bucketed = bucket_series(points, granularity, status_keys)

        totals_by_status: dict[str, int] = {}
        branch_totals: dict[Optional[int], BranchTotal] = {}
        for _, _, branch_id, branch_name, status_key, total in rows:
            total = int(total or 0)
            totals_by_status[status_key] = totals_by_status.get(status_key, 0) + total
            entry = branch_totals.get(branch_id)
            if entry is None:
                entry = branch_totals[branch_id] = BranchTotal(
                    branchId=branch_id, branchName=branch_name or NO_BRANCH, total=0
                )
            entry.total += total

        top_status = None
        if totals_by_status:
            labels = {s.key: s.label for s in self.repo.get_statuses(self.db)}
            key = max(totals_by_status, key=lambda k: (totals_by_status[k], k))
            top_status = StatusTotal(key=key, label=labels.get(key, key), total=totals_by_status[key])

        return CallReportSeriesResponse(
            granularity=granularity,
            points=bucketed,
            totalsByStatus=totals_by_status,
            grandTotal=sum(totals_by_status.values()),
            topStatus=top_status,
            branchTotals=sorted(branch_totals.values(), key=lambda b: (-b.total, b.branchName)),
        )

    def preview_import(self, text: str) -> StatusImportResult:
        """Count call outcomes in a pasted call log without saving anything"""
        if not text or not text.strip():
            raise HTTPException(status_code=400, detail="No call log data provided")
        return parse_call_log(text, self.repo.get_statuses(self.db))
