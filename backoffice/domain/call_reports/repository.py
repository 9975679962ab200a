"""Call report repository - Database operations for call statuses and reports"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Branch, CallReport, CallReportEntry, CallStatus, User


class CallReportRepository:
    """Repository for call status and call report database operations"""

    # Statuses
    @staticmethod
    def get_statuses(db: Session) -> list[CallStatus]:
        return db.query(CallStatus).order_by(CallStatus.label).all()

    @staticmethod
    def get_status_by_key(db: Session, key: str) -> Optional[CallStatus]:
        return db.query(CallStatus).filter(CallStatus.key == key).first()

    # Reports
    @staticmethod
    def get_reports(db: Session, branch_ids: Optional[list[int]] = None) -> list[CallReport]:
        query = db.query(CallReport).options(joinedload(CallReport.branch))
        if branch_ids is not None:
            query = query.filter(CallReport.branch_id.in_(branch_ids))
        return query.order_by(CallReport.created_at.desc(), CallReport.id.desc()).all()

    @staticmethod
    def get_report_by_id(db: Session, report_id: int) -> Optional[CallReport]:
        return (
            db.query(CallReport)
            .options(joinedload(CallReport.branch))
            .filter(CallReport.id == report_id)
            .first()
        )

    @staticmethod
    def summary_rows(
        db: Session,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        branch_ids: Optional[list[int]] = None,
        area_ids: Optional[list[int]] = None,
        sub_area_ids: Optional[list[int]] = None,
        status_keys: Optional[list[str]] = None,
        call_type: Optional[str] = None,
    ):
        """
        Per (called date, branch, status) totals.

        Rows: (called_at, arrived_at, branch_id, branch_name, status_key, total)
        """
        query = (
            db.query(
                CallReport.called_at,
                func.min(CallReport.arrived_at),
                CallReport.branch_id,
                Branch.name,
                CallReportEntry.status_key,
                func.sum(CallReportEntry.status_value),
            )
            .join(CallReportEntry, CallReportEntry.report_id == CallReport.id)
            .outerjoin(Branch, Branch.id == CallReport.branch_id)
        )

        if start_date:
            query = query.filter(CallReport.called_at >= start_date)
        if end_date:
            query = query.filter(CallReport.called_at <= end_date)
        if branch_ids is not None:
            query = query.filter(CallReport.branch_id.in_(branch_ids))
        if area_ids:
            query = query.filter(Branch.area_id.in_(area_ids))
        if sub_area_ids:
            query = query.filter(Branch.sub_area_id.in_(sub_area_ids))
        if status_keys:
            query = query.filter(CallReportEntry.status_key.in_(status_keys))
        if call_type:
            query = query.filter(CallReport.call_type == call_type)

        return (
            query.group_by(
                CallReport.called_at, CallReport.branch_id, Branch.name, CallReportEntry.status_key
            )
            .order_by(CallReport.called_at, CallReport.branch_id)
            .all()
        )

    @staticmethod
    def get_usernames(db: Session, user_ids: set[int]) -> dict[int, str]:
        if not user_ids:
            return {}
        rows = db.query(User.id, User.username).filter(User.id.in_(user_ids)).all()
        return {user_id: username for user_id, username in rows}

    # Generic persistence
    @staticmethod
    def save(db: Session, entity):
        db.add(entity)
        db.commit()
        db.refresh(entity)
        return entity

    @staticmethod
    def delete(db: Session, entity) -> None:
        db.delete(entity)
        db.commit()
