"""VIP member repository - Database operations for VIP members"""

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Area, Branch, SubArea, VipMember


class VipMemberRepository:
    """Repository for VIP member database operations"""

    @staticmethod
    def filtered_query(
        db: Session,
        scope_branch_ids: Optional[list[int]] = None,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        active_only: bool = False,
    ) -> Query:
        query = db.query(VipMember).outerjoin(Branch, Branch.id == VipMember.branch_id)
        if scope_branch_ids is not None:
            query = query.filter(VipMember.branch_id.in_(scope_branch_ids))
        if area_id is not None:
            query = query.filter(Branch.area_id == area_id)
        if sub_area_id is not None:
            query = query.filter(Branch.sub_area_id == sub_area_id)
        if branch_id is not None:
            query = query.filter(VipMember.branch_id == branch_id)
        if start_date:
            query = query.filter(VipMember.member_created_at >= start_date)
        if end_date:
            query = query.filter(VipMember.member_created_at <= end_date)
        if active_only:
            query = query.filter(VipMember.member_deleted_at.is_(None))
        return query

    @staticmethod
    def with_hierarchy(query: Query) -> Query:
        return query.options(
            joinedload(VipMember.branch).joinedload(Branch.area),
            joinedload(VipMember.branch).joinedload(Branch.sub_area),
        )

    @staticmethod
    def get_by_id(db: Session, member_id: int) -> Optional[VipMember]:
        return db.query(VipMember).filter(VipMember.id == member_id).first()

    @staticmethod
    def get_by_phone(db: Session, phone: str) -> Optional[VipMember]:
        return db.query(VipMember).filter(VipMember.phone == phone).first()

    @staticmethod
    def get_all_phones(db: Session) -> list[str]:
        return [phone for (phone,) in db.query(VipMember.phone).all()]

    @staticmethod
    def get_roster(db: Session) -> list[VipMember]:
        return db.query(VipMember).all()

    @staticmethod
    def count_by(db: Session, id_column, name_column, member_query: Query) -> list[tuple]:
        """(id, name, active member count) per area, sub-area or branch of a filtered query"""
        member_ids = member_query.with_entities(VipMember.id).subquery()
        return (
            db.query(id_column, name_column, func.count(VipMember.id))
            .select_from(VipMember)
            .join(Branch, Branch.id == VipMember.branch_id)
            .outerjoin(Area, Area.id == Branch.area_id)
            .outerjoin(SubArea, SubArea.id == Branch.sub_area_id)
            .filter(VipMember.id.in_(select(member_ids.c.id)))
            .filter(VipMember.member_deleted_at.is_(None))
            .filter(id_column.isnot(None))
            .group_by(id_column, name_column)
            .order_by(func.count(VipMember.id).desc(), id_column)
            .all()
        )

    @staticmethod
    def save(db: Session, member: VipMember) -> VipMember:
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    @staticmethod
    def delete(db: Session, member: VipMember) -> None:
        db.delete(member)
        db.commit()
