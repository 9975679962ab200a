"""Goods shipment repository - Database operations for goods shipments"""

from datetime import date
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Area, Branch, GoodsShipment, SubArea, VipMember


class GoodsShipmentRepository:
    """Repository for goods shipment database operations"""

    @staticmethod
    def filtered_query(
        db: Session,
        scope_branch_ids: Optional[list[int]] = None,
        member_id: Optional[int] = None,
        branch_ids: Optional[list[int]] = None,
        sub_area_ids: Optional[list[int]] = None,
        area_ids: Optional[list[int]] = None,
        created_by: Optional[int] = None,
        member_query: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Query:
        query = (
            db.query(GoodsShipment)
            .join(VipMember, VipMember.id == GoodsShipment.member_id)
            .outerjoin(Branch, Branch.id == VipMember.branch_id)
        )
        if scope_branch_ids is not None:
            query = query.filter(VipMember.branch_id.in_(scope_branch_ids))
        if member_id is not None:
            query = query.filter(GoodsShipment.member_id == member_id)
        if branch_ids:
            query = query.filter(VipMember.branch_id.in_(branch_ids))
        if sub_area_ids:
            query = query.filter(Branch.sub_area_id.in_(sub_area_ids))
        if area_ids:
            query = query.filter(Branch.area_id.in_(area_ids))
        if created_by is not None:
            query = query.filter(GoodsShipment.created_by == created_by)
        if member_query:
            term = member_query.strip()
            query = query.filter(
                or_(VipMember.name.icontains(term, autoescape=True), VipMember.phone.contains(term, autoescape=True))
            )
        if start_date:
            query = query.filter(GoodsShipment.send_date >= start_date)
        if end_date:
            query = query.filter(GoodsShipment.send_date <= end_date)
        return query

    @staticmethod
    def with_member(query: Query) -> Query:
        return query.options(joinedload(GoodsShipment.member).joinedload(VipMember.branch))

    @staticmethod
    def get_by_id(db: Session, shipment_id: int) -> Optional[GoodsShipment]:
        return db.query(GoodsShipment).filter(GoodsShipment.id == shipment_id).first()

    @staticmethod
    def get_by_member_and_dates(db: Session, pairs: set[tuple[int, date]]) -> dict[tuple[int, date], GoodsShipment]:
        """Existing shipments keyed by (member id, send date)"""
        if not pairs:
            return {}
        member_ids = {member_id for member_id, _ in pairs}
        dates = {send_date for _, send_date in pairs}
        rows = (
            db.query(GoodsShipment)
            .filter(GoodsShipment.member_id.in_(member_ids), GoodsShipment.send_date.in_(dates))
            .all()
        )
        return {(s.member_id, s.send_date): s for s in rows if (s.member_id, s.send_date) in pairs}

    @staticmethod
    def find_conflict(db: Session, member_id: int, send_date: date, exclude_id: int) -> Optional[GoodsShipment]:
        return (
            db.query(GoodsShipment)
            .filter(
                GoodsShipment.member_id == member_id,
                GoodsShipment.send_date == send_date,
                GoodsShipment.id != exclude_id,
            )
            .first()
        )

    @staticmethod
    def get_member_ids(db: Session, member_ids: set[int]) -> set[int]:
        if not member_ids:
            return set()
        return {mid for (mid,) in db.query(VipMember.id).filter(VipMember.id.in_(member_ids)).all()}

    @staticmethod
    def totals_by(query: Query, id_column, name_column) -> list[tuple]:
        """(id, name, total goods) per area, sub-area or branch of a filtered query"""
        return (
            query.outerjoin(Area, Area.id == Branch.area_id)
            .outerjoin(SubArea, SubArea.id == Branch.sub_area_id)
            .filter(id_column.isnot(None))
            .with_entities(id_column, name_column, func.sum(GoodsShipment.total_goods))
            .group_by(id_column, name_column)
            .order_by(func.sum(GoodsShipment.total_goods).desc())
            .all()
        )

    @staticmethod
    def save(db: Session, shipment: GoodsShipment) -> GoodsShipment:
        db.add(shipment)
        db.commit()
        db.refresh(shipment)
        return shipment

    @staticmethod
    def delete(db: Session, shipment: GoodsShipment) -> None:
        db.delete(shipment)
        db.commit()
