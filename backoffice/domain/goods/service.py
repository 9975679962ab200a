"""Goods shipment service - Business logic for goods totals sent to VIP members"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...auth import scope_branch_ids
from ...config import GOODS_LIST_MAX_LIMIT
from ...models import Area, Branch, GoodsShipment, SubArea, User
from ...shared.bucketing import DAILY, MONTHLY, WEEKLY, bucket_series, daily_series
from ..members.repository import VipMemberRepository
from .paste_parser import (
    ParsedGoodsEntry,
    PasteLayout,
    PasteParseError,
    match_members,
    parse_goods_paste,
    valid_entries,
)
from .repository import GoodsShipmentRepository
from .schemas import (
    BulkGoodsResponse,
    GoodsDashboardStatsResponse,
    GoodsRecord,
    GoodsShipmentUpdate,
    NamedTotal,
    TrendTotal,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


class GoodsShipmentService:
    """Service layer for goods shipments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GoodsShipmentRepository()
        self.members = VipMemberRepository()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_bulk(self, records: list[GoodsRecord], current_user: User) -> BulkGoodsResponse:
        """
        Upsert goods totals per (member, send date).

        A later record for the same pair, in this batch or from an earlier
        batch, overwrites the total and the creator.
        """
        if not records:
            raise HTTPException(status_code=400, detail="No goods records provided")

        latest: dict[tuple[int, date], int] = {}
        for record in records:
            latest[(record.userId, record.sendDate)] = record.totalGoods

        requested_members = {member_id for member_id, _ in latest}
        missing = requested_members - self.repo.get_member_ids(self.db, requested_members)
        if missing:
            raise HTTPException(
                status_code=404,
                detail=f"VIP member not found: {', '.join(str(m) for m in sorted(missing))}",
            )

        existing = self.repo.get_by_member_and_dates(self.db, set(latest))
        created = updated = 0
        for (member_id, send_date), total in latest.items():
            shipment = existing.get((member_id, send_date))
            if shipment is None:
                self.db.add(
                    GoodsShipment(
                        member_id=member_id,
                        send_date=send_date,
                        total_goods=total,
                        created_by=current_user.id,
                    )
                )
                created += 1
            else:
                shipment.total_goods = total
                shipment.created_by = current_user.id
                updated += 1
        self.db.commit()

        logger.info(f"📦 Goods bulk by user {current_user.id}: {created} created, {updated} updated")
        return BulkGoodsResponse(saved=created + updated, created=created, updated=updated)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _scoped_query(self, current_user: User, **filters):
        scope = scope_branch_ids(self.db, current_user)
        return self.repo.filtered_query(self.db, scope_branch_ids=scope, **filters)

    def get_shipments(
        self,
        current_user: User,
        limit: Optional[int] = None,
        **filters,
    ) -> list[GoodsShipment]:
        if limit is None:
            limit = DEFAULT_LIST_LIMIT
        if limit < 1 or limit > GOODS_LIST_MAX_LIMIT:
            raise HTTPException(status_code=400, detail=f"limit must be between 1 and {GOODS_LIST_MAX_LIMIT}")

        query = self.repo.with_member(self._scoped_query(current_user, **filters))
        return (
            query.order_by(GoodsShipment.send_date.desc(), GoodsShipment.id.desc())
            .limit(limit)
            .all()
        )

    def get_shipment(self, shipment_id: int) -> GoodsShipment:
        shipment = self.repo.get_by_id(self.db, shipment_id)
        if not shipment:
            raise HTTPException(status_code=404, detail=f"Goods shipment not found: {shipment_id}")
        return shipment

    def _ensure_creator(self, shipment: GoodsShipment, current_user: User) -> None:
        if shipment.created_by != current_user.id:
            logger.warning(f"⚠️ User {current_user.id} tried to modify shipment {shipment.id}")
            raise HTTPException(status_code=403, detail="Only the creator can modify this shipment")

    def update_shipment(self, shipment_id: int, data: GoodsShipmentUpdate, current_user: User) -> GoodsShipment:
        shipment = self.get_shipment(shipment_id)
        self._ensure_creator(shipment, current_user)

        if data.sendDate is not None and data.sendDate != shipment.send_date:
            if self.repo.find_conflict(self.db, shipment.member_id, data.sendDate, shipment.id):
                raise HTTPException(
                    status_code=409, detail="A shipment for this member already exists on that date"
                )
            shipment.send_date = data.sendDate
        if data.totalGoods is not None:
            shipment.total_goods = data.totalGoods
        return self.repo.save(self.db, shipment)

    def delete_shipment(self, shipment_id: int, current_user: User) -> None:
        shipment = self.get_shipment(shipment_id)
        self._ensure_creator(shipment, current_user)
        self.repo.delete(self.db, shipment)
        logger.info(f"🗑️ Deleted goods shipment {shipment_id}")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_dashboard_stats(self, current_user: User, **filters) -> GoodsDashboardStatsResponse:
        query = self._scoped_query(current_user, **filters)

        total_goods, shipment_count, member_count = query.with_entities(
            func.coalesce(func.sum(GoodsShipment.total_goods), 0),
            func.count(GoodsShipment.id),
            func.count(func.distinct(GoodsShipment.member_id)),
        ).one()

        rows = query.with_entities(GoodsShipment.send_date, GoodsShipment.total_goods).all()
        daily = daily_series((send_date, "totalGoods", total) for send_date, total in rows)

        def trends(granularity: str) -> list[TrendTotal]:
            return [
                TrendTotal(key=p.key, label=p.label, totalGoods=p.total)
                for p in bucket_series(daily, granularity)
            ]

        def named(results) -> list[NamedTotal]:
            return [NamedTotal(id=i, name=name or str(i), totalGoods=int(total or 0)) for i, name, total in results]

        return GoodsDashboardStatsResponse(
            totalGoods=int(total_goods or 0),
            shipmentCount=shipment_count,
            memberCount=member_count,
            areaTotals=named(self.repo.totals_by(query, Branch.area_id, Area.name)),
            subAreaTotals=named(self.repo.totals_by(query, Branch.sub_area_id, SubArea.name)),
            branchTotals=named(self.repo.totals_by(query, Branch.id, Branch.name)),
            dailyTrends=trends(DAILY),
            weeklyTrends=trends(WEEKLY),
            monthlyTrends=trends(MONTHLY),
        )

    # ------------------------------------------------------------------
    # Paste import
    # ------------------------------------------------------------------

    def parse_paste(self, text: str, layout: PasteLayout) -> list[ParsedGoodsEntry]:
        """Parse pasted sheet rows and attach roster members by phone"""
        if not text or not text.strip():
            raise HTTPException(status_code=400, detail="No data to parse")
        try:
            entries = parse_goods_paste(text, layout)
        except PasteParseError as e:
            logger.warning(f"⚠️ Goods paste rejected: {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e
        return match_members(entries, self.members.get_roster(self.db))

    def submit_paste(
        self, text: str, layout: PasteLayout, send_date: date, current_user: User
    ) -> tuple[BulkGoodsResponse, int]:
        """Save valid parsed rows as one bulk batch. Returns (result, skipped row count)"""
        entries = self.parse_paste(text, layout)
        valid = valid_entries(entries)
        if not valid:
            raise HTTPException(status_code=400, detail="No valid rows matched a VIP member")

        records = [GoodsRecord(userId=e.member_id, sendDate=send_date, totalGoods=e.total_goods) for e in valid]
        return self.record_bulk(records, current_user), len(entries) - len(valid)
