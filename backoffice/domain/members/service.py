"""VIP member service - Business logic for the VIP member roster"""

import logging
import math
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...auth import is_root_user, scope_branch_ids
from ...models import Area, Branch, SubArea, User, VipMember
from ...shared.bucketing import DAILY, MONTHLY, WEEKLY, count_by_bucket
from ..hierarchy.repository import HierarchyRepository
from .duplicates import EXISTING, check_phones, split_duplicates
from .repository import VipMemberRepository
from .schemas import (
    DuplicateCheckResponse,
    PhoneCheckResponse,
    SkippedMember,
    VipMemberDashboardResponse,
    VipMemberRequest,
    named_counts,
    trend_counts,
)

logger = logging.getLogger(__name__)


class VipMemberService:
    """Service layer for VIP members"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VipMemberRepository()
        self.hierarchy = HierarchyRepository()

    def _scoped_query(self, current_user: User, **filters):
        scope = scope_branch_ids(self.db, current_user)
        return self.repo.filtered_query(self.db, scope_branch_ids=scope, **filters)

    def get_members(
        self,
        current_user: User,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> list[VipMember]:
        query = self._scoped_query(current_user, area_id=area_id, sub_area_id=sub_area_id, branch_id=branch_id)
        return self.repo.with_hierarchy(query).order_by(VipMember.id.desc()).all()

    def get_member(self, member_id: int) -> VipMember:
        member = self.repo.get_by_id(self.db, member_id)
        if not member:
            raise HTTPException(status_code=404, detail=f"VIP member not found: {member_id}")
        return member

    def _check_branch(self, branch_id: Optional[int], current_user: User) -> None:
        if branch_id is None:
            return
        if not self.hierarchy.get_branch_by_id(self.db, branch_id):
            raise HTTPException(status_code=404, detail=f"Branch not found with id: {branch_id}")
        scope = scope_branch_ids(self.db, current_user)
        if scope is not None and branch_id not in scope:
            raise HTTPException(
                status_code=403, detail="You don't have permission to create VIP members in this branch"
            )

    def _ensure_creator(self, member: VipMember, current_user: User) -> None:
        if member.created_by != current_user.id and not is_root_user(current_user):
            logger.warning(f"⚠️ User {current_user.id} tried to modify VIP member {member.id}")
            raise HTTPException(status_code=403, detail="Only the creator can modify this VIP member")

    @staticmethod
    def _apply(member: VipMember, data: VipMemberRequest) -> None:
        member.name = data.name
        member.phone = data.phone
        member.member_created_at = data.memberCreatedAt
        member.member_deleted_at = data.memberDeletedAt
        member.create_remark = data.createRemark
        member.delete_remark = data.deleteRemark
        if data.branchId is not None:
            member.branch_id = data.branchId

    def create_member(self, data: VipMemberRequest, current_user: User) -> VipMember:
        if self.repo.get_by_phone(self.db, data.phone):
            raise HTTPException(
                status_code=409, detail=f"VIP member with phone number {data.phone} already exists"
            )
        self._check_branch(data.branchId, current_user)

        member = VipMember(created_by=current_user.id)
        self._apply(member, data)
        member = self.repo.save(self.db, member)
        logger.info(f"✅ Created VIP member {member.id}")
        return member

    def create_batch(
        self, items: list[VipMemberRequest], current_user: User
    ) -> tuple[list[VipMember], list[SkippedMember]]:
        """Create many members; duplicates and entries outside the caller's branches are skipped"""
        if not items:
            raise HTTPException(status_code=400, detail="No VIP members provided")

        fresh, duplicates = split_duplicates(
            list(enumerate(items)), lambda pair: pair[1].phone, self.repo.get_all_phones(self.db)
        )
        skipped = [
            SkippedMember(
                index=index,
                name=item.name,
                phone=item.phone,
                reason="Phone already exists" if check.reason == EXISTING else "Phone repeated in batch",
            )
            for (index, item), check in duplicates
        ]

        created = []
        for index, item in fresh:
            try:
                self._check_branch(item.branchId, current_user)
            except HTTPException as e:
                skipped.append(SkippedMember(index=index, name=item.name, phone=item.phone, reason=str(e.detail)))
                continue
            member = VipMember(created_by=current_user.id)
            self._apply(member, item)
            self.db.add(member)
            created.append(member)

        self.db.commit()
        for member in created:
            self.db.refresh(member)

        logger.info(f"📋 VIP member batch: {len(created)} created, {len(skipped)} skipped")
        return created, sorted(skipped, key=lambda s: s.index)

    def update_member(self, member_id: int, data: VipMemberRequest, current_user: User) -> VipMember:
        member = self.get_member(member_id)
        self._ensure_creator(member, current_user)

        other = self.repo.get_by_phone(self.db, data.phone)
        if other and other.id != member.id:
            raise HTTPException(
                status_code=409, detail=f"VIP member with phone number {data.phone} already exists"
            )
        if data.branchId is not None and data.branchId != member.branch_id:
            self._check_branch(data.branchId, current_user)

        self._apply(member, data)
        return self.repo.save(self.db, member)

    def delete_member(self, member_id: int, current_user: User) -> None:
        member = self.get_member(member_id)
        self._ensure_creator(member, current_user)
        self.repo.delete(self.db, member)
        logger.info(f"🗑️ Deleted VIP member {member_id}")

    def get_page(
        self,
        current_user: User,
        page: int,
        size: int,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[list[VipMember], int, int]:
        """Active members, newest first. Returns (content, total elements, total pages)"""
        query = self._scoped_query(
            current_user,
            area_id=area_id,
            sub_area_id=sub_area_id,
            branch_id=branch_id,
            start_date=start_date,
            end_date=end_date,
            active_only=True,
        )
        total = query.count()
        content = (
            self.repo.with_hierarchy(query)
            .order_by(VipMember.member_created_at.desc(), VipMember.id.desc())
            .offset(page * size)
            .limit(size)
            .all()
        )
        return content, total, math.ceil(total / size) if size else 0

    def get_dashboard(
        self,
        current_user: User,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> VipMemberDashboardResponse:
        filters = {"area_id": area_id, "sub_area_id": sub_area_id, "branch_id": branch_id}
        members = self._scoped_query(current_user, **filters)

        in_range = self._scoped_query(current_user, start_date=start_date, end_date=end_date, **filters)
        join_dates = [day for (day,) in in_range.with_entities(VipMember.member_created_at).all()]
        earliest, latest = members.with_entities(
            func.min(VipMember.member_created_at), func.max(VipMember.member_created_at)
        ).one()

        return VipMemberDashboardResponse(
            totalMembers=members.count(),
            activeMembers=members.filter(VipMember.member_deleted_at.is_(None)).count(),
            areaCounts=named_counts(self.repo.count_by(self.db, Branch.area_id, Area.name, members)),
            subAreaCounts=named_counts(self.repo.count_by(self.db, Branch.sub_area_id, SubArea.name, members)),
            branchCounts=named_counts(self.repo.count_by(self.db, Branch.id, Branch.name, members)),
            dailyCounts=trend_counts(count_by_bucket(join_dates, DAILY)),
            weeklyCounts=trend_counts(count_by_bucket(join_dates, WEEKLY)),
            monthlyCounts=trend_counts(count_by_bucket(join_dates, MONTHLY)),
            earliestDate=earliest,
            latestDate=latest,
        )

    def check_duplicates(self, phones: list[str]) -> DuplicateCheckResponse:
        checks = check_phones(phones, self.repo.get_all_phones(self.db))
        return DuplicateCheckResponse(
            results=[
                PhoneCheckResponse(
                    index=c.index,
                    phone=c.phone,
                    normalizedPhone=c.normalized_phone,
                    duplicate=c.duplicate,
                    reason=c.reason,
                )
                for c in checks
            ],
            duplicateCount=sum(1 for c in checks if c.duplicate),
        )
