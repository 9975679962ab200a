"""VIP member router - FastAPI endpoints for the VIP member roster"""

import logging
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import MEMBER_MANAGE, MEMBER_VIEW, require_permission
from ...database import get_db
from ...models import User, VipMember
from .schemas import (
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    VipMemberBatchResponse,
    VipMemberDashboardResponse,
    VipMemberPage,
    VipMemberRequest,
    VipMemberResponse,
)
from .service import VipMemberService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/marketing/vip-members", tags=["VIP Members"])


def get_vip_member_service(db: Session = Depends(get_db)) -> VipMemberService:
    """Dependency injection for VipMemberService"""
    return VipMemberService(db)


def member_response(member: VipMember) -> VipMemberResponse:
    branch = member.branch
    return VipMemberResponse(
        id=member.id,
        name=member.name,
        phone=member.phone,
        memberCreatedAt=member.member_created_at,
        memberDeletedAt=member.member_deleted_at,
        createRemark=member.create_remark,
        deleteRemark=member.delete_remark,
        branchId=member.branch_id,
        branchName=branch.name if branch else None,
        subAreaId=branch.sub_area_id if branch else None,
        subAreaName=branch.sub_area.name if branch and branch.sub_area else None,
        areaId=branch.area_id if branch else None,
        areaName=branch.area.name if branch and branch.area else None,
        createdBy=member.created_by,
        createdAt=member.created_at,
        updatedAt=member.updated_at,
    )


@router.get("", response_model=list[VipMemberResponse])
async def get_members(
    areaId: Optional[int] = Query(None),
    subAreaId: Optional[int] = Query(None),
    branchId: Optional[int] = Query(None),
    current_user: User = Depends(require_permission(MEMBER_VIEW)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    """All VIP members visible to the current user"""
    members = service.get_members(current_user, areaId, subAreaId, branchId)
    return [member_response(m) for m in members]


@router.get("/paginated", response_model=VipMemberPage)
async def get_members_paginated(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=500),
    areaId: Optional[int] = Query(None),
    subAreaId: Optional[int] = Query(None),
    branchId: Optional[int] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    current_user: User = Depends(require_permission(MEMBER_VIEW)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    """Active VIP members, newest first, one page at a time"""
    content, total, total_pages = service.get_page(
        current_user, page, size, areaId, subAreaId, branchId, startDate, endDate
    )
    return VipMemberPage(
        content=[member_response(m) for m in content],
        page=page,
        size=size,
        totalElements=total,
        totalPages=total_pages,
    )


@router.get("/dashboard", response_model=VipMemberDashboardResponse)
async def get_dashboard(
    areaId: Optional[int] = Query(None),
    subAreaId: Optional[int] = Query(None),
    branchId: Optional[int] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    current_user: User = Depends(require_permission(MEMBER_VIEW)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    return service.get_dashboard(current_user, areaId, subAreaId, branchId, startDate, endDate)


@router.post(
    "/check-duplicates",
    response_model=DuplicateCheckResponse,
    dependencies=[Depends(require_permission(MEMBER_VIEW))],
)
async def check_duplicates(
    data: DuplicateCheckRequest,
    service: VipMemberService = Depends(get_vip_member_service),
):
    """Flag phones already on the roster or repeated within the request"""
    return service.check_duplicates(data.phones)


@router.get("/{member_id}", response_model=VipMemberResponse, dependencies=[Depends(require_permission(MEMBER_VIEW))])
async def get_member(member_id: int, service: VipMemberService = Depends(get_vip_member_service)):
    return member_response(service.get_member(member_id))


@router.post("", status_code=201)
async def create_members(
    data: Union[list[VipMemberRequest], VipMemberRequest] = Body(...),
    current_user: User = Depends(require_permission(MEMBER_MANAGE)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    """
    Create VIP members.

    A single object creates one member (409 on a duplicate phone). A list is
    treated as a batch: duplicates are skipped and reported.
    """
    if isinstance(data, VipMemberRequest):
        return member_response(service.create_member(data, current_user))

    created, skipped = service.create_batch(data, current_user)
    body = VipMemberBatchResponse(created=[member_response(m) for m in created], skipped=skipped)
    return JSONResponse(status_code=201, content=body.model_dump(mode="json"))


@router.put("/{member_id}", response_model=VipMemberResponse)
async def update_member(
    member_id: int,
    data: VipMemberRequest,
    current_user: User = Depends(require_permission(MEMBER_MANAGE)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    return member_response(service.update_member(member_id, data, current_user))


@router.delete("/{member_id}", status_code=204)
async def delete_member(
    member_id: int,
    current_user: User = Depends(require_permission(MEMBER_MANAGE)),
    service: VipMemberService = Depends(get_vip_member_service),
):
    service.delete_member(member_id, current_user)
    return Response(status_code=204)


__all__ = ["router", "get_vip_member_service", "member_response"]
