"""Goods shipment router - FastAPI endpoints for goods totals and paste import"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from sqlalchemy.orm import Session

from ...auth import GOODS_MANAGE, GOODS_VIEW, require_permission
from ...database import get_db
from ...models import GoodsShipment, User
from .paste_parser import DEFAULT_LAYOUT, ParsedGoodsEntry, PasteLayout
from .schemas import (
    BulkGoodsRequest,
    BulkGoodsResponse,
    GoodsDashboardStatsResponse,
    GoodsShipmentResponse,
    GoodsShipmentUpdate,
    ParsedEntryResponse,
    PasteParseRequest,
    PasteParseResponse,
    PasteSubmitRequest,
    PasteSubmitResponse,
)
from .service import GoodsShipmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/marketing/goods-shipments", tags=["Goods Shipments"])


def get_goods_service(db: Session = Depends(get_db)) -> GoodsShipmentService:
    """Dependency injection for GoodsShipmentService"""
    return GoodsShipmentService(db)


def shipment_response(shipment: GoodsShipment) -> GoodsShipmentResponse:
    member = shipment.member
    return GoodsShipmentResponse(
        id=shipment.id,
        memberId=shipment.member_id,
        memberName=member.name,
        memberPhone=member.phone,
        branchId=member.branch_id,
        branchName=member.branch.name if member.branch else None,
        sendDate=shipment.send_date,
        totalGoods=shipment.total_goods,
        createdBy=shipment.created_by,
        createdAt=shipment.created_at,
    )


def parse_response(entries: list[ParsedGoodsEntry]) -> PasteParseResponse:
    return PasteParseResponse(
        entries=[
            ParsedEntryResponse(
                row=e.row,
                name=e.name,
                phone=e.phone,
                totalGoods=e.total_goods,
                memberId=e.member_id,
                memberName=e.member_name,
                valid=e.valid,
            )
            for e in entries
        ],
        totalRows=len(entries),
        validCount=sum(1 for e in entries if e.valid),
        unmatchedPhones=[e.phone for e in entries if e.member_id is None],
    )


def _merge_ids(single: Optional[int], many: Optional[list[int]]) -> Optional[list[int]]:
    ids = list(many or [])
    if single is not None and single not in ids:
        ids.append(single)
    return ids or None


# ============================================================================
# RECORDING
# ============================================================================


@router.post("/bulk", response_model=BulkGoodsResponse)
async def record_bulk(
    data: BulkGoodsRequest,
    current_user: User = Depends(require_permission(GOODS_MANAGE)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    """Upsert goods totals per (member, send date)"""
    return service.record_bulk(data.records, current_user)


# ============================================================================
# LISTING
# ============================================================================


@router.get("", response_model=list[GoodsShipmentResponse])
async def get_shipments(
    memberId: Optional[int] = Query(None),
    branchId: Optional[int] = Query(None),
    subAreaId: Optional[int] = Query(None),
    areaId: Optional[int] = Query(None),
    branchIds: Optional[list[int]] = Query(None),
    subAreaIds: Optional[list[int]] = Query(None),
    areaIds: Optional[list[int]] = Query(None),
    createdBy: Optional[int] = Query(None),
    myOnly: bool = Query(False),
    memberQuery: Optional[str] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(require_permission(GOODS_VIEW)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    """Recent shipments, newest send date first"""
    shipments = service.get_shipments(
        current_user,
        limit=limit,
        member_id=memberId,
        branch_ids=_merge_ids(branchId, branchIds),
        sub_area_ids=_merge_ids(subAreaId, subAreaIds),
        area_ids=_merge_ids(areaId, areaIds),
        created_by=current_user.id if myOnly else createdBy,
        member_query=memberQuery,
        start_date=startDate,
        end_date=endDate,
    )
    return [shipment_response(s) for s in shipments]


@router.get("/dashboard-stats", response_model=GoodsDashboardStatsResponse)
async def get_dashboard_stats(
    areaId: Optional[int] = Query(None),
    subAreaId: Optional[int] = Query(None),
    branchId: Optional[int] = Query(None),
    memberId: Optional[int] = Query(None),
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    current_user: User = Depends(require_permission(GOODS_VIEW)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    return service.get_dashboard_stats(
        current_user,
        member_id=memberId,
        branch_ids=_merge_ids(branchId, None),
        sub_area_ids=_merge_ids(subAreaId, None),
        area_ids=_merge_ids(areaId, None),
        start_date=startDate,
        end_date=endDate,
    )


@router.put("/{shipment_id}", response_model=GoodsShipmentResponse)
async def update_shipment(
    shipment_id: int,
    data: GoodsShipmentUpdate,
    current_user: User = Depends(require_permission(GOODS_MANAGE)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    return shipment_response(service.update_shipment(shipment_id, data, current_user))


@router.delete("/{shipment_id}", status_code=204)
async def delete_shipment(
    shipment_id: int,
    current_user: User = Depends(require_permission(GOODS_MANAGE)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    service.delete_shipment(shipment_id, current_user)
    return Response(status_code=204)


# ============================================================================
# PASTE IMPORT
# ============================================================================


@router.post(
    "/parse", response_model=PasteParseResponse, dependencies=[Depends(require_permission(GOODS_VIEW))]
)
async def parse_pasted_goods(
    data: PasteParseRequest,
    service: GoodsShipmentService = Depends(get_goods_service),
):
    """Preview pasted sheet rows matched against the VIP roster"""
    return parse_response(service.parse_paste(data.text, data.layout()))


@router.post(
    "/parse/upload", response_model=PasteParseResponse, dependencies=[Depends(require_permission(GOODS_VIEW))]
)
async def parse_uploaded_goods(
    file: UploadFile = File(...),
    headerRows: int = Form(DEFAULT_LAYOUT.header_rows),
    nameColumn: Optional[int] = Form(DEFAULT_LAYOUT.name_column),
    phoneColumn: int = Form(DEFAULT_LAYOUT.phone_column),
    goodsColumn: int = Form(DEFAULT_LAYOUT.goods_column),
    minColumns: int = Form(DEFAULT_LAYOUT.min_columns),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    """Same as /parse for a tab-separated text file"""
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="File must be UTF-8 tab-separated text") from e

    layout = PasteLayout(
        header_rows=headerRows,
        name_column=nameColumn,
        phone_column=phoneColumn,
        goods_column=goodsColumn,
        min_columns=minColumns,
    )
    return parse_response(service.parse_paste(text, layout))


@router.post("/parse/submit", response_model=PasteSubmitResponse)
async def submit_pasted_goods(
    data: PasteSubmitRequest,
    current_user: User = Depends(require_permission(GOODS_MANAGE)),
    service: GoodsShipmentService = Depends(get_goods_service),
):
    """Save the valid parsed rows as one bulk batch for the given send date"""
    result, skipped = service.submit_paste(data.text, data.layout(), data.sendDate, current_user)
    return PasteSubmitResponse(**result.model_dump(), skippedRows=skipped)


__all__ = ["router", "get_goods_service", "shipment_response"]
