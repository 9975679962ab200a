"""Goods shipment domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from .paste_parser import DEFAULT_LAYOUT, PasteLayout


class GoodsRecord(BaseModel):
    # Member id; named after the roster row the record belongs to
    userId: int
    sendDate: date
    totalGoods: int = Field(..., ge=0)


class BulkGoodsRequest(BaseModel):
    records: list[GoodsRecord]


class BulkGoodsResponse(BaseModel):
    saved: int
    created: int
    updated: int


class GoodsShipmentUpdate(BaseModel):
    sendDate: Optional[date] = None
    totalGoods: Optional[int] = Field(None, ge=0)


class GoodsShipmentResponse(BaseModel):
    id: int
    memberId: int
    memberName: str
    memberPhone: str
    branchId: Optional[int] = None
    branchName: Optional[str] = None
    sendDate: date
    totalGoods: int
    createdBy: int
    createdAt: Optional[datetime] = None


class NamedTotal(BaseModel):
    id: Optional[int] = None
    name: str
    totalGoods: int


class TrendTotal(BaseModel):
    key: str
    label: str
    totalGoods: int


class GoodsDashboardStatsResponse(BaseModel):
    totalGoods: int
    shipmentCount: int
    memberCount: int
    areaTotals: list[NamedTotal]
    subAreaTotals: list[NamedTotal]
    branchTotals: list[NamedTotal]
    dailyTrends: list[TrendTotal]
    weeklyTrends: list[TrendTotal]
    monthlyTrends: list[TrendTotal]


class PasteParseRequest(BaseModel):
    text: str
    headerRows: int = Field(DEFAULT_LAYOUT.header_rows, ge=0)
    nameColumn: Optional[int] = DEFAULT_LAYOUT.name_column
    phoneColumn: int = DEFAULT_LAYOUT.phone_column
    goodsColumn: int = DEFAULT_LAYOUT.goods_column
    minColumns: int = Field(DEFAULT_LAYOUT.min_columns, ge=1)

    def layout(self) -> PasteLayout:
        return PasteLayout(
            header_rows=self.headerRows,
            name_column=self.nameColumn,
            phone_column=self.phoneColumn,
            goods_column=self.goodsColumn,
            min_columns=self.minColumns,
        )


class PasteSubmitRequest(PasteParseRequest):
    sendDate: date


class ParsedEntryResponse(BaseModel):
    row: int
    name: Optional[str] = None
    phone: str
    totalGoods: int
    memberId: Optional[int] = None
    memberName: Optional[str] = None
    valid: bool


class PasteParseResponse(BaseModel):
    entries: list[ParsedEntryResponse]
    totalRows: int
    validCount: int
    unmatchedPhones: list[str]


class PasteSubmitResponse(BulkGoodsResponse):
    skippedRows: int
