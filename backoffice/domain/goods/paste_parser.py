"""
Parser for goods totals pasted from a spreadsheet (or uploaded as text).

The shipping sheet exported by the branches has three header rows, the VIP
phone in column E and the goods total in column J. Rows are tab separated,
which is what spreadsheet applications put on the clipboard.
"""

import logging
import re
from collections.abc import Iterable
from typing import Optional, Protocol

from pydantic import BaseModel, Field

from ...shared.validators import normalize_phone

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^[+-]?\d+")


class PasteParseError(ValueError):
    """Raised when pasted content cannot be read as tab-separated rows"""


class PasteLayout(BaseModel):
    """Column offsets of the pasted sheet (zero based; negative counts from the end)"""

    header_rows: int = Field(3, ge=0)
    name_column: Optional[int] = 1
    phone_column: int = 4
    goods_column: int = 9
    min_columns: int = Field(10, ge=1)


DEFAULT_LAYOUT = PasteLayout()


class RosterMember(Protocol):
    id: int
    name: str
    phone: str


class ParsedGoodsEntry(BaseModel):
    row: int
    name: Optional[str] = None
    phone: str
    total_goods: int
    member_id: Optional[int] = None
    member_name: Optional[str] = None

    @property
    def valid(self) -> bool:
        """Only matched members with a positive total are submitted"""
        return self.member_id is not None and self.total_goods > 0


def parse_goods_count(raw: Optional[str]) -> int:
    """``"1,500"`` -> 1500; leading integer wins (``"12.5"`` -> 12); unparsable -> 0"""
    if not raw:
        return 0
    match = _LEADING_INT.match(raw.replace(",", "").strip())
    return int(match.group()) if match else 0


def split_rows(text: str) -> list[list[str]]:
    """Non-blank lines split on tabs, each cell trimmed"""
    if "\x00" in text:
        raise PasteParseError("Content looks binary. Paste the cells or upload a tab-separated text file.")
    lines = [line for line in text.split("\n") if line.strip()]
    return [[cell.strip() for cell in line.split("\t")] for line in lines]


def parse_goods_paste(text: str, layout: PasteLayout = DEFAULT_LAYOUT) -> list[ParsedGoodsEntry]:
    """
    Extract ``(name, phone, total_goods)`` entries from pasted text.

    Rows within the header offset, rows with fewer than ``layout.min_columns``
    cells and rows without a phone are skipped.
    """
    entries = []
    for index, columns in enumerate(split_rows(text)):
        if index < layout.header_rows:
            continue
        if len(columns) < layout.min_columns:
            continue

        phone = _cell(columns, layout.phone_column)
        if not phone:
            continue

        name = _cell(columns, layout.name_column) if layout.name_column is not None else None
        entries.append(
            ParsedGoodsEntry(
                row=index + 1,
                name=name or None,
                phone=phone,
                total_goods=parse_goods_count(_cell(columns, layout.goods_column)),
            )
        )

    logger.debug(f"📋 Parsed {len(entries)} goods rows from pasted data")
    return entries


def match_members(entries: list[ParsedGoodsEntry], roster: Iterable[RosterMember]) -> list[ParsedGoodsEntry]:
    """Attach roster members by exact or whitespace-normalised phone"""
    by_phone: dict[str, RosterMember] = {}
    for member in roster:
        if member.phone:
            by_phone.setdefault(member.phone, member)
            by_phone.setdefault(normalize_phone(member.phone), member)

    for entry in entries:
        member = by_phone.get(entry.phone) or by_phone.get(normalize_phone(entry.phone))
        if member is not None:
            entry.member_id = member.id
            entry.member_name = member.name
    return entries


def valid_entries(entries: Iterable[ParsedGoodsEntry]) -> list[ParsedGoodsEntry]:
    return [entry for entry in entries if entry.valid]


def _cell(columns: list[str], index: int) -> str:
    try:
        return columns[index]
    except IndexError:
        return ""
