"""Goods paste parser"""

from types import SimpleNamespace

import pytest

from backoffice.domain.goods.paste_parser import (
    DEFAULT_LAYOUT,
    PasteLayout,
    PasteParseError,
    match_members,
    parse_goods_count,
    parse_goods_paste,
    valid_entries,
)

SIMPLE_LAYOUT = PasteLayout(header_rows=0, name_column=0, phone_column=1, goods_column=-1, min_columns=1)


def sheet_row(name: str, phone: str, goods: str) -> str:
    """A row of the ten-column shipping sheet: name in B, phone in E, goods in J"""
    cells = [""] * 10
    cells[0], cells[1], cells[4], cells[9] = "1", name, phone, goods
    return "\t".join(cells)


# ============================================================
# Goods counts
# ============================================================


class TestParseGoodsCount:
    @pytest.mark.parametrize(
        "raw, expected",
        [("1,500", 1500), ("42", 42), ("12.5", 12), ("  7 ", 7), ("n/a", 0), ("", 0), (None, 0)],
    )
    def test_parse(self, raw, expected):
        assert parse_goods_count(raw) == expected


# ============================================================
# Parsing
# ============================================================


class TestParseGoodsPaste:
    def test_simple_row(self):
        entries = parse_goods_paste("Jane Doe\t0123456\tsomething\t1,500", SIMPLE_LAYOUT)
        assert len(entries) == 1
        assert entries[0].name == "Jane Doe"
        assert entries[0].phone == "0123456"
        assert entries[0].total_goods == 1500

    def test_default_layout_skips_header_rows(self):
        header = "\n".join(["Shipping sheet", "Month\tMarch", "No\tName\t\t\tPhone\t\t\t\t\tGoods"])
        rows = [sheet_row("Jane Doe", "0123456", "1,500"), sheet_row("Ali", "0199", "3")]
        entries = parse_goods_paste(header + "\n" + "\n".join(rows), DEFAULT_LAYOUT)

        assert [(e.name, e.phone, e.total_goods) for e in entries] == [
            ("Jane Doe", "0123456", 1500),
            ("Ali", "0199", 3),
        ]
        assert [e.row for e in entries] == [4, 5]

    def test_one_entry_per_data_row(self):
        rows = [sheet_row(f"Member {i}", f"01{i:05d}", str(i * 10)) for i in range(25)]
        entries = parse_goods_paste("\n".join(rows), PasteLayout(header_rows=0))
        assert len(entries) == 25
        for i, entry in enumerate(entries):
            assert entry.phone == f"01{i:05d}"
            assert entry.total_goods == i * 10

    def test_short_and_phoneless_rows_are_skipped(self):
        text = "\n".join(
            [
                "1\tShort row\t\t\t0123",
                sheet_row("No phone", "", "5"),
                sheet_row("Kept", "0111", "5"),
                "   ",
            ]
        )
        entries = parse_goods_paste(text, PasteLayout(header_rows=0))
        assert [e.name for e in entries] == ["Kept"]

    def test_binary_content_rejected(self):
        with pytest.raises(PasteParseError):
            parse_goods_paste("PK\x03\x04\x00\x00", SIMPLE_LAYOUT)

    def test_rows_split_only_on_newlines(self):
        text = "Jane\u2028Doe\t0123456\tx\t1,500\r\nAli\x0bBaba\t0199\tx\t3"
        entries = parse_goods_paste(text, SIMPLE_LAYOUT)
        assert [(e.name, e.phone, e.total_goods) for e in entries] == [
            ("Jane\u2028Doe", "0123456", 1500),
            ("Ali\x0bBaba", "0199", 3),
        ]


# ============================================================
# Roster matching
# ============================================================


class TestMatchMembers:
    def test_matches_by_normalized_phone(self):
        roster = [SimpleNamespace(id=7, name="Jane Doe", phone="012 345 678")]
        entries = parse_goods_paste("Jane\t012345678\t9\nBob\t0999\t4\nZero\t012345678\t0", SIMPLE_LAYOUT)

        matched = match_members(entries, roster)

        assert matched[0].member_id == 7
        assert matched[0].member_name == "Jane Doe"
        assert matched[1].member_id is None
        assert [e.row for e in valid_entries(matched)] == [1]
