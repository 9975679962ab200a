"""Call-log status import"""

from datetime import date, datetime
from types import SimpleNamespace

from backoffice.domain.call_reports.status_import import parse_call_log, resolve_status

STATUSES = [
    SimpleNamespace(key="answered", label="Answered"),
    SimpleNamespace(key="no-answer", label="No Answer"),
]
NOW = datetime(2024, 3, 10, 12, 0, 0)


def log_row(number: str, arrived: str, status: str) -> str:
    cells = [""] * 11
    cells[0], cells[1], cells[10] = number, arrived, status
    return "\t".join(cells)


class TestResolveStatus:
    def test_by_label_case_insensitive(self):
        assert resolve_status("no answer", STATUSES).key == "no-answer"

    def test_by_slug(self):
        assert resolve_status("No-Answer!", STATUSES).key == "no-answer"

    def test_unknown(self):
        assert resolve_status("Voicemail", STATUSES) is None


class TestParseCallLog:
    def test_counts_per_status(self):
        text = "\n".join(
            [
                "No\tArrived\tName",
                log_row("1", "04/03/2024", "Answered 5/3/2024 10:15:00"),
                log_row("2", "05/03/2024", "No Answer 6/3/2024 09:00:00"),
                "Answered 7/3/2024 11:30:00",
            ]
        )

        result = parse_call_log(text, STATUSES, now=NOW)

        assert result.entries == {"answered": 2, "no-answer": 1}
        assert result.total == 3
        assert result.unmatched == []
        assert result.records[0].arrived_at == date(2024, 3, 4)
        assert result.records[0].called_at == datetime(2024, 3, 5, 10, 15, 0)

    def test_continuation_row_inherits_arrival_date(self):
        text = "\n".join([log_row("1", "04/03/2024", "Answered"), "No Answer 6/3/2024 09:00:00"])
        result = parse_call_log(text, STATUSES, now=NOW)
        assert [r.arrived_at for r in result.records] == [date(2024, 3, 4), date(2024, 3, 4)]

    def test_status_without_timestamp_uses_now(self):
        result = parse_call_log(log_row("1", "04/03/2024", "Answered"), STATUSES, now=NOW)
        assert result.records[0].called_at == NOW

    def test_unknown_status_is_reported_not_counted(self):
        text = "\n".join(
            [log_row("1", "04/03/2024", "Voicemail 5/3/2024 10:15:00"), log_row("2", "04/03/2024", "Voicemail")]
        )
        result = parse_call_log(text, STATUSES, now=NOW)
        assert result.entries == {}
        assert result.unmatched == ["Voicemail"]

    def test_rows_before_first_numbered_row_are_ignored(self):
        result = parse_call_log("Answered 5/3/2024 10:15:00", STATUSES, now=NOW)
        assert result.total == 0

    def test_line_separators_inside_cells_do_not_split_rows(self):
        row = log_row("1", "04/03/2024", "Answered 5/3/2024 10:15:00").split("\t")
        row[2] = "Jane\u2028Doe\x0c"
        result = parse_call_log("\t".join(row) + "\r\n", STATUSES, now=NOW)
        assert result.entries == {"answered": 1}
        assert result.unmatched == []
