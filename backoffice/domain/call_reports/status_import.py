"""
Import of call outcomes pasted from the call-log spreadsheet.

Main rows start with a running number and carry the arrival date in column B
and one or more ``"<status> <d/m/yyyy hh:mm:ss>"`` lines in column K. Cells
holding several lines arrive as continuation rows without a leading number.
"""

import logging
import re
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional, Protocol

from pydantic import BaseModel, Field

from ...shared.validators import slugify_status_key

logger = logging.getLogger(__name__)

ARRIVED_COLUMN = 1  # column B
STATUS_COLUMN = 10  # column K

_ARRIVED_DATE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
_STATUS_WITH_TIME = re.compile(r"^(.+?)\s+(\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}:\d{2})$")
_RUNNING_NUMBER = re.compile(r"^\d+$")


class KnownStatus(Protocol):
    key: str
    label: str


class ImportedCallRecord(BaseModel):
    arrived_at: Optional[date] = None
    called_at: datetime
    status_key: str
    status_label: str


class StatusImportResult(BaseModel):
    entries: dict[str, int] = Field(default_factory=dict)
    records: list[ImportedCallRecord] = Field(default_factory=list)
    unmatched: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.entries.values())


def resolve_status(text: str, statuses: Sequence[KnownStatus]) -> Optional[KnownStatus]:
    """Match by label (case-insensitive) or by the slug of the text"""
    lowered = text.strip().lower()
    slug = slugify_status_key(text)
    for status in statuses:
        if status.label.strip().lower() == lowered or status.key == slug:
            return status
    return None


def parse_call_log(
    text: str,
    statuses: Sequence[KnownStatus],
    now: Optional[datetime] = None,
) -> StatusImportResult:
    """
    Count call outcomes per status key.

    Status lines without a timestamp are stamped with ``now``. Statuses that
    match no known call status are reported in ``unmatched`` and not counted.
    """
    now = now or datetime.now()
    result = StatusImportResult()
    current_arrived: Optional[date] = None

    for line in text.split("\n"):
        if not line.strip():
            continue
        columns = line.split("\t")
        first = columns[0].strip()

        if _RUNNING_NUMBER.match(first):
            if len(columns) <= STATUS_COLUMN:
                continue
            arrived = _parse_arrived(columns[ARRIVED_COLUMN])
            if arrived is not None:
                current_arrived = arrived
            for status_line in columns[STATUS_COLUMN].strip().split("\n"):
                _record(status_line, statuses, current_arrived, now, result)
        elif current_arrived is not None:
            _record(line, statuses, current_arrived, now, result)

    logger.debug(
        f"📋 Call log import: {result.total} records, {len(result.unmatched)} unmatched statuses"
    )
    return result


def _parse_arrived(cell: str) -> Optional[date]:
    match = _ARRIVED_DATE.search(cell or "")
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _record(
    line: str,
    statuses: Sequence[KnownStatus],
    arrived_at: Optional[date],
    now: datetime,
    result: StatusImportResult,
) -> None:
    text = line.strip()
    if not text:
        return

    called_at = now
    match = _STATUS_WITH_TIME.match(text)
    if match:
        text = match.group(1).strip()
        try:
            called_at = datetime.strptime(" ".join(match.group(2).split()), "%d/%m/%Y %H:%M:%S")
        except ValueError:
            called_at = now

    status = resolve_status(text, statuses)
    if status is None:
        if text not in result.unmatched:
            result.unmatched.append(text)
        return

    result.entries[status.key] = result.entries.get(status.key, 0) + 1
    result.records.append(
        ImportedCallRecord(
            arrived_at=arrived_at,
            called_at=called_at,
            status_key=status.key,
            status_label=status.label,
        )
    )
