"""Duplicate-phone detection for VIP member intake"""

from collections.abc import Callable, Iterable, Sequence
from typing import Optional, TypeVar

from pydantic import BaseModel

from ...shared.validators import normalize_phone

T = TypeVar("T")

EXISTING = "existing"  # already on the roster
REPEATED = "repeated"  # appears earlier in the same batch


class PhoneCheck(BaseModel):
    index: int
    phone: str
    normalized_phone: str
    duplicate: bool
    reason: Optional[str] = None


def check_phones(candidates: Sequence[str], roster_phones: Iterable[str]) -> list[PhoneCheck]:
    """Flag each candidate phone that is on the roster or repeats an earlier candidate"""
    known = {normalize_phone(p) for p in roster_phones if p}
    seen: set[str] = set()
    results = []

    for index, phone in enumerate(candidates):
        normalized = normalize_phone(phone or "") or ""
        reason = None
        if normalized in known:
            reason = EXISTING
        elif normalized in seen:
            reason = REPEATED
        seen.add(normalized)
        results.append(
            PhoneCheck(
                index=index,
                phone=phone,
                normalized_phone=normalized,
                duplicate=reason is not None,
                reason=reason,
            )
        )
    return results


def split_duplicates(
    items: Sequence[T],
    phone_of: Callable[[T], str],
    roster_phones: Iterable[str],
) -> tuple[list[T], list[tuple[T, PhoneCheck]]]:
    """Partition items into (fresh, duplicates); only fresh items go to bulk submission"""
    checks = check_phones([phone_of(item) for item in items], roster_phones)
    fresh: list[T] = []
    duplicates: list[tuple[T, PhoneCheck]] = []
    for item, check in zip(items, checks):
        if check.duplicate:
            duplicates.append((item, check))
        else:
            fresh.append(item)
    return fresh, duplicates
