"""Async REST client for the back-office API"""

import asyncio
import logging
from datetime import date
from typing import Any, Optional

import httpx

from .config import API_BASE_URL, API_TIMEOUT, USER_ID_HEADER

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Any non-2xx response or transport failure"""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}" if self.status_code else self.message


def error_message(response: httpx.Response) -> str:
    """message / error / detail from a JSON body, else the text body, else HTTP <status>"""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else str(value)

    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


def _params(**values) -> dict[str, Any]:
    params = {}
    for key, value in values.items():
        if value is None or value == []:
            continue
        params[key] = value.isoformat() if isinstance(value, date) else value
    return params


class BackofficeClient:
    """
    Thin client over the call-service and marketing-service endpoints.

    Every request carries the session user id header. Failures raise
    ``ApiError`` once; there are no retries.

    Example:
        async with BackofficeClient(user_id=1) as client:
            areas, sub_areas, branches = await client.load_hierarchy()
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        user_id: Optional[int] = None,
        timeout: float = API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if user_id is not None:
            headers[USER_ID_HEADER] = str(user_id)
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise ApiError(None, str(e) or e.__class__.__name__) from e

        if response.is_error:
            message = error_message(response)
            logger.warning(f"⚠️ {method} {path} -> {response.status_code}: {message}")
            raise ApiError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    async def get_areas(self, active_only: bool = False) -> list[dict]:
        return await self._request("GET", "/api/calls/areas/active" if active_only else "/api/calls/areas")

    async def get_sub_areas(self, active_only: bool = False) -> list[dict]:
        return await self._request("GET", "/api/calls/subareas/active" if active_only else "/api/calls/subareas")

    async def get_branches(self, active_only: bool = False) -> list[dict]:
        return await self._request("GET", "/api/calls/branches/active" if active_only else "/api/calls/branches")

    async def create_area(self, payload: dict) -> dict:
        return await self._request("POST", "/api/calls/areas", json=payload)

    async def create_sub_area(self, payload: dict) -> dict:
        return await self._request("POST", "/api/calls/subareas", json=payload)

    async def create_branch(self, payload: dict) -> dict:
        return await self._request("POST", "/api/calls/branches", json=payload)

    async def load_hierarchy(self, active_only: bool = True) -> tuple[list[dict], list[dict], list[dict]]:
        """Fetch areas, sub-areas and branches concurrently; any failure fails the whole load"""
        areas, sub_areas, branches = await asyncio.gather(
            self.get_areas(active_only),
            self.get_sub_areas(active_only),
            self.get_branches(active_only),
        )
        logger.debug(f"📋 Loaded hierarchy: {len(areas)} areas, {len(sub_areas)} sub-areas, {len(branches)} branches")
        return areas, sub_areas, branches

    async def resolve_selection(
        self, area_ids: list[int], sub_area_ids: list[int], branch_ids: list[int]
    ) -> dict:
        return await self._request(
            "POST",
            "/api/calls/hierarchy/selection",
            json={"areaIds": area_ids, "subAreaIds": sub_area_ids, "branchIds": branch_ids},
        )

    # ------------------------------------------------------------------
    # Call statuses and reports
    # ------------------------------------------------------------------

    async def get_statuses(self) -> list[dict]:
        return await self._request("GET", "/api/calls/statuses")

    async def create_status(self, label: str, key: Optional[str] = None) -> dict:
        return await self._request("POST", "/api/calls/statuses", json={"label": label, "key": key})

    async def get_reports(self) -> list[dict]:
        return await self._request("GET", "/api/calls/reports")

    async def create_report(self, payload: dict) -> dict:
        return await self._request("POST", "/api/calls/reports", json=payload)

    async def get_report_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        branch_ids: Optional[list[int]] = None,
        area_ids: Optional[list[int]] = None,
        sub_area_ids: Optional[list[int]] = None,
        status_keys: Optional[list[str]] = None,
    ) -> list[dict]:
        params = _params(
            startDate=start_date,
            endDate=end_date,
            branchIds=branch_ids,
            areaIds=area_ids,
            subareaIds=sub_area_ids,
            statusKeys=status_keys,
        )
        return await self._request("GET", "/api/calls/reports/summary", params=params)

    async def get_report_series(
        self,
        granularity: str = "daily",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        branch_ids: Optional[list[int]] = None,
    ) -> dict:
        params = _params(granularity=granularity, startDate=start_date, endDate=end_date, branchIds=branch_ids)
        return await self._request("GET", "/api/calls/reports/series", params=params)

    # ------------------------------------------------------------------
    # Marketing
    # ------------------------------------------------------------------

    async def get_vip_members(
        self,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> list[dict]:
        params = _params(areaId=area_id, subAreaId=sub_area_id, branchId=branch_id)
        return await self._request("GET", "/api/marketing/vip-members", params=params)

    async def create_vip_members(self, members: list[dict]) -> dict:
        """Batch create; duplicates come back under ``skipped``"""
        return await self._request("POST", "/api/marketing/vip-members", json=members)

    async def check_duplicate_phones(self, phones: list[str]) -> dict:
        return await self._request("POST", "/api/marketing/vip-members/check-duplicates", json={"phones": phones})

    async def record_goods_bulk(self, records: list[dict]) -> dict:
        return await self._request("POST", "/api/marketing/goods-shipments/bulk", json={"records": records})

    async def parse_goods(self, text: str, **layout) -> dict:
        return await self._request("POST", "/api/marketing/goods-shipments/parse", json={"text": text, **layout})
