"""Call status, call report and aggregate endpoints"""

import pytest

from tests.conftest import headers_for


@pytest.fixture
def statuses(client, root_headers):
    for label in ("Answered", "No Answer"):
        client.post("/api/calls/statuses", json={"label": label}, headers=root_headers)


def post_report(client, headers, called_at, branch_id, entries, **extra):
    payload = {"calledAt": called_at, "branchId": branch_id, "entries": entries, **extra}
    return client.post("/api/calls/reports", json=payload, headers=headers)


# ============================================================
# Statuses
# ============================================================


class TestStatuses:
    def test_key_derived_from_label(self, client, clerk, clerk_headers):
        response = client.post("/api/calls/statuses", json={"label": "Call Back Later"}, headers=clerk_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["key"] == "call-back-later"
        assert body["createdBy"] == "clerk"

    def test_duplicate_key_conflicts(self, client, root_headers, statuses):
        response = client.post("/api/calls/statuses", json={"label": "answered"}, headers=root_headers)
        assert response.status_code == 409

    def test_label_without_key_characters_rejected(self, client, root_headers):
        response = client.post("/api/calls/statuses", json={"label": "!!!"}, headers=root_headers)
        assert response.status_code == 400

    def test_rename_and_delete(self, client, root_headers, statuses):
        renamed = client.put("/api/calls/statuses/answered", json={"label": "Picked Up"}, headers=root_headers)
        assert renamed.json()["label"] == "Picked Up"

        assert client.delete("/api/calls/statuses/answered", headers=root_headers).status_code == 200
        keys = [s["key"] for s in client.get("/api/calls/statuses", headers=root_headers).json()]
        assert keys == ["no-answer"]


# ============================================================
# Reports
# ============================================================


class TestReports:
    def test_create_report(self, client, clerk_headers, hierarchy):
        response = post_report(
            client,
            clerk_headers,
            "2024-03-04",
            hierarchy.harbour,
            {"answered": 3, "no-answer": 2},
            callType="recall",
            remarks={"answered": "all confirmed"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["branchName"] == "Harbour"
        assert body["createdBy"] == "clerk"
        assert body["entries"] == {"answered": 3, "no-answer": 2}
        assert body["remarks"] == {"answered": "all confirmed"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"calledAt": "2024-03-04", "entries": {}},
            {"calledAt": "2024-03-04", "entries": {"answered": -1}},
            {"calledAt": "2024-03-04", "entries": {"answered": 1}, "callType": "cold-call"},
        ],
    )
    def test_invalid_payloads(self, client, clerk_headers, payload):
        assert client.post("/api/calls/reports", json=payload, headers=clerk_headers).status_code == 422

    def test_unknown_branch(self, client, clerk_headers):
        assert post_report(client, clerk_headers, "2024-03-04", 999, {"answered": 1}).status_code == 404

    def test_report_without_branch(self, client, clerk_headers):
        body = post_report(client, clerk_headers, "2024-03-04", None, {"answered": 1}).json()
        assert body["branchName"] == "No Branch"

    def test_update_replaces_entries(self, client, clerk_headers, hierarchy):
        report = post_report(client, clerk_headers, "2024-03-04", hierarchy.harbour, {"answered": 3, "busy": 1}).json()

        response = client.put(
            f"/api/calls/reports/{report['id']}",
            json={"calledAt": "2024-03-05", "branchId": hierarchy.harbour, "entries": {"answered": 4, "no-answer": 1}},
            headers=clerk_headers,
        )
        body = response.json()
        assert body["calledAt"] == "2024-03-05"
        assert body["entries"] == {"answered": 4, "no-answer": 1}

    def test_delete(self, client, clerk_headers, hierarchy):
        report = post_report(client, clerk_headers, "2024-03-04", hierarchy.harbour, {"answered": 1}).json()
        assert client.delete(f"/api/calls/reports/{report['id']}", headers=clerk_headers).status_code == 204
        assert client.get(f"/api/calls/reports/{report['id']}", headers=clerk_headers).status_code == 404

    def test_scoped_user_sees_only_assigned_branches(self, client, root_headers, make_user, assign, hierarchy):
        post_report(client, root_headers, "2024-03-04", hierarchy.harbour, {"answered": 1})
        other = post_report(client, root_headers, "2024-03-04", hierarchy.riverside, {"answered": 1}).json()

        agent = make_user("agent", ["menu.3.view", "menu.3.create"])
        assign(agent, sub_area_id=hierarchy.north_one)

        reports = client.get("/api/calls/reports", headers=headers_for(agent)).json()
        assert [r["branchName"] for r in reports] == ["Harbour"]
        assert client.get(f"/api/calls/reports/{other['id']}", headers=headers_for(agent)).status_code == 403
        assert post_report(client, headers_for(agent), "2024-03-04", hierarchy.riverside, {"a": 1}).status_code == 403


# ============================================================
# Aggregates
# ============================================================


class TestAggregates:
    @pytest.fixture
    def reports(self, client, root_headers, statuses, hierarchy):
        post_report(client, root_headers, "2024-03-04", hierarchy.harbour, {"answered": 3, "no-answer": 1}, arrivedAt="2024-03-04")
        post_report(client, root_headers, "2024-03-04", hierarchy.harbour, {"answered": 2})
        post_report(client, root_headers, "2024-03-05", hierarchy.riverside, {"no-answer": 4})
        post_report(client, root_headers, "2024-04-02", hierarchy.hillside, {"answered": 1}, callType="recall")

    def test_summary_groups_by_date_and_branch(self, client, root_headers, reports, hierarchy):
        rows = client.get("/api/calls/reports/summary", headers=root_headers).json()
        harbour = next(r for r in rows if r["branchId"] == hierarchy.harbour)
        assert len(rows) == 3
        assert harbour["statusTotals"] == {"answered": 5, "no-answer": 1}
        assert harbour["sameDayArrival"] is True

    def test_summary_filters(self, client, root_headers, reports, hierarchy):
        by_area = client.get(
            "/api/calls/reports/summary", params={"areaIds": [hierarchy.south]}, headers=root_headers
        ).json()
        by_status = client.get(
            "/api/calls/reports/summary", params={"statusKeys": ["answered"]}, headers=root_headers
        ).json()
        by_type = client.get("/api/calls/reports/summary", params={"type": "recall"}, headers=root_headers).json()
        by_date = client.get(
            "/api/calls/reports/summary", params={"startDate": "2024-03-05", "endDate": "2024-03-31"}, headers=root_headers
        ).json()

        assert [r["branchName"] for r in by_area] == ["Riverside"]
        assert all(set(r["statusTotals"]) == {"answered"} for r in by_status)
        assert [r["branchName"] for r in by_type] == ["Hillside"]
        assert [r["calledAt"] for r in by_date] == ["2024-03-05"]

    def test_monthly_series(self, client, root_headers, reports, hierarchy):
        body = client.get(
            "/api/calls/reports/series", params={"granularity": "monthly"}, headers=root_headers
        ).json()

        assert [(p["key"], p["total"]) for p in body["points"]] == [("2024-03", 10), ("2024-04", 1)]
        assert body["points"][1]["values"] == {"answered": 1, "no-answer": 0}
        assert body["totalsByStatus"] == {"answered": 6, "no-answer": 5}
        assert body["grandTotal"] == 11
        assert body["topStatus"] == {"key": "answered", "label": "Answered", "total": 6}
        assert body["branchTotals"][0] == {"branchId": hierarchy.harbour, "branchName": "Harbour", "total": 6}

    def test_weekly_series(self, client, root_headers, reports):
        body = client.get("/api/calls/reports/series", params={"granularity": "weekly"}, headers=root_headers).json()
        assert [p["label"] for p in body["points"]] == ["Week 10 · 2024", "Week 14 · 2024"]

    def test_unknown_granularity(self, client, root_headers):
        response = client.get("/api/calls/reports/series", params={"granularity": "hourly"}, headers=root_headers)
        assert response.status_code == 400

    def test_empty_series(self, client, root_headers):
        body = client.get("/api/calls/reports/series", headers=root_headers).json()
        assert body["points"] == []
        assert body["topStatus"] is None


# ============================================================
# Call-log import preview
# ============================================================


class TestImportPreview:
    def test_preview_counts_known_statuses(self, client, root_headers, statuses):
        cells = [""] * 11
        cells[0], cells[1], cells[10] = "1", "04/03/2024", "Answered 5/3/2024 10:15:00"
        text = "\t".join(cells) + "\nVoicemail 5/3/2024 11:00:00"

        body = client.post("/api/calls/reports/import-preview", json={"text": text}, headers=root_headers).json()

        assert body["entries"] == {"answered": 1}
        assert body["total"] == 1
        assert body["unmatched"] == ["Voicemail"]
        assert body["records"][0]["arrivedAt"] == "2024-03-04"

    def test_empty_text(self, client, root_headers):
        response = client.post("/api/calls/reports/import-preview", json={"text": "  "}, headers=root_headers)
        assert response.status_code == 400
