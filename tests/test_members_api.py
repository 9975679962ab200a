"""VIP member endpoints"""

import pytest

from backoffice.models import Area, Branch, SubArea

from tests.conftest import headers_for

MEMBERS = "/api/marketing/vip-members"


def member_payload(name, phone, joined="2024-03-04", branch_id=None, **extra):
    return {"name": name, "phone": phone, "memberCreatedAt": joined, "branchId": branch_id, **extra}


# ============================================================
# Creation
# ============================================================


class TestCreateMembers:
    def test_single_member(self, client, clerk, clerk_headers, hierarchy):
        response = client.post(MEMBERS, json=member_payload("Jane Doe", "012 345 678", branch_id=hierarchy.harbour), headers=clerk_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["phone"] == "012345678"
        assert body["branchName"] == "Harbour"
        assert body["subAreaName"] == "North One"
        assert body["areaName"] == "North"
        assert body["createdBy"] == clerk.id

    def test_single_duplicate_conflicts(self, client, clerk_headers):
        client.post(MEMBERS, json=member_payload("Jane", "012345678"), headers=clerk_headers)
        response = client.post(MEMBERS, json=member_payload("Janet", "0123 45678"), headers=clerk_headers)
        assert response.status_code == 409

    def test_batch_skips_duplicates(self, client, clerk_headers):
        client.post(MEMBERS, json=member_payload("Jane", "012345678"), headers=clerk_headers)

        response = client.post(
            MEMBERS,
            json=[
                member_payload("Jane again", "012 345 678"),
                member_payload("Ali", "0199"),
                member_payload("Ali twin", "01 99"),
                member_payload("Mei", "0177"),
            ],
            headers=clerk_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert [m["name"] for m in body["created"]] == ["Ali", "Mei"]
        assert [(s["index"], s["reason"]) for s in body["skipped"]] == [
            (0, "Phone already exists"),
            (2, "Phone repeated in batch"),
        ]

    def test_batch_skips_branches_outside_scope(self, client, make_user, assign, hierarchy):
        agent = make_user("agent", ["marketing.member.manage"])
        assign(agent, branch_id=hierarchy.harbour)

        body = client.post(
            MEMBERS,
            json=[
                member_payload("In scope", "0101", branch_id=hierarchy.harbour),
                member_payload("Out of scope", "0102", branch_id=hierarchy.riverside),
            ],
            headers=headers_for(agent),
        ).json()

        assert [m["name"] for m in body["created"]] == ["In scope"]
        assert body["skipped"][0]["index"] == 1

    def test_empty_phone_rejected(self, client, clerk_headers):
        assert client.post(MEMBERS, json=member_payload("Nobody", "   "), headers=clerk_headers).status_code == 422

    def test_unknown_branch(self, client, clerk_headers):
        response = client.post(MEMBERS, json=member_payload("Jane", "0123", branch_id=999), headers=clerk_headers)
        assert response.status_code == 404


# ============================================================
# Editing
# ============================================================


class TestEditMembers:
    def test_only_creator_or_root_may_edit(self, client, clerk_headers, root_headers, make_user):
        member = client.post(MEMBERS, json=member_payload("Jane", "0123"), headers=clerk_headers).json()
        other = make_user("other", ["marketing.member.manage"])

        update = member_payload("Jane Doe", "0123", deleteRemark="moved away", memberDeletedAt="2024-04-01")
        assert client.put(f"{MEMBERS}/{member['id']}", json=update, headers=headers_for(other)).status_code == 403

        response = client.put(f"{MEMBERS}/{member['id']}", json=update, headers=root_headers)
        assert response.status_code == 200
        assert response.json()["memberDeletedAt"] == "2024-04-01"

    def test_phone_conflict_on_update(self, client, clerk_headers):
        client.post(MEMBERS, json=member_payload("Jane", "0123"), headers=clerk_headers)
        ali = client.post(MEMBERS, json=member_payload("Ali", "0199"), headers=clerk_headers).json()

        response = client.put(f"{MEMBERS}/{ali['id']}", json=member_payload("Ali", "0123"), headers=clerk_headers)
        assert response.status_code == 409

    def test_delete(self, client, clerk_headers):
        member = client.post(MEMBERS, json=member_payload("Jane", "0123"), headers=clerk_headers).json()
        assert client.delete(f"{MEMBERS}/{member['id']}", headers=clerk_headers).status_code == 204
        assert client.get(f"{MEMBERS}/{member['id']}", headers=clerk_headers).status_code == 404


# ============================================================
# Listing and dashboard
# ============================================================


class TestListing:
    @pytest.fixture
    def roster(self, client, clerk_headers, hierarchy):
        client.post(
            MEMBERS,
            json=[
                member_payload("Harbour A", "0001", "2024-03-04", hierarchy.harbour),
                member_payload("Harbour B", "0002", "2024-03-20", hierarchy.harbour),
                member_payload("Hillside A", "0003", "2024-04-02", hierarchy.hillside),
                member_payload("Riverside A", "0004", "2024-04-03", hierarchy.riverside, memberDeletedAt="2024-05-01"),
            ],
            headers=clerk_headers,
        )

    def test_filter_by_area(self, client, clerk_headers, roster, hierarchy):
        members = client.get(MEMBERS, params={"areaId": hierarchy.north}, headers=clerk_headers).json()
        assert sorted(m["name"] for m in members) == ["Harbour A", "Harbour B", "Hillside A"]

    def test_scoped_user(self, client, roster, make_user, assign, hierarchy):
        agent = make_user("agent", ["marketing.member.view"])
        assign(agent, sub_area_id=hierarchy.south_one)
        members = client.get(MEMBERS, headers=headers_for(agent)).json()
        assert [m["name"] for m in members] == ["Riverside A"]

    def test_pagination_excludes_deleted_members(self, client, clerk_headers, roster):
        first = client.get(f"{MEMBERS}/paginated", params={"page": 0, "size": 2}, headers=clerk_headers).json()
        second = client.get(f"{MEMBERS}/paginated", params={"page": 1, "size": 2}, headers=clerk_headers).json()

        assert first["totalElements"] == 3
        assert first["totalPages"] == 2
        assert [m["name"] for m in first["content"]] == ["Hillside A", "Harbour B"]
        assert [m["name"] for m in second["content"]] == ["Harbour A"]

    def test_dashboard(self, client, clerk_headers, roster, hierarchy):
        body = client.get(f"{MEMBERS}/dashboard", headers=clerk_headers).json()

        assert body["totalMembers"] == 4
        assert body["activeMembers"] == 3
        assert body["areaCounts"] == [{"id": hierarchy.north, "name": "North", "count": 3}]
        assert body["subAreaCounts"] == [{"id": hierarchy.north_one, "name": "North One", "count": 2}]
        assert body["branchCounts"] == [
            {"id": hierarchy.harbour, "name": "Harbour", "count": 2},
            {"id": hierarchy.hillside, "name": "Hillside", "count": 1},
        ]
        assert [(c["key"], c["count"]) for c in body["monthlyCounts"]] == [("2024-03", 2), ("2024-04", 2)]
        assert body["earliestDate"] == "2024-03-04"
        assert body["latestDate"] == "2024-04-03"

    def test_dashboard_keeps_same_named_branches_apart(self, client, clerk_headers, db):
        east, west = Area(name="East"), Area(name="West")
        db.add_all([east, west])
        db.flush()
        east_central = SubArea(name="Central", area_id=east.id)
        west_central = SubArea(name="Central", area_id=west.id)
        db.add_all([east_central, west_central])
        db.flush()
        east_main = Branch(name="Main", area_id=east.id, sub_area_id=east_central.id)
        west_main = Branch(name="Main", area_id=west.id, sub_area_id=west_central.id)
        db.add_all([east_main, west_main])
        db.commit()

        client.post(
            MEMBERS,
            json=[member_payload("Ali", "0199", branch_id=east_main.id), member_payload("Mei", "0177", branch_id=west_main.id)],
            headers=clerk_headers,
        )
        body = client.get(f"{MEMBERS}/dashboard", headers=clerk_headers).json()

        assert sorted((c["id"], c["name"], c["count"]) for c in body["branchCounts"]) == [
            (east_main.id, "Main", 1),
            (west_main.id, "Main", 1),
        ]
        assert sorted(c["id"] for c in body["subAreaCounts"]) == sorted([east_central.id, west_central.id])

    def test_check_duplicates(self, client, clerk_headers, roster):
        body = client.post(
            f"{MEMBERS}/check-duplicates", json={"phones": ["00 01", "0999", "0999"]}, headers=clerk_headers
        ).json()
        assert [r["reason"] for r in body["results"]] == ["existing", None, "repeated"]
        assert body["duplicateCount"] == 2
