"""User, permission and hierarchy assignment endpoints"""

from tests.conftest import headers_for


# ============================================================
# Users and permissions
# ============================================================


class TestUsers:
    def test_create_user_with_permissions(self, client, root_headers):
        response = client.post(
            "/api/calls/users",
            json={"username": "agent", "email": "Agent@Example.com", "permissions": ["area.view", "area.view"]},
            headers=root_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "agent@example.com"
        assert body["permissions"] == ["area.view"]

    def test_duplicate_username_conflicts(self, client, root_headers, clerk):
        response = client.post("/api/calls/users", json={"username": "Clerk"}, headers=root_headers)
        assert response.status_code == 409

    def test_root_user_cannot_be_deleted(self, client, root, root_headers):
        assert client.delete(f"/api/calls/users/{root.id}", headers=root_headers).status_code == 400

    def test_inactive_user_is_not_authenticated(self, client, make_user):
        ghost = make_user("ghost", ["area.view"], active=False)
        assert client.get("/api/calls/areas", headers=headers_for(ghost)).status_code == 401

    def test_username_lookup(self, client, clerk, clerk_headers):
        body = client.get(f"/api/calls/users/{clerk.id}/username", headers=clerk_headers).json()
        assert body == {"id": clerk.id, "username": "clerk"}


class TestPermissions:
    def test_replace_permissions(self, client, root_headers, make_user):
        agent = make_user("agent", ["area.view"])
        response = client.put(
            f"/api/calls/users/{agent.id}/permissions",
            json={"permissions": [" branch.view ", "menu.3.view"]},
            headers=root_headers,
        )
        assert response.json()["permissions"] == ["branch.view", "menu.3.view"]

        assert client.get("/api/calls/areas", headers=headers_for(agent)).status_code == 403
        assert client.get("/api/calls/branches", headers=headers_for(agent)).status_code == 200

    def test_empty_permission_code_rejected(self, client, root_headers, clerk):
        response = client.put(
            f"/api/calls/users/{clerk.id}/permissions", json={"permissions": ["area.view", " "]}, headers=root_headers
        )
        assert response.status_code == 422

    def test_check_permission(self, client, root, clerk, clerk_headers, make_user):
        agent = make_user("agent", ["area.view"])

        granted = client.get(
            "/api/calls/permissions/check", params={"userId": agent.id, "permission": "area.view"}, headers=clerk_headers
        ).json()
        denied = client.get(
            "/api/calls/permissions/check", params={"userId": agent.id, "permission": "area.edit"}, headers=clerk_headers
        ).json()
        root_check = client.get(
            "/api/calls/permissions/check", params={"userId": root.id, "permission": "anything"}, headers=clerk_headers
        ).json()

        assert granted["granted"] is True
        assert denied["granted"] is False
        assert root_check["granted"] is True

    def test_my_permissions_without_assignments(self, client, clerk_headers):
        body = client.get("/api/calls/permissions/me", headers=clerk_headers).json()
        assert body["root"] is False
        assert body["accessibleBranchIds"] is None
        assert "area.view" in body["permissions"]


# ============================================================
# Assignments
# ============================================================


class TestAssignments:
    def test_assign_branch(self, client, root_headers, clerk, hierarchy):
        response = client.post(
            "/api/calls/user-branches/assign",
            json={"userId": clerk.id, "branchId": hierarchy.harbour},
            headers=root_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["level"] == "branch"
        assert body["branchName"] == "Harbour"

    def test_exactly_one_level_required(self, client, root_headers, clerk, hierarchy):
        response = client.post(
            "/api/calls/user-branches/assign",
            json={"userId": clerk.id, "areaId": hierarchy.north, "branchId": hierarchy.harbour},
            headers=root_headers,
        )
        assert response.status_code == 422

    def test_duplicate_assignment_conflicts(self, client, root_headers, clerk, hierarchy):
        payload = {"userId": clerk.id, "areaId": hierarchy.north}
        client.post("/api/calls/user-branches/assign", json=payload, headers=root_headers)
        response = client.post("/api/calls/user-branches/assign", json=payload, headers=root_headers)
        assert response.status_code == 409

    def test_inactive_node_rejected(self, client, root_headers, clerk, hierarchy):
        client.patch(f"/api/calls/branches/{hierarchy.riverside}/deactivate", headers=root_headers)
        response = client.post(
            "/api/calls/user-branches/assign",
            json={"userId": clerk.id, "branchId": hierarchy.riverside},
            headers=root_headers,
        )
        assert response.status_code == 400

    def test_remove_then_reassign_reactivates(self, client, root_headers, clerk, hierarchy):
        payload = {"userId": clerk.id, "subareaId": hierarchy.north_one}
        first = client.post("/api/calls/user-branches/assign", json=payload, headers=root_headers).json()

        removed = client.post("/api/calls/user-branches/remove", json=payload, headers=root_headers).json()
        assert removed["active"] is False

        again = client.post("/api/calls/user-branches/assign", json=payload, headers=root_headers).json()
        assert again["id"] == first["id"]
        assert again["active"] is True

    def test_bulk_reports_skipped_targets(self, client, root_headers, clerk, hierarchy):
        client.post(
            "/api/calls/user-branches/assign",
            json={"userId": clerk.id, "branchId": hierarchy.harbour},
            headers=root_headers,
        )
        response = client.post(
            "/api/calls/user-branches/assign-bulk",
            json={"userId": clerk.id, "branchIds": [hierarchy.harbour, hierarchy.hillside, 999]},
            headers=root_headers,
        )
        body = response.json()
        assert [a["branchId"] for a in body["processed"]] == [hierarchy.hillside]
        assert sorted(s["branchId"] for s in body["skipped"]) == sorted([hierarchy.harbour, 999])

    def test_area_assignment_scopes_branches(self, client, root_headers, clerk, clerk_headers, hierarchy):
        client.post(
            "/api/marketing/user-assignments",
            json={"userId": clerk.id, "areaId": hierarchy.north},
            headers=root_headers,
        )
        body = client.get("/api/calls/permissions/me", headers=clerk_headers).json()
        assert sorted(body["accessibleBranchIds"]) == sorted([hierarchy.harbour, hierarchy.hillside])

        mine = client.get("/api/marketing/user-assignments/my-assignments", headers=clerk_headers).json()
        assert [a["level"] for a in mine] == ["area"]

    def test_marketing_delete_deactivates(self, client, root_headers, clerk, hierarchy):
        created = client.post(
            "/api/marketing/user-assignments",
            json={"userId": clerk.id, "branchId": hierarchy.hillside},
            headers=root_headers,
        ).json()

        response = client.delete(f"/api/marketing/user-assignments/{created['id']}", headers=root_headers)
        assert response.json()["active"] is False

        active = client.get(f"/api/calls/user-branches/user/{clerk.id}", headers=root_headers).json()
        every = client.get(
            f"/api/calls/user-branches/user/{clerk.id}", params={"includeInactive": True}, headers=root_headers
        ).json()
        assert active == []
        assert len(every) == 1
