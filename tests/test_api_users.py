"""
API tests for auth, self-service profile and admin user management.
Run: pytest tests/test_api_users.py -v
"""

# той самий пароль, що засіває conftest.users
PASSWORD = "Passw0rd!"


class TestAuth:
    def test_login(self, client, users):
        r = client.post("/api/auth/login", json={"username": "agent@example.com", "password": PASSWORD})
        assert r.status_code == 200
        data = r.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "agent"
        assert data["user"]["role_label"] == "Support Agent"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == users["agent"].id

    def test_login_errors(self, client):
        r = client.post("/api/auth/login", json={"username": "agent@example.com", "password": "wrong"})
        assert r.status_code == 401
        r = client.post("/api/auth/login", json={"username": "ghost@example.com", "password": PASSWORD})
        assert r.status_code == 404

    def test_bad_token(self, client):
        r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401

    def test_register(self, client):
        body = {"email": "New.Person@example.com", "password": "secret123", "full_name": "New Person"}
        r = client.post("/api/auth/register", json=body)
        assert r.status_code == 201
        assert r.json()["user"]["role"] == "user"
        assert r.json()["user"]["email"] == "new.person@example.com"

        assert client.post("/api/auth/register", json=body).status_code == 409

    def test_inactive_user_rejected(self, client, auth, users):
        r = client.delete(f"/api/admin/users/{users['other'].id}", headers=auth("admin"))
        assert r.status_code == 200

        r = client.post("/api/auth/login", json={"username": "other@example.com", "password": PASSWORD})
        assert r.status_code == 403
        assert client.get("/api/auth/me", headers=auth("other")).status_code == 401


class TestSelf:
    def test_permissions(self, client, auth):
        perms = client.get("/api/users/me/permissions", headers=auth("user")).json()
        assert perms["role"] == "user"
        assert perms["can_close_tickets"] is True
        assert perms["can_view_all_tickets"] is False

        perms = client.get("/api/users/me/permissions", headers=auth("agent")).json()
        assert perms["can_delete_tickets"] is True
        assert perms["can_manage_users"] is False

    def test_update_name(self, client, auth):
        r = client.patch("/api/users/me", json={"name": "Renamed"}, headers=auth("user"))
        assert r.status_code == 200
        assert r.json()["name"] == "Renamed"


class TestDirectory:
    def test_user_cannot_list(self, client, auth):
        assert client.get("/api/users", headers=auth("user")).status_code == 403

    def test_agent_lists_and_filters(self, client, auth):
        page = client.get("/api/users", headers=auth("agent")).json()
        assert page["total"] == 5
        page = client.get("/api/users", params={"role": "agent"}, headers=auth("agent")).json()
        assert {u["email"] for u in page["items"]} == {"agent@example.com", "agent2@example.com"}

    def test_assignable(self, client, auth):
        rows = client.get("/api/users/assignable", headers=auth("agent")).json()
        assert {u["role"] for u in rows} == {"agent", "admin"}
        assert len(rows) == 3


class TestAdmin:
    def test_agent_cannot_manage_users(self, client, auth, users):
        assert client.get("/api/admin/users", headers=auth("agent")).status_code == 403
        r = client.patch(f"/api/admin/users/{users['user'].id}", json={"role": "agent"}, headers=auth("agent"))
        assert r.status_code == 403

    def test_promote_user(self, client, auth, users):
        r = client.patch(f"/api/admin/users/{users['user'].id}", json={"role": "agent"}, headers=auth("admin"))
        assert r.status_code == 200
        assert r.json()["role"] == "agent"
        assert r.json()["role_label"] == "Support Agent"

    def test_unknown_role_rejected(self, client, auth, users):
        r = client.patch(f"/api/admin/users/{users['user'].id}", json={"role": "root"}, headers=auth("admin"))
        assert r.status_code == 422

    def test_admin_cannot_demote_self(self, client, auth, users):
        url = f"/api/admin/users/{users['admin'].id}"
        assert client.patch(url, json={"role": "user"}, headers=auth("admin")).status_code == 400
        assert client.patch(url, json={"is_active": False}, headers=auth("admin")).status_code == 400
        assert client.delete(url, headers=auth("admin")).status_code == 400

    def test_soft_delete_keeps_row(self, client, auth, users):
        client.delete(f"/api/admin/users/{users['other'].id}", headers=auth("admin"))
        rows = client.get("/api/admin/users", headers=auth("admin")).json()
        other = next(u for u in rows if u["id"] == users["other"].id)
        assert other["is_active"] is False

    def test_demoted_agent_loses_assignments(self, client, auth, users, make_ticket, transition):
        t = make_ticket("user")
        transition("agent", t["id"], "in_progress")

        r = client.patch(f"/api/admin/users/{users['agent'].id}", json={"role": "user"}, headers=auth("admin"))
        assert r.status_code == 200

        row = client.get(f"/api/tickets/{t['id']}", headers=auth("admin")).json()
        assert row["assigned_to"] is None
        assert row["assignee"] is None

    def test_deactivated_agent_keeps_closed_history(self, client, auth, users, make_ticket, transition):
        active = make_ticket("user")
        transition("agent", active["id"], "in_progress")
        done = make_ticket("user")
        transition("agent", done["id"], "in_progress")
        transition("agent", done["id"], "resolved")
        transition("user", done["id"], "closed")

        assert client.delete(f"/api/admin/users/{users['agent'].id}", headers=auth("admin")).status_code == 200

        assert client.get(f"/api/tickets/{active['id']}", headers=auth("admin")).json()["assigned_to"] is None
        assert client.get(f"/api/tickets/{done['id']}", headers=auth("admin")).json()["assigned_to"] == users["agent"].id

    def test_promotion_keeps_assignments(self, client, auth, users, make_ticket, transition):
        t = make_ticket("user")
        transition("agent", t["id"], "in_progress")
        client.patch(f"/api/admin/users/{users['agent'].id}", json={"role": "admin"}, headers=auth("admin"))
        assert client.get(f"/api/tickets/{t['id']}", headers=auth("admin")).json()["assigned_to"] == users["agent"].id
