import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from crm_backend.app import create_app
from crm_backend.auth import TokenService, create_user_account
from crm_backend.config import Settings, get_settings
from crm_backend.db import ROLE_ADMIN, InMemoryDbClient, SqlDbClient
from crm_backend.dependencies import get_db_client, get_token_service


class ApiTestCase(unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def setUp(self):
        self.db = self.make_db()
        self.tokens = TokenService("test-secret", ttl_seconds=3600)
        app = create_app()
        app.dependency_overrides[get_db_client] = lambda: self.db
        app.dependency_overrides[get_token_service] = lambda: self.tokens
        self.client = TestClient(app)

        self.admin = create_user_account(
            self.db, "Admin", "admin@example.com", "admin-pass", ROLE_ADMIN
        )
        self.alice = create_user_account(self.db, "Alice", "alice@example.com", "alice-pass")
        self.bob = create_user_account(self.db, "Bob", "bob@example.com", "bob-pass")

    def auth(self, user):
        return {"Authorization": f"Bearer {self.tokens.issue(user)}"}

    def add_call(self, user, **overrides):
        body = {
            "phone_number": "+15550001",
            "direction": "incoming",
            "start_time": "2024-01-01T10:00:00Z",
            "duration": 30,
        }
        body.update(overrides)
        return self.client.post("/calls", json=body, headers=self.auth(user))


class AuthRouteTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Shared Contact CRM API")

    def test_login_returns_token_with_user_claims(self):
        response = self.client.post(
            "/login", json={"email": "Alice@Example.com", "password": "alice-pass"}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["user"]["email"], "alice@example.com")
        self.assertNotIn("password_hash", payload["user"])

        claims = self.tokens.verify(payload["token"])
        self.assertEqual(claims.id, self.alice.id)
        self.assertEqual(claims.email, "alice@example.com")
        self.assertEqual(claims.role, "user")

    def test_login_rejects_bad_password(self):
        response = self.client.post(
            "/login", json={"email": "alice@example.com", "password": "nope"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid credentials"})

    def test_login_unknown_email(self):
        response = self.client.post(
            "/login", json={"email": "ghost@example.com", "password": "whatever"}
        )
        self.assertEqual(response.status_code, 401)

    def test_signup_creates_regular_user(self):
        response = self.client.post(
            "/signup",
            json={"name": "Carol", "email": "carol@example.com", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["role"], "user")

        duplicate = self.client.post(
            "/signup",
            json={"name": "Carol", "email": "carol@example.com", "password": "secret1"},
        )
        self.assertEqual(duplicate.status_code, 409)

    def test_validation_errors_are_400(self):
        response = self.client.post("/signup", json={"email": "not-an-email"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Validation failed")
        self.assertIn("details", response.json())

    def test_signup_password_limit_counts_bytes(self):
        too_long = self.client.post(
            "/signup",
            json={"name": "Carol", "email": "carol@example.com", "password": "é" * 40},
        )
        self.assertEqual(too_long.status_code, 400)
        self.assertIn("72 bytes", str(too_long.json()["details"]))

        admin_create = self.client.post(
            "/admin/users",
            json={"name": "Carol", "email": "carol@example.com", "password": "é" * 40},
            headers=self.auth(self.admin),
        )
        self.assertEqual(admin_create.status_code, 400)

        at_limit = self.client.post(
            "/signup",
            json={"name": "Carol", "email": "carol@example.com", "password": "é" * 36},
        )
        self.assertEqual(at_limit.status_code, 201)
        login = self.client.post(
            "/login", json={"email": "carol@example.com", "password": "é" * 36}
        )
        self.assertEqual(login.status_code, 200)

    def test_me(self):
        response = self.client.get("/me", headers=self.auth(self.bob))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], self.bob.id)


class AccessControlTests(ApiTestCase):
    def test_missing_header_is_401(self):
        response = self.client.get("/contacts")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})

    def test_malformed_header_is_401(self):
        response = self.client.get("/contacts", headers={"Authorization": "Token abc"})
        self.assertEqual(response.status_code, 401)

    def test_invalid_token_is_401(self):
        response = self.client.get(
            "/contacts", headers={"Authorization": "Bearer not.a.token"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Invalid token"})

    def test_token_from_other_secret_is_401(self):
        other = TokenService("another-secret")
        response = self.client.get(
            "/contacts", headers={"Authorization": f"Bearer {other.issue(self.alice)}"}
        )
        self.assertEqual(response.status_code, 401)

    def test_non_admin_gets_403_on_admin_routes(self):
        response = self.client.get("/admin/users", headers=self.auth(self.alice))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Forbidden: Admin only"})

    def test_admin_passes(self):
        response = self.client.get("/admin/users", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 3)


class ContactRouteTests(ApiTestCase):
    def create_contact(self, user, name="Dana", phone="+15551234"):
        return self.client.post(
            "/contacts", json={"name": name, "phone_number": phone}, headers=self.auth(user)
        )

    def test_create_and_list(self):
        response = self.create_contact(self.alice)
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()["created"])
        self.create_contact(self.bob, name="Abe", phone="+15559999")

        listed = self.client.get("/contacts", headers=self.auth(self.bob)).json()
        self.assertEqual([c["name"] for c in listed], ["Abe", "Dana"])

        mine = self.client.get(
            "/contacts", params={"created_by": self.alice.id}, headers=self.auth(self.bob)
        ).json()
        self.assertEqual([c["name"] for c in mine], ["Dana"])

    def test_duplicate_phone_returns_original(self):
        first = self.create_contact(self.alice).json()["contact"]
        second = self.create_contact(self.bob, name="Someone Else")
        self.assertEqual(second.status_code, 200)
        payload = second.json()
        self.assertFalse(payload["created"])
        self.assertIn("warning", payload)
        self.assertEqual(payload["contact"]["id"], first["id"])
        self.assertEqual(payload["contact"]["name"], "Dana")
        self.assertEqual(len(self.db.contacts), 1)

    def test_owner_can_edit(self):
        contact = self.create_contact(self.alice).json()["contact"]
        response = self.client.put(
            f"/contacts/{contact['id']}",
            json={"name": "Dana Q"},
            headers=self.auth(self.alice),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Dana Q")
        self.assertEqual(response.json()["version"], 2)

    def test_non_owner_cannot_edit_or_delete(self):
        contact = self.create_contact(self.alice).json()["contact"]
        edit = self.client.put(
            f"/contacts/{contact['id']}", json={"name": "X"}, headers=self.auth(self.bob)
        )
        self.assertEqual(edit.status_code, 403)
        delete = self.client.delete(f"/contacts/{contact['id']}", headers=self.auth(self.bob))
        self.assertEqual(delete.status_code, 403)
        self.assertIsNotNone(self.db.get_contact(contact["id"]))

    def test_admin_can_delete_any_contact(self):
        contact = self.create_contact(self.alice).json()["contact"]
        response = self.client.delete(
            f"/contacts/{contact['id']}", headers=self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.db.get_contact(contact["id"]))

    def test_edit_to_taken_phone_is_409(self):
        self.create_contact(self.alice, phone="+1000")
        contact = self.create_contact(self.alice, name="Eve", phone="+2000").json()["contact"]
        response = self.client.put(
            f"/contacts/{contact['id']}",
            json={"phone_number": "+1000"},
            headers=self.auth(self.alice),
        )
        self.assertEqual(response.status_code, 409)

    def test_missing_contact_is_404(self):
        response = self.client.delete("/contacts/999", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 404)

    def test_delete_contact_unlinks_calls(self):
        contact = self.create_contact(self.alice, phone="+15550001").json()["contact"]
        call = self.add_call(self.bob).json()
        self.assertEqual(call["contact_id"], contact["id"])
        self.client.delete(f"/contacts/{contact['id']}", headers=self.auth(self.alice))
        remaining = self.db.get_call(call["id"])
        self.assertIsNone(remaining.contact_id)
        self.assertEqual(remaining.phone_number, "+15550001")


class CallRouteTests(ApiTestCase):
    def test_create_and_list_newest_first(self):
        self.add_call(self.alice, start_time="2024-01-01T10:00:00Z")
        self.add_call(self.alice, phone_number="+2", start_time="2024-01-02T10:00:00Z")
        response = self.client.get("/calls", headers=self.auth(self.alice))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c["phone_number"] for c in response.json()], ["+2", "+15550001"])

    def test_direction_is_case_insensitive(self):
        response = self.add_call(self.alice, direction="Outgoing")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["direction"], "outgoing")

    def test_invalid_direction_is_400(self):
        response = self.add_call(self.alice, direction="sideways")
        self.assertEqual(response.status_code, 400)

    def test_list_filters(self):
        self.add_call(self.alice)
        self.add_call(self.bob, phone_number="+2", direction="missed")
        missed = self.client.get(
            "/calls", params={"direction": "missed"}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual(len(missed), 1)
        bobs = self.client.get(
            "/calls", params={"user_id": self.bob.id}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual([c["user_id"] for c in bobs], [self.bob.id])
        bad = self.client.get(
            "/calls", params={"direction": "up"}, headers=self.auth(self.alice)
        )
        self.assertEqual(bad.status_code, 400)

    def test_repeated_uuid_is_409(self):
        first = self.add_call(self.alice, uuid="abc-1")
        self.assertEqual(first.status_code, 201)
        again = self.add_call(self.alice, uuid="abc-1", start_time="2024-02-01T00:00:00Z")
        self.assertEqual(again.status_code, 409)
        self.assertIn("uuid", again.json()["error"])
        self.assertEqual(len(self.db.calls), 1)

    def test_natural_key_duplicate_is_409(self):
        self.add_call(self.alice)
        again = self.add_call(self.bob, start_time="2024-01-01T11:00:00+01:00")
        self.assertEqual(again.status_code, 409)
        self.assertIn("natural_key", again.json()["error"])
        self.assertEqual(len(self.db.calls), 1)

    def test_bulk_isolates_invalid_item(self):
        calls = [
            {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
            {"phone_number": "+2", "direction": "bogus", "start_time": "2024-01-01T00:00:00Z"},
            {"phone_number": "+3", "direction": "missed", "start_time": "2024-01-01T00:00:00Z"},
        ]
        response = self.client.post(
            "/calls/bulk", json={"calls": calls}, headers=self.auth(self.alice)
        )
        self.assertEqual(response.status_code, 200)
        report = response.json()
        self.assertEqual(report["created"], 2)
        self.assertEqual(report["skipped"], 0)
        self.assertEqual(len(report["errors"]), 1)
        self.assertEqual(report["errors"][0]["index"], 1)
        self.assertEqual([r["status"] for r in report["results"]], ["created", "error", "created"])

    def test_bulk_skips_duplicates(self):
        self.add_call(self.alice, uuid="u-1")
        calls = [
            {"uuid": "u-1", "phone_number": "+9", "direction": "incoming",
             "start_time": "2024-03-01T00:00:00Z"},
            {"phone_number": "+15550001", "direction": "incoming",
             "start_time": "2024-01-01T10:00:00Z"},
            {"phone_number": "+4", "direction": "outgoing",
             "start_time": "2024-03-01T00:00:00Z", "duration": -1},
            "not-an-object",
        ]
        report = self.client.post(
            "/calls/bulk", json={"calls": calls}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual(report["created"], 0)
        self.assertEqual(report["skipped"], 2)
        self.assertEqual([e["index"] for e in report["errors"]], [2, 3])
        self.assertEqual(report["results"][0]["matched_on"], "uuid")
        self.assertEqual(report["results"][1]["matched_on"], "natural_key")
        self.assertEqual(len(self.db.calls), 1)

    def test_stats(self):
        self.add_call(self.alice, duration=10)
        self.add_call(self.alice, phone_number="+2", direction="missed", duration=0)
        self.add_call(self.bob, phone_number="+3", direction="outgoing", duration=5)

        own = self.client.get("/calls/stats", headers=self.auth(self.alice)).json()
        self.assertEqual(
            own,
            {"total": 2, "incoming": 1, "outgoing": 0, "missed": 1, "total_duration": 10},
        )
        forbidden = self.client.get(
            "/calls/stats", params={"user_id": self.bob.id}, headers=self.auth(self.alice)
        )
        self.assertEqual(forbidden.status_code, 403)

        overall = self.client.get("/calls/stats", headers=self.auth(self.admin)).json()
        self.assertEqual(overall["total"], 3)
        self.assertEqual(overall["total_duration"], 15)

    def test_delete_call_owner_or_admin(self):
        call = self.add_call(self.alice).json()
        denied = self.client.delete(f"/calls/{call['id']}", headers=self.auth(self.bob))
        self.assertEqual(denied.status_code, 403)
        allowed = self.client.delete(f"/calls/{call['id']}", headers=self.auth(self.alice))
        self.assertEqual(allowed.status_code, 200)
        self.assertIsNone(self.db.get_call(call["id"]))


class AdminRouteTests(ApiTestCase):
    def test_create_user_and_duplicate(self):
        body = {"name": "Zed", "email": "zed@example.com", "password": "zed-pass", "role": "admin"}
        response = self.client.post("/admin/users", json=body, headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["role"], "admin")
        again = self.client.post("/admin/users", json=body, headers=self.auth(self.admin))
        self.assertEqual(again.status_code, 409)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(
            f"/admin/users/{self.admin.id}", headers=self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Cannot delete yourself"})
        self.assertIsNotNone(self.db.get_user(self.admin.id))

    def test_delete_user_cascades(self):
        self.client.post(
            "/contacts",
            json={"name": "Dana", "phone_number": "+1"},
            headers=self.auth(self.bob),
        )
        self.add_call(self.bob)
        response = self.client.delete(f"/admin/users/{self.bob.id}", headers=self.auth(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.db.get_user(self.bob.id))
        self.assertEqual(len(self.db.contacts), 0)
        self.assertEqual(len(self.db.calls), 0)

        missing = self.client.delete(f"/admin/users/{self.bob.id}", headers=self.auth(self.admin))
        self.assertEqual(missing.status_code, 404)

    def test_flush_only_touches_target_user(self):
        self.client.post(
            "/contacts", json={"name": "Bob's", "phone_number": "+1"}, headers=self.auth(self.bob)
        )
        self.client.post(
            "/contacts", json={"name": "Alice's", "phone_number": "+2"}, headers=self.auth(self.alice)
        )
        self.add_call(self.bob, phone_number="+5")
        self.add_call(self.bob, phone_number="+6")
        alice_call = self.add_call(self.alice, phone_number="+1").json()

        response = self.client.delete(
            f"/admin/users/{self.bob.id}/data", headers=self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["deleted_calls"], 2)
        self.assertEqual(payload["deleted_contacts"], 1)

        self.assertIsNotNone(self.db.get_user(self.bob.id))
        self.assertEqual([c.name for c in self.db.list_contacts()], ["Alice's"])
        kept = self.db.get_call(alice_call["id"])
        self.assertIsNotNone(kept)
        self.assertIsNone(kept.contact_id)

    def test_user_views_and_overview(self):
        self.client.post(
            "/contacts", json={"name": "Dana", "phone_number": "+1"}, headers=self.auth(self.alice)
        )
        self.add_call(self.alice, direction="outgoing", duration=12)

        contacts = self.client.get(
            f"/admin/users/{self.alice.id}/contacts", headers=self.auth(self.admin)
        ).json()
        self.assertEqual(contacts["user"]["id"], self.alice.id)
        self.assertEqual(len(contacts["contacts"]), 1)

        calls = self.client.get(
            f"/admin/users/{self.alice.id}/calls", headers=self.auth(self.admin)
        ).json()
        self.assertEqual(len(calls["calls"]), 1)

        stats = self.client.get(
            f"/admin/users/{self.alice.id}/stats", headers=self.auth(self.admin)
        ).json()
        self.assertEqual(stats["stats"]["contacts"], 1)
        self.assertEqual(stats["stats"]["calls"]["outgoing"], 1)
        self.assertEqual(stats["stats"]["calls"]["total_duration"], 12)

        overview = self.client.get("/admin/stats", headers=self.auth(self.admin)).json()
        self.assertEqual(overview["totals"], {"users": 3, "admins": 1, "contacts": 1, "calls": 1})

        missing = self.client.get("/admin/users/999/stats", headers=self.auth(self.admin))
        self.assertEqual(missing.status_code, 404)


class SyncRouteTests(ApiTestCase):
    def test_contact_pull_since_cursor(self):
        push = self.client.post(
            "/sync/contacts",
            json={"contacts": [
                {"name": "Dana", "phone_number": "+1"},
                {"name": "Dup", "phone_number": "+1"},
                {"name": ""},
            ]},
            headers=self.auth(self.alice),
        ).json()
        self.assertEqual(push["created"], 1)
        self.assertEqual(push["skipped"], 1)
        self.assertEqual([r["status"] for r in push["results"]], ["inserted", "exists"])
        self.assertEqual(push["errors"][0]["index"], 2)

        first = self.client.get("/sync/contacts", headers=self.auth(self.bob)).json()
        self.assertEqual(len(first["contacts"]), 1)

        second = self.client.get(
            "/sync/contacts", params={"since": first["server_time"]}, headers=self.auth(self.bob)
        ).json()
        self.assertEqual(second["contacts"], [])

    def push_calls(self, user, calls):
        return self.client.post(
            "/sync/calls", json={"calls": calls}, headers=self.auth(user)
        ).json()

    def test_call_pull_scoped_to_user(self):
        self.push_calls(self.alice, [
            {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
            {"phone_number": "+2", "direction": "incoming", "start_time": "2024-01-03T00:00:00Z"},
        ])
        self.add_call(self.bob, phone_number="+3")

        mine = self.client.get("/sync/calls", headers=self.auth(self.alice)).json()
        self.assertEqual([c["phone_number"] for c in mine["calls"]], ["+1", "+2"])
        self.assertIn("server_time", mine)

        everyone = self.client.get("/sync/calls", headers=self.auth(self.admin)).json()
        self.assertEqual(len(everyone["calls"]), 3)

    def test_call_pull_cursor_includes_late_uploads(self):
        self.push_calls(self.alice, [
            {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-03T00:00:00Z"},
        ])
        first = self.client.get("/sync/calls", headers=self.auth(self.alice)).json()
        self.assertEqual(len(first["calls"]), 1)

        # Started before the newest call already pulled, but uploaded after the cursor.
        report = self.push_calls(self.alice, [
            {"phone_number": "+2", "direction": "missed", "start_time": "2024-01-01T00:00:00Z"},
        ])
        self.assertEqual(report["created"], 1)

        second = self.client.get(
            "/sync/calls", params={"since": first["server_time"]}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual([c["phone_number"] for c in second["calls"]], ["+2"])

        third = self.client.get(
            "/sync/calls", params={"since": second["server_time"]}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual(third["calls"], [])

    def test_since_accepts_epoch_millis(self):
        self.add_call(self.alice, start_time="2024-01-01T00:00:00Z")
        response = self.client.get(
            "/sync/calls", params={"since": "1704067199000"}, headers=self.auth(self.alice)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["calls"]), 1)

    def test_bad_since_is_400(self):
        for since in ("yesterday", "9999999999999999999999999"):
            for path in ("/sync/contacts", "/sync/calls"):
                response = self.client.get(
                    path, params={"since": since}, headers=self.auth(self.alice)
                )
                self.assertEqual(response.status_code, 400, (path, since))
                self.assertIn("Invalid since value", response.json()["error"])


class SqlBackedApiTests(ApiTestCase):
    def make_db(self):
        return SqlDbClient("sqlite+pysqlite:///:memory:")

    def bulk(self, calls):
        return self.client.post(
            "/calls/bulk", json={"calls": calls}, headers=self.auth(self.alice)
        )

    def test_bulk_rejects_out_of_range_duration(self):
        response = self.bulk([
            {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
            {"phone_number": "+2", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z",
             "duration": 10**20},
            {"phone_number": "+3", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
        ])
        self.assertEqual(response.status_code, 200)
        report = response.json()
        self.assertEqual(report["created"], 2)
        self.assertEqual([e["index"] for e in report["errors"]], [1])
        self.assertEqual(len(self.db.list_calls()), 2)

        single = self.add_call(self.alice, phone_number="+4", duration=2**31)
        self.assertEqual(single.status_code, 400)

    def test_bulk_isolates_store_failures(self):
        insert = self.db.insert_call_if_absent

        def failing_insert(call):
            if call.phone_number == "+2":
                raise OperationalError("INSERT INTO calls", {}, Exception("disk I/O error"))
            return insert(call)

        with patch.object(self.db, "insert_call_if_absent", side_effect=failing_insert):
            report = self.bulk([
                {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
                {"phone_number": "+2", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
                {"phone_number": "+3", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
            ]).json()
        self.assertEqual(report["created"], 2)
        self.assertEqual(report["errors"], [{"index": 1, "error": "Database error"}])
        self.assertEqual(
            sorted(c.phone_number for c in self.db.list_calls()), ["+1", "+3"]
        )

    def test_contact_batch_isolates_store_failures(self):
        insert = self.db.insert_contact_if_absent

        def failing_insert(name, phone_number, created_by_user_id):
            if phone_number == "+2":
                raise OperationalError("INSERT INTO contacts", {}, Exception("locked"))
            return insert(name, phone_number, created_by_user_id)

        with patch.object(self.db, "insert_contact_if_absent", side_effect=failing_insert):
            report = self.client.post(
                "/sync/contacts",
                json={"contacts": [
                    {"name": "A", "phone_number": "+1"},
                    {"name": "B", "phone_number": "+2"},
                    {"name": "C", "phone_number": "+3"},
                ]},
                headers=self.auth(self.alice),
            ).json()
        self.assertEqual(report["created"], 2)
        self.assertEqual(report["errors"], [{"index": 1, "error": "Database error"}])

    def test_out_of_range_ids_are_400(self):
        for method, path in (
            ("DELETE", "/contacts/99999999999"),
            ("DELETE", "/calls/99999999999"),
            ("GET", "/admin/users/99999999999/stats"),
            ("GET", "/calls?user_id=99999999999"),
        ):
            response = self.client.request(method, path, headers=self.auth(self.admin))
            self.assertEqual(response.status_code, 400, path)

    def test_call_pull_cursor_on_sql_store(self):
        self.bulk([
            {"phone_number": "+1", "direction": "incoming", "start_time": "2024-01-03T00:00:00Z"},
        ])
        first = self.client.get("/sync/calls", headers=self.auth(self.alice)).json()
        self.bulk([
            {"phone_number": "+2", "direction": "incoming", "start_time": "2024-01-01T00:00:00Z"},
        ])
        second = self.client.get(
            "/sync/calls", params={"since": first["server_time"]}, headers=self.auth(self.alice)
        ).json()
        self.assertEqual([c["phone_number"] for c in second["calls"]], ["+2"])


class AdminPageTests(ApiTestCase):
    def test_login_page(self):
        response = self.client.get("/admin/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("text/html", response.headers["content-type"])
        self.assertIn("Admin Login", response.text)

    def test_dashboard_page(self):
        response = self.client.get("/admin/dashboard")
        self.assertEqual(response.status_code, 200)
        self.assertIn("class Dashboard", response.text)
        self.assertIn('<meta name="api-prefix" content="">', response.text)

    def test_pages_carry_api_prefix(self):
        app = self.client.app
        app.dependency_overrides[get_settings] = lambda: Settings(api_prefix="/api/")
        for path in ("/admin/", "/admin/dashboard"):
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200)
            self.assertIn('<meta name="api-prefix" content="/api">', response.text)
            self.assertNotIn("__API_PREFIX__", response.text)


if __name__ == "__main__":
    unittest.main()
