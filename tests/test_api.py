"""
HTTP contract tests.

Every failure comes back as JSON with an ``error`` key, and the status code
tells the client what went wrong: 400 bad input, 401 no identity, 403 not
yours, 404 missing, 409 already confirmed.
"""
import pytest

from rainmakers.models.audit import AuditLog
from rainmakers.models.domain import VerificationToken
from rainmakers.services.tokens import create_session_token

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, IMAGES, make_pledge

PLEDGE_BODY = {
    "gc_username": "CacheOwner",
    "title": "Creek crossing",
    "cache_type": "TRADITIONAL",
    "cache_size": "SMALL",
    "approx_suburb": "Newtown",
    "approx_state": "NSW",
    "images": IMAGES,
}


def submission_body(pledge_id, **overrides):
    body = {
        "pledge_id": pledge_id,
        "gc_code": "GC9ABCD",
        "cache_name": "Under the Bridge",
        "suburb": "Newtown",
        "state": "NSW",
        "difficulty": 1.5,
        "terrain": 2,
        "type": "TRADITIONAL",
        "hidden_date": "2026-01-31",
    }
    body.update(overrides)
    return body


def admin_login(client):
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response


class TestIdentity:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_missing_session_is_401(self, client):
        response = client.get("/api/user/me")

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_bad_session_is_401(self, client):
        response = client.get("/api/user/me", headers={"Authorization": "Bearer nonsense"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid session"}

    def test_first_sign_in_creates_user(self, client, settings):
        token = create_session_token("fresh-user", "fresh@example.com", settings)
        response = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["id"] == "fresh-user"
        assert response.json()["gc_username"] is None

    def test_update_username(self, client, owner, auth_headers):
        response = client.patch("/api/user/me", json={"gc_username": "Renamed"}, headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["gc_username"] == "Renamed"

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert "error" in response.json()


class TestPledgeEndpoints:

    def test_create_pledge(self, client, owner, auth_headers):
        response = client.post("/api/pledges", json=dict(PLEDGE_BODY, gc_username="NewHandle"),
                               headers=auth_headers(owner))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "CONCEPT"
        assert body["user_id"] == owner.id
        assert [i["url"] for i in body["images"]] == [i["url"] for i in IMAGES]
        assert client.get("/api/user/me", headers=auth_headers(owner)).json()["gc_username"] == "NewHandle"

    @pytest.mark.parametrize("change", [
        {"images": IMAGES * 2},
        {"images": [{"url": "ftp://img.example.com/a.jpg"}]},
        {"cache_type": "HUGE"},
        {"approx_state": "XX"},
        {"gc_username": ""},
        {"title": "x" * 201},
    ], ids=["too-many-images", "bad-image-url", "cache-type", "state", "blank-username", "long-title"])
    def test_invalid_pledge_is_400(self, client, owner, auth_headers, change):
        response = client.post("/api/pledges", json=dict(PLEDGE_BODY, **change), headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"
        assert response.json()["details"]

    def test_list_my_pledges(self, client, db_session, owner, stranger, auth_headers):
        mine = make_pledge(db_session, owner)
        make_pledge(db_session, stranger)

        response = client.get("/api/pledges/me", headers=auth_headers(owner))

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [mine.id]
        assert response.json()[0]["submission"] is None

    def test_get_missing_pledge_is_404(self, client, owner, auth_headers):
        response = client.get("/api/pledges/missing", headers=auth_headers(owner))

        assert response.status_code == 404
        assert response.json() == {"error": "Pledge not found"}

    def test_get_someone_elses_pledge_is_403(self, client, sample_pledge, stranger, auth_headers):
        response = client.get(f"/api/pledges/{sample_pledge.id}", headers=auth_headers(stranger))

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_owner_partial_update_is_not_audited(self, client, db_session, sample_pledge, owner, auth_headers):
        response = client.patch(f"/api/pledges/{sample_pledge.id}", json={"approx_suburb": "Enmore"},
                                headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["approx_suburb"] == "Enmore"
        assert response.json()["title"] == "Creek crossing"
        assert db_session.query(AuditLog).count() == 0

    def test_allow_listed_user_edit_is_audited(self, client, db_session, sample_pledge, admin_user, auth_headers):
        response = client.patch(f"/api/pledges/{sample_pledge.id}", json={"title": "Moderated"},
                                headers=auth_headers(admin_user))

        assert response.status_code == 200
        entry = db_session.query(AuditLog).one()
        assert entry.actor_id == admin_user.id
        assert entry.after["title"] == "Moderated"

    def test_delete_pledge(self, client, sample_pledge, owner, auth_headers):
        response = client.delete(f"/api/pledges/{sample_pledge.id}", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get(f"/api/pledges/{sample_pledge.id}", headers=auth_headers(owner)).status_code == 404

    def test_legacy_anonymous_pledge_is_gone(self, client):
        response = client.post("/api/pledge", json=PLEDGE_BODY)

        assert response.status_code == 410
        assert "deprecated" in response.json()["error"]


class TestSubmissionEndpoints:

    def test_confirm_then_conflict(self, client, sample_pledge, owner, auth_headers):
        headers = auth_headers(owner)

        first = client.post("/api/submissions", json=submission_body(sample_pledge.id), headers=headers)
        second = client.post("/api/submissions", json=submission_body(sample_pledge.id, gc_code="GC2"),
                             headers=headers)

        assert first.status_code == 201
        assert first.json()["gc_username"] == "CacheOwner"
        assert first.json()["hidden_date"].startswith("2026-01-31")
        assert len(first.json()["images"]) == 2
        assert second.status_code == 409
        assert second.json() == {"error": "This pledge already has a submission"}

        pledge = client.get(f"/api/pledges/{sample_pledge.id}", headers=headers).json()
        assert pledge["status"] == "HIDDEN"
        assert pledge["images"] == []
        assert pledge["submission"]["id"] == first.json()["id"]

    def test_confirm_unknown_pledge_is_404(self, client, owner, auth_headers):
        response = client.post("/api/submissions", json=submission_body("missing"), headers=auth_headers(owner))

        assert response.status_code == 404

    def test_confirm_someone_elses_pledge_is_403(self, client, sample_pledge, stranger, auth_headers):
        response = client.post("/api/submissions", json=submission_body(sample_pledge.id),
                               headers=auth_headers(stranger))

        assert response.status_code == 403

    @pytest.mark.parametrize("change", [
        {"gc_code": "gc9abcd"},
        {"gc_code": "AB1234"},
        {"difficulty": 1.2},
        {"terrain": 5.5},
        {"hidden_date": "last tuesday"},
    ])
    def test_invalid_submission_is_400(self, client, sample_pledge, owner, auth_headers, change):
        response = client.post("/api/submissions", json=submission_body(sample_pledge.id, **change),
                               headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    def test_delete_submission_reverts_pledge(self, client, sample_pledge, owner, auth_headers):
        headers = auth_headers(owner)
        submission = client.post("/api/submissions", json=submission_body(sample_pledge.id), headers=headers).json()

        response = client.delete(f"/api/submissions/{submission['id']}", headers=headers)

        assert response.status_code == 200
        pledge = client.get(f"/api/pledges/{sample_pledge.id}", headers=headers).json()
        assert pledge["status"] == "CONCEPT"
        assert pledge["submission"] is None
        assert pledge["images"] == []

    def test_my_submissions_include_pledge(self, client, sample_pledge, owner, auth_headers):
        headers = auth_headers(owner)
        client.post("/api/submissions", json=submission_body(sample_pledge.id), headers=headers)

        submissions = client.get("/api/submissions/me", headers=headers).json()

        assert len(submissions) == 1
        assert submissions[0]["pledge"]["id"] == sample_pledge.id


class TestAdminEndpoints:

    def test_login_rejects_wrong_password(self, client):
        response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_login_rejects_email_not_on_list(self, client):
        response = client.post("/api/admin/login", json={"email": "owner@example.com", "password": ADMIN_PASSWORD})

        assert response.status_code == 401

    def test_cookie_session_lifecycle(self, client):
        assert client.get("/api/admin/session").json()["authenticated"] is False

        admin_login(client)
        session = client.get("/api/admin/session").json()
        assert session == {"authenticated": True, "email": ADMIN_EMAIL}

        client.post("/api/admin/logout")
        assert client.get("/api/admin/session").json()["authenticated"] is False

    def test_non_admin_is_403(self, client, owner, auth_headers):
        response = client.get("/api/admin/pledges", headers=auth_headers(owner))

        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    def test_anonymous_is_401(self, client):
        assert client.get("/api/admin/pledges").status_code == 401

    def test_listing_includes_owner_email(self, client, sample_pledge):
        admin_login(client)

        pledges = client.get("/api/admin/pledges", params={"state": "NSW", "search": "creek"}).json()

        assert [p["id"] for p in pledges] == [sample_pledge.id]
        assert pledges[0]["user"]["email"] == "owner@example.com"

    def test_invalid_filter_is_400(self, client):
        admin_login(client)

        assert client.get("/api/admin/pledges", params={"state": "ZZ"}).status_code == 400

    def test_cookie_admin_edit_is_audited_without_actor_id(self, client, db_session, sample_pledge):
        admin_login(client)

        response = client.delete(f"/api/pledges/{sample_pledge.id}")

        assert response.status_code == 200
        entry = db_session.query(AuditLog).one()
        assert entry.action == "DELETE_PLEDGE"
        assert entry.actor_id is None
        assert entry.actor_email == ADMIN_EMAIL

        audit = client.get("/api/admin/audit", params={"action": "DELETE_PLEDGE"}).json()
        assert [a["target_id"] for a in audit] == [sample_pledge.id]

    def test_csv_export(self, client, sample_pledge):
        admin_login(client)

        response = client.get("/api/admin/export/pledges")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="rainmakers-pledges-' in response.headers["content-disposition"]
        assert response.text.splitlines()[0].startswith("ID,GC Username,Email")
        assert f'"{sample_pledge.id}"' in response.text

    def test_stats_and_gallery(self, client, sample_pledge):
        admin_login(client)

        stats = client.get("/api/admin/stats").json()
        images = client.get("/api/admin/images").json()

        assert stats["total_pledges"] == 1
        assert stats["size_breakdown"] == {"SMALL": {"pledged": 1}}
        assert [i["source"] for i in images] == ["pledge", "pledge"]


class TestPublicStats:

    def test_stats_need_no_identity(self, client, sample_pledge):
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json()["total_pledged"] == 1
        assert response.json()["rainmakers"] == 1


class TestManageLinks:

    def request_token(self, client, db_session, email):
        response = client.post("/api/edit-token", json={"email": email})
        assert response.status_code == 200
        return db_session.query(VerificationToken).one().token

    def test_unknown_email_is_404(self, client):
        response = client.post("/api/edit-token", json={"email": "nobody@example.com"})

        assert response.status_code == 404

    def test_manage_lists_own_records(self, client, db_session, sample_pledge, owner):
        token = self.request_token(client, db_session, owner.email)

        response = client.get("/api/manage", params={"token": token})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == owner.email
        assert [p["id"] for p in body["pledges"]] == [sample_pledge.id]
        assert body["token"] == token

    def test_missing_token_is_400(self, client):
        response = client.get("/api/manage")

        assert response.status_code == 400
        assert response.json() == {"error": "Token is required"}

    def test_invalid_token_is_401(self, client):
        response = client.get("/api/manage", params={"token": "bogus"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_cannot_touch_someone_elses_pledge(self, client, db_session, sample_pledge, stranger):
        token = self.request_token(client, db_session, stranger.email)

        response = client.put(f"/api/manage/pledges/{sample_pledge.id}", params={"token": token},
                              json={"title": "Hijacked"})

        assert response.status_code == 403

    def test_admin_email_link_is_not_admin(self, client, db_session, sample_pledge, admin_user):
        """A magic link only ever grants access to the link owner's own records."""
        token = self.request_token(client, db_session, admin_user.email)

        response = client.delete(f"/api/manage/pledges/{sample_pledge.id}", params={"token": token})

        assert response.status_code == 403

    def test_edits_through_link_are_not_audited(
        self, client, db_session, sample_pledge, owner, auth_headers
    ):
        submission = client.post("/api/submissions", json=submission_body(sample_pledge.id),
                                 headers=auth_headers(owner)).json()
        token = self.request_token(client, db_session, owner.email)

        updated = client.put(f"/api/manage/submissions/{submission['id']}", params={"token": token},
                             json={"notes": "Bring a torch"})
        deleted = client.delete(f"/api/manage/submissions/{submission['id']}", params={"token": token})

        assert updated.status_code == 200
        assert updated.json()["notes"] == "Bring a torch"
        assert deleted.status_code == 200
        assert db_session.query(AuditLog).count() == 0
