"""Invite issuance, redemption and revocation through the API."""

from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from familyhub.config import settings
from familyhub.database import engine
from familyhub.models.invite import FamilyInvite
from familyhub.models.membership import FamilyMember
from familyhub.models.user import Profile
from familyhub.services import invite_service

CODE_CHARS = set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")


def _issue(client, headers, **body):
    r = client.post("/api/v1/invites/create", json=body, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def _invite_by_code(code: str) -> FamilyInvite:
    with Session(engine) as s:
        invite = s.exec(select(FamilyInvite).where(FamilyInvite.code == code)).one()
        s.expunge(invite)
        return invite


def _invite(invite_id: str) -> FamilyInvite:
    with Session(engine) as s:
        invite = s.get(FamilyInvite, invite_id)
        s.expunge(invite)
        return invite


def _memberships(family_id: str, user_id: str) -> list[FamilyMember]:
    with Session(engine) as s:
        return list(
            s.exec(
                select(FamilyMember).where(
                    FamilyMember.family_id == family_id, FamilyMember.user_id == user_id
                )
            ).all()
        )


def _expire(invite_id: str) -> None:
    with Session(engine) as s:
        invite = s.get(FamilyInvite, invite_id)
        invite.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        s.add(invite)
        s.commit()


def _accept(client, headers, **body):
    return client.post("/api/v1/onboarding/accept-invite", json=body, headers=headers)


# --- Issuance ---

def test_admin_issues_invite(client, admin):
    data = _issue(client, admin["headers"], email="Grandma@Example.com")

    code = data["code"]
    assert len(code) == 6
    assert set(code) <= CODE_CHARS
    assert data["url"] == f"http://testserver.local/signup?code={code}"

    invite = _invite_by_code(code)
    assert invite.family_id == admin["family_id"]
    assert invite.status == "pending"
    assert invite.email == "grandma@example.com"
    assert invite.invited_by == admin["user_id"]
    assert invite.expires_at - invite.created_at == timedelta(days=settings.invite_expire_days)


def test_issue_without_body(client, admin):
    r = client.post("/api/v1/invites/create", headers=admin["headers"])
    assert r.status_code == 200, r.text
    assert len(r.json()["code"]) == 6


def test_issue_rejects_bad_email(client, admin):
    r = client.post("/api/v1/invites/create", json={"email": "not-an-email"}, headers=admin["headers"])
    assert r.status_code == 400
    body = r.json()
    assert body["message"]
    assert body["errors"]


def test_non_admin_cannot_issue(client, member):
    with Session(engine) as s:
        before = len(s.exec(select(FamilyInvite)).all())

    r = client.post("/api/v1/invites/create", json={}, headers=member["headers"])
    assert r.status_code == 403
    assert r.json() == {"message": "Admin access required"}

    with Session(engine) as s:
        assert len(s.exec(select(FamilyInvite)).all()) == before


def test_issue_requires_session(client):
    r = client.post("/api/v1/invites/create", json={})
    assert r.status_code == 401
    assert r.json()["message"] == "Unauthorized"


def test_issue_requires_active_family(client, register):
    _, headers = register("loner@example.com")
    r = client.post("/api/v1/invites/create", json={}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "No active family found"


# --- Redemption by code ---

def test_redeem_code_joins_family(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    user_id, headers = register("bob@example.com")

    r = _accept(client, headers, code=code)
    assert r.status_code == 200, r.text
    assert r.json() == {"familyId": admin["family_id"]}

    invite = _invite_by_code(code)
    assert invite.status == "accepted"
    assert invite.accepted_by == user_id

    rows = _memberships(admin["family_id"], user_id)
    assert len(rows) == 1
    assert rows[0].role == "member"
    assert rows[0].status == "active"

    with Session(engine) as s:
        assert s.get(Profile, user_id).active_family_id == admin["family_id"]


def test_redeem_code_is_case_insensitive(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    _, headers = register("bob@example.com")

    r = _accept(client, headers, code=f" {code.lower()} ")
    assert r.status_code == 200, r.text


def test_redeem_code_twice_fails_second_time(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    _, bob = register("bob@example.com")
    carol_id, carol = register("carol@example.com")

    assert _accept(client, bob, code=code).status_code == 200

    r = _accept(client, carol, code=code)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired code"
    assert _memberships(admin["family_id"], carol_id) == []


def test_redeem_expired_code_fails(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    _expire(_invite_by_code(code).id)
    user_id, headers = register("bob@example.com")

    r = _accept(client, headers, code=code)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired code"

    assert _memberships(admin["family_id"], user_id) == []
    assert _invite_by_code(code).status == "pending"


def test_unknown_code_looks_like_expired_code(client, register, admin):
    _, headers = register("bob@example.com")
    r = _accept(client, headers, code="ZZZZZZ")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired code"


def test_redeem_requires_confirmed_session(client, admin):
    code = _issue(client, admin["headers"])["code"]
    r = _accept(client, {}, code=code)
    assert r.status_code == 401


# --- Redemption by id ---

def test_redeem_by_id_is_idempotent(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    invite_id = _invite_by_code(code).id
    user_id, headers = register("bob@example.com")

    first = _accept(client, headers, inviteId=invite_id)
    assert first.status_code == 200, first.text
    assert first.json()["familyId"] == admin["family_id"]

    # A retried request must not change the outcome
    second = _accept(client, headers, inviteId=invite_id)
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid or expired invitation"

    assert len(_memberships(admin["family_id"], user_id)) == 1
    assert _invite(invite_id).status == "accepted"


def test_redeem_by_unknown_id_fails(client, admin, register):
    _, headers = register("bob@example.com")
    r = _accept(client, headers, inviteId="inv_missing")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired invitation"


def test_admin_redeeming_own_family_invite_keeps_admin_role(client, admin):
    code = _issue(client, admin["headers"])["code"]
    r = _accept(client, admin["headers"], code=code)
    assert r.status_code == 200, r.text

    rows = _memberships(admin["family_id"], admin["user_id"])
    assert len(rows) == 1
    assert rows[0].role == "admin"


# --- Store failures ---

def _store_failure(*args, **kwargs):
    raise OperationalError("INSERT", {}, Exception("database is locked"))


def test_failed_membership_write_leaves_invite_pending(client, admin, register, monkeypatch):
    code = _issue(client, admin["headers"])["code"]
    user_id, headers = register("bob@example.com")
    monkeypatch.setattr(invite_service, "upsert_membership", _store_failure)

    r = _accept(client, headers, code=code)
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}

    invite = _invite_by_code(code)
    assert invite.status == "pending"
    assert invite.accepted_by is None
    assert _memberships(admin["family_id"], user_id) == []
    with Session(engine) as s:
        assert s.get(Profile, user_id).active_family_id is None


def test_failed_invite_insert_returns_no_code(client, admin, monkeypatch):
    monkeypatch.setattr(Session, "commit", _store_failure)

    r = client.post("/api/v1/invites/create", json={}, headers=admin["headers"])
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
    assert "code" not in r.json()
    assert "url" not in r.json()

    monkeypatch.undo()
    with Session(engine) as s:
        assert s.exec(select(FamilyInvite)).all() == []


# --- Input validation ---

def test_accept_requires_code_or_invite_id(client, register):
    _, headers = register("bob@example.com")
    r = _accept(client, headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Either code or inviteId must be provided"


def test_accept_rejects_both_code_and_invite_id(client, register):
    _, headers = register("bob@example.com")
    r = _accept(client, headers, code="ABCDEF", inviteId="inv_123")
    assert r.status_code == 400
    assert r.json()["message"] == "Provide either code or inviteId, not both"


def test_accept_rejects_malformed_code(client, register):
    _, headers = register("bob@example.com")
    r = _accept(client, headers, code="ABC")
    assert r.status_code == 400
    assert r.json()["errors"][0]["loc"][-1] == "code"


# --- Revocation ---

def test_revoke_then_redeem_fails(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    invite_id = _invite_by_code(code).id

    r = client.post("/api/v1/invites/revoke", json={"inviteId": invite_id}, headers=admin["headers"])
    assert r.status_code == 200, r.text
    assert r.json() == {"ok": True}

    invite = _invite(invite_id)
    assert invite.status == "revoked"
    assert invite.revoked_at is not None

    user_id, headers = register("bob@example.com")
    assert _accept(client, headers, code=code).status_code == 400
    assert _accept(client, headers, inviteId=invite_id).status_code == 400
    assert _memberships(admin["family_id"], user_id) == []


def test_revoke_accepted_invite_reports_already_processed(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    invite_id = _invite_by_code(code).id
    _, headers = register("bob@example.com")
    assert _accept(client, headers, code=code).status_code == 200

    r = client.post("/api/v1/invites/revoke", json={"inviteId": invite_id}, headers=admin["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == "Invite not found or already processed"
    assert _invite(invite_id).status == "accepted"


def test_revoke_twice_reports_already_processed(client, admin):
    invite_id = _invite_by_code(_issue(client, admin["headers"])["code"]).id
    body = {"inviteId": invite_id}

    assert client.post("/api/v1/invites/revoke", json=body, headers=admin["headers"]).status_code == 200
    r = client.post("/api/v1/invites/revoke", json=body, headers=admin["headers"])
    assert r.status_code == 404
    assert _invite(invite_id).status == "revoked"


def test_revoke_requires_admin(client, admin, member):
    invite_id = _invite_by_code(_issue(client, admin["headers"])["code"]).id

    r = client.post("/api/v1/invites/revoke", json={"inviteId": invite_id}, headers=member["headers"])
    assert r.status_code == 403
    assert _invite(invite_id).status == "pending"


def test_revoke_other_familys_invite_is_not_found(client, admin, register):
    invite_id = _invite_by_code(_issue(client, admin["headers"])["code"]).id

    _, other = register("other-admin@example.com")
    r = client.post("/api/v1/onboarding/create-family", json={"name": "Others"}, headers=other)
    assert r.status_code == 200

    r = client.post("/api/v1/invites/revoke", json={"inviteId": invite_id}, headers=other)
    assert r.status_code == 404
    assert _invite(invite_id).status == "pending"


def test_revoke_requires_invite_id(client, admin):
    r = client.post("/api/v1/invites/revoke", json={}, headers=admin["headers"])
    assert r.status_code == 400


# --- Signup with code, onboarding list ---

def test_signup_code_is_redeemed_on_confirmation(client, admin, register):
    code = _issue(client, admin["headers"])["code"]
    user_id, _ = register("newbie@example.com", invite_code=code)

    assert _invite_by_code(code).status == "accepted"
    assert len(_memberships(admin["family_id"], user_id)) == 1
    with Session(engine) as s:
        profile = s.get(Profile, user_id)
        assert profile.active_family_id == admin["family_id"]
        assert profile.pending_invite_code is None


def test_stale_signup_code_does_not_block_confirmation(client, register):
    user_id, headers = register("newbie@example.com", invite_code="NOPE00")
    r = client.get("/api/v1/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["active_family_id"] is None


def test_onboarding_lists_invites_for_my_email(client, admin, register):
    _issue(client, admin["headers"], email="bob@example.com")
    _issue(client, admin["headers"], email="someone-else@example.com")
    _, headers = register("bob@example.com")

    r = client.get("/api/v1/onboarding/invites", headers=headers)
    assert r.status_code == 200
    invites = r.json()
    assert len(invites) == 1
    assert invites[0]["family_name"] == "The Testers"
    assert invites[0]["family_slug"] == "the-testers"

    r = _accept(client, headers, inviteId=invites[0]["id"])
    assert r.status_code == 200
    assert client.get("/api/v1/onboarding/invites", headers=headers).json() == []


# --- End to end ---

def test_issue_redeem_revoke_scenario(client, admin, register):
    issued_c = _issue(client, admin["headers"])
    code_c = issued_c["code"]
    invite_c = _invite_by_code(code_c)
    assert len(code_c) == 6
    assert invite_c.expires_at - invite_c.created_at == timedelta(days=14)

    b_id, b_headers = register("b@example.com")
    r = _accept(client, b_headers, code=code_c)
    assert r.json() == {"familyId": admin["family_id"]}

    rows = _memberships(admin["family_id"], b_id)
    assert [(m.role, m.status) for m in rows] == [("member", "active")]
    with Session(engine) as s:
        assert s.get(Profile, b_id).active_family_id == admin["family_id"]

    code_d = _issue(client, admin["headers"])["code"]
    invite_d = _invite_by_code(code_d)
    r = client.post("/api/v1/invites/revoke", json={"inviteId": invite_d.id}, headers=admin["headers"])
    assert r.status_code == 200
    assert _invite(invite_d.id).status == "revoked"

    _, e_headers = register("e@example.com")
    assert _accept(client, e_headers, code=code_d).status_code == 400
