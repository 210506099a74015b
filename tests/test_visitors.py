import json
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import create_flat, sign_up_and_in
from gatepass.db.base import async_session_factory
from gatepass.domain.audit import AuditTrail
from gatepass.domain.enums import Role
from gatepass.domain.visitor import Visitor
from gatepass.repositories.visitor import VisitorRepository
from gatepass.services.audit import AuditService
from gatepass.services.realtime import change_feed


async def _pre_approve(client, headers, name="Jane Doe", visitor_type="Guest", phone="555-0100"):
    resp = await client.post(
        "/api/v1/visitors/pre-approve",
        json={"name": name, "type": visitor_type, "phone": phone},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _gate_entry(client, headers, flat_id, name="Walk In", visitor_type="Delivery"):
    resp = await client.post(
        "/api/v1/visitors/entries",
        json={"name": name, "type": visitor_type, "flatId": flat_id},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _statuses() -> dict[str, str]:
    async with async_session_factory() as session:
        rows = (await session.execute(select(Visitor.id, Visitor.status))).all()
    return dict(rows)


def _scan_payload(name, visitor_type):
    return json.dumps({"name": name, "type": visitor_type, "timestamp": "2026-10-19T09:00:00+00:00"})


# ------------------------------------------------------------------
# Pre-approval
# ------------------------------------------------------------------

async def test_owner_pre_approves_visitor(client, owner, flat_id):
    owner_id, headers = owner
    visitor = await _pre_approve(client, headers)

    assert visitor["status"] == "pending"
    assert visitor["source"] == "pre_approval"
    assert visitor["flatId"] == flat_id
    assert visitor["flatNumber"] == "A-101"
    assert visitor["registeredBy"] == owner_id
    assert visitor["phone"] == "555-0100"
    assert visitor["qrCode"].startswith("data:image/png;base64,")
    # owners do not review their own invitees
    assert visitor["actions"] == []

    async with async_session_factory() as session:
        audit = (await session.execute(select(AuditTrail))).scalars().all()
    assert [a.action for a in audit] == ["visitor.pre_approved"]


async def test_pre_approve_requires_a_flat(client):
    _, headers = await sign_up_and_in(client, "homeless@example.com", Role.FLAT_OWNER, None)
    resp = await client.post(
        "/api/v1/visitors/pre-approve", json={"name": "A", "type": "Guest"}, headers=headers
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_security_cannot_pre_approve(client, guard):
    _, headers = guard
    resp = await client.post(
        "/api/v1/visitors/pre-approve", json={"name": "A", "type": "Guest"}, headers=headers
    )
    assert resp.status_code == 403


async def test_unknown_visitor_type_rejected(client, owner):
    _, headers = owner
    resp = await client.post(
        "/api/v1/visitors/pre-approve", json={"name": "A", "type": "Plumber"}, headers=headers
    )
    assert resp.status_code == 422


async def test_qr_download_and_share(client, owner):
    _, headers = owner
    visitor = await _pre_approve(client, headers)

    png = await client.get(f"/api/v1/visitors/{visitor['id']}/qr.png", headers=headers)
    assert png.status_code == 200
    assert png.headers["content-type"] == "image/png"
    assert png.content.startswith(b"\x89PNG")
    assert 'filename="jane-doe-qr.png"' in png.headers["content-disposition"]

    share = await client.get(f"/api/v1/visitors/{visitor['id']}/qr/share", headers=headers)
    assert share.status_code == 200
    data = share.json()["data"]
    assert data["text"] == "QR code for visitor: Jane Doe"
    assert data["downloadUrl"].endswith(f"/api/v1/visitors/{visitor['id']}/qr.png")


async def test_share_falls_back_to_download_when_disabled(client, owner, monkeypatch):
    from gatepass.core.config import settings

    _, headers = owner
    visitor = await _pre_approve(client, headers)
    monkeypatch.setattr(settings, "share_enabled", False)

    resp = await client.get(f"/api/v1/visitors/{visitor['id']}/qr/share", headers=headers)
    assert resp.status_code == 501
    body = resp.json()["error"]
    assert body["code"] == "SHARE_UNSUPPORTED"
    assert f"/api/v1/visitors/{visitor['id']}/qr.png" in body["message"]


# ------------------------------------------------------------------
# Gate scan
# ------------------------------------------------------------------

async def test_security_scan_approves_matching_visitor(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    visitor = await _pre_approve(client, owner_headers)

    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Jane Doe", "Guest")}, headers=guard_headers
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["message"] == "Verified visitor: Jane Doe"
    assert data["visitor"]["id"] == visitor["id"]
    assert data["visitor"]["status"] == "approved"
    assert (await _statuses())[visitor["id"]] == "approved"


async def test_scan_with_unknown_visitor_changes_nothing(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    await _pre_approve(client, owner_headers)
    before = await _statuses()

    resp = await client.post(
        "/api/v1/visitors/scan",
        json={"raw": _scan_payload("Unknown Person", "Guest")},
        headers=guard_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == {"code": "INVALID_CREDENTIAL", "message": "Invalid QR code"}
    assert await _statuses() == before


async def test_scan_with_garbage_payload(client, guard):
    _, headers = guard
    resp = await client.post("/api/v1/visitors/scan", json={"raw": "https://example.com"}, headers=headers)
    assert resp.status_code == 400


async def test_scan_requires_exact_type_match(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    await _pre_approve(client, owner_headers, visitor_type="Delivery")

    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Jane Doe", "Guest")}, headers=guard_headers
    )
    assert resp.status_code == 400


async def test_rescanning_an_approved_pass_is_reported_but_harmless(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    await _pre_approve(client, owner_headers)
    raw = _scan_payload("Jane Doe", "Guest")
    await client.post("/api/v1/visitors/scan", json={"raw": raw}, headers=guard_headers)

    resp = await client.post("/api/v1/visitors/scan", json={"raw": raw}, headers=guard_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == "Visitor already verified: Jane Doe"


async def test_scan_of_denied_visitor_is_refused(client, admin, owner, guard):
    _, admin_headers = admin
    _, owner_headers = owner
    _, guard_headers = guard
    visitor = await _pre_approve(client, owner_headers)
    await client.post(f"/api/v1/visitors/{visitor['id']}/deny", headers=admin_headers)

    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Jane Doe", "Guest")}, headers=guard_headers
    )
    assert resp.status_code == 409
    assert (await _statuses())[visitor["id"]] == "denied"


async def test_flat_owner_cannot_scan(client, owner):
    _, headers = owner
    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Jane Doe", "Guest")}, headers=headers
    )
    assert resp.status_code == 403


async def test_walk_in_cannot_be_admitted_by_scanning(client, guard, flat_id):
    _, headers = guard
    entry = await _gate_entry(client, headers, flat_id, name="Walk In", visitor_type="Delivery")
    assert entry["source"] == "gate_entry"

    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Walk In", "Delivery")}, headers=headers
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIAL"
    assert (await _statuses())[entry["id"]] == "pending"


async def test_scan_admits_pass_holder_over_newer_walk_in_with_same_name(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    holder = await _pre_approve(client, owner_headers)
    other_flat = await create_flat("B", 2, 1)
    walk_in = await _gate_entry(client, guard_headers, other_flat, name="Jane Doe", visitor_type="Guest")

    resp = await client.post(
        "/api/v1/visitors/scan", json={"raw": _scan_payload("Jane Doe", "Guest")}, headers=guard_headers
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["visitor"]["id"] == holder["id"]
    statuses = await _statuses()
    assert statuses[holder["id"]] == "approved"
    assert statuses[walk_in["id"]] == "pending"


# ------------------------------------------------------------------
# Approve / deny
# ------------------------------------------------------------------

async def test_owner_reviews_walk_in_registered_by_security(client, owner, guard, flat_id):
    _, owner_headers = owner
    _, guard_headers = guard
    entry = await _gate_entry(client, guard_headers, flat_id)
    assert entry["actions"] == []  # security never gets review actions

    listed = (await client.get("/api/v1/visitors", headers=owner_headers)).json()["data"]
    assert listed[0]["id"] == entry["id"]
    assert listed[0]["actions"] == ["approve", "deny"]

    resp = await client.post(f"/api/v1/visitors/{entry['id']}/approve", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "approved"
    assert resp.json()["data"]["actions"] == []


async def test_owner_cannot_review_own_pre_approval(client, owner):
    _, headers = owner
    visitor = await _pre_approve(client, headers)

    resp = await client.post(f"/api/v1/visitors/{visitor['id']}/approve", headers=headers)
    assert resp.status_code == 403
    assert (await _statuses())[visitor["id"]] == "pending"


async def test_pre_approval_stays_unreviewable_after_registrar_role_change(client, owner, admin, flat_id):
    owner_id, owner_headers = owner
    _, admin_headers = admin
    visitor = await _pre_approve(client, owner_headers)
    resp = await client.put(
        f"/api/v1/profiles/{owner_id}",
        json={"role": "security", "flatId": flat_id},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    _, neighbour_headers = await sign_up_and_in(client, "neighbour@example.com", Role.FLAT_OWNER, flat_id)
    row = (await client.get(f"/api/v1/visitors/{visitor['id']}", headers=neighbour_headers)).json()["data"]
    assert row["actions"] == []

    resp = await client.post(f"/api/v1/visitors/{visitor['id']}/approve", headers=neighbour_headers)
    assert resp.status_code == 403
    assert (await _statuses())[visitor["id"]] == "pending"


async def test_failed_status_write_leaves_visitor_pending(client, owner, guard, flat_id, monkeypatch):
    _, owner_headers = owner
    _, guard_headers = guard
    entry = await _gate_entry(client, guard_headers, flat_id)

    async def _fail(self, instance, **kwargs):
        raise OperationalError("UPDATE visitors", {}, Exception("database is locked"))

    monkeypatch.setattr(VisitorRepository, "update", _fail)
    queue = change_feed.subscribe()
    try:
        resp = await client.post(f"/api/v1/visitors/{entry['id']}/approve", headers=owner_headers)
        assert queue.empty()
    finally:
        change_feed.unsubscribe(queue)

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "WRITE_FAILED"
    assert (await _statuses())[entry["id"]] == "pending"


async def test_failed_audit_write_rolls_back_review(client, owner, guard, flat_id, monkeypatch):
    _, owner_headers = owner
    _, guard_headers = guard
    entry = await _gate_entry(client, guard_headers, flat_id)

    async def _fail(self, **kwargs):
        raise OperationalError("INSERT INTO audit_trail", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AuditService, "record", _fail)
    queue = change_feed.subscribe()
    try:
        resp = await client.post(f"/api/v1/visitors/{entry['id']}/deny", headers=owner_headers)
        assert queue.empty()
    finally:
        change_feed.unsubscribe(queue)

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "WRITE_FAILED"
    assert (await _statuses())[entry["id"]] == "pending"


async def test_security_cannot_approve_or_deny(client, guard, flat_id):
    _, headers = guard
    entry = await _gate_entry(client, headers, flat_id)

    for action in ("approve", "deny"):
        resp = await client.post(f"/api/v1/visitors/{entry['id']}/{action}", headers=headers)
        assert resp.status_code == 403
    assert (await _statuses())[entry["id"]] == "pending"


async def test_denied_visitor_offers_no_actions_and_cannot_be_approved(client, owner, guard, flat_id):
    _, owner_headers = owner
    _, guard_headers = guard
    entry = await _gate_entry(client, guard_headers, flat_id)
    await client.post(f"/api/v1/visitors/{entry['id']}/deny", headers=owner_headers)

    row = (await client.get(f"/api/v1/visitors/{entry['id']}", headers=owner_headers)).json()["data"]
    assert row["status"] == "denied"
    assert row["actions"] == []

    resp = await client.post(f"/api/v1/visitors/{entry['id']}/approve", headers=owner_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "INVALID_TRANSITION"
    assert (await _statuses())[entry["id"]] == "denied"


async def test_admin_reviews_any_pending_visitor(client, admin, owner):
    _, admin_headers = admin
    _, owner_headers = owner
    visitor = await _pre_approve(client, owner_headers)

    row = (await client.get(f"/api/v1/visitors/{visitor['id']}", headers=admin_headers)).json()["data"]
    assert row["actions"] == ["approve", "deny"]

    resp = await client.post(f"/api/v1/visitors/{visitor['id']}/deny", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "denied"

    async with async_session_factory() as session:
        actions = (
            await session.execute(select(AuditTrail.action).order_by(AuditTrail.created_at))
        ).scalars().all()
    assert actions == ["visitor.pre_approved", "visitor.denied"]


async def test_owner_cannot_see_other_flats(client, owner, guard):
    _, owner_headers = owner
    _, guard_headers = guard
    other_flat = await create_flat("B", 4, 2)
    entry = await _gate_entry(client, guard_headers, other_flat)

    assert (await client.get(f"/api/v1/visitors/{entry['id']}", headers=owner_headers)).status_code == 404
    resp = await client.post(f"/api/v1/visitors/{entry['id']}/approve", headers=owner_headers)
    assert resp.status_code == 404
    assert (await client.get("/api/v1/visitors", headers=owner_headers)).json()["meta"]["total"] == 0


async def test_gate_entry_for_unknown_flat(client, guard):
    _, headers = guard
    resp = await client.post(
        "/api/v1/visitors/entries",
        json={"name": "A", "type": "Cab", "flatId": "missing"},
        headers=headers,
    )
    assert resp.status_code == 404


# ------------------------------------------------------------------
# Listing
# ------------------------------------------------------------------

async def test_second_page_of_fifteen(client, owner):
    _, headers = owner
    for i in range(15):
        await _pre_approve(client, headers, name=f"Visitor {i}")

    resp = await client.get("/api/v1/visitors", params={"page": 2, "limit": 10}, headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 5
    assert body["meta"] == {"total": 15, "page": 2, "limit": 10, "pages": 2}


async def test_default_page_size_is_ten(client, guard, flat_id):
    _, headers = guard
    for i in range(12):
        await _gate_entry(client, headers, flat_id, name=f"Walk In {i}")

    body = (await client.get("/api/v1/visitors", headers=headers)).json()
    assert len(body["data"]) == 10
    assert body["meta"]["pages"] == 2


async def test_pages_stay_stable_when_timestamps_tie(client, guard, flat_id):
    _, headers = guard
    stamp = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    async with async_session_factory() as session:
        session.add_all(
            [Visitor(name=f"Tied {i}", type="Guest", flat_id=flat_id, created_at=stamp) for i in range(12)]
        )
        await session.commit()

    seen = []
    for page in (1, 2, 3):
        body = (
            await client.get("/api/v1/visitors", params={"page": page, "limit": 5}, headers=headers)
        ).json()
        seen.extend(row["id"] for row in body["data"])

    assert len(set(seen)) == 12
    assert seen == sorted(seen, reverse=True)


async def test_dashboard_for_flat_owner(client, owner):
    _, headers = owner
    await _pre_approve(client, headers)

    data = (await client.get("/api/v1/dashboard", headers=headers)).json()["data"]
    assert data["role"] == "flat_owner"
    assert data["capabilities"] == {
        "canPreApprove": True,
        "canScan": False,
        "canRegisterEntry": False,
        "canManageUsers": False,
    }
    assert [v["name"] for v in data["recentVisitors"]] == ["Jane Doe"]


async def test_statuses_stay_within_lifecycle(client, owner, guard, admin, flat_id):
    _, owner_headers = owner
    _, guard_headers = guard
    _, admin_headers = admin
    await _pre_approve(client, owner_headers, name="P1")
    e1 = await _gate_entry(client, guard_headers, flat_id, name="E1")
    e2 = await _gate_entry(client, guard_headers, flat_id, name="E2")
    await client.post(f"/api/v1/visitors/{e1['id']}/approve", headers=owner_headers)
    await client.post(f"/api/v1/visitors/{e2['id']}/deny", headers=admin_headers)
    await client.post("/api/v1/visitors/scan", json={"raw": _scan_payload("P1", "Guest")}, headers=guard_headers)

    assert set((await _statuses()).values()) <= {"pending", "approved", "denied"}
