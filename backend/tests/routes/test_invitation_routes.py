from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from helpers import MONDAY, STUDENT_ID, TUESDAY, TUTOR_ID, auth, warsaw

RESPOND = "/api/v1/tutor/invitations/respond"


def _create(client, proposed_times, amount=None) -> dict:
    payload = {"tutor_id": TUTOR_ID, "proposed_times": [item.isoformat() for item in proposed_times]}
    if amount is not None:
        payload["amount"] = amount
    response = client.post("/api/v1/student/invitations", json=payload, headers=auth(STUDENT_ID))
    assert response.status_code == 201
    return response.json()


def test_create_and_list(client) -> None:
    created = _create(client, [warsaw(2026, 10, 20, 9)], amount="150.00")

    assert created["status"] == "pending"
    assert created["amount"] == 150.0

    listed = client.get("/api/v1/tutor/invitations", headers=auth(TUTOR_ID)).json()
    assert [item["id"] for item in listed] == [created["id"]]


def test_conflict_then_force_accept(client, make_availability) -> None:
    make_availability([(MONDAY, "17:00"), (TUESDAY, "09:00")])
    invitation = _create(client, [warsaw(2026, 10, 19, 18)])

    conflict = client.post(RESPOND, json={"invitation_id": invitation["id"], "accept": True}, headers=auth(TUTOR_ID))

    assert conflict.status_code == 409
    detail = conflict.json()["detail"]
    assert detail["code"] == "INVITATION_CONFLICT"
    assert detail["details"]["suggested_times"] == ["Poniedziałek 17:00", "Wtorek 09:00"]

    forced = client.post(
        RESPOND,
        json={"invitation_id": invitation["id"], "accept": True, "force_accept": True},
        headers=auth(TUTOR_ID),
    )

    assert forced.status_code == 200
    body = forced.json()
    assert body["status"] == "accepted"
    assert body["forced"] is True
    assert body["invitation"]["lesson_id"] == body["lesson"]["id"]
    assert datetime.fromisoformat(body["lesson"]["scheduled_at"]) == warsaw(2026, 10, 19, 18)


def test_reject_and_balance(client) -> None:
    invitation = _create(client, [warsaw(2026, 10, 20, 9)], amount="120.00")

    response = client.post(
        RESPOND,
        json={"invitation_id": invitation["id"], "accept": False, "response": "Brak czasu"},
        headers=auth(TUTOR_ID),
    )
    assert response.status_code == 200
    assert response.json()["invitation"]["tutor_response"] == "Brak czasu"

    balance = client.get("/api/v1/balance", headers=auth(STUDENT_ID)).json()
    assert Decimal(str(balance["balance"])) == Decimal("120.00")
    assert [entry["type"] for entry in balance["transactions"]] == ["refund"]


def test_expired_invitation_returns_gone(client, clock) -> None:
    invitation = _create(client, [warsaw(2026, 10, 20, 9)])
    clock.advance(hours=24)

    response = client.post(RESPOND, json={"invitation_id": invitation["id"], "accept": True}, headers=auth(TUTOR_ID))

    assert response.status_code == 410
    assert response.json()["detail"]["code"] == "INVITATION_EXPIRED"


def test_student_cancel(client) -> None:
    invitation = _create(client, [warsaw(2026, 10, 20, 9)])

    response = client.post(f"/api/v1/student/invitations/{invitation['id']}/cancel", headers=auth(STUDENT_ID))

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_admin_expire_requires_admin(client, clock) -> None:
    _create(client, [warsaw(2026, 10, 20, 9)])
    clock.advance(hours=30)

    assert client.post("/api/v1/admin/invitations/expire", headers=auth("ops-1")).status_code == 403

    response = client.post("/api/v1/admin/invitations/expire", headers=auth("ops-1", role="admin"))
    assert response.status_code == 200
    assert response.json() == {"expired": 1}


def test_negative_amount_is_rejected(client) -> None:
    payload = {"tutor_id": TUTOR_ID, "proposed_times": [warsaw(2026, 10, 20, 9).isoformat()], "amount": "-50.00"}

    response = client.post("/api/v1/student/invitations", json=payload, headers=auth(STUDENT_ID))

    assert response.status_code == 422
    assert client.get("/api/v1/tutor/invitations", headers=auth(TUTOR_ID)).json() == []


def test_past_proposed_time_is_rejected(client) -> None:
    payload = {"tutor_id": TUTOR_ID, "proposed_times": [warsaw(2026, 10, 19, 8).isoformat()]}

    response = client.post("/api/v1/student/invitations", json=payload, headers=auth(STUDENT_ID))

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "ValidationException"
