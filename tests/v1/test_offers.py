"""Tests for offer endpoints."""

from __future__ import annotations

from fastapi import status


def test_make_offer(client, gig, auth_b) -> None:
    response = client.post(
        "/api/v1/offers",
        json={"gig_id": gig.id, "message": "Happy to help", "proposed_budget": 280},
        headers=auth_b,
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["status"] == "pending"
    assert body["offered_by_name"] == "Bob Menon"
    assert body["gig_posted_by"] == "google:alice"


def test_cannot_offer_on_own_gig(client, gig, auth_a) -> None:
    response = client.post(
        "/api/v1/offers", json={"gig_id": gig.id, "proposed_budget": 280}, headers=auth_a
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_received_and_made(client, offer, auth_a, auth_b) -> None:
    assert [o["id"] for o in client.get("/api/v1/offers/received", headers=auth_a).json()] == [offer.id]
    assert [o["id"] for o in client.get("/api/v1/offers/made", headers=auth_b).json()] == [offer.id]
    assert client.get("/api/v1/offers/made", headers=auth_a).json() == []


def test_offer_visible_to_parties_only(client, offer, auth_a, auth_b, make_auth, student_c) -> None:
    assert client.get(f"/api/v1/offers/{offer.id}", headers=auth_a).status_code == 200
    assert client.get(f"/api/v1/offers/{offer.id}", headers=auth_b).status_code == 200
    outsider = client.get(f"/api/v1/offers/{offer.id}", headers=make_auth(student_c.id))
    assert outsider.status_code == status.HTTP_403_FORBIDDEN


def test_only_maker_edits_pending_offer(client, offer, auth_a, auth_b) -> None:
    assert client.patch(
        f"/api/v1/offers/{offer.id}", json={"proposed_budget": 1}, headers=auth_a
    ).status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(
        f"/api/v1/offers/{offer.id}", json={"proposed_budget": 260}, headers=auth_b
    )
    assert response.json()["proposed_budget"] == 260

    offer_id = offer.id
    assert client.delete(f"/api/v1/offers/{offer_id}", headers=auth_b).status_code == 204
    assert client.get(f"/api/v1/offers/{offer_id}", headers=auth_b).status_code == 404


def test_offerer_cannot_accept_own_offer(client, offer, auth_b) -> None:
    response = client.post(f"/api/v1/offers/{offer.id}/accept", headers=auth_b)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_reject_then_accept_conflicts(client, offer, auth_a) -> None:
    rejected = client.put(
        f"/api/v1/offers/{offer.id}/status", json={"status": "rejected"}, headers=auth_a
    )
    assert rejected.json()["status"] == "rejected"

    response = client.post(f"/api/v1/offers/{offer.id}/accept", headers=auth_a)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert client.get("/api/v1/chats", headers=auth_a).json() == []


def test_decided_offer_cannot_be_edited(client, offer, auth_a, auth_b) -> None:
    client.post(f"/api/v1/offers/{offer.id}/accept", headers=auth_a)

    response = client.patch(
        f"/api/v1/offers/{offer.id}", json={"message": "changed"}, headers=auth_b
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert client.delete(f"/api/v1/offers/{offer.id}", headers=auth_b).status_code == 409


def test_unknown_status_is_schema_error(client, offer, auth_a) -> None:
    response = client.put(
        f"/api/v1/offers/{offer.id}/status", json={"status": "done"}, headers=auth_a
    )
    assert response.status_code == 422
