"""Tests for the admin panel endpoints."""

from __future__ import annotations

from fastapi import status


def test_admin_routes_need_admin_role(client, auth_a) -> None:
    for path in ("/api/v1/admin/users", "/api/v1/admin/gigs"):
        assert client.get(path, headers=auth_a).status_code == status.HTTP_403_FORBIDDEN
    response = client.delete("/api/v1/admin/users/google:bob", headers=auth_a)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_listings(client, admin_auth, gig, student_b) -> None:
    users = client.get("/api/v1/admin/users", headers=admin_auth).json()
    assert {u["id"] for u in users} == {"google:alice", "google:bob"}

    gigs = client.get("/api/v1/admin/gigs", headers=admin_auth).json()
    assert [g["id"] for g in gigs] == [gig.id]


def test_user_stats(client, admin_auth, offer) -> None:
    response = client.get("/api/v1/admin/users/google:alice/stats", headers=admin_auth)
    assert response.json() == {
        "total_gigs": 1,
        "active_gigs": 1,
        "completed_gigs": 0,
        "total_offers": 0,
    }


def test_admin_deletes_gig(client, admin_auth, gig, offer) -> None:
    response = client.delete(f"/api/v1/admin/gigs/{gig.id}", headers=admin_auth)
    assert response.json()["deleted_offers"] == 1


def test_delete_unknown_user(client, admin_auth) -> None:
    response = client.delete("/api/v1/admin/users/google:nobody", headers=admin_auth)
    assert response.status_code == status.HTTP_404_NOT_FOUND
