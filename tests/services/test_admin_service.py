"""Tests for admin sign-in and cascading deletes."""

from __future__ import annotations

import pytest

from campus_crew.core.settings import settings
from campus_crew.core.security import hash_password
from campus_crew.models import Chat, Gig, GigStatus, Message, MessageRead, Offer, Profile
from campus_crew.services import admin_service
from campus_crew.services.acceptance import accept_offer
from campus_crew.services.chat_service import send_message
from campus_crew.services.errors import (
    AuthorizationError,
    CollaboratorUnavailableError,
    NotFoundError,
    RateLimitedError,
)


@pytest.fixture()
def admin_password(monkeypatch) -> str:
    monkeypatch.setattr(settings, "admin_password_hash", hash_password("s3cret-pass"))
    return "s3cret-pass"


def test_admin_login_succeeds(admin_password, admin_guard) -> None:
    admin_service.authenticate_admin("admin", admin_password, admin_guard)


def test_admin_login_locks_after_three_failures(admin_password, admin_guard, clock) -> None:
    for _ in range(3):
        with pytest.raises(AuthorizationError):
            admin_service.authenticate_admin("admin", "wrong", admin_guard)

    with pytest.raises(RateLimitedError, match="5 minutes"):
        admin_service.authenticate_admin("admin", admin_password, admin_guard)

    clock.advance(minutes=5)
    admin_service.authenticate_admin("admin", admin_password, admin_guard)


def test_admin_success_resets_failures(admin_password, admin_guard) -> None:
    for _ in range(2):
        with pytest.raises(AuthorizationError):
            admin_service.authenticate_admin("admin", "wrong", admin_guard)
    admin_service.authenticate_admin("admin", admin_password, admin_guard)

    for _ in range(2):
        with pytest.raises(AuthorizationError):
            admin_service.authenticate_admin("admin", "wrong", admin_guard)
    admin_service.authenticate_admin("admin", admin_password, admin_guard)


def test_stale_failures_are_forgotten(admin_password, admin_guard, clock) -> None:
    for username in ("mallory", "trudy", "eve"):
        with pytest.raises(AuthorizationError):
            admin_service.authenticate_admin(username, "wrong", admin_guard)
    for _ in range(3):
        with pytest.raises(AuthorizationError):
            admin_service.authenticate_admin("oscar", "wrong", admin_guard)
    assert admin_guard.tracked_count() == 4

    clock.advance(minutes=5)
    with pytest.raises(AuthorizationError):
        admin_service.authenticate_admin("victor", "wrong", admin_guard)

    assert admin_guard.tracked_count() == 1
    admin_service.authenticate_admin("admin", admin_password, admin_guard)


def test_admin_login_requires_configured_hash(monkeypatch, admin_guard) -> None:
    monkeypatch.setattr(settings, "admin_password_hash", None)
    with pytest.raises(CollaboratorUnavailableError):
        admin_service.authenticate_admin("admin", "anything", admin_guard)


def test_user_stats(db_session, gig_factory, offer_factory, student_a, student_b) -> None:
    open_gig = gig_factory(student_a, title="Open")
    done = gig_factory(student_a, title="Done")
    done.status = GigStatus.COMPLETED.value
    db_session.commit()
    offer_factory(open_gig, student_b)

    stats = admin_service.get_user_stats(db_session, student_a.id)
    assert (stats.total_gigs, stats.active_gigs, stats.completed_gigs, stats.total_offers) == (
        2,
        1,
        1,
        0,
    )
    assert admin_service.get_user_stats(db_session, student_b.id).total_offers == 1


def test_stats_for_missing_user(db_session) -> None:
    with pytest.raises(NotFoundError):
        admin_service.get_user_stats(db_session, "google:nobody")


def test_delete_user_removes_everything_that_references_them(
    db_session, gig_factory, offer_factory, student_a, student_b, student_c, hub
) -> None:
    # Alice posts a gig that Bob wins.
    own_gig = gig_factory(student_a, title="Alice's gig")
    chat_one = accept_offer(db_session, offer_factory(own_gig, student_b))
    send_message(db_session, chat_one.id, student_b, "hi Alice")
    # Alice wins a gig posted by Chitra.
    chitra_gig = gig_factory(student_c, title="Chitra's gig")
    chat_two = accept_offer(db_session, offer_factory(chitra_gig, student_a))
    send_message(db_session, chat_two.id, student_a, "on it")
    send_message(db_session, chat_two.id, student_c, "thanks")
    # Unrelated activity survives.
    bob_gig = gig_factory(student_b, title="Bob's gig")
    offer_factory(bob_gig, student_c)

    alice_id = student_a.id

    result = admin_service.delete_user(db_session, alice_id, hub=hub)

    assert result.model_dump() == {
        "deleted_gigs": 1,
        "deleted_offers": 2,
        "deleted_chats": 2,
        "deleted_messages": 3,
    }
    assert db_session.get(Profile, alice_id) is None
    assert db_session.query(Gig).filter(Gig.posted_by == alice_id).count() == 0
    assert db_session.query(Offer).filter(Offer.offered_by == alice_id).count() == 0
    assert db_session.query(Offer).filter(Offer.gig_posted_by == alice_id).count() == 0
    assert db_session.query(Chat).count() == 0
    assert db_session.query(Message).count() == 0
    assert db_session.query(MessageRead).count() == 0
    assert {g.title for g in db_session.query(Gig)} == {"Chitra's gig", "Bob's gig"}
    assert db_session.query(Offer).count() == 1


def test_delete_user_without_activity(db_session, student_c) -> None:
    result = admin_service.delete_user(db_session, student_c.id)
    assert result.model_dump() == {
        "deleted_gigs": 0,
        "deleted_offers": 0,
        "deleted_chats": 0,
        "deleted_messages": 0,
    }


def test_delete_missing_user_is_not_found(db_session) -> None:
    with pytest.raises(NotFoundError):
        admin_service.delete_user(db_session, "google:nobody")


def test_listings_include_every_status(db_session, gig_factory, student_a, student_b) -> None:
    gig = gig_factory(student_a)
    gig.status = GigStatus.COMPLETED.value
    db_session.commit()

    assert [g.id for g in admin_service.list_all_gigs(db_session)] == [gig.id]
    assert {p.id for p in admin_service.list_all_profiles(db_session)} == {student_a.id, student_b.id}
