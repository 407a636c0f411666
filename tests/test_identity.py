from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app.models.user import User
from app.schemas.user import ExternalProfile
from app.services.identity import get_or_create_external_user


def test_first_sign_in_creates_user(db):
    user = get_or_create_external_user(db, ExternalProfile(
        external_id="google-123", email="nina@example.com", name="Nina",
    ))

    assert user.id
    assert user.email == "nina@example.com"
    assert user.name == "Nina"


def test_repeat_sign_in_keeps_the_same_user(db):
    profile = ExternalProfile(external_id="google-123", email="nina@example.com", name="Nina")

    first = get_or_create_external_user(db, profile)
    again = get_or_create_external_user(db, profile.model_copy(update={"name": "Nina B."}))

    assert again.id == first.id
    assert len(db.exec(select(User)).all()) == 1


def test_email_is_stored_lowercased(db):
    user = get_or_create_external_user(db, ExternalProfile(external_id="google-9", email="Nina.B@Example.com"))

    assert user.email == "nina.b@example.com"


def test_emails_differing_only_in_case_are_rejected(db, make_user):
    make_user("Bob", "Bob@example.com")

    with pytest.raises(IntegrityError):
        make_user("Bobby", "bob@example.com")
    db.rollback()

    assert [u.name for u in db.exec(select(User)).all()] == ["Bob"]
