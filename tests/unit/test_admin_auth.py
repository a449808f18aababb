"""Unit tests for admin authentication helpers."""

import pytest

from hstrack.admin_auth import (
    PasswordAuthorizer,
    create_or_update_admin_user,
    hash_password,
    verify_password,
)


def test_hash_and_verify_password():
    hashed = hash_password("secret123")
    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_rejects_malformed_hash():
    assert not verify_password("secret123", "not-a-hash")
    assert not verify_password("secret123", "md5$1$00$00")
    assert not verify_password("secret123", "")


def test_hash_rejects_empty_password():
    with pytest.raises(ValueError):
        hash_password("")


def test_create_or_update_admin_user(db_session):
    created = create_or_update_admin_user(db_session, "Admin", "onepass")
    db_session.commit()
    assert created.username == "admin"

    updated = create_or_update_admin_user(db_session, "admin", "twopass", is_active=False)
    db_session.commit()
    assert updated.id == created.id
    assert not updated.is_active
    assert verify_password("twopass", updated.password_hash)


def test_authorizer_with_shared_password_hash(db_session):
    authorizer = PasswordAuthorizer(db_session, password_hash=hash_password("reviewer"))

    assert authorizer.is_valid_admin_token("reviewer")
    assert not authorizer.is_valid_admin_token("wrong")
    assert not authorizer.is_valid_admin_token("")
    assert not authorizer.is_valid_admin_token(None)


def test_authorizer_falls_back_to_active_admins(db_session):
    create_or_update_admin_user(db_session, "mod", "strongpass")
    create_or_update_admin_user(db_session, "retired", "oldpass", is_active=False)
    db_session.commit()

    authorizer = PasswordAuthorizer(db_session, password_hash="")

    assert authorizer.is_valid_admin_token("strongpass")
    assert not authorizer.is_valid_admin_token("oldpass")
    assert not authorizer.is_valid_admin_token("wrong")
