"""Tests for client password hashing"""

from __future__ import annotations

from mission_control.utils.crypto import hash_password, verify_password


def test_hash_is_not_plaintext():
    hashed = hash_password("s3cret", rounds=4)
    assert hashed != "s3cret"
    assert hashed.startswith("$2b$")


def test_verify_roundtrip():
    hashed = hash_password("s3cret", rounds=4)
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_missing_hash_never_verifies():
    assert not verify_password("anything", None)
    assert not verify_password("", hash_password("x", rounds=4))


def test_plaintext_stored_value_is_rejected():
    """Test that a legacy plaintext value is not accepted as a hash"""
    assert not verify_password("s3cret", "s3cret")
