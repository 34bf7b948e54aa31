"""Tests for access token creation and verification."""

from datetime import timedelta

import pytest

from rbac_service.auth.jwt import create_access_token, verify_token
from rbac_service.core.entities import full_access_matrix


def test_round_trip_keeps_matrix():
    token = create_access_token({"sub": "ana@agrocomice.cl", "role": "Admin", "permissions": full_access_matrix()})
    payload = verify_token(token)
    assert payload["sub"] == "ana@agrocomice.cl"
    assert payload["permissions"] == full_access_matrix()


def test_expired_token_rejected():
    token = create_access_token({"sub": "ana@agrocomice.cl"}, expires_delta=timedelta(seconds=-5))
    with pytest.raises(ValueError):
        verify_token(token)


def test_tampered_token_rejected():
    header, payload, _ = create_access_token({"sub": "ana@agrocomice.cl"}).split(".")
    with pytest.raises(ValueError):
        verify_token(f"{header}.{payload}.bm90LXRoZS1zaWduYXR1cmU")


def test_missing_subject_rejected():
    token = create_access_token({"role": "Admin"})
    with pytest.raises(ValueError, match="sub"):
        verify_token(token)
