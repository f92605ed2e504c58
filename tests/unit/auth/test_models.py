"""Tests for device grant and credential models."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from orbital_cli.auth.models import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    Credential,
    DeviceGrant,
    TokenResponse,
)


def grant_payload(**overrides):
    payload = {
        "device_code": "dev-code",
        "user_code": "ABCD1234",
        "verification_uri": "http://localhost:3000/device",
        "expires_in": 1800,
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    ("interval", "expected"),
    [(None, 5), (0, 1), (-3, 1), (1, 1), (12, 12)],
)
def test_grant_interval_is_at_least_one(interval, expected):
    assert DeviceGrant.model_validate(grant_payload(interval=interval)).interval == expected


def test_grant_interval_defaults_to_five():
    assert DeviceGrant.model_validate(grant_payload()).interval == 5


def test_grant_requires_positive_lifetime():
    with pytest.raises(ValidationError):
        DeviceGrant.model_validate(grant_payload(expires_in=0))


def test_grant_browser_url_prefers_complete_uri():
    grant = DeviceGrant.model_validate(
        grant_payload(verification_uri_complete="http://localhost:3000/device?user_code=ABCD1234")
    )
    assert grant.browser_url.endswith("?user_code=ABCD1234")
    assert DeviceGrant.model_validate(grant_payload()).browser_url == grant.verification_uri


def test_credential_uses_expires_in():
    issued = datetime(2026, 1, 1, tzinfo=UTC)
    credential = Credential.from_token_response(
        TokenResponse(access_token="tok", expires_in=60), issued_at=issued
    )
    assert credential.expires_at == issued + timedelta(seconds=60)


def test_credential_defaults_to_seven_days():
    issued = datetime(2026, 1, 1, tzinfo=UTC)
    credential = Credential.from_token_response(
        TokenResponse(access_token="tok"), issued_at=issued
    )
    assert credential.expires_at == issued + timedelta(seconds=DEFAULT_TOKEN_LIFETIME_SECONDS)
    assert DEFAULT_TOKEN_LIFETIME_SECONDS == 7 * 24 * 3600


def test_credential_naive_expiry_is_utc():
    credential = Credential(access_token="tok", expires_at=datetime(2026, 1, 1, 12, 0))
    assert credential.expires_at.tzinfo == UTC


def test_credential_expiry_has_no_grace():
    expires = datetime(2026, 1, 1, tzinfo=UTC)
    credential = Credential(access_token="tok", expires_at=expires)

    assert credential.is_expired(now=expires) is True
    assert credential.is_expired(now=expires - timedelta(microseconds=1)) is False
