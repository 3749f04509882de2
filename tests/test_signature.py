"""Tests for webhook signature generation and verification."""

import re

import pytest

from webhook_platform.common.clock import fixed_clock
from webhook_platform.common.errors import ErrorKind, WebhookError
from webhook_platform.webhook.signature import (
    SignedToken,
    generate_signature,
    verify_signature,
)

TOKEN_RE = re.compile(r"^t=\d+,v1=[a-f0-9]{64}$")
EXPECTED_DIGEST = "adc9fbea71d76c2d9e310314e0136e3938759a8bac2af8fb38f77a6056a06a1b"


class TestGenerateSignature:
    """Test signature token generation."""

    def test_has_valid_format(self, payload, secret):
        assert TOKEN_RE.match(generate_signature(payload, secret))

    def test_uses_provided_timestamp(self, payload, secret):
        token = generate_signature(payload, secret, 1700000000000)
        assert token == f"t=1700000000000,v1={EXPECTED_DIGEST}"

    def test_defaults_to_clock(self, payload, secret):
        token = generate_signature(payload, secret, clock=fixed_clock(1234))
        assert token.startswith("t=1234,v1=")

    def test_is_deterministic(self, payload, secret):
        sig1 = generate_signature(payload, secret, 1700000000000)
        sig2 = generate_signature(payload, secret, 1700000000000)
        assert sig1 == sig2

    def test_different_payloads_differ(self, secret):
        sig1 = generate_signature(b'{"a": 1}', secret, 1700000000000)
        sig2 = generate_signature(b'{"b": 2}', secret, 1700000000000)
        assert sig1 != sig2

    def test_different_secrets_differ(self, payload):
        sig1 = generate_signature(payload, "secret1", 1700000000000)
        sig2 = generate_signature(payload, "secret2", 1700000000000)
        assert sig1 != sig2

    def test_str_and_bytes_payloads_match(self, payload, secret):
        assert generate_signature(payload.decode("utf-8"), secret, 1) == generate_signature(
            payload, secret, 1
        )


class TestSignedToken:
    """Test token parsing."""

    def test_parse_round_trip(self):
        token = SignedToken.parse(f"t=1700000000000,v1={EXPECTED_DIGEST}")
        assert token.timestamp == "1700000000000"
        assert token.timestamp_ms == 1700000000000
        assert token.signature == EXPECTED_DIGEST
        assert str(token) == f"t=1700000000000,v1={EXPECTED_DIGEST}"

    def test_parse_any_field_order(self):
        token = SignedToken.parse("v1=abc,t=42")
        assert token == SignedToken(timestamp="42", signature="abc")

    def test_parse_ignores_unknown_fields(self):
        token = SignedToken.parse("v0=old,t=42,x=1,v1=abc")
        assert token == SignedToken(timestamp="42", signature="abc")

    def test_parse_empty(self):
        with pytest.raises(WebhookError) as exc_info:
            SignedToken.parse("")
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE
        assert exc_info.value.message == "Missing signature header"

    @pytest.mark.parametrize("value", ["invalid_format", "v1=abc123", "t=1700000000000"])
    def test_parse_missing_fields(self, value):
        with pytest.raises(WebhookError) as exc_info:
            SignedToken.parse(value)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE
        assert exc_info.value.message == (
            "Invalid signature format. Expected: t=timestamp,v1=signature"
        )

    @pytest.mark.parametrize("timestamp", ["abc", "", "12.5", " 12", "1_700", "9" * 20, "9" * 5000])
    def test_parse_non_integer_timestamp(self, timestamp):
        with pytest.raises(WebhookError) as exc_info:
            SignedToken.parse(f"t={timestamp},v1=abc")
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE
        assert "Invalid signature format" in exc_info.value.message


class TestVerifySignature:
    """Test signature verification."""

    def test_valid_signature(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms)
        assert verify_signature(payload, signature, secret, clock=clock) is True

    def test_missing_signature(self, payload, secret, clock):
        with pytest.raises(WebhookError, match="Missing signature header") as exc_info:
            verify_signature(payload, "", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_invalid_format(self, payload, secret, clock):
        with pytest.raises(WebhookError, match="Invalid signature format") as exc_info:
            verify_signature(payload, "invalid_format", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_expired_timestamp(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms - 600_000)
        with pytest.raises(WebhookError, match="outside tolerance window") as exc_info:
            verify_signature(payload, signature, secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.TIMESTAMP_EXPIRED

    def test_future_timestamp(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms + 600_000)
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, signature, secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.TIMESTAMP_EXPIRED

    def test_recent_timestamp_accepted(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms - 60_000)
        assert verify_signature(payload, signature, secret, clock=clock) is True

    @pytest.mark.parametrize("offset", [-300_000, 300_000])
    def test_tolerance_boundary_inclusive(self, payload, secret, clock, now_ms, offset):
        signature = generate_signature(payload, secret, now_ms + offset)
        assert verify_signature(payload, signature, secret, clock=clock) is True

    @pytest.mark.parametrize("offset", [-300_001, 300_001])
    def test_just_outside_tolerance(self, payload, secret, clock, now_ms, offset):
        signature = generate_signature(payload, secret, now_ms + offset)
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, signature, secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.TIMESTAMP_EXPIRED

    def test_custom_tolerance(self, payload, secret, clock, now_ms):
        """A stale token fails at 30s but passes at 2min."""
        signature = generate_signature(payload, secret, now_ms - 60_000)

        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, signature, secret, 30_000, clock=clock)
        assert exc_info.value.kind is ErrorKind.TIMESTAMP_EXPIRED

        assert verify_signature(payload, signature, secret, 120_000, clock=clock) is True

    def test_invalid_signature_value(self, payload, secret, clock, now_ms):
        with pytest.raises(WebhookError, match="^Invalid signature$") as exc_info:
            verify_signature(payload, f"t={now_ms},v1=invalid", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_tampered_payload(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms)
        with pytest.raises(WebhookError, match="^Invalid signature$") as exc_info:
            verify_signature(b'{"type": "hacked"}', signature, secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_wrong_secret(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms)
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, signature, "whsec_other", clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_expiry_checked_before_digest(self, payload, secret, clock, now_ms):
        """A stale token with a bad digest reports expiry."""
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, f"t={now_ms - 600_000},v1=bad", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.TIMESTAMP_EXPIRED

    def test_literal_timestamp_is_signed(self, payload, secret, clock, now_ms):
        """The timestamp text from the token is signed as given."""
        signature = generate_signature(payload, secret, now_ms)
        digest = signature.split("v1=")[1]
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, f"t=0{now_ms},v1={digest}", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_uppercase_digest_rejected(self, payload, secret, clock, now_ms):
        digest = generate_signature(payload, secret, now_ms).split("v1=")[1]
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, f"t={now_ms},v1={digest.upper()}", secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE

    def test_error_message_omits_secret(self, payload, secret, clock, now_ms):
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, f"t={now_ms},v1=deadbeef", secret, clock=clock)
        assert secret not in str(exc_info.value)
        assert "deadbeef" not in str(exc_info.value)

    def test_negative_tolerance_rejected(self, payload, secret, clock, now_ms):
        signature = generate_signature(payload, secret, now_ms)
        with pytest.raises(ValueError):
            verify_signature(payload, signature, secret, -1, clock=clock)


    def test_overlong_timestamp(self, payload, secret, clock):
        """Timestamps longer than 19 digits fail as a format error."""
        with pytest.raises(WebhookError) as exc_info:
            verify_signature(payload, "t=" + "9" * 5000 + ",v1=" + "0" * 64, secret, clock=clock)
        assert exc_info.value.kind is ErrorKind.INVALID_SIGNATURE
        assert "Invalid signature format" in exc_info.value.message
