"""Tests for parsing scanned QR data."""
import json

from gatepass.models.schemas import QrPayloadCredential, RawHashCredential
from gatepass.utils.payload import hash_preview, parse_manual_code, parse_scanned_data


def test_structured_payload():
    data = json.dumps({"secretHash": "guest_abc123", "subject": "Luis", "purpose": "Delivery"})
    parsed = parse_scanned_data(data)
    assert isinstance(parsed, QrPayloadCredential)
    assert parsed.secret_hash == "guest_abc123"
    assert parsed.payload.purpose == "Delivery"


def test_legacy_payload_key():
    data = json.dumps({"qrCodeHash": "member_xyz", "name": "Ana", "expiry": "2026-10-20T12:00:00Z"})
    parsed = parse_scanned_data(data)
    assert isinstance(parsed, QrPayloadCredential)
    assert parsed.secret_hash == "member_xyz"
    assert parsed.payload.subject == "Ana"


def test_plain_text_is_raw_hash():
    parsed = parse_scanned_data("  member_raw_token \n")
    assert isinstance(parsed, RawHashCredential)
    assert parsed.secret_hash == "member_raw_token"


def test_json_without_hash_falls_back_to_raw():
    parsed = parse_scanned_data('{"hello": "world"}')
    assert isinstance(parsed, RawHashCredential)
    assert parsed.secret_hash == '{"hello": "world"}'


def test_json_scalar_falls_back_to_raw():
    parsed = parse_scanned_data("123456")
    assert isinstance(parsed, RawHashCredential)
    assert parsed.secret_hash == "123456"


def test_manual_code_strips_whitespace():
    assert parse_manual_code(" 123 456 ").code == "123456"


def test_hash_preview_hides_secret():
    assert hash_preview("guest_abcdefghijklmnop") == "guest_ab…"
    assert hash_preview("short") == "***"
