"""Tests for credential issuance."""
import json
from datetime import timedelta

import pytest

from gatepass.models.enums import Collection, SubjectKind
from gatepass.services import CredentialIssuer
from gatepass.services.manual_code import derive_manual_code
from gatepass.utils.exceptions import (
    CredentialIssueError,
    CredentialNotFoundError,
    InvalidPurposeError,
    InvalidWindowError,
    SubjectNotFoundError,
)

from conftest import NOW, ORG_A, ORG_B


@pytest.mark.asyncio
async def test_issue_guest_credential(services, community, store):
    credential = await services.issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "  Delivery ",
        NOW, NOW + timedelta(hours=2),
    )
    assert credential.organization_id == ORG_A
    assert credential.subject_kind == SubjectKind.GUEST
    assert credential.purpose == "Delivery"
    assert credential.is_active is True
    assert credential.valid_from < credential.valid_until
    assert credential.secret_hash.startswith("guest_")
    assert len(credential.secret_hash) > 40

    stored = await store.get(ORG_A, Collection.CREDENTIALS, credential.id)
    assert stored["secret_hash"] == credential.secret_hash


@pytest.mark.asyncio
async def test_secrets_are_unique(services, community):
    hashes = set()
    for _ in range(20):
        credential = await services.issuer.issue_member_pass(ORG_A, community.member.id)
        hashes.add(credential.secret_hash)
    assert len(hashes) == 20


@pytest.mark.asyncio
async def test_window_shorter_than_minimum_is_rejected(services, community, store):
    with pytest.raises(InvalidWindowError):
        await services.issuer.issue(
            SubjectKind.GUEST, community.guest.id, ORG_A, "Delivery",
            NOW, NOW + timedelta(minutes=30),
        )
    assert await store.query(ORG_A, Collection.CREDENTIALS) == []


@pytest.mark.asyncio
async def test_window_of_exactly_minimum_is_accepted(services, community):
    credential = await services.issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "Delivery",
        NOW, NOW + timedelta(hours=1),
    )
    assert credential.valid_until - credential.valid_from == timedelta(hours=1)


@pytest.mark.asyncio
async def test_inverted_window_is_rejected(services, community):
    with pytest.raises(InvalidWindowError):
        await services.issuer.issue(
            SubjectKind.MEMBER, community.member.id, ORG_A, None,
            NOW + timedelta(hours=3), NOW + timedelta(hours=1),
        )


@pytest.mark.asyncio
async def test_window_in_the_past_is_rejected(services, community):
    with pytest.raises(InvalidWindowError):
        await services.issuer.issue(
            SubjectKind.MEMBER, community.member.id, ORG_A, None,
            NOW - timedelta(hours=5), NOW - timedelta(hours=1),
        )


@pytest.mark.asyncio
async def test_guest_credential_requires_purpose(services, community):
    with pytest.raises(InvalidPurposeError):
        await services.issuer.issue(
            SubjectKind.GUEST, community.guest.id, ORG_A, "   ",
            NOW, NOW + timedelta(hours=2),
        )


@pytest.mark.asyncio
async def test_member_credential_purpose_optional(services, community):
    credential = await services.issuer.issue(
        SubjectKind.MEMBER, community.member.id, ORG_A, None,
        NOW, NOW + timedelta(hours=2),
    )
    assert credential.purpose is None


@pytest.mark.asyncio
async def test_unknown_subject_is_rejected(services, community):
    with pytest.raises(SubjectNotFoundError):
        await services.issuer.issue(
            SubjectKind.GUEST, "no-such-guest", ORG_A, "Visit",
            NOW, NOW + timedelta(hours=2),
        )


@pytest.mark.asyncio
async def test_subject_from_other_organization_is_rejected(services, community):
    with pytest.raises(SubjectNotFoundError):
        await services.issuer.issue(
            SubjectKind.MEMBER, community.member.id, ORG_B, None,
            NOW, NOW + timedelta(hours=2),
        )


@pytest.mark.asyncio
async def test_member_pass_lasts_a_day(services, community):
    credential = await services.issuer.issue_member_pass(ORG_A, community.member.id)
    assert credential.valid_from == NOW
    assert credential.valid_until == NOW + timedelta(hours=24)


@pytest.mark.asyncio
async def test_hash_collisions_exhaust_retries(services, community, monkeypatch):
    existing = await services.issuer.issue_member_pass(ORG_A, community.member.id)
    monkeypatch.setattr(
        type(services.issuer), "generate_secret", staticmethod(lambda kind: existing.secret_hash)
    )
    with pytest.raises(CredentialIssueError):
        await services.issuer.issue_member_pass(ORG_A, community.member.id)


@pytest.mark.asyncio
async def test_set_active_toggles(services, community):
    credential = await services.issuer.issue_member_pass(ORG_A, community.member.id)
    off = await services.issuer.set_active(ORG_A, credential.id, False)
    assert off.is_active is False
    on = await services.issuer.set_active(ORG_A, credential.id, True)
    assert on.is_active is True
    assert on.secret_hash == credential.secret_hash


@pytest.mark.asyncio
async def test_set_active_unknown_credential(services, community):
    with pytest.raises(CredentialNotFoundError):
        await services.issuer.set_active(ORG_A, "missing", False)


@pytest.mark.asyncio
async def test_delete_credential(services, community):
    credential = await services.issuer.issue_member_pass(ORG_A, community.member.id)
    await services.issuer.delete(ORG_A, credential.id)
    with pytest.raises(CredentialNotFoundError):
        await services.issuer.get(ORG_A, credential.id)
    with pytest.raises(CredentialNotFoundError):
        await services.issuer.delete(ORG_A, credential.id)


@pytest.mark.asyncio
async def test_qr_payload_contents(services, community):
    credential = await services.issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "Delivery",
        NOW, NOW + timedelta(hours=2),
    )
    payload = json.loads(services.issuer.build_qr_payload(credential, community.guest.name))
    assert payload["secretHash"] == credential.secret_hash
    assert payload["subject"] == "Luis Ortega"
    assert payload["purpose"] == "Delivery"
    assert payload["manualCode"] == derive_manual_code(community.guest.id)
    assert payload["validUntil"].startswith("2026-10-19T14:00:00")


@pytest.mark.asyncio
async def test_zero_minimum_window_is_honoured(services, community, store, clock):
    issuer = CredentialIssuer(store, services.members, services.guests, clock, min_window=timedelta(0))
    credential = await issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "Parcel", NOW, NOW + timedelta(minutes=5)
    )
    assert credential.valid_until - credential.valid_from == timedelta(minutes=5)


@pytest.mark.asyncio
async def test_zero_hash_attempts_never_writes(services, community, store, clock):
    issuer = CredentialIssuer(store, services.members, services.guests, clock, hash_attempts=0)
    with pytest.raises(CredentialIssueError):
        await issuer.issue_member_pass(ORG_A, community.member.id)
    assert await store.query(ORG_A, Collection.CREDENTIALS) == []
