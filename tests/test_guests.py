"""Tests for member and guest management."""
from datetime import timedelta

import pytest

from gatepass.models.enums import Collection, ResolutionMethod, SubjectKind, Verdict
from gatepass.models.schemas import CreateGuestRequest, CreateMemberRequest
from gatepass.utils.exceptions import SubjectNotFoundError

from conftest import GUARD_ID, NOW, ORG_A, ORG_B


@pytest.mark.asyncio
async def test_register_member(services, store):
    member = await services.members.register_member(
        ORG_A, CreateMemberRequest(name="  Carmen Díaz ", access_level="admin")
    )
    assert member.name == "Carmen Díaz"
    assert member.access_level == "admin"
    assert member.is_active is True
    assert member.created_at == NOW
    assert await store.get(ORG_A, Collection.MEMBERS, member.id) is not None


@pytest.mark.asyncio
async def test_list_members_newest_first(services, clock):
    first = await services.members.register_member(ORG_A, CreateMemberRequest(name="Ana"))
    clock.advance(minutes=5)
    second = await services.members.register_member(ORG_A, CreateMemberRequest(name="Bruno"))
    await services.members.register_member(ORG_B, CreateMemberRequest(name="Elsewhere"))

    members = await services.members.list_members(ORG_A)
    assert [m.id for m in members] == [second.id, first.id]


@pytest.mark.asyncio
async def test_set_active_unknown_member(services):
    with pytest.raises(SubjectNotFoundError):
        await services.members.set_active(ORG_A, "nobody", False)


@pytest.mark.asyncio
async def test_guest_requires_existing_owner(services):
    with pytest.raises(SubjectNotFoundError):
        await services.guests.create_guest(
            ORG_A, CreateGuestRequest(owner_member_id="nobody", name="Luis")
        )


@pytest.mark.asyncio
async def test_guest_owner_must_be_in_same_organization(services, community):
    with pytest.raises(SubjectNotFoundError):
        await services.guests.create_guest(
            ORG_B, CreateGuestRequest(owner_member_id=community.member.id, name="Luis")
        )


@pytest.mark.asyncio
async def test_guest_blank_optionals_are_dropped(services, community):
    guest = await services.guests.create_guest(
        ORG_A, CreateGuestRequest(owner_member_id=community.member.id, name="Sofía", email="", relationship="")
    )
    assert guest.email is None
    assert guest.relationship is None


@pytest.mark.asyncio
async def test_list_guests_by_member(services, community, clock):
    clock.advance(minutes=1)
    newer = await services.guests.create_guest(
        ORG_A, CreateGuestRequest(owner_member_id=community.member.id, name="Sofía")
    )
    guests = await services.guests.list_guests_by_member(ORG_A, community.member.id)
    assert [g.id for g in guests] == [newer.id, community.guest.id]
    assert await services.guests.list_guests_by_member(ORG_A, "someone-else") == []


@pytest.mark.asyncio
async def test_set_guest_active(services, community):
    guest = await services.guests.set_active(ORG_A, community.guest.id, False)
    assert guest.is_active is False
    with pytest.raises(SubjectNotFoundError):
        await services.guests.set_active(ORG_A, "nobody", False)


@pytest.mark.asyncio
async def test_delete_guest_cascades_credentials(services, community, store):
    first = await services.issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "Delivery", NOW, NOW + timedelta(hours=2)
    )
    await services.issuer.issue(
        SubjectKind.GUEST, community.guest.id, ORG_A, "Dinner", NOW, NOW + timedelta(hours=4)
    )
    member_pass = await services.issuer.issue_member_pass(ORG_A, community.member.id)
    await services.validator.validate(ORG_A, first.secret_hash, ResolutionMethod.QR_SCAN, GUARD_ID)

    removed = await services.guests.delete_guest(ORG_A, community.guest.id)
    assert removed == 2

    assert await services.guests.get_guest(ORG_A, community.guest.id) is None
    assert await services.issuer.list_for_subject(ORG_A, community.guest.id) == []
    assert [c.id for c in await services.issuer.list_for_subject(ORG_A, community.member.id)] == [member_pass.id]

    entries = await services.audit.list_entries(ORG_A, subject_id=community.guest.id)
    assert len(entries) == 1
    assert entries[0].subject_name == "Luis Ortega"

    result = await services.validator.validate(ORG_A, first.secret_hash, ResolutionMethod.QR_SCAN, GUARD_ID)
    assert result.verdict == Verdict.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_unknown_guest(services, community):
    with pytest.raises(SubjectNotFoundError):
        await services.guests.delete_guest(ORG_A, "nobody")
