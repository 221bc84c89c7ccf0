"""Tests for collaborator invites and identity resolution.

Property 8: Claim Idempotence
"""

import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from tests.conftest import ALICE_EMAIL, ALICE_ID, BOB_ID, OWNER_EMAIL, OWNER_ID, Stack
from voiceover.utils.errors import (
    CannotAddOwner,
    CollaboratorAlreadyExists,
    CollaboratorNotFound,
    NotVoiceoverOwner,
    VoiceoverNotFound,
)


# Case and surrounding-whitespace variants of one address
email_variants = st.tuples(
    st.sampled_from(["new@example.com", "NEW@example.com", "New@Example.COM"]),
    st.sampled_from(["", " ", "\t"]),
    st.sampled_from(["", " ", "\n"]),
).map(lambda parts: f"{parts[1]}{parts[0]}{parts[2]}")


class TestInvites:
    """Adding and removing collaborators."""

    @pytest.mark.asyncio
    async def test_registered_email_is_bound_immediately(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()

        collaborator = await stack.registry.add(voiceover.id, ALICE_EMAIL, OWNER_ID)

        assert collaborator.user_id == ALICE_ID
        assert collaborator.user_name == "Alice"
        assert collaborator.is_pending is False
        assert collaborator.added_by == OWNER_ID

    @pytest.mark.asyncio
    async def test_unknown_email_is_pending(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()

        collaborator = await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)

        assert collaborator.user_id is None
        assert collaborator.is_pending is True
        assert collaborator.user_name is None

    @pytest.mark.asyncio
    async def test_owner_cannot_invite_themselves(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()

        with pytest.raises(CannotAddOwner):
            await stack.registry.add(voiceover.id, f"  {OWNER_EMAIL.upper()} ", OWNER_ID)

        assert stack.client.get_all_records("voiceover_collaborators") == []

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)

        with pytest.raises(CollaboratorAlreadyExists):
            await stack.registry.add(voiceover.id, "NEW@example.com ", OWNER_ID)

    @pytest.mark.asyncio
    async def test_duplicate_that_passes_lookup_hits_unique_index(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)

        # A concurrent invite that ran its lookup before the first insert landed
        async def stale_lookup(voiceover_id: str, email: str) -> None:
            return None

        stack.collaborators.find_by_voiceover_and_email = stale_lookup

        with pytest.raises(CollaboratorAlreadyExists) as exc_info:
            await stack.registry.add(voiceover.id, "New@Example.com", OWNER_ID)

        assert exc_info.value.status_code == 409
        assert len(stack.client.get_all_records("voiceover_collaborators")) == 1

    @settings(max_examples=25, deadline=None)
    @given(email=email_variants)
    def test_emails_are_normalized(self, email: str) -> None:
        async def run_test() -> None:
            stack = Stack()
            voiceover = stack.client.seed_voiceover()

            collaborator = await stack.registry.add(voiceover.id, email, OWNER_ID)

            assert collaborator.email == "new@example.com"

        asyncio.run(run_test())

    @pytest.mark.asyncio
    async def test_non_owner_cannot_invite(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, ALICE_EMAIL, OWNER_ID)

        with pytest.raises(NotVoiceoverOwner):
            await stack.registry.add(voiceover.id, "new@example.com", ALICE_ID)

        assert len(stack.client.get_all_records("voiceover_collaborators")) == 1

    @pytest.mark.asyncio
    async def test_invite_to_missing_voiceover(self, stack: Stack) -> None:
        with pytest.raises(VoiceoverNotFound):
            await stack.registry.add("voc-missing", ALICE_EMAIL, OWNER_ID)

    @pytest.mark.asyncio
    async def test_remove_checks_owner_through_voiceover(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        collaborator = await stack.registry.add(voiceover.id, ALICE_EMAIL, OWNER_ID)

        with pytest.raises(NotVoiceoverOwner):
            await stack.registry.remove(collaborator.id, ALICE_ID)
        assert await stack.registry.is_collaborator(voiceover.id, ALICE_ID)

        await stack.registry.remove(collaborator.id, OWNER_ID)

        assert not await stack.registry.is_collaborator(voiceover.id, ALICE_ID)
        with pytest.raises(CollaboratorNotFound):
            await stack.registry.remove(collaborator.id, OWNER_ID)

    @pytest.mark.asyncio
    async def test_list_in_invite_order_with_user_info(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, ALICE_EMAIL, OWNER_ID)
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)
        await stack.registry.add(voiceover.id, "bob@example.com", OWNER_ID)

        listed = await stack.registry.list(voiceover.id)

        assert [c.email for c in listed] == [ALICE_EMAIL, "new@example.com", "bob@example.com"]
        assert [c.user_name for c in listed] == ["Alice", None, "Bob"]


class TestProperty8ClaimIdempotence:
    """Property 8: Claim Idempotence.

    *For any* set of pending invites for an email, claiming binds each of
    them exactly once; a second claim affects nothing.
    """

    @settings(max_examples=25, deadline=None)
    @given(invites=st.integers(min_value=0, max_value=4), lookup=email_variants)
    def test_second_claim_is_noop(self, invites: int, lookup: str) -> None:
        async def run_test() -> None:
            stack = Stack()
            for _ in range(invites):
                voiceover = stack.client.seed_voiceover()
                await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)

            first = await stack.registry.claim_pending_invites(lookup, "user-new")
            second = await stack.registry.claim_pending_invites(lookup, "user-new")

            assert first == invites
            assert second == 0
            rows = stack.client.get_all_records("voiceover_collaborators")
            assert all(row["user_id"] == "user-new" for row in rows)

        asyncio.run(run_test())

    @pytest.mark.asyncio
    async def test_claim_never_rebinds(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)
        await stack.registry.claim_pending_invites("new@example.com", "user-new")

        claimed = await stack.registry.claim_pending_invites("new@example.com", BOB_ID)

        assert claimed == 0
        assert await stack.registry.is_collaborator(voiceover.id, "user-new")
        assert not await stack.registry.is_collaborator(voiceover.id, BOB_ID)

    @pytest.mark.asyncio
    async def test_claimed_invite_can_approve(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)
        await stack.registry.claim_pending_invites("new@example.com", "user-new")

        result = await stack.approvals.approve(voiceover.id, "user-new")

        assert result.approved is True
        assert result.is_owner is False

    @pytest.mark.asyncio
    async def test_claim_leaves_other_emails_pending(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)
        await stack.registry.add(voiceover.id, "other@example.com", OWNER_ID)

        await stack.registry.claim_pending_invites("new@example.com", "user-new")

        pending = await stack.collaborators.find_pending_by_email("other@example.com")
        assert len(pending) == 1

    @pytest.mark.asyncio
    async def test_claim_uses_directory_email_of_caller(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)
        await stack.registry.add(voiceover.id, "carol@example.com", OWNER_ID)
        stack.client.seed_user("user-new", "New@Example.com", "Newcomer")

        claimed = await stack.registry.claim_invites_for("user-new")

        assert claimed == 1
        assert await stack.registry.is_collaborator(voiceover.id, "user-new")
        assert len(await stack.collaborators.find_pending_by_email("carol@example.com")) == 1

    @pytest.mark.asyncio
    async def test_unregistered_caller_claims_nothing(self, stack: Stack) -> None:
        voiceover = stack.client.seed_voiceover()
        await stack.registry.add(voiceover.id, "new@example.com", OWNER_ID)

        assert await stack.registry.claim_invites_for("user-new") == 0
        assert len(await stack.collaborators.find_pending_by_email("new@example.com")) == 1
