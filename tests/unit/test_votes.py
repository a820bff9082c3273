"""Tests de los votos positivos."""

import asyncio

import pytest

from conftest import InMemoryVoteStore, make_idea
from vitrina.bookmarks import VoteManager
from vitrina.catalog import QueryOrchestrator
from vitrina.exceptions import AuthenticationRequiredError, ConflictError, NotFoundError
from vitrina.models import Actor, FacetSelection


@pytest.fixture
def listings(listing_store):
    listing_store.seed(make_idea(id="listing-1"), make_idea(id="listing-2"))
    return listing_store


@pytest.fixture
def votes(vote_store, listings) -> VoteManager:
    return VoteManager(vote_store, listings)


@pytest.fixture
def user() -> Actor:
    return Actor(user_id="user-1")


class RacingVoteStore(InMemoryVoteStore):
    """Otro cliente vota el mismo listing justo antes del insert."""

    async def add_vote(self, user_id, listing_id):
        await super().add_vote(user_id, listing_id)
        raise ConflictError("duplicate key", code="23505")


# ---------------------------------------------------------------------------
# Toggle
# ---------------------------------------------------------------------------


class TestToggleVote:
    async def test_round_trip_keeps_count_in_step(self, votes, listings, user) -> None:
        first = await votes.toggle_vote(user, "listing-1")

        assert first.state == "voted"
        assert first.upvotes_count == 1
        assert (await listings.get("listing-1")).upvotes_count == 1
        assert await votes.has_voted(user, "listing-1")

        second = await votes.toggle_vote(user, "listing-1")

        assert second.state == "unvoted"
        assert second.upvotes_count == 0
        assert (await listings.get("listing-1")).upvotes_count == 0

    async def test_count_is_per_listing(self, votes, listings) -> None:
        await votes.toggle_vote(Actor(user_id="user-1"), "listing-1")
        result = await votes.toggle_vote(Actor(user_id="user-2"), "listing-1")

        assert result.upvotes_count == 2
        assert (await listings.get("listing-2")).upvotes_count == 0

    async def test_concurrent_toggles_of_one_user_apply_in_order(
        self, votes, vote_store, listings, user
    ) -> None:
        results = await asyncio.gather(*(votes.toggle_vote(user, "listing-1") for _ in range(3)))

        assert [r.state for r in results] == ["voted", "unvoted", "voted"]
        assert [c[0] for c in vote_store.calls] == ["add", "remove", "add"]
        assert (await listings.get("listing-1")).upvotes_count == 1

    async def test_concurrent_users_end_with_exact_count(self, votes, listings) -> None:
        users = [Actor(user_id=f"user-{n}") for n in range(5)]

        await asyncio.gather(*(votes.toggle_vote(u, "listing-1") for u in users))

        assert (await listings.get("listing-1")).upvotes_count == 5
        assert len(votes._vote_locks) == 0
        assert len(votes._count_locks) == 0

    async def test_unauthenticated_is_rejected(self, votes, vote_store) -> None:
        with pytest.raises(AuthenticationRequiredError):
            await votes.toggle_vote(None, "listing-1")
        with pytest.raises(AuthenticationRequiredError):
            await votes.has_voted(None, "listing-1")
        assert vote_store.calls == []

    async def test_deleted_listing_cannot_be_voted(self, votes, listings, vote_store, user) -> None:
        await listings.soft_delete("listing-1")

        with pytest.raises(NotFoundError):
            await votes.toggle_vote(user, "listing-1")
        assert vote_store.votes == set()

    async def test_missing_listing_cannot_be_voted(self, votes, user) -> None:
        with pytest.raises(NotFoundError):
            await votes.toggle_vote(user, "does-not-exist")

    async def test_vote_can_be_withdrawn_after_deletion(self, votes, listings, user) -> None:
        await votes.toggle_vote(user, "listing-1")
        await listings.soft_delete("listing-1")

        result = await votes.toggle_vote(user, "listing-1")

        assert result.state == "unvoted"
        assert result.upvotes_count == 0

    async def test_conflict_confirmed_by_store_counts_as_voted(self, listings, user) -> None:
        votes = VoteManager(RacingVoteStore(), listings)

        result = await votes.toggle_vote(user, "listing-1")

        assert result.state == "voted"
        assert result.upvotes_count == 1


# ---------------------------------------------------------------------------
# Popularidad
# ---------------------------------------------------------------------------


class TestPopularity:
    async def test_popularity_sort_follows_votes(self, votes, listings) -> None:
        await votes.toggle_vote(Actor(user_id="user-1"), "listing-2")

        orchestrator = QueryOrchestrator(listings, debounce_seconds=0)

        result = await orchestrator.run(FacetSelection(sort="popularity"))

        assert [s.listing.id for s in result.listings] == ["listing-2", "listing-1"]
