"""Fakes en memoria de los contratos de almacenamiento + fixtures comunes."""

import asyncio
import uuid
from typing import Optional, Sequence

import pytest

from vitrina.catalog.predicates import Predicate, SortSpec
from vitrina.database.stores import (
    BaseAuditLog,
    BaseBookmarkStore,
    BaseListingStore,
    BaseProfileStore,
    BaseVoteStore,
)
from vitrina.exceptions import ConflictError, StoreError
from vitrina.models import (
    Actor,
    FranchiseDetails,
    IdeaDetails,
    Listing,
    ModerationEvent,
    SavedListing,
    UserProfile,
)
from vitrina.models.listing import utc_now_iso


def sort_rows(rows: list[dict], sort: Sequence[SortSpec]) -> list[dict]:
    """Orden multi-clave estable, NULL al final."""
    for spec in reversed(list(sort)):
        present = [r for r in rows if r.get(spec.column) is not None]
        missing = [r for r in rows if r.get(spec.column) is None]
        present.sort(key=lambda r: r[spec.column], reverse=spec.descending)
        rows = present + missing
    return rows


class InMemoryListingStore(BaseListingStore):
    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.find_calls: list[tuple] = []
        self.fail_with: Optional[StoreError] = None

    def seed(self, *listings: Listing) -> list[Listing]:
        stored = []
        for listing in listings:
            listing_id = listing.id or str(uuid.uuid4())
            self.rows[listing_id] = {**listing.to_db_dict(), "id": listing_id}
            stored.append(Listing.from_db_row(self.rows[listing_id]))
        return stored

    async def find(
        self,
        predicates: Sequence[Predicate],
        sort: Sequence[SortSpec] = (),
        limit: Optional[int] = None,
    ) -> list[Listing]:
        self.find_calls.append((tuple(predicates), tuple(sort), limit))
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        rows = [r for r in self.rows.values() if all(p.matches(r) for p in predicates)]
        rows = sort_rows(rows, sort)
        if limit is not None:
            rows = rows[:limit]
        return [Listing.from_db_row(r) for r in rows]

    async def get(self, listing_id: str) -> Optional[Listing]:
        row = self.rows.get(listing_id)
        return Listing.from_db_row(row) if row else None

    async def insert(self, listing: Listing) -> Listing:
        if any(r["slug"] == listing.slug for r in self.rows.values()):
            raise ConflictError("duplicate key value violates unique constraint", code="23505")
        listing_id = str(uuid.uuid4())
        self.rows[listing_id] = {**listing.to_db_dict(), "id": listing_id}
        return Listing.from_db_row(self.rows[listing_id])

    async def update(
        self, listing_id: str, changes: dict, guard: Optional[dict] = None
    ) -> Optional[Listing]:
        row = self.rows.get(listing_id)
        if row is None:
            return None
        if any(row.get(k) != v for k, v in (guard or {}).items()):
            return None
        row.update(changes)
        row["updated_at"] = utc_now_iso()
        return Listing.from_db_row(row)

    async def soft_delete(self, listing_id: str) -> None:
        if listing_id in self.rows:
            self.rows[listing_id]["deleted_at"] = utc_now_iso()

    async def list_by_author(self, author_id: str) -> list[Listing]:
        rows = [
            r
            for r in self.rows.values()
            if r.get("author_id") == author_id and r.get("deleted_at") is None
        ]
        return [Listing.from_db_row(r) for r in sort_rows(rows, [SortSpec("created_at")])]


class InMemoryBookmarkStore(BaseBookmarkStore):
    def __init__(self):
        self.saved: dict[str, dict[str, SavedListing]] = {}
        self.calls: list[tuple[str, str, str]] = []

    async def list_saved(self, user_id: str) -> set[str]:
        await asyncio.sleep(0)
        return set(self.saved.get(user_id, {}))

    async def add_saved(self, user_id: str, listing_id: str) -> SavedListing:
        await asyncio.sleep(0)
        self.calls.append(("add", user_id, listing_id))
        entries = self.saved.setdefault(user_id, {})
        if listing_id in entries:
            raise ConflictError("duplicate key", code="23505")
        entries[listing_id] = SavedListing(user_id=user_id, listing_id=listing_id)
        return entries[listing_id]

    async def remove_saved(self, user_id: str, listing_id: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("remove", user_id, listing_id))
        self.saved.get(user_id, {}).pop(listing_id, None)

    async def update_saved(
        self, user_id: str, listing_id: str, changes: dict
    ) -> Optional[SavedListing]:
        entry = self.saved.get(user_id, {}).get(listing_id)
        if entry is None:
            return None
        updated = entry.model_copy(update=changes)
        self.saved[user_id][listing_id] = updated
        return updated


class InMemoryVoteStore(BaseVoteStore):
    def __init__(self):
        self.votes: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str, str]] = []

    async def has_voted(self, user_id: str, listing_id: str) -> bool:
        await asyncio.sleep(0)
        return (user_id, listing_id) in self.votes

    async def add_vote(self, user_id: str, listing_id: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("add", user_id, listing_id))
        if (user_id, listing_id) in self.votes:
            raise ConflictError("duplicate key", code="23505")
        self.votes.add((user_id, listing_id))

    async def remove_vote(self, user_id: str, listing_id: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(("remove", user_id, listing_id))
        self.votes.discard((user_id, listing_id))

    async def count_votes(self, listing_id: str) -> int:
        await asyncio.sleep(0)
        return sum(1 for _, voted in self.votes if voted == listing_id)


class InMemoryAuditLog(BaseAuditLog):
    def __init__(self):
        self.events: list[ModerationEvent] = []

    async def append(self, event: ModerationEvent) -> ModerationEvent:
        stored = event.model_copy(update={"id": str(uuid.uuid4())})
        self.events.append(stored)
        return stored

    async def events_for(self, target_id: str) -> list[ModerationEvent]:
        return [e for e in self.events if e.target_id == target_id]


class InMemoryProfileStore(BaseProfileStore):
    def __init__(self, *profiles: UserProfile):
        self.profiles = {p.user_id: p for p in profiles}

    async def get(self, user_id: str) -> Optional[UserProfile]:
        return self.profiles.get(user_id)

    async def set_banned(self, user_id: str, is_banned: bool) -> Optional[UserProfile]:
        profile = self.profiles.get(user_id)
        if profile is None:
            return None
        self.profiles[user_id] = profile.model_copy(update={"is_banned": is_banned})
        return self.profiles[user_id]


_counter = {"n": 0}


def make_idea(**overrides) -> Listing:
    """Idea aprobada y visible, con valores razonables."""
    _counter["n"] += 1
    n = _counter["n"]
    details = {
        "monthly_income_min": overrides.pop("monthly_income_min", 10_000),
        "monthly_income_max": overrides.pop("monthly_income_max", 50_000),
        "risk_level": overrides.pop("risk_level", "medium"),
        "effort_level": overrides.pop("effort_level", "semi-passive"),
    }
    data = {
        "title": f"Idea {n}",
        "slug": f"idea-{n}",
        "category": "digital",
        "author_id": "author-1",
        "investment_min": 100_000,
        "investment_max": 300_000,
        "is_approved": True,
        "created_at": f"2026-01-{n % 28 + 1:02d}T00:00:00+00:00",
    }
    data.update(overrides)
    return Listing(**data, details=IdeaDetails(**details))


def make_franchise(**overrides) -> Listing:
    _counter["n"] += 1
    n = _counter["n"]
    data = {
        "title": f"Franchise {n}",
        "slug": f"franchise-{n}",
        "category": "Food & Beverage",
        "author_id": "author-1",
        "investment_min": 800_000,
        "investment_max": 1_500_000,
        "is_approved": True,
    }
    data.update(overrides)
    return Listing(**data, details=FranchiseDetails(roi_months_min=12, roi_months_max=24))


@pytest.fixture
def listing_store() -> InMemoryListingStore:
    return InMemoryListingStore()


@pytest.fixture
def bookmark_store() -> InMemoryBookmarkStore:
    return InMemoryBookmarkStore()


@pytest.fixture
def vote_store() -> InMemoryVoteStore:
    return InMemoryVoteStore()


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def moderator() -> Actor:
    return Actor(user_id="mod-1", is_moderator=True)


@pytest.fixture
def author() -> Actor:
    return Actor(user_id="author-1")


@pytest.fixture
def stranger() -> Actor:
    return Actor(user_id="someone-else")
