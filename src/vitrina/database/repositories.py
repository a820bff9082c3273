"""
Repositorios para operaciones CRUD en Supabase.

Cada repositorio maneja una tabla/entidad específica e implementa
el contrato correspondiente de `vitrina.database.stores`.
"""

from typing import Optional, Sequence

import httpx
import structlog
from postgrest.exceptions import APIError
from postgrest.types import CountMethod

from vitrina.catalog.predicates import Predicate, SortSpec
from vitrina.database.stores import (
    BaseAuditLog,
    BaseBookmarkStore,
    BaseIdentityProvider,
    BaseListingStore,
    BaseProfileStore,
    BaseVoteStore,
)
from vitrina.database.supabase_client import SupabaseClient, get_supabase_client
from vitrina.exceptions import ConflictError, StoreError
from vitrina.models import Listing, ModerationEvent, SavedListing, UserProfile
from vitrina.models.listing import utc_now_iso

logger = structlog.get_logger()

# Código de Postgres para violación de unicidad
UNIQUE_VIOLATION = "23505"


class BaseRepository:
    """Clase base para repositorios."""

    TABLE = ""

    def __init__(self, client: SupabaseClient):
        self._client = client

    @classmethod
    async def create(cls):
        """Construye el repositorio con el cliente singleton."""
        return cls(await get_supabase_client())

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def query(self):
        return self.client.table(self.TABLE)

    async def _execute(self, query, operation: str):
        """
        Ejecuta la consulta y traduce los errores a StoreError.

        No reintenta: la política de reintentos es de la capa que llama.
        """
        try:
            return await query.execute()
        except APIError as e:
            logger.error(
                "Error de Supabase",
                table=self.TABLE,
                operation=operation,
                code=e.code,
                error=e.message,
            )
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(e.message or "duplicate key", code=e.code) from e
            raise StoreError(e.message or str(e), code=e.code) from e
        except httpx.HTTPError as e:
            logger.error(
                "Error de transporte",
                table=self.TABLE,
                operation=operation,
                error=str(e),
            )
            raise StoreError(str(e)) from e


class ListingRepository(BaseRepository, BaseListingStore):
    """Repositorio para la tabla `listings` (ideas y franquicias)."""

    TABLE = "listings"

    async def find(
        self,
        predicates: Sequence[Predicate],
        sort: Sequence[SortSpec] = (),
        limit: Optional[int] = None,
    ) -> list[Listing]:
        query = self.query().select("*")
        for predicate in predicates:
            query = predicate.apply(query)
        for spec in sort:
            query = spec.apply(query)
        if limit is not None:
            query = query.limit(limit)

        response = await self._execute(query, "find")
        return [Listing.from_db_row(row) for row in response.data]

    async def get(self, listing_id: str) -> Optional[Listing]:
        """Obtiene un listing por su UUID."""
        query = self.query().select("*").eq("id", listing_id).limit(1)
        response = await self._execute(query, "get")
        return Listing.from_db_row(response.data[0]) if response.data else None

    async def insert(self, listing: Listing) -> Listing:
        """Inserta un nuevo listing."""
        data = listing.to_db_dict()
        response = await self._execute(self.query().insert(data), "insert")
        logger.info(
            "Listing creado",
            slug=listing.slug,
            kind=listing.kind,
            author_id=listing.author_id,
        )
        return Listing.from_db_row(response.data[0]) if response.data else listing

    async def update(
        self,
        listing_id: str,
        changes: dict,
        guard: Optional[dict] = None,
    ) -> Optional[Listing]:
        data = {**changes, "updated_at": utc_now_iso()}
        query = self.query().update(data).eq("id", listing_id)
        for column, value in (guard or {}).items():
            query = query.eq(column, value)

        response = await self._execute(query, "update")
        return Listing.from_db_row(response.data[0]) if response.data else None

    async def soft_delete(self, listing_id: str) -> None:
        now = utc_now_iso()
        query = (
            self.query()
            .update({"deleted_at": now, "updated_at": now})
            .eq("id", listing_id)
        )
        await self._execute(query, "soft_delete")
        logger.info("Listing dado de baja", listing_id=listing_id)

    async def list_by_author(self, author_id: str) -> list[Listing]:
        """Listings de un autor (pendientes incluidos)."""
        query = (
            self.query()
            .select("*")
            .eq("author_id", author_id)
            .is_("deleted_at", "null")
            .order("created_at", desc=True)
        )
        response = await self._execute(query, "list_by_author")
        return [Listing.from_db_row(row) for row in response.data]


class BookmarkRepository(BaseRepository, BaseBookmarkStore):
    """Repositorio para listings guardados."""

    TABLE = "user_saved_listings"

    async def list_saved(self, user_id: str) -> set[str]:
        query = self.query().select("listing_id").eq("user_id", user_id)
        response = await self._execute(query, "list_saved")
        return {row["listing_id"] for row in response.data}

    async def add_saved(self, user_id: str, listing_id: str) -> SavedListing:
        saved = SavedListing(user_id=user_id, listing_id=listing_id)
        response = await self._execute(self.query().insert(saved.to_db_dict()), "add_saved")
        return SavedListing(**response.data[0]) if response.data else saved

    async def remove_saved(self, user_id: str, listing_id: str) -> None:
        query = (
            self.query()
            .delete()
            .eq("user_id", user_id)
            .eq("listing_id", listing_id)
        )
        await self._execute(query, "remove_saved")

    async def update_saved(
        self, user_id: str, listing_id: str, changes: dict
    ) -> Optional[SavedListing]:
        query = (
            self.query()
            .update({**changes, "updated_at": utc_now_iso()})
            .eq("user_id", user_id)
            .eq("listing_id", listing_id)
        )
        response = await self._execute(query, "update_saved")
        return SavedListing(**response.data[0]) if response.data else None


class VoteRepository(BaseRepository, BaseVoteStore):
    """Repositorio para los votos positivos."""

    TABLE = "listing_votes"

    def _vote(self, query, user_id: str, listing_id: str):
        return query.eq("user_id", user_id).eq("listing_id", listing_id)

    async def has_voted(self, user_id: str, listing_id: str) -> bool:
        query = self._vote(self.query().select("listing_id"), user_id, listing_id)
        response = await self._execute(query, "has_voted")
        return bool(response.data)

    async def add_vote(self, user_id: str, listing_id: str) -> None:
        row = {"user_id": user_id, "listing_id": listing_id, "created_at": utc_now_iso()}
        await self._execute(self.query().insert(row), "add_vote")

    async def remove_vote(self, user_id: str, listing_id: str) -> None:
        query = self._vote(self.query().delete(), user_id, listing_id)
        await self._execute(query, "remove_vote")

    async def count_votes(self, listing_id: str) -> int:
        query = (
            self.query()
            .select("listing_id", count=CountMethod.exact)
            .eq("listing_id", listing_id)
        )
        response = await self._execute(query, "count_votes")
        return response.count or 0


class AuditLogRepository(BaseRepository, BaseAuditLog):
    """Repositorio para el log de moderación (append-only)."""

    TABLE = "admin_logs"

    async def append(self, event: ModerationEvent) -> ModerationEvent:
        response = await self._execute(self.query().insert(event.to_db_dict()), "append")
        logger.info(
            "Evento de moderación registrado",
            action=event.action_type,
            target_id=event.target_id,
            actor_id=event.actor_id,
        )
        return ModerationEvent.from_db_row(response.data[0]) if response.data else event

    async def events_for(self, target_id: str) -> list[ModerationEvent]:
        query = (
            self.query()
            .select("*")
            .eq("target_id", target_id)
            .order("created_at", desc=False)
        )
        response = await self._execute(query, "events_for")
        return [ModerationEvent.from_db_row(row) for row in response.data]


class ProfileRepository(BaseRepository, BaseProfileStore):
    """Repositorio para perfiles de usuario."""

    TABLE = "profiles"

    async def get(self, user_id: str) -> Optional[UserProfile]:
        query = self.query().select("*").eq("id", user_id).limit(1)
        response = await self._execute(query, "get")
        return UserProfile.from_db_row(response.data[0]) if response.data else None

    async def set_banned(self, user_id: str, is_banned: bool) -> Optional[UserProfile]:
        query = self.query().update({"is_banned": is_banned}).eq("id", user_id)
        response = await self._execute(query, "set_banned")
        return UserProfile.from_db_row(response.data[0]) if response.data else None


class SupabaseIdentityProvider(BaseIdentityProvider):
    """Identidad a partir de la sesión de Supabase Auth + tabla profiles."""

    def __init__(self, client: SupabaseClient, profiles: Optional[ProfileRepository] = None):
        self._client = client
        self.profiles = profiles or ProfileRepository(client)

    async def current_user_id(self) -> Optional[str]:
        session = await self._client.auth.get_session()
        if session is None or session.user is None:
            return None
        return session.user.id

    async def is_moderator(self, user_id: str) -> bool:
        profile = await self.profiles.get(user_id)
        return bool(profile and profile.is_moderator)
