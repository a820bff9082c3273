"""
Contratos de los colaboradores externos.

El núcleo solo conoce estas interfaces; la implementación con Supabase
vive en `vitrina.database.repositories`.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from vitrina.catalog.predicates import Predicate, SortSpec
from vitrina.models import Actor, Listing, ModerationEvent, SavedListing, UserProfile


class BaseListingStore(ABC):
    """Tabla durable de listings."""

    @abstractmethod
    async def find(
        self,
        predicates: Sequence[Predicate],
        sort: Sequence[SortSpec] = (),
        limit: Optional[int] = None,
    ) -> list[Listing]:
        """Lee los listings que cumplen todos los predicados."""

    @abstractmethod
    async def get(self, listing_id: str) -> Optional[Listing]:
        """Lee un listing por id, sin filtros de visibilidad."""

    @abstractmethod
    async def insert(self, listing: Listing) -> Listing:
        """Inserta un listing y devuelve el registro creado (con id)."""

    @abstractmethod
    async def update(
        self,
        listing_id: str,
        changes: dict,
        guard: Optional[dict] = None,
    ) -> Optional[Listing]:
        """
        Actualización parcial.

        Args:
            guard: igualdades extra que la fila debe cumplir
                   (ej: {"author_id": ...})

        Returns:
            El listing actualizado, o None si ninguna fila cumplió id + guard
        """

    @abstractmethod
    async def soft_delete(self, listing_id: str) -> None:
        """Setea deleted_at; nunca borra la fila."""

    @abstractmethod
    async def list_by_author(self, author_id: str) -> list[Listing]:
        """Listings de un autor, sin filtros de moderación (excluye bajas)."""


class BaseBookmarkStore(ABC):
    """Guardados por usuario (tabla user_saved_listings)."""

    @abstractmethod
    async def list_saved(self, user_id: str) -> set[str]:
        """Ids de listings guardados por el usuario."""

    @abstractmethod
    async def add_saved(self, user_id: str, listing_id: str) -> SavedListing:
        """Agrega un guardado. ConflictError si ya existía."""

    @abstractmethod
    async def remove_saved(self, user_id: str, listing_id: str) -> None:
        """Quita un guardado (no falla si no existía)."""

    @abstractmethod
    async def update_saved(
        self, user_id: str, listing_id: str, changes: dict
    ) -> Optional[SavedListing]:
        """Actualiza estado/notas de un guardado; None si no existe."""


class BaseVoteStore(ABC):
    """Votos positivos por usuario (tabla listing_votes)."""

    @abstractmethod
    async def has_voted(self, user_id: str, listing_id: str) -> bool:
        """True si el usuario ya votó el listing."""

    @abstractmethod
    async def add_vote(self, user_id: str, listing_id: str) -> None:
        """Agrega un voto. ConflictError si ya existía."""

    @abstractmethod
    async def remove_vote(self, user_id: str, listing_id: str) -> None:
        """Quita un voto (no falla si no existía)."""

    @abstractmethod
    async def count_votes(self, listing_id: str) -> int:
        """Cantidad de votos del listing."""


class BaseAuditLog(ABC):
    """Log append-only de eventos de moderación."""

    @abstractmethod
    async def append(self, event: ModerationEvent) -> ModerationEvent:
        """Agrega un evento."""

    @abstractmethod
    async def events_for(self, target_id: str) -> list[ModerationEvent]:
        """Eventos de un target, del más viejo al más nuevo."""


class BaseProfileStore(ABC):
    """Perfiles de usuario."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserProfile]:
        """Perfil del usuario o None."""

    @abstractmethod
    async def set_banned(self, user_id: str, is_banned: bool) -> Optional[UserProfile]:
        """Marca o desmarca el baneo."""


class BaseIdentityProvider(ABC):
    """Servicio de identidad."""

    @abstractmethod
    async def current_user_id(self) -> Optional[str]:
        """Id del usuario de la sesión, o None si no hay sesión."""

    @abstractmethod
    async def is_moderator(self, user_id: str) -> bool:
        """True si el usuario es moderador."""

    async def resolve_actor(self) -> Optional[Actor]:
        """Construye el Actor a pasar explícitamente al núcleo."""
        user_id = await self.current_user_id()
        if user_id is None:
            return None
        return Actor(user_id=user_id, is_moderator=await self.is_moderator(user_id))
