"""
Bookmark Set Manager.

Mantiene el set de listings guardados por usuario con toggle idempotente,
y la selección acotada del comparador.
"""

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

import structlog

from vitrina.config import SAVED_STATUSES, get_settings
from vitrina.bookmarks.locks import KeyedLocks
from vitrina.database.stores import BaseBookmarkStore, BaseListingStore
from vitrina.exceptions import (
    AuthenticationRequiredError,
    ConflictError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from vitrina.models import Actor, SavedListing

logger = structlog.get_logger()

BookmarkState = Literal["saved", "unsaved"]


@dataclass(frozen=True)
class ToggleResult:
    listing_id: str
    state: BookmarkState


def require_user(actor: Optional[Actor]) -> str:
    if actor is None:
        raise AuthenticationRequiredError()
    return actor.user_id


async def require_live_listing(listings: BaseListingStore, listing_id: str) -> None:
    """NotFoundError si el listing no existe o fue dado de baja."""
    listing = await listings.get(listing_id)
    if listing is None or listing.deleted_at is not None:
        raise NotFoundError(f"listing {listing_id} no encontrado")


class BookmarkManager:
    """
    Guardados por usuario.

    Los toggles se serializan por par (usuario, listing) con un lock propio:
    dos toggles del mismo par terminan en el orden en que se emitieron y
    nunca compiten entre sí. No hay lock global.

    Guardar exige que el listing exista y no esté dado de baja; quitar
    un guardado siempre está permitido.
    """

    def __init__(self, store: BaseBookmarkStore, listings: BaseListingStore):
        self.store = store
        self.listings = listings
        self._locks = KeyedLocks()

    async def toggle(self, actor: Optional[Actor], listing_id: str) -> ToggleResult:
        """Agrega o quita el listing del set del usuario."""
        user_id = require_user(actor)

        async with self._locks.hold((user_id, listing_id)):
            saved = await self.store.list_saved(user_id)

            if listing_id in saved:
                await self.store.remove_saved(user_id, listing_id)
                state: BookmarkState = "unsaved"
            else:
                await require_live_listing(self.listings, listing_id)
                try:
                    await self.store.add_saved(user_id, listing_id)
                except ConflictError:
                    # Otro cliente lo guardó entre la lectura y el insert:
                    # se confirma contra el store en vez de asumir éxito
                    if listing_id not in await self.store.list_saved(user_id):
                        raise
                    logger.warning(
                        "Guardado concurrente detectado",
                        user_id=user_id,
                        listing_id=listing_id,
                    )
                state = "saved"

        logger.info("Bookmark toggled", user_id=user_id, listing_id=listing_id, state=state)
        return ToggleResult(listing_id=listing_id, state=state)

    async def saved_ids(self, actor: Optional[Actor]) -> frozenset[str]:
        """Set de ids guardados (vacío en la primera referencia)."""
        user_id = require_user(actor)
        return frozenset(await self.store.list_saved(user_id))

    async def is_saved(self, actor: Optional[Actor], listing_id: str) -> bool:
        return listing_id in await self.saved_ids(actor)

    async def update_progress(
        self,
        actor: Optional[Actor],
        listing_id: str,
        status: str,
        notes: str = "",
    ) -> SavedListing:
        """Actualiza el progreso del usuario sobre un listing guardado."""
        user_id = require_user(actor)
        if status not in SAVED_STATUSES:
            raise ValidationError("status", f"debe ser uno de {', '.join(SAVED_STATUSES)}")

        async with self._locks.hold((user_id, listing_id)):
            updated = await self.store.update_saved(
                user_id, listing_id, {"status": status, "notes": notes}
            )
        if updated is None:
            raise NotFoundError(f"listing {listing_id} no está guardado")

        logger.info("Progreso actualizado", user_id=user_id, listing_id=listing_id, status=status)
        return updated


class ComparisonSelection:
    """
    Selección del comparador: como máximo `limit` listings a la vez.

    Pedir uno más con el cupo lleno levanta LimitExceededError y deja
    la selección exactamente como estaba.
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        allowed: Optional[Iterable[str]] = None,
    ):
        self.limit = limit or get_settings().comparison_limit
        self._allowed = frozenset(allowed) if allowed is not None else None
        self._ids: list[str] = []

    @classmethod
    def from_saved(
        cls, saved_ids: Iterable[str], limit: Optional[int] = None
    ) -> "ComparisonSelection":
        """Selección restringida a los listings guardados del usuario."""
        return cls(limit=limit, allowed=saved_ids)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def __contains__(self, listing_id: str) -> bool:
        return listing_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def select(self, listing_id: str) -> tuple[str, ...]:
        if listing_id in self._ids:
            return self.ids
        if self._allowed is not None and listing_id not in self._allowed:
            raise ValidationError("listing_id", "solo se pueden comparar listings guardados")
        if len(self._ids) >= self.limit:
            raise LimitExceededError(self.limit)
        self._ids.append(listing_id)
        return self.ids

    def deselect(self, listing_id: str) -> tuple[str, ...]:
        if listing_id in self._ids:
            self._ids.remove(listing_id)
        return self.ids

    def toggle(self, listing_id: str) -> tuple[str, ...]:
        if listing_id in self._ids:
            return self.deselect(listing_id)
        return self.select(listing_id)
