"""
Servicio de moderación.

Aplica las transiciones de ModerationStateMachine contra el store,
chequea autorización en cada camino de escritura y registra los
eventos en el log de auditoría.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from vitrina.database.stores import (
    BaseAuditLog,
    BaseListingStore,
    BaseProfileStore,
)
from vitrina.catalog.predicates import NOT_DELETED, Predicate, SortSpec
from vitrina.exceptions import (
    AuthenticationRequiredError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from vitrina.models import Actor, Listing, ModerationEvent, UserProfile
from vitrina.moderation.state_machine import ListingState, ModerationStateMachine
from vitrina.submission.transform import normalize_fields

logger = structlog.get_logger()

# Campos que no se pueden tocar desde una edición
IMMUTABLE_FIELDS = {
    "id",
    "slug",
    "kind",
    "author_id",
    "is_approved",
    "is_featured",
    "deleted_at",
    "created_at",
    "updated_at",
    "upvotes_count",
    "admin_feedback",
}

NEWEST_FIRST = (SortSpec("created_at", descending=True),)


def _require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None:
        raise AuthenticationRequiredError()
    return actor


def _require_moderator(actor: Optional[Actor]) -> Actor:
    actor = _require_actor(actor)
    if not actor.is_moderator:
        logger.warning("Acción de moderación denegada", user_id=actor.user_id)
        raise AuthorizationError("solo un moderador puede realizar esta acción")
    return actor


def _first_error(error: PydanticValidationError) -> ValidationError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "listing"
    return ValidationError(field, first.get("msg", "valor inválido"))


class ModerationService:
    """
    Operaciones del ciclo de vida de un listing.

    - submit: DRAFT → PENDING (lo usa el wizard)
    - approve / reject / request_revision: solo moderadores
    - feature / unfeature: solo moderadores, sobre aprobados
    - soft_delete: autor o moderador
    - edit: autor o moderador, re-chequeado al commitear
    """

    def __init__(
        self,
        listings: BaseListingStore,
        audit_log: BaseAuditLog,
        profiles: Optional[BaseProfileStore] = None,
    ):
        self.listings = listings
        self.audit_log = audit_log
        self.profiles = profiles
        self.state_machine = ModerationStateMachine()

    async def _load(self, listing_id: str) -> Listing:
        listing = await self.listings.get(listing_id)
        if listing is None or listing.deleted_at is not None:
            raise NotFoundError(f"listing {listing_id} no encontrado")
        return listing

    async def state_of(self, listing: Listing) -> ListingState:
        events = await self.audit_log.events_for(listing.id) if listing.id else []
        return self.state_machine.derive_state(listing, events)

    async def _transition(self, listing: Listing, target: ListingState) -> None:
        current = await self.state_of(listing)
        self.state_machine.ensure_transition(current, target)

    async def _record(
        self,
        actor: Actor,
        action: str,
        target_type: str,
        target_id: str,
        details: Optional[dict[str, Any]] = None,
    ) -> ModerationEvent:
        event = ModerationEvent(
            action_type=action,
            actor_id=actor.user_id,
            target_type=target_type,
            target_id=target_id,
            details=details or {},
        )
        return await self.audit_log.append(event)

    async def submit(self, listing: Listing) -> Listing:
        """Inserta el listing como pendiente de moderación."""
        self.state_machine.ensure_transition(
            self.state_machine.derive_state(None), ListingState.PENDING
        )
        pending = listing.model_copy(
            update={"is_approved": False, "is_featured": False, "deleted_at": None}
        )
        created = await self.listings.insert(pending)
        logger.info(
            "Listing enviado a moderación",
            listing_id=created.id,
            slug=created.slug,
            author_id=created.author_id,
        )
        return created

    async def approve(self, actor: Optional[Actor], listing_id: str) -> Listing:
        actor = _require_moderator(actor)
        listing = await self._load(listing_id)
        await self._transition(listing, ListingState.APPROVED)

        updated = await self.listings.update(listing_id, {"is_approved": True})
        if updated is None:
            raise NotFoundError(f"listing {listing_id} no encontrado")
        await self._record(actor, "approve", listing.kind, listing_id, {"title": listing.title})
        logger.info("Listing aprobado", listing_id=listing_id, actor_id=actor.user_id)
        return updated

    async def reject(
        self, actor: Optional[Actor], listing_id: str, reason: str = ""
    ) -> ModerationEvent:
        """
        Rechaza un pendiente. El listing no cambia: sigue invisible y el
        rechazo queda solo en el log.
        """
        actor = _require_moderator(actor)
        listing = await self._load(listing_id)
        await self._transition(listing, ListingState.REJECTED)

        event = await self._record(
            actor, "reject", listing.kind, listing_id, {"title": listing.title, "reason": reason}
        )
        logger.info("Listing rechazado", listing_id=listing_id, actor_id=actor.user_id)
        return event

    async def request_revision(
        self, actor: Optional[Actor], listing_id: str, feedback: str
    ) -> Listing:
        """
        Devuelve un pendiente al autor con un pedido de cambios.

        El listing sigue invisible; el feedback queda en admin_feedback
        y el pedido en el log.
        """
        actor = _require_moderator(actor)
        listing = await self._load(listing_id)
        feedback = (feedback or "").strip()
        if not feedback:
            raise ValidationError("feedback", "el pedido de cambios no puede estar vacío")
        await self._transition(listing, ListingState.REVISION)

        updated = await self.listings.update(listing_id, {"admin_feedback": feedback})
        if updated is None:
            raise NotFoundError(f"listing {listing_id} no encontrado")
        await self._record(
            actor,
            "revision",
            listing.kind,
            listing_id,
            {"title": listing.title, "feedback": feedback},
        )
        logger.info("Cambios solicitados", listing_id=listing_id, actor_id=actor.user_id)
        return updated

    async def _set_featured(
        self, actor: Optional[Actor], listing_id: str, featured: bool
    ) -> Listing:
        actor = _require_moderator(actor)
        listing = await self._load(listing_id)
        target = ListingState.FEATURED if featured else ListingState.APPROVED
        await self._transition(listing, target)

        updated = await self.listings.update(listing_id, {"is_featured": featured})
        if updated is None:
            raise NotFoundError(f"listing {listing_id} no encontrado")
        await self._record(actor, "feature" if featured else "unfeature", listing.kind, listing_id)
        return updated

    async def feature(self, actor: Optional[Actor], listing_id: str) -> Listing:
        return await self._set_featured(actor, listing_id, True)

    async def unfeature(self, actor: Optional[Actor], listing_id: str) -> Listing:
        return await self._set_featured(actor, listing_id, False)

    async def soft_delete(self, actor: Optional[Actor], listing_id: str) -> None:
        """Baja lógica: setea deleted_at, nunca borra la fila."""
        actor = _require_actor(actor)
        listing = await self._load(listing_id)
        if not (actor.is_moderator or actor.owns(listing.author_id)):
            raise AuthorizationError("solo el autor o un moderador puede dar de baja")
        await self._transition(listing, ListingState.SOFT_DELETED)

        await self.listings.soft_delete(listing_id)
        await self._record(actor, "delete", listing.kind, listing_id, {"title": listing.title})

    async def edit(
        self, actor: Optional[Actor], listing_id: str, changes: dict
    ) -> Listing:
        """
        Edita un listing existente.

        La autorización se chequea acá y además viaja como guard del
        update (author_id) para no-moderadores.
        """
        actor = _require_actor(actor)
        listing = await self._load(listing_id)
        if not (actor.is_moderator or actor.owns(listing.author_id)):
            logger.warning("Edición denegada", listing_id=listing_id, user_id=actor.user_id)
            raise AuthorizationError("solo el autor o un moderador puede editar")

        forbidden = IMMUTABLE_FIELDS.intersection(changes)
        if forbidden:
            raise ValidationError(sorted(forbidden)[0], "no se puede modificar")

        editable = (set(Listing.model_fields) | set(type(listing.details).model_fields)) - {
            "details"
        }
        unknown = set(changes) - editable
        if unknown:
            raise ValidationError(sorted(unknown)[0], "campo desconocido")

        try:
            normalized = normalize_fields(changes)
        except ValueError:
            raise ValidationError("changes", "valor numérico inválido") from None

        merged = {**listing.to_db_dict(), "id": listing.id, **normalized}
        try:
            Listing.from_db_row(merged)
        except PydanticValidationError as e:
            raise _first_error(e) from None

        guard = None if actor.is_moderator else {"author_id": actor.user_id}
        updated = await self.listings.update(listing_id, normalized, guard=guard)
        if updated is None:
            raise AuthorizationError("el listing ya no pertenece al actor")

        logger.info("Listing editado", listing_id=listing_id, fields=sorted(normalized))
        return updated

    async def pending_queue(self, actor: Optional[Actor], kind: Optional[str] = None) -> list[Listing]:
        """Cola de pendientes (incluye rechazados: no se distinguen en la tabla)."""
        _require_moderator(actor)
        predicates = [Predicate("is_approved", "eq", False), NOT_DELETED]
        if kind:
            predicates.append(Predicate("kind", "eq", kind))
        return await self.listings.find(predicates, NEWEST_FIRST)

    async def approved_listings(self, actor: Optional[Actor], kind: Optional[str] = None) -> list[Listing]:
        _require_moderator(actor)
        predicates = [Predicate("is_approved", "eq", True), NOT_DELETED]
        if kind:
            predicates.append(Predicate("kind", "eq", kind))
        return await self.listings.find(predicates, NEWEST_FIRST)

    async def history(self, actor: Optional[Actor], listing_id: str) -> list[ModerationEvent]:
        _require_moderator(actor)
        return await self.audit_log.events_for(listing_id)

    async def my_listings(self, actor: Optional[Actor]) -> list[Listing]:
        """Publicaciones propias del actor, incluidas las pendientes."""
        actor = _require_actor(actor)
        return await self.listings.list_by_author(actor.user_id)

    async def ban_user(
        self, actor: Optional[Actor], user_id: str, reason: str = ""
    ) -> UserProfile:
        actor = _require_moderator(actor)
        if self.profiles is None:
            raise ValueError("ModerationService sin ProfileStore configurado")
        if user_id == actor.user_id:
            raise ValidationError("user_id", "un moderador no puede banearse a sí mismo")

        profile = await self.profiles.set_banned(user_id, True)
        if profile is None:
            raise NotFoundError(f"usuario {user_id} no encontrado")
        await self._record(actor, "ban", "user", user_id, {"reason": reason})
        logger.info("Usuario baneado", user_id=user_id, actor_id=actor.user_id)
        return profile
