"""
Máquina de estados de moderación.

Ciclo de vida de un listing:
    DRAFT → PENDING → {APPROVED, REJECTED, REVISION}
    REVISION → {APPROVED, REJECTED}
    APPROVED ⇄ FEATURED
    {PENDING, REVISION, REJECTED, APPROVED, FEATURED} → SOFT_DELETED
    {REJECTED, REVISION} → PENDING (reenvío; sin operación en este paquete)

El listing no tiene columna de estado: se deriva de is_approved,
is_featured, deleted_at y del log de eventos. Un rechazo solo queda
registrado en el log, igual que un pedido de cambios; sin ellos,
rechazado, en revisión y pendiente son indistinguibles.
"""

from enum import Enum
from typing import Optional, Sequence

from vitrina.exceptions import InvalidTransitionError
from vitrina.models import Listing, ModerationEvent


class ListingState(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION = "revision"
    FEATURED = "featured"
    SOFT_DELETED = "soft_deleted"


_TRANSITIONS: dict[ListingState, set[ListingState]] = {
    ListingState.DRAFT: {ListingState.PENDING},
    ListingState.PENDING: {
        ListingState.APPROVED,
        ListingState.REJECTED,
        ListingState.REVISION,
        ListingState.SOFT_DELETED,
    },
    ListingState.REVISION: {
        ListingState.APPROVED,
        ListingState.REJECTED,
        ListingState.SOFT_DELETED,
        ListingState.PENDING,
    },
    ListingState.REJECTED: {ListingState.PENDING, ListingState.SOFT_DELETED},
    ListingState.APPROVED: {ListingState.FEATURED, ListingState.SOFT_DELETED},
    ListingState.FEATURED: {ListingState.APPROVED, ListingState.SOFT_DELETED},
    # Terminal
    ListingState.SOFT_DELETED: set(),
}


class ModerationStateMachine:
    """
    Valida transiciones. Cálculo puro: los efectos (persistencia,
    auditoría) los maneja ModerationService.
    """

    @staticmethod
    def derive_state(
        listing: Optional[Listing],
        events: Sequence[ModerationEvent] = (),
    ) -> ListingState:
        if listing is None or listing.id is None:
            return ListingState.DRAFT
        if listing.deleted_at is not None:
            return ListingState.SOFT_DELETED
        if listing.is_approved:
            return ListingState.FEATURED if listing.is_featured else ListingState.APPROVED

        verdicts = [e for e in events if e.action_type in ("approve", "reject", "revision")]
        if verdicts and verdicts[-1].action_type == "reject":
            return ListingState.REJECTED
        if verdicts and verdicts[-1].action_type == "revision":
            return ListingState.REVISION
        return ListingState.PENDING

    @staticmethod
    def valid_transitions(state: ListingState) -> set[ListingState]:
        return set(_TRANSITIONS.get(state, set()))

    @staticmethod
    def can_transition(current: ListingState, target: ListingState) -> bool:
        return target in _TRANSITIONS.get(current, set())

    @classmethod
    def ensure_transition(cls, current: ListingState, target: ListingState) -> None:
        if not cls.can_transition(current, target):
            allowed = ", ".join(sorted(s.value for s in cls.valid_transitions(current)))
            raise InvalidTransitionError(
                f"Transición inválida: {current.value} → {target.value}. "
                f"Permitidas desde {current.value}: [{allowed}]"
            )

    @staticmethod
    def is_terminal(state: ListingState) -> bool:
        return state == ListingState.SOFT_DELETED
