"""
Votos positivos.

Cada usuario vota un listing a lo sumo una vez; `upvotes_count` del
listing se recalcula desde las filas de votos después de cada cambio.
"""

from dataclasses import dataclass
from typing import Literal, Optional

import structlog

from vitrina.bookmarks.locks import KeyedLocks
from vitrina.bookmarks.manager import require_user, require_live_listing
from vitrina.database.stores import BaseListingStore, BaseVoteStore
from vitrina.exceptions import ConflictError
from vitrina.models import Actor

logger = structlog.get_logger()

VoteState = Literal["voted", "unvoted"]


@dataclass(frozen=True)
class VoteResult:
    listing_id: str
    state: VoteState
    upvotes_count: int


class VoteManager:
    """
    Toggle de votos por usuario.

    Igual que los guardados, los toggles de un mismo par (usuario, listing)
    se serializan. El recálculo del contador se serializa por listing, así
    la última escritura siempre refleja todos los votos ya aplicados.
    """

    def __init__(self, store: BaseVoteStore, listings: BaseListingStore):
        self.store = store
        self.listings = listings
        self._vote_locks = KeyedLocks()
        self._count_locks = KeyedLocks()

    async def toggle_vote(self, actor: Optional[Actor], listing_id: str) -> VoteResult:
        """Vota o retira el voto del usuario sobre el listing."""
        user_id = require_user(actor)

        async with self._vote_locks.hold((user_id, listing_id)):
            if await self.store.has_voted(user_id, listing_id):
                await self.store.remove_vote(user_id, listing_id)
                state: VoteState = "unvoted"
            else:
                await require_live_listing(self.listings, listing_id)
                try:
                    await self.store.add_vote(user_id, listing_id)
                except ConflictError:
                    if not await self.store.has_voted(user_id, listing_id):
                        raise
                    logger.warning(
                        "Voto concurrente detectado",
                        user_id=user_id,
                        listing_id=listing_id,
                    )
                state = "voted"

        count = await self._sync_count(listing_id)
        logger.info(
            "Voto actualizado",
            user_id=user_id,
            listing_id=listing_id,
            state=state,
            upvotes_count=count,
        )
        return VoteResult(listing_id=listing_id, state=state, upvotes_count=count)

    async def has_voted(self, actor: Optional[Actor], listing_id: str) -> bool:
        user_id = require_user(actor)
        return await self.store.has_voted(user_id, listing_id)

    async def _sync_count(self, listing_id: str) -> int:
        async with self._count_locks.hold(listing_id):
            count = await self.store.count_votes(listing_id)
            # None si la fila ya no existe: quitar el voto igual vale
            await self.listings.update(listing_id, {"upvotes_count": count})
        return count
