"""
Query Orchestrator.

Combina compilador + scorer, emite la lectura al store y garantiza que
la última consulta pedida es la única que puede quedar como resultado.

Flujo de `run`:
1. Tomar un token (secuencia monótona)
2. Esperar el debounce; si llegó otra consulta, abandonar sin leer
3. Compilar facetas y aplicar personalización
4. Leer del store
5. Descartar la respuesta si su token ya no es el último
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional

import structlog

from vitrina.config import get_settings
from vitrina.catalog.facets import FacetCompiler
from vitrina.catalog.scoring import MatchScorer, ScoredListing
from vitrina.exceptions import StoreError
from vitrina.models import FacetSelection, UserProfile

if TYPE_CHECKING:
    from vitrina.database.stores import BaseListingStore

logger = structlog.get_logger()


@dataclass
class QueryResult:
    """Resultado de una consulta al catálogo."""

    token: int
    selection: FacetSelection
    listings: list[ScoredListing] = field(default_factory=list)
    error: Optional[StoreError] = None
    stale: bool = False
    superseded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.superseded


class QueryOrchestrator:
    """
    Orquestador de consultas con debounce y "latest request wins".

    No depende de ningún ciclo de vida de UI: todo se resuelve con
    tokens de secuencia y tareas de asyncio.
    """

    def __init__(
        self,
        store: "BaseListingStore",
        compiler: Optional[FacetCompiler] = None,
        scorer: Optional[MatchScorer] = None,
        debounce_seconds: Optional[float] = None,
    ):
        if debounce_seconds is None:
            debounce_seconds = get_settings().query_debounce_seconds
        self.store = store
        self.compiler = compiler or FacetCompiler()
        self.scorer = scorer or MatchScorer()
        self.debounce_seconds = debounce_seconds
        self._latest_token = 0
        self._current: Optional[QueryResult] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def current(self) -> Optional[QueryResult]:
        """Último resultado aceptado (marcado stale si la última lectura falló)."""
        return self._current

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def _is_latest(self, token: int) -> bool:
        return token == self._latest_token

    async def run(
        self,
        selection: FacetSelection,
        profile: Optional[UserProfile] = None,
    ) -> QueryResult:
        """
        Ejecuta una consulta.

        Returns:
            QueryResult; si otra consulta la reemplazó, `superseded=True`
            y el estado actual no se toca.
        """
        self._latest_token += 1
        token = self._latest_token

        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        if not self._is_latest(token):
            logger.debug("Consulta descartada en debounce", token=token)
            return QueryResult(token=token, selection=selection, superseded=True)

        compiled = self.compiler.compile(selection)
        if selection.personalize:
            compiled = compiled.with_predicates(
                self.scorer.apply_personalization(compiled.predicates, profile)
            )

        try:
            listings = await self.store.find(compiled.predicates, compiled.sort, compiled.limit)
        except StoreError as e:
            if not self._is_latest(token):
                return QueryResult(token=token, selection=selection, superseded=True)
            logger.error("Error leyendo el catálogo", token=token, error=str(e))
            if self._current is not None:
                self._current = replace(self._current, stale=True)
            return QueryResult(token=token, selection=selection, error=e)

        if not self._is_latest(token):
            logger.debug("Respuesta descartada: hay una consulta más nueva", token=token)
            return QueryResult(token=token, selection=selection, superseded=True)

        result = QueryResult(
            token=token,
            selection=selection,
            listings=self.scorer.annotate(listings, profile),
        )
        self._current = result
        logger.info("Consulta resuelta", token=token, total=len(listings))
        return result

    def submit(
        self,
        selection: FacetSelection,
        profile: Optional[UserProfile] = None,
    ) -> asyncio.Task:
        """Programa `run` como tarea; pensado para cada cambio de selección o perfil."""
        task = asyncio.create_task(self.run(selection, profile))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> None:
        """Invalida todas las consultas en curso."""
        self._latest_token += 1
        for task in list(self._tasks):
            task.cancel()
        logger.debug("Consultas canceladas", token=self._latest_token)
