"""
Compilador de facetas.

Convierte una FacetSelection en una lista de predicados independientes
más el orden a aplicar.

Decisión de diseño: la búsqueda de texto libre es un substring
case-insensitive sobre `title` únicamente (no sobre la descripción).
"""

from typing import Optional

import structlog

from vitrina.config import ALL, get_settings
from vitrina.catalog.predicates import (
    CompiledQuery,
    FEATURED_FIRST,
    Predicate,
    SortSpec,
    VISIBILITY_PREDICATES,
)
from vitrina.models import FacetSelection

logger = structlog.get_logger()

# Clave de orden elegida por el usuario -> columna (siempre descendente)
SORT_COLUMNS = {
    "newest": "created_at",
    "popularity": "upvotes_count",
    "income": "monthly_income_min",
}


class FacetCompiler:
    """
    Arma la consulta pública del catálogo.

    Siempre inyecta `is_approved = true` y `deleted_at is null`. El listado
    sin filtrar para autores y moderadores es otro camino (ver
    ListingRepository.list_by_author y ModerationService.pending_queue).
    """

    def __init__(self, default_page_size: Optional[int] = None):
        self.default_page_size = default_page_size or get_settings().default_page_size

    def compile(self, selection: FacetSelection) -> CompiledQuery:
        predicates: list[Predicate] = list(VISIBILITY_PREDICATES)
        predicates.append(Predicate("kind", "eq", selection.kind))

        if selection.category != ALL:
            predicates.append(Predicate("category", "eq", selection.category))
        if selection.risk != ALL:
            predicates.append(Predicate("risk_level", "eq", selection.risk.lower()))
        if selection.effort != ALL:
            predicates.append(Predicate("effort_level", "eq", selection.effort.lower()))

        # Cada rango numérico es un predicado propio, nunca uno compuesto
        if selection.min_income > 0:
            predicates.append(Predicate("monthly_income_min", "gte", selection.min_income))
        if selection.max_investment is not None:
            predicates.append(Predicate("investment_min", "lte", selection.max_investment))

        query = selection.query.strip()
        if query:
            predicates.append(Predicate("title", "ilike", query))

        compiled = CompiledQuery(
            predicates=tuple(predicates),
            sort=(FEATURED_FIRST, SortSpec(SORT_COLUMNS[selection.sort])),
            limit=selection.limit or self.default_page_size,
        )
        logger.debug(
            "Selección compilada",
            kind=selection.kind,
            predicates=len(compiled.predicates),
            sort=selection.sort,
        )
        return compiled
