"""
Match Scorer: personalización a partir del perfil del usuario.

- Agrega predicados de riesgo y techo de presupuesto según el perfil
- Calcula el "progreso a la meta" de cada listing (solo para mostrar)
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from vitrina.config import BUDGET_CEILINGS
from vitrina.catalog.predicates import Predicate
from vitrina.models import Listing, UserProfile

logger = structlog.get_logger()


@dataclass
class ScoredListing:
    """Listing con su porcentaje de progreso a la meta del usuario."""

    listing: Listing
    progress_to_goal: Optional[int] = None


def budget_ceiling(bucket: Optional[str]) -> Optional[int]:
    """Techo de inversión para un bucket de presupuesto (None si no se conoce)."""
    if not bucket:
        return None
    return BUDGET_CEILINGS.get(bucket.strip())


class MatchScorer:
    """
    Personalización "smart match".

    Sin perfil, la personalización es un no-op silencioso.
    """

    def apply_personalization(
        self,
        predicates: Sequence[Predicate],
        profile: Optional[UserProfile],
    ) -> tuple[Predicate, ...]:
        """
        Agrega los predicados derivados del perfil.

        - Riesgo: exactamente la tolerancia del perfil, salvo que el usuario
          ya haya elegido un filtro de riesgo explícito.
        - Presupuesto: investment_min <= techo del bucket.
        """
        result = tuple(predicates)
        if profile is None:
            return result

        has_explicit_risk = any(p.column == "risk_level" for p in result)
        if profile.risk_tolerance and not has_explicit_risk:
            result += (Predicate("risk_level", "eq", profile.risk_tolerance.strip().lower()),)

        ceiling = budget_ceiling(profile.budget_bucket)
        if ceiling is not None:
            result += (Predicate("investment_min", "lte", ceiling),)
        elif profile.budget_bucket:
            logger.warning(
                "Bucket de presupuesto desconocido",
                user_id=profile.user_id,
                bucket=profile.budget_bucket,
            )

        return result

    @staticmethod
    def progress_to_goal(
        listing: Listing, profile: Optional[UserProfile]
    ) -> Optional[int]:
        """
        round(100 * monthly_income_min / income_goal), con las mitades
        hacia arriba (12.5 -> 13).

        Devuelve None si no hay meta (income_goal = 0) o el listing
        no tiene ingreso mensual.
        """
        if profile is None or profile.income_goal <= 0:
            return None
        income = listing.monthly_income_min
        if income is None:
            return None
        # nunca negativo: floor(x + 0.5) redondea las mitades hacia arriba
        return math.floor(100 * income / profile.income_goal + 0.5)

    def annotate(
        self, listings: Sequence[Listing], profile: Optional[UserProfile]
    ) -> list[ScoredListing]:
        return [
            ScoredListing(listing=listing, progress_to_goal=self.progress_to_goal(listing, profile))
            for listing in listings
        ]
