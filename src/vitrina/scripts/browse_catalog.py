"""
Script para ejecutar una consulta al catálogo contra Supabase.

Uso:
    python -m vitrina.scripts.browse_catalog --kind idea --query delivery
    python -m vitrina.scripts.browse_catalog --risk low --min-income 20000 --sort income
    python -m vitrina.scripts.browse_catalog --personalize --user-id <uuid>
"""

import argparse
import asyncio
import sys
from typing import Optional

import structlog

from vitrina.catalog import QueryOrchestrator
from vitrina.config import ALL, EFFORT_LEVELS, RISK_LEVELS
from vitrina.database import ListingRepository, ProfileRepository, get_supabase_client
from vitrina.logging_setup import configure_logging
from vitrina.models import FacetSelection

configure_logging()

logger = structlog.get_logger()


async def browse(selection: FacetSelection, user_id: Optional[str] = None) -> int:
    """
    Ejecuta la consulta y muestra los resultados.

    Returns:
        Cantidad de listings encontrados, o -1 si falló la lectura
    """
    client = await get_supabase_client()
    orchestrator = QueryOrchestrator(ListingRepository(client), debounce_seconds=0)

    profile = None
    if user_id:
        profile = await ProfileRepository(client).get(user_id)
        if profile is None:
            logger.warning("Perfil no encontrado, se consulta sin personalizar", user_id=user_id)

    result = await orchestrator.run(selection, profile)
    if result.error is not None:
        logger.error("Consulta fallida", error=str(result.error))
        return -1

    for scored in result.listings:
        listing = scored.listing
        logger.info(
            listing.title,
            slug=listing.slug,
            featured=listing.is_featured,
            investment_min=listing.investment_min,
            income_min=listing.monthly_income_min,
            progress=scored.progress_to_goal,
        )
    return len(result.listings)


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(description="Consulta el catálogo de oportunidades")
    parser.add_argument("--kind", choices=["idea", "franchise"], default="idea")
    parser.add_argument("--query", default="", help="Texto a buscar en el título")
    parser.add_argument("--category", default=ALL)
    parser.add_argument("--risk", choices=[ALL, *RISK_LEVELS], default=ALL)
    parser.add_argument("--effort", choices=[ALL, *EFFORT_LEVELS], default=ALL)
    parser.add_argument("--min-income", type=float, default=0)
    parser.add_argument("--max-investment", type=float, default=None)
    parser.add_argument("--sort", choices=["newest", "popularity", "income"], default="newest")
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--personalize", action="store_true")
    parser.add_argument("--user-id", default=None, help="Usuario cuyo perfil se aplica")
    args = parser.parse_args()

    selection = FacetSelection(
        kind=args.kind,
        query=args.query,
        category=args.category,
        risk=args.risk,
        effort=args.effort,
        min_income=args.min_income,
        max_investment=args.max_investment,
        sort=args.sort,
        limit=args.limit,
        personalize=args.personalize,
    )

    try:
        total = asyncio.run(browse(selection, args.user_id))
        if total < 0:
            sys.exit(1)
        logger.info("Consulta completada", total=total)
        sys.exit(0)

    except KeyboardInterrupt:
        logger.info("Consulta interrumpida por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal en la consulta", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
