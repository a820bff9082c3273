"""
Motor de consultas del catálogo.

Compila facetas en predicados, aplica la personalización del perfil
y orquesta las lecturas con debounce y "latest request wins".
"""

from vitrina.catalog.predicates import CompiledQuery, Predicate, SortSpec
from vitrina.catalog.facets import FacetCompiler
from vitrina.catalog.scoring import MatchScorer, ScoredListing
from vitrina.catalog.orchestrator import QueryOrchestrator, QueryResult

__all__ = [
    "CompiledQuery",
    "Predicate",
    "SortSpec",
    "FacetCompiler",
    "MatchScorer",
    "ScoredListing",
    "QueryOrchestrator",
    "QueryResult",
]
