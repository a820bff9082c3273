"""
Modelos de datos del sistema.

- Listing: entrada del catálogo (idea o franquicia)
- UserProfile / Actor: perfil de personalización y quién opera
- FacetSelection: filtros efímeros de una consulta
- ModerationEvent / SavedListing: auditoría y guardados
"""

from vitrina.models.listing import (
    Listing,
    IdeaDetails,
    FranchiseDetails,
)
from vitrina.models.user import UserProfile, Actor
from vitrina.models.facets import FacetSelection
from vitrina.models.moderation import ModerationEvent, SavedListing

__all__ = [
    # Catálogo
    "Listing",
    "IdeaDetails",
    "FranchiseDetails",
    # Usuario
    "UserProfile",
    "Actor",
    # Consulta
    "FacetSelection",
    # Moderación y guardados
    "ModerationEvent",
    "SavedListing",
]
