"""
Módulo de base de datos.

Define los contratos de almacenamiento y su implementación con Supabase.
"""

from vitrina.database.stores import (
    BaseListingStore,
    BaseBookmarkStore,
    BaseAuditLog,
    BaseProfileStore,
    BaseVoteStore,
    BaseIdentityProvider,
)
from vitrina.database.supabase_client import get_supabase_client, SupabaseClient
from vitrina.database.repositories import (
    ListingRepository,
    BookmarkRepository,
    AuditLogRepository,
    ProfileRepository,
    VoteRepository,
    SupabaseIdentityProvider,
)

__all__ = [
    "BaseListingStore",
    "BaseBookmarkStore",
    "BaseAuditLog",
    "BaseProfileStore",
    "BaseVoteStore",
    "BaseIdentityProvider",
    "get_supabase_client",
    "SupabaseClient",
    "ListingRepository",
    "BookmarkRepository",
    "AuditLogRepository",
    "ProfileRepository",
    "VoteRepository",
    "SupabaseIdentityProvider",
]
