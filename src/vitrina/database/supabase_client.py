"""
Cliente de Supabase.

Singleton asíncrono para conexión a la base de datos.
"""

from typing import Optional

import structlog
from supabase import AsyncClient, acreate_client

from vitrina.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper del cliente asíncrono de Supabase con métodos de utilidad."""

    def __init__(self, client: AsyncClient):
        self._client = client

    @property
    def client(self) -> AsyncClient:
        """Acceso directo al cliente de Supabase."""
        return self._client

    def table(self, name: str):
        """Acceso a una tabla específica."""
        return self._client.table(name)

    @property
    def auth(self):
        """Acceso al módulo de autenticación."""
        return self._client.auth


_client: Optional[SupabaseClient] = None


async def get_supabase_client() -> SupabaseClient:
    """
    Obtiene el cliente de Supabase (singleton).

    Returns:
        SupabaseClient configurado

    Raises:
        ValueError: Si las credenciales no están configuradas
    """
    global _client
    if _client is not None:
        return _client

    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError(
            "SUPABASE_URL y SUPABASE_KEY son requeridos. "
            "Configura las variables de entorno."
        )

    # Usar service key si está disponible para operaciones admin
    key = settings.supabase_service_key or settings.supabase_key

    client = await acreate_client(settings.supabase_url, key)
    logger.info("Cliente de Supabase inicializado", url=settings.supabase_url)

    _client = SupabaseClient(client)
    return _client
