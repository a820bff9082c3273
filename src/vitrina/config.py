"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Encontrar la raíz del proyecto (donde está el .env)
# config.py -> vitrina/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Catálogo
    query_debounce_seconds: float = Field(
        0.3, ge=0.0, description="Espera antes de emitir una consulta (ráfagas de tipeo)"
    )
    default_page_size: int = Field(
        50, ge=1, description="Cantidad máxima de listings por consulta"
    )

    # Comparador
    comparison_limit: int = Field(
        3, ge=1, description="Máximo de listings comparables a la vez"
    )

    # Alta de publicaciones
    slug_suffix_length: int = Field(
        4, ge=1, description="Largo del sufijo aleatorio del slug"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema

# Valor centinela de los filtros "todos"
ALL = "all"

LISTING_KINDS = ["idea", "franchise"]

RISK_LEVELS = ["low", "medium", "high"]

EFFORT_LEVELS = ["passive", "semi-passive", "active"]

# Bucket de presupuesto -> techo de inversión (INR). Orden ascendente.
# El último bucket no tiene techo real.
UNBOUNDED_CEILING = 10**12

BUDGET_CEILINGS = {
    "Under 5L": 500_000,
    "5-10L": 1_000_000,
    "10-25L": 2_500_000,
    "25-50L": 5_000_000,
    "50L+": UNBOUNDED_CEILING,
}

SAVED_STATUSES = ["interested", "researching", "started", "earning", "abandoned"]
