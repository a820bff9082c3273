"""
FacetSelection: selección de filtros que arma el consumidor en cada consulta.

No se persiste; se reconstruye por consulta.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from vitrina.config import ALL

SortKey = Literal["newest", "popularity", "income"]


class FacetSelection(BaseModel):
    """Value object inmutable con los filtros elegidos."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idea", "franchise"] = Field("idea", description="Tipo de listing a explorar")
    query: str = Field(default="", description="Texto libre (busca solo en el título)")
    category: str = Field(default=ALL)
    risk: str = Field(default=ALL)
    effort: str = Field(default=ALL)
    min_income: float = Field(default=0, ge=0, description="Piso de ingreso mensual (0 = sin piso)")
    max_investment: Optional[float] = Field(
        None, ge=0, description="Techo de inversión mínima (None = sin techo)"
    )
    personalize: bool = Field(default=False, description="Aplicar el perfil del usuario")
    sort: SortKey = Field(default="newest")
    limit: Optional[int] = Field(None, ge=1, description="Tamaño de página")
