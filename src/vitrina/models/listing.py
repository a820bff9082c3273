"""
Modelo Listing.

Un listing es una entrada del catálogo: una idea de ingreso o una franquicia.
Se modela como un sobre común más un payload discriminado por `kind`.
En el almacenamiento vive como una fila plana de la tabla `listings`.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

RiskLevel = Literal["low", "medium", "high"]
EffortLevel = Literal["passive", "semi-passive", "active"]
ListingKind = Literal["idea", "franchise"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class IdeaDetails(BaseModel):
    """Campos propios de una idea de ingreso."""

    kind: Literal["idea"] = "idea"

    monthly_income_min: Optional[float] = Field(None, ge=0, description="Ingreso mensual mínimo")
    monthly_income_max: Optional[float] = Field(None, ge=0, description="Ingreso mensual máximo")
    risk_level: RiskLevel = Field("medium", description="Nivel de riesgo")
    effort_level: EffortLevel = Field("semi-passive", description="Nivel de esfuerzo")

    full_description: str = Field(default="", description="Descripción completa")
    reality_check: str = Field(default="", description="Notas de 'baño de realidad'")
    skills_required: list[str] = Field(
        default_factory=list, description="Tags de habilidades requeridas"
    )
    time_to_first_income_days: Optional[int] = Field(
        None, ge=0, description="Días hasta el primer ingreso"
    )
    success_rate_percentage: Optional[float] = Field(
        None, ge=0, le=100, description="Tasa de éxito estimada"
    )

    @model_validator(mode="after")
    def _check_income_range(self):
        if (
            self.monthly_income_min is not None
            and self.monthly_income_max is not None
            and self.monthly_income_min > self.monthly_income_max
        ):
            raise ValueError("monthly_income_min no puede superar monthly_income_max")
        return self


class FranchiseDetails(BaseModel):
    """Campos propios de una franquicia."""

    kind: Literal["franchise"] = "franchise"

    roi_months_min: Optional[int] = Field(None, ge=0, description="Meses de retorno mínimo")
    roi_months_max: Optional[int] = Field(None, ge=0, description="Meses de retorno máximo")
    expected_profit_min: Optional[float] = Field(None, ge=0)
    expected_profit_max: Optional[float] = Field(None, ge=0)
    space_required_sqft: Optional[int] = Field(None, ge=0, description="Superficie requerida")

    description: str = Field(default="", description="Descripción de la marca")
    website_url: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @model_validator(mode="after")
    def _check_roi_range(self):
        if (
            self.roi_months_min is not None
            and self.roi_months_max is not None
            and self.roi_months_min > self.roi_months_max
        ):
            raise ValueError("roi_months_min no puede superar roi_months_max")
        return self


ListingDetails = Annotated[
    Union[IdeaDetails, FranchiseDetails], Field(discriminator="kind")
]


class Listing(BaseModel):
    """
    Entrada del catálogo.

    Invariantes:
    - slug único e inmutable luego de la creación
    - investment_min <= investment_max cuando ambos están presentes
    - is_approved=False o deleted_at seteado => invisible en consultas públicas
    """

    model_config = ConfigDict(from_attributes=True)

    # Identificadores
    id: Optional[str] = Field(None, description="UUID generado por el store")
    title: str = Field(..., min_length=1, description="Título / nombre de la marca")
    slug: str = Field(..., min_length=1, description="Slug url-safe, único")
    category: Optional[str] = Field(None, description="Referencia a la categoría")
    author_id: Optional[str] = Field(None, description="FK al autor")

    # Datos económicos comunes
    investment_min: Optional[float] = Field(None, ge=0, description="Inversión mínima")
    investment_max: Optional[float] = Field(None, ge=0, description="Inversión máxima")

    short_description: str = Field(default="", description="Resumen corto")
    image_url: Optional[str] = Field(None, description="Referencia a la imagen principal")

    # Popularidad
    upvotes_count: int = Field(default=0, ge=0)

    # Ciclo de vida
    is_approved: bool = Field(default=False)
    is_featured: bool = Field(default=False)
    deleted_at: Optional[str] = Field(None, description="Timestamp de baja lógica")
    admin_feedback: Optional[str] = Field(None, description="Pedido de cambios del moderador")

    # Metadatos
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    details: ListingDetails = Field(default_factory=IdeaDetails)

    @computed_field
    @property
    def kind(self) -> ListingKind:
        return self.details.kind

    @model_validator(mode="after")
    def _check_investment_range(self):
        if (
            self.investment_min is not None
            and self.investment_max is not None
            and self.investment_min > self.investment_max
        ):
            raise ValueError("investment_min no puede superar investment_max")
        return self

    @property
    def is_publicly_visible(self) -> bool:
        return self.is_approved and self.deleted_at is None

    @property
    def monthly_income_min(self) -> Optional[float]:
        if isinstance(self.details, IdeaDetails):
            return self.details.monthly_income_min
        return None

    def to_db_dict(self) -> dict:
        """Aplana sobre + payload en una fila para la tabla `listings`."""
        data = self.model_dump(exclude={"id", "details"})
        data.update(self.details.model_dump(exclude={"kind"}))
        return data

    @classmethod
    def from_db_row(cls, row: dict) -> "Listing":
        """Reconstruye la variante a partir de una fila plana."""
        envelope_keys = set(cls.model_fields) - {"details"}
        envelope = {k: v for k, v in row.items() if k in envelope_keys}
        # La tabla es compartida: las columnas del otro kind llegan en NULL
        details = {
            k: v for k, v in row.items() if k not in envelope_keys and v is not None
        }
        details.setdefault("kind", "idea")
        return cls(**envelope, details=details)
