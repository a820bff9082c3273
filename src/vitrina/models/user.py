"""
Modelo de Usuario: perfil de personalización y actor de las operaciones.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """
    Perfil del usuario usado por el Match Scorer.

    Solo lo modifica su dueño o un administrador; el scorer lo lee.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(..., description="UUID del usuario")
    budget_bucket: Optional[str] = Field(
        None, description="Bucket de presupuesto: 'Under 5L', '5-10L', ..., '50L+'"
    )
    risk_tolerance: Optional[str] = Field(None, description="low, medium o high")
    preferred_sectors: list[str] = Field(default_factory=list)
    income_goal: float = Field(default=0.0, ge=0, description="Meta de ingreso mensual")

    is_moderator: bool = Field(default=False, description="Columna is_admin del perfil")
    is_banned: bool = Field(default=False)

    @classmethod
    def from_db_row(cls, row: dict) -> "UserProfile":
        data = dict(row)
        data["user_id"] = data.pop("id", None) or data.get("user_id")
        data["is_moderator"] = bool(data.pop("is_admin", data.get("is_moderator", False)))
        data["income_goal"] = data.get("income_goal") or 0.0
        data["preferred_sectors"] = data.get("preferred_sectors") or []
        return cls(**data)


class Actor(BaseModel):
    """
    Quién ejecuta una operación.

    Se pasa explícitamente a cada operación de escritura; el núcleo
    nunca lee el usuario actual de un estado global.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    is_moderator: bool = False

    def owns(self, author_id: Optional[str]) -> bool:
        return author_id is not None and author_id == self.user_id
