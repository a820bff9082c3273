"""
Registros de moderación (auditoría) y entradas guardadas por usuario.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from vitrina.models.listing import utc_now_iso

ModerationAction = Literal[
    "approve", "reject", "revision", "feature", "unfeature", "ban", "delete"
]
TargetType = Literal["idea", "franchise", "user"]


class ModerationEvent(BaseModel):
    """
    Evento de moderación. Se agrega y nunca se modifica ni se borra.

    Esta clase se mapea a la tabla 'admin_logs'.
    """

    id: Optional[str] = Field(None, description="UUID generado por el store")
    action_type: ModerationAction
    actor_id: str = Field(..., description="Moderador que ejecutó la acción")
    target_type: TargetType
    target_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now_iso)

    def to_db_dict(self) -> dict:
        data = self.model_dump(exclude={"id", "actor_id"})
        data["admin_id"] = self.actor_id
        return data

    @classmethod
    def from_db_row(cls, row: dict) -> "ModerationEvent":
        data = dict(row)
        data["actor_id"] = data.pop("admin_id", None) or data.get("actor_id")
        data["details"] = data.get("details") or {}
        return cls(**data)


class SavedListing(BaseModel):
    """Listing guardado por un usuario, con su progreso."""

    user_id: str
    listing_id: str
    status: str = Field(default="interested")
    notes: str = Field(default="")
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    def to_db_dict(self) -> dict:
        return self.model_dump()
