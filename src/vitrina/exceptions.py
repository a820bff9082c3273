"""
Errores del motor de catálogo.

Ninguno es fatal: todos se recuperan en el punto de llamada.
"""

from typing import Optional


class VitrinaError(Exception):
    """Error base del paquete."""


class ValidationError(VitrinaError):
    """Un campo no pasa la validación (paso del wizard o commit)."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class AuthorizationError(VitrinaError):
    """El actor no es autor ni moderador para una operación de escritura."""


class AuthenticationRequiredError(AuthorizationError):
    """La operación requiere un usuario autenticado."""

    def __init__(self, message: str = "authentication required"):
        super().__init__(message)


class NotFoundError(VitrinaError):
    """El listing no existe o fue dado de baja."""


class StoreError(VitrinaError):
    """Falla del almacenamiento o del transporte."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class ConflictError(StoreError):
    """Clave duplicada en el almacenamiento."""


class LimitExceededError(VitrinaError):
    """Se alcanzó el tope de la selección (comparador)."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"limit reached ({limit})")


class InvalidTransitionError(VitrinaError):
    """Transición de moderación no permitida desde el estado actual."""
