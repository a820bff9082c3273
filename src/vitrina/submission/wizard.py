"""
Wizard de alta de listings.

Secuencia lineal de pasos validados que acumula un borrador y, al
completarse, lo normaliza y lo commitea como listing pendiente.
"""

from typing import TYPE_CHECKING, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from vitrina.exceptions import (
    AuthenticationRequiredError,
    AuthorizationError,
    ValidationError,
)
from vitrina.models import Actor, Listing, UserProfile
from vitrina.submission.steps import STEP_FLOWS, WizardStep
from vitrina.submission.transform import SuffixFactory, build_listing, make_suffix_factory

if TYPE_CHECKING:
    from vitrina.moderation.service import ModerationService

logger = structlog.get_logger()


class SubmissionWizard:
    """
    Maneja el flujo de alta.

    Flujo de idea:
    1. Datos básicos (título, categoría, resumen, esfuerzo, riesgo)
    2. Economía (inversión, ingresos, descripción, skills)

    Flujo de franquicia:
    1. Marca
    2. Números (inversión, ROI, ganancia, superficie)
    3. Contacto

    Avanzar exige que el paso actual valide; retroceder nunca valida.
    """

    def __init__(
        self,
        kind: str,
        moderation: "ModerationService",
        suffix_factory: Optional[SuffixFactory] = None,
    ):
        if kind not in STEP_FLOWS:
            raise ValueError(f"Flujo no implementado para: {kind}")
        self.kind = kind
        self.steps: tuple[WizardStep, ...] = STEP_FLOWS[kind]
        self.moderation = moderation
        self.suffix_factory = suffix_factory or make_suffix_factory()
        self.draft: dict = {}
        self.index = 0
        self.committed: Optional[Listing] = None

    @property
    def current_step(self) -> WizardStep:
        return self.steps[self.index]

    @property
    def step_number(self) -> int:
        """Paso actual, contando desde 1."""
        return self.index + 1

    @property
    def is_terminal(self) -> bool:
        return self.index == len(self.steps) - 1

    def update(self, **fields) -> dict:
        """Carga campos en el borrador (solo los que algún paso acepta)."""
        known = {name for step in self.steps for name in step.fields}
        for name in fields:
            if name not in known:
                raise ValidationError(name, "campo desconocido para este flujo")
        self.draft.update(fields)
        return self.draft

    def _raise_if_invalid(self, step: WizardStep) -> None:
        issue = step.validate(self.draft)
        if issue is not None:
            logger.debug("Paso inválido", step=step.name, field=issue.field, reason=issue.reason)
            raise ValidationError(issue.field, issue.reason)

    def next(self) -> WizardStep:
        """Avanza un paso si el actual valida."""
        self._raise_if_invalid(self.current_step)
        if not self.is_terminal:
            self.index += 1
        return self.current_step

    def back(self) -> WizardStep:
        """Retrocede un paso. Siempre permitido."""
        if self.index > 0:
            self.index -= 1
        return self.current_step

    async def submit(
        self,
        actor: Optional[Actor],
        profile: Optional[UserProfile] = None,
    ) -> Optional[Listing]:
        """
        Envío final.

        Desde un paso intermedio se convierte en un intento de avanzar
        (valida el paso y, si está ok, avanza) y no commitea: devuelve None.

        Raises:
            AuthenticationRequiredError: sin usuario
            AuthorizationError: autor baneado
            ValidationError: algún paso no valida
        """
        if actor is None:
            raise AuthenticationRequiredError()
        if profile is not None and profile.is_banned:
            raise AuthorizationError("el usuario está suspendido")

        if self.committed is not None:
            return self.committed

        if not self.is_terminal:
            self.next()
            return None

        for step in self.steps:
            self._raise_if_invalid(step)

        try:
            listing = build_listing(self.kind, self.draft, actor.user_id, self.suffix_factory)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "listing"
            raise ValidationError(field, first.get("msg", "valor inválido")) from None

        self.committed = await self.moderation.submit(listing)
        logger.info(
            "Wizard completado",
            kind=self.kind,
            slug=self.committed.slug,
            author_id=actor.user_id,
        )
        return self.committed
