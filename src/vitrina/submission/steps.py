"""
Pasos del wizard de alta.

Cada paso es dueño de un subconjunto de campos y valida solo esos.
Flujo de idea: 2 pasos. Flujo de franquicia: 3 pasos.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from vitrina.config import EFFORT_LEVELS, RISK_LEVELS
from vitrina.submission.transform import NUMERIC_FIELDS, coerce_number

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class WizardStep:
    """
    Un paso del wizard.

    Attributes:
        name: Identificador del paso
        fields: Campos que el paso acepta
        required: Subconjunto obligatorio
        ranges: Pares (min, max) que deben cumplir min <= max
        choices: Campos con valores acotados
    """

    name: str
    fields: tuple[str, ...]
    required: tuple[str, ...] = ()
    ranges: tuple[tuple[str, str], ...] = ()
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def validate(self, draft: dict) -> Optional[ValidationIssue]:
        """Devuelve el primer problema encontrado, o None si el paso está ok."""
        for name in self.required:
            if _is_blank(draft.get(name)):
                return ValidationIssue(name, "es obligatorio")

        numbers = {}
        for name in self.fields:
            value = draft.get(name)
            if name not in NUMERIC_FIELDS or _is_blank(value):
                continue
            try:
                number = coerce_number(value)
            except ValueError:
                return ValidationIssue(name, "debe ser un número")
            if number < 0:
                return ValidationIssue(name, "no puede ser negativo")
            numbers[name] = number

        for low, high in self.ranges:
            if low in numbers and high in numbers and numbers[low] > numbers[high]:
                return ValidationIssue(high, f"debe ser mayor o igual a {low}")

        for name, allowed in self.choices.items():
            value = draft.get(name)
            if not _is_blank(value) and str(value).strip().lower() not in allowed:
                return ValidationIssue(name, f"debe ser uno de: {', '.join(allowed)}")

        if "success_rate_percentage" in numbers and numbers["success_rate_percentage"] > 100:
            return ValidationIssue("success_rate_percentage", "no puede superar 100")

        email = draft.get("contact_email")
        if "contact_email" in self.fields and not _is_blank(email):
            if not _EMAIL_RE.match(str(email).strip()):
                return ValidationIssue("contact_email", "email inválido")

        for name in ("website_url", "image_url"):
            value = draft.get(name)
            if name in self.fields and not _is_blank(value):
                if not _URL_RE.match(str(value).strip()):
                    return ValidationIssue(name, "URL inválida")

        return None


IDEA_STEPS = (
    WizardStep(
        name="basics",
        fields=("title", "category", "short_description", "effort_level", "risk_level"),
        required=("title", "category", "short_description"),
        choices={"effort_level": tuple(EFFORT_LEVELS), "risk_level": tuple(RISK_LEVELS)},
    ),
    WizardStep(
        name="economics",
        fields=(
            "investment_min",
            "investment_max",
            "monthly_income_min",
            "monthly_income_max",
            "time_to_first_income_days",
            "success_rate_percentage",
            "full_description",
            "reality_check",
            "skills_required",
            "image_url",
        ),
        required=("investment_min", "investment_max", "monthly_income_min", "monthly_income_max"),
        ranges=(
            ("investment_min", "investment_max"),
            ("monthly_income_min", "monthly_income_max"),
        ),
    ),
)

FRANCHISE_STEPS = (
    WizardStep(
        name="brand",
        fields=("title", "category", "short_description", "description"),
        required=("title", "category", "description"),
    ),
    WizardStep(
        name="financials",
        fields=(
            "investment_min",
            "investment_max",
            "roi_months_min",
            "roi_months_max",
            "expected_profit_min",
            "expected_profit_max",
            "space_required_sqft",
        ),
        required=("investment_min", "investment_max", "roi_months_min", "roi_months_max"),
        ranges=(
            ("investment_min", "investment_max"),
            ("roi_months_min", "roi_months_max"),
            ("expected_profit_min", "expected_profit_max"),
        ),
    ),
    WizardStep(
        name="contact",
        fields=("website_url", "contact_email", "contact_phone", "image_url"),
    ),
)

STEP_FLOWS = {
    "idea": IDEA_STEPS,
    "franchise": FRANCHISE_STEPS,
}
