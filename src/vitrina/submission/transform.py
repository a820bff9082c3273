"""
Transformación de commit: borrador del wizard -> Listing.

Es una función pura del borrador; el sufijo aleatorio del slug viene de
un generador inyectable para poder reproducirla en tests.
"""

import math
import random
import re
import string
from typing import Any, Callable, Optional

from vitrina.config import get_settings
from vitrina.models import FranchiseDetails, IdeaDetails, Listing
from vitrina.models.listing import utc_now_iso

SuffixFactory = Callable[[], str]

_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

ENVELOPE_FIELDS = (
    "title",
    "category",
    "investment_min",
    "investment_max",
    "short_description",
    "image_url",
)

LOWERCASE_FIELDS = {"risk_level", "effort_level"}

NUMERIC_FIELDS = {
    "investment_min",
    "investment_max",
    "monthly_income_min",
    "monthly_income_max",
    "time_to_first_income_days",
    "success_rate_percentage",
    "roi_months_min",
    "roi_months_max",
    "expected_profit_min",
    "expected_profit_max",
    "space_required_sqft",
}


def slugify(title: str) -> str:
    """Minúsculas, tramos no alfanuméricos -> '-', sin guiones en los bordes."""
    return _SLUG_SEPARATOR_RE.sub("-", title.lower()).strip("-")


def make_suffix_factory(
    seed: Optional[int] = None, length: Optional[int] = None
) -> SuffixFactory:
    """Generador de sufijos [a-z0-9]; determinístico si se pasa seed."""
    rng = random.Random(seed)
    size = length or get_settings().slug_suffix_length

    def factory() -> str:
        return "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(size))

    return factory


def unique_slug(title: str, kind: str, suffix_factory: SuffixFactory) -> str:
    base = slugify(title) or kind
    return f"{base}-{suffix_factory()}"


def coerce_number(value: Any):
    """Texto numérico -> int o float. Vacío -> None."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    number = float(text)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"no es un número finito: {value!r}")
    return int(number) if number.is_integer() else number


def split_skills(value: Any) -> list[str]:
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = value
    else:
        parts = str(value).split(",")
    return [str(part).strip() for part in parts if str(part).strip()]


def normalize_fields(data: dict) -> dict:
    """Coerce de numéricos y skills sobre un dict de campos."""
    normalized = {}
    for key, value in data.items():
        if key in NUMERIC_FIELDS:
            normalized[key] = coerce_number(value)
        elif key == "skills_required":
            normalized[key] = split_skills(value)
        elif key in LOWERCASE_FIELDS and isinstance(value, str):
            normalized[key] = value.strip().lower()
        elif isinstance(value, str):
            normalized[key] = value.strip()
        else:
            normalized[key] = value
    return normalized


def build_listing(
    kind: str,
    draft: dict,
    author_id: str,
    suffix_factory: SuffixFactory,
    now: Optional[str] = None,
) -> Listing:
    """
    Arma el Listing a commitear.

    - slug derivado del título + sufijo aleatorio
    - numéricos coercionados, skills separadas por coma
    - is_approved=False y el autor estampado
    """
    data = normalize_fields(draft)
    details_model = IdeaDetails if kind == "idea" else FranchiseDetails
    details_fields = set(details_model.model_fields) - {"kind"}

    envelope = {k: data[k] for k in ENVELOPE_FIELDS if data.get(k) is not None}
    details = {k: v for k, v in data.items() if k in details_fields and v is not None}
    timestamp = now or utc_now_iso()

    return Listing(
        **envelope,
        slug=unique_slug(data["title"], kind, suffix_factory),
        author_id=author_id,
        is_approved=False,
        is_featured=False,
        created_at=timestamp,
        updated_at=timestamp,
        details=details_model(**details),
    )
