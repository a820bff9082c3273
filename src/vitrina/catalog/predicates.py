"""
Predicados y claves de orden del catálogo.

Cada predicado es independiente: se puede traducir a un query builder de
PostgREST (`apply`) o evaluar en memoria sobre una fila (`matches`).
El resultado no depende del orden en que se apliquen.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Literal, Optional

Operator = Literal["eq", "gte", "lte", "ilike", "is_null"]


def escape_like(text: str) -> str:
    """Escapa los comodines de LIKE para que el texto se busque literal."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Predicate:
    """Condición sobre una columna de la tabla `listings`."""

    column: str
    op: Operator
    value: Any = None

    def apply(self, query):
        """Agrega el filtro a un query builder de Supabase."""
        if self.op == "eq":
            return query.eq(self.column, self.value)
        if self.op == "gte":
            return query.gte(self.column, self.value)
        if self.op == "lte":
            return query.lte(self.column, self.value)
        if self.op == "ilike":
            return query.ilike(self.column, f"%{escape_like(str(self.value))}%")
        if self.op == "is_null":
            return query.is_(self.column, "null")
        raise ValueError(f"Operador no soportado: {self.op}")

    def matches(self, row: dict) -> bool:
        """Evalúa el predicado sobre una fila (semántica SQL para NULL)."""
        current = row.get(self.column)
        if self.op == "is_null":
            return current is None
        if current is None:
            return False
        if self.op == "eq":
            return current == self.value
        if self.op == "gte":
            return current >= self.value
        if self.op == "lte":
            return current <= self.value
        if self.op == "ilike":
            return str(self.value).lower() in str(current).lower()
        raise ValueError(f"Operador no soportado: {self.op}")


@dataclass(frozen=True)
class SortSpec:
    """Clave de orden. Los NULL van siempre al final."""

    column: str
    descending: bool = True

    def apply(self, query):
        return query.order(self.column, desc=self.descending, nullsfirst=False)


# Predicados obligatorios de visibilidad pública
APPROVED_ONLY = Predicate("is_approved", "eq", True)
NOT_DELETED = Predicate("deleted_at", "is_null")
VISIBILITY_PREDICATES = (APPROVED_ONLY, NOT_DELETED)

FEATURED_FIRST = SortSpec("is_featured", descending=True)


@dataclass(frozen=True)
class CompiledQuery:
    """Salida del compilador: predicados + orden + límite."""

    predicates: tuple[Predicate, ...]
    sort: tuple[SortSpec, ...] = field(default_factory=tuple)
    limit: Optional[int] = None

    def with_predicates(self, predicates) -> "CompiledQuery":
        return replace(self, predicates=tuple(predicates))

    def matches(self, row: dict) -> bool:
        return all(p.matches(row) for p in self.predicates)
