import re
from typing import Any, Dict, Iterable, List, Optional

from creditos.schemas.cliente_schema import (
    ClienteDraft,
    ReferenciaDraft,
    BeneficiarioDraft,
    GarantiaDraft,
)
from creditos.services.validation_service import strip_dpi

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

OPTIONAL_TEXT_FIELDS = (
    "segundo_nombre",
    "segundo_apellido",
    "email",
    "observacion_domicilio",
    "actividad_economica",
    "observacion_actividad",
)

REQUIRED_TEXT_FIELDS = (
    "celular",
    "primer_nombre",
    "primer_apellido",
    "fecha_nacimiento",
    "direccion_completa",
    "departamento",
    "municipio",
)


def blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def to_float(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any, default: int = 0) -> int:
    """Leading integer of the input ("2.5" -> 2, "3 hijos" -> 3); `default` when there is none or it is zero."""
    if value is None:
        return default
    match = LEADING_INT_PATTERN.match(str(value))
    if not match:
        return default
    return int(match.group(1)) or default


def normalize_cliente(draft: ClienteDraft) -> Dict[str, Any]:
    """Convert the typed-in draft to the row stored in `clientes`.

    Blank optional text becomes None, numeric inputs become numbers (or None),
    and the DPI loses its display spacing.
    """
    row: Dict[str, Any] = {field: str(getattr(draft, field)).strip() for field in REQUIRED_TEXT_FIELDS}
    row["dpi"] = strip_dpi(draft.dpi)
    row["estado_civil"] = draft.estado_civil.value
    row["pais"] = draft.pais.strip() or "Guatemala"
    for field in OPTIONAL_TEXT_FIELDS:
        row[field] = blank_to_none(getattr(draft, field))
    row["ingreso_mensual"] = to_float(draft.ingreso_mensual)
    row["dependientes_economicos"] = to_int(draft.dependientes_economicos)
    return row


def referencia_rows(referencias: Iterable[ReferenciaDraft], cliente_id: str) -> List[Dict[str, Any]]:
    return [
        {
            "cliente_id": cliente_id,
            "nombre_apellido": r.nombre_apellido.strip(),
            "parentesco": r.parentesco.strip(),
            "celular": r.celular.strip(),
        }
        for r in referencias
        if r.is_complete()
    ]


def beneficiario_rows(beneficiarios: Iterable[BeneficiarioDraft], cliente_id: str) -> List[Dict[str, Any]]:
    return [
        {
            "cliente_id": cliente_id,
            "nombre_apellido": b.nombre_apellido.strip(),
            "parentesco": b.parentesco.strip(),
            "celular": blank_to_none(b.celular),
        }
        for b in beneficiarios
        if b.is_complete()
    ]


def garantia_rows(garantias: Iterable[GarantiaDraft], cliente_id: str) -> List[Dict[str, Any]]:
    rows = []
    for g in garantias:
        if not g.is_complete():
            continue
        # zero or empty estimates are stored as unknown
        valor = to_float(g.valor_estimado)
        rows.append({
            "cliente_id": cliente_id,
            "nombre": g.nombre.strip(),
            "marca": blank_to_none(g.marca),
            "tiempo": blank_to_none(g.tiempo),
            "descripcion": blank_to_none(g.descripcion),
            "valor_estimado": valor or None,
        })
    return rows


def nombre_completo(cliente: Dict[str, Any]) -> str:
    partes = [
        cliente.get("primer_nombre"),
        cliente.get("segundo_nombre"),
        cliente.get("primer_apellido"),
        cliente.get("segundo_apellido"),
    ]
    return " ".join(p.strip() for p in partes if p and p.strip())
