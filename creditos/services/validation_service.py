"""
Field-level validation rules for the client intake form.

Every rule runs on every call; violations are collected into a mapping of
field name to message rather than raised. Rules that target the same field
overwrite each other in evaluation order, so the last violated rule wins.
"""

import re
import logging
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

MAYORIA_DE_EDAD = 18

DPI_PATTERN = re.compile(r"^\d{13}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = {
    "primer_nombre": "El primer nombre es requerido",
    "primer_apellido": "El primer apellido es requerido",
    "celular": "El celular es requerido",
    "dpi": "El DPI es requerido",
    "fecha_nacimiento": "La fecha de nacimiento es requerida",
    "direccion_completa": "La dirección es requerida",
    "departamento": "El departamento es requerido",
    "municipio": "El municipio es requerido",
}

DPI_FORMAT_ERROR = "El DPI debe tener 13 dígitos"
EMAIL_FORMAT_ERROR = "Email inválido"
FECHA_FORMAT_ERROR = "La fecha de nacimiento no es válida"
EDAD_ERROR = "El cliente debe ser mayor de 18 años"
REFERENCIAS_ERROR = "Debe agregar al menos una referencia"


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if record is None:
        return {}
    if hasattr(record, "model_dump"):
        return record.model_dump()
    return dict(record)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = value.value
    return str(value)


def strip_dpi(value: Any) -> str:
    return re.sub(r"\s", "", _text(value))


def format_dpi(value: Any) -> str:
    """Group DPI digits as "2545 67890 0101", dropping anything that is not a digit."""
    digits = re.sub(r"\D", "", _text(value))
    if len(digits) > 9:
        return f"{digits[:4]} {digits[4:9]} {digits[9:]}"
    if len(digits) > 4:
        return f"{digits[:4]} {digits[4:]}"
    return digits


def parse_fecha(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(_text(value).strip()[:10])
    except ValueError:
        return None


def calcular_edad(fecha_nacimiento: date, today: Optional[date] = None) -> int:
    """Age in whole years, one less while this year's birthday is still ahead."""
    today = today or date.today()
    edad = today.year - fecha_nacimiento.year
    if (today.month, today.day) < (fecha_nacimiento.month, fecha_nacimiento.day):
        edad -= 1
    return edad


def is_referencia_complete(referencia: Any) -> bool:
    data = _as_mapping(referencia)
    return bool(_text(data.get("nombre_apellido")) and _text(data.get("parentesco")) and _text(data.get("celular")))


def validate_cliente(draft: Any, referencias: Iterable[Any] = (), today: Optional[date] = None) -> Dict[str, str]:
    """Validate a client draft and its references.

    Args:
        draft: a ClienteDraft or any mapping with the same keys
        referencias: the reference records attached to the draft
        today: the reference date for the age rule (defaults to today)

    Returns:
        Dict[str, str]: field name -> message; empty when the draft is valid
    """
    data = _as_mapping(draft)
    errors: Dict[str, str] = {}

    for field, message in REQUIRED_FIELDS.items():
        if not _text(data.get(field)):
            errors[field] = message

    dpi = _text(data.get("dpi"))
    if dpi and not DPI_PATTERN.match(strip_dpi(dpi)):
        errors["dpi"] = DPI_FORMAT_ERROR

    email = _text(data.get("email"))
    if email and not EMAIL_PATTERN.match(email):
        errors["email"] = EMAIL_FORMAT_ERROR

    raw_fecha = data.get("fecha_nacimiento")
    if _text(raw_fecha):
        fecha = parse_fecha(raw_fecha)
        if fecha is None:
            errors["fecha_nacimiento"] = FECHA_FORMAT_ERROR
        elif calcular_edad(fecha, today) < MAYORIA_DE_EDAD:
            errors["fecha_nacimiento"] = EDAD_ERROR

    completas = [r for r in (referencias or []) if is_referencia_complete(r)]
    if not completas:
        errors["referencias"] = REFERENCIAS_ERROR

    if errors:
        logger.debug("Client draft rejected on fields: %s", sorted(errors))
    return errors
