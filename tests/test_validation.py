from datetime import date

import pytest

from creditos.schemas.cliente_schema import ClienteDraft, ReferenciaDraft
from creditos.services.validation_service import (
    DPI_FORMAT_ERROR,
    EDAD_ERROR,
    EMAIL_FORMAT_ERROR,
    FECHA_FORMAT_ERROR,
    REFERENCIAS_ERROR,
    REQUIRED_FIELDS,
    calcular_edad,
    format_dpi,
    validate_cliente,
)

TODAY = date(2024, 6, 15)


def test_valid_draft_has_no_errors(valid_cliente, referencias):
    errors = validate_cliente(ClienteDraft(**valid_cliente), referencias, today=TODAY)
    assert errors == {}


@pytest.mark.parametrize("field", sorted(REQUIRED_FIELDS))
def test_missing_required_field_is_reported(valid_cliente, referencias, field):
    valid_cliente[field] = ""
    errors = validate_cliente(valid_cliente, referencias, today=TODAY)
    assert set(errors) == {field}
    assert errors[field] == REQUIRED_FIELDS[field]


def test_empty_draft_reports_every_required_field_and_referencias():
    errors = validate_cliente({}, [], today=TODAY)
    assert set(errors) == set(REQUIRED_FIELDS) | {"referencias"}


@pytest.mark.parametrize("dpi", ["123", "25456789001011", "2545 6789O 0101", "abcdefghijklm"])
def test_malformed_dpi(valid_cliente, referencias, dpi):
    valid_cliente["dpi"] = dpi
    errors = validate_cliente(valid_cliente, referencias, today=TODAY)
    assert errors == {"dpi": DPI_FORMAT_ERROR}


def test_dpi_spacing_is_ignored(valid_cliente, referencias):
    valid_cliente["dpi"] = " 2545678900101 "
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {}


@pytest.mark.parametrize("digits", ["", "1", "2545", "25456", "254567890", "2545678900101", "25456789001019999"])
def test_formatting_dpi_does_not_change_validation(valid_cliente, referencias, digits):
    raw = dict(valid_cliente, dpi=digits)
    formatted = dict(valid_cliente, dpi=format_dpi(digits))
    assert validate_cliente(formatted, referencias, today=TODAY) == validate_cliente(raw, referencias, today=TODAY)


def test_format_dpi_groups_digits():
    assert format_dpi("2545678900101") == "2545 67890 0101"
    assert format_dpi("254567") == "2545 67"
    assert format_dpi("25-45") == "2545"


def test_invalid_email(valid_cliente, referencias):
    valid_cliente["email"] = "maria@example"
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {"email": EMAIL_FORMAT_ERROR}


def test_email_is_optional(valid_cliente, referencias):
    valid_cliente["email"] = ""
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {}


def test_age_boundary(valid_cliente, referencias):
    valid_cliente["fecha_nacimiento"] = "2006-06-15"
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {}

    valid_cliente["fecha_nacimiento"] = "2006-06-16"
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {"fecha_nacimiento": EDAD_ERROR}


def test_unparseable_birth_date(valid_cliente, referencias):
    valid_cliente["fecha_nacimiento"] = "15/06/1990"
    assert validate_cliente(valid_cliente, referencias, today=TODAY) == {"fecha_nacimiento": FECHA_FORMAT_ERROR}


def test_calcular_edad_before_and_after_birthday():
    assert calcular_edad(date(2000, 12, 31), today=TODAY) == 23
    assert calcular_edad(date(2000, 1, 1), today=TODAY) == 24


def test_referencias_required_regardless_of_other_fields():
    assert validate_cliente({}, [], today=TODAY)["referencias"] == REFERENCIAS_ERROR


def test_only_complete_referencias_count(valid_cliente):
    referencias = [
        ReferenciaDraft(nombre_apellido="", parentesco="Padre", celular="5555-5555"),
        ReferenciaDraft(nombre_apellido="Ana López", parentesco="Madre", celular="5555-1234"),
    ]
    assert "referencias" not in validate_cliente(valid_cliente, referencias, today=TODAY)

    incompletas = [ReferenciaDraft(nombre_apellido="Ana López", parentesco="Madre", celular="")]
    assert validate_cliente(valid_cliente, incompletas, today=TODAY) == {"referencias": REFERENCIAS_ERROR}
