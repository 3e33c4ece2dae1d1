from creditos.core.exceptions import GatewayError, UniqueViolationError
from creditos.workers.cliente_intake_worker import (
    DUPLICATE_DPI_MESSAGE,
    INTAKE_DONE_TTL_SECONDS,
    INTAKE_IDLE_TTL_SECONDS,
    SUCCESS_MESSAGE,
)


def _payload(valid_cliente, referencias, **extra):
    return {"cliente": valid_cliente, "referencias": referencias, **extra}


def test_create_cliente(client, gateway, valid_cliente, referencias):
    resp = client.post("/clientes", json=_payload(valid_cliente, referencias))

    assert resp.status_code == 201
    data = resp.json()
    assert data["outcome"] == "created"
    assert data["state"] == "done"
    assert data["message"] == SUCCESS_MESSAGE
    assert data["close"] is True and data["refresh"] is True
    assert data["cliente"]["dpi"] == "2545678900101"
    assert len(gateway.inserted("referencias")[0]) == 2


def test_create_cliente_invalid(client, gateway, valid_cliente):
    valid_cliente["dpi"] = "1234"
    resp = client.post("/clientes", json=_payload(valid_cliente, []))

    assert resp.status_code == 422
    data = resp.json()
    assert data["outcome"] == "invalid"
    assert data["section"] == "personal"
    assert set(data["errors"]) == {"dpi", "referencias"}
    assert gateway.inserts == []


def test_create_cliente_duplicate_dpi(client, gateway, valid_cliente, referencias):
    gateway.fail_on("clientes", UniqueViolationError("clientes", "duplicate key value (dpi)", code="23505"))
    resp = client.post("/clientes", json=_payload(valid_cliente, referencias))

    assert resp.status_code == 409
    assert resp.json()["errors"] == {"dpi": DUPLICATE_DPI_MESSAGE}


def test_create_cliente_gateway_down(client, gateway, valid_cliente, referencias):
    gateway.fail_on("clientes", GatewayError("clientes", "service unavailable"))
    resp = client.post("/clientes", json=_payload(valid_cliente, referencias))

    assert resp.status_code == 502
    assert resp.json()["message"] == "service unavailable"


def test_create_cliente_replays_idempotency_key(client, gateway, valid_cliente, referencias):
    headers = {"Idempotency-Key": "form-123"}
    first = client.post("/clientes", json=_payload(valid_cliente, referencias), headers=headers)
    second = client.post("/clientes", json=_payload(valid_cliente, referencias), headers=headers)

    assert first.status_code == second.status_code == 201
    assert first.json() == second.json()
    assert len(gateway.inserted("clientes")) == 1


def test_list_clientes_with_search(client, gateway):
    gateway.seed("clientes", [
        {"id": "c1", "primer_nombre": "María", "primer_apellido": "López", "dpi": "2545678900101", "celular": "55551234"},
        {"id": "c2", "primer_nombre": "Carlos", "primer_apellido": "Ruiz", "dpi": "1111222223333", "celular": "44440000",
         "email": "carlos@example.com"},
    ])

    resp = client.get("/clientes")
    assert [c["id"] for c in resp.json()] == ["c2", "c1"]

    assert [c["id"] for c in client.get("/clientes", params={"search": "lópez"}).json()] == ["c1"]
    assert [c["id"] for c in client.get("/clientes", params={"search": "11112"}).json()] == ["c2"]
    assert [c["id"] for c in client.get("/clientes", params={"search": "CARLOS@"}).json()] == ["c2"]


def test_get_cliente_detalle(client, gateway):
    gateway.seed("clientes", [{
        "id": "c1", "primer_nombre": "María", "segundo_nombre": "José",
        "primer_apellido": "López", "segundo_apellido": None, "fecha_nacimiento": "1990-05-10",
    }])
    gateway.seed("referencias", [
        {"id": "r1", "cliente_id": "c1", "nombre_apellido": "Ana López"},
        {"id": "r2", "cliente_id": "c9", "nombre_apellido": "Otro"},
    ])

    resp = client.get("/clientes/c1")

    assert resp.status_code == 200
    data = resp.json()
    assert data["nombre_completo"] == "María José López"
    assert data["edad"] >= 36
    assert [r["id"] for r in data["referencias"]] == ["r1"]
    assert data["garantias"] == []


def test_get_missing_cliente(client):
    resp = client.get("/clientes/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Cliente no encontrado"


def test_delete_cliente(client, gateway):
    gateway.seed("clientes", [{"id": "c1", "primer_nombre": "María"}])
    resp = client.delete("/clientes/c1")
    assert resp.status_code == 204
    assert gateway.deletes == [("clientes", "c1")]


def test_catalogos(client):
    data = client.get("/clientes/catalogos").json()
    assert "Guatemala" in data["departamentos"]
    assert len(data["departamentos"]) == 22
    assert "Union Libre" in data["estados_civiles"]


def test_intake_session_flow(client, gateway, valid_cliente):
    opened = client.post("/clientes/intake")
    assert opened.status_code == 201
    intake_id = opened.json()["intake_id"]
    assert opened.json()["section"] == "personal"

    resp = client.patch(f"/clientes/intake/{intake_id}/draft", json=valid_cliente)
    assert resp.json()["cliente"]["primer_nombre"] == "María"

    resp = client.put(f"/clientes/intake/{intake_id}/section", json={"section": "referencias"})
    assert resp.json()["section"] == "referencias"

    client.post(f"/clientes/intake/{intake_id}/referencias")
    client.post(f"/clientes/intake/{intake_id}/referencias")
    for field, value in (("nombre_apellido", "Ana López"), ("parentesco", "Madre"), ("celular", "5555-1234")):
        client.patch(f"/clientes/intake/{intake_id}/referencias/0", json={"field": field, "value": value})
    resp = client.delete(f"/clientes/intake/{intake_id}/referencias/1")
    assert len(resp.json()["referencias"]) == 1

    submitted = client.post(f"/clientes/intake/{intake_id}/submit")
    assert submitted.status_code == 201
    assert submitted.json()["intake_id"] == intake_id

    snapshot = client.get(f"/clientes/intake/{intake_id}").json()
    assert snapshot["state"] == "done"
    assert snapshot["cliente_id"] == submitted.json()["cliente"]["id"]

    again = client.post(f"/clientes/intake/{intake_id}/submit")
    assert again.status_code == 409
    assert len(gateway.inserted("clientes")) == 1


def test_intake_invalid_submit_keeps_form_open(client):
    intake_id = client.post("/clientes/intake").json()["intake_id"]

    resp = client.post(f"/clientes/intake/{intake_id}/submit")

    assert resp.status_code == 422
    assert resp.json()["section"] == "personal"
    assert client.get(f"/clientes/intake/{intake_id}").json()["state"] == "editing"


def test_intake_rejects_unknown_field_and_collection(client):
    intake_id = client.post("/clientes/intake").json()["intake_id"]

    assert client.patch(f"/clientes/intake/{intake_id}/draft", json={"apodo": "x"}).status_code == 422
    assert client.post(f"/clientes/intake/{intake_id}/mascotas").status_code == 404
    client.post(f"/clientes/intake/{intake_id}/garantias")
    resp = client.patch(f"/clientes/intake/{intake_id}/garantias/0", json={"field": "color", "value": "rojo"})
    assert resp.status_code == 422


def test_intake_discard(client):
    intake_id = client.post("/clientes/intake").json()["intake_id"]
    assert client.delete(f"/clientes/intake/{intake_id}").status_code == 204
    assert client.get(f"/clientes/intake/{intake_id}").status_code == 404


def test_intake_errors_use_stable_code(client):
    intake_id = client.post("/clientes/intake").json()["intake_id"]

    resp = client.patch(f"/clientes/intake/{intake_id}/draft", json={"apodo": "x"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "http_error"
    assert "apodo" in resp.json()["error"]["message"]

    missing = client.get("/clientes/intake/no-such-form").json()["error"]
    assert missing["code"] == "http_error"
    assert missing["message"] == "Formulario no encontrado"


def test_submitted_intake_is_evicted_after_read_back(client, clock, intake_registry, valid_cliente, referencias):
    resp = client.post("/clientes/intake", json={"cliente": valid_cliente, "referencias": referencias})
    intake_id = resp.json()["intake_id"]
    assert client.post(f"/clientes/intake/{intake_id}/submit").status_code == 201

    assert client.get(f"/clientes/intake/{intake_id}").json()["state"] == "done"
    clock.advance(INTAKE_DONE_TTL_SECONDS)
    assert client.get(f"/clientes/intake/{intake_id}").status_code == 404
    assert len(intake_registry) == 0


def test_abandoned_intake_forms_expire(client, clock, intake_registry):
    for _ in range(3):
        client.post("/clientes/intake")
    assert len(intake_registry) == 3

    clock.advance(INTAKE_IDLE_TTL_SECONDS)
    client.post("/clientes/intake")
    assert len(intake_registry) == 1
