import asyncio
import itertools
from collections import defaultdict

import pytest
from fastapi.testclient import TestClient

from creditos.api.intake_routes import get_intake_registry
from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import DocumentStoreError
from creditos.core.idempotency import IdempotencyStore, get_idempotency_store
from creditos.database.connection import get_document_store, get_gateway
from creditos.main import app
from creditos.schemas.user_schemas import SessionContext
from creditos.workers.cliente_intake_worker import IntakeRegistry


class FakeGateway:
    """In-memory stand-in for SupabaseGateway that records every call."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.inserts = []
        self.updates = []
        self.deletes = []
        self._failures = {}
        self._ids = itertools.count(1)

    def fail_on(self, table, exc, op="insert"):
        self._failures[(op, table)] = exc

    def seed(self, table, rows):
        for row in rows:
            self.tables[table].append(dict(row))

    def inserted(self, table):
        return [rows for t, rows in self.inserts if t == table]

    def _check(self, op, table):
        exc = self._failures.get((op, table))
        if exc is not None:
            raise exc

    async def insert(self, table, rows):
        self.inserts.append((table, [dict(r) for r in rows]))
        self._check("insert", table)
        created = []
        for row in rows:
            record = {"id": f"{table}-{next(self._ids)}", **row}
            self.tables[table].append(record)
            created.append(dict(record))
        return created

    async def select(self, table, columns="*", filters=None, order_by=None, descending=False, limit=None):
        self._check("select", table)
        rows = [
            dict(r) for r in self.tables[table]
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        # rows are kept in creation order
        if descending:
            rows.reverse()
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def update(self, table, record_id, patch):
        self.updates.append((table, record_id, dict(patch)))
        self._check("update", table)
        updated = []
        for row in self.tables[table]:
            if row.get("id") == record_id:
                row.update(patch)
                updated.append(dict(row))
        return updated

    async def delete(self, table, record_id):
        self.deletes.append((table, record_id))
        self._check("delete", table)
        self.tables[table] = [r for r in self.tables[table] if r.get("id") != record_id]

    async def count(self, table, filters=None):
        return len(await self.select(table, filters=filters))


class BlockingGateway(FakeGateway):
    """Hangs on the first insert into `table` until the caller cancels it."""

    def __init__(self, table):
        super().__init__()
        self.table = table
        self.reached = asyncio.Event()

    async def insert(self, table, rows):
        if table == self.table:
            self.reached.set()
            await asyncio.Event().wait()
        return await super().insert(table, rows)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeStorage:
    bucket = "expedientes"

    def __init__(self):
        self.objects = {}
        self.removed = []
        self.fail_upload = False
        self.fail_remove = False

    async def upload(self, key, data, content_type):
        if self.fail_upload:
            raise DocumentStoreError(key, "bucket unavailable")
        self.objects[key] = (data, content_type)
        return key

    def get_public_url(self, key):
        return f"https://demo.supabase.co/storage/v1/object/public/{self.bucket}/{key}"

    async def remove(self, keys):
        if self.fail_remove:
            raise DocumentStoreError(",".join(keys), "object locked")
        for key in keys:
            self.objects.pop(key, None)
            self.removed.append(key)


VALID_CLIENTE = {
    "celular": "5555-1234",
    "dpi": "2545 67890 0101",
    "primer_nombre": "María",
    "segundo_nombre": "José",
    "primer_apellido": "López",
    "segundo_apellido": "",
    "fecha_nacimiento": "1990-05-10",
    "estado_civil": "Casado",
    "email": "maria.lopez@example.com",
    "direccion_completa": "5a avenida 10-20 zona 1",
    "departamento": "Guatemala",
    "municipio": "Mixco",
    "pais": "Guatemala",
    "observacion_domicilio": "",
    "ingreso_mensual": "4500.50",
    "dependientes_economicos": "2",
    "actividad_economica": "Comercio",
    "observacion_actividad": "",
}

REFERENCIAS = [
    {"nombre_apellido": "Ana López", "parentesco": "Madre", "celular": "5555-1234"},
    {"nombre_apellido": "Luis Pérez", "parentesco": "Amigo/a", "celular": "5555-9876"},
]


@pytest.fixture
def valid_cliente():
    return dict(VALID_CLIENTE)


@pytest.fixture
def referencias():
    return [dict(r) for r in REFERENCIAS]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def blocking_gateway():
    return BlockingGateway


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def intake_registry(clock):
    return IntakeRegistry(clock=clock)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def session():
    return SessionContext(
        user_id="user-1",
        email="asesor@example.com",
        role="authenticated",
        access_token="test-token",
    )


@pytest.fixture
def client(gateway, storage, session, intake_registry):
    idempotency = IdempotencyStore()
    app.dependency_overrides = {}
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_document_store] = lambda: storage
    app.dependency_overrides[get_current_session] = lambda: session
    app.dependency_overrides[get_idempotency_store] = lambda: idempotency
    app.dependency_overrides[get_intake_registry] = lambda: intake_registry
    yield TestClient(app)
    app.dependency_overrides = {}
