from pqrs_api.repositories.memory_repo import MemoryPqrsRepository
from pqrs_api.schemas.pqrs import PqrsCreate
from pqrs_api.services.pqrs_service import PqrsService
from pqrs_api.utils.tracking_code import derive_code

SAMPLE_ID = "a1b2c3d4-e5f6-7890-abcd-ef0123456789"


def _intake(company, branch, **overrides):
    body = {
        "branch_id": branch["id"],
        "company_id": company["id"],
        "type": "Reclamo",
        "message": "Cobro doble en la factura",
        "first_name": "Luis",
        "last_name": "Gómez",
        "email": "luis@example.com",
        "phone": "3100000000",
    }
    body.update(overrides)
    return body


# =================================================
# POST /api/pqrs
# =================================================
def test_create_returns_derived_code(client, store, company, branch):
    res = client.post("/api/pqrs", json=_intake(company, branch))

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    data = body["data"]
    assert data["code"] == derive_code("Reclamo", data["id"])
    assert data["code"].startswith("RE")

    # never persisted
    assert "code" not in store.pqrs[0]


def test_create_validation_messages(client, company, branch):
    cases = [
        ({"branch_id": None}, "Sucursal requerida"),
        ({"company_id": ""}, "Empresa requerida"),
        ({"type": "Otro"}, "Tipo inválido"),
        ({"message": ""}, "El texto es obligatorio"),
        ({"first_name": 12}, "Primer nombre es obligatorio"),
        ({"last_name": None}, "Primer apellido es obligatorio"),
        ({"email": None}, "Correo electrónico es obligatorio"),
    ]
    for overrides, message in cases:
        res = client.post("/api/pqrs", json=_intake(company, branch, **overrides))
        assert res.status_code == 400, overrides
        assert res.json() == {"ok": False, "error": message}


# =================================================
# GET /api/pqrs
# =================================================
def test_list_adds_codes_newest_first(client, make_pqrs):
    older = make_pqrs(created_at="2026-03-01T10:00:00+00:00")
    newer = make_pqrs(type="Sugerencia", created_at="2026-03-02T10:00:00+00:00")

    res = client.get("/api/pqrs")

    body = res.json()
    assert body["count"] == 2
    assert [r["id"] for r in body["data"]] == [newer["id"], older["id"]]
    assert body["data"][0]["code"] == derive_code("Sugerencia", newer["id"])
    assert body["data"][0]["company"]["name"] == "Acme SAS"


def test_list_filters_and_paging(client, make_pqrs):
    for i in range(5):
        make_pqrs(created_at=f"2026-03-0{i + 1}T10:00:00+00:00")
    make_pqrs(type="Petición", message="Solicito copia del contrato")

    res = client.get("/api/pqrs", params={"type": "Queja", "page": 2, "pageSize": 2})
    body = res.json()
    assert body["count"] == 5
    assert len(body["data"]) == 2

    res = client.get("/api/pqrs", params={"search": "contrato"})
    assert [r["type"] for r in res.json()["data"]] == ["Petición"]


def test_search_matches_national_id(client, make_pqrs):
    match = make_pqrs(national_id="1020304050")
    make_pqrs(national_id="9999999999")

    body = client.get("/api/pqrs", params={"search": "1020304050"}).json()
    assert body["count"] == 1
    assert body["data"][0]["id"] == match["id"]


def test_search_matches_second_last_name(client, make_pqrs):
    match = make_pqrs(second_last_name="Zuluaga")
    make_pqrs(second_last_name="Restrepo")

    body = client.get("/api/pqrs", params={"search": "zulu"}).json()
    assert body["count"] == 1
    assert body["data"][0]["id"] == match["id"]


# =================================================
# GET /api/pqrs/by-code/{code}
# =================================================
def test_lookup_by_code(client, make_pqrs):
    make_pqrs(id=SAMPLE_ID)

    res = client.get("/api/pqrs/by-code/qu751049")

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["id"] == SAMPLE_ID
    assert data["code"] == "QU751049"
    assert data["company_name"] == "Acme SAS"
    assert data["branch_name"] == "Sede Norte"
    assert set(data) == {
        "id", "created_at", "type", "first_name", "last_name", "email", "phone",
        "message", "company_id", "branch_id", "company_name", "branch_name", "code",
    }


def test_created_record_can_be_looked_up(client, company, branch):
    created = client.post("/api/pqrs", json=_intake(company, branch)).json()["data"]

    res = client.get(f"/api/pqrs/by-code/{created['code']}")

    assert res.status_code == 200
    assert res.json()["data"]["id"] == created["id"]


def test_lookup_errors(client, make_pqrs):
    make_pqrs(id=SAMPLE_ID)

    res = client.get("/api/pqrs/by-code/Q")
    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": "Código inválido"}

    res = client.get("/api/pqrs/by-code/XX123456")
    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": "Prefijo de código desconocido"}

    res = client.get("/api/pqrs/by-code/QU000000")
    assert res.status_code == 404
    assert res.json() == {"ok": False, "error": "Código no encontrado"}


def test_lookup_detached_record_has_no_names(client, make_pqrs):
    make_pqrs(id=SAMPLE_ID, company_id=None, branch_id=None)

    data = client.get("/api/pqrs/by-code/QU751049").json()["data"]

    assert data["company_name"] is None
    assert data["branch_name"] is None
    assert data["company_id"] == ""


def test_store_fault_is_a_server_error(app, client):
    class BrokenRepo:
        def list_by_type(self, pqrs_type, limit):
            raise RuntimeError("connection reset")

    app.state.pqrs_repo = BrokenRepo()

    res = client.get("/api/pqrs/by-code/QU751049")

    assert res.status_code == 500
    assert res.json() == {"ok": False, "error": "connection reset"}


class CodeColumnRepo(MemoryPqrsRepository):
    def create_pqrs(self, record):
        stored = super().create_pqrs({**record, "id": SAMPLE_ID})
        return {**stored, "code": "RE000001"}


def test_create_always_derives_code_from_new_id(store, company, branch):
    service = PqrsService(CodeColumnRepo(store))

    data = service.create(PqrsCreate(**_intake(company, branch)))

    assert data["code"] == "RE751049"
