import smtplib

import pytest

PQRS_ID = "p0000000-0000-4000-8000-000000000001"


def _payload(**overrides):
    body = {
        "to_email": "ana@example.com",
        "pqrs_id": PQRS_ID,
        "content": "Hola Ana,\nya procesamos su reclamo.",
        "responder_email": "soporte@acme.co",
    }
    body.update(overrides)
    return body


def _add_response(store, **fields):
    row = {
        "pqrs_id": PQRS_ID,
        "response_text": "Respuesta",
        "email_subject": "Respuesta a su PQRS",
        "status": "sent",
        "sent_by": "soporte@acme.co",
    }
    row.update(fields)
    row = store.stamp(row)
    store.responses.append(row)
    return row


# =================================================
# POST /api/pqrs/responses
# =================================================
def test_send_json_records_sent_row(client, store, mailer):
    res = client.post("/api/pqrs/responses", json=_payload(cc_emails="jefe@acme.co"))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["status"] == "sent"
    assert data["message"] == "Correo enviado y registrado exitosamente"

    msg = mailer.sent[0]
    assert msg["To"] == "ana@example.com"
    assert msg["Cc"] == "jefe@acme.co"
    assert msg["Subject"] == "Respuesta a su PQRS"
    assert data["messageId"] == msg["Message-ID"]
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "ya procesamos su reclamo." in html
    assert "<br>" in html

    row = store.responses[0]
    assert row["status"] == "sent"
    assert row["sent_by"] == "soporte@acme.co"
    assert row["id"] == data["id"]


def test_send_multipart_with_attachment(client, store, mailer):
    res = client.post(
        "/api/pqrs/responses",
        data=_payload(subject="Su caso"),
        files={"attachment": ("soporte.pdf", b"%PDF-1.4 demo", "application/pdf")},
    )

    assert res.status_code == 200
    msg = mailer.sent[0]
    assert msg["Subject"] == "Su caso"
    attachments = list(msg.iter_attachments())
    assert attachments[0].get_filename() == "soporte.pdf"
    assert attachments[0].get_content() == b"%PDF-1.4 demo"
    assert store.responses[0]["attachment_count"] == 1


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"content": ""}, "Faltan campos obligatorios: to_email, pqrs_id, content, responder_email"),
        ({"responder_email": None}, "Faltan campos obligatorios: to_email, pqrs_id, content, responder_email"),
        ({"to_email": "no-es-email"}, "Formato de email inválido"),
    ],
)
def test_send_validation(client, mailer, overrides, error):
    res = client.post("/api/pqrs/responses", json=_payload(**overrides))

    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": error}
    assert mailer.sent == []


def test_send_failure_records_failed_row(client, store, mailer):
    mailer.fail_with = smtplib.SMTPRecipientsRefused({"ana@example.com": (550, b"no such user")})

    res = client.post("/api/pqrs/responses", json=_payload())

    assert res.status_code == 500
    body = res.json()
    assert body["ok"] is False
    assert body["error"] == "Error al enviar el correo"
    assert body["data"]["status"] == "failed"
    assert store.responses[0]["status"] == "failed"
    assert "sent_at" not in store.responses[0]


def test_sent_but_not_recorded_still_ok(app, client, mailer):
    class ReadOnlyRepo:
        def insert_response(self, response):
            raise RuntimeError("insert refused")

    app.state.response_repo = ReadOnlyRepo()

    res = client.post("/api/pqrs/responses", json=_payload())

    assert res.status_code == 200
    assert "advertencia" in res.json()["data"]["message"]
    assert len(mailer.sent) == 1


# =================================================
# GET /api/pqrs/responses
# =================================================
def test_list_by_pqrs(client, store):
    _add_response(store)
    _add_response(store, pqrs_id="other")

    body = client.get("/api/pqrs/responses", params={"pqrsId": PQRS_ID}).json()

    assert body["ok"] is True
    assert len(body["data"]) == 1
    assert body["pagination"] == {"page": 1, "pageSize": 10, "total": 1, "totalPages": 1}


def test_answered_map(client, store):
    _add_response(store)
    _add_response(store, pqrs_id="p2")

    body = client.get("/api/pqrs/responses", params={"ids": f"{PQRS_ID}, p2,p3"}).json()

    assert body == {"ok": True, "data": {PQRS_ID: "Respondido", "p2": "Respondido"}}


# =================================================
# GET/DELETE /api/pqrs/responses/queries
# =================================================
def test_query_requires_pqrs_id(client):
    res = client.get("/api/pqrs/responses/queries")
    assert res.status_code == 400
    assert res.json()["error"] == "ID del PQRS es requerido"


def test_query_pagination_and_summary(client, store):
    for i in range(3):
        _add_response(store, created_at=f"2026-05-0{i + 1}T00:00:00+00:00", response_text="x" * 150)
    _add_response(store, status="failed", created_at="2026-05-04T00:00:00+00:00")

    body = client.get(
        "/api/pqrs/responses/queries",
        params={"pqrs_id": PQRS_ID, "limit": "2", "page": "1"},
    ).json()

    assert body["pagination"] == {
        "page": 1, "limit": 2, "total": 4, "totalPages": 2, "hasNext": True, "hasPrev": False,
    }
    assert body["summary"] == {"total": 4, "sent": 3, "failed": 1, "pending": 0}
    first, second = body["responses"]
    assert first["status"] == "failed"
    assert second["content_preview"] == "x" * 100 + "..."
    assert second["content_length"] == 150
    assert second["responder_email"] == "soporte@acme.co"
    assert second["has_attachments"] is False


def test_query_limit_is_clamped(client, store):
    _add_response(store)
    body = client.get("/api/pqrs/responses/queries", params={"pqrs_id": PQRS_ID, "limit": "500"}).json()
    assert body["pagination"]["limit"] == 50


def test_query_filters(client, store):
    _add_response(store, email_subject="Garantía", created_at="2026-05-01T00:00:00+00:00")
    _add_response(store, email_subject="Otro", status="failed", created_at="2026-05-10T00:00:00+00:00")

    body = client.get(
        "/api/pqrs/responses/queries",
        params={"pqrs_id": PQRS_ID, "search": "garant"},
    ).json()
    assert [r["subject"] for r in body["responses"]] == ["Garantía"]
    assert body["filters"]["search"] == "garant"

    body = client.get(
        "/api/pqrs/responses/queries",
        params={"pqrs_id": PQRS_ID, "date_from": "2026-05-05"},
    ).json()
    assert [r["subject"] for r in body["responses"]] == ["Otro"]


def test_query_is_cached_until_cleared(client, store):
    params = {"pqrs_id": PQRS_ID}
    _add_response(store)
    assert client.get("/api/pqrs/responses/queries", params=params).json()["pagination"]["total"] == 1

    # written behind the service's back: cached result still served
    _add_response(store)
    assert client.get("/api/pqrs/responses/queries", params=params).json()["pagination"]["total"] == 1

    res = client.delete("/api/pqrs/responses/queries", params={"action": "clear_cache"})
    assert res.json() == {"ok": True, "message": "Cache limpiado exitosamente"}
    assert client.get("/api/pqrs/responses/queries", params=params).json()["pagination"]["total"] == 2


def test_sending_invalidates_cached_queries(client, store):
    params = {"pqrs_id": PQRS_ID}
    assert client.get("/api/pqrs/responses/queries", params=params).json()["pagination"]["total"] == 0

    client.post("/api/pqrs/responses", json=_payload())

    assert client.get("/api/pqrs/responses/queries", params=params).json()["pagination"]["total"] == 1


def test_clear_cache_rejects_other_actions(client):
    res = client.delete("/api/pqrs/responses/queries", params={"action": "drop"})
    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": "Acción no válida"}
