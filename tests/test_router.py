import re

import asyncpg
from fastapi.testclient import TestClient

from main import create_app

from .conftest import FakeStore, make_row


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["uptime"] >= 0


def test_create_entry_returns_id(client, store):
    resp = client.post(
        "/api/entries",
        json={"client_name": "ACME", "pressure": 5, "results": {"a": 1}, "unknown": "ignored"},
    )
    assert resp.status_code == 201
    assert resp.json() == {"ok": True, "id": 1}
    assert store.calls[0][2][0] == "ACME"


def test_create_entry_store_failure_is_500(client, store):
    store.error = OSError("connection refused")
    resp = client.post("/api/entries", json={"client_name": "ACME"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to insert entry."}


def test_export_defaults_to_postgres(client):
    resp = client.get("/api/entries/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/sql")
    disposition = resp.headers["content-disposition"]
    assert re.fullmatch(r"attachment; filename=inventario_backup_postgres_\d{4}-\d{2}-\d{2}\.sql", disposition)
    assert resp.text.count("INSERT INTO entries (") == 3
    assert "::jsonb" in resp.text


def test_export_mysql(client):
    resp = client.get("/api/entries/export", params={"type": "MYSQL"})
    assert resp.status_code == 200
    assert "inventario_backup_mysql_" in resp.headers["content-disposition"]
    assert "ENGINE=InnoDB" in resp.text
    assert "::jsonb" not in resp.text


def test_export_unknown_type_falls_back_to_postgres(client):
    resp = client.get("/api/entries/export", params={"type": "sqlite"})
    assert resp.status_code == 200
    assert "inventario_backup_postgres_" in resp.headers["content-disposition"]


def test_export_preserves_fetch_order(client, store):
    store.rows = [make_row(3, client_name="third"), make_row(1, client_name="first")]
    text = client.get("/api/entries/export").text
    assert text.index("'third'") < text.index("'first'")


def test_export_empty_table_is_404(client, store):
    store.rows = []
    resp = client.get("/api/entries/export")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "No records to export."}


def test_export_bad_document_is_500(client, store):
    store.rows = [make_row(1, results={"bad": object()})]
    resp = client.get("/api/entries/export")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to generate export."}


def test_clear_entries(client, store):
    resp = client.delete("/api/entries")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert store.rows == []


def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setenv("MAX_BODY_BYTES", "16")
    resp = client.post("/api/entries", json={"client_name": "a name longer than sixteen bytes"})
    assert resp.status_code == 413


def test_static_files_with_index_fallback(tmp_path, monkeypatch):
    (tmp_path / "index.html").write_text("<p>home</p>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log(1);", encoding="utf-8")
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path))

    app = create_app()
    from core.db import get_pool

    app.dependency_overrides[get_pool] = lambda: FakeStore([make_row(1)])
    client = TestClient(app)

    assert client.get("/app.js").text == "console.log(1);"
    assert client.get("/some/client/route").text == "<p>home</p>"
    assert client.get("/api/entries/export").status_code == 200


def test_oversized_chunked_body_is_rejected(client, store, monkeypatch):
    monkeypatch.setenv("MAX_BODY_BYTES", "16")

    def body():
        yield b'{"client_name": '
        yield b'"a name longer than sixteen bytes"}'

    resp = client.post("/api/entries", content=body(), headers={"content-type": "application/json"})
    assert resp.status_code == 413
    assert resp.json() == {"detail": "Request body too large."}
    assert store.calls == []


def test_chunked_body_within_limit_is_accepted(client, store):
    def body():
        yield b'{"client_name": '
        yield b'"ACME"}'

    resp = client.post("/api/entries", content=body(), headers={"content-type": "application/json"})
    assert resp.status_code == 201
    assert store.calls[0][2][0] == "ACME"


def test_numeric_fields_reach_the_store_unvalidated(client, store):
    resp = client.post("/api/entries", json={"client_name": "ACME", "pressure": "abc", "min_barrels": 3.5})
    assert resp.status_code == 201
    args = store.calls[0][2]
    assert args[3] == "abc"
    assert args[5] == 3.5


def test_store_rejecting_argument_type_is_500(client, store):
    store.error = asyncpg.InterfaceError("invalid input for query argument $4: 'abc'")
    resp = client.post("/api/entries", json={"client_name": "ACME", "pressure": "abc"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to insert entry."}
