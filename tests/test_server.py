import time

import pytest
from fastapi.testclient import TestClient

import server
from extractor import TextRecoveryError


@pytest.fixture
def client():
    return TestClient(server.app)


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_process_csv_clean_headers(client):
    resp = client.post(
        "/api/process-csv",
        json={"csv_content": "Nombre,Precio,Categoria\nPizza,1500,Pizzas"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["items"] == [
        {"name": "Pizza", "description": "", "price": 1500.0, "category": "Pizzas", "image_url": None}
    ]


def test_process_csv_scrape_dump(client, scrape_dump_csv):
    resp = client.post("/api/process-csv", json={"csv_content": scrape_dump_csv})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["count"] == len(body["items"]) == 4


def test_process_csv_with_explicit_delimiter(client):
    resp = client.post(
        "/api/process-csv",
        json={"csv_content": "Nombre;Precio\nFlan;\"1.234,50\"", "delimiter": ";"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["items"][0]["price"] == 1234.5


def test_process_csv_empty_content_is_rejected(client):
    resp = client.post("/api/process-csv", json={"csv_content": ""})
    assert resp.status_code == 400
    assert resp.json() == {"error": "El archivo CSV está vacío."}


def test_process_csv_missing_content_is_rejected(client):
    resp = client.post("/api/process-csv", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "CSV content is required"}


def test_process_image(client, monkeypatch):
    text = "PIZZAS\nMuzzarella $12.500\nNapolitana $13.900\n"
    monkeypatch.setattr(server, "recover_text", lambda data: text)

    resp = client.post("/api/process-image", files={"image": ("menu.png", b"fake-bytes", "image/png")})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert body["text_debug"] == text
    assert [i["category"] for i in body["items"]] == ["PIZZAS", "PIZZAS"]
    assert all(i["image_url"] is None for i in body["items"])


def test_process_image_without_file(client):
    resp = client.post("/api/process-image", data={"note": "sin imagen"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_process_image_with_blank_text(client, monkeypatch):
    monkeypatch.setattr(server, "recover_text", lambda data: "  \n\n")
    resp = client.post("/api/process-image", files={"image": ("menu.png", b"fake-bytes", "image/png")})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No se pudo leer texto en la imagen."}


def test_process_image_recovery_failure(client, monkeypatch):
    def fail(data):
        raise TextRecoveryError("No valid image file uploaded")

    monkeypatch.setattr(server, "recover_text", fail)
    resp = client.post("/api/process-image", files={"image": ("menu.png", b"fake-bytes", "image/png")})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No valid image file uploaded"}


def test_process_image_too_large(client, monkeypatch):
    monkeypatch.setattr(server, "MAX_UPLOAD_BYTES", 4)
    resp = client.post("/api/process-image", files={"image": ("menu.png", b"fake-bytes", "image/png")})
    assert resp.status_code == 400


def test_process_image_timeout(client, monkeypatch):
    def slow(data):
        time.sleep(0.5)
        return "Pizza $1.500"

    monkeypatch.setattr(server, "recover_text", slow)
    monkeypatch.setattr(server, "OCR_TIMEOUT_SECONDS", 0.05)
    resp = client.post("/api/process-image", files={"image": ("menu.png", b"fake-bytes", "image/png")})
    assert resp.status_code == 504
    assert resp.json() == {"error": "Text recovery timed out"}


def test_process_csv_wrong_type_uses_error_envelope(client):
    resp = client.post("/api/process-csv", json={"csv_content": 123})
    assert resp.status_code == 400
    body = resp.json()
    assert set(body) == {"error"}
    assert "csv_content" in body["error"]


def test_process_csv_non_json_body_uses_error_envelope(client):
    resp = client.post(
        "/api/process-csv",
        content=b"not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert set(resp.json()) == {"error"}
