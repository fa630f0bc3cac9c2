import pytest
from fastapi.testclient import TestClient

from landval.errors import StorageError, StorageTimeout
from landval.main import create_app
from landval.services import resolver


@pytest.mark.parametrize("prefix", ["", "/api"])
def test_kharsa_value_exact_and_range(client, prefix):
    r = client.get(f"{prefix}/get-kharsa-value", params={"khasraNumber": "7", "location": "Alpha"})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] is True
    assert [row["id"] for row in body["data"]] == [1]
    assert body["data"][0]["khasra_number"] == "7"
    assert body["data"][0]["is_range"] is False

    r = client.get(f"{prefix}/get-kharsa-value", params={"khasraNumber": "55", "location": "Alpha"})
    assert r.status_code == 200
    row = r.json()["data"][0]
    assert row["is_range"] is True
    assert (row["range_start"], row["range_end"]) == (50, 60)


def test_kharsa_value_no_match(client):
    r = client.get("/api/get-kharsa-value", params={"khasraNumber": "8", "location": "Alpha"})
    assert r.status_code == 200
    assert r.json() == {"message": True, "data": []}


def test_kharsa_value_unknown_mouza(client):
    r = client.get("/api/get-kharsa-value", params={"khasraNumber": "7", "location": "Beta"})
    assert r.status_code == 404
    assert r.json() == {"message": "Mouza not found"}


def test_kharsa_value_mouza_without_classifications(client):
    r = client.get("/api/get-kharsa-value", params={"khasraNumber": "7", "location": "Gamma"})
    assert r.status_code == 404
    assert r.json() == {"message": "Classification not found for this mouza"}


def test_kharsa_value_path_form_keeps_slash(client):
    r = client.get("/api/get-kharsa-value/Alpha/45/2")
    assert r.status_code == 200
    assert [row["id"] for row in r.json()["data"]] == [3]


def test_kharsa_value_missing_params(client):
    r = client.get("/api/get-kharsa-value", params={"location": "Alpha"})
    assert r.status_code == 500
    assert r.json() == {"message": "khasraNumber and location are required"}


@pytest.mark.parametrize("error", [StorageError, StorageTimeout])
def test_kharsa_value_storage_failure_is_opaque(client, monkeypatch, error):
    async def broken(db, parcel_number, region_name):
        raise error("connection refused by 10.0.0.5")

    monkeypatch.setattr(resolver, "resolve", broken)

    r = client.get("/api/get-kharsa-value", params={"khasraNumber": "7", "location": "Alpha"})
    assert r.status_code == 500
    assert r.json() == {"message": "Error fetching khasra value"}


def test_kharsa_value_oversized_number(client):
    r = client.get("/api/get-kharsa-value", params={"khasraNumber": "9" * 30, "location": "Alpha"})
    assert r.status_code == 200
    assert r.json() == {"message": True, "data": []}


def test_unexpected_error_keeps_json_envelope(settings, monkeypatch):
    async def broken(db, parcel_number, region_name):
        raise RuntimeError("boom")

    monkeypatch.setattr(resolver, "resolve", broken)

    with TestClient(create_app(settings), raise_server_exceptions=False) as client:
        r = client.get("/api/get-kharsa-value", params={"khasraNumber": "7", "location": "Alpha"})
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
