import base64

from fastapi.testclient import TestClient

from bench.stores import JsonStore
from bench_web.app import create_app

from conftest import bearer, login


def _payload(name="notes.txt", data=b"hello bench", bucket="course-files"):
    return {
        "bucket": bucket,
        "fileName": name,
        "fileData": base64.b64encode(data).decode("ascii"),
        "contentType": "text/plain",
    }


def test_upload_requires_super_admin(client):
    res = client.post("/upload", json=_payload())
    assert res.status_code == 401


def test_upload_stores_file_and_serves_it(client, settings):
    token = login(client)["token"]
    res = client.post("/upload", headers=bearer(token), json=_payload())
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["path"] == "course-files/notes.txt"
    assert body["publicUrl"] == "http://testserver/uploads/course-files/notes.txt"

    served = client.get("/uploads/course-files/notes.txt")
    assert served.status_code == 200
    assert served.content == b"hello bench"


def test_upload_never_overwrites(client):
    token = login(client)["token"]
    assert client.post("/upload", headers=bearer(token), json=_payload()).status_code == 200
    res = client.post("/upload", headers=bearer(token), json=_payload(data=b"other"))
    assert res.status_code == 400
    assert res.json()["error"] == "The resource already exists"


def test_upload_rejects_bad_input(client):
    token = login(client)["token"]

    bad_data = {**_payload(), "fileData": "%%%not-base64%%%"}
    res = client.post("/upload", headers=bearer(token), json=bad_data)
    assert res.status_code == 400

    res = client.post("/upload", headers=bearer(token), json=_payload(name="../escape.txt"))
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid file name"


def test_health_ok(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "store": True, "version": "1.0.0"}


class DownStore(JsonStore):
    def ping(self):
        raise RuntimeError("connection refused")


def test_health_degraded_when_store_unreachable(settings, clock, tmp_path):
    client = TestClient(create_app(settings, store=DownStore(tmp_path / "down"), clock=clock))
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "degraded"
    assert res.json()["store"] is False
