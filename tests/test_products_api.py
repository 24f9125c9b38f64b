import io
import os
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from wlstore.data.database import SessionLocal
from wlstore.services.product_service import ProductService
from wlstore.utils.settings import UPLOAD_DIR


def new_product(**overrides):
    payload = {
        "code": "P100",
        "name": "Webcam",
        "price": "49.99",
        "description": "HD webcam",
        "stock": 7,
        "rating": 4.2,
    }
    payload.update(overrides)
    return payload


def test_list_and_get(client, products):
    resp = client.get("/api/products/")
    assert resp.status_code == 200
    assert [p["code"] for p in resp.json()] == ["P001", "P002", "P003"]

    resp = client.get("/api/products/", params={"q": "mou"})
    assert [p["code"] for p in resp.json()] == ["P002"]

    resp = client.get("/api/products/P002")
    assert resp.status_code == 200
    assert Decimal(resp.json()["price"]) == Decimal("25.50")


def test_get_missing_product(client):
    resp = client.get("/api/products/NOPE")
    assert resp.status_code == 404
    assert "NOPE" in resp.json()["detail"]


def test_create_product(client, admin_headers):
    resp = client.post("/api/products/", json=new_product(), headers=admin_headers)

    assert resp.status_code == 201
    body = resp.json()
    assert body["code"] == "P100"
    assert Decimal(body["price"]) == Decimal("49.99")
    assert body["stock"] == 7


def test_create_duplicate_code_conflicts(client, admin_headers):
    assert client.post("/api/products/", json=new_product(), headers=admin_headers).status_code == 201

    resp = client.post("/api/products/", json=new_product(name="Other"), headers=admin_headers)
    assert resp.status_code == 409
    assert "P100" in resp.json()["detail"]


def test_create_requires_admin(client, user_headers):
    assert client.post("/api/products/", json=new_product()).status_code == 401

    resp = client.post("/api/products/", json=new_product(), headers=user_headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Admin role required"


def test_create_validates_ranges(client, admin_headers):
    for bad in ({"price": "-1"}, {"stock": -1}, {"rating": 5.5}, {"rating": -0.1}):
        resp = client.post("/api/products/", json=new_product(**bad), headers=admin_headers)
        assert resp.status_code == 422, bad


def test_update_product(client, admin_headers, products):
    resp = client.put("/api/products/P001", json={"price": "120.00", "stock": 3}, headers=admin_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["price"]) == Decimal("120.00")
    assert body["stock"] == 3
    assert body["name"] == "Keyboard"


def test_code_is_immutable(client, admin_headers, products):
    resp = client.put("/api/products/P001", json={"code": "P999"}, headers=admin_headers)
    assert resp.status_code == 422
    assert client.get("/api/products/P001").status_code == 200


def test_update_rejects_null_required_fields(client, admin_headers, products):
    resp = client.put("/api/products/P001", json={"price": None}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_product(client, admin_headers, products):
    resp = client.delete("/api/products/P003", headers=admin_headers)
    assert resp.status_code == 204
    assert client.get("/api/products/P003").status_code == 404
    assert client.delete("/api/products/P003", headers=admin_headers).status_code == 404


def test_upload_image(client, admin_headers, products):
    resp = client.post(
        "/api/products/P001/image",
        files={"image": ("photo.PNG", b"\x89PNG fake image bytes", "image/png")},
        headers=admin_headers,
    )

    assert resp.status_code == 200
    image_url = resp.json()["image_url"]
    assert image_url.startswith("/img/") and image_url.endswith(".png")

    stored = os.path.join(UPLOAD_DIR, os.path.basename(image_url))
    assert os.path.exists(stored)

    served = client.get(image_url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake image bytes"

    # a new upload replaces the old file
    resp = client.post(
        "/api/products/P001/image",
        files={"image": ("second.jpg", b"jpeg bytes", "image/jpeg")},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert not os.path.exists(stored)


def test_upload_rejects_unsupported_extension(client, admin_headers, products):
    resp = client.post(
        "/api/products/P001/image",
        files={"image": ("script.exe", b"MZ", "application/octet-stream")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert "Unsupported image format" in resp.json()["detail"]


def test_upload_for_missing_product(client, admin_headers):
    resp = client.post(
        "/api/products/NOPE/image",
        files={"image": ("photo.png", b"png", "image/png")},
        headers=admin_headers,
    )
    assert resp.status_code == 404


def test_failed_image_save_leaves_no_file(client, admin, products, tmp_path, monkeypatch):
    db = SessionLocal()
    try:
        svc = ProductService(db, upload_dir=str(tmp_path))

        def failing_save(product):
            raise SQLAlchemyError("commit failed")

        monkeypatch.setattr(svc.repo, "save", failing_save)

        with pytest.raises(SQLAlchemyError):
            svc.save_image("P001", "photo.png", io.BytesIO(b"png bytes"), admin)
    finally:
        db.close()

    assert os.listdir(tmp_path) == []
