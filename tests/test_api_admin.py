"""Tests for the admin endpoints."""
from unittest.mock import AsyncMock, patch

import pytest

from app.config import get_settings
from app.exceptions import AssetStoreError
from app.models import Item
from app.services.asset_store import IMAGES


@pytest.mark.parametrize("method,path", [
    ("get", "/api/admin/dashboard"),
    ("post", "/api/admin/items"),
    ("delete", "/api/admin/items/abc"),
    ("get", "/api/admin/categories"),
])
def test_admin_routes_require_session(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401


class TestSession:
    def test_login_sets_cookie(self, client):
        settings = get_settings()
        response = client.post("/api/admin/login", json={
            "username": settings.admin_username,
            "password": settings.admin_password,
        })

        assert response.status_code == 200
        assert settings.session_cookie_name in response.cookies
        assert client.get("/api/admin/dashboard").status_code == 200

    def test_bad_credentials(self, client):
        response = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Access Denied"

    def test_logout_clears_session(self, client):
        settings = get_settings()
        client.post("/api/admin/login", json={
            "username": settings.admin_username,
            "password": settings.admin_password,
        })

        client.post("/api/admin/logout")

        assert client.get("/api/admin/dashboard").status_code == 401


class TestItems:
    def test_create_item(self, admin_client):
        response = admin_client.post("/api/admin/items", json={"name": "New Theme"})

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "new-theme"
        assert body["images"] == []

        dashboard = admin_client.get("/api/admin/dashboard").json()
        assert [item["name"] for item in dashboard["items"]] == ["New Theme"]

    def test_create_item_requires_name(self, admin_client):
        assert admin_client.post("/api/admin/items", json={"name": "  "}).status_code == 422

    def test_upsert_with_uploads(self, admin_client, asset_store, make_item, make_category,
                                 stored_image, make_png, asset_exists):
        category = make_category("Themes")
        keep, drop = stored_image(), stored_image()
        item = make_item("Draft", images=[keep, drop])

        response = admin_client.post(
            f"/api/admin/items/{item.id}/upsert",
            data={
                "name": "Dark Theme",
                "categoryId": category.id,
                "tags": ["Dark Mode, minimal", "minimal"],
                "content": "Body",
                "existingImages": [keep],
                "externalLink": "https://example.com",
            },
            files=[
                ("newImages", ("one.png", make_png(), "image/png")),
                ("newImages", ("two.png", make_png("blue"), "image/png")),
                ("productFile", ("theme.zip", b"zipdata", "application/zip")),
            ],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["slug"] == "dark-theme"
        assert body["category_id"] == category.id
        assert body["tags"] == ["dark-mode", "minimal"]
        assert body["images"][0] == keep
        assert len(body["images"]) == 3
        assert body["file_path"].startswith("/uploads/files/")
        assert body["file_path"].endswith(".zip")
        assert body["external_link"] == "https://example.com"
        assert not asset_exists(drop)
        assert all(asset_exists(path) for path in body["images"])

    def test_upsert_with_single_kept_image(self, admin_client, asset_store, make_item, stored_image, asset_exists):
        a, b = stored_image(), stored_image()
        item = make_item("Pair", images=[a, b])

        response = admin_client.post(f"/api/admin/items/{item.id}/upsert",
                                     data={"name": "Pair", "existingImages": b})

        assert response.json()["images"] == [b]
        assert not asset_exists(a)

    def test_upsert_rejects_non_image(self, admin_client, asset_store, make_item):
        item = make_item("Draft")

        response = admin_client.post(
            f"/api/admin/items/{item.id}/upsert",
            data={"name": "Changed"},
            files=[("newImages", ("fake.png", b"not an image", "image/png"))],
        )

        assert response.status_code == 422
        assert list(asset_store.subtree_dir(IMAGES).iterdir()) == []
        assert admin_client.get(f"/api/admin/items/{item.id}").json()["name"] == "Draft"

    def test_upsert_unknown_item(self, admin_client):
        response = admin_client.post("/api/admin/items/missing/upsert", data={"name": "x"})
        assert response.status_code == 404

    def test_delete_item(self, admin_client, asset_store, store, make_item, stored_image, stored_file, asset_exists):
        image, product = stored_image(), stored_file()
        item = make_item("Doomed", images=[image], file_path=product)

        response = admin_client.delete(f"/api/admin/items/{item.id}")

        assert response.json()["deleted"] is True
        assert not asset_exists(image)
        assert asset_store.resolve_file(product) is None
        assert store.get(Item, item.id) is None

        assert admin_client.delete(f"/api/admin/items/{item.id}").json()["deleted"] is False

    def test_screenshot(self, admin_client, make_item, stored_file, stage_image):
        item = make_item("Landing", file_path=stored_file("index.html", b"<h1>Hi</h1>"))
        shot = stage_image("landing.png")

        with patch("app.routers.admin.capture_screenshot", new=AsyncMock(return_value=shot)):
            response = admin_client.post(f"/api/admin/items/{item.id}/screenshot")

        assert response.status_code == 200
        assert response.json()["images"] == [f"/uploads/images/{shot.stored_path.name}"]

    def test_screenshot_failure(self, admin_client, make_item, stored_file):
        item = make_item("Bundle", file_path=stored_file("bundle.zip"))

        failure = AsyncMock(side_effect=AssetStoreError("no HTML file"))
        with patch("app.routers.admin.capture_screenshot", new=failure):
            response = admin_client.post(f"/api/admin/items/{item.id}/screenshot")

        assert response.status_code == 400
        assert response.json()["detail"] == "no HTML file"


class TestCategories:
    def test_crud(self, admin_client):
        created = admin_client.post("/api/admin/categories", json={"name": "Web Themes"})
        assert created.status_code == 201
        category = created.json()
        assert category["slug"] == "web-themes"
        assert category["icon"] == get_settings().default_category_icon

        updated = admin_client.put(f"/api/admin/categories/{category['id']}",
                                   json={"name": "Site Themes", "icon": "fa-solid fa-star"}).json()
        assert updated["slug"] == "site-themes"
        assert updated["icon"] == "fa-solid fa-star"

        assert admin_client.get(f"/api/admin/categories/{category['id']}").json()["name"] == "Site Themes"
        assert admin_client.delete(f"/api/admin/categories/{category['id']}").json()["deleted"] is True
        assert admin_client.get(f"/api/admin/categories/{category['id']}").status_code == 404

    def test_blank_name_rejected(self, admin_client):
        assert admin_client.post("/api/admin/categories", json={"name": " "}).status_code == 422

    def test_delete_keeps_items(self, admin_client, store, make_item, make_category):
        category = make_category("Themes")
        item = make_item("Dark", category_id=category.id)

        admin_client.delete(f"/api/admin/categories/{category.id}")

        store.db.expire_all()
        fetched = store.get(Item, item.id)
        assert fetched is not None
        assert fetched.category_id is None
