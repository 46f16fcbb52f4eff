"""Integration tests for the category, product, url and slug endpoints."""

import pytest

from services import events


async def _create_category(client, **data):
    response = await client.post("/api/v1/categories", json=data)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_product(client, **data):
    response = await client.post("/api/v1/products", json=data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["urlable_types"] == ["category", "product"]


@pytest.mark.asyncio
async def test_create_category_returns_url(client):
    data = await _create_category(client, title="Shoes", slug="Shoes & Boots")

    assert data["slug"] == "shoes-boots"
    assert data["full_url"] == "shoes-boots"
    assert data["url_version"] == 1


@pytest.mark.asyncio
async def test_rename_cascades_and_history(client):
    a = await _create_category(client, title="A", slug="a")
    b = await _create_category(client, title="B", slug="b", parent_id=a["id"])
    p1 = await _create_product(client, title="P1", slug="p1", category_id=b["id"])
    assert p1["full_url"] == "a/b/p1"

    response = await client.put(f"/api/v1/categories/{a['id']}", json={"slug": "x"})
    assert response.status_code == 200
    assert response.json()["full_url"] == "x"
    assert response.json()["url_version"] == 2

    product = await client.get(f"/api/v1/products/{p1['id']}")
    assert product.json()["full_url"] == "x/b/p1"

    history = await client.get(f"/api/v1/urls/history/product/{p1['id']}")
    assert [(u["version"], u["full_url"], u["status"]) for u in history.json()] == [
        (1, "a/b/p1", "retired"),
        (2, "x/b/p1", "active"),
    ]

    active_only = await client.get(f"/api/v1/urls/history/product/{p1['id']}", params={"include_retired": "false"})
    assert [u["version"] for u in active_only.json()] == [2]


@pytest.mark.asyncio
async def test_cascade_can_be_suppressed(client):
    a = await _create_category(client, title="A", slug="a")
    b = await _create_category(client, title="B", slug="b", parent_id=a["id"])

    response = await client.put(f"/api/v1/categories/{a['id']}", params={"cascade": "false"}, json={"slug": "x"})
    assert response.status_code == 200

    child = await client.get(f"/api/v1/categories/{b['id']}")
    assert child.json()["full_url"] == "a/b"

    rebuild = await client.post("/api/v1/urls/rebuild/category", params={"batch_size": 1})
    assert rebuild.status_code == 200
    assert rebuild.json() == {"entity_type": "category", "processed": 2, "changed": 1, "failed": 0}

    child = await client.get(f"/api/v1/categories/{b['id']}")
    assert child.json()["full_url"] == "x/b"


@pytest.mark.asyncio
async def test_slug_conflict_returns_409(client):
    await _create_category(client, title="A", slug="a")

    response = await client.post("/api/v1/categories", json={"title": "A again", "slug": "A"})

    assert response.status_code == 409
    assert response.json()["detail"] == "The slug is already in use by another record."
    categories = await client.get("/api/v1/categories")
    assert len(categories.json()) == 1


@pytest.mark.asyncio
async def test_url_conflict_returns_409(client):
    await _create_category(client, title="A", slug="a")

    response = await client.post("/api/v1/products", json={"title": "Loose", "slug": "a"})

    assert response.status_code == 409
    assert response.json()["detail"] == "This active URL is already used by another record."


@pytest.mark.asyncio
async def test_category_cycle_is_rejected(client):
    a = await _create_category(client, title="A", slug="a")
    b = await _create_category(client, title="B", slug="b", parent_id=a["id"])

    response = await client.put(f"/api/v1/categories/{a['id']}", json={"parent_id": b["id"]})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_category_reroots_dependents(client):
    a = await _create_category(client, title="A", slug="a")
    b = await _create_category(client, title="B", slug="b", parent_id=a["id"])
    p1 = await _create_product(client, title="P1", slug="p1", category_id=b["id"])

    response = await client.delete(f"/api/v1/categories/{a['id']}")
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/categories/{a['id']}")).status_code == 404
    assert (await client.get(f"/api/v1/categories/{b['id']}")).json()["full_url"] == "b"
    assert (await client.get(f"/api/v1/products/{p1['id']}")).json()["full_url"] == "b/p1"
    assert (await client.get("/api/v1/urls/history/category/" + a["id"])).json() == []


@pytest.mark.asyncio
async def test_product_soft_delete_restore_and_force_delete(client):
    p1 = await _create_product(client, title="P1", slug="p1")

    deleted = await client.delete(f"/api/v1/products/{p1['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["deleted_at"] is not None
    assert deleted.json()["full_url"] is None
    assert (await client.get(f"/api/v1/products/{p1['id']}")).status_code == 404

    restored = await client.post(f"/api/v1/products/{p1['id']}/restore")
    assert restored.status_code == 200
    assert restored.json()["deleted_at"] is None
    assert restored.json()["full_url"] == "p1"

    forced = await client.delete(f"/api/v1/products/{p1['id']}/force")
    assert forced.status_code == 204
    assert (await client.get(f"/api/v1/urls/history/product/{p1['id']}")).json() == []


@pytest.mark.asyncio
async def test_restore_conflict_returns_409(client):
    p1 = await _create_product(client, title="P1", slug="p1")
    await client.delete(f"/api/v1/products/{p1['id']}")
    await _create_product(client, title="Taker", slug="p1")

    response = await client.post(f"/api/v1/products/{p1['id']}/restore")

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_url_owner_and_redirect_lookups(client):
    a = await _create_category(client, title="A", slug="a")
    await client.put(f"/api/v1/categories/{a['id']}", json={"slug": "x"})

    owner = await client.get("/api/v1/urls/owner", params={"path": "/x/"})
    assert owner.status_code == 200
    assert owner.json()["urlable_id"] == a["id"]
    assert owner.json()["version"] == 2

    assert (await client.get("/api/v1/urls/owner", params={"path": "a"})).status_code == 404

    redirect = await client.get("/api/v1/urls/redirect", params={"path": "a"})
    assert redirect.json() == {"requested": "a", "target": "/x"}
    assert (await client.get("/api/v1/urls/redirect", params={"path": "x"})).status_code == 404


@pytest.mark.asyncio
async def test_unknown_urlable_type_returns_404(client):
    response = await client.get("/api/v1/urls/history/page/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404

    response = await client.post("/api/v1/urls/rebuild/page")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_slug_availability_and_lookup(client):
    a = await _create_category(client, title="A", slug="summer-sale")

    taken = await client.get(
        "/api/v1/slugs/availability",
        params={"entity_type": "category", "slug": "Summer Sale"},
    )
    assert taken.json() == {
        "slugable_type": "category",
        "slug": "summer-sale",
        "collection": None,
        "available": False,
    }

    own = await client.get(
        "/api/v1/slugs/availability",
        params={"entity_type": "category", "slug": "summer-sale", "exclude_id": a["id"]},
    )
    assert own.json()["available"] is True

    record = await client.get(f"/api/v1/slugs/category/{a['id']}")
    assert record.status_code == 200
    assert record.json()["slug"] == "summer-sale"
    assert record.json()["status"] == "active"

    missing = await client.get("/api/v1/slugs/category/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "The slug not found."


@pytest.mark.asyncio
async def test_owner_lookup_includes_listener_resource(client):
    def describe(event):
        event.resource = {"kind": event.entity_type, "title": event.urlable.title}

    events.listen(events.UrlableResource, describe)
    await _create_category(client, title="Shoes", slug="shoes")

    owner = await client.get("/api/v1/urls/owner", params={"path": "shoes"})

    assert owner.status_code == 200
    assert owner.json()["urlable"] == {"kind": "category", "title": "Shoes"}


@pytest.mark.asyncio
async def test_owner_lookup_without_resource_listener(client):
    await _create_category(client, title="Shoes", slug="shoes")

    owner = await client.get("/api/v1/urls/owner", params={"path": "shoes"})

    assert owner.json()["urlable"] is None
