"""Integration tests for the catch-all path resolution route."""

import pytest
from fastapi.responses import PlainTextResponse

from api.v1.fallback import respond_with_owner
from services import events


async def _create(client, kind, **data):
    response = await client.post(f"/api/v1/{kind}", json=data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_active_path_without_listener_is_404(client):
    await _create(client, "categories", title="A", slug="a")

    response = await client.get("/a")

    assert response.status_code == 404
    assert response.json()["detail"] == "Url not found"


@pytest.mark.asyncio
async def test_active_path_uses_listener_response(client):
    events.listen(events.UrlMatched, respond_with_owner)
    a = await _create(client, "categories", title="A", slug="a")
    b = await _create(client, "categories", title="B", slug="b", parent_id=a["id"])

    response = await client.get("/a/b/")

    assert response.status_code == 200
    assert response.json()["urlable_type"] == "category"
    assert response.json()["urlable_id"] == b["id"]


@pytest.mark.asyncio
async def test_listener_sees_entity_and_collection(client):
    seen = []

    def render(event):
        seen.append((event.urlable.title, event.collection))
        event.respond(PlainTextResponse(f"product {event.urlable.title}"))

    events.listen(events.UrlMatched, render)
    await _create(client, "products", title="Boot", slug="boot", collection="shoes")

    response = await client.get("/boot")

    assert response.status_code == 200
    assert response.text == "product Boot"
    assert seen == [("Boot", "shoes")]


@pytest.mark.asyncio
async def test_legacy_path_redirects_permanently(client):
    a = await _create(client, "categories", title="A", slug="a")
    await _create(client, "products", title="P1", slug="p1", category_id=a["id"])
    await client.put(f"/api/v1/categories/{a['id']}", json={"slug": "x"})

    response = await client.get("/a/p1", params={"color": "red"})

    assert response.status_code == 301
    assert response.headers["location"] == "/x/p1?color=red"


@pytest.mark.asyncio
async def test_unknown_path_is_404(client):
    response = await client.get("/never/used")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_api_routes_take_precedence(client):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_default_response_carries_entity_resource(client):
    async def describe(event):
        event.resource = {"title": event.urlable.title}

    events.listen(events.UrlMatched, respond_with_owner)
    events.listen(events.UrlableResource, describe)
    await _create(client, "products", title="Boot", slug="boot")

    response = await client.get("/boot")

    assert response.status_code == 200
    assert response.json()["urlable_type"] == "product"
    assert response.json()["urlable"] == {"title": "Boot"}
