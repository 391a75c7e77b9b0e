"""Integration tests for collection CRUD, listing and stats endpoints."""

import pytest
from httpx import AsyncClient

TASK_COLLECTION = {
    "name": "Tasks",
    "fields": [{"name": "Task", "type": "text"}, {"name": "Priority", "type": "rating"}],
}


async def _create(client: AsyncClient, headers, payload=None) -> dict:
    res = await client.post("/api/collections", headers=headers, json=payload or TASK_COLLECTION)
    assert res.status_code == 201, res.text
    return res.json()["collection"]


@pytest.mark.asyncio
async def test_create_collection(client: AsyncClient, alice):
    headers, _ = alice
    res = await client.post("/api/collections", headers=headers, json=TASK_COLLECTION)

    assert res.status_code == 201
    data = res.json()
    assert data["success"] is True
    collection = data["collection"]
    assert collection["name"] == "Tasks"
    assert collection["fields"] == TASK_COLLECTION["fields"]
    assert collection["entries"] == []
    assert collection["entriesCount"] == 0
    assert collection["isOwner"] is True
    assert collection["accessLevel"] == "admin"
    assert collection["sharedWith"] == []


@pytest.mark.asyncio
async def test_create_requires_authentication(client: AsyncClient):
    res = await client.post("/api/collections", json=TASK_COLLECTION)
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_create_invalid_field_type(client: AsyncClient, alice):
    headers, _ = alice
    res = await client.post(
        "/api/collections",
        headers=headers,
        json={"name": "Bad", "fields": [{"name": "a", "type": "color"}]},
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "fields.0.type"


@pytest.mark.asyncio
async def test_create_without_fields(client: AsyncClient, alice):
    headers, _ = alice
    res = await client.post("/api/collections", headers=headers, json={"name": "Empty", "fields": []})
    assert res.status_code == 400
    assert res.json()["errors"] == [{"field": "fields", "message": "At least one field is required"}]


@pytest.mark.asyncio
async def test_create_duplicate_field_names(client: AsyncClient, alice):
    headers, _ = alice
    res = await client.post(
        "/api/collections",
        headers=headers,
        json={"name": "Dup", "fields": [{"name": "A", "type": "text"}, {"name": "a", "type": "number"}]},
    )
    assert res.status_code == 409
    assert res.json()["success"] is False


@pytest.mark.asyncio
async def test_get_collection(client: AsyncClient, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    collection = await _create(client, alice_headers)

    res = await client.get(f"/api/collections/{collection['id']}", headers=alice_headers)
    assert res.status_code == 200
    assert res.json()["collection"]["id"] == collection["id"]

    res = await client.get(f"/api/collections/{collection['id']}", headers=bob_headers)
    assert res.status_code == 403

    res = await client.get("/api/collections/does-not-exist", headers=alice_headers)
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Collection not found"}


@pytest.mark.asyncio
async def test_update_collection(client: AsyncClient, alice):
    headers, _ = alice
    collection = await _create(client, headers)

    res = await client.put(
        f"/api/collections/{collection['id']}",
        headers=headers,
        json={"name": "Chores", "fields": [{"name": "Task", "type": "text"}]},
    )
    assert res.status_code == 200
    updated = res.json()["collection"]
    assert updated["name"] == "Chores"
    assert updated["fields"] == [{"name": "Task", "type": "text"}]


@pytest.mark.asyncio
async def test_delete_collection(client: AsyncClient, alice):
    headers, _ = alice
    collection = await _create(client, headers)

    res = await client.delete(f"/api/collections/{collection['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json()["message"] == "Collection deleted successfully"

    res = await client.get(f"/api/collections/{collection['id']}", headers=headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_list_collections(client: AsyncClient, alice):
    headers, _ = alice
    for name in ("Banana", "apple", "Cherry"):
        await _create(client, headers, {**TASK_COLLECTION, "name": name})

    res = await client.get("/api/collections", headers=headers, params={"sort": "name:asc"})
    assert res.status_code == 200
    data = res.json()
    assert [c["name"] for c in data["collections"]] == ["apple", "Banana", "Cherry"]
    assert "entries" not in data["collections"][0]
    assert data["pagination"] == {
        "total": 3,
        "page": 1,
        "limit": 10,
        "pages": 1,
        "hasMore": False,
    }

    res = await client.get(
        "/api/collections", headers=headers, params={"search": "an", "limit": 1}
    )
    data = res.json()
    assert [c["name"] for c in data["collections"]] == ["Banana"]
    assert data["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_list_collections_invalid_params(client: AsyncClient, alice):
    headers, _ = alice
    res = await client.get("/api/collections", headers=headers, params={"sort": "size:asc"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "sort"

    res = await client.get("/api/collections", headers=headers, params={"limit": 0})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "limit"


@pytest.mark.asyncio
async def test_stats_and_delete_all(client: AsyncClient, alice, bob):
    alice_headers, _ = alice
    bob_headers, _ = bob
    first = await _create(client, alice_headers)
    await _create(client, alice_headers)
    await client.post(
        f"/api/collections/{first['id']}/entries",
        headers=alice_headers,
        json={"Task": "Ship", "Priority": 4},
    )
    await client.post(
        f"/api/collections/{first['id']}/share",
        headers=alice_headers,
        json={"email": "bob@example.com", "accessLevel": "read"},
    )
    bobs = await _create(client, bob_headers)

    res = await client.get("/api/collections/stats", headers=alice_headers)
    assert res.status_code == 200
    assert res.json()["stats"] == {
        "totalCollections": 2,
        "totalEntries": 1,
        "sharedWithMe": 0,
        "sharedByMe": 1,
    }

    res = await client.delete("/api/collections/all", headers=alice_headers)
    assert res.status_code == 200
    assert res.json()["deletedCount"] == 2
    assert res.json()["message"] == "Deleted 2 collections"

    res = await client.get(f"/api/collections/{bobs['id']}", headers=bob_headers)
    assert res.status_code == 200
