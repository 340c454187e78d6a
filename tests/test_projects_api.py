"""Project API tests.

Learn: Tests cover:
1. CRUD for the owner, with partial updates
2. Ownership enforcement: 404 for missing, 403 for someone else's
3. Listing: owner filter, clamped page size, sorting and its fallbacks
4. Batch import: partial failures, input order, oversize rejection
5. The session gate on every project route
"""

import uuid

import pytest


async def _create(client, name, components=None, headers=None):
    body = {"name": name}
    if components is not None:
        body["components"] = components
    r = await client.post("/api/projects", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ═══════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_project(auth_client, alice):
    r = await auth_client.post(
        "/api/projects",
        json={"name": "My Project", "components": [{"type": "button"}, {"type": "text"}]},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["code"] == 0
    project = body["data"]
    assert project["name"] == "My Project"
    assert project["ownerId"] == alice["user"]["id"]
    assert project["components"] == [{"type": "button"}, {"type": "text"}]
    assert "createdAt" in project
    assert "updatedAt" in project


@pytest.mark.asyncio
async def test_create_defaults_components_to_empty(auth_client):
    project = await _create(auth_client, "Bare")
    assert project["components"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "x" * 51])
async def test_create_rejects_bad_name(auth_client, name):
    r = await auth_client.post("/api/projects", json={"name": name})
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "name"


@pytest.mark.asyncio
async def test_create_accepts_fifty_char_name(auth_client):
    project = await _create(auth_client, "x" * 50)
    assert len(project["name"]) == 50


@pytest.mark.asyncio
async def test_get_own_project(auth_client):
    created = await _create(auth_client, "Mine", [1, 2, 3])
    r = await auth_client.get(f"/api/projects/{created['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["components"] == [1, 2, 3]


@pytest.mark.asyncio
async def test_get_missing_project(auth_client):
    r = await auth_client.get(f"/api/projects/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["code"] == 4040


@pytest.mark.asyncio
async def test_get_malformed_id_is_not_found(auth_client):
    r = await auth_client.get("/api/projects/not-a-uuid")
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_other_owner_is_forbidden(client, login_as):
    owner = await login_as("owner1")
    intruder = await login_as("owner2")
    project = await _create(client, "Private", headers=owner["headers"])
    url = f"/api/projects/{project['id']}"

    r = await client.get(url, headers=intruder["headers"])
    assert r.status_code == 403
    assert r.json()["code"] == 4030

    r = await client.put(url, json={"name": "Hijacked"}, headers=intruder["headers"])
    assert r.status_code == 403

    r = await client.delete(url, headers=intruder["headers"])
    assert r.status_code == 403

    # Untouched for the real owner
    r = await client.get(url, headers=owner["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Private"


@pytest.mark.asyncio
async def test_list_never_shows_other_owners(client, login_as):
    a = await login_as("listera")
    b = await login_as("listerb")
    await _create(client, "A1", headers=a["headers"])
    await _create(client, "A2", headers=a["headers"])
    await _create(client, "B1", headers=b["headers"])

    for sort_by in ("name", "createdAt", "ownerId", "nonsense"):
        r = await client.get(
            "/api/projects",
            params={"sortBy": sort_by, "order": "asc"},
            headers=b["headers"],
        )
        assert r.status_code == 200
        data = r.json()["data"]
        assert [p["name"] for p in data["projects"]] == ["B1"]
        assert data["pagination"]["total"] == 1


# ═══════════════════════════════════════════════════════════
# Update / delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_partial_update_keeps_omitted_fields(auth_client):
    created = await _create(auth_client, "Before", [{"id": 1}])

    r = await auth_client.put(f"/api/projects/{created['id']}", json={"name": "After"})
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["name"] == "After"
    assert updated["components"] == [{"id": 1}]
    assert updated["ownerId"] == created["ownerId"]
    assert updated["updatedAt"] != created["updatedAt"]

    r = await auth_client.put(
        f"/api/projects/{created['id']}", json={"components": [{"id": 2}]}
    )
    updated = r.json()["data"]
    assert updated["name"] == "After"
    assert updated["components"] == [{"id": 2}]


@pytest.mark.asyncio
async def test_update_validates_name(auth_client):
    created = await _create(auth_client, "Valid")
    r = await auth_client.put(f"/api/projects/{created['id']}", json={"name": "x" * 51})
    assert r.status_code == 400

    r = await auth_client.get(f"/api/projects/{created['id']}")
    assert r.json()["data"]["name"] == "Valid"


@pytest.mark.asyncio
async def test_update_missing_project(auth_client):
    r = await auth_client.put(f"/api/projects/{uuid.uuid4()}", json={"name": "Nope"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_project(auth_client):
    created = await _create(auth_client, "Doomed")

    r = await auth_client.delete(f"/api/projects/{created['id']}")
    assert r.status_code == 200
    assert r.json()["data"] == {"id": created["id"]}

    r = await auth_client.get(f"/api/projects/{created['id']}")
    assert r.status_code == 404

    r = await auth_client.delete(f"/api/projects/{created['id']}")
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_defaults(auth_client):
    for name in ("one", "two", "three"):
        await _create(auth_client, name)

    r = await auth_client.get("/api/projects")
    assert r.status_code == 200
    data = r.json()["data"]
    # Default sort: updatedAt desc → newest first
    assert [p["name"] for p in data["projects"]] == ["three", "two", "one"]
    assert data["pagination"] == {"total": 3, "page": 1, "pageSize": 20, "totalPages": 1}


@pytest.mark.asyncio
async def test_list_empty(auth_client):
    r = await auth_client.get("/api/projects")
    data = r.json()["data"]
    assert data["projects"] == []
    assert data["pagination"]["total"] == 0
    assert data["pagination"]["totalPages"] == 0


@pytest.mark.asyncio
async def test_list_page_size_is_clamped(auth_client):
    r = await auth_client.post(
        "/api/projects/batch-import",
        json={"projects": [{"name": f"p{i:03d}"} for i in range(100)]},
    )
    assert r.json()["data"]["importedCount"] == 100
    await _create(auth_client, "extra")

    r = await auth_client.get("/api/projects", params={"pageSize": 1000})
    data = r.json()["data"]
    assert len(data["projects"]) == 100
    assert data["pagination"]["pageSize"] == 100
    assert data["pagination"]["total"] == 101
    assert data["pagination"]["totalPages"] == 2

    r = await auth_client.get("/api/projects", params={"pageSize": 1000, "page": 2})
    assert len(r.json()["data"]["projects"]) == 1


@pytest.mark.asyncio
async def test_list_pagination_and_sorting(auth_client):
    for name in ("delta", "alpha", "charlie", "bravo", "echo"):
        await _create(auth_client, name)

    r = await auth_client.get(
        "/api/projects",
        params={"page": 2, "pageSize": 2, "sortBy": "name", "order": "asc"},
    )
    data = r.json()["data"]
    assert [p["name"] for p in data["projects"]] == ["charlie", "delta"]
    assert data["pagination"] == {"total": 5, "page": 2, "pageSize": 2, "totalPages": 3}


@pytest.mark.asyncio
async def test_list_bad_query_values_fall_back(auth_client):
    for name in ("first", "second"):
        await _create(auth_client, name)

    r = await auth_client.get(
        "/api/projects",
        params={"page": "abc", "pageSize": "lots", "sortBy": "password", "order": "sideways"},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["pagination"]["page"] == 1
    assert data["pagination"]["pageSize"] == 20
    # Falls back to updatedAt desc
    assert [p["name"] for p in data["projects"]] == ["second", "first"]


@pytest.mark.asyncio
async def test_list_huge_page_is_empty_not_an_error(auth_client):
    await _create(auth_client, "only")

    r = await auth_client.get("/api/projects", params={"page": "100000000000000000000"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["projects"] == []
    assert data["pagination"]["total"] == 1


# ═══════════════════════════════════════════════════════════
# Batch import
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_batch_import_partial_failure(auth_client):
    r = await auth_client.post(
        "/api/projects/batch-import",
        json={
            "projects": [
                {"name": "first", "components": [{"k": 1}]},
                {"name": "x" * 51},
                {"name": "second"},
                {"components": []},
                {"name": "third"},
            ]
        },
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["importedCount"] == 3
    assert data["failedCount"] == 2
    assert [p["name"] for p in data["importedItems"]] == ["first", "second", "third"]
    assert data["failedItems"] == ["x" * 51, None]

    r = await auth_client.get("/api/projects")
    assert r.json()["data"]["pagination"]["total"] == 3


@pytest.mark.asyncio
async def test_batch_import_too_large(auth_client):
    r = await auth_client.post(
        "/api/projects/batch-import",
        json={"projects": [{"name": f"p{i}"} for i in range(101)]},
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "projects"

    r = await auth_client.get("/api/projects")
    assert r.json()["data"]["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_batch_import_non_object_item(auth_client):
    r = await auth_client.post(
        "/api/projects/batch-import",
        json={"projects": ["just a string", {"name": "ok"}]},
    )
    data = r.json()["data"]
    assert data["importedCount"] == 1
    assert data["failedCount"] == 1


# ═══════════════════════════════════════════════════════════
# Session gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/api/projects"),
        ("POST", "/api/projects"),
        ("GET", f"/api/projects/{uuid.UUID(int=1)}"),
        ("PUT", f"/api/projects/{uuid.UUID(int=1)}"),
        ("DELETE", f"/api/projects/{uuid.UUID(int=1)}"),
        ("POST", "/api/projects/batch-import"),
    ],
)
async def test_project_routes_require_auth(client, method, path):
    r = await client.request(method, path, json={"name": "x", "projects": []})
    assert r.status_code == 401
    assert r.json()["code"] == 4010
