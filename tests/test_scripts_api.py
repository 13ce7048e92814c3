"""API tests for /scripts endpoints."""

from datetime import datetime, timedelta, timezone
import random

import pytest
from httpx import AsyncClient

API_SCRIPTS = "/api/1.0/scripts"
STRUCTURE = ["id", "title", "language", "code", "description"]


def assert_structure(payload: dict) -> None:
    for field in STRUCTURE:
        assert field in payload, field


async def latest_version_id(client: AsyncClient, script_id: int) -> int:
    response = await client.get(f"{API_SCRIPTS}/{script_id}/versions")
    assert response.status_code == 200
    return response.json()["data"][0]["id"]


class TestCreateScript:
    @pytest.mark.asyncio
    async def test_required_parameters(self, client: AsyncClient):
        response = await client.post(API_SCRIPTS, json={})
        assert response.status_code == 422
        body = response.json()
        assert "message" in body
        assert set(body["errors"]) >= {"title", "language", "code"}
        assert body["errors"]["title"] == ["The title field is required."]

    @pytest.mark.asyncio
    async def test_validation_error_raises_no_deprecation_warning(self, client: AsyncClient, recwarn):
        response = await client.post(API_SCRIPTS, json={"title": "   ", "language": "php", "code": "1"})
        assert response.status_code == 422
        response = await client.post(API_SCRIPTS, json={})
        assert response.status_code == 422

        deprecations = [w for w in recwarn.list if issubclass(w.category, DeprecationWarning)]
        assert not [w for w in deprecations if "422" in str(w.message)]

    @pytest.mark.asyncio
    async def test_create_script(self, client: AsyncClient, script_factory):
        for _ in range(5):
            await script_factory.create()

        response = await client.post(
            API_SCRIPTS,
            json={
                "title": "Script Title",
                "language": "php",
                "code": "123",
                "description": "Description",
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert_structure(body)
        assert body["title"] == "Script Title"
        assert body["version_id"] == await latest_version_id(client, body["id"])

    @pytest.mark.asyncio
    async def test_language_is_normalised(self, client: AsyncClient):
        response = await client.post(
            API_SCRIPTS,
            json={"title": "Upper", "language": "PHP", "code": "<?php return [];"},
        )
        assert response.status_code == 201
        assert response.json()["language"] == "php"

    @pytest.mark.asyncio
    async def test_unsupported_language(self, client: AsyncClient):
        response = await client.post(
            API_SCRIPTS,
            json={"title": "Java", "language": "java", "code": "class A {}"},
        )
        assert response.status_code == 422
        assert response.json()["errors"]["language"] == ["The selected language is invalid."]

    @pytest.mark.asyncio
    async def test_blank_title_is_rejected(self, client: AsyncClient):
        response = await client.post(
            API_SCRIPTS,
            json={"title": "   ", "language": "php", "code": "123"},
        )
        assert response.status_code == 422
        assert response.json()["errors"]["title"] == ["The title field is required."]

    @pytest.mark.asyncio
    async def test_title_of_latest_version_is_taken(self, client: AsyncClient, script_factory):
        script = await script_factory.create()
        await script_factory.add_version(script.id, title="Old Version Script Title")
        await script_factory.add_version(script.id, title="Script Title")

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Script Title", "language": "php", "code": "return 1;"},
        )
        assert response.status_code == 422
        assert "This title has already been used." in response.text

    @pytest.mark.asyncio
    async def test_title_is_trimmed_before_uniqueness_check(self, client: AsyncClient, script_factory):
        await script_factory.create(title="Taken")

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Taken ", "language": "php", "code": "return 1;"},
        )
        assert response.status_code == 422
        assert response.json()["errors"] == {"title": ["This title has already been used."]}

        response = await client.post(
            API_SCRIPTS,
            json={"title": "  Fresh  ", "language": "php", "code": "return 1;"},
        )
        assert response.status_code == 201
        assert response.json()["title"] == "Fresh"

    @pytest.mark.asyncio
    async def test_title_from_an_old_version_is_reusable(self, client: AsyncClient, script_factory):
        base = datetime.now(timezone.utc) - timedelta(hours=1)
        script = await script_factory.create(created_at=base - timedelta(minutes=1))
        await script_factory.add_version(script.id, title="Script Title", created_at=base)
        await script_factory.add_version(
            script.id,
            title="New Version Script Title",
            created_at=base + timedelta(minutes=1),
        )

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Script Title", "language": "php", "code": "return 1;"},
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_key_is_taken(self, client: AsyncClient, script_factory):
        await script_factory.create(key="some-key")

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Script Title", "key": "some-key", "code": "123", "language": "php"},
        )
        assert response.status_code == 422
        assert "The key has already been taken" in response.text

    @pytest.mark.asyncio
    async def test_key_of_superseded_version_is_still_taken(self, client: AsyncClient, script_factory):
        base = datetime.now(timezone.utc) - timedelta(hours=1)
        script = await script_factory.create(key="legacy-key", created_at=base)
        await script_factory.add_version(script.id, key=None, created_at=base + timedelta(minutes=1))

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Fresh", "key": "legacy-key", "code": "123", "language": "php"},
        )
        assert response.status_code == 422
        assert response.json()["errors"]["key"] == ["The key has already been taken."]

    @pytest.mark.asyncio
    async def test_failed_create_persists_nothing(self, client: AsyncClient, script_factory):
        await script_factory.create(title="Taken")

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Taken", "code": "123", "language": "php"},
        )
        assert response.status_code == 422

        listing = await client.get(API_SCRIPTS)
        assert listing.json()["meta"]["total"] == 1


class TestListScripts:
    @pytest.mark.asyncio
    async def test_list_excludes_keyed_scripts(self, client: AsyncClient, script_factory):
        total = random.randint(1, 9)
        for _ in range(total):
            await script_factory.create()
        await script_factory.create(key="some-key")

        response = await client.get(API_SCRIPTS)
        assert response.status_code == 200
        body = response.json()
        assert "meta" in body
        for item in body["data"]:
            assert_structure(item)
        assert body["meta"]["total"] == total
        assert all(item["key"] is None for item in body["data"])

    @pytest.mark.asyncio
    async def test_list_with_query_parameters(self, client: AsyncClient, script_factory):
        title = "search script title"
        await script_factory.create(title=title)
        await script_factory.create(title="something else", description="unrelated")

        per_page = random.randint(1, 9)
        response = await client.get(
            API_SCRIPTS,
            params={
                "page": 1,
                "per_page": per_page,
                "order_by": "description",
                "order_direction": "DESC",
                "filter": title,
            },
        )
        assert response.status_code == 200
        body = response.json()
        for item in body["data"]:
            assert_structure(item)

        meta = body["meta"]
        assert meta["total"] == 1
        assert meta["per_page"] == per_page
        assert meta["current_page"] == 1
        assert meta["last_page"] == 1
        assert meta["filter"] == title
        assert meta["sort_by"] == "description"
        assert meta["sort_order"] == "DESC"

    @pytest.mark.asyncio
    async def test_filter_matches_description(self, client: AsyncClient, script_factory):
        await script_factory.create(title="alpha", description="Handles invoices")
        await script_factory.create(title="beta", description="Sends mail")

        response = await client.get(API_SCRIPTS, params={"filter": "INVOICE"})
        titles = [item["title"] for item in response.json()["data"]]
        assert titles == ["alpha"]

    @pytest.mark.asyncio
    async def test_list_shows_latest_version(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="first")
        await script_factory.add_version(script.id, title="second")

        response = await client.get(API_SCRIPTS)
        assert [item["title"] for item in response.json()["data"]] == ["second"]

    @pytest.mark.asyncio
    async def test_sort_order_is_applied_and_normalised(self, client: AsyncClient, script_factory):
        for title in ("b", "c", "a"):
            await script_factory.create(title=title)

        response = await client.get(API_SCRIPTS, params={"order_by": "title", "order_direction": "desc"})
        body = response.json()
        assert [item["title"] for item in body["data"]] == ["c", "b", "a"]
        assert body["meta"]["sort_order"] == "DESC"

    @pytest.mark.asyncio
    async def test_unknown_sort_field_falls_back(self, client: AsyncClient, script_factory):
        await script_factory.create()

        response = await client.get(API_SCRIPTS, params={"order_by": "code; drop table scripts"})
        assert response.status_code == 200
        assert response.json()["meta"]["sort_by"] == "title"

    @pytest.mark.asyncio
    async def test_default_per_page(self, client: AsyncClient, script_factory):
        for _ in range(12):
            await script_factory.create()

        response = await client.get(API_SCRIPTS, params={"per_page": 0})
        body = response.json()
        assert body["meta"]["per_page"] == 10
        assert body["meta"]["count"] == 10
        assert body["meta"]["last_page"] == 2
        assert body["meta"]["from"] == 1
        assert body["meta"]["to"] == 10

    @pytest.mark.asyncio
    async def test_page_out_of_range(self, client: AsyncClient, script_factory):
        await script_factory.create()
        await script_factory.create()

        response = await client.get(API_SCRIPTS, params={"page": 5, "per_page": 1})
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["meta"]["total"] == 2
        assert body["meta"]["current_page"] == 5
        assert body["meta"]["last_page"] == 2
        assert body["meta"]["from"] is None

    @pytest.mark.asyncio
    async def test_huge_page_returns_empty_data(self, client: AsyncClient, script_factory):
        await script_factory.create()

        response = await client.get(API_SCRIPTS, params={"page": 10**17, "per_page": 100})
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["meta"]["total"] == 1
        assert body["meta"]["current_page"] == 10**17
        assert body["meta"]["last_page"] == 1
        assert body["meta"]["to"] is None

    @pytest.mark.asyncio
    async def test_per_page_is_capped(self, client: AsyncClient, script_factory, settings):
        await script_factory.create()

        response = await client.get(API_SCRIPTS, params={"per_page": 10**20})
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["meta"]["per_page"] == settings.max_per_page


class TestGetScript:
    @pytest.mark.asyncio
    async def test_get_script(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="fetch me")

        response = await client.get(f"{API_SCRIPTS}/{script.id}")
        assert response.status_code == 200
        body = response.json()
        assert_structure(body)
        assert body["id"] == script.id
        assert body["title"] == "fetch me"

    @pytest.mark.asyncio
    async def test_get_missing_script(self, client: AsyncClient):
        response = await client.get(f"{API_SCRIPTS}/999999")
        assert response.status_code == 404
        assert "message" in response.json()


class TestUpdateScript:
    @pytest.mark.asyncio
    async def test_blank_title_is_rejected(self, client: AsyncClient, script_factory):
        script = await script_factory.create()

        response = await client.put(
            f"{API_SCRIPTS}/{script.id}",
            json={"title": "", "language": "php", "code": "new code"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_null_title_is_rejected(self, client: AsyncClient, script_factory):
        script = await script_factory.create()

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"title": None})
        assert response.status_code == 422
        assert response.json()["errors"] == {"title": ["The title field is required."]}

    @pytest.mark.asyncio
    async def test_padded_title_of_another_script_is_taken(self, client: AsyncClient, script_factory):
        await script_factory.create(title="Taken")
        script = await script_factory.create()

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"title": " Taken"})
        assert response.status_code == 422
        assert "This title has already been used." in response.text

    @pytest.mark.asyncio
    async def test_update_appends_a_version(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="Keep me", code="old code")
        before = (await client.get(f"{API_SCRIPTS}/{script.id}/versions")).json()["data"]

        response = await client.put(
            f"{API_SCRIPTS}/{script.id}",
            json={"title": "Keep me", "language": "lua", "code": "return {}"},
        )
        assert response.status_code == 204
        assert response.content == b""

        history = (await client.get(f"{API_SCRIPTS}/{script.id}/versions")).json()["data"]
        assert len(history) == len(before) + 1
        assert history[0]["id"] == int(response.headers["X-Version-Id"])
        assert int(response.headers["X-Script-Id"]) == script.id
        assert history[1]["code"] == "old code"

        current = (await client.get(f"{API_SCRIPTS}/{script.id}")).json()
        assert current["language"] == "lua"
        assert current["code"] == "return {}"
        assert current["version_id"] == history[0]["id"]

    @pytest.mark.asyncio
    async def test_omitted_fields_are_carried_over(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="Partial", code="body", description="desc")

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"code": "new body"})
        assert response.status_code == 204

        current = (await client.get(f"{API_SCRIPTS}/{script.id}")).json()
        assert current["title"] == "Partial"
        assert current["description"] == "desc"
        assert current["code"] == "new body"

    @pytest.mark.asyncio
    async def test_title_of_another_script_is_taken(self, client: AsyncClient, script_factory):
        await script_factory.create(title="Some title")
        script2 = await script_factory.create()

        response = await client.put(f"{API_SCRIPTS}/{script2.id}", json={"title": "Some title"})
        assert response.status_code == 422
        assert "This title has already been used." in response.text

        history = (await client.get(f"{API_SCRIPTS}/{script2.id}/versions")).json()["data"]
        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_own_older_title_is_not_a_conflict(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="Original")
        await script_factory.add_version(script.id, title="Renamed")

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"title": "Original"})
        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_renamed_title_is_released(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="Released")

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"title": "Claimed"})
        assert response.status_code == 204

        response = await client.post(
            API_SCRIPTS,
            json={"title": "Released", "language": "php", "code": "123"},
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_update_keeps_key_and_visibility(self, client: AsyncClient, script_factory):
        script = await script_factory.create(key="system-script")

        response = await client.put(f"{API_SCRIPTS}/{script.id}", json={"code": "changed"})
        assert response.status_code == 204

        current = (await client.get(f"{API_SCRIPTS}/{script.id}")).json()
        assert current["key"] == "system-script"
        listing = (await client.get(API_SCRIPTS)).json()
        assert listing["meta"]["total"] == 0

    @pytest.mark.asyncio
    async def test_update_missing_script(self, client: AsyncClient):
        response = await client.put(f"{API_SCRIPTS}/999999", json={"title": "Nobody"})
        assert response.status_code == 404


class TestDeleteScript:
    @pytest.mark.asyncio
    async def test_delete_script(self, client: AsyncClient, script_factory):
        script = await script_factory.create()
        await script_factory.add_version(script.id)

        response = await client.delete(f"{API_SCRIPTS}/{script.id}")
        assert response.status_code == 204

        assert (await client.get(f"{API_SCRIPTS}/{script.id}")).status_code == 404
        assert (await client.get(f"{API_SCRIPTS}/{script.id}/versions")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing_script(self, client: AsyncClient):
        response = await client.delete(f"{API_SCRIPTS}/999999")
        assert response.status_code == 405

    @pytest.mark.asyncio
    async def test_delete_is_not_idempotent(self, client: AsyncClient, script_factory):
        script = await script_factory.create()

        assert (await client.delete(f"{API_SCRIPTS}/{script.id}")).status_code == 204
        assert (await client.delete(f"{API_SCRIPTS}/{script.id}")).status_code == 405

    @pytest.mark.asyncio
    async def test_deleted_title_can_be_reused(self, client: AsyncClient, script_factory):
        script = await script_factory.create(title="Gone")
        await client.delete(f"{API_SCRIPTS}/{script.id}")

        response = await client.post(API_SCRIPTS, json={"title": "Gone", "language": "php", "code": "1"})
        assert response.status_code == 201
