"""Tests for the event routes, including best-effort image cleanup."""

import pytest
from fastapi.testclient import TestClient

from tests.helpers import FakeImageHost

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

EVENT_FIELDS = {
    "title": "Science Fair",
    "description": "Annual science exhibition",
    "date": "2024-05-10",
    "location": "Main Hall",
}


def create_event(client: TestClient, headers: dict, image: bytes | None = None, **overrides):
    data = {**EVENT_FIELDS, **overrides}
    files = {"image": ("poster.png", image, "image/png")} if image is not None else None
    return client.post("/api/events", data=data, files=files, headers=headers)


class TestCreateEvent:
    def test_create_without_image(self, any_client: TestClient, admin_headers: dict) -> None:
        response = create_event(any_client, admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Science Fair"
        assert body["date"].startswith("2024-05-10T00:00:00")
        assert body["image_url"] is None
        assert set(body) == {
            "id", "title", "description", "date", "location",
            "image_url", "image_public_id", "created_at", "updated_at",
        }

    def test_create_with_image(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        body = create_event(any_client, admin_headers, image=PNG_BYTES).json()

        assert image_host.uploaded == [PNG_BYTES]
        assert body["image_url"] == "https://img.example.com/events/1.png"
        assert body["image_public_id"] == "events/1"

    def test_image_upload_failure_degrades(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        image_host.fail_upload = True
        response = create_event(any_client, admin_headers, image=PNG_BYTES)

        assert response.status_code == 201
        assert response.json()["image_public_id"] is None

    def test_non_image_upload_is_ignored(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        files = {"image": ("notes.pdf", b"%PDF", "application/pdf")}
        response = any_client.post("/api/events", data=EVENT_FIELDS, files=files, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["image_url"] is None
        assert image_host.uploaded == []

    @pytest.mark.parametrize("missing", ["title", "description", "date", "location"])
    def test_missing_field(self, any_client: TestClient, admin_headers: dict, missing: str) -> None:
        data = {k: v for k, v in EVENT_FIELDS.items() if k != missing}
        response = any_client.post("/api/events", data=data, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: title, description, date, location"

    def test_invalid_date(self, any_client: TestClient, admin_headers: dict) -> None:
        assert create_event(any_client, admin_headers, date="someday").status_code == 400


class TestListAndGet:
    def test_sorted_by_date_desc_and_searchable(self, any_client: TestClient, admin_headers: dict) -> None:
        create_event(any_client, admin_headers, title="Resumption", date="2024-01-08")
        create_event(any_client, admin_headers, title="Graduation", date="2024-07-20", location="Auditorium")
        create_event(any_client, admin_headers, title="Sports Day", date="2024-03-15")

        events = any_client.get("/api/events").json()
        assert [e["title"] for e in events] == ["Graduation", "Sports Day", "Resumption"]

        found = any_client.get("/api/events", params={"q": "graduation"}).json()
        assert [e["title"] for e in found] == ["Graduation"]

    def test_get_by_id_and_404(self, any_client: TestClient, admin_headers: dict) -> None:
        created = create_event(any_client, admin_headers).json()

        assert any_client.get(f"/api/events/{created['id']}").json() == created
        assert any_client.get("/api/events/99999").status_code == 404


class TestUpdateEvent:
    def test_partial_update(self, any_client: TestClient, admin_headers: dict) -> None:
        created = create_event(any_client, admin_headers).json()

        response = any_client.put(
            f"/api/events/{created['id']}", data={"location": "Library"}, headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["location"] == "Library"
        assert body["title"] == created["title"]
        assert body["description"] == created["description"]
        assert body["created_at"] == created["created_at"]

    def test_new_image_replaces_and_deletes_old(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        created = create_event(any_client, admin_headers, image=PNG_BYTES).json()

        files = {"image": ("new.png", PNG_BYTES, "image/png")}
        body = any_client.put(f"/api/events/{created['id']}", files=files, headers=admin_headers).json()

        assert body["image_public_id"] == "events/2"
        assert image_host.deleted == ["events/1"]

    def test_old_image_delete_failure_is_swallowed(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        created = create_event(any_client, admin_headers, image=PNG_BYTES).json()
        image_host.fail_delete = True

        files = {"image": ("new.png", PNG_BYTES, "image/png")}
        response = any_client.put(f"/api/events/{created['id']}", files=files, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["image_public_id"] == "events/2"

    def test_invalid_date_rejected(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        created = create_event(any_client, admin_headers).json()
        files = {"image": ("new.png", PNG_BYTES, "image/png")}
        response = any_client.put(
            f"/api/events/{created['id']}", data={"date": "bogus"}, files=files, headers=admin_headers
        )

        assert response.status_code == 400
        assert image_host.deleted == ["events/1"]

    def test_unknown_id(self, any_client: TestClient, admin_headers: dict) -> None:
        response = any_client.put("/api/events/4242", data={"title": "x"}, headers=admin_headers)
        assert response.status_code == 404


class TestDeleteEvent:
    def test_image_deleted_before_record(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        created = create_event(any_client, admin_headers, image=PNG_BYTES).json()
        store = any_client.app.state.components.events
        seen = []

        async def record_still_stored(public_id: str) -> None:
            seen.append((public_id, await store.get(created["id"])))

        image_host.on_delete = record_still_stored

        response = any_client.delete(f"/api/events/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully"}
        assert image_host.deleted == ["events/1"]
        assert len(seen) == 1
        public_id, record = seen[0]
        assert public_id == "events/1"
        assert record is not None and record.id == created["id"]
        assert any_client.get(f"/api/events/{created['id']}").status_code == 404
        assert any_client.delete(f"/api/events/{created['id']}", headers=admin_headers).status_code == 404

    def test_unknown_id_touches_no_image(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        response = any_client.delete("/api/events/4242", headers=admin_headers)

        assert response.status_code == 404
        assert image_host.deleted == []

    def test_image_delete_failure_does_not_block(
        self, any_client: TestClient, admin_headers: dict, image_host: FakeImageHost
    ) -> None:
        created = create_event(any_client, admin_headers, image=PNG_BYTES).json()
        image_host.fail_delete = True

        response = any_client.delete(f"/api/events/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert any_client.get(f"/api/events/{created['id']}").status_code == 404
