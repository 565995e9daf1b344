"""
End-to-end tests for the past-question routes.

Every scenario runs against both record store modes via `any_client`.
"""

import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from apps.api.config import Settings
from apps.api.main import create_app
from tests.helpers import ADMIN_SECRET, FakeImageHost, StaticMonitor

PDF_BYTES = b"%PDF-1.4\n" + bytes(range(256)) * 8


def upload(client: TestClient, headers: dict, title: str | None = "Paper", filename="exam.pdf",
           content=PDF_BYTES, content_type="application/pdf", **fields):
    data = {k: v for k, v in {"title": title, **fields}.items() if v is not None}
    files = {"file": (filename, content, content_type)} if filename is not None else None
    return client.post("/api/admin/past-questions", data=data, files=files, headers=headers)


def stored_files(upload_dir: Path) -> list[Path]:
    if not upload_dir.exists():
        return []
    return [p for p in upload_dir.rglob("*") if p.is_file()]


class TestUploadAndDownload:
    def test_end_to_end_scenario(self, any_client: TestClient) -> None:
        login = any_client.post("/api/auth/admin/login", json={"password": ADMIN_SECRET})
        token = login.json()["token"]
        auth = {"Authorization": f"Bearer {token}"}

        created = upload(
            any_client, auth, title="Biology Final Exam 2024", subject="Biology", year="2024"
        )
        assert created.status_code == 201
        record = created.json()
        assert record["title"] == "Biology Final Exam 2024"
        assert record["subject"] == "Biology"
        assert record["year"] == "2024"
        assert record["class_name"] is None
        assert record["file_key"]
        assert record["file_name"] == "exam.pdf"
        assert record["size"] == len(PDF_BYTES)

        listed = any_client.get("/api/past-questions", params={"subject": "Biology"})
        assert listed.status_code == 200
        assert record["id"] in [item["id"] for item in listed.json()["items"]]

        download = any_client.get(f"/api/past-questions/{record['id']}/download")
        assert download.status_code == 200
        assert download.content == PDF_BYTES
        assert download.headers["content-type"] == "application/pdf"
        assert download.headers["content-disposition"] == 'attachment; filename="exam.pdf"'
        assert download.headers["content-length"] == str(len(PDF_BYTES))
        assert download.headers["x-content-type-options"] == "nosniff"

        assert any_client.post("/api/auth/admin/logout", headers=auth).status_code == 200
        assert any_client.get("/api/auth/admin/verify", headers=auth).status_code == 401

    def test_record_fields(self, any_client: TestClient, admin_headers: dict) -> None:
        record = upload(any_client, admin_headers, className="SS3").json()
        assert set(record) == {
            "id", "title", "subject", "class_name", "year", "file_key",
            "file_name", "mime_type", "size", "created_at", "updated_at",
        }
        assert record["class_name"] == "SS3"

    def test_get_by_id(self, any_client: TestClient, admin_headers: dict) -> None:
        record = upload(any_client, admin_headers, title="  Chemistry  ").json()
        assert record["title"] == "Chemistry"

        fetched = any_client.get(f"/api/past-questions/{record['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == record

    def test_download_filename_is_sanitized(self, any_client: TestClient, admin_headers: dict) -> None:
        record = upload(any_client, admin_headers, filename='..\\we"ird/..name.pdf').json()
        download = any_client.get(f"/api/past-questions/{record['id']}/download")
        disposition = download.headers["content-disposition"]
        inner = disposition[len('attachment; filename="'):-1]
        assert '"' not in inner
        assert "\\" not in inner
        assert "/" not in inner
        assert ".." not in inner

    def test_extensionless_upload_gets_default_extension(
        self, any_client: TestClient, admin_headers: dict
    ) -> None:
        record = upload(any_client, admin_headers, filename="scan", content_type="application/pdf").json()
        assert record["file_key"].endswith(".pdf")


class TestUploadValidation:
    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_missing_title_rejected_without_blob(
        self, any_client: TestClient, admin_headers: dict, upload_dir: Path, title
    ) -> None:
        response = upload(any_client, admin_headers, title=title)

        assert response.status_code == 400
        assert response.json()["error"] == "Title is required"
        assert stored_files(upload_dir) == []
        assert any_client.get("/api/past-questions").json()["total"] == 0

    def test_missing_file_rejected(self, any_client: TestClient, admin_headers: dict) -> None:
        response = upload(any_client, admin_headers, filename=None)
        assert response.status_code == 400

    def test_disallowed_type_rejected(
        self, any_client: TestClient, admin_headers: dict, upload_dir: Path
    ) -> None:
        response = upload(
            any_client, admin_headers, filename="run.exe", content=b"MZ", content_type="application/x-msdownload"
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Only PDF, Word, and image files are allowed"
        assert stored_files(upload_dir) == []

    def test_allowed_by_extension_even_with_generic_mime(
        self, any_client: TestClient, admin_headers: dict
    ) -> None:
        response = upload(
            any_client, admin_headers, filename="notes.docx", content_type="application/octet-stream"
        )
        assert response.status_code == 201

    def test_oversized_file_rejected(
        self, any_client: TestClient, admin_headers: dict, upload_dir: Path
    ) -> None:
        response = upload(any_client, admin_headers, content=b"x" * (1024 * 1024 + 1))
        assert response.status_code == 400
        assert stored_files(upload_dir) == []

    def test_requires_admin(self, any_client: TestClient) -> None:
        assert upload(any_client, {}).status_code == 401


class TestListing:
    @pytest.fixture
    def seeded(self, any_client: TestClient, admin_headers: dict) -> TestClient:
        for title, subject, year in [
            ("Physics 2022", "Physics", "2022"),
            ("Biology 2023", "Biology", "2023"),
            ("Physics 2024", "physics", "2024"),
        ]:
            assert upload(any_client, admin_headers, title=title, subject=subject, year=year).status_code == 201
        return any_client

    def test_list_all(self, seeded: TestClient) -> None:
        body = seeded.get("/api/past-questions").json()
        assert body["total"] == 3
        assert len(body["items"]) == 3

    def test_subject_filter_is_subset(self, seeded: TestClient) -> None:
        everything = {item["id"] for item in seeded.get("/api/past-questions").json()["items"]}
        physics = seeded.get("/api/past-questions", params={"subject": "PHYSICS"}).json()
        assert physics["total"] == 2
        assert {item["id"] for item in physics["items"]} <= everything
        assert all(item["subject"].lower() == "physics" for item in physics["items"])

    def test_year_and_pagination(self, seeded: TestClient) -> None:
        first = seeded.get("/api/past-questions", params={"limit": 1}).json()
        full = seeded.get("/api/past-questions", params={"limit": 100}).json()
        assert first["items"][0] == full["items"][0]
        assert first["total"] == full["total"] == 3

        year = seeded.get("/api/past-questions", params={"year": "2023"}).json()
        assert [item["title"] for item in year["items"]] == ["Biology 2023"]

    def test_invalid_pagination(self, seeded: TestClient) -> None:
        assert seeded.get("/api/past-questions", params={"limit": "abc"}).status_code == 400
        assert seeded.get("/api/past-questions", params={"offset": -5}).status_code == 400


class TestNotFound:
    @pytest.mark.parametrize("record_id", ["12345", "00000000-0000-0000-0000-000000000000", "nope"])
    def test_unknown_id(self, any_client: TestClient, record_id: str) -> None:
        assert any_client.get(f"/api/past-questions/{record_id}").status_code == 404
        assert any_client.get(f"/api/past-questions/{record_id}/download").status_code == 404

    def test_missing_blob(
        self, any_client: TestClient, admin_headers: dict, upload_dir: Path
    ) -> None:
        record = upload(any_client, admin_headers).json()
        for path in stored_files(upload_dir):
            path.unlink()
        assert any_client.get(f"/api/past-questions/{record['id']}/download").status_code == 404


class TestStoreRecovery:
    def test_store_coming_up_after_fallback_start_gets_schema(
        self, settings: Settings, image_host: FakeImageHost, admin_headers: dict
    ) -> None:
        """An app that started on the fallback writes durably once the store is back."""
        settings = settings.model_copy(update={"allow_memory_fallback": True})
        monitor = StaticMonitor(connected=False)

        with TestClient(create_app(settings, image_host=image_host, monitor=monitor)) as client:
            offline = upload(client, admin_headers, title="Offline paper")
            assert offline.json()["id"] == "1"

            monitor.connected = True
            created = upload(client, admin_headers, title="Online paper")

            assert created.status_code == 201
            assert uuid.UUID(created.json()["id"])
            assert monitor.marked_unavailable == 0
            assert client.get("/health").json()["record_store"] == "durable"
            listed = client.get("/api/past-questions").json()
            assert [item["title"] for item in listed["items"]] == ["Online paper"]
