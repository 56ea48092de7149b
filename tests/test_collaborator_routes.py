"""Tests for the public collaborator endpoints.

Covers the creation pipeline (uniqueness, file validation, atomic writes,
cache invalidation) and the cached public listing.
"""

import base64
from typing import Any

from sqlalchemy import func, select

from app.db.models import (
    Collaborator,
    ExperienceProvidedMedia,
    Image,
    MachineryAndEquipmentMedia,
    Media,
    RecordStatus,
)
from app.db.session import session_scope
from app.utils.cache_keys import CacheInvalidator, public_collaborators_key
from app.utils.file_validators import MB

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _form(**overrides: Any) -> dict[str, str]:
    data = {
        "companyName": "Acme Fabrication",
        "primaryPhoneNumber": "+15550001",
        "industrialSector": "Manufacturing",
        "specialization": "CNC machining",
        "email": "contact@acme.test",
        "location": "Springfield",
    }
    data.update(overrides)
    return data


def _count(container, model) -> int:
    with session_scope(container.session_factory) as session:
        return session.scalar(select(func.count()).select_from(model))


class TestCreateCollaborator:
    def test_minimal_submission_creates_pending_hidden_row(self, client, container) -> None:
        resp = client.post("/api/collaborators", data=_form())

        assert resp.status_code == 201
        assert resp.json() == {"message": "Collaborator created successfully"}

        with session_scope(container.session_factory) as session:
            collaborator = session.scalars(select(Collaborator)).one()
            assert collaborator.status == RecordStatus.PENDING
            assert collaborator.is_visible is False
            assert collaborator.image_id is None

    def test_submission_with_image_and_media(self, client, container) -> None:
        resp = client.post(
            "/api/collaborators",
            data=_form(),
            files=[
                ("image", ("logo.png", PNG_BYTES, "image/png")),
                ("experienceProvidedMedia", ("a.png", PNG_BYTES, "image/png")),
                ("experienceProvidedMedia", ("b.mp4", b"\x00" * 128, "video/mp4")),
                ("machineryAndEquipmentMedia", ("c.jpg", b"\xff\xd8" * 32, "image/jpeg")),
            ],
        )

        assert resp.status_code == 201
        assert _count(container, Image) == 1
        assert _count(container, Media) == 3
        assert _count(container, ExperienceProvidedMedia) == 2
        assert _count(container, MachineryAndEquipmentMedia) == 1

        with session_scope(container.session_factory) as session:
            collaborator = session.scalars(select(Collaborator)).one()
            image = session.get(Image, collaborator.image_id)
            assert image.data == PNG_BYTES
            assert image.type == "image/png"
            assert image.size == len(PNG_BYTES)

    def test_duplicate_email_is_rejected_without_writing(self, client, container) -> None:
        assert client.post("/api/collaborators", data=_form()).status_code == 201

        resp = client.post(
            "/api/collaborators",
            data=_form(primaryPhoneNumber="+15559999"),
            files=[("image", ("logo.png", PNG_BYTES, "image/png"))],
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "EMAIL_EXISTS"
        assert "request_id" in body
        assert _count(container, Collaborator) == 1
        assert _count(container, Image) == 0

    def test_duplicate_phone_is_rejected(self, client, container) -> None:
        client.post("/api/collaborators", data=_form())

        resp = client.post("/api/collaborators", data=_form(email="other@acme.test"))

        assert resp.status_code == 400
        assert resp.json()["code"] == "PHONE_EXISTS"
        assert _count(container, Collaborator) == 1

    def test_submissions_without_email_do_not_collide(self, client, container) -> None:
        form = _form()
        del form["email"]

        assert client.post("/api/collaborators", data=form).status_code == 201
        form["primaryPhoneNumber"] = "+15550002"
        assert client.post("/api/collaborators", data=form).status_code == 201
        assert _count(container, Collaborator) == 2

    def test_oversized_media_rejects_whole_submission(self, client, container) -> None:
        resp = client.post(
            "/api/collaborators",
            data=_form(),
            files=[
                ("image", ("logo.png", PNG_BYTES, "image/png")),
                ("experienceProvidedMedia", ("ok.png", PNG_BYTES, "image/png")),
                ("experienceProvidedMedia", ("big.mp4", b"\x00" * (50 * MB + 1), "video/mp4")),
            ],
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "INVALID_FILE"
        assert body["message"].startswith("Experience media: File 2:")
        assert _count(container, Collaborator) == 0
        assert _count(container, Image) == 0
        assert _count(container, Media) == 0

    def test_image_with_wrong_type_is_rejected(self, client, container) -> None:
        resp = client.post(
            "/api/collaborators",
            data=_form(),
            files=[("image", ("doc.pdf", b"%PDF-1.4", "application/pdf"))],
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_FILE"
        assert resp.json()["message"].startswith("Image: ")
        details = resp.json()["details"]
        assert details["group"] == "image"
        assert details["max_bytes"] == 5 * MB
        assert "image/png" in details["allowed_types"]
        assert "application/pdf" not in details["allowed_types"]
        assert _count(container, Collaborator) == 0

    def test_too_many_machinery_files(self, client, container) -> None:
        files = [
            ("machineryAndEquipmentMedia", (f"{i}.png", PNG_BYTES, "image/png"))
            for i in range(11)
        ]

        resp = client.post("/api/collaborators", data=_form(), files=files)

        assert resp.status_code == 400
        assert resp.json()["message"] == "Machinery media: Maximum 10 files allowed"

    def test_missing_required_field(self, client) -> None:
        form = _form()
        del form["companyName"]

        resp = client.post("/api/collaborators", data=form)

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_FAILED"

    def test_successful_create_drops_cached_pages(self, client, container) -> None:
        container.cache.set(public_collaborators_key(1, 10), {"data": [], "pagination": {}})
        container.cache.set("admin:stats", {"stale": True})
        container.cache.set("innovators:public:1:10", {"data": []})

        assert client.post("/api/collaborators", data=_form()).status_code == 201

        assert container.cache.get(public_collaborators_key(1, 10)) is None
        assert container.cache.get("admin:stats") is None
        assert container.cache.get("innovators:public:1:10") is not None

    def test_failed_create_keeps_cache(self, client, container) -> None:
        client.post("/api/collaborators", data=_form())
        container.cache.set(public_collaborators_key(1, 10), {"data": []})

        client.post("/api/collaborators", data=_form())

        assert container.cache.get(public_collaborators_key(1, 10)) == {"data": []}


class TestPublicCollaborators:
    def test_only_approved_visible_rows_are_listed(self, client, seed_collaborators) -> None:
        seed_collaborators(2, prefix="Pending")
        seed_collaborators(3, prefix="Approved", status=RecordStatus.APPROVED)
        seed_collaborators(1, prefix="Hidden", status=RecordStatus.APPROVED, is_visible=False)

        resp = client.get("/api/collaborators/public")

        assert resp.status_code == 200
        body = resp.json()
        assert [row["companyName"] for row in body["data"]] == [
            "Approved 2",
            "Approved 1",
            "Approved 0",
        ]
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 3, "totalPages": 1}
        assert set(body["data"][0]) == {
            "id",
            "companyName",
            "image",
            "location",
            "site",
            "industrialSector",
            "specialization",
        }

    def test_image_is_returned_base64_encoded(self, client, container) -> None:
        client.post(
            "/api/collaborators",
            data=_form(),
            files=[("image", ("logo.png", PNG_BYTES, "image/png"))],
        )
        with session_scope(container.session_factory) as session:
            collaborator = session.scalars(select(Collaborator)).one()
            collaborator.status = RecordStatus.APPROVED
            collaborator.is_visible = True

        body = client.get("/api/collaborators/public").json()

        image = body["data"][0]["image"]
        assert image["type"] == "image/png"
        assert image["size"] == len(PNG_BYTES)
        assert base64.b64decode(image["data"]) == PNG_BYTES

    def test_limit_is_capped(self, client, seed_collaborators) -> None:
        seed_collaborators(1, status=RecordStatus.APPROVED)

        body = client.get("/api/collaborators/public", params={"limit": 500}).json()

        assert body["pagination"]["limit"] == 50

    def test_listing_is_cached_until_invalidated(self, client, container, seed_collaborators) -> None:
        seed_collaborators(1, prefix="First", status=RecordStatus.APPROVED)
        assert client.get("/api/collaborators/public").json()["pagination"]["total"] == 1
        assert container.cache.has(public_collaborators_key(1, 10))

        # Written behind the service's back: the cached page is still served
        seed_collaborators(1, prefix="Second", status=RecordStatus.APPROVED)
        assert client.get("/api/collaborators/public").json()["pagination"]["total"] == 1

        CacheInvalidator(container.cache).invalidate_collaborators()
        assert client.get("/api/collaborators/public").json()["pagination"]["total"] == 2

    def test_cached_page_expires_after_ttl(
        self, client, container, fake_time, seed_collaborators
    ) -> None:
        seed_collaborators(1, prefix="First", status=RecordStatus.APPROVED)
        client.get("/api/collaborators/public")
        seed_collaborators(1, prefix="Second", status=RecordStatus.APPROVED)

        fake_time.advance(301)

        assert client.get("/api/collaborators/public").json()["pagination"]["total"] == 2
