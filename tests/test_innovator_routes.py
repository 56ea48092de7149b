"""Tests for the public innovator endpoints."""

from typing import Any

from sqlalchemy import select

from app.db.models import Innovator, RecordStatus
from app.db.session import session_scope


def _form(**overrides: Any) -> dict[str, str]:
    data = {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "+15551234",
        "projectTitle": "Analytical Engine",
        "projectDescription": "General purpose computing",
    }
    data.update(overrides)
    return data


def test_create_innovator(client, container) -> None:
    resp = client.post("/api/innovators", data=_form())

    assert resp.status_code == 201
    assert resp.json() == {"message": "Innovator created successfully"}
    with session_scope(container.session_factory) as session:
        innovator = session.scalars(select(Innovator)).one()
        assert innovator.status == RecordStatus.PENDING
        assert innovator.is_visible is False
        assert innovator.project_title == "Analytical Engine"


def test_duplicate_email_and_phone(client) -> None:
    assert client.post("/api/innovators", data=_form()).status_code == 201

    resp = client.post("/api/innovators", data=_form(phone="+15550000"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "EMAIL_EXISTS"

    resp = client.post("/api/innovators", data=_form(email="other@example.com"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "PHONE_EXISTS"


def test_public_listing_shows_only_approved(client, seed_innovators) -> None:
    seed_innovators(2, prefix="Pending")
    seed_innovators(2, prefix="Approved", status=RecordStatus.APPROVED)

    body = client.get("/api/innovators/public", params={"limit": 1, "page": 2}).json()

    assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "totalPages": 2}
    assert [row["name"] for row in body["data"]] == ["Approved 0"]
    assert "email" not in body["data"][0]
    assert "phone" not in body["data"][0]


def test_create_invalidates_innovator_pages(client, container) -> None:
    container.cache.set("innovators:public:1:10", {"data": []})

    client.post("/api/innovators", data=_form())

    assert container.cache.get("innovators:public:1:10") is None
