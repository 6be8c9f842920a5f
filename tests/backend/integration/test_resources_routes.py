import asyncio
import datetime as dt
import json
import uuid
from pathlib import Path

import pytest

from studyshare.models import Resource, ResourceTag


PDF = b"%PDF-1.4\n% test document\n"

pytestmark = pytest.mark.asyncio


async def upload(client, headers, title="Linear Algebra Notes", subject="Mathematics", **extra):
    data = {"title": title, "subject": subject, **extra}
    return await client.post(
        "/api/resources",
        data={k: v for k, v in data.items() if v is not None},
        files={"file": ("week 1 notes.pdf", PDF, "application/pdf")},
        headers=headers,
    )


def stored_files(test_settings):
    root = Path(test_settings.upload_dir)
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


async def test_upload_creates_resource_with_tags(client, create_user, test_settings, auth_headers):
    user, _ = await create_user(first_name="Ada", last_name="Lovelace")

    resp = await upload(
        client,
        auth_headers(user),
        description="Eigenvalues and such",
        semester="Fall 2024",
        tags=json.dumps(["exam", " Calculus ", "exam"]),
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["title"] == "Linear Algebra Notes"
    assert body["fileType"] == "application/pdf"
    assert body["fileName"] == "week 1 notes.pdf"
    assert body["fileSize"] == len(PDF)
    assert body["downloadCount"] == 0
    assert body["averageRating"] == 0
    assert body["ratingCount"] == 0
    assert body["isActive"] is True
    assert body["uploadedById"] == str(user.id)
    assert body["uploaderName"] == "Ada Lovelace"

    files = stored_files(test_settings)
    assert len(files) == 1
    assert files[0].read_bytes() == PDF
    assert files[0].name.endswith("week_1_notes.pdf")

    detail = await client.get(f"/api/resources/{body['id']}")
    assert detail.status_code == 200
    detail_body = detail.json()
    assert {t["name"] for t in detail_body["tags"]} == {"exam", "Calculus"}
    assert detail_body["uploadedBy"]["id"] == str(user.id)
    assert detail_body["ratings"] == []


async def test_upload_validation_failures(client, create_user, test_settings, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    # No file at all
    resp = await client.post(
        "/api/resources", data={"title": "T", "subject": "S"}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_FAILED"

    # Unsupported MIME type
    resp = await client.post(
        "/api/resources",
        data={"title": "T", "subject": "S"},
        files={"file": ("script.exe", b"MZ", "application/x-msdownload")},
        headers=headers,
    )
    assert resp.status_code == 400
    assert "Invalid file type" in resp.json()["message"]

    # Missing title: file must not be left behind
    resp = await upload(client, auth_headers(user), title=None)
    assert resp.status_code == 400
    assert any(e["field"] == "title" for e in resp.json()["errors"])
    assert stored_files(test_settings) == []
    assert await Resource.all().count() == 0


async def test_upload_rejects_oversize_file(client_factory, create_user, auth_headers):
    client = await client_factory(max_upload_bytes=10)
    user, _ = await create_user()
    resp = await client.post(
        "/api/resources",
        data={"title": "Big", "subject": "Physics"},
        files={"file": ("big.pdf", b"x" * 11, "application/pdf")},
        headers=auth_headers(user),
    )
    assert resp.status_code == 400


async def test_upload_requires_auth(client):
    resp = await client.post(
        "/api/resources",
        data={"title": "T", "subject": "S"},
        files={"file": ("a.pdf", PDF, "application/pdf")},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "AUTH_REQUIRED"


async def test_malformed_tags_field_is_ignored(client, create_user, auth_headers):
    user, _ = await create_user()
    resp = await upload(client, auth_headers(user), tags="not json")
    assert resp.status_code == 201
    assert await ResourceTag.all().count() == 0


async def test_list_filters(client, create_user, create_resource):
    alice, _ = await create_user()
    bob, _ = await create_user()
    await create_resource(alice, title="Calculus review", subject="Mathematics", semester="Fall", average_rating=4.5)
    await create_resource(alice, title="Organic chem", subject="Chemistry", semester="Spring", average_rating=3.0,
                          description="Reaction mechanisms")
    await create_resource(bob, title="Thermo", subject="Physics", semester="Fall", average_rating=2.0,
                          description="Intro to CALCULUS-based thermodynamics")
    await create_resource(bob, title="Hidden calculus", subject="Mathematics", is_active=False)

    async def titles(**params):
        resp = await client.get("/api/resources", params=params)
        assert resp.status_code == 200, resp.text
        return {r["title"] for r in resp.json()}

    assert await titles() == {"Calculus review", "Organic chem", "Thermo"}
    assert await titles(subject="Mathematics") == {"Calculus review"}
    assert await titles(semester="Fall") == {"Calculus review", "Thermo"}
    assert await titles(minRating=3) == {"Calculus review", "Organic chem"}
    assert await titles(search="calculus") == {"Calculus review", "Thermo"}
    assert await titles(search="MECHANISMS") == {"Organic chem"}
    assert await titles(userId=str(bob.id)) == {"Thermo"}
    assert await titles(subject="Mathematics", semester="Spring") == set()

    resp = await client.get("/api/resources")
    names = {r["title"]: r["uploaderName"] for r in resp.json()}
    assert names["Thermo"] == bob.username


async def test_list_sorting_and_pagination(client, create_user, create_resource):
    user, _ = await create_user()
    base = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    specs = [
        ("first", 5, 1.0),
        ("second", 50, 4.0),
        ("third", 20, 4.0),
    ]
    for i, (title, downloads, rating) in enumerate(specs):
        r = await create_resource(user, title=title, download_count=downloads, average_rating=rating)
        await Resource.filter(id=r.id).update(created_at=base + dt.timedelta(days=i))

    async def order(**params):
        resp = await client.get("/api/resources", params=params)
        assert resp.status_code == 200, resp.text
        return [r["title"] for r in resp.json()]

    assert await order() == ["third", "second", "first"]
    assert await order(sortBy="newest") == ["third", "second", "first"]
    assert await order(sortBy="relevance") == ["third", "second", "first"]
    assert await order(sortBy="oldest") == ["first", "second", "third"]
    assert await order(sortBy="downloads") == ["second", "third", "first"]
    # Equal ratings fall back to creation order
    assert await order(sortBy="rating") == ["second", "third", "first"]
    assert await order(sortBy="oldest", limit=1, offset=1) == ["second"]
    assert await order(sortBy="oldest", offset=10) == []

    bad = await client.get("/api/resources", params={"sortBy": "popularity"})
    assert bad.status_code == 400


async def test_get_unknown_resource_is_404(client):
    resp = await client.get(f"/api/resources/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Resource not found", "code": "NOT_FOUND"}


async def test_update_resource_owner_only(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    other, _ = await create_user()
    resource = await create_resource(owner, title="Old title", subject="History")

    forbidden = await client.put(
        f"/api/resources/{resource.id}", json={"title": "Hijacked"}, headers=auth_headers(other)
    )
    assert forbidden.status_code == 403
    await resource.refresh_from_db()
    assert resource.title == "Old title"

    resp = await client.put(
        f"/api/resources/{resource.id}",
        json={"title": "New title", "semester": "Winter"},
        headers=auth_headers(owner),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["title"] == "New title"
    assert body["semester"] == "Winter"
    assert body["subject"] == "History"

    blank = await client.put(
        f"/api/resources/{resource.id}", json={"subject": "  "}, headers=auth_headers(owner)
    )
    assert blank.status_code == 400

    missing = await client.put(
        f"/api/resources/{uuid.uuid4()}", json={"title": "x"}, headers=auth_headers(owner)
    )
    assert missing.status_code == 404


async def test_soft_delete(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    other, _ = await create_user()
    resource = await create_resource(owner, title="Gone soon")

    forbidden = await client.delete(f"/api/resources/{resource.id}", headers=auth_headers(other))
    assert forbidden.status_code == 403

    resp = await client.delete(f"/api/resources/{resource.id}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Resource deleted successfully"}

    listing = await client.get("/api/resources")
    assert listing.json() == []

    detail = await client.get(f"/api/resources/{resource.id}")
    assert detail.status_code == 200
    assert detail.json()["isActive"] is False

    again = await client.delete(f"/api/resources/{resource.id}", headers=auth_headers(owner))
    assert again.status_code == 200


async def test_concurrent_downloads_are_all_counted(client, create_user, create_resource):
    user, _ = await create_user()
    resource = await create_resource(user)

    responses = await asyncio.gather(
        *[client.post(f"/api/resources/{resource.id}/download") for _ in range(25)]
    )
    assert all(r.status_code == 200 for r in responses)
    assert responses[0].json() == {"message": "Download count updated"}

    await resource.refresh_from_db()
    assert resource.download_count == 25

    missing = await client.post(f"/api/resources/{uuid.uuid4()}/download")
    assert missing.status_code == 404


async def test_download_auth_can_be_required(client_factory, create_user, create_resource, auth_headers):
    client = await client_factory(download_requires_auth=True)
    user, _ = await create_user()
    resource = await create_resource(user)

    anon = await client.post(f"/api/resources/{resource.id}/download")
    assert anon.status_code == 401

    authed = await client.post(f"/api/resources/{resource.id}/download", headers=auth_headers(user))
    assert authed.status_code == 200
    await resource.refresh_from_db()
    assert resource.download_count == 1


async def test_malformed_ids_are_404(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    resource = await create_resource(owner)
    headers = auth_headers(owner)

    assert (await client.get("/api/resources/not-a-real-id")).status_code == 404
    download = await client.post("/api/resources/not-a-real-id/download")
    assert download.status_code == 404
    assert download.json()["message"] == "Resource not found"
    assert (await client.put("/api/resources/nope", json={"title": "x"}, headers=headers)).status_code == 404
    assert (await client.delete("/api/resources/nope", headers=headers)).status_code == 404
    assert (await client.get("/api/resources/nope/ratings")).status_code == 404
    assert (await client.post("/api/resources/nope/favorites", headers=headers)).status_code == 404
    assert (await client.get("/api/resources/nope/tags")).status_code == 404

    # A tag id that cannot exist is simply not attached
    detach = await client.delete(f"/api/resources/{resource.id}/tags/nope", headers=headers)
    assert detach.status_code == 200


async def test_subject_filter_with_download_ties(client, create_user, create_resource):
    user, _ = await create_user()
    base = dt.datetime(2024, 2, 1, tzinfo=dt.timezone.utc)
    specs = [
        ("Math A", "Math", 7),
        ("Physics", "Physics", 100),
        ("Math B", "Math", 7),
        ("Math C", "Math", 9),
        ("Math hidden", "Math", 50),
    ]
    for i, (title, subject, downloads) in enumerate(specs):
        r = await create_resource(user, title=title, subject=subject, download_count=downloads,
                                  is_active=title != "Math hidden")
        await Resource.filter(id=r.id).update(created_at=base + dt.timedelta(hours=i))

    resp = await client.get("/api/resources", params={"subject": "Math", "sortBy": "downloads"})
    assert resp.status_code == 200
    assert [r["title"] for r in resp.json()] == ["Math C", "Math A", "Math B"]


async def test_newest_order_is_stable_for_equal_timestamps(client, create_user, create_resource):
    user, _ = await create_user()
    same_time = dt.datetime(2024, 5, 1, tzinfo=dt.timezone.utc)
    ids = []
    for _ in range(4):
        r = await create_resource(user)
        await Resource.filter(id=r.id).update(created_at=same_time)
        ids.append(str(r.id))

    full = [r["id"] for r in (await client.get("/api/resources")).json()]
    assert full == sorted(ids)

    paged = []
    for offset in range(4):
        page = (await client.get("/api/resources", params={"limit": 1, "offset": offset})).json()
        paged.extend(r["id"] for r in page)
    assert paged == full
