import asyncio
import uuid

import pytest

from studyshare.models import Rating, Resource


pytestmark = pytest.mark.asyncio


async def rate(client, headers, resource_id, rating, review=None):
    return await client.post(
        f"/api/resources/{resource_id}/ratings",
        json={"rating": rating, "review": review},
        headers=headers,
    )


async def test_aggregate_follows_ratings(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    alice, _ = await create_user()
    bob, _ = await create_user()
    resource = await create_resource(owner)

    assert (await rate(client, auth_headers(alice), resource.id, 4)).status_code == 200
    resp = await rate(client, auth_headers(bob), resource.id, 5, "Great summary")
    assert resp.status_code == 200, resp.text
    assert resp.json()["review"] == "Great summary"
    assert resp.json()["userName"] == bob.username

    await resource.refresh_from_db()
    assert resource.average_rating == pytest.approx(4.5)
    assert resource.rating_count == 2

    resp = await client.delete(f"/api/resources/{resource.id}/ratings", headers=auth_headers(bob))
    assert resp.status_code == 200

    await resource.refresh_from_db()
    assert resource.average_rating == pytest.approx(4.0)
    assert resource.rating_count == 1

    # Removing the last rating resets the aggregate
    await client.delete(f"/api/resources/{resource.id}/ratings", headers=auth_headers(alice))
    await resource.refresh_from_db()
    assert resource.average_rating == 0
    assert resource.rating_count == 0


async def test_rating_twice_overwrites(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    rater, _ = await create_user()
    resource = await create_resource(owner)

    await rate(client, auth_headers(rater), resource.id, 2, "meh")
    resp = await rate(client, auth_headers(rater), resource.id, 5)
    assert resp.status_code == 200
    assert resp.json()["rating"] == 5

    assert await Rating.filter(resource_id=resource.id).count() == 1
    row = await Resource.get(id=resource.id)
    assert row.average_rating == pytest.approx(5.0)
    assert row.rating_count == 1

    listing = await client.get(f"/api/resources/{resource.id}/ratings")
    assert listing.status_code == 200
    assert [r["rating"] for r in listing.json()] == [5]


async def test_rating_validation_and_missing_resource(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    resource = await create_resource(owner)
    headers = auth_headers(owner)

    for bad in (0, 6):
        resp = await rate(client, headers, resource.id, bad)
        assert resp.status_code == 400

    resp = await rate(client, headers, uuid.uuid4(), 3)
    assert resp.status_code == 404

    resp = await client.get(f"/api/resources/{uuid.uuid4()}/ratings")
    assert resp.status_code == 404

    unauth = await client.post(f"/api/resources/{resource.id}/ratings", json={"rating": 3})
    assert unauth.status_code == 401


async def test_delete_missing_rating_is_404(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    resource = await create_resource(owner)

    resp = await client.delete(f"/api/resources/{resource.id}/ratings", headers=auth_headers(owner))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Rating not found"


async def test_detail_includes_ratings(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    rater, _ = await create_user(first_name="Grace", last_name="Hopper")
    resource = await create_resource(owner)
    await rate(client, auth_headers(rater), resource.id, 3, "ok")

    detail = (await client.get(f"/api/resources/{resource.id}")).json()
    assert detail["averageRating"] == 3.0
    assert detail["ratingCount"] == 1
    assert detail["ratings"][0]["userName"] == "Grace Hopper"
    assert detail["ratings"][0]["review"] == "ok"


async def test_concurrent_raters_all_counted(client, create_user, create_resource, auth_headers):
    owner, _ = await create_user()
    resource = await create_resource(owner)
    raters = [(await create_user())[0] for _ in range(8)]
    scores = [1, 2, 3, 4, 5, 5, 4, 3]

    responses = await asyncio.gather(
        *[rate(client, auth_headers(r), resource.id, s) for r, s in zip(raters, scores)]
    )
    assert all(r.status_code == 200 for r in responses)

    await resource.refresh_from_db()
    assert resource.rating_count == len(raters)
    assert resource.average_rating == pytest.approx(sum(scores) / len(scores))

    # Half of them withdraw at once
    await asyncio.gather(
        *[client.delete(f"/api/resources/{resource.id}/ratings", headers=auth_headers(r)) for r in raters[:4]]
    )
    await resource.refresh_from_db()
    assert resource.rating_count == 4
    assert resource.average_rating == pytest.approx(sum(scores[4:]) / 4)
    assert await Rating.filter(resource_id=resource.id).count() == 4
