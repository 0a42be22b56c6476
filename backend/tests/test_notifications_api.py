from swapmarket.models import NotificationCategory
from swapmarket.services.notifications import NotificationService


async def seed_notifications(session_maker, user, *messages, category=NotificationCategory.GENERAL):
    async with session_maker() as session:
        service = NotificationService(session)
        for message in messages:
            await service.notify(user.id, message, category)
        await session.commit()


async def test_list_and_unread_count(client, headers, alice, bob, session_maker):
    await seed_notifications(session_maker, alice, "one", "two")
    await seed_notifications(session_maker, bob, "not yours")

    response = await client.get("/api/notifications", headers=headers(alice))
    assert response.status_code == 200
    body = response.json()
    assert sorted(n["message"] for n in body["items"]) == ["one", "two"]
    assert body["unread_count"] == 2
    assert all(n["read_status"] is False for n in body["items"])

    count = await client.get("/api/notifications/unread-count", headers=headers(alice))
    assert count.json() == {"unread_count": 2}


async def test_mark_one_read(client, headers, alice, session_maker):
    await seed_notifications(session_maker, alice, "one", "two")
    items = (await client.get("/api/notifications", headers=headers(alice))).json()["items"]

    response = await client.post(f"/api/notifications/{items[0]['id']}/read", headers=headers(alice))
    assert response.status_code == 200
    assert response.json() == {"unread_count": 1}

    unread = await client.get("/api/notifications", headers=headers(alice), params={"unread_only": True})
    assert [n["id"] for n in unread.json()["items"]] == [items[1]["id"]]


async def test_cannot_mark_someone_elses_notification(client, headers, alice, bob, session_maker):
    await seed_notifications(session_maker, alice, "private")
    items = (await client.get("/api/notifications", headers=headers(alice))).json()["items"]

    response = await client.post(f"/api/notifications/{items[0]['id']}/read", headers=headers(bob))
    assert response.status_code == 404

    count = await client.get("/api/notifications/unread-count", headers=headers(alice))
    assert count.json() == {"unread_count": 1}


async def test_mark_all_read(client, headers, alice, session_maker):
    await seed_notifications(session_maker, alice, "a", "b", "c")

    response = await client.post("/api/notifications/read-all", headers=headers(alice))
    assert response.json() == {"updated": 3}

    response = await client.post("/api/notifications/read-all", headers=headers(alice))
    assert response.json() == {"updated": 0}


async def test_preferences_default_and_partial_update(client, headers, alice):
    response = await client.get("/api/notifications/preferences", headers=headers(alice))
    assert response.json() == {
        "email": True,
        "push": False,
        "product_updates": True,
        "swap_events": True,
        "shoutouts": True,
        "digest": "daily",
    }

    response = await client.put(
        "/api/notifications/preferences",
        headers=headers(alice),
        json={"swap_events": False, "digest": "weekly"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["swap_events"] is False
    assert body["digest"] == "weekly"
    assert body["product_updates"] is True

    again = await client.get("/api/notifications/preferences", headers=headers(alice))
    assert again.json() == body


async def test_invalid_digest_frequency(client, headers, alice):
    response = await client.put("/api/notifications/preferences", headers=headers(alice), json={"digest": "hourly"})
    assert response.status_code == 422


async def test_disabled_category_suppresses_new_notifications(
    client, headers, alice, bob, make_product, notifications_for
):
    await client.put("/api/notifications/preferences", headers=headers(alice), json={"swap_events": False})
    product = await make_product(alice)

    response = await client.post("/api/swaps", headers=headers(bob), json={"product_id": str(product.id)})
    assert response.status_code == 201
    assert await notifications_for(alice) == []

    # other categories still arrive
    await client.post(
        "/api/products", headers=headers(alice), json={"name": "Lamp", "redemption_type": "manual"}
    )
    assert [n.category for n in await notifications_for(alice)] == ["product_updates"]


async def test_requires_login(client):
    assert (await client.get("/api/notifications")).status_code == 401
    assert (await client.get("/api/notifications/preferences")).status_code == 401
