from datetime import datetime

from swapmarket.models import ProductStatus, RedemptionType


async def test_submit_product_is_pending_with_normalized_tags(client, headers, alice, notifications_for):
    response = await client.post(
        "/api/products",
        headers=headers(alice),
        json={
            "name": "  Film Camera ",
            "description": "35mm, works great",
            "tags": " photo, Retro ,photo,, retro ",
            "redemption_type": "manual",
            "product_link": "https://example.com/camera",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["name"] == "Film Camera"
    assert body["tags"] == "photo, Retro"
    assert body["tag_list"] == ["photo", "Retro"]
    assert body["owner_name"] == "Alice Smith"

    notifications = await notifications_for(alice)
    assert len(notifications) == 1
    assert notifications[0].category == "product_updates"
    assert "Film Camera" in notifications[0].message


async def test_submit_without_redemption_type_is_blocked(client, headers, alice):
    response = await client.post("/api/products", headers=headers(alice), json={"name": "Lamp"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Please select a redemption type."

    mine = await client.get("/api/products/mine", headers=headers(alice))
    assert mine.json()["stats"]["total"] == 0


async def test_submit_requires_name(client, headers, alice):
    response = await client.post(
        "/api/products", headers=headers(alice), json={"name": "   ", "redemption_type": "stripe"}
    )
    assert response.status_code == 422


async def test_submit_rejects_non_http_link(client, headers, alice):
    response = await client.post(
        "/api/products",
        headers=headers(alice),
        json={"name": "Lamp", "redemption_type": "manual", "product_link": "javascript:alert(1)"},
    )
    assert response.status_code == 422


async def test_submit_requires_login(client):
    response = await client.post("/api/products", json={"name": "Lamp", "redemption_type": "manual"})
    assert response.status_code == 401


async def test_my_products_with_stats_and_filter(client, headers, alice, bob, make_product):
    await make_product(alice, "A", ProductStatus.APPROVED, created_at=datetime(2026, 1, 1))
    await make_product(alice, "B", ProductStatus.PENDING, created_at=datetime(2026, 1, 2))
    await make_product(alice, "C", ProductStatus.REJECTED, created_at=datetime(2026, 1, 3))
    await make_product(bob, "Not mine", ProductStatus.APPROVED)

    response = await client.get("/api/products/mine", headers=headers(alice))
    body = response.json()
    assert [p["name"] for p in body["items"]] == ["C", "B", "A"]
    assert body["stats"] == {"total": 3, "approved": 1, "pending": 1, "rejected": 1}

    response = await client.get("/api/products/mine", headers=headers(alice), params={"status": "approved"})
    body = response.json()
    assert [p["name"] for p in body["items"]] == ["A"]
    assert body["stats"]["total"] == 3


async def test_browse_only_approved_and_search_case_insensitive(client, alice, bob, make_product):
    await make_product(alice, "Guitar Strings", description="Nickel wound", tags="music")
    await make_product(alice, "Desk Lamp", tags="home, LIGHTING")
    await make_product(bob, "Bass guitar", status=ProductStatus.PENDING)
    await make_product(bob, "Drum sticks", description="For a GUITAR-free band")

    response = await client.get("/api/products/browse", params={"q": "guitar"})
    body = response.json()
    assert sorted(p["name"] for p in body["items"]) == ["Drum sticks", "Guitar Strings"]
    assert body["total"] == 2

    response = await client.get("/api/products/browse", params={"q": "lighting"})
    assert [p["name"] for p in response.json()["items"]] == ["Desk Lamp"]


async def test_browse_filter_sort_and_paging(client, alice, make_product):
    await make_product(alice, "banana", ProductStatus.APPROVED, RedemptionType.STRIPE, created_at=datetime(2026, 1, 1))
    await make_product(alice, "Apple", ProductStatus.APPROVED, RedemptionType.MANUAL, created_at=datetime(2026, 1, 2))
    await make_product(alice, "cherry", ProductStatus.APPROVED, RedemptionType.MANUAL, created_at=datetime(2026, 1, 3))

    response = await client.get("/api/products/browse", params={"sort": "name"})
    assert [p["name"] for p in response.json()["items"]] == ["Apple", "banana", "cherry"]

    response = await client.get("/api/products/browse", params={"sort": "oldest"})
    assert [p["name"] for p in response.json()["items"]] == ["banana", "Apple", "cherry"]

    response = await client.get("/api/products/browse", params={"redemption_type": "manual"})
    assert [p["name"] for p in response.json()["items"]] == ["cherry", "Apple"]

    response = await client.get("/api/products/browse", params={"page": 1, "page_size": 2})
    body = response.json()
    assert [p["name"] for p in body["items"]] == ["cherry", "Apple"]
    assert body["has_more"] is True
    assert body["total"] == 3

    response = await client.get("/api/products/browse", params={"page": 2, "page_size": 2})
    body = response.json()
    assert [p["name"] for p in body["items"]] == ["banana"]
    assert body["has_more"] is False


async def test_browse_rejects_unknown_redemption_type(client):
    response = await client.get("/api/products/browse", params={"redemption_type": "paypal"})
    assert response.status_code == 422


async def test_product_detail_visibility(client, headers, alice, bob, admin, make_product):
    pending = await make_product(alice, "Secret", ProductStatus.PENDING)
    approved = await make_product(alice, "Public", ProductStatus.APPROVED)

    assert (await client.get(f"/api/products/{approved.id}")).status_code == 200
    assert (await client.get(f"/api/products/{pending.id}")).status_code == 404
    assert (await client.get(f"/api/products/{pending.id}", headers=headers(bob))).status_code == 404
    assert (await client.get(f"/api/products/{pending.id}", headers=headers(alice))).status_code == 200
    assert (await client.get(f"/api/products/{pending.id}", headers=headers(admin))).status_code == 200


async def test_submit_rejects_tags_longer_than_column(client, headers, alice):
    tags = [f"tag-{i:03d}-{'x' * 20}" for i in range(30)]

    response = await client.post(
        "/api/products",
        headers=headers(alice),
        json={"name": "Lamp", "redemption_type": "manual", "tags": tags},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Tags must be at most 500 characters in total."

    mine = await client.get("/api/products/mine", headers=headers(alice))
    assert mine.json()["stats"]["total"] == 0

    response = await client.post(
        "/api/products",
        headers=headers(alice),
        json={"name": "Lamp", "redemption_type": "manual", "tags": tags[:15]},
    )
    assert response.status_code == 201
