"""Admin endpoints: bootstrap registration, account management, rides, rates."""

from bson import ObjectId

from conftest import PASSWORD, register_admin, register_customer, register_driver, request_ride


async def account_id(client, headers, path):
    return (await client.get(path, headers=headers)).json()["id"]


class TestAdminRegistration:
    async def test_first_admin_registers_freely(self, client):
        headers = await register_admin(client)
        response = await client.get("/api/admin/rides", headers=headers)
        assert response.status_code == 200

    async def test_later_admins_need_an_admin_token(self, client, admin):
        payload = {"email": "second@example.com", "password": PASSWORD, "name": "Second"}
        anonymous = await client.post("/api/admin/register", json=payload)
        assert anonymous.status_code == 401

        await register_admin(client, "second@example.com", headers=admin)

    async def test_claimed_bootstrap_requires_token(self, client, db):
        await db["settings"].insert_one({"_id": "first_admin"})
        payload = {"email": "late@example.com", "password": PASSWORD, "name": "Late"}

        response = await client.post("/api/admin/register", json=payload)
        assert response.status_code == 401
        assert await db["users"].count_documents({"role": "admin"}) == 0

    async def test_failed_bootstrap_releases_claim(self, client, db, customer):
        payload = {"email": "alice@example.com", "password": PASSWORD, "name": "Dup"}
        response = await client.post("/api/admin/register", json=payload)
        assert response.status_code == 409
        assert await db["settings"].find_one({"_id": "first_admin"}) is None

        await register_admin(client)

    async def test_admin_cannot_use_customer_login(self, client, admin):
        response = await client.post("/api/auth/login", json={"email": "root@example.com", "password": PASSWORD})
        assert response.status_code == 401

    async def test_non_admin_is_forbidden(self, client, admin, customer):
        response = await client.get("/api/admin/rides", headers=customer)
        assert response.status_code == 403


class TestAccountManagement:
    async def test_block_customer_locks_them_out(self, client, admin, customer):
        customer_id = await account_id(client, customer, "/api/users/me")

        response = await client.patch(f"/api/admin/users/{customer_id}", json={"is_blocked": True}, headers=admin)
        assert response.status_code == 200
        assert response.json()["is_blocked"] is True

        assert (await client.get("/api/users/me", headers=customer)).status_code == 403
        login = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert login.status_code == 403

    async def test_update_driver_availability(self, client, admin, driver):
        driver_id = await account_id(client, driver, "/api/drivers/me")
        response = await client.patch(
            f"/api/admin/users/{driver_id}", json={"availability_status": "available"}, headers=admin
        )
        assert response.status_code == 200
        assert response.json()["availability_status"] == "available"

    async def test_driver_fields_rejected_for_customer(self, client, admin, customer):
        customer_id = await account_id(client, customer, "/api/users/me")
        response = await client.patch(
            f"/api/admin/users/{customer_id}", json={"availability_status": "available"}, headers=admin
        )
        assert response.status_code == 400

    async def test_null_fields_rejected_and_account_intact(self, client, admin, customer):
        customer_id = await account_id(client, customer, "/api/users/me")

        for field in ("name", "is_blocked"):
            response = await client.patch(f"/api/admin/users/{customer_id}", json={field: None}, headers=admin)
            assert response.status_code == 400

        me = await client.get("/api/users/me", headers=customer)
        assert me.status_code == 200
        assert me.json()["name"] == "Alice"
        assert me.json()["is_blocked"] is False

    async def test_update_unknown_account_is_404(self, client, admin):
        response = await client.patch(f"/api/admin/users/{ObjectId()}", json={"name": "X"}, headers=admin)
        assert response.status_code == 404

    async def test_delete_driver_keeps_rides(self, client, admin, customer, driver):
        ride = await request_ride(client, customer)
        await client.patch(f"/api/rides/{ride['id']}/accept", headers=driver)
        driver_id = await account_id(client, driver, "/api/drivers/me")

        response = await client.delete(f"/api/admin/users/{driver_id}", headers=admin)
        assert response.status_code == 204
        assert (await client.delete(f"/api/admin/users/{driver_id}", headers=admin)).status_code == 404

        stored = await client.get(f"/api/rides/{ride['id']}", headers=customer)
        assert stored.json()["driver_id"] == driver_id


class TestRideAdministration:
    async def test_list_filter_and_delete(self, client, admin, customer):
        first = await request_ride(client, customer)
        second = await request_ride(client, customer)
        await client.patch(f"/api/rides/{second['id']}/cancel", headers=customer)

        cancelled = await client.get("/api/admin/rides", params={"status": "cancelled"}, headers=admin)
        assert [r["id"] for r in cancelled.json()] == [second["id"]]

        response = await client.delete(f"/api/admin/rides/{first['id']}", headers=admin)
        assert response.status_code == 204
        assert (await client.get(f"/api/rides/{first['id']}", headers=customer)).status_code == 404

    async def test_remove_review_allows_new_review(self, client, admin, customer, driver):
        ride = await request_ride(client, customer)
        await client.patch(f"/api/rides/{ride['id']}/accept", headers=driver)
        await client.patch(f"/api/rides/{ride['id']}/complete", headers=driver)
        await client.post(f"/api/rides/{ride['id']}/review", json={"rating": 1}, headers=customer)

        response = await client.delete(f"/api/admin/reviews/{ride['id']}", headers=admin)
        assert response.status_code == 204
        stored = await client.get(f"/api/rides/{ride['id']}", headers=customer)
        assert stored.json()["review"] is None

    async def test_remove_review_of_unknown_ride_is_404(self, client, admin):
        response = await client.delete(f"/api/admin/reviews/{ObjectId()}", headers=admin)
        assert response.status_code == 404


class TestRates:
    async def test_rate_versions(self, client, admin):
        current = await client.get("/api/admin/rates", headers=admin)
        assert current.json()["version"] == 0

        await client.put("/api/admin/rates", json={"base_fare": 4, "per_km": 2}, headers=admin)
        await client.put("/api/admin/rates", json={"base_fare": 6, "per_km": 3}, headers=admin)

        history = await client.get("/api/admin/rates/history", headers=admin)
        assert [r["version"] for r in history.json()] == [2, 1]

        estimate = await client.get("/api/fares/estimate", params={"distance_km": 2})
        assert estimate.json()["estimated_fare"] == 12.00

    async def test_negative_rate_rejected(self, client, admin):
        response = await client.put("/api/admin/rates", json={"base_fare": -1, "per_km": 2}, headers=admin)
        assert response.status_code == 400


class TestDebug:
    async def test_health_check(self, client):
        response = await client.get("/")
        assert response.status_code == 200

    async def test_db_status_counts(self, client, admin, customer):
        response = await client.get("/api/debug/db-status", headers=admin)
        assert response.status_code == 200
        assert response.json()["counts"]["users"] == 2
