"""Unit tests for the fare estimator and the versioned rate record."""

import pytest

from conftest import register_admin, register_customer, request_ride
from fares.fares import estimate_fare, get_current_rate, publish_rate, quote, round_fare
from models.rate import RateUpdate


class TestEstimateFare:
    def test_five_km_at_default_rate(self):
        assert estimate_fare(5.00, 2.50, 5) == 17.50  # 5 + 5*2.5

    def test_zero_distance_is_base_fare(self):
        assert estimate_fare(5.00, 2.50, 0) == 5.00

    def test_rounds_half_up_to_cents(self):
        assert estimate_fare(0, 0.125, 1) == 0.13
        assert estimate_fare(1.10, 2.20, 3) == 7.70

    def test_round_fare_matches_estimator(self):
        assert round_fare(2.675) == 2.68
        assert round_fare(10) == 10.0

    def test_negative_distance_rejected(self):
        with pytest.raises(ValueError):
            estimate_fare(5.00, 2.50, -1)


class TestRateRecord:
    async def test_defaults_apply_without_records(self, db):
        rate = await get_current_rate(db)
        assert rate.version == 0
        assert (rate.base_fare, rate.per_km, rate.currency) == (5.00, 2.50, "MYR")

    async def test_publish_increments_version(self, db):
        first = await publish_rate(db, RateUpdate(base_fare=4, per_km=2), "admin-1")
        second = await publish_rate(db, RateUpdate(base_fare=6, per_km=3, currency="sgd"), "admin-1")

        assert (first.version, second.version) == (1, 2)
        current = await get_current_rate(db)
        assert current.version == 2
        assert current.currency == "SGD"

    async def test_quote_uses_current_rate(self, db):
        await publish_rate(db, RateUpdate(base_fare=3, per_km=1.5))
        estimate = await quote(db, 10)
        assert estimate.estimated_fare == 18.00
        assert estimate.rate_version == 1


class TestFareApi:
    async def test_estimate_endpoint(self, client):
        response = await client.get("/api/fares/estimate", params={"distance_km": 5})
        assert response.status_code == 200
        assert response.json()["estimated_fare"] == 17.50

    async def test_estimate_rejects_negative_distance(self, client):
        response = await client.get("/api/fares/estimate", params={"distance_km": -2})
        assert response.status_code == 400

    async def test_rate_change_only_affects_new_rides(self, client):
        customer = await register_customer(client)
        admin = await register_admin(client)

        old_ride = await request_ride(client, customer, distance_km=5)
        response = await client.put(
            "/api/admin/rates", json={"base_fare": 10, "per_km": 4}, headers=admin
        )
        assert response.status_code == 201
        new_ride = await request_ride(client, customer, distance_km=5)

        assert old_ride["estimated_fare"] == 17.50
        assert old_ride["rate_version"] == 0
        assert new_ride["estimated_fare"] == 30.00
        assert new_ride["rate_version"] == 1

        stored = await client.get(f"/api/rides/{old_ride['id']}", headers=customer)
        assert stored.json()["estimated_fare"] == 17.50
