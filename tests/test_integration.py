"""
Integration tests for the HTTP API.
"""
from typing import Any

import pytest
from httpx import AsyncClient

from emi_collection.api import routes


class TestCreatePayment:
    """POST /payments."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_full_payment(self, client: AsyncClient, read_emi_due: Any) -> None:
        """Paying the whole due returns remaining_due 0."""
        response = await client.post(
            "/payments", json={"account_number": "ACC001", "payment_amount": 5000}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Payment processed successfully"
        assert body["data"]["account_number"] == "ACC001"
        assert body["data"]["payment_amount"] == 5000.0
        assert body["data"]["remaining_due"] == 0.0
        assert isinstance(body["data"]["payment_id"], int)

        history = await client.get("/payments/ACC001")
        assert len(history.json()["data"]) == 3
        assert history.json()["data"][0]["id"] == body["data"]["payment_id"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_partial_payment(self, client: AsyncClient) -> None:
        """A partial payment leaves the difference due."""
        response = await client.post(
            "/payments", json={"account_number": "ACC003", "payment_amount": "800.50"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["remaining_due"] == 1999.5

        customer = await client.get("/customers/ACC003")
        assert customer.json()["data"]["emi_due"] == 1999.5

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_account(self, client: AsyncClient, count_payments: Any) -> None:
        """Unknown account: 404 and no payment row."""
        response = await client.post(
            "/payments", json={"account_number": "ACC999", "payment_amount": 100}
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Customer account not found"}
        assert await count_payments() == 5

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_negative_amount(self, client: AsyncClient, read_emi_due: Any) -> None:
        """Negative amounts are rejected without touching the balance."""
        response = await client.post(
            "/payments", json={"account_number": "ACC002", "payment_amount": -5}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Payment amount must be greater than zero",
        }
        assert str(await read_emi_due("ACC002")) == "3500.00"

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"account_number": "ACC001"}, {"payment_amount": 100}],
    )
    async def test_missing_fields(self, client: AsyncClient, payload: dict) -> None:
        """Both fields are required."""
        response = await client.post("/payments", json=payload)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Account number and payment amount are required",
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_non_numeric_amount(self, client: AsyncClient, count_payments: Any) -> None:
        """Amounts that are not numbers are a 400."""
        response = await client.post(
            "/payments", json={"account_number": "ACC001", "payment_amount": "abc"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert await count_payments() == 5

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_malformed_json(self, client: AsyncClient) -> None:
        """An unparsable body is a 400 in the error shape."""
        response = await client.post(
            "/payments",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestCustomers:
    """GET /customers and /customers/{account_number}."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_second_page(self, client: AsyncClient) -> None:
        """Page 2 of size 2 holds ACC003 and ACC004."""
        response = await client.get("/customers", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [row["account_number"] for row in body["data"]] == ["ACC003", "ACC004"]
        assert body["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "totalPages": 3,
            "hasMore": True,
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_listing_fields(self, client: AsyncClient) -> None:
        """Listing rows carry the loan fields but not the internal id."""
        response = await client.get("/customers")

        first = response.json()["data"][0]
        assert first == {
            "account_number": "ACC001",
            "issue_date": "2023-01-15",
            "interest_rate": 8.5,
            "tenure": 24,
            "emi_due": 5000.0,
            "customer_name": "Alen",
            "total_loan_amount": 100000.0,
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_defaults_for_unusable_params(self, client: AsyncClient) -> None:
        """Non-numeric page and limit fall back to 1 and 10."""
        response = await client.get("/customers", params={"page": "abc", "limit": "xyz"})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 5
        assert body["pagination"] == {
            "page": 1,
            "limit": 10,
            "total": 5,
            "totalPages": 1,
            "hasMore": False,
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_limit_is_capped(self, client: AsyncClient) -> None:
        """Oversized limits are clamped."""
        response = await client.get("/customers", params={"limit": 5000})

        assert response.json()["pagination"]["limit"] == 100

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_page_past_the_end(self, client: AsyncClient) -> None:
        """Pages beyond the last one are empty."""
        response = await client.get("/customers", params={"page": 9, "limit": 2})

        body = response.json()
        assert body["data"] == []
        assert body["pagination"]["hasMore"] is False
        assert body["pagination"]["totalPages"] == 3

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_get_customer(self, client: AsyncClient) -> None:
        """Single customer returns the full row."""
        response = await client.get("/customers/ACC005")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["account_number"] == "ACC005"
        assert data["customer_name"] == "Steve"
        assert data["emi_due"] == 6000.0
        assert isinstance(data["id"], int)
        assert "created_at" in data

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_get_unknown_customer(self, client: AsyncClient) -> None:
        """Unknown account number is a 404."""
        response = await client.get("/customers/NOPE")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Customer not found"}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_store_failure_is_opaque(self, client: AsyncClient, mocker: Any) -> None:
        """Internal error details never reach the client."""
        mocker.patch.object(
            routes.customer_service,
            "list_customers",
            side_effect=RuntimeError("password=hunter2 host=db.internal"),
        )

        response = await client.get("/customers")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to fetch customer data"}
        assert "hunter2" not in response.text


class TestPaymentListing:
    """GET /payments and /payments/{account_number}."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_newest_first(self, client: AsyncClient) -> None:
        """Listing is ordered by payment date, newest first."""
        response = await client.get("/payments", params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert [row["account_number"] for row in body["data"]] == ["ACC001", "ACC004"]
        assert body["data"][0]["payment_date"].startswith("2024-02-15")
        assert body["data"][0]["customer_name"] == "Alen"
        assert body["data"][0]["status"] == "completed"
        assert body["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 5,
            "totalPages": 3,
            "hasMore": True,
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_last_page(self, client: AsyncClient) -> None:
        """The final partial page reports no more results."""
        response = await client.get("/payments", params={"page": 3, "limit": 2})

        body = response.json()
        assert len(body["data"]) == 1
        assert body["data"][0]["account_number"] == "ACC003"
        assert body["pagination"]["hasMore"] is False

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_account_history(self, client: AsyncClient) -> None:
        """Per-account history, newest first, without account_number."""
        response = await client.get("/payments/ACC001")

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 2
        assert data[0]["payment_date"] > data[1]["payment_date"]
        assert data[0]["payment_amount"] == 5000.0
        assert data[0]["customer_name"] == "Alen"
        assert "account_number" not in data[0]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_account_history_is_empty(self, client: AsyncClient) -> None:
        """Unknown accounts get an empty history, not a 404."""
        response = await client.get("/payments/ACC999")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": []}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_reads_are_repeatable(self, client: AsyncClient) -> None:
        """Two identical reads with no writes between them agree."""
        first = await client.get("/payments", params={"page": 1, "limit": 3})
        second = await client.get("/payments", params={"page": 1, "limit": 3})

        assert first.json() == second.json()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_history_failure_is_opaque(self, client: AsyncClient, mocker: Any) -> None:
        """Unexpected failures map to the endpoint's public message."""
        mocker.patch.object(
            routes.payment_processor,
            "get_payment_history",
            side_effect=RuntimeError("connection reset"),
        )

        response = await client.get("/payments/ACC001")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to fetch payment history"}


class TestMonitoring:
    """Health, readiness, metrics and request plumbing."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        """Liveness is always OK."""
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["timestamp"].endswith("Z")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_readiness(self, client: AsyncClient) -> None:
        """Readiness pings the database."""
        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["checks"]["database"]["status"] == "healthy"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_readiness_database_down(
        self, client: AsyncClient, seeded_database: Any, mocker: Any
    ) -> None:
        """An unreachable database makes the service not ready."""
        mocker.patch.object(seeded_database, "ping", side_effect=ConnectionError("refused"))

        response = await client.get("/health/ready")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["database"]["error"] == "Database health check failed"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_metrics(self, client: AsyncClient) -> None:
        """Payment counters are exposed in Prometheus format."""
        await client.post("/payments", json={"account_number": "ACC002", "payment_amount": 100})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'emi_payment_requests_total{outcome="completed"}' in response.text
        assert "emi_payment_processing_duration_seconds" in response.text

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient) -> None:
        """Routing errors use the same error body."""
        response = await client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Not Found"}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient) -> None:
        """Every response carries a request ID."""
        response = await client.get("/health")

        assert response.headers.get("X-Request-ID")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_cors_preflight(self, client: AsyncClient) -> None:
        """Any origin may call the API."""
        response = await client.options(
            "/customers",
            headers={
                "Origin": "http://frontend.example",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
