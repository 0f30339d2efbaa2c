"""
Request mapping tests for the Drip clients with mocked HTTP responses:
1. Customers (create, get, list, balance)
2. Usage tracking
3. Runs and events
4. Health check
5. Error mapping
"""

from __future__ import annotations

import json
import math
from typing import Any

import httpx
import pytest
import respx

from drip import (
    AsyncDrip,
    CustomerStatus,
    Drip,
    DripAPIError,
    DripAuthenticationError,
    DripNetworkError,
    DripNotFoundError,
    DripParseError,
    DripRateLimitError,
    DripTimeoutError,
    ErrorKind,
    RunStatus,
    generate_idempotency_key,
)

API_BASE_URL = "https://api.drip.test/v1"
HEALTH_URL = "https://api.drip.test/health"
API_KEY = "sk_test_123"


def mock_customer_response(customer_id: str, external_id: str | None = None) -> dict[str, Any]:
    """Generate a mock customer response."""
    return {
        "id": customer_id,
        "businessId": "biz_test",
        "externalCustomerId": external_id,
        "onchainAddress": "0x1234",
        "status": "ACTIVE",
        "isInternal": False,
        "metadata": {"plan": "starter", "seats": 3},
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }


def request_json(route: respx.Route) -> dict[str, Any]:
    return json.loads(route.calls.last.request.content)


@pytest.fixture
def client() -> Drip:
    return Drip(api_key=API_KEY, base_url=API_BASE_URL)


@pytest.fixture
def async_client() -> AsyncDrip:
    return AsyncDrip(api_key=API_KEY, base_url=API_BASE_URL)


class TestCustomers:
    @respx.mock
    def test_create_customer(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/customers").mock(
            return_value=httpx.Response(200, json=mock_customer_response("cus_1", "user_1"))
        )

        customer = client.create_customer(
            external_customer_id="user_1",
            onchain_address="0x1234",
            metadata={"plan": "starter"},
        )

        assert request_json(route) == {
            "externalCustomerId": "user_1",
            "onchainAddress": "0x1234",
            "metadata": {"plan": "starter"},
        }
        headers = route.calls.last.request.headers
        assert headers["Authorization"] == f"Bearer {API_KEY}"
        assert headers["Content-Type"] == "application/json"

        assert customer.id == "cus_1"
        assert customer.external_customer_id == "user_1"
        assert customer.status is CustomerStatus.ACTIVE
        assert customer.metadata == {"plan": "starter", "seats": "3"}

    @respx.mock
    def test_get_customer(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1").mock(
            return_value=httpx.Response(200, json=mock_customer_response("cus_1"))
        )
        assert client.get_customer("cus_1").onchain_address == "0x1234"

    @respx.mock
    def test_list_customers(self, client: Drip) -> None:
        route = respx.get(f"{API_BASE_URL}/customers").mock(
            return_value=httpx.Response(
                200,
                json={"data": [mock_customer_response("cus_1"), mock_customer_response("cus_2")], "count": 2},
            )
        )

        result = client.list_customers(status=CustomerStatus.LOW_BALANCE, limit=10)

        params = route.calls.last.request.url.params
        assert params["limit"] == "10"
        assert params["status"] == "LOW_BALANCE"
        assert result.count == 2
        assert [c.id for c in result.data] == ["cus_1", "cus_2"]

    @respx.mock
    def test_get_balance(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1/balance").mock(
            return_value=httpx.Response(200, json={"customerId": "cus_1", "balanceUsdc": "12.5"})
        )
        balance = client.get_balance("cus_1")
        assert balance.customer_id == "cus_1"
        assert balance.balance_usdc == "12.5"

    @respx.mock
    def test_unknown_status_kept_as_string(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1").mock(
            return_value=httpx.Response(200, json={**mock_customer_response("cus_1"), "status": "SUSPENDED"})
        )

        customer = client.get_customer("cus_1")

        assert customer.status == "SUSPENDED"
        assert not isinstance(customer.status, CustomerStatus)


class TestUsage:
    @respx.mock
    def test_track_usage_derives_key(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/usage/internal").mock(
            return_value=httpx.Response(
                200,
                json={
                    "success": True,
                    "usageEventId": "use_1",
                    "customerId": "cus_1",
                    "usageType": "tokens",
                    "quantity": 1500,
                    "isInternal": True,
                },
            )
        )

        result = client.track_usage(customer_id="cus_1", meter="tokens", quantity=1500, units="tokens")

        body = request_json(route)
        assert body["customerId"] == "cus_1"
        assert body["usageType"] == "tokens"
        assert body["quantity"] == 1500
        assert body["units"] == "tokens"
        assert body["idempotencyKey"] == generate_idempotency_key("track", "cus_1", "tokens", 1500)
        assert result.usage_event_id == "use_1"
        assert result.is_internal is True

    @respx.mock
    def test_track_usage_explicit_key_and_zero_quantity(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/usage/internal").mock(
            return_value=httpx.Response(200, json={"usageEventId": "use_2"})
        )

        client.track_usage(customer_id="cus_1", meter="tokens", quantity=0, idempotency_key="mine")

        body = request_json(route)
        assert body["idempotencyKey"] == "mine"
        assert body["quantity"] == 0

    @pytest.mark.parametrize("quantity", [math.nan, math.inf, -math.inf])
    @respx.mock
    def test_track_usage_non_finite_quantity_sent_as_null(self, client: Drip, quantity: float) -> None:
        route = respx.post(f"{API_BASE_URL}/usage/internal").mock(
            return_value=httpx.Response(200, json={"usageEventId": "use_3"})
        )

        result = client.track_usage(customer_id="cus_1", meter="tokens", quantity=quantity)

        assert route.called
        body = request_json(route)
        assert body["quantity"] is None
        assert body["idempotencyKey"] == generate_idempotency_key("track", "cus_1", "tokens", quantity)
        assert result.usage_event_id == "use_3"


class TestRunsAndEvents:
    @respx.mock
    def test_start_run(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/runs").mock(
            return_value=httpx.Response(
                200,
                json={"id": "run_1", "customerId": "cus_1", "workflowId": "wf_1", "status": "RUNNING"},
            )
        )

        run = client.start_run(
            customer_id="cus_1", workflow_id="wf_1", correlation_id="trace_1", parent_run_id="run_0"
        )

        assert request_json(route) == {
            "customerId": "cus_1",
            "workflowId": "wf_1",
            "correlationId": "trace_1",
            "parentRunId": "run_0",
        }
        assert run.id == "run_1"
        assert run.workflow_id == "wf_1"
        assert run.status is RunStatus.RUNNING

    @respx.mock
    def test_end_run(self, client: Drip) -> None:
        route = respx.patch(f"{API_BASE_URL}/runs/run_1").mock(
            return_value=httpx.Response(
                200,
                json={"id": "run_1", "status": "FAILED", "durationMs": 42, "totalCostUnits": 0.25},
            )
        )

        result = client.end_run("run_1", "FAILED", error_message="boom", error_code="E1")

        assert request_json(route) == {"status": "FAILED", "errorMessage": "boom", "errorCode": "E1"}
        assert result.status is RunStatus.FAILED
        assert result.duration_ms == 42
        assert result.total_cost_units == "0.25"

    @respx.mock
    def test_end_run_fractional_counts(self, client: Drip) -> None:
        respx.patch(f"{API_BASE_URL}/runs/run_1").mock(
            return_value=httpx.Response(
                200,
                json={"id": "run_1", "status": "COMPLETED", "durationMs": 12.5, "eventCount": "3"},
            )
        )

        result = client.end_run("run_1", RunStatus.COMPLETED)

        assert result.duration_ms == 12
        assert result.event_count == 3

    @respx.mock
    def test_end_run_unreadable_duration_is_none(self, client: Drip) -> None:
        respx.patch(f"{API_BASE_URL}/runs/run_1").mock(
            return_value=httpx.Response(200, json={"id": "run_1", "status": "COMPLETED", "durationMs": "soon"})
        )
        assert client.end_run("run_1", RunStatus.COMPLETED).duration_ms is None

    @respx.mock
    def test_unknown_run_status_reads_as_pending(self, client: Drip) -> None:
        respx.post(f"{API_BASE_URL}/runs").mock(
            return_value=httpx.Response(200, json={"id": "run_1", "status": "QUEUED"})
        )
        assert client.start_run("cus_1", "wf_1").status is RunStatus.PENDING

    @respx.mock
    def test_emit_event_sparse_encoding(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/run-events").mock(
            return_value=httpx.Response(
                200, json={"id": "evt_1", "runId": "run_1", "eventType": "step", "isDuplicate": False}
            )
        )

        result = client.emit_event(run_id="run_1", event_type="step", quantity=0, cost_units=0)

        body = request_json(route)
        assert "quantity" not in body
        assert "costUnits" not in body
        assert body["idempotencyKey"] == generate_idempotency_key("evt", "run_1", "step", 0)
        assert result.id == "evt_1"
        assert result.is_duplicate is False

    @respx.mock
    def test_emit_event_with_values(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/run-events").mock(
            return_value=httpx.Response(200, json={"id": "evt_2", "isDuplicate": True})
        )

        result = client.emit_event(
            run_id="run_1", event_type="llm.call", quantity=300, units="tokens", cost_units=0.5
        )

        body = request_json(route)
        assert body["quantity"] == 300
        assert body["costUnits"] == 0.5
        assert body["units"] == "tokens"
        assert result.is_duplicate is True

    @respx.mock
    def test_emit_events_batch(self, client: Drip) -> None:
        route = respx.post(f"{API_BASE_URL}/run-events/batch").mock(
            return_value=httpx.Response(200, json={"success": True, "created": 1, "duplicates": 1})
        )

        result = client.emit_events_batch([{"runId": "run_1", "eventType": "a"}])

        assert request_json(route) == {"events": [{"runId": "run_1", "eventType": "a"}]}
        assert (result.created, result.duplicates) == (1, 1)


class TestPing:
    @respx.mock
    def test_ping_strips_version_suffix(self, client: Drip) -> None:
        route = respx.get(HEALTH_URL).mock(
            return_value=httpx.Response(200, json={"status": "healthy", "timestamp": 1700000000000})
        )

        health = client.ping()

        assert route.called
        assert health.ok is True
        assert health.status == "healthy"
        assert health.timestamp == 1700000000000
        assert health.latency_ms >= 0

    @respx.mock
    def test_ping_missing_status_defaults_to_healthy(self, client: Drip) -> None:
        respx.get(HEALTH_URL).mock(return_value=httpx.Response(200, json={}))
        health = client.ping()
        assert health.ok is True
        assert health.status == "healthy"

    @respx.mock
    def test_ping_degraded(self, client: Drip) -> None:
        respx.get(HEALTH_URL).mock(return_value=httpx.Response(200, json={"status": "degraded"}))
        health = client.ping()
        assert health.ok is False
        assert health.status == "degraded"

    @respx.mock
    def test_ping_timeout_is_not_network_error(self, client: Drip) -> None:
        respx.get(HEALTH_URL).mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(DripTimeoutError) as exc_info:
            client.ping()

        assert not isinstance(exc_info.value, DripNetworkError)
        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert exc_info.value.status_code == 0

    @respx.mock
    def test_ping_connection_error(self, client: Drip) -> None:
        respx.get(HEALTH_URL).mock(side_effect=httpx.ConnectError)

        with pytest.raises(DripNetworkError) as exc_info:
            client.ping()

        assert exc_info.value.kind is ErrorKind.NETWORK


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("status", "error_type"),
        [
            (401, DripAuthenticationError),
            (404, DripNotFoundError),
            (429, DripRateLimitError),
            (500, DripAPIError),
        ],
    )
    @respx.mock
    def test_status_codes(self, client: Drip, status: int, error_type: type) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_x").mock(
            return_value=httpx.Response(status, json={"error": "nope", "code": "SOME_CODE"})
        )

        with pytest.raises(error_type) as exc_info:
            client.get_customer("cus_x")

        assert exc_info.value.status_code == status
        assert exc_info.value.message == "nope"

    @respx.mock
    def test_malformed_json_raises_parse_error(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )

        with pytest.raises(DripParseError) as exc_info:
            client.get_customer("cus_1")

        assert exc_info.value.status_code == 200
        assert exc_info.value.code == "PARSE_ERROR"

    @respx.mock
    def test_malformed_error_body_keeps_status(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1").mock(
            return_value=httpx.Response(502, text="Bad Gateway")
        )

        with pytest.raises(DripParseError) as exc_info:
            client.get_customer("cus_1")

        assert exc_info.value.status_code == 502

    @respx.mock
    def test_unexpected_object_shape_raises_parse_error(self, client: Drip) -> None:
        respx.get(f"{API_BASE_URL}/customers/cus_1").mock(
            return_value=httpx.Response(200, json={"status": "ACTIVE"})
        )

        with pytest.raises(DripParseError) as exc_info:
            client.get_customer("cus_1")

        assert exc_info.value.status_code == 200
        assert exc_info.value.kind is ErrorKind.PARSE
        assert "Customer" in exc_info.value.message

    @respx.mock
    def test_no_content(self, client: Drip) -> None:
        respx.post(f"{API_BASE_URL}/run-events/batch").mock(return_value=httpx.Response(204))

        result = client.emit_events_batch([])

        assert result.success is True
        assert result.created == 0


class TestAsyncClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_create_customer(self, async_client: AsyncDrip) -> None:
        route = respx.post(f"{API_BASE_URL}/customers").mock(
            return_value=httpx.Response(200, json=mock_customer_response("cus_1", "user_1"))
        )

        async with async_client:
            customer = await async_client.create_customer(external_customer_id="user_1")

        assert request_json(route) == {"externalCustomerId": "user_1"}
        assert customer.id == "cus_1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_ping_timeout(self, async_client: AsyncDrip) -> None:
        respx.get(HEALTH_URL).mock(side_effect=httpx.ConnectTimeout)

        async with async_client:
            with pytest.raises(DripTimeoutError):
                await async_client.ping()

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_found(self, async_client: AsyncDrip) -> None:
        respx.get(f"{API_BASE_URL}/customers/missing").mock(
            return_value=httpx.Response(404, json={"message": "Customer not found"})
        )

        async with async_client:
            with pytest.raises(DripNotFoundError, match="Customer not found"):
                await async_client.get_customer("missing")

    @pytest.mark.asyncio
    @respx.mock
    async def test_unexpected_object_shape(self, async_client: AsyncDrip) -> None:
        respx.post(f"{API_BASE_URL}/runs").mock(
            return_value=httpx.Response(201, json={"customerId": "cus_1"})
        )

        async with async_client:
            with pytest.raises(DripParseError) as exc_info:
                await async_client.start_run("cus_1", "wf_1")

        assert exc_info.value.status_code == 201

    @pytest.mark.asyncio
    @respx.mock
    async def test_track_usage_nan_quantity(self, async_client: AsyncDrip) -> None:
        route = respx.post(f"{API_BASE_URL}/usage/internal").mock(
            return_value=httpx.Response(200, json={"usageEventId": "use_4"})
        )

        async with async_client:
            await async_client.track_usage(customer_id="cus_1", meter="tokens", quantity=math.nan)

        assert request_json(route)["quantity"] is None
