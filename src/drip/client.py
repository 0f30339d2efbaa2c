"""
Drip SDK client.

This module provides the Drip client classes for interacting with the
Drip API for usage tracking and agent run recording.

Idempotency Keys
----------------
``track_usage`` and ``emit_event`` accept an optional ``idempotency_key``.
The server uses this key to deduplicate requests.

**Auto-generated keys (default):**
When you omit ``idempotency_key``, the SDK derives one from the call's
parameters (see :func:`drip.utils.generate_idempotency_key`). The same
logical call always gets the same key, so retrying it is safe.

**When to pass explicit keys:**
Two intentionally identical calls (same customer, meter and quantity)
would share a derived key and the second would be reported as a
duplicate. Pass your own key, e.g. ``f"order_{order_id}_tokens"``, when
each call must count separately.

``record_run`` derives one key per event from the run and the event's
position, or from ``external_run_id`` when you supply it.
"""

from __future__ import annotations

import json as _json_mod
import logging
import time
from collections.abc import Iterable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import resolve_config
from .errors import (
    DripNetworkError,
    DripParseError,
    DripTimeoutError,
    create_api_error_from_response,
)
from .models import (
    BalanceResult,
    Customer,
    CustomerStatus,
    DripConfig,
    EmitEventsBatchResult,
    EndRunResult,
    EventResult,
    KeyType,
    ListCustomersResponse,
    ListWorkflowsResponse,
    PingResult,
    RecordRunResult,
    RunResult,
    RunStatus,
    TrackUsageResult,
    Workflow,
)
from .runs import (
    DEFAULT_PRODUCT_SURFACE,
    EventInput,
    build_event_batch,
    build_record_run_result,
    find_workflow,
    is_workflow_id,
    normalize_events,
    workflow_display_name,
)
from .utils import encode_json_body, generate_idempotency_key

logger = logging.getLogger("drip.client")

USER_AGENT = "drip-sdk-python/1.1.0"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _health_url(base_url: str) -> str:
    """Health endpoint lives at the root, not under /v1."""
    root = base_url
    if root.endswith("/v1"):
        root = root[:-3]
    return root.rstrip("/") + "/health"


def _handle_response(method: str, path: str, response: httpx.Response) -> dict[str, Any]:
    """Decode a response or raise the matching DripError."""
    if response.status_code == 204:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("drip response: %s %s status=204 body={}", method, path)
        return {"success": True}

    try:
        body = response.json()
    except ValueError as e:
        raise DripParseError(
            f"Failed to parse API response: {e}", response.status_code
        ) from e

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "drip response: %s %s status=%d body=%s",
            method,
            path,
            response.status_code,
            _json_mod.dumps(body, default=str),
        )

    if not response.is_success:
        raise create_api_error_from_response(response.status_code, body)

    if not isinstance(body, dict):
        raise DripParseError(
            f"Expected a JSON object, got {type(body).__name__}", response.status_code
        )
    return body


def _validate(model: type[ModelT], data: dict[str, Any], status_code: int) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DripParseError(
            f"Unexpected {model.__name__} response: {e}", status_code
        ) from e


def _log_request(
    method: str,
    path: str,
    json: dict[str, Any] | None,
    params: dict[str, Any] | None,
) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "drip request: %s %s body=%s params=%s",
            method,
            path,
            _json_mod.dumps(json, default=str) if json else None,
            _json_mod.dumps(params, default=str) if params else None,
        )


def _ping_result(data: dict[str, Any], latency_ms: int) -> PingResult:
    status = data.get("status")
    if not isinstance(status, str) or not status:
        status = "healthy"
    timestamp = data.get("timestamp")
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        timestamp = time.time() * 1000
    return PingResult(
        ok=status == "healthy",
        status=status,
        latency_ms=latency_ms,
        timestamp=int(timestamp),
    )


def _customer_body(
    onchain_address: str | None,
    external_customer_id: str | None,
    is_internal: bool | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if onchain_address:
        body["onchainAddress"] = onchain_address
    if external_customer_id:
        body["externalCustomerId"] = external_customer_id
    if is_internal is not None:
        body["isInternal"] = is_internal
    if metadata:
        body["metadata"] = metadata
    return body


def _list_customers_params(status: CustomerStatus | str | None, limit: int) -> dict[str, Any]:
    params: dict[str, Any] = {"limit": limit}
    if status:
        params["status"] = CustomerStatus(status).value
    return params


def _track_usage_body(
    customer_id: str,
    meter: str,
    quantity: float,
    idempotency_key: str | None,
    units: str | None,
    description: str | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "customerId": customer_id,
        "usageType": meter,
        "quantity": quantity,
        "idempotencyKey": idempotency_key
        or generate_idempotency_key("track", customer_id, meter, quantity),
    }
    if units:
        body["units"] = units
    if description:
        body["description"] = description
    if metadata:
        body["metadata"] = metadata
    return body


def _workflow_body(
    name: str,
    slug: str,
    product_surface: str | None,
    description: str | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"name": name, "slug": slug}
    if product_surface:
        body["productSurface"] = product_surface
    if description:
        body["description"] = description
    if metadata:
        body["metadata"] = metadata
    return body


def _start_run_body(
    customer_id: str,
    workflow_id: str,
    external_run_id: str | None,
    correlation_id: str | None,
    parent_run_id: str | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "customerId": customer_id,
        "workflowId": workflow_id,
    }
    if external_run_id:
        body["externalRunId"] = external_run_id
    if correlation_id:
        body["correlationId"] = correlation_id
    if parent_run_id:
        body["parentRunId"] = parent_run_id
    if metadata:
        body["metadata"] = metadata
    return body


def _end_run_body(
    status: RunStatus | str,
    error_message: str | None,
    error_code: str | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": RunStatus(status).value}
    if error_message:
        body["errorMessage"] = error_message
    if error_code:
        body["errorCode"] = error_code
    if metadata:
        body["metadata"] = metadata
    return body


def _event_body(
    run_id: str,
    event_type: str,
    quantity: float | None,
    units: str | None,
    description: str | None,
    cost_units: float | None,
    cost_currency: str | None,
    correlation_id: str | None,
    parent_event_id: str | None,
    span_id: str | None,
    idempotency_key: str | None,
    metadata: dict[str, str] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "runId": run_id,
        "eventType": event_type,
        "idempotencyKey": idempotency_key
        or generate_idempotency_key("evt", run_id, event_type, quantity or 0),
    }
    # Zero quantities and costs are left out of the payload
    if quantity:
        body["quantity"] = quantity
    if units:
        body["units"] = units
    if description:
        body["description"] = description
    if cost_units:
        body["costUnits"] = cost_units
    if cost_currency:
        body["costCurrency"] = cost_currency
    if correlation_id:
        body["correlationId"] = correlation_id
    if parent_event_id:
        body["parentEventId"] = parent_event_id
    if span_id:
        body["spanId"] = span_id
    if metadata:
        body["metadata"] = metadata
    return body


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class Drip:
    """
    Official Python SDK client for Drip usage tracking.

    The Drip client provides methods for:
    - Health checks (ping)
    - Customer management (create, get, list, balance)
    - Internal usage tracking
    - Agent run tracking (workflows, runs, events)
    - One-call run recording (record_run)

    Example:
        >>> from drip import Drip
        >>>
        >>> client = Drip(api_key="sk_live_...")
        >>>
        >>> customer = client.create_customer(external_customer_id="user_123")
        >>>
        >>> result = client.record_run(
        ...     customer_id=customer.id,
        ...     workflow="research-agent",
        ...     events=[{"event_type": "llm.call", "quantity": 1500, "units": "tokens"}],
        ...     status="COMPLETED",
        ... )
        >>> print(result.summary)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        """
        Initialize the Drip client.

        Args:
            api_key: API key from the Drip dashboard. If not provided,
                     reads from DRIP_API_KEY environment variable.
            base_url: Base URL for the API. Falls back to DRIP_BASE_URL,
                      then to the production URL.
            timeout_ms: Per-request timeout in milliseconds. Defaults to 30000.

        Raises:
            DripMissingCredentialError: If no API key is provided or found in environment.
        """
        self._config = resolve_config(api_key, base_url, timeout_ms)

        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    def __enter__(self) -> Drip:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    @property
    def config(self) -> DripConfig:
        """Get the current configuration."""
        return self._config

    @property
    def key_type(self) -> KeyType:
        """The detected key type (secret, public, unknown)."""
        return self._config.key_type

    # =========================================================================
    # Health Check
    # =========================================================================

    def ping(self) -> PingResult:
        """
        Ping the Drip API to check connectivity and measure latency.

        Returns:
            PingResult with ok, status, latency_ms and timestamp.

        Raises:
            DripTimeoutError: If the health endpoint does not answer in time.
            DripNetworkError: If the health endpoint cannot be reached.

        Example:
            >>> health = client.ping()
            >>> if health.ok:
            ...     print(f"API healthy, latency: {health.latency_ms}ms")
        """
        start = time.monotonic()
        _, data = self._raw_request("GET", _health_url(self._config.base_url))
        return _ping_result(data, _elapsed_ms(start))

    # =========================================================================
    # HTTP Request Helpers
    # =========================================================================

    def _raw_request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, PATCH).
            path: API endpoint path, or an absolute URL.
            json: JSON body for POST/PATCH requests.
            params: Query parameters.

        Returns:
            The status code and the parsed JSON response.

        Raises:
            DripAPIError: For API errors.
            DripTimeoutError: If the request timed out.
            DripNetworkError: For other transport errors.
            DripParseError: If the response body is not JSON.
        """
        _log_request(method, path, json, params)
        try:
            response = self._client.request(
                method=method,
                url=path,
                content=encode_json_body(json) if json is not None else None,
                params=params,
            )
        except httpx.TimeoutException as e:
            raise DripTimeoutError(f"Request timed out: {path}", original_error=e) from e
        except httpx.RequestError as e:
            raise DripNetworkError(f"Network error: {e}", original_error=e) from e

        return response.status_code, _handle_response(method, path, response)

    def _get(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make a GET request."""
        status_code, data = self._raw_request("GET", path, params=params)
        return _validate(model, data, status_code)

    def _post(
        self,
        path: str,
        model: type[ModelT],
        json: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make a POST request."""
        status_code, data = self._raw_request("POST", path, json=json)
        return _validate(model, data, status_code)

    def _patch(
        self,
        path: str,
        model: type[ModelT],
        json: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make a PATCH request."""
        status_code, data = self._raw_request("PATCH", path, json=json)
        return _validate(model, data, status_code)

    # =========================================================================
    # Customer Management
    # =========================================================================

    def create_customer(
        self,
        onchain_address: str | None = None,
        external_customer_id: str | None = None,
        is_internal: bool | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Customer:
        """
        Create a new customer.

        At least one of ``onchain_address`` or ``external_customer_id`` is
        required; the server rejects a request with neither.

        Args:
            onchain_address: Customer's smart account address (optional).
            external_customer_id: Your internal customer ID (optional).
            is_internal: Mark as internal/non-billing customer (optional).
            metadata: Custom string metadata.

        Returns:
            The created Customer object.
        """
        body = _customer_body(onchain_address, external_customer_id, is_internal, metadata)
        return self._post("/customers", Customer, json=body)

    def get_customer(self, customer_id: str) -> Customer:
        """
        Get a customer by ID.

        Raises:
            DripNotFoundError: If the customer doesn't exist.
        """
        return self._get(f"/customers/{customer_id}", Customer)

    def list_customers(
        self,
        status: CustomerStatus | str | None = None,
        limit: int = 100,
    ) -> ListCustomersResponse:
        """
        List customers with optional filtering.

        Args:
            status: Filter by status (ACTIVE, LOW_BALANCE, PAUSED).
            limit: Maximum number of results (1-100).

        Returns:
            List of customers with count.
        """
        return self._get("/customers", ListCustomersResponse, params=_list_customers_params(status, limit))

    def get_balance(self, customer_id: str) -> BalanceResult:
        """Get a customer's current balance."""
        return self._get(f"/customers/{customer_id}/balance", BalanceResult)

    # =========================================================================
    # Usage
    # =========================================================================

    def track_usage(
        self,
        customer_id: str,
        meter: str,
        quantity: float,
        idempotency_key: str | None = None,
        units: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> TrackUsageResult:
        """
        Record usage for internal visibility WITHOUT billing.

        The quantity is sent as given; the server decides what it accepts.

        Args:
            customer_id: The customer ID.
            meter: Usage meter type (e.g., "api_calls", "tokens").
            quantity: Amount to record.
            idempotency_key: Optional key to prevent duplicate records.
            units: Optional unit label (e.g., "tokens", "requests").
            description: Optional description.
            metadata: Optional metadata.

        Returns:
            TrackUsageResult with event ID and confirmation.
        """
        body = _track_usage_body(
            customer_id, meter, quantity, idempotency_key, units, description, metadata
        )
        return self._post("/usage/internal", TrackUsageResult, json=body)

    # =========================================================================
    # Workflows
    # =========================================================================

    def create_workflow(
        self,
        name: str,
        slug: str,
        product_surface: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Workflow:
        """
        Create a workflow definition for tracking agent runs.

        Args:
            name: Human-readable workflow name.
            slug: URL-safe identifier.
            product_surface: Type (RPC, WEBHOOK, AGENT, PIPELINE, CUSTOM).
            description: Optional description.
            metadata: Optional metadata.

        Returns:
            Created Workflow.
        """
        body = _workflow_body(name, slug, product_surface, description, metadata)
        return self._post("/workflows", Workflow, json=body)

    def list_workflows(self) -> ListWorkflowsResponse:
        """List all workflows."""
        return self._get("/workflows", ListWorkflowsResponse)

    # =========================================================================
    # Agent Runs
    # =========================================================================

    def start_run(
        self,
        customer_id: str,
        workflow_id: str,
        external_run_id: str | None = None,
        correlation_id: str | None = None,
        parent_run_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RunResult:
        """
        Start a new agent run.

        Args:
            customer_id: The customer ID.
            workflow_id: The workflow ID.
            external_run_id: Your internal run ID.
            correlation_id: For distributed tracing.
            parent_run_id: For nested runs.
            metadata: Optional metadata.

        Returns:
            RunResult with run ID and status.
        """
        body = _start_run_body(
            customer_id, workflow_id, external_run_id, correlation_id, parent_run_id, metadata
        )
        return self._post("/runs", RunResult, json=body)

    def end_run(
        self,
        run_id: str,
        status: RunStatus | str,
        error_message: str | None = None,
        error_code: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> EndRunResult:
        """
        End an agent run.

        Args:
            run_id: The run ID.
            status: Final status (COMPLETED, FAILED, CANCELLED, TIMEOUT).
            error_message: Optional error message for failed runs.
            error_code: Optional error code.
            metadata: Optional metadata.

        Returns:
            EndRunResult with final status and totals.
        """
        body = _end_run_body(status, error_message, error_code, metadata)
        return self._patch(f"/runs/{run_id}", EndRunResult, json=body)

    def emit_event(
        self,
        run_id: str,
        event_type: str,
        quantity: float | None = None,
        units: str | None = None,
        description: str | None = None,
        cost_units: float | None = None,
        cost_currency: str | None = None,
        correlation_id: str | None = None,
        parent_event_id: str | None = None,
        span_id: str | None = None,
        idempotency_key: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> EventResult:
        """
        Emit an event within a run.

        Args:
            run_id: The run ID.
            event_type: Event type (e.g., "agent.step", "tool.call").
            quantity: Optional quantity.
            units: Unit label (e.g., "tokens", "pages").
            description: Optional description.
            cost_units: Optional cost in units.
            cost_currency: Cost currency.
            correlation_id: For distributed tracing.
            parent_event_id: For nested events.
            span_id: OpenTelemetry span ID.
            idempotency_key: Prevent duplicate events.
            metadata: Optional metadata.

        Returns:
            EventResult with event ID and duplicate status.
        """
        body = _event_body(
            run_id,
            event_type,
            quantity,
            units,
            description,
            cost_units,
            cost_currency,
            correlation_id,
            parent_event_id,
            span_id,
            idempotency_key,
            metadata,
        )
        return self._post("/run-events", EventResult, json=body)

    def emit_events_batch(
        self,
        events: list[dict[str, Any]],
    ) -> EmitEventsBatchResult:
        """
        Emit multiple events in one request.

        Args:
            events: List of wire-format event objects (runId, eventType, ...).

        Returns:
            Batch result with created count and duplicates.
        """
        return self._post("/run-events/batch", EmitEventsBatchResult, json={"events": events})

    # =========================================================================
    # Simplified API: Record Run
    # =========================================================================

    def _resolve_workflow(self, reference: str) -> tuple[str, str]:
        """Find or create the workflow. Returns (id, display name).

        Best effort: any failure falls back to the raw reference.
        """
        if is_workflow_id(reference):
            return reference, reference

        try:
            match = find_workflow(self.list_workflows(), reference)
            if match:
                return match.id, match.name or reference

            display_name = workflow_display_name(reference)
            created = self.create_workflow(
                name=display_name,
                slug=reference,
                product_surface=DEFAULT_PRODUCT_SURFACE,
            )
            return created.id, created.name or display_name
        except Exception as e:
            logger.debug("workflow %r not resolved, using it as id: %s", reference, e)
            return reference, reference

    def record_run(
        self,
        customer_id: str,
        workflow: str,
        events: Iterable[EventInput],
        status: RunStatus | str,
        error_message: str | None = None,
        error_code: str | None = None,
        external_run_id: str | None = None,
        correlation_id: str | None = None,
        parent_run_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RecordRunResult:
        """
        Record a complete agent run in one call.

        Resolves (or creates) the workflow, starts a run, emits all events
        in one batch and ends the run.

        Workflow resolution never fails the call: if listing or creating
        the workflow fails, ``workflow`` is used as-is. Errors from the
        other steps propagate. If the batch emit fails the run is left
        RUNNING; end it yourself with :meth:`end_run`.

        Args:
            customer_id: The customer ID.
            workflow: Workflow ID (``wf_...``) or slug (auto-created).
            events: RecordRunEvent objects or dicts with event_type,
                quantity, units, description, cost_units, metadata.
            status: Final status (COMPLETED, FAILED, CANCELLED, TIMEOUT).
            error_message: Optional error message.
            error_code: Optional error code.
            external_run_id: Your internal run ID. Also used to derive
                event idempotency keys.
            correlation_id: For distributed tracing.
            parent_run_id: For nested runs.
            metadata: Optional run metadata.

        Returns:
            RecordRunResult with run info, event counts and a summary line.

        Example:
            >>> result = client.record_run(
            ...     customer_id="cus_123",
            ...     workflow="my-flow",
            ...     events=[{"event_type": "tool.call", "quantity": 1}],
            ...     status="COMPLETED",
            ... )
            >>> result.summary
            '✓ My Flow: 1 events recorded (120ms)'
        """
        final_status = RunStatus(status)
        normalized = normalize_events(events)
        start = time.monotonic()

        workflow_id, workflow_name = self._resolve_workflow(workflow)

        run = self.start_run(
            customer_id=customer_id,
            workflow_id=workflow_id,
            external_run_id=external_run_id,
            correlation_id=correlation_id,
            parent_run_id=parent_run_id,
            metadata=metadata,
        )

        events_created = 0
        events_duplicates = 0
        if normalized:
            batch = self.emit_events_batch(
                build_event_batch(run.id, normalized, external_run_id)
            )
            events_created = batch.created
            events_duplicates = batch.duplicates

        end_result = self.end_run(
            run_id=run.id,
            status=final_status,
            error_message=error_message,
            error_code=error_code,
        )

        return build_record_run_result(
            run_id=run.id,
            workflow_id=workflow_id,
            workflow_name=workflow_name,
            status=final_status,
            end_result=end_result,
            events_created=events_created,
            events_duplicates=events_duplicates,
            elapsed_ms=_elapsed_ms(start),
        )

    # =========================================================================
    # Static Utility Methods
    # =========================================================================

    @staticmethod
    def generate_idempotency_key(
        prefix: str,
        a: str,
        b: str,
        quantity: float = 0,
    ) -> str:
        """
        Generate a deterministic idempotency key.

        Same inputs always produce the same key.

        Args:
            prefix: Operation prefix.
            a: First identifier.
            b: Second identifier.
            quantity: Numeric component.

        Returns:
            Key of the form ``{prefix}_{hex}``.
        """
        return generate_idempotency_key(prefix, a, b, quantity)


class AsyncDrip:
    """
    Async version of the Drip client.

    Provides the same API as Drip but with async/await support.

    Example:
        >>> from drip import AsyncDrip
        >>>
        >>> async with AsyncDrip(api_key="sk_live_...") as client:
        ...     customer = await client.create_customer(
        ...         onchain_address="0x123..."
        ...     )
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        """
        Initialize the async Drip client.

        Args:
            api_key: API key from the Drip dashboard.
            base_url: Base URL for the API.
            timeout_ms: Per-request timeout in milliseconds.

        Raises:
            DripMissingCredentialError: If no API key is provided or found in environment.
        """
        self._config = resolve_config(api_key, base_url, timeout_ms)

        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    async def __aenter__(self) -> AsyncDrip:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    @property
    def config(self) -> DripConfig:
        """Get the current configuration."""
        return self._config

    @property
    def key_type(self) -> KeyType:
        """The detected key type (secret, public, unknown)."""
        return self._config.key_type

    # =========================================================================
    # Health Check
    # =========================================================================

    async def ping(self) -> PingResult:
        """
        Ping the Drip API to check connectivity and measure latency.

        Example:
            >>> health = await client.ping()
            >>> if health.ok:
            ...     print(f"API healthy, latency: {health.latency_ms}ms")
        """
        start = time.monotonic()
        _, data = await self._raw_request("GET", _health_url(self._config.base_url))
        return _ping_result(data, _elapsed_ms(start))

    # =========================================================================
    # HTTP Request Helpers
    # =========================================================================

    async def _raw_request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any]]:
        """Make an async HTTP request."""
        _log_request(method, path, json, params)
        try:
            response = await self._client.request(
                method=method,
                url=path,
                content=encode_json_body(json) if json is not None else None,
                params=params,
            )
        except httpx.TimeoutException as e:
            raise DripTimeoutError(f"Request timed out: {path}", original_error=e) from e
        except httpx.RequestError as e:
            raise DripNetworkError(f"Network error: {e}", original_error=e) from e

        return response.status_code, _handle_response(method, path, response)

    async def _get(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make an async GET request."""
        status_code, data = await self._raw_request("GET", path, params=params)
        return _validate(model, data, status_code)

    async def _post(
        self,
        path: str,
        model: type[ModelT],
        json: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make an async POST request."""
        status_code, data = await self._raw_request("POST", path, json=json)
        return _validate(model, data, status_code)

    async def _patch(
        self,
        path: str,
        model: type[ModelT],
        json: dict[str, Any] | None = None,
    ) -> ModelT:
        """Make an async PATCH request."""
        status_code, data = await self._raw_request("PATCH", path, json=json)
        return _validate(model, data, status_code)

    # =========================================================================
    # Customer Management
    # =========================================================================

    async def create_customer(
        self,
        onchain_address: str | None = None,
        external_customer_id: str | None = None,
        is_internal: bool | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Customer:
        """
        Create a new customer.

        At least one of ``onchain_address`` or ``external_customer_id`` is required.
        """
        body = _customer_body(onchain_address, external_customer_id, is_internal, metadata)
        return await self._post("/customers", Customer, json=body)

    async def get_customer(self, customer_id: str) -> Customer:
        """Get a customer by ID."""
        return await self._get(f"/customers/{customer_id}", Customer)

    async def list_customers(
        self,
        status: CustomerStatus | str | None = None,
        limit: int = 100,
    ) -> ListCustomersResponse:
        """List customers with optional filtering."""
        return await self._get("/customers", ListCustomersResponse, params=_list_customers_params(status, limit))

    async def get_balance(self, customer_id: str) -> BalanceResult:
        """Get a customer's current balance."""
        return await self._get(f"/customers/{customer_id}/balance", BalanceResult)

    # =========================================================================
    # Usage
    # =========================================================================

    async def track_usage(
        self,
        customer_id: str,
        meter: str,
        quantity: float,
        idempotency_key: str | None = None,
        units: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> TrackUsageResult:
        """Record usage for internal visibility WITHOUT billing."""
        body = _track_usage_body(
            customer_id, meter, quantity, idempotency_key, units, description, metadata
        )
        return await self._post("/usage/internal", TrackUsageResult, json=body)

    # =========================================================================
    # Workflows
    # =========================================================================

    async def create_workflow(
        self,
        name: str,
        slug: str,
        product_surface: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Workflow:
        """Create a workflow definition."""
        body = _workflow_body(name, slug, product_surface, description, metadata)
        return await self._post("/workflows", Workflow, json=body)

    async def list_workflows(self) -> ListWorkflowsResponse:
        """List all workflows."""
        return await self._get("/workflows", ListWorkflowsResponse)

    # =========================================================================
    # Agent Runs
    # =========================================================================

    async def start_run(
        self,
        customer_id: str,
        workflow_id: str,
        external_run_id: str | None = None,
        correlation_id: str | None = None,
        parent_run_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RunResult:
        """Start a new agent run."""
        body = _start_run_body(
            customer_id, workflow_id, external_run_id, correlation_id, parent_run_id, metadata
        )
        return await self._post("/runs", RunResult, json=body)

    async def end_run(
        self,
        run_id: str,
        status: RunStatus | str,
        error_message: str | None = None,
        error_code: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> EndRunResult:
        """End an agent run."""
        body = _end_run_body(status, error_message, error_code, metadata)
        return await self._patch(f"/runs/{run_id}", EndRunResult, json=body)

    async def emit_event(
        self,
        run_id: str,
        event_type: str,
        quantity: float | None = None,
        units: str | None = None,
        description: str | None = None,
        cost_units: float | None = None,
        cost_currency: str | None = None,
        correlation_id: str | None = None,
        parent_event_id: str | None = None,
        span_id: str | None = None,
        idempotency_key: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> EventResult:
        """Emit an event within a run."""
        body = _event_body(
            run_id,
            event_type,
            quantity,
            units,
            description,
            cost_units,
            cost_currency,
            correlation_id,
            parent_event_id,
            span_id,
            idempotency_key,
            metadata,
        )
        return await self._post("/run-events", EventResult, json=body)

    async def emit_events_batch(
        self,
        events: list[dict[str, Any]],
    ) -> EmitEventsBatchResult:
        """Emit multiple events in one request."""
        return await self._post("/run-events/batch", EmitEventsBatchResult, json={"events": events})

    # =========================================================================
    # Simplified API: Record Run
    # =========================================================================

    async def _resolve_workflow(self, reference: str) -> tuple[str, str]:
        if is_workflow_id(reference):
            return reference, reference

        try:
            match = find_workflow(await self.list_workflows(), reference)
            if match:
                return match.id, match.name or reference

            display_name = workflow_display_name(reference)
            created = await self.create_workflow(
                name=display_name,
                slug=reference,
                product_surface=DEFAULT_PRODUCT_SURFACE,
            )
            return created.id, created.name or display_name
        except Exception as e:
            logger.debug("workflow %r not resolved, using it as id: %s", reference, e)
            return reference, reference

    async def record_run(
        self,
        customer_id: str,
        workflow: str,
        events: Iterable[EventInput],
        status: RunStatus | str,
        error_message: str | None = None,
        error_code: str | None = None,
        external_run_id: str | None = None,
        correlation_id: str | None = None,
        parent_run_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RecordRunResult:
        """Record a complete agent run in one call. See :meth:`Drip.record_run`."""
        final_status = RunStatus(status)
        normalized = normalize_events(events)
        start = time.monotonic()

        workflow_id, workflow_name = await self._resolve_workflow(workflow)

        run = await self.start_run(
            customer_id=customer_id,
            workflow_id=workflow_id,
            external_run_id=external_run_id,
            correlation_id=correlation_id,
            parent_run_id=parent_run_id,
            metadata=metadata,
        )

        events_created = 0
        events_duplicates = 0
        if normalized:
            batch = await self.emit_events_batch(
                build_event_batch(run.id, normalized, external_run_id)
            )
            events_created = batch.created
            events_duplicates = batch.duplicates

        end_result = await self.end_run(
            run_id=run.id,
            status=final_status,
            error_message=error_message,
            error_code=error_code,
        )

        return build_record_run_result(
            run_id=run.id,
            workflow_id=workflow_id,
            workflow_name=workflow_name,
            status=final_status,
            end_result=end_result,
            events_created=events_created,
            events_duplicates=events_duplicates,
            elapsed_ms=_elapsed_ms(start),
        )

    @staticmethod
    def generate_idempotency_key(
        prefix: str,
        a: str,
        b: str,
        quantity: float = 0,
    ) -> str:
        """Generate a deterministic idempotency key."""
        return generate_idempotency_key(prefix, a, b, quantity)
