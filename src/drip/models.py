"""
Drip SDK models.

Request and response types for the Drip API. Field names are snake_case
in Python and camelCase on the wire; every model accepts either form on
input and serializes to the wire form with ``model_dump(by_alias=True)``.

All models are frozen: a state change on the server produces a new
result object, never a mutated one.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from .utils import metadata_from_json


def _coerce_metadata(value: Any) -> dict[str, str] | None:
    if value is None:
        return None
    return metadata_from_json(value)


Metadata = Annotated[Optional[dict[str, str]], BeforeValidator(_coerce_metadata)]


def _lenient_int(value: Any) -> Optional[int]:
    # Whole-number fields the server may send as floats or numeric strings
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


LenientInt = Annotated[Optional[int], BeforeValidator(_lenient_int)]
Count = Annotated[int, BeforeValidator(lambda v: _lenient_int(v) or 0)]


class _DripModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
    )


# =============================================================================
# Enums
# =============================================================================


class KeyType(str, Enum):
    """Kind of API key, detected from its prefix."""

    SECRET = "SECRET"  # sk_live_... / sk_test_...
    PUBLIC = "PUBLIC"  # pk_live_... / pk_test_...
    UNKNOWN = "UNKNOWN"


class CustomerStatus(str, Enum):
    """Customer account status."""

    ACTIVE = "ACTIVE"
    LOW_BALANCE = "LOW_BALANCE"
    PAUSED = "PAUSED"


def _parse_customer_status(value: Optional[str]) -> Optional[Union[CustomerStatus, str]]:
    # Statuses this SDK does not know yet are kept as plain strings
    if value in CustomerStatus.__members__:
        return CustomerStatus(value)
    return value


CustomerStatusField = Annotated[Optional[str], AfterValidator(_parse_customer_status)]


class RunStatus(str, Enum):
    """Run lifecycle status."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"


class ProductSurface(str, Enum):
    """Workflow classification."""

    RPC = "RPC"
    WEBHOOK = "WEBHOOK"
    AGENT = "AGENT"
    PIPELINE = "PIPELINE"
    CUSTOM = "CUSTOM"


def _parse_run_status(value: Any) -> Any:
    # Unrecognized server statuses read as PENDING
    if isinstance(value, RunStatus):
        return value
    if isinstance(value, str) and value in RunStatus.__members__:
        return RunStatus(value)
    return RunStatus.PENDING


ServerRunStatus = Annotated[RunStatus, BeforeValidator(_parse_run_status)]


# =============================================================================
# Configuration
# =============================================================================


class DripConfig(_DripModel):
    """Resolved client configuration. Immutable after client construction."""

    api_key: str = Field(repr=False)
    base_url: str
    timeout_ms: int
    key_type: KeyType = KeyType.UNKNOWN

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self.timeout_ms / 1000


# =============================================================================
# Customers
# =============================================================================


class Customer(_DripModel):
    """A billable (or internal) customer."""

    id: str
    business_id: Optional[str] = Field(None, alias="businessId")
    external_customer_id: Optional[str] = Field(None, alias="externalCustomerId")
    onchain_address: Optional[str] = Field(None, alias="onchainAddress")
    status: CustomerStatusField = None
    is_internal: bool = Field(False, alias="isInternal")
    metadata: Metadata = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


class ListCustomersResponse(_DripModel):
    data: list[Customer] = Field(default_factory=list)
    count: Count = 0


class BalanceResult(_DripModel):
    customer_id: str = Field("", alias="customerId")
    onchain_address: Optional[str] = Field(None, alias="onchainAddress")
    balance_usdc: str = Field("0", alias="balanceUsdc")
    pending_charges_usdc: Optional[str] = Field(None, alias="pendingChargesUsdc")
    available_usdc: Optional[str] = Field(None, alias="availableUsdc")
    last_synced_at: Optional[str] = Field(None, alias="lastSyncedAt")


# =============================================================================
# Health
# =============================================================================


class PingResult(_DripModel):
    """Result of a health check."""

    ok: bool
    status: str
    latency_ms: int
    timestamp: int


# =============================================================================
# Usage
# =============================================================================


class TrackUsageResult(_DripModel):
    success: bool = True
    usage_event_id: str = Field("", alias="usageEventId")
    customer_id: str = Field("", alias="customerId")
    usage_type: str = Field("", alias="usageType")
    quantity: float = 0
    is_internal: bool = Field(False, alias="isInternal")
    message: Optional[str] = None


# =============================================================================
# Workflows
# =============================================================================


class Workflow(_DripModel):
    id: str
    name: str = ""
    slug: str = ""
    product_surface: Optional[str] = Field(None, alias="productSurface")
    description: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    metadata: Metadata = None
    created_at: Optional[str] = Field(None, alias="createdAt")


class ListWorkflowsResponse(_DripModel):
    data: list[Workflow] = Field(default_factory=list)
    count: Count = 0


# =============================================================================
# Runs & Events
# =============================================================================


class RunResult(_DripModel):
    """A started run."""

    id: str
    customer_id: str = Field("", alias="customerId")
    workflow_id: str = Field("", alias="workflowId")
    workflow_name: Optional[str] = Field(None, alias="workflowName")
    status: ServerRunStatus = RunStatus.PENDING
    correlation_id: Optional[str] = Field(None, alias="correlationId")
    created_at: Optional[str] = Field(None, alias="createdAt")


class EndRunResult(_DripModel):
    """A run after it reached its terminal status."""

    id: str = ""
    status: ServerRunStatus = RunStatus.PENDING
    ended_at: Optional[str] = Field(None, alias="endedAt")
    duration_ms: LenientInt = Field(None, alias="durationMs")
    event_count: LenientInt = Field(None, alias="eventCount")
    total_cost_units: Optional[str] = Field(None, alias="totalCostUnits")


class EventResult(_DripModel):
    id: str = ""
    run_id: str = Field("", alias="runId")
    event_type: str = Field("", alias="eventType")
    quantity: Optional[float] = None
    cost_units: Optional[float] = Field(None, alias="costUnits")
    is_duplicate: bool = Field(False, alias="isDuplicate")
    timestamp: Optional[str] = None


class EmitEventsBatchResult(_DripModel):
    success: bool = True
    created: Count = 0
    duplicates: Count = 0
    events: list[dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Record Run
# =============================================================================


class RecordRunEvent(_DripModel):
    """One event passed to ``record_run``.

    Zero or missing ``quantity`` and ``cost_units`` are left out of the
    request.
    """

    event_type: str = Field(alias="eventType")
    quantity: Optional[float] = None
    units: Optional[str] = None
    description: Optional[str] = None
    cost_units: Optional[float] = Field(None, alias="costUnits")
    metadata: Metadata = None


class RecordRunInfo(_DripModel):
    id: str
    workflow_id: str = Field(alias="workflowId")
    workflow_name: str = Field(alias="workflowName")
    status: ServerRunStatus
    duration_ms: int = Field(0, alias="durationMs")


class RecordRunEventCounts(_DripModel):
    created: int = 0
    duplicates: int = 0


class RecordRunResult(_DripModel):
    """Outcome of ``record_run``."""

    run: RecordRunInfo
    events: RecordRunEventCounts
    total_cost_units: Optional[str] = Field(None, alias="totalCostUnits")
    summary: str
