"""
Drip Python SDK.

Usage tracking and agent run recording for the Drip API.

Example:
    >>> from drip import Drip
    >>>
    >>> client = Drip(api_key="sk_live_...")
    >>> result = client.record_run(
    ...     customer_id="cus_123",
    ...     workflow="research-agent",
    ...     events=[{"event_type": "llm.call", "quantity": 1500, "units": "tokens"}],
    ...     status="COMPLETED",
    ... )
    >>> print(result.summary)
"""

from .client import AsyncDrip, Drip
from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_MS, detect_key_type, resolve_config
from .errors import (
    DripAPIError,
    DripAuthenticationError,
    DripError,
    DripMissingCredentialError,
    DripNetworkError,
    DripNotFoundError,
    DripParseError,
    DripRateLimitError,
    DripTimeoutError,
    ErrorKind,
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
    ProductSurface,
    RecordRunEvent,
    RecordRunEventCounts,
    RecordRunInfo,
    RecordRunResult,
    RunResult,
    RunStatus,
    TrackUsageResult,
    Workflow,
)
from .utils import generate_idempotency_key, metadata_from_json

__version__ = "1.1.0"

__all__ = [
    "AsyncDrip",
    "BalanceResult",
    "Customer",
    "CustomerStatus",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_MS",
    "Drip",
    "DripAPIError",
    "DripAuthenticationError",
    "DripConfig",
    "DripError",
    "DripMissingCredentialError",
    "DripNetworkError",
    "DripNotFoundError",
    "DripParseError",
    "DripRateLimitError",
    "DripTimeoutError",
    "EmitEventsBatchResult",
    "EndRunResult",
    "ErrorKind",
    "EventResult",
    "KeyType",
    "ListCustomersResponse",
    "ListWorkflowsResponse",
    "PingResult",
    "ProductSurface",
    "RecordRunEvent",
    "RecordRunEventCounts",
    "RecordRunInfo",
    "RecordRunResult",
    "RunResult",
    "RunStatus",
    "TrackUsageResult",
    "Workflow",
    "detect_key_type",
    "generate_idempotency_key",
    "metadata_from_json",
    "resolve_config",
]
