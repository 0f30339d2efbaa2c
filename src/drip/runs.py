"""
Building blocks for ``record_run``.

``Drip.record_run`` and ``AsyncDrip.record_run`` differ only in how they
wait on the network. Everything that does not touch the network lives
here so both clients sequence the same steps the same way:

1. resolve the workflow (``is_workflow_id``, ``find_workflow``,
   ``workflow_display_name``)
2. start the run
3. emit all events in one batch (``build_event_batch``)
4. end the run
5. summarize (``build_record_run_result``)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

from .models import (
    EndRunResult,
    ListWorkflowsResponse,
    RecordRunEvent,
    RecordRunResult,
    RunStatus,
    Workflow,
)
from .utils import generate_idempotency_key

WORKFLOW_ID_PREFIX = "wf_"
DEFAULT_PRODUCT_SURFACE = "CUSTOM"

EventInput = Union[RecordRunEvent, Mapping[str, Any]]

_STATUS_GLYPHS = {
    RunStatus.COMPLETED: "✓",
    RunStatus.FAILED: "✗",
}
_OTHER_STATUS_GLYPH = "○"


def is_workflow_id(reference: str) -> bool:
    """True when the reference already has the server ID shape."""
    return reference.startswith(WORKFLOW_ID_PREFIX)


def workflow_display_name(slug: str) -> str:
    """
    Turn a slug into a display name.

    ``_`` and ``-`` become spaces and the first letter of each word is
    upper-cased; other letters keep their case.

    >>> workflow_display_name("my-flow")
    'My Flow'
    """
    spaced = slug.replace("_", " ").replace("-", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split(" "))


def find_workflow(workflows: ListWorkflowsResponse, reference: str) -> Workflow | None:
    return next(
        (w for w in workflows.data if w.slug == reference or w.id == reference),
        None,
    )


def normalize_events(events: Iterable[EventInput]) -> list[RecordRunEvent]:
    """Accept events as models or as dicts with snake_case or camelCase keys."""
    return [
        e if isinstance(e, RecordRunEvent) else RecordRunEvent.model_validate(dict(e))
        for e in events
    ]


def event_idempotency_key(
    run_id: str,
    event_type: str,
    index: int,
    external_run_id: str | None = None,
) -> str:
    """Key for the ``index``-th event of a recorded run."""
    if external_run_id:
        return f"{external_run_id}:{event_type}:{index}"
    return generate_idempotency_key("run", run_id, event_type, index)


def build_event_batch(
    run_id: str,
    events: Sequence[RecordRunEvent],
    external_run_id: str | None = None,
) -> list[dict[str, Any]]:
    """Wire payload for ``POST /run-events/batch``.

    Zero quantities and costs are omitted rather than sent as 0.
    """
    batch: list[dict[str, Any]] = []
    for i, evt in enumerate(events):
        entry: dict[str, Any] = {
            "runId": run_id,
            "eventType": evt.event_type,
        }
        if evt.quantity:
            entry["quantity"] = evt.quantity
        if evt.units:
            entry["units"] = evt.units
        if evt.description:
            entry["description"] = evt.description
        if evt.cost_units:
            entry["costUnits"] = evt.cost_units
        if evt.metadata:
            entry["metadata"] = dict(evt.metadata)
        entry["idempotencyKey"] = event_idempotency_key(
            run_id, evt.event_type, i, external_run_id
        )
        batch.append(entry)
    return batch


def build_summary(status: RunStatus, workflow_name: str, events_created: int, duration_ms: int) -> str:
    glyph = _STATUS_GLYPHS.get(status, _OTHER_STATUS_GLYPH)
    return f"{glyph} {workflow_name}: {events_created} events recorded ({duration_ms}ms)"


def build_record_run_result(
    run_id: str,
    workflow_id: str,
    workflow_name: str,
    status: RunStatus,
    end_result: EndRunResult,
    events_created: int,
    events_duplicates: int,
    elapsed_ms: int,
) -> RecordRunResult:
    """Assemble the composite result after the run has ended.

    The server's duration wins; the locally measured time is used when the
    server reports none or a non-positive value.
    """
    duration_ms = end_result.duration_ms if (end_result.duration_ms or 0) > 0 else elapsed_ms

    return RecordRunResult(
        run={
            "id": run_id,
            "workflowId": workflow_id,
            "workflowName": workflow_name,
            "status": status,
            "durationMs": duration_ms,
        },
        events={"created": events_created, "duplicates": events_duplicates},
        totalCostUnits=end_result.total_cost_units,
        summary=build_summary(status, workflow_name, events_created, duration_ms),
    )
