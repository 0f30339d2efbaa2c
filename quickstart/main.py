"""
Drip Python SDK - Quickstart

Checks connectivity, creates a customer, tracks usage and records a run,
first with record_run and then step by step.

Usage:
    pip install drip-sdk
    export DRIP_API_KEY=sk_live_your_key_here
    python main.py
"""

import logging
import sys

from drip import Drip, DripError, DripNotFoundError, RunStatus


def main() -> int:
    logging.basicConfig(level=logging.INFO)

    try:
        client = Drip()
    except DripError as e:
        print(f"Configuration error: {e}")
        return 1

    with client:
        health = client.ping()
        print(f"Ping: {'OK' if health.ok else 'FAIL'} ({health.latency_ms}ms, key type {client.key_type.value})")

        try:
            customer = client.create_customer(external_customer_id="quickstart_user")
            print(f"Created customer: {customer.id}")
        except DripError:
            customers = client.list_customers()
            customer = next(c for c in customers.data if c.external_customer_id == "quickstart_user")
            print(f"Found existing customer: {customer.id}")

        usage = client.track_usage(customer_id=customer.id, meter="api_calls", quantity=1)
        print(f"Usage tracked: {usage.usage_event_id}")

        # One call: workflow lookup/creation, run, events, end
        recorded = client.record_run(
            customer_id=customer.id,
            workflow="quickstart-workflow",
            status=RunStatus.COMPLETED,
            events=[
                {"event_type": "inference", "quantity": 500, "units": "tokens"},
                {"event_type": "tool.call", "quantity": 1, "description": "web search"},
            ],
        )
        print(recorded.summary)

        # Step by step, e.g. when a run spans several processes
        run = client.start_run(customer_id=customer.id, workflow_id=recorded.run.workflow_id)
        client.emit_event(run_id=run.id, event_type="inference", quantity=120, units="tokens")
        ended = client.end_run(run.id, RunStatus.COMPLETED)
        print(f"Run {ended.id}: {ended.status.value} in {ended.duration_ms}ms")

        try:
            balance = client.get_balance(customer.id)
            print(f"Balance: {balance.balance_usdc} USDC")
        except DripNotFoundError:
            print("No balance yet")

    print("Done! SDK is working.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
