#!/usr/bin/env python3
"""
Local booking harness (no HTTP).

Usage:
  python3 scripts/book_local.py --service 2 --date 2026-03-02 --time 09:00 --option deposit

Drives one session through the same BookingWorkflow the API uses and prints
every step: action, stage and any error the workflow reported.
"""

from __future__ import annotations

import argparse
import sys
from datetime import date, datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking.application.use_cases.booking import StepResult  # noqa: E402
from booking.core.config import settings  # noqa: E402
from booking.domain.entities.client import Client  # noqa: E402
from booking.domain.entities.payment import PaymentOption  # noqa: E402
from booking.wiring.dependencies import build_container  # noqa: E402


def _print_step(result: StepResult) -> None:
    state = result.updated_state
    line = f"[{state.stage.name.lower():<9}] {result.action}"
    if not result.ok:
        line += f"  !! {result.error_kind}: {result.error_message}"
        for field, message in result.field_errors.items():
            line += f"\n{'':14}{field}: {message}"
    print(line)
    if result.slots:
        preview = ", ".join(f"{s.date} {s.start_time:%H:%M}" for s in result.slots[:5])
        print(f"{'':14}next slots: {preview}")
    if result.quote:
        print(f"{'':14}due now {result.quote.due_now:.2f}, later {result.quote.remainder:.2f}")
    if result.appointment:
        a = result.appointment
        print(f"{'':14}appointment {a.id} {a.date} {a.start_time:%H:%M} {a.payment_status.value}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Book one appointment in-process")
    parser.add_argument("--service", default="1")
    parser.add_argument("--date", type=date.fromisoformat, default=None)
    parser.add_argument("--time", type=lambda v: datetime.strptime(v, "%H:%M").time(), default=None)
    parser.add_argument("--option", choices=[o.value for o in PaymentOption], default="onsite")
    parser.add_argument("--first-name", default="Camille")
    parser.add_argument("--last-name", default="Martin")
    parser.add_argument("--email", default="camille.martin@example.com")
    parser.add_argument("--phone", default="06 12 34 56 78")
    args = parser.parse_args()

    container = build_container(settings)
    workflow = container.workflow

    result = workflow.start()
    _print_step(result)
    result = workflow.select_service(result.updated_state, args.service)
    _print_step(result)
    if not result.ok:
        return 1
    result = workflow.advance(result.updated_state)
    _print_step(result)

    if args.date and args.time:
        slot_date, start_time = args.date, args.time
    elif result.slots:
        slot_date, start_time = result.slots[0].date, result.slots[0].start_time
    else:
        print("No availability in the booking window")
        return 1

    steps = (
        lambda s: workflow.select_slot(s, slot_date, start_time),
        workflow.advance,
        lambda s: workflow.submit_client(
            s,
            Client(first_name=args.first_name, last_name=args.last_name, email=args.email, phone=args.phone),
            consent_accepted=True,
        ),
        workflow.advance,
        lambda s: workflow.choose_payment_option(s, PaymentOption(args.option)),
        workflow.advance,
    )
    for step in steps:
        result = step(result.updated_state)
        _print_step(result)
        if not result.ok:
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
