#!/usr/bin/env python3
"""
Interactive booking flow harness against a running API.

Usage:
  uvicorn app.main:app --port 8000
  python3 scripts/book_local.py [--base-url http://127.0.0.1:8000]

What it does:
- Restores the stored draft (if any) and walks it through the booking steps
- Persists every change to BOOKING_STORAGE_DIR, so quitting mid-way resumes later
- Runs rendering and submission inside the same fault boundaries as the booking UI
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import httpx

from app.application.exceptions import DraftTransitionError, StepValidationError
from app.application.use_cases.booking_draft import BookingDraftMachine
from app.application.use_cases.fault_boundaries import ApplicationFaultBoundary, BookingFaultBoundary
from app.core.config import settings
from app.domain.entities.booking_draft import DraftStep
from app.wiring.dependencies import build_booking_flow


FIELDS = ("first_name", "last_name", "email", "phone", "urgency_level", "notes")


def _print_help() -> None:
    print("Commands:")
    print("  services               -> list active services")
    print("  select <service_id>    -> choose a service")
    print("  slot <date> <time>     -> choose a date and time slot")
    print("  set <field>=<value>    -> edit a client detail (" + ", ".join(FIELDS) + ")")
    print("  next / back            -> move between steps")
    print("  submit                 -> send the booking")
    print("  reset                  -> discard the draft")
    print("  quit")


def _render(machine: BookingDraftMachine) -> None:
    draft = machine.draft
    details = draft.client_details
    print(f"\n[{draft.step.value}]")
    print(f"  service: {draft.selected_service_id or '-'}  slot: {draft.date or '-'} {draft.time_slot or ''}")
    if draft.step is not DraftStep.SELECTING_SERVICE:
        print(f"  client: {details.first_name} {details.last_name} <{details.email}> {details.phone}")
        print(f"  urgency: {details.urgency_level}")
    confirmation = draft.confirmation_state
    if confirmation.reference:
        print(f"  ✅ booked: {confirmation.reference}")
    if confirmation.error_reason:
        print(f"  ❌ last submission failed: {confirmation.error_reason}")


def _list_services(base_url: str) -> None:
    response = httpx.get(f"{base_url}/services", timeout=settings.API_TIMEOUT_SECONDS)
    response.raise_for_status()
    for service in response.json().get("data", []):
        print(f"  {service['_id']}  {service['name']}  {service['formattedDuration']}  {service['formattedPrice']}")


async def _submit(machine: BookingDraftMachine, boundary: BookingFaultBoundary):
    boundary.mount()
    try:
        task = boundary.watch(asyncio.ensure_future(machine.submit()))
        await asyncio.gather(task, return_exceptions=True)
        return None if task.exception() else task.result()
    finally:
        boundary.unmount()


def _dispatch(command: str, machine: BookingDraftMachine, boundary: BookingFaultBoundary, base_url: str) -> None:
    verb, _, rest = command.partition(" ")
    if verb == "services":
        _list_services(base_url)
    elif verb == "select":
        machine.select_service(rest.strip())
    elif verb == "slot":
        date, _, time_slot = rest.strip().partition(" ")
        machine.choose_slot(date or None, time_slot.strip() or None)
    elif verb == "set":
        field, _, value = rest.partition("=")
        field = field.strip()
        if field not in FIELDS:
            print(f"Unknown field: {field}")
            return
        machine.update_client_details(**{field: value.strip()})
    elif verb == "next":
        machine.advance()
    elif verb == "back":
        machine.go_back()
    elif verb == "submit":
        asyncio.run(_submit(machine, boundary))
    elif verb == "reset":
        machine.reset()
    else:
        print("Unknown command; type help")


def _handle(command: str, machine: BookingDraftMachine, boundary: BookingFaultBoundary, base_url: str) -> None:
    # Validation problems are shown inline; anything else trips the boundary
    try:
        _dispatch(command, machine, boundary, base_url)
    except (StepValidationError, DraftTransitionError) as e:
        print(f"  {e}")
        if isinstance(e, StepValidationError):
            for field, message in e.errors.items():
                print(f"    {field}: {message}")


def _build_flow(base_url: str) -> tuple[BookingDraftMachine, BookingFaultBoundary]:
    machine, boundary = build_booking_flow(base_url=base_url)
    boundary.on_fault(lambda report: machine.mark_errored(report.message))
    return machine, boundary


def main() -> None:
    parser = argparse.ArgumentParser(description="Walk through the booking flow locally")
    parser.add_argument("--base-url", default=settings.API_BASE_URL)
    args = parser.parse_args()

    reload_requested = threading.Event()
    app_boundary = ApplicationFaultBoundary(
        reload=reload_requested.set,
        threshold=settings.ERROR_LOOP_THRESHOLD,
        window_seconds=settings.ERROR_LOOP_WINDOW_SECONDS,
        reload_delay=settings.RELOAD_DELAY_SECONDS,
    )
    machine, boundary = _build_flow(args.base_url)
    machine.hydrate()
    include_details = not settings.is_production
    _print_help()

    while True:
        if reload_requested.is_set():
            print("\n🔄 Reloading booking flow")
            reload_requested.clear()
            app_boundary.restart()
            machine, boundary = _build_flow(args.base_url)
            machine.hydrate()

        view = app_boundary.fallback_view(include_details) or boundary.fallback_view(include_details)
        if view:
            print(f"\n⚠️  {view['title']}: {view['message']}")
            if include_details:
                print(f"   {view.get('technicalDetails', {}).get('message', '')}")
            print("   (type 'retry' to clear the error)")
        else:
            app_boundary.run(boundary.run, _render, machine)

        try:
            command = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not command:
            continue
        if command in ("quit", "exit"):
            print("Bye!")
            return
        if command == "help":
            _print_help()
            continue
        if command == "retry":
            boundary.reset()
            app_boundary.reset()
            machine, boundary = _build_flow(args.base_url)
            continue

        app_boundary.run(boundary.run, _handle, command, machine, boundary, args.base_url)


if __name__ == "__main__":
    main()
