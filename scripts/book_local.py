#!/usr/bin/env python3
"""
Interactive local booking harness (no HTTP, no marketplace).

Usage:
  python3 scripts/book_local.py

Drives one BookingWorkflow against the mock marketplace on virtual time.
Notifications are printed as they are emitted. Use /wait to move the
clock forward and watch the confirmation window play out.
"""
from __future__ import annotations

import asyncio
import shlex
from datetime import date, time

from app.application.exceptions import BookingError
from app.application.ports.realtime import APPOINTMENT_CONFIRMED, NOTIFICATION
from app.application.use_cases.booking_workflow import BookingWorkflow
from app.infrastructure.marketplace.mock_marketplace import MockMarketplace
from app.infrastructure.notifications.channel_notifier import ChannelNotifier
from app.infrastructure.realtime.memory_channel import InMemoryRealtimeChannel
from app.infrastructure.scheduling.manual_scheduler import ManualScheduler

SESSION_ID = "local_session"

HELP = """Commands:
  /categories                 list service categories
  /services <category>        list services and pick a category
  /service <id>               choose a service
  /when <YYYY-MM-DD> <HH:MM>  set date and time
  /flexible on|off            toggle the +/-15 minute tolerance
  /stylists [sort] [query]    show ranked stylists (sort: match, rating, distance, new)
  /pick <stylist id>          select a stylist
  /pay paypal|card            choose a payment method
  /next  /back                move between steps
  /wait <seconds>             advance virtual time
  /confirm                    simulate the stylist accepting
  /show                       print the draft
  /new  /quit"""


def _print_state(workflow: BookingWorkflow) -> None:
    draft = workflow.draft
    print(f"step: {workflow.step.value}")
    print(f"  service: {draft.service.name if draft.service else '-'}")
    print(f"  when: {draft.date or '-'} {draft.time or ''} flexible={draft.flexible_time}")
    print(f"  stylist: {draft.stylist_id or '-'}  payment: {draft.payment_method.value if draft.payment_method else '-'}")
    if draft.service:
        price = workflow.price_breakdown()
        print(f"  price: {price.base_price} + {price.travel_fee} travel + {price.platform_fee} fee = {price.total}")
    if workflow.confirmation:
        print(f"  appointment: {workflow.appointment_id} ({workflow.confirmation.state.value})")


async def _run_command(workflow: BookingWorkflow, scheduler: ManualScheduler, channel, args: list[str]) -> None:
    cmd, rest = args[0].lower(), args[1:]

    if cmd == "/categories":
        for category in await workflow.load_categories():
            print(f"  {category.id:<10} {category.name}")
    elif cmd == "/services":
        for service in await workflow.load_services(rest[0]):
            print(f"  {service.id:<10} {service.name} ${service.base_price:.2f} ({service.duration_minutes} min)")
    elif cmd == "/service":
        await workflow.choose_service(rest[0])
    elif cmd == "/when":
        workflow.set_date_time(date.fromisoformat(rest[0]), time.fromisoformat(rest[1]))
    elif cmd == "/flexible":
        workflow.set_flexible_time(rest[0].lower() == "on")
    elif cmd == "/stylists":
        sort = rest[0] if rest else None
        query = " ".join(rest[1:]) or None
        for stylist in workflow.stylists(sort=sort, query=query):
            badge = " NEW" if stylist.is_new else ""
            print(
                f"  {stylist.id:<6} {stylist.display_name:<14} match={stylist.match_score:<3} "
                f"rating={stylist.rating_average} dist={stylist.distance_miles:.1f}mi{badge}"
            )
        if workflow.search_error:
            print(f"  ({workflow.search_error})")
    elif cmd == "/pick":
        workflow.select_stylist(rest[0])
    elif cmd == "/pay":
        workflow.set_payment_method(rest[0])
    elif cmd == "/next":
        await workflow.advance()
        _print_state(workflow)
    elif cmd == "/back":
        workflow.back()
        _print_state(workflow)
    elif cmd == "/wait":
        fired = scheduler.advance(float(rest[0]))
        print(f"(clock +{rest[0]}s, {fired} timer(s) fired)")
    elif cmd == "/confirm":
        appointment_id = workflow.appointment_id or ""
        channel.emit(APPOINTMENT_CONFIRMED, appointment_id, {"appointmentId": appointment_id, "appointment": {}})
    elif cmd == "/show":
        _print_state(workflow)
    else:
        print(HELP)


def main() -> None:
    channel = InMemoryRealtimeChannel()
    scheduler = ManualScheduler()
    marketplace = MockMarketplace()
    channel.subscribe(NOTIFICATION, SESSION_ID, lambda p: print(f"[{p['level']}] {p['message']}"))

    workflow = BookingWorkflow(
        session_id=SESSION_ID,
        stylist_search=marketplace,
        appointments=marketplace,
        catalog=marketplace,
        channel=channel,
        scheduler=scheduler,
        clock=scheduler,
        notifier=ChannelNotifier(channel),
    )
    workflow.start()

    print("\nLocal Booking Harness")
    print("-" * 60)
    print(HELP)
    print("-" * 60)

    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return
        if not line:
            continue

        args = shlex.split(line)
        if args[0] in ("/quit", "/exit"):
            print("Bye!")
            return
        if args[0] == "/new":
            workflow.start()
            _print_state(workflow)
            continue

        try:
            asyncio.run(_run_command(workflow, scheduler, channel, args))
        except (BookingError, IndexError, ValueError) as e:
            print(f"ERROR: {e}")


if __name__ == "__main__":
    main()
