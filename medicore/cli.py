#!/usr/bin/env python3
"""Counter console for the MediCore clinic API.

Usage:
    medicore login --email counter@clinic.lk
    medicore register-patient "A. Silva" 34 0771234567
    medicore watch
    medicore today --search silva
    medicore logout

Features:
- Session persisted between runs (same token storage as the library)
- Role check before each screen, like the web routes
- Live queue view refreshed every few seconds
"""
import argparse
import asyncio
import getpass
import sys
from typing import Optional

from medicore import config
from medicore.client import MediCoreClient
from medicore.guard import Decision, redirect_target
from medicore.logging_config import setup_structured_logging
from medicore.models import QueueSnapshot
from medicore.notifications import Notification, NotificationKind, Notifier


# ANSI color codes
class Colors:
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


NOTIFICATION_COLORS = {
    NotificationKind.SUCCESS: Colors.GREEN,
    NotificationKind.ERROR: Colors.RED,
    NotificationKind.WARNING: Colors.YELLOW,
    NotificationKind.LOADING: Colors.BLUE,
}


def print_colored(text: str, color: str = Colors.RESET):
    """Print colored text."""
    print(f"{color}{text}{Colors.RESET}")


def print_notification(notification: Notification):
    print_colored(notification.message, NOTIFICATION_COLORS[notification.kind])


def print_snapshot(snapshot: QueueSnapshot):
    """Render the 'Now Consulting' panel and completed list."""
    print("\n" + "=" * 60)
    if snapshot.current_patient:
        patient = snapshot.current_patient
        print_colored(f"NOW CONSULTING  Token #{patient.appointment_number}", Colors.BOLD)
        print(f"  {patient.patient_name} is with the doctor.")
    else:
        print_colored("NOW CONSULTING  (doctor is free)", Colors.BOLD)
    print(f"Registered today: {snapshot.total_today}")
    print("-" * 60)
    if not snapshot.completed_list:
        print("No completed treatments yet.")
    for visit in snapshot.completed_list:
        print(f"  #{visit.appointment_number:<4} {visit.patient_name:<30} ready for bill  [{visit.id}]")
    print("=" * 60)


def require(client: MediCoreClient, path: str) -> bool:
    """Check the route guard for a screen; explain a redirect."""
    decision = client.guard(path)
    if decision == Decision.ALLOW:
        return True
    if redirect_target(decision) == config.LOGIN_ROUTE:
        print_colored("Not logged in. Run: medicore login", Colors.YELLOW)
    else:
        print_colored("This screen is not available for your role.", Colors.YELLOW)
    return False


def cmd_login(client: MediCoreClient, args) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = client.actions.login(args.email, password)
    if not result.ok:
        print_colored(f"Login failed: {result.message}", Colors.RED)
        return 1
    session = client.session
    print_colored(f"Logged in as {session.display_name} ({session.role.value})", Colors.GREEN)
    print(f"Home screen: {result.data}")
    return 0


def cmd_logout(client: MediCoreClient, args) -> int:
    client.actions.logout()
    print_colored("Logged out.", Colors.GREEN)
    return 0


def cmd_whoami(client: MediCoreClient, args) -> int:
    session = client.session
    if session is None:
        print_colored("Not logged in.", Colors.YELLOW)
        return 1
    print(f"{session.display_name} <{session.email}>")
    print(f"Role: {session.role.value}")
    if session.clinic_name:
        print(f"Clinic: {session.clinic_name}")
    print(f"License: {session.payment_status or 'unknown'}")
    return 0


def cmd_register_patient(client: MediCoreClient, args) -> int:
    if not require(client, "/counter-dashboard"):
        return 1
    result = client.actions.register_patient(args.name, args.age, args.phone)
    return 0 if result.ok else 1


def cmd_today(client: MediCoreClient, args) -> int:
    if not require(client, "/counter-dashboard"):
        return 1
    result = client.actions.today_visits(args.search or "")
    if not result.ok:
        return 1
    if not result.data:
        print("No patients found.")
    for visit in result.data:
        print(f"  #{visit.appointment_number:<4} {visit.patient_name:<30} {visit.age:>3}  {visit.phone:<14} {visit.status_label}")
    return 0


async def watch_queue(client: MediCoreClient, interval: float, duration: Optional[float] = None):
    """Poll the queue and print every applied snapshot."""
    async with client.queue_poller(on_snapshot=print_snapshot, interval=interval):
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)


def cmd_watch(client: MediCoreClient, args) -> int:
    if not require(client, "/counter-dashboard"):
        return 1
    print_colored("Watching queue (Ctrl+C to stop)...", Colors.BLUE)
    try:
        asyncio.run(watch_queue(client, args.interval))
    except KeyboardInterrupt:
        print("\nStopped.")
    return 0


def cmd_theme(client: MediCoreClient, args) -> int:
    theme = client.theme.toggle() if args.toggle else client.theme.theme
    print(f"Theme: {theme.value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="medicore", description="MediCore clinic console")
    parser.add_argument("--api-url", default=config.API_BASE_URL, help="Clinic API root URL")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and remember the session")
    login.add_argument("--email", required=True)
    login.add_argument("--password")
    login.set_defaults(func=cmd_login)

    sub.add_parser("logout", help="Forget the session").set_defaults(func=cmd_logout)
    sub.add_parser("whoami", help="Show the logged-in user").set_defaults(func=cmd_whoami)

    register = sub.add_parser("register-patient", help="Register a walk-in patient")
    register.add_argument("name")
    register.add_argument("age")
    register.add_argument("phone")
    register.set_defaults(func=cmd_register_patient)

    today = sub.add_parser("today", help="List today's patients")
    today.add_argument("--search", help="Filter by name or token number")
    today.set_defaults(func=cmd_today)

    watch = sub.add_parser("watch", help="Live queue view")
    watch.add_argument("--interval", type=float, default=config.POLL_INTERVAL_SECONDS)
    watch.set_defaults(func=cmd_watch)

    theme = sub.add_parser("theme", help="Show or toggle the theme preference")
    theme.add_argument("--toggle", action="store_true")
    theme.set_defaults(func=cmd_theme)

    return parser


def main(argv=None) -> int:
    """Run the console."""
    args = build_parser().parse_args(argv)
    setup_structured_logging(args.log_level, json_logs=not args.plain_logs)

    client = MediCoreClient(base_url=args.api_url, notifier=Notifier(listener=print_notification))
    client.initialize()

    return args.func(client, args)


if __name__ == "__main__":
    sys.exit(main())
