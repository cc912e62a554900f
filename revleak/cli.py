"""
RevLeak command line entry point.

``serve`` runs the web app; ``check-revenue`` and ``send-alert`` run the same
checks as the API and are meant to be scheduled (cron, systemd timers).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Callable

from .alerts import send_revenue_alert
from .config import Settings, load_environment
from .directory import SupabaseAccountDirectory
from .emailer import ResendMailer
from .errors import RevLeakError
from .revenue import get_revenue_stats
from .stripe_gateway import StripeGateway


LOG = logging.getLogger("revleak.cli")


def _configure_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers[:] = [handler]


def _command_serve(args: argparse.Namespace) -> int:
    from .app import create_app

    LOG.info("RevLeak running on http://%s:%s", args.host, args.port)
    create_app().run(host=args.host, port=args.port, debug=args.debug)
    return 0


def _command_check_revenue(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    stats = get_revenue_stats(StripeGateway.from_settings(settings), args.account_id)
    print(json.dumps(stats.to_dict(), indent=2))
    return 0


def _command_send_alert(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    settings.require(
        "stripe_secret_key", "resend_api_key", "alert_from_email", "supabase_url", "supabase_service_role_key"
    )
    directory = SupabaseAccountDirectory.from_settings(settings)
    gateway = StripeGateway.from_settings(settings)
    mailer = ResendMailer.from_settings(settings)

    failures = 0
    for account_id in args.account_ids:
        try:
            send_revenue_alert(account_id, directory=directory, gateway=gateway, mailer=mailer)
        except RevLeakError as exc:
            failures += 1
            LOG.error("Alert for %s failed (%s): %s", account_id, exc.kind.value, exc.message)
            continue
        LOG.info("Alert sent for %s", account_id)
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RevLeak Stripe revenue monitoring.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web application.")
    serve.set_defaults(handler=_command_serve)
    serve.add_argument("--host", default=os.getenv("REVLEAK_HOST", "127.0.0.1"))
    serve.add_argument("--port", type=int, default=int(os.getenv("REVLEAK_PORT", "8000")))
    serve.add_argument("--debug", action="store_true")

    check = subparsers.add_parser("check-revenue", help="Print revenue stats for an account as JSON.")
    check.set_defaults(handler=_command_check_revenue)
    check.add_argument("--account-id", default=None, help="Connected account id (default: platform account).")

    alert = subparsers.add_parser("send-alert", help="Email the revenue summary to each account's stored address.")
    alert.set_defaults(handler=_command_send_alert)
    alert.add_argument("account_ids", nargs="+", metavar="ACCOUNT_ID")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_environment()
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    handler: Callable[[argparse.Namespace], int] = getattr(args, "handler")
    try:
        return handler(args)
    except RevLeakError as exc:
        LOG.error("%s", exc.message)
        return 1
    except KeyboardInterrupt:
        LOG.warning("Cancelled by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
