#!/usr/bin/env python3
"""
Demo: accounting orders end to end.

Seeds two clients into a throwaway in-memory database, creates a regular, a
critical audit and a scheduled order, finalises them (invoices go to the
dry-run transports) and prints each order's descriptions.

Usage:
    python3 scripts/demo_orders.py
    python3 scripts/demo_orders.py --config path/to/feaa.yaml
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from feaa_config import get_active_config  # noqa: E402
from feaa_services import StaticAuthProvider, open_order_desk  # noqa: E402

W = 72


def _hdr(title: str) -> str:
    return "\n".join(["", "=" * W, title.center(W), "=" * W])


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    args = parser.parse_args()

    config = replace(get_active_config(args.config), database_url="sqlite://")
    desk, store = open_order_desk(StaticAuthProvider({"demo": "demo"}), config=config)

    acme = store.add_client(
        first_name="Wile",
        last_name="Coyote",
        email_address="wile@acme.example",
        address="1 Mesa Rd",
        suburb="Painted Desert",
        state="AZ",
        post_code="86028",
    )
    pigeon = store.add_client(first_name="Dick", last_name="Dastardly", pigeon_coop_id="COOP-7")

    if not desk.login("demo", "demo"):
        print("login failed", file=sys.stderr)
        return 1

    reports = desk.get_all_reports()
    regular = desk.create_order(acme, order_type=1, max_counted_employees=10)
    critical = desk.create_order(acme, order_type=2, is_critical=True, critical_loading_raw=20)
    scheduled = desk.create_order(pigeon, order_type=1, is_scheduled=True, max_counted_employees=10, num_quarters=4)

    for order_id, count in ((regular, 25), (critical, 8), (scheduled, 5)):
        for report in reports[:2]:
            desk.order_line_set(order_id, report, count)

    print(_hdr("ORDERS"))
    for order_id in desk.get_all_orders():
        print(desk.get_order_long_desc(order_id))

    print(_hdr("INVOICES"))
    for order_id, priority in ((regular, ["mail", "email"]), (critical, ["email"]), (scheduled, [])):
        delivered = desk.finalise_order(order_id, priority)
        print(f"  {desk.get_order_short_desc(order_id):<50} delivered={delivered}")

    desk.logout()
    return 0


if __name__ == "__main__":
    sys.exit(main())
