#!/usr/bin/env python3
"""Seed the default recovery services into the configured record store."""

from __future__ import annotations

import argparse
import logging
import sys

sys.path.insert(0, ".")

from app.application.ports.record_store import Collection
from app.application.use_cases.services import ServiceCommands
from app.wiring.dependencies import get_record_store


DEFAULT_SERVICES = [
    {
        "name": "Investment Fraud Recovery",
        "description": "Comprehensive recovery service for investment fraud cases",
        "duration": 90,
        "price": 0,
        "category": "fraud-recovery",
    },
    {
        "name": "Cryptocurrency Recovery",
        "description": "Specialized recovery for lost or stolen cryptocurrency",
        "duration": 75,
        "price": 0,
        "category": "crypto-recovery",
    },
    {
        "name": "Financial Scam Recovery",
        "description": "Recovery assistance for various financial scams and fraud",
        "duration": 60,
        "price": 0,
        "category": "scam-recovery",
    },
    {
        "name": "Regulatory Complaint Assistance",
        "description": "Help with filing complaints to regulatory bodies",
        "duration": 45,
        "price": 0,
        "category": "regulatory-assistance",
    },
]


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--force", action="store_true", help="Insert even when services already exist")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    store = get_record_store()
    if store.count(Collection.SERVICES) and not args.force:
        print("Services already present; use --force to insert anyway.")
        return 0

    commands = ServiceCommands(store=store)
    for service in DEFAULT_SERVICES:
        saved = commands.create_service(service)
        print(f"✅ {saved['name']} ({saved['slug']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
