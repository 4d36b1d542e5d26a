"""
Daemon that periodically syncs a device export with the CRM backend.
"""

from __future__ import annotations

import argparse
import logging
import os
import random
import time

from crm_sync.agent import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SYNC_INTERVAL_SECONDS,
    JsonExportSource,
    SyncAgent,
)
from crm_sync.client import CrmClient


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Shared contact CRM sync daemon")
    parser.add_argument(
        "--base-url",
        type=str,
        default=os.environ.get("CRM_BASE_URL", "http://localhost:8000"),
        help="Backend base URL",
    )
    parser.add_argument(
        "--state-file",
        type=str,
        default="crm_sync_state.json",
        help="Where the device id, token and sync cursors are kept",
    )
    parser.add_argument(
        "--export-file",
        type=str,
        required=True,
        help='Device export JSON shaped like {"calls": [...], "contacts": [...]}',
    )
    parser.add_argument("--email", type=str, default=None, help="Account to register")
    parser.add_argument(
        "--password",
        type=str,
        default=os.environ.get("CRM_PASSWORD"),
        help="Password for --email (or CRM_PASSWORD)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help="Calls pushed per request",
    )
    parser.add_argument(
        "--interval-seconds",
        type=int,
        default=DEFAULT_SYNC_INTERVAL_SECONDS,
        help="Seconds between sync runs",
    )
    parser.add_argument(
        "--jitter-seconds",
        type=int,
        default=60,
        help="Max random jitter added to sleep",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sync and exit",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    agent = SyncAgent(
        CrmClient(args.base_url),
        JsonExportSource(args.export_file),
        args.state_file,
        batch_size=args.batch_size,
    )
    if args.email:
        if not args.password:
            parser.error("--password (or CRM_PASSWORD) is required with --email")
        agent.register_account(args.email, args.password)
    if not agent.registered:
        parser.error("No registered account in the state file; pass --email and --password")

    def sleep_with_jitter(seconds: float) -> None:
        time.sleep(seconds + random.uniform(0, args.jitter_seconds))

    failures = agent.run_forever(
        args.interval_seconds,
        max_runs=1 if args.once else None,
        sleep=sleep_with_jitter,
    )
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
