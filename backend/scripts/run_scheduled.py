#!/usr/bin/env python
"""Entry point for scheduled sync and health runs.

Meant to be invoked by cron or another external scheduler; each
invocation runs once and exits.

Usage:
    python -m scripts.run_scheduled incremental
    python -m scripts.run_scheduled full --tenant <tenant-config-id>
    python -m scripts.run_scheduled full --all
    python -m scripts.run_scheduled health
"""

import argparse
import logging
import sys

from database import get_session_local, init_db
from logging_config import setup_logging
from services.health_service import HealthService
from services.sync_service import SyncService
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)


def run_full(db, tenant_ids: list[str]) -> int:
    """Run a full sync per tenant. Returns the number of failed runs."""
    service = SyncService()
    failures = 0
    for tenant_id in tenant_ids:
        job = service.run_full_sync(db, tenant_id)
        print(
            f"Full sync {tenant_id}: {job.status} "
            f"({job.records_processed} processed, {job.records_failed} failed)"
        )
        for error in job.errors:
            print(f"  - {error}")
        if job.status != "completed":
            failures += 1
    return failures


def run_incremental(db) -> int:
    summary = SyncService().run_incremental_sync(db)
    print(
        f"Incremental sync: {summary.configs_processed} tenants, "
        f"{summary.total_processed} processed, {summary.total_failed} failed, {summary.configs_failed} tenants failed"
    )
    for error in summary.errors:
        print(f"  - {error}")
    return summary.configs_failed


def run_health(db) -> int:
    summary = HealthService().run_health_check(db)
    db.commit()
    print(
        f"Health: {summary.configs_checked} checked, {summary.healthy} healthy, "
        f"{summary.degraded} degraded, {summary.down} down"
    )
    return summary.down


def main(argv: list[str] | None = None) -> None:
    """Entry point: parse args and run the requested job."""
    parser = argparse.ArgumentParser(description="Run a scheduled sync or health job once.")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override LOG_LEVEL for this run",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    full = subparsers.add_parser("full", help="Full sync for one tenant or all active tenants")
    target = full.add_mutually_exclusive_group(required=True)
    target.add_argument("--tenant", help="Tenant config id")
    target.add_argument("--all", action="store_true", help="Every active tenant")

    subparsers.add_parser("incremental", help="Incremental sync for all active tenants")
    subparsers.add_parser("health", help="Check every active tenant's connection")

    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        if args.command == "full":
            if args.all:
                tenant_ids = [c.id for c in TenantConfigService.list_active(db)]
            else:
                tenant_ids = [args.tenant]
            failures = run_full(db, tenant_ids)
        elif args.command == "incremental":
            failures = run_incremental(db)
        else:
            failures = run_health(db)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
