"""Sync service - pulls upstream records into the local store per tenant."""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from config import settings
from integrations.exceptions import SyncBudgetExceeded
from integrations.pms_client import PMSClient
from models import Patient, SyncJob, TenantSyncConfig
from models.utils import utc_now
from services.entity_store import RESOURCES, EntityStore
from services.pagination import SyncAccumulator, paginate
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TenantSyncConfig], PMSClient]

# Pull order for a full sync. Providers and patients come before the
# records that reference them so local foreign keys resolve in one pass.
# Step numbers in error messages start at 4 (1-3 are config lookup, job
# creation and authentication).
FULL_SYNC_STEPS = [
    "providers",
    "operatories",
    "patients",
    "appointments",
    "appointment_types",
    "fee_schedules",
    "recalls",
    "insurance_plans",
    "insurance_coverages",
    "procedures",
    "charges",
    "payments",
    "adjustments",
    "guarantor_balances",
    "insurance_balances",
    "treatment_plans",
    "claims",
    "working_hours",
]
FIRST_STEP_NUMBER = 4

# Incremental pulls: (resource, filtered by updated_since).
INCREMENTAL_STEPS = [
    ("patients", True),
    ("appointments", True),
    ("insurance_coverages", False),
    ("recalls", False),
    ("procedures", True),
    ("charges", True),
    ("payments", False),
]
INCREMENTAL_APPOINTMENT_RANGE = ("2020-01-01", "2030-12-31")

COVERAGE_FALLBACK_PAGE_SIZE = 50


@dataclass
class IncrementalSyncSummary:
    configs_processed: int = 0
    total_processed: int = 0
    total_failed: int = 0
    errors: list[str] = field(default_factory=list)
    configs_failed: int = 0


class SyncService:
    """Service for running full and incremental syncs.

    One PMSClient is built per tenant per run and closed when the run ends.
    """

    # Class-level lock shared across all instances to prevent overlapping
    # runs in this process.
    _sync_lock = threading.Lock()

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        clock: Optional[Callable[[], float]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize with optional seams for dependency injection.

        Args:
            client_factory: Builds a PMSClient for a tenant config.
            clock: Monotonic clock used for the run's time budget.
            now: Wall-clock source used for date windows and cutoffs.
        """
        self._client_factory = client_factory or PMSClient.from_config
        self._clock = clock or time.monotonic
        self._now = now or utc_now

    @classmethod
    def is_sync_in_progress(cls) -> bool:
        acquired = cls._sync_lock.acquire(blocking=False)
        if acquired:
            cls._sync_lock.release()
            return False
        return True

    def _acquire(self) -> None:
        if not self._sync_lock.acquire(blocking=False):
            logger.warning("Sync blocked: another sync is already in progress")
            raise ValueError("Sync already in progress")

    # ------------------------------------------------------------------
    # Full sync
    # ------------------------------------------------------------------

    def run_full_sync(self, db: Session, tenant_id: str) -> SyncJob:
        """Pull every resource type for one tenant.

        Record failures and step failures are collected on the job and the
        run continues. Anything that escapes a step (authentication, the
        time budget) fails the whole run. The job row is committed when the
        run starts and again when it is finalized.

        A run that processed nothing and collected errors is marked
        ``failed``; any other run that reaches the end is ``completed``.

        Raises:
            ValueError: If the tenant config does not exist or a sync is
                already in progress.
        """
        config = TenantConfigService.get_config(db, tenant_id)
        if config is None:
            raise ValueError(f"Tenant config {tenant_id} not found")

        self._acquire()
        try:
            return self._run_full_sync(db, config)
        finally:
            self._sync_lock.release()

    def _run_full_sync(self, db: Session, config: TenantSyncConfig) -> SyncJob:
        job = SyncJob(tenant_id=config.id, job_type="full_sync")
        db.add(job)
        db.commit()
        logger.info("Full sync started for %s (job %s)", config.subdomain, job.id[:8])

        acc = SyncAccumulator()
        client = None
        try:
            client = self._client_factory(config)
            client.authenticate()
            deadline = self._clock() + settings.SYNC_TIME_BUDGET_SECONDS

            for number, name in enumerate(FULL_SYNC_STEPS, start=FIRST_STEP_NUMBER):
                try:
                    self._run_full_step(db, client, config, name, acc, deadline)
                except SyncBudgetExceeded:
                    raise
                except Exception as e:
                    logger.warning("Full sync step %d (%s) failed for %s: %s", number, name, config.subdomain, e)
                    acc.record_error(f"Step {number} ({name}): {e}")

            status = "failed" if acc.processed == 0 and acc.errors else "completed"
            job.finalize(status, acc.processed, acc.failed, acc.errors)
            TenantConfigService.update_connection_status(
                db, config, "connected" if status == "completed" else "error"
            )
            db.commit()
            logger.info(
                "Full sync %s for %s: %d processed, %d failed, %d errors",
                status, config.subdomain, acc.processed, acc.failed, len(acc.errors),
            )

        except Exception as e:
            logger.error("Full sync failed for %s: %s", config.subdomain, e, exc_info=True)
            acc.record_error(f"Full sync failed: {e}")
            job.finalize("failed", acc.processed, acc.failed, acc.errors)
            TenantConfigService.update_connection_status(db, config, "error")
            db.commit()

        finally:
            if client is not None:
                client.close()

        return job

    def _run_full_step(
        self,
        db: Session,
        client: PMSClient,
        config: TenantSyncConfig,
        name: str,
        acc: SyncAccumulator,
        deadline: float,
    ) -> None:
        params: dict[str, Any] = {}
        if name == "appointments":
            today = self._now().date()
            window_end = today + timedelta(days=settings.SYNC_APPOINTMENT_WINDOW_DAYS)
            params = {"start": today.isoformat(), "end": window_end.isoformat()}

        step_acc = SyncAccumulator()
        try:
            self._pull(db, client, config.id, name, step_acc, deadline, params)
            if name == "insurance_coverages" and step_acc.processed + step_acc.failed == 0:
                self._pull_coverages_per_patient(db, client, config.id, step_acc, deadline)
        finally:
            acc.merge(step_acc)

    def _pull_coverages_per_patient(
        self,
        db: Session,
        client: PMSClient,
        tenant_id: str,
        acc: SyncAccumulator,
        deadline: float,
    ) -> None:
        """Fetch coverages patient by patient when the bulk listing is empty.

        Some practices only expose coverages through the per-patient
        filter. A patient whose fetch fails is logged and skipped.
        """
        patient_ids = EntityStore.known_external_ids(db, Patient, tenant_id)
        logger.info("Bulk coverage listing empty; fetching for %d patients", len(patient_ids))

        resource = RESOURCES["insurance_coverages"]
        for patient_id in patient_ids:
            try:
                paginate(
                    lambda **p: client.get_insurance_coverages(patient_id=patient_id, **p),
                    lambda item: resource.apply(db, tenant_id, item),
                    resource.label,
                    acc,
                    page_size=COVERAGE_FALLBACK_PAGE_SIZE,
                    deadline=deadline,
                    clock=self._clock,
                )
            except SyncBudgetExceeded:
                raise
            except Exception as e:
                logger.warning("Coverage fetch failed for patient %s: %s", patient_id, e)

    # ------------------------------------------------------------------
    # Incremental sync
    # ------------------------------------------------------------------

    def run_incremental_sync(self, db: Session, now: Optional[datetime] = None) -> IncrementalSyncSummary:
        """Pull recently changed records for every active tenant.

        The cutoff is the tenant's ``last_sync_at``, or
        ``SYNC_INCREMENTAL_LOOKBACK_HOURS`` before ``now`` when it has never
        synced. A failing tenant is recorded and the loop moves on.

        Raises:
            ValueError: If a sync is already in progress.
        """
        self._acquire()
        try:
            return self._run_incremental_sync(db, now or self._now())
        finally:
            self._sync_lock.release()

    def _run_incremental_sync(self, db: Session, now: datetime) -> IncrementalSyncSummary:
        summary = IncrementalSyncSummary()

        for config in TenantConfigService.list_active(db):
            summary.configs_processed += 1
            job = SyncJob(tenant_id=config.id, job_type="incremental_sync")
            db.add(job)
            db.commit()

            acc = SyncAccumulator()
            client = None
            try:
                updated_since = format_cutoff(self.incremental_cutoff(config, now))
                client = self._client_factory(config)
                client.authenticate()
                deadline = self._clock() + settings.SYNC_TIME_BUDGET_SECONDS

                for name, filtered in INCREMENTAL_STEPS:
                    params: dict[str, Any] = {}
                    if filtered:
                        params["updated_since"] = updated_since
                    if name == "appointments":
                        params["start"], params["end"] = INCREMENTAL_APPOINTMENT_RANGE
                    self._pull(
                        db, client, config.id, name, acc, deadline, params,
                        label_prefix=f"Config {config.id} ",
                    )

                job.finalize("completed", acc.processed, acc.failed, acc.errors)
                TenantConfigService.update_connection_status(db, config, "connected")
                summary.total_processed += acc.processed
                summary.total_failed += acc.failed
                logger.info(
                    "Incremental sync for %s since %s: %d processed, %d failed",
                    config.subdomain, updated_since, acc.processed, acc.failed,
                )

            except Exception as e:
                logger.warning("Incremental sync failed for %s: %s", config.subdomain, e)
                acc.record_error(f"Config {config.id} failed: {e}")
                summary.configs_failed += 1
                job.finalize("failed", acc.processed, acc.failed, acc.errors)
                TenantConfigService.update_connection_status(db, config, "error")

            finally:
                if client is not None:
                    client.close()

            summary.errors.extend(acc.errors)
            db.commit()

        return summary

    @staticmethod
    def incremental_cutoff(config: TenantSyncConfig, now: datetime) -> datetime:
        if config.last_sync_at is not None:
            return _as_utc(config.last_sync_at)
        return _as_utc(now) - timedelta(hours=settings.SYNC_INCREMENTAL_LOOKBACK_HOURS)

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _pull(
        self,
        db: Session,
        client: PMSClient,
        tenant_id: str,
        name: str,
        acc: SyncAccumulator,
        deadline: float,
        params: dict[str, Any],
        label_prefix: str = "",
    ) -> None:
        resource = RESOURCES[name]
        fetch = getattr(client, resource.list_method)
        paginate(
            lambda **p: fetch(**params, **p),
            lambda item: resource.apply(db, tenant_id, item),
            f"{label_prefix}{resource.label}",
            acc,
            page_size=settings.SYNC_PAGE_SIZE,
            deadline=deadline,
            clock=self._clock,
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_cutoff(value: datetime) -> str:
    """Format a cutoff the way the upstream ``updated_since`` filter expects."""
    return _as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")
