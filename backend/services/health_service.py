"""Health service - checks each tenant's upstream connection."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import settings
from integrations.pms_client import PMSClient
from models import HealthAlert, HealthCheck, TenantSyncConfig
from services.tenant_config_service import TenantConfigService

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TenantSyncConfig], PMSClient]

SERVICE_NAME = "pms"


@dataclass
class HealthCheckSummary:
    configs_checked: int = 0
    healthy: int = 0
    degraded: int = 0
    down: int = 0


class HealthService:
    """Runs connectivity checks and raises operator alerts.

    A check authenticates and reads one provider. Checks slower than
    ``HEALTH_DEGRADED_THRESHOLD_MS`` are ``degraded`` (warning alert); any
    failure is ``down`` (critical alert).
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._client_factory = client_factory or PMSClient.from_config
        self._clock = clock or time.monotonic

    def run_health_check(self, db: Session) -> HealthCheckSummary:
        summary = HealthCheckSummary()
        for config in TenantConfigService.list_active(db):
            status = self.check_tenant(db, config)
            summary.configs_checked += 1
            if status == "healthy":
                summary.healthy += 1
            elif status == "degraded":
                summary.degraded += 1
            else:
                summary.down += 1

        db.flush()
        logger.info(
            "Health check: %d checked, %d healthy, %d degraded, %d down",
            summary.configs_checked, summary.healthy, summary.degraded, summary.down,
        )
        return summary

    def check_tenant(self, db: Session, config: TenantSyncConfig) -> str:
        """Check one tenant and record the result. Returns the status."""
        status = self._measure(db, config)
        db.flush()
        return status

    def _measure(self, db: Session, config: TenantSyncConfig) -> str:
        started = self._clock()
        client = None
        try:
            client = self._client_factory(config)
            client.authenticate()
            client.get_providers(per_page=1)
        except Exception as e:
            elapsed_ms = int((self._clock() - started) * 1000)
            logger.warning("Health check failed for %s: %s", config.subdomain, e)
            self._record(db, config, "down", elapsed_ms, str(e))
            self._alert(db, config, "critical", f"PMS connection down for {config.subdomain}: {e}")
            return "down"
        finally:
            if client is not None:
                client.close()

        elapsed_ms = int((self._clock() - started) * 1000)
        if elapsed_ms > settings.HEALTH_DEGRADED_THRESHOLD_MS:
            self._record(db, config, "degraded", elapsed_ms, f"Slow response: {elapsed_ms}ms")
            self._alert(
                db, config, "warning",
                f"PMS responding slowly for {config.subdomain}: {elapsed_ms}ms",
            )
            return "degraded"

        self._record(db, config, "healthy", elapsed_ms, None)
        return "healthy"

    @staticmethod
    def list_alerts(db: Session, include_acknowledged: bool = False) -> list[HealthAlert]:
        query = db.query(HealthAlert)
        if not include_acknowledged:
            query = query.filter(HealthAlert.is_acknowledged.is_(False))
        return query.order_by(HealthAlert.created_at.desc()).all()

    @staticmethod
    def _record(db: Session, config: TenantSyncConfig, status: str, elapsed_ms: int, details: Optional[str]) -> None:
        db.add(HealthCheck(
            tenant_id=config.id,
            service=SERVICE_NAME,
            status=status,
            response_time_ms=elapsed_ms,
            details=details,
        ))

    @staticmethod
    def _alert(db: Session, config: TenantSyncConfig, severity: str, message: str) -> None:
        logger.warning("Health alert (%s): %s", severity, message)
        db.add(HealthAlert(
            tenant_id=config.id,
            service=SERVICE_NAME,
            severity=severity,
            message=message,
        ))
