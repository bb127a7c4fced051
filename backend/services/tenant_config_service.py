"""Tenant configuration service - per-practice upstream credentials."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from integrations.pms_client import PMSClient
from models import TenantSyncConfig
from models.utils import utc_now

logger = logging.getLogger(__name__)

CONNECTION_STATUSES = ("connected", "error", "unconfigured")


@dataclass
class ConnectionTestResult:
    success: bool
    error: Optional[str] = None


class TenantConfigService:
    """Service for managing tenant sync configurations."""

    @staticmethod
    def save_config(
        db: Session,
        *,
        practice_id: str,
        api_key: str,
        subdomain: str,
        location_id: str,
        environment: str = "production",
        webhook_secret: Optional[str] = None,
    ) -> TenantSyncConfig:
        """Create the practice's config, or update it in place if one exists.

        Saving re-activates a deactivated config. Connection status is reset
        to ``unconfigured`` whenever credentials change.
        """
        config = (
            db.query(TenantSyncConfig)
            .filter(TenantSyncConfig.practice_id == practice_id)
            .first()
        )
        if config is None:
            config = TenantSyncConfig(practice_id=practice_id)
            db.add(config)
            logger.info("Tenant config created for practice %s", practice_id)
        elif (config.api_key, config.subdomain, config.location_id) != (api_key, subdomain, location_id):
            config.connection_status = "unconfigured"
            logger.info("Tenant config credentials changed for practice %s", practice_id)

        config.api_key = api_key
        config.subdomain = subdomain
        config.location_id = location_id
        config.environment = environment
        config.webhook_secret = webhook_secret
        config.is_active = True
        db.flush()
        return config

    @staticmethod
    def get_config(db: Session, config_id: str) -> TenantSyncConfig | None:
        return db.query(TenantSyncConfig).filter(TenantSyncConfig.id == config_id).first()

    @staticmethod
    def get_by_subdomain(db: Session, subdomain: str) -> TenantSyncConfig | None:
        """Look up the active config that owns ``subdomain``."""
        return (
            db.query(TenantSyncConfig)
            .filter(
                TenantSyncConfig.subdomain == subdomain,
                TenantSyncConfig.is_active.is_(True),
            )
            .first()
        )

    @staticmethod
    def list_configs(db: Session) -> list[TenantSyncConfig]:
        return db.query(TenantSyncConfig).order_by(TenantSyncConfig.created_at).all()

    @staticmethod
    def list_active(db: Session) -> list[TenantSyncConfig]:
        return (
            db.query(TenantSyncConfig)
            .filter(TenantSyncConfig.is_active.is_(True))
            .order_by(TenantSyncConfig.created_at)
            .all()
        )

    @staticmethod
    def deactivate(db: Session, config_id: str) -> TenantSyncConfig | None:
        """Stop syncing a tenant. The row and its history are kept."""
        config = TenantConfigService.get_config(db, config_id)
        if config is None:
            return None
        config.is_active = False
        config.connection_status = "unconfigured"
        db.flush()
        logger.info("Tenant config %s deactivated", config_id)
        return config

    @staticmethod
    def update_connection_status(db: Session, config: TenantSyncConfig, status: str) -> None:
        """Set the connection status; ``connected`` also stamps ``last_sync_at``."""
        if status not in CONNECTION_STATUSES:
            raise ValueError(f"Invalid connection status: {status}")
        config.connection_status = status
        if status == "connected":
            config.last_sync_at = utc_now()
        db.flush()

    @staticmethod
    def test_connection(
        db: Session,
        config: TenantSyncConfig,
        client_factory: Callable[[TenantSyncConfig], PMSClient] = PMSClient.from_config,
    ) -> ConnectionTestResult:
        """Authenticate and read one provider to prove the credentials work.

        Never raises for upstream failures; the outcome is stored on the
        config and returned.
        """
        client = None
        try:
            client = client_factory(config)
            client.authenticate()
            client.get_providers(per_page=1)
        except Exception as e:
            logger.warning("Connection test failed for %s: %s", config.subdomain, e)
            config.connection_status = "error"
            db.flush()
            return ConnectionTestResult(success=False, error=str(e))
        finally:
            if client is not None:
                client.close()

        config.connection_status = "connected"
        db.flush()
        logger.info("Connection test passed for %s", config.subdomain)
        return ConnectionTestResult(success=True)
