"""API route handlers."""
from . import health_checks, push, sync, tenant_configs, webhooks

__all__ = ["health_checks", "push", "sync", "tenant_configs", "webhooks"]
