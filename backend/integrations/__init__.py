"""External API integrations.

This package contains:
- PMS client: transport for the upstream practice-management REST API
- Envelopes: validated collection/resource response shapes
- Protocol: canonical record dataclasses produced by the mappers
- Mappers: pure conversions between wire records and canonical records
"""

from integrations.pms_client import PMSClient
from integrations.pms_envelope import CollectionEnvelope, PageInfo, ResourceEnvelope

__all__ = [
    "CollectionEnvelope",
    "PMSClient",
    "PageInfo",
    "ResourceEnvelope",
]
