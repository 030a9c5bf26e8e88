"""
Custody backend implementations.

Available backends:
- LegacySdkAdapter: provider SDK-style client, coin-scoped sub-clients
- DirectRestAdapter: the same provider over plain REST with a bearer token
- AnchorageAdapter: vault-based provider, API-key header, vault capabilities only

Not every backend implements every capability; check
``backend.supports(Capability.X)`` or expect UnsupportedOperationError.
"""

from custody_gateway.backends.anchorage import AnchorageAdapter
from custody_gateway.backends.base import Capability, CustodyBackend
from custody_gateway.backends.direct_rest import DirectRestAdapter
from custody_gateway.backends.legacy_sdk import LegacySdkAdapter

__all__ = [
    "AnchorageAdapter",
    "Capability",
    "CustodyBackend",
    "DirectRestAdapter",
    "LegacySdkAdapter",
]
