"""ERP Connectors - Pluggable controlling document sources.

This package contains the abstract source interface and concrete
implementations for specific ERP systems.

The extraction pipeline is ERP-neutral. This package handles:
- ERP-specific function calls and parameters
- Row parsing (ERP tables -> HeaderRecord / LineItemRecord)
- Translating backend failures into RemoteExecutionError

To add a new ERP:
1. Create a new folder (e.g., s4_odata/)
2. Implement ControllingDocumentSource
3. Register using @register_connector decorator
"""

from connectors.erp_base import (
    ControllingDocumentSource,
    ERPConfig,
    ERPConnectionStatus,
    create_connector,
    register_connector,
    list_available_connectors,
)

# Registers the SAP connector with the factory
import connectors.sap  # noqa: F401,E402

__all__ = [
    "ControllingDocumentSource",
    "ERPConfig",
    "ERPConnectionStatus",
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
