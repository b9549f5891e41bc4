"""Abstract ERP Connector Interface.

This module defines the interface that controlling document sources must
implement. It is intentionally ERP-agnostic - no SAP specifics here.

Connectors implement this interface to:
1. List the cost centers that exist in a controlling area
2. Execute a RemoteQuerySpec and return both result tables

Key Design Principles:
- All methods return NORMALIZED objects (HeaderRecord, LineItemRecord) - not ERP rows
- The extraction pipeline and Temporal activities depend ONLY on this interface
- ERP-specific implementations live in connector subfolders
- Connection setup/authentication is the connector's own business
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from models.controlling import ControllingDocumentSet, RemoteQuerySpec


# =============================================================================
# Enums
# =============================================================================

class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "sap_rfc", ...
    environment: str = "production"         # "production", "sandbox"
    destination: Optional[str] = None       # Named RFC destination / system id

    # ERP-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ControllingDocumentSource(ABC):
    """Abstract base class for controlling document sources.

    The extraction pipeline treats a source as a black box: it either returns
    tabular data or raises extraction.errors.RemoteExecutionError. Sources do
    not retry; retry policy belongs to the caller.

    Implementations:
    - connectors/sap/rfc_connector.py
    """

    def __init__(self, config: ERPConfig):
        self.config = config
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    @property
    def connection_status(self) -> ERPConnectionStatus:
        """Get current connection status."""
        return self._connection_status

    @abstractmethod
    async def fetch_cost_centers(self, controlling_area: str) -> Set[str]:
        """List the cost centers that exist in a controlling area.

        Args:
            controlling_area: Controlling area identifier

        Returns:
            Set of cost center identifiers as the ERP spells them

        Raises:
            RemoteExecutionError: The lookup call failed
        """
        pass

    @abstractmethod
    async def find_documents(self, query: RemoteQuerySpec) -> ControllingDocumentSet:
        """Execute a controlling document query.

        Args:
            query: Query built by extraction.query.build_request

        Returns:
            ControllingDocumentSet with document headers and line items

        Raises:
            RemoteExecutionError: The query call failed
        """
        pass

    async def close(self) -> None:
        """Release connector resources."""
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    def get_connector_name(self) -> str:
        """Get the name of this connector."""
        return self.config.connector_type

    def get_environment(self) -> str:
        """Get the environment (production/sandbox)."""
        return self.config.environment


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig, **kwargs) -> ControllingDocumentSource:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified
        **kwargs: Passed to the connector constructor (e.g. an injected transport)

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config, **kwargs)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
