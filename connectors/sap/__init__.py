"""SAP Connector Package.

Implements ControllingDocumentSource for SAP ERP over RFC.
"""

from connectors.sap.rfc_connector import (
    SapControllingConnector,
    build_parameters,
    BAPI_DOCUMENT_FIND,
    BAPI_COST_CENTER_LIST,
)
from connectors.sap.rfc_models import (
    SapDocHeaderRow,
    SapLineItemRow,
    SapCostCenterRow,
    SapReturnMessage,
)
from connectors.sap.recorded import RecordedRfcSession

__all__ = [
    # Connector
    "SapControllingConnector",
    "build_parameters",
    "BAPI_DOCUMENT_FIND",
    "BAPI_COST_CENTER_LIST",
    # Models
    "SapDocHeaderRow",
    "SapLineItemRow",
    "SapCostCenterRow",
    "SapReturnMessage",
    # Replay
    "RecordedRfcSession",
]
