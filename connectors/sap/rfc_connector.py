"""SAP RFC Controlling Document Connector.

Implements ControllingDocumentSource for SAP ERP via the controlling BAPIs:

- BAPI_COSTCENTER_GETLIST1: cost centers of a controlling area
- BAPI_ACC_CO_DOCUMENT_FIND: controlling documents (headers + line items)

The RFC transport is injected as a callable with the shape of a pyrfc
``Connection.call``: ``call(function_name, **params) -> dict``. Opening and
authenticating that connection is the caller's business.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from connectors.erp_base import (
    ControllingDocumentSource,
    ERPConfig,
    ERPConnectionStatus,
    register_connector,
)
from connectors.sap.rfc_models import (
    SapCostCenterRow,
    SapDocHeaderRow,
    SapLineItemRow,
    SapReturnMessage,
)
from core.observability.logging import get_logger
from extraction.errors import RemoteExecutionError
from models.controlling import (
    ControllingDocumentSet,
    CriterionField,
    RemoteQuerySpec,
    SelectionCriterion,
)


BAPI_DOCUMENT_FIND = "BAPI_ACC_CO_DOCUMENT_FIND"
BAPI_COST_CENTER_LIST = "BAPI_COSTCENTER_GETLIST1"

DOC_HEADER_TABLE = "DOC_HEADERS"
LINE_ITEMS_TABLE = "LINE_ITEMS"
INPUT_DOCUMENT_STRUCTURE = "DOCUMENT"
SELECT_CRITERIA_TABLE = "SELECT_CRITERIA"
COST_CENTER_LIST_TABLE = "COSTCENTER_LIST"
RETURN_PARAMETER = "RETURN"

SAP_FLAG_SET = "X"
SAP_DATE_FORMAT = "%Y%m%d"

RfcCall = Callable[..., Dict[str, Any]]

logger = get_logger(__name__)


def to_sap_value(criterion: SelectionCriterion, value: Optional[str]) -> Optional[str]:
    """Format a criterion value the way the BAPI expects (dates as YYYYMMDD)."""
    if value is None or criterion.field != CriterionField.POSTING_DATE:
        return value
    return datetime.strptime(value, "%Y-%m-%d").strftime(SAP_DATE_FORMAT)


def build_parameters(query: RemoteQuerySpec) -> Dict[str, Any]:
    """Translate a RemoteQuerySpec into BAPI_ACC_CO_DOCUMENT_FIND parameters."""
    document: Dict[str, Any] = {"CO_AREA": query.controlling_area}
    if query.period is not None:
        document["PERIOD"] = f"{query.period:03d}"

    criteria: List[Dict[str, Any]] = []
    for criterion in query.criteria:
        row = {
            "FIELD": criterion.field.value,
            "SIGN": criterion.sign,
            "OPTION": criterion.option.value,
            "LOW": to_sap_value(criterion, criterion.low),
        }
        if criterion.high is not None:
            row["HIGH"] = to_sap_value(criterion, criterion.high)
        criteria.append(row)

    params: Dict[str, Any] = {
        INPUT_DOCUMENT_STRUCTURE: document,
        SELECT_CRITERIA_TABLE: criteria,
    }
    if query.return_items:
        params["RETURN_ITEMS"] = SAP_FLAG_SET
    if query.return_costs:
        params["RETURN_COSTS"] = SAP_FLAG_SET
    return params


def check_return_messages(function_name: str, result: Dict[str, Any]) -> None:
    """Raise RemoteExecutionError if the BAPI reported an error or abort."""
    raw = result.get(RETURN_PARAMETER) or []
    if isinstance(raw, dict):
        raw = [raw]
    errors = [m for m in (SapReturnMessage.model_validate(r) for r in raw) if m.is_error]
    if errors:
        raise RemoteExecutionError(
            f"{function_name} returned errors: " + "; ".join(str(m) for m in errors),
            function_name=function_name,
        )


@register_connector("sap_rfc")
class SapControllingConnector(ControllingDocumentSource):
    """SAP connector for controlling documents.

    Required:
    - rfc_call: RFC transport callable (e.g. ``pyrfc.Connection(...).call``)

    Optional configuration:
    - custom_settings.max_cost_centers: MAXROWS for the cost center lookup
    """

    def __init__(self, config: ERPConfig, rfc_call: Optional[RfcCall] = None):
        super().__init__(config)
        self._rfc_call = rfc_call
        # One RFC connection serves one call at a time
        self._call_lock = asyncio.Lock()

    async def _call(self, function_name: str, **params: Any) -> Dict[str, Any]:
        """Run one blocking RFC call off the event loop and check its RETURN messages."""
        if self._rfc_call is None:
            raise RemoteExecutionError(
                f"No RFC transport configured for destination {self.config.destination!r}",
                function_name=function_name,
            )

        logger.debug(f"Calling {function_name}", extra_fields={"destination": self.config.destination})
        try:
            async with self._call_lock:
                result = await asyncio.to_thread(self._rfc_call, function_name, **params)
        except RemoteExecutionError:
            self._connection_status = ERPConnectionStatus.FAILED
            raise
        except Exception as e:
            self._connection_status = ERPConnectionStatus.FAILED
            raise RemoteExecutionError(
                f"{function_name} failed: {e}",
                function_name=function_name,
            ) from e

        self._connection_status = ERPConnectionStatus.CONNECTED
        check_return_messages(function_name, result or {})
        return result or {}

    async def fetch_cost_centers(self, controlling_area: str) -> Set[str]:
        params: Dict[str, Any] = {"CONTROLLINGAREA": controlling_area}
        max_rows = self.config.custom_settings.get("max_cost_centers")
        if max_rows:
            params["MAXROWS"] = int(max_rows)

        result = await self._call(BAPI_COST_CENTER_LIST, **params)
        rows = result.get(COST_CENTER_LIST_TABLE) or []
        cost_centers = {SapCostCenterRow.model_validate(row).costcenter for row in rows}
        logger.info(
            f"Found {len(cost_centers)} cost centers in controlling area {controlling_area}"
        )
        return cost_centers

    async def find_documents(self, query: RemoteQuerySpec) -> ControllingDocumentSet:
        result = await self._call(BAPI_DOCUMENT_FIND, **build_parameters(query))

        try:
            headers = [
                SapDocHeaderRow.model_validate(row).to_record()
                for row in result.get(DOC_HEADER_TABLE) or []
            ]
            line_items = [
                SapLineItemRow.model_validate(row).to_record()
                for row in result.get(LINE_ITEMS_TABLE) or []
            ]
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise RemoteExecutionError(
                f"{BAPI_DOCUMENT_FIND} returned unreadable rows: {e}",
                function_name=BAPI_DOCUMENT_FIND,
            ) from e

        return ControllingDocumentSet.of(headers, line_items)
