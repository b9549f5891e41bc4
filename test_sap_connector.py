"""SAP RFC connector tests driven by recorded BAPI responses."""

import asyncio
import json
import threading
import time
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from connectors.erp_base import ERPConfig, ERPConnectionStatus, create_connector, list_available_connectors
from connectors.sap import SapControllingConnector
from connectors.sap.recorded import RecordedRfcSession
from connectors.sap.rfc_connector import (
    BAPI_COST_CENTER_LIST,
    BAPI_DOCUMENT_FIND,
    build_parameters,
    check_return_messages,
)
from core.observability.events import MemoryEventSink
from extraction.errors import RemoteExecutionError
from extraction.pipeline import ErpExpenseExtractor
from extraction.query import build_request
from models.controlling import ExtractionRequest


RECORDING = Path(__file__).parent / "fixtures" / "sap_recording.json"


def _run(coro):
    return asyncio.run(coro)


def _config(**custom_settings) -> ERPConfig:
    return ERPConfig(connector_type="sap_rfc", destination="DEV", custom_settings=custom_settings)


def _request(**overrides) -> ExtractionRequest:
    data = dict(controlling_area="1000", from_date="2024-01-01", to_date="2024-01-31", cost_centers=["0010", "0020"])
    data.update(overrides)
    return ExtractionRequest(**data)


class TestBuildParameters:

    def test_document_find_parameters(self):
        params = build_parameters(build_request(_request(period=3)))

        assert params["RETURN_ITEMS"] == "X"
        assert params["RETURN_COSTS"] == "X"
        assert params["DOCUMENT"] == {"CO_AREA": "1000", "PERIOD": "003"}
        assert params["SELECT_CRITERIA"] == [
            {"FIELD": "POSTGDATE", "SIGN": "I", "OPTION": "BT", "LOW": "20240101", "HIGH": "20240131"},
            {"FIELD": "KOSTL", "SIGN": "I", "OPTION": "EQ", "LOW": "0010"},
            {"FIELD": "KOSTL", "SIGN": "I", "OPTION": "EQ", "LOW": "0020"},
        ]

    def test_period_omitted_when_not_configured(self):
        params = build_parameters(build_request(_request()))
        assert params["DOCUMENT"] == {"CO_AREA": "1000"}


class TestReturnMessages:

    def test_success_messages_pass(self):
        check_return_messages(BAPI_DOCUMENT_FIND, {"RETURN": [{"TYPE": "S", "MESSAGE": "ok"}, {"TYPE": "W", "MESSAGE": "careful"}]})

    @pytest.mark.parametrize("message_type", ["E", "A"])
    def test_error_messages_raise(self, message_type):
        with pytest.raises(RemoteExecutionError) as exc_info:
            check_return_messages(
                BAPI_DOCUMENT_FIND,
                {"RETURN": [{"TYPE": message_type, "ID": "KI", "NUMBER": "235", "MESSAGE": "Controlling area 9999 does not exist"}]},
            )
        assert exc_info.value.function_name == BAPI_DOCUMENT_FIND
        assert "KI/235" in str(exc_info.value)

    def test_single_return_structure(self):
        with pytest.raises(RemoteExecutionError):
            check_return_messages(BAPI_COST_CENTER_LIST, {"RETURN": {"TYPE": "E", "MESSAGE": "No authorization"}})


class TestSapControllingConnector:

    def test_registered(self):
        assert "sap_rfc" in list_available_connectors()
        connector = create_connector(_config(), rfc_call=RecordedRfcSession({}))
        assert isinstance(connector, SapControllingConnector)

    def test_fetch_cost_centers(self):
        session = RecordedRfcSession.from_file(RECORDING)
        connector = SapControllingConnector(_config(max_cost_centers=500), rfc_call=session)

        cost_centers = _run(connector.fetch_cost_centers("1000"))

        assert cost_centers == {"0010", "0020"}
        assert session.calls_to(BAPI_COST_CENTER_LIST) == [{"CONTROLLINGAREA": "1000", "MAXROWS": 500}]
        assert connector.connection_status == ERPConnectionStatus.CONNECTED

    def test_find_documents_parses_tables(self):
        session = RecordedRfcSession.from_file(RECORDING)
        connector = SapControllingConnector(_config(), rfc_call=session)

        documents = _run(connector.find_documents(build_request(_request())))

        assert [h.document_number for h in documents.headers] == ["0000100001", "0000100002"]
        assert documents.headers[0].posting_date == date(2024, 1, 5)
        assert documents.headers[0].document_currency == "EUR"
        assert len(documents.line_items) == 3
        assert documents.line_items[1].value_in_company_currency == Decimal("-25.50")
        assert documents.line_items[1].order_id == "000000500100"
        assert session.calls_to(BAPI_DOCUMENT_FIND)[0]["DOCUMENT"] == {"CO_AREA": "1000"}

    def test_missing_transport(self):
        connector = SapControllingConnector(_config())
        with pytest.raises(RemoteExecutionError) as exc_info:
            _run(connector.fetch_cost_centers("1000"))
        assert exc_info.value.function_name == BAPI_COST_CENTER_LIST

    def test_transport_exception_is_wrapped(self):
        def broken_call(function_name, **params):
            raise ConnectionError("RFC_COMMUNICATION_FAILURE")

        connector = SapControllingConnector(_config(), rfc_call=broken_call)
        with pytest.raises(RemoteExecutionError) as exc_info:
            _run(connector.find_documents(build_request(_request())))

        assert "RFC_COMMUNICATION_FAILURE" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert connector.connection_status == ERPConnectionStatus.FAILED

    def test_unreadable_rows(self):
        session = RecordedRfcSession({
            BAPI_DOCUMENT_FIND: {
                "DOC_HEADERS": [{"DOC_NO": "1", "POSTGDATE": "not-a-date"}],
                "LINE_ITEMS": [],
            },
        })
        connector = SapControllingConnector(_config(), rfc_call=session)
        with pytest.raises(RemoteExecutionError):
            _run(connector.find_documents(build_request(_request())))


class TestRecordedExtraction:

    def test_pipeline_over_recording(self):
        events = MemoryEventSink()
        connector = SapControllingConnector(_config(), rfc_call=RecordedRfcSession.from_file(RECORDING))

        result = _run(ErpExpenseExtractor(connector, events=events).extract(_request()))

        assert [e.document_number for e in result.expenses] == ["100001", "100002"]
        assert result.expenses[0].cost_element == "400000"
        assert result.expenses[0].person_number == "12345"
        assert result.expenses[1].person_number == "0"
        assert result.expenses[1].order_id == "500100"
        assert result.expenses[1].amount == Decimal("-25.50")
        assert result.orphan_count == 1


class OverlapCountingTransport:
    """RFC transport that records how many calls run at the same time."""

    def __init__(self, responses):
        self._session = RecordedRfcSession(responses)
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def __call__(self, function_name, **params):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(0.05)
            return self._session(function_name, **params)
        finally:
            with self._lock:
                self.active -= 1


class TestConcurrentCalls:

    def test_one_connector_serializes_rfc_calls(self):
        transport = OverlapCountingTransport(json.loads(RECORDING.read_text(encoding="utf-8")))
        connector = SapControllingConnector(_config(), rfc_call=transport)

        async def run_both():
            return await asyncio.gather(
                ErpExpenseExtractor(connector, events=MemoryEventSink()).extract(_request()),
                ErpExpenseExtractor(connector, events=MemoryEventSink()).extract(_request()),
            )

        results = _run(run_both())

        assert all(len(r.expenses) == 2 for r in results)
        assert transport.max_active == 1
        assert len(transport._session.calls) == 4
