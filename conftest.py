"""Shared fixtures: an in-memory controlling document source and sample rows."""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Set

import pytest

from connectors.erp_base import ControllingDocumentSource, ERPConfig
from core.observability.events import MemoryEventSink
from models.controlling import (
    ControllingDocumentSet,
    ExtractionRequest,
    HeaderRecord,
    LineItemRecord,
    RemoteQuerySpec,
)


class FakeSource(ControllingDocumentSource):
    """Controlling document source answering from memory and recording calls."""

    def __init__(
        self,
        known_cost_centers: Iterable[str] = (),
        headers: Iterable[HeaderRecord] = (),
        line_items: Iterable[LineItemRecord] = (),
        cost_center_error: Optional[Exception] = None,
        query_error: Optional[Exception] = None,
    ):
        super().__init__(ERPConfig(connector_type="fake", environment="sandbox"))
        self.known_cost_centers: Set[str] = set(known_cost_centers)
        self.documents = ControllingDocumentSet.of(headers, line_items)
        self.cost_center_error = cost_center_error
        self.query_error = query_error
        self.cost_center_calls: List[str] = []
        self.queries: List[RemoteQuerySpec] = []
        self.closed = False

    async def fetch_cost_centers(self, controlling_area: str) -> Set[str]:
        self.cost_center_calls.append(controlling_area)
        if self.cost_center_error is not None:
            raise self.cost_center_error
        return set(self.known_cost_centers)

    async def find_documents(self, query: RemoteQuerySpec) -> ControllingDocumentSet:
        self.queries.append(query)
        if self.query_error is not None:
            raise self.query_error
        return self.documents

    async def close(self) -> None:
        await super().close()
        self.closed = True


def header(document_number: str, posting_date: str = "2024-01-05", currency: str = "EUR") -> HeaderRecord:
    return HeaderRecord(document_number=document_number, posting_date=posting_date, document_currency=currency)


def line_item(
    document_number: str,
    cost_center: str = "0010",
    cost_element: str = "0000400000",
    person_number: str = "00012345",
    order_id: str = "",
    segment_text: str = "Fuel",
    amount: str = "150.00",
) -> LineItemRecord:
    return LineItemRecord(
        document_number=document_number,
        cost_center=cost_center,
        cost_element=cost_element,
        person_number=person_number,
        order_id=order_id,
        segment_text=segment_text,
        value_in_company_currency=Decimal(amount),
    )


@pytest.fixture
def request_1000() -> ExtractionRequest:
    return ExtractionRequest(
        controlling_area="1000",
        from_date=date(2024, 1, 1),
        to_date=date(2024, 1, 31),
        cost_centers=["0010", "0020"],
    )


@pytest.fixture
def events() -> MemoryEventSink:
    return MemoryEventSink()
