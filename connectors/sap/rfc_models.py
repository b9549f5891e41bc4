"""SAP RFC table row models.

These are SAP-specific models that map to the table rows returned by
BAPI_ACC_CO_DOCUMENT_FIND and BAPI_COSTCENTER_GETLIST1.
They are separate from the normalized models in /models/controlling.py.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.controlling import HeaderRecord, LineItemRecord, TextValue


class SapRowModel(BaseModel):
    """Base model for RFC table rows; unknown columns are ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SapDocHeaderRow(SapRowModel):
    """One row of the DOC_HEADERS table."""
    doc_no: TextValue = Field(..., alias="DOC_NO")
    postgdate: Any = Field(None, alias="POSTGDATE")
    co_area_curr: TextValue = Field("", alias="CO_AREA_CURR")

    def to_record(self) -> HeaderRecord:
        return HeaderRecord(
            document_number=self.doc_no,
            posting_date=self.postgdate,
            document_currency=self.co_area_curr,
        )


class SapLineItemRow(SapRowModel):
    """One row of the LINE_ITEMS table (only the columns we keep)."""
    doc_no: TextValue = Field(..., alias="DOC_NO")
    costcenter: TextValue = Field("", alias="COSTCENTER")
    cost_elem: TextValue = Field("", alias="COST_ELEM")
    person_no: TextValue = Field("", alias="PERSON_NO")
    orderid: TextValue = Field("", alias="ORDERID")
    seg_text: TextValue = Field("", alias="SEG_TEXT")
    value_cocur: Any = Field("0", alias="VALUE_COCUR")

    def to_record(self) -> LineItemRecord:
        return LineItemRecord(
            document_number=self.doc_no,
            cost_center=self.costcenter,
            cost_element=self.cost_elem,
            person_number=self.person_no,
            order_id=self.orderid,
            segment_text=self.seg_text,
            value_in_company_currency=self.value_cocur,
        )


class SapCostCenterRow(SapRowModel):
    """One row of the COSTCENTER_LIST table."""
    costcenter: TextValue = Field(..., alias="COSTCENTER")
    co_area: Optional[str] = Field(None, alias="CO_AREA")
    name: Optional[str] = Field(None, alias="NAME")


class SapReturnMessage(SapRowModel):
    """BAPIRET2 message; TYPE 'E' and 'A' mark a failed call."""
    type: str = Field("", alias="TYPE")
    id: Optional[str] = Field(None, alias="ID")
    number: Optional[str] = Field(None, alias="NUMBER")
    message: str = Field("", alias="MESSAGE")

    @property
    def is_error(self) -> bool:
        return self.type in ("E", "A")

    def __str__(self) -> str:
        code = f"{self.id}/{self.number} " if self.id else ""
        return f"{self.type} {code}{self.message}".strip()
