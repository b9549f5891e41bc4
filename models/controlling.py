"""Controlling document models - ERP-neutral extraction types.

These models describe one expense extraction run:

- ExtractionRequest: the organizational scope to extract
- HeaderRecord / LineItemRecord: the two tables returned by the ERP
- RemoteQuerySpec: the structured query handed to a ControllingDocumentSource
- Expense: the canonical per-line-item output record

SAP field names (POSTGDATE, KOSTL, ...) only appear in CriterionField values
and in /connectors/sap/.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


EXPENSE_TYPE_ACTUAL = "ACTUAL"


# =============================================================================
# Value Parsers (handle ERP text formats)
# =============================================================================

def _parse_decimal(value):
    """Parse decimal from ERP text (accepts SAP trailing minus, e.g. '150.00-')."""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip().replace(",", "")
        if s.endswith("-"):
            s = "-" + s[:-1]
        try:
            return Decimal(s)
        except InvalidOperation:
            raise ValueError(f"Cannot parse amount: {value!r}")
    return value


def _parse_date(value):
    """Parse date from ISO ('2024-01-05') or SAP ('20240105') strings."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        for fmt in ("%Y-%m-%d", "%Y%m%d"):
            try:
                return datetime.strptime(s, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Cannot parse date: {s!r}")
    return value


def _parse_text(value):
    """ERP text fields may come back as None or numbers; keep them as str."""
    if value is None:
        return ""
    if isinstance(value, (int, Decimal)):
        return str(value)
    return value


DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]
DateValue = Annotated[date, BeforeValidator(_parse_date)]
TextValue = Annotated[str, BeforeValidator(_parse_text)]


class ControllingBase(BaseModel):
    """Base model for controlling document types (immutable)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# =============================================================================
# Extraction Request
# =============================================================================

class ExtractionRequest(ControllingBase):
    """Scope of one extraction run.

    Cost centers are de-duplicated keeping first-seen order, so that the
    generated query criteria are stable for identical input.
    """
    controlling_area: str = Field(..., min_length=1, description="Controlling area (e.g. '1000')")
    from_date: DateValue = Field(..., description="Inclusive start of the posting date range")
    to_date: DateValue = Field(..., description="Inclusive end of the posting date range")
    period: Optional[int] = Field(default=None, ge=1, le=16, description="Fiscal period; None means all periods")
    cost_centers: Tuple[str, ...] = Field(..., description="Requested cost centers")

    @field_validator("cost_centers", mode="before")
    @classmethod
    def _dedupe_cost_centers(cls, value):
        if isinstance(value, str):
            value = [value]
        seen = []
        for cc in value or ():
            cc = str(cc).strip()
            if cc and cc not in seen:
                seen.append(cc)
        return tuple(seen)

    @field_validator("cost_centers")
    @classmethod
    def _require_cost_centers(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("at least one cost center is required")
        return value

    @model_validator(mode="after")
    def _check_date_range(self) -> "ExtractionRequest":
        if self.from_date > self.to_date:
            raise ValueError(
                f"from_date {self.from_date.isoformat()} is after to_date {self.to_date.isoformat()}"
            )
        return self

    @property
    def has_period(self) -> bool:
        return self.period is not None


# =============================================================================
# ERP Result Rows
# =============================================================================

class HeaderRecord(ControllingBase):
    """One controlling document header (keyed by document number)."""
    document_number: str
    posting_date: DateValue
    document_currency: TextValue = ""


class LineItemRecord(ControllingBase):
    """One line item of a controlling document."""
    document_number: str
    cost_center: TextValue = ""
    cost_element: TextValue = ""
    person_number: TextValue = ""
    order_id: TextValue = ""
    segment_text: TextValue = ""
    value_in_company_currency: DecimalValue = Decimal("0")


class ControllingDocumentSet(ControllingBase):
    """Both tables returned by one remote query, fully materialized."""
    headers: Tuple[HeaderRecord, ...] = ()
    line_items: Tuple[LineItemRecord, ...] = ()

    @classmethod
    def of(
        cls,
        headers: Iterable[HeaderRecord],
        line_items: Iterable[LineItemRecord],
    ) -> "ControllingDocumentSet":
        return cls(headers=tuple(headers), line_items=tuple(line_items))


# =============================================================================
# Remote Query
# =============================================================================

class CriterionField(str, Enum):
    """Selectable fields of the controlling document query."""
    POSTING_DATE = "POSTGDATE"
    COST_CENTER = "KOSTL"


class CriterionOption(str, Enum):
    """Comparison operator of a selection criterion."""
    BETWEEN = "BT"
    EQUAL = "EQ"


class SelectionCriterion(ControllingBase):
    """A single range-table row: SIGN is always inclusive ('I')."""
    field: CriterionField
    option: CriterionOption
    low: str
    high: Optional[str] = None
    sign: str = "I"


class RemoteQuerySpec(ControllingBase):
    """Structured request for the controlling document query facility.

    The remote system ANDs criteria of different fields and ORs criteria of
    the same field, so the date range is combined with any of the cost centers.
    """
    controlling_area: str
    period: Optional[int] = None
    return_items: bool = True
    return_costs: bool = True
    criteria: Tuple[SelectionCriterion, ...] = ()

    def criteria_for(self, criterion_field: CriterionField) -> List[SelectionCriterion]:
        return [c for c in self.criteria if c.field == criterion_field]

    @property
    def cost_centers(self) -> List[str]:
        return [c.low for c in self.criteria_for(CriterionField.COST_CENTER)]

    def describe(self) -> str:
        """Short human-readable form used in logs and error messages."""
        parts = [f"co_area={self.controlling_area}"]
        if self.period is not None:
            parts.append(f"period={self.period}")
        for c in self.criteria_for(CriterionField.POSTING_DATE):
            parts.append(f"posting_date={c.low}..{c.high}")
        parts.append(f"cost_centers={','.join(self.cost_centers)}")
        return " ".join(parts)


# =============================================================================
# Canonical Output
# =============================================================================

class Expense(ControllingBase):
    """Canonical expense record, one per joined line item.

    Identifier-like fields are stored without leading zeros. ``reserved`` is a
    historical column kept empty for downstream compatibility.
    """
    date: DateValue
    type: str = EXPENSE_TYPE_ACTUAL
    cost_center: str
    cost_element: str
    person_number: str
    order_id: str
    segment_text: str
    reserved: str = ""
    amount: DecimalValue
    currency: str
    document_number: str
