"""Field normalization: joined header/line pairs -> canonical Expense.

Examples:
    "00045" → "45"
    "00000" → "0"
    "450"   → "450"
"""

import re
from typing import Tuple

from models.controlling import EXPENSE_TYPE_ACTUAL, Expense, HeaderRecord, LineItemRecord


# Leading zeros, except the last character of an all-zero value
_LEADING_ZEROS = re.compile(r"^0+(?=.)")


def strip_leading_zeros(value: str) -> str:
    """Strip leading '0' characters from an identifier.

    Interior and trailing zeros are kept, an all-zero value becomes "0" and
    an empty value stays empty. Idempotent.

    Examples:
        >>> strip_leading_zeros("00045")
        '45'
        >>> strip_leading_zeros("00000")
        '0'
    """
    if not value:
        return value
    return _LEADING_ZEROS.sub("", value, count=1)


def normalize(pair: Tuple[HeaderRecord, LineItemRecord]) -> Expense:
    """Build the Expense for one joined pair.

    Date and currency come from the header; identifiers are stripped of
    leading zeros; the segment text is copied as is.
    """
    header, item = pair
    return Expense(
        date=header.posting_date,
        type=EXPENSE_TYPE_ACTUAL,
        cost_center=strip_leading_zeros(item.cost_center),
        cost_element=strip_leading_zeros(item.cost_element),
        person_number=strip_leading_zeros(item.person_number),
        order_id=strip_leading_zeros(item.order_id),
        segment_text=item.segment_text,
        reserved="",
        amount=item.value_in_company_currency,
        currency=header.document_currency,
        document_number=strip_leading_zeros(item.document_number),
    )
