"""Header/line reconciliation.

Joins line items against document headers on document number.

- reconcile(headers, line_items) -> ReconciliationResult

Headers only populate the lookup; output order follows the line items.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from core.observability.events import EventSink, ExtractionEventType
from models.controlling import HeaderRecord, LineItemRecord


JoinedPair = Tuple[HeaderRecord, LineItemRecord]


class HeaderLookup:
    """Read-only document number -> header mapping.

    Built in one ordered pass over the header table, then frozen. When a
    document number appears more than once, the later header wins; the
    overwritten document numbers are kept in ``duplicates``.
    """

    def __init__(self, by_document: Mapping[str, HeaderRecord], duplicates: Tuple[str, ...] = ()):
        self._by_document = MappingProxyType(dict(by_document))
        self.duplicates = duplicates

    @classmethod
    def build(cls, headers: Iterable[HeaderRecord]) -> "HeaderLookup":
        by_document = {}
        duplicates = []
        for header in headers:
            if header.document_number in by_document:
                duplicates.append(header.document_number)
            by_document[header.document_number] = header
        return cls(by_document, tuple(duplicates))

    def get(self, document_number: str) -> Optional[HeaderRecord]:
        return self._by_document.get(document_number)

    def __contains__(self, document_number: object) -> bool:
        return document_number in self._by_document

    def __len__(self) -> int:
        return len(self._by_document)

    def as_mapping(self) -> Mapping[str, HeaderRecord]:
        return self._by_document


@dataclass(frozen=True)
class ReconciliationResult:
    """Joined pairs in line-item order, plus the skipped orphans."""
    pairs: Tuple[JoinedPair, ...]
    orphans: Tuple[LineItemRecord, ...]
    duplicate_headers: Tuple[str, ...] = ()

    @property
    def orphan_count(self) -> int:
        return len(self.orphans)

    @property
    def orphan_document_numbers(self) -> List[str]:
        return [item.document_number for item in self.orphans]


def reconcile(
    headers: Sequence[HeaderRecord],
    line_items: Sequence[LineItemRecord],
    events: Optional[EventSink] = None,
) -> ReconciliationResult:
    """Join line items with their headers.

    A line item whose document number has no header is an orphan: it is
    skipped and reported, and the join continues. An empty header table is
    reported as a warning; every line item then ends up as an orphan.

    Args:
        headers: Document header rows
        line_items: Line item rows
        events: Optional sink for orphan/duplicate/empty-table events

    Returns:
        ReconciliationResult
    """
    if not headers and events is not None:
        events.warning(ExtractionEventType.NO_DOC_HEADERS, "No doc headers!")

    lookup = HeaderLookup.build(headers)
    if lookup.duplicates and events is not None:
        events.warning(
            ExtractionEventType.DUPLICATE_DOC_HEADER,
            f"{len(lookup.duplicates)} duplicate document headers, keeping the last occurrence",
            document_numbers=list(lookup.duplicates),
        )

    pairs = []
    orphans = []
    for item in line_items:
        header = lookup.get(item.document_number)
        if header is None:
            orphans.append(item)
            if events is not None:
                events.info(
                    ExtractionEventType.ORPHAN_LINE_ITEM,
                    f"Key {item.document_number} not found in header documents table, skipping line item",
                    document_number=item.document_number,
                )
            continue
        pairs.append((header, item))

    if orphans and events is not None:
        events.warning(
            ExtractionEventType.ORPHANS_SKIPPED,
            f"Skipped {len(orphans)} of {len(line_items)} line items without a document header",
            orphan_count=len(orphans),
            line_item_count=len(line_items),
        )

    return ReconciliationResult(
        pairs=tuple(pairs),
        orphans=tuple(orphans),
        duplicate_headers=lookup.duplicates,
    )
