"""Extraction error taxonomy.

All failures are reported for the whole extraction, never per record.
An orphan line item is not an error and has no exception type here.
"""

from typing import Optional, Sequence

from models.controlling import RemoteQuerySpec


class ExtractionError(Exception):
    """Base exception for expense extraction failures."""
    pass


class ConfigurationError(ExtractionError):
    """Extraction settings are missing or invalid."""
    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting


class ScopeNotFoundError(ExtractionError):
    """None of the requested cost centers exist in the ERP."""
    def __init__(self, controlling_area: str, requested: Sequence[str]):
        super().__init__(
            f"None of these cost centers exist in controlling area {controlling_area}: {list(requested)}"
        )
        self.controlling_area = controlling_area
        self.requested = tuple(requested)


class NoLineItemsError(ExtractionError):
    """The remote query succeeded but returned no line items."""
    def __init__(self, query: RemoteQuerySpec, header_count: int = 0):
        super().__init__(
            f"ERP returned no line items ({header_count} document headers) for {query.describe()}"
        )
        self.query = query
        self.header_count = header_count


class RemoteExecutionError(ExtractionError):
    """The remote call failed (connectivity, malformed request, backend error).

    Connectors raise it with the function name; the pipeline re-raises it with
    the query that was attempted. Never retried by the core.
    """
    def __init__(
        self,
        message: str,
        function_name: Optional[str] = None,
        query: Optional[RemoteQuerySpec] = None,
    ):
        super().__init__(message)
        self.function_name = function_name
        self.query = query
