"""Core module - cross-cutting infrastructure.

Observability (logging, events, metrics) shared by the extraction pipeline,
the connectors and the Temporal runtime. It is intentionally ERP-agnostic.

ERP-specific logic (SAP RFC, ...) belongs in /connectors/.
"""

__version__ = "1.0.0"
