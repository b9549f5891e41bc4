"""Scope validation.

Decides whether an extraction should query the ERP at all, by intersecting
the requested cost centers with the ones the ERP knows.
"""

from dataclasses import dataclass
from typing import AbstractSet, Iterable, Tuple


@dataclass(frozen=True)
class ScopeDecision:
    """Outcome of a scope check.

    Attributes:
        proceed: False when none of the requested cost centers exist remotely
        present: Requested cost centers that exist, in requested order
        missing: Requested cost centers that do not exist, in requested order
    """
    proceed: bool
    present: Tuple[str, ...]
    missing: Tuple[str, ...]

    @property
    def is_partial(self) -> bool:
        return self.proceed and bool(self.missing)


def validate_scope(requested: Iterable[str], known: AbstractSet[str]) -> ScopeDecision:
    """Intersect requested cost centers with the ERP's known cost centers.

    An empty intersection means the extraction must be aborted before any
    remote query. A partial intersection still proceeds with the subset that
    exists; missing cost centers are reported, not treated as an error.
    """
    present = []
    missing = []
    for cost_center in requested:
        if cost_center in present or cost_center in missing:
            continue
        if cost_center in known:
            present.append(cost_center)
        else:
            missing.append(cost_center)

    return ScopeDecision(
        proceed=bool(present),
        present=tuple(present),
        missing=tuple(missing),
    )
