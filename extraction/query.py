"""Query builder for the controlling document query."""

from typing import Iterable, Optional

from models.controlling import (
    CriterionField,
    CriterionOption,
    ExtractionRequest,
    RemoteQuerySpec,
    SelectionCriterion,
)


def build_request(
    request: ExtractionRequest,
    cost_centers: Optional[Iterable[str]] = None,
) -> RemoteQuerySpec:
    """Translate an extraction request into a RemoteQuerySpec.

    Line items and costs are always requested. The period is only set when one
    is configured. The first criterion is the inclusive posting date range,
    followed by one equality criterion per cost center in input order.

    Args:
        request: Extraction scope
        cost_centers: Validated cost centers; defaults to request.cost_centers

    Returns:
        RemoteQuerySpec (pure function of the arguments)
    """
    if cost_centers is None:
        cost_centers = request.cost_centers

    criteria = [
        SelectionCriterion(
            field=CriterionField.POSTING_DATE,
            option=CriterionOption.BETWEEN,
            low=request.from_date.isoformat(),
            high=request.to_date.isoformat(),
        )
    ]
    for cost_center in cost_centers:
        criteria.append(
            SelectionCriterion(
                field=CriterionField.COST_CENTER,
                option=CriterionOption.EQUAL,
                low=cost_center,
            )
        )

    return RemoteQuerySpec(
        controlling_area=request.controlling_area,
        period=request.period if request.has_period else None,
        return_items=True,
        return_costs=True,
        criteria=tuple(criteria),
    )
