"""
Flows router — Sankey diagram data.

Endpoints:
    GET /sankey    Flow diagram for the selected taxonomy and filters

Query parameters:
    isOrderflow    ``true`` → orderflow columns, anything else → liquidity
    <column>       Selected values for that column; repeatable and/or
                   comma-delimited (``metaAggregator`` is accepted for
                   ``metaaggregator``)
    columns        Columns to leave out of the diagram; repeatable and/or
                   comma-delimited

Tags:
    flow-spine, api, sankey, flows

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Query, Request

from flowspine.api.deps import Cache, Settings, Store
from flowspine.api.middleware.errors import error_response, public_message
from flowspine.api.schemas.common import ErrorResponse, SuccessResponse
from flowspine.api.schemas.flows import SankeySchema
from flowspine.core.errors import FlowSpineError
from flowspine.core.logging import get_logger
from flowspine.flow.columns import COLUMN_ALIASES, get_taxonomy
from flowspine.flow.pipeline import FlowGraphBuilder, FlowRequest

logger = get_logger(__name__)

router = APIRouter()


def split_values(values: list[str]) -> list[str]:
    """Flatten repeated and comma-delimited parameter values."""
    out = []
    for value in values:
        out.extend(part.strip() for part in value.split(",") if part.strip())
    return out


def parse_selections(request: Request, columns: tuple[str, ...]) -> dict[str, list[str]]:
    """Read per-column selections from the query string."""
    params = request.query_params
    aliases_for: dict[str, list[str]] = {}
    for alias, column in COLUMN_ALIASES.items():
        aliases_for.setdefault(column, []).append(alias)

    selections: dict[str, list[str]] = {}
    for column in columns:
        raw = params.getlist(column)
        for alias in aliases_for.get(column, []):
            raw += params.getlist(alias)
        values = split_values(raw)
        if values:
            selections[column] = values
    return selections


@router.get(
    "/sankey",
    response_model=SuccessResponse[SankeySchema],
    responses={400: {"model": ErrorResponse}},
)
async def sankey(
    request: Request,
    settings: Settings,
    store: Store,
    cache: Cache,
    is_orderflow: str | None = Query(None, alias="isOrderflow", description="'true' for orderflow"),
    columns: list[str] | None = Query(None, description="Columns to exclude"),
):
    """Build the flow diagram for the requested mode and filters.

    Example:
        GET /api/v1/sankey?isOrderflow=true&frontend=Uniswap&columns=mempool

        Response:
        {
            "data": {
                "entityFilter": "((frontend = 'Uniswap'))",
                "links": {"source": [0], "target": [1], "value": [12.5]},
                "labels": ["Uniswap", "Flashbots"],
                "colors": ["#FF007A", "#3f1c5a"],
                "xPositions": [0.1, 0.9],
                "range": null
            },
            "elapsed_ms": 41.2,
            "warnings": []
        }
    """
    start = time.perf_counter()
    orderflow = (is_orderflow or "").lower() == "true"
    taxonomy = get_taxonomy(orderflow, settings)

    flow_request = FlowRequest(
        is_orderflow=orderflow,
        selections=parse_selections(request, taxonomy.columns),
        excluded=split_values(columns or []),
    )

    try:
        graph = await FlowGraphBuilder(store, cache, settings).build(flow_request)
    except FlowSpineError as exc:
        logger.warning("api.sankey.rejected", error=str(exc), category=exc.category.value)
        return error_response(status=400, message=exc.message)
    except Exception as exc:
        logger.exception("api.sankey.failed", error=str(exc))
        return error_response(status=400, message=public_message(request, exc))

    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    return SuccessResponse(
        data=SankeySchema.from_graph(graph),
        elapsed_ms=elapsed_ms,
        warnings=graph.warnings,
    )
