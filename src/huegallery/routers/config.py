"""Router for filter and sort configuration."""

from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from huegallery.filter_model import DEFAULT_SORT_KEY, RELATION_SEPARATOR
from huegallery.metrics import COLOR_RANGE_FIELDS, Relation, metrics_for
from huegallery.query_compiler import POST_RELATION, POST_SORT_FIELDS
from huegallery.settings import settings

router = APIRouter(
    prefix="/api/v1",
    tags=["config"]
)


# ============================================================================
# Response Models
# ============================================================================

class RangeDefault(BaseModel):
    min: float
    max: float


class MetricInfo(BaseModel):
    """One filterable and sortable metric."""
    name: str
    label: str
    min: float = Field(..., description="Declared default minimum (unconstrained)")
    max: float = Field(..., description="Declared default maximum (unconstrained)")
    sort_key: str


class RelationMetrics(BaseModel):
    relation: str
    metrics: List[MetricInfo]


class MetricConfigResponse(BaseModel):
    """Everything a client needs to render filter panels and the sort menu."""
    relations: List[RelationMetrics]
    color_range: Dict[str, RangeDefault]
    post_sort_keys: List[str]
    default_sort_key: str
    default_page_size: int


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/metrics", response_model=MetricConfigResponse)
async def get_metric_config():
    """Metric routing table with defaults, grouped by relation.

    A range left at its default is treated as no filter.
    """
    groups = [
        RelationMetrics(
            relation=relation.value,
            metrics=[
                MetricInfo(
                    name=spec.name,
                    label=spec.label,
                    min=spec.default_min,
                    max=spec.default_max,
                    sort_key=f"{relation.value}{RELATION_SEPARATOR}{spec.field}",
                )
                for spec in metrics_for(relation)
            ],
        )
        for relation in Relation
    ]

    return MetricConfigResponse(
        relations=groups,
        color_range={
            key: RangeDefault(min=default_min, max=default_max)
            for key, (_, default_min, default_max) in COLOR_RANGE_FIELDS.items()
        },
        post_sort_keys=[f"{POST_RELATION}{RELATION_SEPARATOR}{name}" for name in POST_SORT_FIELDS],
        default_sort_key=DEFAULT_SORT_KEY,
        default_page_size=settings.default_page_size,
    )
