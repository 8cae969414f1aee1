"""Metric routing table.

Every filterable metric belongs to exactly one one-to-one relation of
``Image``. The table also carries each metric's declared default range; a
range equal to that default means "unconstrained" and is never encoded into
a URL or compiled into a predicate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Relation(str, Enum):
    """One-to-one metric relations of an image."""

    LUMINANCE = "Luminance"
    SATURATION = "Saturation"
    GLCM = "GLCM"
    LAPLACIAN = "Laplacian"

    @classmethod
    def parse(cls, value: str) -> Optional["Relation"]:
        """Resolve a relation tag case-insensitively, or None."""
        lowered = (value or "").strip().lower()
        for relation in cls:
            if relation.value.lower() == lowered:
                return relation
        return None


@dataclass(frozen=True)
class MetricSpec:
    name: str
    relation: Relation
    default_min: float
    default_max: float
    label: str

    @property
    def field(self) -> str:
        """Column name on the owning relation."""
        return self.name


_METRICS: Tuple[MetricSpec, ...] = (
    MetricSpec("mean_luminance", Relation.LUMINANCE, 0, 100, "Mean Luminance"),
    MetricSpec("median_luminance", Relation.LUMINANCE, 0, 100, "Median Luminance"),
    MetricSpec("std_luminance", Relation.LUMINANCE, 0, 50, "Standard Deviation of Luminance"),
    MetricSpec("dynamic_range", Relation.LUMINANCE, 0, 100, "Dynamic Range"),
    MetricSpec("rms_contrast", Relation.LUMINANCE, 0, 100, "RMS Contrast"),
    MetricSpec("michelson_contrast", Relation.LUMINANCE, 0, 1, "Michelson Contrast"),
    MetricSpec("luminance_skewness", Relation.LUMINANCE, -5, 15, "Luminance Skewness"),
    MetricSpec("luminance_kurtosis", Relation.LUMINANCE, -2, 200, "Luminance Kurtosis"),
    MetricSpec("min_luminance", Relation.LUMINANCE, 0, 100, "Min Luminance"),
    MetricSpec("max_luminance", Relation.LUMINANCE, 0, 100, "Max Luminance"),
    MetricSpec("mean_saturation", Relation.SATURATION, 0, 1, "Mean Saturation"),
    MetricSpec("median_saturation", Relation.SATURATION, 0, 1, "Median Saturation"),
    MetricSpec("std_saturation", Relation.SATURATION, 0, 0.5, "Standard Deviation of Saturation"),
    MetricSpec("contrast", Relation.GLCM, 0, 1500, "GLCM Contrast"),
    MetricSpec("correlation", Relation.GLCM, 0, 1, "GLCM Correlation"),
    MetricSpec("variance", Relation.LAPLACIAN, 0, 2500, "Laplacian Variance"),
)

METRICS: Dict[str, MetricSpec] = {spec.name: spec for spec in _METRICS}

# Color-range block over the clustering relation: URL key prefix -> (cluster column, default min, default max)
COLOR_RANGE_FIELDS: Dict[str, Tuple[str, float, float]] = {
    "l": ("l", 0, 100),
    "c": ("c", 0, 100),
    "h": ("h", 0, 360),
    "percentage": ("percentage", 0, 100),
}

HUE_PERIOD = 360.0


def lookup_metric(name: str) -> Optional[MetricSpec]:
    """Return the routing entry for a metric name, or None if unroutable."""
    return METRICS.get(name)


def metrics_for(relation: Relation) -> List[MetricSpec]:
    return [spec for spec in _METRICS if spec.relation is relation]


def relation_fields(relation: Relation) -> List[str]:
    """Sortable/filterable columns of a metric relation."""
    return [spec.field for spec in metrics_for(relation)]
