"""In-memory representation of what the user wants to see.

A ``FilterModel`` is rebuilt from the URL on every page load, changed through
its ``with_*`` helpers and encoded back into the URL. Construction normalizes
it: unroutable metric names and default ("unconstrained") ranges are dropped,
so two models describing the same listing compare equal.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from huegallery.metrics import COLOR_RANGE_FIELDS, METRICS, MetricSpec, Relation, lookup_metric

logger = logging.getLogger(__name__)

DEFAULT_SORT_KEY = "post;post_date"
RELATION_SEPARATOR = ";"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value, default: Optional["SortOrder"] = None) -> "SortOrder":
        """Parse ``asc``/``desc`` case-insensitively, falling back to descending."""
        if isinstance(value, cls):
            return value
        lowered = str(value or "").strip().lower()
        if lowered in ("asc", "ascending"):
            return cls.ASC
        if lowered in ("desc", "descending"):
            return cls.DESC
        return default or cls.DESC


@dataclass(frozen=True)
class Range:
    """Inclusive numeric range."""

    min: float
    max: float


def _color_default(key: str) -> Range:
    _, default_min, default_max = COLOR_RANGE_FIELDS[key]
    return Range(default_min, default_max)


def is_default_range(spec: MetricSpec, value: Range) -> bool:
    """True when ``value`` spans exactly the metric's declared default range."""
    return value.min == spec.default_min and value.max == spec.default_max


@dataclass(frozen=True)
class ArtistFilter:
    artist: str


@dataclass(frozen=True)
class PostIdFilter:
    post_id: int


@dataclass(frozen=True)
class ColorRangeFilter:
    """Constraint on the image's dominant color clusters.

    The hue range is circular over [0, 360): ``hue.min > hue.max`` selects the
    arc that wraps through zero.
    """

    lightness: Range = field(default_factory=lambda: _color_default("l"))
    chroma: Range = field(default_factory=lambda: _color_default("c"))
    hue: Range = field(default_factory=lambda: _color_default("h"))
    percentage: Range = field(default_factory=lambda: _color_default("percentage"))

    def ranges(self) -> Dict[str, Range]:
        """Ranges keyed by their URL prefix (``l``, ``c``, ``h``, ``percentage``)."""
        return {
            "l": self.lightness,
            "c": self.chroma,
            "h": self.hue,
            "percentage": self.percentage,
        }

    def is_default(self) -> bool:
        return all(value == _color_default(key) for key, value in self.ranges().items())


@dataclass(frozen=True)
class MetricRangeFilter:
    metric: MetricSpec
    range: Range

    @property
    def name(self) -> str:
        return self.metric.name

    @property
    def relation(self) -> Relation:
        return self.metric.relation


Filter = Union[ArtistFilter, PostIdFilter, ColorRangeFilter, MetricRangeFilter]


@dataclass
class FilterModel:
    """Filter, sort and pagination state of a gallery listing.

    Treat instances as values: use the ``with_*`` helpers, which rebuild the
    model and re-apply normalization, rather than assigning attributes.
    """

    artist: Optional[str] = None
    post_id: Optional[int] = None
    color_range: Optional[ColorRangeFilter] = None
    metric_ranges: Dict[str, Range] = field(default_factory=dict)
    sort_key: str = DEFAULT_SORT_KEY
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: Optional[int] = None

    _metric_filters: Tuple[MetricRangeFilter, ...] = field(
        init=False, repr=False, compare=False, default=()
    )

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size is not None and self.page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")

        self.artist = (self.artist or "").strip() or None
        self.sort_key = (self.sort_key or "").strip() or DEFAULT_SORT_KEY
        self.sort_order = SortOrder.parse(self.sort_order)

        if self.color_range is not None and self.color_range.is_default():
            self.color_range = None

        routed: Dict[str, MetricRangeFilter] = {}
        for name, value in self.metric_ranges.items():
            spec = lookup_metric(name)
            if spec is None:
                logger.debug("Ignoring filter on unroutable metric %r", name)
                continue
            if is_default_range(spec, value):
                continue
            routed[name] = MetricRangeFilter(spec, value)

        # Routing-table order keeps the model canonical regardless of input order.
        ordered = [routed[name] for name in METRICS if name in routed]
        self.metric_ranges = {item.name: item.range for item in ordered}
        self._metric_filters = tuple(ordered)

    @property
    def metric_filters(self) -> Tuple[MetricRangeFilter, ...]:
        return self._metric_filters

    def filters(self) -> List[Filter]:
        """All active constraints as tagged filter values."""
        result: List[Filter] = []
        if self.artist:
            result.append(ArtistFilter(self.artist))
        if self.post_id is not None:
            result.append(PostIdFilter(self.post_id))
        if self.color_range is not None:
            result.append(self.color_range)
        result.extend(self._metric_filters)
        return result

    def with_metric_range(self, name: str, min_value: float, max_value: float) -> "FilterModel":
        """Set a metric range; a range equal to the metric default removes it."""
        ranges = dict(self.metric_ranges)
        ranges[name] = Range(min_value, max_value)
        return replace(self, metric_ranges=ranges)

    def without_metric_range(self, name: str) -> "FilterModel":
        ranges = {key: value for key, value in self.metric_ranges.items() if key != name}
        return replace(self, metric_ranges=ranges)

    def with_color_range(self, color_range: Optional[ColorRangeFilter]) -> "FilterModel":
        return replace(self, color_range=color_range)

    def with_artist(self, artist: Optional[str]) -> "FilterModel":
        return replace(self, artist=artist)

    def with_sort(self, sort_key: str, sort_order) -> "FilterModel":
        return replace(self, sort_key=sort_key, sort_order=SortOrder.parse(sort_order))

    def with_page(self, page: int) -> "FilterModel":
        return replace(self, page=page)
