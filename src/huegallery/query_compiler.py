"""Translate a ``FilterModel`` into a structured predicate and ordering.

The output is independent of the persistence engine: ``Predicate`` holds an
artist/post constraint, an existential condition over color clusters and one
merged condition object per metric relation. ``huegallery.query_builder``
turns it into SQLAlchemy criteria.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple, Union

from huegallery.filter_model import (
    DEFAULT_SORT_KEY,
    RELATION_SEPARATOR,
    ArtistFilter,
    ColorRangeFilter,
    FilterModel,
    MetricRangeFilter,
    PostIdFilter,
    Range,
    SortOrder,
)
from huegallery.metrics import HUE_PERIOD, Relation, relation_fields

logger = logging.getLogger(__name__)

POST_RELATION = "post"
IMAGE_SORT_FIELDS = ("id", "filename", "width", "height", "processed_at", "post_id")
POST_SORT_FIELDS = ("id", "shortcode", "username", "post_date")


@dataclass(frozen=True)
class Bound:
    """Inclusive ``gte``/``lte`` condition on one field."""

    gte: float
    lte: float

    def accepts(self, value: Optional[float]) -> bool:
        return value is not None and self.gte <= value <= self.lte

    def as_dict(self) -> dict:
        return {"gte": self.gte, "lte": self.lte}


@dataclass(frozen=True)
class AnyBound:
    """Disjunction of bounds on one field."""

    options: Tuple[Bound, ...]

    def accepts(self, value: Optional[float]) -> bool:
        return any(option.accepts(value) for option in self.options)

    def as_dict(self) -> dict:
        return {"OR": [option.as_dict() for option in self.options]}


FieldCondition = Union[Bound, AnyBound]


def hue_condition(hue: Range) -> FieldCondition:
    """Circular hue range: ``min > max`` wraps through zero."""
    if hue.min <= hue.max:
        return Bound(hue.min, hue.max)
    return AnyBound((Bound(hue.min, HUE_PERIOD), Bound(0, hue.max)))


def _matches(conditions: Mapping[str, FieldCondition], values: Mapping[str, Optional[float]]) -> bool:
    return all(condition.accepts(values.get(name)) for name, condition in conditions.items())


@dataclass
class Predicate:
    artist: Optional[str] = None
    post_id: Optional[int] = None
    # At least one cluster of one of the image's clusterings must satisfy every field.
    cluster: Dict[str, FieldCondition] = field(default_factory=dict)
    relations: Dict[Relation, Dict[str, FieldCondition]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            self.artist is None
            and self.post_id is None
            and not self.cluster
            and not self.relations
        )

    def matches_cluster(self, values: Mapping[str, Optional[float]]) -> bool:
        """Evaluate the cluster condition against one cluster's ``l/c/h/percentage``."""
        return _matches(self.cluster, values)

    def matches_relation(self, relation: Relation, values: Mapping[str, Optional[float]]) -> bool:
        return _matches(self.relations.get(relation, {}), values)

    def as_dict(self) -> dict:
        """Nested, JSON-friendly view used for diagnostics."""
        result: dict = {}
        if self.artist is not None:
            result[POST_RELATION] = {"username": self.artist}
        if self.post_id is not None:
            result["post_id"] = self.post_id
        if self.cluster:
            result["KMeansClustering"] = {
                "some": {
                    "Clusters": {
                        "some": {name: cond.as_dict() for name, cond in self.cluster.items()}
                    }
                }
            }
        for relation, conditions in self.relations.items():
            result[relation.value] = {name: cond.as_dict() for name, cond in conditions.items()}
        return result


@dataclass(frozen=True)
class OrderSpec:
    """Single sort key. ``relation`` is None for columns of ``Image`` itself."""

    relation: Optional[str]
    field: str
    descending: bool = True

    @property
    def sort_order(self) -> SortOrder:
        return SortOrder.DESC if self.descending else SortOrder.ASC


@dataclass(frozen=True)
class CompiledQuery:
    predicate: Predicate
    order: OrderSpec


def _default_order(descending: bool) -> OrderSpec:
    relation, field_name = DEFAULT_SORT_KEY.split(RELATION_SEPARATOR)
    return OrderSpec(relation, field_name, descending)


def parse_sort_key(sort_key: Optional[str], sort_order=None) -> OrderSpec:
    """Parse a bare ``field`` or composite ``relation;field`` sort key.

    Unknown relations or fields fall back to the default sort key.
    """
    descending = SortOrder.parse(sort_order) is SortOrder.DESC
    key = (sort_key or "").strip()
    if not key:
        return _default_order(descending)

    if RELATION_SEPARATOR in key:
        relation_name, field_name = (part.strip() for part in key.split(RELATION_SEPARATOR, 1))
        if relation_name.lower() == POST_RELATION:
            if field_name in POST_SORT_FIELDS:
                return OrderSpec(POST_RELATION, field_name, descending)
        else:
            relation = Relation.parse(relation_name)
            if relation is not None and field_name in relation_fields(relation):
                return OrderSpec(relation.value, field_name, descending)
    elif key in IMAGE_SORT_FIELDS:
        return OrderSpec(None, key, descending)

    logger.debug("Unsupported sort key %r; using %r", key, DEFAULT_SORT_KEY)
    return _default_order(descending)


def build_predicate(model: FilterModel) -> Predicate:
    predicate = Predicate()
    for item in model.filters():
        if isinstance(item, ArtistFilter):
            predicate.artist = item.artist
        elif isinstance(item, PostIdFilter):
            predicate.post_id = item.post_id
        elif isinstance(item, ColorRangeFilter):
            predicate.cluster = {
                "l": Bound(item.lightness.min, item.lightness.max),
                "c": Bound(item.chroma.min, item.chroma.max),
                "h": hue_condition(item.hue),
                "percentage": Bound(item.percentage.min, item.percentage.max),
            }
        elif isinstance(item, MetricRangeFilter):
            # Merge into the relation's accumulator; never replace it.
            conditions = predicate.relations.setdefault(item.relation, {})
            conditions[item.metric.field] = Bound(item.range.min, item.range.max)
    return predicate


def compile_query(
    model: FilterModel,
    sort_key: Optional[str] = None,
    sort_order=None,
) -> CompiledQuery:
    """Compile filters and sort into a ``CompiledQuery``.

    ``sort_key``/``sort_order`` default to the model's own values.
    """
    predicate = build_predicate(model)
    order = parse_sort_key(
        sort_key if sort_key is not None else model.sort_key,
        sort_order if sort_order is not None else model.sort_order,
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Compiled filters: %s", json.dumps(predicate.as_dict(), sort_keys=True))
    return CompiledQuery(predicate=predicate, order=order)
