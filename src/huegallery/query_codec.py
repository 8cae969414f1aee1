"""Bidirectional mapping between URL query parameters and ``FilterModel``.

``decode`` is total: malformed numbers fall back to defaults, unknown metric
names are dropped and nothing raises. ``encode`` emits a canonical ordering,
so ``encode(decode(q))`` does not depend on the key order of ``q``.
"""

import logging
import math
import re
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

from huegallery.filter_model import (
    ColorRangeFilter,
    FilterModel,
    Range,
    SortOrder,
)
from huegallery.metrics import COLOR_RANGE_FIELDS, lookup_metric

logger = logging.getLogger(__name__)

QueryInput = Union[str, Mapping[str, object], Iterable[Tuple[str, object]], None]

_RANGE_KEY_RE = re.compile(r"^(?P<base>.+)_(?P<side>min|max)$")


def _normalize_params(params: QueryInput) -> Dict[str, str]:
    """Flatten supported inputs into a dict; the last occurrence of a key wins."""
    if params is None:
        return {}
    if isinstance(params, bytes):
        params = params.decode("utf-8")
    if isinstance(params, str):
        pairs = parse_qsl(params.lstrip("?"), keep_blank_values=True)
    elif hasattr(params, "multi_items"):
        # starlette QueryParams / multidicts
        pairs = params.multi_items()
    elif isinstance(params, Mapping):
        pairs = params.items()
    else:
        pairs = params

    values: Dict[str, str] = {}
    for key, value in pairs:
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[-1]
        values[str(key)] = "" if value is None else str(value)
    return values


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def format_number(value: float) -> str:
    """Render a number the way it should appear in a URL (``10``, ``0.5``)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _decode_range(values: Dict[str, str], prefix: str, default_min: float, default_max: float) -> Range:
    low = _parse_float(values.get(f"{prefix}_min"))
    high = _parse_float(values.get(f"{prefix}_max"))
    return Range(
        default_min if low is None else low,
        default_max if high is None else high,
    )


def _decode_color_range(values: Dict[str, str]) -> ColorRangeFilter:
    ranges = {
        key: _decode_range(values, key, default_min, default_max)
        for key, (_, default_min, default_max) in COLOR_RANGE_FIELDS.items()
    }
    return ColorRangeFilter(
        lightness=ranges["l"],
        chroma=ranges["c"],
        hue=ranges["h"],
        percentage=ranges["percentage"],
    )


def _decode_metric_ranges(values: Dict[str, str]) -> Dict[str, Range]:
    metric_ranges: Dict[str, Range] = {}
    for key in values:
        match = _RANGE_KEY_RE.match(key)
        if not match:
            continue
        base = match.group("base")
        if base in COLOR_RANGE_FIELDS or base in metric_ranges:
            continue
        spec = lookup_metric(base)
        if spec is None:
            logger.debug("Dropping range parameter %r: no relation owns metric %r", key, base)
            continue
        metric_ranges[base] = _decode_range(values, base, spec.default_min, spec.default_max)
    return metric_ranges


def decode(params: QueryInput) -> FilterModel:
    """Build a ``FilterModel`` from URL query parameters."""
    values = _normalize_params(params)

    page = _parse_int(values.get("page"))
    if page is None or page < 1:
        page = 1

    page_size = _parse_int(values.get("pageSize"))
    if page_size is not None and page_size <= 0:
        page_size = None

    return FilterModel(
        artist=values.get("artist"),
        post_id=_parse_int(values.get("postId")),
        color_range=_decode_color_range(values),
        metric_ranges=_decode_metric_ranges(values),
        sort_key=values.get("sortKey"),
        sort_order=SortOrder.parse(values.get("sortOrder")),
        page=page,
        page_size=page_size,
    )


def encode(model: FilterModel) -> Dict[str, str]:
    """Flatten a ``FilterModel`` into ordered query parameters."""
    params: Dict[str, str] = {"page": str(model.page)}
    if model.page_size is not None:
        params["pageSize"] = str(model.page_size)
    params["sortKey"] = model.sort_key
    params["sortOrder"] = model.sort_order.value

    if model.artist:
        params["artist"] = model.artist
    if model.post_id is not None:
        params["postId"] = str(model.post_id)

    # The color block is all-or-nothing.
    if model.color_range is not None:
        for key, value in model.color_range.ranges().items():
            params[f"{key}_min"] = format_number(value.min)
            params[f"{key}_max"] = format_number(value.max)

    for item in model.metric_filters:
        params[f"{item.name}_min"] = format_number(item.range.min)
        params[f"{item.name}_max"] = format_number(item.range.max)

    return params


def to_query_string(model: FilterModel) -> str:
    return urlencode(encode(model))
