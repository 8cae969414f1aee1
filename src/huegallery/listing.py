"""Paginated, counted image listings against the gallery store."""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from huegallery.filter_model import FilterModel, SortOrder
from huegallery.metadata import Image, Post
from huegallery.metrics import Relation, metrics_for
from huegallery.query_codec import to_query_string
from huegallery.query_compiler import compile_query
from huegallery.query_builder import QueryBuilder
from huegallery.settings import settings

logger = logging.getLogger(__name__)


class ListingError(Exception):
    """The store failed while serving a listing request; no partial results."""


@dataclass
class ListingResult:
    items: List[Image]
    total_count: int
    page: int
    page_size: int
    # Canonical query string of the request, echoed so callers can drop stale responses.
    query: str

    def to_dict(self) -> dict:
        return {
            "items": [serialize_image(image) for image in self.items],
            "totalCount": self.total_count,
            "page": self.page,
            "pageSize": self.page_size,
            "query": self.query,
        }


def _isoformat(value):
    return value.isoformat() if value else None


def _serialize_relation(record, relation: Relation) -> Optional[dict]:
    if record is None:
        return None
    return {spec.field: getattr(record, spec.field) for spec in metrics_for(relation)}


def serialize_cluster(cluster) -> dict:
    return {
        "cluster_index": cluster.cluster_index,
        "r": cluster.r,
        "g": cluster.g,
        "b": cluster.b,
        "l": cluster.l,
        "a": cluster.a,
        "b_channel": cluster.b_channel,
        "c": cluster.c,
        "h": cluster.h,
        "count": cluster.count,
        "percentage": cluster.percentage,
    }


def serialize_image(image: Image) -> dict:
    """Image record with its post and every metric relation embedded."""
    post = image.post
    return {
        "id": image.id,
        "filename": image.filename,
        "relative_file_path": image.relative_file_path,
        "width": image.width,
        "height": image.height,
        "post_id": image.post_id,
        "processed_at": _isoformat(image.processed_at),
        "post": {
            "id": post.id,
            "shortcode": post.shortcode,
            "username": post.username,
            "caption": post.caption,
            "post_date": _isoformat(post.post_date),
        } if post else None,
        "luminance": _serialize_relation(image.luminance, Relation.LUMINANCE),
        "saturation": _serialize_relation(image.saturation, Relation.SATURATION),
        "glcm": _serialize_relation(image.glcm, Relation.GLCM),
        "laplacian": _serialize_relation(image.laplacian, Relation.LAPLACIAN),
        "kmeans_clusterings": [
            {
                "id": clustering.id,
                "num_clusters": clustering.num_clusters,
                "clusters": [serialize_cluster(cluster) for cluster in clustering.clusters],
            }
            for clustering in image.kmeans_clusterings
        ],
    }


def _hex_color(cluster) -> Optional[str]:
    if cluster.r is None or cluster.g is None or cluster.b is None:
        return None
    channels = (max(0, min(255, int(value))) for value in (cluster.r, cluster.g, cluster.b))
    return "#" + "".join(f"{value:02x}" for value in channels)


def dominant_swatches(image: Image) -> List[dict]:
    """Clusters of every clustering of the image, most dominant first."""
    clusters = [
        cluster
        for clustering in image.kmeans_clusterings
        for cluster in clustering.clusters
    ]
    clusters.sort(key=lambda cluster: cluster.percentage or 0, reverse=True)
    return [
        {
            "hex": _hex_color(cluster),
            "l": cluster.l,
            "c": cluster.c,
            "h": cluster.h,
            "percentage": cluster.percentage,
        }
        for cluster in clusters
    ]


class ListingService:
    """Runs compiled gallery queries: one bounded fetch and one count per request."""

    def __init__(
        self,
        db: Session,
        default_page_size: Optional[int] = None,
    ):
        self.db = db
        self.default_page_size = default_page_size or settings.default_page_size

    def resolve_page_size(self, page_size: Optional[int]) -> int:
        """Requested size, or the default when it is missing or not positive."""
        if page_size is None or page_size <= 0:
            return self.default_page_size
        return page_size

    def list(
        self,
        filters: FilterModel,
        sort_key: Optional[str] = None,
        sort_order=None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> ListingResult:
        """Fetch one page of images and the total count for the same predicate.

        Arguments left as None come from ``filters``. A page past the end
        yields no items and the true total.

        Raises:
            ListingError: the store failed; nothing is returned
        """
        page = max(1, page if page is not None else filters.page)
        size = self.resolve_page_size(page_size if page_size is not None else filters.page_size)
        sort_key = sort_key if sort_key is not None else filters.sort_key
        sort_order = SortOrder.parse(sort_order if sort_order is not None else filters.sort_order)

        compiled = compile_query(filters, sort_key, sort_order)
        builder = QueryBuilder(self.db, compiled)

        try:
            total_count = builder.get_total_count(
                builder.apply_predicate(builder.base_query(eager=False))
            )
            items_query = builder.apply_ordering(builder.apply_predicate(builder.base_query()))
            items = builder.apply_pagination(items_query, (page - 1) * size, size)
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch images")
            raise ListingError("Failed to fetch images.") from exc

        snapshot = replace(filters, sort_key=sort_key, sort_order=sort_order, page=page, page_size=size)
        query = to_query_string(snapshot)
        logger.debug("Listed %d of %d images for %s", len(items), total_count, query)
        return ListingResult(
            items=items,
            total_count=total_count,
            page=page,
            page_size=size,
            query=query,
        )

    def list_artists(self) -> List[str]:
        """Sorted distinct author names of posts that own at least one image."""
        try:
            rows = (
                self.db.query(Post.username)
                .join(Image, Image.post_id == Post.id)
                .distinct()
                .order_by(Post.username)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch artists")
            raise ListingError("Failed to fetch artists.") from exc
        return [row[0] for row in rows]

    def get_image(self, image_id: int) -> Optional[dict]:
        """Detail view of one image: embedded record, swatches and histogram."""
        try:
            image = (
                QueryBuilder.eager(self.db.query(Image))
                .filter(Image.id == image_id)
                .first()
            )
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch image %s", image_id)
            raise ListingError("Failed to fetch image.") from exc
        if image is None:
            return None

        detail = serialize_image(image)
        detail["swatches"] = dominant_swatches(image)
        detail["luminance_histogram"] = image.luminance.histogram if image.luminance else None
        return detail
