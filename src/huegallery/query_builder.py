"""Query builder for the image listing.

Translates a ``CompiledQuery`` into SQLAlchemy:
- One-to-one metric relations become ``Image.<relation>.has(...)`` criteria
- The color condition becomes a nested ``any()`` over clusterings and clusters
- Ordering joins the related entity when the sort key names one
- Pagination and total count share the same filtered query
"""

from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session, selectinload

from huegallery.metadata import (
    GLCM,
    Cluster,
    Image,
    KMeansClustering,
    Laplacian,
    Luminance,
    Post,
    Saturation,
)
from huegallery.metrics import Relation
from huegallery.query_compiler import POST_RELATION, AnyBound, CompiledQuery, FieldCondition

# Relation tag -> (relationship attribute on Image, mapped class)
RELATION_MODELS = {
    Relation.LUMINANCE: (Image.luminance, Luminance),
    Relation.SATURATION: (Image.saturation, Saturation),
    Relation.GLCM: (Image.glcm, GLCM),
    Relation.LAPLACIAN: (Image.laplacian, Laplacian),
}


def condition_clause(column, condition: FieldCondition):
    """Build the SQL clause for a single field condition."""
    if isinstance(condition, AnyBound):
        return or_(*(condition_clause(column, option) for option in condition.options))
    return column.between(condition.gte, condition.lte)


class QueryBuilder:
    """Encapsulates query construction for the image listing.

    Provides methods for:
    - Applying the compiled predicate to a query
    - Building order clauses for bare and composite sort keys
    - Pagination and total count calculation
    """

    def __init__(self, db: Session, compiled: CompiledQuery):
        """Initialize query builder.

        Args:
            db: SQLAlchemy database session
            compiled: Predicate and ordering produced by the query compiler
        """
        self.db = db
        self.compiled = compiled

    def base_query(self, eager: bool = True) -> Query:
        """Unfiltered image query, optionally eager-loading every embedded relation."""
        query = self.db.query(Image)
        return self.eager(query) if eager else query

    @staticmethod
    def eager(query: Query) -> Query:
        """Eager-load the post and every metric relation of the listed images."""
        return query.options(
            selectinload(Image.post),
            selectinload(Image.luminance),
            selectinload(Image.saturation),
            selectinload(Image.glcm),
            selectinload(Image.laplacian),
            selectinload(Image.kmeans_clusterings).selectinload(KMeansClustering.clusters),
        )

    def filter_clauses(self) -> List:
        """SQL criteria for the compiled predicate (empty list means no filter)."""
        predicate = self.compiled.predicate
        clauses = []

        if predicate.artist is not None:
            clauses.append(Image.post.has(Post.username == predicate.artist))

        if predicate.post_id is not None:
            clauses.append(Image.post_id == predicate.post_id)

        if predicate.cluster:
            cluster_criteria = [
                condition_clause(getattr(Cluster, name), condition)
                for name, condition in predicate.cluster.items()
            ]
            clauses.append(
                Image.kmeans_clusterings.any(
                    KMeansClustering.clusters.any(and_(*cluster_criteria))
                )
            )

        for relation, conditions in predicate.relations.items():
            attribute, model = RELATION_MODELS[relation]
            criteria = [
                condition_clause(getattr(model, name), condition)
                for name, condition in conditions.items()
            ]
            clauses.append(attribute.has(and_(*criteria)))

        return clauses

    def apply_predicate(self, query: Query) -> Query:
        """Apply the compiled predicate to a query.

        Args:
            query: SQLAlchemy query over Image

        Returns:
            Query filtered by every clause (AND logic)
        """
        for clause in self.filter_clauses():
            query = query.filter(clause)
        return query

    def _order_column(self):
        order = self.compiled.order
        if order.relation is None:
            return getattr(Image, order.field)
        if order.relation == POST_RELATION:
            return getattr(Post, order.field)
        _, model = RELATION_MODELS[Relation(order.relation)]
        return getattr(model, order.field)

    def build_order_clauses(self) -> Tuple:
        """Build order by clauses for the compiled sort key.

        The image id in the same direction is appended as a tie-breaker so
        pages are stable.

        Returns:
            Tuple of SQLAlchemy order clauses to apply to query
        """
        order = self.compiled.order
        id_order = Image.id.desc() if order.descending else Image.id.asc()

        column = self._order_column()
        if column is Image.id:
            return (id_order,)

        primary = column.desc() if order.descending else column.asc()
        return (primary.nullslast(), id_order)

    def apply_ordering(self, query: Query) -> Query:
        """Join the sort relation (if any) and apply the order clauses."""
        order = self.compiled.order
        if order.relation == POST_RELATION:
            query = query.outerjoin(Image.post)
        elif order.relation is not None:
            attribute, _ = RELATION_MODELS[Relation(order.relation)]
            query = query.outerjoin(attribute)
        return query.order_by(*self.build_order_clauses())

    def apply_pagination(self, query: Query, offset: int, limit: Optional[int]) -> List:
        """Apply SQL-based pagination to a SQLAlchemy query and execute.

        Args:
            query: SQLAlchemy query to paginate
            offset: Number of results to skip
            limit: Maximum number of results to return (None means no limit)

        Returns:
            List of query results (executed from database)
        """
        if limit:
            return query.limit(limit).offset(offset).all()
        else:
            return query.offset(offset).all()

    def get_total_count(self, query: Query) -> int:
        """Count the rows matched by a filtered query."""
        # Count against a narrow ID-only subquery to avoid expensive wide-row count plans.
        id_subquery = (
            query
            .with_entities(Image.id)
            .order_by(None)
            .distinct()
            .subquery()
        )
        return int(self.db.query(func.count()).select_from(id_subquery).scalar() or 0)
