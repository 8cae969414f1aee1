"""Test configuration and fixtures."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from huegallery.metadata import (
    Base,
    Cluster,
    GLCM,
    Image,
    KMeansClustering,
    Laplacian,
    Luminance,
    Post,
    Saturation,
)


@pytest.fixture
def test_engine():
    """In-memory database shared by every connection (and thread) of a test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_db(test_engine):
    """Create test database."""
    SessionLocal = sessionmaker(bind=test_engine)
    session = SessionLocal()

    yield session

    session.close()


def create_post(db: Session, username: str, shortcode: str, post_date: datetime) -> Post:
    post = Post(shortcode=shortcode, username=username, caption=f"Post by {username}", post_date=post_date)
    db.add(post)
    db.flush()
    return post


def create_image(
    db: Session,
    post: Post,
    filename: str,
    processed_at: datetime,
    luminance: dict = None,
    saturation: dict = None,
    glcm: dict = None,
    variance: float = None,
    clusters: list = None,
) -> Image:
    """Create an image with whichever metric rows are given.

    ``clusters`` is a list of dicts with ``l``, ``c``, ``h``, ``percentage``
    and optionally ``r``, ``g``, ``b``; they form a single clustering.
    """
    image = Image(
        post_id=post.id,
        filename=filename,
        relative_file_path=f"{post.username}/{filename}",
        width=1080,
        height=1350,
        processed_at=processed_at,
    )
    db.add(image)
    db.flush()

    if luminance is not None:
        db.add(Luminance(image_id=image.id, **luminance))
    if saturation is not None:
        db.add(Saturation(image_id=image.id, **saturation))
    if glcm is not None:
        db.add(GLCM(image_id=image.id, **glcm))
    if variance is not None:
        db.add(Laplacian(image_id=image.id, variance=variance))
    if clusters:
        clustering = KMeansClustering(image_id=image.id, num_clusters=len(clusters))
        db.add(clustering)
        db.flush()
        for index, values in enumerate(clusters):
            db.add(Cluster(
                clustering_id=clustering.id,
                cluster_index=index,
                r=values.get("r", 128),
                g=values.get("g", 128),
                b=values.get("b", 128),
                l=values["l"],
                a=0.0,
                b_channel=0.0,
                c=values["c"],
                h=values["h"],
                count=int(values["percentage"] * 10),
                percentage=values["percentage"],
            ))
    db.flush()
    return image


@pytest.fixture
def sample_gallery(test_db: Session):
    """Three artists and five images with distinct metrics and dominant hues.

    ==== ====== ==== ======= ======== ===== ======== === ====================
    img  artist lum  std_lum mean_sat glcm  variance hue processed_at (day)
    ==== ====== ==== ======= ======== ===== ======== === ====================
    1    ana    20   5       0.2      100   500      355 5
    2    ana    40   15      0.4      300   1000     5   4
    3    ben    60   25      0.6      600   1500     180 3
    4    ben    80   35      0.8      900   2000     90  2
    5    cara   -    -       -        -     -        -   10
    ==== ====== ==== ======= ======== ===== ======== === ====================

    Post dates: ana 2024-01-01, ben 2024-02-01, cara 2024-03-01.
    """
    base = datetime(2024, 6, 1, 12, 0, 0)
    ana = create_post(test_db, "ana", "ANA001", datetime(2024, 1, 1))
    ben = create_post(test_db, "ben", "BEN001", datetime(2024, 2, 1))
    cara = create_post(test_db, "cara", "CARA01", datetime(2024, 3, 1))

    rows = [
        (ana, 20, 5, 0.2, 100, 500, 355, (200, 30, 60)),
        (ana, 40, 15, 0.4, 300, 1000, 5, (210, 40, 30)),
        (ben, 60, 25, 0.6, 600, 1500, 180, (20, 160, 160)),
        (ben, 80, 35, 0.8, 900, 2000, 90, (190, 200, 40)),
    ]
    images = []
    for index, (post, lum, std_lum, sat, contrast, variance, hue, rgb) in enumerate(rows, start=1):
        images.append(create_image(
            test_db,
            post,
            f"image_{index}.jpg",
            processed_at=base + timedelta(days=6 - index),
            luminance={
                "mean_luminance": lum,
                "median_luminance": lum,
                "std_luminance": std_lum,
                "histogram": [0] * 101,
            },
            saturation={"mean_saturation": sat, "median_saturation": sat, "std_saturation": 0.1},
            glcm={"contrast": contrast, "correlation": 0.5},
            variance=variance,
            clusters=[
                {"l": 50, "c": 40, "h": hue, "percentage": 60, "r": rgb[0], "g": rgb[1], "b": rgb[2]},
                {"l": 90, "c": 2, "h": 270, "percentage": 5},
            ],
        ))
    images.append(create_image(test_db, cara, "image_5.jpg", processed_at=base + timedelta(days=10)))

    test_db.commit()
    return images


@pytest.fixture
def post_factory(test_db: Session):
    """Create posts in the test database."""
    def _create(username: str, shortcode: str, post_date: datetime) -> Post:
        return create_post(test_db, username, shortcode, post_date)
    return _create


@pytest.fixture
def image_factory(test_db: Session):
    """Create images (and their metric rows) in the test database."""
    def _create(post: Post, filename: str, processed_at: datetime, **metrics) -> Image:
        return create_image(test_db, post, filename, processed_at, **metrics)
    return _create
