"""Gallery storage schema: posts, images and their precomputed visual metrics."""

from datetime import datetime

from sqlalchemy import Column, String, Integer, Float, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import JSON


Base = declarative_base()


class Post(Base):
    """Source post that owns one or more images."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    shortcode = Column(String(64), nullable=False, unique=True)
    username = Column(String(255), nullable=False, index=True)  # Artist
    caption = Column(Text)
    post_date = Column(DateTime, nullable=False, index=True)

    # Relationships
    images = relationship("Image", back_populates="post")


class Image(Base):
    """Primary gallery entity."""

    __tablename__ = "images"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)

    # File information
    filename = Column(String(512), nullable=False)
    relative_file_path = Column(String(1024), nullable=False)
    width = Column(Integer)
    height = Column(Integer)
    processed_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    post = relationship("Post", back_populates="images")
    luminance = relationship("Luminance", back_populates="image", uselist=False, cascade="all, delete-orphan")
    saturation = relationship("Saturation", back_populates="image", uselist=False, cascade="all, delete-orphan")
    glcm = relationship("GLCM", back_populates="image", uselist=False, cascade="all, delete-orphan")
    laplacian = relationship("Laplacian", back_populates="image", uselist=False, cascade="all, delete-orphan")
    kmeans_clusterings = relationship(
        "KMeansClustering",
        back_populates="image",
        cascade="all, delete-orphan",
        order_by="KMeansClustering.id",
    )


class Luminance(Base):
    """Luminance statistics, one row per image."""

    __tablename__ = "luminance"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)

    mean_luminance = Column(Float)
    median_luminance = Column(Float)
    std_luminance = Column(Float)
    dynamic_range = Column(Float)
    rms_contrast = Column(Float)
    michelson_contrast = Column(Float)
    luminance_skewness = Column(Float)
    luminance_kurtosis = Column(Float)
    min_luminance = Column(Float)
    max_luminance = Column(Float)
    histogram = Column(JSON)  # 101 bins, 0..100 %

    image = relationship("Image", back_populates="luminance")


class Saturation(Base):
    """Saturation statistics, one row per image."""

    __tablename__ = "saturation"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)

    mean_saturation = Column(Float)
    median_saturation = Column(Float)
    std_saturation = Column(Float)

    image = relationship("Image", back_populates="saturation")


class GLCM(Base):
    """Gray-level co-occurrence texture features, one row per image."""

    __tablename__ = "glcm"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)

    contrast = Column(Float)
    correlation = Column(Float)

    image = relationship("Image", back_populates="glcm")


class Laplacian(Base):
    """Laplacian sharpness measure, one row per image."""

    __tablename__ = "laplacian"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, unique=True)

    variance = Column(Float)

    image = relationship("Image", back_populates="laplacian")


class KMeansClustering(Base):
    """A color clustering run over an image."""

    __tablename__ = "kmeans_clustering"

    id = Column(Integer, primary_key=True)
    image_id = Column(Integer, ForeignKey("images.id", ondelete="CASCADE"), nullable=False, index=True)
    num_clusters = Column(Integer, nullable=False)

    image = relationship("Image", back_populates="kmeans_clusterings")
    clusters = relationship(
        "Cluster",
        back_populates="clustering",
        cascade="all, delete-orphan",
        order_by="Cluster.cluster_index",
    )


class Cluster(Base):
    """One weighted color cluster (RGB, Lab and LCH coordinates)."""

    __tablename__ = "clusters"

    id = Column(Integer, primary_key=True)
    clustering_id = Column(Integer, ForeignKey("kmeans_clustering.id", ondelete="CASCADE"), nullable=False)
    cluster_index = Column(Integer, nullable=False)

    r = Column(Integer)
    g = Column(Integer)
    b = Column(Integer)
    l = Column(Float)
    a = Column(Float)
    b_channel = Column(Float)
    c = Column(Float)
    h = Column(Float)
    count = Column(Integer)
    percentage = Column(Float)

    clustering = relationship("KMeansClustering", back_populates="clusters")

    __table_args__ = (
        Index("ix_clusters_clustering_lch", "clustering_id", "l", "c", "h"),
    )
