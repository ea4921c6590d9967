"""
SQLAlchemy ORM models for the listing automation pipeline.

These models are internal to the database layer. The public interface
uses the dataclass models from models.py.
"""

import json
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from listing_automation.models import (
    ProcessedProduct,
    ProcessingRun,
    ProductStatus,
    RunStatus,
)


class JSONEncoded(TypeDecorator):
    """Represents a list or dict as a JSON-encoded string."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[str]:
        if value is None or value == [] or value == {}:
            return None
        return json.dumps(value)

    def process_result_value(self, value: Optional[str], dialect):
        if value is None:
            return None
        return json.loads(value)


class Base(DeclarativeBase):
    pass


class ProcessedProductORM(Base):
    """SQLAlchemy model for processed_products table."""

    __tablename__ = "processed_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Source information
    google_drive_file_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    folder_path: Mapped[str] = mapped_column(String(1000), nullable=False)

    # Generated product data
    shopify_product_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    product_title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    product_handle: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Quality metrics
    overall_confidence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    content_quality_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completeness_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    uniqueness_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    seo_readiness_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Collection assignment
    assigned_collection_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    assigned_collection_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    collection_match_confidence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Processing status
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    processing_stage: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    generated_data: Mapped[Optional[dict]] = mapped_column(JSONEncoded, nullable=True)
    quality_issues: Mapped[Optional[list]] = mapped_column(JSONEncoded, nullable=True)

    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)
    published_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_processed_products_status", "status"),
        Index("idx_processed_products_folder_path", "folder_path"),
        Index("idx_processed_products_created_at", "created_at"),
    )


class ProcessingRunORM(Base):
    """SQLAlchemy model for processing_runs table."""

    __tablename__ = "processing_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    total_files_scanned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    new_products_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    products_published: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    products_quarantined: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    products_rejected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    products_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(50), nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    started_at: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_processing_runs_started_at", "started_at"),
    )


class RecentDescriptionORM(Base):
    """SQLAlchemy model for recent_descriptions table."""

    __tablename__ = "recent_descriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("processed_products.id"), nullable=True
    )
    description_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_recent_descriptions_created_at", "created_at"),
    )


# Conversion functions between ORM models and dataclasses


def product_orm_to_dataclass(orm: ProcessedProductORM) -> ProcessedProduct:
    """Convert a ProcessedProductORM instance to a ProcessedProduct dataclass."""
    return ProcessedProduct(
        id=orm.id,
        google_drive_file_id=orm.google_drive_file_id,
        file_name=orm.file_name,
        folder_path=orm.folder_path,
        status=ProductStatus(orm.status),
        processing_stage=orm.processing_stage,
        shopify_product_id=orm.shopify_product_id,
        product_title=orm.product_title,
        product_handle=orm.product_handle,
        overall_confidence=orm.overall_confidence,
        content_quality_score=orm.content_quality_score,
        completeness_score=orm.completeness_score,
        uniqueness_score=orm.uniqueness_score,
        seo_readiness_score=orm.seo_readiness_score,
        assigned_collection_id=orm.assigned_collection_id,
        assigned_collection_name=orm.assigned_collection_name,
        collection_match_confidence=orm.collection_match_confidence,
        generated_data=orm.generated_data or {},
        quality_issues=orm.quality_issues or [],
        error_message=orm.error_message,
        created_at=orm.created_at,
        updated_at=orm.updated_at,
        published_at=orm.published_at,
    )


def product_dataclass_to_orm(product: ProcessedProduct, now: int) -> ProcessedProductORM:
    """Convert a ProcessedProduct dataclass to a ProcessedProductORM instance."""
    return ProcessedProductORM(
        google_drive_file_id=product.google_drive_file_id,
        file_name=product.file_name,
        folder_path=product.folder_path,
        status=product.status.value,
        processing_stage=product.processing_stage,
        shopify_product_id=product.shopify_product_id,
        product_title=product.product_title,
        product_handle=product.product_handle,
        overall_confidence=product.overall_confidence,
        content_quality_score=product.content_quality_score,
        completeness_score=product.completeness_score,
        uniqueness_score=product.uniqueness_score,
        seo_readiness_score=product.seo_readiness_score,
        assigned_collection_id=product.assigned_collection_id,
        assigned_collection_name=product.assigned_collection_name,
        collection_match_confidence=product.collection_match_confidence,
        generated_data=product.generated_data or None,
        quality_issues=product.quality_issues or None,
        error_message=product.error_message,
        created_at=product.created_at or now,
        updated_at=now,
        published_at=product.published_at,
    )


def run_orm_to_dataclass(orm: ProcessingRunORM) -> ProcessingRun:
    """Convert a ProcessingRunORM instance to a ProcessingRun dataclass."""
    return ProcessingRun(
        id=orm.id,
        run_id=orm.run_id,
        status=RunStatus(orm.status),
        total_files_scanned=orm.total_files_scanned or 0,
        new_products_found=orm.new_products_found or 0,
        products_published=orm.products_published or 0,
        products_quarantined=orm.products_quarantined or 0,
        products_rejected=orm.products_rejected or 0,
        products_failed=orm.products_failed or 0,
        duration_seconds=orm.duration_seconds,
        error_message=orm.error_message,
        started_at=orm.started_at,
        completed_at=orm.completed_at,
    )
