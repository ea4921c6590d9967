"""
Database operations for the listing automation pipeline.

Uses SQLAlchemy ORM for database access. The public API uses the dataclasses
from models.py, with conversion to/from ORM models handled internally.
"""

import time
from typing import List, Optional

from sqlalchemy import func, select

from listing_automation.constants import RECENT_DESCRIPTIONS_LIMIT
from listing_automation.db_engine import get_engine, get_session
from listing_automation.models import ProcessedProduct, ProcessingRun, ProductStatus, RunStatus
from listing_automation.orm_models import (
    Base,
    ProcessedProductORM,
    ProcessingRunORM,
    RecentDescriptionORM,
    product_dataclass_to_orm,
    product_orm_to_dataclass,
    run_orm_to_dataclass,
)

# Fields of ProcessedProduct that update_processed_product may change
_UPDATABLE_PRODUCT_FIELDS = (
    "processing_stage",
    "shopify_product_id",
    "product_title",
    "product_handle",
    "overall_confidence",
    "content_quality_score",
    "completeness_score",
    "uniqueness_score",
    "seo_readiness_score",
    "assigned_collection_id",
    "assigned_collection_name",
    "collection_match_confidence",
    "generated_data",
    "quality_issues",
    "error_message",
    "published_at",
)

# Outcomes that leave a folder eligible for another attempt on a later run
RETRYABLE_STATUSES = (ProductStatus.FAILED, ProductStatus.NO_IMAGES)

_UPDATABLE_RUN_FIELDS = (
    "total_files_scanned",
    "new_products_found",
    "products_published",
    "products_quarantined",
    "products_rejected",
    "products_failed",
    "duration_seconds",
    "error_message",
    "completed_at",
)


def init_db():
    """Initialize the database schema."""
    engine = get_engine()
    Base.metadata.create_all(engine)


# Processed products


def product_exists(google_drive_file_id: str) -> bool:
    """
    Whether a Drive folder has already gone through the pipeline.

    Folders whose last attempt failed or found no images do not count, so
    they are picked up again by the next run.
    """
    retryable = [status.value for status in RETRYABLE_STATUSES]
    with get_session() as session:
        stmt = select(ProcessedProductORM.id).where(
            ProcessedProductORM.google_drive_file_id == google_drive_file_id,
            ProcessedProductORM.status.not_in(retryable),
        )
        return session.execute(stmt).first() is not None


def insert_processed_product(product: ProcessedProduct) -> int:
    """Insert a processed product record and return its database id."""
    now = int(time.time())
    with get_session() as session:
        orm = product_dataclass_to_orm(product, now)
        session.add(orm)
        session.flush()
        return orm.id


def start_processed_product(product: ProcessedProduct) -> int:
    """
    Record the start of an attempt on a folder and return the row id.

    A row left by an earlier failed attempt is reset to the given product
    and reused, keeping its creation time.
    """
    now = int(time.time())
    with get_session() as session:
        stmt = select(ProcessedProductORM).where(
            ProcessedProductORM.google_drive_file_id == product.google_drive_file_id
        )
        orm = session.scalars(stmt).first()
        if orm is None:
            orm = product_dataclass_to_orm(product, now)
            session.add(orm)
        else:
            orm.file_name = product.file_name
            orm.folder_path = product.folder_path
            orm.status = product.status.value
            for name in _UPDATABLE_PRODUCT_FIELDS:
                setattr(orm, name, getattr(product, name))
            orm.updated_at = now
        session.flush()
        return orm.id


def update_processed_product(product: ProcessedProduct):
    """Update an existing processed product, looked up by its Drive folder id."""
    with get_session() as session:
        stmt = select(ProcessedProductORM).where(
            ProcessedProductORM.google_drive_file_id == product.google_drive_file_id
        )
        orm = session.scalars(stmt).first()
        if orm is None:
            return

        orm.status = product.status.value
        for name in _UPDATABLE_PRODUCT_FIELDS:
            setattr(orm, name, getattr(product, name))
        orm.updated_at = int(time.time())


def get_processed_product(google_drive_file_id: str) -> Optional[ProcessedProduct]:
    with get_session() as session:
        stmt = select(ProcessedProductORM).where(
            ProcessedProductORM.google_drive_file_id == google_drive_file_id
        )
        orm = session.scalars(stmt).first()
        if orm is None:
            return None
        return product_orm_to_dataclass(orm)


# Recent descriptions


def save_recent_description(description: str, product_id: Optional[int] = None):
    """Remember a generated description for the repetition check."""
    with get_session() as session:
        session.add(
            RecentDescriptionORM(
                product_id=product_id,
                description_text=description,
                created_at=int(time.time()),
            )
        )


def get_recent_descriptions(limit: int = RECENT_DESCRIPTIONS_LIMIT) -> List[str]:
    """Get the most recently stored descriptions, newest first."""
    with get_session() as session:
        stmt = (
            select(RecentDescriptionORM.description_text)
            .order_by(RecentDescriptionORM.created_at.desc(), RecentDescriptionORM.id.desc())
            .limit(limit)
        )
        return list(session.scalars(stmt).all())


# Processing runs


def create_processing_run(run_id: str) -> ProcessingRun:
    """Start a new processing run in the running state."""
    with get_session() as session:
        orm = ProcessingRunORM(
            run_id=run_id,
            status=RunStatus.RUNNING.value,
            total_files_scanned=0,
            new_products_found=0,
            products_published=0,
            products_quarantined=0,
            products_rejected=0,
            products_failed=0,
            started_at=int(time.time()),
        )
        session.add(orm)
        session.flush()
        return run_orm_to_dataclass(orm)


def update_processing_run(run: ProcessingRun):
    """Update counters, status and timings of an existing run."""
    with get_session() as session:
        stmt = select(ProcessingRunORM).where(ProcessingRunORM.run_id == run.run_id)
        orm = session.scalars(stmt).first()
        if orm is None:
            return

        orm.status = run.status.value
        for name in _UPDATABLE_RUN_FIELDS:
            setattr(orm, name, getattr(run, name))


def get_processing_run(run_id: str) -> Optional[ProcessingRun]:
    with get_session() as session:
        stmt = select(ProcessingRunORM).where(ProcessingRunORM.run_id == run_id)
        orm = session.scalars(stmt).first()
        if orm is None:
            return None
        return run_orm_to_dataclass(orm)


def get_last_run_time() -> Optional[int]:
    """Get the start time (epoch seconds) of the most recent run, if any."""
    with get_session() as session:
        return session.scalar(select(func.max(ProcessingRunORM.started_at)))
