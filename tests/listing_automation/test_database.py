"""Tests for listing automation database operations."""

import time

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError

from listing_automation import db_engine
from listing_automation.database import (
    create_processing_run,
    get_last_run_time,
    get_processed_product,
    get_processing_run,
    get_recent_descriptions,
    init_db,
    insert_processed_product,
    product_exists,
    save_recent_description,
    start_processed_product,
    update_processed_product,
    update_processing_run,
)
from listing_automation.models import ProcessedProduct, ProductStatus, RunStatus
from listing_automation.orm_models import Base


@pytest.fixture
def temp_db():
    """Create a temporary in-memory database for testing."""
    test_engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(test_engine)
    db_engine.set_engine(test_engine)
    yield test_engine
    db_engine.reset_engine()


@pytest.fixture
def sample_product():
    return ProcessedProduct(
        google_drive_file_id="folder-123",
        file_name="EMT-Hero",
        folder_path="DTF Design/EMT-Hero",
        status=ProductStatus.PROCESSING,
        processing_stage="downloading",
    )


class TestDbEngine:
    """Tests for engine configuration."""

    def test_database_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db/listings")

        assert db_engine.get_database_url() == "postgresql://user:pw@db/listings"

    def test_database_url_defaults_to_sqlite(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert db_engine.get_database_url() == "sqlite:///listing_automation.db"

    def test_sqlite_enforces_foreign_keys(self):
        engine = db_engine.create_db_engine("sqlite:///:memory:")
        db_engine.set_engine(engine)
        try:
            init_db()
            with engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

            with pytest.raises(IntegrityError):
                save_recent_description("orphan description", product_id=999)
        finally:
            db_engine.reset_engine()


class TestInitDb:
    """Tests for database initialization."""

    def test_creates_tables(self, temp_db):
        with temp_db.connect() as conn:
            result = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {"processed_products", "processing_runs", "recent_descriptions"} <= tables

    def test_idempotent(self, temp_db):
        init_db()
        init_db()


class TestProcessedProducts:
    """Tests for processed product records."""

    def test_insert_and_get(self, temp_db, sample_product):
        product_id = insert_processed_product(sample_product)

        product = get_processed_product("folder-123")
        assert product.id == product_id
        assert product.status == ProductStatus.PROCESSING
        assert product.folder_path == "DTF Design/EMT-Hero"
        assert product.generated_data == {}
        assert product.quality_issues == []
        assert product.created_at > 0

    def test_product_exists(self, temp_db, sample_product):
        assert not product_exists("folder-123")

        insert_processed_product(sample_product)

        assert product_exists("folder-123")

    @pytest.mark.parametrize("status", [ProductStatus.FAILED, ProductStatus.NO_IMAGES])
    def test_retryable_outcomes_do_not_count(self, temp_db, sample_product, status):
        sample_product.status = status
        insert_processed_product(sample_product)

        assert not product_exists("folder-123")

    def test_start_inserts_new_row(self, temp_db, sample_product):
        product_id = start_processed_product(sample_product)

        assert get_processed_product("folder-123").id == product_id

    def test_start_resets_failed_row(self, temp_db, sample_product):
        """Test that a new attempt reuses the row and clears the previous outcome."""
        sample_product.status = ProductStatus.FAILED
        sample_product.processing_stage = "generating"
        sample_product.error_message = "Gemini 503"
        sample_product.assigned_collection_id = "emt-dtf-designs"
        first_id = insert_processed_product(sample_product)
        created_at = get_processed_product("folder-123").created_at

        retry = ProcessedProduct(
            google_drive_file_id="folder-123",
            file_name="EMT-Hero",
            folder_path="DTF Design/EMT-Hero",
            status=ProductStatus.PROCESSING,
            processing_stage="downloading",
        )
        assert start_processed_product(retry) == first_id

        product = get_processed_product("folder-123")
        assert product.status == ProductStatus.PROCESSING
        assert product.processing_stage == "downloading"
        assert product.error_message is None
        assert product.assigned_collection_id is None
        assert product.created_at == created_at

    def test_get_missing(self, temp_db):
        assert get_processed_product("nope") is None

    def test_update(self, temp_db, sample_product):
        insert_processed_product(sample_product)

        sample_product.status = ProductStatus.REVIEW
        sample_product.overall_confidence = 68
        sample_product.assigned_collection_name = "EMT - DTF Designs"
        sample_product.generated_data = {"title": "EMT Hero DTF Transfer", "tags": ["theme:emt"]}
        sample_product.quality_issues = [{"severity": "warning", "category": "seo", "message": "x"}]
        update_processed_product(sample_product)

        product = get_processed_product("folder-123")
        assert product.status == ProductStatus.REVIEW
        assert product.overall_confidence == 68
        assert product.assigned_collection_name == "EMT - DTF Designs"
        assert product.generated_data["tags"] == ["theme:emt"]
        assert product.quality_issues[0]["category"] == "seo"

    def test_update_missing_is_noop(self, temp_db, sample_product):
        update_processed_product(sample_product)

        assert get_processed_product("folder-123") is None


class TestRecentDescriptions:
    """Tests for the anti-repetition history."""

    def test_newest_first(self, temp_db):
        for i in range(3):
            save_recent_description(f"description {i}")

        assert get_recent_descriptions() == ["description 2", "description 1", "description 0"]

    def test_limit(self, temp_db):
        for i in range(5):
            save_recent_description(f"description {i}")

        assert get_recent_descriptions(limit=2) == ["description 4", "description 3"]

    def test_empty(self, temp_db):
        assert get_recent_descriptions() == []


class TestProcessingRuns:
    """Tests for processing run bookkeeping."""

    def test_create_and_update(self, temp_db):
        run = create_processing_run("run-1")
        assert run.status == RunStatus.RUNNING
        assert run.products_published == 0

        run.status = RunStatus.COMPLETED
        run.total_files_scanned = 7
        run.products_published = 2
        run.products_failed = 1
        run.completed_at = run.started_at + 12
        run.duration_seconds = 12
        update_processing_run(run)

        stored = get_processing_run("run-1")
        assert stored.status == RunStatus.COMPLETED
        assert stored.total_files_scanned == 7
        assert stored.products_published == 2
        assert stored.products_failed == 1
        assert stored.duration_seconds == 12

    def test_last_run_time(self, temp_db):
        assert get_last_run_time() is None

        before = int(time.time())
        create_processing_run("run-1")

        assert get_last_run_time() >= before

    def test_get_missing_run(self, temp_db):
        assert get_processing_run("nope") is None
