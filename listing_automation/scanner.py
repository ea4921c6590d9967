"""
Scan orchestration for automated product listings.

Each run lists the product folders on Drive, takes the new ones through
vision, research, matching, copywriting and quality scoring, and publishes,
queues for review, or rejects each one.
"""

import re
import time
import uuid
from typing import List, Optional

from listing_automation.collection_matcher import CollectionMatcher
from listing_automation.constants import MAX_PRODUCTS_PER_RUN, SCAN_INTERVAL_SECONDS, TITLE_SUFFIXES
from listing_automation.content_generator import generate_description, generate_title, optimize_seo
from listing_automation.database import (
    create_processing_run,
    get_last_run_time,
    get_processed_product,
    get_recent_descriptions,
    product_exists,
    save_recent_description,
    start_processed_product,
    update_processed_product,
    update_processing_run,
)
from listing_automation.drive import download_folder_images, list_subfolders, move_folder_to_done
from listing_automation.models import (
    Disposition,
    GeneratedListing,
    MatchResult,
    ProcessedProduct,
    ProcessingRun,
    ProductFolder,
    ProductStatus,
    ProductTypeConfig,
    QualityReport,
    RunStatus,
    StoreConfig,
)
from listing_automation.quality_scorer import QualityScorer
from listing_automation.shopify_client import ShopifyClient
from listing_automation.store_config import load_store_config
from listing_automation.trend_research import research_product_trends
from listing_automation.vision import analyze_product_images
from telegram_bot.messaging import format_review_message, send_message_to_me
from util.logging_util import log_pipeline_step, setup_logger
from util.secrets import get_drive_root_folder_id

logger = setup_logger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def make_handle(title: str) -> str:
    """URL handle from a title: lowercase, runs of other characters become one hyphen."""
    return _NON_ALNUM_RE.sub("-", title.lower()).strip("-")


def make_sku_base(folder_name: str) -> str:
    return make_handle(folder_name).upper()


def build_variants(folder_name: str, product_type: Optional[ProductTypeConfig]) -> List[dict]:
    if product_type is None:
        return []
    sku_base = make_sku_base(folder_name)
    return [
        {
            "size": v.size,
            "sku": f"{sku_base}-{v.sku_suffix}",
            "price": v.price,
            "inventory_quantity": v.inventory_quantity,
        }
        for v in product_type.variants
    ]


def merge_tags(*tag_lists: List[str]) -> List[str]:
    """Concatenate tag lists, dropping blanks and repeats (case-insensitive)."""
    seen = set()
    merged = []
    for tags in tag_lists:
        for tag in tags:
            tag = tag.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                merged.append(tag)
    return merged


def collection_theme(collection_name: str) -> str:
    """Theme part of a collection name, e.g. "EMT" from "EMT - DTF Designs"."""
    return re.split(r"[–-]", collection_name)[0].strip()


def scan_product_folders(config: StoreConfig) -> List[ProductFolder]:
    """List the product folders under every configured root folder."""
    folders = []
    for key, product_type in config.product_types.items():
        root_id = get_drive_root_folder_id(key)
        if not root_id:
            logger.warning(f"No Drive folder configured for product type {key}, skipping")
            continue
        folders.extend(list_subfolders(root_id, product_type.type_name, folder_type=key))
    return folders


def _notify_review(product: ProcessedProduct):
    message = format_review_message(
        product.product_title or product.file_name,
        product.folder_path,
        product.overall_confidence or 0,
        product.quality_issues,
    )
    try:
        send_message_to_me(message)
    except Exception as e:
        logger.error(f"Failed to send review notification for {product.file_name}: {e}")


def _record_scores(product: ProcessedProduct, match: MatchResult, report: QualityReport, listing: GeneratedListing):
    product.product_title = listing.title
    product.product_handle = listing.handle
    product.overall_confidence = report.overall_confidence
    product.content_quality_score = report.quality_scores.content_quality
    product.completeness_score = report.quality_scores.completeness
    product.uniqueness_score = report.quality_scores.uniqueness
    product.seo_readiness_score = report.quality_scores.seo_readiness
    product.assigned_collection_id = match.collection_id
    product.assigned_collection_name = match.collection_name
    product.collection_match_confidence = match.confidence
    product.generated_data = listing.to_dict()
    product.quality_issues = [issue.to_dict() for issue in report.issues]


def _set_stage(product: ProcessedProduct, stage: str, **details):
    product.processing_stage = stage
    log_pipeline_step(logger, product.file_name, stage, **details)
    update_processed_product(product)


def process_folder(
    folder: ProductFolder,
    config: StoreConfig,
    matcher: CollectionMatcher,
    scorer: QualityScorer,
    shopify: ShopifyClient,
) -> ProcessedProduct:
    """
    Take one product folder through the pipeline and record the outcome.

    Any error is recorded on the product with status "failed" rather than
    raised, so one bad folder never stops a run. Failed folders are tried
    again on the next run.
    """
    product = ProcessedProduct(
        google_drive_file_id=folder.folder_id,
        file_name=folder.folder_name,
        folder_path=folder.folder_path,
        status=ProductStatus.PROCESSING,
        processing_stage="downloading",
    )
    product.id = start_processed_product(product)

    try:
        images = download_folder_images(folder.folder_id, folder.folder_name)
        if not images:
            logger.warning(f"No images found in {folder.folder_path}")
            product.status = ProductStatus.NO_IMAGES
            update_processed_product(product)
            return product

        _set_stage(product, "analyzing", images=len(images))
        analysis = analyze_product_images(images, folder.folder_name)

        product_type = config.product_types.get(folder.folder_type)
        type_name = product_type.type_name if product_type else folder.folder_type

        _set_stage(product, "researching")
        research = research_product_trends(analysis.primary_subjects, type_name, analysis.detected_text)

        _set_stage(product, "matching")
        match = matcher.match(folder.folder_path, analysis.labels, analysis.detected_text, folder.folder_type)
        theme = collection_theme(match.collection_name)

        _set_stage(product, "generating", collection=match.collection_name, match_confidence=match.confidence)
        title = generate_title(
            analysis.detected_text,
            analysis.labels,
            theme,
            type_name,
            TITLE_SUFFIXES.get(folder.folder_type, type_name),
        )
        description = generate_description(
            sku=folder.folder_name,
            collection=match.collection_name,
            design_elements=analysis.labels[:8],
            colors=[c.hex for c in analysis.dominant_colors[:3]],
            detected_text=" ".join(analysis.detected_text[:3]),
            trends=", ".join(research.trends[:2]),
            creative_angles=research.creative_angles,
        )
        seo = optimize_seo(title, description, analysis.labels[:10], theme)

        listing = GeneratedListing(
            title=title,
            description=description,
            meta_description=seo.meta_description,
            handle=make_handle(title),
            tags=merge_tags(match.tags_required, seo.suggested_tags),
            variants=build_variants(folder.folder_name, product_type),
            search_keywords=merge_tags(seo.search_keywords, research.keywords),
        )

        _set_stage(product, "scoring")
        report = scorer.score(
            title=listing.title,
            description=listing.description,
            meta_description=listing.meta_description,
            tags=listing.tags,
            collection_match_confidence=match.confidence,
            has_images=True,
            variant_count=len(listing.variants),
            recent_descriptions=get_recent_descriptions(),
        )
        _record_scores(product, match, report, listing)
        save_recent_description(description, product.id)

        if report.status == Disposition.AUTO_PUBLISH:
            _set_stage(product, "publishing", confidence=report.overall_confidence)
            created = shopify.create_product(
                listing,
                product_type=type_name,
                vendor=product_type.vendor if product_type else "",
                images=images,
            )
            product.shopify_product_id = created.product_id
            product.product_handle = created.handle
            product.status = ProductStatus.PUBLISHED
            product.published_at = int(time.time())
            shopify.add_product_to_collection(created.product_id, match.collection_id)
            # Product is already live; a failed move leaves it published
            try:
                move_folder_to_done(folder)
            except Exception as e:
                logger.error(f"Failed to move {folder.folder_path} to Done: {e}")
        elif report.status == Disposition.REVIEW:
            product.status = ProductStatus.REVIEW
            _notify_review(product)
        else:
            product.status = ProductStatus.REJECTED

        product.processing_stage = "complete"
        update_processed_product(product)
        logger.info(
            f"Processed {folder.folder_path}: status={product.status.value}, "
            f"confidence={report.overall_confidence}"
        )

    except Exception as e:
        logger.error(f"Processing {folder.folder_path} failed at {product.processing_stage}: {e}")
        product.status = ProductStatus.FAILED
        product.error_message = str(e)
        update_processed_product(product)

    return product


def _count_outcome(run: ProcessingRun, status: ProductStatus):
    if status == ProductStatus.PUBLISHED:
        run.products_published += 1
    elif status == ProductStatus.REVIEW:
        run.products_quarantined += 1
    elif status == ProductStatus.REJECTED:
        run.products_rejected += 1
    elif status in (ProductStatus.FAILED, ProductStatus.NO_IMAGES):
        run.products_failed += 1


def run_automation(
    run_id: Optional[str] = None,
    config: Optional[StoreConfig] = None,
    shopify: Optional[ShopifyClient] = None,
) -> ProcessingRun:
    """
    Run one scan: find new product folders and process up to
    MAX_PRODUCTS_PER_RUN of them.

    Returns the finished ProcessingRun. A failure outside per-product
    processing marks the run as failed.
    """
    run_id = run_id or f"run-{int(time.time())}-{uuid.uuid4().hex[:8]}"
    run = create_processing_run(run_id)
    logger.info(f"Starting automation run {run_id}")

    try:
        config = config or load_store_config()
        matcher = CollectionMatcher(config.collections)
        scorer = QualityScorer(config.confidence_thresholds)
        shopify = shopify or ShopifyClient()

        folders = scan_product_folders(config)
        run.total_files_scanned = len(folders)
        new_folders = [f for f in folders if not product_exists(f.folder_id)]
        # Folders never attempted go ahead of retries of failed ones
        new_folders.sort(key=lambda f: get_processed_product(f.folder_id) is not None)
        run.new_products_found = len(new_folders)
        logger.info(f"Found {len(folders)} folders, {len(new_folders)} new")

        for folder in new_folders[:MAX_PRODUCTS_PER_RUN]:
            product = process_folder(folder, config, matcher, scorer, shopify)
            _count_outcome(run, product.status)

        run.status = RunStatus.COMPLETED
    except Exception as e:
        logger.error(f"Automation run {run_id} failed: {e}")
        run.status = RunStatus.FAILED
        run.error_message = str(e)

    run.completed_at = int(time.time())
    run.duration_seconds = run.completed_at - run.started_at
    update_processing_run(run)

    logger.info(
        f"Run {run_id} {run.status.value}: {run.products_published} published, "
        f"{run.products_quarantined} for review, {run.products_rejected} rejected, "
        f"{run.products_failed} failed"
    )
    return run


def is_run_due() -> bool:
    last_run = get_last_run_time()
    if last_run is None:
        return True
    return (time.time() - last_run) >= SCAN_INTERVAL_SECONDS


def run_automation_if_due() -> Optional[ProcessingRun]:
    """
    Run the automation if the scan interval has passed since the last run.

    This function is meant to be called from the main loop.
    """
    if not is_run_due():
        return None
    return run_automation()
