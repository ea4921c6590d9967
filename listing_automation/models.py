"""
Data models for the listing automation pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from listing_automation.constants import (
    DEFAULT_AUTO_PUBLISH_THRESHOLD,
    DEFAULT_QUARANTINE_THRESHOLD,
    DEFAULT_REJECT_THRESHOLD,
)


class Severity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Disposition(Enum):
    AUTO_PUBLISH = "auto_publish"
    REVIEW = "review"
    REJECT = "reject"


class ProductStatus(Enum):
    PROCESSING = "processing"
    PUBLISHED = "published"
    REVIEW = "review"
    REJECTED = "rejected"
    FAILED = "failed"
    NO_IMAGES = "no_images"


class RunStatus(Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# Catalog configuration


@dataclass(frozen=True)
class Collection:
    """A storefront collection a product can be assigned to."""
    id: str
    name: str
    tags_required: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    boost_score: float = 1.0


@dataclass(frozen=True)
class VariantConfig:
    size: str
    sku_suffix: str
    price: float
    inventory_quantity: int = 5000


@dataclass(frozen=True)
class ProductTypeConfig:
    type_name: str
    vendor: str
    variants: List[VariantConfig] = field(default_factory=list)


@dataclass(frozen=True)
class ConfidenceThresholds:
    auto_publish: int = DEFAULT_AUTO_PUBLISH_THRESHOLD
    quarantine: int = DEFAULT_QUARANTINE_THRESHOLD
    reject: int = DEFAULT_REJECT_THRESHOLD


@dataclass(frozen=True)
class StoreConfig:
    """Read-only catalog and publishing configuration.

    product_types is keyed by the folder identifier (e.g. "DTF", "POD").
    """
    collections: List[Collection]
    product_types: Dict[str, ProductTypeConfig] = field(default_factory=dict)
    sales_channels: List[str] = field(default_factory=list)
    theme_tags: List[str] = field(default_factory=list)
    style_tags: List[str] = field(default_factory=list)
    audience_tags: List[str] = field(default_factory=list)
    metafield_options: Dict[str, List[str]] = field(default_factory=dict)
    confidence_thresholds: ConfidenceThresholds = field(default_factory=ConfidenceThresholds)


# Scoring results


@dataclass
class MatchResult:
    collection_id: str
    collection_name: str
    tags_required: List[str]
    confidence: int
    reasoning: str
    matched_keywords: List[str] = field(default_factory=list)


@dataclass
class QualityIssue:
    severity: Severity
    category: str
    message: str

    def to_dict(self) -> dict:
        return {"severity": self.severity.value, "category": self.category, "message": self.message}


@dataclass
class QualityScores:
    content_quality: int = 100
    completeness: int = 100
    uniqueness: int = 100
    seo_readiness: int = 100

    def average(self) -> float:
        return (self.content_quality + self.completeness + self.uniqueness + self.seo_readiness) / 4


@dataclass
class QualityReport:
    overall_confidence: int
    status: Disposition
    issues: List[QualityIssue]
    quality_scores: QualityScores


# Pipeline records


@dataclass
class ProductFolder:
    """A Drive folder holding the photos of one product."""
    folder_id: str
    folder_name: str
    folder_path: str
    folder_type: str
    parent_folder_id: Optional[str] = None


@dataclass
class DriveImage:
    name: str
    content: bytes
    mime_type: str


@dataclass
class DominantColor:
    color: str
    hex: str
    score: float


@dataclass
class VisionAnalysis:
    labels: List[str] = field(default_factory=list)
    dominant_colors: List[DominantColor] = field(default_factory=list)
    detected_text: List[str] = field(default_factory=list)
    logos: List[str] = field(default_factory=list)
    primary_subjects: List[str] = field(default_factory=list)

    @property
    def has_text(self) -> bool:
        return len(self.detected_text) > 0


@dataclass
class TrendResearch:
    trends: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    context: str = ""
    creative_angles: List[str] = field(default_factory=list)


@dataclass
class SeoResult:
    meta_description: str
    search_keywords: List[str] = field(default_factory=list)
    suggested_tags: List[str] = field(default_factory=list)


@dataclass
class GeneratedListing:
    """Everything generated for one product before publishing."""
    title: str
    description: str
    meta_description: str
    handle: str
    tags: List[str] = field(default_factory=list)
    variants: List[dict] = field(default_factory=list)
    search_keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "meta_description": self.meta_description,
            "handle": self.handle,
            "tags": list(self.tags),
            "variants": list(self.variants),
            "search_keywords": list(self.search_keywords),
        }


@dataclass
class ShopifyProduct:
    product_id: str
    product_url: str
    handle: str
    variant_ids: List[str] = field(default_factory=list)


@dataclass
class ProcessedProduct:
    """A Drive folder that went through the pipeline."""
    google_drive_file_id: str
    file_name: str
    folder_path: str
    status: ProductStatus
    id: Optional[int] = None
    processing_stage: Optional[str] = None
    shopify_product_id: Optional[str] = None
    product_title: Optional[str] = None
    product_handle: Optional[str] = None
    overall_confidence: Optional[int] = None
    content_quality_score: Optional[int] = None
    completeness_score: Optional[int] = None
    uniqueness_score: Optional[int] = None
    seo_readiness_score: Optional[int] = None
    assigned_collection_id: Optional[str] = None
    assigned_collection_name: Optional[str] = None
    collection_match_confidence: Optional[int] = None
    generated_data: dict = field(default_factory=dict)
    quality_issues: List[dict] = field(default_factory=list)
    error_message: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0
    published_at: Optional[int] = None


@dataclass
class ProcessingRun:
    run_id: str
    status: RunStatus
    id: Optional[int] = None
    total_files_scanned: int = 0
    new_products_found: int = 0
    products_published: int = 0
    products_quarantined: int = 0
    products_rejected: int = 0
    products_failed: int = 0
    duration_seconds: Optional[int] = None
    error_message: Optional[str] = None
    started_at: int = 0
    completed_at: Optional[int] = None


# Store catalog snapshot used to bootstrap the configuration


@dataclass
class CatalogCollection:
    id: str
    title: str
    handle: str
    product_count: int = 0


@dataclass
class SampleVariant:
    product_type: str
    size: str
    price: float
    sku_pattern: str


@dataclass
class StoreCatalog:
    collections: List[CatalogCollection] = field(default_factory=list)
    all_tags: List[str] = field(default_factory=list)
    product_types: List[str] = field(default_factory=list)
    vendors: List[str] = field(default_factory=list)
    sample_variants: List[SampleVariant] = field(default_factory=list)
    total_products: int = 0
