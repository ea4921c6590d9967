"""
Builds a store configuration from the storefront's existing catalog.

Used once to bootstrap data/store_config.yaml so collections, product types
and tag vocabularies line up with what the store already has.
"""

import re
from pathlib import Path
from typing import Dict, List

from listing_automation.constants import STORE_CONFIG_PATH
from listing_automation.models import (
    CatalogCollection,
    Collection,
    ConfidenceThresholds,
    ProductTypeConfig,
    SampleVariant,
    StoreCatalog,
    StoreConfig,
    VariantConfig,
)
from listing_automation.store_config import ConfigurationError, dump_store_config
from util.logging_util import setup_logger

logger = setup_logger(__name__)

DEFAULT_SALES_CHANNELS = ["Online Store", "Google & YouTube", "Inbox"]
DEFAULT_METAFIELD_OPTIONS = {
    "compatible_printer": ["DTF-X", "L1800", "Universal"],
    "paper_size": ["8.5x11", "11x17"],
    "care_instructions": ["Wash inside out", "Low heat tumble dry"],
}

# Theme tags inferred from collection titles, first match wins
THEME_RULES = [
    (("emt", "medical", "emergency"), "theme:emt"),
    (("sport",), "theme:sports"),
    (("baseball",), "theme:baseball"),
    (("football",), "theme:football"),
]

TAG_CATEGORIES = ("theme", "style", "audience", "channel")

_WORD_SPLIT_RE = re.compile(r"[\s\-_]+")


def _collection_from_catalog(col: CatalogCollection) -> Collection:
    title_lower = col.title.lower()
    keywords = [w for w in _WORD_SPLIT_RE.split(title_lower) if len(w) > 2]

    tags_required = []
    if "dtf" in title_lower:
        tags_required.append("channel:dtf")
    elif "pod" in title_lower or "apparel" in title_lower:
        tags_required.append("channel:pod")

    for words, theme_tag in THEME_RULES:
        if any(w in title_lower for w in words):
            tags_required.append(theme_tag)
            break

    return Collection(
        id=col.id,
        name=col.title,
        tags_required=tags_required,
        keywords=list(dict.fromkeys(keywords + [col.handle])),
        boost_score=1.0,
    )


def categorize_tags(all_tags: List[str]) -> Dict[str, List[str]]:
    """Bucket store tags by their "theme:"/"theme-" style prefixes."""
    buckets = {category: [] for category in TAG_CATEGORIES}
    for tag in all_tags:
        tag_lower = tag.lower()
        for category in TAG_CATEGORIES:
            if tag_lower.startswith(f"{category}:") or tag_lower.startswith(f"{category}-"):
                buckets[category].append(tag)
                break
    return buckets


def _sku_suffix(variant: SampleVariant) -> str:
    suffix = variant.sku_pattern.split("-")[-1]
    return suffix or variant.size[:3].upper()


def _product_type_key(product_type: str) -> str:
    return re.sub(r"\s+", "_", product_type.upper())


def _product_types_from_catalog(catalog: StoreCatalog) -> Dict[str, ProductTypeConfig]:
    vendor = catalog.vendors[0] if catalog.vendors else "Store"
    configs = {}
    for product_type in catalog.product_types:
        variants_by_size: Dict[str, VariantConfig] = {}
        for v in catalog.sample_variants:
            if v.product_type == product_type and v.size not in variants_by_size:
                variants_by_size[v.size] = VariantConfig(
                    size=v.size, sku_suffix=_sku_suffix(v), price=v.price, inventory_quantity=5000
                )
        if variants_by_size:
            configs[_product_type_key(product_type)] = ProductTypeConfig(
                type_name=product_type, vendor=vendor, variants=list(variants_by_size.values())
            )
    return configs


def build_config_from_store_data(catalog: StoreCatalog) -> StoreConfig:
    """Turn a fetched store catalog into a StoreConfig with default thresholds."""
    if not catalog.collections:
        raise ConfigurationError("Store has no collections to build a configuration from")

    collections = [_collection_from_catalog(c) for c in catalog.collections]
    tags = categorize_tags(catalog.all_tags)
    product_types = _product_types_from_catalog(catalog)

    logger.info(
        f"Built config: {len(collections)} collections, {len(product_types)} product types, "
        f"{len(tags['theme'])} theme / {len(tags['style'])} style / {len(tags['audience'])} audience tags"
    )
    return StoreConfig(
        collections=collections,
        product_types=product_types,
        sales_channels=list(DEFAULT_SALES_CHANNELS),
        theme_tags=tags["theme"] or ["theme:general"],
        style_tags=tags["style"] or ["style:modern"],
        audience_tags=tags["audience"] or ["audience:adults"],
        metafield_options={k: list(v) for k, v in DEFAULT_METAFIELD_OPTIONS.items()},
        confidence_thresholds=ConfidenceThresholds(),
    )


def bootstrap_store_config(client, config_path: Path = STORE_CONFIG_PATH) -> StoreConfig:
    """Fetch the store catalog through a ShopifyClient and write the derived config."""
    catalog = client.fetch_store_catalog()
    config = build_config_from_store_data(catalog)
    dump_store_config(config, config_path)
    return config
