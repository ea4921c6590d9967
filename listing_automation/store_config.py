"""
Loading and saving the store catalog configuration.

The catalog (collections, product types, tag vocabularies and publishing
thresholds) lives in a YAML file. It is read once and passed explicitly to
the matcher and scorer.
"""

from pathlib import Path

import yaml

from listing_automation.constants import STORE_CONFIG_PATH
from listing_automation.models import (
    Collection,
    ConfidenceThresholds,
    ProductTypeConfig,
    StoreConfig,
    VariantConfig,
)
from util.logging_util import setup_logger

logger = setup_logger(__name__)


class ConfigurationError(ValueError):
    """Raised when the store configuration is missing or invalid."""


def _parse_collection(data: dict) -> Collection:
    for key in ("id", "name", "keywords"):
        if not data.get(key):
            raise ConfigurationError(f"Collection is missing '{key}': {data}")
    return Collection(
        id=str(data["id"]),
        name=data["name"],
        tags_required=list(data.get("tags_required") or []),
        keywords=[str(k) for k in data["keywords"]],
        boost_score=float(data.get("boost_score", 1.0)),
    )


def _parse_product_type(key: str, data: dict) -> ProductTypeConfig:
    if not data.get("type_name"):
        raise ConfigurationError(f"Product type '{key}' is missing 'type_name'")
    variants = [
        VariantConfig(
            size=v["size"],
            sku_suffix=v["sku_suffix"],
            price=float(v["price"]),
            inventory_quantity=int(v.get("inventory_quantity", 5000)),
        )
        for v in data.get("variants") or []
    ]
    return ProductTypeConfig(
        type_name=data["type_name"],
        vendor=data.get("vendor", ""),
        variants=variants,
    )


def validate_thresholds(thresholds: ConfidenceThresholds) -> None:
    """Check thresholds are in [0, 100] and ordered auto_publish >= quarantine >= reject."""
    values = (thresholds.auto_publish, thresholds.quarantine, thresholds.reject)
    if any(v < 0 or v > 100 for v in values):
        raise ConfigurationError(f"Confidence thresholds must be within 0-100: {thresholds}")
    if not thresholds.auto_publish >= thresholds.quarantine >= thresholds.reject:
        raise ConfigurationError(
            f"Confidence thresholds must satisfy auto_publish >= quarantine >= reject: {thresholds}"
        )


def parse_store_config(data: dict) -> StoreConfig:
    """Build a StoreConfig from the decoded YAML mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError("Store configuration must be a mapping")

    collections = [_parse_collection(c) for c in data.get("collections") or []]
    if not collections:
        raise ConfigurationError("Store configuration defines no collections")

    product_types = {
        key: _parse_product_type(key, value)
        for key, value in (data.get("product_types") or {}).items()
    }

    threshold_data = data.get("confidence_thresholds") or {}
    thresholds = ConfidenceThresholds(
        **{k: int(v) for k, v in threshold_data.items() if k in ("auto_publish", "quarantine", "reject")}
    )
    validate_thresholds(thresholds)

    return StoreConfig(
        collections=collections,
        product_types=product_types,
        sales_channels=list(data.get("sales_channels") or []),
        theme_tags=list(data.get("theme_tags") or []),
        style_tags=list(data.get("style_tags") or []),
        audience_tags=list(data.get("audience_tags") or []),
        metafield_options={k: list(v or []) for k, v in (data.get("metafield_options") or {}).items()},
        confidence_thresholds=thresholds,
    )


def load_store_config(config_path: Path = STORE_CONFIG_PATH) -> StoreConfig:
    """Load the store configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Store config not found at {config_path}")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f)

    config = parse_store_config(data)
    logger.info(
        f"Loaded store config from {config_path}: {len(config.collections)} collections, "
        f"{len(config.product_types)} product types"
    )
    return config


def store_config_to_dict(config: StoreConfig) -> dict:
    def collection_dict(c: Collection) -> dict:
        return {
            "id": c.id,
            "name": c.name,
            "tags_required": list(c.tags_required),
            "keywords": list(c.keywords),
            "boost_score": c.boost_score,
        }

    def product_type_dict(p: ProductTypeConfig) -> dict:
        return {
            "type_name": p.type_name,
            "vendor": p.vendor,
            "variants": [
                {
                    "size": v.size,
                    "sku_suffix": v.sku_suffix,
                    "price": v.price,
                    "inventory_quantity": v.inventory_quantity,
                }
                for v in p.variants
            ],
        }

    thresholds = config.confidence_thresholds
    return {
        "sales_channels": list(config.sales_channels),
        "product_types": {k: product_type_dict(v) for k, v in config.product_types.items()},
        "collections": [collection_dict(c) for c in config.collections],
        "theme_tags": list(config.theme_tags),
        "style_tags": list(config.style_tags),
        "audience_tags": list(config.audience_tags),
        "metafield_options": {k: list(v) for k, v in config.metafield_options.items()},
        "confidence_thresholds": {
            "auto_publish": thresholds.auto_publish,
            "quarantine": thresholds.quarantine,
            "reject": thresholds.reject,
        },
    }


def dump_store_config(config: StoreConfig, config_path: Path) -> None:
    """Write a store configuration to a YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(store_config_to_dict(config), f, sort_keys=False, allow_unicode=True)
    logger.info(f"Wrote store config to {config_path}")
